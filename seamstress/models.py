from __future__ import annotations

from datetime import date, datetime
from enum import Enum

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Enum as SQLEnum,
    ForeignKey,
    Integer,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# SQLite only autoincrements INTEGER primary keys.
Id = BigInteger().with_variant(Integer, 'sqlite')


class Base(DeclarativeBase):
    pass


class OrderStatus(str, Enum):
    NEW = 'NEW'
    IN_PROGRESS = 'IN_PROGRESS'
    READY_FOR_PICKUP = 'READY_FOR_PICKUP'
    COMPLETED = 'COMPLETED'
    CANCELLED = 'CANCELLED'


class GarmentStage(str, Enum):
    NEW = 'NEW'
    IN_PROGRESS = 'IN_PROGRESS'
    READY_FOR_PICKUP = 'READY_FOR_PICKUP'
    DONE = 'DONE'


class PaymentStatus(str, Enum):
    UNPAID = 'UNPAID'
    PARTIAL = 'PARTIAL'
    PAID = 'PAID'
    OVERPAID = 'OVERPAID'


class PaymentEntryStatus(str, Enum):
    COMPLETED = 'COMPLETED'
    PENDING = 'PENDING'
    FAILED = 'FAILED'


class PaymentKind(str, Enum):
    PAYMENT = 'PAYMENT'
    REFUND = 'REFUND'


class Client(Base):
    __tablename__ = 'clients'

    id: Mapped[int] = mapped_column(Id, primary_key=True)
    first_name: Mapped[str] = mapped_column(Text, nullable=False)
    last_name: Mapped[str] = mapped_column(Text, nullable=False)
    email: Mapped[str | None] = mapped_column(Text)
    phone: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())


class Order(Base):
    __tablename__ = 'orders'
    __table_args__ = (
        UniqueConstraint('order_number', name='uq_orders_order_number'),
        CheckConstraint('total_cents >= 0', name='ck_orders_total_non_negative'),
    )

    id: Mapped[int] = mapped_column(Id, primary_key=True)
    order_number: Mapped[str] = mapped_column(Text, nullable=False)
    client_id: Mapped[int | None] = mapped_column(Id, ForeignKey('clients.id'))
    status: Mapped[OrderStatus] = mapped_column(
        SQLEnum(OrderStatus, name='order_status'),
        nullable=False,
        default=OrderStatus.NEW,
    )
    order_due_date: Mapped[date | None] = mapped_column(Date)
    total_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default='0')
    cancellation_reason: Mapped[str | None] = mapped_column(Text)
    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())


class Garment(Base):
    __tablename__ = 'garments'

    id: Mapped[int] = mapped_column(Id, primary_key=True)
    order_id: Mapped[int] = mapped_column(Id, ForeignKey('orders.id', ondelete='CASCADE'), nullable=False)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    stage: Mapped[GarmentStage] = mapped_column(
        SQLEnum(GarmentStage, name='garment_stage'),
        nullable=False,
        default=GarmentStage.NEW,
    )
    due_date: Mapped[date | None] = mapped_column(Date)
    event_date: Mapped[date | None] = mapped_column(Date)
    progress: Mapped[int | None] = mapped_column(Integer)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())


class GarmentService(Base):
    __tablename__ = 'garment_services'
    __table_args__ = (
        CheckConstraint('quantity >= 1', name='ck_garment_services_quantity_positive'),
        CheckConstraint('unit_price_cents >= 0', name='ck_garment_services_price_non_negative'),
    )

    id: Mapped[int] = mapped_column(Id, primary_key=True)
    garment_id: Mapped[int] = mapped_column(Id, ForeignKey('garments.id', ondelete='CASCADE'), nullable=False)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1, server_default='1')
    unit_price_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default='0')
    is_done: Mapped[bool | None] = mapped_column(Boolean)
    is_removed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default='false')
    removed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    removal_reason: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())


class Payment(Base):
    __tablename__ = 'payments'
    __table_args__ = (
        CheckConstraint(
            'refunded_amount_cents >= 0',
            name='ck_payments_refund_non_negative',
        ),
    )

    id: Mapped[int] = mapped_column(Id, primary_key=True)
    order_id: Mapped[int] = mapped_column(Id, ForeignKey('orders.id', ondelete='CASCADE'), nullable=False)
    kind: Mapped[PaymentKind] = mapped_column(
        SQLEnum(PaymentKind, name='payment_kind'),
        nullable=False,
        default=PaymentKind.PAYMENT,
    )
    status: Mapped[PaymentEntryStatus] = mapped_column(
        SQLEnum(PaymentEntryStatus, name='payment_entry_status'),
        nullable=False,
        default=PaymentEntryStatus.PENDING,
    )
    amount_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    refunded_amount_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default='0')
    method: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())


class AuditLog(Base):
    __tablename__ = 'audit_log'

    id: Mapped[int] = mapped_column(Id, primary_key=True)
    action: Mapped[str] = mapped_column(Text, nullable=False)
    order_id: Mapped[int | None] = mapped_column(Id, ForeignKey('orders.id', ondelete='SET NULL'))
    garment_id: Mapped[int | None] = mapped_column(Id, ForeignKey('garments.id', ondelete='SET NULL'))
    ip: Mapped[str | None] = mapped_column(Text)
    meta: Mapped[dict] = mapped_column('metadata', JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
