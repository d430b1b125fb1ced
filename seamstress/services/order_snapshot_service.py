from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from seamstress.models import Garment, GarmentService, Order, Payment
from seamstress.services.civil_date_service import coerce_civil_date
from seamstress.services.snapshots import GarmentSnapshot, OrderSnapshot, PaymentEntry, ServiceSnapshot


def _services_by_garment(db: Session, *, garment_ids: list[int]) -> dict[int, list[ServiceSnapshot]]:
    if not garment_ids:
        return {}
    rows = db.execute(
        select(GarmentService)
        .where(GarmentService.garment_id.in_(garment_ids))
        .order_by(GarmentService.id.asc())
    ).scalars().all()
    by_garment: dict[int, list[ServiceSnapshot]] = {}
    for row in rows:
        by_garment.setdefault(row.garment_id, []).append(
            ServiceSnapshot(
                id=row.id,
                is_done=row.is_done,
                is_removed=bool(row.is_removed),
                line_total_cents=row.quantity * row.unit_price_cents,
            )
        )
    return by_garment


def garment_snapshots(db: Session, garments: list[Garment]) -> list[GarmentSnapshot]:
    services = _services_by_garment(db, garment_ids=[garment.id for garment in garments])
    return [
        GarmentSnapshot(
            id=garment.id,
            order_id=garment.order_id,
            stage=garment.stage,
            due_date=coerce_civil_date(garment.due_date),
            event_date=coerce_civil_date(garment.event_date),
            # A stored garment always has service data, even if it is an empty list.
            services=tuple(services.get(garment.id, [])),
            progress=garment.progress,
        )
        for garment in garments
    ]


def payment_entries(db: Session, *, order_id: int) -> list[PaymentEntry]:
    rows = db.execute(select(Payment).where(Payment.order_id == order_id).order_by(Payment.id.asc())).scalars().all()
    return [
        PaymentEntry(
            id=row.id,
            amount_cents=row.amount_cents,
            refunded_amount_cents=row.refunded_amount_cents or 0,
            status=row.status,
            kind=row.kind,
        )
        for row in rows
    ]


def build_order_snapshot(db: Session, order: Order) -> OrderSnapshot:
    garments = db.execute(select(Garment).where(Garment.order_id == order.id).order_by(Garment.id.asc())).scalars().all()
    return OrderSnapshot(
        id=order.id,
        order_number=order.order_number,
        status=order.status,
        order_due_date=coerce_civil_date(order.order_due_date),
        total_cents=order.total_cents,
        garments=tuple(garment_snapshots(db, list(garments))),
        payments=tuple(payment_entries(db, order_id=order.id)),
        cancellation_reason=order.cancellation_reason,
    )


def get_order_row(db: Session, *, order_id: int, for_update: bool = False) -> Order:
    query = select(Order).where(Order.id == order_id)
    if for_update:
        query = query.with_for_update()
    order = db.execute(query).scalar_one_or_none()
    if order is None:
        raise ValueError('Order not found')
    return order


def load_order_snapshot(db: Session, *, order_id: int) -> OrderSnapshot:
    return build_order_snapshot(db, get_order_row(db, order_id=order_id))
