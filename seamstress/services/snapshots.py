from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from seamstress.models import GarmentStage, OrderStatus, PaymentEntryStatus, PaymentKind


@dataclass(frozen=True)
class ServiceSnapshot:
    id: int | str
    is_done: bool | None = False
    is_removed: bool = False
    line_total_cents: int = 0


@dataclass(frozen=True)
class GarmentSnapshot:
    id: int | str
    stage: GarmentStage = GarmentStage.NEW
    due_date: date | None = None
    event_date: date | None = None
    # None means the caller has no service data, which is not the same as no services.
    services: tuple[ServiceSnapshot, ...] | None = None
    progress: int | None = None
    order_id: int | str | None = None


@dataclass(frozen=True)
class PaymentEntry:
    id: int | str
    amount_cents: int
    refunded_amount_cents: int = 0
    status: PaymentEntryStatus = PaymentEntryStatus.COMPLETED
    kind: PaymentKind = PaymentKind.PAYMENT


@dataclass(frozen=True)
class OrderSnapshot:
    id: int | str
    order_number: str
    status: OrderStatus = OrderStatus.NEW
    order_due_date: date | None = None
    total_cents: int = 0
    garments: tuple[GarmentSnapshot, ...] = ()
    payments: tuple[PaymentEntry, ...] = ()
    cancellation_reason: str | None = None
