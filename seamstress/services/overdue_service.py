from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from seamstress.config import settings
from seamstress.services.civil_date_service import days_between
from seamstress.services.civil_date_service import today as civil_today
from seamstress.services.service_completion_service import all_services_completed
from seamstress.services.snapshots import GarmentSnapshot, OrderSnapshot


@dataclass(frozen=True)
class GarmentDueInfo:
    due_date: date
    days_until_due: int
    is_past: bool
    is_overdue: bool
    is_urgent: bool
    is_today: bool
    is_tomorrow: bool
    all_services_completed: bool


def _resolve_today(today: date | None) -> date:
    return today if today is not None else civil_today()


def days_until_due(due_date: date | None, *, today: date | None = None) -> int | None:
    if due_date is None:
        return None
    return days_between(_resolve_today(today), due_date)


def is_garment_overdue(garment: GarmentSnapshot, *, today: date | None = None) -> bool:
    if garment.due_date is None:
        return False
    if all_services_completed(garment):
        return False
    return garment.due_date < _resolve_today(today)


def garment_due_info(
    garment: GarmentSnapshot,
    *,
    today: date | None = None,
    urgent_window_days: int | None = None,
) -> GarmentDueInfo | None:
    if garment.due_date is None:
        return None

    window = settings.urgent_window_days if urgent_window_days is None else urgent_window_days
    days = days_between(_resolve_today(today), garment.due_date)
    completed = all_services_completed(garment)
    is_past = days < 0
    return GarmentDueInfo(
        due_date=garment.due_date,
        days_until_due=days,
        is_past=is_past,
        # Past due describes the calendar; overdue means there is still work to do.
        is_overdue=is_past and not completed,
        is_urgent=0 <= days <= window,
        is_today=days == 0,
        is_tomorrow=days == 1,
        all_services_completed=completed,
    )


def effective_order_due_date(order: OrderSnapshot) -> date | None:
    if order.order_due_date is not None:
        return order.order_due_date
    garment_dates = [garment.due_date for garment in order.garments if garment.due_date is not None]
    if not garment_dates:
        return None
    return min(garment_dates)


def is_order_overdue(order: OrderSnapshot, *, today: date | None = None) -> bool:
    current = _resolve_today(today)

    if order.order_due_date is not None and order.order_due_date < current:
        if not all(all_services_completed(garment) for garment in order.garments):
            return True

    # A garment with its own earlier deadline is not masked by the order date.
    return any(is_garment_overdue(garment, today=current) for garment in order.garments)
