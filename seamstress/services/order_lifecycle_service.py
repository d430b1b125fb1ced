from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime, timezone

from sqlalchemy import select
from sqlalchemy.orm import Session

from seamstress.models import Garment, GarmentService, GarmentStage, Order, OrderStatus
from seamstress.services.audit_service import log_audit
from seamstress.services.civil_date_service import format_civil_date, parse_optional_civil_date
from seamstress.services.civil_date_service import today as civil_today
from seamstress.services.errors import InvalidTransition
from seamstress.services.garment_priority_service import sort_by_priority
from seamstress.services.order_snapshot_service import (
    build_order_snapshot,
    garment_snapshots,
    get_order_row,
)
from seamstress.services.order_state_service import cancel, derive_status_from_garments, restore
from seamstress.services.overdue_service import effective_order_due_date, garment_due_info, is_order_overdue
from seamstress.services.payment_reconciliation_service import billable_total_cents, reconcile
from seamstress.services.service_completion_service import (
    all_services_completed,
    derive_stage_from_services,
    service_progress,
)

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(tz=timezone.utc)


def _get_garment(db: Session, *, garment_id: int) -> Garment:
    garment = db.execute(select(Garment).where(Garment.id == garment_id).with_for_update()).scalar_one_or_none()
    if garment is None:
        raise ValueError('Garment not found')
    return garment


def _date_or_none(value: date | None) -> str | None:
    return format_civil_date(value) if value is not None else None


def cancel_order(db: Session, *, order_id: int, reason: str | None = None, ip: str | None = None) -> Order:
    order = get_order_row(db, order_id=order_id, for_update=True)
    snapshot = build_order_snapshot(db, order)
    try:
        cancelled = cancel(snapshot, reason)
    except InvalidTransition:
        logger.warning('Rejected cancel for order %s in status %s', order.order_number, order.status.value)
        raise

    previous_status = order.status
    order.status = cancelled.status
    order.cancellation_reason = cancelled.cancellation_reason
    order.cancelled_at = _now()
    order.updated_at = _now()
    log_audit(
        db,
        action='ORDER_CANCELLED',
        order_id=order.id,
        ip=ip,
        metadata={'previous_status': previous_status.value, 'reason': cancelled.cancellation_reason},
    )
    db.flush()
    logger.info('Order %s cancelled (was %s)', order.order_number, previous_status.value)
    return order


def restore_order(db: Session, *, order_id: int, ip: str | None = None) -> Order:
    order = get_order_row(db, order_id=order_id, for_update=True)
    snapshot = build_order_snapshot(db, order)
    try:
        restored = restore(snapshot)
    except InvalidTransition:
        logger.warning('Rejected restore for order %s in status %s', order.order_number, order.status.value)
        raise

    order.status = restored.status
    order.cancellation_reason = None
    order.cancelled_at = None
    order.updated_at = _now()
    log_audit(
        db,
        action='ORDER_RESTORED',
        order_id=order.id,
        ip=ip,
        metadata={'calculated_status': restored.status.value},
    )
    db.flush()
    logger.info('Order %s restored as %s', order.order_number, restored.status.value)
    return order


def _refresh_order_status(db: Session, *, order_id: int) -> None:
    order = get_order_row(db, order_id=order_id, for_update=True)
    if order.status == OrderStatus.CANCELLED:
        return
    garments = db.execute(select(Garment).where(Garment.order_id == order_id)).scalars().all()
    derived = derive_status_from_garments(garment_snapshots(db, list(garments)))
    if derived != order.status:
        logger.info('Order %s status %s -> %s', order.order_number, order.status.value, derived.value)
        order.status = derived
        order.updated_at = _now()


def update_garment_stage(db: Session, *, garment_id: int, stage: GarmentStage, ip: str | None = None) -> Garment:
    garment = _get_garment(db, garment_id=garment_id)
    if garment.stage == stage:
        return garment

    # Manual corrections may move a garment backwards.
    previous_stage = garment.stage
    garment.stage = stage
    garment.updated_at = _now()
    db.flush()
    _refresh_order_status(db, order_id=garment.order_id)
    log_audit(
        db,
        action='GARMENT_STAGE_CHANGED',
        order_id=garment.order_id,
        garment_id=garment.id,
        ip=ip,
        metadata={'old_value': previous_stage.value, 'new_value': stage.value},
    )
    db.flush()
    logger.info('Garment %s stage %s -> %s', garment.id, previous_stage.value, stage.value)
    return garment


def update_garment_dates(
    db: Session,
    *,
    garment_id: int,
    due_date_raw: str | None,
    event_date_raw: str | None,
    ip: str | None = None,
) -> Garment:
    # None leaves a date as it is; a blank string clears it.
    due_date = parse_optional_civil_date(due_date_raw)
    event_date = parse_optional_civil_date(event_date_raw)

    garment = _get_garment(db, garment_id=garment_id)
    if garment.stage == GarmentStage.DONE:
        raise ValueError('Dates cannot be changed once a garment is done')
    if due_date_raw is None:
        due_date = garment.due_date
    if event_date_raw is None:
        event_date = garment.event_date

    changes = {}
    if garment.due_date != due_date:
        changes['due_date'] = [_date_or_none(garment.due_date), _date_or_none(due_date)]
        garment.due_date = due_date
    if garment.event_date != event_date:
        changes['event_date'] = [_date_or_none(garment.event_date), _date_or_none(event_date)]
        garment.event_date = event_date
    if not changes:
        return garment

    garment.updated_at = _now()
    log_audit(
        db,
        action='GARMENT_DATES_CHANGED',
        order_id=garment.order_id,
        garment_id=garment.id,
        ip=ip,
        metadata=changes,
    )
    db.flush()
    logger.info('Garment %s dates updated: %s', garment.id, ', '.join(sorted(changes)))
    return garment


def _get_service(db: Session, *, service_id: int) -> tuple[GarmentService, Garment, Order]:
    service = db.execute(
        select(GarmentService).where(GarmentService.id == service_id).with_for_update()
    ).scalar_one_or_none()
    if service is None:
        raise ValueError('Service not found')
    garment = _get_garment(db, garment_id=service.garment_id)
    order = get_order_row(db, order_id=garment.order_id, for_update=True)
    if order.status == OrderStatus.CANCELLED:
        logger.warning('Rejected service change on cancelled order %s', order.order_number)
        raise InvalidTransition('Services cannot be changed on a cancelled order. Restore the order first.')
    return service, garment, order


def _apply_service_change(db: Session, *, garment: Garment, order: Order) -> None:
    db.flush()
    snapshot = garment_snapshots(db, [garment])[0]

    # Picked-up garments keep their stage; nothing left to work on.
    stage = derive_stage_from_services(snapshot.services or ())
    if stage is not None and garment.stage != GarmentStage.DONE and stage != garment.stage:
        logger.info('Garment %s stage %s -> %s from services', garment.id, garment.stage.value, stage.value)
        garment.stage = stage
        garment.updated_at = _now()
        db.flush()
    _refresh_order_status(db, order_id=order.id)

    garments = db.execute(select(Garment).where(Garment.order_id == order.id)).scalars().all()
    billable = billable_total_cents(garment_snapshots(db, list(garments)))
    if billable is not None and billable != order.total_cents:
        order.total_cents = billable
        order.updated_at = _now()


def update_service_completion(db: Session, *, service_id: int, is_done: bool, ip: str | None = None) -> GarmentService:
    service, garment, order = _get_service(db, service_id=service_id)
    if service.is_removed:
        raise ValueError('Cannot change completion of a removed service')
    was_done = service.is_done is True
    if was_done == is_done:
        return service

    service.is_done = is_done
    _apply_service_change(db, garment=garment, order=order)
    log_audit(
        db,
        action='SERVICE_COMPLETION_CHANGED',
        order_id=order.id,
        garment_id=garment.id,
        ip=ip,
        metadata={'service_id': service.id, 'name': service.name, 'old_value': was_done, 'new_value': is_done},
    )
    db.flush()
    logger.info('Service %s on garment %s marked %s', service.id, garment.id, 'done' if is_done else 'not done')
    return service


def remove_service(db: Session, *, service_id: int, reason: str | None = None, ip: str | None = None) -> GarmentService:
    service, garment, order = _get_service(db, service_id=service_id)
    if service.is_removed:
        raise ValueError('Service is already removed')
    if service.is_done:
        raise ValueError('Cannot remove a completed service')

    cleaned_reason = reason.strip() if reason else ''
    service.is_removed = True
    service.removed_at = _now()
    service.removal_reason = cleaned_reason or None
    _apply_service_change(db, garment=garment, order=order)
    log_audit(
        db,
        action='SERVICE_REMOVED',
        order_id=order.id,
        garment_id=garment.id,
        ip=ip,
        metadata={
            'service_id': service.id,
            'name': service.name,
            'line_total_cents': service.quantity * service.unit_price_cents,
            'reason': service.removal_reason,
        },
    )
    db.flush()
    logger.info('Service %s removed from garment %s', service.id, garment.id)
    return service


def restore_service(db: Session, *, service_id: int, ip: str | None = None) -> GarmentService:
    service, garment, order = _get_service(db, service_id=service_id)
    if not service.is_removed:
        raise ValueError('Service is not removed')

    service.is_removed = False
    service.removed_at = None
    service.removal_reason = None
    _apply_service_change(db, garment=garment, order=order)
    log_audit(
        db,
        action='SERVICE_RESTORED',
        order_id=order.id,
        garment_id=garment.id,
        ip=ip,
        metadata={'service_id': service.id, 'name': service.name},
    )
    db.flush()
    logger.info('Service %s restored on garment %s', service.id, garment.id)
    return service


def update_service_line(
    db: Session,
    *,
    service_id: int,
    quantity: int | None = None,
    unit_price_cents: int | None = None,
    ip: str | None = None,
) -> GarmentService:
    service, garment, order = _get_service(db, service_id=service_id)
    if service.is_done:
        raise ValueError('Cannot edit a completed service')
    if quantity is not None and quantity < 1:
        raise ValueError('Quantity must be at least 1')
    if unit_price_cents is not None and unit_price_cents < 0:
        raise ValueError('Unit price cannot be negative')

    changes = {}
    if quantity is not None and quantity != service.quantity:
        changes['quantity'] = [service.quantity, quantity]
        service.quantity = quantity
    if unit_price_cents is not None and unit_price_cents != service.unit_price_cents:
        changes['unit_price_cents'] = [service.unit_price_cents, unit_price_cents]
        service.unit_price_cents = unit_price_cents
    if not changes:
        return service

    _apply_service_change(db, garment=garment, order=order)
    log_audit(
        db,
        action='SERVICE_UPDATED',
        order_id=order.id,
        garment_id=garment.id,
        ip=ip,
        metadata={'service_id': service.id, **changes},
    )
    db.flush()
    logger.info('Service %s updated: %s', service.id, ', '.join(sorted(changes)))
    return service


def get_order_summary(db: Session, *, order_id: int, today: date | None = None) -> dict:
    current = today if today is not None else civil_today()
    snapshot = build_order_snapshot(db, get_order_row(db, order_id=order_id))
    billable = billable_total_cents(snapshot.garments)
    payment = reconcile(snapshot.total_cents if billable is None else billable, snapshot.payments)
    effective_due = effective_order_due_date(snapshot)

    garments = []
    for garment in snapshot.garments:
        info = garment_due_info(garment, today=current)
        garments.append(
            {
                'id': garment.id,
                'stage': garment.stage.value,
                'due_date': _date_or_none(garment.due_date),
                'event_date': _date_or_none(garment.event_date),
                'days_until_due': info.days_until_due if info else None,
                'is_past': info.is_past if info else False,
                'is_overdue': info.is_overdue if info else False,
                'is_urgent': info.is_urgent if info else False,
                'is_today': info.is_today if info else False,
                'is_tomorrow': info.is_tomorrow if info else False,
                'all_services_completed': all_services_completed(garment),
            }
        )

    return {
        'id': snapshot.id,
        'order_number': snapshot.order_number,
        'status': snapshot.status.value,
        'cancellation_reason': snapshot.cancellation_reason,
        'effective_due_date': _date_or_none(effective_due),
        'is_overdue': snapshot.status != OrderStatus.CANCELLED and is_order_overdue(snapshot, today=current),
        'payment': {
            'total_cents': payment.total_cents,
            'total_paid': payment.total_paid,
            'total_refunded': payment.total_refunded,
            'net_paid': payment.net_paid,
            'amount_due': payment.amount_due,
            'percentage': str(payment.percentage),
            'payment_status': payment.payment_status.value,
        },
        'garments': garments,
    }


def list_work_queue(db: Session, *, today: date | None = None, limit: int | None = None) -> list[dict]:
    current = today if today is not None else civil_today()
    rows = db.execute(
        select(Garment)
        .join(Order, Order.id == Garment.order_id)
        .where(
            Garment.stage != GarmentStage.DONE,
            Order.status != OrderStatus.CANCELLED,
        )
        .order_by(Garment.id.asc())
    ).scalars().all()

    snapshots = []
    for snapshot in garment_snapshots(db, list(rows)):
        if snapshot.progress is None:
            snapshot = replace(snapshot, progress=service_progress(snapshot))
        snapshots.append(snapshot)

    ranked = sort_by_priority(snapshots, today=current)
    if limit is not None:
        ranked = ranked[:limit]

    names = {row.id: row.name for row in rows}
    queue = []
    for garment in ranked:
        info = garment_due_info(garment, today=current)
        queue.append(
            {
                'id': garment.id,
                'order_id': garment.order_id,
                'name': names.get(garment.id),
                'stage': garment.stage.value,
                'due_date': _date_or_none(garment.due_date),
                'progress': garment.progress,
                'is_overdue': info.is_overdue if info else False,
                'is_urgent': info.is_urgent if info else False,
            }
        )
    return queue
