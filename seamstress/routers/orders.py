from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from seamstress.db import get_db
from seamstress.dependencies import get_client_ip
from seamstress.models import GarmentStage
from seamstress.services.errors import InvalidTransition, ParseError, ReconciliationError
from seamstress.services.order_lifecycle_service import (
    cancel_order,
    get_order_summary,
    list_work_queue,
    remove_service,
    restore_order,
    restore_service,
    update_garment_dates,
    update_garment_stage,
    update_service_completion,
    update_service_line,
)

router = APIRouter(tags=['orders'])


def _optional_text(form, key: str) -> str | None:
    value = form.get(key)
    if value is None:
        return None
    return str(value)


def _optional_int(form, key: str) -> int | None:
    raw = str(form.get(key, '')).strip()
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=f'{key} must be a whole number') from exc


def _service_payload(service) -> dict:
    return {
        'id': service.id,
        'garment_id': service.garment_id,
        'is_done': service.is_done is True,
        'is_removed': bool(service.is_removed),
        'quantity': service.quantity,
        'unit_price_cents': service.unit_price_cents,
    }


@router.get('/orders/{order_id}/summary')
def order_summary(order_id: int, db: Session = Depends(get_db)):
    try:
        return get_order_summary(db, order_id=order_id)
    except (ReconciliationError, ParseError) as exc:
        # Stored data the engine cannot read, not a missing order.
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@router.post('/orders/{order_id}/cancel')
async def order_cancel(order_id: int, request: Request, db: Session = Depends(get_db)):
    form = await request.form()
    try:
        order = cancel_order(
            db,
            order_id=order_id,
            reason=_optional_text(form, 'reason'),
            ip=get_client_ip(request),
        )
    except InvalidTransition as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    db.commit()
    return {
        'id': order.id,
        'order_number': order.order_number,
        'status': order.status.value,
        'cancellation_reason': order.cancellation_reason,
    }


@router.post('/orders/{order_id}/restore')
def order_restore(order_id: int, request: Request, db: Session = Depends(get_db)):
    try:
        order = restore_order(db, order_id=order_id, ip=get_client_ip(request))
    except InvalidTransition as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    db.commit()
    return {'id': order.id, 'order_number': order.order_number, 'status': order.status.value}


@router.post('/garments/{garment_id}/stage')
async def garment_stage(garment_id: int, request: Request, db: Session = Depends(get_db)):
    form = await request.form()
    raw_stage = str(form.get('stage', '')).strip().upper()
    try:
        stage = GarmentStage(raw_stage)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=f'Unknown garment stage: {raw_stage or "(blank)"}') from exc

    try:
        garment = update_garment_stage(db, garment_id=garment_id, stage=stage, ip=get_client_ip(request))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    db.commit()
    return {'id': garment.id, 'order_id': garment.order_id, 'stage': garment.stage.value}


@router.post('/garments/{garment_id}/dates')
async def garment_dates(garment_id: int, request: Request, db: Session = Depends(get_db)):
    form = await request.form()
    try:
        garment = update_garment_dates(
            db,
            garment_id=garment_id,
            due_date_raw=_optional_text(form, 'due_date'),
            event_date_raw=_optional_text(form, 'event_date'),
            ip=get_client_ip(request),
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    db.commit()
    return {
        'id': garment.id,
        'due_date': garment.due_date.isoformat() if garment.due_date else None,
        'event_date': garment.event_date.isoformat() if garment.event_date else None,
    }


@router.get('/garments/queue')
def garment_queue(limit: int | None = None, db: Session = Depends(get_db)):
    if limit is not None and limit < 1:
        raise HTTPException(status_code=400, detail='Limit must be at least 1')
    return list_work_queue(db, limit=limit)


@router.post('/services/{service_id}/completion')
async def service_completion(service_id: int, request: Request, db: Session = Depends(get_db)):
    form = await request.form()
    raw = str(form.get('is_done', '')).strip().lower()
    if raw not in {'1', 'true', 'yes', 'on', '0', 'false', 'no', 'off'}:
        raise HTTPException(status_code=400, detail='is_done must be true or false')
    try:
        service = update_service_completion(
            db,
            service_id=service_id,
            is_done=raw in {'1', 'true', 'yes', 'on'},
            ip=get_client_ip(request),
        )
    except InvalidTransition as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    db.commit()
    return _service_payload(service)


@router.post('/services/{service_id}/remove')
async def service_remove(service_id: int, request: Request, db: Session = Depends(get_db)):
    form = await request.form()
    try:
        service = remove_service(
            db,
            service_id=service_id,
            reason=_optional_text(form, 'reason'),
            ip=get_client_ip(request),
        )
    except InvalidTransition as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    db.commit()
    return _service_payload(service)


@router.post('/services/{service_id}/restore')
def service_restore(service_id: int, request: Request, db: Session = Depends(get_db)):
    try:
        service = restore_service(db, service_id=service_id, ip=get_client_ip(request))
    except InvalidTransition as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    db.commit()
    return _service_payload(service)


@router.post('/services/{service_id}/line')
async def service_line(service_id: int, request: Request, db: Session = Depends(get_db)):
    form = await request.form()
    quantity = _optional_int(form, 'quantity')
    unit_price_cents = _optional_int(form, 'unit_price_cents')
    try:
        service = update_service_line(
            db,
            service_id=service_id,
            quantity=quantity,
            unit_price_cents=unit_price_cents,
            ip=get_client_ip(request),
        )
    except InvalidTransition as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    db.commit()
    return _service_payload(service)
