"""
Order cancel/restore transitions.

Only the cancelled axis is owned here. Working statuses (new, in progress,
ready, completed) are derived from garment stages, and restoring a cancelled
order re-derives them instead of replaying what the order was before.
"""
from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace

from seamstress.models import GarmentStage, OrderStatus
from seamstress.services.errors import InvalidTransition
from seamstress.services.snapshots import GarmentSnapshot, OrderSnapshot

NON_CANCELLABLE_STATUSES = frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELLED})
_READY_STAGES = frozenset({GarmentStage.READY_FOR_PICKUP, GarmentStage.DONE})


def derive_status_from_stages(stages: Iterable[GarmentStage]) -> OrderStatus:
    stages = list(stages)
    if not stages or all(stage == GarmentStage.NEW for stage in stages):
        return OrderStatus.NEW
    if all(stage == GarmentStage.DONE for stage in stages):
        return OrderStatus.COMPLETED
    if all(stage in _READY_STAGES for stage in stages):
        return OrderStatus.READY_FOR_PICKUP
    return OrderStatus.IN_PROGRESS


def derive_status_from_garments(garments: Iterable[GarmentSnapshot]) -> OrderStatus:
    return derive_status_from_stages(garment.stage for garment in garments)


def can_cancel(status: OrderStatus) -> bool:
    return status not in NON_CANCELLABLE_STATUSES


def can_restore(status: OrderStatus) -> bool:
    return status == OrderStatus.CANCELLED


def cancel(order: OrderSnapshot, reason: str | None = None) -> OrderSnapshot:
    if order.status == OrderStatus.CANCELLED:
        raise InvalidTransition('This order is already cancelled')
    if order.status == OrderStatus.COMPLETED:
        raise InvalidTransition('Completed orders cannot be cancelled. Use the refund process instead.')

    clean_reason = reason.strip() if reason and reason.strip() else None
    return replace(order, status=OrderStatus.CANCELLED, cancellation_reason=clean_reason)


def restore(order: OrderSnapshot) -> OrderSnapshot:
    if not can_restore(order.status):
        raise InvalidTransition('Only cancelled orders can be restored')
    return replace(
        order,
        status=derive_status_from_garments(order.garments),
        cancellation_reason=None,
    )
