from __future__ import annotations

from collections.abc import Iterable

from seamstress.models import GarmentStage
from seamstress.services.snapshots import GarmentSnapshot, ServiceSnapshot

COMPLETE_STAGES = frozenset({GarmentStage.READY_FOR_PICKUP, GarmentStage.DONE})


def active_services(services: Iterable[ServiceSnapshot]) -> list[ServiceSnapshot]:
    return [service for service in services if not service.is_removed]


def all_services_completed(garment: GarmentSnapshot) -> bool:
    if garment.services is None:
        # Without service rows the stage is the only signal we have.
        return garment.stage in COMPLETE_STAGES

    remaining = active_services(garment.services)
    if not remaining:
        return True
    return all(service.is_done is True for service in remaining)


def service_progress(garment: GarmentSnapshot) -> int | None:
    if garment.services is None:
        return None
    remaining = active_services(garment.services)
    if not remaining:
        return 100
    done = sum(1 for service in remaining if service.is_done is True)
    return (done * 100) // len(remaining)


def derive_stage_from_services(services: Iterable[ServiceSnapshot]) -> GarmentStage | None:
    remaining = active_services(services)
    if not remaining:
        return None
    done = sum(1 for service in remaining if service.is_done is True)
    if done == 0:
        return GarmentStage.NEW
    if done == len(remaining):
        return GarmentStage.READY_FOR_PICKUP
    return GarmentStage.IN_PROGRESS
