from __future__ import annotations

from collections.abc import Iterable
from datetime import date
from typing import TypeVar

from seamstress.models import GarmentStage
from seamstress.services.civil_date_service import days_between
from seamstress.services.civil_date_service import today as civil_today
from seamstress.services.overdue_service import is_garment_overdue
from seamstress.services.snapshots import GarmentSnapshot

G = TypeVar('G', bound=GarmentSnapshot)

BUCKET_OVERDUE = 0
BUCKET_TODAY = 1
BUCKET_TOMORROW = 2
BUCKET_DATED = 3
BUCKET_NO_DATE = 4

_STAGE_SCORES = {
    GarmentStage.READY_FOR_PICKUP: 3,
    GarmentStage.IN_PROGRESS: 2,
    GarmentStage.NEW: 1,
    # Done garments are normally filtered out before ranking.
    GarmentStage.DONE: -1,
}


def stage_priority_score(stage: GarmentStage) -> int:
    return _STAGE_SCORES.get(stage, 0)


def priority_bucket(garment: GarmentSnapshot, *, today: date) -> int:
    if garment.due_date is None:
        return BUCKET_NO_DATE
    if is_garment_overdue(garment, today=today):
        return BUCKET_OVERDUE
    days = days_between(today, garment.due_date)
    if days == 0:
        return BUCKET_TODAY
    if days == 1:
        return BUCKET_TOMORROW
    # Future dates, plus past dates whose work is already finished.
    return BUCKET_DATED


def _priority_key(garment: GarmentSnapshot, today: date) -> tuple[int, int, int, int]:
    bucket = priority_bucket(garment, today=today)
    date_rank = garment.due_date.toordinal() if bucket in (BUCKET_OVERDUE, BUCKET_DATED) else 0
    progress_rank = 0
    if garment.stage == GarmentStage.IN_PROGRESS and garment.progress is not None:
        progress_rank = -garment.progress
    return (bucket, date_rank, -stage_priority_score(garment.stage), progress_rank)


def sort_by_priority(garments: Iterable[G], *, today: date | None = None) -> list[G]:
    """
    Rank garments most urgent first.

    Overdue work (earliest deadline first) comes before work due today, then
    tomorrow, then later dates in ascending order, then undated garments.
    Inside a bucket, stages closer to pickup go first and in-progress work is
    ordered by progress. Ties keep their input order.
    """
    current = today if today is not None else civil_today()
    return sorted(garments, key=lambda garment: _priority_key(garment, current))
