from __future__ import annotations

import unittest

from seamstress.models import GarmentStage
from seamstress.services.service_completion_service import (
    all_services_completed,
    derive_stage_from_services,
    service_progress,
)
from seamstress.services.snapshots import GarmentSnapshot, ServiceSnapshot


def _garment(services, stage: GarmentStage = GarmentStage.IN_PROGRESS) -> GarmentSnapshot:
    return GarmentSnapshot(id='G-1', stage=stage, services=services)


class AllServicesCompletedTests(unittest.TestCase):
    def test_all_active_services_done(self) -> None:
        garment = _garment((ServiceSnapshot('s1', is_done=True), ServiceSnapshot('s2', is_done=True)))
        self.assertTrue(all_services_completed(garment))

    def test_one_open_service_keeps_garment_incomplete(self) -> None:
        garment = _garment((ServiceSnapshot('s1', is_done=True), ServiceSnapshot('s2', is_done=False)))
        self.assertFalse(all_services_completed(garment))

    def test_unknown_done_flag_counts_as_not_done(self) -> None:
        garment = _garment((ServiceSnapshot('s1', is_done=None),))
        self.assertFalse(all_services_completed(garment))

    def test_removed_services_are_ignored(self) -> None:
        garment = _garment(
            (
                ServiceSnapshot('s1', is_done=True),
                ServiceSnapshot('s2', is_done=False, is_removed=True),
            )
        )
        self.assertTrue(all_services_completed(garment))

    def test_only_removed_services_is_vacuously_complete(self) -> None:
        garment = _garment((ServiceSnapshot('s1', is_done=False, is_removed=True),), stage=GarmentStage.NEW)
        self.assertTrue(all_services_completed(garment))

    def test_empty_service_list_is_complete_even_for_new_stage(self) -> None:
        self.assertTrue(all_services_completed(_garment((), stage=GarmentStage.NEW)))

    def test_missing_service_data_falls_back_to_stage(self) -> None:
        for stage, expected in [
            (GarmentStage.NEW, False),
            (GarmentStage.IN_PROGRESS, False),
            (GarmentStage.READY_FOR_PICKUP, True),
            (GarmentStage.DONE, True),
        ]:
            with self.subTest(stage=stage):
                self.assertEqual(all_services_completed(_garment(None, stage=stage)), expected)

    def test_service_data_wins_over_stage_when_present(self) -> None:
        garment = _garment((ServiceSnapshot('s1', is_done=False),), stage=GarmentStage.READY_FOR_PICKUP)
        self.assertFalse(all_services_completed(garment))


class ServiceProgressTests(unittest.TestCase):
    def test_progress_counts_active_services_only(self) -> None:
        garment = _garment(
            (
                ServiceSnapshot('s1', is_done=True),
                ServiceSnapshot('s2', is_done=False),
                ServiceSnapshot('s3', is_done=False),
                ServiceSnapshot('s4', is_done=True, is_removed=True),
            )
        )
        self.assertEqual(service_progress(garment), 33)

    def test_progress_edges(self) -> None:
        self.assertIsNone(service_progress(_garment(None)))
        self.assertEqual(service_progress(_garment(())), 100)


class DeriveStageFromServicesTests(unittest.TestCase):
    def test_stage_follows_active_services(self) -> None:
        done = ServiceSnapshot('s1', is_done=True)
        open_ = ServiceSnapshot('s2', is_done=False)
        removed = ServiceSnapshot('s3', is_done=False, is_removed=True)
        self.assertEqual(derive_stage_from_services([open_]), GarmentStage.NEW)
        self.assertEqual(derive_stage_from_services([done, open_]), GarmentStage.IN_PROGRESS)
        self.assertEqual(derive_stage_from_services([done, removed]), GarmentStage.READY_FOR_PICKUP)

    def test_no_active_services_gives_no_stage(self) -> None:
        self.assertIsNone(derive_stage_from_services([]))
        self.assertIsNone(derive_stage_from_services([ServiceSnapshot('s1', is_removed=True)]))


if __name__ == '__main__':
    unittest.main()
