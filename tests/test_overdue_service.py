from __future__ import annotations

import unittest
from datetime import date, timedelta
from unittest.mock import patch

from seamstress.models import GarmentStage
from seamstress.services.overdue_service import (
    days_until_due,
    effective_order_due_date,
    garment_due_info,
    is_garment_overdue,
    is_order_overdue,
)
from seamstress.services.snapshots import GarmentSnapshot, OrderSnapshot, ServiceSnapshot

TODAY = date(2024, 3, 15)
YESTERDAY = TODAY - timedelta(days=1)
TOMORROW = TODAY + timedelta(days=1)

OPEN = (ServiceSnapshot('s1', is_done=False),)
FINISHED = (ServiceSnapshot('s1', is_done=True),)


def _garment(garment_id: str, due: date | None, services=OPEN, stage=GarmentStage.IN_PROGRESS) -> GarmentSnapshot:
    return GarmentSnapshot(id=garment_id, stage=stage, due_date=due, services=services)


class GarmentOverdueTests(unittest.TestCase):
    def test_past_due_with_open_service_is_overdue(self) -> None:
        self.assertTrue(is_garment_overdue(_garment('G-1', YESTERDAY), today=TODAY))

    def test_past_due_with_finished_services_is_not_overdue(self) -> None:
        self.assertFalse(is_garment_overdue(_garment('G-1', YESTERDAY, services=FINISHED), today=TODAY))

    def test_finished_work_is_never_overdue_however_late(self) -> None:
        garment = _garment('G-1', TODAY - timedelta(days=400), services=FINISHED)
        self.assertFalse(is_garment_overdue(garment, today=TODAY))

    def test_due_today_is_not_overdue(self) -> None:
        self.assertFalse(is_garment_overdue(_garment('G-1', TODAY), today=TODAY))

    def test_no_due_date_is_not_overdue(self) -> None:
        self.assertFalse(is_garment_overdue(_garment('G-1', None), today=TODAY))

    def test_ready_stage_without_service_data_is_not_overdue(self) -> None:
        garment = _garment('G-1', YESTERDAY, services=None, stage=GarmentStage.READY_FOR_PICKUP)
        self.assertFalse(is_garment_overdue(garment, today=TODAY))

    @patch('seamstress.services.overdue_service.civil_today')
    def test_defaults_to_shop_today(self, today_mock) -> None:
        today_mock.return_value = TODAY
        self.assertTrue(is_garment_overdue(_garment('G-1', YESTERDAY)))
        today_mock.assert_called_once_with()


class GarmentDueInfoTests(unittest.TestCase):
    def test_due_today_is_urgent_and_not_overdue(self) -> None:
        info = garment_due_info(_garment('G-1', TODAY), today=TODAY)
        self.assertEqual(info.days_until_due, 0)
        self.assertTrue(info.is_today)
        self.assertTrue(info.is_urgent)
        self.assertFalse(info.is_tomorrow)
        self.assertFalse(info.is_past)
        self.assertFalse(info.is_overdue)

    def test_urgency_window_edges(self) -> None:
        self.assertTrue(garment_due_info(_garment('G-1', TODAY + timedelta(days=3)), today=TODAY).is_urgent)
        self.assertFalse(garment_due_info(_garment('G-1', TODAY + timedelta(days=4)), today=TODAY).is_urgent)
        self.assertFalse(garment_due_info(_garment('G-1', YESTERDAY), today=TODAY).is_urgent)

    def test_custom_urgency_window(self) -> None:
        info = garment_due_info(_garment('G-1', TODAY + timedelta(days=5)), today=TODAY, urgent_window_days=7)
        self.assertTrue(info.is_urgent)

    def test_tomorrow_flag(self) -> None:
        info = garment_due_info(_garment('G-1', TOMORROW), today=TODAY)
        self.assertTrue(info.is_tomorrow)
        self.assertEqual(info.days_until_due, 1)

    def test_past_due_but_finished_is_past_without_overdue(self) -> None:
        info = garment_due_info(_garment('G-1', YESTERDAY, services=FINISHED), today=TODAY)
        self.assertTrue(info.is_past)
        self.assertFalse(info.is_overdue)
        self.assertTrue(info.all_services_completed)

    def test_past_due_and_open_is_overdue(self) -> None:
        info = garment_due_info(_garment('G-1', YESTERDAY), today=TODAY)
        self.assertTrue(info.is_past)
        self.assertTrue(info.is_overdue)
        self.assertEqual(info.days_until_due, -1)

    def test_no_due_date_has_no_info(self) -> None:
        self.assertIsNone(garment_due_info(_garment('G-1', None), today=TODAY))
        self.assertIsNone(days_until_due(None, today=TODAY))


class EffectiveDueDateTests(unittest.TestCase):
    def test_order_date_wins(self) -> None:
        order = OrderSnapshot(
            id=1,
            order_number='ORD-1',
            order_due_date=TODAY + timedelta(days=10),
            garments=(_garment('G-1', TOMORROW),),
        )
        self.assertEqual(effective_order_due_date(order), TODAY + timedelta(days=10))

    def test_falls_back_to_earliest_garment_date(self) -> None:
        order = OrderSnapshot(
            id=1,
            order_number='ORD-1',
            garments=(
                _garment('G-1', TODAY + timedelta(days=5)),
                _garment('G-2', None),
                _garment('G-3', TOMORROW),
            ),
        )
        self.assertEqual(effective_order_due_date(order), TOMORROW)

    def test_no_dates_anywhere(self) -> None:
        order = OrderSnapshot(id=1, order_number='ORD-1', garments=(_garment('G-1', None),))
        self.assertIsNone(effective_order_due_date(order))
        self.assertIsNone(effective_order_due_date(OrderSnapshot(id=2, order_number='ORD-2')))


class OrderOverdueTests(unittest.TestCase):
    def test_empty_order_is_never_overdue(self) -> None:
        self.assertFalse(is_order_overdue(OrderSnapshot(id=1, order_number='ORD-1'), today=TODAY))

    def test_past_order_date_with_no_garments_is_not_overdue(self) -> None:
        order = OrderSnapshot(id=1, order_number='ORD-1', order_due_date=YESTERDAY)
        self.assertFalse(is_order_overdue(order, today=TODAY))

    def test_past_order_date_with_incomplete_garment(self) -> None:
        order = OrderSnapshot(
            id=1,
            order_number='ORD-1',
            order_due_date=YESTERDAY,
            garments=(_garment('G-1', None),),
        )
        self.assertTrue(is_order_overdue(order, today=TODAY))

    def test_past_order_date_with_all_garments_complete(self) -> None:
        order = OrderSnapshot(
            id=1,
            order_number='ORD-1',
            order_due_date=YESTERDAY,
            garments=(_garment('G-1', YESTERDAY, services=FINISHED), _garment('G-2', None, services=())),
        )
        self.assertFalse(is_order_overdue(order, today=TODAY))

    def test_future_order_date_does_not_mask_overdue_garment(self) -> None:
        order = OrderSnapshot(
            id=1,
            order_number='ORD-1',
            order_due_date=TODAY + timedelta(days=7),
            garments=(_garment('G-1', YESTERDAY), _garment('G-2', TOMORROW)),
        )
        self.assertTrue(is_order_overdue(order, today=TODAY))

    def test_order_due_today_is_not_overdue(self) -> None:
        order = OrderSnapshot(
            id=1,
            order_number='ORD-1',
            order_due_date=TODAY,
            garments=(_garment('G-1', TODAY),),
        )
        self.assertFalse(is_order_overdue(order, today=TODAY))


if __name__ == '__main__':
    unittest.main()
