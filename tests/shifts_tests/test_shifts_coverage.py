"""Tests for shifts/coverage.py weekly coverage overview."""

from __future__ import annotations

import unittest

from shifts.coverage import client_coverage, coverage_overview
from tests.fixtures import MON, WED, biweekly, d, one_time, weekly


class TestClientCoverage(unittest.TestCase):
    def test_units_and_shortfall(self):
        c = client_coverage("cl1", authorized_units=40, scheduled_hours=8.0)
        self.assertEqual(c.authorized_hours, 10.0)
        self.assertEqual(c.scheduled_units, 32)
        self.assertEqual(c.shortfall_units, 8)
        self.assertEqual(c.shortfall_hours, 2.0)
        self.assertEqual(c.coverage_percent, 80)
        self.assertTrue(c.is_under_scheduled)

    def test_over_scheduled_has_no_shortfall(self):
        c = client_coverage("cl1", authorized_units=16, scheduled_hours=5.0)
        self.assertEqual(c.shortfall_units, 0)
        self.assertFalse(c.is_under_scheduled)
        self.assertEqual(c.coverage_percent, 125)

    def test_scheduled_units_round_to_quarter_hours(self):
        c = client_coverage("cl1", authorized_units=4, scheduled_hours=0.9)
        self.assertEqual(c.scheduled_units, 4)


class TestCoverageOverview(unittest.TestCase):
    def setUp(self):
        self.records = [
            weekly("w1", MON, "09:00", "13:00", caregiver="cg1", client="cl1"),
            biweekly("b1", WED, "09:00", "11:00", caregiver="cg1", client="cl2", anchor="2024-01-07"),
            one_time("o1", "2024-01-12", "10:00", "12:00", caregiver="cg2", client="cl1"),
            weekly("paused", MON, "14:00", "18:00", caregiver="cg2", client="cl2", is_active=False),
        ]

    def test_on_week(self):
        ov = coverage_overview(
            self.records,
            d("2024-01-10"),
            caregiver_max_hours={"cg1": 40, "cg2": 20, "cg3": 10},
            client_authorized_units={"cl1": 32, "cl2": 4, "cl3": 0},
        )
        self.assertEqual((ov.week_start, ov.week_end), (d("2024-01-07"), d("2024-01-13")))
        loads = {c.caregiver_id: c for c in ov.caregivers}
        self.assertEqual(loads["cg1"].scheduled_hours, 6.0)
        self.assertEqual(loads["cg1"].utilization_percent, 15)
        self.assertEqual(loads["cg2"].remaining_hours, 18.0)
        self.assertEqual(loads["cg3"].scheduled_hours, 0.0)

        clients = {c.client_id: c for c in ov.clients}
        self.assertNotIn("cl3", clients)
        self.assertEqual(clients["cl1"].scheduled_units, 24)
        self.assertEqual(clients["cl1"].shortfall_units, 8)
        self.assertFalse(clients["cl2"].is_under_scheduled)

        self.assertEqual([c.client_id for c in ov.under_scheduled], ["cl1"])
        self.assertEqual(ov.total_scheduled_hours, 8.0)
        self.assertEqual(ov.total_available_hours, 70.0)
        self.assertEqual(ov.total_shortfall_units, 8)
        self.assertEqual(ov.total_shortfall_hours, 2.0)

    def test_off_week_biweekly_leaves_client_short(self):
        ov = coverage_overview(
            self.records,
            d("2024-01-17"),
            caregiver_max_hours={"cg1": 40},
            client_authorized_units={"cl2": 8},
        )
        self.assertEqual(ov.clients[0].scheduled_units, 0)
        self.assertEqual(ov.clients[0].coverage_percent, 0)
        self.assertEqual(ov.caregivers[0].scheduled_hours, 4.0)


if __name__ == "__main__":
    unittest.main()
