"""Tests for shifts/resolver.py occurrence resolution."""

from __future__ import annotations

import datetime as _dt
import unittest

from shifts.errors import InvalidRange
from shifts.resolver import is_active_on, iter_dates, resolve_for_date, resolve_for_range
from tests.fixtures import MON, TUE, biweekly, d, one_time, weekly


class TestOneTime(unittest.TestCase):
    def test_included_only_on_its_date(self):
        r = one_time("o1", "2024-01-08")
        self.assertEqual(len(resolve_for_date([r], d("2024-01-08"))), 1)
        self.assertEqual(resolve_for_date([r], d("2024-01-09")), [])
        self.assertEqual(resolve_for_date([r], d("2024-01-15")), [])


class TestWeekly(unittest.TestCase):
    def test_respects_weekday(self):
        r = weekly("w1", MON, effective_from="2024-01-01")
        self.assertTrue(is_active_on(r, d("2024-01-08")))
        self.assertFalse(is_active_on(r, d("2024-01-09")))

    def test_effective_date_cutoff(self):
        r = weekly("w1", MON, effective_from="2024-01-10")
        self.assertFalse(is_active_on(r, d("2024-01-08")))
        self.assertTrue(is_active_on(r, d("2024-01-15")))

    def test_effective_date_itself_included(self):
        r = weekly("w1", MON, effective_from="2024-01-08")
        self.assertTrue(is_active_on(r, d("2024-01-08")))


class TestBiweekly(unittest.TestCase):
    def test_anchor_scenario(self):
        r = biweekly("b1", MON, anchor="2024-01-07")
        counts = [len(resolve_for_date([r], d(x))) for x in ("2024-01-08", "2024-01-15", "2024-01-22")]
        self.assertEqual(counts, [1, 0, 1])

    def test_alternates_over_four_weeks_starting_on(self):
        r = biweekly("b1", TUE, anchor="2024-01-07")
        first = d("2024-01-09")
        flags = [is_active_on(r, first + _dt.timedelta(weeks=i)) for i in range(4)]
        self.assertEqual(flags, [True, False, True, False])

    def test_parity_uses_week_start_not_date(self):
        # Saturday at the end of the anchor week is still week 0
        r = biweekly("b1", 6, anchor="2024-01-07")
        self.assertTrue(is_active_on(r, d("2024-01-13")))
        self.assertFalse(is_active_on(r, d("2024-01-20")))

    def test_weeks_before_anchor_use_floor_parity(self):
        # Effective date before the anchor exposes the negative side
        r = biweekly("b1", MON, anchor="2024-01-07", effective_from="2023-12-01")
        self.assertTrue(is_active_on(r, d("2023-12-25")))   # -2 weeks
        self.assertFalse(is_active_on(r, d("2024-01-01")))  # -1 week
        self.assertFalse(is_active_on(r, d("2023-12-18")))  # -3 weeks

    def test_effective_date_applies_before_parity(self):
        r = biweekly("b1", MON, anchor="2024-01-07", effective_from="2024-01-20")
        self.assertFalse(is_active_on(r, d("2024-01-08")))
        self.assertFalse(is_active_on(r, d("2024-01-15")))
        self.assertTrue(is_active_on(r, d("2024-01-22")))


class TestInactive(unittest.TestCase):
    def test_inactive_skipped_by_default(self):
        r = weekly("w1", MON, is_active=False)
        self.assertEqual(resolve_for_date([r], d("2024-01-08")), [])

    def test_inactive_included_on_request(self):
        r = weekly("w1", MON, is_active=False)
        occs = resolve_for_date([r], d("2024-01-08"), include_inactive=True)
        self.assertEqual([o.source_record_id for o in occs], ["w1"])

    def test_is_active_on_ignores_flag(self):
        self.assertTrue(is_active_on(weekly("w1", MON, is_active=False), d("2024-01-08")))


class TestOrderingAndPurity(unittest.TestCase):
    def test_output_follows_record_order(self):
        records = [
            weekly("late", MON, "14:00", "16:00"),
            one_time("early", "2024-01-08", "07:00", "08:00"),
            weekly("mid", MON, "10:00", "11:00"),
        ]
        occs = resolve_for_date(records, d("2024-01-08"))
        self.assertEqual([o.source_record_id for o in occs], ["late", "early", "mid"])

    def test_idempotent(self):
        records = [weekly("w1", MON), biweekly("b1", MON, "14:00", "15:00"), one_time("o1")]
        on = d("2024-01-08")
        self.assertEqual(resolve_for_date(records, on), resolve_for_date(records, on))

    def test_accepts_generator_input(self):
        occs = resolve_for_range((r for r in [weekly("w1", MON)]), d("2024-01-07"), d("2024-01-20"))
        self.assertEqual([o.date for o in occs], [d("2024-01-08"), d("2024-01-15")])


class TestRange(unittest.TestCase):
    def test_range_is_ordered_union(self):
        records = [weekly("w1", MON), one_time("o1", "2024-01-10")]
        occs = resolve_for_range(records, d("2024-01-07"), d("2024-01-16"))
        self.assertEqual(
            [(o.date, o.source_record_id) for o in occs],
            [(d("2024-01-08"), "w1"), (d("2024-01-10"), "o1"), (d("2024-01-15"), "w1")],
        )

    def test_single_day_range(self):
        occs = resolve_for_range([weekly("w1", MON)], d("2024-01-08"), d("2024-01-08"))
        self.assertEqual(len(occs), 1)

    def test_reversed_range_raises(self):
        with self.assertRaises(InvalidRange) as ctx:
            resolve_for_range([], d("2024-01-10"), d("2024-01-09"))
        self.assertEqual(ctx.exception.start_date, d("2024-01-10"))

    def test_iter_dates_inclusive(self):
        self.assertEqual(list(iter_dates(d("2024-01-30"), d("2024-02-01"))),
                         [d("2024-01-30"), d("2024-01-31"), d("2024-02-01")])


if __name__ == "__main__":
    unittest.main()
