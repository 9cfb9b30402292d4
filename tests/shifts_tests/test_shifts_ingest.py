"""Tests for shifts/ingest.py row parsing and snapshot loading."""

from __future__ import annotations

import datetime as _dt
import os
import unittest

from shifts.errors import InvalidRecord
from shifts.ingest import load_records, load_roster, load_snapshot, parse_record, record_to_row
from shifts.model import Frequency, RecordKind
from tests.fixtures import MON, SAMPLE_ROWS, TempDirMixin, biweekly, d, one_time, t, weekly, write_yaml


class TestParseRecord(unittest.TestCase):
    def test_snake_case_rows(self):
        records = [parse_record(row) for row in SAMPLE_ROWS]
        w, b, o = records
        self.assertIs(w.frequency, Frequency.WEEKLY)
        self.assertEqual(w.effective_from, d("2024-02-01"))
        self.assertIs(b.frequency, Frequency.BIWEEKLY)
        self.assertEqual(b.anchor_week_start, d("2024-02-04"))
        self.assertEqual(b.effective_from, d("2024-02-04"))
        self.assertIs(o.kind, RecordKind.ONE_TIME)
        self.assertEqual(o.date, d("2024-02-07"))

    def test_camel_case_payload(self):
        r = parse_record({
            "id": 12,
            "caregiverId": 3,
            "clientId": 9,
            "dayOfWeek": 1,
            "frequency": "bi-weekly",
            "anchorWeekStart": "2024-01-07T00:00:00.000Z",
            "effectiveFrom": "2024-01-07",
            "startTime": "09:00:00",
            "endTime": "13:00:00",
            "isActive": False,
        })
        self.assertEqual((r.id, r.caregiver_id, r.client_id), (12, 3, 9))
        self.assertIs(r.kind, RecordKind.RECURRING)
        self.assertIs(r.frequency, Frequency.BIWEEKLY)
        self.assertEqual(r.anchor_week_start, d("2024-01-07"))
        self.assertFalse(r.is_active)

    def test_native_values(self):
        r = parse_record({
            "id": "o",
            "caregiver_id": "cg",
            "client_id": "cl",
            "date": _dt.datetime(2024, 1, 8, 15, 0),
            "start_time": _dt.time(9, 0),
            "end_time": _dt.time(10, 0),
        })
        self.assertEqual(r.date, d("2024-01-08"))

    def test_day_names_accepted(self):
        r = parse_record({"id": "w", "day_of_week": "Monday", "frequency": "weekly",
                          "effective_date": "2024-01-01", "start_time": "09:00", "end_time": "10:00"})
        self.assertEqual(r.day_of_week, MON)

    def test_missing_frequency_rejected(self):
        with self.assertRaises(InvalidRecord) as ctx:
            parse_record({"id": "w", "day_of_week": 1, "effective_date": "2024-01-01",
                          "start_time": "09:00", "end_time": "10:00"})
        self.assertEqual(ctx.exception.record_id, "w")

    def test_unknown_frequency_rejected(self):
        with self.assertRaises(InvalidRecord):
            parse_record({"id": "w", "day_of_week": 1, "frequency": "monthly",
                          "effective_date": "2024-01-01", "start_time": "09:00", "end_time": "10:00"})

    def test_schedule_type_must_agree_with_fields(self):
        with self.assertRaises(InvalidRecord):
            parse_record({"id": "x", "schedule_type": "one-time", "day_of_week": 1, "frequency": "weekly",
                          "effective_date": "2024-01-01", "start_time": "09:00", "end_time": "10:00"})

    def test_ambiguous_kind_rejected(self):
        with self.assertRaises(InvalidRecord):
            parse_record({"id": "x", "start_time": "09:00", "end_time": "10:00"})

    def test_non_sunday_anchor_rejected(self):
        with self.assertRaises(InvalidRecord) as ctx:
            parse_record({"id": "b", "day_of_week": 1, "frequency": "biweekly", "anchor_date": "2024-01-08",
                          "effective_date": "2024-01-07", "start_time": "09:00", "end_time": "10:00"})
        self.assertIn("not a Sunday", ctx.exception.reason)

    def test_missing_effective_date_rejected_for_every_frequency(self):
        for frequency in ("weekly", "biweekly"):
            row = {"id": "b", "day_of_week": 1, "frequency": frequency,
                   "start_time": "09:00", "end_time": "10:00"}
            if frequency == "biweekly":
                row["anchor_date"] = "2024-01-07"
            with self.subTest(frequency=frequency), self.assertRaises(InvalidRecord) as ctx:
                parse_record(row)
            self.assertIn("requires effective_from", ctx.exception.reason)

    def test_biweekly_without_effective_date_skipped_in_batch(self):
        row = {"id": "b", "day_of_week": 1, "frequency": "biweekly", "anchor_date": "2024-01-07",
               "start_time": "09:00", "end_time": "10:00"}
        with self.assertLogs("shifts.ingest", level="WARNING"):
            report = load_records([row])
        self.assertEqual(report.records, [])
        self.assertEqual(report.rejected[0].record_id, "b")

    def test_bad_is_active_rejected(self):
        with self.assertRaises(InvalidRecord):
            parse_record({"id": "o", "date": "2024-01-08", "start_time": "09:00", "end_time": "10:00",
                          "is_active": "sometimes"})

    def test_not_a_mapping(self):
        with self.assertRaises(InvalidRecord):
            parse_record(["not", "a", "row"])  # type: ignore[arg-type]


class TestRecordToRow(unittest.TestCase):
    def test_rows_parse_back_to_equal_records(self):
        for record in (one_time("o"), weekly("w"), biweekly("b")):
            with self.subTest(record=record.id):
                self.assertEqual(parse_record(record_to_row(record)), record)

    def test_times_are_hh_mm_strings(self):
        row = record_to_row(one_time("o", start="09:30", end="10:00"))
        self.assertEqual((row["start_time"], row["end_time"]), ("09:30", "10:00"))
        self.assertEqual(row["date"], "2024-01-08")


class TestLoadRecords(unittest.TestCase):
    BAD = {"id": "bad", "date": "2024-01-08", "start_time": "10:00", "end_time": "09:00"}

    def test_isolates_failures(self):
        with self.assertLogs("shifts.ingest", level="WARNING") as logs:
            report = load_records([SAMPLE_ROWS[0], self.BAD, SAMPLE_ROWS[2]])
        self.assertEqual([r.id for r in report.records], ["w-mon", "o-wed"])
        self.assertEqual(len(report.rejected), 1)
        self.assertEqual((report.rejected[0].index, report.rejected[0].record_id), (1, "bad"))
        self.assertIn("start_time", report.rejected[0].reason)
        self.assertFalse(report.ok)
        self.assertIn("bad", logs.output[0])

    def test_strict_raises_first_failure(self):
        with self.assertRaises(InvalidRecord):
            load_records([SAMPLE_ROWS[0], self.BAD], strict=True)

    def test_clean_batch(self):
        report = load_records(SAMPLE_ROWS)
        self.assertTrue(report.ok)
        self.assertEqual(len(report.records), 3)


class TestLoadSnapshot(TempDirMixin, unittest.TestCase):
    def test_reads_records_key(self):
        path = write_yaml({"records": SAMPLE_ROWS}, dir=self.tmpdir, filename="records.yaml")
        report = load_snapshot(path)
        self.assertEqual(len(report.records), 3)
        self.assertEqual(report.records[1].start_time, t("11:00"))

    def test_missing_file(self):
        with self.assertRaises(FileNotFoundError):
            load_snapshot(os.path.join(self.tmpdir, "nope.yaml"))

    def test_unquoted_times_rejected_with_hint(self):
        path = os.path.join(self.tmpdir, "records.yaml")
        with open(path, "w", encoding="utf-8") as fh:
            fh.write("records:\n  - id: o1\n    date: '2024-01-08'\n    start_time: 13:00\n    end_time: '14:00'\n")
        with self.assertLogs("shifts.ingest", level="WARNING"):
            report = load_snapshot(path)
        self.assertEqual(report.records, [])
        self.assertIn("start_time", report.rejected[0].reason)
        self.assertIn("quote clock times", report.rejected[0].reason)

    def test_records_must_be_list(self):
        path = write_yaml({"records": {"id": 1}}, dir=self.tmpdir)
        with self.assertRaises(ValueError):
            load_snapshot(path)

    def test_empty_document(self):
        path = write_yaml({}, dir=self.tmpdir)
        self.assertEqual(load_snapshot(path).records, [])


class TestLoadRoster(TempDirMixin, unittest.TestCase):
    def test_defaults_and_aliases(self):
        path = write_yaml({
            "caregivers": [{"id": "cg1", "max_hours": 30}, {"id": "cg2"}, {"id": "cg3", "maxHoursPerWeek": 20}],
            "clients": [{"id": "cl1", "authorized_units": 40}, {"id": "cl2"}],
        }, dir=self.tmpdir)
        roster = load_roster(path, default_max_hours=40.0)
        self.assertEqual(roster.caregiver_max_hours, {"cg1": 30.0, "cg2": 40.0, "cg3": 20.0})
        self.assertEqual(roster.client_authorized_units, {"cl1": 40, "cl2": 0})

    def test_entry_without_id_rejected(self):
        path = write_yaml({"caregivers": [{"max_hours": 30}]}, dir=self.tmpdir)
        with self.assertRaises(ValueError):
            load_roster(path, default_max_hours=40.0)


if __name__ == "__main__":
    unittest.main()
