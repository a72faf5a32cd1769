"""
Tests for loading per-line change datasets.
"""

from datetime import datetime, timedelta, timezone

import pytest

from commit_timeline.errors import DatasetLoadError, TimelineError
from commit_timeline.records import (
    LineRecord,
    load_records,
    parse_offset,
    parse_timestamp,
)
from conftest import CSV_HEADER, SAMPLE_ROWS, write_csv

PST = timezone(timedelta(hours=-8))


class TestParseOffset:
    def test_colon_offset(self):
        assert parse_offset("-08:00") == PST

    def test_compact_offset(self):
        assert parse_offset("+0530") == timezone(timedelta(hours=5, minutes=30))

    def test_zulu(self):
        assert parse_offset("Z") == timezone.utc

    def test_blank_is_none(self):
        assert parse_offset("") is None
        assert parse_offset("  ") is None

    def test_invalid_offset(self):
        with pytest.raises(ValueError):
            parse_offset("PST")


class TestParseTimestamp:
    def test_offset_is_kept(self):
        dt = parse_timestamp("2024-02-10T09:15:00-08:00")
        assert dt == datetime(2024, 2, 10, 9, 15, tzinfo=PST)
        assert dt.utcoffset() == timedelta(hours=-8)

    def test_zulu_suffix(self):
        dt = parse_timestamp("2024-02-10T17:15:00Z")
        assert dt == datetime(2024, 2, 10, 9, 15, tzinfo=PST)
        assert dt.utcoffset() == timedelta(0)

    def test_compact_offset_suffix(self):
        dt = parse_timestamp("2024-02-10T09:15:00+0100")
        assert dt.utcoffset() == timedelta(hours=1)

    def test_naive_uses_default_tz(self):
        dt = parse_timestamp("2024-02-10T09:15:00", default_tz=PST)
        assert dt.tzinfo == PST

    def test_naive_without_default_is_utc(self):
        dt = parse_timestamp("2024-02-10")
        assert dt == datetime(2024, 2, 10, tzinfo=timezone.utc)

    def test_garbage(self):
        with pytest.raises(ValueError):
            parse_timestamp("yesterday afternoon")

    def test_empty(self):
        with pytest.raises(ValueError):
            parse_timestamp("")


class TestLoadRecords:
    def test_loads_every_row_in_file_order(self, loc_csv):
        records = load_records(loc_csv)

        assert len(records) == len(SAMPLE_ROWS)
        assert all(isinstance(r, LineRecord) for r in records)
        assert [r.commit_id for r in records] == [row[3] for row in SAMPLE_ROWS]

    def test_field_types(self, loc_csv):
        first = load_records(str(loc_csv))[0]

        assert first.file == "index.html"
        assert first.type == "html"
        assert first.author == "Bob"
        assert first.line == 1
        assert first.depth == 2
        assert first.length == 40
        assert isinstance(first.depth, int)
        assert first.time == "14:30:00-08:00"
        assert first.timezone == "-08:00"

    def test_timestamps_are_aware(self, loc_csv):
        first = load_records(loc_csv)[0]

        assert first.datetime == datetime(2024, 2, 11, 14, 30, tzinfo=PST)
        assert first.date == datetime(2024, 2, 11, tzinfo=PST)
        assert first.datetime.utcoffset() == timedelta(hours=-8)

    def test_header_only_dataset_is_empty(self, tmp_path):
        path = write_csv(tmp_path / "loc.csv", [])
        assert load_records(path) == []

    def test_missing_file(self, tmp_path):
        with pytest.raises(DatasetLoadError, match="not found"):
            load_records(tmp_path / "missing.csv")

    def test_empty_file(self, tmp_path):
        path = tmp_path / "loc.csv"
        path.write_text("")
        with pytest.raises(DatasetLoadError, match="empty"):
            load_records(path)

    def test_missing_column(self, tmp_path):
        header = CSV_HEADER.replace(",depth", "")
        rows = [row[:9] + row[10:] for row in SAMPLE_ROWS]
        path = write_csv(tmp_path / "loc.csv", rows, header=header)

        with pytest.raises(DatasetLoadError, match="depth"):
            load_records(path)

    def test_non_numeric_value_fails_whole_load(self, tmp_path):
        rows = list(SAMPLE_ROWS)
        rows[1] = rows[1][:9] + ("deep",) + rows[1][10:]
        path = write_csv(tmp_path / "loc.csv", rows)

        with pytest.raises(DatasetLoadError) as exc_info:
            load_records(path)
        assert "Row 2" in str(exc_info.value)
        assert "depth" in str(exc_info.value)

    def test_negative_length_rejected(self, tmp_path):
        rows = list(SAMPLE_ROWS)
        rows[0] = rows[0][:10] + (-4,)
        path = write_csv(tmp_path / "loc.csv", rows)

        with pytest.raises(DatasetLoadError, match="length"):
            load_records(path)

    def test_zero_line_number_rejected(self, tmp_path):
        rows = list(SAMPLE_ROWS)
        rows[3] = rows[3][:1] + (0,) + rows[3][2:]
        path = write_csv(tmp_path / "loc.csv", rows)

        with pytest.raises(DatasetLoadError, match="Row 4"):
            load_records(path)

    def test_fractional_number_rejected(self, tmp_path):
        rows = list(SAMPLE_ROWS)
        rows[0] = rows[0][:1] + ("1.5",) + rows[0][2:]
        path = write_csv(tmp_path / "loc.csv", rows)

        with pytest.raises(DatasetLoadError):
            load_records(path)

    def test_bad_timestamp(self, tmp_path):
        rows = list(SAMPLE_ROWS)
        rows[0] = rows[0][:8] + ("not-a-date",) + rows[0][9:]
        path = write_csv(tmp_path / "loc.csv", rows)

        with pytest.raises(DatasetLoadError, match="Row 1"):
            load_records(path)

    def test_load_error_is_a_timeline_error(self, tmp_path):
        with pytest.raises(TimelineError):
            load_records(tmp_path / "missing.csv")
