"""Tests for secret_scanner.models — enums, timestamps and serialization."""

from datetime import datetime, timedelta, timezone

import pytest

from secret_scanner.models import (
    Finding,
    ScanMode,
    ScanReport,
    Severity,
    format_timestamp,
    parse_timestamp,
)


class TestScanModeParse:
    @pytest.mark.parametrize("text,expected", [
        ("running", ScanMode.RUNNING),
        ("RUNNING", ScanMode.RUNNING),
        (" Deep ", ScanMode.DEEP),
        ("quick", ScanMode.QUICK),
        ("full", ScanMode.QUICK),
        ("", ScanMode.QUICK),
        (None, ScanMode.QUICK),
    ])
    def test_parse(self, text, expected):
        assert ScanMode.parse(text) is expected


class TestTimestamps:
    def test_zulu_with_nanoseconds(self):
        parsed = parse_timestamp("2025-01-02T03:04:05.123456789Z")
        assert parsed == datetime(2025, 1, 2, 3, 4, 5, 123456, tzinfo=timezone.utc)

    def test_short_fraction_padded(self):
        parsed = parse_timestamp("2025-01-02T03:04:05.5Z")
        assert parsed.microsecond == 500000

    def test_offset_converted_to_utc(self):
        parsed = parse_timestamp("2025-01-02T05:04:05+02:00")
        assert parsed == datetime(2025, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
        assert parsed.utcoffset() == timedelta(0)

    def test_no_fraction(self):
        assert parse_timestamp("2025-01-02T03:04:05Z").second == 5

    def test_format_is_utc_with_z(self):
        value = datetime(2025, 1, 2, 5, 4, 5, 7, tzinfo=timezone(timedelta(hours=2)))
        assert format_timestamp(value) == "2025-01-02T03:04:05.000007Z"

    def test_formatted_value_parses_back(self):
        value = datetime(2025, 6, 30, 23, 59, 59, 999999, tzinfo=timezone.utc)
        assert parse_timestamp(format_timestamp(value)) == value


class TestScanReport:
    def test_severity_counts(self, sample_findings):
        report = ScanReport("u", "o", "r", ScanMode.QUICK, 1, sample_findings)
        counts = report.severity_counts()
        assert counts == {
            Severity.CRITICAL: 1,
            Severity.HIGH: 0,
            Severity.MEDIUM: 1,
            Severity.LOW: 0,
        }

    def test_to_dict(self, sample_findings):
        report = ScanReport("u", "o", "r", ScanMode.DEEP, 4, sample_findings[:1])
        data = report.to_dict()
        assert data["scan_mode"] == "Deep"
        assert data["commits_scanned"] == 4
        assert data["up_to_date"] is False
        assert data["findings"][0]["severity"] == "Critical"
        assert data["findings"][0]["commit_date"] == "2024-05-01T12:00:00.000000Z"


class TestFinding:
    def test_is_frozen(self, sample_findings):
        with pytest.raises(AttributeError):
            sample_findings[0].line_number = 1

    def test_equality_by_value(self, sample_findings):
        f = sample_findings[0]
        copy = Finding(**{k: getattr(f, k) for k in f.__dataclass_fields__})
        assert copy == f
