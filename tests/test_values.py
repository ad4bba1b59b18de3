"""
Tests for value classification and coercion helpers
"""
from datetime import datetime, timedelta

import pytest

from rule_validator.values import (
    ValueKind,
    get_size,
    kind_of,
    parse_timestamp,
    translate_date_format,
)


class TestKindOf:
    """Test value classification."""

    @pytest.mark.parametrize("value, kind", [
        (None, ValueKind.NULL),
        (True, ValueKind.BOOL),
        (3, ValueKind.INT),
        (3.5, ValueKind.FLOAT),
        ("x", ValueKind.STRING),
        ([1], ValueKind.SEQUENCE),
        ((1,), ValueKind.SEQUENCE),
        ({"a": 1}, ValueKind.MAPPING),
        ({1, 2}, ValueKind.OTHER),
    ])
    def test_kinds(self, value, kind):
        """Test each variant."""
        assert kind_of(value) is kind


class TestGetSize:
    """Test the size priority order."""

    @pytest.mark.parametrize("value, size", [
        ([1, 2, 3], 3),
        ({"a": 1, "b": 2}, 2),
        (["10", "20"], 2),
        ("42", 42),
        (" 7 ", 7),
        ("2.5", 2.5),
        ("1e2", 100.0),
        ("hello", 5),
        ("", 0),
        (12, 12),
        (1.5, 1.5),
        (None, 0),
        (True, 1),
        (False, 0),
    ])
    def test_sizes(self, value, size):
        """Test container, integer, float and length sizing."""
        assert get_size(value) == size

    def test_integer_size_is_int(self):
        """Test that integer strings produce int sizes."""
        assert isinstance(get_size("42"), int)


class TestParseTimestamp:
    """Test date string parsing."""

    def test_iso_date(self):
        """Test a plain ISO date."""
        assert parse_timestamp("2024-01-15") == datetime(2024, 1, 15)

    def test_iso_with_zulu(self):
        """Test a trailing Z."""
        parsed = parse_timestamp("2024-01-15T10:30:00Z")
        assert parsed.utcoffset() == timedelta(0)

    def test_keywords(self):
        """Test relative keywords."""
        today = parse_timestamp("today")
        assert parse_timestamp("tomorrow") - today == timedelta(days=1)
        assert today - parse_timestamp("yesterday") == timedelta(days=1)
        assert parse_timestamp("NOW") is not None

    def test_time_only_is_today(self):
        """Test that a bare time is read as today."""
        parsed = parse_timestamp("10:30")
        assert parsed.date() == datetime.now().date()
        assert (parsed.hour, parsed.minute) == (10, 30)

    @pytest.mark.parametrize("value", ["", "   ", "soon", None, 20240115, ["2024-01-15"]])
    def test_unparseable(self, value):
        """Test values that are not dates."""
        assert parse_timestamp(value) is None


class TestTranslateDateFormat:
    """Test PHP-style date format translation."""

    @pytest.mark.parametrize("pattern, expected", [
        ("Y-m-d", "%Y-%m-%d"),
        ("d/m/Y H:i:s", "%d/%m/%Y %H:%M:%S"),
        ("D, d M Y", "%a, %d %b %Y"),
        ("%Y-%m-%d", "%Y-%m-%d"),
        ("\\Y\\e\\a\\r Y", "Year %Y"),
    ])
    def test_translation(self, pattern, expected):
        """Test letters, literals and escapes."""
        assert translate_date_format(pattern) == expected
