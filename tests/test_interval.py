"""
Unit tests for calendar-day intervals.
"""
import pytest
from datetime import date, datetime

from rental_engine.availability.interval import (
    DateInterval, duration_inclusive_days, overlaps, to_date
)
from rental_engine.utils.errors import ValidationError

pytestmark = pytest.mark.unit


class TestToDate:
    """Test cases for date normalization."""

    @pytest.mark.parametrize("value", [
        date(2025, 11, 1),
        datetime(2025, 11, 1, 14, 30),
        "2025-11-01",
        "2025-11-01T14:00:00Z",
        "2025-11-01T14:00:00+07:00",
        "20251101",
        "20251101T140000Z",
        "20251101T140000",
    ])
    def test_accepted_forms(self, value):
        assert to_date(value) == date(2025, 11, 1)

    @pytest.mark.parametrize("value", ["", "   ", "tomorrow", "20251340", None, 42])
    def test_rejected_values(self, value):
        with pytest.raises(ValidationError):
            to_date(value)


class TestDuration:
    """Test cases for inclusive day counting."""

    def test_same_day_is_one_day(self):
        assert duration_inclusive_days("2025-11-01", "2025-11-01") == 1

    def test_counts_both_endpoints(self):
        assert duration_inclusive_days(date(2025, 11, 1), date(2025, 11, 10)) == 10

    def test_crosses_month_boundary(self):
        assert duration_inclusive_days("2025-01-30", "2025-02-02") == 4


class TestOverlap:
    """Test cases for the closed-interval overlap rule."""

    def _iv(self, start, end):
        return DateInterval.from_values(start, end)

    def test_shared_endpoint_overlaps(self):
        a = self._iv("2025-11-01", "2025-11-05")
        b = self._iv("2025-11-05", "2025-11-08")
        assert overlaps(a, b)

    def test_adjacent_days_do_not_overlap(self):
        a = self._iv("2025-11-01", "2025-11-05")
        b = self._iv("2025-11-06", "2025-11-08")
        assert not overlaps(a, b)

    def test_containment_overlaps(self):
        outer = self._iv("2025-11-01", "2025-11-30")
        inner = self._iv("2025-11-10", "2025-11-12")
        assert outer.overlaps(inner)

    @pytest.mark.parametrize("a,b", [
        (("2025-11-01", "2025-11-05"), ("2025-11-03", "2025-11-09")),
        (("2025-11-01", "2025-11-05"), ("2025-11-06", "2025-11-09")),
        (("2025-11-01", "2025-11-01"), ("2025-11-01", "2025-11-03")),
        (("2025-10-01", "2025-12-01"), ("2025-11-01", "2025-11-02")),
    ])
    def test_symmetry(self, a, b):
        first, second = self._iv(*a), self._iv(*b)
        assert overlaps(first, second) == overlaps(second, first)

    def test_interval_overlaps_itself(self):
        a = self._iv("2025-11-01", "2025-11-03")
        assert overlaps(a, a)

    def test_time_of_day_is_ignored(self):
        a = self._iv("2025-11-01T22:00:00Z", "2025-11-03T08:00:00Z")
        b = self._iv("2025-11-03", "2025-11-04")
        assert a.overlaps(b)


class TestDateInterval:
    """Test cases for DateInterval construction."""

    def test_inverted_interval_rejected(self):
        with pytest.raises(ValidationError):
            DateInterval.from_values("2025-11-05", "2025-11-01")

    def test_days_and_contains(self):
        interval = DateInterval.from_values("2025-11-01", "2025-11-07")
        assert interval.days == 7
        assert interval.contains("2025-11-07")
        assert not interval.contains("2025-11-08")
        assert str(interval) == "2025-11-01..2025-11-07"
