"""
Calendar-day intervals for reservations.

Both endpoints are inclusive calendar days: a reservation from the 1st to
the 1st is one day long, and two reservations that share any day overlap.
"""
import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Union

from ..utils.errors import ValidationError

DateLike = Union[date, datetime, str]

_COMPACT_DATE_RE = re.compile(r"^\d{8}$")
_COMPACT_DATETIME_RE = re.compile(r"^(\d{8})T\d{6}Z?$")


def to_date(value: DateLike) -> date:
    """Normalize a date, datetime or date string to a calendar date.

    Time of day is dropped as-is (no timezone shifting), so an imported
    ``2025-11-01T14:00:00Z`` lands on the 1st.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"Not a date: {value!r}")

    text = value.strip()
    if _COMPACT_DATE_RE.match(text):
        return _strptime_date(text, "%Y%m%d")
    compact = _COMPACT_DATETIME_RE.match(text)
    if compact:
        return _strptime_date(compact.group(1), "%Y%m%d")

    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        raise ValidationError(f"Not a date: {value!r}") from None


def _strptime_date(text: str, fmt: str) -> date:
    try:
        return datetime.strptime(text, fmt).date()
    except ValueError:
        raise ValidationError(f"Not a date: {text!r}") from None


def duration_inclusive_days(start: DateLike, end: DateLike) -> int:
    """Number of calendar days spanned, counting both endpoints."""
    return (to_date(end) - to_date(start)).days + 1


def overlaps(a: "DateInterval", b: "DateInterval") -> bool:
    """Closed-interval overlap: a.start <= b.end and b.start <= a.end."""
    return a.start <= b.end and b.start <= a.end


@dataclass(frozen=True)
class DateInterval:
    """An inclusive [start, end] span of calendar days.

    Construct through ``from_values`` to get ordering validation; the
    comparison helpers assume start <= end.
    """
    start: date
    end: date

    @classmethod
    def from_values(cls, start: DateLike, end: DateLike) -> "DateInterval":
        start_day = to_date(start)
        end_day = to_date(end)
        if end_day < start_day:
            raise ValidationError(
                f"End date {end_day.isoformat()} is before start date {start_day.isoformat()}"
            )
        return cls(start_day, end_day)

    @property
    def days(self) -> int:
        return duration_inclusive_days(self.start, self.end)

    def overlaps(self, other: "DateInterval") -> bool:
        return overlaps(self, other)

    def contains(self, day: DateLike) -> bool:
        day = to_date(day)
        return self.start <= day <= self.end

    def __str__(self) -> str:
        return f"{self.start.isoformat()}..{self.end.isoformat()}"
