"""
Tolerant parser for third-party iCalendar (ICS) reservation feeds.

Content lines are unfolded and split by the icalendar parser, but events are
collected line by line instead of through ``Calendar.from_ical`` so that one
broken line or block is skipped and counted rather than failing the feed.
The parser never raises; a document that cannot be read yields no events.
"""
import hashlib
import re
from datetime import date, datetime
from typing import Iterable, Iterator, List, Optional, Tuple, Union

from icalendar.parser import Contentline, Contentlines
from icalendar.prop import vDDDTypes

from ..utils.logger import get_logger
from ..utils.models import FeedEvent, FeedParseReport

DEFAULT_SUMMARY = "External reservation"
MAX_VALUE_LENGTH = 500
ISO_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

DATE_FIELDS = {"DTSTART", "DTEND"}
TEXT_FIELDS = {"SUMMARY", "UID"}

_FIELD_NAME_RE = re.compile(r"[;:]")
# Characters with meaning to HTML / string templating downstream
_UNSAFE_CHARS_RE = re.compile(r"[<>{}`$\\]")
_CONTROL_CHARS_RE = re.compile(r"[\x00-\x08\x0b-\x1f\x7f]")
_WHITESPACE_RE = re.compile(r"\s+")
_TEXT_ESCAPES = (("\\n", " "), ("\\N", " "), ("\\,", ","), ("\\;", ";"), ("\\\\", "\\"))


def unfold_lines(raw: str) -> List[Contentline]:
    """Split a document into unfolded, non-empty content lines."""
    raw = raw.replace("\r\n", "\n").replace("\r", "\n")
    return [line for line in Contentlines.from_ical(raw) if line.strip()]


def sanitize_value(value: str) -> str:
    """Unescape ICS text and drop characters that templating could interpret."""
    for escaped, plain in _TEXT_ESCAPES:
        value = value.replace(escaped, plain)
    value = _CONTROL_CHARS_RE.sub(" ", value)
    value = _UNSAFE_CHARS_RE.sub("", value)
    value = _WHITESPACE_RE.sub(" ", value).strip()
    return value[:MAX_VALUE_LENGTH]


def normalize_feed_date(value: str) -> Optional[str]:
    """Convert ``YYYYMMDD`` or ``YYYYMMDDTHHMMSS[Z]`` to ``YYYY-MM-DDTHH:MM:SSZ``.

    Floating and UTC times keep their wall-clock value. Returns None for
    anything else, including impossible dates, durations and periods.
    """
    try:
        parsed = vDDDTypes.from_ical(value.strip())
    except ValueError:
        return None
    if isinstance(parsed, datetime):
        return parsed.strftime(ISO_FORMAT)
    if isinstance(parsed, date):
        return datetime(parsed.year, parsed.month, parsed.day).strftime(ISO_FORMAT)
    return None


def field_name(line: str) -> str:
    return _FIELD_NAME_RE.split(line, 1)[0].strip().upper()


def last_colon_value(line: str) -> str:
    """Value after the *last* colon, for date lines whose parameters carry stray colons."""
    return line.rsplit(":", 1)[1]


def split_field(line: str) -> Tuple[str, str]:
    """Return (field name, value) for one content line.

    Quoted parameters such as ``TZID="GMT+07:00"`` are handled by the
    icalendar content-line parser. A date line it rejects (an unquoted colon
    in a parameter) falls back to the value after the last colon.
    """
    if ":" not in line:
        raise ValueError("no value delimiter")
    try:
        name, _params, value = Contentline(line).parts()
    except (TypeError, ValueError) as e:
        name = field_name(line)
        if name in DATE_FIELDS:
            return name, last_colon_value(line)
        raise ValueError(f"unreadable content line: {e}") from e
    return name.upper(), value


def component_marker(line: str) -> Optional[Tuple[str, str]]:
    """``("BEGIN" | "END", component)`` for a component delimiter line, else None."""
    try:
        name, _params, value = Contentline(line.strip()).parts()
    except (TypeError, ValueError):
        return None
    name = name.upper()
    if name in ("BEGIN", "END"):
        return name, value.strip().upper()
    return None


def placeholder_uid(summary: str, start: str, end: str) -> str:
    """Deterministic identifier for events without a UID so re-imports stay idempotent."""
    digest = hashlib.sha1(f"{summary}|{start}|{end}".encode("utf-8")).hexdigest()[:16]
    return f"generated-{digest}@feed"


class FeedParser:
    """Turns raw ICS text into ``FeedEvent`` records."""

    def __init__(self, default_summary: str = DEFAULT_SUMMARY):
        self.default_summary = default_summary
        self.logger = get_logger("feed_parser")

    def _blocks(self, lines: Iterable[str]) -> Iterator[List[str]]:
        """Yield the content lines of each VEVENT.

        A block also ends at the next ``BEGIN:VEVENT`` or end of input, so a
        truncated feed still yields its last event. Nested components
        (e.g. VALARM) are left out of the block.
        """
        block: Optional[List[str]] = None
        nested = 0
        for line in lines:
            marker = component_marker(line)
            if marker == ("BEGIN", "VEVENT"):
                if block is not None:
                    yield block
                block, nested = [], 0
            elif block is None:
                continue
            elif marker == ("END", "VEVENT"):
                yield block
                block = None
            elif marker and marker[0] == "BEGIN":
                nested += 1
            elif marker:
                if nested:
                    nested -= 1
                elif marker[1] == "VCALENDAR":
                    yield block
                    block = None
            elif not nested:
                block.append(line)
        if block is not None:
            yield block

    def _parse_block(self, block: List[str], report: FeedParseReport) -> Optional[FeedEvent]:
        fields = {}
        for line in block:
            line = line.strip()
            try:
                name, value = split_field(line)
            except Exception as e:
                report.malformed_lines += 1
                self.logger.debug("Skipping malformed feed line", line=line[:80], error=str(e))
                continue
            if name in DATE_FIELDS:
                fields[name] = (
                    normalize_feed_date(value)
                    or normalize_feed_date(last_colon_value(line))
                    or sanitize_value(value)
                )
            elif name in TEXT_FIELDS:
                fields[name] = sanitize_value(value)

        start, end = fields.get("DTSTART"), fields.get("DTEND")
        if not start or not end:
            return None

        summary = fields.get("SUMMARY") or self.default_summary
        uid = fields.get("UID") or placeholder_uid(summary, start, end)
        return FeedEvent(summary=summary, start=start, end=end, uid=uid)

    def parse(self, raw: Union[str, bytes, None]) -> FeedParseReport:
        """Parse a whole document into a report of events and skip counts."""
        report = FeedParseReport()
        try:
            if raw is None:
                return report
            if isinstance(raw, bytes):
                raw = raw.decode("utf-8", errors="replace")

            for block in self._blocks(unfold_lines(raw)):
                report.total_blocks += 1
                try:
                    event = self._parse_block(block, report)
                except Exception as e:
                    event = None
                    self.logger.warning("Feed block failed to parse", error=str(e))
                if event is None:
                    report.skipped_blocks += 1
                    continue
                report.events.append(event)
        except Exception as e:
            self.logger.error("Feed document could not be parsed", error=str(e))
            return FeedParseReport()

        self.logger.info(
            "Feed parsed",
            events=len(report.events),
            total_blocks=report.total_blocks,
            skipped_blocks=report.skipped_blocks,
            malformed_lines=report.malformed_lines,
        )
        return report


def parse_feed_report(raw: Union[str, bytes, None], default_summary: str = DEFAULT_SUMMARY) -> FeedParseReport:
    return FeedParser(default_summary).parse(raw)


def parse_feed(raw: Union[str, bytes, None]) -> List[FeedEvent]:
    """Parse ICS text into events; never raises, malformed input yields fewer events."""
    return parse_feed_report(raw).events
