"""
Data models for the rental availability engine.
"""
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Optional, Dict, Any, List, Union
from enum import Enum

from .errors import InvalidTransitionError

DateLike = Union[date, datetime, str]


class AssetType(Enum):
    """Rentable asset classes."""
    VEHICLE = "vehicle"
    CONDO = "condo"


class AssetStatus(Enum):
    """Asset lifecycle status (owned by the surrounding application)."""
    AVAILABLE = "available"
    RENTED = "rented"
    MAINTENANCE = "maintenance"


class PriceMode(Enum):
    """How a furnished unit is priced."""
    NIGHT = "night"
    MONTH = "month"


class ReservationSource(Enum):
    """Where a reservation came from."""
    MANUAL = "manual"
    IMPORTED = "imported"

    @classmethod
    def _missing_(cls, value):
        # Legacy rows tag feed imports with the channel name
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered in {"airbnb", "ical", "imported"}:
                return cls.IMPORTED
            if lowered in {"manual", "web", ""}:
                return cls.MANUAL
        return None


class ReservationStatus(Enum):
    """Reservation lifecycle. Only CANCELLED frees the asset."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CHECKED_OUT = "checked_out"
    RETURNED = "returned"
    CANCELLED = "cancelled"

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            lowered = value.strip().lower().replace("-", "_").replace(" ", "_")
            if lowered == "delivered":
                return cls.RETURNED
            for member in cls:
                if member.value == lowered:
                    return member
        return None

    @property
    def occupies_asset(self) -> bool:
        return self is not ReservationStatus.CANCELLED

    def can_transition_to(self, target: "ReservationStatus") -> bool:
        return target in ALLOWED_TRANSITIONS[self]

    @classmethod
    def occupying(cls) -> List["ReservationStatus"]:
        return [status for status in cls if status.occupies_asset]


ALLOWED_TRANSITIONS: Dict[ReservationStatus, frozenset] = {
    ReservationStatus.PENDING: frozenset({ReservationStatus.CONFIRMED, ReservationStatus.CANCELLED}),
    ReservationStatus.CONFIRMED: frozenset({ReservationStatus.CHECKED_OUT, ReservationStatus.CANCELLED}),
    ReservationStatus.CHECKED_OUT: frozenset({ReservationStatus.RETURNED, ReservationStatus.CANCELLED}),
    ReservationStatus.RETURNED: frozenset(),
    ReservationStatus.CANCELLED: frozenset(),
}


def transition(current: ReservationStatus, target: ReservationStatus) -> ReservationStatus:
    """Return ``target`` if the move is allowed, else raise ``InvalidTransitionError``."""
    current, target = ReservationStatus(current), ReservationStatus(target)
    if not current.can_transition_to(target):
        raise InvalidTransitionError(current.value, target.value)
    return target


def _optional_rate(value: Any) -> Optional[float]:
    if value in (None, "", 0):
        return None
    return value


def _serialize_date(value: Optional[DateLike]) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)


@dataclass
class Asset:
    """A vehicle or furnished unit with its rate schedule."""
    id: str
    asset_type: AssetType
    name: str = ""
    daily_rate: float = 0
    weekly_rate: Optional[float] = None
    monthly_rate: Optional[float] = None
    price_mode: Optional[PriceMode] = None
    status: AssetStatus = AssetStatus.AVAILABLE
    ical_url: Optional[str] = None
    last_synced_at: Optional[str] = None

    def __post_init__(self):
        if isinstance(self.asset_type, str):
            self.asset_type = AssetType(self.asset_type.lower())
        if isinstance(self.status, str):
            self.status = AssetStatus(self.status.lower())
        if isinstance(self.price_mode, str):
            self.price_mode = PriceMode(self.price_mode.lower())

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Asset':
        """Create an Asset from a store row."""
        asset_type = AssetType(str(data.get("asset_type") or "vehicle").lower())
        daily = data.get("daily_rate") or 0
        weekly = _optional_rate(data.get("weekly_rate"))
        monthly = _optional_rate(data.get("monthly_rate"))
        price_mode = data.get("price_mode")

        # Units keep a single price whose meaning depends on price_mode
        if asset_type is AssetType.CONDO and data.get("price") is not None:
            mode = PriceMode(str(price_mode or "night").lower())
            price_mode = mode
            if mode is PriceMode.MONTH:
                monthly = data["price"]
            else:
                daily = data["price"]

        return cls(
            id=str(data["id"]),
            asset_type=asset_type,
            name=data.get("name") or "",
            daily_rate=daily,
            weekly_rate=weekly,
            monthly_rate=monthly,
            price_mode=price_mode,
            status=data.get("status") or AssetStatus.AVAILABLE,
            ical_url=data.get("ical_url") or data.get("airbnb_ical_url"),
            last_synced_at=data.get("last_synced_at"),
        )


@dataclass
class Reservation:
    """A reservation of one asset by one customer.

    ``start`` and ``end`` keep whatever precision they were stored with so
    delivery/pickup times survive; ``interval`` drops the time of day.
    """
    asset_id: str
    start: DateLike
    end: DateLike
    status: ReservationStatus = ReservationStatus.PENDING
    id: Optional[str] = None
    customer_id: Optional[str] = None
    asset_type: Optional[AssetType] = None
    total_price: Optional[float] = None
    computed_price: Optional[float] = None
    price_breakdown: Optional[str] = None
    source: ReservationSource = ReservationSource.MANUAL
    external_uid: Optional[str] = None
    notes: Optional[str] = None
    delivery_eta: Optional[str] = None

    def __post_init__(self):
        if isinstance(self.status, str):
            self.status = ReservationStatus(self.status)
        if isinstance(self.source, str):
            self.source = ReservationSource(self.source)
        if isinstance(self.asset_type, str):
            self.asset_type = AssetType(self.asset_type.lower())

    @property
    def interval(self):
        from ..availability.interval import DateInterval
        return DateInterval.from_values(self.start, self.end)

    @property
    def occupies_asset(self) -> bool:
        return self.status.occupies_asset

    @property
    def is_imported(self) -> bool:
        return self.source is ReservationSource.IMPORTED

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a store row. ``id`` is omitted until the store assigns one."""
        payload = {
            'asset_id': self.asset_id,
            'asset_type': self.asset_type.value if self.asset_type else None,
            'customer_id': self.customer_id,
            'start_date': _serialize_date(self.start),
            'end_date': _serialize_date(self.end),
            'status': self.status.value,
            'total_amount': self.total_price,
            'computed_amount': self.computed_price,
            'price_breakdown': self.price_breakdown,
            'source': self.source.value,
            'external_uid': self.external_uid,
            'notes': self.notes,
            'delivery_eta': self.delivery_eta,
        }
        if self.id is not None:
            payload['id'] = self.id
        return payload

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Reservation':
        """Create a Reservation from a store row."""
        asset_id = data.get("asset_id") or data.get("vehicle_id") or data.get("condo_id")
        return cls(
            id=str(data["id"]) if data.get("id") is not None else None,
            asset_id=str(asset_id),
            customer_id=data.get("customer_id"),
            asset_type=data.get("asset_type"),
            start=data["start_date"],
            end=data["end_date"],
            status=data.get("status") or ReservationStatus.PENDING,
            total_price=data.get("total_amount"),
            computed_price=data.get("computed_amount"),
            price_breakdown=data.get("price_breakdown"),
            source=data.get("source") or ReservationSource.MANUAL,
            external_uid=data.get("external_uid"),
            notes=data.get("notes"),
            delivery_eta=data.get("delivery_eta"),
        )

    def __str__(self) -> str:
        return (f"Reservation(id='{self.id}', asset='{self.asset_id}', "
                f"start='{self.start}', end='{self.end}', status='{self.status.value}')")


@dataclass(frozen=True)
class FeedEvent:
    """One event block from an external calendar feed.

    ``start`` and ``end`` are normalized ISO-like strings
    (``YYYY-MM-DDTHH:MM:SSZ``) when the feed used a recognized encoding.
    """
    summary: str
    start: str
    end: str
    uid: str

    def to_dict(self) -> Dict[str, str]:
        return {'summary': self.summary, 'start': self.start, 'end': self.end, 'uid': self.uid}


@dataclass
class FeedParseReport:
    """Parsed events plus counts of what was dropped along the way."""
    events: List[FeedEvent] = field(default_factory=list)
    total_blocks: int = 0
    skipped_blocks: int = 0
    malformed_lines: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'events': [event.to_dict() for event in self.events],
            'total_blocks': self.total_blocks,
            'skipped_blocks': self.skipped_blocks,
            'malformed_lines': self.malformed_lines,
        }


@dataclass(frozen=True)
class PriceLine:
    """One tier of a price breakdown, e.g. 2 weeks at the weekly rate."""
    unit: str
    count: int
    rate: float
    subtotal: float

    @property
    def label(self) -> str:
        return f"{self.count} {self.unit}{'' if self.count == 1 else 's'}"


@dataclass(frozen=True)
class PriceQuote:
    """Computed price for a number of rental days."""
    total: float
    breakdown: str
    days: int
    lines: tuple = ()
    override: Optional[float] = None

    @property
    def final_total(self) -> float:
        """An operator's manual override always wins over the computed total."""
        return self.override if self.override is not None else self.total

    @property
    def is_overridden(self) -> bool:
        return self.override is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'total': self.total,
            'breakdown': self.breakdown,
            'days': self.days,
            'lines': [
                {'unit': line.unit, 'count': line.count, 'rate': line.rate, 'subtotal': line.subtotal}
                for line in self.lines
            ],
            'override': self.override,
            'final_total': self.final_total,
        }


@dataclass
class OverlapResult:
    """Outcome of an availability check."""
    conflict: bool
    conflicting: List[Reservation] = field(default_factory=list)

    def describe(self) -> List[str]:
        """Human-readable date ranges of the blocking reservations."""
        return [
            f"{r.interval.start.isoformat()} to {r.interval.end.isoformat()} ({r.status.value})"
            for r in self.conflicting
        ]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'conflict': self.conflict,
            'conflicting': [r.to_dict() for r in self.conflicting],
            'details': self.describe(),
        }


@dataclass
class ExternalConflict:
    """An imported event that overlaps manually-entered reservations."""
    external_uid: str
    start: str
    end: str
    summary: str
    conflicting_ids: List[str] = field(default_factory=list)
    inserted: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            'external_uid': self.external_uid,
            'start': self.start,
            'end': self.end,
            'summary': self.summary,
            'conflicting_ids': self.conflicting_ids,
            'inserted': self.inserted,
        }


@dataclass
class SyncResult:
    """Result of reconciling one asset's external feed."""
    asset_id: str
    imported: int = 0
    seen: int = 0
    duplicates: int = 0
    discarded: int = 0
    skipped_blocks: int = 0
    external_conflicts: List[ExternalConflict] = field(default_factory=list)
    synced_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'asset_id': self.asset_id,
            'imported': self.imported,
            'seen': self.seen,
            'duplicates': self.duplicates,
            'discarded': self.discarded,
            'skipped_blocks': self.skipped_blocks,
            'external_conflicts': [c.to_dict() for c in self.external_conflicts],
            'synced_at': self.synced_at.isoformat() if self.synced_at else None,
        }


def utcnow() -> datetime:
    return datetime.now(timezone.utc)
