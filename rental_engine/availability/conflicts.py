"""
Overlap detection between a candidate interval and an asset's reservations.
"""
from datetime import timedelta
from typing import List, Optional

from ..supabase_sync.supabase_client import RecordStore
from ..utils.errors import ValidationError
from ..utils.logger import get_logger
from ..utils.models import OverlapResult, Reservation, ReservationStatus
from .interval import DateInterval, DateLike, to_date
from config.settings import app_config

# Legacy rows may spell the returned state "delivered"
_STATUS_ALIASES = ("delivered",)


class ConflictDetector:
    """Answers "is this asset free for these days?" against the record store.

    The check is informational, not a lock: between ``check_overlap`` and
    the insert that follows it another caller can book the same days. The
    store's exclusion constraint on the reservations table is what makes
    the final insert authoritative.
    """

    def __init__(self, store: RecordStore, table: Optional[str] = None):
        self.store = store
        self.table = table or app_config.reservations_collection
        self.logger = get_logger("conflict_detector")

    def _occupying_status_values(self) -> List[str]:
        values = [status.value for status in ReservationStatus.occupying()]
        return values + [alias for alias in _STATUS_ALIASES if alias not in values]

    def _candidate_rows(self, asset_id: str, interval: DateInterval, exclude_reservation_id: Optional[str]):
        # Widen the day bounds so timestamp columns still match same-day rows;
        # the interval comparison below is the authoritative filter.
        filters = {
            "asset_id": asset_id,
            "status": self._occupying_status_values(),
            "start_date__lt": (interval.end + timedelta(days=1)).isoformat(),
            "end_date__gte": interval.start.isoformat(),
        }
        if exclude_reservation_id:
            filters["id__neq"] = exclude_reservation_id
        return self.store.query(self.table, filters)

    def check_overlap(
        self,
        asset_id: str,
        start: DateLike,
        end: DateLike,
        exclude_reservation_id: Optional[str] = None,
    ) -> OverlapResult:
        """Return every occupying reservation of ``asset_id`` that shares a day with [start, end].

        Args:
            asset_id: Asset to check
            start: First day of the candidate window
            end: Last day of the candidate window (inclusive)
            exclude_reservation_id: Reservation being edited, ignored so it cannot conflict with itself

        Raises:
            ValidationError: If the window is inverted or not a date
        """
        if not asset_id:
            raise ValidationError("asset_id is required")
        candidate = DateInterval.from_values(start, end)

        conflicting: List[Reservation] = []
        for row in self._candidate_rows(asset_id, candidate, exclude_reservation_id):
            try:
                reservation = Reservation.from_dict(row)
                existing = reservation.interval
            except (ValidationError, ValueError, KeyError) as e:
                self.logger.warning("Skipping unreadable reservation row", row_id=row.get("id"), error=str(e))
                continue

            if exclude_reservation_id and reservation.id == str(exclude_reservation_id):
                continue
            if reservation.asset_id != str(asset_id) or not reservation.occupies_asset:
                continue
            if candidate.overlaps(existing):
                conflicting.append(reservation)

        conflicting.sort(key=lambda r: (r.interval.start, r.interval.end))
        self.logger.info(
            "Overlap check complete",
            asset_id=asset_id,
            start=candidate.start.isoformat(),
            end=candidate.end.isoformat(),
            exclude_reservation_id=exclude_reservation_id,
            conflicts=len(conflicting),
        )
        return OverlapResult(conflict=bool(conflicting), conflicting=conflicting)

    def is_asset_booked_on(self, asset_id: str, day: DateLike) -> bool:
        """True when an occupying reservation covers ``day``."""
        day = to_date(day)
        return self.check_overlap(asset_id, day, day).conflict
