"""
Imports external calendar feed events as reservations, idempotently.
"""
import threading
from typing import Any, Dict, List, Optional, Tuple

from ..availability.conflicts import ConflictDetector
from ..availability.interval import DateInterval
from ..supabase_sync.supabase_client import RecordStore
from ..utils.errors import (
    ConfigurationError,
    EmptyFeedError,
    NotFoundError,
    UniquenessError,
    ValidationError,
)
from ..utils.logger import get_logger
from ..utils.models import (
    Asset,
    ExternalConflict,
    FeedEvent,
    Reservation,
    ReservationSource,
    ReservationStatus,
    SyncResult,
    utcnow,
)
from .feed_parser import parse_feed_report
from .fetcher import FeedFetcher
from config.settings import app_config, sync_config


class SyncReconciler:
    """Fetch, parse and persist one asset's external feed.

    Duplicate suppression is delegated to the store's uniqueness
    constraint on (asset_id, external_uid): rows are inserted one at a time
    and a rejected insert counts as "already imported". Syncs of the same
    asset are serialized inside this process; across processes the store
    constraint is the only guarantee. The per-asset locks are kept for the
    life of the process, one per asset that has been synced; unknown asset
    ids are rejected before a lock is created.
    """

    _locks: Dict[str, threading.Lock] = {}
    _locks_guard = threading.Lock()

    def __init__(
        self,
        store: RecordStore,
        fetcher: Optional[FeedFetcher] = None,
        detector: Optional[ConflictDetector] = None,
        skip_conflicting_events: Optional[bool] = None,
    ):
        self.store = store
        self.fetcher = fetcher or FeedFetcher()
        self.detector = detector
        self.skip_conflicting_events = (
            sync_config.skip_conflicting_events if skip_conflicting_events is None else skip_conflicting_events
        )
        self.assets_table = app_config.assets_collection
        self.reservations_table = app_config.reservations_collection
        self.logger = get_logger("sync_reconciler")

    @classmethod
    def _lock_for(cls, asset_id: str) -> threading.Lock:
        with cls._locks_guard:
            return cls._locks.setdefault(str(asset_id), threading.Lock())

    def _load_asset(self, asset_id: str) -> Asset:
        row = self.store.get(self.assets_table, asset_id)
        if not row:
            raise NotFoundError(f"Asset {asset_id} not found")
        return Asset.from_dict(row)

    @staticmethod
    def _event_window(event: FeedEvent) -> Optional[Tuple[str, str]]:
        """Validate the event's dates; None means they cannot be used."""
        try:
            DateInterval.from_values(event.start, event.end)
        except ValidationError:
            return None
        return event.start, event.end

    def _build_reservation(self, asset: Asset, event: FeedEvent, window: Tuple[str, str]) -> Reservation:
        start, end = window
        return Reservation(
            asset_id=asset.id,
            asset_type=asset.asset_type,
            start=start,
            end=end,
            status=ReservationStatus.CONFIRMED,
            source=ReservationSource.IMPORTED,
            external_uid=event.uid,
            notes=event.summary,
        )

    def _manual_conflicts(self, reservation: Reservation) -> List[Reservation]:
        if self.detector is None:
            return []
        result = self.detector.check_overlap(reservation.asset_id, reservation.start, reservation.end)
        return [r for r in result.conflicting if not r.is_imported]

    def _insert(self, reservation: Reservation) -> bool:
        """Insert one imported reservation; False when the store already has it."""
        try:
            self.store.insert(self.reservations_table, reservation.to_dict())
        except UniquenessError:
            self.logger.debug(
                "Feed event already imported",
                asset_id=reservation.asset_id,
                external_uid=reservation.external_uid,
            )
            return False
        return True

    def sync_asset(self, asset_id: str, timeout: Optional[float] = None) -> SyncResult:
        """Import the asset's feed and return what happened.

        Raises:
            NotFoundError: Unknown asset
            ConfigurationError: Asset has no feed URL
            FetchTimeoutError / HttpError: Feed could not be fetched
            EmptyFeedError: Feed parsed to zero events
        """
        asset_id = str(asset_id)
        asset = self._load_asset(asset_id)
        with self._lock_for(asset_id):
            return self._sync_locked(asset_id, asset, timeout)

    def _sync_locked(self, asset_id: str, asset: Asset, timeout: Optional[float]) -> SyncResult:
        if not asset.ical_url:
            raise ConfigurationError(f"Asset {asset_id} has no calendar feed URL configured")

        self.logger.info("Starting feed sync", asset_id=asset_id, url=asset.ical_url)
        raw = self.fetcher.fetch(asset.ical_url, timeout=timeout)

        report = parse_feed_report(raw, default_summary=sync_config.default_summary)
        if not report.events:
            self.logger.warning(
                "Feed has no usable events",
                asset_id=asset_id,
                total_blocks=report.total_blocks,
                skipped_blocks=report.skipped_blocks,
            )
            raise EmptyFeedError(f"Feed for asset {asset_id} contains no usable events")

        result = SyncResult(asset_id=asset_id, seen=len(report.events), skipped_blocks=report.skipped_blocks)

        for event in report.events:
            window = self._event_window(event)
            if window is None:
                result.discarded += 1
                self.logger.warning("Discarding feed event with unusable dates",
                                    asset_id=asset_id, uid=event.uid, start=event.start, end=event.end)
                continue

            reservation = self._build_reservation(asset, event, window)

            blocking = self._manual_conflicts(reservation)
            if blocking:
                conflict = ExternalConflict(
                    external_uid=event.uid,
                    start=event.start,
                    end=event.end,
                    summary=event.summary,
                    conflicting_ids=[r.id for r in blocking if r.id],
                )
                result.external_conflicts.append(conflict)
                self.logger.warning("Feed event overlaps manual reservations",
                                    asset_id=asset_id, uid=event.uid, conflicting_ids=conflict.conflicting_ids)
                if self.skip_conflicting_events:
                    continue

            inserted = self._insert(reservation)
            if blocking:
                conflict.inserted = inserted
            if inserted:
                result.imported += 1
            else:
                result.duplicates += 1

        result.synced_at = utcnow()
        self.store.update(self.assets_table, asset_id, {"last_synced_at": result.synced_at})

        self.logger.info(
            "Feed sync complete",
            asset_id=asset_id,
            seen=result.seen,
            imported=result.imported,
            duplicates=result.duplicates,
            discarded=result.discarded,
            external_conflicts=len(result.external_conflicts),
        )
        return result

    def preview_feed(self, url: str, limit: Optional[int] = None, timeout: Optional[float] = None) -> Dict[str, Any]:
        """Fetch and parse a feed without persisting anything ("test this URL")."""
        limit = sync_config.preview_limit if limit is None else limit
        raw = self.fetcher.fetch(url, timeout=timeout)
        report = parse_feed_report(raw, default_summary=sync_config.default_summary)
        self.logger.info("Feed previewed", url=url, total=len(report.events), skipped_blocks=report.skipped_blocks)
        return {
            "events": [event.to_dict() for event in report.events[:limit]],
            "total": len(report.events),
            "total_blocks": report.total_blocks,
            "skipped_blocks": report.skipped_blocks,
            "malformed_lines": report.malformed_lines,
        }
