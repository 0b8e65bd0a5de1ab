"""
Integration tests for calendar feed reconciliation against the in-memory store.
"""
import threading

import pytest

from rental_engine.availability.conflicts import ConflictDetector
from rental_engine.calendar_sync.reconciler import SyncReconciler
from rental_engine.utils.errors import (
    ConfigurationError, EmptyFeedError, FetchTimeoutError, NotFoundError
)
from config.settings import app_config

pytestmark = pytest.mark.integration

RESERVATIONS = app_config.reservations_collection
ASSETS = app_config.assets_collection


@pytest.fixture
def reconciler(store, fetcher):
    return SyncReconciler(store, fetcher=fetcher, detector=ConflictDetector(store))


class TestSyncAsset:
    """Test cases for SyncReconciler.sync_asset."""

    def test_imports_every_event(self, reconciler, store, condo, fetcher):
        result = reconciler.sync_asset("condo-1")

        assert result.seen == 2
        assert result.imported == 2
        assert result.duplicates == 0
        fetcher.fetch.assert_called_once_with(condo["ical_url"], timeout=None)

        rows = store.rows(RESERVATIONS)
        assert {r["external_uid"] for r in rows} == {"1418fb94e984-aaa@airbnb.com", "1418fb94e984-bbb@airbnb.com"}
        assert all(r["source"] == "imported" and r["status"] == "confirmed" for r in rows)
        assert all(r["asset_id"] == "condo-1" and r["asset_type"] == "condo" for r in rows)

    def test_rerun_imports_nothing_new(self, reconciler, store, condo):
        reconciler.sync_asset("condo-1")
        second = reconciler.sync_asset("condo-1")

        assert second.imported == 0
        assert second.duplicates == 2
        assert second.external_conflicts == []
        assert len(store.rows(RESERVATIONS)) == 2

    def test_last_synced_marker_updated(self, reconciler, store, condo):
        result = reconciler.sync_asset("condo-1")
        assert store.get(ASSETS, "condo-1")["last_synced_at"] == result.synced_at.isoformat()

    def test_missing_feed_url(self, reconciler, vehicle):
        with pytest.raises(ConfigurationError):
            reconciler.sync_asset("car-1")

    def test_unknown_asset(self, reconciler):
        with pytest.raises(NotFoundError):
            reconciler.sync_asset("nope")

    def test_empty_feed(self, reconciler, store, condo, fetcher):
        fetcher.fetch.return_value = "BEGIN:VCALENDAR\nVERSION:2.0\nEND:VCALENDAR\n"
        with pytest.raises(EmptyFeedError):
            reconciler.sync_asset("condo-1")
        assert store.get(ASSETS, "condo-1").get("last_synced_at") is None

    def test_fetch_timeout_propagates(self, reconciler, store, condo, fetcher):
        fetcher.fetch.side_effect = FetchTimeoutError("timed out")
        with pytest.raises(FetchTimeoutError):
            reconciler.sync_asset("condo-1", timeout=0.1)
        assert store.rows(RESERVATIONS) == []

    def test_events_with_bad_dates_discarded(self, reconciler, store, condo, fetcher):
        fetcher.fetch.return_value = (
            "BEGIN:VCALENDAR\n"
            "BEGIN:VEVENT\nDTSTART:garbage\nDTEND:20251102\nUID:bad\nEND:VEVENT\n"
            "BEGIN:VEVENT\nDTSTART:20251110\nDTEND:20251105\nUID:inverted\nEND:VEVENT\n"
            "BEGIN:VEVENT\nDTSTART:20251201\nDTEND:20251203\nUID:good\nEND:VEVENT\n"
            "END:VCALENDAR\n"
        )
        result = reconciler.sync_asset("condo-1")
        assert result.seen == 3
        assert result.discarded == 2
        assert result.imported == 1
        assert [r["external_uid"] for r in store.rows(RESERVATIONS)] == ["good"]

    def test_skipped_blocks_reported(self, reconciler, condo, fetcher, sample_feed):
        fetcher.fetch.return_value = sample_feed.replace(
            "END:VCALENDAR", "BEGIN:VEVENT\r\nSUMMARY:no dates\r\nEND:VEVENT\r\nEND:VCALENDAR"
        )
        assert reconciler.sync_asset("condo-1").skipped_blocks == 1


class TestExternalConflicts:
    """Test cases for cross-checking imported events against manual reservations."""

    def test_conflicting_event_skipped_and_reported(self, reconciler, store, condo, add_reservation):
        manual = add_reservation("condo-1", "2025-11-05", "2025-11-06")

        result = reconciler.sync_asset("condo-1")

        assert result.imported == 1
        assert len(result.external_conflicts) == 1
        conflict = result.external_conflicts[0]
        assert conflict.external_uid == "1418fb94e984-aaa@airbnb.com"
        assert conflict.conflicting_ids == [manual["id"]]
        assert conflict.inserted is False

    def test_conflicting_event_imported_when_not_skipping(self, store, fetcher, condo, add_reservation):
        add_reservation("condo-1", "2025-11-05", "2025-11-06")
        reconciler = SyncReconciler(store, fetcher=fetcher, detector=ConflictDetector(store),
                                    skip_conflicting_events=False)

        result = reconciler.sync_asset("condo-1")

        assert result.imported == 2
        assert result.external_conflicts[0].inserted is True

    def test_cancelled_manual_reservation_not_a_conflict(self, reconciler, condo, add_reservation):
        add_reservation("condo-1", "2025-11-05", "2025-11-06", status="cancelled")
        result = reconciler.sync_asset("condo-1")
        assert result.external_conflicts == []
        assert result.imported == 2

    def test_without_detector_no_cross_check(self, store, fetcher, condo, add_reservation):
        add_reservation("condo-1", "2025-11-05", "2025-11-06")
        result = SyncReconciler(store, fetcher=fetcher).sync_asset("condo-1")
        assert result.imported == 2
        assert result.external_conflicts == []


class TestPreviewAndLocking:
    """Test cases for feed previews and per-asset locks."""

    def test_preview_does_not_persist(self, reconciler, store, fetcher):
        preview = reconciler.preview_feed("https://www.airbnb.com/calendar/ical/9.ics", limit=1)

        assert preview["total"] == 2
        assert len(preview["events"]) == 1
        assert preview["events"][0]["start"] == "2025-11-03T00:00:00Z"
        assert preview["skipped_blocks"] == 0
        assert store.rows(RESERVATIONS) == []

    def test_same_asset_shares_a_lock(self):
        assert SyncReconciler._lock_for("a1") is SyncReconciler._lock_for("a1")
        assert SyncReconciler._lock_for("a1") is not SyncReconciler._lock_for("a2")

    def test_unknown_asset_gets_no_lock(self, reconciler):
        with pytest.raises(NotFoundError):
            reconciler.sync_asset("never-registered")
        assert "never-registered" not in SyncReconciler._locks

    def test_concurrent_syncs_of_one_asset_do_not_duplicate(self, reconciler, store, condo):
        results = []
        threads = [threading.Thread(target=lambda: results.append(reconciler.sync_asset("condo-1")))
                   for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert sum(r.imported for r in results) == 2
        assert len(store.rows(RESERVATIONS)) == 2
