"""
Shared fixtures: an in-memory record store and sample assets and feeds.
"""
import itertools
from collections import defaultdict
from datetime import date, datetime
from unittest.mock import Mock

import pytest

from rental_engine.supabase_sync.supabase_client import split_filter_key
from rental_engine.utils.errors import NotFoundError, UniquenessError
from config.settings import app_config

ASSETS = app_config.assets_collection
RESERVATIONS = app_config.reservations_collection
CUSTOMERS = app_config.customers_collection


def _plain(value):
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if hasattr(value, "value"):
        return value.value
    return value


class FakeStore:
    """Dict-backed record store with the same filter syntax as SupabaseClient.

    Imported reservations are unique on (asset_id, external_uid), like the
    production table's constraint.
    """

    UNIQUE = {RESERVATIONS: [("asset_id", "external_uid")]}

    def __init__(self):
        self.tables = defaultdict(dict)
        self._ids = itertools.count(1)
        self.insert_calls = 0

    def _violates_unique(self, table, row):
        for columns in self.UNIQUE.get(table, []):
            key = tuple(row.get(c) for c in columns)
            if any(v is None for v in key):
                continue
            for existing in self.tables[table].values():
                if tuple(existing.get(c) for c in columns) == key:
                    return True
        return False

    @staticmethod
    def _matches(row, filters):
        for key, expected in (filters or {}).items():
            column, op = split_filter_key(key)
            actual = row.get(column)
            if op == "eq":
                if isinstance(expected, (list, tuple, set)):
                    if actual not in [_plain(v) for v in expected]:
                        return False
                elif actual != _plain(expected):
                    return False
                continue
            expected = _plain(expected)
            if op == "neq":
                if actual == expected:
                    return False
                continue
            if actual is None:
                return False
            if op == "lt" and not actual < expected:
                return False
            if op == "lte" and not actual <= expected:
                return False
            if op == "gt" and not actual > expected:
                return False
            if op == "gte" and not actual >= expected:
                return False
        return True

    def insert(self, table, record):
        self.insert_calls += 1
        row = {k: _plain(v) for k, v in record.items()}
        if self._violates_unique(table, row):
            raise UniquenessError(f"duplicate key value violates unique constraint on {table}")
        row["id"] = str(row.get("id") or next(self._ids))
        self.tables[table][row["id"]] = row
        return dict(row)

    def query(self, table, filters=None):
        return [dict(row) for row in self.tables[table].values() if self._matches(row, filters)]

    def get(self, table, record_id):
        row = self.tables[table].get(str(record_id))
        return dict(row) if row else None

    def update(self, table, record_id, patch):
        row = self.tables[table].get(str(record_id))
        if row is None:
            raise NotFoundError(f"No {table} record with id {record_id}")
        row.update({k: _plain(v) for k, v in patch.items()})
        return dict(row)

    def delete(self, table, record_id):
        self.tables[table].pop(str(record_id), None)

    # Test helpers
    def rows(self, table):
        return list(self.tables[table].values())


FEED_URL = "https://www.airbnb.com/calendar/ical/12345.ics?s=abc"

SAMPLE_FEED = (
    "BEGIN:VCALENDAR\r\n"
    "VERSION:2.0\r\n"
    "PRODID:-//Airbnb Inc//Hosting Calendar 1.0//EN\r\n"
    "BEGIN:VEVENT\r\n"
    "DTSTART;VALUE=DATE:20251103\r\n"
    "DTEND;VALUE=DATE:20251107\r\n"
    "SUMMARY:Reserved\r\n"
    "UID:1418fb94e984-aaa@airbnb.com\r\n"
    "END:VEVENT\r\n"
    "BEGIN:VEVENT\r\n"
    "DTSTART;VALUE=DATE:20251120\r\n"
    "DTEND;VALUE=DATE:20251123\r\n"
    "SUMMARY:Airbnb (Not available)\r\n"
    "UID:1418fb94e984-bbb@airbnb.com\r\n"
    "END:VEVENT\r\n"
    "END:VCALENDAR\r\n"
)


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def vehicle(store):
    return store.insert(ASSETS, {
        "id": "car-1",
        "asset_type": "vehicle",
        "name": "Honda Click",
        "daily_rate": 300,
        "weekly_rate": 1800,
        "monthly_rate": 6000,
        "status": "available",
    })


@pytest.fixture
def condo(store):
    return store.insert(ASSETS, {
        "id": "condo-1",
        "asset_type": "condo",
        "name": "Sea View 2BR",
        "price": 2500,
        "price_mode": "night",
        "status": "available",
        "ical_url": FEED_URL,
    })


@pytest.fixture
def customer(store):
    return store.insert(CUSTOMERS, {"id": "cust-1", "full_name": "Alice", "email": "alice@example.com"})


@pytest.fixture
def add_reservation(store):
    """Insert a reservation row directly, bypassing the service."""

    def _add(asset_id, start, end, status="confirmed", source="manual", **extra):
        row = {
            "asset_id": asset_id,
            "start_date": start,
            "end_date": end,
            "status": status,
            "source": source,
        }
        row.update(extra)
        return store.insert(RESERVATIONS, row)

    return _add


@pytest.fixture
def sample_feed():
    return SAMPLE_FEED


@pytest.fixture
def fetcher():
    """Feed fetcher stand-in returning SAMPLE_FEED."""
    mock = Mock()
    mock.fetch.return_value = SAMPLE_FEED
    return mock


@pytest.fixture
def notifier():
    mock = Mock()
    mock.send.return_value = {"ok": True}
    return mock
