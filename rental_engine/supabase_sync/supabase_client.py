"""
Supabase-backed record store for assets, customers and reservations.
"""
from datetime import datetime, date
from typing import Optional, Dict, Any, List, Protocol

from supabase import create_client
from postgrest.exceptions import APIError

from ..utils.errors import StoreError, UniquenessError, NotFoundError
from ..utils.logger import get_logger
from config.settings import supabase_config

# Postgres error codes surfaced through PostgREST
UNIQUE_VIOLATION = "23505"
EXCLUSION_VIOLATION = "23P01"

# Filter key suffix -> PostgREST builder method
_OPERATORS = {
    "lt": "lt",
    "lte": "lte",
    "gt": "gt",
    "gte": "gte",
    "neq": "neq",
}


class RecordStore(Protocol):
    """Contract the engine consumes; ``SupabaseClient`` is the production implementation."""

    def insert(self, table: str, record: Dict[str, Any]) -> Dict[str, Any]: ...

    def query(self, table: str, filters: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]: ...

    def get(self, table: str, record_id: str) -> Optional[Dict[str, Any]]: ...

    def update(self, table: str, record_id: str, patch: Dict[str, Any]) -> Dict[str, Any]: ...

    def delete(self, table: str, record_id: str) -> None: ...


def split_filter_key(key: str):
    """``"start_date__lte"`` -> ``("start_date", "lte")``; plain keys mean equality."""
    column, sep, op = key.rpartition("__")
    if sep and op in _OPERATORS:
        return column, op
    return key, "eq"


class SupabaseClient:
    """Supabase client implementing the record store contract.

    Filters are a mapping of column to value. A list value means "in",
    and a ``__lt``/``__lte``/``__gt``/``__gte``/``__neq`` suffix selects a
    comparison, e.g. ``{"asset_id": "a1", "status": ["pending", "confirmed"],
    "start_date__lte": "2025-11-05"}``.
    """

    def __init__(self):
        self.logger = get_logger("supabase_client")
        self.client = None
        self.initialized = False

    def initialize(self) -> bool:
        """Initialize Supabase client from environment configuration."""
        try:
            if self.initialized:
                return True

            auth_key = supabase_config.get_auth_key()
            if not supabase_config.url or not auth_key:
                self.logger.error("Supabase configuration missing", url=bool(supabase_config.url))
                return False

            self.client = create_client(supabase_config.url, auth_key)
            self.initialized = True
            self.logger.info("Supabase client initialized successfully", url=supabase_config.url)
            return True
        except Exception as e:
            self.logger.error("Failed to initialize Supabase client", error=str(e))
            self.initialized = False
            return False

    def _require_client(self):
        if not self.initialized and not self.initialize():
            raise StoreError("Supabase client not initialized")
        return self.client

    def _serialize_payload(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively convert datetimes and unsupported types to JSON-serializable values."""

        def serialize_value(value):
            if isinstance(value, (datetime, date)):
                return value.isoformat()
            if isinstance(value, dict):
                return {k: serialize_value(v) for k, v in value.items()}
            if isinstance(value, list):
                return [serialize_value(v) for v in value]
            return value

        return {k: serialize_value(v) for k, v in payload.items()}

    @staticmethod
    def _rows(res) -> List[Dict[str, Any]]:
        # Safely extract rows (handle both supabase-py versions)
        if hasattr(res, "data"):
            return res.data or []
        return getattr(res, "json", {}).get("data", []) or []

    def _translate(self, error: APIError, table: str, action: str) -> StoreError:
        code = getattr(error, "code", None)
        message = getattr(error, "message", None) or str(error)
        if code in (UNIQUE_VIOLATION, EXCLUSION_VIOLATION):
            self.logger.info("Store rejected duplicate", table=table, action=action, code=code)
            return UniquenessError(message)
        self.logger.error("Store operation failed", table=table, action=action, code=code, error=message)
        return StoreError(message)

    def _apply_filters(self, query, filters: Optional[Dict[str, Any]]):
        serialized = self._serialize_payload(dict(filters or {}))
        for key, value in serialized.items():
            column, op = split_filter_key(key)
            if op == "eq" and isinstance(value, (list, tuple, set)):
                query = query.in_(column, list(value))
                continue
            query = getattr(query, op)(column, value)
        return query

    # CRUD operations
    def insert(self, table: str, record: Dict[str, Any]) -> Dict[str, Any]:
        """Insert one row and return it as stored; duplicates raise ``UniquenessError``."""
        client = self._require_client()
        payload = self._serialize_payload(record)
        try:
            res = client.table(table).insert(payload).execute()
        except APIError as e:
            raise self._translate(e, table, "insert") from e
        rows = self._rows(res)
        if not rows:
            raise StoreError(f"Insert into {table} returned no row")
        self.logger.info("Inserted record", table=table, id=rows[0].get("id"))
        return rows[0]

    def query(self, table: str, filters: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        client = self._require_client()
        try:
            res = self._apply_filters(client.table(table).select("*"), filters).execute()
        except APIError as e:
            raise self._translate(e, table, "query") from e
        rows = self._rows(res)
        self.logger.debug("Queried records", table=table, count=len(rows))
        return rows

    def get(self, table: str, record_id: str) -> Optional[Dict[str, Any]]:
        client = self._require_client()
        try:
            res = client.table(table).select("*").eq("id", record_id).limit(1).execute()
        except APIError as e:
            raise self._translate(e, table, "get") from e
        rows = self._rows(res)
        return rows[0] if rows else None

    def update(self, table: str, record_id: str, patch: Dict[str, Any]) -> Dict[str, Any]:
        client = self._require_client()
        payload = self._serialize_payload(patch)
        try:
            res = client.table(table).update(payload).eq("id", record_id).execute()
        except APIError as e:
            raise self._translate(e, table, "update") from e
        rows = self._rows(res)
        if not rows:
            raise NotFoundError(f"No {table} record with id {record_id}")
        self.logger.info("Successfully updated record", table=table, id=record_id)
        return rows[0]

    def delete(self, table: str, record_id: str) -> None:
        client = self._require_client()
        try:
            client.table(table).delete().eq("id", record_id).execute()
        except APIError as e:
            raise self._translate(e, table, "delete") from e
        self.logger.info("Successfully deleted record", table=table, id=record_id)

    # Context manager helpers
    def __enter__(self):
        self.initialize()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        pass
