"""
Dependency injection and service container for FastAPI application.
"""
from typing import Optional
from functools import lru_cache

from ..availability.conflicts import ConflictDetector
from ..calendar_sync.reconciler import SyncReconciler
from ..supabase_sync.supabase_client import SupabaseClient
from ..utils.logger import setup_logger
from .config import settings
from .services.reservation_service import ReservationService


# Global service instances
_supabase_client: Optional[SupabaseClient] = None
_logger = None


def get_logger():
    """Get application logger instance."""
    global _logger
    if _logger is None:
        _logger = setup_logger("fastapi_app", settings.log_level)
    return _logger


def get_supabase_client() -> SupabaseClient:
    """Get Supabase client instance."""
    global _supabase_client
    if _supabase_client is None:
        _supabase_client = SupabaseClient()
    return _supabase_client


@lru_cache(maxsize=1)
def get_conflict_detector() -> ConflictDetector:
    return ConflictDetector(get_supabase_client())


@lru_cache(maxsize=1)
def get_reservation_service() -> ReservationService:
    """Get reservation service instance with caching."""
    return ReservationService(get_supabase_client(), get_logger(), detector=get_conflict_detector())


@lru_cache(maxsize=1)
def get_sync_reconciler() -> SyncReconciler:
    """Get sync reconciler with conflict cross-checking enabled."""
    return SyncReconciler(get_supabase_client(), detector=get_conflict_detector())


def reset_dependencies():
    """Drop cached instances (application shutdown)."""
    global _supabase_client, _logger
    _supabase_client = None
    _logger = None
    get_conflict_detector.cache_clear()
    get_reservation_service.cache_clear()
    get_sync_reconciler.cache_clear()
