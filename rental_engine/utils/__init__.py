"""
Utility modules for the rental availability engine.
"""

from .models import (
    AssetType, AssetStatus, PriceMode, ReservationSource, ReservationStatus,
    Asset, Reservation, FeedEvent, FeedParseReport, PriceLine, PriceQuote,
    OverlapResult, ExternalConflict, SyncResult, transition
)
from .logger import setup_logger, get_logger, SyncLogger

__all__ = [
    'AssetType', 'AssetStatus', 'PriceMode', 'ReservationSource', 'ReservationStatus',
    'Asset', 'Reservation', 'FeedEvent', 'FeedParseReport', 'PriceLine', 'PriceQuote',
    'OverlapResult', 'ExternalConflict', 'SyncResult', 'transition',
    'setup_logger', 'get_logger', 'SyncLogger'
]
