"""
External calendar feed import: parsing, fetching and reconciliation.
"""

from .feed_parser import FeedParser, parse_feed, parse_feed_report
from .fetcher import FeedFetcher
from .reconciler import SyncReconciler

__all__ = ['FeedParser', 'parse_feed', 'parse_feed_report', 'FeedFetcher', 'SyncReconciler']
