"""
Operator command line for calendar sync, feed previews and price quotes.
"""
import click
from typing import Optional, List

from .availability.conflicts import ConflictDetector
from .availability.pricing import compute_price
from .calendar_sync.fetcher import FeedFetcher
from .calendar_sync.reconciler import SyncReconciler
from .supabase_sync.supabase_client import SupabaseClient
from .utils.errors import EmptyFeedError, RentalEngineError
from .utils.logger import setup_logger, SyncLogger
from config.settings import app_config


class CalendarSyncAutomation:
    """Runs feed syncs for one or many assets and keeps run totals."""

    def __init__(self, log_level: str = "INFO", log_file: Optional[str] = None,
                 store=None, fetcher: Optional[FeedFetcher] = None, timeout: Optional[float] = None):
        self.logger = setup_logger("calendar_sync", log_level, log_file)
        self.sync_logger = SyncLogger(self.logger)
        self.store = store if store is not None else SupabaseClient()
        self.timeout = timeout
        self.reconciler = SyncReconciler(
            self.store,
            fetcher=fetcher or FeedFetcher(timeout=timeout),
            detector=ConflictDetector(self.store),
        )

    def feed_asset_ids(self) -> List[str]:
        """Every asset with a feed URL configured."""
        rows = self.store.query(app_config.assets_collection)
        return [str(row["id"]) for row in rows if row.get("ical_url") or row.get("airbnb_ical_url")]

    def sync_assets(self, asset_ids: List[str]) -> dict:
        """
        Sync each asset, continuing past failures.

        Returns:
            Dictionary with per-asset results, empty feeds and failures
        """
        results, empty, failures = [], [], []
        for asset_id in asset_ids:
            try:
                result = self.reconciler.sync_asset(asset_id, timeout=self.timeout)
                self.sync_logger.log_sync_result(result)
                results.append(result)
            except EmptyFeedError as e:
                self.logger.info("Feed empty, nothing to import", asset_id=asset_id)
                empty.append({'asset_id': asset_id, 'message': str(e)})
            except RentalEngineError as e:
                self.sync_logger.log_error(e, f"Sync failed for asset {asset_id}")
                failures.append({'asset_id': asset_id, 'error': str(e), 'error_type': type(e).__name__})

        return {'results': results, 'empty': empty, 'failures': failures}


@click.group()
@click.option('--log-level', type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR']),
              default='INFO', help='Logging level')
@click.option('--log-file', type=str, default=None, help='Log file path')
@click.pass_context
def cli(ctx, log_level, log_file):
    """Rental availability engine operator tools."""
    ctx.ensure_object(dict)
    ctx.obj['log_level'] = log_level
    ctx.obj['log_file'] = log_file


@cli.command()
@click.option('--asset-id', 'asset_ids', multiple=True, help='Asset to sync (repeatable)')
@click.option('--all', 'sync_all', is_flag=True, help='Sync every asset that has a feed URL')
@click.option('--timeout', type=float, default=None, help='Feed fetch timeout in seconds')
@click.pass_context
def sync(ctx, asset_ids, sync_all, timeout):
    """Import external calendar feeds as reservations."""
    if not asset_ids and not sync_all:
        raise click.UsageError("Pass --asset-id or --all")

    automation = CalendarSyncAutomation(ctx.obj['log_level'], ctx.obj['log_file'], timeout=timeout)
    try:
        targets = list(asset_ids) or automation.feed_asset_ids()
    except RentalEngineError as e:
        click.echo(f"Fatal error: {str(e)}")
        ctx.exit(1)

    outcome = automation.sync_assets(targets)

    for result in outcome['results']:
        click.echo(f"{result.asset_id}: imported {result.imported} of {result.seen} events "
                   f"({result.duplicates} already imported, {result.discarded} discarded)")
        for conflict in result.external_conflicts:
            state = "imported anyway" if conflict.inserted else "skipped"
            click.echo(f"  ! {conflict.start} to {conflict.end} overlaps manual reservations "
                       f"{', '.join(conflict.conflicting_ids)} ({state})")
    for item in outcome['empty']:
        click.echo(f"{item['asset_id']}: feed has no events to import")
    for failure in outcome['failures']:
        click.echo(f"{failure['asset_id']}: {failure['error_type']}: {failure['error']}")

    automation.sync_logger.print_summary()
    if outcome['failures']:
        ctx.exit(1)


@cli.command()
@click.option('--url', required=True, help='Calendar feed URL to test')
@click.option('--limit', type=int, default=None, help='Number of events to show')
@click.pass_context
def preview(ctx, url, limit):
    """Fetch and parse a feed without saving anything."""
    setup_logger("calendar_sync", ctx.obj['log_level'], ctx.obj['log_file'])
    reconciler = SyncReconciler(store=None, fetcher=FeedFetcher())
    try:
        result = reconciler.preview_feed(url, limit=limit)
    except RentalEngineError as e:
        click.echo(f"Error: {str(e)}")
        ctx.exit(1)

    click.echo(f"Events found: {result['total']} (skipped blocks: {result['skipped_blocks']})")
    for event in result['events']:
        click.echo(f"  {event['start']} -> {event['end']}  {event['summary']}  [{event['uid']}]")


@cli.command()
@click.option('--days', type=int, required=True, help='Number of rental days')
@click.option('--daily', type=float, required=True, help='Daily rate')
@click.option('--weekly', type=float, default=None, help='Weekly (7-day) rate')
@click.option('--monthly', type=float, default=None, help='Monthly (30-day) rate')
@click.pass_context
def quote(ctx, days, daily, weekly, monthly):
    """Compute a tiered price."""
    try:
        price = compute_price(days, daily, weekly, monthly)
    except RentalEngineError as e:
        click.echo(f"Error: {str(e)}")
        ctx.exit(1)

    click.echo(f"Total: {price.total:g}")
    click.echo(f"Breakdown: {price.breakdown}")
    for line in price.lines:
        click.echo(f"  {line.label} x {line.rate:g} = {line.subtotal:g}")


main = cli


if __name__ == '__main__':
    cli()
