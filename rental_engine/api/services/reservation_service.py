"""
Reservation service: booking submission, date edits and status changes.
"""
from typing import Any, Dict, Optional, Tuple

from ...availability.conflicts import ConflictDetector
from ...availability.interval import DateInterval, DateLike
from ...availability.pricing import quote_for_asset
from ...guest_communications.notifier import Notifier
from ...supabase_sync.supabase_client import RecordStore
from ...utils.errors import ConflictError, NotFoundError, UniquenessError, ValidationError
from ...utils.logger import get_logger
from ...utils.models import (
    Asset,
    OverlapResult,
    PriceQuote,
    Reservation,
    ReservationSource,
    ReservationStatus,
    transition,
)
from config.settings import app_config

NO_LONGER_AVAILABLE = "Asset is no longer available for the selected dates"


class ReservationService:
    """Service for creating and editing reservations.

    The overlap check before each write is advisory; the store's exclusion
    constraint decides, and its rejection surfaces as ``ConflictError``.
    """

    def __init__(self, store: RecordStore, logger=None, notifier: Optional[Notifier] = None,
                 detector: Optional[ConflictDetector] = None):
        self.store = store
        self.logger = logger or get_logger("reservation_service")
        self.notifier = notifier if notifier is not None else Notifier()
        self.detector = detector or ConflictDetector(store)
        self.assets_table = app_config.assets_collection
        self.reservations_table = app_config.reservations_collection
        self.customers_table = app_config.customers_collection

    # Lookups
    def get_asset(self, asset_id: str) -> Asset:
        row = self.store.get(self.assets_table, asset_id)
        if not row:
            raise NotFoundError(f"Asset {asset_id} not found")
        return Asset.from_dict(row)

    def get_reservation(self, reservation_id: str) -> Reservation:
        row = self.store.get(self.reservations_table, reservation_id)
        if not row:
            raise NotFoundError(f"Reservation {reservation_id} not found")
        return Reservation.from_dict(row)

    def quote(self, asset_id: str, start: DateLike, end: DateLike, override: Optional[float] = None) -> PriceQuote:
        return quote_for_asset(self.get_asset(asset_id), start, end, override)

    def _ensure_available(self, asset_id: str, start: DateLike, end: DateLike,
                          exclude_reservation_id: Optional[str] = None) -> OverlapResult:
        result = self.detector.check_overlap(asset_id, start, end, exclude_reservation_id=exclude_reservation_id)
        if result.conflict:
            details = "; ".join(result.describe())
            raise ConflictError(f"Asset is already booked: {details}", result.conflicting)
        return result

    # Commands
    def create_reservation(
        self,
        asset_id: str,
        customer_id: str,
        start: DateLike,
        end: DateLike,
        price_override: Optional[float] = None,
        notes: Optional[str] = None,
        delivery_eta: Optional[str] = None,
        status: ReservationStatus = ReservationStatus.PENDING,
    ) -> Reservation:
        """
        Validate, price, check and insert a manual reservation.

        Raises:
            ValidationError: Missing field or inverted dates
            NotFoundError: Unknown asset
            ConflictError: Overlaps an occupying reservation, before or at insert time
        """
        missing = [name for name, value in (("asset_id", asset_id), ("customer_id", customer_id),
                                            ("start", start), ("end", end)) if not value]
        if missing:
            raise ValidationError(f"Missing required booking fields: {', '.join(missing)}")

        status = ReservationStatus(status)
        if not status.occupies_asset:
            raise ValidationError("A new reservation cannot start out cancelled")

        DateInterval.from_values(start, end)
        asset = self.get_asset(asset_id)
        quote = quote_for_asset(asset, start, end, price_override)
        self._ensure_available(asset.id, start, end)

        reservation = Reservation(
            asset_id=asset.id,
            asset_type=asset.asset_type,
            customer_id=customer_id,
            start=start,
            end=end,
            status=status,
            total_price=quote.final_total,
            computed_price=quote.total,
            price_breakdown=quote.breakdown,
            source=ReservationSource.MANUAL,
            notes=notes,
            delivery_eta=delivery_eta,
        )

        try:
            row = self.store.insert(self.reservations_table, reservation.to_dict())
        except UniquenessError as e:
            # Another booking won the race between the check and the insert
            self.logger.warning("Reservation lost overlap race", asset_id=asset.id, start=str(start), end=str(end))
            raise ConflictError(NO_LONGER_AVAILABLE) from e

        created = Reservation.from_dict(row)
        self.logger.info("Reservation created", reservation_id=created.id, asset_id=asset.id,
                         total=quote.final_total, breakdown=quote.breakdown, overridden=quote.is_overridden)
        self._notify("booking_created", created, asset)
        return created

    def update_reservation_dates(self, reservation_id: str, start: DateLike, end: DateLike) -> Reservation:
        """Move a reservation, re-checking availability without counting itself."""
        reservation = self.get_reservation(reservation_id)
        DateInterval.from_values(start, end)
        asset = self.get_asset(reservation.asset_id)

        if reservation.occupies_asset:
            self._ensure_available(asset.id, start, end, exclude_reservation_id=reservation.id)

        quote = quote_for_asset(asset, start, end)
        overridden = (reservation.total_price is not None and reservation.computed_price is not None
                      and reservation.total_price != reservation.computed_price)
        patch: Dict[str, Any] = {
            "start_date": start,
            "end_date": end,
            "computed_amount": quote.total,
            "price_breakdown": quote.breakdown,
        }
        if not overridden:
            patch["total_amount"] = quote.total

        try:
            row = self.store.update(self.reservations_table, reservation.id, patch)
        except UniquenessError as e:
            raise ConflictError(NO_LONGER_AVAILABLE) from e

        self.logger.info("Reservation dates updated", reservation_id=reservation.id,
                         start=str(start), end=str(end), kept_override=overridden)
        return Reservation.from_dict(row)

    def change_status(self, reservation_id: str, status: ReservationStatus) -> Reservation:
        """Apply one lifecycle step; raises ``InvalidTransitionError`` for disallowed moves."""
        reservation = self.get_reservation(reservation_id)
        target = transition(reservation.status, status)
        row = self.store.update(self.reservations_table, reservation.id, {"status": target.value})
        updated = Reservation.from_dict(row)
        self.logger.info("Reservation status changed", reservation_id=reservation.id,
                         previous=reservation.status.value, status=target.value)

        if target is ReservationStatus.CANCELLED:
            try:
                asset = self.get_asset(updated.asset_id)
            except NotFoundError:
                asset = None
            self._notify("booking_cancelled", updated, asset)
        return updated

    # Notifications
    def _customer_contact(self, customer_id: Optional[str]) -> Tuple[Optional[str], str]:
        """(email or phone, display name) of the customer; lookups never fail the booking."""
        if not customer_id:
            return None, ""
        try:
            customer = self.store.get(self.customers_table, customer_id) or {}
        except Exception as e:
            self.logger.warning("Customer lookup failed", customer_id=customer_id, error=str(e))
            return None, ""
        contact = customer.get("email") or customer.get("phone")
        return contact, customer.get("full_name") or customer.get("name") or ""

    def _notify(self, template: str, reservation: Reservation, asset: Optional[Asset]) -> None:
        if self.notifier is None:
            return
        contact, customer_name = self._customer_contact(reservation.customer_id)
        data = {
            "reservation_id": reservation.id,
            "asset_name": asset.name if asset and asset.name else reservation.asset_id,
            "customer_name": customer_name or "there",
            "start": reservation.start,
            "end": reservation.end,
            "total": reservation.total_price,
        }
        for recipient in (app_config.owner_email, contact):
            if recipient:
                self.notifier.send(template, recipient, data)
