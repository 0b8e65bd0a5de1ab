"""
Integration tests for the reservation service.
"""
import pytest
from datetime import date

from rental_engine.api.services.reservation_service import NO_LONGER_AVAILABLE, ReservationService
from rental_engine.utils.errors import (
    ConflictError, InvalidTransitionError, NotFoundError, UniquenessError, ValidationError
)
from rental_engine.utils.models import ReservationSource, ReservationStatus
from config.settings import app_config

pytestmark = pytest.mark.integration

RESERVATIONS = app_config.reservations_collection


@pytest.fixture
def service(store, notifier):
    return ReservationService(store, notifier=notifier)


class TestCreateReservation:
    """Test cases for booking submission."""

    def test_creates_priced_reservation(self, service, store, vehicle, customer):
        reservation = service.create_reservation("car-1", "cust-1", date(2025, 11, 1), date(2025, 11, 10))

        assert reservation.id is not None
        assert reservation.status is ReservationStatus.PENDING
        assert reservation.source is ReservationSource.MANUAL
        assert reservation.total_price == 2700
        assert reservation.computed_price == 2700
        assert reservation.price_breakdown == "1 week + 3 days"
        assert len(store.rows(RESERVATIONS)) == 1

    def test_override_kept_alongside_computed_total(self, service, vehicle, customer):
        reservation = service.create_reservation("car-1", "cust-1", "2025-11-01", "2025-11-10", price_override=2000)
        assert reservation.total_price == 2000
        assert reservation.computed_price == 2700

    def test_condo_priced_per_night(self, service, condo, customer):
        reservation = service.create_reservation("condo-1", "cust-1", "2025-12-01", "2025-12-03")
        assert reservation.total_price == 7500
        assert reservation.price_breakdown == "3 nights"

    def test_overlap_raises_conflict_with_details(self, service, vehicle, customer, add_reservation):
        existing = add_reservation("car-1", "2025-11-05", "2025-11-08")

        with pytest.raises(ConflictError) as exc_info:
            service.create_reservation("car-1", "cust-1", "2025-11-01", "2025-11-05")

        assert [r.id for r in exc_info.value.conflicting] == [existing["id"]]
        assert "2025-11-05 to 2025-11-08" in str(exc_info.value)

    def test_lost_race_reports_no_longer_available(self, service, store, vehicle, customer, mocker):
        mocker.patch.object(store, "insert", side_effect=UniquenessError("exclusion violation"))

        with pytest.raises(ConflictError) as exc_info:
            service.create_reservation("car-1", "cust-1", "2025-11-01", "2025-11-02")
        assert str(exc_info.value) == NO_LONGER_AVAILABLE

    @pytest.mark.parametrize("field", ["asset_id", "customer_id", "start", "end"])
    def test_missing_fields(self, service, vehicle, field):
        kwargs = {"asset_id": "car-1", "customer_id": "cust-1", "start": "2025-11-01", "end": "2025-11-02"}
        kwargs[field] = None
        with pytest.raises(ValidationError):
            service.create_reservation(**kwargs)

    def test_inverted_dates(self, service, vehicle):
        with pytest.raises(ValidationError):
            service.create_reservation("car-1", "cust-1", "2025-11-05", "2025-11-01")

    def test_cannot_create_cancelled(self, service, vehicle):
        with pytest.raises(ValidationError):
            service.create_reservation("car-1", "cust-1", "2025-11-01", "2025-11-02",
                                       status=ReservationStatus.CANCELLED)

    def test_unknown_asset(self, service):
        with pytest.raises(NotFoundError):
            service.create_reservation("ghost", "cust-1", "2025-11-01", "2025-11-02")

    def test_notifies_owner_and_customer(self, service, notifier, vehicle, customer):
        service.create_reservation("car-1", "cust-1", "2025-11-01", "2025-11-02")

        recipients = [c.args[1] for c in notifier.send.call_args_list]
        assert recipients == [app_config.owner_email, "alice@example.com"]
        template, _, data = notifier.send.call_args_list[1].args
        assert template == "booking_created"
        assert data["customer_name"] == "Alice"
        assert data["asset_name"] == "Honda Click"

    def test_notification_failure_does_not_fail_booking(self, service, notifier, store, vehicle, customer):
        notifier.send.return_value = {"ok": False, "error": "smtp down"}
        reservation = service.create_reservation("car-1", "cust-1", "2025-11-01", "2025-11-02")
        assert store.get(RESERVATIONS, reservation.id) is not None


class TestUpdateReservationDates:
    """Test cases for moving a reservation."""

    def test_move_within_own_window(self, service, vehicle, customer):
        created = service.create_reservation("car-1", "cust-1", "2025-11-01", "2025-11-07")
        moved = service.update_reservation_dates(created.id, "2025-11-02", "2025-11-08")

        assert str(moved.start) == "2025-11-02"
        assert moved.total_price == 1800

    def test_move_onto_other_reservation_conflicts(self, service, vehicle, customer, add_reservation):
        created = service.create_reservation("car-1", "cust-1", "2025-11-01", "2025-11-03")
        add_reservation("car-1", "2025-11-10", "2025-11-12")

        with pytest.raises(ConflictError):
            service.update_reservation_dates(created.id, "2025-11-09", "2025-11-10")

    def test_override_survives_date_change(self, service, vehicle, customer):
        created = service.create_reservation("car-1", "cust-1", "2025-11-01", "2025-11-10", price_override=2000)
        moved = service.update_reservation_dates(created.id, "2025-11-01", "2025-11-07")
        assert moved.total_price == 2000
        assert moved.computed_price == 1800

    def test_unknown_reservation(self, service):
        with pytest.raises(NotFoundError):
            service.update_reservation_dates("nope", "2025-11-01", "2025-11-02")


class TestChangeStatus:
    """Test cases for lifecycle transitions."""

    def test_full_lifecycle(self, service, vehicle, customer):
        created = service.create_reservation("car-1", "cust-1", "2025-11-01", "2025-11-03")
        for status in ("confirmed", "checked_out", "returned"):
            updated = service.change_status(created.id, ReservationStatus(status))
        assert updated.status is ReservationStatus.RETURNED

    def test_invalid_transition(self, service, vehicle, customer):
        created = service.create_reservation("car-1", "cust-1", "2025-11-01", "2025-11-03")
        with pytest.raises(InvalidTransitionError):
            service.change_status(created.id, ReservationStatus.RETURNED)

    def test_cancel_frees_dates_and_notifies(self, service, notifier, vehicle, customer):
        created = service.create_reservation("car-1", "cust-1", "2025-11-01", "2025-11-03")
        notifier.send.reset_mock()

        service.change_status(created.id, ReservationStatus.CANCELLED)

        assert {c.args[0] for c in notifier.send.call_args_list} == {"booking_cancelled"}
        again = service.create_reservation("car-1", "cust-1", "2025-11-02", "2025-11-02")
        assert again.id != created.id
