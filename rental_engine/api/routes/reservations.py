"""
Reservation API endpoints.
"""
from fastapi import APIRouter, Depends

from ..dependencies import get_reservation_service
from ..models import (
    ChangeStatusRequest,
    CreateReservationRequest,
    ErrorResponse,
    ReservationResponse,
    UpdateReservationDatesRequest,
)
from ..services.reservation_service import ReservationService


router = APIRouter(prefix="/reservations", tags=["reservations"])


@router.post(
    "",
    status_code=201,
    response_model=ReservationResponse,
    summary="Create a reservation",
    description="Validate, price and insert a reservation. Fails with 409 when the dates are taken, "
                "including when another booking claims them between the check and the insert.",
    responses={
        201: {"description": "Reservation created"},
        404: {"description": "Asset not found", "model": ErrorResponse},
        409: {"description": "Dates no longer available", "model": ErrorResponse},
        422: {"description": "Invalid booking", "model": ErrorResponse}
    }
)
def create_reservation(
    request: CreateReservationRequest,
    reservation_service: ReservationService = Depends(get_reservation_service)
):
    """
    Create a new reservation.

    Args:
        request: Booking submission
        reservation_service: Injected reservation service

    Returns:
        Created reservation
    """
    reservation = reservation_service.create_reservation(
        asset_id=request.asset_id,
        customer_id=request.customer_id,
        start=request.start,
        end=request.end,
        price_override=request.price_override,
        notes=request.notes,
        delivery_eta=request.delivery_eta,
        status=request.status,
    )
    return ReservationResponse(success=True, message="Reservation created", data=reservation.to_dict())


@router.patch(
    "/{reservation_id}/dates",
    response_model=ReservationResponse,
    summary="Move a reservation",
    responses={
        404: {"description": "Reservation not found", "model": ErrorResponse},
        409: {"description": "New dates overlap another reservation", "model": ErrorResponse}
    }
)
def update_reservation_dates(
    reservation_id: str,
    request: UpdateReservationDatesRequest,
    reservation_service: ReservationService = Depends(get_reservation_service)
):
    reservation = reservation_service.update_reservation_dates(reservation_id, request.start, request.end)
    return ReservationResponse(success=True, message="Reservation dates updated", data=reservation.to_dict())


@router.post(
    "/{reservation_id}/status",
    response_model=ReservationResponse,
    summary="Change a reservation's status",
    description="pending -> confirmed -> checked_out -> returned, or cancelled before return.",
    responses={
        404: {"description": "Reservation not found", "model": ErrorResponse},
        422: {"description": "Transition not allowed", "model": ErrorResponse}
    }
)
def change_reservation_status(
    reservation_id: str,
    request: ChangeStatusRequest,
    reservation_service: ReservationService = Depends(get_reservation_service)
):
    reservation = reservation_service.change_status(reservation_id, request.status)
    return ReservationResponse(
        success=True,
        message=f"Reservation is now {reservation.status.value}",
        data=reservation.to_dict(),
    )
