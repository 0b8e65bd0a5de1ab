"""
Availability (overlap) check endpoint.
"""
from fastapi import APIRouter, Depends

from ..dependencies import get_conflict_detector
from ..models import AvailabilityCheckRequest, AvailabilityCheckResponse, ErrorResponse
from ...availability.conflicts import ConflictDetector


router = APIRouter(prefix="/availability", tags=["availability"])


@router.post(
    "/check",
    response_model=AvailabilityCheckResponse,
    summary="Check an asset's availability",
    description="Report every occupying reservation that shares a day with the requested window. "
                "The answer is advisory; booking submission re-checks at insert time.",
    responses={
        200: {"description": "Check completed"},
        422: {"description": "Invalid window", "model": ErrorResponse},
        500: {"description": "Internal server error", "model": ErrorResponse}
    }
)
def check_availability(
    request: AvailabilityCheckRequest,
    detector: ConflictDetector = Depends(get_conflict_detector)
):
    result = detector.check_overlap(
        request.asset_id,
        request.start,
        request.end,
        exclude_reservation_id=request.exclude_reservation_id,
    )
    return AvailabilityCheckResponse(
        success=True,
        message="Asset is booked for part of this window" if result.conflict else "Asset is available",
        data=result.to_dict(),
    )
