"""
Price quote endpoint.
"""
from fastapi import APIRouter, Depends

from ..dependencies import get_reservation_service
from ..models import ErrorResponse, PriceQuoteRequest, PriceQuoteResponse
from ..services.reservation_service import ReservationService
from ...availability.pricing import apply_override, compute_price


router = APIRouter(prefix="/pricing", tags=["pricing"])


@router.post(
    "/quote",
    response_model=PriceQuoteResponse,
    summary="Quote a rental price",
    description="Tiered month/week/day price, either for a day count and rate table "
                "or for an asset's own rates over a date window.",
    responses={
        200: {"description": "Quote computed"},
        404: {"description": "Asset not found", "model": ErrorResponse},
        422: {"description": "Invalid input", "model": ErrorResponse}
    }
)
def quote_price(
    request: PriceQuoteRequest,
    reservation_service: ReservationService = Depends(get_reservation_service)
):
    if request.asset_id is not None:
        quote = reservation_service.quote(request.asset_id, request.start, request.end, request.override)
    else:
        quote = apply_override(
            compute_price(request.days, request.daily_rate, request.weekly_rate, request.monthly_rate),
            request.override,
        )
    return PriceQuoteResponse(success=True, message=quote.breakdown, data=quote.to_dict())
