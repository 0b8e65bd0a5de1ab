"""
Immutable data models for API responses and requests.
"""
from typing import Optional, Dict, Any, List
from datetime import date, datetime, timezone
from pydantic import BaseModel, Field, ConfigDict, field_serializer, field_validator, model_validator

from ..utils.models import ReservationStatus


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _parse_status(value):
    # Accepts legacy spellings such as "delivered"
    return value if isinstance(value, ReservationStatus) else ReservationStatus(value)


class APIResponse(BaseModel):
    """Base API response model."""
    model_config = ConfigDict(frozen=True, extra="forbid")

    success: bool = Field(..., description="Whether the request was successful")
    message: str = Field(..., description="Response message")
    timestamp: datetime = Field(default_factory=_now, description="Response timestamp")

    @field_serializer('timestamp')
    def serialize_timestamp(self, timestamp: datetime) -> str:
        return timestamp.isoformat()


class ErrorResponse(APIResponse):
    """Error response model."""
    error_code: Optional[str] = Field(None, description="Error code for debugging")
    details: Optional[Dict[str, Any]] = Field(None, description="Additional error details")


class HealthResponse(BaseModel):
    """Health check response model."""
    model_config = ConfigDict(frozen=True, extra="forbid")

    status: str = Field(..., description="Service status")
    timestamp: datetime = Field(default_factory=_now, description="Health check timestamp")
    version: str = Field(..., description="API version")
    dependencies: Dict[str, str] = Field(default_factory=dict, description="Dependency statuses")

    @field_serializer('timestamp')
    def serialize_timestamp(self, timestamp: datetime) -> str:
        return timestamp.isoformat()


class _DateWindow(BaseModel):
    """Inclusive start/end calendar days."""
    start: date = Field(..., description="First day (inclusive)")
    end: date = Field(..., description="Last day (inclusive)")

    @model_validator(mode="after")
    def check_order(self):
        if self.end < self.start:
            raise ValueError("end must not be before start")
        return self


class AvailabilityCheckRequest(_DateWindow):
    """Request body for an overlap check."""
    model_config = ConfigDict(frozen=True, extra="forbid")

    asset_id: str = Field(..., min_length=1, description="Asset to check")
    exclude_reservation_id: Optional[str] = Field(None, description="Reservation being edited")


class AvailabilityCheckResponse(APIResponse):
    """Overlap check result."""
    data: Dict[str, Any] = Field(..., description="conflict flag, conflicting reservations and date ranges")


class PriceQuoteRequest(BaseModel):
    """Either a day count with a rate table, or an asset and date window."""
    model_config = ConfigDict(frozen=True, extra="forbid")

    days: Optional[int] = Field(None, ge=1, description="Number of rental days")
    daily_rate: Optional[float] = Field(None, ge=0, description="Price per day")
    weekly_rate: Optional[float] = Field(None, ge=0, description="Price per 7 days")
    monthly_rate: Optional[float] = Field(None, ge=0, description="Price per 30 days")
    asset_id: Optional[str] = Field(None, description="Price against this asset's rate schedule")
    start: Optional[date] = Field(None, description="First day (with asset_id)")
    end: Optional[date] = Field(None, description="Last day (with asset_id)")
    override: Optional[float] = Field(None, ge=0, description="Manual price that replaces the computed total")

    @model_validator(mode="after")
    def check_inputs(self):
        by_asset = self.asset_id is not None
        if by_asset and (self.start is None or self.end is None):
            raise ValueError("start and end are required with asset_id")
        if not by_asset and (self.days is None or self.daily_rate is None):
            raise ValueError("days and daily_rate are required without asset_id")
        return self


class PriceQuoteResponse(APIResponse):
    """Computed price."""
    data: Dict[str, Any] = Field(..., description="total, breakdown and per-tier lines")


class CreateReservationRequest(_DateWindow):
    """Request body for booking submission."""
    model_config = ConfigDict(frozen=True, extra="forbid")

    asset_id: str = Field(..., min_length=1, description="Asset to reserve")
    customer_id: str = Field(..., min_length=1, description="Customer making the reservation")
    price_override: Optional[float] = Field(None, ge=0, description="Manual total set by an operator")
    status: ReservationStatus = Field(ReservationStatus.PENDING, description="Initial status")
    notes: Optional[str] = Field(None, description="Free-form notes")
    delivery_eta: Optional[str] = Field(None, description="Delivery/pickup time")

    @field_validator("status", mode="before")
    @classmethod
    def parse_status(cls, v):
        return _parse_status(v)


class UpdateReservationDatesRequest(_DateWindow):
    """Request body for moving a reservation."""
    model_config = ConfigDict(frozen=True, extra="forbid")


class ChangeStatusRequest(BaseModel):
    """Request body for a lifecycle transition."""
    model_config = ConfigDict(frozen=True, extra="forbid")

    status: ReservationStatus = Field(..., description="Target status")

    @field_validator("status", mode="before")
    @classmethod
    def parse_status(cls, v):
        return _parse_status(v)


class ReservationResponse(APIResponse):
    """A single reservation."""
    data: Dict[str, Any] = Field(..., description="Reservation record")


class FeedPreviewRequest(BaseModel):
    """Request body for testing a feed URL."""
    model_config = ConfigDict(frozen=True, extra="forbid")

    url: str = Field(..., min_length=1, description="Calendar feed URL")
    limit: Optional[int] = Field(None, ge=1, le=50, description="Number of events to return")


class FeedPreviewResponse(APIResponse):
    """First events of a feed plus counts."""
    data: Dict[str, Any] = Field(..., description="events, total and skipped block counts")


class SyncResponse(APIResponse):
    """Outcome of an asset sync."""
    status: str = Field("ok", description="'ok', or 'empty' when the feed had nothing to import")
    data: Optional[Dict[str, Any]] = Field(None, description="Sync result")
    conflicts: List[Dict[str, Any]] = Field(default_factory=list, description="Imported events overlapping manual reservations")
