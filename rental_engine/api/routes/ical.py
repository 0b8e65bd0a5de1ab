"""
Calendar feed preview ("test this URL") endpoint.
"""
from fastapi import APIRouter, Depends

from ..dependencies import get_sync_reconciler
from ..models import ErrorResponse, FeedPreviewRequest, FeedPreviewResponse
from ...calendar_sync.reconciler import SyncReconciler


router = APIRouter(prefix="/ical", tags=["iCal"])


@router.post(
    "/preview",
    response_model=FeedPreviewResponse,
    summary="Preview a calendar feed",
    description="Fetch and parse a feed without saving anything.",
    responses={
        422: {"description": "URL not allowed", "model": ErrorResponse},
        502: {"description": "Feed host error", "model": ErrorResponse},
        504: {"description": "Feed fetch timed out", "model": ErrorResponse}
    }
)
def preview_feed(
    request: FeedPreviewRequest,
    reconciler: SyncReconciler = Depends(get_sync_reconciler)
):
    preview = reconciler.preview_feed(request.url, limit=request.limit)
    return FeedPreviewResponse(
        success=True,
        message=f"Found {preview['total']} events",
        data=preview,
    )
