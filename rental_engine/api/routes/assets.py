"""
Asset calendar sync endpoint.
"""
from fastapi import APIRouter, Depends

from ..dependencies import get_sync_reconciler
from ..models import ErrorResponse, SyncResponse
from ...calendar_sync.reconciler import SyncReconciler
from ...utils.errors import EmptyFeedError


router = APIRouter(prefix="/assets", tags=["calendar sync"])


@router.post(
    "/{asset_id}/sync",
    response_model=SyncResponse,
    summary="Import an asset's external calendar",
    description="Fetch the asset's feed and insert events not imported before. "
                "An empty feed answers 200 with status 'empty'.",
    responses={
        200: {"description": "Sync finished (status 'ok' or 'empty')"},
        400: {"description": "Asset has no feed URL", "model": ErrorResponse},
        404: {"description": "Asset not found", "model": ErrorResponse},
        502: {"description": "Feed host error", "model": ErrorResponse},
        504: {"description": "Feed fetch timed out", "model": ErrorResponse}
    }
)
def sync_asset(
    asset_id: str,
    reconciler: SyncReconciler = Depends(get_sync_reconciler)
):
    try:
        result = reconciler.sync_asset(asset_id)
    except EmptyFeedError as e:
        return SyncResponse(success=True, message=str(e), status="empty")

    payload = result.to_dict()
    return SyncResponse(
        success=True,
        message=f"Imported {result.imported} of {result.seen} events",
        data=payload,
        conflicts=payload["external_conflicts"],
    )
