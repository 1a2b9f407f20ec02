from datetime import datetime, timezone

from fastapi import APIRouter, Request

from uptime.downsample import DEFAULT_BUCKET_COUNT
from uptime.models import StatusResponse, WebsiteStatusModel
from uptime.routes.dashboard import app_config, current_status

router = APIRouter(prefix="/api", tags=["Status"])


@router.get("/status", response_model=StatusResponse)
def status(request: Request):
    """The dashboard's data as JSON."""
    config = app_config(request)
    statuses = current_status(config)
    return StatusResponse(
        generated_at=datetime.now(timezone.utc),
        bucket_count=config.bucket_count if config else DEFAULT_BUCKET_COUNT,
        websites=[WebsiteStatusModel.from_status(s) for s in statuses],
    )
