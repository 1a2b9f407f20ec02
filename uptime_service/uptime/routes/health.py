from fastapi import APIRouter, Response

from uptime.database import check_connection, count_runs
from uptime.models import HealthResponse
from uptime_common.observability import metrics_response

router = APIRouter(tags=["Health"])


@router.get("/health", response_model=HealthResponse)
def health():
    db_ok = check_connection()
    total = count_runs() if db_ok else 0
    return HealthResponse(
        status="healthy" if db_ok else "unhealthy",
        db_connected=db_ok,
        total_runs=total,
    )


@router.get("/metrics")
def metrics():
    body, content_type = metrics_response()
    return Response(content=body, media_type=content_type)
