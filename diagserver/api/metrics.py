from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from diagserver.api.deps import get_http_metrics
from diagserver.observability.metrics import HttpMetrics


router = APIRouter(tags=["metrics"])


@router.get("/metrics", include_in_schema=False)
async def metrics(http_metrics: HttpMetrics = Depends(get_http_metrics)) -> Response:
    payload, content_type = http_metrics.render()
    return Response(content=payload, media_type=content_type)
