"""
Liveness and metrics endpoints.
"""

from fastapi import APIRouter, Depends, Response
from fastapi.responses import PlainTextResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST

from ..core.dependencies import verify_api_key


LIVENESS_MESSAGE = "Z.AI chat proxy is running!"

router = APIRouter(
    tags=["health"]
)


@router.get("/", response_class=PlainTextResponse)
async def root():
    """Liveness check; the only route that never requires an API key."""
    return LIVENESS_MESSAGE


@router.get("/metrics", include_in_schema=False, dependencies=[Depends(verify_api_key)])
async def metrics():
    """
    Prometheus metrics endpoint.
    Exposes application metrics in Prometheus format.
    """
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST,
        headers={"Cache-Control": "no-cache, no-store, must-revalidate"}
    )
