"""Prometheus-compatible metrics endpoint."""

from fastapi import APIRouter, Request, Response

from app.monitoring.metrics import online_users
from app.monitoring.registry import registry


router = APIRouter(tags=["metrics"])


@router.get("/metrics", response_class=Response)
async def export_metrics(request: Request) -> Response:
    """Expose collected metrics for Prometheus scraping."""

    online_users.set(len(await request.app.state.sessions.online_users()))
    return Response(content=registry.render(), media_type="text/plain; version=0.0.4")
