"""Prometheus exposition of the import/sync counters."""

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, REGISTRY, generate_latest

router = APIRouter()


@router.get("/metrics")
async def metrics() -> Response:
    """Scrape endpoint for trip_sync_*, trip_import_total and evidence_uploads_total."""
    return Response(content=generate_latest(REGISTRY), media_type=CONTENT_TYPE_LATEST)
