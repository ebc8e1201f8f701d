"""Liveness, in-process build counters and the Prometheus scrape endpoint."""
from __future__ import annotations

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from kbstage.core.observability.metrics import inc_named, snapshot_named

router = APIRouter(tags=["observability"])


@router.get("/health/live")
def live():
    inc_named("health_live")
    return {"status": "ok"}


@router.get("/api/v1/metrics/snapshot")
def metrics_snapshot():
    # builds_*, pruned_directories, normalized_files since process start
    return {"named": snapshot_named()}


@router.get("/metrics", include_in_schema=False)
def prometheus_scrape() -> Response:
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)
