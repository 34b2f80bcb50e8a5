"""
Prometheus scrape endpoint.

Counters and histograms are updated where the work happens (provider client,
sync runs, webhook dispatch). The open-socket gauge is re-read from the app's
notification registry on every scrape so it never drifts from the live sockets.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from hotel_integrations.dependencies import get_connection_registry
from hotel_integrations.metrics import notification_connections
from hotel_integrations.notifications.registry import ConnectionRegistry

router = APIRouter()


@router.get("/metrics", response_class=Response)
def metrics(registry: ConnectionRegistry = Depends(get_connection_registry)) -> Response:
    notification_connections.set(registry.stats()["total_connections"])
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
