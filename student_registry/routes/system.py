from __future__ import annotations

import logging

from fastapi import APIRouter, Request

from ..schemas import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["System"])


def _health(request: Request) -> HealthResponse:
    client = request.app.state.store_client
    return HealthResponse(
        status="ok" if client.connected else "degraded",
        store_backend=client.backend,
        store_state=client.state.value,
    )


@router.get("/health", response_model=HealthResponse)
def health(request: Request):
    return _health(request)


@router.post("/health/reconnect", response_model=HealthResponse)
def reconnect(request: Request):
    """Explicitly re-open the record store handle."""
    request.app.state.store_client.reconnect()
    return _health(request)
