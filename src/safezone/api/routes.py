"""
API routes.

Endpoints:
- POST `/api/discovery`: run one discovery pass on the shared discovery stack
  (`app.state.discovery`) and return the published markers.
- GET  `/api/settings`: public settings for map clients (secrets redacted).
- GET  `/api/health`: liveness probe.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, Field

from safezone.config.overrides import apply_settings_overrides
from safezone.config.settings import get_settings
from safezone.discovery.orchestrator import DiscoveryStack, discovery_config
from safezone.domain.models import Coordinate, DiscoveryResult, Published
from safezone.location.provider import StaticLocationProvider

router = APIRouter()


class DiscoveryRequest(BaseModel):
    """Map client request: device coordinate (if any) plus per-pass knobs."""

    user_location: Coordinate | None = None
    include_user_location: bool | None = None
    show_all_reports: bool | None = None
    max_distance_km: float | None = None
    initial_zoom: float | None = None
    settings_overrides: dict[str, Any] | None = Field(default=None)


@router.get("/api/health")
def get_health() -> dict:
    return {"status": "ok"}


@router.get("/api/settings")
def get_public_settings() -> dict:
    """Return settings useful to map clients, with backend credentials removed."""
    settings = get_settings()
    payload = settings.model_dump(mode="json")
    payload["catalog"].pop("api_key", None)
    payload["catalog"]["api_key_configured"] = bool(settings.catalog.api_key)
    return payload


@router.post("/api/discovery", response_model=DiscoveryResult)
async def post_discovery(req: DiscoveryRequest, request: Request) -> DiscoveryResult:
    try:
        settings = apply_settings_overrides(get_settings(), req.settings_overrides)
        config = discovery_config(
            settings,
            {
                "include_user_location": req.include_user_location,
                "show_all_reports": req.show_all_reports,
                "max_distance_km": req.max_distance_km,
                "initial_zoom": req.initial_zoom,
            },
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    stack: DiscoveryStack = request.app.state.discovery
    orchestrator = stack.orchestrator(settings, location_provider=StaticLocationProvider(req.user_location))
    event = await orchestrator.run(config)
    # Each request owns its orchestrator, so a pass is never superseded here.
    if not isinstance(event, Published):
        raise HTTPException(status_code=503, detail=event.reason if event else "discovery pass did not finish")
    return event.result
