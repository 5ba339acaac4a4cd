"""
FastAPI application wiring.

Run with `uvicorn safezone.api.app:app`. Routes live in `safezone.api.routes`;
discovery logic lives in `safezone.discovery`. The discovery stack (HTTP client,
catalog, geocoder, rate limiter) is built once in the lifespan and shared by all
requests through `app.state.discovery`.

CORS is configured from the environment so map clients served from another
origin can call the API:
- `SAFEZONE_CORS_ORIGINS`: comma-separated list of allowed origins.
- `SAFEZONE_CORS_ALLOW_LOCAL=0`: drop the default localhost allowance.
"""

from __future__ import annotations

import os
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware

from safezone.config.settings import get_settings
from safezone.core.logging import configure_logging
from safezone.discovery.orchestrator import build_stack

from .routes import router

LOCALHOST_ORIGIN_REGEX = r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$"


def _cors_options() -> dict[str, Any] | None:
    origins = [s.strip() for s in os.getenv("SAFEZONE_CORS_ORIGINS", "").split(",") if s.strip()]
    if origins:
        return {"allow_origins": origins}
    allow_local = os.getenv("SAFEZONE_CORS_ALLOW_LOCAL", "1").strip().lower() in {"1", "true", "yes"}
    if allow_local:
        return {"allow_origin_regex": LOCALHOST_ORIGIN_REGEX}
    return None


@asynccontextmanager
async def lifespan(application: FastAPI) -> AsyncIterator[None]:
    """Build the shared discovery stack once per process and close its HTTP client on shutdown."""
    stack = build_stack(get_settings())
    application.state.discovery = stack
    try:
        yield
    finally:
        await stack.aclose()


def create_app() -> FastAPI:
    configure_logging()
    application = FastAPI(title="SafeZone Discovery API", version="0.1.0", lifespan=lifespan)

    cors = _cors_options()
    if cors is not None:
        application.add_middleware(
            CORSMiddleware,
            allow_credentials=False,
            allow_methods=["GET", "POST"],
            allow_headers=["*"],
            **cors,
        )

    application.include_router(router)
    return application


app = create_app()
