"""
Discovery orchestrator.

One discovery pass walks a fixed state machine:

    IDLE -> ACQUIRING_LOCATION -> FETCHING_CATALOG -> BUILDING_INDEX
         -> FILTERING_SORTING -> PUBLISHED

and ends in ERRORED only when the catalog cannot be fetched or the geocoder is
down for every report. Each transition is emitted as a `Loading` event so a map
can render progress; the pass ends with `Published` or `Errored`.

Starting a new pass supersedes any pass still in flight: the older pass stops
emitting events and its result is never published (last write wins). Its pending
geocode calls are allowed to finish, they are just ignored.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Callable, Mapping

import httpx
from pydantic import ValidationError

from safezone.catalog import build_catalog
from safezone.catalog.base import ReportCatalog
from safezone.config.settings import Settings, get_settings
from safezone.core.cache import FileCache, record_cache_stats
from safezone.core.env import resolve_project_path
from safezone.discovery.filter_sort import filter_and_sort
from safezone.discovery.index_builder import MarkerStyle, ProximityIndexBuilder
from safezone.domain.errors import CatalogUnavailable, InvalidDiscoveryConfig
from safezone.domain.models import (
    Coordinate,
    DiscoveryConfig,
    DiscoveryDiagnostics,
    DiscoveryEvent,
    DiscoveryResult,
    Errored,
    Loading,
    MapView,
    PartialDiagnostics,
    PassState,
    Published,
)
from safezone.geocoding import build_geocoder
from safezone.geocoding.base import GeocodingAdapter
from safezone.location.provider import LocationProvider, acquire_location

logger = logging.getLogger(__name__)


def discovery_config(settings: Settings, overrides: Mapping[str, Any] | None = None) -> DiscoveryConfig:
    """Build a validated `DiscoveryConfig` from settings defaults plus `overrides`."""
    defaults = settings.discovery
    payload: dict[str, Any] = {
        "include_user_location": defaults.include_user_location,
        "show_all_reports": defaults.show_all_reports,
        "max_distance_km": defaults.max_distance_km,
        "initial_zoom": defaults.initial_zoom,
    }
    payload.update({k: v for k, v in (overrides or {}).items() if v is not None})
    try:
        return DiscoveryConfig.model_validate(payload)
    except ValidationError as exc:
        raise InvalidDiscoveryConfig(str(exc)) from exc


class DiscoveryOrchestrator:
    """Coordinates location, catalog, geocoding and filtering for discovery passes."""

    def __init__(
        self,
        *,
        catalog: ReportCatalog,
        geocoder: GeocodingAdapter,
        location_provider: LocationProvider | None = None,
        settings: Settings | None = None,
        clock: Callable[[], datetime] | None = None,
        geocode_slots: asyncio.Semaphore | None = None,
    ):
        self._settings = settings or get_settings()
        self._catalog = catalog
        self._location_provider = location_provider
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        discovery = self._settings.discovery
        self._builder = ProximityIndexBuilder(
            geocoder,
            concurrency=self._settings.geocoding.concurrency,
            style=MarkerStyle(
                snippet_length=discovery.snippet_length,
                anonymous_title=discovery.anonymous_title,
                missing_description=discovery.missing_description,
            ),
            semaphore=geocode_slots,
        )
        self._generation = 0
        self._state = PassState.IDLE
        self._latest: DiscoveryResult | None = None

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def state(self) -> PassState:
        return self._state

    @property
    def latest(self) -> DiscoveryResult | None:
        """The last published result; an errored pass leaves it unchanged."""
        return self._latest

    def _is_current(self, pass_id: int) -> bool:
        return pass_id == self._generation

    def _enter(self, pass_id: int, state: PassState) -> Loading:
        self._state = state
        logger.debug("Discovery pass %s -> %s", pass_id, state.value)
        return Loading(pass_id=pass_id, state=state)

    def _map_view(self, user: Coordinate | None, config: DiscoveryConfig) -> MapView:
        center = user
        if center is None:
            default = self._settings.discovery.default_center
            center = Coordinate(latitude=default.latitude, longitude=default.longitude)
        return MapView(center=center, zoom=config.initial_zoom)

    async def start_discovery(self, config: DiscoveryConfig) -> AsyncIterator[DiscoveryEvent]:
        """Run one pass, yielding `Loading`, `PartialDiagnostics`, then `Published` or `Errored`.

        If another pass starts before this one finishes, this iterator stops
        without yielding anything further.
        """
        self._generation += 1
        pass_id = self._generation
        t0 = time.monotonic()
        timings_ms: dict[str, int] = {}

        user: Coordinate | None = None
        if config.include_user_location:
            yield self._enter(pass_id, PassState.ACQUIRING_LOCATION)
            user = await acquire_location(
                self._location_provider,
                timeout_seconds=self._settings.location.timeout_seconds,
            )
            timings_ms["location"] = int((time.monotonic() - t0) * 1000)
            if not self._is_current(pass_id):
                return

        yield self._enter(pass_id, PassState.FETCHING_CATALOG)
        t_step = time.monotonic()
        failure: Exception | None = None
        try:
            snapshot = await self._catalog.fetch_active_reports()
        except CatalogUnavailable as exc:
            failure = exc
            logger.error("Discovery pass %s failed: catalog unavailable: %s", pass_id, exc)
        except Exception as exc:
            failure = exc
            logger.exception("Discovery pass %s failed: catalog fetch raised %s", pass_id, type(exc).__name__)
        if failure is not None:
            if not self._is_current(pass_id):
                return
            self._state = PassState.ERRORED
            yield Errored(pass_id=pass_id, reason=f"catalog unavailable: {failure}")
            return
        timings_ms["catalog"] = int((time.monotonic() - t_step) * 1000)
        if not self._is_current(pass_id):
            return

        yield self._enter(pass_id, PassState.BUILDING_INDEX)
        t_step = time.monotonic()
        with record_cache_stats() as cache_stats:
            index = await self._builder.build(snapshot.reports, snapshot.taxonomy, user)
        timings_ms["index"] = int((time.monotonic() - t_step) * 1000)
        if not self._is_current(pass_id):
            logger.debug("Discarding superseded discovery pass %s", pass_id)
            return
        if index.total_outage:
            logger.error(
                "Discovery pass %s failed: geocoder unavailable for all %s reports",
                pass_id,
                index.attempted,
            )
            self._state = PassState.ERRORED
            yield Errored(pass_id=pass_id, reason="geocoder unavailable")
            return

        yield self._enter(pass_id, PassState.FILTERING_SORTING)
        outcome = filter_and_sort(index.markers, config, user)
        diagnostics = DiscoveryDiagnostics(entries=[*index.diagnostics, *outcome.filtered_out])
        if diagnostics.entries:
            yield PartialDiagnostics(pass_id=pass_id, diagnostics=diagnostics)
            if not self._is_current(pass_id):
                return

        timings_ms["total"] = int((time.monotonic() - t0) * 1000)
        result = DiscoveryResult(
            pass_id=pass_id,
            generated_at=self._clock(),
            user_coordinate=user,
            markers=outcome.markers,
            diagnostics=diagnostics,
            map_view=self._map_view(user, config),
            meta={
                "report_count": len(snapshot.reports),
                "geocode_cache": cache_stats.as_dict(),
                "taxonomy_error": snapshot.taxonomy_error,
                "timings_ms": timings_ms,
            },
        )
        self._latest = result
        self._state = PassState.PUBLISHED
        logger.info(
            "Discovery pass %s published %s markers (%s unplaced, %s outside radius)",
            pass_id,
            len(result.markers),
            diagnostics.unplaced_count,
            len(diagnostics.filtered_out),
        )
        yield Published(pass_id=pass_id, result=result)

    async def run(self, config: DiscoveryConfig) -> Published | Errored | None:
        """Drive one pass to completion and return its terminal event.

        Returns None when the pass was superseded before it finished.
        """
        terminal: Published | Errored | None = None
        async for event in self.start_discovery(config):
            if isinstance(event, (Published, Errored)):
                terminal = event
        return terminal


def build_cache(settings: Settings) -> FileCache:
    cache_dir = resolve_project_path(settings.cache.dir)
    return FileCache(
        cache_dir,
        enabled=settings.cache.enabled,
        default_ttl_seconds=settings.cache.default_ttl_seconds,
    )


@dataclass
class DiscoveryStack:
    """Process-wide collaborators shared by every pass.

    One HTTP client, one catalog and one geocoder (with its Nominatim rate
    limiter and cache) plus one semaphore bounding concurrent geocodes, so
    overlapping API requests stay within the provider limits together.
    """

    settings: Settings
    catalog: ReportCatalog
    geocoder: GeocodingAdapter
    geocode_slots: asyncio.Semaphore
    client: httpx.AsyncClient | None = None

    def orchestrator(
        self,
        settings: Settings | None = None,
        *,
        location_provider: LocationProvider | None = None,
    ) -> DiscoveryOrchestrator:
        """A fresh orchestrator for one caller; `settings` may carry per-request overrides."""
        return DiscoveryOrchestrator(
            catalog=self.catalog,
            geocoder=self.geocoder,
            location_provider=location_provider,
            settings=settings or self.settings,
            geocode_slots=self.geocode_slots,
        )

    async def aclose(self) -> None:
        if self.client is not None:
            await self.client.aclose()


def build_stack(settings: Settings) -> DiscoveryStack:
    """Wire the production collaborators (configured catalog + cached Nominatim)."""
    client = httpx.AsyncClient(timeout=settings.app.http_timeout_seconds)
    return DiscoveryStack(
        settings=settings,
        catalog=build_catalog(settings, client=client),
        geocoder=build_geocoder(settings, build_cache(settings), client=client),
        geocode_slots=asyncio.Semaphore(settings.geocoding.concurrency),
        client=client,
    )
