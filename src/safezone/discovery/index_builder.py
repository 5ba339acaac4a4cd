"""
Proximity index builder.

Turns catalog reports into display-ready markers:
1. geocode each report's free-text address (bounded concurrency),
2. measure the distance from the user when their coordinate is known,
3. attach the affair category name from the taxonomy,
4. emit one `ReportMarker` per successfully placed report.

Per-report geocode failures are recorded as diagnostics and the report is
dropped; they never abort the batch. Each task writes only its own result slot,
and slots are read back in catalog order once every task has finished.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field

from safezone.core.geo import distance_km
from safezone.domain.models import (
    AffairTaxonomy,
    Coordinate,
    DiagnosticEntry,
    Failed,
    GeocodeResult,
    IncidentReport,
    ReportMarker,
)
from safezone.geocoding.base import EMPTY_ADDRESS, GeocodingAdapter, normalize_address, resolve_address

logger = logging.getLogger(__name__)

ELLIPSIS = "..."


def snippet(text: str, limit: int) -> str:
    """Trim `text` to at most `limit` characters, breaking on a word when possible."""
    text = " ".join(text.split())
    if len(text) <= limit:
        return text
    cut = text[: max(0, limit - len(ELLIPSIS))]
    if " " in cut:
        cut = cut.rsplit(" ", 1)[0]
    return cut.rstrip(" ,.;:") + ELLIPSIS


@dataclass(frozen=True)
class MarkerStyle:
    """Display defaults applied while building markers."""

    snippet_length: int = 140
    anonymous_title: str = "Anonymous user"
    missing_description: str = "No description"


def build_marker(
    report: IncidentReport,
    coordinate: Coordinate,
    *,
    taxonomy: AffairTaxonomy,
    user: Coordinate | None,
    style: MarkerStyle,
) -> ReportMarker:
    description = report.description or style.missing_description
    return ReportMarker(
        report_id=report.id,
        coordinate=coordinate,
        title=(report.reporter_display_name or "").strip() or style.anonymous_title,
        description_snippet=snippet(description, style.snippet_length),
        distance_km=distance_km(user, coordinate) if user is not None else None,
        category_name=taxonomy.name_for(report.affair_id),
        media_url=report.media_url,
        created_at=report.created_at,
    )


@dataclass(frozen=True)
class IndexBuild:
    """Markers in catalog order plus per-report diagnostics."""

    markers: list[ReportMarker]
    diagnostics: list[DiagnosticEntry] = field(default_factory=list)
    attempted: int = 0
    provider_failures: int = 0

    @property
    def total_outage(self) -> bool:
        """True when every attempted geocode failed because of the provider."""
        return self.attempted > 0 and self.provider_failures == self.attempted


class ProximityIndexBuilder:
    """Geocodes reports with a concurrency limit.

    Pass `semaphore` to share the limit with other builders (e.g. every API
    request of one process); otherwise the builder owns a limit of `concurrency`.
    """

    def __init__(
        self,
        geocoder: GeocodingAdapter,
        *,
        concurrency: int = 4,
        style: MarkerStyle | None = None,
        semaphore: asyncio.Semaphore | None = None,
    ):
        if concurrency < 1:
            raise ValueError("concurrency must be >= 1")
        self._geocoder = geocoder
        self._semaphore = semaphore if semaphore is not None else asyncio.Semaphore(concurrency)
        self._style = style or MarkerStyle()

    async def _geocode(self, report: IncidentReport) -> GeocodeResult:
        if not normalize_address(report.free_text_address):
            return EMPTY_ADDRESS
        async with self._semaphore:
            return await resolve_address(self._geocoder, report.free_text_address)

    async def build(
        self,
        reports: list[IncidentReport],
        taxonomy: AffairTaxonomy,
        user: Coordinate | None,
    ) -> IndexBuild:
        results = await asyncio.gather(*(self._geocode(r) for r in reports))

        markers: list[ReportMarker] = []
        diagnostics: list[DiagnosticEntry] = []
        attempted = 0
        provider_failures = 0
        for report, result in zip(reports, results):
            if isinstance(result, Failed):
                if result.failure == "empty_address":
                    logger.debug("Report %s has no address; skipping", report.id)
                    diagnostics.append(
                        DiagnosticEntry(report_id=report.id, kind="ADDRESS_EMPTY", reason=result.reason)
                    )
                    continue
                attempted += 1
                if result.failure == "provider_error":
                    provider_failures += 1
                logger.warning("Geocoding failed for report %s: %s", report.id, result.reason)
                diagnostics.append(
                    DiagnosticEntry(report_id=report.id, kind="GEOCODE_FAILED", reason=result.reason)
                )
                continue

            attempted += 1
            markers.append(
                build_marker(report, result.coordinate, taxonomy=taxonomy, user=user, style=self._style)
            )

        return IndexBuild(
            markers=markers,
            diagnostics=diagnostics,
            attempted=attempted,
            provider_failures=provider_failures,
        )
