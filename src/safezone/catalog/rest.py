"""
PostgREST-backed report catalog (the managed backend's REST interface).

Reads three tables:
- `reports` (filtered server-side to the active reporting statuses),
- `affair` (incident categories),
- `profiles` (reporter display names, best-effort).
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from safezone.catalog.base import CatalogSnapshot, reports_from_rows, taxonomy_from_rows
from safezone.config.settings import Settings
from safezone.core.http import get_json
from safezone.domain.errors import CatalogUnavailable
from safezone.domain.models import AffairTaxonomy

logger = logging.getLogger(__name__)


def _in_filter(values: list[Any]) -> str:
    return "in.(" + ",".join(str(v) for v in values) + ")"


class RestReportCatalog:
    """Fetches the active report snapshot over HTTP."""

    def __init__(self, settings: Settings, *, client: httpx.AsyncClient | None = None):
        self._settings = settings
        self._client = client

    def _require_base_url(self) -> str:
        base_url = self._settings.catalog.base_url
        if not base_url:
            raise CatalogUnavailable(
                "Catalog backend is not configured. Set SAFEZONE_CATALOG_URL."
            )
        return base_url.rstrip("/")

    def _headers(self) -> dict[str, str]:
        api_key = self._settings.catalog.api_key
        if not api_key:
            return {}
        return {"apikey": api_key, "Authorization": f"Bearer {api_key}"}

    async def _select(self, table: str, params: dict[str, Any]) -> Any:
        url = f"{self._require_base_url()}/rest/v1/{table}"
        return await get_json(
            url,
            params={"select": "*", **params},
            headers=self._headers(),
            timeout_seconds=self._settings.app.http_timeout_seconds,
            client=self._client,
        )

    async def _fetch_display_names(self, user_ids: list[str]) -> dict[str, str]:
        if not user_ids:
            return {}
        try:
            rows = await self._select("profiles", {"id": _in_filter(user_ids)})
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Reporter profiles unavailable; using report names: %s", exc)
            return {}
        if not isinstance(rows, list):
            return {}
        return {
            str(r["id"]): str(r["name"])
            for r in rows
            if isinstance(r, dict) and r.get("id") is not None and r.get("name")
        }

    async def fetch_active_reports(self) -> CatalogSnapshot:
        catalog = self._settings.catalog
        params: dict[str, Any] = {"order": "created_at.desc"}
        if catalog.active_status_ids:
            params["id_reporting_status"] = _in_filter(catalog.active_status_ids)

        try:
            rows = await self._select(catalog.reports_table, params)
        except (httpx.HTTPError, ValueError) as exc:
            raise CatalogUnavailable(f"failed to fetch reports: {exc}") from exc
        if not isinstance(rows, list):
            raise CatalogUnavailable("reports endpoint returned a non-list payload")

        taxonomy = AffairTaxonomy()
        taxonomy_error: str | None = None
        try:
            affair_rows = await self._select(catalog.affairs_table, {})
            if not isinstance(affair_rows, list):
                raise ValueError("affairs endpoint returned a non-list payload")
            taxonomy = taxonomy_from_rows(affair_rows)
        except (httpx.HTTPError, ValueError, TypeError) as exc:
            taxonomy_error = f"failed to fetch affairs: {exc}"
            logger.warning("Affair taxonomy unavailable: %s", exc)

        user_ids = sorted({str(r["user_id"]) for r in rows if isinstance(r, dict) and r.get("user_id")})
        display_names = await self._fetch_display_names(user_ids)

        reports = reports_from_rows(
            rows,
            timezone=self._settings.app.timezone,
            active_status_ids=catalog.active_status_ids or None,
            display_names=display_names,
        )
        logger.info(
            "Fetched %s active reports (%s rows) and %s affairs",
            len(reports),
            len(rows),
            len(taxonomy.names),
        )
        return CatalogSnapshot(reports=reports, taxonomy=taxonomy, taxonomy_error=taxonomy_error)
