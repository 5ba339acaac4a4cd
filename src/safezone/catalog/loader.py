"""
JSON file report catalog.

Useful for demos and offline runs. The file mirrors the backend tables:

    {"reports": [<reports rows>], "affairs": [<affair rows>], "profiles": [<profile rows>]}
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from safezone.catalog.base import CatalogSnapshot, reports_from_rows, taxonomy_from_rows
from safezone.config.settings import Settings
from safezone.core.env import resolve_project_path
from safezone.domain.errors import CatalogUnavailable
from safezone.domain.models import AffairTaxonomy

logger = logging.getLogger(__name__)


def load_catalog_payload(path: str | Path) -> dict[str, Any]:
    """Read the catalog file and return its mapping root."""
    resolved = resolve_project_path(path)
    try:
        payload = json.loads(resolved.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise CatalogUnavailable(f"failed to read catalog file {resolved}: {exc}") from exc
    if not isinstance(payload, dict) or not isinstance(payload.get("reports"), list):
        raise CatalogUnavailable(f"catalog file {resolved} has no 'reports' list")
    return payload


class FileReportCatalog:
    def __init__(self, settings: Settings, *, path: str | Path | None = None):
        self._settings = settings
        self._path = path or settings.catalog.path

    async def fetch_active_reports(self) -> CatalogSnapshot:
        payload = load_catalog_payload(self._path)
        display_names = {
            str(p["id"]): str(p["name"])
            for p in payload.get("profiles") or []
            if isinstance(p, dict) and p.get("id") is not None and p.get("name")
        }
        reports = reports_from_rows(
            payload["reports"],
            timezone=self._settings.app.timezone,
            active_status_ids=self._settings.catalog.active_status_ids or None,
            display_names=display_names,
        )
        taxonomy = AffairTaxonomy()
        taxonomy_error: str | None = None
        try:
            taxonomy = taxonomy_from_rows(payload.get("affairs") or [])
        except (TypeError, ValueError) as exc:
            taxonomy_error = f"invalid affairs in catalog file: {exc}"
            logger.warning("Affair taxonomy unavailable: %s", exc)
        return CatalogSnapshot(reports=reports, taxonomy=taxonomy, taxonomy_error=taxonomy_error)
