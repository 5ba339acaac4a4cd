"""Report catalog sources."""

from __future__ import annotations

import httpx

from safezone.catalog.base import CatalogSnapshot, ReportCatalog
from safezone.catalog.loader import FileReportCatalog
from safezone.catalog.rest import RestReportCatalog
from safezone.config.settings import Settings


def build_catalog(settings: Settings, *, client: httpx.AsyncClient | None = None) -> ReportCatalog:
    """Return the catalog configured by `settings.catalog.source`."""
    if settings.catalog.source == "file":
        return FileReportCatalog(settings)
    return RestReportCatalog(settings, client=client)


__all__ = ["CatalogSnapshot", "FileReportCatalog", "ReportCatalog", "RestReportCatalog", "build_catalog"]
