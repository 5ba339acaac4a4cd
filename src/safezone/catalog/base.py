"""
Report catalog contract and backend row parsing.

The catalog owns the canonical reports and affair taxonomy; discovery only reads a
snapshot of them once per pass. Failing to fetch reports is fatal to the pass
(`CatalogUnavailable`); failing to fetch the taxonomy is not, markers just lose
their category labels.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Protocol

from safezone.core.time import parse_datetime
from safezone.domain.models import AffairTaxonomy, IncidentReport

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CatalogSnapshot:
    """Reports in catalog order plus the taxonomy (or why it is missing)."""

    reports: list[IncidentReport]
    taxonomy: AffairTaxonomy
    taxonomy_error: str | None = None


class ReportCatalog(Protocol):
    async def fetch_active_reports(self) -> CatalogSnapshot: ...


def _clean_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def report_from_row(
    row: dict[str, Any],
    *,
    timezone: str,
    display_names: dict[str, str] | None = None,
) -> IncidentReport:
    """Build an `IncidentReport` from a backend `reports` row.

    The reporter display name prefers the reporter's profile name, then the name
    stored on the report; anonymous reports never expose either.
    """
    created_raw = row.get("created_at")
    if not created_raw:
        raise ValueError("report row is missing created_at")

    display_name: str | None = None
    if not row.get("is_anonymous"):
        user_id = _clean_str(row.get("user_id"))
        if user_id and display_names:
            display_name = _clean_str(display_names.get(user_id))
        display_name = display_name or _clean_str(row.get("user_name"))

    affair_id = row.get("id_affair")
    status_id = row.get("id_reporting_status")
    return IncidentReport(
        id=str(row["id"]),
        description=_clean_str(row.get("description")),
        free_text_address=row.get("report_location"),
        affair_id=int(affair_id) if affair_id is not None else None,
        created_at=parse_datetime(str(created_raw), timezone),
        media_url=_clean_str(row.get("image_url")),
        reporter_display_name=display_name,
        status_id=int(status_id) if status_id is not None else None,
    )


def reports_from_rows(
    rows: Iterable[Any],
    *,
    timezone: str,
    active_status_ids: Iterable[int] | None = None,
    display_names: dict[str, str] | None = None,
) -> list[IncidentReport]:
    """Parse rows in order, keeping active reports and skipping malformed rows."""
    active = set(active_status_ids) if active_status_ids is not None else None
    out: list[IncidentReport] = []
    for row in rows:
        if not isinstance(row, dict):
            continue
        try:
            report = report_from_row(row, timezone=timezone, display_names=display_names)
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning("Skipping malformed report row id=%s: %s", row.get("id"), exc)
            continue
        if active is not None and report.status_id not in active:
            continue
        out.append(report)
    return out


def taxonomy_from_rows(rows: Iterable[Any]) -> AffairTaxonomy:
    """Build the affair lookup; rows without a usable name are left out."""
    names: dict[int, str] = {}
    for row in rows:
        if not isinstance(row, dict) or row.get("id") is None:
            continue
        name = _clean_str(row.get("name")) or _clean_str(row.get("affair_name"))
        if name:
            names[int(row["id"])] = name
    return AffairTaxonomy(names=names)
