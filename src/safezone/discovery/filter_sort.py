"""
Marker inclusion and ordering policy.

Inclusion: a marker is kept when `show_all_reports` is set, when the user location
is unknown (no distance-based exclusion is possible), or when it lies within
`max_distance_km` (inclusive).

Ordering: nearest first, ties broken by report id, when the user location is known
and `show_all_reports` is off; otherwise catalog order is preserved.
"""

from __future__ import annotations

from dataclasses import dataclass

from safezone.domain.models import Coordinate, DiagnosticEntry, DiscoveryConfig, ReportMarker


@dataclass(frozen=True)
class FilterOutcome:
    markers: list[ReportMarker]
    filtered_out: list[DiagnosticEntry]


def is_included(marker: ReportMarker, config: DiscoveryConfig, user: Coordinate | None) -> bool:
    if config.show_all_reports or user is None or marker.distance_km is None:
        return True
    return marker.distance_km <= config.max_distance_km


def filter_and_sort(
    markers: list[ReportMarker],
    config: DiscoveryConfig,
    user: Coordinate | None,
) -> FilterOutcome:
    """Apply the inclusion and ordering policy to markers given in catalog order."""
    kept: list[ReportMarker] = []
    filtered_out: list[DiagnosticEntry] = []
    for marker in markers:
        if is_included(marker, config, user):
            kept.append(marker)
            continue
        filtered_out.append(
            DiagnosticEntry(
                report_id=marker.report_id,
                kind="FILTERED_OUT",
                reason=f"outside {config.max_distance_km:g} km radius",
                distance_km=marker.distance_km,
            )
        )

    if user is not None and not config.show_all_reports:
        kept.sort(key=lambda m: (m.distance_km if m.distance_km is not None else float("inf"), m.report_id))
    return FilterOutcome(markers=kept, filtered_out=filtered_out)
