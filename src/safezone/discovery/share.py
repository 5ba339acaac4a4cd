"""Plain-text summary of a marker for the "share report" action."""

from __future__ import annotations

from datetime import datetime

from safezone.core.time import format_display
from safezone.domain.models import ReportMarker

RULE = "=" * 24


def share_text(marker: ReportMarker, *, now: datetime, timezone: str) -> str:
    lines = [RULE, "SAFETY ALERT - SAFEZONE", RULE, "", "INCIDENT DETAILS:", ""]
    if marker.category_name:
        lines.append(f"Type: {marker.category_name}")
    lines.append("Description:")
    lines.append(f"   {marker.description_snippet}")
    lines.append("")
    lines.append(f"Date: {format_display(marker.created_at, now=now, timezone=timezone)}")
    if marker.distance_km is not None and marker.distance_km > 0:
        lines.append(f"Distance: {marker.distance_km:.1f} km from your location")
    lines.extend(["", RULE, "Stay safe and alert", "#SafeZone"])
    return "\n".join(lines) + "\n"
