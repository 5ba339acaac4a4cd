"""
Time parsing, timezone normalization and display formatting.

Report timestamps arrive from the backend in a few shapes (ISO-8601 with or without
offset, space-separated). Everything is normalized to timezone-aware datetimes so
"today" and relative ages are computed in the configured app timezone.
"""

from __future__ import annotations

from datetime import datetime
from zoneinfo import ZoneInfo


def ensure_tz(dt: datetime, timezone: str) -> datetime:
    """Ensure `dt` has tzinfo; attach `timezone` if naive."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=ZoneInfo(timezone))
    return dt


def parse_datetime(value: str, timezone: str) -> datetime:
    """Parse ISO-8601 datetime string and ensure tzinfo is present.

    Notes:
    - Accepts a trailing `Z` (UTC) and converts it to `+00:00` for `fromisoformat`.
    - If the parsed value is naive, the provided `timezone` is attached.
    """
    value = value.strip()
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    dt = datetime.fromisoformat(value)
    return ensure_tz(dt, timezone)


def format_relative(dt: datetime, *, now: datetime) -> str:
    """Short relative age ("just now", "5 min ago", "yesterday"), falling back to a date."""
    seconds = (now - dt).total_seconds()
    if seconds < 60:
        return "just now"
    if seconds < 3600:
        return f"{int(seconds // 60)} min ago"
    if seconds < 86400:
        return f"{int(seconds // 3600)} h ago"
    if seconds < 7 * 86400:
        days = int(seconds // 86400)
        return "yesterday" if days == 1 else f"{days} days ago"
    return dt.strftime("%d/%m/%y")


def format_display(dt: datetime, *, now: datetime, timezone: str) -> str:
    """Absolute timestamp for detail views: "Today at HH:MM" or "DD Mon YYYY, HH:MM"."""
    tz = ZoneInfo(timezone)
    local = ensure_tz(dt, timezone).astimezone(tz)
    local_now = ensure_tz(now, timezone).astimezone(tz)
    if local.date() == local_now.date():
        return f"Today at {local:%H:%M}"
    return f"{local:%d %b %Y, %H:%M}"
