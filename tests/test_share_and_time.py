from datetime import datetime, timedelta, timezone

from fakes import USER, north_of
from safezone.core.time import format_display, format_relative, parse_datetime
from safezone.discovery.share import share_text
from safezone.domain.models import ReportMarker

TZ = "America/Santo_Domingo"
CREATED = datetime(2026, 10, 18, 14, 30, tzinfo=timezone.utc)


def _marker(**extra) -> ReportMarker:
    fields = {
        "report_id": "R1",
        "coordinate": north_of(USER, 2.0),
        "title": "Maria",
        "description_snippet": "Two men on a motorbike snatched a phone",
        "distance_km": 2.04,
        "category_name": "Robbery",
        "created_at": CREATED,
    }
    fields.update(extra)
    return ReportMarker(**fields)


def test_parse_datetime_handles_zulu_and_naive_values():
    assert parse_datetime("2026-10-18T14:30:00Z", TZ) == CREATED
    naive = parse_datetime("2026-10-18 10:30:00", TZ)
    assert naive.utcoffset() == timedelta(hours=-4)
    assert naive == CREATED


def test_format_relative_buckets():
    assert format_relative(CREATED, now=CREATED + timedelta(seconds=30)) == "just now"
    assert format_relative(CREATED, now=CREATED + timedelta(minutes=5)) == "5 min ago"
    assert format_relative(CREATED, now=CREATED + timedelta(hours=3)) == "3 h ago"
    assert format_relative(CREATED, now=CREATED + timedelta(days=1, hours=2)) == "yesterday"
    assert format_relative(CREATED, now=CREATED + timedelta(days=4)) == "4 days ago"
    assert format_relative(CREATED, now=CREATED + timedelta(days=30)) == "18/10/26"


def test_format_display_uses_local_day():
    same_day = datetime(2026, 10, 18, 20, 0, tzinfo=timezone.utc)
    next_day = datetime(2026, 10, 19, 9, 0, tzinfo=timezone.utc)
    assert format_display(CREATED, now=same_day, timezone=TZ) == "Today at 10:30"
    assert format_display(CREATED, now=next_day, timezone=TZ) == "18 Oct 2026, 10:30"


def test_share_text_lists_incident_details():
    now = datetime(2026, 10, 19, 9, 0, tzinfo=timezone.utc)
    text = share_text(_marker(), now=now, timezone=TZ)

    assert "Type: Robbery" in text
    assert "   Two men on a motorbike snatched a phone" in text
    assert "Date: 18 Oct 2026, 10:30" in text
    assert "Distance: 2.0 km from your location" in text
    assert text.endswith("#SafeZone\n")


def test_share_text_omits_unknown_category_and_distance():
    now = datetime(2026, 10, 19, 9, 0, tzinfo=timezone.utc)
    text = share_text(_marker(category_name=None, distance_km=None), now=now, timezone=TZ)
    assert "Type:" not in text
    assert "Distance:" not in text
