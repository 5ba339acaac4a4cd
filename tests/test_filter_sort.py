from datetime import datetime, timezone

from safezone.discovery.filter_sort import filter_and_sort
from safezone.domain.models import Coordinate, DiscoveryConfig, ReportMarker

USER = Coordinate(latitude=18.4861, longitude=-69.9312)
CREATED = datetime(2026, 10, 1, 12, 0, tzinfo=timezone.utc)


def _marker(report_id: str, distance: float | None) -> ReportMarker:
    return ReportMarker(
        report_id=report_id,
        coordinate=Coordinate(latitude=18.5, longitude=-69.9),
        title="t",
        description_snippet="d",
        distance_km=distance,
        created_at=CREATED,
    )


def test_radius_boundary_is_inclusive():
    config = DiscoveryConfig(max_distance_km=10.0)
    out = filter_and_sort([_marker("edge", 10.0), _marker("out", 10.0001)], config, USER)
    assert [m.report_id for m in out.markers] == ["edge"]
    assert [d.report_id for d in out.filtered_out] == ["out"]
    assert out.filtered_out[0].kind == "FILTERED_OUT"
    assert out.filtered_out[0].distance_km == 10.0001


def test_sorted_by_distance_with_report_id_tie_break():
    config = DiscoveryConfig(max_distance_km=50)
    markers = [_marker("c", 3.0), _marker("b", 1.0), _marker("a", 3.0)]
    out = filter_and_sort(markers, config, USER)
    assert [m.report_id for m in out.markers] == ["b", "a", "c"]


def test_show_all_keeps_catalog_order_and_ignores_radius():
    config = DiscoveryConfig(show_all_reports=True, max_distance_km=1)
    markers = [_marker("far", 99.0), _marker("near", 0.5)]
    out = filter_and_sort(markers, config, USER)
    assert [m.report_id for m in out.markers] == ["far", "near"]
    assert out.filtered_out == []


def test_unknown_location_includes_everything_in_catalog_order():
    config = DiscoveryConfig(max_distance_km=1)
    markers = [_marker("x", None), _marker("y", None)]
    out = filter_and_sort(markers, config, None)
    assert [m.report_id for m in out.markers] == ["x", "y"]
    assert out.filtered_out == []
