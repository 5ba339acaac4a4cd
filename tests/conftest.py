import pytest

from fakes import USER, FakeGeocoder, make_report, north_of


@pytest.fixture
def two_reports():
    reports = [make_report("R1", "Calle El Conde 1"), make_report("R2", "Carretera Duarte km 15")]
    geocoder = FakeGeocoder(
        {"Calle El Conde 1": north_of(USER, 2.0), "Carretera Duarte km 15": north_of(USER, 15.0)}
    )
    return reports, geocoder
