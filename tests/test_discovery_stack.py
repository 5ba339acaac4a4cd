import asyncio

import httpx
import pytest

from fakes import USER, FakeCatalog, make_report, north_of
from safezone.config.settings import get_settings
from safezone.core.rate_limit import AsyncTokenBucketRateLimiter
from safezone.discovery.orchestrator import DiscoveryStack, build_stack
from safezone.domain.models import DiscoveryConfig, Published, Resolved
from safezone.geocoding.nominatim import NominatimGeocoder
from safezone.location.provider import StaticLocationProvider


class _FakeTime:
    def __init__(self):
        self.now = 0.0
        self.sleeps: list[float] = []

    def clock(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def _nominatim_hit(request):
    return httpx.Response(200, json=[{"lat": "18.5", "lon": "-69.9"}])


@pytest.mark.asyncio
async def test_overlapping_passes_share_one_provider_rate_limit():
    fake = _FakeTime()
    settings = get_settings()
    limiter = AsyncTokenBucketRateLimiter(60, burst=1, clock=fake.clock, sleep=fake.sleep)
    client = httpx.AsyncClient(transport=httpx.MockTransport(_nominatim_hit))
    stack = DiscoveryStack(
        settings=settings,
        catalog=FakeCatalog([make_report("R1", "Calle El Conde 1")]),
        geocoder=NominatimGeocoder(settings, client=client, rate_limiter=limiter),
        geocode_slots=asyncio.Semaphore(4),
        client=client,
    )
    first = stack.orchestrator(location_provider=StaticLocationProvider(USER))
    second = stack.orchestrator(location_provider=StaticLocationProvider(USER))

    results = await asyncio.gather(
        first.run(DiscoveryConfig(show_all_reports=True)),
        second.run(DiscoveryConfig(show_all_reports=True)),
    )
    await stack.aclose()

    assert all(isinstance(r, Published) for r in results)
    assert fake.sleeps == [pytest.approx(1.0)]


@pytest.mark.asyncio
async def test_overlapping_passes_share_one_concurrency_limit():
    active = 0
    peak = 0

    class Slow:
        async def resolve(self, address):
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            await asyncio.sleep(0.01)
            active -= 1
            return Resolved(coordinate=north_of(USER, 1.0))

    reports = [make_report(f"R{i}", f"Street {i}") for i in range(3)]
    stack = DiscoveryStack(
        settings=get_settings(),
        catalog=FakeCatalog(reports),
        geocoder=Slow(),
        geocode_slots=asyncio.Semaphore(2),
    )
    passes = [stack.orchestrator(location_provider=StaticLocationProvider(USER)) for _ in range(3)]
    results = await asyncio.gather(*(p.run(DiscoveryConfig()) for p in passes))

    assert all(len(r.result.markers) == 3 for r in results)
    assert peak == 2


@pytest.mark.asyncio
async def test_orchestrators_take_per_request_settings(two_reports):
    reports, geocoder = two_reports
    base = get_settings()
    stack = DiscoveryStack(
        settings=base, catalog=FakeCatalog(reports), geocoder=geocoder, geocode_slots=asyncio.Semaphore(1)
    )
    tuned = base.model_copy(
        update={"discovery": base.discovery.model_copy(update={"anonymous_title": "Neighbour"})}
    )

    assert stack.orchestrator().settings is base
    assert stack.orchestrator(tuned).settings is tuned


@pytest.mark.asyncio
async def test_build_stack_uses_one_http_client(tmp_path):
    base = get_settings()
    settings = base.model_copy(update={"cache": base.cache.model_copy(update={"dir": str(tmp_path)})})
    stack = build_stack(settings)
    try:
        assert isinstance(stack.client, httpx.AsyncClient)
        assert stack.settings is settings
    finally:
        await stack.aclose()
    assert stack.client.is_closed
