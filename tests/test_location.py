import asyncio

import pytest

from fakes import USER
from safezone.location.provider import StaticLocationProvider, acquire_location


class _Raising:
    def __init__(self, exc: Exception):
        self.exc = exc

    async def last_known_coordinate(self):
        raise self.exc


class _Hanging:
    async def last_known_coordinate(self):
        await asyncio.sleep(10)
        return USER


@pytest.mark.asyncio
async def test_static_provider_returns_its_coordinate():
    assert await acquire_location(StaticLocationProvider(USER), timeout_seconds=1) == USER
    assert await acquire_location(StaticLocationProvider(None), timeout_seconds=1) is None


@pytest.mark.asyncio
async def test_missing_provider_means_unknown_location():
    assert await acquire_location(None, timeout_seconds=1) is None


@pytest.mark.asyncio
async def test_timeout_means_unknown_location():
    assert await acquire_location(_Hanging(), timeout_seconds=0.01) is None


@pytest.mark.asyncio
@pytest.mark.parametrize("exc", [PermissionError("denied"), RuntimeError("gps off")])
async def test_provider_errors_mean_unknown_location(exc):
    assert await acquire_location(_Raising(exc), timeout_seconds=1) is None
