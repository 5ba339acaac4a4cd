import pytest

from safezone.core.rate_limit import AsyncTokenBucketRateLimiter


class _FakeTime:
    def __init__(self):
        self.now = 0.0
        self.sleeps: list[float] = []

    def clock(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.mark.asyncio
async def test_requests_are_spaced_after_the_burst():
    fake = _FakeTime()
    limiter = AsyncTokenBucketRateLimiter(60, burst=1, clock=fake.clock, sleep=fake.sleep)

    await limiter.acquire()
    await limiter.acquire()
    await limiter.acquire()

    assert fake.sleeps == [pytest.approx(1.0), pytest.approx(1.0)]


@pytest.mark.asyncio
async def test_idle_time_refills_tokens():
    fake = _FakeTime()
    limiter = AsyncTokenBucketRateLimiter(60, burst=2, clock=fake.clock, sleep=fake.sleep)

    await limiter.acquire()
    await limiter.acquire()
    fake.now += 5
    await limiter.acquire()
    await limiter.acquire()

    assert fake.sleeps == []


def test_rate_must_be_positive():
    with pytest.raises(ValueError):
        AsyncTokenBucketRateLimiter(0)
