import pytest

from notion_gateway.infrastructure.resilience.rate_limiter import RateLimiter


class FakeClock:
    """Manual monotonic clock; sleeping advances it."""

    def __init__(self):
        self.now = 100.0
        self.sleeps = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.mark.asyncio
async def test_allows_requests_within_budget(clock):
    limiter = RateLimiter(max_requests=3, time_window=1.0, clock=clock, sleep=clock.sleep)
    for _ in range(3):
        assert await limiter.acquire() == 0.0
    assert clock.sleeps == []


@pytest.mark.asyncio
async def test_waits_for_the_oldest_request_to_expire(clock):
    limiter = RateLimiter(max_requests=2, time_window=1.0, clock=clock, sleep=clock.sleep)
    await limiter.acquire()
    clock.now += 0.25
    await limiter.acquire()

    assert await limiter.get_wait_time() == pytest.approx(0.75)
    waited = await limiter.acquire()

    assert waited == pytest.approx(0.75)
    assert clock.sleeps == [pytest.approx(0.75)]
    assert len(limiter.timestamps) == 2


@pytest.mark.asyncio
async def test_window_slides(clock):
    limiter = RateLimiter(max_requests=1, time_window=1.0, clock=clock, sleep=clock.sleep)
    await limiter.acquire()
    clock.now += 1.0
    assert await limiter.get_wait_time() == 0.0


def test_rejects_zero_budget():
    with pytest.raises(ValueError):
        RateLimiter(max_requests=0)
