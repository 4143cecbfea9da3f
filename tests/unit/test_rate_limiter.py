import pytest

from moodplaylist.rate_limiter import RateLimiter


class FakeClock:
    def __init__(self):
        self.now = 100.0
        self.sleeps = []

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


def test_first_call_does_not_wait():
    clock = FakeClock()
    limiter = RateLimiter(calls_per_second=2, clock=clock, sleep=clock.sleep)

    limiter.wait()

    assert clock.sleeps == []


def test_spaces_consecutive_calls():
    clock = FakeClock()
    limiter = RateLimiter(calls_per_second=2, clock=clock, sleep=clock.sleep)

    limiter.wait()
    clock.now += 0.1
    limiter.wait()

    assert clock.sleeps == [pytest.approx(0.4)]
    stats = limiter.get_stats()
    assert stats["calls"] == 2
    assert stats["total_waits"] == 1


def test_no_wait_after_interval():
    clock = FakeClock()
    limiter = RateLimiter(calls_per_second=10, clock=clock, sleep=clock.sleep)

    limiter.wait()
    clock.now += 1
    limiter.wait()

    assert clock.sleeps == []


@pytest.mark.parametrize("rate", [0, -1])
def test_rejects_non_positive_rate(rate):
    with pytest.raises(ValueError):
        RateLimiter(calls_per_second=rate)
