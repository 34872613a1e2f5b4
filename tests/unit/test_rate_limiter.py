"""Tests for the provider rate limiter."""

from unittest.mock import patch

from docfactory.utils.rate_limiter import RateLimiter, get_pexels_limiter


class FakeClock:
    """Deterministic stand-in for the time module."""

    def __init__(self, now=100.0):
        self.now = now
        self.sleeps = []

    def time(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


def test_courtesy_delay_spaces_calls():
    """Back-to-back calls are spaced by min_interval."""
    clock = FakeClock()
    limiter = RateLimiter(max_calls=100, time_window=60.0, min_interval=0.5)

    with patch("docfactory.utils.rate_limiter.time", clock):
        assert limiter.wait_if_needed("pexels") == 0.0
        assert limiter.wait_if_needed("pexels") == 0.5

    assert clock.sleeps == [0.5]


def test_window_limit_waits_for_oldest_call():
    """A full window blocks until its oldest call expires."""
    clock = FakeClock()
    limiter = RateLimiter(max_calls=2, time_window=10.0)

    with patch("docfactory.utils.rate_limiter.time", clock):
        limiter.wait_if_needed()
        limiter.wait_if_needed()
        waited = limiter.wait_if_needed()

    assert waited == 10.0
    assert clock.now == 110.0
    assert limiter.calls["default"] == [110.0]


def test_endpoints_are_independent():
    clock = FakeClock()
    limiter = RateLimiter(max_calls=1, time_window=10.0)

    with patch("docfactory.utils.rate_limiter.time", clock):
        limiter.wait_if_needed("search")
        assert limiter.wait_if_needed("download") == 0.0

    assert clock.sleeps == []


def test_shared_pexels_limiter():
    """Every job shares one process-wide Pexels limiter."""
    assert get_pexels_limiter() is get_pexels_limiter()
