"""
Tests for rate_limiter.py - per-key fixed-window counting.
"""
import pytest

from opportunity_research.services.rate_limiter import FixedWindowRateLimiter


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def limiter(clock):
    return FixedWindowRateLimiter(max_requests=10, window_seconds=60, clock=clock)


class TestFixedWindowRateLimiter:
    """Tests for check / retry_after / purge behaviour."""

    def test_eleventh_request_in_window_is_rejected(self, limiter):
        """Ten requests pass and the eleventh is refused."""
        results = [limiter.check("203.0.113.7") for _ in range(11)]
        assert results == [True] * 10 + [False]

    def test_rejected_requests_do_not_extend_the_window(self, limiter, clock):
        """Hammering a full window does not push its reset back."""
        for _ in range(15):
            limiter.check("a")
        clock.advance(60)
        assert limiter.check("a") is True

    def test_window_resets_after_window_seconds(self, limiter, clock):
        """The key is allowed again exactly when its window ends."""
        for _ in range(10):
            assert limiter.check("a")
        clock.advance(59)
        assert limiter.check("a") is False
        clock.advance(1)
        assert limiter.check("a") is True

    def test_window_is_fixed_from_first_request(self, limiter, clock):
        """The window starts at the key's first request, not its latest."""
        limiter.check("a")
        clock.advance(50)
        for _ in range(9):
            assert limiter.check("a")
        assert limiter.check("a") is False
        clock.advance(10)
        assert limiter.check("a") is True

    def test_keys_are_independent(self, limiter):
        """One exhausted key does not affect another."""
        for _ in range(10):
            limiter.check("a")
        assert limiter.check("a") is False
        assert limiter.check("b") is True

    def test_retry_after(self, limiter, clock):
        """retry_after reports the seconds left in the key's window."""
        assert limiter.retry_after("a") == 0.0
        limiter.check("a")
        clock.advance(15)
        assert limiter.retry_after("a") == pytest.approx(45)
        clock.advance(100)
        assert limiter.retry_after("a") == 0.0

    def test_expired_windows_are_purged(self, limiter, clock):
        """Finished windows are dropped from the table."""
        for key in ("a", "b", "c"):
            limiter.check(key)
        assert len(limiter) == 3
        clock.advance(61)
        limiter.check("d")
        assert len(limiter) == 1

    @pytest.mark.parametrize(
        "max_requests, window_seconds",
        [(0, 60), (10, 0), (10, -1)],
    )
    def test_rejects_invalid_configuration(self, max_requests, window_seconds):
        """Non-positive limits or windows are refused at construction."""
        with pytest.raises(ValueError):
            FixedWindowRateLimiter(max_requests=max_requests, window_seconds=window_seconds)
