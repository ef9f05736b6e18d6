"""Unit tests for the sliding-window rate limiter"""

from payout_gateway.domain.rate_limit import SlidingWindowRateLimiter


class _Clock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def test_reserve_until_full():
    clock = _Clock()
    limiter = SlidingWindowRateLimiter(limit=3, window_seconds=60, clock=clock)

    assert all(limiter.reserve("player") is not None for _ in range(3))
    assert limiter.reserve("player") is None
    assert limiter.count("player") == 3


def test_keys_are_independent():
    clock = _Clock()
    limiter = SlidingWindowRateLimiter(limit=1, window_seconds=60, clock=clock)

    assert limiter.reserve("alice") is not None
    assert limiter.reserve("bob") is not None
    assert limiter.reserve("alice") is None


def test_old_hits_are_pruned_lazily():
    """Test hits leave the window once it slides past them"""
    clock = _Clock()
    limiter = SlidingWindowRateLimiter(limit=2, window_seconds=60, clock=clock)
    limiter.reserve("player")
    clock.now += 30
    limiter.reserve("player")

    clock.now += 30  # first hit is exactly window_seconds old
    assert limiter.count("player") == 1
    assert limiter.reserve("player") is not None
    assert limiter.reserve("player") is None


def test_retry_after_counts_down_from_oldest_hit():
    clock = _Clock()
    limiter = SlidingWindowRateLimiter(limit=2, window_seconds=3600, clock=clock)
    limiter.reserve("player")
    clock.now += 100
    limiter.reserve("player")

    assert limiter.retry_after("player") == 3500
    clock.now += 3499.5
    assert limiter.retry_after("player") == 1


def test_retry_after_is_zero_with_free_slots():
    limiter = SlidingWindowRateLimiter(limit=2, window_seconds=60, clock=_Clock())
    limiter.reserve("player")
    assert limiter.retry_after("player") == 0


def test_release_frees_the_slot():
    clock = _Clock()
    limiter = SlidingWindowRateLimiter(limit=1, window_seconds=60, clock=clock)
    slot = limiter.reserve("player")

    limiter.release("player", slot)

    assert limiter.count("player") == 0
    assert limiter.reserve("player") is not None


def test_release_unknown_key_is_noop():
    limiter = SlidingWindowRateLimiter(limit=1, window_seconds=60, clock=_Clock())
    limiter.release("nobody", 1.0)
    assert limiter.count("nobody") == 0


def test_zero_limit_rejects_without_history():
    limiter = SlidingWindowRateLimiter(limit=0, window_seconds=3600, clock=_Clock())

    assert limiter.is_full("player") is True
    assert limiter.reserve("player") is None
    assert limiter.retry_after("player") == 3600
