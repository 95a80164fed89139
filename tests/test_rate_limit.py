from rate_limit import FixedWindowRateLimiter


def test_rejects_request_over_limit(rate_limiter):
    assert all(rate_limiter.check("ip:1.2.3.4") for _ in range(3))
    assert rate_limiter.check("ip:1.2.3.4") is False


def test_window_rearms_after_expiry(rate_limiter, monotonic):
    for _ in range(3):
        rate_limiter.check("ip:1.2.3.4")
    assert rate_limiter.check("ip:1.2.3.4") is False

    monotonic.advance(59.9)
    assert rate_limiter.check("ip:1.2.3.4") is False

    monotonic.advance(0.1)
    assert rate_limiter.check("ip:1.2.3.4") is True


def test_window_is_fixed_not_sliding(monotonic):
    limiter = FixedWindowRateLimiter(limit=2, window=60, clock=monotonic)
    assert limiter.check("k")
    monotonic.advance(50)
    assert limiter.check("k")

    # The window opened at the first request, so it re-arms 60s after that one
    monotonic.advance(10)
    assert limiter.check("k")
    assert limiter.check("k")
    assert limiter.check("k") is False


def test_keys_are_independent(rate_limiter):
    for _ in range(3):
        rate_limiter.check("ip:1.1.1.1")

    assert rate_limiter.check("ip:1.1.1.1") is False
    assert rate_limiter.check("ip:2.2.2.2") is True


def test_retry_after(rate_limiter, monotonic):
    assert rate_limiter.retry_after("ip:1.1.1.1") == 0

    rate_limiter.check("ip:1.1.1.1")
    monotonic.advance(20.5)
    assert rate_limiter.retry_after("ip:1.1.1.1") == 40


def test_reset(rate_limiter):
    for _ in range(3):
        rate_limiter.check("ip:1.1.1.1")
    rate_limiter.reset()
    assert rate_limiter.check("ip:1.1.1.1") is True
