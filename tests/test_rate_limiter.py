import pytest

from app.platform.utils.rate_limit import RateLimiter


class Clock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return Clock()


@pytest.fixture
def limiter(clock):
    return RateLimiter(
        max_signup_attempts=5,
        signup_window=3600,
        signup_cooldown=60,
        max_verify_failures=5,
        verify_lockout=900,
        clock=clock,
    )


def test_first_signup_attempt_is_allowed(limiter):
    decision = limiter.check_signup_rate_limit("a@example.com")
    assert decision.allowed
    assert decision.retry_after is None


def test_signup_cooldown_between_attempts(limiter, clock):
    limiter.record_signup_attempt("a@example.com")

    clock.now += 10
    decision = limiter.check_signup_rate_limit("a@example.com")
    assert not decision.allowed
    assert decision.retry_after == 50
    assert not decision.locked

    clock.now += 51
    assert limiter.check_signup_rate_limit("a@example.com").allowed


def test_signup_window_cap(limiter, clock):
    for _ in range(5):
        assert limiter.check_signup_rate_limit("a@example.com").allowed
        limiter.record_signup_attempt("a@example.com")
        clock.now += 61

    decision = limiter.check_signup_rate_limit("a@example.com")
    assert not decision.allowed
    assert decision.retry_after == 3600 - 61


def test_signup_window_resets_after_expiry(limiter, clock):
    for _ in range(5):
        limiter.record_signup_attempt("a@example.com")
        clock.now += 61

    clock.now += 3600
    assert limiter.check_signup_rate_limit("a@example.com").allowed


def test_signup_limits_are_per_email(limiter):
    limiter.record_signup_attempt("a@example.com")
    assert not limiter.check_signup_rate_limit("a@example.com").allowed
    assert limiter.check_signup_rate_limit("b@example.com").allowed


def test_verify_lockout_after_five_failures(limiter, clock):
    for _ in range(4):
        limiter.record_verify_attempt("a@example.com", success=False)
        assert limiter.check_verify_rate_limit("a@example.com").allowed

    limiter.record_verify_attempt("a@example.com", success=False)
    decision = limiter.check_verify_rate_limit("a@example.com")
    assert not decision.allowed
    assert decision.locked
    assert decision.retry_after == 900

    clock.now += 600
    decision = limiter.check_verify_rate_limit("a@example.com")
    assert decision.locked
    assert decision.retry_after == 300


def test_verify_lockout_expires(limiter, clock):
    for _ in range(5):
        limiter.record_verify_attempt("a@example.com", success=False)

    clock.now += 901
    decision = limiter.check_verify_rate_limit("a@example.com")
    assert decision.allowed
    assert not decision.locked


def test_verify_success_clears_failures(limiter):
    for _ in range(4):
        limiter.record_verify_attempt("a@example.com", success=False)
    limiter.record_verify_attempt("a@example.com", success=True)

    # four more failures would lock only if the earlier ones still counted
    for _ in range(4):
        limiter.record_verify_attempt("a@example.com", success=False)
    assert limiter.check_verify_rate_limit("a@example.com").allowed


def test_stale_verify_failures_are_forgotten(limiter, clock):
    for _ in range(4):
        limiter.record_verify_attempt("a@example.com", success=False)

    clock.now += 901
    limiter.record_verify_attempt("a@example.com", success=False)
    assert limiter.check_verify_rate_limit("a@example.com").allowed


def test_sweep_drops_stale_entries(limiter, clock):
    limiter.record_signup_attempt("a@example.com")
    for _ in range(5):
        limiter.record_verify_attempt("b@example.com", success=False)
    limiter.record_verify_attempt("c@example.com", success=False)

    assert limiter.sweep() == 0

    clock.now += 3601
    assert limiter.sweep() == 3
    assert limiter.check_signup_rate_limit("a@example.com").allowed


def test_reset_clears_everything(limiter):
    limiter.record_signup_attempt("a@example.com")
    for _ in range(5):
        limiter.record_verify_attempt("a@example.com", success=False)

    limiter.reset()

    assert limiter.check_signup_rate_limit("a@example.com").allowed
    assert limiter.check_verify_rate_limit("a@example.com").allowed


def test_counters_are_per_instance(clock):
    # each worker process holds its own limiter
    first = RateLimiter(clock=clock)
    second = RateLimiter(clock=clock)

    for _ in range(5):
        first.record_verify_attempt("a@example.com", success=False)

    assert first.check_verify_rate_limit("a@example.com").locked
    assert second.check_verify_rate_limit("a@example.com").allowed
