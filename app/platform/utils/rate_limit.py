"""
Per-email throttling for the signup flow.

Counters live in process memory, one set per worker process: with several
uvicorn workers each worker counts and locks out on its own, so the effective
limits scale with the worker count. Every window is evaluated against the
wall clock at call time, so no background sweep is needed for correctness.
``sweep`` only drops stale entries to keep the maps small.
"""
import time
from dataclasses import dataclass
from threading import Lock
from typing import Callable, Dict, Optional

from app.platform.config import settings
from app.platform.logger import get_logger

logger = get_logger(__name__)

SWEEP_INTERVAL_SECONDS = 300


@dataclass
class SignupAttempts:
    count: int
    last_attempt: float


@dataclass
class VerifyAttempts:
    count: int
    last_attempt: float
    locked: bool = False
    lock_until: float = 0.0


@dataclass
class RateLimitDecision:
    allowed: bool
    retry_after: Optional[int] = None
    locked: bool = False


class RateLimiter:
    def __init__(
        self,
        max_signup_attempts: int = settings.SIGNUP_MAX_ATTEMPTS,
        signup_window: int = settings.SIGNUP_WINDOW_SECONDS,
        signup_cooldown: int = settings.SIGNUP_COOLDOWN_SECONDS,
        max_verify_failures: int = settings.VERIFY_MAX_FAILURES,
        verify_lockout: int = settings.VERIFY_LOCKOUT_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self.max_signup_attempts = max_signup_attempts
        self.signup_window = signup_window
        self.signup_cooldown = signup_cooldown
        self.max_verify_failures = max_verify_failures
        self.verify_lockout = verify_lockout
        self.clock = clock

        self._signup: Dict[str, SignupAttempts] = {}
        self._verify: Dict[str, VerifyAttempts] = {}
        self._lock = Lock()
        self._last_sweep = clock()

    # ── signup ──────────────────────────────────

    def check_signup_rate_limit(self, email: str) -> RateLimitDecision:
        now = self.clock()
        with self._lock:
            record = self._signup.get(email)
            if record is None:
                return RateLimitDecision(allowed=True)

            elapsed = now - record.last_attempt
            if elapsed > self.signup_window:
                del self._signup[email]
                return RateLimitDecision(allowed=True)

            if record.count >= self.max_signup_attempts:
                return RateLimitDecision(
                    allowed=False, retry_after=_ceil(self.signup_window - elapsed)
                )

            if elapsed < self.signup_cooldown:
                return RateLimitDecision(
                    allowed=False, retry_after=_ceil(self.signup_cooldown - elapsed)
                )

            return RateLimitDecision(allowed=True)

    def record_signup_attempt(self, email: str) -> None:
        now = self.clock()
        with self._lock:
            record = self._signup.get(email)
            if record is None or now - record.last_attempt > self.signup_window:
                self._signup[email] = SignupAttempts(count=1, last_attempt=now)
            else:
                record.count += 1
                record.last_attempt = now
        self._maybe_sweep(now)

    # ── verification ────────────────────────────

    def check_verify_rate_limit(self, email: str) -> RateLimitDecision:
        now = self.clock()
        with self._lock:
            record = self._verify.get(email)
            if record is None:
                return RateLimitDecision(allowed=True)

            if record.locked:
                if now < record.lock_until:
                    return RateLimitDecision(
                        allowed=False, locked=True, retry_after=_ceil(record.lock_until - now)
                    )
                del self._verify[email]
                return RateLimitDecision(allowed=True)

            if now - record.last_attempt > self.verify_lockout:
                del self._verify[email]

            return RateLimitDecision(allowed=True)

    def record_verify_attempt(self, email: str, success: bool) -> None:
        now = self.clock()
        with self._lock:
            if success:
                self._verify.pop(email, None)
                return

            record = self._verify.get(email)
            if record is None or (
                not record.locked and now - record.last_attempt > self.verify_lockout
            ):
                record = VerifyAttempts(count=0, last_attempt=now)
                self._verify[email] = record

            record.count += 1
            record.last_attempt = now
            if record.count >= self.max_verify_failures and not record.locked:
                record.locked = True
                record.lock_until = now + self.verify_lockout
                logger.warning(
                    f"Verification locked for {email} after {record.count} failed attempts"
                )
        self._maybe_sweep(now)

    # ── housekeeping ────────────────────────────

    def sweep(self) -> int:
        """Drop counters whose windows have fully elapsed."""
        now = self.clock()
        removed = 0
        with self._lock:
            for email, record in list(self._signup.items()):
                if now - record.last_attempt > self.signup_window:
                    del self._signup[email]
                    removed += 1
            for email, record in list(self._verify.items()):
                stale = (
                    now >= record.lock_until
                    if record.locked
                    else now - record.last_attempt > self.verify_lockout
                )
                if stale:
                    del self._verify[email]
                    removed += 1
            self._last_sweep = now
        return removed

    def reset(self) -> None:
        with self._lock:
            self._signup.clear()
            self._verify.clear()

    def _maybe_sweep(self, now: float) -> None:
        if now - self._last_sweep >= SWEEP_INTERVAL_SECONDS:
            self.sweep()


def _ceil(seconds: float) -> int:
    return max(int(seconds + 0.999), 1)


rate_limiter = RateLimiter()


def get_rate_limiter() -> RateLimiter:
    return rate_limiter
