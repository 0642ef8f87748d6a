# app/middlewares/rate_limit.py
import time
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from redis.asyncio import Redis

from app.platform.config import settings
from app.platform.logger import get_logger
from app.platform.response import api_response

logger = get_logger(__name__)

WINDOW_SECONDS = 60

# shared by every middleware instance in the process
_memory_store: dict[str, tuple[int, float]] = {}
_last_sweep = 0.0


def reset_memory_store() -> None:
    global _last_sweep
    _memory_store.clear()
    _last_sweep = 0.0


def sweep_memory_store(now: float) -> int:
    """Drop counters whose window has ended. Returns how many were removed."""
    global _last_sweep
    expired = [key for key, (_, expiry) in _memory_store.items() if now > expiry]
    for key in expired:
        del _memory_store[key]
    _last_sweep = now
    return len(expired)


def _too_many_requests(retry_after: int):
    retry_after = max(1, retry_after)
    response = api_response(
        message="Too many requests. Please try again later.",
        status_code=429,
        data={"retryAfter": retry_after, "locked": False},
    )
    response.headers["Retry-After"] = str(retry_after)
    return response


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Per-IP request budget for the signup endpoints, counted per minute."""

    def __init__(self, app):
        super().__init__(app)
        self.redis = None

    async def dispatch(self, request: Request, call_next):
        client_ip = request.client.host if request.client else "testclient"

        # Skip limit if whitelisted
        if client_ip in settings.WHITELIST_IPS:
            return await call_next(request)

        path = request.url.path
        limit = settings.RATE_LIMITS.get(path)

        # If endpoint is not rate-limited, continue
        if limit is None:
            return await call_next(request)

        # ---------------------------
        # TEST MODE: In-memory store
        # ---------------------------
        if settings.FORCE_IN_MEMORY_RATE_LIMITER:
            key = f"{client_ip}:{path}"
            now = time.time()
            if now - _last_sweep >= WINDOW_SECONDS:
                sweep_memory_store(now)
            count, expiry = _memory_store.get(key, (0, now + WINDOW_SECONDS))

            if now > expiry:
                count = 0
                expiry = now + WINDOW_SECONDS

            if count >= limit:
                logger.warning(f"IP rate limit hit - ip: {client_ip}, path: {path}")
                return _too_many_requests(int(expiry - now))

            _memory_store[key] = (count + 1, expiry)
            return await call_next(request)

        # ---------------------------
        # PRODUCTION: Redis store
        # ---------------------------
        if self.redis is None:
            self.redis = Redis.from_url(settings.REDIS_URL, decode_responses=True)

        key = f"rl:{client_ip}:{path}"
        current_count = await self.redis.get(key)

        if current_count is None:
            await self.redis.set(key, 1, ex=WINDOW_SECONDS)
        else:
            current_count = int(current_count)
            if current_count >= limit:
                ttl = await self.redis.ttl(key)
                logger.warning(f"IP rate limit hit - ip: {client_ip}, path: {path}")
                return _too_many_requests(ttl)
            await self.redis.incr(key)

        return await call_next(request)
