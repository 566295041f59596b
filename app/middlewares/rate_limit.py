# app/middlewares/rate_limit.py
import time
from typing import Dict, List

from fastapi import Request, status
from redis.asyncio import Redis
from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware

from app.platform.config import settings
from app.platform.logger import get_logger
from app.platform.response import api_response

logger = get_logger(__name__)


def _too_many_requests(retry_after: int):
    return api_response(
        data={"retry_after": retry_after},
        message="Too many requests. Please try again later.",
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        headers={"Retry-After": str(retry_after)},
    )


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Per-IP request limit across all endpoints except RATE_LIMIT_EXEMPT_PATHS.

    Uses a sliding window kept in memory, or a fixed Redis window when
    REDIS_URL is set (shared between processes).
    """

    def __init__(self, app):
        super().__init__(app)
        self.redis = None
        self.memory_store: Dict[str, List[float]] = {}
        self._last_prune = 0.0

    async def dispatch(self, request: Request, call_next):
        client_ip = request.client.host if request.client else "testclient"

        # Skip limit if whitelisted
        if client_ip in settings.WHITELIST_IPS:
            return await call_next(request)

        if request.url.path in settings.RATE_LIMIT_EXEMPT_PATHS:
            return await call_next(request)

        limit = settings.RATE_LIMIT_MAX_REQUESTS
        window = settings.RATE_LIMIT_WINDOW_SECONDS

        if settings.FORCE_IN_MEMORY_RATE_LIMITER or not settings.REDIS_URL:
            retry_after = self._check_memory(client_ip, limit, window)
        else:
            retry_after = await self._check_redis(client_ip, limit, window)

        if retry_after is not None:
            logger.warning(f"Rate limit exceeded for {client_ip} on {request.url.path}")
            return _too_many_requests(retry_after)

        return await call_next(request)

    def _check_memory(self, client_ip: str, limit: int, window: int):
        now = time.time()
        self._prune_memory(now, window)
        recent = [ts for ts in self.memory_store.get(client_ip, []) if now - ts < window]

        if len(recent) >= limit:
            self.memory_store[client_ip] = recent
            return max(1, int(window - (now - recent[0])))

        recent.append(now)
        self.memory_store[client_ip] = recent
        return None

    def _prune_memory(self, now: float, window: int) -> None:
        """Forget clients with no requests inside the window; runs at most once per window."""
        if now - self._last_prune < window:
            return
        self._last_prune = now
        idle = [ip for ip, stamps in self.memory_store.items() if not stamps or now - stamps[-1] >= window]
        for ip in idle:
            del self.memory_store[ip]

    async def _check_redis(self, client_ip: str, limit: int, window: int):
        try:
            if self.redis is None:
                self.redis = Redis.from_url(settings.REDIS_URL, decode_responses=True)

            key = f"rl:{client_ip}"
            current_count = await self.redis.get(key)

            if current_count is None:
                await self.redis.set(key, 1, ex=window)
                return None

            if int(current_count) >= limit:
                ttl = await self.redis.ttl(key)
                return max(1, ttl)

            await self.redis.incr(key)
            return None
        except RedisError as e:
            # Fall back to the local window rather than rejecting traffic
            logger.error(f"Redis rate limiter unavailable: {e}")
            return self._check_memory(client_ip, limit, window)
