# middlewares/rate_limit.py
import logging
import time
from typing import Optional
from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

import redis.asyncio as aioredis

logger = logging.getLogger("uvicorn.error")

MAX_LOCAL_KEYS = 5000
EXEMPT_PATHS = ("/health", "/favicon.ico", "/openapi.json")


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Fixed-window request counter per bearer token and per client IP.
    Counters live in Redis when a URL is configured, otherwise in this process.
    """

    def __init__(self, app, rate_per_min: int, window: int, redis_url: Optional[str]):
        super().__init__(app)
        self.rate_per_min = rate_per_min
        self.window = window
        self.redis_url = redis_url
        self.redis = None
        self.local_counts = {}

    def _window_index(self) -> int:
        return int(time.time() // self.window)

    async def _hit_local(self, key: str) -> int:
        current = self._window_index()
        slot = (key, current)
        hits = self.local_counts.get(slot, 0) + 1
        self.local_counts[slot] = hits
        if len(self.local_counts) > MAX_LOCAL_KEYS:
            # earlier windows can no longer trip the limit
            self.local_counts = {s: n for s, n in self.local_counts.items() if s[1] == current}
        return hits

    async def _hit_redis(self, key: str) -> int:
        if self.redis is None:
            self.redis = aioredis.from_url(self.redis_url, encoding="utf-8", decode_responses=True)
        bucket = f"{key}:{self._window_index()}"
        n = await self.redis.incr(bucket)
        if n == 1:
            await self.redis.expire(bucket, self.window)
        return n

    async def hit(self, key: str) -> int:
        if self.redis_url:
            return await self._hit_redis(key)
        return await self._hit_local(key)

    async def dispatch(self, request: Request, call_next):
        path = request.url.path
        if path.endswith(EXEMPT_PATHS) or path.startswith(("/docs", "/redoc")):
            return await call_next(request)

        authz = request.headers.get("authorization") or ""
        parts = authz.split()
        token = parts[1] if (len(parts) == 2 and parts[0].lower() == "bearer") else "anon"

        ip = request.client.host if request.client else "unknown"

        try:
            n_user = await self.hit(f"rl:u:{token}")
            n_ip = await self.hit(f"rl:ip:{ip}")
        except Exception as e:
            # limiter errors never block a request
            logger.warning("Rate limiter unavailable: %s", e)
            return await call_next(request)

        if n_user > self.rate_per_min or n_ip > self.rate_per_min:
            return JSONResponse({"error": "rate limit"}, status_code=429)

        return await call_next(request)
