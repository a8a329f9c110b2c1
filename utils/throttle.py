# utils/throttle.py
import time
import asyncio
from functools import wraps
from fastapi import Request

from services.errors import TooManyRequests


def throttle(limit: int, window: int = 60):
    """
    Per-endpoint, per-IP request cap for async route handlers.
    The wrapped handler must accept a `request: Request` argument.
    """
    buckets = {}
    lock = asyncio.Lock()

    def decorator(fn):
        @wraps(fn)
        async def wrapper(*args, **kwargs):
            request: Request = kwargs.get("request")
            if not request:
                for a in args:
                    if isinstance(a, Request):
                        request = a
                        break
            ip = request.client.host if request and request.client else "unknown"
            now_bucket = int(time.time() // window)
            bucket = (ip, fn.__name__, now_bucket)
            async with lock:
                buckets[bucket] = buckets.get(bucket, 0) + 1
                hits = buckets[bucket]
                if len(buckets) > 5000:
                    for stale in [b for b in buckets if b[2] < now_bucket]:
                        buckets.pop(stale, None)
            if hits > limit:
                raise TooManyRequests("Too many requests")
            return await fn(*args, **kwargs)
        return wrapper
    return decorator
