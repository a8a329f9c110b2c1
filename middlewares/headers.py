# middlewares/headers.py
from fastapi import Request, Response

# Search results depend on live store data; only the static capability blurb is cacheable
CACHEABLE_SUFFIXES = ("/supported-zips",)


async def security_and_cache_headers(request: Request, call_next):
    resp: Response = await call_next(request)
    path = request.url.path.rstrip("/")

    # error responses are never cacheable
    if path.endswith(CACHEABLE_SUFFIXES) and resp.status_code < 400:
        resp.headers.setdefault("Cache-Control", "public, max-age=300")
    else:
        resp.headers.setdefault("Cache-Control", "no-store")
    resp.headers.setdefault("X-Frame-Options", "DENY")
    resp.headers.setdefault("X-Content-Type-Options", "nosniff")
    resp.headers.setdefault("Referrer-Policy", "strict-origin-when-cross-origin")
    return resp
