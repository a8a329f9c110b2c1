# main.py
import os
import sys
import logging
import time
import traceback
import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

# Ensure app root on path
APP_ROOT = os.path.dirname(os.path.abspath(__file__))
if APP_ROOT not in sys.path:
    sys.path.insert(0, APP_ROOT)

from settings import (
    ENV, ENABLE_DOCS, ALLOW_ORIGINS, API_PREFIX,
    DATABASE_URL, DB_CONNECT_TIMEOUT, KV_TABLE,
    ZIP_API_BASE_URL, ZIP_API_TIMEOUT, ZIP_API_USER_AGENT,
    LOG_REQUESTS, RATE_PER_MIN, REDIS_URL, WINDOW,
)

from middlewares.headers import security_and_cache_headers
from middlewares.rate_limit import RateLimitMiddleware
from services.errors import StoreLocatorError
from services.kv_store import open_kv_store
from services.store_repository import StoreRepository
from services.zip_resolver import ZipCoordinateCache, ZipResolver

# Routers
from stores import router as stores_router

logger = logging.getLogger("uvicorn.error")

app = FastAPI(
    title="Store Locator",
    version="1.0.0",
    docs_url="/docs" if ENABLE_DOCS else None,
    redoc_url="/redoc" if ENABLE_DOCS else None,
    openapi_url="/openapi.json" if ENABLE_DOCS else None,
)


# ---- errors that escape the StoreLocatorError handler still get a traceback ----
class TraceLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request, call_next):
        try:
            return await call_next(request)
        except Exception as e:
            logger.error(
                "Uncaught %s on %s %s\n%s",
                type(e).__name__, request.method, request.url.path, traceback.format_exc(),
            )
            raise
app.add_middleware(TraceLogMiddleware)

# Security + cache headers
app.middleware("http")(security_and_cache_headers)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOW_ORIGINS,
    allow_credentials=ALLOW_ORIGINS != ["*"],
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type"],
    expose_headers=["Content-Length"],
    max_age=600,
)

# Rate limit
app.add_middleware(
    RateLimitMiddleware,
    rate_per_min=RATE_PER_MIN,
    window=WINDOW,
    redis_url=REDIS_URL,
)


@app.exception_handler(StoreLocatorError)
async def store_locator_error(request: Request, exc: StoreLocatorError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(exc.to_payload(), status_code=exc.status_code)


# KV store + resolver
@app.on_event("startup")
async def startup():
    try:
        app.state.kv = await open_kv_store(DATABASE_URL, table=KV_TABLE, timeout=DB_CONNECT_TIMEOUT)
        logger.info("✅ KV store ready (%s)", type(app.state.kv).__name__)
    except Exception as e:
        app.state.kv = None
        logger.error(f"⚠️ Failed to connect to KV store at startup: {e}")

    app.state.http = httpx.AsyncClient(
        timeout=ZIP_API_TIMEOUT,
        headers={"User-Agent": ZIP_API_USER_AGENT},
    )
    if app.state.kv is not None:
        app.state.repo = StoreRepository(app.state.kv)
        app.state.resolver = ZipResolver(
            ZipCoordinateCache(),
            app.state.kv,
            app.state.http,
            base_url=ZIP_API_BASE_URL,
            timeout=ZIP_API_TIMEOUT,
        )


@app.on_event("shutdown")
async def shutdown():
    try:
        if getattr(app.state, "http", None):
            await app.state.http.aclose()
        if getattr(app.state, "kv", None):
            await app.state.kv.close()
            logger.info("🔌 KV store closed")
    except Exception as e:
        logger.error(f"Shutdown error: {e}")


# -------- Router mounts (root) --------
app.include_router(stores_router)            # /stores, /retailers, /init-stores, ...

# -------- Duplicate mounts under API_PREFIX --------
if API_PREFIX:
    app.include_router(stores_router, prefix=API_PREFIX)


async def health():
    return {"status": "ok"}

app.add_api_route("/health", health, methods=["GET"])
if API_PREFIX:
    app.add_api_route(f"{API_PREFIX}/health", health, methods=["GET"])


# Optional request logging
if LOG_REQUESTS:
    @app.middleware("http")
    async def log_requests(request, call_next):
        started = time.perf_counter()
        resp = await call_next(request)
        logger.info(
            "%s %s%s -> %s (%.1f ms)",
            request.method,
            request.url.path,
            f"?{request.url.query}" if request.url.query else "",
            resp.status_code,
            (time.perf_counter() - started) * 1000,
        )
        return resp


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "8000")),
        reload=ENV != "production",
        log_level=os.getenv("LOG_LEVEL", "info"),
    )
