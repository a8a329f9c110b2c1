# settings.py
import os
from dotenv import load_dotenv
from fastapi import Request, HTTPException

load_dotenv()

# -----------------------------------------------------------------------------
# Core app settings
# -----------------------------------------------------------------------------
ENV = (os.getenv("ENV") or "development").lower()
ENABLE_DOCS = ENV != "production"

APP_WEB_ORIGIN = (os.getenv("APP_WEB_ORIGIN") or "").strip()
ALLOW_ORIGINS = [o.strip() for o in APP_WEB_ORIGIN.split(",") if o.strip()] or ["*"]

# Routes are mounted at the root and again under this prefix ("" disables it)
API_PREFIX = (os.getenv("API_PREFIX", "/api") or "").rstrip("/")

LOG_REQUESTS = (os.getenv("LOG_REQUESTS") or "").lower() in {"1", "true", "yes"}

# -----------------------------------------------------------------------------
# Key-value storage
# -----------------------------------------------------------------------------
# Unset -> in-memory store (handy locally, not durable)
DATABASE_URL = os.getenv("DATABASE_URL") or None
DB_CONNECT_TIMEOUT = float(os.getenv("DB_CONNECT_TIMEOUT", "8"))
KV_TABLE = os.getenv("KV_TABLE", "kv_store").strip() or "kv_store"

# -----------------------------------------------------------------------------
# ZIP geocoding + search
# -----------------------------------------------------------------------------
ZIP_API_BASE_URL = os.getenv("ZIP_API_BASE_URL", "https://api.zippopotam.us/us").rstrip("/")
ZIP_API_TIMEOUT = float(os.getenv("ZIP_API_TIMEOUT", "5"))
ZIP_API_USER_AGENT = os.getenv("ZIP_API_USER_AGENT", "store-locator/1.0")

DEFAULT_RADIUS_MILES = float(os.getenv("DEFAULT_RADIUS_MILES", "50"))

# -----------------------------------------------------------------------------
# Rate limiting
# -----------------------------------------------------------------------------
RATE_PER_MIN = int(os.getenv("RATE_LIMIT_PER_MINUTE", "300"))
SEARCH_RATE_PER_MIN = int(os.getenv("SEARCH_RATE_PER_MINUTE", "120"))
REDIS_URL = os.getenv("REDIS_URL") or None
WINDOW = 60


# -----------------------------------------------------------------------------
# Helpers for accessing shared objects in routes
# -----------------------------------------------------------------------------
def _state(request: Request, name: str, label: str):
    value = getattr(request.app.state, name, None)
    if value is None:
        raise HTTPException(status_code=500, detail=f"{label} not initialized")
    return value


def get_kv_store(request: Request):
    """KV store created at startup (asyncpg-backed or in-memory)."""
    return _state(request, "kv", "KV store")


def get_store_repository(request: Request):
    return _state(request, "repo", "Store repository")


def get_zip_resolver(request: Request):
    """
    The one ZipResolver of this process; it owns the coordinate cache.
    Raises HTTPException if startup did not get that far.
    """
    return _state(request, "resolver", "ZIP resolver")
