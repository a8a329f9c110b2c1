# stores.py
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from settings import (
    DEFAULT_RADIUS_MILES, SEARCH_RATE_PER_MIN, WINDOW, ZIP_API_BASE_URL,
    get_kv_store, get_store_repository, get_zip_resolver,
)
from services.errors import InternalError, StoreLocatorError, ValidationError
from services.kv_store import KVStore
from services.records import ZIP_KEY_PREFIX
from services.sample_stores import SAMPLE_STORES
from services.search_service import search_stores
from services.store_repository import StoreRepository
from services.zip_resolver import ZipResolver
from utils.throttle import throttle

logger = logging.getLogger("uvicorn.error")

router = APIRouter(tags=["stores"])


async def _json_body(request: Request):
    try:
        return await request.json()
    except ValueError:
        raise ValidationError("Request body must be valid JSON")


# ----------------------------- SEED -----------------------------
@router.post("/init-stores")
async def init_stores(repo: StoreRepository = Depends(get_store_repository)):
    """Replace the whole store list with the built-in sample dataset."""
    try:
        stored = await repo.seed(SAMPLE_STORES)
        return {
            "success": True,
            "message": f"Initialized {len(stored)} stores",
            "count": len(stored),
        }
    except StoreLocatorError:
        raise
    except Exception as e:
        logger.error("Error initializing stores: %s", e)
        raise InternalError(str(e)) from e


# ----------------------------- SEARCH -----------------------------
@router.get("/stores")
@throttle(limit=SEARCH_RATE_PER_MIN, window=WINDOW)
async def find_stores(
    request: Request,
    zip: Optional[str] = Query(None, description="US ZIP code to search around"),
    radius: Optional[str] = Query(None, description=f"Radius in miles (default {DEFAULT_RADIUS_MILES:g})"),
    retailer: Optional[str] = Query(None, description="Case-insensitive retailer name"),
    repo: StoreRepository = Depends(get_store_repository),
    resolver: ZipResolver = Depends(get_zip_resolver),
):
    """
    Stores within `radius` miles of `zip`, nearest first, one entry per address.
    Each store carries `distance_miles`.
    """
    try:
        return await search_stores(
            repo, resolver, zip, radius=radius, retailer=retailer,
            default_radius=DEFAULT_RADIUS_MILES,
        )
    except StoreLocatorError:
        raise
    except Exception as e:
        logger.error("Error fetching stores: %s", e)
        raise InternalError(str(e)) from e


# ----------------------------- CREATE -----------------------------
@router.post("/stores")
async def add_store(request: Request, repo: StoreRepository = Depends(get_store_repository)):
    try:
        body = await _json_body(request)
        stored = await repo.create(body)
        return {
            "success": True,
            "message": "Store added successfully",
            "store": stored.model_dump(exclude={"id"}),
            "id": stored.id,
        }
    except StoreLocatorError:
        raise
    except Exception as e:
        logger.error("Error adding store: %s", e)
        raise InternalError(str(e)) from e


@router.post("/stores/bulk")
async def bulk_add_stores(request: Request, repo: StoreRepository = Depends(get_store_repository)):
    """Body: {"stores": [...]}. All-or-nothing validation, one counter update."""
    try:
        body = await _json_body(request)
        payload = body.get("stores") if isinstance(body, dict) else None
        stored = await repo.bulk_create(payload)
        return {
            "success": True,
            "message": f"Bulk uploaded {len(stored)} stores successfully",
            "count": len(stored),
            "stores": [s.model_dump() for s in stored],
        }
    except StoreLocatorError:
        raise
    except Exception as e:
        logger.error("Error bulk uploading stores: %s", e)
        raise InternalError(str(e)) from e


# ----------------------------- LIST -----------------------------
@router.get("/stores/all")
async def list_all_stores(repo: StoreRepository = Depends(get_store_repository)):
    try:
        stores = await repo.list_all()
        return {"total": len(stores), "stores": [s.model_dump() for s in stores]}
    except StoreLocatorError:
        raise
    except Exception as e:
        logger.error("Error fetching all stores: %s", e)
        raise InternalError(str(e)) from e


@router.get("/retailers")
async def list_retailers(repo: StoreRepository = Depends(get_store_repository)):
    try:
        return {"retailers": await repo.list_retailers()}
    except StoreLocatorError:
        raise
    except Exception as e:
        logger.error("Error fetching retailers: %s", e)
        raise InternalError(str(e)) from e


@router.get("/supported-zips")
async def supported_zips(kv: KVStore = Depends(get_kv_store)):
    try:
        persisted = await kv.get_by_prefix(ZIP_KEY_PREFIX)
    except Exception as e:
        logger.error("Error counting persisted ZIP codes: %s", e)
        raise InternalError(str(e)) from e
    return {
        "message": "All US ZIP codes are supported via the Zippopotam.us API",
        "coverage": "42,000+ US ZIP codes",
        "api": f"{ZIP_API_BASE_URL}/{{zip}}",
        "caching": "ZIP coordinates are cached in-process after the first lookup and persisted as a fallback",
        "persisted_zip_codes": len(persisted),
        "note": "Enter any valid 5-digit US ZIP code in the search",
    }


# ----------------------------- DELETE -----------------------------
@router.delete("/stores/{store_id}")
async def delete_store(store_id: str, repo: StoreRepository = Depends(get_store_repository)):
    """Removes one store. Its id is never handed out again (until a full clear)."""
    try:
        deleted_id = await repo.delete_by_id(store_id)
        return {"success": True, "message": f"Store {deleted_id} deleted successfully"}
    except StoreLocatorError:
        raise
    except Exception as e:
        logger.error("Error deleting store: %s", e)
        raise InternalError(str(e)) from e


@router.delete("/stores")
async def clear_stores(repo: StoreRepository = Depends(get_store_repository)):
    try:
        deleted = await repo.delete_all()
        if not deleted:
            return {"success": True, "message": "Database is already empty", "deleted": 0}
        return {"success": True, "message": "Cleared all stores from database", "deleted": deleted}
    except StoreLocatorError:
        raise
    except Exception as e:
        logger.error("Error clearing stores: %s", e)
        raise InternalError(str(e)) from e
