# services/errors.py
from typing import Any, Dict


class StoreLocatorError(Exception):
    """Base for errors that map onto an HTTP response."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_payload(self) -> Dict[str, Any]:
        return {"error": self.message}


class ValidationError(StoreLocatorError):
    """Missing or malformed input, correctable by the caller."""


class NotFoundError(StoreLocatorError):
    """ZIP code could not be resolved, or the requested data is absent."""


class RepositoryNotInitialized(NotFoundError):
    def __init__(self, message: str = "Store database not initialized. Call POST /init-stores first."):
        super().__init__(message)


class UpstreamError(StoreLocatorError):
    """
    External geocoding call failed. Recovered inside the resolver through the
    durable fallback and never sent to clients directly.
    """

    status_code = 502


class InternalError(StoreLocatorError):
    status_code = 500

    def to_payload(self) -> Dict[str, Any]:
        return {"success": False, "error": self.message}


class TooManyRequests(StoreLocatorError):
    status_code = 429
