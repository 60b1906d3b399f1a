"""Exception hierarchy for asset_listr."""

from __future__ import annotations

from typing import List, Optional, Sequence


class AssetListrError(Exception):
    """Base exception for all asset_listr errors."""


class ConfigurationError(AssetListrError):
    """Raised when required configuration is missing or invalid.

    Fatal: raised at process start, never handled at runtime.
    """


class NotAuthenticatedError(AssetListrError):
    """Raised when an operation needs a signed-in agent and there is none."""

    def __init__(self, message: str = "Not authenticated") -> None:
        super().__init__(message)


class GatewayError(AssetListrError):
    """Raised when a persistence gateway request fails."""

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class RecordNotFoundError(GatewayError):
    """Raised when an update or delete matched no row."""

    def __init__(self, collection: str, record_id: str) -> None:
        super().__init__(
            f"No {collection} record with id {record_id}", status_code=404
        )
        self.collection = collection
        self.record_id = record_id


class DraftValidationError(AssetListrError):
    """Raised when a form draft cannot be normalized into a listing."""

    def __init__(self, failures: Sequence) -> None:
        self.failures: List = list(failures)
        codes = ", ".join(str(getattr(f, "value", f)) for f in self.failures)
        super().__init__(f"Invalid listing: {codes}")


def http_status_for(exc: Exception) -> int:
    """HTTP status the web layer reports for a caught error."""

    if isinstance(exc, NotAuthenticatedError):
        return 401
    if isinstance(exc, DraftValidationError):
        return 422
    if isinstance(exc, GatewayError):
        status = exc.status_code or 0
        if 400 <= status < 500:
            return status
        return 502
    return 500
