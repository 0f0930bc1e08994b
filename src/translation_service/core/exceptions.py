"""Centralized exception hierarchy for the application.

All custom exceptions inherit from AppException, which provides:
- Consistent error response format
- HTTP status codes
- Machine-readable error codes
- Optional details dict for additional context

Exception handlers in main.py convert these to JSON responses.
"""

from typing import Any


class AppException(Exception):
    """Base exception for all application errors.

    Provides a consistent structure for error responses with:
    - message: Human-readable error description
    - error_code: Machine-readable code (e.g., "AUTH_FAILED")
    - status_code: HTTP status code
    - details: Optional dict with additional context
    """

    def __init__(
        self,
        message: str,
        error_code: str,
        status_code: int = 500,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to a dict for JSON serialization."""
        return {
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class ResourceNotFoundError(AppException):
    """Requested resource does not exist."""

    def __init__(self, resource: str, identifier: str | None = None):
        msg = f"{resource} not found"
        if identifier:
            msg = f"{resource} not found: {identifier}"
        super().__init__(
            msg,
            f"{resource.upper().replace(' ', '_')}_NOT_FOUND",
            404,
            {"resource": resource, "id": identifier}
            if identifier
            else {"resource": resource},
        )


class ResourceExistsError(AppException):
    """Resource already exists (duplicate key, unique constraint violation)."""

    def __init__(self, resource: str, field: str | None = None):
        msg = f"{resource} already exists"
        if field:
            msg = f"{resource} with this {field} already exists"
        super().__init__(
            msg,
            f"{resource.upper().replace(' ', '_')}_EXISTS",
            409,
            {"resource": resource, "field": field} if field else {"resource": resource},
        )


class ExportError(AppException):
    """Base exception for the bulk export pipeline."""

    def __init__(
        self,
        message: str,
        error_code: str = "EXPORT_FAILED",
        status_code: int = 500,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, error_code, status_code, details)


class ExportScanFailed(ExportError):
    """The record store failed while the export was scanning it."""

    def __init__(self, cause: BaseException):
        self.cause = cause
        super().__init__(
            "Export failed while reading translations",
            "EXPORT_SCAN_FAILED",
            500,
            {"cause": type(cause).__name__},
        )


class SinkWriteFailed(ExportError):
    """Writing export bytes to their destination failed."""

    def __init__(self, cause: BaseException):
        self.cause = cause
        super().__init__(
            "Export failed while writing the snapshot",
            "EXPORT_SINK_WRITE_FAILED",
            500,
            {"cause": type(cause).__name__},
        )


class ExportCancelled(ExportError):
    """Every request waiting on an export build went away."""

    def __init__(self) -> None:
        # 499: client closed request
        super().__init__("Export cancelled", "EXPORT_CANCELLED", 499)


class CacheUnavailable(ExportError):
    """The export cache backend cannot be used.

    Never surfaced to clients: the export degrades to an uncached build.
    """

    def __init__(self, backend: str, message: str | None = None):
        msg = f"{backend} is unavailable"
        if message:
            msg = f"{backend}: {message}"
        super().__init__(
            msg,
            "EXPORT_CACHE_UNAVAILABLE",
            503,
            {"backend": backend},
        )
