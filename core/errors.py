"""
Custom error types for the Markdown <-> Google Docs engine.

Provides user-friendly error messages and structured error handling.
"""

from typing import Any

from googleapiclient.errors import HttpError

# =============================================================================
# Base Exception Hierarchy
# =============================================================================


class DocsEngineError(Exception):
    """Base exception for all engine errors."""

    pass


# =============================================================================
# Validation Errors
# =============================================================================


class ValidationError(DocsEngineError):
    """Raised when input validation fails."""

    pass


# =============================================================================
# Compatibility Errors
# =============================================================================


class IncompatibleDocumentError(DocsEngineError):
    """Raised when a document cannot be faithfully represented as Markdown."""

    def __init__(self, message: str, issues: list[Any] | None = None):
        super().__init__(message)
        self.issues = issues or []


# =============================================================================
# API Errors
# =============================================================================


class APIError(DocsEngineError):
    """Raised for general Google API errors."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class InvalidRequestError(APIError):
    """Raised when the Docs API rejects a batch as malformed (400)."""

    pass


class ResourceNotFoundError(APIError):
    """Raised when a requested resource doesn't exist (404)."""

    pass


class PermissionDeniedError(APIError):
    """Raised when the user lacks permission for an operation (403)."""

    pass


class RateLimitError(APIError):
    """Raised when API rate limits are exceeded (429)."""

    pass


class BatchUpdateError(APIError):
    """
    Raised when one chunk of a sequenced batch update fails.

    Chunks before `chunk_index` have already been committed by the remote
    document; nothing is rolled back.
    """

    def __init__(
        self,
        message: str,
        chunk_index: int,
        total_chunks: int,
        status_code: int | None = None,
    ):
        super().__init__(message, status_code=status_code)
        self.chunk_index = chunk_index
        self.total_chunks = total_chunks

    @property
    def committed_chunks(self) -> int:
        return self.chunk_index


def _http_error_status(error: HttpError) -> int | None:
    resp = getattr(error, "resp", None)
    status = getattr(resp, "status", None)
    try:
        return int(status) if status is not None else None
    except (TypeError, ValueError):
        return None


def _http_error_details(error: HttpError) -> str:
    details = getattr(error, "error_details", None)
    if isinstance(details, list) and details:
        parts = []
        for detail in details:
            if isinstance(detail, dict):
                parts.append(str(detail.get("description") or detail.get("message") or detail))
            else:
                parts.append(str(detail))
        return "; ".join(parts)
    reason = error._get_reason() if hasattr(error, "_get_reason") else ""
    return reason or str(error)


def handle_http_error(error: Exception, document_id: str | None = None) -> APIError:
    """
    Convert Google API HTTP errors to a user-friendly APIError subclass.
    """
    if not isinstance(error, HttpError):
        return APIError(f"Google API error: {error}")

    status = _http_error_status(error)
    details = _http_error_details(error)
    target = document_id or "unknown"

    if status == 400:
        return InvalidRequestError(
            f"Invalid request sent to Google Docs API. Details: {details}", status_code=status
        )
    elif status == 403:
        return PermissionDeniedError(
            f"Permission denied for document (ID: {target}). Ensure the authenticated user has edit access.",
            status_code=status,
        )
    elif status == 404:
        return ResourceNotFoundError(f"Document not found (ID: {target}). Check the ID.", status_code=status)
    elif status == 429:
        return RateLimitError("Rate limit exceeded. Please wait and try again.", status_code=status)
    else:
        return APIError(f"Google API error ({status}): {details}", status_code=status)
