"""Core utilities for the Markdown <-> Google Docs engine."""

from core.config import ConversionOptions, EngineConfig, get_config, reset_config
from core.errors import (
    APIError,
    BatchUpdateError,
    DocsEngineError,
    IncompatibleDocumentError,
    InvalidRequestError,
    PermissionDeniedError,
    RateLimitError,
    ResourceNotFoundError,
    ValidationError,
    handle_http_error,
)
from core.utils import (
    TransientNetworkError,
    handle_http_errors,
    validate_document_id,
    validate_positive_int,
)

__all__ = [
    "APIError",
    "BatchUpdateError",
    "ConversionOptions",
    "DocsEngineError",
    "EngineConfig",
    "get_config",
    "handle_http_error",
    "handle_http_errors",
    "IncompatibleDocumentError",
    "InvalidRequestError",
    "PermissionDeniedError",
    "RateLimitError",
    "reset_config",
    "ResourceNotFoundError",
    "TransientNetworkError",
    "validate_document_id",
    "validate_positive_int",
    "ValidationError",
]
