import asyncio
import functools
import inspect
import logging
import re
import ssl

from googleapiclient.errors import HttpError

from core.errors import APIError, DocsEngineError, ValidationError, handle_http_error

logger = logging.getLogger(__name__)


def validate_document_id(document_id: str, param_name: str = "document_id") -> str:
    """Validate a Google Docs document ID."""
    if not document_id:
        raise ValidationError(f"{param_name} is required")

    document_id = document_id.strip()
    if not document_id:
        raise ValidationError(f"{param_name} cannot be empty")

    if not re.match(r"^[\w\-]+$", document_id):
        raise ValidationError(f"{param_name} contains invalid characters")

    return document_id


def validate_positive_int(value: int, param_name: str, max_value: int | None = None) -> int:
    """Validate a positive integer."""
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValidationError(f"{param_name} must be a positive integer")

    if max_value is not None and value > max_value:
        raise ValidationError(f"{param_name} cannot exceed {max_value}")

    return value


class TransientNetworkError(DocsEngineError):
    """Custom exception for transient network errors after retries."""

    pass


def _bound_argument(signature: inspect.Signature, args: tuple, kwargs: dict, name: str):
    """Value passed for parameter `name`, positionally or by keyword."""
    try:
        return signature.bind_partial(*args, **kwargs).arguments.get(name)
    except TypeError:
        return kwargs.get(name)


def handle_http_errors(tool_name: str, is_read_only: bool = False):
    """
    A decorator to handle Google API HttpErrors and transient SSL errors in a standardized way.

    It wraps an async workflow, catches HttpError, logs a detailed error message,
    and raises the matching APIError subclass.

    If is_read_only is True, it will also catch ssl.SSLError and retry with
    exponential backoff. After exhausting retries, it raises a TransientNetworkError.
    Writes are never retried: a partially applied batch cannot be replayed safely.

    Args:
        tool_name (str): The name of the workflow being decorated (e.g., 'read_doc_as_markdown').
        is_read_only (bool): If True, the operation is considered safe to retry on
                             transient network errors. Defaults to False.
    """

    def decorator(func):
        signature = inspect.signature(func)

        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            max_retries = 3
            base_delay = 1

            for attempt in range(max_retries):
                try:
                    return await func(*args, **kwargs)
                except ssl.SSLError as e:
                    if is_read_only and attempt < max_retries - 1:
                        delay = base_delay * (2**attempt)
                        logger.warning(
                            f"SSL error in {tool_name} on attempt {attempt + 1}: {e}. Retrying in {delay} seconds..."
                        )
                        await asyncio.sleep(delay)
                    else:
                        logger.error(f"SSL error in {tool_name} on final attempt: {e}. Raising exception.")
                        raise TransientNetworkError(
                            f"A transient SSL error occurred in '{tool_name}' after {attempt + 1} attempts. "
                            "This is likely a temporary network or certificate issue. Please try again shortly."
                        ) from e
                except ValidationError as e:
                    logger.warning(f"Input error in {tool_name}: {e}")
                    raise
                except HttpError as error:
                    document_id = _bound_argument(signature, args, kwargs, "document_id")
                    logger.error(f"API error in {tool_name}: {error}", exc_info=True)
                    raise handle_http_error(error, document_id) from error
                except DocsEngineError:
                    # Already translated (BatchUpdateError, IncompatibleDocumentError, ...)
                    raise
                except Exception as e:
                    message = f"An unexpected error occurred in {tool_name}: {e}"
                    logger.exception(message)
                    raise APIError(message) from e

        return wrapper

    return decorator
