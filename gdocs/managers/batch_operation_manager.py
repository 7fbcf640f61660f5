"""
Batch Operation Manager

Sends edit operations to the Docs API `batchUpdate` endpoint, splitting long
operation lists into chunks no larger than the per-call limit. Chunks run
strictly one after another: the indices in a later chunk are only valid once
every earlier chunk has been committed.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any

from googleapiclient.errors import HttpError

from core.config import get_config
from core.errors import BatchUpdateError, handle_http_error
from core.utils import validate_positive_int
from gdocs.docs_helpers import EditOperation, operation_to_request

logger = logging.getLogger(__name__)


@dataclass
class BatchUpdateResult:
    """Merged response of every chunk of one logical batch update."""

    document_id: str
    replies: list[dict[str, Any]] = field(default_factory=list)
    chunks: int = 0
    write_control: dict[str, Any] | None = None

    @property
    def replies_count(self) -> int:
        return len(self.replies)


def chunk_operations(operations: list[Any], chunk_size: int) -> list[list[Any]]:
    """Split operations into contiguous chunks of at most `chunk_size`, preserving order."""
    validate_positive_int(chunk_size, "chunk_size")
    return [operations[i : i + chunk_size] for i in range(0, len(operations), chunk_size)]


class BatchOperationManager:
    """
    Executes batchUpdate calls for one Docs service.

    Example:
        >>> manager = BatchOperationManager(service)
        >>> result = await manager.execute_batch_operations(doc_id, operations)
        >>> result.replies_count
    """

    def __init__(self, service: Any, max_requests_per_call: int | None = None):
        self.service = service
        self.max_requests_per_call = validate_positive_int(
            max_requests_per_call if max_requests_per_call is not None else get_config().max_batch_requests,
            "max_requests_per_call",
        )

    async def _execute_chunk(self, document_id: str, requests: list[dict[str, Any]]) -> dict[str, Any]:
        return await asyncio.to_thread(
            self.service.documents().batchUpdate(documentId=document_id, body={"requests": requests}).execute
        )

    async def execute_batch_operations(
        self, document_id: str, operations: list[EditOperation | dict[str, Any]]
    ) -> BatchUpdateResult:
        """
        Apply operations in order, one chunk per API call.

        Args:
            document_id: Target document.
            operations: Edit operations or raw request dicts.

        Returns:
            BatchUpdateResult with the replies of all chunks concatenated.

        Raises:
            BatchUpdateError: when a chunk fails. Earlier chunks stay applied;
                nothing is retried or rolled back.
        """
        result = BatchUpdateResult(document_id=document_id)
        if not operations:
            logger.debug(f"No operations to apply to {document_id}")
            return result

        requests = [operation_to_request(op) for op in operations]
        chunks = chunk_operations(requests, self.max_requests_per_call)
        total = len(chunks)

        for chunk_index, chunk in enumerate(chunks):
            logger.info(f"Applying chunk {chunk_index + 1}/{total} ({len(chunk)} requests) to {document_id}")
            try:
                response = await self._execute_chunk(document_id, chunk)
            except HttpError as error:
                api_error = handle_http_error(error, document_id)
                logger.error(
                    f"Chunk {chunk_index + 1}/{total} failed for {document_id} "
                    f"after {chunk_index} committed chunks: {api_error}"
                )
                raise BatchUpdateError(
                    f"Batch update failed on chunk {chunk_index + 1} of {total} "
                    f"({chunk_index} chunks already applied): {api_error}",
                    chunk_index=chunk_index,
                    total_chunks=total,
                    status_code=api_error.status_code,
                ) from error

            response = response or {}
            result.replies.extend(response.get("replies", []) or [])
            result.document_id = response.get("documentId", result.document_id)
            result.write_control = response.get("writeControl", result.write_control)
            result.chunks += 1

        return result
