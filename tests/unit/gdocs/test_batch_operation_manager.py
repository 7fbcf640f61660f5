"""Unit tests for the batch operation manager (chunked, sequential batchUpdate)."""

from unittest.mock import MagicMock

import pytest
from googleapiclient.errors import HttpError

from core.errors import BatchUpdateError, ValidationError
from gdocs.docs_helpers import InsertText
from gdocs.managers import BatchOperationManager, chunk_operations
from gdocs.markdown_parser import MarkdownToDocsConverter


def recording_service(fail_on_call: int | None = None, status: int = 400):
    """Mock Docs service whose batchUpdate records each call's requests."""
    service = MagicMock()
    calls: list[list[dict]] = []

    def _batch_update(documentId, body):
        def _execute():
            calls.append(body["requests"])
            if fail_on_call is not None and len(calls) == fail_on_call:
                raise HttpError(resp=MagicMock(status=status, reason="Bad Request"), content=b"invalid index")
            return {"documentId": documentId, "replies": [{} for _ in body["requests"]]}

        return MagicMock(execute=_execute)

    service.documents.return_value.batchUpdate.side_effect = _batch_update
    return service, calls


class TestChunkOperations:
    def test_preserves_order_and_sizes(self):
        assert chunk_operations(list(range(7)), 3) == [[0, 1, 2], [3, 4, 5], [6]]

    def test_exact_multiple(self):
        assert chunk_operations(list(range(4)), 2) == [[0, 1], [2, 3]]

    def test_empty(self):
        assert chunk_operations([], 5) == []

    def test_invalid_chunk_size(self):
        with pytest.raises(ValidationError):
            chunk_operations([1], 0)


class TestBatchOperationManager:
    @pytest.mark.asyncio
    async def test_single_call_under_cap(self):
        service, calls = recording_service()
        operations = [InsertText(1, "a"), InsertText(2, "b")]

        result = await BatchOperationManager(service, max_requests_per_call=50).execute_batch_operations(
            "doc1", operations
        )

        assert len(calls) == 1
        assert calls[0] == [op.to_request() for op in operations]
        assert result.replies_count == 2
        assert result.chunks == 1

    @pytest.mark.asyncio
    async def test_chunks_sent_in_order(self):
        service, calls = recording_service()
        operations = [InsertText(i + 1, str(i)) for i in range(5)]

        result = await BatchOperationManager(service, max_requests_per_call=2).execute_batch_operations(
            "doc1", operations
        )

        assert [len(chunk) for chunk in calls] == [2, 2, 1]
        sent = [request for chunk in calls for request in chunk]
        assert sent == [op.to_request() for op in operations]
        assert result.replies_count == 5
        assert result.chunks == 3

    @pytest.mark.asyncio
    async def test_default_cap_from_config(self, env_override):
        env_override(GDOCS_MAX_BATCH_REQUESTS="3")
        service, calls = recording_service()
        manager = BatchOperationManager(service)

        await manager.execute_batch_operations("doc1", [InsertText(1, "x")] * 7)

        assert manager.max_requests_per_call == 3
        assert [len(chunk) for chunk in calls] == [3, 3, 1]

    @pytest.mark.asyncio
    async def test_empty_operations_make_no_call(self):
        service, calls = recording_service()
        result = await BatchOperationManager(service).execute_batch_operations("doc1", [])
        assert calls == []
        assert result.replies_count == 0

    @pytest.mark.asyncio
    async def test_failure_stops_and_reports_progress(self):
        service, calls = recording_service(fail_on_call=2)
        operations = [InsertText(1, "x")] * 5

        with pytest.raises(BatchUpdateError) as exc_info:
            await BatchOperationManager(service, max_requests_per_call=2).execute_batch_operations("doc1", operations)

        error = exc_info.value
        assert error.chunk_index == 1
        assert error.committed_chunks == 1
        assert error.total_chunks == 3
        assert error.status_code == 400
        assert isinstance(error.__cause__, HttpError)
        # the third chunk is never sent
        assert len(calls) == 2

    def test_invalid_cap(self):
        with pytest.raises(ValidationError):
            BatchOperationManager(MagicMock(), max_requests_per_call=0)


class TestChunkingEquivalence:
    """Chunked sequential application yields the same document as a single call."""

    MARKDOWN = (
        "# Release notes\n\n"
        "Intro with **bold**, *italic* and [a link](https://example.com).\n\n"
        "- first\n- second **item**\n\n"
        "1. one\n2. two\n\n"
        "> quoted `code`\n\n"
        "---\n\n"
        "```\nprint('hi')\n```\n\n"
        "![image](https://example.com/pic.png)\n\n"
        "Closing ~~old~~ text."
    )

    @pytest.mark.asyncio
    @pytest.mark.parametrize("chunk_size", [1, 3, 7])
    async def test_same_final_state(self, simulated_document, simulated_service, chunk_size):
        existing = "Old paragraph\nAnother one\n"
        result = MarkdownToDocsConverter().convert(self.MARKDOWN, document_end_index=len(existing) + 1)

        reference = simulated_document(existing)
        reference.apply(result.requests)

        chunked = simulated_document(existing)
        manager = BatchOperationManager(simulated_service(chunked), max_requests_per_call=chunk_size)
        await manager.execute_batch_operations("doc1", result.operations)

        assert chunked.to_document() == reference.to_document()
        assert chunked.requests_applied == len(result.operations)
