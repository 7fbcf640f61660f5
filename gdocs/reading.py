"""
Google Docs Reading Workflows

This module provides async workflows that fetch a Google Doc and render it as
Markdown or report whether it can be edited as Markdown.
"""

import asyncio
import logging
from typing import Any

from core.config import get_config
from core.errors import IncompatibleDocumentError
from core.utils import handle_http_errors, validate_document_id
from gdocs.compatibility import DocumentCompatibilityChecker, format_issues
from gdocs.export import DocsToMarkdownConverter

logger = logging.getLogger(__name__)


async def fetch_document(service: Any, document_id: str, tab_id: str | None = None) -> dict[str, Any]:
    """Fetch a document resource; tab content is requested only when a tab is addressed."""
    return await asyncio.to_thread(
        service.documents().get(documentId=document_id, includeTabsContent=bool(tab_id)).execute
    )


@handle_http_errors("read_doc_as_markdown", is_read_only=True)
async def read_doc_as_markdown(
    service: Any,
    document_id: str,
    include_line_numbers: bool = False,
    tab_id: str | None = None,
    check_compatibility: bool = True,
) -> str:
    """
    Reads a Google Doc and returns its content as Markdown.

    Args:
        service: Docs API resource.
        document_id: ID of the document to read.
        include_line_numbers: Prefix every Markdown line with its number.
        tab_id: Tab to read in multi-tab documents.
        check_compatibility: Refuse documents with elements Markdown cannot represent.

    Returns:
        str: A short header (title, ID) followed by the Markdown content.

    Raises:
        IncompatibleDocumentError: when check_compatibility is set and the
            document contains equations, footnotes, merged cells, ...
    """
    logger.info(f"[read_doc_as_markdown] Doc={document_id}, tab={tab_id}, line_numbers={include_line_numbers}")
    document_id = validate_document_id(document_id)

    document = await fetch_document(service, document_id, tab_id)
    title = document.get("title") or "Untitled Document"

    if check_compatibility:
        result = DocumentCompatibilityChecker().check(document, tab_id)
        if not result.compatible:
            raise IncompatibleDocumentError(format_issues(result.issues), result.issues)

    converter = DocsToMarkdownConverter(code_font_family=get_config().code_font_family)
    markdown = converter.convert(document, include_line_numbers=include_line_numbers, tab_id=tab_id)

    return f"# {title}\n\nDocument ID: {document_id}\n\n---\n\n{markdown}\n"


@handle_http_errors("check_doc_markdown_compatibility", is_read_only=True)
async def check_doc_markdown_compatibility(service: Any, document_id: str, tab_id: str | None = None) -> str:
    """
    Reports whether a Google Doc can be read and written as Markdown.

    Returns:
        str: A compatibility report listing any incompatible elements.
    """
    logger.info(f"[check_doc_markdown_compatibility] Doc={document_id}, tab={tab_id}")
    document_id = validate_document_id(document_id)

    document = await fetch_document(service, document_id, tab_id)
    result = DocumentCompatibilityChecker().check(document, tab_id)

    output = [
        "# Markdown Compatibility Check",
        "",
        f"Document: {document.get('title') or 'Untitled Document'}",
        f"ID: {document_id}",
        "",
    ]
    if result.compatible:
        output.append("Compatible with Markdown editing.")
    else:
        output.append("Not compatible with Markdown editing.")
        output.append("")
        output.append(format_issues(result.issues))
    return "\n".join(output)
