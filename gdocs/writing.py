"""
Google Docs Writing Workflows

This module provides async workflows that modify a Google Doc: appending or
replacing content from Markdown, and styling text or paragraphs located by
content or position.
"""

import logging
from typing import Any

from core.config import ConversionOptions
from core.errors import IncompatibleDocumentError, ResourceNotFoundError, ValidationError
from core.utils import handle_http_errors, validate_document_id, validate_positive_int
from gdocs.compatibility import DocumentCompatibilityChecker, MarkdownSubsetChecker, format_issues
from gdocs.docs_helpers import create_format_text_request, create_paragraph_style_request
from gdocs.docs_structure import find_text_range, get_body_content, get_document_end_index, get_paragraph_range
from gdocs.managers import BatchOperationManager
from gdocs.markdown_parser import MarkdownToDocsConverter
from gdocs.reading import fetch_document

logger = logging.getLogger(__name__)


def _warn_unsupported_markdown(tool_name: str, markdown_text: str) -> None:
    for issue in MarkdownSubsetChecker().check(markdown_text):
        logger.warning(f"[{tool_name}] line {issue.line}: {issue.message}")


async def _apply_markdown(
    service: Any, document_id: str, document: dict[str, Any], markdown_text: str, options: ConversionOptions
) -> tuple[int, int]:
    """
    Convert Markdown against the fetched document, apply it, then populate any tables.

    Returns:
        (number of requests applied, number of tables inserted)
    """
    end_index = get_document_end_index(get_body_content(document, options.tab_id))
    converter = MarkdownToDocsConverter()
    result = converter.convert(markdown_text, options, document_end_index=end_index)

    manager = BatchOperationManager(service)
    await manager.execute_batch_operations(document_id, result.operations)
    applied = len(result.operations)

    if result.tables:
        # Cell indices only exist once the empty tables are in the document
        logger.info(f"Populating {len(result.tables)} table(s) in {document_id}")
        updated = await fetch_document(service, document_id, options.tab_id)
        population = converter.populate_tables(get_body_content(updated, options.tab_id), result.tables, options.tab_id)
        await manager.execute_batch_operations(document_id, population)
        applied += len(population)

    return applied, len(result.tables)


@handle_http_errors("insert_markdown")
async def insert_markdown(
    service: Any,
    document_id: str,
    markdown_text: str,
    tab_id: str | None = None,
    image_width_pt: float | None = None,
    image_height_pt: float | None = None,
) -> str:
    """
    Appends Markdown content to the end of a Google Doc.

    Args:
        service: Docs API resource.
        document_id: ID of the document to update.
        markdown_text: Markdown to append. Appended blocks always start a new paragraph.
        tab_id: Tab to append to in multi-tab documents.
        image_width_pt: Width for inserted images (defaults to configuration).
        image_height_pt: Height for inserted images (defaults to configuration).

    Returns:
        str: Confirmation message with the number of applied changes.
    """
    logger.info(f"[insert_markdown] Doc={document_id}, tab={tab_id}, length={len(markdown_text)}")
    document_id = validate_document_id(document_id)
    if not markdown_text.strip():
        raise ValidationError("markdown_text cannot be empty")
    _warn_unsupported_markdown("insert_markdown", markdown_text)

    options = ConversionOptions(image_width_pt=image_width_pt, image_height_pt=image_height_pt, tab_id=tab_id)
    document = await fetch_document(service, document_id, tab_id)
    applied, tables = await _apply_markdown(service, document_id, document, markdown_text, options)

    table_info = f" (including {tables} table(s))" if tables else ""
    return f"Appended Markdown to document {document_id}: applied {applied} changes{table_info}."


@handle_http_errors("write_doc_as_markdown")
async def write_doc_as_markdown(
    service: Any,
    document_id: str,
    markdown_text: str,
    confirm: bool = False,
    tab_id: str | None = None,
    check_compatibility: bool = True,
) -> str:
    """
    Replaces the entire content of a Google Doc with Markdown.

    Args:
        service: Docs API resource.
        document_id: ID of the document to overwrite.
        markdown_text: Markdown for the new content.
        confirm: Must be True; every existing element is deleted.
        tab_id: Tab to overwrite in multi-tab documents.
        check_compatibility: Refuse documents whose content Markdown cannot represent.

    Returns:
        str: Confirmation message with the number of applied changes.

    Raises:
        ValidationError: when confirm is not set.
        IncompatibleDocumentError: when the current document is not Markdown compatible.
    """
    logger.info(f"[write_doc_as_markdown] Doc={document_id}, tab={tab_id}, length={len(markdown_text)}")
    if not confirm:
        raise ValidationError(
            "confirm must be True to replace document content. "
            "This deletes all existing content and replaces it with the provided Markdown."
        )
    document_id = validate_document_id(document_id)
    if not markdown_text.strip():
        raise ValidationError("markdown_text cannot be empty")
    _warn_unsupported_markdown("write_doc_as_markdown", markdown_text)

    document = await fetch_document(service, document_id, tab_id)
    if check_compatibility:
        result = DocumentCompatibilityChecker().check(document, tab_id)
        if not result.compatible:
            raise IncompatibleDocumentError(
                "Cannot write to this document as Markdown.\n\n" + format_issues(result.issues), result.issues
            )

    options = ConversionOptions(full_replace=True, tab_id=tab_id)
    applied, tables = await _apply_markdown(service, document_id, document, markdown_text, options)

    title = document.get("title") or "Untitled Document"
    table_info = f" (including {tables} table(s))" if tables else ""
    return f'Replaced content of document "{title}" ({document_id}): applied {applied} changes{table_info}.'


@handle_http_errors("format_text_instance")
async def format_text_instance(
    service: Any,
    document_id: str,
    text_to_find: str,
    instance: int = 1,
    tab_id: str | None = None,
    bold: bool | None = None,
    italic: bool | None = None,
    underline: bool | None = None,
    strikethrough: bool | None = None,
    font_size: float | None = None,
    font_family: str | None = None,
    text_color: str | None = None,
    background_color: str | None = None,
    link_url: str | None = None,
    remove_link: bool = False,
) -> str:
    """
    Applies character formatting to the N-th occurrence of a text in a Google Doc.

    Args:
        document_id: ID of the document to update.
        text_to_find: Exact text to locate (case-sensitive).
        instance: Which occurrence to format (1-based).
        bold, italic, underline, strikethrough: True/False to set, None to leave unchanged.
        font_size: Font size in points.
        font_family: Font family name (e.g., "Arial").
        text_color: Foreground color (#RRGGBB or #RGB).
        background_color: Highlight color (#RRGGBB or #RGB).
        link_url: http(s) URL to link the text to.
        remove_link: Remove an existing link.

    Returns:
        str: Confirmation message with the formatted range.

    Raises:
        ResourceNotFoundError: when the occurrence does not exist.
    """
    logger.info(f"[format_text_instance] Doc={document_id}, find='{text_to_find}', instance={instance}")
    document_id = validate_document_id(document_id)
    validate_positive_int(instance, "instance")

    # Validate the style before touching the API
    style_kwargs = dict(
        bold=bold,
        italic=italic,
        underline=underline,
        strikethrough=strikethrough,
        font_size=font_size,
        font_family=font_family,
        text_color=text_color,
        background_color=background_color,
        link_url=link_url,
        remove_link=remove_link,
    )
    if create_format_text_request(1, 2, **style_kwargs) is None:
        raise ValidationError("At least one formatting parameter must be provided")

    document = await fetch_document(service, document_id, tab_id)
    found = find_text_range(get_body_content(document, tab_id), text_to_find, instance)
    if found is None:
        raise ResourceNotFoundError(
            f"Instance {instance} of '{text_to_find}' not found in document {document_id}.", status_code=404
        )

    request = create_format_text_request(found.start_index, found.end_index, tab_id=tab_id, **style_kwargs)
    await BatchOperationManager(service).execute_batch_operations(document_id, [request])

    return (
        f"Formatted instance {instance} of '{text_to_find}' (range {found.start_index}-{found.end_index}) "
        f"in document {document_id}."
    )


@handle_http_errors("format_paragraph_at")
async def format_paragraph_at(
    service: Any,
    document_id: str,
    index: int,
    tab_id: str | None = None,
    alignment: str | None = None,
    indent_start: float | None = None,
    indent_end: float | None = None,
    indent_first_line: float | None = None,
    space_above: float | None = None,
    space_below: float | None = None,
    named_style_type: str | None = None,
    keep_with_next: bool | None = None,
) -> str:
    """
    Applies paragraph formatting to the paragraph containing a document index.

    Returns:
        str: Confirmation message with the paragraph range.
    """
    logger.info(f"[format_paragraph_at] Doc={document_id}, index={index}, named_style={named_style_type}")
    document_id = validate_document_id(document_id)

    style_kwargs = dict(
        alignment=alignment,
        indent_start=indent_start,
        indent_end=indent_end,
        indent_first_line=indent_first_line,
        space_above=space_above,
        space_below=space_below,
        named_style_type=named_style_type,
        keep_with_next=keep_with_next,
    )
    if create_paragraph_style_request(1, 2, **style_kwargs) is None:
        raise ValidationError("At least one paragraph style parameter must be provided")

    document = await fetch_document(service, document_id, tab_id)
    paragraph = get_paragraph_range(get_body_content(document, tab_id), index)
    if paragraph is None:
        raise ResourceNotFoundError(f"No paragraph contains index {index} in document {document_id}.", status_code=404)

    request = create_paragraph_style_request(paragraph.start_index, paragraph.end_index, tab_id=tab_id, **style_kwargs)
    await BatchOperationManager(service).execute_batch_operations(document_id, [request])

    return f"Formatted paragraph {paragraph.start_index}-{paragraph.end_index} in document {document_id}."
