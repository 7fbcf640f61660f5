"""
Google Docs Document Structure Helpers

Locates text and paragraphs inside a document's structural tree and maps
positions in the flattened text back to true document indices. Also
resolves the body of a (possibly multi-tab) document.
"""

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any

from core.errors import ResourceNotFoundError, ValidationError
from gdocs.docs_helpers import utf16_len
from gdocs.docs_model import (
    ParagraphNode,
    StructuralNode,
    TableNode,
    TextRunElement,
    parse_structural_elements,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DocumentRange:
    start_index: int
    end_index: int


@dataclass(frozen=True)
class TextSegment:
    """A run of flattened text and the document index span it came from."""

    text: str
    start: int
    end: int


def _as_nodes(content: list[Any] | None) -> list[StructuralNode]:
    if not content:
        return []
    if isinstance(content[0], dict):
        return parse_structural_elements(content)
    return content


# =============================================================================
# Tabs and body content
# =============================================================================


def iter_tabs(document: dict[str, Any]) -> Iterator[tuple[dict[str, Any], int]]:
    """Yield (tab, nesting_level) for every tab, parents before their children."""

    def _walk(tabs: list[dict[str, Any]], level: int):
        for tab in tabs or []:
            yield tab, level
            yield from _walk(tab.get("childTabs", []), level + 1)

    yield from _walk(document.get("tabs", []), 0)


def get_body_content(document: dict[str, Any], tab_id: str | None = None) -> list[dict[str, Any]]:
    """
    Return the raw body content list of a document or one of its tabs.

    Without a tab_id the legacy top-level body is used, falling back to the
    first tab for documents fetched with includeTabsContent.

    Raises:
        ResourceNotFoundError: if tab_id does not name a tab of the document.
    """
    if tab_id:
        for tab, _level in iter_tabs(document):
            if tab.get("tabProperties", {}).get("tabId") == tab_id:
                return tab.get("documentTab", {}).get("body", {}).get("content", [])
        raise ResourceNotFoundError(f"Tab '{tab_id}' not found in document {document.get('documentId', '')}")

    if "body" in document:
        return document.get("body", {}).get("content", [])

    for tab, _level in iter_tabs(document):
        return tab.get("documentTab", {}).get("body", {}).get("content", [])
    return []


def get_document_end_index(content: list[Any]) -> int:
    """End index of the last structural element (1 for an empty body)."""
    nodes = _as_nodes(content)
    if not nodes:
        return 1
    return max(node.end_index for node in nodes)


# =============================================================================
# Flattening and text location
# =============================================================================


def collect_text_segments(content: list[Any]) -> list[TextSegment]:
    """
    Flatten paragraph text runs (including those in table cells) into segments.

    Segments are sorted by document start index. Their concatenated text is
    the document's flattened text; their spans never overlap but are not
    necessarily contiguous.
    """
    segments: list[TextSegment] = []

    def _collect(nodes: list[StructuralNode]) -> None:
        for node in nodes:
            if isinstance(node, ParagraphNode):
                for element in node.elements:
                    if isinstance(element, TextRunElement) and element.content:
                        segments.append(TextSegment(element.content, element.start_index, element.end_index))
            elif isinstance(node, TableNode):
                for row in node.rows:
                    for cell in row.cells:
                        _collect(cell.content)

    _collect(_as_nodes(content))
    segments.sort(key=lambda seg: seg.start)
    return segments


def _map_match(segments: list[TextSegment], match_start: int, match_end: int) -> DocumentRange | None:
    """
    Map a [match_start, match_end) range of flattened text to document indices.

    Offsets into the flattened text count code points; document indices count
    UTF-16 code units, so the distance into a segment is measured on its text.

    Returns None when the match crosses a gap between non-contiguous segments
    (e.g. from one table cell into the next).
    """
    position = 0
    start_index = None
    previous: TextSegment | None = None

    for seg in segments:
        seg_start_in_text = position
        seg_end_in_text = position + len(seg.text)

        if start_index is not None and previous is not None and previous.end != seg.start:
            return None

        if start_index is None and seg_start_in_text <= match_start < seg_end_in_text:
            start_index = seg.start + utf16_len(seg.text[: match_start - seg_start_in_text])

        if start_index is not None and seg_start_in_text < match_end <= seg_end_in_text:
            return DocumentRange(start_index, seg.start + utf16_len(seg.text[: match_end - seg_start_in_text]))

        position = seg_end_in_text
        previous = seg

    return None


def find_text_range(content: list[Any], text_to_find: str, instance: int = 1) -> DocumentRange | None:
    """
    Find the document range of the Nth occurrence of text.

    Args:
        content: Body content, raw API dicts or parsed nodes.
        text_to_find: Non-empty text to search for.
        instance: 1-based occurrence number.

    Returns:
        The DocumentRange of the occurrence, or None if fewer than `instance`
        mappable occurrences exist. Occurrences that cannot be mapped back to
        document indices are skipped and do not count.
    """
    if not text_to_find:
        raise ValidationError("text_to_find cannot be empty")
    if isinstance(instance, bool) or not isinstance(instance, int) or instance < 1:
        raise ValidationError("instance must be a positive integer")

    segments = collect_text_segments(content)
    full_text = "".join(seg.text for seg in segments)

    found = 0
    search_from = 0
    while True:
        match_start = full_text.find(text_to_find, search_from)
        if match_start == -1:
            return None
        match_end = match_start + len(text_to_find)

        mapped = _map_match(segments, match_start, match_end)
        if mapped is None:
            logger.warning(
                f"Occurrence of {text_to_find!r} at flattened offset {match_start} spans a structural gap; skipping"
            )
            search_from = match_start + 1
            continue

        found += 1
        if found == instance:
            logger.debug(f"Found instance {instance} of {text_to_find!r} at [{mapped.start_index}, {mapped.end_index})")
            return mapped
        search_from = match_end


def get_paragraph_range(content: list[Any], index_within: int) -> DocumentRange | None:
    """
    Return the full span of the paragraph containing a document index.

    Tables are searched cell by cell. Returns None when no paragraph contains
    the index.
    """
    if isinstance(index_within, bool) or not isinstance(index_within, int) or index_within < 0:
        raise ValidationError("index_within must be a non-negative integer")

    def _find(nodes: list[StructuralNode]) -> DocumentRange | None:
        for node in nodes:
            if not node.start_index <= index_within < node.end_index:
                continue
            if isinstance(node, ParagraphNode):
                return DocumentRange(node.start_index, node.end_index)
            if isinstance(node, TableNode):
                for row in node.rows:
                    for cell in row.cells:
                        result = _find(cell.content)
                        if result:
                            return result
        return None

    return _find(_as_nodes(content))


def find_tables(content: list[Any]) -> list[TableNode]:
    """Return all tables in document order, including tables nested in cells."""
    tables: list[TableNode] = []

    def _walk(nodes: list[StructuralNode]) -> None:
        for node in nodes:
            if isinstance(node, TableNode):
                tables.append(node)
                for row in node.rows:
                    for cell in row.cells:
                        _walk(cell.content)

    _walk(_as_nodes(content))
    return tables
