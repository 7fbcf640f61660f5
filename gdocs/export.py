"""
Google Docs to Markdown Export

This module provides the `DocsToMarkdownConverter` class, the reverse of
`MarkdownToDocsConverter`: it walks a document's structural tree and renders
paragraphs, lists, tables, images and section breaks as Markdown.

Inline styles are applied by trimming each text run, wrapping the trimmed text
in markers, and re-attaching a single leading/trailing space outside the
markers, so marker pairs never enclose whitespace and the output parses back
into the same spans.
"""

import logging
import re
from typing import Any

from gdocs.docs_model import (
    InlineObjectElement,
    ParagraphElement,
    ParagraphNode,
    SectionBreakNode,
    StructuralNode,
    TableCellNode,
    TableNode,
    TextRunElement,
    iter_paragraphs,
    parse_structural_elements,
)
from gdocs.docs_structure import get_body_content

logger = logging.getLogger(__name__)

MONOSPACE_FONT_FAMILIES = frozenset({"Courier New", "Consolas"})

NUMBERED_GLYPH_TYPES = frozenset({"DECIMAL", "ZERO_DECIMAL", "ALPHA", "UPPER_ALPHA", "ROMAN", "UPPER_ROMAN"})

_EXCESS_NEWLINES = re.compile(r"\n{3,}")


def add_line_numbers(markdown: str) -> str:
    """Prefix each line with its right-aligned 1-based number and a tab."""
    lines = markdown.split("\n")
    width = len(str(len(lines)))
    return "\n".join(f"{i + 1:>{width}}\t{line}" for i, line in enumerate(lines))


class DocsToMarkdownConverter:
    """
    Converts a Google Docs document (as returned by `documents().get`) to Markdown.

    Per-document state (inline objects, list definitions, numbering counters)
    is reset on every `convert` call, so one instance can be reused.

    Example:
        >>> converter = DocsToMarkdownConverter()
        >>> markdown = converter.convert(document)
    """

    def __init__(self, code_font_family: str | None = None) -> None:
        self.monospace_fonts = set(MONOSPACE_FONT_FAMILIES)
        if code_font_family:
            self.monospace_fonts.add(code_font_family)
        self._inline_objects: dict[str, Any] = {}
        self._lists: dict[str, Any] = {}
        self._list_counters: dict[tuple[str, int], int] = {}

    def convert(self, document: dict[str, Any], include_line_numbers: bool = False, tab_id: str | None = None) -> str:
        """
        Convert a document (or one of its tabs) to Markdown.

        Args:
            document: Document resource from the Docs API.
            include_line_numbers: Prefix every output line with its number.
            tab_id: Tab to export for multi-tab documents.

        Returns:
            The Markdown text, without leading/trailing blank lines.
        """
        self._inline_objects = document.get("inlineObjects", {}) or {}
        self._lists = document.get("lists", {}) or {}
        if tab_id:
            # Tab-scoped documents keep inline objects and lists on the tab
            for tab in document.get("tabs", []) or []:
                if tab.get("tabProperties", {}).get("tabId") == tab_id:
                    self._inline_objects = tab.get("documentTab", {}).get("inlineObjects", self._inline_objects)
                    self._lists = tab.get("documentTab", {}).get("lists", self._lists)
        self._list_counters = {}

        content = get_body_content(document, tab_id)
        markdown = self.convert_content(parse_structural_elements(content))

        if include_line_numbers:
            markdown = add_line_numbers(markdown)
        return markdown

    def convert_content(self, nodes: list[StructuralNode]) -> str:
        """Render parsed structural nodes and normalize blank lines."""
        pieces: list[str] = []
        code_blocks: list[str] = []
        code_lines: list[str] = []
        in_list = False

        def flush_code() -> None:
            if not code_lines:
                return
            # Fenced blocks are swapped in after blank-line normalization so their
            # own blank lines survive.
            code_blocks.append("```\n" + "\n".join(code_lines) + "\n```")
            pieces.append(f"\n\x00{len(code_blocks) - 1}\x00\n\n")
            code_lines.clear()

        for position, node in enumerate(nodes):
            if isinstance(node, ParagraphNode) and self._is_code_paragraph(node):
                if in_list:
                    pieces.append("\n")
                    in_list = False
                code_lines.append(node.text[:-1] if node.text.endswith("\n") else node.text)
                continue
            flush_code()

            is_list_item = False
            if isinstance(node, ParagraphNode):
                chunk, is_list_item = self._convert_paragraph(node)
            elif isinstance(node, TableNode):
                chunk = self._convert_table(node)
            elif isinstance(node, SectionBreakNode):
                # The body's leading section break is structural, not content
                chunk = "" if position == 0 else "\n---\n\n"
            else:
                chunk = ""

            if in_list and not is_list_item and chunk:
                pieces.append("\n")
            if chunk:
                in_list = is_list_item
            pieces.append(chunk)
        flush_code()

        markdown = _EXCESS_NEWLINES.sub("\n\n", "".join(pieces)).strip()
        for i, block in enumerate(code_blocks):
            markdown = markdown.replace(f"\x00{i}\x00", block)
        return markdown

    # =========================================================================
    # Paragraphs
    # =========================================================================

    def _convert_paragraph(self, paragraph: ParagraphNode) -> tuple[str, bool]:
        text = "".join(self._convert_element(el) for el in paragraph.elements)
        stripped = text.strip()
        style_type = paragraph.named_style_type

        if style_type.startswith("HEADING_"):
            try:
                level = int(style_type.split("_", 1)[1])
            except ValueError:
                level = 1
            return (f"{'#' * min(level, 6)} {stripped}\n\n" if stripped else ""), False
        if style_type == "TITLE":
            return (f"# {stripped}\n\n" if stripped else ""), False
        if style_type == "SUBTITLE":
            return (f"## {stripped}\n\n" if stripped else ""), False

        if paragraph.bullet is not None:
            nesting_level = paragraph.bullet.get("nestingLevel", 0) or 0
            list_id = paragraph.bullet.get("listId", "default")
            if not stripped:
                return "", True
            indent = "  " * nesting_level
            if self._is_numbered_list(list_id, nesting_level):
                key = (list_id, nesting_level)
                self._list_counters[key] = self._list_counters.get(key, 0) + 1
                return f"{indent}{self._list_counters[key]}. {stripped}\n", True
            return f"{indent}- {stripped}\n", True

        if not stripped:
            if _border_width(paragraph.paragraph_style, "borderBottom") > 0:
                return "---\n\n", False
            return "\n", False

        if self._is_blockquote(paragraph):
            return f"> {stripped}\n\n", False
        return f"{stripped}\n\n", False

    def _is_numbered_list(self, list_id: str, nesting_level: int) -> bool:
        levels = self._lists.get(list_id, {}).get("listProperties", {}).get("nestingLevels", [])
        if nesting_level >= len(levels):
            return False
        return levels[nesting_level].get("glyphType") in NUMBERED_GLYPH_TYPES

    def _is_blockquote(self, paragraph: ParagraphNode) -> bool:
        indent = (paragraph.paragraph_style.get("indentStart") or {}).get("magnitude", 0) or 0
        return indent > 0 or _border_width(paragraph.paragraph_style, "borderLeft") > 0

    def _is_code_paragraph(self, paragraph: ParagraphNode) -> bool:
        if paragraph.bullet is not None or paragraph.named_style_type != "NORMAL_TEXT":
            return False
        if self._is_blockquote(paragraph):
            return False
        runs = [el for el in paragraph.elements if isinstance(el, TextRunElement) and el.content]
        if not runs or len(runs) != len(paragraph.elements):
            return False
        # The closing newline must be monospace too; a lone inline code span ends in a plain one
        return all(self._is_monospace(run.text_style) for run in runs)

    def _is_monospace(self, text_style: dict[str, Any]) -> bool:
        family = (text_style.get("weightedFontFamily") or {}).get("fontFamily", "")
        return family in self.monospace_fonts or "mono" in family.lower()

    # =========================================================================
    # Paragraph elements
    # =========================================================================

    def _convert_element(self, element: ParagraphElement, drop_bold: bool = False) -> str:
        if isinstance(element, TextRunElement):
            return self._convert_text_run(element, drop_bold)
        if isinstance(element, InlineObjectElement):
            return self._convert_inline_object(element.inline_object_id)
        if element.kind == "horizontalRule":
            return "\n---\n"
        # pageBreak, columnBreak, footnoteReference, ... have no Markdown form
        return ""

    def _convert_text_run(self, run: TextRunElement, drop_bold: bool = False) -> str:
        text = run.content
        trimmed = text.strip()
        if not trimmed:
            return text

        style = run.text_style
        ends_with_newline = text.endswith("\n")
        starts_with_space = text.startswith(" ")
        ends_with_space = text.endswith(" ") or ends_with_newline

        url = (style.get("link") or {}).get("url")
        if url:
            trimmed = f"[{trimmed}]({url})"

        if self._is_monospace(style):
            trimmed = f"`{trimmed}`"
        else:
            if style.get("bold") and not drop_bold:
                trimmed = f"**{trimmed}**"
            if style.get("italic"):
                trimmed = f"*{trimmed}*"
            if style.get("strikethrough"):
                trimmed = f"~~{trimmed}~~"

        result = trimmed
        if starts_with_space:
            result = " " + result
        if ends_with_space and not ends_with_newline:
            result = result + " "
        if ends_with_newline:
            result = result + "\n"
        return result

    def _convert_inline_object(self, object_id: str) -> str:
        obj = self._inline_objects.get(object_id)
        if not obj:
            logger.debug(f"Inline object {object_id!r} not found in document")
            return ""

        embedded = obj.get("inlineObjectProperties", {}).get("embeddedObject", {})
        image = embedded.get("imageProperties")
        if not image:
            return ""

        uri = image.get("sourceUri") or image.get("contentUri") or ""
        if not uri:
            return ""
        alt = embedded.get("description") or embedded.get("title") or "image"
        return f"![{alt}]({uri})"

    # =========================================================================
    # Tables
    # =========================================================================

    def _convert_table(self, table: TableNode) -> str:
        if not table.rows:
            return ""

        rows = [[self._convert_cell(cell, header=(r == 0)) for cell in row.cells] for r, row in enumerate(table.rows)]

        lines = ["| " + " | ".join(rows[0]) + " |", "|" + "|".join("---" for _ in rows[0]) + "|"]
        lines.extend("| " + " | ".join(row) + " |" for row in rows[1:])
        return "\n" + "\n".join(lines) + "\n\n"

    def _convert_cell(self, cell: TableCellNode, header: bool = False) -> str:
        # Header cells are bold by convention, so bold is not marked up there
        text = "".join(
            self._convert_element(el, drop_bold=header) for para in iter_paragraphs(cell.content) for el in para.elements
        )
        return text.replace("\n", " ").strip() or " "


def _border_width(paragraph_style: dict[str, Any], side: str) -> float:
    border = paragraph_style.get(side) or {}
    return (border.get("width") or {}).get("magnitude", 0) or 0
