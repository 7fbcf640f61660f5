"""
Typed view of a Google Docs structural tree.

The Docs API returns body content as a list of loosely typed dicts. This
module turns that list into dataclass nodes (paragraph, table, section
break, table of contents, other) so the locator, the Markdown exporter and
the compatibility checker share one traversal vocabulary. Table cells hold
the same node types, so the tree is recursive with no back-references.
"""

from dataclasses import dataclass, field
from typing import Any

# =============================================================================
# Paragraph elements
# =============================================================================


@dataclass
class TextRunElement:
    start_index: int
    end_index: int
    content: str
    text_style: dict[str, Any] = field(default_factory=dict)


@dataclass
class InlineObjectElement:
    start_index: int
    end_index: int
    inline_object_id: str
    text_style: dict[str, Any] = field(default_factory=dict)


@dataclass
class OtherElement:
    """Paragraph element with no text mapping (person, rich link, equation, ...)."""

    start_index: int
    end_index: int
    kind: str
    raw: dict[str, Any] = field(default_factory=dict)


ParagraphElement = TextRunElement | InlineObjectElement | OtherElement


# =============================================================================
# Structural elements
# =============================================================================


@dataclass
class ParagraphNode:
    start_index: int
    end_index: int
    elements: list[ParagraphElement] = field(default_factory=list)
    paragraph_style: dict[str, Any] = field(default_factory=dict)
    bullet: dict[str, Any] | None = None
    positioned_object_ids: list[str] = field(default_factory=list)

    @property
    def named_style_type(self) -> str:
        return self.paragraph_style.get("namedStyleType", "NORMAL_TEXT")

    @property
    def text(self) -> str:
        return "".join(el.content for el in self.elements if isinstance(el, TextRunElement))


@dataclass
class TableCellNode:
    start_index: int
    end_index: int
    content: list["StructuralNode"] = field(default_factory=list)
    row_span: int = 1
    column_span: int = 1

    @property
    def text(self) -> str:
        return "".join(node.text for node in self.content if isinstance(node, ParagraphNode))


@dataclass
class TableRowNode:
    start_index: int
    end_index: int
    cells: list[TableCellNode] = field(default_factory=list)


@dataclass
class TableNode:
    start_index: int
    end_index: int
    rows: list[TableRowNode] = field(default_factory=list)

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def column_count(self) -> int:
        return max((len(row.cells) for row in self.rows), default=0)


@dataclass
class SectionBreakNode:
    start_index: int
    end_index: int


@dataclass
class TableOfContentsNode:
    start_index: int
    end_index: int
    content: list["StructuralNode"] = field(default_factory=list)


@dataclass
class OtherNode:
    start_index: int
    end_index: int
    kind: str


StructuralNode = ParagraphNode | TableNode | SectionBreakNode | TableOfContentsNode | OtherNode


def _indices(raw: dict[str, Any]) -> tuple[int, int]:
    # The API omits startIndex on the very first element of a body (index 0).
    return raw.get("startIndex", 0), raw.get("endIndex", 0)


def _parse_paragraph_element(raw: dict[str, Any]) -> ParagraphElement:
    start, end = _indices(raw)
    if "textRun" in raw:
        run = raw["textRun"]
        return TextRunElement(start, end, run.get("content", ""), run.get("textStyle", {}) or {})
    if "inlineObjectElement" in raw:
        obj = raw["inlineObjectElement"]
        return InlineObjectElement(start, end, obj.get("inlineObjectId", ""), obj.get("textStyle", {}) or {})

    kind = next((key for key in raw if key not in ("startIndex", "endIndex")), "unknown")
    return OtherElement(start, end, kind, raw.get(kind, {}) or {})


def _parse_table(raw: dict[str, Any], start: int, end: int) -> TableNode:
    table = TableNode(start, end)
    for raw_row in raw.get("tableRows", []):
        row_start, row_end = _indices(raw_row)
        row = TableRowNode(row_start, row_end)
        for raw_cell in raw_row.get("tableCells", []):
            cell_start, cell_end = _indices(raw_cell)
            cell_style = raw_cell.get("tableCellStyle", {}) or {}
            row.cells.append(
                TableCellNode(
                    cell_start,
                    cell_end,
                    parse_structural_elements(raw_cell.get("content", [])),
                    row_span=cell_style.get("rowSpan", 1) or 1,
                    column_span=cell_style.get("columnSpan", 1) or 1,
                )
            )
        table.rows.append(row)
    return table


def parse_structural_element(raw: dict[str, Any]) -> StructuralNode:
    start, end = _indices(raw)

    if "paragraph" in raw:
        para = raw["paragraph"]
        return ParagraphNode(
            start,
            end,
            [_parse_paragraph_element(el) for el in para.get("elements", [])],
            para.get("paragraphStyle", {}) or {},
            para.get("bullet"),
            list(para.get("positionedObjectIds", []) or []),
        )
    if "table" in raw:
        return _parse_table(raw["table"], start, end)
    if "sectionBreak" in raw:
        return SectionBreakNode(start, end)
    if "tableOfContents" in raw:
        return TableOfContentsNode(start, end, parse_structural_elements(raw["tableOfContents"].get("content", [])))

    kind = next((key for key in raw if key not in ("startIndex", "endIndex")), "unknown")
    return OtherNode(start, end, kind)


def parse_structural_elements(content: list[dict[str, Any]] | None) -> list[StructuralNode]:
    """Parse a body/cell `content` list into typed nodes, preserving order."""
    return [parse_structural_element(raw) for raw in content or []]


def iter_paragraphs(nodes: list[StructuralNode]):
    """Yield every paragraph in document order, descending into tables and tables of contents."""
    for node in nodes:
        if isinstance(node, ParagraphNode):
            yield node
        elif isinstance(node, TableNode):
            for row in node.rows:
                for cell in row.cells:
                    yield from iter_paragraphs(cell.content)
        elif isinstance(node, TableOfContentsNode):
            yield from iter_paragraphs(node.content)
