"""
Markdown to Google Docs Converter

This module provides the `MarkdownToDocsConverter` class that translates Markdown
into Google Docs API `batchUpdate` operations: headings, paragraphs, bullet and
numbered lists, tables, code blocks, block quotes, horizontal rules, images,
and inline bold/italic/strikethrough/code/link spans.

Conversion is a fold over the parsed block list. An index cursor is threaded
through every block: each block is rendered at the cursor, and the cursor then
advances by exactly the number of index positions the block occupies. Every
operation is computed against the document as it will look after all earlier
inserts of the same batch have been applied, so the final list must be sent in
order: deletion, inserts, paragraph styles, then text styles.

Example:
    >>> converter = MarkdownToDocsConverter()
    >>> result = converter.convert("# Title\\n\\nHello **world**.")
    >>> [list(r)[0] for r in result.requests]
    ['insertText', 'insertText', 'updateParagraphStyle', 'updateTextStyle']

See Also:
    - `gdocs/markdown_blocks.py` for block classification
    - `gdocs/inline_formatting.py` for inline span extraction
    - `gdocs/writing.py` for the workflows that send these operations
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from core.config import ConversionOptions, EngineConfig, get_config
from gdocs.docs_helpers import (
    BULLET_PRESET_ORDERED,
    BULLET_PRESET_UNORDERED,
    CreateParagraphBullets,
    DeleteRange,
    EditOperation,
    InsertInlineImage,
    InsertTable,
    InsertText,
    UpdateParagraphStyle,
    UpdateTextStyle,
    build_paragraph_style,
    build_text_style,
    utf16_len,
)
from gdocs.docs_structure import find_tables
from gdocs.inline_formatting import FormatSpan, InlineText, SpanKind, parse_inline_formatting
from gdocs.markdown_blocks import Block, BlockType, parse_markdown_blocks

logger = logging.getLogger(__name__)

# Named style mappings for headings (level 1 -> HEADING_1, etc.)
HEADING_STYLE_MAP: dict[int, str] = {
    1: "HEADING_1",
    2: "HEADING_2",
    3: "HEADING_3",
    4: "HEADING_4",
    5: "HEADING_5",
    6: "HEADING_6",
}

# Blockquote left border
BLOCKQUOTE_BORDER_WIDTH_PT = 3.0
BLOCKQUOTE_BORDER_PADDING_PT = 12.0
BLOCKQUOTE_BORDER_COLOR = {"red": 0.7, "green": 0.7, "blue": 0.7}

# Google Docs has no native horizontal rule; an empty paragraph with a bottom border stands in
HR_BORDER_WIDTH_PT = 1.0
HR_BORDER_COLOR = {"red": 0.7, "green": 0.7, "blue": 0.7}
HR_PADDING_BELOW_PT = 6


def table_index_length(rows: int, columns: int) -> int:
    """
    Index positions consumed by an empty table inserted with insertTable.

    Google Docs Table Index Math:
    - Inserting at `I` adds a paragraph break plus the table start marker
    - Each row adds one row marker plus two indices per cell
      (cell marker + the cell's empty paragraph)
    - The first cell's paragraph is therefore at `I + 3`
    """
    return 2 + rows * (2 * columns + 1)


@dataclass(frozen=True)
class TableInsertion:
    """An empty table inserted by the first pass, waiting for its cell text."""

    start_index: int
    rows: int
    columns: int
    cell_content: tuple[tuple[str, ...], ...]


@dataclass
class RenderedBlock:
    inserts: list[EditOperation] = field(default_factory=list)
    paragraph_ops: list[EditOperation] = field(default_factory=list)
    text_ops: list[EditOperation] = field(default_factory=list)
    length: int = 0
    table: TableInsertion | None = None


@dataclass
class ConversionResult:
    """
    Output of one conversion pass.

    Attributes:
        operations: Edit operations in the order they must be applied.
        tables: Tables whose cells still need populating (second pass).
        block_starts: Cursor value before each rendered block.
        end_index: Cursor value after the last block.
    """

    operations: list[EditOperation] = field(default_factory=list)
    tables: list[TableInsertion] = field(default_factory=list)
    block_starts: list[int] = field(default_factory=list)
    end_index: int = 1

    @property
    def requests(self) -> list[dict[str, Any]]:
        return [op.to_request() for op in self.operations]


class MarkdownToDocsConverter:
    """
    Converts Markdown text into Google Docs API batchUpdate operations.

    The converter holds configuration only; each call to `convert` is
    independent and the same instance can be reused.

    Example:
        >>> converter = MarkdownToDocsConverter()
        >>> result = converter.convert("- one\\n- two", document_end_index=1)
        >>> result.end_index
        9
    """

    def __init__(self, config: EngineConfig | None = None) -> None:
        self.config = config or get_config()

    def parse(self, markdown_text: str) -> list[Block]:
        return parse_markdown_blocks(markdown_text)

    def convert(
        self,
        markdown_text: str,
        options: ConversionOptions | None = None,
        document_end_index: int = 1,
    ) -> ConversionResult:
        """
        Convert Markdown text to Google Docs edit operations.

        Args:
            markdown_text: The Markdown string to convert.
            options: Per-call options (full replacement, image size, tab).
            document_end_index: End index of the target body as last fetched.
                                1 or 2 means the body is empty.

        Returns:
            ConversionResult with operations ordered as: optional delete,
            inserts in block order, paragraph styles, text styles.
        """
        options = options or ConversionOptions()
        tab_id = options.tab_id
        blocks = self.parse(markdown_text)

        leading: list[EditOperation] = []
        if options.full_replace:
            # Keep the body's final newline; the API rejects deleting it
            if document_end_index > 2:
                leading.append(DeleteRange(1, document_end_index - 1, tab_id))
            cursor = 1
        elif document_end_index > 2:
            # Start a fresh paragraph after the existing content
            leading.append(InsertText(document_end_index - 1, "\n", tab_id))
            cursor = document_end_index
        else:
            cursor = 1

        image_size = (
            options.image_width_pt or self.config.image_width_pt,
            options.image_height_pt or self.config.image_height_pt,
        )

        result = ConversionResult()
        inserts: list[EditOperation] = []
        paragraph_ops: list[EditOperation] = []
        text_ops: list[EditOperation] = []

        for block in blocks:
            rendered = self.render_block(block, cursor, image_size=image_size, tab_id=tab_id)
            logger.debug(f"{block.type.value} at {cursor}: +{rendered.length}")

            result.block_starts.append(cursor)
            inserts.extend(rendered.inserts)
            paragraph_ops.extend(rendered.paragraph_ops)
            text_ops.extend(rendered.text_ops)
            if rendered.table:
                result.tables.append(rendered.table)
            cursor += rendered.length

        result.operations = leading + inserts + paragraph_ops + text_ops
        result.end_index = cursor
        logger.info(
            f"Converted {len(blocks)} blocks into {len(result.operations)} operations "
            f"({len(result.tables)} tables pending), cursor {document_end_index} -> {cursor}"
        )
        return result

    def populate_tables(
        self, content: list[Any], tables: list[TableInsertion], tab_id: str | None = None
    ) -> list[EditOperation]:
        """Second-pass cell population, styled with this converter's configuration."""
        return build_table_population_requests(
            content, tables, tab_id=tab_id, code_font_family=self.config.code_font_family
        )

    def render_block(
        self,
        block: Block,
        start_index: int,
        image_size: tuple[float, float] | None = None,
        tab_id: str | None = None,
    ) -> RenderedBlock:
        """
        Render one block at `start_index` without touching any shared state.

        The returned `length` is the exact number of index positions the block
        occupies once its inserts are applied.
        """
        if block.type is BlockType.HORIZONTAL_RULE:
            return self._render_horizontal_rule(start_index, tab_id)
        if block.type is BlockType.IMAGE:
            width, height = image_size or (self.config.image_width_pt, self.config.image_height_pt)
            return self._render_image(block, start_index, width, height, tab_id)
        if block.type is BlockType.TABLE:
            return self._render_table(block, start_index, tab_id)
        if block.type is BlockType.CODE_BLOCK:
            return self._render_code_block(block, start_index, tab_id)
        return self._render_text_block(block, start_index, tab_id)

    def _render_text_block(self, block: Block, start_index: int, tab_id: str | None) -> RenderedBlock:
        inline = parse_inline_formatting(block.content)
        full_text = inline.text + "\n"
        end_index = start_index + utf16_len(full_text)

        rendered = RenderedBlock(
            inserts=[InsertText(start_index, full_text, tab_id)],
            text_ops=self._span_operations(inline, start_index, tab_id),
            length=utf16_len(full_text),
        )

        if block.type is BlockType.HEADING:
            style, fields = build_paragraph_style(named_style_type=HEADING_STYLE_MAP[block.level])
            rendered.paragraph_ops.append(UpdateParagraphStyle(start_index, end_index, style, tuple(fields), tab_id))
        elif block.type is BlockType.BULLET_ITEM:
            rendered.paragraph_ops.append(
                CreateParagraphBullets(start_index, end_index, BULLET_PRESET_UNORDERED, tab_id)
            )
        elif block.type is BlockType.NUMBERED_ITEM:
            rendered.paragraph_ops.append(CreateParagraphBullets(start_index, end_index, BULLET_PRESET_ORDERED, tab_id))
        elif block.type is BlockType.BLOCKQUOTE:
            rendered.paragraph_ops.append(self._blockquote_style(start_index, end_index, tab_id))

        return rendered

    def _render_code_block(self, block: Block, start_index: int, tab_id: str | None) -> RenderedBlock:
        full_text = block.content + "\n"
        style, fields = build_text_style(font_family=self.config.code_font_family)
        return RenderedBlock(
            inserts=[InsertText(start_index, full_text, tab_id)],
            text_ops=[UpdateTextStyle(start_index, start_index + utf16_len(full_text), style, tuple(fields), tab_id)],
            length=utf16_len(full_text),
        )

    def _render_horizontal_rule(self, start_index: int, tab_id: str | None) -> RenderedBlock:
        border = {
            "borderBottom": {
                "color": {"color": {"rgbColor": HR_BORDER_COLOR}},
                "width": {"magnitude": HR_BORDER_WIDTH_PT, "unit": "PT"},
                "dashStyle": "SOLID",
                "padding": {"magnitude": HR_PADDING_BELOW_PT, "unit": "PT"},
            }
        }
        return RenderedBlock(
            inserts=[InsertText(start_index, "\n", tab_id)],
            paragraph_ops=[UpdateParagraphStyle(start_index, start_index + 1, border, ("borderBottom",), tab_id)],
            length=1,
        )

    def _render_image(
        self, block: Block, start_index: int, width: float, height: float, tab_id: str | None
    ) -> RenderedBlock:
        if not block.image_url:
            logger.warning("Image block without a URL, skipping")
            return RenderedBlock()

        # An inline image occupies exactly one index and adds no paragraph break
        return RenderedBlock(
            inserts=[InsertInlineImage(start_index, block.image_url, width, height, tab_id)],
            length=1,
        )

    def _render_table(self, block: Block, start_index: int, tab_id: str | None) -> RenderedBlock:
        rows = len(block.table_rows)
        columns = block.column_count
        if rows == 0 or columns == 0:
            logger.warning(f"Invalid table dimensions: {rows}x{columns}, skipping")
            return RenderedBlock()

        cells = tuple(tuple(row[:columns]) + ("",) * (columns - len(row)) for row in block.table_rows)
        return RenderedBlock(
            inserts=[InsertTable(start_index, rows, columns, tab_id)],
            length=table_index_length(rows, columns),
            table=TableInsertion(start_index, rows, columns, cells),
        )

    def _blockquote_style(self, start_index: int, end_index: int, tab_id: str | None) -> UpdateParagraphStyle:
        indent = {"magnitude": self.config.blockquote_indent_pt, "unit": "PT"}
        style = {
            "indentFirstLine": indent,
            "indentStart": dict(indent),
            "borderLeft": {
                "color": {"color": {"rgbColor": BLOCKQUOTE_BORDER_COLOR}},
                "width": {"magnitude": BLOCKQUOTE_BORDER_WIDTH_PT, "unit": "PT"},
                "padding": {"magnitude": BLOCKQUOTE_BORDER_PADDING_PT, "unit": "PT"},
                "dashStyle": "SOLID",
            },
        }
        return UpdateParagraphStyle(
            start_index, end_index, style, ("indentFirstLine", "indentStart", "borderLeft"), tab_id
        )

    def _span_operations(self, inline: InlineText, start_index: int, tab_id: str | None) -> list[EditOperation]:
        return span_operations(inline.spans, start_index, self.config.code_font_family, tab_id)


def span_text_style(span: FormatSpan, code_font_family: str) -> tuple[dict[str, Any], list[str]]:
    """Text style and field mask for one inline span."""
    if span.kind is SpanKind.LINK:
        # Markdown links may be relative; only user-supplied style input is URL-validated
        return {"link": {"url": span.url}}, ["link"]
    if span.kind is SpanKind.CODE:
        return build_text_style(font_family=code_font_family)
    return build_text_style(**{span.kind.value: True})


def span_operations(
    spans: list[FormatSpan], start_index: int, code_font_family: str, tab_id: str | None = None
) -> list[EditOperation]:
    """Map block-relative spans to document-relative updateTextStyle operations."""
    operations: list[EditOperation] = []
    for span in spans:
        style, fields = span_text_style(span, code_font_family)
        operations.append(
            UpdateTextStyle(start_index + span.start, start_index + span.end, style, tuple(fields), tab_id)
        )
    return operations


def build_table_population_requests(
    content: list[Any],
    tables: list[TableInsertion],
    tab_id: str | None = None,
    bold_header: bool = True,
    code_font_family: str | None = None,
) -> list[EditOperation]:
    """
    Second pass: fill the cells of tables inserted empty by `convert`.

    Each TableInsertion is matched to the first table in the re-fetched body
    that starts at or after its insertion index and has the same dimensions.
    Cell text is inserted in descending index order, so no insert shifts
    another; inline formatting and header bolding are applied afterwards
    using the shifted positions.

    Args:
        content: Body content re-fetched after the first pass was applied.
        tables: ConversionResult.tables from the first pass.
        tab_id: Tab the tables live in.
        bold_header: Bold the first row of each table.
        code_font_family: Font for inline code in cells. Defaults to the
            engine configuration.

    Returns:
        Edit operations to apply in order (possibly empty).
    """
    document_tables = find_tables(content)
    used: set[int] = set()

    # (insert index, plain text, spans relative to the text, is header)
    cell_inserts: list[tuple[int, str, list[FormatSpan], bool]] = []

    for insertion in tables:
        match = next(
            (
                t
                for t in document_tables
                if id(t) not in used
                and t.start_index >= insertion.start_index
                and t.row_count == insertion.rows
                and t.column_count == insertion.columns
            ),
            None,
        )
        if match is None:
            logger.warning(
                f"No {insertion.rows}x{insertion.columns} table found at or after index "
                f"{insertion.start_index}; its cells stay empty"
            )
            continue
        used.add(id(match))

        for r, row in enumerate(match.rows):
            for c, cell in enumerate(row.cells):
                raw_text = insertion.cell_content[r][c] if c < len(insertion.cell_content[r]) else ""
                if not raw_text or not cell.content:
                    continue
                inline = parse_inline_formatting(raw_text)
                if inline.text:
                    cell_inserts.append((cell.content[0].start_index, inline.text, inline.spans, r == 0))

    operations: list[EditOperation] = []
    for index, text, _spans, _header in sorted(cell_inserts, key=lambda item: item[0], reverse=True):
        operations.append(InsertText(index, text, tab_id))

    if code_font_family is None:
        code_font_family = get_config().code_font_family
    shift = 0
    for index, text, spans, is_header in sorted(cell_inserts, key=lambda item: item[0]):
        final_start = index + shift
        if is_header and bold_header:
            style, fields = build_text_style(bold=True)
            operations.append(UpdateTextStyle(final_start, final_start + utf16_len(text), style, tuple(fields), tab_id))
        operations.extend(span_operations(spans, final_start, code_font_family, tab_id))
        shift += utf16_len(text)

    logger.debug(f"Table population: {len(cell_inserts)} cells across {len(used)} tables")
    return operations
