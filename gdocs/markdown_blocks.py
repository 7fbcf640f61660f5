"""
Line-based Markdown block parser.

Classifies each input line (first match wins) into one of the block types
the converter knows how to render. Lines that match nothing become
paragraphs; parsing never fails.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)


class BlockType(str, Enum):
    HEADING = "heading"
    PARAGRAPH = "paragraph"
    BULLET_ITEM = "bullet_item"
    NUMBERED_ITEM = "numbered_item"
    TABLE = "table"
    CODE_BLOCK = "code_block"
    BLOCKQUOTE = "blockquote"
    HORIZONTAL_RULE = "horizontal_rule"
    IMAGE = "image"


@dataclass(frozen=True)
class Block:
    """One structural unit of a Markdown document."""

    type: BlockType
    content: str = ""
    level: int = 0
    indent: int = 0
    table_rows: tuple[tuple[str, ...], ...] = ()
    image_url: str | None = None
    image_alt: str | None = None

    @property
    def column_count(self) -> int:
        return len(self.table_rows[0]) if self.table_rows else 0


HR_PATTERN = re.compile(r"^(-{3,}|\*{3,}|_{3,})$")
HEADING_PATTERN = re.compile(r"^(#{1,6})\s+(.+)$")
IMAGE_PATTERN = re.compile(r"^!\[([^\]]*)\]\(([^)]+)\)$")
BULLET_PATTERN = re.compile(r"^(\s*)[-*+]\s+(.+)$")
NUMBERED_PATTERN = re.compile(r"^(\s*)\d+\.\s+(.+)$")
TABLE_SEPARATOR_PATTERN = re.compile(r"^\|[-:\s|]+\|$")
BLOCKQUOTE_PATTERN = re.compile(r"^>\s*(.*)$")
CODE_FENCE = "```"


def _split_table_row(line: str) -> tuple[str, ...]:
    # Leading and trailing pipes delimit the row; the pieces outside them are dropped.
    return tuple(cell.strip() for cell in line.split("|")[1:-1])


def parse_markdown_blocks(markdown: str) -> list[Block]:
    """
    Parse Markdown source into an ordered list of blocks.

    Blank lines are skipped. Table and fenced code blocks consume several
    lines; every other block type is exactly one line.
    """
    lines = markdown.replace("\r\n", "\n").split("\n")
    blocks: list[Block] = []
    i = 0

    while i < len(lines):
        line = lines[i]
        stripped = line.strip()

        if not stripped:
            i += 1
            continue

        if HR_PATTERN.match(stripped):
            blocks.append(Block(BlockType.HORIZONTAL_RULE))
            i += 1
            continue

        heading = HEADING_PATTERN.match(line)
        if heading:
            blocks.append(Block(BlockType.HEADING, content=heading.group(2), level=len(heading.group(1))))
            i += 1
            continue

        image = IMAGE_PATTERN.match(line)
        if image:
            blocks.append(Block(BlockType.IMAGE, image_alt=image.group(1), image_url=image.group(2)))
            i += 1
            continue

        bullet = BULLET_PATTERN.match(line)
        if bullet:
            blocks.append(Block(BlockType.BULLET_ITEM, content=bullet.group(2), indent=len(bullet.group(1)) // 2))
            i += 1
            continue

        numbered = NUMBERED_PATTERN.match(line)
        if numbered:
            blocks.append(
                Block(BlockType.NUMBERED_ITEM, content=numbered.group(2), indent=len(numbered.group(1)) // 2)
            )
            i += 1
            continue

        if stripped.startswith("|"):
            rows: list[tuple[str, ...]] = []
            while i < len(lines) and lines[i].strip().startswith("|"):
                row = lines[i].strip()
                if not TABLE_SEPARATOR_PATTERN.match(row):
                    rows.append(_split_table_row(row))
                i += 1
            if rows and rows[0]:
                blocks.append(Block(BlockType.TABLE, table_rows=tuple(rows)))
            else:
                logger.warning("Skipping table with no content rows")
            continue

        if stripped.startswith(CODE_FENCE):
            code_lines: list[str] = []
            i += 1
            while i < len(lines) and not lines[i].strip().startswith(CODE_FENCE):
                code_lines.append(lines[i])
                i += 1
            if i >= len(lines):
                logger.debug("Code fence was never closed; block runs to end of input")
            i += 1
            blocks.append(Block(BlockType.CODE_BLOCK, content="\n".join(code_lines)))
            continue

        quote = BLOCKQUOTE_PATTERN.match(line)
        if quote:
            blocks.append(Block(BlockType.BLOCKQUOTE, content=quote.group(1)))
            i += 1
            continue

        blocks.append(Block(BlockType.PARAGRAPH, content=line))
        i += 1

    logger.debug(f"Parsed {len(blocks)} blocks from {len(lines)} lines")
    return blocks
