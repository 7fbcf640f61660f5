"""
Markdown compatibility checks.

`DocumentCompatibilityChecker` inspects a Google Docs document for features
that have no Markdown form (equations, footnotes, smart chips, merged cells,
...). `MarkdownSubsetChecker` inspects Markdown source for constructs the
line-based block parser will not render faithfully.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from markdown_it import MarkdownIt
from mdit_py_plugins.tasklists import tasklists_plugin

from gdocs.docs_model import (
    OtherElement,
    ParagraphNode,
    StructuralNode,
    TableNode,
    TableOfContentsNode,
    parse_structural_elements,
)
from gdocs.docs_structure import get_body_content

logger = logging.getLogger(__name__)


class IncompatibleElementType(str, Enum):
    HEADER = "header"
    FOOTER = "footer"
    FOOTNOTE = "footnote"
    EQUATION = "equation"
    PERSON = "person"
    RICH_LINK = "rich_link"
    TABLE_OF_CONTENTS = "table_of_contents"
    MERGED_TABLE_CELL = "merged_table_cell"
    POSITIONED_OBJECT = "positioned_object"
    DRAWING = "drawing"


@dataclass
class CompatibilityIssue:
    type: IncompatibleElementType
    message: str
    location: str | None = None


@dataclass
class CompatibilityResult:
    issues: list[CompatibilityIssue] = field(default_factory=list)

    @property
    def compatible(self) -> bool:
        return not self.issues


def format_issues(issues: list[CompatibilityIssue]) -> str:
    """Format compatibility issues as a human-readable message."""
    if not issues:
        return "Document is compatible with markdown editing."

    lines = ["This document cannot be edited as markdown due to the following incompatible elements:", ""]
    lines.extend(f"- {issue.message}" for issue in issues)
    lines.append("")
    lines.append("Use the standard document editing workflows instead.")
    return "\n".join(lines)


# Paragraph element kinds that cannot be expressed in Markdown
_ELEMENT_ISSUES: dict[str, tuple[IncompatibleElementType, str]] = {
    "equation": (
        IncompatibleElementType.EQUATION,
        "Document contains equations. Remove equations or edit the document directly.",
    ),
    "footnoteReference": (
        IncompatibleElementType.FOOTNOTE,
        "Document contains footnote references. Remove footnotes or edit the document directly.",
    ),
    "person": (
        IncompatibleElementType.PERSON,
        "Document contains @mentions. Remove mentions or edit the document directly.",
    ),
    "richLink": (
        IncompatibleElementType.RICH_LINK,
        "Document contains smart chips/rich links. Convert them to regular links or edit the document directly.",
    ),
}


class DocumentCompatibilityChecker:
    """
    Checks whether a document can be faithfully represented as Markdown.

    At most one issue is reported per incompatible element type.
    """

    def __init__(self) -> None:
        self._issues: list[CompatibilityIssue] = []
        self._element_position = 0

    def check(self, document: dict[str, Any], tab_id: str | None = None) -> CompatibilityResult:
        self._issues = []
        self._element_position = 0

        for key, issue_type, noun in (
            ("headers", IncompatibleElementType.HEADER, "headers"),
            ("footers", IncompatibleElementType.FOOTER, "footers"),
            ("footnotes", IncompatibleElementType.FOOTNOTE, "footnotes"),
        ):
            if document.get(key):
                self._add_issue(issue_type, f"Document contains {noun}. Remove {noun} or edit the document directly.")

        self._check_nodes(parse_structural_elements(get_body_content(document, tab_id)))

        for object_id, obj in (document.get("inlineObjects") or {}).items():
            embedded = (obj.get("inlineObjectProperties") or {}).get("embeddedObject") or {}
            if embedded.get("embeddedDrawingProperties") is not None:
                self._add_issue(
                    IncompatibleElementType.DRAWING,
                    f"Document contains an embedded drawing ({object_id}). "
                    "Remove drawings or edit the document directly.",
                )

        if document.get("positionedObjects"):
            self._add_issue(
                IncompatibleElementType.POSITIONED_OBJECT,
                "Document contains positioned objects (non-inline images or drawings). "
                "Move images inline or edit the document directly.",
            )

        if self._issues:
            logger.info(f"Compatibility check found {len(self._issues)} issue types")
        return CompatibilityResult(list(self._issues))

    def _check_nodes(self, nodes: list[StructuralNode]) -> None:
        for node in nodes:
            self._element_position += 1
            if isinstance(node, ParagraphNode):
                for element in node.elements:
                    if isinstance(element, OtherElement) and element.kind in _ELEMENT_ISSUES:
                        issue_type, message = _ELEMENT_ISSUES[element.kind]
                        self._add_issue(issue_type, message, f"paragraph {self._element_position}")
            elif isinstance(node, TableNode):
                self._check_table(node)
            elif isinstance(node, TableOfContentsNode):
                self._add_issue(
                    IncompatibleElementType.TABLE_OF_CONTENTS,
                    "Document contains a table of contents. Remove it or edit the document directly.",
                    f"element {self._element_position}",
                )

    def _check_table(self, table: TableNode) -> None:
        for row_number, row in enumerate(table.rows, start=1):
            for column_number, cell in enumerate(row.cells, start=1):
                if cell.row_span > 1 or cell.column_span > 1:
                    self._add_issue(
                        IncompatibleElementType.MERGED_TABLE_CELL,
                        f"Table has merged cells (row {row_number}, column {column_number}). "
                        "Unmerge cells or edit the document directly.",
                        f"table at element {self._element_position}",
                    )
                    return

                saved_position = self._element_position
                self._check_nodes(cell.content)
                self._element_position = saved_position

    def _add_issue(self, issue_type: IncompatibleElementType, message: str, location: str | None = None) -> None:
        if not any(issue.type is issue_type for issue in self._issues):
            self._issues.append(CompatibilityIssue(issue_type, message, location))


# =============================================================================
# Markdown source checks
# =============================================================================


class MarkdownConstruct(str, Enum):
    RAW_HTML = "raw_html"
    SETEXT_HEADING = "setext_heading"
    INDENTED_CODE = "indented_code"
    NESTED_BLOCKQUOTE = "nested_blockquote"
    TASK_LIST = "task_list"
    HARD_BREAK = "hard_break"
    WRAPPED_PARAGRAPH = "wrapped_paragraph"


@dataclass
class MarkdownIssue:
    construct: MarkdownConstruct
    message: str
    line: int | None = None


_CONSTRUCT_MESSAGES: dict[MarkdownConstruct, str] = {
    MarkdownConstruct.RAW_HTML: "Raw HTML is inserted as literal text.",
    MarkdownConstruct.SETEXT_HEADING: "Underlined (setext) headings are not recognized; use '#' headings.",
    MarkdownConstruct.INDENTED_CODE: "Indented code blocks are treated as paragraphs; use ``` fences.",
    MarkdownConstruct.NESTED_BLOCKQUOTE: "Nested block quotes are flattened to one level.",
    MarkdownConstruct.TASK_LIST: "Task list checkboxes are inserted as literal '[ ]' text.",
    MarkdownConstruct.HARD_BREAK: "Hard line breaks are not preserved.",
    MarkdownConstruct.WRAPPED_PARAGRAPH: "Paragraph lines wrapped onto several lines become separate paragraphs.",
}


class MarkdownSubsetChecker:
    """Reports Markdown constructs outside the supported subset, one issue per construct."""

    def __init__(self) -> None:
        # CommonMark base with the GFM extensions users commonly write
        self.md = MarkdownIt("commonmark").enable("table").enable("strikethrough").use(tasklists_plugin)

    def check(self, markdown_text: str) -> list[MarkdownIssue]:
        issues: dict[MarkdownConstruct, MarkdownIssue] = {}
        blockquote_depth = 0
        current_line: int | None = None

        def add(construct: MarkdownConstruct, line: int | None) -> None:
            if construct not in issues:
                issues[construct] = MarkdownIssue(construct, _CONSTRUCT_MESSAGES[construct], line)

        for token in self.md.parse(markdown_text):
            if token.map:
                current_line = token.map[0] + 1

            if token.type == "blockquote_open":
                blockquote_depth += 1
                if blockquote_depth > 1:
                    add(MarkdownConstruct.NESTED_BLOCKQUOTE, current_line)
            elif token.type == "blockquote_close":
                blockquote_depth -= 1
            elif token.type == "heading_open" and token.markup in ("=", "-"):
                add(MarkdownConstruct.SETEXT_HEADING, current_line)
            elif token.type == "code_block":
                add(MarkdownConstruct.INDENTED_CODE, current_line)
            elif token.type == "html_block":
                add(MarkdownConstruct.RAW_HTML, current_line)
            elif token.type == "inline":
                for child in token.children or []:
                    if child.type == "html_inline":
                        if "task-list-item-checkbox" in child.content:
                            add(MarkdownConstruct.TASK_LIST, current_line)
                        else:
                            add(MarkdownConstruct.RAW_HTML, current_line)
                    elif child.type == "hardbreak":
                        add(MarkdownConstruct.HARD_BREAK, current_line)
                    elif child.type == "softbreak" and blockquote_depth == 0:
                        add(MarkdownConstruct.WRAPPED_PARAGRAPH, current_line)

        return list(issues.values())
