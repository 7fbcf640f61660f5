"""
Google Docs Markdown Engine

This package converts Markdown into Google Docs batchUpdate operations,
renders Google Docs documents back to Markdown, and provides async workflows
that apply both against the Docs API.
"""

from gdocs.compatibility import (
    CompatibilityIssue,
    CompatibilityResult,
    DocumentCompatibilityChecker,
    MarkdownSubsetChecker,
    format_issues,
)
from gdocs.docs_structure import DocumentRange, find_text_range, get_paragraph_range
from gdocs.export import DocsToMarkdownConverter
from gdocs.inline_formatting import parse_inline_formatting
from gdocs.managers import BatchOperationManager
from gdocs.markdown_blocks import parse_markdown_blocks
from gdocs.markdown_parser import ConversionResult, MarkdownToDocsConverter, build_table_population_requests
from gdocs.reading import check_doc_markdown_compatibility, read_doc_as_markdown
from gdocs.writing import format_paragraph_at, format_text_instance, insert_markdown, write_doc_as_markdown

__all__ = [
    "BatchOperationManager",
    "build_table_population_requests",
    "check_doc_markdown_compatibility",
    "CompatibilityIssue",
    "CompatibilityResult",
    "ConversionResult",
    "DocsToMarkdownConverter",
    "DocumentCompatibilityChecker",
    "DocumentRange",
    "find_text_range",
    "format_issues",
    "format_paragraph_at",
    "format_text_instance",
    "get_paragraph_range",
    "insert_markdown",
    "MarkdownSubsetChecker",
    "MarkdownToDocsConverter",
    "parse_inline_formatting",
    "parse_markdown_blocks",
    "read_doc_as_markdown",
    "write_doc_as_markdown",
]
