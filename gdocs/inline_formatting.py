"""
Inline Markdown span extraction.

Turns one line of Markdown into plain text plus a list of formatting spans
whose offsets refer to the plain text, counted in UTF-16 code units like
Docs API indices. Marker families are recognized in a fixed order (links,
inline code, bold, italic, strikethrough); once a marker pair is consumed its
characters are removed from all later matching.

Example:
    >>> result = parse_inline_formatting("Hello **world**.")
    >>> result.text
    'Hello world.'
    >>> result.spans
    [FormatSpan(start=6, end=11, kind=<SpanKind.BOLD: 'bold'>, url=None)]
"""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum

from gdocs.docs_helpers import utf16_len

logger = logging.getLogger(__name__)


class SpanKind(str, Enum):
    BOLD = "bold"
    ITALIC = "italic"
    STRIKETHROUGH = "strikethrough"
    CODE = "code"
    LINK = "link"


@dataclass(frozen=True)
class FormatSpan:
    """A `[start, end)` range of plain text carrying one inline attribute."""

    start: int
    end: int
    kind: SpanKind
    url: str | None = None

    def shifted(self, offset: int) -> "FormatSpan":
        return FormatSpan(self.start + offset, self.end + offset, self.kind, self.url)


@dataclass
class InlineText:
    text: str
    spans: list[FormatSpan] = field(default_factory=list)


LINK_PATTERN = re.compile(r"\[([^\]]+)\]\(([^)]+)\)")
CODE_PATTERN = re.compile(r"`([^`]+)`")
BOLD_PATTERN = re.compile(r"(\*\*|__)([^*_]+)\1")
ITALIC_PATTERN = re.compile(r"(?<![*_])([*_])([^*_]+)\1(?![*_])")
STRIKETHROUGH_PATTERN = re.compile(r"~~([^~]+)~~")

# (pattern, kind, index of the group holding the visible text)
_FAMILIES: list[tuple[re.Pattern, SpanKind, int]] = [
    (LINK_PATTERN, SpanKind.LINK, 1),
    (CODE_PATTERN, SpanKind.CODE, 1),
    (BOLD_PATTERN, SpanKind.BOLD, 2),
    (ITALIC_PATTERN, SpanKind.ITALIC, 2),
    (STRIKETHROUGH_PATTERN, SpanKind.STRIKETHROUGH, 1),
]


class _InlineScanner:
    """
    Marker scanner over a fixed character buffer.

    Characters are never moved. Consumed markers are flagged in `removed`, and
    spans are stored as boundaries in the original buffer. Plain-text offsets
    are resolved once at the end by counting surviving UTF-16 code units, so spans
    recorded by early families stay correct after later families strip more
    markers.
    """

    def __init__(self, source: str):
        self.source = source
        self.removed = [False] * len(source)
        # (start boundary, end boundary, kind, url) in source coordinates
        self._raw_spans: list[tuple[int, int, SpanKind, str | None]] = []

    def _visible(self) -> tuple[str, list[int]]:
        positions = [i for i, gone in enumerate(self.removed) if not gone]
        return "".join(self.source[i] for i in positions), positions

    def _remove(self, positions: list[int], start: int, end: int) -> None:
        for visible_index in range(start, end):
            self.removed[positions[visible_index]] = True

    def scan(self, pattern: re.Pattern, kind: SpanKind, text_group: int) -> None:
        visible, positions = self._visible()
        for match in pattern.finditer(visible):
            inner_start, inner_end = match.span(text_group)
            url = match.group(2) if kind is SpanKind.LINK else None

            self._raw_spans.append((positions[inner_start], positions[inner_end - 1] + 1, kind, url))
            self._remove(positions, match.start(), inner_start)
            self._remove(positions, inner_end, match.end())

    def result(self) -> InlineText:
        kept_before = [0] * (len(self.source) + 1)
        for i, gone in enumerate(self.removed):
            kept_before[i + 1] = kept_before[i] + (0 if gone else utf16_len(self.source[i]))

        text = "".join(ch for ch, gone in zip(self.source, self.removed) if not gone)
        spans = []
        for start, end, kind, url in self._raw_spans:
            span = FormatSpan(kept_before[start], kept_before[end], kind, url)
            if span.end > span.start:
                spans.append(span)
            else:
                logger.debug(f"Dropping empty {kind.value} span at {span.start}")
        return InlineText(text, spans)


def parse_inline_formatting(line: str) -> InlineText:
    """
    Strip inline Markdown markers from one line and collect formatting spans.

    Args:
        line: Raw Markdown text of a single block (no trailing newline).

    Returns:
        InlineText with the plain text and spans relative to it. Spans of one
        family never overlap each other; different families may.
    """
    scanner = _InlineScanner(line)
    for pattern, kind, text_group in _FAMILIES:
        scanner.scan(pattern, kind, text_group)
    return scanner.result()
