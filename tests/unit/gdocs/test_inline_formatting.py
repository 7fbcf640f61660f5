"""Unit tests for inline span extraction."""

from gdocs.inline_formatting import FormatSpan, SpanKind, parse_inline_formatting


def spans_of(result, kind):
    return [(s.start, s.end) for s in result.spans if s.kind is kind]


class TestPlainText:
    def test_no_markers(self):
        result = parse_inline_formatting("Just text.")
        assert result.text == "Just text."
        assert result.spans == []

    def test_empty_line(self):
        result = parse_inline_formatting("")
        assert result.text == ""
        assert result.spans == []

    def test_unclosed_marker_is_literal(self):
        result = parse_inline_formatting("**unclosed")
        assert result.text == "**unclosed"
        assert result.spans == []


class TestSingleFamilies:
    def test_bold(self):
        result = parse_inline_formatting("Hello **world**.")
        assert result.text == "Hello world."
        assert result.spans == [FormatSpan(6, 11, SpanKind.BOLD)]

    def test_bold_underscores(self):
        result = parse_inline_formatting("a __b__ c")
        assert result.text == "a b c"
        assert spans_of(result, SpanKind.BOLD) == [(2, 3)]

    def test_italic(self):
        result = parse_inline_formatting("an *emphasized* word")
        assert result.text == "an emphasized word"
        assert spans_of(result, SpanKind.ITALIC) == [(3, 13)]

    def test_strikethrough(self):
        result = parse_inline_formatting("a ~~b~~ c")
        assert result.text == "a b c"
        assert spans_of(result, SpanKind.STRIKETHROUGH) == [(2, 3)]

    def test_inline_code(self):
        result = parse_inline_formatting("run `make test` now")
        assert result.text == "run make test now"
        assert spans_of(result, SpanKind.CODE) == [(4, 13)]

    def test_link_carries_url(self):
        result = parse_inline_formatting("see [docs](https://example.com/docs)")
        assert result.text == "see docs"
        assert result.spans == [FormatSpan(4, 8, SpanKind.LINK, "https://example.com/docs")]

    def test_multiple_spans_of_one_family_do_not_overlap(self):
        result = parse_inline_formatting("**a** and **b**")
        assert result.text == "a and b"
        assert spans_of(result, SpanKind.BOLD) == [(0, 1), (6, 7)]


class TestOffsetsAcrossFamilies:
    def test_link_before_bold_shifts_bold(self):
        result = parse_inline_formatting("[site](https://x.com) is **big**")
        assert result.text == "site is big"
        assert spans_of(result, SpanKind.LINK) == [(0, 4)]
        assert spans_of(result, SpanKind.BOLD) == [(8, 11)]

    def test_later_family_removal_keeps_earlier_spans_valid(self):
        # the link is recorded before the italic markers ahead of it are stripped
        result = parse_inline_formatting("*x* [y](https://y.org)")
        assert result.text == "x y"
        assert spans_of(result, SpanKind.LINK) == [(2, 3)]
        assert spans_of(result, SpanKind.ITALIC) == [(0, 1)]

    def test_bold_and_italic_on_same_text(self):
        result = parse_inline_formatting("***both***")
        assert result.text == "both"
        assert spans_of(result, SpanKind.BOLD) == [(0, 4)]
        assert spans_of(result, SpanKind.ITALIC) == [(0, 4)]

    def test_bold_containing_link(self):
        result = parse_inline_formatting("**[t](https://t.io)**")
        assert result.text == "t"
        assert spans_of(result, SpanKind.LINK) == [(0, 1)]
        assert spans_of(result, SpanKind.BOLD) == [(0, 1)]

    def test_all_spans_within_text(self):
        result = parse_inline_formatting("**a** *b* ~~c~~ `d` [e](https://e.io)")
        assert result.text == "a b c d e"
        for span in result.spans:
            assert 0 <= span.start < span.end <= len(result.text)

    def test_offsets_count_utf16_code_units(self):
        # the emoji is one character but two Docs index units
        result = parse_inline_formatting("😀 **x** [é](https://e.io)")
        assert result.text == "😀 x é"
        assert spans_of(result, SpanKind.BOLD) == [(3, 4)]
        assert spans_of(result, SpanKind.LINK) == [(5, 6)]


class TestFormatSpan:
    def test_shifted(self):
        span = FormatSpan(1, 3, SpanKind.LINK, "https://a.b")
        assert span.shifted(10) == FormatSpan(11, 13, SpanKind.LINK, "https://a.b")
