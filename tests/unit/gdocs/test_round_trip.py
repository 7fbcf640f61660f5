"""
Round-trip tests: Markdown -> batchUpdate requests -> document -> Markdown.

Requests are applied to an in-memory SimulatedDocument, whose `to_document`
output is fed back through DocsToMarkdownConverter.
"""

import pytest

from core.config import ConversionOptions
from gdocs.export import DocsToMarkdownConverter
from gdocs.markdown_parser import MarkdownToDocsConverter

SOURCE = (
    "# Title\n\n"
    "Hello **world** and *more*.\n\n"
    "- one\n- two\n\n"
    "Between lists.\n\n"
    "1. first\n2. second\n\n"
    "> quoted\n\n"
    "---\n\n"
    "```\nx = 1\n```\n\n"
    "Use `code` and [a link](https://example.com), not ~~this~~.\n\n"
    "The end.\n\n"
    "![image](https://example.com/pic.png)"
)


def write_markdown(document, markdown, options=None):
    result = MarkdownToDocsConverter().convert(markdown, options, document_end_index=document.end_index)
    document.apply(result.requests)
    return DocsToMarkdownConverter().convert(document.to_document())


class TestRoundTrip:
    def test_supported_subset_reproduces_source(self, simulated_document):
        assert write_markdown(simulated_document(), SOURCE) == SOURCE

    @pytest.mark.parametrize(
        "markdown",
        [
            "Plain paragraph.",
            "## Second level",
            "- solo bullet",
            "1. solo number",
            "**bold** start and *italic* end",
            "```\nline one\n\nline three\n```",
            "`foo`",
            "😀 **bold** and `c`",
            "```\nprint('😀')\n```",
        ],
    )
    def test_single_blocks(self, simulated_document, markdown):
        assert write_markdown(simulated_document(), markdown) == markdown

    def test_full_replace_discards_existing_text(self, simulated_document):
        document = simulated_document("Old heading\nOld body\n")
        output = write_markdown(document, "# New\n\nFresh.", ConversionOptions(full_replace=True))
        assert output == "# New\n\nFresh."

    def test_append_keeps_existing_paragraphs(self, simulated_document):
        document = simulated_document("Existing\n")
        assert write_markdown(document, "## Added") == "Existing\n\n## Added"

    def test_appended_heading_does_not_restyle_existing_text(self, simulated_document):
        document = simulated_document("Existing\n")
        write_markdown(document, "# Added")
        (_, first, second, _) = document.to_document()["body"]["content"]
        assert first["paragraph"]["paragraphStyle"]["namedStyleType"] == "NORMAL_TEXT"
        assert second["paragraph"]["paragraphStyle"]["namedStyleType"] == "HEADING_1"

    def test_image_shares_a_paragraph_with_the_following_block(self, simulated_document):
        output = write_markdown(simulated_document(), "![image](https://example.com/pic.png)\n\nafter")
        assert output == "![image](https://example.com/pic.png)after"

    def test_back_to_back_code_blocks_come_back_as_one_fence(self, simulated_document):
        assert write_markdown(simulated_document(), "```\na\n```\n\n```\nb\n```") == "```\na\nb\n```"

    def test_styles_after_astral_characters_land_on_the_right_text(self, simulated_document):
        document = simulated_document()
        write_markdown(document, "😀😀 **x** y")
        runs = [el["textRun"] for el in document.to_document()["body"]["content"][1]["paragraph"]["elements"]]
        assert [(run["content"], run["textStyle"].get("bold", False)) for run in runs] == [
            ("😀😀 ", False),
            ("x", True),
            (" y\n", False),
        ]
