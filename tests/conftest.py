"""Shared pytest fixtures for gdocs-markdown-bridge tests."""

from typing import Any
from unittest.mock import MagicMock

import pytest

from core.config import reset_config
from gdocs.docs_helpers import utf16_len

LIST_GLYPHS = {
    "NUMBERED": [{"glyphType": "DECIMAL"}, {"glyphType": "ALPHA"}, {"glyphType": "ROMAN"}],
    "BULLET": [{"glyphSymbol": "●"}, {"glyphSymbol": "○"}, {"glyphSymbol": "■"}],
}

IMAGE_PLACEHOLDER = "\ufffc"


def utf16_units(text: str) -> list[str]:
    """Split text into UTF-16 code units; astral characters become two surrogates."""
    data = text.encode("utf-16-le")
    return [chr(int.from_bytes(data[i : i + 2], "little")) for i in range(0, len(data), 2)]


def join_units(units: list[str]) -> str:
    return "".join(units).encode("utf-16-le", "surrogatepass").decode("utf-16-le")


class SimulatedDocument:
    """
    In-memory document body that applies batchUpdate requests.

    Covers the request types the converter emits for non-table content:
    insertText, deleteContentRange, updateTextStyle, updateParagraphStyle,
    createParagraphBullets and insertInlineImage. Index 1 is the first
    character of the body; the final paragraph break cannot be deleted. Like
    the real API, positions count UTF-16 code units.
    """

    def __init__(self, text: str = "\n", title: str = "Simulated Doc"):
        assert text.endswith("\n")
        self.title = title
        self.chars: list[str] = utf16_units(text)
        self.text_styles: list[dict[str, Any]] = [{} for _ in self.chars]
        self.paragraph_styles: list[dict[str, Any]] = [{} for _ in self.chars]
        self.bullets: list[dict[str, Any] | None] = [None for _ in self.chars]
        self.objects: list[str | None] = [None for _ in self.chars]
        self.inline_objects: dict[str, Any] = {}
        self.lists: dict[str, Any] = {}
        self.requests_applied = 0

    @property
    def end_index(self) -> int:
        return len(self.chars) + 1

    @property
    def text(self) -> str:
        return join_units(self.chars)

    def apply(self, requests: list[dict[str, Any]]) -> dict[str, Any]:
        handlers = {
            "insertText": self._insert_text,
            "deleteContentRange": self._delete_range,
            "updateTextStyle": self._update_text_style,
            "updateParagraphStyle": self._update_paragraph_style,
            "createParagraphBullets": self._create_bullets,
            "insertInlineImage": self._insert_image,
        }
        replies = []
        for request in requests:
            ((kind, payload),) = request.items()
            if kind not in handlers:
                raise ValueError(f"SimulatedDocument does not support {kind}")
            replies.append(handlers[kind](payload) or {})
            self.requests_applied += 1
        return {"documentId": "simulated", "replies": replies}

    # -- request handlers ---------------------------------------------------

    def _paragraph_end(self, position: int) -> int:
        """Position of the newline closing the paragraph that contains `position`."""
        return self.chars.index("\n", position)

    def _insert(self, position: int, chars: list[str], objects: list[str | None]) -> None:
        closing = self._paragraph_end(position)
        paragraph_style = dict(self.paragraph_styles[closing])
        bullet = self.bullets[closing]
        self.chars[position:position] = chars
        self.text_styles[position:position] = [{} for _ in chars]
        self.paragraph_styles[position:position] = [dict(paragraph_style) for _ in chars]
        self.bullets[position:position] = [bullet for _ in chars]
        self.objects[position:position] = objects

    def _check_insert_index(self, index: int) -> int:
        if not 1 <= index < self.end_index:
            raise ValueError(f"Insert index {index} outside body (end {self.end_index})")
        return index - 1

    def _insert_text(self, payload: dict[str, Any]) -> None:
        position = self._check_insert_index(payload["location"]["index"])
        units = utf16_units(payload["text"])
        self._insert(position, units, [None] * len(units))

    def _insert_image(self, payload: dict[str, Any]) -> dict[str, Any]:
        position = self._check_insert_index(payload["location"]["index"])
        object_id = f"kix.image{len(self.inline_objects) + 1}"
        self.inline_objects[object_id] = {
            "inlineObjectProperties": {
                "embeddedObject": {
                    "imageProperties": {"contentUri": payload["uri"], "sourceUri": payload["uri"]},
                    "size": payload.get("objectSize", {}),
                }
            }
        }
        self._insert(position, [IMAGE_PLACEHOLDER], [object_id])
        return {"insertInlineImage": {"objectId": object_id}}

    def _delete_range(self, payload: dict[str, Any]) -> None:
        start, end = payload["range"]["startIndex"], payload["range"]["endIndex"]
        if not 1 <= start < end <= self.end_index - 1:
            raise ValueError(f"Invalid delete range {start}-{end} (end {self.end_index})")
        for column in (self.chars, self.text_styles, self.paragraph_styles, self.bullets, self.objects):
            del column[start - 1 : end - 1]

    def _update_text_style(self, payload: dict[str, Any]) -> None:
        start, end = payload["range"]["startIndex"], payload["range"]["endIndex"]
        style = payload["textStyle"]
        for position in range(start - 1, end - 1):
            for name in payload["fields"].split(","):
                if style.get(name) in (None, {}):
                    self.text_styles[position].pop(name, None)
                else:
                    self.text_styles[position][name] = style[name]

    def _paragraph_closings(self, start: int, end: int) -> list[int]:
        closings = []
        paragraph_start = 0
        for position, char in enumerate(self.chars):
            if char == "\n":
                if paragraph_start < end - 1 and position >= start - 1:
                    closings.append(position)
                paragraph_start = position + 1
        return closings

    def _update_paragraph_style(self, payload: dict[str, Any]) -> None:
        style = payload["paragraphStyle"]
        for closing in self._paragraph_closings(payload["range"]["startIndex"], payload["range"]["endIndex"]):
            for name in payload["fields"].split(","):
                self.paragraph_styles[closing][name] = style[name]

    def _create_bullets(self, payload: dict[str, Any]) -> None:
        preset = payload["bulletPreset"]
        list_id = f"list.{preset}"
        glyphs = LIST_GLYPHS["NUMBERED" if preset.startswith("NUMBERED") else "BULLET"]
        self.lists[list_id] = {"listProperties": {"nestingLevels": glyphs}}
        for closing in self._paragraph_closings(payload["range"]["startIndex"], payload["range"]["endIndex"]):
            self.bullets[closing] = {"listId": list_id, "nestingLevel": 0}

    # -- export ---------------------------------------------------------------

    def to_document(self) -> dict[str, Any]:
        """Render the current state as a `documents().get` resource."""
        content: list[dict[str, Any]] = [{"endIndex": 1, "sectionBreak": {"sectionStyle": {}}}]
        paragraph_start = 0
        for position, char in enumerate(self.chars):
            if char != "\n":
                continue
            elements = self._paragraph_elements(paragraph_start, position + 1)
            paragraph: dict[str, Any] = {
                "elements": elements,
                "paragraphStyle": {"namedStyleType": "NORMAL_TEXT", **self.paragraph_styles[position]},
            }
            if self.bullets[position] is not None:
                paragraph["bullet"] = dict(self.bullets[position])
            content.append({"startIndex": paragraph_start + 1, "endIndex": position + 2, "paragraph": paragraph})
            paragraph_start = position + 1

        return {
            "documentId": "simulated",
            "title": self.title,
            "body": {"content": content},
            "inlineObjects": dict(self.inline_objects),
            "lists": dict(self.lists),
        }

    def _paragraph_elements(self, start: int, end: int) -> list[dict[str, Any]]:
        elements: list[dict[str, Any]] = []
        run_start = start
        for position in range(start, end + 1):
            boundary = position == end or (
                position > run_start
                and (
                    self.objects[position] is not None
                    or self.objects[position - 1] is not None
                    or self.text_styles[position] != self.text_styles[run_start]
                )
            )
            if not boundary:
                continue
            if self.objects[run_start] is not None:
                elements.append(
                    {
                        "startIndex": run_start + 1,
                        "endIndex": run_start + 2,
                        "inlineObjectElement": {"inlineObjectId": self.objects[run_start], "textStyle": {}},
                    }
                )
            else:
                elements.append(
                    {
                        "startIndex": run_start + 1,
                        "endIndex": position + 1,
                        "textRun": {
                            "content": join_units(self.chars[run_start:position]),
                            "textStyle": dict(self.text_styles[run_start]),
                        },
                    }
                )
            run_start = position
        return elements


def make_simulated_service(document: SimulatedDocument) -> MagicMock:
    """Mock Docs service whose get/batchUpdate read from and write to `document`."""
    service = MagicMock()
    documents = service.documents.return_value

    def _get(documentId, **kwargs):
        return MagicMock(execute=MagicMock(side_effect=lambda: document.to_document()))

    def _batch_update(documentId, body):
        return MagicMock(execute=MagicMock(side_effect=lambda: document.apply(body["requests"])))

    documents.get.side_effect = _get
    documents.batchUpdate.side_effect = _batch_update
    return service


@pytest.fixture(autouse=True)
def fresh_config():
    """Drop the cached engine configuration around every test."""
    reset_config()
    yield
    reset_config()


@pytest.fixture
def env_override(monkeypatch):
    """Helper to override environment variables."""

    def _override(**kwargs):
        for key, value in kwargs.items():
            if value is None:
                monkeypatch.delenv(key, raising=False)
            else:
                monkeypatch.setenv(key, value)

    return _override


@pytest.fixture
def simulated_document():
    """Factory for in-memory documents that apply batchUpdate requests."""
    return SimulatedDocument


@pytest.fixture
def simulated_service():
    """Factory for a mock Docs service backed by a SimulatedDocument."""
    return make_simulated_service


@pytest.fixture
def mock_docs_service():
    """Create a mock Google Docs service with an empty document."""
    service = MagicMock()
    documents = service.documents.return_value
    documents.get.return_value.execute.return_value = {
        "documentId": "doc123",
        "title": "Test Doc",
        "body": {
            "content": [
                {"endIndex": 1, "sectionBreak": {}},
                {
                    "startIndex": 1,
                    "endIndex": 2,
                    "paragraph": {
                        "elements": [{"startIndex": 1, "endIndex": 2, "textRun": {"content": "\n", "textStyle": {}}}],
                        "paragraphStyle": {"namedStyleType": "NORMAL_TEXT"},
                    },
                },
            ]
        },
    }
    documents.batchUpdate.return_value.execute.return_value = {"documentId": "doc123", "replies": []}
    return service


def text_paragraph(start: int, text: str, text_style: dict | None = None, **paragraph_fields) -> dict[str, Any]:
    """Raw paragraph structural element holding one text run."""
    return {
        "startIndex": start,
        "endIndex": start + utf16_len(text),
        "paragraph": {
            "elements": [
                {
                    "startIndex": start,
                    "endIndex": start + utf16_len(text),
                    "textRun": {"content": text, "textStyle": text_style or {}},
                }
            ],
            "paragraphStyle": paragraph_fields.pop("paragraph_style", {"namedStyleType": "NORMAL_TEXT"}),
            **paragraph_fields,
        },
    }


@pytest.fixture
def paragraph_factory():
    """Factory for raw paragraph elements: paragraph_factory(start, text, text_style=None, ...)."""
    return text_paragraph


@pytest.fixture
def sample_table_content():
    """Body content: a paragraph, then a 2x2 table with cell text, then a trailing paragraph."""
    return [
        {"endIndex": 1, "sectionBreak": {}},
        text_paragraph(1, "Intro\n"),
        {
            "startIndex": 7,
            "endIndex": 27,
            "table": {
                "rows": 2,
                "columns": 2,
                "tableRows": [
                    {
                        "startIndex": 8,
                        "endIndex": 17,
                        "tableCells": [
                            {"startIndex": 9, "endIndex": 13, "content": [text_paragraph(10, "a1\n")]},
                            {"startIndex": 13, "endIndex": 17, "content": [text_paragraph(14, "b1\n")]},
                        ],
                    },
                    {
                        "startIndex": 17,
                        "endIndex": 26,
                        "tableCells": [
                            {"startIndex": 18, "endIndex": 22, "content": [text_paragraph(19, "a2\n")]},
                            {"startIndex": 22, "endIndex": 26, "content": [text_paragraph(23, "b2\n")]},
                        ],
                    },
                ],
            },
        },
        text_paragraph(27, "Outro\n"),
    ]
