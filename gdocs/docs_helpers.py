"""
Google Docs request helpers.

Typed edit operations, their batchUpdate JSON serialization, and style
builders that validate user input before any request is constructed.
"""

import logging
import re
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlparse

from core.errors import ValidationError

logger = logging.getLogger(__name__)

BULLET_PRESET_UNORDERED = "BULLET_DISC_CIRCLE_SQUARE"
BULLET_PRESET_ORDERED = "NUMBERED_DECIMAL_ALPHA_ROMAN"

LIST_TYPE_PRESETS = {
    "UNORDERED": BULLET_PRESET_UNORDERED,
    "ORDERED": BULLET_PRESET_ORDERED,
}

NAMED_STYLE_TYPES = frozenset(
    {
        "NORMAL_TEXT",
        "TITLE",
        "SUBTITLE",
        "HEADING_1",
        "HEADING_2",
        "HEADING_3",
        "HEADING_4",
        "HEADING_5",
        "HEADING_6",
    }
)

PARAGRAPH_ALIGNMENTS = frozenset({"START", "CENTER", "END", "JUSTIFIED"})

_HEX_COLOR_PATTERN = re.compile(r"^#?([0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")


def utf16_len(text: str) -> int:
    """Length of text in UTF-16 code units, the unit of every Docs API index."""
    return len(text.encode("utf-16-le")) // 2


# =============================================================================
# Style builders
# =============================================================================


def _normalize_color(color: str | None, param_name: str) -> dict[str, float] | None:
    """
    Convert a hex color ("#RRGGBB" or "#RGB") into a Docs rgbColor dict.

    Returns None when no color was given.
    """
    if color is None:
        return None

    match = _HEX_COLOR_PATTERN.match(color.strip()) if isinstance(color, str) else None
    if not match:
        raise ValidationError(f"{param_name} must be a hex string like '#RRGGBB' or '#RGB', got {color!r}")

    digits = match.group(1)
    if len(digits) == 3:
        digits = "".join(ch * 2 for ch in digits)

    return {
        "red": int(digits[0:2], 16) / 255.0,
        "green": int(digits[2:4], 16) / 255.0,
        "blue": int(digits[4:6], 16) / 255.0,
    }


def _validate_link_url(url: str) -> str:
    parsed = urlparse(url or "")
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValidationError(f"link_url must be an absolute http(s) URL, got {url!r}")
    return url


def _validate_points(value: float, param_name: str, allow_zero: bool = True) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"{param_name} must be a number of points")
    if value < 0 or (value == 0 and not allow_zero):
        qualifier = "non-negative" if allow_zero else "positive"
        raise ValidationError(f"{param_name} must be {qualifier}, got {value}")
    return value


def build_text_style(
    bold: bool | None = None,
    italic: bool | None = None,
    underline: bool | None = None,
    strikethrough: bool | None = None,
    font_size: float | None = None,
    font_family: str | None = None,
    text_color: str | None = None,
    background_color: str | None = None,
    link_url: str | None = None,
    remove_link: bool = False,
) -> tuple[dict[str, Any], list[str]]:
    """
    Build a Docs textStyle object and the matching field mask.

    Returns:
        (text_style, fields). Both are empty when nothing was requested.

    Raises:
        ValidationError: for malformed colors, URLs or font sizes.
    """
    style: dict[str, Any] = {}
    fields: list[str] = []

    if link_url is not None and remove_link:
        raise ValidationError("link_url and remove_link cannot be used together")

    if bold is not None:
        style["bold"] = bold
        fields.append("bold")
    if italic is not None:
        style["italic"] = italic
        fields.append("italic")
    if underline is not None:
        style["underline"] = underline
        fields.append("underline")
    if strikethrough is not None:
        style["strikethrough"] = strikethrough
        fields.append("strikethrough")
    if font_size is not None:
        style["fontSize"] = {"magnitude": _validate_points(font_size, "font_size", allow_zero=False), "unit": "PT"}
        fields.append("fontSize")
    if font_family is not None:
        if not font_family.strip():
            raise ValidationError("font_family cannot be empty")
        style["weightedFontFamily"] = {"fontFamily": font_family}
        fields.append("weightedFontFamily")
    if text_color is not None:
        style["foregroundColor"] = {"color": {"rgbColor": _normalize_color(text_color, "text_color")}}
        fields.append("foregroundColor")
    if background_color is not None:
        style["backgroundColor"] = {"color": {"rgbColor": _normalize_color(background_color, "background_color")}}
        fields.append("backgroundColor")
    if link_url is not None:
        style["link"] = {"url": _validate_link_url(link_url)}
        fields.append("link")
    if remove_link:
        style["link"] = {}
        fields.append("link")

    return style, fields


def build_paragraph_style(
    alignment: str | None = None,
    indent_start: float | None = None,
    indent_end: float | None = None,
    indent_first_line: float | None = None,
    space_above: float | None = None,
    space_below: float | None = None,
    named_style_type: str | None = None,
    keep_with_next: bool | None = None,
) -> tuple[dict[str, Any], list[str]]:
    """Build a Docs paragraphStyle object and the matching field mask."""
    style: dict[str, Any] = {}
    fields: list[str] = []

    if alignment is not None:
        if alignment not in PARAGRAPH_ALIGNMENTS:
            raise ValidationError(f"alignment must be one of {sorted(PARAGRAPH_ALIGNMENTS)}, got {alignment!r}")
        style["alignment"] = alignment
        fields.append("alignment")

    for name, value, key in (
        ("indent_start", indent_start, "indentStart"),
        ("indent_end", indent_end, "indentEnd"),
        ("indent_first_line", indent_first_line, "indentFirstLine"),
        ("space_above", space_above, "spaceAbove"),
        ("space_below", space_below, "spaceBelow"),
    ):
        if value is not None:
            style[key] = {"magnitude": _validate_points(value, name), "unit": "PT"}
            fields.append(key)

    if named_style_type is not None:
        if named_style_type not in NAMED_STYLE_TYPES:
            raise ValidationError(f"Unknown named_style_type {named_style_type!r}")
        style["namedStyleType"] = named_style_type
        fields.append("namedStyleType")

    if keep_with_next is not None:
        style["keepWithNext"] = keep_with_next
        fields.append("keepWithNext")

    return style, fields


# =============================================================================
# Request factories
# =============================================================================


def _location(index: int, tab_id: str | None = None) -> dict[str, Any]:
    location: dict[str, Any] = {"index": index}
    if tab_id:
        location["tabId"] = tab_id
    return location


def _range(start_index: int, end_index: int, tab_id: str | None = None) -> dict[str, Any]:
    range_: dict[str, Any] = {"startIndex": start_index, "endIndex": end_index}
    if tab_id:
        range_["tabId"] = tab_id
    return range_


def create_insert_text_request(index: int, text: str, tab_id: str | None = None) -> dict[str, Any]:
    return {"insertText": {"location": _location(index, tab_id), "text": text}}


def create_delete_range_request(start_index: int, end_index: int, tab_id: str | None = None) -> dict[str, Any]:
    return {"deleteContentRange": {"range": _range(start_index, end_index, tab_id)}}


def create_update_text_style_request(
    start_index: int, end_index: int, text_style: dict, fields: list[str], tab_id: str | None = None
) -> dict[str, Any]:
    return {
        "updateTextStyle": {
            "range": _range(start_index, end_index, tab_id),
            "textStyle": text_style,
            "fields": ",".join(fields),
        }
    }


def create_update_paragraph_style_request(
    start_index: int, end_index: int, paragraph_style: dict, fields: list[str], tab_id: str | None = None
) -> dict[str, Any]:
    return {
        "updateParagraphStyle": {
            "range": _range(start_index, end_index, tab_id),
            "paragraphStyle": paragraph_style,
            "fields": ",".join(fields),
        }
    }


def create_format_text_request(
    start_index: int, end_index: int, tab_id: str | None = None, **style_kwargs
) -> dict[str, Any] | None:
    """
    Create an updateTextStyle request from keyword style arguments.

    Returns None when no style was requested.
    """
    text_style, fields = build_text_style(**style_kwargs)
    if not fields:
        return None
    return create_update_text_style_request(start_index, end_index, text_style, fields, tab_id)


def create_paragraph_style_request(
    start_index: int, end_index: int, tab_id: str | None = None, **style_kwargs
) -> dict[str, Any] | None:
    """Create an updateParagraphStyle request, or None when no style was requested."""
    paragraph_style, fields = build_paragraph_style(**style_kwargs)
    if not fields:
        return None
    return create_update_paragraph_style_request(start_index, end_index, paragraph_style, fields, tab_id)


def create_bullet_list_request(
    start_index: int, end_index: int, list_type: str = "UNORDERED", tab_id: str | None = None
) -> dict[str, Any]:
    preset = LIST_TYPE_PRESETS.get(list_type, list_type)
    return {"createParagraphBullets": {"range": _range(start_index, end_index, tab_id), "bulletPreset": preset}}


def create_insert_image_request(
    index: int,
    uri: str,
    width: float | None = None,
    height: float | None = None,
    tab_id: str | None = None,
) -> dict[str, Any]:
    request: dict[str, Any] = {"insertInlineImage": {"location": _location(index, tab_id), "uri": uri}}

    object_size: dict[str, Any] = {}
    if width is not None:
        object_size["width"] = {"magnitude": width, "unit": "PT"}
    if height is not None:
        object_size["height"] = {"magnitude": height, "unit": "PT"}
    if object_size:
        request["insertInlineImage"]["objectSize"] = object_size

    return request


def create_insert_table_request(index: int, rows: int, columns: int, tab_id: str | None = None) -> dict[str, Any]:
    return {"insertTable": {"location": _location(index, tab_id), "rows": rows, "columns": columns}}


# =============================================================================
# Edit operations
# =============================================================================


@dataclass(frozen=True)
class InsertText:
    index: int
    text: str
    tab_id: str | None = None

    def to_request(self) -> dict[str, Any]:
        return create_insert_text_request(self.index, self.text, self.tab_id)


@dataclass(frozen=True)
class DeleteRange:
    start_index: int
    end_index: int
    tab_id: str | None = None

    def to_request(self) -> dict[str, Any]:
        return create_delete_range_request(self.start_index, self.end_index, self.tab_id)


@dataclass(frozen=True)
class UpdateTextStyle:
    start_index: int
    end_index: int
    text_style: dict
    fields: tuple[str, ...]
    tab_id: str | None = None

    def to_request(self) -> dict[str, Any]:
        return create_update_text_style_request(
            self.start_index, self.end_index, self.text_style, list(self.fields), self.tab_id
        )


@dataclass(frozen=True)
class UpdateParagraphStyle:
    start_index: int
    end_index: int
    paragraph_style: dict
    fields: tuple[str, ...]
    tab_id: str | None = None

    def to_request(self) -> dict[str, Any]:
        return create_update_paragraph_style_request(
            self.start_index, self.end_index, self.paragraph_style, list(self.fields), self.tab_id
        )


@dataclass(frozen=True)
class CreateParagraphBullets:
    start_index: int
    end_index: int
    bullet_preset: str = BULLET_PRESET_UNORDERED
    tab_id: str | None = None

    def to_request(self) -> dict[str, Any]:
        return create_bullet_list_request(self.start_index, self.end_index, self.bullet_preset, self.tab_id)


@dataclass(frozen=True)
class InsertInlineImage:
    index: int
    uri: str
    width_pt: float | None = None
    height_pt: float | None = None
    tab_id: str | None = None

    def to_request(self) -> dict[str, Any]:
        return create_insert_image_request(self.index, self.uri, self.width_pt, self.height_pt, self.tab_id)


@dataclass(frozen=True)
class InsertTable:
    index: int
    rows: int
    columns: int
    tab_id: str | None = None

    def to_request(self) -> dict[str, Any]:
        return create_insert_table_request(self.index, self.rows, self.columns, self.tab_id)


EditOperation = (
    InsertText
    | DeleteRange
    | UpdateTextStyle
    | UpdateParagraphStyle
    | CreateParagraphBullets
    | InsertInlineImage
    | InsertTable
)


def operation_to_request(operation: EditOperation | dict) -> dict[str, Any]:
    """Serialize an edit operation; raw request dicts pass through unchanged."""
    if isinstance(operation, dict):
        return operation
    if not hasattr(operation, "to_request"):
        raise ValidationError(f"Unsupported operation type: {type(operation).__name__}")
    return operation.to_request()
