"""
Engine configuration.

Settings are read from environment variables once and cached; tests call
reset_config() after changing the environment.
"""

import os

from pydantic import BaseModel, Field

from core.errors import ValidationError

# Docs API batchUpdate requests per call
DEFAULT_MAX_BATCH_REQUESTS = 50
DEFAULT_CODE_FONT_FAMILY = "Courier New"
DEFAULT_IMAGE_WIDTH_PT = 300.0
DEFAULT_IMAGE_HEIGHT_PT = 200.0
DEFAULT_BLOCKQUOTE_INDENT_PT = 36.0


def _env_int(name: str, default: int, minimum: int = 1) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError as e:
        raise ValidationError(f"{name} must be an integer, got {raw!r}") from e
    if value < minimum:
        raise ValidationError(f"{name} must be >= {minimum}, got {value}")
    return value


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError as e:
        raise ValidationError(f"{name} must be a number, got {raw!r}") from e
    if value <= 0:
        raise ValidationError(f"{name} must be positive, got {value}")
    return value


class EngineConfig:
    """
    Centralized engine configuration.

    Environment variables:
        GDOCS_MAX_BATCH_REQUESTS: requests per batchUpdate call (default 50)
        GDOCS_CODE_FONT_FAMILY: font used for inline code and code blocks
        GDOCS_IMAGE_WIDTH_PT / GDOCS_IMAGE_HEIGHT_PT: default inline image size
        GDOCS_BLOCKQUOTE_INDENT_PT: left indent applied to blockquotes
    """

    def __init__(self):
        self.max_batch_requests = _env_int("GDOCS_MAX_BATCH_REQUESTS", DEFAULT_MAX_BATCH_REQUESTS)
        self.code_font_family = os.getenv("GDOCS_CODE_FONT_FAMILY", DEFAULT_CODE_FONT_FAMILY).strip()
        if not self.code_font_family:
            raise ValidationError("GDOCS_CODE_FONT_FAMILY cannot be empty")
        self.image_width_pt = _env_float("GDOCS_IMAGE_WIDTH_PT", DEFAULT_IMAGE_WIDTH_PT)
        self.image_height_pt = _env_float("GDOCS_IMAGE_HEIGHT_PT", DEFAULT_IMAGE_HEIGHT_PT)
        self.blockquote_indent_pt = _env_float("GDOCS_BLOCKQUOTE_INDENT_PT", DEFAULT_BLOCKQUOTE_INDENT_PT)

    def __repr__(self) -> str:
        return (
            f"EngineConfig(max_batch_requests={self.max_batch_requests}, "
            f"code_font_family={self.code_font_family!r}, "
            f"image_size=({self.image_width_pt}, {self.image_height_pt}), "
            f"blockquote_indent_pt={self.blockquote_indent_pt})"
        )


class ConversionOptions(BaseModel):
    """Per-call options for converting Markdown into Docs edit operations."""

    full_replace: bool = Field(False, description="Delete the existing body before inserting.")
    image_width_pt: float | None = Field(None, gt=0, description="Inline image width in points.")
    image_height_pt: float | None = Field(None, gt=0, description="Inline image height in points.")
    tab_id: str | None = Field(None, description="Target tab for multi-tab documents.")


_config: EngineConfig | None = None


def get_config() -> EngineConfig:
    """
    Get the global engine configuration instance.

    Returns:
        The cached configuration instance
    """
    global _config
    if _config is None:
        _config = EngineConfig()
    return _config


def reset_config() -> None:
    """Drop the cached configuration so the next get_config() re-reads the environment."""
    global _config
    _config = None
