"""Font loading and glyph-box text measurement."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol

from PIL import ImageFont

from .errors import EmptyGlyphs

logger = logging.getLogger(__name__)

FONT_SIZE = 72


class TextMeasurer(Protocol):
    def width(self, text: str) -> int: ...

    def line_height(self, text: str) -> int: ...


def load_font(path: Path | None = None, size: int = FONT_SIZE) -> ImageFont.FreeTypeFont:
    """Load the preview font, falling back to Pillow's bundled scalable font."""

    if path is not None:
        logger.info("Loading font %s at %dpx", path, size)
        return ImageFont.truetype(str(path), size)
    logger.warning("No font configured; using Pillow's default font (limited CJK coverage)")
    return ImageFont.load_default(size=size)


class FontTextMeasurer:
    """Measures the rendered glyph box of a string at the font's fixed size.

    Heights are measured per string, so a line without ascenders or descenders
    is shorter than one with them.
    """

    def __init__(self, font: ImageFont.FreeTypeFont) -> None:
        self.font = font

    def _bbox(self, text: str) -> tuple[int, int, int, int]:
        if not text or not text.strip():
            raise EmptyGlyphs(text)
        left, top, right, bottom = (int(v) for v in self.font.getbbox(text))
        if right <= left or bottom <= top:
            raise EmptyGlyphs(text)
        return left, top, right, bottom

    def width(self, text: str) -> int:
        left, _, right, _ = self._bbox(text)
        return right - left

    def line_height(self, text: str) -> int:
        _, top, _, bottom = self._bbox(text)
        return bottom - top
