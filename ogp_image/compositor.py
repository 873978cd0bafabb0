"""Layer composition for preview images.

The preview is a clone of the base template with the icon pinned to the
bottom-right corner, an optional page thumbnail pinned to the bottom-left
corner and the wrapped title drawn top-down inside the text area. Image
layers are copied with binary alpha: transparent pixels are skipped and every
other pixel replaces the destination outright.
"""
from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Sequence, Tuple

import numpy as np
from PIL import Image, ImageDraw, ImageFont

from .config import Settings
from .errors import NetworkError, ThumbnailUnavailable
from .geometry import Anchor, Offset, Size
from .linebreak import Line
from .text import FONT_SIZE, TextMeasurer, load_font

logger = logging.getLogger(__name__)

DEFAULT_BASE_SIZE = Size(1200, 630)
DEFAULT_BASE_COLOR = (255, 255, 255, 255)
DEFAULT_ICON_COLOR = (45, 55, 72, 255)


@dataclass(frozen=True)
class Layout:
    font_size: int = FONT_SIZE
    text_color: Tuple[int, int, int, int] = (0, 0, 0, 255)
    text_margin_x: int = 100
    text_margin_y: int = 150
    icon_size: Size = Size(128, 128)
    icon_margin: int = 32
    thumbnail_max_height: int = 128
    thumbnail_margin: int = 32

    def icon_offset(self) -> Offset:
        return Offset(
            Anchor.BOTTOM_RIGHT,
            -self.icon_size.width - self.icon_margin,
            -self.icon_size.height - self.icon_margin,
        )

    def thumbnail_offset(self, thumbnail: Size) -> Offset:
        return Offset(Anchor.BOTTOM_LEFT, self.thumbnail_margin, -thumbnail.height - self.thumbnail_margin)

    def thumbnail_bounds(self, base: Size) -> Size:
        return Size(base.width // 2, self.thumbnail_max_height)

    def text_width(self, base: Size) -> int:
        return base.width - 2 * self.text_margin_x


DEFAULT_LAYOUT = Layout()


@dataclass(frozen=True)
class PreviewAssets:
    base: Image.Image
    icon: Image.Image
    font: ImageFont.FreeTypeFont

    @property
    def base_size(self) -> Size:
        return Size(*self.base.size)


def blit(canvas: np.ndarray, overlay: np.ndarray, origin: Tuple[int, int]) -> None:
    """Copy ``overlay`` onto ``canvas`` at ``origin`` with binary alpha.

    Both arrays are ``(height, width, 4)`` RGBA. Overlay pixels with zero
    alpha leave the canvas untouched; all others replace the canvas pixel.
    The overlay rectangle is clipped to the canvas, so pixels landing outside
    it are dropped.
    """

    canvas_h, canvas_w = canvas.shape[:2]
    overlay_h, overlay_w = overlay.shape[:2]
    x, y = origin

    left, top = max(x, 0), max(y, 0)
    right, bottom = min(x + overlay_w, canvas_w), min(y + overlay_h, canvas_h)
    if left >= right or top >= bottom:
        return

    src = overlay[top - y:bottom - y, left - x:right - x]
    dst = canvas[top:bottom, left:right]
    opaque = src[..., 3] > 0
    dst[opaque] = src[opaque]


def _as_rgba_array(image: Image.Image, size: Optional[Size] = None) -> np.ndarray:
    image = image.convert("RGBA")
    if size is not None and image.size != (size.width, size.height):
        image = image.resize((size.width, size.height), Image.Resampling.NEAREST)
    return np.asarray(image, dtype=np.uint8)


def compose(
    assets: PreviewAssets,
    thumbnail: Optional[Image.Image],
    lines: Sequence[Line],
    measurer: TextMeasurer,
    layout: Layout = DEFAULT_LAYOUT,
) -> Image.Image:
    base_size = assets.base_size
    canvas = np.array(assets.base.convert("RGBA"), dtype=np.uint8)

    blit(canvas, _as_rgba_array(assets.icon, layout.icon_size), layout.icon_offset().resolve(base_size))

    if thumbnail is not None:
        fitted = Size(*thumbnail.size).resize_to_fit(layout.thumbnail_bounds(base_size))
        if fitted.width > 0 and fitted.height > 0:
            origin = layout.thumbnail_offset(fitted).resolve(base_size)
            blit(canvas, _as_rgba_array(thumbnail, fitted), origin)
            logger.debug("Placed thumbnail %dx%d at %s", fitted.width, fitted.height, origin)

    image = Image.fromarray(canvas)
    draw = ImageDraw.Draw(image)
    x, y = layout.text_margin_x, layout.text_margin_y
    for line in lines:
        draw.text((x, y), line.text, font=assets.font, fill=layout.text_color)
        y += measurer.line_height(line.text)
    return image


def encode_png(image: Image.Image) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


def fetch_thumbnail(url: str, fetch: Callable[[str], bytes]) -> Optional[Image.Image]:
    """Download and decode a thumbnail, or return ``None`` when that fails."""

    try:
        data = fetch(url)
        image = Image.open(io.BytesIO(data))
        image.load()
    except (NetworkError, OSError, ValueError, Image.DecompressionBombError) as exc:
        logger.warning("%s", ThumbnailUnavailable(url, str(exc)))
        return None
    return image


def _default_icon(size: Size) -> Image.Image:
    icon = Image.new("RGBA", (size.width, size.height), (0, 0, 0, 0))
    draw = ImageDraw.Draw(icon)
    draw.ellipse((0, 0, size.width - 1, size.height - 1), fill=DEFAULT_ICON_COLOR)
    return icon


def _open_image(path: Path) -> Image.Image:
    with Image.open(path) as image:
        return image.convert("RGBA")


def load_assets(settings: Settings, layout: Layout = DEFAULT_LAYOUT) -> PreviewAssets:
    """Load the base template, icon and font once for the process."""

    if settings.base_image_path is not None:
        base = _open_image(settings.base_image_path)
    else:
        logger.warning("No base image configured; using a blank %dx%d template",
                       DEFAULT_BASE_SIZE.width, DEFAULT_BASE_SIZE.height)
        base = Image.new("RGBA", (DEFAULT_BASE_SIZE.width, DEFAULT_BASE_SIZE.height), DEFAULT_BASE_COLOR)

    if settings.icon_image_path is not None:
        icon = _open_image(settings.icon_image_path)
    else:
        icon = _default_icon(layout.icon_size)

    font = load_font(settings.font_path, layout.font_size)
    logger.info("Loaded preview assets: base %dx%d", *base.size)
    return PreviewAssets(base=base, icon=icon, font=font)
