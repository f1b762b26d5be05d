"""Render the chosen weather label as a PNG card."""

from __future__ import annotations

import logging
from io import BytesIO

from PIL import Image, ImageDraw, ImageFont

from sunrise.core.config import settings

logger = logging.getLogger(__name__)

# Morning gradient, top to bottom
SKY_TOP = (255, 183, 77)
SKY_BOTTOM = (255, 236, 179)
TEXT_COLOR = (62, 39, 35)


def _load_font(size: int) -> ImageFont.ImageFont | ImageFont.FreeTypeFont:
    if settings.render_font_path:
        try:
            return ImageFont.truetype(settings.render_font_path, size=size)
        except OSError:
            logger.warning("Failed to load font %s; using default", settings.render_font_path)
    return ImageFont.load_default(size=size)


def _gradient(width: int, height: int) -> Image.Image:
    image = Image.new("RGB", (width, height), SKY_TOP)
    draw = ImageDraw.Draw(image)
    for y in range(height):
        ratio = y / max(1, height - 1)
        color = tuple(int(top + (bottom - top) * ratio) for top, bottom in zip(SKY_TOP, SKY_BOTTOM))
        draw.line([(0, y), (width, y)], fill=color)
    return image


def render_weather_image(name: str, width: int | None = None, height: int | None = None) -> bytes:
    """Return PNG bytes with ``name`` centered on a morning sky."""

    width = width or settings.render_width
    height = height or settings.render_height
    image = _gradient(width, height)
    draw = ImageDraw.Draw(image)

    # shrink until the label fits with a margin
    size = height // 3
    font = _load_font(size)
    while size > 12:
        left, top, right, bottom = draw.textbbox((0, 0), name, font=font)
        if right - left <= width * 0.85:
            break
        size = int(size * 0.85)
        font = _load_font(size)

    draw.text((width / 2, height / 2), name, font=font, fill=TEXT_COLOR, anchor="mm")

    buffer = BytesIO()
    image.save(buffer, format="PNG")
    logger.debug("Rendered %s (%sx%s, %s bytes)", name, width, height, buffer.tell())
    return buffer.getvalue()


__all__ = ["render_weather_image"]
