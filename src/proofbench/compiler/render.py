"""Rasterization of laid-out frames with Pillow."""

from __future__ import annotations

import math

from PIL import Image, ImageDraw

from proofbench.compiler.layout import ADVANCE, Frame, ShapeItem, TextItem
from proofbench.compiler.world import FontBook

WHITE = (0xFF, 0xFF, 0xFF, 0xFF)
BLACK = (0x00, 0x00, 0x00, 0xFF)
RAW_INK = (0x30, 0x30, 0x30, 0xFF)


def render(
    frame: Frame,
    pixel_per_pt: float,
    fonts: FontBook,
    fill: tuple[int, int, int, int] = WHITE,
) -> Image.Image:
    """Render ``frame`` to an RGBA image at ``pixel_per_pt`` resolution.

    Link areas are not drawn; callers overlay them when they want them.
    """
    width = max(1, math.ceil(frame.width * pixel_per_pt))
    height = max(1, math.ceil(frame.height * pixel_per_pt))
    image = Image.new("RGBA", (width, height), fill)
    draw = ImageDraw.Draw(image)

    for pos, item in frame.items:
        x = pos.x * pixel_per_pt
        y = pos.y * pixel_per_pt
        if isinstance(item, ShapeItem):
            w = item.width * pixel_per_pt
            h = item.height * pixel_per_pt
            if w >= 1 and h >= 1:
                draw.rectangle([x, y, x + w - 1, y + h - 1], fill=tuple(item.fill))
        elif isinstance(item, TextItem):
            font = fonts.font(round(item.size * pixel_per_pt))
            ink = RAW_INK if item.raw else BLACK
            draw.text((x, y), item.text, fill=ink, font=font)
            if item.strong:
                draw.text((x + 1, y), item.text, fill=ink, font=font)
            if item.emph:
                baseline = y + item.size * pixel_per_pt
                advance = len(item.text) * item.size * ADVANCE * pixel_per_pt
                draw.line([(x, baseline), (x + advance, baseline)], fill=ink)
    return image
