"""Golden image comparison: render pages, compare with references, update."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

import numpy as np
from PIL import Image, ImageDraw

from proofbench.compiler.errors import OverlargeFrameError
from proofbench.compiler.layout import Frame, LinkItem
from proofbench.compiler.render import render
from proofbench.compiler.world import FontBook

logger = logging.getLogger("proofbench.golden")

PIXEL_PER_PT = 2.0
PADDING = round(5.0 * PIXEL_PER_PT)
TOLERANCE = 2
CANVAS = (0x00, 0x00, 0x00, 0xFF)
LINK_OVERLAY = (40, 54, 99, 40)

# 100 cm in points; anything larger is runaway layout.
FRAME_LIMIT = 100.0 * 72.0 / 2.54


@dataclass(frozen=True)
class GoldenOutcome:
    """Result of checking a rendered canvas against its reference."""

    ok: bool = True
    updated: bool = False
    message: str | None = None


def render_page(frame: Frame, fonts: FontBook) -> Image.Image:
    """Render one page with its link areas tinted."""
    if frame.width > FRAME_LIMIT or frame.height > FRAME_LIMIT:
        raise OverlargeFrameError(frame.width, frame.height)

    page = render(frame, PIXEL_PER_PT, fonts)
    overlay = Image.new("RGBA", page.size, (0, 0, 0, 0))
    draw = ImageDraw.Draw(overlay)
    for pos, item in frame.items:
        if not isinstance(item, LinkItem):
            continue
        x0 = pos.x * PIXEL_PER_PT
        y0 = pos.y * PIXEL_PER_PT
        x1 = x0 + item.width * PIXEL_PER_PT
        y1 = y0 + item.height * PIXEL_PER_PT
        if x1 - x0 >= 1 and y1 - y0 >= 1:
            draw.rectangle([x0, y0, x1 - 1, y1 - 1], fill=LINK_OVERLAY)
    return Image.alpha_composite(page, overlay)


def render_pages(pages: list[Frame], fonts: FontBook) -> Image.Image:
    """Stack all pages vertically on a black canvas with padding around each.

    Raises :class:`OverlargeFrameError` if any page is larger than 100 cm.
    """
    images = [render_page(frame, fonts) for frame in pages]
    width = 2 * PADDING + max((image.width for image in images), default=0)
    height = PADDING + sum(image.height + PADDING for image in images)

    canvas = Image.new("RGBA", (width, height), CANVAS)
    y = PADDING
    for image in images:
        canvas.paste(image, (PADDING, y))
        y += image.height + PADDING
    return canvas


def images_match(a: Image.Image, b: Image.Image, tolerance: int = TOLERANCE) -> bool:
    """Same dimensions and no channel differing by more than ``tolerance``."""
    if a.size != b.size:
        return False
    left = np.asarray(a.convert("RGBA"), dtype=np.int16)
    right = np.asarray(b.convert("RGBA"), dtype=np.int16)
    return bool(np.all(np.abs(left - right) <= tolerance))


def load_reference(ref_path: Path) -> Image.Image | None:
    """The reference image, or ``None`` if it is missing or unreadable."""
    try:
        with Image.open(ref_path) as image:
            return image.convert("RGBA")
    except OSError:
        return None


def update_image(png_path: Path, ref_path: Path) -> None:
    """Replace the reference with a losslessly optimized copy of the output."""
    ref_path.parent.mkdir(parents=True, exist_ok=True)
    with Image.open(png_path) as image:
        image.save(ref_path, format="PNG", optimize=True)
    logger.info("Updated reference image %s", ref_path)


def check_reference(
    canvas: Image.Image,
    png_path: Path,
    ref_path: Path,
    update: bool,
    has_pages: bool,
) -> GoldenOutcome:
    """Save ``canvas`` as the fresh output and compare it with the reference.

    A matching reference is never rewritten.
    """
    png_path.parent.mkdir(parents=True, exist_ok=True)
    canvas.save(png_path, format="PNG")

    reference = load_reference(ref_path)
    if reference is not None:
        if images_match(canvas, reference):
            return GoldenOutcome()
        if update:
            update_image(png_path, ref_path)
            return GoldenOutcome(updated=True)
        return GoldenOutcome(ok=False, message="  Does not match reference image.")

    if not has_pages:
        return GoldenOutcome()
    if update:
        update_image(png_path, ref_path)
        return GoldenOutcome(updated=True)
    return GoldenOutcome(ok=False, message="  Failed to open reference image.")


def export_pdf(pages: list[Frame], path: Path, fonts: FontBook) -> None:
    """Write one PDF page per frame."""
    path.parent.mkdir(parents=True, exist_ok=True)
    images = [render(frame, PIXEL_PER_PT, fonts).convert("RGB") for frame in pages]
    if not images:
        images = [Image.new("RGB", (1, 1), (0xFF, 0xFF, 0xFF))]
    first, *rest = images
    first.save(path, format="PDF", save_all=True, append_images=rest, resolution=72.0 * PIXEL_PER_PT)
