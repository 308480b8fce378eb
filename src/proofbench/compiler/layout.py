"""Layout of content into page frames.

A deliberately small line-breaking model: every glyph advances by half the
font size, lines are 1.2em tall and words wrap greedily at the inner width.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from proofbench.compiler.content import (
    Color,
    Content,
    LinebreakElem,
    LinkElem,
    MathElem,
    PagebreakElem,
    ParbreakElem,
    RawElem,
    RectElem,
    SpaceElem,
    TextElem,
    VElem,
)
from proofbench.compiler.library import Styles

ADVANCE = 0.5
LEADING = 1.2
PAR_SPACING = 6.0
BLOCK_SPACING = 4.0


@dataclass(frozen=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True)
class TextItem:
    text: str
    size: float
    strong: bool = False
    emph: bool = False
    raw: bool = False


@dataclass(frozen=True)
class ShapeItem:
    width: float
    height: float
    fill: Color


@dataclass(frozen=True)
class LinkItem:
    """A clickable area; the text it covers is a separate item."""

    width: float
    height: float
    dest: str


FrameItem = TextItem | ShapeItem | LinkItem


@dataclass
class Frame:
    """One laid-out page, in points."""

    width: float
    height: float
    items: list[tuple[Point, FrameItem]] = field(default_factory=list)

    def dump(self) -> str:
        lines = [f"Frame {self.width:g}pt x {self.height:g}pt"]
        for pos, item in self.items:
            lines.append(f"  ({pos.x:g}, {pos.y:g}) {item}")
        return "\n".join(lines)


class Layouter:
    """Flows content top to bottom onto fixed-width pages."""

    def __init__(self, styles: Styles) -> None:
        self.width = styles.page_width.pt
        self.height = styles.page_height.pt if styles.page_height is not None else None
        self.margin = styles.margin.pt
        self.inner = self.width - 2 * self.margin
        self.pages: list[Frame] = []
        self._start_page()

    def _start_page(self) -> None:
        self.frame = Frame(self.width, 0.0)
        self.x = 0.0
        self.y = self.margin
        self.line_height = 0.0

    def _finish_page(self) -> None:
        self._finish_line()
        if self.height is not None:
            self.frame.height = self.height
        else:
            self.frame.height = max(self.y + self.margin, 2 * self.margin)
        self.pages.append(self.frame)
        self._start_page()

    def _finish_line(self) -> None:
        if self.x > 0 or self.line_height > 0:
            self.y += self.line_height
        self.x = 0.0
        self.line_height = 0.0

    def _fits(self, height: float) -> bool:
        if self.height is None or not self.frame.items:
            return True
        return self.y + height <= self.height - self.margin

    def layout(self, content: Content, link: str | None = None) -> None:
        for elem in content.children:
            if isinstance(elem, TextElem):
                self._word(TextItem(elem.text, elem.size, elem.strong, elem.emph), link)
            elif isinstance(elem, RawElem | MathElem):
                raw = isinstance(elem, RawElem)
                for i, word in enumerate(elem.text.split()):
                    if i:
                        self._space(elem.size)
                    self._word(TextItem(word, elem.size, raw=raw), link)
            elif isinstance(elem, SpaceElem):
                self._space(elem.size)
            elif isinstance(elem, LinebreakElem):
                if self.x == 0:
                    self.line_height = elem.size * LEADING
                self._finish_line()
            elif isinstance(elem, ParbreakElem):
                self._finish_line()
                if self.frame.items:
                    self.y += PAR_SPACING
            elif isinstance(elem, LinkElem):
                self.layout(elem.body, elem.dest)
            elif isinstance(elem, RectElem):
                self._rect(elem)
            elif isinstance(elem, VElem):
                self._finish_line()
                self.y += elem.amount.pt
            elif isinstance(elem, PagebreakElem):
                self._finish_page()

    def finish(self) -> list[Frame]:
        if self.frame.items or not self.pages:
            self._finish_page()
        return self.pages

    def _space(self, size: float) -> None:
        if self.x > 0:
            self.x += size * ADVANCE

    def _word(self, item: TextItem, link: str | None) -> None:
        width = len(item.text) * item.size * ADVANCE
        height = item.size * LEADING
        if self.x > 0 and self.x + width > self.inner:
            self._finish_line()
        if self.x == 0 and not self._fits(height):
            self._finish_page()
        pos = Point(self.margin + self.x, self.y)
        self.frame.items.append((pos, item))
        if link is not None:
            self.frame.items.append((pos, LinkItem(width, height, link)))
        self.x += width
        self.line_height = max(self.line_height, height)

    def _rect(self, elem: RectElem) -> None:
        self._finish_line()
        height = elem.height.pt
        if not self._fits(height):
            self._finish_page()
        if self.frame.items:
            self.y += BLOCK_SPACING
        pos = Point(self.margin, self.y)
        self.frame.items.append((pos, ShapeItem(elem.width.pt, height, elem.fill)))
        self.y += height


def layout(content: Content, styles: Styles) -> list[Frame]:
    """Lay ``content`` out into one or more pages."""
    layouter = Layouter(styles)
    layouter.layout(content)
    return layouter.finish()
