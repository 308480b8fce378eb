"""Immutable values and content elements produced by evaluation.

Layout consumes these elements; it never looks at syntax.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, NamedTuple

if TYPE_CHECKING:
    from proofbench.compiler.library import Args

# Points per unit.
UNITS: dict[str, float] = {
    "pt": 1.0,
    "mm": 72.0 / 25.4,
    "cm": 72.0 / 2.54,
    "in": 72.0,
}


@dataclass(frozen=True)
class Length:
    """An absolute length in points."""

    pt: float

    def __add__(self, other: Length) -> Length:
        return Length(self.pt + other.pt)

    def __sub__(self, other: Length) -> Length:
        return Length(self.pt - other.pt)

    def __str__(self) -> str:
        return f"{self.pt:g}pt"


class Color(NamedTuple):
    r: int
    g: int
    b: int
    a: int = 0xFF

    def __str__(self) -> str:
        return f"rgb({self.r}, {self.g}, {self.b}, {self.a})"


@dataclass(frozen=True)
class TextElem:
    """A run of text without whitespace."""

    text: str
    size: float
    strong: bool = False
    emph: bool = False


@dataclass(frozen=True)
class RawElem:
    """Verbatim text, laid out word by word."""

    text: str
    size: float


@dataclass(frozen=True)
class MathElem:
    text: str
    size: float


@dataclass(frozen=True)
class SpaceElem:
    size: float


@dataclass(frozen=True)
class ParbreakElem:
    pass


@dataclass(frozen=True)
class LinebreakElem:
    size: float


@dataclass(frozen=True)
class RectElem:
    """A filled block-level rectangle."""

    width: Length
    height: Length
    fill: Color


@dataclass(frozen=True)
class LinkElem:
    """Inline content that links to ``dest``."""

    dest: str
    body: Content


@dataclass(frozen=True)
class VElem:
    """Vertical spacing."""

    amount: Length


@dataclass(frozen=True)
class PagebreakElem:
    pass


# The union of all content elements.
Elem = (
    TextElem
    | RawElem
    | MathElem
    | SpaceElem
    | ParbreakElem
    | LinebreakElem
    | RectElem
    | LinkElem
    | VElem
    | PagebreakElem
)


@dataclass(frozen=True)
class Content:
    """A sequence of content elements."""

    children: tuple[Elem, ...] = ()

    @classmethod
    def of(cls, *elems: Elem) -> Content:
        return cls(children=elems)

    def __add__(self, other: Content) -> Content:
        return Content(self.children + other.children)

    @property
    def is_empty(self) -> bool:
        return not self.children


@dataclass(frozen=True, eq=False)
class Func:
    """A native function callable from markup."""

    name: str
    call: Callable[[Any, Args], Value]


Value = None | bool | int | float | str | Length | Color | Content | Func | tuple


def type_name(value: Value) -> str:
    if value is None:
        return "none"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int):
        return "integer"
    if isinstance(value, float):
        return "float"
    if isinstance(value, str):
        return "string"
    if isinstance(value, Length):
        return "length"
    if isinstance(value, Color):
        return "color"
    if isinstance(value, Content):
        return "content"
    if isinstance(value, Func):
        return "function"
    return "array"


def repr_value(value: Value) -> str:
    """Debug representation, as used in assertion messages."""
    if value is None:
        return "none"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        escaped = value.replace("\\", "\\\\").replace('"', '\\"')
        return f'"{escaped}"'
    if isinstance(value, int | float | Length | Color):
        return str(value)
    if isinstance(value, Content):
        return "[..]" if value.children else "[]"
    if isinstance(value, Func):
        return value.name
    return "(" + ", ".join(repr_value(item) for item in value) + ")"


def values_equal(lhs: Value, rhs: Value) -> bool:
    """Equality as markup sees it: booleans never equal numbers."""
    if isinstance(lhs, bool) != isinstance(rhs, bool):
        return False
    return lhs == rhs
