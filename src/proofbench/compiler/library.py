"""Native function registry and the standard library of globals."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from proofbench.compiler.content import (
    Color,
    Content,
    Func,
    LinkElem,
    Length,
    PagebreakElem,
    RectElem,
    TextElem,
    Value,
    VElem,
    repr_value,
    type_name,
    values_equal,
)
from proofbench.compiler.errors import EvalError

if TYPE_CHECKING:
    from proofbench.compiler.eval import Vm

Native = Callable[["Vm", "Args"], Value]

COLORS: dict[str, Color] = {
    "black": Color(0x00, 0x00, 0x00),
    "white": Color(0xFF, 0xFF, 0xFF),
    "gray": Color(0xAA, 0xAA, 0xAA),
    "red": Color(0xFF, 0x41, 0x36),
    "blue": Color(0x00, 0x74, 0xD9),
    "conifer": Color(0x9F, 0xEB, 0x52),
    "forest": Color(0x43, 0xA1, 0x27),
}


@dataclass(frozen=True)
class Styles:
    """Document defaults that ``set`` rules start from."""

    page_width: Length = Length(120.0)
    page_height: Length | None = None
    margin: Length = Length(10.0)
    text_size: Length = Length(10.0)


@dataclass(frozen=True)
class Arg:
    name: str | None
    value: Value
    span: int


@dataclass
class Args:
    """Evaluated call arguments, consumed by native functions."""

    span: int
    items: list[Arg] = field(default_factory=list)

    def eat(self) -> Value | None:
        """Take the next positional argument, if any."""
        for i, arg in enumerate(self.items):
            if arg.name is None:
                return self.items.pop(i).value
        return None

    def expect(self, what: str) -> Value:
        for i, arg in enumerate(self.items):
            if arg.name is None:
                return self.items.pop(i).value
        raise EvalError(self.span, f"missing argument: {what}")

    def named(self, name: str, default: Value = None) -> Value:
        for i, arg in enumerate(self.items):
            if arg.name == name:
                return self.items.pop(i).value
        return default

    def rest(self) -> list[Value]:
        """Take all remaining positional arguments."""
        values = [arg.value for arg in self.items if arg.name is None]
        self.items = [arg for arg in self.items if arg.name is not None]
        return values

    def finish(self) -> None:
        """Fail on any argument nobody consumed."""
        for arg in self.items:
            if arg.name is None:
                raise EvalError(arg.span, "unexpected argument")
            raise EvalError(arg.span, f"unexpected argument: {arg.name}")


def cast(value: Value, expected: type | tuple[type, ...], what: str, span: int) -> Any:
    """Check ``value`` against ``expected`` or fail with a type error."""
    if isinstance(value, expected) and not (expected is int and isinstance(value, bool)):
        return value
    raise EvalError(span, f"expected {what}, found {type_name(value)}")


class NativeRegistry:
    """Registry for native functions exposed as globals."""

    _natives: dict[str, Native] = {}

    @classmethod
    def register(cls, name: str) -> Callable[[Native], Native]:
        """Register a native function under ``name``. Used as a decorator."""

        def decorator(native: Native) -> Native:
            cls._natives[name] = native
            return native

        return decorator

    @classmethod
    def available(cls) -> list[str]:
        """List registered function names."""
        return sorted(cls._natives.keys())

    @classmethod
    def functions(cls) -> dict[str, Func]:
        return {name: Func(name, native) for name, native in cls._natives.items()}


@dataclass(frozen=True)
class Library:
    """Immutable global scope plus default styles, shared between worlds."""

    globals: Mapping[str, Value]
    styles: Styles = Styles()

    @classmethod
    def build(cls, styles: Styles | None = None) -> Library:
        scope: dict[str, Value] = {}
        scope.update(NativeRegistry.functions())
        scope.update(COLORS)
        return cls(globals=MappingProxyType(scope), styles=styles or Styles())

    def get(self, name: str) -> Value | None:
        return self.globals.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self.globals


# -- natives ---------------------------------------------------------------


@NativeRegistry.register("rect")
def _rect(vm: Vm, args: Args) -> Value:
    width = cast(args.named("width", Length(20.0)), Length, "length", args.span)
    height = cast(args.named("height", Length(10.0)), Length, "length", args.span)
    fill = cast(args.named("fill", COLORS["gray"]), Color, "color", args.span)
    args.finish()
    return Content.of(RectElem(width, height, fill))


@NativeRegistry.register("link")
def _link(vm: Vm, args: Args) -> Value:
    dest = cast(args.expect("destination"), str, "string", args.span)
    body = args.eat()
    args.finish()
    if body is None:
        body = Content.of(TextElem(dest, vm.text_size.pt))
    return Content.of(LinkElem(dest, cast(body, Content, "content", args.span)))


@NativeRegistry.register("v")
def _v(vm: Vm, args: Args) -> Value:
    amount = cast(args.expect("amount"), Length, "length", args.span)
    args.finish()
    return Content.of(VElem(amount))


@NativeRegistry.register("pagebreak")
def _pagebreak(vm: Vm, args: Args) -> Value:
    args.finish()
    return Content.of(PagebreakElem())


@NativeRegistry.register("include")
def _include(vm: Vm, args: Args) -> Value:
    path = cast(args.expect("path"), str, "string", args.span)
    args.finish()
    return vm.include(path, args.span)


@NativeRegistry.register("repr")
def _repr(vm: Vm, args: Args) -> Value:
    value = args.expect("value")
    args.finish()
    return repr_value(value)


@NativeRegistry.register("test")
def _test(vm: Vm, args: Args) -> Value:
    lhs = args.expect("left-hand side")
    rhs = args.expect("right-hand side")
    args.finish()
    if not values_equal(lhs, rhs):
        raise EvalError(args.span, f"Assertion failed: {repr_value(lhs)} != {repr_value(rhs)}")
    return None


@NativeRegistry.register("print")
def _print(vm: Vm, args: Args) -> Value:
    values = args.rest()
    args.finish()
    print("> " + ", ".join(repr_value(value) for value in values))
    return None
