"""Evaluation of syntax trees into content.

The :class:`Vm` walks a markup tree visitor-style, dispatching on node kind
to ``eval_<kind>`` methods. Errors inside one markup node become diagnostics
and evaluation continues with the next node.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from proofbench.compiler.content import (
    UNITS,
    Content,
    Func,
    Length,
    LinebreakElem,
    MathElem,
    ParbreakElem,
    RawElem,
    SpaceElem,
    TextElem,
    Value,
    repr_value,
    type_name,
    values_equal,
)
from proofbench.compiler.errors import EvalError, FileError, SourceDiagnostic
from proofbench.compiler.library import Arg, Args, Styles, cast
from proofbench.compiler.world import World
from proofbench.syntax.kind import SyntaxKind
from proofbench.syntax.node import SyntaxNode
from proofbench.syntax.source import Source, SourceId

_PUNCT = frozenset(
    {
        SyntaxKind.HASH,
        SyntaxKind.LEFT_PAREN,
        SyntaxKind.RIGHT_PAREN,
        SyntaxKind.COMMA,
        SyntaxKind.COLON,
    }
)


@dataclass
class Module:
    """An evaluated source: its content and final document styles."""

    name: str
    content: Content = field(default_factory=Content)
    styles: Styles = field(default_factory=Styles)
    diagnostics: list[SourceDiagnostic] = field(default_factory=list)


def evaluate(world: World, source: Source, route: tuple[SourceId, ...] = ()) -> Module:
    """Evaluate ``source``. Syntax errors short-circuit evaluation."""
    name = source.path.stem
    errors = source.root.errors()
    if errors:
        diagnostics = [SourceDiagnostic(source.id, node.span, node.message or "") for node in errors]
        return Module(name, diagnostics=diagnostics)

    vm = Vm(world, source, route)
    content = vm.eval_markup(source.root)
    return Module(name, content=content, styles=vm.styles, diagnostics=vm.diagnostics)


def _code(children: list[SyntaxNode]) -> list[SyntaxNode]:
    """Children that carry meaning, without trivia and punctuation."""
    return [c for c in children if not c.kind.is_trivia and c.kind not in _PUNCT]


class Vm:
    """Evaluation state for one source."""

    def __init__(self, world: World, source: Source, route: tuple[SourceId, ...]) -> None:
        self.world = world
        self.source = source
        self.route = route
        self.styles = world.library.styles
        self.scope: dict[str, Value] = {}
        self.diagnostics: list[SourceDiagnostic] = []
        self.strong = False
        self.emph = False

    @property
    def text_size(self) -> Length:
        return self.styles.text_size

    def visit(self, node: SyntaxNode) -> Any:
        """Dispatch to the appropriate eval_* method."""
        method_name = f"eval_{node.kind.value.replace('-', '_')}"
        method = getattr(self, method_name, self.generic_eval)
        return method(node)

    def generic_eval(self, node: SyntaxNode) -> Any:
        raise EvalError(node.span, f"cannot evaluate {node.kind}")

    # -- markup --------------------------------------------------------------

    def eval_markup(self, node: SyntaxNode) -> Content:
        content = Content()
        for child in node.children:
            try:
                value = self.visit(child)
            except EvalError as err:
                self.diagnostics.append(SourceDiagnostic(self.source.id, err.span, err.message))
                continue
            content += self.display(value)
        return content

    def display(self, value: Value) -> Content:
        """Turn a value into content the way markup shows it."""
        if value is None:
            return Content()
        if isinstance(value, Content):
            return value
        if isinstance(value, str):
            return self._words(value)
        return self._words(repr_value(value))

    def _words(self, text: str) -> Content:
        elems: list[Any] = []
        for i, word in enumerate(text.split(" ")):
            if i:
                elems.append(SpaceElem(self.text_size.pt))
            if word:
                elems.append(self._text(word))
        return Content(tuple(elems))

    def _text(self, text: str) -> TextElem:
        return TextElem(text, self.text_size.pt, strong=self.strong, emph=self.emph)

    def eval_text(self, node: SyntaxNode) -> Content:
        return Content.of(self._text(node.text))

    def eval_space(self, node: SyntaxNode) -> Content:
        return Content.of(SpaceElem(self.text_size.pt))

    def eval_parbreak(self, node: SyntaxNode) -> Content:
        return Content.of(ParbreakElem())

    def eval_linebreak(self, node: SyntaxNode) -> Content:
        return Content.of(LinebreakElem(self.text_size.pt))

    def eval_line_comment(self, node: SyntaxNode) -> None:
        return None

    def eval_block_comment(self, node: SyntaxNode) -> None:
        return None

    def eval_escape(self, node: SyntaxNode) -> Content:
        body = node.text[1:]
        if body.startswith("u{"):
            codepoint = int(body[2:-1], 16)
            if not _scalar(codepoint):
                raise EvalError(node.span, f"invalid unicode codepoint: {body[2:-1]}")
            body = chr(codepoint)
        return Content.of(self._text(body))

    def eval_strong(self, node: SyntaxNode) -> Content:
        saved, self.strong = self.strong, True
        try:
            return self.eval_markup(SyntaxNode.inner(SyntaxKind.MARKUP, node.children[1:-1]))
        finally:
            self.strong = saved

    def eval_emph(self, node: SyntaxNode) -> Content:
        saved, self.emph = self.emph, True
        try:
            return self.eval_markup(SyntaxNode.inner(SyntaxKind.MARKUP, node.children[1:-1]))
        finally:
            self.emph = saved

    def eval_raw(self, node: SyntaxNode) -> Content:
        text = node.text
        ticks = len(text) - len(text.lstrip("`"))
        body = text[ticks:-ticks] if len(text) > 2 * ticks else ""
        if ticks >= 3:
            # Block raw: an optional language tag, then the body.
            lang, sep, rest = body.partition("\n")
            if sep and (not lang or lang.isidentifier()):
                body = rest
            elif lang.isidentifier():
                body = ""
        if not body.strip():
            return Content()
        return Content.of(RawElem(body.strip(), self.text_size.pt))

    def eval_math(self, node: SyntaxNode) -> Content:
        body = node.text[1:-1].strip()
        if not body:
            return Content()
        return Content.of(MathElem(body, self.text_size.pt))

    # -- code ----------------------------------------------------------------

    def eval_embedded(self, node: SyntaxNode) -> Any:
        return self.visit(_code(node.children)[0])

    def eval_ident(self, node: SyntaxNode) -> Value:
        if node.text in self.scope:
            return self.scope[node.text]
        if node.text in self.world.library:
            return self.world.library.get(node.text)
        raise EvalError(node.span, f"unknown variable: {node.text}")

    def eval_bool(self, node: SyntaxNode) -> bool:
        return node.text == "true"

    def eval_none(self, node: SyntaxNode) -> None:
        return None

    def eval_int(self, node: SyntaxNode) -> int:
        return int(node.text)

    def eval_float(self, node: SyntaxNode) -> float:
        return float(node.text)

    def eval_numeric(self, node: SyntaxNode) -> Length:
        unit = node.text[-2:]
        return Length(float(node.text[:-2]) * UNITS[unit])

    def eval_str(self, node: SyntaxNode) -> str:
        return _unescape(node.text[1:-1])

    def eval_content_block(self, node: SyntaxNode) -> Content:
        saved = self.styles
        try:
            return self.eval_markup(node.children[1])
        finally:
            # Text styles are scoped to the block; page styles are document-wide.
            self.styles = Styles(
                page_width=self.styles.page_width,
                page_height=self.styles.page_height,
                margin=self.styles.margin,
                text_size=saved.text_size,
            )

    def eval_args(self, node: SyntaxNode) -> Value:
        """A parenthesized group: a single value or an array."""
        items = self.args(node)
        if any(item.name is not None for item in items):
            raise EvalError(node.span, "dictionaries are not supported")
        commas = any(child.kind == SyntaxKind.COMMA for child in node.children)
        if len(items) == 1 and not commas:
            return items[0].value
        return tuple(item.value for item in items)

    def args(self, node: SyntaxNode) -> list[Arg]:
        items: list[Arg] = []
        for child in _code(node.children):
            if child.kind == SyntaxKind.NAMED:
                name, expr = _code(child.children)
                items.append(Arg(name.text, self.visit(expr), expr.span))
            else:
                items.append(Arg(None, self.visit(child), child.span))
        return items

    def eval_func_call(self, node: SyntaxNode) -> Value:
        callee_node, *rest = _code(node.children)
        callee = self.visit(callee_node)
        if not isinstance(callee, Func):
            raise EvalError(callee_node.span, f"expected function, found {type_name(callee)}")
        args = Args(span=node.span)
        for part in rest:
            if part.kind == SyntaxKind.ARGS:
                args.items.extend(self.args(part))
            else:
                args.items.append(Arg(None, self.visit(part), part.span))
        return callee.call(self, args)

    def eval_binary(self, node: SyntaxNode) -> Value:
        lhs_node, op, rhs_node = _code(node.children)
        lhs = self.visit(lhs_node)
        rhs = self.visit(rhs_node)
        if op.kind == SyntaxKind.EQ_EQ:
            return values_equal(lhs, rhs)
        if op.kind == SyntaxKind.EXCL_EQ:
            return not values_equal(lhs, rhs)
        if op.kind == SyntaxKind.PLUS:
            return _add(lhs, rhs, node.span)
        return _sub(lhs, rhs, node.span)

    def eval_let_binding(self, node: SyntaxNode) -> None:
        parts = _code(node.children)
        name = parts[1].text
        value = self.visit(parts[3]) if len(parts) > 3 else None
        self.scope[name] = value
        return None

    def eval_set_rule(self, node: SyntaxNode) -> None:
        _, target, args_node = _code(node.children)
        args = Args(span=node.span, items=self.args(args_node))
        styles = self.styles
        if target.text == "page":
            width = cast(args.named("width", styles.page_width), Length, "length", args.span)
            height = args.named("height", styles.page_height)
            if height is not None:
                height = cast(height, Length, "length or none", args.span)
            margin = cast(args.named("margin", styles.margin), Length, "length", args.span)
            args.finish()
            if width.pt - 2 * margin.pt <= 0 or (
                height is not None and height.pt - 2 * margin.pt <= 0
            ):
                raise EvalError(node.span, "page too small")
            self.styles = Styles(width, height, margin, styles.text_size)
        elif target.text == "text":
            size = cast(args.named("size", styles.text_size), Length, "length", args.span)
            args.finish()
            if size.pt <= 0:
                raise EvalError(node.span, "text size must be positive")
            self.styles = Styles(styles.page_width, styles.page_height, styles.margin, size)
        else:
            raise EvalError(target.span, f"cannot set {target.text}")
        return None

    # -- includes --------------------------------------------------------------

    def include(self, path: str, span: int) -> Content:
        try:
            id = self.world.resolve(Path(path))
        except FileError as err:
            raise EvalError(span, str(err)) from None
        if id == self.source.id or id in self.route:
            raise EvalError(span, "cyclic include")
        module = evaluate(self.world, self.world.source(id), self.route + (self.source.id,))
        self.diagnostics.extend(module.diagnostics)
        return module.content


def _add(lhs: Value, rhs: Value, span: int) -> Value:
    if _numeric(lhs) and _numeric(rhs):
        return lhs + rhs  # type: ignore[operator]
    for kind in (str, Length, Content, tuple):
        if isinstance(lhs, kind) and isinstance(rhs, kind):
            return lhs + rhs  # type: ignore[operator]
    raise EvalError(span, f"cannot add {type_name(lhs)} and {type_name(rhs)}")


def _sub(lhs: Value, rhs: Value, span: int) -> Value:
    if _numeric(lhs) and _numeric(rhs):
        return lhs - rhs  # type: ignore[operator]
    if isinstance(lhs, Length) and isinstance(rhs, Length):
        return lhs - rhs
    raise EvalError(span, f"cannot subtract {type_name(rhs)} from {type_name(lhs)}")


def _numeric(value: Value) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)


_STRING_ESCAPES = {"n": "\n", "t": "\t", "\\": "\\", '"': '"'}
_UNICODE_ESCAPE = re.compile(r"\\u\{([0-9a-fA-F]+)\}")


def _unescape(body: str) -> str:
    out: list[str] = []
    i = 0
    while i < len(body):
        c = body[i]
        if c != "\\" or i + 1 >= len(body):
            out.append(c)
            i += 1
            continue
        nxt = body[i + 1]
        match = _UNICODE_ESCAPE.match(body, i)
        if match and _scalar(int(match[1], 16)):
            out.append(chr(int(match[1], 16)))
            i = match.end()
            continue
        out.append(_STRING_ESCAPES.get(nxt, "\\" + nxt))
        i += 2
    return "".join(out)


def _scalar(codepoint: int) -> bool:
    return codepoint <= 0x10FFFF and not 0xD800 <= codepoint <= 0xDFFF
