"""Recursive-descent parser for the markup language.

The parser is total: every character of the input ends up in exactly one
leaf, malformed input produces ``error`` leaves instead of exceptions.
Top-level markup nodes are parsed without any context from preceding text,
which is what allows the incremental reparser to restart at a node boundary.
"""

from __future__ import annotations

from proofbench.syntax.kind import SyntaxKind
from proofbench.syntax.node import FIRST, UPPER, SyntaxNode, numberize
from proofbench.syntax.scanner import Scanner

_MARKUP_SPECIAL = frozenset("\\`$*_#]")
_DIGITS = frozenset("0123456789")
_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")
_UNITS = ("pt", "mm", "cm", "in")
_TOP_LEVEL: frozenset[str] = frozenset()


def _ident_start(c: str) -> bool:
    return bool(c) and (c.isalpha() or c == "_")


def _ident_continue(c: str) -> bool:
    return bool(c) and (c.isalnum() or c == "_")


def parse(text: str) -> SyntaxNode:
    """Parse ``text`` into a numbered markup tree."""
    parser = Parser(text)
    root = SyntaxNode.inner(SyntaxKind.MARKUP, parser.markup(_TOP_LEVEL))
    numberize([root], FIRST, UPPER)
    return root


class Parser:
    """Produces syntax nodes from a :class:`Scanner` position onwards."""

    def __init__(self, text: str, cursor: int = 0) -> None:
        self.s = Scanner(text, cursor)

    @property
    def cursor(self) -> int:
        return self.s.cursor

    @property
    def done(self) -> bool:
        return self.s.done

    # -- markup --------------------------------------------------------------

    def markup(self, stops: frozenset[str]) -> list[SyntaxNode]:
        nodes: list[SyntaxNode] = []
        while not self.s.done and self.s.peek() not in stops:
            nodes.append(self.markup_node(stops))
        return nodes

    def markup_node(self, stops: frozenset[str]) -> SyntaxNode:
        """Parse exactly one markup node; always consumes input."""
        s = self.s
        c = s.peek()
        if c.isspace():
            ws = s.eat_while(str.isspace)
            kind = SyntaxKind.PARBREAK if ws.count("\n") >= 2 else SyntaxKind.SPACE
            return SyntaxNode.leaf(kind, ws)
        if s.at("//"):
            return self.line_comment()
        if s.at("/*"):
            return self.block_comment()
        if c == "\\":
            return self.escape()
        if c == "`":
            return self.raw()
        if c == "$":
            return self.math()
        if c == "*":
            return self.delimited(SyntaxKind.STRONG, SyntaxKind.STAR, "*", stops)
        if c == "_":
            return self.delimited(SyntaxKind.EMPH, SyntaxKind.UNDERSCORE, "_", stops)
        if c == "#":
            return self.embedded()
        if c == "]":
            s.eat()
            return SyntaxNode.error("]", "unexpected closing bracket")
        return self.text_run()

    def text_run(self) -> SyntaxNode:
        s = self.s
        start = s.cursor
        s.eat()
        while not s.done:
            c = s.peek()
            if c.isspace() or c in _MARKUP_SPECIAL:
                break
            if c == "/" and s.peek(1) in ("/", "*"):
                break
            s.eat()
        return SyntaxNode.leaf(SyntaxKind.TEXT, s.since(start))

    def line_comment(self) -> SyntaxNode:
        start = self.s.cursor
        self.s.eat_if("//")
        self.s.eat_until(lambda c: c == "\n")
        return SyntaxNode.leaf(SyntaxKind.LINE_COMMENT, self.s.since(start))

    def block_comment(self) -> SyntaxNode:
        s = self.s
        start = s.cursor
        s.eat_if("/*")
        depth = 1
        while depth > 0:
            if s.done:
                return SyntaxNode.error(s.since(start), "unclosed comment")
            if s.eat_if("/*"):
                depth += 1
            elif s.eat_if("*/"):
                depth -= 1
            else:
                s.eat()
        return SyntaxNode.leaf(SyntaxKind.BLOCK_COMMENT, s.since(start))

    def escape(self) -> SyntaxNode:
        s = self.s
        start = s.cursor
        s.eat()
        c = s.peek()
        if not c or c.isspace():
            return SyntaxNode.leaf(SyntaxKind.LINEBREAK, "\\")
        if s.eat_if("u{"):
            digits = s.eat_while(lambda ch: ch in _HEX_DIGITS)
            if digits and s.eat_if("}"):
                return SyntaxNode.leaf(SyntaxKind.ESCAPE, s.since(start))
            return SyntaxNode.error(s.since(start), "invalid unicode escape sequence")
        s.eat()
        return SyntaxNode.leaf(SyntaxKind.ESCAPE, s.since(start))

    def raw(self) -> SyntaxNode:
        s = self.s
        start = s.cursor
        ticks = len(s.eat_while(lambda c: c == "`"))
        if ticks == 2:
            return SyntaxNode.leaf(SyntaxKind.RAW, "``")
        close = s.text.find("`" * ticks, s.cursor)
        if close == -1:
            s.jump(len(s.text))
            return SyntaxNode.error(s.since(start), "unclosed raw text")
        s.jump(close + ticks)
        return SyntaxNode.leaf(SyntaxKind.RAW, s.since(start))

    def math(self) -> SyntaxNode:
        s = self.s
        start = s.cursor
        s.eat()
        close = s.text.find("$", s.cursor)
        if close == -1:
            s.jump(len(s.text))
            return SyntaxNode.error(s.since(start), "unclosed equation")
        s.jump(close + 1)
        return SyntaxNode.leaf(SyntaxKind.MATH, s.since(start))

    def delimited(
        self,
        kind: SyntaxKind,
        marker: SyntaxKind,
        delim: str,
        stops: frozenset[str],
    ) -> SyntaxNode:
        self.s.eat()
        children = [SyntaxNode.leaf(marker, delim)]
        children.extend(self.markup(stops | {delim}))
        if self.s.eat_if(delim):
            children.append(SyntaxNode.leaf(marker, delim))
        else:
            children.append(SyntaxNode.error("", f"unclosed {kind}"))
        return SyntaxNode.inner(kind, children)

    # -- embedded code -------------------------------------------------------

    def embedded(self) -> SyntaxNode:
        s = self.s
        s.eat()
        hash_ = SyntaxNode.leaf(SyntaxKind.HASH, "#")
        if not _ident_start(s.peek()):
            return SyntaxNode.error("#", "expected expression")
        name = s.eat_while(_ident_continue)
        if name == "set":
            node = self.set_rule()
        elif name == "let":
            node = self.let_binding()
        else:
            node = self.postfix(self.word(name))
        if node.children:
            node.children.insert(0, hash_)
            return node
        return SyntaxNode.inner(SyntaxKind.EMBEDDED, [hash_, node])

    def set_rule(self) -> SyntaxNode:
        children = [SyntaxNode.leaf(SyntaxKind.SET, "set")]
        self.spaces(children)
        if not _ident_start(self.s.peek()):
            children.append(SyntaxNode.error("", "expected identifier"))
            return SyntaxNode.inner(SyntaxKind.SET_RULE, children)
        children.append(SyntaxNode.leaf(SyntaxKind.IDENT, self.s.eat_while(_ident_continue)))
        if self.s.peek() == "(":
            children.append(self.args())
        else:
            children.append(SyntaxNode.error("", "expected arguments"))
        return SyntaxNode.inner(SyntaxKind.SET_RULE, children)

    def let_binding(self) -> SyntaxNode:
        s = self.s
        children = [SyntaxNode.leaf(SyntaxKind.LET, "let")]
        self.spaces(children)
        if not _ident_start(s.peek()):
            children.append(SyntaxNode.error("", "expected identifier"))
            return SyntaxNode.inner(SyntaxKind.LET_BINDING, children)
        children.append(SyntaxNode.leaf(SyntaxKind.IDENT, s.eat_while(_ident_continue)))
        save = s.cursor
        spaces: list[SyntaxNode] = []
        self.spaces(spaces)
        if not (s.peek() == "=" and s.peek(1) != "="):
            s.jump(save)
            return SyntaxNode.inner(SyntaxKind.LET_BINDING, children)
        s.eat()
        children.extend(spaces)
        children.append(SyntaxNode.leaf(SyntaxKind.EQ, "="))
        self.spaces(children)
        children.append(self.code_atom())
        return SyntaxNode.inner(SyntaxKind.LET_BINDING, children)

    def spaces(self, children: list[SyntaxNode]) -> None:
        ws = self.s.eat_while(lambda c: c in " \t")
        if ws:
            children.append(SyntaxNode.leaf(SyntaxKind.SPACE, ws))

    def trivia(self, children: list[SyntaxNode]) -> None:
        s = self.s
        while True:
            if s.peek().isspace():
                children.append(SyntaxNode.leaf(SyntaxKind.SPACE, s.eat_while(str.isspace)))
            elif s.at("//"):
                children.append(self.line_comment())
            elif s.at("/*"):
                children.append(self.block_comment())
            else:
                return

    def word(self, name: str) -> SyntaxNode:
        if name in ("true", "false"):
            return SyntaxNode.leaf(SyntaxKind.BOOL, name)
        if name == "none":
            return SyntaxNode.leaf(SyntaxKind.NONE, name)
        return SyntaxNode.leaf(SyntaxKind.IDENT, name)

    def postfix(self, node: SyntaxNode) -> SyntaxNode:
        while True:
            c = self.s.peek()
            if c == "(":
                node = SyntaxNode.inner(SyntaxKind.FUNC_CALL, [node, self.args()])
            elif c == "[":
                if node.kind == SyntaxKind.FUNC_CALL:
                    node.children.append(self.content_block())
                else:
                    node = SyntaxNode.inner(SyntaxKind.FUNC_CALL, [node, self.content_block()])
            else:
                return node

    def args(self) -> SyntaxNode:
        s = self.s
        s.eat()
        children = [SyntaxNode.leaf(SyntaxKind.LEFT_PAREN, "(")]
        while True:
            self.trivia(children)
            c = s.peek()
            if not c or c == "]":
                children.append(SyntaxNode.error("", "unclosed delimiter"))
                break
            if c == ")":
                s.eat()
                children.append(SyntaxNode.leaf(SyntaxKind.RIGHT_PAREN, ")"))
                break
            if c == ",":
                s.eat()
                children.append(SyntaxNode.leaf(SyntaxKind.COMMA, ","))
                continue
            children.append(self.arg())
        return SyntaxNode.inner(SyntaxKind.ARGS, children)

    def arg(self) -> SyntaxNode:
        s = self.s
        if _ident_start(s.peek()):
            save = s.cursor
            name = s.eat_while(_ident_continue)
            if s.eat_if(":"):
                children = [
                    SyntaxNode.leaf(SyntaxKind.IDENT, name),
                    SyntaxNode.leaf(SyntaxKind.COLON, ":"),
                ]
                self.trivia(children)
                children.append(self.code_expr())
                return SyntaxNode.inner(SyntaxKind.NAMED, children)
            s.jump(save)
        return self.code_expr()

    def code_expr(self) -> SyntaxNode:
        s = self.s
        lhs = self.code_atom()
        while True:
            save = s.cursor
            children = [lhs]
            self.trivia(children)
            op = self.binary_op()
            if op is None:
                s.jump(save)
                return lhs
            children.append(op)
            self.trivia(children)
            children.append(self.code_atom())
            lhs = SyntaxNode.inner(SyntaxKind.BINARY, children)

    def binary_op(self) -> SyntaxNode | None:
        s = self.s
        if s.eat_if("=="):
            return SyntaxNode.leaf(SyntaxKind.EQ_EQ, "==")
        if s.eat_if("!="):
            return SyntaxNode.leaf(SyntaxKind.EXCL_EQ, "!=")
        if s.eat_if("+"):
            return SyntaxNode.leaf(SyntaxKind.PLUS, "+")
        if s.at("-") and s.peek(1) not in _DIGITS:
            s.eat()
            return SyntaxNode.leaf(SyntaxKind.MINUS, "-")
        return None

    def code_atom(self) -> SyntaxNode:
        s = self.s
        c = s.peek()
        if _ident_start(c):
            return self.postfix(self.word(s.eat_while(_ident_continue)))
        if c in _DIGITS or (c == "-" and s.peek(1) in _DIGITS):
            return self.number()
        if c == '"':
            return self.string()
        if c == "[":
            return self.content_block()
        if c == "(":
            return self.postfix(self.args())
        if not c or c.isspace() or c in "),]":
            return SyntaxNode.error("", "expected expression")
        s.eat()
        return SyntaxNode.error(c, "unexpected character")

    def number(self) -> SyntaxNode:
        s = self.s
        start = s.cursor
        s.eat_if("-")
        s.eat_while(lambda c: c in _DIGITS)
        kind = SyntaxKind.INT
        if s.peek() == "." and s.peek(1) in _DIGITS:
            s.eat()
            s.eat_while(lambda c: c in _DIGITS)
            kind = SyntaxKind.FLOAT
        for unit in _UNITS:
            if s.at(unit) and not _ident_continue(s.peek(len(unit))):
                s.eat_if(unit)
                kind = SyntaxKind.NUMERIC
                break
        return SyntaxNode.leaf(kind, s.since(start))

    def string(self) -> SyntaxNode:
        s = self.s
        start = s.cursor
        s.eat()
        while True:
            c = s.peek()
            if not c or c == "\n":
                return SyntaxNode.error(s.since(start), "unclosed string")
            s.eat()
            if c == "\\":
                s.eat()
            elif c == '"':
                return SyntaxNode.leaf(SyntaxKind.STR, s.since(start))

    def content_block(self) -> SyntaxNode:
        self.s.eat()
        children = [
            SyntaxNode.leaf(SyntaxKind.LEFT_BRACKET, "["),
            SyntaxNode.inner(SyntaxKind.MARKUP, self.markup(frozenset("]"))),
        ]
        if self.s.eat_if("]"):
            children.append(SyntaxNode.leaf(SyntaxKind.RIGHT_BRACKET, "]"))
        else:
            children.append(SyntaxNode.error("", "unclosed delimiter"))
        return SyntaxNode.inner(SyntaxKind.CONTENT_BLOCK, children)
