"""Node kinds of the markup syntax tree."""

from __future__ import annotations

from enum import StrEnum


class SyntaxKind(StrEnum):
    # Markup
    MARKUP = "markup"
    TEXT = "text"
    SPACE = "space"
    PARBREAK = "parbreak"
    LINEBREAK = "linebreak"
    ESCAPE = "escape"
    STRONG = "strong"
    EMPH = "emph"
    STAR = "star"
    UNDERSCORE = "underscore"
    RAW = "raw"
    MATH = "math"
    LINE_COMMENT = "line-comment"
    BLOCK_COMMENT = "block-comment"

    # Code tokens
    HASH = "hash"
    IDENT = "ident"
    INT = "int"
    FLOAT = "float"
    NUMERIC = "numeric"
    STR = "str"
    BOOL = "bool"
    NONE = "none"
    SET = "set"
    LET = "let"
    LEFT_PAREN = "left-paren"
    RIGHT_PAREN = "right-paren"
    LEFT_BRACKET = "left-bracket"
    RIGHT_BRACKET = "right-bracket"
    COMMA = "comma"
    COLON = "colon"
    EQ = "eq"
    EQ_EQ = "eq-eq"
    EXCL_EQ = "excl-eq"
    PLUS = "plus"
    MINUS = "minus"

    # Code nodes
    CONTENT_BLOCK = "content-block"
    ARGS = "args"
    NAMED = "named"
    FUNC_CALL = "func-call"
    EMBEDDED = "embedded"
    SET_RULE = "set-rule"
    LET_BINDING = "let-binding"
    BINARY = "binary"

    ERROR = "error"

    @property
    def is_trivia(self) -> bool:
        return self in (
            SyntaxKind.SPACE,
            SyntaxKind.PARBREAK,
            SyntaxKind.LINE_COMMENT,
            SyntaxKind.BLOCK_COMMENT,
        )
