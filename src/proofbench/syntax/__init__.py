"""Markup syntax: tree nodes, parser, incremental reparser and sources."""

from proofbench.syntax.kind import SyntaxKind
from proofbench.syntax.node import DETACHED, SyntaxNode
from proofbench.syntax.parser import parse
from proofbench.syntax.source import DETACHED_SOURCE, ByteRange, Source, SourceId

__all__ = [
    "DETACHED",
    "DETACHED_SOURCE",
    "ByteRange",
    "Source",
    "SourceId",
    "SyntaxKind",
    "SyntaxNode",
    "parse",
]
