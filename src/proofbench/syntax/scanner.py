"""Character cursor over source text."""

from __future__ import annotations

from collections.abc import Callable


class Scanner:
    """A cursor over a string, measured in characters."""

    def __init__(self, text: str, cursor: int = 0) -> None:
        self.text = text
        self.cursor = cursor

    @property
    def done(self) -> bool:
        return self.cursor >= len(self.text)

    def peek(self, offset: int = 0) -> str:
        """The character at ``cursor + offset``, or ``""`` past the end."""
        index = self.cursor + offset
        return self.text[index] if index < len(self.text) else ""

    def at(self, prefix: str) -> bool:
        return self.text.startswith(prefix, self.cursor)

    def eat(self) -> str:
        c = self.peek()
        if c:
            self.cursor += 1
        return c

    def eat_if(self, prefix: str) -> bool:
        if self.at(prefix):
            self.cursor += len(prefix)
            return True
        return False

    def eat_while(self, pred: Callable[[str], bool]) -> str:
        start = self.cursor
        while not self.done and pred(self.text[self.cursor]):
            self.cursor += 1
        return self.text[start : self.cursor]

    def eat_until(self, pred: Callable[[str], bool]) -> str:
        return self.eat_while(lambda c: not pred(c))

    def since(self, start: int) -> str:
        return self.text[start : self.cursor]

    def jump(self, cursor: int) -> None:
        self.cursor = cursor

    def after(self) -> str:
        """The unconsumed rest of the text."""
        return self.text[self.cursor :]
