"""
Document — a line buffer that converts to and from text.

Lines are stored without terminators. Whether the text ended with a
newline is tracked separately, since RCS scripts only describe lines.
"""

from __future__ import annotations

from collections.abc import MutableSequence


def split_lines(text: str) -> list[str]:
    """Split *text* on ``\\n`` only, dropping the final empty segment."""
    if not text:
        return []
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return lines


class Document(MutableSequence):
    """Mutable sequence of text lines with a trailing-newline flag."""

    def __init__(self, lines=None, trailing_newline: bool = True) -> None:
        self._lines: list[str] = list(lines or [])
        self.trailing_newline = trailing_newline

    @classmethod
    def from_text(cls, text: str) -> "Document":
        return cls(split_lines(text), trailing_newline=text.endswith("\n"))

    @property
    def text(self) -> str:
        body = "\n".join(self._lines)
        if self._lines and self.trailing_newline:
            body += "\n"
        return body

    @property
    def lines(self) -> list[str]:
        """A copy of the current lines."""
        return list(self._lines)

    # MutableSequence protocol; slices pass straight through to the list.

    def __getitem__(self, index):
        return self._lines[index]

    def __setitem__(self, index, value) -> None:
        self._lines[index] = value

    def __delitem__(self, index) -> None:
        del self._lines[index]

    def __len__(self) -> int:
        return len(self._lines)

    def insert(self, index: int, value: str) -> None:
        self._lines.insert(index, value)

    def __eq__(self, other) -> bool:
        if isinstance(other, Document):
            return self._lines == other._lines
        if isinstance(other, list):
            return self._lines == other
        return NotImplemented

    def __repr__(self) -> str:
        return f"Document({self._lines!r}, trailing_newline={self.trailing_newline})"
