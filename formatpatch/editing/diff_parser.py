"""
Diff parser — parses the RCS-style normal diff script (``diff -n``)
into an ordered list of insert/delete hunks.

Grammar::

    d<from> <count>            delete <count> lines starting at <from>
    a<from> <count>            append the next <count> raw lines after <from>
    <raw line> ...

Line numbers refer to the original document.
"""

from __future__ import annotations

import enum
import logging
import re
from dataclasses import dataclass, field

from .errors import MalformedScript

logger = logging.getLogger(__name__)

# Patterns
_HEADER_PATTERN = re.compile(r"^([ad])(\d+) (\d+)$")


class HunkKind(enum.Enum):
    INSERT = "insert"
    DELETE = "delete"


@dataclass
class DiffHunk:
    """A single RCS hunk, anchored to an original-document line number."""
    kind: HunkKind
    at_line: int               # 1-indexed; 0 is allowed for inserts
    count: int
    lines: list[str] = field(default_factory=list)

    @property
    def is_insertion(self) -> bool:
        return self.kind is HunkKind.INSERT

    @property
    def is_deletion(self) -> bool:
        return self.kind is HunkKind.DELETE

    @property
    def delta(self) -> int:
        """Net change in document length once this hunk is applied."""
        return self.count if self.is_insertion else -self.count


def parse(script: str) -> list[DiffHunk]:
    """Parse an RCS diff script into hunks, in script order.

    Parameters
    ----------
    script:
        The raw script text. A single trailing newline is allowed.

    Returns
    -------
    list[DiffHunk]
        The hunks in the order they appear, which is ascending position
        in the original document.

    Raises
    ------
    MalformedScript
        On a line that is not a valid header where one is expected, a
        count below 1, a delete at line 0 or an insert body cut short by
        the end of the script.
    """
    if not script:
        return []

    raw_lines = script.split("\n")
    if raw_lines[-1] == "":
        raw_lines.pop()

    hunks: list[DiffHunk] = []
    i = 0
    while i < len(raw_lines):
        header = raw_lines[i]
        match = _HEADER_PATTERN.match(header)
        if match is None:
            raise MalformedScript("Invalid hunk header", header, i + 1)

        action, at_line, count = match.group(1), int(match.group(2)), int(match.group(3))
        if count < 1:
            raise MalformedScript("Hunk count must be at least 1", header, i + 1)

        if action == "d":
            if at_line < 1:
                raise MalformedScript("Delete must start at line 1 or later", header, i + 1)
            hunks.append(DiffHunk(kind=HunkKind.DELETE, at_line=at_line, count=count))
            i += 1
            continue

        body_start = i + 1
        body_end = body_start + count
        if body_end > len(raw_lines):
            raise MalformedScript(
                f"Insert body truncated: expected {count} line(s), "
                f"got {len(raw_lines) - body_start}",
                header, i + 1,
            )
        hunks.append(DiffHunk(
            kind=HunkKind.INSERT,
            at_line=at_line,
            count=count,
            lines=raw_lines[body_start:body_end],
        ))
        i = body_end

    return hunks


class DiffParser:
    """Parse RCS diff scripts produced by ``diff -n`` or :mod:`rcs_diff`."""

    def parse(self, script: str) -> list[DiffHunk]:
        """Parse *script*; see :func:`parse`."""
        hunks = parse(script)
        logger.debug(
            "[RCS] Parsed %d hunk(s): %d insert, %d delete",
            len(hunks),
            sum(1 for h in hunks if h.is_insertion),
            sum(1 for h in hunks if h.is_deletion),
        )
        return hunks
