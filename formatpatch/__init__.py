"""
formatpatch — reformat-on-save without replacing the document.

The formatter's output is diffed against the document as an RCS script
(``diff -n``) and only the changed line ranges are edited, so anything a
caller attaches to the document (cursor, undo history, folds) survives.

Public API for library usage::

    from formatpatch import parse, apply

    lines = ["a", "b", "c"]
    apply(lines, parse("a2 1\\nNEW\\n"))
    # lines == ["a", "b", "NEW", "c"]
"""

from .editing import (
    PatchError, MalformedScript, OffsetOutOfRange,
    DiffParser, DiffHunk, HunkKind, parse,
    PatchApplier, ApplyResult, apply,
    Document,
)
from .reformat import Reformatter, ReformatResult

__all__ = [
    "PatchError", "MalformedScript", "OffsetOutOfRange",
    "DiffParser", "DiffHunk", "HunkKind", "parse",
    "PatchApplier", "ApplyResult", "apply",
    "Document",
    "Reformatter", "ReformatResult",
]
