"""
Patch errors — the two ways an RCS patch run can fail.

Neither is retryable and neither is rolled back: hunks applied before the
failure stay applied.
"""

from __future__ import annotations


class PatchError(Exception):
    """Base class for diff-script and patch-application failures."""


class MalformedScript(PatchError):
    """The diff script does not follow the ``a``/``d`` RCS grammar."""

    def __init__(self, message: str, line: str = "", line_number: int = 0) -> None:
        self.line = line
        self.line_number = line_number
        if line_number:
            message = f"{message} (script line {line_number}: {line!r})"
        super().__init__(message)


class OffsetOutOfRange(PatchError):
    """A hunk resolves to a position outside the current document.

    Raised when the hunk list was not computed against the document's
    current content (stale document or mismatched diff).
    """

    def __init__(self, hunk, position: int, document_length: int) -> None:
        self.hunk = hunk
        self.position = position
        self.document_length = document_length
        super().__init__(
            f"{hunk.kind.value} of {hunk.count} line(s) at original line "
            f"{hunk.at_line} resolves to line {position}, but the document "
            f"has {document_length} line(s)"
        )
