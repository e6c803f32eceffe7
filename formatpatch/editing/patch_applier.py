"""
Patch applier — replays RCS hunks against a live line buffer, editing
only the affected line ranges.

Hunks are anchored to the original document, so each one is located in
the current buffer through a running offset: the net number of lines
removed by the hunks already applied.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, MutableSequence
from dataclasses import dataclass

from .diff_parser import DiffHunk
from .errors import OffsetOutOfRange, PatchError

logger = logging.getLogger(__name__)


@dataclass
class ApplyResult:
    """Summary of one patch run."""
    hunks_applied: int = 0
    lines_inserted: int = 0
    lines_deleted: int = 0

    @property
    def lines_changed(self) -> int:
        return self.lines_inserted + self.lines_deleted


def apply(
    document: MutableSequence[str],
    hunks: Iterable[DiffHunk],
    result: ApplyResult | None = None,
) -> None:
    """Apply *hunks* to *document* in place.

    The hunks must have been computed against the current content of
    *document*; this is not checked. Hunks applied before an error are
    not rolled back.

    Parameters
    ----------
    document:
        Mutable sequence of lines without terminators (``list[str]`` or
        :class:`~formatpatch.editing.document.Document`).
    hunks:
        Hunks in script order.
    result:
        Optional accumulator updated as each hunk lands.

    Raises
    ------
    OffsetOutOfRange
        If a hunk resolves outside the current document.
    """
    offset = 0
    for hunk in hunks:
        position = hunk.at_line - offset
        length = len(document)

        if hunk.is_deletion:
            if position < 1 or position + hunk.count - 1 > length:
                raise OffsetOutOfRange(hunk, position, length)
            del document[position - 1:position - 1 + hunk.count]
            offset += hunk.count
        else:
            if position < 0 or position > length:
                raise OffsetOutOfRange(hunk, position, length)
            document[position:position] = list(hunk.lines)
            offset -= hunk.count

        if result is not None:
            result.hunks_applied += 1
            if hunk.is_insertion:
                result.lines_inserted += hunk.count
            else:
                result.lines_deleted += hunk.count


class PatchApplier:
    """Apply parsed RCS hunks to a document.

    With ``atomic=True`` the document is snapshotted first and restored
    if any hunk fails; the error is re-raised either way.
    """

    def __init__(self, atomic: bool = False) -> None:
        self._atomic = atomic

    def apply(
        self,
        document: MutableSequence[str],
        hunks: Iterable[DiffHunk],
    ) -> ApplyResult:
        result = ApplyResult()
        snapshot = list(document) if self._atomic else None

        try:
            apply(document, hunks, result)
        except PatchError as exc:
            logger.warning(
                "[RCS] Patch failed after %d hunk(s): %s",
                result.hunks_applied, exc,
            )
            if snapshot is not None:
                document[:] = snapshot
                logger.debug("[RCS] Document restored from snapshot")
            raise

        logger.debug(
            "[RCS] Applied %d hunk(s): +%d -%d lines",
            result.hunks_applied, result.lines_inserted, result.lines_deleted,
        )
        return result
