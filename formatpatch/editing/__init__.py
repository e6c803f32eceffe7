"""Incremental patch engine — RCS diff scripts applied line range by line range."""

from .errors import PatchError, MalformedScript, OffsetOutOfRange
from .diff_parser import DiffParser, DiffHunk, HunkKind, parse
from .patch_applier import PatchApplier, ApplyResult, apply
from .document import Document, split_lines
from .metrics import log_reformat_metric, read_reformat_stats

__all__ = [
    "PatchError", "MalformedScript", "OffsetOutOfRange",
    "DiffParser", "DiffHunk", "HunkKind", "parse",
    "PatchApplier", "ApplyResult", "apply",
    "Document", "split_lines",
    "log_reformat_metric", "read_reformat_stats",
]
