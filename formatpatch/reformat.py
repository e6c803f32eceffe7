"""
Reformat-on-save driver.

Runs the configured formatter over a document, diffs the result against
the document as an RCS script and patches the document in place, so
only the lines the formatter touched are edited.
"""

from __future__ import annotations

import logging
import os
import shutil
from dataclasses import dataclass

from .config import Config
from .editing.diff_parser import DiffParser
from .editing.document import Document
from .editing.errors import MalformedScript, OffsetOutOfRange
from .editing.metrics import log_reformat_metric
from .editing.patch_applier import PatchApplier
from .formatter.rcs_diff import external_rcs_diff, rcs_diff
from .formatter.runner import FormatterError, run_formatter

logger = logging.getLogger(__name__)

OUTCOMES = (
    "unchanged",
    "success",
    "formatter_error",
    "malformed_script",
    "offset_out_of_range",
)


@dataclass
class ReformatResult:
    """Structured outcome of one reformat run."""
    outcome: str = "unchanged"
    file_path: str = ""
    hunks_applied: int = 0
    lines_inserted: int = 0
    lines_deleted: int = 0
    diagnostics: str = ""
    error: str = ""

    @property
    def ok(self) -> bool:
        return self.outcome in ("unchanged", "success")

    @property
    def changed(self) -> bool:
        return self.outcome == "success"


class Reformatter:
    """Reformat documents and files through an external formatter."""

    def __init__(self, config: Config | None = None, project_root: str | None = None) -> None:
        self._config = config or Config()
        self._project_root = project_root
        self._parser = DiffParser()
        self._applier = PatchApplier(atomic=self._config.ATOMIC)

    def _diff(self, original: str, formatted: str) -> str:
        if self._config.DIFF_BACKEND == "external":
            return external_rcs_diff(
                original, formatted,
                diff_command=self._config.DIFF_COMMAND,
                timeout=self._config.FORMATTER_TIMEOUT,
            )
        return rcs_diff(original, formatted)

    def reformat_document(self, document: Document, command: str) -> ReformatResult:
        """Reformat *document* in place with *command*.

        Formatter, script and patch failures are reported through the
        result's ``outcome``; any other exception propagates.
        """
        result = ReformatResult()
        original = document.text

        try:
            formatted_output = run_formatter(
                command,
                original,
                timeout=self._config.FORMATTER_TIMEOUT,
                split_output=self._config.SPLIT_OUTPUT,
                success_codes=self._config.FORMATTER_SUCCESS_CODES,
                cwd=self._project_root,
            )
            result.diagnostics = formatted_output.diagnostics
            formatted = formatted_output.output
            if formatted == original:
                return result
            script = self._diff(original, formatted)
        except FormatterError as exc:
            result.outcome = "formatter_error"
            result.error = str(exc)
            result.diagnostics = exc.diagnostics
            logger.warning("[Reformat] %s", exc)
            return result

        try:
            hunks = self._parser.parse(script)
            applied = self._applier.apply(document, hunks)
        except MalformedScript as exc:
            result.outcome = "malformed_script"
            result.error = str(exc)
            logger.error("[Reformat] Malformed diff script: %s", exc)
            return result
        except OffsetOutOfRange as exc:
            result.outcome = "offset_out_of_range"
            result.error = str(exc)
            logger.error("[Reformat] Patch does not fit document: %s", exc)
            return result

        document.trailing_newline = formatted.endswith("\n")
        result.outcome = "success"
        result.hunks_applied = applied.hunks_applied
        result.lines_inserted = applied.lines_inserted
        result.lines_deleted = applied.lines_deleted
        return result

    def reformat_file(self, file_path: str, write: bool = True) -> ReformatResult:
        """Reformat the file at *file_path*, writing it back when changed."""
        command = self._config.formatter_for(file_path)
        if not command:
            result = ReformatResult(
                outcome="formatter_error",
                file_path=file_path,
                error=f"No formatter configured for {file_path}",
            )
            self._record(result)
            return result

        with open(file_path, "r", encoding="utf-8", newline="") as f:
            document = Document.from_text(f.read())

        result = self.reformat_document(document, command)
        result.file_path = file_path

        if result.changed and write:
            safe_write(file_path, document.text)
            logger.info(
                "[Reformat] %s: %d hunk(s), +%d -%d lines",
                file_path, result.hunks_applied,
                result.lines_inserted, result.lines_deleted,
            )
        elif result.ok:
            logger.debug("[Reformat] %s: %s", file_path, result.outcome)

        self._record(result)
        return result

    def _record(self, result: ReformatResult) -> None:
        if not self._config.METRICS:
            return
        log_reformat_metric(
            {
                "file": result.file_path,
                "outcome": result.outcome,
                "hunks": result.hunks_applied,
                "lines_inserted": result.lines_inserted,
                "lines_deleted": result.lines_deleted,
            },
            project_root=self._project_root,
        )


def safe_write(file_path: str, content: str) -> None:
    """Write content to file atomically via temp file + rename."""
    abs_path = os.path.abspath(file_path)
    tmp_path = abs_path + ".formatpatch_tmp"

    try:
        with open(tmp_path, "w", encoding="utf-8", newline="") as f:
            f.write(content)
        shutil.copymode(abs_path, tmp_path)
        os.replace(tmp_path, abs_path)
    except Exception:
        # Clean up temp file on failure
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise
