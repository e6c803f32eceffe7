"""
Formatter runner — feeds document text to an external formatter on stdin
and collects the formatted text and any diagnostics.
"""

from __future__ import annotations

import logging
import shlex
import subprocess
from dataclasses import dataclass
from typing import Sequence

from .splitter import split_combined_output

logger = logging.getLogger(__name__)


class FormatterError(Exception):
    """The formatter (or diff tool) could not produce output."""

    def __init__(self, message: str, diagnostics: str = "") -> None:
        super().__init__(message)
        self.diagnostics = diagnostics


@dataclass
class FormatterOutput:
    """What a formatter run produced."""
    output: str
    diagnostics: str = ""
    returncode: int = 0


def decode_output(raw: bytes | None) -> str:
    """Decode subprocess output as UTF-8, keeping line endings untouched."""
    if not raw:
        return ""
    return raw.decode("utf-8", errors="replace")


def _to_argv(command: str | Sequence[str]) -> list[str]:
    if isinstance(command, str):
        return shlex.split(command)
    return list(command)


def run_formatter(
    command: str | Sequence[str],
    text: str,
    *,
    timeout: float | None = 30.0,
    split_output: bool = False,
    success_codes: Sequence[int] = (0,),
    cwd: str | None = None,
) -> FormatterOutput:
    """Run *command* with *text* on stdin.

    Parameters
    ----------
    command:
        Shell-style command string or argv list.
    text:
        Document content, sent as UTF-8.
    timeout:
        Seconds before the process is killed; ``None`` waits forever.
    split_output:
        Stdout carries report and content separated by a ``=====`` line;
        a stdout without that line is an error, never content.
    success_codes:
        Exit codes that count as a successful run.

    Raises
    ------
    FormatterError
        Missing executable, timeout, an exit code outside
        *success_codes* or, with *split_output*, a missing delimiter.
    """
    argv = _to_argv(command)
    if not argv:
        raise FormatterError("No formatter command configured")

    logger.debug("[Formatter] Running: %s", shlex.join(argv))
    try:
        proc = subprocess.run(
            argv,
            input=text.encode("utf-8"),
            capture_output=True,
            timeout=timeout,
            cwd=cwd,
        )
    except FileNotFoundError as exc:
        raise FormatterError(f"Formatter not found: {argv[0]}") from exc
    except subprocess.TimeoutExpired as exc:
        raise FormatterError(
            f"Formatter timed out after {timeout}s: {argv[0]}"
        ) from exc

    # Decoded by hand so \r\n line endings reach the diff unchanged.
    output = decode_output(proc.stdout)
    stderr = decode_output(proc.stderr)
    report, content = "", output
    if split_output:
        report, content = split_combined_output(output)
        if content is None:
            report = output
    diagnostics = report + stderr

    logger.debug(
        "[Formatter] Exit code %d, output=%d chars, diagnostics=%d chars",
        proc.returncode, len(content or ""), len(diagnostics),
    )

    if proc.returncode not in success_codes:
        raise FormatterError(
            f"Formatter exited with status {proc.returncode}: {argv[0]}",
            diagnostics=diagnostics,
        )
    if content is None:
        raise FormatterError(
            f"Formatter output has no report/content delimiter line: {argv[0]}",
            diagnostics=diagnostics,
        )

    return FormatterOutput(
        output=content,
        diagnostics=diagnostics,
        returncode=proc.returncode,
    )
