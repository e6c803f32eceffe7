"""
RCS diff generation — the ``diff -n`` script between two texts.

:func:`rcs_diff` builds it in-process from :mod:`difflib` opcodes;
:func:`external_rcs_diff` shells out to a real ``diff`` binary.
"""

from __future__ import annotations

import difflib
import logging
import os
import subprocess
import tempfile

from ..editing.document import split_lines
from .runner import FormatterError, decode_output

logger = logging.getLogger(__name__)


def _append(out: list[str], after: int, lines: list[str]) -> None:
    out.append(f"a{after} {len(lines)}")
    out.extend(lines)


def rcs_diff(original: str, formatted: str) -> str:
    """Return the RCS script turning *original* into *formatted*.

    A ``replace`` is written as a delete followed by an append anchored at
    the last replaced line, the same ordering ``diff -n`` uses. Trailing
    newline differences are not represented.
    """
    old_lines = split_lines(original)
    new_lines = split_lines(formatted)

    out: list[str] = []
    matcher = difflib.SequenceMatcher(None, old_lines, new_lines, autojunk=False)
    for tag, i1, i2, j1, j2 in matcher.get_opcodes():
        if tag == "equal":
            continue
        if tag in ("delete", "replace"):
            out.append(f"d{i1 + 1} {i2 - i1}")
        if tag in ("insert", "replace"):
            _append(out, i2, new_lines[j1:j2])

    return "".join(line + "\n" for line in out)


def external_rcs_diff(
    original: str,
    formatted: str,
    diff_command: str = "diff",
    timeout: float | None = 30.0,
) -> str:
    """Return the RCS script produced by ``<diff_command> -n``.

    Both texts are written to temporary files with a final newline so the
    script never carries a missing-newline marker.

    Raises
    ------
    FormatterError
        If the diff tool is missing, times out or exits with status > 1.
    """
    with tempfile.TemporaryDirectory(prefix="formatpatch_") as tmp_dir:
        paths = []
        for name, text in (("original", original), ("formatted", formatted)):
            path = os.path.join(tmp_dir, name)
            lines = split_lines(text)
            with open(path, "w", encoding="utf-8", newline="\n") as f:
                f.write("".join(line + "\n" for line in lines))
            paths.append(path)

        argv = [diff_command, "-n", *paths]
        try:
            proc = subprocess.run(
                argv,
                capture_output=True,
                timeout=timeout,
            )
        except FileNotFoundError as exc:
            raise FormatterError(f"Diff tool not found: {diff_command}") from exc
        except subprocess.TimeoutExpired as exc:
            raise FormatterError(f"Diff tool timed out after {timeout}s") from exc

    # diff: 0 = same, 1 = different, 2 = trouble
    if proc.returncode not in (0, 1):
        raise FormatterError(
            f"{diff_command} exited with status {proc.returncode}",
            diagnostics=decode_output(proc.stderr),
        )
    script = decode_output(proc.stdout)
    logger.debug("[RCS] %s -n produced %d chars", diff_command, len(script))
    return script
