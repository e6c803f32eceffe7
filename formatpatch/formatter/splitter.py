"""
Combined-stream splitter.

Some formatters (``rubocop --auto-correct --stdin``) print their offense
report and the corrected source on stdout, separated by a line made only
of ``=`` characters. This splits such a stream back into its two parts.
"""

from __future__ import annotations

import re

_DELIMITER = re.compile(r"^=+\r?$\n?", re.MULTILINE)


def split_combined_output(stream: str) -> tuple[str, str | None]:
    """Split *stream* on its first delimiter line.

    Returns
    -------
    tuple[str, str | None]
        ``(report, content)``. The delimiter line is dropped. Without a
        delimiter there is no content and the result is ``(stream, None)``.
    """
    match = _DELIMITER.search(stream)
    if match is None:
        return stream, None
    return stream[:match.start()], stream[match.end():]
