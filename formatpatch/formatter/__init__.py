"""External collaborators: formatter invocation, stream splitting, RCS diffs."""

from .runner import FormatterError, FormatterOutput, decode_output, run_formatter
from .splitter import split_combined_output
from .rcs_diff import rcs_diff, external_rcs_diff

__all__ = [
    "FormatterError", "FormatterOutput", "decode_output", "run_formatter",
    "split_combined_output",
    "rcs_diff", "external_rcs_diff",
]
