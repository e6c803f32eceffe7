"""
Terminal output — the file logger and the formatter error display.

Errors can be shown in a Textual panel (``buffer``), as a one-line
message on stderr (``echo``) or not at all (``silent``).
"""

from __future__ import annotations

import logging
import os
import sys
from datetime import datetime

logger = logging.getLogger(__name__)


def setup_logger(log_dir: str = ".formatpatch/logs", verbose: bool = False) -> logging.Logger:
    """Creates a file logger. All verbose output goes here."""
    os.makedirs(log_dir, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = os.path.join(log_dir, f"formatpatch_{timestamp}.log")

    root = logging.getLogger("formatpatch")
    root.setLevel(logging.DEBUG)

    # File handler — captures everything
    fh = logging.FileHandler(log_file, encoding="utf-8")
    fh.setLevel(logging.DEBUG)
    fh.setFormatter(logging.Formatter(
        "%(asctime)s [%(levelname)s] %(message)s", datefmt="%H:%M:%S"
    ))
    root.addHandler(fh)

    if verbose:
        sh = logging.StreamHandler(sys.stderr)
        sh.setLevel(logging.DEBUG)
        sh.setFormatter(logging.Formatter("[%(levelname)s] %(message)s"))
        root.addHandler(sh)

    return root


def format_error_report(result) -> str:
    """Render a failed :class:`~formatpatch.reformat.ReformatResult` as text."""
    parts = [f"{result.file_path or '<document>'}: {result.outcome}"]
    if result.error:
        parts.append(result.error)
    if result.diagnostics:
        parts.append("")
        parts.append(result.diagnostics.rstrip("\n"))
    return "\n".join(parts)


def show_errors(result, mode: str = "echo") -> None:
    """Present a failed reformat according to *mode*.

    Successful results and ``silent`` mode produce no output.
    """
    if result.ok or mode == "silent":
        return

    report = format_error_report(result)
    logger.info("[Reformat] %s", report)

    if mode == "buffer":
        run_error_panel(f"Formatter errors: {result.file_path}", report)
        return

    first_line = result.error or result.outcome
    print(f"formatpatch: {result.file_path}: {first_line}", file=sys.stderr)


def _build_error_panel(title: str, report: str):
    """Build the Textual app that shows *report*; closed with q or Esc."""
    from textual.app import App, ComposeResult
    from textual.binding import Binding
    from textual.containers import VerticalScroll
    from textual.widgets import Footer, Static

    class ErrorPanelApp(App):
        """Read-only panel listing formatter diagnostics."""

        CSS = """
        Screen {
            background: $surface;
        }
        #title-bar {
            dock: top;
            height: 3;
            background: #1a1a2e;
            color: #e94560;
            text-align: center;
            padding: 1;
            text-style: bold;
        }
        #report-scroll {
            height: 1fr;
            margin: 1 2;
            border: round #444;
            padding: 1;
        }
        """

        BINDINGS = [
            Binding("q", "close", "Close"),
            Binding("escape", "close", "Close"),
        ]

        def __init__(self, title: str, report: str) -> None:
            super().__init__()
            self._title = title
            self._report = report
            self.closed_by_key = False

        def compose(self) -> ComposeResult:
            yield Static(f" {self._title} ", id="title-bar", markup=False)
            with VerticalScroll(id="report-scroll"):
                yield Static(self._report, id="report", markup=False)
            yield Footer()

        def action_close(self) -> None:
            self.closed_by_key = True
            self.exit()

    return ErrorPanelApp(title, report)


def run_error_panel(title: str, report: str) -> None:
    """Show *report* in a Textual panel and block until it is closed."""
    app = _build_error_panel(title, report)
    app.run()
