"""
File watcher for reformat-on-save.

Uses watchdog to monitor a directory tree and reformat matching files
whenever they are created, modified or moved into place.
"""

from __future__ import annotations

import fnmatch
import logging
import os
import threading
import time
from typing import Optional

from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from .cli_display import show_errors
from .reformat import Reformatter

logger = logging.getLogger(__name__)

_SKIP_DIRS = {".git", ".hg", ".svn", ".formatpatch", "__pycache__", "node_modules", ".venv"}


class ReformatHandler(FileSystemEventHandler):
    """
    Watchdog event handler that reformats saved files.

    Parameters
    ----------
    reformatter:
        The :class:`~formatpatch.reformat.Reformatter` to run.
    patterns:
        File-name globs to reformat (``["*.py"]``).
    debounce_seconds:
        Minimum delay between two runs on the same file. Our own write
        back fires a second event; the second run finds nothing to change.
    show_errors_mode:
        How failed runs are presented (``echo`` or ``silent``).
    """

    def __init__(
        self,
        reformatter: Reformatter,
        patterns: list[str],
        debounce_seconds: float = 0.5,
        show_errors_mode: str = "echo",
    ) -> None:
        super().__init__()
        self._reformatter = reformatter
        self._patterns = list(patterns)
        self._debounce = debounce_seconds
        self._show_errors = show_errors_mode
        self._last_event: dict[str, float] = {}
        self._lock = threading.Lock()
        self._running: set[str] = set()

    # ------------------------------------------------------------------
    # Watchdog event dispatch
    # ------------------------------------------------------------------

    def on_modified(self, event) -> None:
        if not event.is_directory:
            self._handle_change(event.src_path)

    def on_created(self, event) -> None:
        if not event.is_directory:
            self._handle_change(event.src_path)

    def on_moved(self, event) -> None:
        if not event.is_directory:
            self._handle_change(event.dest_path)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _should_ignore(self, abs_path: str) -> bool:
        """Return True if this file should not be reformatted."""
        name = os.path.basename(abs_path)
        if name.endswith(".formatpatch_tmp"):
            return True
        if not any(fnmatch.fnmatch(name, p) for p in self._patterns):
            return True

        parts = abs_path.replace("\\", "/").split("/")
        return any(part in _SKIP_DIRS for part in parts)

    def _is_debounced(self, abs_path: str) -> bool:
        """Return True if this file was recently processed (debounce)."""
        now = time.time()
        with self._lock:
            # Entries past the window no longer debounce anything.
            stale = [p for p, t in self._last_event.items() if now - t >= self._debounce]
            for path in stale:
                del self._last_event[path]
            if abs_path in self._last_event:
                return True
            self._last_event[abs_path] = now
        return False

    def _claim(self, abs_path: str) -> bool:
        """Mark *abs_path* as being reformatted; False if a run is in flight."""
        with self._lock:
            if abs_path in self._running:
                return False
            self._running.add(abs_path)
            return True

    def _release(self, abs_path: str) -> None:
        with self._lock:
            self._running.discard(abs_path)

    def _handle_change(self, abs_path: str) -> None:
        """Reformat one saved file; one run per file at a time."""
        if self._should_ignore(abs_path):
            return
        if self._is_debounced(abs_path):
            return
        if not os.path.isfile(abs_path):
            return

        if not self._claim(abs_path):
            logger.debug("[Watcher] Reformat already running for %s", abs_path)
            return
        try:
            result = self._reformatter.reformat_file(abs_path)
        except OSError as exc:
            logger.warning("[Watcher] Could not reformat %s: %s", abs_path, exc)
            return
        finally:
            self._release(abs_path)

        if result.changed:
            logger.info("[Watcher] Reformatted: %s", abs_path)
        show_errors(result, self._show_errors)


class ReformatWatcher:
    """
    High-level wrapper around watchdog that monitors a directory.

    Usage::

        watcher = ReformatWatcher(reformatter, root="src", patterns=["*.py"])
        watcher.start()   # blocks until stop() or Ctrl-C
        watcher.stop()
    """

    def __init__(
        self,
        reformatter: Reformatter,
        root: str,
        patterns: list[str],
        show_errors_mode: str = "echo",
    ) -> None:
        self._root = os.path.abspath(root)
        self._observer: Optional[Observer] = None
        self._handler = ReformatHandler(
            reformatter, patterns, show_errors_mode=show_errors_mode,
        )

    def start(self) -> None:
        """
        Start watching the directory.

        Blocks until :meth:`stop` is called or the process is interrupted.
        """
        observer = Observer()
        observer.schedule(self._handler, self._root, recursive=True)
        observer.start()
        self._observer = observer
        logger.info("[Watcher] Watching %s", self._root)

        try:
            while observer.is_alive():
                observer.join(timeout=1)
        except KeyboardInterrupt:
            observer.stop()
        observer.join()

    def stop(self) -> None:
        """Stop the file watcher observer."""
        if self._observer is not None:
            self._observer.stop()
            logger.info("[Watcher] Stopped")
