"""
Reformat metrics — tracks reformat-on-save runs in a JSONL log file.
"""

from __future__ import annotations

import json
import logging
import os
from collections import Counter
from datetime import datetime, timezone

logger = logging.getLogger(__name__)

_METRICS_DIR = ".formatpatch/metrics"
_METRICS_FILE = "reformat_metrics.jsonl"


def _metrics_path(project_root: str | None = None) -> str:
    """Return the absolute path to the metrics file."""
    base = project_root or os.getcwd()
    return os.path.join(base, _METRICS_DIR, _METRICS_FILE)


def log_reformat_metric(data: dict, project_root: str | None = None) -> None:
    """Append a single reformat metric entry to the JSONL log.

    Parameters
    ----------
    data:
        Metric fields to log (file, outcome, hunks, lines_inserted, etc.).
    project_root:
        Optional project root directory. Defaults to CWD.
    """
    path = _metrics_path(project_root)

    entry = {"timestamp": datetime.now(timezone.utc).isoformat()}
    entry.update(data)

    try:
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "a", encoding="utf-8") as f:
            f.write(json.dumps(entry) + "\n")
    except OSError as exc:
        logger.warning("[Reformat] Failed to write metrics: %s", exc)


def read_reformat_stats(
    last_n: int = 50,
    project_root: str | None = None,
) -> dict:
    """Compute rolling statistics from the metrics log.

    Parameters
    ----------
    last_n:
        Number of most-recent entries to include.
    project_root:
        Optional project root directory.

    Returns
    -------
    dict
        Statistics including total_runs, success_rate, changed_rate,
        avg_hunks, avg_lines_changed and outcomes.
    """
    path = _metrics_path(project_root)

    entries: list[dict] = []
    if os.path.isfile(path):
        try:
            with open(path, "r", encoding="utf-8") as f:
                for line in f:
                    line = line.strip()
                    if line:
                        try:
                            entries.append(json.loads(line))
                        except json.JSONDecodeError:
                            continue
        except OSError as exc:
            logger.warning("[Reformat] Failed to read metrics: %s", exc)

    entries = entries[-last_n:]

    if not entries:
        return {
            "total_runs": 0,
            "success_rate": 0.0,
            "changed_rate": 0.0,
            "avg_hunks": 0.0,
            "avg_lines_changed": 0.0,
            "outcomes": {},
        }

    total = len(entries)
    ok = sum(1 for e in entries if e.get("outcome") in ("success", "unchanged"))
    changed = [e for e in entries if e.get("outcome") == "success"]
    hunks = [e.get("hunks", 0) for e in changed]
    lines_changed = [
        e.get("lines_inserted", 0) + e.get("lines_deleted", 0) for e in changed
    ]

    outcomes = Counter(e.get("outcome", "unknown") for e in entries)

    return {
        "total_runs": total,
        "success_rate": ok / total * 100,
        "changed_rate": len(changed) / total * 100,
        "avg_hunks": sum(hunks) / len(hunks) if hunks else 0.0,
        "avg_lines_changed": (
            sum(lines_changed) / len(lines_changed) if lines_changed else 0.0
        ),
        "outcomes": {
            outcome: count / total * 100
            for outcome, count in outcomes.most_common()
        },
    }
