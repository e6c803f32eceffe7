"""
`formatpatch` command line.

Commands
--------
formatpatch split -- CMD [ARGS...]   -- run CMD, split its combined stdout
                                        into report (stderr) and content (stdout)
formatpatch diff OLD NEW             -- print the RCS script between two files
formatpatch apply FILE SCRIPT        -- apply an RCS script (``-`` = stdin) to FILE
formatpatch format FILE...           -- reformat files in place
formatpatch format --check FILE...   -- report files that would change
formatpatch watch [DIR]              -- reformat matching files on save
formatpatch stats                    -- show rolling reformat metrics
"""

from __future__ import annotations

import argparse
import logging
import subprocess
import sys

from tqdm import tqdm

from .cli_display import setup_logger, show_errors
from .config import Config
from .editing.diff_parser import DiffParser
from .editing.document import Document
from .editing.errors import PatchError
from .editing.metrics import read_reformat_stats
from .editing.patch_applier import PatchApplier
from .formatter.rcs_diff import external_rcs_diff, rcs_diff
from .formatter.runner import FormatterError, decode_output
from .formatter.splitter import split_combined_output
from .reformat import Reformatter, safe_write

logger = logging.getLogger(__name__)


def _read_text(path: str) -> str:
    if path == "-":
        return sys.stdin.buffer.read().decode("utf-8")
    with open(path, "r", encoding="utf-8", newline="") as f:
        return f.read()


# ---------------------------------------------------------------------------
# Sub-command handlers
# ---------------------------------------------------------------------------

def _cmd_split(args: argparse.Namespace, cfg: Config) -> int:
    """Run a formatter with combined output and split report from content."""
    command = list(args.command)
    if command and command[0] == "--":
        command = command[1:]
    if not command:
        print("split: no command given", file=sys.stderr)
        return 2

    try:
        proc = subprocess.run(
            command,
            input=sys.stdin.buffer.read(),
            capture_output=True,
        )
    except FileNotFoundError:
        print(f"split: command not found: {command[0]}", file=sys.stderr)
        return 127

    report, content = split_combined_output(decode_output(proc.stdout))
    sys.stderr.write(decode_output(proc.stderr))
    sys.stderr.write(report)
    if content is None:
        print("split: no report/content delimiter line in output", file=sys.stderr)
        return proc.returncode or 1
    sys.stdout.write(content)
    return proc.returncode


def _cmd_diff(args: argparse.Namespace, cfg: Config) -> int:
    """Print the RCS script between two files."""
    old = _read_text(args.old)
    new = _read_text(args.new)
    backend = args.backend or cfg.DIFF_BACKEND
    try:
        if backend == "external":
            script = external_rcs_diff(old, new, diff_command=cfg.DIFF_COMMAND)
        else:
            script = rcs_diff(old, new)
    except FormatterError as exc:
        print(f"diff: {exc}", file=sys.stderr)
        return 2
    sys.stdout.write(script)
    return 0 if not script else 1


def _cmd_apply(args: argparse.Namespace, cfg: Config) -> int:
    """Apply an RCS script to a file in place."""
    script = _read_text(args.script)
    with open(args.file, "r", encoding="utf-8", newline="") as f:
        document = Document.from_text(f.read())

    try:
        hunks = DiffParser().parse(script)
        result = PatchApplier(atomic=True).apply(document, hunks)
    except PatchError as exc:
        print(f"apply: {type(exc).__name__}: {exc}", file=sys.stderr)
        return 1

    safe_write(args.file, document.text)
    print(
        f"{args.file}: {result.hunks_applied} hunk(s), "
        f"+{result.lines_inserted} -{result.lines_deleted} lines"
    )
    return 0


def _cmd_format(args: argparse.Namespace, cfg: Config) -> int:
    """Reformat files through the configured formatter."""
    reformatter = Reformatter(cfg)
    failed = 0
    changed = 0

    files = args.files
    iterator = tqdm(files, unit="file", desc="Formatting") if len(files) > 1 else files
    for path in iterator:
        try:
            result = reformatter.reformat_file(path, write=not args.check)
        except OSError as exc:
            logger.warning("[Reformat] Could not read %s: %s", path, exc)
            print(f"format: {path}: {exc}", file=sys.stderr)
            failed += 1
            continue

        if not result.ok:
            failed += 1
            show_errors(result, cfg.SHOW_ERRORS)
        elif result.changed:
            changed += 1
            verb = "would reformat" if args.check else "reformatted"
            print(f"{verb} {path} (+{result.lines_inserted} -{result.lines_deleted})")

    if failed:
        return 1
    if args.check and changed:
        return 1
    return 0


def _cmd_watch(args: argparse.Namespace, cfg: Config) -> int:
    """Reformat files on save until interrupted."""
    from .watcher import ReformatWatcher

    # The panel cannot be driven from the observer thread.
    mode = "echo" if cfg.SHOW_ERRORS == "buffer" else cfg.SHOW_ERRORS
    patterns = args.pattern or cfg.WATCH_PATTERNS
    watcher = ReformatWatcher(
        Reformatter(cfg, project_root=args.directory),
        root=args.directory,
        patterns=patterns,
        show_errors_mode=mode,
    )
    print(f"Watching {args.directory} for {', '.join(patterns)} (Ctrl-C to stop)")
    watcher.start()
    return 0


def _cmd_stats(args: argparse.Namespace, cfg: Config) -> int:
    """Print rolling reformat statistics."""
    stats = read_reformat_stats(last_n=args.last)
    if not stats["total_runs"]:
        print("No reformat runs recorded yet.")
        return 0
    print(f"Runs:               {stats['total_runs']}")
    print(f"Success rate:       {stats['success_rate']:.1f}%")
    print(f"Changed rate:       {stats['changed_rate']:.1f}%")
    print(f"Avg hunks:          {stats['avg_hunks']:.1f}")
    print(f"Avg lines changed:  {stats['avg_lines_changed']:.1f}")
    for outcome, pct in stats["outcomes"].items():
        print(f"  {outcome:<22}{pct:.1f}%")
    return 0


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="formatpatch",
        description="Apply formatter output as minimal line patches",
    )
    parser.add_argument("--config", default=None,
                        help="Path to .formatpatch.yaml config file")
    parser.add_argument("--formatter", default=None,
                        help="Formatter command (overrides config)")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Also log to stderr")
    sub = parser.add_subparsers(dest="command_name", required=True)

    p_split = sub.add_parser("split", help="Split a formatter's combined output")
    p_split.add_argument("command", nargs=argparse.REMAINDER,
                         help="Formatter command and arguments")
    p_split.set_defaults(func=_cmd_split)

    p_diff = sub.add_parser("diff", help="Print the RCS script between two files")
    p_diff.add_argument("old")
    p_diff.add_argument("new")
    p_diff.add_argument("--backend", choices=["difflib", "external"], default=None)
    p_diff.set_defaults(func=_cmd_diff)

    p_apply = sub.add_parser("apply", help="Apply an RCS script to a file")
    p_apply.add_argument("file")
    p_apply.add_argument("script", help="Script file, or - for stdin")
    p_apply.set_defaults(func=_cmd_apply)

    p_format = sub.add_parser("format", help="Reformat files in place")
    p_format.add_argument("files", nargs="+")
    p_format.add_argument("--check", action="store_true",
                          help="Report files that would change, write nothing")
    p_format.set_defaults(func=_cmd_format)

    p_watch = sub.add_parser("watch", help="Reformat files on save")
    p_watch.add_argument("directory", nargs="?", default=".")
    p_watch.add_argument("--pattern", action="append", default=None,
                         help="File-name glob to watch (repeatable)")
    p_watch.set_defaults(func=_cmd_watch)

    p_stats = sub.add_parser("stats", help="Show reformat metrics")
    p_stats.add_argument("--last", type=int, default=50)
    p_stats.set_defaults(func=_cmd_stats)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    cfg = Config.load(args.config)
    if args.formatter:
        cfg.FORMATTER = args.formatter

    setup_logger(cfg.LOG_DIR, verbose=args.verbose)
    return args.func(args, cfg)


if __name__ == "__main__":
    sys.exit(main())
