"""
Configuration — loads settings from .formatpatch.yaml, environment variables,
and built-in defaults (in that priority order: CLI args > env > YAML > defaults).
"""

import fnmatch
import logging
import os

import yaml

logger = logging.getLogger(__name__)

_DEFAULTS = {
    "formatter": "",
    "split_output": False,
    "formatter_timeout": 30.0,
    "formatter_success_codes": [0],
    "diff_backend": "difflib",
    "diff_command": "diff",
    "show_errors": "echo",
    "atomic": True,
    "log_dir": ".formatpatch/logs",
    "metrics": True,
    "watch_patterns": ["*.py"],
    "formatters": {},
}

DIFF_BACKENDS = ("difflib", "external")
SHOW_ERRORS_MODES = ("buffer", "echo", "silent")

# Config file search locations
_CONFIG_FILENAMES = [".formatpatch.yaml", ".formatpatch.yml"]


class Config:
    """Formatter and patching configuration.

    Settings are resolved in priority order:
    1. CLI arguments (handled by caller)
    2. Environment variables
    3. .formatpatch.yaml config file
    4. Built-in defaults
    """

    def __init__(self, yaml_data: dict | None = None):
        yd = yaml_data or {}

        # Helper: env var > yaml > default
        def _get(env_key: str, yaml_key: str, default, cast=str):
            env_val = os.getenv(env_key)
            if env_val is not None:
                return cast(env_val)
            yaml_val = yd.get(yaml_key)
            if yaml_val is not None:
                return cast(yaml_val)
            return default

        def _get_bool(env_key: str, yaml_key: str, default: bool) -> bool:
            env_val = os.getenv(env_key)
            if env_val is not None:
                return env_val.lower() == "true"
            yaml_val = yd.get(yaml_key)
            if yaml_val is not None:
                return bool(yaml_val)
            return default

        self.FORMATTER = _get("FORMATPATCH_FORMATTER", "formatter",
                              _DEFAULTS["formatter"])
        self.SPLIT_OUTPUT = _get_bool("FORMATPATCH_SPLIT_OUTPUT", "split_output",
                                      _DEFAULTS["split_output"])
        self.FORMATTER_TIMEOUT = _get("FORMATPATCH_FORMATTER_TIMEOUT",
                                      "formatter_timeout",
                                      _DEFAULTS["formatter_timeout"], cast=float)

        codes = yd.get("formatter_success_codes", _DEFAULTS["formatter_success_codes"])
        if not isinstance(codes, list):
            codes = _DEFAULTS["formatter_success_codes"]
        self.FORMATTER_SUCCESS_CODES: tuple[int, ...] = tuple(int(c) for c in codes)

        self.DIFF_BACKEND = _get("FORMATPATCH_DIFF_BACKEND", "diff_backend",
                                 _DEFAULTS["diff_backend"])
        if self.DIFF_BACKEND not in DIFF_BACKENDS:
            self.DIFF_BACKEND = _DEFAULTS["diff_backend"]
        self.DIFF_COMMAND = _get("FORMATPATCH_DIFF_COMMAND", "diff_command",
                                 _DEFAULTS["diff_command"])

        self.SHOW_ERRORS = _get("FORMATPATCH_SHOW_ERRORS", "show_errors",
                                _DEFAULTS["show_errors"])
        if self.SHOW_ERRORS not in SHOW_ERRORS_MODES:
            self.SHOW_ERRORS = _DEFAULTS["show_errors"]

        self.ATOMIC = _get_bool("FORMATPATCH_ATOMIC", "atomic", _DEFAULTS["atomic"])
        self.LOG_DIR = _get("FORMATPATCH_LOG_DIR", "log_dir", _DEFAULTS["log_dir"])
        self.METRICS = _get_bool("FORMATPATCH_METRICS", "metrics", _DEFAULTS["metrics"])

        self.WATCH_PATTERNS: list[str] = yd.get("watch_patterns",
                                                _DEFAULTS["watch_patterns"])
        if not isinstance(self.WATCH_PATTERNS, list):
            self.WATCH_PATTERNS = list(_DEFAULTS["watch_patterns"])

        # Per-pattern formatter overrides
        self._formatters: dict[str, str] = {}
        formatters_section = yd.get("formatters", {})
        if isinstance(formatters_section, dict):
            for pattern, command in formatters_section.items():
                self._formatters[str(pattern)] = str(command)

    def formatter_for(self, path: str) -> str:
        """Return the formatter command for *path* (first matching pattern wins)."""
        name = os.path.basename(path)
        for pattern, command in self._formatters.items():
            if fnmatch.fnmatch(name, pattern):
                return command
        return self.FORMATTER

    @classmethod
    def load(cls, config_path: str | None = None) -> "Config":
        """Load config from YAML file (if found) + env vars + defaults.

        Without *config_path* the first ``.formatpatch.yaml`` (or ``.yml``)
        in the working directory, then in the home directory, is read.
        An unreadable or malformed file is logged and skipped.
        """
        if config_path:
            candidates = [config_path]
        else:
            candidates = [
                os.path.join(directory, name)
                for directory in (os.getcwd(), os.path.expanduser("~"))
                for name in _CONFIG_FILENAMES
            ]
        path = next((p for p in candidates if os.path.isfile(p)), None)
        if path is None:
            return cls()

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as exc:
            logger.warning("[Config] Ignoring %s: %s", path, exc)
            return cls()
        return cls(data if isinstance(data, dict) else {})
