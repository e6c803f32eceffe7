"""Tests for configuration loading and precedence."""

import os

import pytest

from formatpatch.config import Config


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for key in list(os.environ):
        if key.startswith("FORMATPATCH_"):
            monkeypatch.delenv(key)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))


class TestDefaults:
    def test_defaults_without_file(self):
        cfg = Config.load(None)

        assert cfg.FORMATTER == ""
        assert cfg.SPLIT_OUTPUT is False
        assert cfg.FORMATTER_TIMEOUT == 30.0
        assert cfg.FORMATTER_SUCCESS_CODES == (0,)
        assert cfg.DIFF_BACKEND == "difflib"
        assert cfg.SHOW_ERRORS == "echo"
        assert cfg.ATOMIC is True
        assert cfg.METRICS is True
        assert cfg.WATCH_PATTERNS == ["*.py"]

    def test_missing_explicit_path_uses_defaults(self, tmp_path):
        cfg = Config.load(str(tmp_path / "nope.yaml"))

        assert cfg.FORMATTER == ""


class TestYaml:
    def test_values_from_cwd_file(self, tmp_path):
        (tmp_path / ".formatpatch.yaml").write_text(
            "formatter: black -q -\n"
            "split_output: true\n"
            "formatter_timeout: 5\n"
            "formatter_success_codes: [0, 1]\n"
            "diff_backend: external\n"
            "show_errors: buffer\n"
            "atomic: false\n"
            "watch_patterns: ['*.rb']\n",
            encoding="utf-8",
        )
        cfg = Config.load(None)

        assert cfg.FORMATTER == "black -q -"
        assert cfg.SPLIT_OUTPUT is True
        assert cfg.FORMATTER_TIMEOUT == 5.0
        assert cfg.FORMATTER_SUCCESS_CODES == (0, 1)
        assert cfg.DIFF_BACKEND == "external"
        assert cfg.SHOW_ERRORS == "buffer"
        assert cfg.ATOMIC is False
        assert cfg.WATCH_PATTERNS == ["*.rb"]

    def test_invalid_choices_fall_back(self, tmp_path):
        path = tmp_path / "cfg.yaml"
        path.write_text("diff_backend: magic\nshow_errors: popup\n", encoding="utf-8")
        cfg = Config.load(str(path))

        assert cfg.DIFF_BACKEND == "difflib"
        assert cfg.SHOW_ERRORS == "echo"

    def test_home_file_used_when_cwd_has_none(self, tmp_path, monkeypatch):
        home = tmp_path / "home"
        work = tmp_path / "work"
        home.mkdir()
        work.mkdir()
        (home / ".formatpatch.yml").write_text("formatter: gofmt\n", encoding="utf-8")
        monkeypatch.setenv("HOME", str(home))
        monkeypatch.chdir(work)

        assert Config.load(None).FORMATTER == "gofmt"

    def test_cwd_file_beats_home_file(self, tmp_path, monkeypatch):
        home = tmp_path / "home"
        home.mkdir()
        (home / ".formatpatch.yaml").write_text("formatter: gofmt\n", encoding="utf-8")
        (tmp_path / ".formatpatch.yml").write_text("formatter: black -q -\n", encoding="utf-8")
        monkeypatch.setenv("HOME", str(home))

        assert Config.load(None).FORMATTER == "black -q -"

    def test_broken_yaml_is_logged(self, tmp_path, caplog):
        path = tmp_path / "cfg.yaml"
        path.write_text("formatter: [unclosed\n", encoding="utf-8")

        with caplog.at_level("WARNING", logger="formatpatch.config"):
            Config.load(str(path))

        assert "[Config] Ignoring" in caplog.text

    def test_broken_yaml_is_ignored(self, tmp_path):
        path = tmp_path / "cfg.yaml"
        path.write_text("formatter: [unclosed\n", encoding="utf-8")

        assert Config.load(str(path)).FORMATTER == ""

    def test_non_mapping_yaml_is_ignored(self, tmp_path):
        path = tmp_path / "cfg.yaml"
        path.write_text("- just\n- a list\n", encoding="utf-8")

        assert Config.load(str(path)).FORMATTER == ""


class TestEnvironment:
    def test_env_beats_yaml(self, tmp_path, monkeypatch):
        path = tmp_path / "cfg.yaml"
        path.write_text("formatter: from-yaml\natomic: true\n", encoding="utf-8")
        monkeypatch.setenv("FORMATPATCH_FORMATTER", "from-env")
        monkeypatch.setenv("FORMATPATCH_ATOMIC", "false")
        cfg = Config.load(str(path))

        assert cfg.FORMATTER == "from-env"
        assert cfg.ATOMIC is False


class TestFormatterFor:
    def test_pattern_match_wins(self):
        cfg = Config({
            "formatter": "default-fmt",
            "formatters": {"*.rb": "rubocop -a --stdin x.rb", "*.go": "gofmt"},
        })

        assert cfg.formatter_for("lib/app.rb") == "rubocop -a --stdin x.rb"
        assert cfg.formatter_for("/src/main.go") == "gofmt"
        assert cfg.formatter_for("setup.py") == "default-fmt"
