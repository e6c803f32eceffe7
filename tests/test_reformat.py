"""Tests for the reformat-on-save driver."""

import json
import os
import shlex
import shutil
import sys

import pytest

from formatpatch.config import Config
from formatpatch.editing.document import Document
from formatpatch.reformat import Reformatter, ReformatResult


def _python(code: str) -> str:
    return shlex.join([sys.executable, "-c", code])


STRIP_TRAILING = _python(
    "import sys; sys.stdout.write(''.join(l.rstrip() + '\\n' for l in sys.stdin))"
)
FAILING = _python("import sys; sys.stderr.write('bad input on line 2\\n'); sys.exit(1)")
ECHO = _python("import sys; sys.stdout.write(sys.stdin.read())")
CAT = _python("import sys; sys.stdout.buffer.write(sys.stdin.buffer.read())")
FIX_LINE_TWO = _python(
    "import sys; data = sys.stdin.buffer.read(); "
    "sys.stdout.buffer.write(data.replace(b'b  \\r\\n', b'b\\r\\n'))"
)
NO_DELIMITER = _python("import sys; sys.stdout.write('rubocop: cannot load config\\n')")


@pytest.fixture
def cfg(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    for key in list(os.environ):
        if key.startswith("FORMATPATCH_"):
            monkeypatch.delenv(key)
    return Config({"formatter": STRIP_TRAILING})


class TestReformatDocument:
    def test_edits_only_changed_lines(self, cfg):
        document = Document.from_text("keep\nfix   \nkeep too\n")
        first_line = document[0]

        result = Reformatter(cfg).reformat_document(document, STRIP_TRAILING)

        assert result.outcome == "success"
        assert result.ok and result.changed
        assert result.hunks_applied == 2
        assert result.lines_deleted == 1
        assert result.lines_inserted == 1
        assert document.text == "keep\nfix\nkeep too\n"
        assert document[0] is first_line

    def test_unchanged(self, cfg):
        document = Document.from_text("clean\n")
        result = Reformatter(cfg).reformat_document(document, ECHO)

        assert result.outcome == "unchanged"
        assert result.ok is True
        assert result.changed is False
        assert document.text == "clean\n"

    def test_trailing_newline_follows_formatter(self, cfg):
        document = Document.from_text("no newline")
        result = Reformatter(cfg).reformat_document(document, STRIP_TRAILING)

        assert result.outcome == "success"
        assert result.hunks_applied == 0
        assert document.text == "no newline\n"

    def test_formatter_error_leaves_document(self, cfg):
        document = Document.from_text("a\nb\n")
        result = Reformatter(cfg).reformat_document(document, FAILING)

        assert result.outcome == "formatter_error"
        assert result.ok is False
        assert "bad input on line 2" in result.diagnostics
        assert document.text == "a\nb\n"

    def test_malformed_script_outcome(self, cfg, monkeypatch):
        reformatter = Reformatter(cfg)
        monkeypatch.setattr(reformatter, "_diff", lambda old, new: "x1 1\n")
        document = Document.from_text("a  \n")

        result = reformatter.reformat_document(document, STRIP_TRAILING)

        assert result.outcome == "malformed_script"
        assert "x1 1" in result.error
        assert document.text == "a  \n"

    def test_offset_out_of_range_restores_document(self, cfg, monkeypatch):
        reformatter = Reformatter(cfg)
        monkeypatch.setattr(reformatter, "_diff", lambda old, new: "d1 1\nd9 1\n")
        document = Document.from_text("a  \nb\n")

        result = reformatter.reformat_document(document, STRIP_TRAILING)

        assert result.outcome == "offset_out_of_range"
        assert document.text == "a  \nb\n"

    @pytest.mark.skipif(shutil.which("diff") is None, reason="diff not installed")
    def test_external_diff_backend(self, cfg):
        cfg.DIFF_BACKEND = "external"
        document = Document.from_text("x  \ny\nz \n")

        result = Reformatter(cfg).reformat_document(document, STRIP_TRAILING)

        assert result.outcome == "success"
        assert document.text == "x\ny\nz\n"

    def test_crlf_document_unchanged(self, cfg):
        document = Document.from_text("a\r\nb\r\nc\r\n")

        result = Reformatter(cfg).reformat_document(document, CAT)

        assert result.outcome == "unchanged"
        assert document.text == "a\r\nb\r\nc\r\n"

    def test_crlf_edit_touches_only_changed_line(self, cfg):
        document = Document.from_text("a\r\nb  \r\nc\r\n")
        first_line = document[0]

        result = Reformatter(cfg).reformat_document(document, FIX_LINE_TWO)

        assert result.outcome == "success"
        assert result.hunks_applied == 2
        assert document.text == "a\r\nb\r\nc\r\n"
        assert document[0] is first_line

    @pytest.mark.skipif(shutil.which("diff") is None, reason="diff not installed")
    def test_crlf_with_external_diff_backend(self, cfg):
        cfg.DIFF_BACKEND = "external"
        document = Document.from_text("a\r\nb  \r\nc\r\n")

        result = Reformatter(cfg).reformat_document(document, FIX_LINE_TWO)

        assert result.outcome == "success"
        assert document.text == "a\r\nb\r\nc\r\n"

    def test_split_output_without_delimiter_is_formatter_error(self, cfg):
        cfg.SPLIT_OUTPUT = True
        document = Document.from_text("x = 1\ny = 2\n")

        result = Reformatter(cfg).reformat_document(document, NO_DELIMITER)

        assert result.outcome == "formatter_error"
        assert "rubocop: cannot load config" in result.diagnostics
        assert document.text == "x = 1\ny = 2\n"


class TestReformatFile:
    def test_rewrites_file_and_logs_metric(self, cfg, tmp_path):
        path = tmp_path / "mod.py"
        path.write_text("x = 1   \ny = 2\n", encoding="utf-8")

        result = Reformatter(cfg, project_root=str(tmp_path)).reformat_file(str(path))

        assert isinstance(result, ReformatResult)
        assert result.file_path == str(path)
        assert path.read_text(encoding="utf-8") == "x = 1\ny = 2\n"
        assert not os.path.exists(str(path) + ".formatpatch_tmp")

        metrics = tmp_path / ".formatpatch" / "metrics" / "reformat_metrics.jsonl"
        entry = json.loads(metrics.read_text().splitlines()[-1])
        assert entry["outcome"] == "success"
        assert entry["file"] == str(path)

    def test_check_mode_does_not_write(self, cfg, tmp_path):
        path = tmp_path / "mod.py"
        path.write_text("x = 1   \n", encoding="utf-8")

        result = Reformatter(cfg).reformat_file(str(path), write=False)

        assert result.changed is True
        assert path.read_text(encoding="utf-8") == "x = 1   \n"

    def test_no_formatter_configured(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        path = tmp_path / "mod.py"
        path.write_text("x\n", encoding="utf-8")

        result = Reformatter(Config({"metrics": False})).reformat_file(str(path))

        assert result.outcome == "formatter_error"
        assert "No formatter configured" in result.error

    def test_per_pattern_formatter(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        cfg = Config({"formatter": FAILING, "formatters": {"*.txt": STRIP_TRAILING},
                      "metrics": False})
        path = tmp_path / "notes.txt"
        path.write_text("hi \n", encoding="utf-8")

        result = Reformatter(cfg).reformat_file(str(path))

        assert result.outcome == "success"
        assert path.read_text(encoding="utf-8") == "hi\n"

    def test_metrics_disabled(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        cfg = Config({"formatter": STRIP_TRAILING, "metrics": False})
        path = tmp_path / "a.py"
        path.write_text("a \n", encoding="utf-8")

        Reformatter(cfg).reformat_file(str(path))

        assert not (tmp_path / ".formatpatch").exists()
