"""Tests for the combined report/content splitter."""

from formatpatch.formatter.splitter import split_combined_output


COMBINED = """\
Inspecting 1 file
C

Offenses:

app.rb:1:1: C: [Corrected] Missing frozen string literal comment.
====================
# frozen_string_literal: true

puts "hi"
"""


class TestSplitCombinedOutput:
    def test_splits_on_delimiter_line(self):
        report, content = split_combined_output(COMBINED)

        assert report.startswith("Inspecting 1 file\n")
        assert report.endswith("Missing frozen string literal comment.\n")
        assert content == '# frozen_string_literal: true\n\nputs "hi"\n'

    def test_no_delimiter_returns_no_content(self):
        stream = "rubocop: cannot load config\n"

        assert split_combined_output(stream) == (stream, None)

    def test_single_equals_is_a_delimiter(self):
        assert split_combined_output("r\n=\nc\n") == ("r\n", "c\n")

    def test_only_first_delimiter_splits(self):
        report, content = split_combined_output("r\n===\nc\n===\nd\n")

        assert report == "r\n"
        assert content == "c\n===\nd\n"

    def test_equals_inside_a_line_is_not_a_delimiter(self):
        stream = "a == b\nx = '==='\n"

        assert split_combined_output(stream) == (stream, None)

    def test_empty_report(self):
        assert split_combined_output("====\nbody\n") == ("", "body\n")

    def test_delimiter_at_end_without_newline(self):
        assert split_combined_output("report\n===") == ("report\n", "")

    def test_crlf_content_is_untouched(self):
        assert split_combined_output("r\n===\na\r\nb\r\n") == ("r\n", "a\r\nb\r\n")

    def test_crlf_delimiter_line(self):
        assert split_combined_output("r\r\n====\r\nc\r\n") == ("r\r\n", "c\r\n")
