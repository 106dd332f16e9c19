"""Unit tests for change_report.indent."""

import pytest

from change_report.indent import (
    MAX_INDENT,
    code_block_indent,
    get_indent,
    indent_multiline_desc,
    media_type_code_indent,
    spaces,
)


class TestIndentTable:
    """Tests for the list and code block column rules."""

    @pytest.mark.parametrize("marker,code", [(0, 2), (2, 4), (4, 6), (6, 8), (8, 10)])
    def test_code_block_column(self, marker, code):
        """Should place code blocks two columns right of the list marker."""
        assert code_block_indent(marker) == code

    def test_get_indent(self):
        """Should use two spaces per nesting level."""
        assert get_indent(0) == ""
        assert get_indent(-1) == ""
        assert get_indent(3) == "      "

    def test_spaces_beyond_cache(self):
        """Should build indentation wider than the cached widths."""
        assert spaces(10) == " " * 10

    def test_media_type_code_indent(self):
        """Should indent media-type property code blocks past the nested marker."""
        assert media_type_code_indent(1) == 6
        assert media_type_code_indent(2) == 8


class TestIndentMultilineDesc:
    """Tests for indent_multiline_desc()."""

    def test_continuation_lines(self):
        """Should indent every line after the first."""
        desc = "Extension `x-a` added:\n\n```yaml\na: 1\n```"
        assert indent_multiline_desc(desc, 2) == (
            "Extension `x-a` added:\n  \n  ```yaml\n  a: 1\n  ```"
        )

    def test_leading_fence(self):
        """Should indent the first line too when it opens a code fence."""
        assert indent_multiline_desc("```json\n{}\n```", 4) == "    ```json\n    {}\n    ```"

    @pytest.mark.parametrize("width", [0, MAX_INDENT + 1])
    def test_out_of_range(self, width):
        """Should leave descriptions alone for non-positive or oversized widths."""
        assert indent_multiline_desc("a\nb", width) == "a\nb"

    def test_single_line(self):
        """Should leave single-line descriptions unchanged."""
        assert indent_multiline_desc("`x` added", 2) == "`x` added"
