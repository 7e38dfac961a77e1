"""
Tests for lineage.markers

Covers:
  - Encoding and decoding for both marker syntaxes
  - End-of-line stripping, splitting and slug residue removal
  - Line eligibility (frontmatter, fences, structural lines)
"""

from __future__ import annotations

import pytest

from lineage.markers import (
    COMMENT_MARKERS,
    DELIMITER_MARKERS,
    LineScanner,
    ScanState,
    get_codec,
    is_markable_body_line,
    unclosed_html,
)


class TestCodec:
    """encode/decode for comment and delimiter markers."""

    def test_comment_encoding(self):
        assert COMMENT_MARKERS.encode(12) == "<!-- line:12 -->"

    def test_delimiter_encoding(self):
        assert DELIMITER_MARKERS.encode(12) == "{{-line:12-}}"

    @pytest.mark.parametrize("codec", [COMMENT_MARKERS, DELIMITER_MARKERS])
    @pytest.mark.parametrize("line_number", [0, 1, 42, 100000])
    def test_decode_inverts_encode(self, codec, line_number):
        assert codec.decode(codec.encode(line_number)) == line_number

    def test_negative_line_rejected(self):
        with pytest.raises(ValueError):
            COMMENT_MARKERS.encode(-1)

    @pytest.mark.parametrize(
        "text", ["<!-- note -->", "line:3", "<!-- line:3 --> extra", "<!-- line:x -->", ""]
    )
    def test_decode_rejects_other_text(self, text):
        assert COMMENT_MARKERS.decode(text) is None

    def test_decode_comment_inner_text(self):
        assert COMMENT_MARKERS.decode_comment(" line:7 ") == 7
        assert COMMENT_MARKERS.decode_comment(" TODO ") is None

    def test_get_codec(self):
        assert get_codec("comment") is COMMENT_MARKERS
        assert get_codec("delimiter") is DELIMITER_MARKERS
        with pytest.raises(ValueError):
            get_codec("zero-width")


class TestStripping:
    """Removal of markers from derived text."""

    def test_strip_everywhere(self):
        assert COMMENT_MARKERS.strip("a<!-- line:1 -->b<!-- line:2 -->") == "ab"

    def test_strip_line_endings_only(self):
        code = "x = 1<!-- line:2 -->\ny = '<!-- line:9 -->' + z<!-- line:3 -->\n"
        assert COMMENT_MARKERS.strip_line_endings(code) == "x = 1\ny = '<!-- line:9 -->' + z\n"

    def test_strip_line_endings_keeps_trailing_blanks(self):
        assert COMMENT_MARKERS.strip_line_endings("a<!-- line:1 -->  \nb") == "a  \nb"

    def test_split(self):
        parts = DELIMITER_MARKERS.split("one{{-line:1-}}two{{-line:2-}}tail")
        assert parts == [("one", 1), ("two", 2), ("tail", None)]

    def test_split_without_markers(self):
        assert DELIMITER_MARKERS.split("plain") == [("plain", None)]

    def test_line_numbers(self):
        assert DELIMITER_MARKERS.line_numbers("a{{-line:4-}} b{{-line:5-}}") == [4, 5]

    @pytest.mark.parametrize(
        "slug, expected",
        [
            ("intro-line1-", "intro"),
            ("intro-line-1", "intro"),
            ("intro_line.1", "intro"),
            ("line1-", ""),
        ],
    )
    def test_strip_residue(self, slug, expected):
        assert DELIMITER_MARKERS.strip_residue(slug, [1]) == expected

    def test_residue_needs_known_line_number(self):
        # A heading genuinely titled "Chapter line 1" keeps its slug
        assert DELIMITER_MARKERS.strip_residue("chapter-line-1", []) == "chapter-line-1"
        assert DELIMITER_MARKERS.strip_residue("chapter-line-1", [7]) == "chapter-line-1"

    def test_residue_removes_raw_markers(self):
        assert COMMENT_MARKERS.strip_residue("hello-world<!-- line:1 -->") == "hello-world"


class TestLineScanner:
    """Which lines may carry a marker."""

    def scan(self, text):
        scanner = LineScanner()
        return [scanner.is_eligible(line) for line in text.split("\n")], scanner

    def test_frontmatter_is_skipped(self):
        eligible, scanner = self.scan("---\ntitle: x\n---\nbody")
        assert eligible == [False, False, False, True]
        assert scanner.state is ScanState.BODY
        assert scanner.frontmatter_lines == 3

    def test_frontmatter_closed_with_dots(self):
        eligible, _ = self.scan("---\ntitle: x\n...\nbody")
        assert eligible == [False, False, False, True]

    def test_rule_later_in_document_is_not_frontmatter(self):
        eligible, scanner = self.scan("intro\n---\nmore")
        assert eligible == [True, False, True]
        assert scanner.frontmatter_lines == 0

    def test_fences_skipped_but_code_marked(self):
        eligible, _ = self.scan("```python\nx = 1\n```\n~~~\ny\n~~~")
        assert eligible == [False, True, False, False, True, False]

    @pytest.mark.parametrize(
        "line",
        ["", "   ", "***", "- - -", "___", "====", "---", "| a | b |", "[home]: https://example.com"],
    )
    def test_structural_lines(self, line):
        assert not is_markable_body_line(line)

    @pytest.mark.parametrize(
        "line", ["# Title", "- list item", "plain text", "    indented code", "[^1]: A footnote"]
    )
    def test_content_lines(self, line):
        assert is_markable_body_line(line)


class TestOpenConstructs:
    """Constructs that span lines keep their inside free of markers."""

    def scan(self, text):
        scanner = LineScanner()
        return [scanner.is_eligible(line) for line in text.split("\n")]

    def test_multiline_html_comment(self):
        text = "Intro\n\n<!-- hidden\nsecret note\n-->\n\nAfter"
        assert self.scan(text) == [True, False, False, False, False, False, True]

    def test_comment_opened_mid_line(self):
        assert self.scan("text <!-- note\nmore -->\nnext") == [False, False, True]

    def test_closed_comment_in_prose(self):
        assert self.scan("a <!-- x --> b") == [True]

    def test_raw_pre_block(self):
        assert self.scan("<pre>\ncode line\n</pre>\nafter") == [False, False, False, True]

    def test_comment_opener_inside_fence_is_code(self):
        text = "```html\n<!-- start\n```\nafter"
        assert self.scan(text) == [False, True, False, True]

    def test_fence_closes_only_with_same_character(self):
        text = "~~~\n```\ncode\n~~~\nafter"
        assert self.scan(text) == [False, True, True, False, True]

    def test_longer_fence_needs_long_close(self):
        assert self.scan("````\n```\n````\nx") == [False, True, False, True]


class TestPandocStructures:
    """Pandoc block syntax a trailing marker would break."""

    @pytest.mark.parametrize(
        "line",
        [
            "::: warning",
            ":::",
            "::::: {.note}",
            "+-----+-----+",
            "+=====+=====+",
            "+:----+----:+",
            "<div class=\"note\">",
            "</div>",
            "<!-- single line -->",
            "![cat](cat.png)",
            "![cat](cat.png){width=50%}",
        ],
    )
    def test_not_markable(self, line):
        assert not is_markable_body_line(line)

    @pytest.mark.parametrize(
        "line", ["See ![cat](cat.png) here", "a + b + c", "time: 10:30", "1 < 2"]
    )
    def test_markable(self, line):
        assert is_markable_body_line(line)

    def test_unclosed_html(self):
        assert unclosed_html("<!-- open") == "-->"
        assert unclosed_html("<PRE class='x'>") == "</pre>"
        assert unclosed_html("<pre>x</pre>") is None
        assert unclosed_html("plain") is None
