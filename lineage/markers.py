# lineage/markers.py
"""
Line markers that carry source line numbers through the render pipeline.

A marker is a short token appended to the end of a source line before the
markdown is parsed. Two syntaxes are supported and a render uses exactly one:

    <!-- line:12 -->     comment syntax (survives as an HTML comment node)
    {{-line:12-}}        delimiter syntax (survives as plain text)

The codec encodes and decodes markers and knows how to strip them from text
where they would corrupt derived artifacts. ``LineScanner`` decides which
lines of a document may receive a marker at all.
"""

from __future__ import annotations

import enum
import re
from typing import Dict, Iterable, List, Optional, Tuple


class MarkerCodec:
    """Encode/decode one marker syntax."""

    def __init__(self, name: str, template: str, pattern: str):
        self.name = name
        self.template = template
        self.pattern = re.compile(pattern)
        self._exact = re.compile(r"\s*" + pattern + r"\s*\Z")
        # Marker followed only by trailing blanks up to the end of its line
        self._line_end = re.compile(pattern + r"(?=[ \t]*$)", re.MULTILINE)

    def __repr__(self) -> str:
        return f"<MarkerCodec {self.name}>"

    def encode(self, line_number: int) -> str:
        if line_number < 0:
            raise ValueError(f"Line numbers cannot be negative: {line_number}")
        return self.template.format(int(line_number))

    def decode(self, text: str) -> Optional[int]:
        """Return the line number if ``text`` is exactly one marker, else None."""
        match = self._exact.match(text)
        if not match:
            return None
        return int(match.group("line"))

    def decode_comment(self, comment: str) -> Optional[int]:
        """Decode the inner text of an HTML comment node (without ``<!--``/``-->``)."""
        return self.decode(f"<!--{comment}-->")

    def search(self, text: str) -> bool:
        return self.pattern.search(text) is not None

    def line_numbers(self, text: str) -> List[int]:
        return [int(match.group("line")) for match in self.pattern.finditer(text)]

    def strip(self, text: str) -> str:
        """Remove every marker occurrence from ``text``."""
        return self.pattern.sub("", text)

    def strip_line_endings(self, text: str) -> str:
        """
        Remove markers sitting at the end of a line.

        Trailing blanks after a marker are kept so the text is restored byte
        for byte. Marker-shaped text in the middle of a line is left alone.
        """
        return self._line_end.sub("", text)

    def split(self, text: str) -> List[Tuple[str, Optional[int]]]:
        """
        Split text into ``(segment, line_number)`` pairs.

        Each segment is the text preceding a marker, paired with that marker's
        line number. The final pair holds the text after the last marker and
        has no line number.
        """
        parts: List[Tuple[str, Optional[int]]] = []
        position = 0
        for match in self.pattern.finditer(text):
            parts.append((text[position:match.start()], int(match.group("line"))))
            position = match.end()
        parts.append((text[position:], None))
        return parts

    def strip_residue(self, slug: str, line_numbers: Iterable[int] = ()) -> str:
        """
        Clean an identifier/slug derived from marked text.

        Raw markers are removed anywhere. For each known line number the
        slugified form of its marker (``-line12``, ``-line-12-`` ...) is
        removed from the end of the slug.
        """
        cleaned = self.strip(slug)
        for line_number in line_numbers:
            residue = re.compile(rf"(?:^|[-_.]+)line[-_.]*{line_number}[-_.]*$")
            cleaned = residue.sub("", cleaned)
        return cleaned


COMMENT_MARKERS = MarkerCodec(
    "comment",
    "<!-- line:{} -->",
    r"<!--\s*line:(?P<line>\d+)\s*-->",
)

DELIMITER_MARKERS = MarkerCodec(
    "delimiter",
    "{{{{-line:{}-}}}}",
    r"\{\{-line:(?P<line>\d+)-\}\}",
)

MARKER_CODECS: Dict[str, MarkerCodec] = {
    COMMENT_MARKERS.name: COMMENT_MARKERS,
    DELIMITER_MARKERS.name: DELIMITER_MARKERS,
}


def get_codec(name: str) -> MarkerCodec:
    try:
        return MARKER_CODECS[name]
    except KeyError:
        raise ValueError(
            f"Unknown marker syntax {name!r} (expected one of {sorted(MARKER_CODECS)})"
        ) from None


# --- Eligibility -----------------------------------------------------------

FRONTMATTER_DELIMITER = "---"
FRONTMATTER_END = "..."

_FENCE_RE = re.compile(r"^ {0,3}(?P<fence>`{3,}|~{3,})")
# Thematic breaks and setext underlines: a trailing marker turns them into text
_RULE_RE = re.compile(
    r"^ {0,3}(?:(?:-[ \t]*){3,}|(?:\*[ \t]*){3,}|(?:_[ \t]*){3,}|=+[ \t]*|-+[ \t]*)$"
)
_TABLE_ROW_RE = re.compile(r"^\s*\|")
# Grid table borders and header separators (+-----+, +=====+, +:---+)
_GRID_BORDER_RE = re.compile(r"^\s*\+[-=:+]+\+\s*$")
# Fenced div openers and closers (::: warning, :::)
_DIV_FENCE_RE = re.compile(r"^\s*:{3,}")
# Link reference definitions: a marker would become part of the URL
_REFERENCE_RE = re.compile(r"^ {0,3}\[(?!\^)[^\]]+\]:")
# Lines starting with raw HTML: a trailing marker becomes a separate block
_HTML_LINE_RE = re.compile(r"^ {0,3}<[/!?A-Za-z]")
# A standalone image is an implicit figure only while it is alone in its paragraph
_IMAGE_LINE_RE = re.compile(r"^\s*!\[[^\]]*\]\([^)]*\)(?:\{[^}]*\})?\s*$")

_COMMENT_OPEN = "<!--"
_COMMENT_CLOSE = "-->"
_VERBATIM_OPEN_RE = re.compile(r"<(?P<tag>pre|script|style|textarea)\b", re.IGNORECASE)


class ScanState(enum.Enum):
    START = "start"
    FRONTMATTER = "frontmatter"
    BODY = "body"


class LineScanner:
    """
    Walks a document's lines in order and reports which may be marked.

    States: START -> (FRONTMATTER) -> BODY. A document whose first line is
    exactly ``---`` is in frontmatter until the next ``---`` (or ``...``);
    nothing in the frontmatter is eligible.

    In the body the scanner also remembers open constructs that span lines:

    - a code fence: the fence lines are skipped, the code lines are eligible
      (their markers are removed again on the document tree);
    - an HTML comment or a raw ``<pre>``/``<script>``/``<style>``/``<textarea>``
      element: every line up to and including the one that closes it is
      skipped, since a marker inside would end up in the raw HTML.

    Structural lines (blank lines, rules, setext underlines, table rows and
    borders, fenced div fences, link reference definitions, raw HTML lines and
    standalone images) are skipped.
    """

    def __init__(self):
        self.state = ScanState.START
        self.frontmatter_lines = 0
        self.open_fence: Optional[str] = None
        self.open_html: Optional[str] = None

    def is_eligible(self, line: str) -> bool:
        line = line.rstrip("\r\n")

        if self.state is ScanState.START:
            if line == FRONTMATTER_DELIMITER:
                self.state = ScanState.FRONTMATTER
                self.frontmatter_lines = 1
                return False
            self.state = ScanState.BODY
        elif self.state is ScanState.FRONTMATTER:
            self.frontmatter_lines += 1
            if line in (FRONTMATTER_DELIMITER, FRONTMATTER_END):
                self.state = ScanState.BODY
            return False

        return self._scan_body(line)

    def _scan_body(self, line: str) -> bool:
        if self.open_html:
            if self.open_html in line.lower():
                self.open_html = None
            return False

        if self.open_fence:
            if _closes_fence(line, self.open_fence):
                self.open_fence = None
                return False
            return bool(line.strip())

        fence = _FENCE_RE.match(line)
        if fence:
            self.open_fence = fence.group("fence")
            return False

        closer = unclosed_html(line)
        if closer:
            self.open_html = closer
            return False

        return is_markable_body_line(line)


def _closes_fence(line: str, fence: str) -> bool:
    stripped = line.strip()
    return (
        len(stripped) >= len(fence)
        and stripped == fence[0] * len(stripped)
    )


def unclosed_html(line: str) -> Optional[str]:
    """
    Return the closing token of raw HTML opened but not closed on ``line``.

    That is ``-->`` for an HTML comment and ``</pre>`` (etc.) for a verbatim
    element; None when everything opened on the line is also closed.
    """
    comment = line.rfind(_COMMENT_OPEN)
    if comment != -1 and _COMMENT_CLOSE not in line[comment + len(_COMMENT_OPEN):]:
        return _COMMENT_CLOSE

    for match in _VERBATIM_OPEN_RE.finditer(line):
        closer = f"</{match.group('tag').lower()}>"
        if closer not in line[match.end():].lower():
            return closer

    return None


def is_markable_body_line(line: str) -> bool:
    if not line.strip():
        return False
    for structural in (
        _FENCE_RE,
        _RULE_RE,
        _TABLE_ROW_RE,
        _GRID_BORDER_RE,
        _DIV_FENCE_RE,
        _REFERENCE_RE,
        _HTML_LINE_RE,
        _IMAGE_LINE_RE,
    ):
        if structural.match(line):
            return False
    return True
