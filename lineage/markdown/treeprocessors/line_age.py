# lineage/markdown/treeprocessors/line_age.py
"""
Tree processor that removes line markers from places they would corrupt.

Runs on the Pandoc JSON AST after parsing and before HTML is written:

- Code blocks must reproduce their source exactly, so markers at the end of
  each code line are removed. Marker-shaped text in the middle of a line is
  left alone since it cannot have been appended by the preprocessor. Raw
  HTML gets the same end-of-line treatment.
- Inline code, math and image alt text, titles and URLs are attribute-like
  or verbatim, so every marker in them is removed.
- Heading identifiers are derived from heading text; with the delimiter
  syntax the marker leaks into them (``# Intro{{-line:1-}}`` gets the id
  ``intro-line1-``). Identifiers are cleaned, de-duplicated, and links that
  point at them are re-targeted.
- Table-of-contents entries collected from the same headings get the same
  treatment for their titles and ids.

Prose is never touched: the postprocessor turns those markers into bars.
"""

from typing import Any, Dict, List, Optional

from pandocfilters import (
    Code,
    CodeBlock,
    Header,
    Image,
    Link,
    Math,
    RawBlock,
    RawInline,
    Str,
    walk,
)

from lineage.markers import MarkerCodec

from ..config import get_line_age_options, line_age_active

FALLBACK_IDENTIFIER = "section"


def _text_line_numbers(inlines: list, codec: MarkerCodec) -> List[int]:
    """Line numbers of markers that are part of the text (not raw HTML) of inlines."""
    parts: List[str] = []

    def collect(key: str, value: Any, format: str, meta: dict):
        if key == "Str":
            parts.append(value)
        elif key in ("Space", "SoftBreak", "LineBreak"):
            parts.append(" ")

    walk(inlines, collect, "", {})
    return codec.line_numbers("".join(parts))


def clean_identifier(
    identifier: str, codec: MarkerCodec, line_numbers: Optional[List[int]] = None
) -> str:
    return codec.strip_residue(identifier, line_numbers or ()) or FALLBACK_IDENTIFIER


def clean_headers(blocks: list, codec: MarkerCodec) -> tuple:
    """
    Clean Header identifiers.

    Returns the new blocks and a mapping of old identifier to new identifier
    for every header that changed.
    """
    renamed: Dict[str, str] = {}
    used: Dict[str, int] = {}

    def unique(identifier: str) -> str:
        count = used.get(identifier, 0)
        used[identifier] = count + 1
        return identifier if count == 0 else f"{identifier}-{count}"

    def action(key: str, value: Any, format: str, meta: dict):
        if key != "Header":
            return None
        level, (identifier, classes, attributes), inlines = value
        if not identifier:
            return None

        cleaned = unique(clean_identifier(identifier, codec, _text_line_numbers(inlines, codec)))
        if cleaned == identifier:
            return None
        renamed[identifier] = cleaned
        return Header(level, [cleaned, classes, attributes], inlines)

    return walk(blocks, action, "", {}), renamed


def _strip_alt_text(inlines: list, codec: MarkerCodec) -> list:
    def action(key: str, value: Any, format: str, meta: dict):
        if key == "Str" and codec.search(value):
            return Str(codec.strip(value))
        return None

    return walk(inlines, action, "", {})


def clean_code_and_links(blocks: list, codec: MarkerCodec, renamed: Dict[str, str]) -> list:
    def action(key: str, value: Any, format: str, meta: dict):
        if key == "CodeBlock":
            attr, code = value
            cleaned = codec.strip_line_endings(code)
            if cleaned != code:
                return CodeBlock(attr, cleaned)

        elif key in ("RawBlock", "RawInline"):
            raw_format, raw = value
            # A raw inline that is exactly one marker is resolved into a bar later
            if codec.decode(raw) is None:
                cleaned = codec.strip_line_endings(raw)
                if cleaned != raw:
                    constructor = RawBlock if key == "RawBlock" else RawInline
                    return constructor(raw_format, cleaned)

        elif key in ("Code", "Math"):
            first, text = value
            if codec.search(text):
                constructor = Code if key == "Code" else Math
                return constructor(first, codec.strip(text))

        elif key == "Image":
            attr, inlines, (url, title) = value
            cleaned = _strip_alt_text(inlines, codec)
            target = [codec.strip(url), codec.strip(title)]
            if cleaned != inlines or target != [url, title]:
                return Image(attr, cleaned, target)

        elif key == "Link":
            attr, inlines, (url, title) = value
            if url.startswith("#") and url[1:] in renamed:
                target = "#" + renamed[url[1:]]
            else:
                target = codec.strip(url)
            if target != url or codec.search(title):
                return Link(attr, inlines, [target, codec.strip(title)])

        return None

    return walk(blocks, action, "", {})


def clean_toc_entries(entries: list, codec: MarkerCodec, renamed: Dict[str, str]) -> None:
    """Strip markers and marker residue from TOC titles and ids, in place."""
    for entry in entries:
        title = entry.get("title") or ""
        identifier = entry.get("id") or ""

        entry["title"] = codec.strip(title).strip()
        if identifier in renamed:
            entry["id"] = renamed[identifier]
        elif identifier:
            entry["id"] = clean_identifier(identifier, codec, codec.line_numbers(title))

        clean_toc_entries(entry.get("children") or [], codec, renamed)


def line_age_mid(ast: dict, context: dict) -> dict:
    if not line_age_active(context):
        return ast

    codec = get_line_age_options(context).codec

    blocks, renamed = clean_headers(ast.get("blocks", []), codec)
    ast["blocks"] = clean_code_and_links(blocks, codec, renamed)

    clean_toc_entries(context.get("toc") or [], codec, renamed)
    return ast
