from __future__ import annotations

from typing import Any, Iterator, TypedDict

from django.utils.text import slugify
from pandocfilters import stringify, walk


class HeadingNode(TypedDict):
    level: int
    id: str
    title: str
    children: list["HeadingNode"]


def iter_headers(blocks: list) -> Iterator[tuple[int, str, list]]:
    """Yield ``(level, identifier, inlines)`` for every Header in document order."""
    headers: list[tuple[int, str, list]] = []

    def collect(key: str, value: Any, format: str, meta: dict):
        if key == "Header":
            level, attr, inlines = value
            headers.append((level, attr[0], inlines))

    walk(blocks, collect, "", {})
    yield from headers


def extract_toc(ast: dict) -> list[HeadingNode]:
    """
    Given a Pandoc JSON document, return a hierarchical list of headings for a TOC.

    The resulting structure is a list of dictionaries. Each dictionary contains:
        - level: Heading level (1-6)
        - id: HTML id/slug for the heading
        - title: Plain-text version of the heading
        - children: Nested list of child headings
    """
    toc: list[HeadingNode] = []
    stack: list[HeadingNode] = []
    for level, identifier, inlines in iter_headers(ast.get("blocks", [])):
        text = stringify(inlines).strip()
        if not text:
            continue

        node: HeadingNode = {
            "level": level,
            "id": identifier or slugify(text),
            "title": text,
            "children": [],
        }

        while stack and stack[-1]["level"] >= level:
            stack.pop()

        if stack:
            stack[-1]["children"].append(node)
        else:
            toc.append(node)

        stack.append(node)

    return toc


def collect_toc(ast: dict, context: dict) -> dict:
    """Store the document's table of contents in ``context["toc"]``."""
    context["toc"] = extract_toc(ast)
    return ast
