"""
Preprocessor that tags each source line with a line marker.

Converts:
    Some text               → Some text<!-- line:3 -->
    ```python               → ```python            (fence lines are skipped)

The marker carries the 1-based source line number through Pandoc so the
postprocessor can match rendered content back to ``git blame`` output.
Frontmatter, code fences and structural lines (blank lines, rules, table
rows) are never marked.
"""

from lineage.markers import LineScanner, MarkerCodec

from ..config import get_line_age_options, line_age_active

_MARKED_KEY = "line_age_marked"


def insert_line_markers(text: str, codec: MarkerCodec) -> str:
    """
    Append a marker to every eligible line of ``text``.

    Line endings (``\\n`` or ``\\r\\n``) are preserved. The marker goes before
    any trailing blanks so markdown hard line breaks keep working.
    """
    scanner = LineScanner()
    lines = text.split("\n")

    for index, line in enumerate(lines):
        content = line[:-1] if line.endswith("\r") else line
        ending = line[len(content):]

        if not scanner.is_eligible(content):
            continue

        body = content.rstrip(" \t")
        trailing = content[len(body):]
        lines[index] = f"{body}{codec.encode(index + 1)}{trailing}{ending}"

    return "\n".join(lines)


def line_age_pre(text: str, context: dict) -> str:
    """
    Mark source lines for the current render.

    Marking twice would double every marker, so the context records that this
    document has already been marked.
    """
    if not line_age_active(context) or context.get(_MARKED_KEY):
        return text

    options = get_line_age_options(context)
    context[_MARKED_KEY] = True
    return insert_line_markers(text, options.codec)
