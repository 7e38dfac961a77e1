# lineage/markdown/postprocessors/line_age.py
"""
Postprocessor that turns line markers into colored line age bars.

This postprocessor:
- Repairs heading ids and link hrefs that picked up a marker while they were
  derived from heading text
- Replaces ``<!-- line:N -->`` comments with an empty
  ``<span class="line-age-bar">`` colored by the age of line N, or removes
  the comment when line N has no blame data
- With the delimiter syntax, splits text at ``{{-line:N-}}`` and wraps the
  text before each marker in a ``line-age-container`` holding the bar
- Removes marker text that leaked into inline text such as inline code, and
  into attribute values

Output:
    <p>hello<span class="line-age-bar" style="background-color: rgb(60, 190, 111)"
       data-age="10.0" data-line="3" aria-hidden="true"></span></p>

``<pre>`` content is left alone: code block markers are removed on the tree
before HTML is written.
"""

from typing import Dict, List, Optional

from bs4 import BeautifulSoup, Comment, NavigableString, Tag

from lineage.blame import LineAgeMap
from lineage.gradient import color_for
from lineage.markers import MarkerCodec

from ..config import LineAgeOptions, get_line_age_options, line_age_active
from ..line_ages import get_document_line_ages

BAR_CLASS = "line-age-bar"
CONTAINER_CLASS = "line-age-container"

_HEADING_TAGS = ["h1", "h2", "h3", "h4", "h5", "h6"]
_VERBATIM_TAGS = {"pre", "script", "style", "textarea"}


def _inside(element, names) -> bool:
    return any(parent.name in names for parent in element.parents)


def make_bar(soup: BeautifulSoup, line_number: int, age_days: float, options: LineAgeOptions) -> Tag:
    color = color_for(age_days, options)
    return soup.new_tag(
        "span",
        attrs={
            "class": BAR_CLASS,
            "style": f"background-color: {color.css()}",
            "data-age": f"{age_days:.1f}",
            "data-line": str(line_number),
            "aria-hidden": "true",
        },
    )


def repair_identifiers(soup: BeautifulSoup, codec: MarkerCodec) -> Dict[str, str]:
    """
    Strip markers from heading ids and link hrefs.

    Returns a mapping of old heading id to repaired id; links targeting an
    old id are pointed at the new one.
    """
    renamed: Dict[str, str] = {}

    for heading in soup.find_all(_HEADING_TAGS):
        identifier = heading.get("id")
        if not identifier:
            continue
        # Only markers in the heading text can leave slug residue behind
        line_numbers = codec.line_numbers(heading.get_text())
        cleaned = codec.strip_residue(identifier, line_numbers) or "section"
        if cleaned != identifier:
            heading["id"] = cleaned
            renamed[identifier] = cleaned

    for link in soup.find_all("a", href=True):
        href = link["href"]
        if href.startswith("#") and href[1:] in renamed:
            link["href"] = "#" + renamed[href[1:]]
        elif codec.search(href):
            link["href"] = codec.strip(href)

    return renamed


def resolve_comment_markers(soup: BeautifulSoup, line_ages: LineAgeMap, options: LineAgeOptions) -> int:
    """Replace marker comments with bars. Returns the number of bars added."""
    codec = options.codec
    added = 0

    for comment in soup.find_all(string=lambda text: isinstance(text, Comment)):
        line_number = codec.decode_comment(str(comment))
        if line_number is None:
            continue

        age_days = line_ages.get(line_number)
        if age_days is None:
            comment.extract()
        else:
            comment.replace_with(make_bar(soup, line_number, age_days, options))
            added += 1

    return added


def _wrap_segments(soup: BeautifulSoup, text: str, line_ages: LineAgeMap, options: LineAgeOptions) -> List:
    pieces: List = []

    for segment, line_number in options.codec.split(text):
        age_days = line_ages.get(line_number) if line_number is not None else None

        if age_days is None or not segment.strip():
            if segment:
                pieces.append(NavigableString(segment))
            continue

        container = soup.new_tag("span", attrs={"class": CONTAINER_CLASS})
        container.append(make_bar(soup, line_number, age_days, options))
        container.append(NavigableString(segment))
        pieces.append(container)

    return pieces


def resolve_text_markers(soup: BeautifulSoup, line_ages: LineAgeMap, options: LineAgeOptions) -> int:
    """Split text nodes at delimiter markers and wrap each line's text with its bar."""
    codec = options.codec
    added = 0

    for text in soup.find_all(string=codec.pattern):
        if isinstance(text, Comment) or _inside(text, _VERBATIM_TAGS | {"code"}):
            continue

        pieces = _wrap_segments(soup, str(text), line_ages, options)
        added += sum(1 for piece in pieces if isinstance(piece, Tag))
        if pieces:
            text.replace_with(*pieces)
        else:
            text.extract()

    return added


def strip_attribute_markers(soup: BeautifulSoup, codec: MarkerCodec) -> None:
    """Remove markers from every attribute value (alt, title, data-*, ...)."""
    for tag in soup.find_all(True):
        for name, value in list(tag.attrs.items()):
            if isinstance(value, list):
                cleaned = [codec.strip(item) for item in value]
            else:
                cleaned = codec.strip(value)
            if cleaned != value:
                tag[name] = cleaned


def strip_leaked_markers(soup: BeautifulSoup, codec: MarkerCodec) -> None:
    """Remove marker text left in ordinary text nodes (inline code and the like)."""
    for text in soup.find_all(string=codec.pattern):
        if isinstance(text, Comment) or _inside(text, _VERBATIM_TAGS):
            continue
        text.replace_with(NavigableString(codec.strip(str(text))))


def line_age_post(
    html: str,
    context: dict,
    options: Optional[LineAgeOptions] = None,
    line_ages: Optional[LineAgeMap] = None,
) -> str:
    """
    Resolve line markers in rendered HTML.

    Args:
        html: HTML string to process
        context: Render context (``file_path``, ``repository_root``, ``line_ages``)
        options: LineAgeOptions (default: resolved from the context)
        line_ages: LineAgeMap (default: blamed once per render via the context)

    Returns:
        HTML with markers replaced by line age bars or removed
    """
    if not line_age_active(context):
        return html

    options = options or get_line_age_options(context)
    if line_ages is None:
        line_ages = get_document_line_ages(context)

    soup = BeautifulSoup(html, "html.parser")
    repair_identifiers(soup, options.codec)
    strip_attribute_markers(soup, options.codec)

    if options.marker_syntax == "comment":
        resolve_comment_markers(soup, line_ages, options)
    else:
        resolve_text_markers(soup, line_ages, options)
    strip_leaked_markers(soup, options.codec)

    return str(soup)


def line_age_post_default(html: str, context: dict) -> str:
    """
    Default configuration for line_age_post.

    This is the function that should be registered in POSTPROCESSORS.
    """
    return line_age_post(html, context)
