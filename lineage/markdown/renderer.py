# lineage/markdown/renderer.py

import json

import pypandoc

from .config import get_line_age_options, get_pandoc_config, line_age_active
from .line_ages import get_document_line_ages
from .postprocessors import apply_postprocessors
from .preprocessors import apply_preprocessors
from .treeprocessors import apply_treeprocessors


def parse_markdown(text):
    """Read markdown into Pandoc's JSON AST (a dict with "meta" and "blocks")."""
    pandoc_config = get_pandoc_config()
    output = pypandoc.convert_text(
        text,
        to="json",
        format=pandoc_config["reader_format"],
        extra_args=pandoc_config["reader_args"],
    )
    return json.loads(output)


def write_html(ast):
    """Write a Pandoc JSON AST out as an HTML5 fragment."""
    pandoc_config = get_pandoc_config()
    return pypandoc.convert_text(
        json.dumps(ast),
        to=pandoc_config["writer_format"],
        format="json",
        extra_args=pandoc_config["writer_args"],
    )


def render_markdown(text, context=None):
    """
    Main rendering function with pre/tree/post processing pipeline using pypandoc

    Args:
        text: Raw markdown text
        context: Optional dict for processors that need additional data.
            Line age annotation reads ``file_path`` (the document's path),
            ``repository_root``, ``line_age`` (option overrides) and
            ``line_ages`` (a precomputed LineAgeMap).
    """
    if context is None:
        context = {}

    # Invalid LINE_AGE settings fail here, before any work is done
    get_line_age_options(context)

    # Pre-processing: Before markdown conversion
    text = apply_preprocessors(text, context)

    # Markdown -> document tree, then tree processing
    ast = parse_markdown(text)
    ast = apply_treeprocessors(ast, context)

    # Document tree -> HTML
    html = write_html(ast)

    # Blame the document once for all postprocessors
    if line_age_active(context):
        get_document_line_ages(context)

    # Post-processing: After markdown conversion
    html = apply_postprocessors(html, context)

    return html
