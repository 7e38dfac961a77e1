from lineage.blame import LineAgeMap, get_line_ages

from .config import get_line_age_options, get_repository_root

_LINE_AGES_KEY = "line_ages"


def get_document_line_ages(context: dict) -> LineAgeMap:
    """
    Return the LineAgeMap for the document being rendered.

    Blame runs at most once per render: the result is stored in
    ``context["line_ages"]``. Callers may also supply the map up front.
    """
    line_ages = context.get(_LINE_AGES_KEY)
    if line_ages is None:
        options = get_line_age_options(context)
        line_ages = get_line_ages(
            context["file_path"],
            get_repository_root(context),
            now=context.get("now"),
            blame_format=options.blame_format,
            timeout=options.blame_timeout,
        )
        context[_LINE_AGES_KEY] = line_ages
    return line_ages
