import math
import os
from dataclasses import dataclass
from typing import Optional

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

from lineage.blame.runner import BLAME_FORMAT_FLAGS
from lineage.gradient import (
    DEFAULT_FRESH_COLOR,
    DEFAULT_MAX_AGE_DAYS,
    DEFAULT_OLD_COLOR,
    RGBColor,
)
from lineage.markers import MARKER_CODECS, MarkerCodec, get_codec

_OPTIONS_KEY = "line_age_options"


def get_pandoc_config():
    """
    Configuration for pypandoc/Pandoc markdown rendering.

    Rendering runs in two Pandoc passes so the document tree can be cleaned in
    between: markdown is read into Pandoc's JSON AST, tree processors run on
    the AST, and the AST is then written out as HTML5.

    Pandoc's markdown reader already enables tables, fenced code, footnotes,
    raw HTML, header attributes, YAML metadata blocks and smart typography.
    """
    return {
        "reader_format": "markdown+autolink_bare_uris+hard_line_breaks",
        "reader_args": [],
        "writer_format": "html5",
        "writer_args": [
            # Keep text nodes on their source lines
            "--wrap=none",
        ],
    }


@dataclass(frozen=True)
class LineAgeOptions:
    """
    Line age settings for one render.

    Built from ``settings.LINE_AGE`` plus per-render overrides and validated
    on construction; an invalid value raises ImproperlyConfigured.
    """

    enabled: bool = True
    max_age_days: float = DEFAULT_MAX_AGE_DAYS
    fresh_color: RGBColor = DEFAULT_FRESH_COLOR
    old_color: RGBColor = DEFAULT_OLD_COLOR
    marker_syntax: str = "comment"
    blame_format: str = "porcelain"
    blame_timeout: Optional[float] = None

    def __post_init__(self):
        if not isinstance(self.enabled, bool):
            raise ImproperlyConfigured(
                f"LINE_AGE['enabled'] must be True or False, got {self.enabled!r}"
            )

        max_age = self.max_age_days
        if (
            isinstance(max_age, bool)
            or not isinstance(max_age, (int, float))
            or not math.isfinite(max_age)
            or max_age <= 0
        ):
            raise ImproperlyConfigured(
                f"LINE_AGE['max_age_days'] must be a positive number, got {max_age!r}"
            )

        for name in ("fresh_color", "old_color"):
            try:
                color = RGBColor.from_value(getattr(self, name))
            except ValueError as exc:
                raise ImproperlyConfigured(f"LINE_AGE['{name}']: {exc}") from exc
            object.__setattr__(self, name, color)

        if self.marker_syntax not in MARKER_CODECS:
            raise ImproperlyConfigured(
                f"LINE_AGE['marker_syntax'] must be one of {sorted(MARKER_CODECS)}, "
                f"got {self.marker_syntax!r}"
            )
        if self.blame_format not in BLAME_FORMAT_FLAGS:
            raise ImproperlyConfigured(
                f"LINE_AGE['blame_format'] must be one of {sorted(BLAME_FORMAT_FLAGS)}, "
                f"got {self.blame_format!r}"
            )
        timeout = self.blame_timeout
        if timeout is not None and (
            isinstance(timeout, bool)
            or not isinstance(timeout, (int, float))
            or not math.isfinite(timeout)
            or timeout <= 0
        ):
            raise ImproperlyConfigured(
                f"LINE_AGE['blame_timeout'] must be a positive number or None, got {timeout!r}"
            )

    @property
    def codec(self) -> MarkerCodec:
        return get_codec(self.marker_syntax)

    @classmethod
    def from_settings(cls, overrides: Optional[dict] = None) -> "LineAgeOptions":
        values = dict(getattr(settings, "LINE_AGE", None) or {})
        values.update(overrides or {})

        unknown = set(values) - set(cls.__dataclass_fields__)
        if unknown:
            raise ImproperlyConfigured(
                f"Unknown LINE_AGE option(s): {', '.join(sorted(unknown))}"
            )
        return cls(**values)


def get_line_age_options(context: dict) -> LineAgeOptions:
    """
    Return the LineAgeOptions for the render described by ``context``.

    ``context["line_age"]`` may hold a LineAgeOptions instance or a dict of
    overrides for ``settings.LINE_AGE``. The resolved value is cached in the
    context so every stage of one render sees the same options.
    """
    options = context.get(_OPTIONS_KEY)
    if options is None:
        requested = context.get("line_age")
        if isinstance(requested, LineAgeOptions):
            options = requested
        else:
            options = LineAgeOptions.from_settings(requested)
        context[_OPTIONS_KEY] = options
    return options


def get_repository_root(context: dict) -> str:
    return (
        context.get("repository_root")
        or getattr(settings, "LINE_AGE_REPOSITORY_ROOT", None)
        or os.getcwd()
    )


def line_age_active(context: dict) -> bool:
    """Line age stages only run when enabled and the document has a file path."""
    return get_line_age_options(context).enabled and bool(context.get("file_path"))
