# lineage/templatetags/line_age_tags.py

from django import template
from django.utils.safestring import mark_safe

from lineage.markdown.renderer import render_markdown

register = template.Library()


@register.filter(name="line_age_markdown")
def line_age_markdown_filter(value, file_path):
    """Render markdown with line age bars blamed from ``file_path``"""
    return mark_safe(render_markdown(value, context={"file_path": file_path}))


@register.simple_tag(takes_context=True)
def line_age_markdown(context, value, file_path, **line_age):
    """
    Template tag that passes LINE_AGE overrides and the repository root.

    Usage:
      {% line_age_markdown document.body document.path max_age_days=90 %}
    """
    processor_context = {
        "file_path": file_path,
        "repository_root": context.get("repository_root"),
        "line_age": line_age or None,
    }
    return mark_safe(render_markdown(value, context=processor_context))
