# lineage/markdown/postprocessors/__init__.py

from .line_age import line_age_post_default

POSTPROCESSORS = [
    line_age_post_default,  # Resolve line markers into line age bars
    # Order matters - they run sequentially
]


def apply_postprocessors(html, context):
    """Apply all postprocessors in order"""
    for processor in POSTPROCESSORS:
        html = processor(html, context)
    return html
