# lineage/markdown/preprocessors/__init__.py

from .line_age import line_age_pre

PREPROCESSORS = [
    line_age_pre,  # Must run exactly once, on the raw source text
    # Order matters - they run sequentially
]


def apply_preprocessors(text, context):
    """Apply all preprocessors in order"""
    for processor in PREPROCESSORS:
        text = processor(text, context)
    return text
