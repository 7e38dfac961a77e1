# lineage/markdown/treeprocessors/__init__.py

from .line_age import line_age_mid
from .toc import collect_toc

TREEPROCESSORS = [
    collect_toc,  # Headings -> context["toc"]
    line_age_mid,  # Must run after anything that derives text from headings
    # Order matters - they run sequentially
]


def apply_treeprocessors(ast, context):
    """Apply all tree processors to the Pandoc JSON AST in order"""
    for processor in TREEPROCESSORS:
        ast = processor(ast, context)
    return ast
