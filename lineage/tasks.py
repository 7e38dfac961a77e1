"""
Celery tasks for rendering documents with line age annotation.

Each document is blamed and rendered on its own, so a batch is one task per
document; a file without history (or a failing file) never affects the
others. Relative document paths are taken relative to the repository root,
the same directory git blame runs in.

Workers start from the project package:
    celery -A LineAgeProject worker -l info
"""

import logging
from pathlib import Path

from celery import shared_task

logger = logging.getLogger(__name__)


def resolve_document_path(file_path, repository_root=None):
    """Absolute path of ``file_path``; relative paths are resolved against the repository root."""
    from .markdown.config import get_repository_root

    path = Path(file_path)
    if not path.is_absolute():
        path = Path(get_repository_root({"repository_root": repository_root})) / path
    return path


@shared_task
def render_document_async(file_path, repository_root=None, output_path=None, line_age=None):
    """
    Render a markdown file with line age bars.

    Args:
        file_path: Path of the markdown file, absolute or relative to the
            repository root
        repository_root: Git working directory (default: LINE_AGE_REPOSITORY_ROOT)
        output_path: Where to write the HTML; when omitted the HTML is returned
        line_age: Optional dict of LINE_AGE overrides

    Returns:
        Dict with rendering results
    """
    from .markdown.renderer import render_markdown

    path = resolve_document_path(file_path, repository_root)

    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        return {"success": False, "file_path": file_path, "error": str(e)}

    context = {
        "file_path": str(path),
        "repository_root": repository_root,
        "line_age": line_age,
    }

    try:
        html = render_markdown(text, context)
    except Exception as e:
        logger.error(f"Error rendering {file_path}: {e}", exc_info=True)
        return {"success": False, "file_path": file_path, "error": str(e)}

    result = {
        "success": True,
        "file_path": file_path,
        "annotated_lines": len(context.get("line_ages") or {}),
    }

    if output_path:
        Path(output_path).write_text(html, encoding="utf-8")
        result["output_path"] = output_path
    else:
        result["html"] = html

    return result


@shared_task
def render_documents_async(file_paths, repository_root=None, line_age=None):
    """
    Queue one render_document_async task per file.

    Returns:
        Dict with the number of queued documents and their task ids
    """
    task_ids = [
        render_document_async.delay(
            file_path, repository_root=repository_root, line_age=line_age
        ).id
        for file_path in file_paths
    ]
    return {"queued": len(task_ids), "task_ids": task_ids}
