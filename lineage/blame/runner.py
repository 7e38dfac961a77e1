# lineage/blame/runner.py
"""
Run ``git blame`` for a document and turn the result into a LineAgeMap.

Every failure (git missing, untracked file, non-zero exit, timeout) is the
"no history available" state: it is logged as a warning and an empty map is
returned so the document still renders, just without line age bars.
"""

import logging
import os
import subprocess
from dataclasses import dataclass
from typing import Optional

from django.utils import timezone

from .parser import LineAgeMap, parse_blame_output

logger = logging.getLogger(__name__)

BLAME_FORMAT_FLAGS = {
    "porcelain": "--porcelain",
    "line-porcelain": "--line-porcelain",
}


class BlameUnavailable(Exception):
    """git blame could not produce attribution data for a file."""


@dataclass(frozen=True)
class BlameOutput:
    returncode: int
    stdout: str
    stderr: str


def run_blame(
    file_path: str,
    working_directory: str,
    blame_format: str = "porcelain",
    timeout: Optional[float] = None,
) -> BlameOutput:
    """
    Run git blame and capture its output.

    Raises:
        BlameUnavailable: git could not be executed or did not finish in time
    """
    cmd = ["git", "blame", BLAME_FORMAT_FLAGS[blame_format], "--", file_path]

    try:
        result = subprocess.run(
            cmd,
            cwd=working_directory,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            timeout=timeout,
        )
    except subprocess.TimeoutExpired as exc:
        raise BlameUnavailable(f"git blame timed out after {exc.timeout}s") from exc
    except OSError as exc:
        raise BlameUnavailable(f"could not run git: {exc}") from exc

    return BlameOutput(result.returncode, result.stdout, result.stderr)


def blame_path(file_path: str, repository_root: str) -> str:
    """Path of ``file_path`` as git blame expects it, relative to the repository root."""
    if os.path.isabs(file_path):
        return os.path.relpath(file_path, repository_root)
    return file_path


def get_line_ages(
    file_path: str,
    repository_root: str,
    now=None,
    blame_format: str = "porcelain",
    timeout: Optional[float] = None,
) -> LineAgeMap:
    """
    Return the age in days of every blamed line of ``file_path``.

    Args:
        file_path: Absolute path, or path relative to ``repository_root``
        repository_root: Working directory git blame runs in
        now: Reference instant (aware datetime or unix seconds); defaults to now
        blame_format: "porcelain" or "line-porcelain"
        timeout: Optional limit in seconds for the git process

    Returns:
        LineAgeMap, empty when no history is available
    """
    relative_path = blame_path(file_path, repository_root)

    try:
        output = run_blame(relative_path, repository_root, blame_format, timeout)
        if output.returncode != 0:
            raise BlameUnavailable(
                f"git blame exited with status {output.returncode}: {output.stderr.strip()}"
            )
    except BlameUnavailable as exc:
        logger.warning(f"Failed to get git blame for {relative_path}: {exc}")
        return {}

    if now is None:
        now = timezone.now()

    line_ages = parse_blame_output(output.stdout, now)
    logger.debug(f"Blamed {len(line_ages)} lines of {relative_path}")
    return line_ages
