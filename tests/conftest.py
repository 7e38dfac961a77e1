"""
Shared fixtures for the lineage test suite.

Provides:
  - render contexts for both marker syntaxes
  - a throwaway git repository whose commits carry fixed dates
"""

from __future__ import annotations

import os
import shutil
import subprocess
from datetime import datetime, timezone
from pathlib import Path

import pytest

from lineage.markdown.config import LineAgeOptions

GIT = shutil.which("git")

# Fixed instants used by the repository fixture and the tests that read it
JAN_01 = "1704067200 +0000"  # 2024-01-01T00:00:00Z
JAN_11 = "1704931200 +0000"  # 2024-01-11T00:00:00Z
JAN_21 = datetime(2024, 1, 21, tzinfo=timezone.utc)


class GitRepo:
    """Minimal wrapper around a temporary git repository."""

    def __init__(self, root: Path):
        self.root = root

    def git(self, *args: str, date: str | None = None) -> subprocess.CompletedProcess:
        env = dict(
            os.environ,
            HOME=str(self.root),
            GIT_CONFIG_NOSYSTEM="1",
            GIT_AUTHOR_NAME="Test Author",
            GIT_AUTHOR_EMAIL="author@example.com",
            GIT_COMMITTER_NAME="Test Author",
            GIT_COMMITTER_EMAIL="author@example.com",
        )
        if date:
            env["GIT_AUTHOR_DATE"] = date
            env["GIT_COMMITTER_DATE"] = date
        return subprocess.run(
            ["git", "-c", "commit.gpgsign=false", *args],
            cwd=self.root,
            env=env,
            check=True,
            capture_output=True,
            text=True,
        )

    def write(self, relative_path: str, content: str) -> Path:
        path = self.root / relative_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    def commit(self, relative_path: str, content: str, date: str) -> Path:
        path = self.write(relative_path, content)
        self.git("add", relative_path)
        self.git("commit", "-q", "-m", f"Update {relative_path}", date=date)
        return path


@pytest.fixture
def git_repo(tmp_path) -> GitRepo:
    if GIT is None:
        pytest.skip("git is not installed")
    root = tmp_path / "repo"
    root.mkdir()
    repo = GitRepo(root)
    repo.git("init", "-q")
    return repo


@pytest.fixture
def history_repo(git_repo) -> GitRepo:
    """doc.md with lines 1-2 committed on Jan 1 and line 3 rewritten on Jan 11."""
    git_repo.commit("doc.md", "# Title\n\nfirst draft\n", JAN_01)
    git_repo.commit("doc.md", "# Title\n\nhello\n", JAN_11)
    return git_repo


@pytest.fixture
def comment_options() -> LineAgeOptions:
    return LineAgeOptions()


@pytest.fixture
def delimiter_options() -> LineAgeOptions:
    return LineAgeOptions(marker_syntax="delimiter")


@pytest.fixture
def comment_context(comment_options) -> dict:
    return {"file_path": "doc.md", "line_age": comment_options}


@pytest.fixture
def delimiter_context(delimiter_options) -> dict:
    return {"file_path": "doc.md", "line_age": delimiter_options}


@pytest.fixture
def fake_blame(monkeypatch):
    """
    Replace git blame with a fixed LineAgeMap.

    Returns the list of calls so tests can check the arguments blame received.
    """
    calls: list[dict] = []

    def install(line_ages: dict):
        def fake_get_line_ages(file_path, repository_root, now=None, **kwargs):
            calls.append(
                {"file_path": file_path, "repository_root": repository_root, "now": now, **kwargs}
            )
            return dict(line_ages)

        monkeypatch.setattr("lineage.markdown.line_ages.get_line_ages", fake_get_line_ages)
        return calls

    return install
