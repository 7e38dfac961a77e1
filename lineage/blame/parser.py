# lineage/blame/parser.py
"""
Parse ``git blame --porcelain`` / ``--line-porcelain`` output into line ages.

Both formats are a sequence of attribution blocks:

    <sha> <orig-line> <final-line> [<lines-in-group>]
    author ...
    committer-time 1577836800
    ...
    \t<content of the line>

``--line-porcelain`` repeats the commit metadata for every line, while
``--porcelain`` prints it only the first time a commit appears. The parser is
one small state machine that handles both: it remembers each commit's
committer time so later blocks for the same commit inherit it.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterator, Optional, Union

SECONDS_PER_DAY = 86400

_HEADER_RE = re.compile(r"^(?P<sha>[0-9a-f]{40,64}) \d+ \d+(?: \d+)?$")
_COMMITTER_TIME_PREFIX = "committer-time "

LineAgeMap = Dict[int, float]


@dataclass(frozen=True)
class BlameRecord:
    line_number: int
    commit_time: int


class BlameParser:
    """
    Streaming parser for porcelain blame output.

    State is reset at the start of every ``iter_records`` call, so a single
    instance can be reused for several files.
    """

    def __init__(self):
        self._reset()

    def _reset(self) -> None:
        self.pending_commit_time: Optional[int] = None
        self.current_line = 1
        self.current_commit: Optional[str] = None
        self.commit_times: Dict[str, int] = {}

    def iter_records(self, raw_output: str) -> Iterator[BlameRecord]:
        self._reset()

        for line in raw_output.split("\n"):
            # Content lines first: their text may look like anything else.
            if line.startswith("\t"):
                if self.pending_commit_time is not None:
                    yield BlameRecord(self.current_line, self.pending_commit_time)
                self.current_line += 1
                self.pending_commit_time = None
                continue

            if line.startswith(_COMMITTER_TIME_PREFIX):
                commit_time = _parse_int(line[len(_COMMITTER_TIME_PREFIX):])
                if commit_time is not None:
                    self.pending_commit_time = commit_time
                    if self.current_commit:
                        self.commit_times[self.current_commit] = commit_time
                continue

            header = _HEADER_RE.match(line)
            if header:
                self.current_commit = header.group("sha")
                known = self.commit_times.get(self.current_commit)
                if known is not None:
                    self.pending_commit_time = known

    def parse(self, raw_output: str, now: Union[float, datetime]) -> LineAgeMap:
        """
        Map each blamed line number to its age in days as of ``now``.

        Args:
            raw_output: Unmodified stdout of ``git blame --porcelain``
                or ``--line-porcelain``
            now: Reference instant, as unix seconds or an aware datetime

        Returns:
            Dict of 1-based line number to age in days. Lines without a
            committer time are absent.
        """
        now_seconds = now.timestamp() if isinstance(now, datetime) else float(now)
        return {
            record.line_number: max(now_seconds - record.commit_time, 0) / SECONDS_PER_DAY
            for record in self.iter_records(raw_output)
        }


def _parse_int(value: str) -> Optional[int]:
    try:
        return int(value.strip())
    except ValueError:
        return None


def parse_blame_output(raw_output: str, now: Union[float, datetime]) -> LineAgeMap:
    return BlameParser().parse(raw_output, now)
