"""
Commit aggregation: line records -> one summary per commit.

A CommitSummary only carries the public, serializable commit fields. The
line records that make up each commit are owned by the CommitSet in a
private side-table keyed by commit id, and are reached through
CommitSet.lines_of() / CommitSet.lines_for() for drill-down aggregation.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple, Union

from .errors import UnknownCommitError
from .records import LineRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommitSummary:
    """One commit, with canonical fields taken from its first line record."""

    id: str
    url: str
    author: str
    date: datetime
    time: str
    timezone: str
    datetime: datetime
    hour_frac: float
    total_lines: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "url": self.url,
            "author": self.author,
            "date": self.date.isoformat(),
            "time": self.time,
            "timezone": self.timezone,
            "datetime": self.datetime.isoformat(),
            "hour_frac": round(self.hour_frac, 4),
            "total_lines": self.total_lines,
        }


CommitRef = Union[CommitSummary, str]


class CommitSet:
    """
    The full, time-sorted commit sequence of one dataset.

    The order is fixed at construction and never changes; views that need
    another order (e.g. by size) sort a copy.
    """

    def __init__(
        self,
        commits: Sequence[CommitSummary],
        lines: Dict[str, Tuple[LineRecord, ...]],
    ):
        self._commits = tuple(commits)
        self._lines = dict(lines)
        self._by_id = {c.id: c for c in self._commits}

    def __iter__(self) -> Iterator[CommitSummary]:
        return iter(self._commits)

    def __len__(self) -> int:
        return len(self._commits)

    def __getitem__(self, index):
        return self._commits[index]

    def __contains__(self, commit: CommitRef) -> bool:
        commit_id = commit.id if isinstance(commit, CommitSummary) else commit
        return commit_id in self._by_id

    @property
    def commits(self) -> Tuple[CommitSummary, ...]:
        return self._commits

    def get(self, commit_id: str) -> CommitSummary:
        try:
            return self._by_id[commit_id]
        except KeyError:
            raise UnknownCommitError(commit_id) from None

    def lines_of(self, commit: CommitRef) -> Tuple[LineRecord, ...]:
        """Line records of one commit, in dataset order."""
        commit_id = commit.id if isinstance(commit, CommitSummary) else commit
        try:
            return self._lines[commit_id]
        except KeyError:
            raise UnknownCommitError(commit_id) from None

    def lines_for(self, commits: Iterable[CommitRef]) -> List[LineRecord]:
        """Flattened line records of several commits."""
        lines = []
        for commit in commits:
            lines.extend(self.lines_of(commit))
        return lines

    def extent(self) -> Optional[Tuple[datetime, datetime]]:
        """(earliest, latest) commit datetime, or None for an empty set."""
        if not self._commits:
            return None
        return self._commits[0].datetime, self._commits[-1].datetime

    def types(self) -> List[str]:
        """Distinct line types in first-seen order across the sorted commits."""
        seen = {}
        for commit in self._commits:
            for record in self._lines[commit.id]:
                seen.setdefault(record.type, None)
        return list(seen)


def _hour_fraction(moment: datetime) -> float:
    return moment.hour + moment.minute / 60


def commit_url(commit_id: str, repo_url: str = "") -> str:
    if not repo_url:
        return commit_id
    return f"{repo_url.rstrip('/')}/commit/{commit_id}"


def aggregate_commits(records: Iterable[LineRecord], repo_url: str = "") -> CommitSet:
    """
    Group line records by commit id into CommitSummary objects.

    Canonical commit fields (author, date, time, timezone, datetime) come
    from the first record of each commit. Records for one commit are assumed
    to agree on these fields; disagreements are not detected.

    Args:
        records: Line records in dataset order
        repo_url: Optional repository URL used to build commit links

    Returns:
        CommitSet sorted ascending by commit datetime
    """
    groups: Dict[str, List[LineRecord]] = {}
    for record in records:
        groups.setdefault(record.commit_id, []).append(record)

    summaries = []
    for commit_id, lines in groups.items():
        first = lines[0]
        summaries.append(
            CommitSummary(
                id=commit_id,
                url=commit_url(commit_id, repo_url),
                author=first.author,
                date=first.date,
                time=first.time,
                timezone=first.timezone,
                datetime=first.datetime,
                hour_frac=_hour_fraction(first.datetime),
                total_lines=len(lines),
            )
        )

    # list.sort is stable: equal datetimes keep first-encounter order
    summaries.sort(key=lambda c: c.datetime)

    logger.debug(f"Aggregated {len(summaries):,} commits")
    return CommitSet(summaries, {k: tuple(v) for k, v in groups.items()})
