"""
Brush selection: which commits fall inside a screen-space rectangle.

Membership is always evaluated over the FULL commit set with the current
x/y scales. Brushing is a spatial filter orthogonal to the time cutoff;
the two only compose visually.
"""

from collections import Counter
from dataclasses import dataclass
from typing import List, Optional, Sequence

from .commits import CommitSet, CommitSummary
from .formatting import format_percent
from .scales import LinearScale, TimeScale


@dataclass(frozen=True)
class SelectionRect:
    """Axis-aligned brush rectangle in plot pixels, normalized so x0<=x1, y0<=y1."""

    x0: float
    y0: float
    x1: float
    y1: float

    def __post_init__(self):
        if self.x0 > self.x1:
            x0, x1 = self.x1, self.x0
            object.__setattr__(self, "x0", x0)
            object.__setattr__(self, "x1", x1)
        if self.y0 > self.y1:
            y0, y1 = self.y1, self.y0
            object.__setattr__(self, "y0", y0)
            object.__setattr__(self, "y1", y1)

    @classmethod
    def from_corners(cls, corners) -> "SelectionRect":
        """Build from d3-brush style [[x0, y0], [x1, y1]]."""
        (x0, y0), (x1, y1) = corners
        return cls(float(x0), float(y0), float(x1), float(y1))

    def contains(self, x: float, y: float) -> bool:
        return self.x0 <= x <= self.x1 and self.y0 <= y <= self.y1

    def to_corners(self):
        return [[self.x0, self.y0], [self.x1, self.y1]]


def is_commit_selected(
    rect: Optional[SelectionRect],
    commit: CommitSummary,
    x_scale: TimeScale,
    y_scale: LinearScale,
) -> bool:
    if rect is None:
        return False
    return rect.contains(x_scale(commit.datetime), y_scale(commit.hour_frac))


def select_commits(
    rect: Optional[SelectionRect],
    commits: Sequence[CommitSummary],
    x_scale: TimeScale,
    y_scale: LinearScale,
) -> List[CommitSummary]:
    """Commits whose marker centre lies inside rect (inclusive). None -> []."""
    if rect is None:
        return []
    return [c for c in commits if is_commit_selected(rect, c, x_scale, y_scale)]


def selection_count_text(count: int) -> str:
    if count == 0:
        return "No commits selected"
    noun = "commit" if count == 1 else "commits"
    return f"{count} {noun} selected"


@dataclass(frozen=True)
class LanguageShare:
    type: str
    count: int
    proportion: float

    @property
    def percent_text(self) -> str:
        return format_percent(self.proportion)

    def to_dict(self):
        return {
            "type": self.type,
            "count": self.count,
            "proportion": round(self.proportion, 6),
            "percent": self.percent_text,
        }


def language_breakdown(
    selected: Sequence[CommitSummary], commit_set: CommitSet
) -> List[LanguageShare]:
    """
    Line counts per line type over the selected commits.

    An empty selection falls back to the whole dataset. The selection
    counter deliberately does not share this fallback.
    """
    source = selected if selected else commit_set.commits
    lines = commit_set.lines_for(source)
    if not lines:
        return []

    # Counter keeps first-seen key order
    counts = Counter(record.type for record in lines)
    total = len(lines)
    return [
        LanguageShare(type=kind, count=count, proportion=count / total)
        for kind, count in counts.items()
    ]
