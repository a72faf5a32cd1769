"""
View renderers.

Every renderer is a pure function from (commits, scales, selection) to an
immutable view state. Nothing here holds state between calls; the session
re-runs the relevant renderers on every state change and keeps the latest
results. View states serialize to plain dicts for JSON export, and the
scatter plot additionally renders to SVG.
"""

import html
from dataclasses import dataclass, field
from typing import AbstractSet, Any, Dict, List, Optional, Sequence, Tuple

from .commits import CommitSet, CommitSummary
from .formatting import format_full_datetime, format_hour_tick, format_long_datetime
from .scales import OrdinalScale, PlotLayout, ScaleManager
from .selection import LanguageShare, language_breakdown, selection_count_text

MARKER_FILL = "steelblue"
MARKER_OPACITY = 0.7
TOOLTIP_OFFSET = 10
SHORT_ID_LENGTH = 7


def _num(value: float) -> str:
    """Compact number for SVG attributes."""
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return "0" if text == "-0" else text


# ============================================================================
# SCATTER PLOT
# ============================================================================


@dataclass(frozen=True)
class ScatterMarker:
    commit_id: str
    cx: float
    cy: float
    r: float
    selected: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "commit_id": self.commit_id,
            "cx": round(self.cx, 3),
            "cy": round(self.cy, 3),
            "r": round(self.r, 3),
            "selected": self.selected,
        }


@dataclass(frozen=True)
class ScatterPlot:
    """Markers in draw order (largest first) plus axis ticks as (pixel, label)."""

    layout: PlotLayout
    markers: Tuple[ScatterMarker, ...]
    x_ticks: Tuple[Tuple[float, str], ...]
    y_ticks: Tuple[Tuple[float, str], ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "width": self.layout.width,
            "height": self.layout.height,
            "markers": [m.to_dict() for m in self.markers],
            "x_ticks": [[round(px, 3), label] for px, label in self.x_ticks],
            "y_ticks": [[round(px, 3), label] for px, label in self.y_ticks],
        }

    def to_svg(self) -> str:
        layout = self.layout
        parts = [
            f'<svg xmlns="http://www.w3.org/2000/svg" class="scatter" '
            f'viewBox="0 0 {_num(layout.width)} {_num(layout.height)}" '
            f'width="{_num(layout.width)}" height="{_num(layout.height)}" '
            f'style="overflow: visible">'
        ]

        parts.append(f'<g class="gridlines" transform="translate({_num(layout.left)},0)">')
        for py, _ in self.y_ticks:
            parts.append(
                f'<line x1="0" x2="{_num(layout.usable_width)}" '
                f'y1="{_num(py)}" y2="{_num(py)}" stroke="#ddd" />'
            )
        parts.append("</g>")

        parts.append(f'<g class="x-axis" transform="translate(0,{_num(layout.bottom)})">')
        parts.append(
            f'<line x1="{_num(layout.left)}" x2="{_num(layout.right)}" y1="0" y2="0" '
            f'stroke="currentColor" />'
        )
        for px, label in self.x_ticks:
            parts.append(
                f'<g class="tick" transform="translate({_num(px)},0)">'
                f'<line y2="6" stroke="currentColor" />'
                f'<text y="9" dy="0.71em" text-anchor="middle">{html.escape(label)}</text></g>'
            )
        parts.append("</g>")

        parts.append(f'<g class="y-axis" transform="translate({_num(layout.left)},0)">')
        parts.append(
            f'<line x1="0" x2="0" y1="{_num(layout.top)}" y2="{_num(layout.bottom)}" '
            f'stroke="currentColor" />'
        )
        for py, label in self.y_ticks:
            parts.append(
                f'<g class="tick" transform="translate(0,{_num(py)})">'
                f'<line x2="-6" stroke="currentColor" />'
                f'<text x="-9" dy="0.32em" text-anchor="end">{html.escape(label)}</text></g>'
            )
        parts.append("</g>")

        parts.append('<g class="dots">')
        for marker in self.markers:
            css = ' class="selected"' if marker.selected else ""
            parts.append(
                f'<circle{css} data-commit="{html.escape(marker.commit_id)}" '
                f'cx="{_num(marker.cx)}" cy="{_num(marker.cy)}" r="{_num(marker.r)}" '
                f'fill="{MARKER_FILL}" fill-opacity="{MARKER_OPACITY}">'
                f"<title>{html.escape(marker.commit_id[:SHORT_ID_LENGTH])}</title></circle>"
            )
        parts.append("</g>")
        parts.append("</svg>")
        return "\n".join(parts)


def render_scatter_plot(
    commits: Sequence[CommitSummary],
    scales: ScaleManager,
    selected_ids: AbstractSet[str] = frozenset(),
) -> ScatterPlot:
    """
    Project commits onto the time/hour plane.

    Markers are ordered by descending line count so smaller markers are
    drawn last, on top of larger ones, and stay hoverable.
    """
    radius = scales.radius_scale(commits)
    ordered = sorted(commits, key=lambda c: -c.total_lines)
    markers = tuple(
        ScatterMarker(
            commit_id=c.id,
            cx=scales.x(c.datetime),
            cy=scales.y(c.hour_frac),
            r=radius(c.total_lines),
            selected=c.id in selected_ids,
        )
        for c in ordered
    )

    x_format = scales.x.tick_format()
    x_ticks = tuple((scales.x(t), x_format(t)) for t in scales.x.ticks())
    y_ticks = tuple((scales.y(h), format_hour_tick(h)) for h in scales.y.ticks())
    return ScatterPlot(scales.layout, markers, x_ticks, y_ticks)


# ============================================================================
# TOOLTIP
# ============================================================================


@dataclass(frozen=True)
class Tooltip:
    commit_id: str
    short_id: str
    url: str
    date_text: str
    author: str
    lines: int
    left: float
    top: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "commit_id": self.commit_id,
            "short_id": self.short_id,
            "url": self.url,
            "date": self.date_text,
            "author": self.author,
            "lines": self.lines,
            "left": self.left,
            "top": self.top,
        }


def render_tooltip(commit: CommitSummary, pointer: Tuple[float, float]) -> Tooltip:
    """Tooltip for a hovered marker, placed just below-right of the pointer."""
    px, py = pointer
    return Tooltip(
        commit_id=commit.id,
        short_id=commit.id[:SHORT_ID_LENGTH],
        url=commit.url,
        date_text=format_full_datetime(commit.datetime),
        author=commit.author,
        lines=commit.total_lines,
        left=px + TOOLTIP_OFFSET,
        top=py + TOOLTIP_OFFSET,
    )


# ============================================================================
# STATS PANEL
# ============================================================================


@dataclass(frozen=True)
class CommitStats:
    commits: int = 0
    files: int = 0
    total_lines: int = 0
    max_depth: int = 0
    longest_line: int = 0
    max_lines: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "commits": self.commits,
            "files": self.files,
            "total_lines": self.total_lines,
            "max_depth": self.max_depth,
            "longest_line": self.longest_line,
            "max_lines": self.max_lines,
        }


def render_stats(commits: Sequence[CommitSummary], commit_set: CommitSet) -> CommitStats:
    """Aggregate statistics of the given commits. All zeros when empty."""
    if not commits:
        return CommitStats()

    lines = commit_set.lines_for(commits)
    return CommitStats(
        commits=len(commits),
        files=len({record.file for record in lines}),
        total_lines=sum(c.total_lines for c in commits),
        max_depth=max((record.depth for record in lines), default=0),
        longest_line=max((record.length for record in lines), default=0),
        max_lines=max(c.total_lines for c in commits),
    )


# ============================================================================
# FILE BREAKDOWN
# ============================================================================


@dataclass(frozen=True)
class FileEntry:
    """One file and one colour unit per line it contributes."""

    name: str
    units: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def line_count(self) -> int:
        return len(self.units)

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "lines": self.line_count, "units": list(self.units)}


def render_file_breakdown(
    commits: Sequence[CommitSummary], commit_set: CommitSet, colors: OrdinalScale
) -> Tuple[FileEntry, ...]:
    """Lines grouped by file, files sorted by descending line count."""
    grouped: Dict[str, List[str]] = {}
    for record in commit_set.lines_for(commits):
        grouped.setdefault(record.file, []).append(colors(record.type))

    entries = [FileEntry(name, tuple(units)) for name, units in grouped.items()]
    entries.sort(key=lambda e: -e.line_count)
    return tuple(entries)


# ============================================================================
# SELECTION COUNTER & LANGUAGE BREAKDOWN
# ============================================================================


@dataclass(frozen=True)
class SelectionView:
    count: int
    text: str
    breakdown: Tuple[LanguageShare, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "count": self.count,
            "text": self.text,
            "breakdown": [share.to_dict() for share in self.breakdown],
        }


def render_selection(
    selected: Sequence[CommitSummary], commit_set: CommitSet
) -> SelectionView:
    return SelectionView(
        count=len(selected),
        text=selection_count_text(len(selected)),
        breakdown=tuple(language_breakdown(selected, commit_set)),
    )


# ============================================================================
# SLIDER & NARRATIVE
# ============================================================================


@dataclass(frozen=True)
class SliderView:
    position: float
    cutoff_text: str

    def to_dict(self) -> Dict[str, Any]:
        return {"position": round(self.position, 4), "cutoff": self.cutoff_text}


def render_slider(position: float, cutoff) -> SliderView:
    return SliderView(position=position, cutoff_text=format_long_datetime(cutoff))


@dataclass(frozen=True)
class NarrativeStep:
    index: int
    commit_id: str
    url: str
    text: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index": self.index,
            "commit_id": self.commit_id,
            "url": self.url,
            "text": self.text,
        }


def render_narrative(commit_set: CommitSet) -> Tuple[NarrativeStep, ...]:
    """One step per commit, in chronological order."""
    steps = []
    for index, commit in enumerate(commit_set):
        files = {record.file for record in commit_set.lines_of(commit)}
        which = "my first commit" if index == 0 else "another commit"
        noun = "file" if len(files) == 1 else "files"
        text = (
            f"On {format_full_datetime(commit.datetime)}, I made {which}. "
            f"I edited {commit.total_lines} lines across {len(files)} {noun}."
        )
        steps.append(NarrativeStep(index, commit.id, commit.url, text))
    return tuple(steps)


# ============================================================================
# SNAPSHOT
# ============================================================================


@dataclass(frozen=True)
class Snapshot:
    """Every view state of a session at one instant."""

    slider: SliderView
    stats: CommitStats
    scatter: ScatterPlot
    files: Tuple[FileEntry, ...]
    selection: SelectionView
    tooltip: Optional[Tooltip]
    narrative: Tuple[NarrativeStep, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "slider": self.slider.to_dict(),
            "stats": self.stats.to_dict(),
            "scatter": self.scatter.to_dict(),
            "files": [entry.to_dict() for entry in self.files],
            "selection": self.selection.to_dict(),
            "tooltip": self.tooltip.to_dict() if self.tooltip else None,
            "narrative": [step.to_dict() for step in self.narrative],
        }
