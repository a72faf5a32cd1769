"""
Filter Controller and exploration session.

FilterController is the only writer of the time cutoff and the filtered
commit subset. Both time inputs end in set_cutoff():

    slider position --progress.invert--> set_cutoff(t)
    narrative step  ---commit.datetime--> set_cutoff(t)  (+ slider display)

ExplorerSession is the context object for one loaded dataset. It owns the
commit set, the ScaleManager, the FilterController and the brush
selection, and funnels every input through dispatch(), which drains a FIFO
queue synchronously so handlers never interleave.
"""

import logging
import math
from collections import deque
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Deque, List, Optional, Sequence, Tuple, Union

from .commits import CommitRef, CommitSet, CommitSummary
from .formatting import format_long_datetime
from .scales import PlotLayout, ScaleManager
from .selection import SelectionRect, select_commits
from .views import (
    CommitStats,
    FileEntry,
    ScatterPlot,
    Snapshot,
    Tooltip,
    render_file_breakdown,
    render_narrative,
    render_scatter_plot,
    render_selection,
    render_slider,
    render_stats,
    render_tooltip,
)

logger = logging.getLogger(__name__)

SLIDER_MIN = 0.0
SLIDER_MAX = 100.0
BRUSH_PHASES = ("start", "brush", "end")


# ============================================================================
# MESSAGES
# ============================================================================


@dataclass(frozen=True)
class SliderMoved:
    position: float

    def __post_init__(self):
        if not math.isfinite(self.position):
            raise ValueError(f"Slider position must be finite, got {self.position}")


@dataclass(frozen=True)
class StepEntered:
    commit_id: str


@dataclass(frozen=True)
class BrushMoved:
    phase: str
    rect: Optional[SelectionRect]

    def __post_init__(self):
        if self.phase not in BRUSH_PHASES:
            raise ValueError(f"Unknown brush phase: {self.phase}")


@dataclass(frozen=True)
class Hovered:
    """Pointer entered a marker (commit_id set) or left it (commit_id None)."""

    commit_id: Optional[str]
    pointer: Tuple[float, float] = (0.0, 0.0)


Message = Union[SliderMoved, StepEntered, BrushMoved, Hovered]
Subscriber = Callable[[Tuple[CommitSummary, ...]], None]


# ============================================================================
# FILTER CONTROLLER
# ============================================================================


class FilterController:
    """
    Owns commit_max_time and filtered_commits.

    Subscribers are invoked in registration order with the new filtered
    tuple, after the controller's own state and the x scale are updated.
    """

    def __init__(self, commit_set: CommitSet, scales: ScaleManager):
        self.commit_set = commit_set
        self.scales = scales
        self._subscribers: List[Subscriber] = []

        self._slider_position = SLIDER_MAX
        self._commit_max_time = scales.progress.invert(SLIDER_MAX)
        self._filtered = self._filter(self._commit_max_time)

    def subscribe(self, callback: Subscriber):
        self._subscribers.append(callback)

    @property
    def commit_max_time(self) -> datetime:
        return self._commit_max_time

    @property
    def filtered_commits(self) -> Tuple[CommitSummary, ...]:
        return self._filtered

    @property
    def slider_position(self) -> float:
        return self._slider_position

    @property
    def cutoff_text(self) -> str:
        return format_long_datetime(self._commit_max_time)

    def _filter(self, cutoff: datetime) -> Tuple[CommitSummary, ...]:
        return tuple(c for c in self.commit_set if c.datetime <= cutoff)

    def set_cutoff(self, cutoff: datetime) -> Tuple[CommitSummary, ...]:
        """
        Make cutoff the current upper time bound (inclusive) and push the
        filtered commits to every subscriber.
        """
        filtered = self._filter(cutoff)
        self._commit_max_time = cutoff
        self._filtered = filtered
        self.scales.update_x(filtered)

        logger.debug(f"Cutoff {cutoff.isoformat()}: {len(filtered)} commits visible")
        for callback in self._subscribers:
            callback(filtered)
        return filtered

    def on_slider(self, position: float) -> Tuple[CommitSummary, ...]:
        """
        Slider channel. Position 0 is the left stop of the track and sits
        just before the earliest commit, so nothing is visible there.
        """
        if not math.isfinite(position):
            raise ValueError(f"Slider position must be finite, got {position}")
        position = min(max(float(position), SLIDER_MIN), SLIDER_MAX)
        self._slider_position = position
        if position == SLIDER_MIN:
            cutoff = self.scales.progress.domain[0] - timedelta(microseconds=1)
        else:
            cutoff = self.scales.progress.invert(position)
        return self.set_cutoff(cutoff)

    def on_step_enter(self, commit: CommitSummary) -> Tuple[CommitSummary, ...]:
        """Narrative channel; also moves the slider display to match."""
        filtered = self.set_cutoff(commit.datetime)
        self._slider_position = self.scales.progress(commit.datetime)
        return filtered


# ============================================================================
# SESSION
# ============================================================================


class ExplorerSession:
    """
    One exploration session over a loaded commit set.

    The latest view states are kept as attributes (scatter, stats, files,
    selection_view, tooltip) and bundled by snapshot().
    """

    def __init__(
        self,
        commit_set: CommitSet,
        layout: Optional[PlotLayout] = None,
        radius_range: Tuple[float, float] = (2.0, 30.0),
        initial_progress: float = SLIDER_MAX,
    ):
        self.commit_set = commit_set
        self.scales = ScaleManager(commit_set, layout, radius_range)
        self.filter = FilterController(commit_set, self.scales)

        self.selection: Optional[SelectionRect] = None
        self.selected: Tuple[CommitSummary, ...] = ()
        self.tooltip: Optional[Tooltip] = None

        self.narrative = render_narrative(commit_set)
        self.scatter: ScatterPlot = render_scatter_plot(commit_set.commits, self.scales)
        self.stats: CommitStats = render_stats(commit_set.commits, commit_set)
        self.files: Tuple[FileEntry, ...] = render_file_breakdown(
            commit_set.commits, commit_set, self.scales.type_colors
        )
        self.selection_view = render_selection((), commit_set)

        self.filter.subscribe(self._update_scatter)
        self.filter.subscribe(self._update_stats)
        self.filter.subscribe(self._update_files)

        self._queue: Deque[Message] = deque()
        self._draining = False

        if initial_progress != SLIDER_MAX:
            self.dispatch(SliderMoved(initial_progress))

    # -- subscribers --------------------------------------------------------

    def _update_scatter(self, commits: Sequence[CommitSummary]):
        selected_ids = frozenset(c.id for c in self.selected)
        self.scatter = render_scatter_plot(commits, self.scales, selected_ids)

    def _update_stats(self, commits: Sequence[CommitSummary]):
        self.stats = render_stats(commits, self.commit_set)

    def _update_files(self, commits: Sequence[CommitSummary]):
        self.files = render_file_breakdown(
            commits, self.commit_set, self.scales.type_colors
        )

    # -- input --------------------------------------------------------------

    def dispatch(self, message: Message):
        """
        Queue a message and, unless already draining, process the queue.

        A message dispatched from inside a handler runs after the current
        handler returns, in arrival order.
        """
        self._queue.append(message)
        if self._draining:
            return

        self._draining = True
        try:
            while self._queue:
                self._handle(self._queue.popleft())
        finally:
            self._draining = False
            self._queue.clear()

    def _handle(self, message: Message):
        if isinstance(message, SliderMoved):
            self.filter.on_slider(message.position)
        elif isinstance(message, StepEntered):
            self.filter.on_step_enter(self.commit_set.get(message.commit_id))
        elif isinstance(message, BrushMoved):
            self.set_selection(message.rect)
        elif isinstance(message, Hovered):
            self.set_hover(message.commit_id, message.pointer)
        else:
            raise TypeError(f"Unsupported message: {message!r}")

    def set_selection(self, rect: Optional[SelectionRect]):
        """Re-classify the full commit set against rect with the current scales."""
        self.selection = rect
        self.selected = tuple(
            select_commits(rect, self.commit_set.commits, self.scales.x, self.scales.y)
        )
        self._update_scatter(self.filter.filtered_commits)
        self.selection_view = render_selection(self.selected, self.commit_set)

    def set_hover(self, commit_id: Optional[str], pointer: Tuple[float, float]):
        if commit_id is None:
            self.tooltip = None
            return
        self.tooltip = render_tooltip(self.commit_set.get(commit_id), pointer)

    # -- convenience --------------------------------------------------------

    def move_slider(self, position: float):
        self.dispatch(SliderMoved(position))

    def enter_step(self, commit: CommitRef):
        commit_id = commit.id if isinstance(commit, CommitSummary) else commit
        self.dispatch(StepEntered(commit_id))

    def brush(self, rect: Optional[SelectionRect], phase: str = "end"):
        self.dispatch(BrushMoved(phase, rect))

    @property
    def filtered_commits(self) -> Tuple[CommitSummary, ...]:
        return self.filter.filtered_commits

    def snapshot(self) -> Snapshot:
        return Snapshot(
            slider=render_slider(self.filter.slider_position, self.filter.commit_max_time),
            stats=self.stats,
            scatter=self.scatter,
            files=self.files,
            selection=self.selection_view,
            tooltip=self.tooltip,
            narrative=self.narrative,
        )
