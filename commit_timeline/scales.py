"""
Coordinate scales and the Scale Manager.

The scale classes follow d3-scale semantics:
- continuous scales interpolate linearly between domain and range
- a degenerate domain (d0 == d1) maps every value to the range midpoint
- invert() maps a range value back into the domain
- ticks() uses d3's tick-increment rule (1, 2, 5 x 10^k steps)
- time scales nice() their domain to calendar boundaries

The ScaleManager owns every scale used by the views. Scales are derived
from the FULL commit set so axis extents stay stable while filtering; the
x scale alone is re-fitted to the visible subset on each filter update.
"""

import bisect
import copy
import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .commits import CommitSet, CommitSummary

logger = logging.getLogger(__name__)

EPOCH = datetime.fromtimestamp(0, timezone.utc)

# d3.schemeTableau10
TABLEAU10 = (
    "#4e79a7",
    "#f28e2c",
    "#e15759",
    "#76b7b2",
    "#59a14f",
    "#edc949",
    "#af7aa1",
    "#ff9da7",
    "#9c755f",
    "#bab0ab",
)

_E10 = math.sqrt(50)
_E5 = math.sqrt(10)
_E2 = math.sqrt(2)


def tick_step(start: float, stop: float, count: int = 10) -> float:
    """Size of a 'nice' tick step so that roughly count ticks span the domain."""
    if count <= 0:
        return 0.0
    raw = abs(stop - start) / count
    if raw == 0 or not math.isfinite(raw):
        return 0.0

    step = 10 ** math.floor(math.log10(raw))
    error = raw / step
    if error >= _E10:
        step *= 10
    elif error >= _E5:
        step *= 5
    elif error >= _E2:
        step *= 2
    return step if stop >= start else -step


def linear_ticks(start: float, stop: float, count: int = 10) -> List[float]:
    if start == stop:
        return [start]
    lo, hi = min(start, stop), max(start, stop)
    step = abs(tick_step(lo, hi, count))
    if step == 0:
        return []

    first = math.ceil(lo / step)
    last = math.floor(hi / step)
    ticks = [round(i * step, 12) for i in range(first, last + 1)]
    return ticks if stop >= start else ticks[::-1]


# ============================================================================
# CONTINUOUS SCALES
# ============================================================================


class LinearScale:
    """Linear map from a numeric domain to a numeric range."""

    def __init__(self, domain=(0.0, 1.0), range_=(0.0, 1.0)):
        self.domain = tuple(domain)
        self.range = tuple(range_)

    # Hooks for non-linear and non-numeric subclasses
    def _forward(self, value) -> float:
        return float(value)

    def _backward(self, value: float):
        return value

    def _unit(self, value) -> float:
        d0, d1 = (self._forward(d) for d in self.domain)
        if d1 == d0:
            return 0.5
        return (self._forward(value) - d0) / (d1 - d0)

    def __call__(self, value) -> float:
        t = self._unit(value)
        r0, r1 = self.range
        return r0 * (1 - t) + r1 * t

    def invert(self, value: float):
        r0, r1 = self.range
        t = 0.5 if r1 == r0 else (value - r0) / (r1 - r0)
        d0, d1 = (self._forward(d) for d in self.domain)
        return self._backward(d0 * (1 - t) + d1 * t)

    def ticks(self, count: int = 10) -> list:
        return linear_ticks(self.domain[0], self.domain[-1], count)

    def copy(self):
        return copy.copy(self)

    def __repr__(self):
        return f"{type(self).__name__}(domain={self.domain}, range={self.range})"


class SqrtScale(LinearScale):
    """
    Square-root scale. Used for marker radii so that marker AREA, not
    radius, is proportional to the input value.
    """

    def _forward(self, value) -> float:
        value = float(value)
        return math.copysign(math.sqrt(abs(value)), value)

    def _backward(self, value: float) -> float:
        return math.copysign(value * value, value)


# ----------------------------------------------------------------------------
# Calendar intervals for time scales
# ----------------------------------------------------------------------------

_UNIT_SECONDS = {
    "second": 1,
    "minute": 60,
    "hour": 3600,
    "day": 86400,
    "week": 7 * 86400,
    "month": 30 * 86400,
    "year": 365 * 86400,
}

TIME_INTERVALS: Tuple[Tuple[str, int], ...] = (
    ("second", 1),
    ("second", 5),
    ("second", 15),
    ("second", 30),
    ("minute", 1),
    ("minute", 5),
    ("minute", 15),
    ("minute", 30),
    ("hour", 1),
    ("hour", 3),
    ("hour", 6),
    ("hour", 12),
    ("day", 1),
    ("day", 2),
    ("week", 1),
    ("month", 1),
    ("month", 3),
    ("year", 1),
)

_INTERVAL_SECONDS = [_UNIT_SECONDS[unit] * step for unit, step in TIME_INTERVALS]

TICK_FORMATS = {
    "second": ":%S",
    "minute": "%I:%M",
    "hour": "%I %p",
    "day": "%b %d",
    "week": "%b %d",
    "month": "%B",
    "year": "%Y",
}


def choose_interval(start: float, stop: float, count: int = 10) -> Tuple[str, int]:
    """
    Pick the calendar interval whose duration is closest to span / count.

    Args:
        start: Domain start as a POSIX timestamp
        stop: Domain end as a POSIX timestamp
        count: Desired number of ticks
    """
    target = abs(stop - start) / count
    i = bisect.bisect_right(_INTERVAL_SECONDS, target)
    if i == len(TIME_INTERVALS):
        year = _UNIT_SECONDS["year"]
        step = abs(tick_step(start / year, stop / year, count))
        return "year", max(1, int(round(step)))
    if i == 0:
        return "second", 1
    if target / _INTERVAL_SECONDS[i - 1] < _INTERVAL_SECONDS[i] / target:
        return TIME_INTERVALS[i - 1]
    return TIME_INTERVALS[i]


def floor_time(moment: datetime, unit: str, step: int = 1) -> datetime:
    """Round a datetime down to the start of its interval, in its own offset."""
    if unit == "second":
        return moment.replace(microsecond=0, second=moment.second - moment.second % step)
    if unit == "minute":
        return moment.replace(
            microsecond=0, second=0, minute=moment.minute - moment.minute % step
        )
    if unit == "hour":
        return moment.replace(
            microsecond=0, second=0, minute=0, hour=moment.hour - moment.hour % step
        )

    day = moment.replace(microsecond=0, second=0, minute=0, hour=0)
    if unit == "day":
        return day.replace(day=day.day - (day.day - 1) % step)
    if unit == "week":
        # Weeks start on Sunday
        return day - timedelta(days=(day.weekday() + 1) % 7)
    if unit == "month":
        return day.replace(day=1, month=day.month - (day.month - 1) % step)
    if unit == "year":
        return day.replace(day=1, month=1, year=day.year - day.year % step)
    raise ValueError(f"Unknown time unit: {unit}")


def offset_time(moment: datetime, unit: str, step: int = 1) -> datetime:
    if unit == "month":
        months = moment.month - 1 + step
        return moment.replace(year=moment.year + months // 12, month=months % 12 + 1)
    if unit == "year":
        return moment.replace(year=moment.year + step)
    return moment + timedelta(seconds=_UNIT_SECONDS[unit] * step)


def ceil_time(moment: datetime, unit: str, step: int = 1) -> datetime:
    floored = floor_time(moment, unit, step)
    if floored == moment:
        return moment
    return floor_time(offset_time(floored, unit, step), unit, step)


class TimeScale(LinearScale):
    """Linear map from calendar time (aware datetimes) to a numeric range."""

    @property
    def tz(self):
        return self.domain[0].tzinfo or timezone.utc

    def _forward(self, value: datetime) -> float:
        return value.timestamp()

    def _backward(self, value: float) -> datetime:
        return datetime.fromtimestamp(value, self.tz)

    def interval(self, count: int = 10) -> Tuple[str, int]:
        d0, d1 = self.domain[0], self.domain[-1]
        return choose_interval(d0.timestamp(), d1.timestamp(), count)

    def nice(self, count: int = 10) -> "TimeScale":
        """Extend the domain outward to the nearest calendar boundaries."""
        d0, d1 = self.domain[0], self.domain[-1]
        if d0 == d1:
            return self
        reverse = d1 < d0
        lo, hi = (d1, d0) if reverse else (d0, d1)
        unit, step = choose_interval(lo.timestamp(), hi.timestamp(), count)
        lo, hi = floor_time(lo, unit, step), ceil_time(hi, unit, step)
        self.domain = (hi, lo) if reverse else (lo, hi)
        return self

    def ticks(self, count: int = 10) -> List[datetime]:
        lo, hi = sorted((self.domain[0], self.domain[-1]))
        if lo == hi:
            return [lo]
        unit, step = choose_interval(lo.timestamp(), hi.timestamp(), count)
        ticks = []
        current = ceil_time(lo, unit, step)
        while current <= hi:
            ticks.append(current)
            current = floor_time(offset_time(current, unit, step), unit, step)
        return ticks

    def tick_format(self, count: int = 10):
        # A single instant has no interval; label it with its day
        if self.domain[0] == self.domain[-1]:
            unit = "day"
        else:
            unit, _ = self.interval(count)
        fmt = TICK_FORMATS[unit]
        return lambda moment: moment.strftime(fmt)


class OrdinalScale:
    """
    Maps discrete keys to palette entries in first-seen order, cycling when
    the palette is exhausted.
    """

    def __init__(self, palette: Sequence[str], domain: Iterable[str] = ()):
        self.palette = tuple(palette)
        self._index: Dict[str, int] = {}
        for key in domain:
            self(key)

    def __call__(self, key: str) -> str:
        if key not in self._index:
            self._index[key] = len(self._index)
        return self.palette[self._index[key] % len(self.palette)]

    @property
    def domain(self) -> List[str]:
        return list(self._index)


# ============================================================================
# PLOT LAYOUT & SCALE MANAGER
# ============================================================================


@dataclass(frozen=True)
class PlotLayout:
    """Pixel dimensions of the scatter plot and its usable (inner) area."""

    width: float = 1000
    height: float = 600
    margin_top: float = 10
    margin_right: float = 10
    margin_bottom: float = 30
    margin_left: float = 20

    @property
    def left(self) -> float:
        return self.margin_left

    @property
    def right(self) -> float:
        return self.width - self.margin_right

    @property
    def top(self) -> float:
        return self.margin_top

    @property
    def bottom(self) -> float:
        return self.height - self.margin_bottom

    @property
    def usable_width(self) -> float:
        return self.right - self.left

    @property
    def usable_height(self) -> float:
        return self.bottom - self.top


class ScaleManager:
    """
    Owns the scales of one exploration session.

    - x: commit datetime -> horizontal pixel, niced, re-fitted to the
      visible subset by update_x()
    - y: hour of day [0, 24] -> vertical pixel, midnight at the bottom
    - progress: full-dataset datetime extent -> [0, 100]; the single
      conversion point between slider position and cutoff timestamp
    - type_colors: line type -> palette colour, seeded from the full dataset
    """

    def __init__(
        self,
        commit_set: CommitSet,
        layout: Optional[PlotLayout] = None,
        radius_range: Tuple[float, float] = (2.0, 30.0),
    ):
        self.layout = layout or PlotLayout()
        self.radius_range = tuple(radius_range)

        extent = commit_set.extent() or (EPOCH, EPOCH)
        self.progress = TimeScale(extent, (0.0, 100.0))
        self.x = TimeScale(extent, (self.layout.left, self.layout.right)).nice()
        self.y = LinearScale((0.0, 24.0), (self.layout.bottom, self.layout.top))
        self.type_colors = OrdinalScale(TABLEAU10, commit_set.types())

    def update_x(self, commits: Sequence[CommitSummary]) -> TimeScale:
        """Re-fit the x domain to the given commits. No-op for an empty subset."""
        if commits:
            moments = [c.datetime for c in commits]
            self.x.domain = (min(moments), max(moments))
            self.x.nice()
            logger.debug(f"x domain -> {self.x.domain[0]} .. {self.x.domain[1]}")
        return self.x

    def radius_scale(self, commits: Sequence[CommitSummary]) -> SqrtScale:
        """Sqrt radius scale fitted to the line counts of the rendered subset."""
        totals = [c.total_lines for c in commits]
        domain = (min(totals), max(totals)) if totals else (0, 1)
        return SqrtScale(domain, self.radius_range)
