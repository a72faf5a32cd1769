"""
commit-timeline: explore a repository's history from per-line change records.

Loads loc.csv style datasets, aggregates them into commits and drives a
coordinated set of views (scatter plot, stats, file breakdown, language
breakdown, slider and narrative) from slider, narrative-step and brush input.
"""

VERSION = "1.0.0"
SCHEMA_VERSION = "1.0.0"

from .commits import CommitSet, CommitSummary, aggregate_commits  # noqa: E402
from .controller import (  # noqa: E402
    BrushMoved,
    ExplorerSession,
    FilterController,
    Hovered,
    SliderMoved,
    StepEntered,
)
from .errors import (  # noqa: E402
    ConfigError,
    DatasetLoadError,
    TimelineError,
    UnknownCommitError,
)
from .records import LineRecord, load_records  # noqa: E402
from .scales import PlotLayout, ScaleManager  # noqa: E402
from .selection import SelectionRect  # noqa: E402

__version__ = VERSION

__all__ = [
    "VERSION",
    "SCHEMA_VERSION",
    "BrushMoved",
    "CommitSet",
    "CommitSummary",
    "ConfigError",
    "DatasetLoadError",
    "ExplorerSession",
    "FilterController",
    "Hovered",
    "LineRecord",
    "PlotLayout",
    "ScaleManager",
    "SelectionRect",
    "SliderMoved",
    "StepEntered",
    "TimelineError",
    "UnknownCommitError",
    "aggregate_commits",
    "load_records",
]
