"""Exception hierarchy for commit-timeline."""


class TimelineError(Exception):
    """Base class for all commit-timeline errors"""


class DatasetLoadError(TimelineError):
    """The dataset could not be read or parsed. Terminal for the current view."""


class ConfigError(TimelineError):
    """A configuration file or event script is invalid."""


class UnknownCommitError(TimelineError, KeyError):
    """A message referred to a commit id that is not in the loaded dataset."""

    def __init__(self, commit_id: str):
        super().__init__(commit_id)
        self.commit_id = commit_id

    def __str__(self):
        return f"Unknown commit: {self.commit_id}"
