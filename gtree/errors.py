"""Error kinds surfaced by the explorer core."""


class GtreeError(Exception):
    """Base class for explorer errors."""


class RepositoryUnavailable(GtreeError):
    """The repository cannot be opened or queried."""


class StatusQueryFailed(GtreeError):
    """The status source failed while building the tree."""


class DiffComputationFailed(GtreeError):
    """A diff for the selected file could not be computed."""


class StagingFailed(GtreeError):
    """Adding changed paths to the index failed."""


class CommitFailed(GtreeError):
    """Writing the commit failed."""
