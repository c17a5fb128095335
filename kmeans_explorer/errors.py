"""Exceptions raised by the clustering engine.

All of them are precondition failures: they are raised before any state is
touched, so a session stays usable after a rejected call.
"""


class ClusteringError(ValueError):
    """Base class for k-means explorer errors."""


class InvalidKError(ClusteringError):
    """k is not positive, or exceeds the number of points to sample from."""


class EmptyDatasetError(ClusteringError):
    """Initialization or stepping was requested on a dataset with no points."""


class ManualOverflowError(ClusteringError):
    """A manual centroid was added after k centroids were already collected."""


class IncompleteManualInitializationError(ClusteringError):
    """Manual mode was started before k centroids were collected."""


class InvalidTransitionError(ClusteringError):
    """The requested action is not valid in the session's current state."""
