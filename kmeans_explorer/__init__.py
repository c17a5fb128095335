"""Interactive k-means explorer: initialization strategies and Lloyd steps on 2D data."""

from .config import ExplorerConfig, SamplerConfig, SessionConfig, PlotConfig
from .data.synthetic import Point, PointSampler
from .clustering.initialization import CentroidInitializer, InitMethod
from .clustering.lloyd import LloydStepper, StepResult
from .session import ClusteringSession, SessionSnapshot, SessionState
from .errors import (
    ClusteringError,
    InvalidKError,
    EmptyDatasetError,
    ManualOverflowError,
    IncompleteManualInitializationError,
    InvalidTransitionError,
)

__all__ = [
    "ExplorerConfig",
    "SamplerConfig",
    "SessionConfig",
    "PlotConfig",
    "Point",
    "PointSampler",
    "CentroidInitializer",
    "InitMethod",
    "LloydStepper",
    "StepResult",
    "ClusteringSession",
    "SessionSnapshot",
    "SessionState",
    "ClusteringError",
    "InvalidKError",
    "EmptyDatasetError",
    "ManualOverflowError",
    "IncompleteManualInitializationError",
    "InvalidTransitionError",
]
