"""Clustering module: initialization strategies, Lloyd step and metrics."""

from .initialization import (
    CentroidInitializer,
    InitMethod,
    initialize_centroids,
)
from .lloyd import (
    LloydStepper,
    StepResult,
    lloyd_step,
)
from .metrics import (
    overall_distance,
    cluster_sizes,
    centroid_shift,
    silhouette_score,
)

__all__ = [
    "CentroidInitializer",
    "InitMethod",
    "initialize_centroids",
    "LloydStepper",
    "StepResult",
    "lloyd_step",
    "overall_distance",
    "cluster_sizes",
    "centroid_shift",
    "silhouette_score",
]
