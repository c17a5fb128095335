"""
Visualization module for k-means explorer sessions.

Provides plotting utilities for:
- Cluster assignment scatter plots of a session snapshot
- Centroid movement across steps
- Overall distance per Lloyd step
"""

from .plot_utils import (
    plot_session,
    plot_centroid_paths,
    plot_objective_curve,
    STYLE_CONFIG,
)

__all__ = [
    "plot_session",
    "plot_centroid_paths",
    "plot_objective_curve",
    "STYLE_CONFIG",
]
