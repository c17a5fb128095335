"""Data module for synthetic point generation."""

from .synthetic import (
    Point,
    PointSampler,
    generate_points,
    points_to_array,
    array_to_points,
    DEFAULT_BOUNDS,
)

__all__ = [
    "Point",
    "PointSampler",
    "generate_points",
    "points_to_array",
    "array_to_points",
    "DEFAULT_BOUNDS",
]
