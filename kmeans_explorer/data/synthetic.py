"""Synthetic 2D point generation.

Points are drawn on an integer grid so that datasets are easy to read off a
plot and small examples can be reasoned about by hand.
"""

import numpy as np
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple


DEFAULT_BOUNDS: Tuple[int, int] = (-10, 10)


@dataclass(frozen=True)
class Point:
    """A 2D point.

    Attributes:
        x: X-coordinate.
        y: Y-coordinate.
    """
    x: float
    y: float

    def distance(self, other: "Point") -> float:
        """Euclidean distance to another point."""
        return float(np.hypot(self.x - other.x, self.y - other.y))

    def to_array(self) -> np.ndarray:
        """Convert to numpy array [x, y]."""
        return np.array([self.x, self.y], dtype=float)

    @classmethod
    def from_array(cls, arr: np.ndarray) -> "Point":
        """Create from a length-2 array."""
        return cls(x=float(arr[0]), y=float(arr[1]))


def points_to_array(points: Iterable[Point]) -> np.ndarray:
    """Stack points into an (n, 2) float array."""
    rows = [[p.x, p.y] for p in points]
    if not rows:
        return np.empty((0, 2), dtype=float)
    return np.array(rows, dtype=float)


def array_to_points(arr: np.ndarray) -> list:
    """Convert an (n, 2) array into a list of Points."""
    return [Point.from_array(row) for row in np.asarray(arr)]


class PointSampler:
    """Generator for uniformly scattered integer-grid datasets."""

    def __init__(self, seed: Optional[int] = None):
        """Initialize sampler.

        Args:
            seed: Random seed for reproducibility. None draws fresh entropy.
        """
        self.rng = np.random.default_rng(seed)

    def generate(
        self,
        n: int,
        bounds: Tuple[int, int] = DEFAULT_BOUNDS,
    ) -> np.ndarray:
        """Generate a dataset of n points.

        Each coordinate is drawn independently and uniformly from the
        integers in [min, max], inclusive.

        Args:
            n: Number of points. Zero yields an empty dataset.
            bounds: (min, max) coordinate range.

        Returns:
            Float array of shape (n, 2).
        """
        low, high = int(bounds[0]), int(bounds[1])
        if n < 0:
            raise ValueError(f"Number of points must be non-negative, got {n}")
        if low > high:
            raise ValueError(f"Invalid bounds: min {low} > max {high}")

        coords = self.rng.integers(low, high + 1, size=(n, 2))
        return coords.astype(float)


def generate_points(
    n: int = 100,
    bounds: Tuple[int, int] = DEFAULT_BOUNDS,
    seed: Optional[int] = None,
) -> np.ndarray:
    """Convenience function to generate a dataset.

    Args:
        n: Number of points.
        bounds: (min, max) coordinate range.
        seed: Random seed.

    Returns:
        Float array of shape (n, 2).
    """
    return PointSampler(seed=seed).generate(n, bounds)
