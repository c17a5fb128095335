"""Centroid initialization strategies.

Four ways of choosing the starting centroids for Lloyd's algorithm:

1. Random - k distinct data points from a uniform permutation
2. Farthest-First - greedy traversal maximizing the gap to chosen centroids
3. KMeans++ - distance-weighted sampling
4. Manual - user-supplied coordinates

All sampling strategies pick existing data points, never synthetic means.
"""

import logging
from enum import Enum
from typing import Optional, Sequence, Union

import numpy as np

from ..data.synthetic import Point, points_to_array
from ..errors import EmptyDatasetError, InvalidKError

logger = logging.getLogger(__name__)


class InitMethod(Enum):
    """Centroid initialization methods."""
    RANDOM = "Random"
    FARTHEST_FIRST = "Farthest-First"
    KMEANS_PLUS_PLUS = "KMeans++"
    MANUAL = "Manual"

    @classmethod
    def parse(cls, value: Union[str, "InitMethod"]) -> "InitMethod":
        """Resolve a method from its value or member name, ignoring case.

        Accepts e.g. "KMeans++", "kmeans_plus_plus", "farthest-first", and
        separator-free spellings such as "FarthestFirst".
        """
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower()
        for member in cls:
            if key in (member.value.lower(), member.name.lower()):
                return member
        compact = key.replace("-", "").replace("_", "").replace(" ", "")
        for member in cls:
            if compact == member.name.lower().replace("_", ""):
                return member
        raise ValueError(
            f"Unknown initialization method: {value!r}. "
            f"Use one of {[m.value for m in cls]}."
        )

    @property
    def samples_data(self) -> bool:
        """Whether the method draws its centroids from the dataset."""
        return self is not InitMethod.MANUAL


def _min_distances(data: np.ndarray, centroids: np.ndarray) -> np.ndarray:
    """Distance from each point to its nearest centroid.

    Args:
        data: Data points (n x 2).
        centroids: Centroids chosen so far (m x 2).

    Returns:
        Minimum distances (n,).
    """
    dx = data[:, np.newaxis, 0] - centroids[np.newaxis, :, 0]
    dy = data[:, np.newaxis, 1] - centroids[np.newaxis, :, 1]
    return np.hypot(dx, dy).min(axis=1)


class CentroidInitializer:
    """Produces an initial centroid set from a dataset."""

    def __init__(
        self,
        seed: Optional[int] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        """Initialize.

        Args:
            seed: Random seed, used when no generator is given.
            rng: Generator to draw from. Takes precedence over seed.
        """
        self.rng = rng if rng is not None else np.random.default_rng(seed)

    def initialize(
        self,
        data: np.ndarray,
        k: int,
        method: Union[str, InitMethod],
        manual_points: Sequence[Point] = (),
    ) -> np.ndarray:
        """Choose initial centroids.

        Args:
            data: Data points (n x 2).
            k: Number of clusters.
            method: Initialization strategy.
            manual_points: Centroids collected so far in Manual mode.

        Returns:
            Centroids (m x 2). m == k except for an incomplete Manual set.

        Raises:
            InvalidKError: k <= 0, or k > n for a sampling strategy.
            EmptyDatasetError: data has no points.
        """
        method = InitMethod.parse(method)
        data = np.asarray(data, dtype=float).reshape(-1, 2)

        if k <= 0:
            raise InvalidKError(f"k must be positive, got {k}")
        if len(data) == 0:
            raise EmptyDatasetError("Cannot initialize centroids on an empty dataset")
        if method.samples_data and k > len(data):
            raise InvalidKError(
                f"k={k} exceeds the {len(data)} available points for {method.value}"
            )

        if method is InitMethod.RANDOM:
            centroids = self.random(data, k)
        elif method is InitMethod.FARTHEST_FIRST:
            centroids = self.farthest_first(data, k)
        elif method is InitMethod.KMEANS_PLUS_PLUS:
            centroids = self.kmeans_plus_plus(data, k)
        else:
            centroids = self.manual(manual_points)

        logger.debug("Initialized %d centroids with %s", len(centroids), method.value)
        return centroids

    def random(self, data: np.ndarray, k: int) -> np.ndarray:
        """Take the first k points of a uniformly random permutation."""
        order = self.rng.permutation(len(data))
        return data[order[:k]].copy()

    def farthest_first(
        self,
        data: np.ndarray,
        k: int,
        first_index: Optional[int] = None,
    ) -> np.ndarray:
        """Farthest-first traversal.

        Args:
            data: Data points (n x 2).
            k: Number of centroids.
            first_index: Row to start from. Drawn uniformly when None.

        Returns:
            Centroids (k x 2).
        """
        n_samples = len(data)
        if first_index is None:
            first_index = int(self.rng.integers(n_samples))
        chosen = [first_index]

        while len(chosen) < k:
            distances = _min_distances(data, data[chosen])
            # argmax keeps the first maximum, so ties go to dataset order
            chosen.append(int(np.argmax(distances)))

        return data[chosen].copy()

    def kmeans_plus_plus(self, data: np.ndarray, k: int) -> np.ndarray:
        """K-means++ style seeding, weighted by distance (not squared).

        Args:
            data: Data points (n x 2).
            k: Number of centroids.

        Returns:
            Centroids (k x 2).
        """
        n_samples = len(data)
        chosen = [int(self.rng.integers(n_samples))]

        while len(chosen) < k:
            distances = _min_distances(data, data[chosen])
            cumulative = np.cumsum(distances)
            target = self.rng.random() * cumulative[-1]
            # First row whose running total reaches the target
            idx = int(np.searchsorted(cumulative, target, side="left"))
            chosen.append(min(idx, n_samples - 1))

        return data[chosen].copy()

    def manual(self, manual_points: Sequence[Point]) -> np.ndarray:
        """Return the manually collected centroids as an array."""
        return points_to_array(manual_points)


def initialize_centroids(
    data: np.ndarray,
    k: int,
    method: Union[str, InitMethod] = InitMethod.RANDOM,
    manual_points: Sequence[Point] = (),
    seed: Optional[int] = None,
) -> np.ndarray:
    """Convenience function for one-off initialization."""
    return CentroidInitializer(seed=seed).initialize(data, k, method, manual_points)
