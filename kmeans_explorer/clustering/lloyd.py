"""Single Lloyd iteration for 2D k-means.

One call performs a full assignment pass followed by a centroid update.
Iteration control lives in the session, so the explorer can stop between
any two steps.
"""

import numpy as np
from dataclasses import dataclass

from ..errors import InvalidKError
from .metrics import overall_distance


@dataclass
class StepResult:
    """Result from one Lloyd iteration.

    Attributes:
        centroids: Updated centroids (k x 2).
        labels: Cluster assignment for each point (n,).
        empty_clusters: True where a cluster received no points (k,).
            Those centroids are carried over unchanged.
        shift: Largest distance any centroid moved.
        objective: RMS distance from points to the centroids they were
            assigned to (before the update).
    """
    centroids: np.ndarray
    labels: np.ndarray
    empty_clusters: np.ndarray
    shift: float
    objective: float

    @property
    def cluster_sizes(self) -> np.ndarray:
        """Number of points assigned to each cluster."""
        return np.bincount(self.labels, minlength=len(self.centroids))


class LloydStepper:
    """Assign-then-update step using Euclidean distance."""

    def _distance_matrix(
        self,
        data: np.ndarray,
        centroids: np.ndarray,
    ) -> np.ndarray:
        """Compute distances from all points to all centroids.

        Args:
            data: Data points (n x 2).
            centroids: Centroids (k x 2).

        Returns:
            Distance matrix (n x k).
        """
        # (n, 1) - (1, k) -> (n, k) per axis
        dx = data[:, np.newaxis, 0] - centroids[np.newaxis, :, 0]
        dy = data[:, np.newaxis, 1] - centroids[np.newaxis, :, 1]
        return np.hypot(dx, dy)

    def _assign_clusters(
        self,
        data: np.ndarray,
        centroids: np.ndarray,
    ) -> np.ndarray:
        """Assign each point to nearest centroid.

        argmin returns the first minimum, so a point equidistant from
        several centroids goes to the lowest index.
        """
        distances = self._distance_matrix(data, centroids)
        return np.argmin(distances, axis=1)

    def _update_centroids(
        self,
        data: np.ndarray,
        labels: np.ndarray,
        centroids: np.ndarray,
    ):
        """Update centroids as mean of assigned points.

        Args:
            data: Data points (n x 2).
            labels: Cluster assignments.
            centroids: Current centroids (k x 2).

        Returns:
            Tuple of (new centroids, empty-cluster mask).
        """
        n_clusters = len(centroids)
        new_centroids = centroids.copy()
        empty = np.zeros(n_clusters, dtype=bool)

        for k in range(n_clusters):
            mask = labels == k
            if np.any(mask):
                new_centroids[k] = data[mask].mean(axis=0)
            else:
                # Empty cluster: keep the old position
                empty[k] = True

        return new_centroids, empty

    def step(self, data: np.ndarray, centroids: np.ndarray) -> StepResult:
        """Run one Lloyd iteration.

        Args:
            data: Data points (n x 2).
            centroids: Current centroids (k x 2).

        Returns:
            StepResult with the same number of centroids as the input.
        """
        data = np.asarray(data, dtype=float).reshape(-1, 2)
        centroids = np.asarray(centroids, dtype=float).reshape(-1, 2)
        if len(centroids) == 0:
            raise InvalidKError("Need at least one centroid to step")

        labels = self._assign_clusters(data, centroids)
        new_centroids, empty = self._update_centroids(data, labels, centroids)

        shift = float(np.max(np.hypot(
            new_centroids[:, 0] - centroids[:, 0],
            new_centroids[:, 1] - centroids[:, 1],
        )))
        objective = overall_distance(data, centroids, labels) if len(data) else 0.0

        return StepResult(
            centroids=new_centroids,
            labels=labels,
            empty_clusters=empty,
            shift=shift,
            objective=objective,
        )


def lloyd_step(data: np.ndarray, centroids: np.ndarray) -> StepResult:
    """Convenience function for a single Lloyd iteration."""
    return LloydStepper().step(data, centroids)
