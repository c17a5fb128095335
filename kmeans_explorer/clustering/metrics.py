"""Clustering quality metrics for the explorer read-out.

Provides metrics for:
- Overall distance (OD) - RMS distance to the assigned centroid
- Cluster sizes - points per centroid, including empty clusters
- Silhouette score - cluster separation quality
- Centroid shift - how far centroids moved in one step
"""

import numpy as np


def overall_distance(
    data: np.ndarray,
    centroids: np.ndarray,
    labels: np.ndarray,
) -> float:
    """Compute overall distance (OD) metric.

    OD = sqrt(mean(||x_i - c_{y_i}||^2))

    Lower is better.

    Args:
        data: Data points (n x 2).
        centroids: Cluster centroids (k x 2).
        labels: Cluster assignments (n,).

    Returns:
        Overall distance.
    """
    data = np.asarray(data, dtype=float)
    centroids = np.asarray(centroids, dtype=float)
    labels = np.asarray(labels, dtype=int)
    if len(data) == 0:
        raise ValueError("overall_distance needs at least one point")

    diff = data - centroids[labels]
    return float(np.sqrt(np.mean(np.sum(diff ** 2, axis=1))))


def cluster_sizes(labels: np.ndarray, n_clusters: int) -> np.ndarray:
    """Number of points assigned to each of n_clusters clusters."""
    labels = np.asarray(labels, dtype=int)
    return np.bincount(labels, minlength=n_clusters)


def centroid_shift(old: np.ndarray, new: np.ndarray) -> float:
    """Largest Euclidean displacement between matching centroids."""
    old = np.asarray(old, dtype=float).reshape(-1, 2)
    new = np.asarray(new, dtype=float).reshape(-1, 2)
    if old.shape != new.shape:
        raise ValueError(f"Centroid sets differ in shape: {old.shape} vs {new.shape}")
    if len(old) == 0:
        return 0.0
    return float(np.max(np.hypot(new[:, 0] - old[:, 0], new[:, 1] - old[:, 1])))


def silhouette_score(
    data: np.ndarray,
    labels: np.ndarray,
) -> float:
    """Compute silhouette score for clustering quality.

    Measures how similar points are to their own cluster vs other clusters.
    Range: [-1, 1], higher is better.

    Args:
        data: Data points (n x 2).
        labels: Cluster assignments.

    Returns:
        Mean silhouette coefficient. 0.0 when fewer than two clusters are
        populated or every point is its own cluster.
    """
    data = np.asarray(data, dtype=float)
    labels = np.asarray(labels)
    n_samples = len(data)
    present = np.unique(labels)

    if len(present) <= 1 or len(present) >= n_samples:
        return 0.0

    pairwise = np.hypot(
        data[:, np.newaxis, 0] - data[np.newaxis, :, 0],
        data[:, np.newaxis, 1] - data[np.newaxis, :, 1],
    )
    silhouette_values = np.zeros(n_samples)

    for i in range(n_samples):
        same = labels == labels[i]
        n_same = np.count_nonzero(same)

        # a(i) = mean distance to the rest of its own cluster
        if n_same > 1:
            a_i = pairwise[i, same].sum() / (n_same - 1)
        else:
            # Singleton clusters score 0 by convention
            continue

        # b(i) = min mean distance to other clusters
        b_i = min(
            pairwise[i, labels == other].mean()
            for other in present if other != labels[i]
        )

        if max(a_i, b_i) > 0:
            silhouette_values[i] = (b_i - a_i) / max(a_i, b_i)

    return float(np.mean(silhouette_values))
