"""
Plotting utilities for k-means explorer sessions.

Renders session snapshots (points coloured by cluster, centroids on top),
centroid movement across steps, and the objective curve.

All plots are saved with bbox_inches='tight' and a consistent style.
"""

from pathlib import Path
from typing import List, Optional, Sequence, Union

import numpy as np
import matplotlib
matplotlib.use("Agg")  # non-interactive backend
import matplotlib.pyplot as plt

from ..config import PlotConfig
from ..session import SessionSnapshot


# ── Style config ──────────────────────────────────────────────────────
STYLE_CONFIG = {
    "figure.dpi": 150,
    "figure.facecolor": "white",
    "axes.grid": True,
    "grid.alpha": 0.3,
    "font.size": 10,
    "axes.titlesize": 14,
    "axes.labelsize": 12,
    "legend.fontsize": 9,
    "lines.linewidth": 2,
    "lines.markersize": 8,
}

COLORS = {
    "unassigned": "#4bc0c0",   # teal
    "converged": "#ff6384",    # pink
    "centroid": "#000000",
    "objective": "#4363d8",    # blue
}


def _apply_style():
    """Apply shared rcParams."""
    plt.rcParams.update(STYLE_CONFIG)


def _cluster_cmap(n_clusters: int):
    return plt.get_cmap("tab10" if n_clusters <= 10 else "tab20")


def _add_info_box(ax, text: str, loc: str = "upper right"):
    """Add a semi-transparent info box to the axes."""
    props = dict(boxstyle="round,pad=0.4", facecolor="white", alpha=0.85,
                 edgecolor="#cccccc")
    anchors = {
        "upper right": (0.98, 0.98, "right", "top"),
        "upper left": (0.02, 0.98, "left", "top"),
        "lower right": (0.98, 0.02, "right", "bottom"),
    }
    x, y, ha, va = anchors.get(loc, anchors["upper right"])
    ax.text(x, y, text, transform=ax.transAxes, fontsize=8,
            verticalalignment=va, horizontalalignment=ha, bbox=props,
            family="monospace")


def _save(fig, out_path: Union[str, Path], dpi: int) -> Path:
    out_path = Path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    fig.tight_layout()
    fig.savefig(str(out_path), dpi=dpi, bbox_inches="tight")
    plt.close(fig)
    return out_path


# ─────────────────────────────────────────────────────────────────────
# Plot Functions
# ─────────────────────────────────────────────────────────────────────

def plot_session(
    snapshot: SessionSnapshot,
    out_path: Union[str, Path] = "session.png",
    title: Optional[str] = None,
    config: Optional[PlotConfig] = None,
) -> Path:
    """Scatter plot of the dataset coloured by cluster assignment.

    Before the first Lloyd step every point is drawn in a single colour.
    Centroids of empty clusters are drawn hollow.

    Args:
        snapshot: Session snapshot to render.
        out_path: Output file path.
        title: Plot title. Defaults to the step and state.
        config: Plot settings.

    Returns:
        Path of the written image.
    """
    config = config or PlotConfig()
    _apply_style()

    data = snapshot.data
    centroids = snapshot.centroids
    labels = snapshot.labels
    n_clusters = max(len(centroids), 1)
    cmap = _cluster_cmap(n_clusters)

    fig, ax = plt.subplots(figsize=config.figsize)

    if len(labels) == len(data) and len(labels) > 0:
        for k in range(len(centroids)):
            mask = labels == k
            if mask.any():
                ax.scatter(data[mask, 0], data[mask, 1], color=cmap(k % cmap.N),
                           s=25, alpha=0.7, label=f"C{k}")
    elif len(data):
        colour = COLORS["converged"] if snapshot.converged else COLORS["unassigned"]
        ax.scatter(data[:, 0], data[:, 1], color=colour, s=25, alpha=0.7,
                   label="Points")

    if len(centroids):
        empty = snapshot.empty_clusters
        if len(empty) != len(centroids):
            empty = np.zeros(len(centroids), dtype=bool)
        filled = ~empty if config.show_empty else np.ones(len(centroids), dtype=bool)
        ax.scatter(centroids[filled, 0], centroids[filled, 1],
                   c=COLORS["centroid"], marker="X", s=160, edgecolors="white",
                   linewidths=1.5, zorder=10, label="Centroids")
        if config.show_empty and empty.any():
            ax.scatter(centroids[empty, 0], centroids[empty, 1],
                       facecolors="none", edgecolors=COLORS["centroid"],
                       marker="o", s=160, linewidths=1.5, zorder=10,
                       label="Empty clusters")

    info = (f"step = {snapshot.step}  |  k = {snapshot.k}\n"
            f"method = {snapshot.method.value}\n"
            f"N = {len(data)}")
    if snapshot.converged:
        info += "\nConverged!"
    _add_info_box(ax, info)

    ax.set_xlabel("X")
    ax.set_ylabel("Y")
    if ax.get_legend_handles_labels()[0]:
        ax.legend(loc="upper left", fontsize=7, markerscale=1.2)
    ax.set_title(title or f"K-Means: {snapshot.state.value.replace('_', ' ')}")
    return _save(fig, out_path, config.dpi)


def plot_centroid_paths(
    data: np.ndarray,
    history: Sequence[np.ndarray],
    out_path: Union[str, Path] = "centroid_paths.png",
    title: str = "Centroid Movement",
    config: Optional[PlotConfig] = None,
) -> Path:
    """Draw each centroid's path from initialization to its last position.

    Args:
        data: Dataset (n x 2), drawn faintly in the background.
        history: Centroid sets in step order, all of equal length.
        out_path: Output file path.
        title: Plot title.
        config: Plot settings.
    """
    config = config or PlotConfig()
    _apply_style()

    fig, ax = plt.subplots(figsize=config.figsize)
    data = np.asarray(data)
    if len(data):
        ax.scatter(data[:, 0], data[:, 1], c="grey", s=12, alpha=0.3)

    if len(history):
        stacked = np.stack([np.asarray(h) for h in history])  # (steps, k, 2)
        cmap = _cluster_cmap(stacked.shape[1])
        for k in range(stacked.shape[1]):
            path = stacked[:, k, :]
            colour = cmap(k % cmap.N)
            ax.plot(path[:, 0], path[:, 1], "o-", color=colour, alpha=0.8,
                    markersize=4, label=f"C{k}")
            ax.scatter(path[-1, 0], path[-1, 1], color=colour, marker="X",
                       s=160, edgecolors="black", zorder=10)
        _add_info_box(ax, f"steps recorded = {len(history)}")

    ax.set_xlabel("X")
    ax.set_ylabel("Y")
    if len(history):
        ax.legend(loc="upper left", fontsize=7)
    ax.set_title(title)
    return _save(fig, out_path, config.dpi)


def plot_objective_curve(
    objectives: List[float],
    out_path: Union[str, Path] = "objective.png",
    title: str = "Overall Distance per Lloyd Step",
    config: Optional[PlotConfig] = None,
) -> Path:
    """Plot the RMS point-to-centroid distance for each Lloyd step."""
    config = config or PlotConfig()
    _apply_style()

    fig, ax = plt.subplots(figsize=(10, 6))
    steps = list(range(1, len(objectives) + 1))
    ax.plot(steps, objectives, "o-", color=COLORS["objective"])
    if len(objectives) > 1:
        delta = objectives[0] - objectives[-1]
        pct = (delta / objectives[0] * 100) if objectives[0] != 0 else 0
        _add_info_box(ax, f"ΔOD = {delta:.4f} ({pct:.1f}%)")

    ax.set_xlabel("Lloyd step")
    ax.set_ylabel("Overall Distance (lower is better)")
    ax.set_title(title)
    return _save(fig, out_path, config.dpi)
