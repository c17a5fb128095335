"""Configuration dataclasses for the k-means explorer."""

import json
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

from .clustering.initialization import InitMethod


@dataclass
class SamplerConfig:
    """Configuration for synthetic dataset generation.

    Attributes:
        n_points: Number of points per generated dataset.
        low: Smallest coordinate value (inclusive).
        high: Largest coordinate value (inclusive).
        seed: Random seed. None draws fresh entropy.
    """
    n_points: int = 100
    low: int = -10
    high: int = 10
    seed: Optional[int] = None

    @property
    def bounds(self) -> Tuple[int, int]:
        return (self.low, self.high)


@dataclass
class SessionConfig:
    """Configuration for a clustering session.

    Attributes:
        n_clusters: Number of clusters (k).
        method: Initialization method name (see InitMethod).
        max_iterations: Default cap for run_to_convergence.
        convergence_tol: 0.0 means converge on exact centroid equality.
            A positive value converges once no centroid moves further.
        seed: Random seed for centroid initialization.
    """
    n_clusters: int = 3
    method: str = InitMethod.RANDOM.value
    max_iterations: int = 100
    convergence_tol: float = 0.0
    seed: Optional[int] = None

    def __post_init__(self):
        self.method = InitMethod.parse(self.method).value
        if self.convergence_tol < 0:
            raise ValueError(f"convergence_tol must be >= 0, got {self.convergence_tol}")
        if self.max_iterations < 1:
            raise ValueError(f"max_iterations must be >= 1, got {self.max_iterations}")


@dataclass
class PlotConfig:
    """Configuration for snapshot rendering.

    Attributes:
        dpi: Output resolution.
        figsize: Figure size in inches.
        show_empty: Draw empty-cluster centroids as hollow markers.
    """
    dpi: int = 150
    figsize: Tuple[float, float] = (8, 8)
    show_empty: bool = True


@dataclass
class ExplorerConfig:
    """Master configuration for the explorer.

    Combines all sub-configurations into a single object.
    """
    sampler: SamplerConfig = field(default_factory=SamplerConfig)
    session: SessionConfig = field(default_factory=SessionConfig)
    plot: PlotConfig = field(default_factory=PlotConfig)

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to nested dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ExplorerConfig":
        """Create config from dictionary."""
        plot = dict(d.get("plot", {}))
        if "figsize" in plot:
            plot["figsize"] = tuple(plot["figsize"])
        return cls(
            sampler=SamplerConfig(**d.get("sampler", {})),
            session=SessionConfig(**d.get("session", {})),
            plot=PlotConfig(**plot),
        )

    @classmethod
    def from_json(cls, path: Union[str, Path]) -> "ExplorerConfig":
        """Load config from a JSON file."""
        with open(path) as f:
            return cls.from_dict(json.load(f))
