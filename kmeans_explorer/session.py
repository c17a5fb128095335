"""Interactive k-means session.

The session owns the dataset, the current centroids and the cluster
assignment, and moves between four states:

    NOT_STARTED ──advance_step──> STEPPING ──advance_step──> CONVERGED
         │                          ^   │                       │
    (Manual, < k points)            └───┘ (centroids moved)     │
    COLLECTING_CENTROIDS                                        │
         └──────── reset / new_dataset from any state ──────────┘

The first advance_step only initializes centroids (that counts as step 1).
Every later call runs one Lloyd iteration until the centroids stop moving.

A session is not safe to share between threads. Callers must serialize
advance_step, run_to_convergence, reset and new_dataset on one session.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Tuple, Union

import numpy as np

from .clustering.initialization import CentroidInitializer, InitMethod
from .clustering.lloyd import LloydStepper
from .config import ExplorerConfig
from .data.synthetic import Point, PointSampler, points_to_array
from .errors import (
    EmptyDatasetError,
    IncompleteManualInitializationError,
    InvalidKError,
    InvalidTransitionError,
    ManualOverflowError,
)

logger = logging.getLogger(__name__)


class SessionState(Enum):
    """Lifecycle states of a clustering session."""
    NOT_STARTED = "not_started"
    COLLECTING_CENTROIDS = "collecting_centroids"
    STEPPING = "stepping"
    CONVERGED = "converged"


@dataclass(frozen=True, eq=False)
class SessionSnapshot:
    """Read-only view of a session after a transition.

    Attributes:
        data: Dataset (n x 2).
        centroids: Current centroids (m x 2).
        labels: Cluster index per point. Empty before the first Lloyd step.
        empty_clusters: True for clusters left empty by the last step.
        step: Step counter.
        converged: Whether the centroids reached a fixed point.
        state: Session state.
        k: Configured number of clusters.
        method: Configured initialization method.
    """
    data: np.ndarray
    centroids: np.ndarray
    labels: np.ndarray
    empty_clusters: np.ndarray
    step: int
    converged: bool
    state: SessionState
    k: int
    method: InitMethod

    def __eq__(self, other):
        if not isinstance(other, SessionSnapshot):
            return NotImplemented
        return (
            self.step == other.step
            and self.converged == other.converged
            and self.state == other.state
            and self.k == other.k
            and self.method == other.method
            and np.array_equal(self.data, other.data)
            and np.array_equal(self.centroids, other.centroids)
            and np.array_equal(self.labels, other.labels)
            and np.array_equal(self.empty_clusters, other.empty_clusters)
        )

    __hash__ = None

    @property
    def cluster_sizes(self) -> np.ndarray:
        """Points per cluster (empty array before the first Lloyd step)."""
        if len(self.labels) == 0:
            return np.zeros(0, dtype=int)
        return np.bincount(self.labels, minlength=len(self.centroids))


class ClusteringSession:
    """State machine driving initialization, stepping and convergence."""

    def __init__(
        self,
        config: Optional[ExplorerConfig] = None,
        data: Optional[np.ndarray] = None,
        sampler: Optional[PointSampler] = None,
        initializer: Optional[CentroidInitializer] = None,
        stepper: Optional[LloydStepper] = None,
    ):
        """Create a session.

        Args:
            config: Explorer configuration. Defaults are used when None.
            data: Initial dataset (n x 2). Generated by the sampler when None.
            sampler: Point sampler for new datasets.
            initializer: Centroid initializer.
            stepper: Lloyd stepper.
        """
        self.config = config or ExplorerConfig()
        session_cfg = self.config.session

        self.sampler = sampler or PointSampler(seed=self.config.sampler.seed)
        self.initializer = initializer or CentroidInitializer(seed=session_cfg.seed)
        self.stepper = stepper or LloydStepper()

        if session_cfg.n_clusters <= 0:
            raise InvalidKError(f"k must be positive, got {session_cfg.n_clusters}")
        self._k = session_cfg.n_clusters
        self._method = InitMethod.parse(session_cfg.method)
        self.convergence_tol = session_cfg.convergence_tol
        self.max_iterations = session_cfg.max_iterations

        if data is None:
            data = self.sampler.generate(
                self.config.sampler.n_points, self.config.sampler.bounds
            )
        self._data = np.array(data, dtype=float).reshape(-1, 2)
        self._clear()

    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------

    @property
    def data(self) -> np.ndarray:
        return self._data.copy()

    @property
    def centroids(self) -> np.ndarray:
        return self._centroids.copy()

    @property
    def labels(self) -> np.ndarray:
        return self._labels.copy()

    @property
    def empty_clusters(self) -> np.ndarray:
        return self._empty_clusters.copy()

    @property
    def step(self) -> int:
        return self._step

    @property
    def converged(self) -> bool:
        return self._converged

    @property
    def k(self) -> int:
        return self._k

    @property
    def method(self) -> InitMethod:
        return self._method

    @property
    def manual_points(self) -> List[Point]:
        return list(self._manual_points)

    @property
    def history(self) -> List[np.ndarray]:
        """Centroid sets after initialization and after every move."""
        return [c.copy() for c in self._history]

    @property
    def objectives(self) -> List[float]:
        """RMS point-to-centroid distance measured by each Lloyd step."""
        return list(self._objectives)

    @property
    def state(self) -> SessionState:
        if self._converged:
            return SessionState.CONVERGED
        if self._step == 0:
            if self._method is InitMethod.MANUAL and len(self._manual_points) < self._k:
                return SessionState.COLLECTING_CENTROIDS
            return SessionState.NOT_STARTED
        return SessionState.STEPPING

    def snapshot(self) -> SessionSnapshot:
        """Copy of everything a renderer needs."""
        return SessionSnapshot(
            data=self.data,
            centroids=self.centroids,
            labels=self.labels,
            empty_clusters=self.empty_clusters,
            step=self._step,
            converged=self._converged,
            state=self.state,
            k=self._k,
            method=self._method,
        )

    # ------------------------------------------------------------------
    # User configuration
    # ------------------------------------------------------------------

    def set_k(self, k: int) -> None:
        """Set the number of clusters used by the next initialization.

        Raises:
            InvalidKError: k <= 0, or fewer than the manual points collected.
            InvalidTransitionError: a run is in progress; reset first.
        """
        k = int(k)
        if k <= 0:
            raise InvalidKError(f"k must be positive, got {k}")
        if self._step > 0 and k != self._k:
            raise InvalidTransitionError("Cannot change k during a run; reset first")
        if k < len(self._manual_points):
            raise InvalidKError(
                f"k={k} is below the {len(self._manual_points)} manual centroids collected"
            )
        self._k = k

    def set_method(self, method: Union[str, InitMethod]) -> None:
        """Set the initialization method used by the next initialization.

        Switching method before the run starts discards manual centroids.

        Raises:
            InvalidTransitionError: a run is in progress; reset first.
        """
        method = InitMethod.parse(method)
        if self._step > 0 and method is not self._method:
            raise InvalidTransitionError("Cannot change method during a run; reset first")
        if method is not self._method and self._step == 0 and self._manual_points:
            logger.debug("Discarding %d manual centroids", len(self._manual_points))
            self._manual_points = []
            self._centroids = np.empty((0, 2), dtype=float)
        self._method = method

    def add_manual_centroid(self, point: Union[Point, Tuple[float, float]]) -> None:
        """Add a user-placed centroid in Manual mode.

        Args:
            point: Coordinates already in data space.

        Raises:
            InvalidTransitionError: method is not Manual, or the run has started.
            ManualOverflowError: k centroids are already held.
        """
        if self._method is not InitMethod.MANUAL:
            raise InvalidTransitionError(
                f"Manual centroids require Manual mode, not {self._method.value}"
            )
        if self._step > 0:
            raise InvalidTransitionError("Manual centroids can only be placed before the run starts")
        if len(self._centroids) >= self._k:
            raise ManualOverflowError(f"Already holding {self._k} centroids")

        if not isinstance(point, Point):
            point = Point(x=float(point[0]), y=float(point[1]))
        self._manual_points.append(point)
        self._centroids = points_to_array(self._manual_points)
        logger.debug("Manual centroid %d/%d at (%g, %g)",
                     len(self._manual_points), self._k, point.x, point.y)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def advance_step(self) -> SessionState:
        """Advance the algorithm by one step.

        NOT_STARTED: initialize centroids, step becomes 1.
        STEPPING: run one Lloyd iteration; converge if nothing moved,
        otherwise increment step.
        CONVERGED: no-op.

        Returns:
            The state after the transition.
        """
        if self._converged:
            return self.state
        if self._step == 0:
            self._initialize()
        else:
            self._lloyd_iteration()
        return self.state

    def run_to_convergence(self, max_iterations: Optional[int] = None) -> SessionState:
        """Repeat advance_step until convergence or the iteration cap.

        Args:
            max_iterations: Cap on step transitions (initialization counts).
                Defaults to the session config.

        Returns:
            The final state, CONVERGED unless the cap ran out.
        """
        cap = self.max_iterations if max_iterations is None else int(max_iterations)
        if cap < 1:
            raise ValueError(f"max_iterations must be >= 1, got {cap}")

        for _ in range(cap):
            if self._converged:
                break
            self.advance_step()

        if self._converged:
            logger.info("Converged after %d steps", self._step)
        else:
            logger.info("Stopped after %d iterations without converging (step %d)",
                        cap, self._step)
        return self.state

    def reset(self) -> None:
        """Return to NOT_STARTED, keeping the dataset, k and method."""
        self._clear()
        logger.debug("Session reset")

    def new_dataset(
        self,
        n: Optional[int] = None,
        bounds: Optional[Tuple[int, int]] = None,
    ) -> None:
        """Sample a fresh dataset, then reset."""
        n = self.config.sampler.n_points if n is None else n
        bounds = self.config.sampler.bounds if bounds is None else bounds
        data = self.sampler.generate(n, bounds)
        self._data = data
        self._clear()
        logger.debug("New dataset with %d points", len(data))

    def set_data(self, data: Union[np.ndarray, Sequence[Point]]) -> None:
        """Replace the dataset with user-supplied points, then reset."""
        if len(data) and isinstance(data[0], Point):
            data = points_to_array(data)
        self._data = np.array(data, dtype=float).reshape(-1, 2)
        self._clear()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _clear(self) -> None:
        self._centroids = np.empty((0, 2), dtype=float)
        self._labels = np.empty(0, dtype=int)
        self._empty_clusters = np.empty(0, dtype=bool)
        self._step = 0
        self._converged = False
        self._manual_points: List[Point] = []
        self._history: List[np.ndarray] = []
        self._objectives: List[float] = []

    def _initialize(self) -> None:
        if len(self._data) == 0:
            raise EmptyDatasetError("Cannot start on an empty dataset")
        if self._method is InitMethod.MANUAL and len(self._manual_points) < self._k:
            raise IncompleteManualInitializationError(
                f"Collected {len(self._manual_points)} of {self._k} manual centroids"
            )

        centroids = self.initializer.initialize(
            self._data, self._k, self._method, self._manual_points
        )

        self._centroids = centroids
        self._labels = np.empty(0, dtype=int)
        self._empty_clusters = np.zeros(len(centroids), dtype=bool)
        self._step = 1
        self._history.append(centroids.copy())
        logger.debug("Step 1: initialized %d centroids (%s)",
                     len(centroids), self._method.value)

    def _lloyd_iteration(self) -> None:
        if len(self._data) == 0:
            raise EmptyDatasetError("Cannot step on an empty dataset")

        result = self.stepper.step(self._data, self._centroids)
        if self.convergence_tol > 0:
            unchanged = result.shift <= self.convergence_tol
        else:
            unchanged = np.array_equal(result.centroids, self._centroids)

        moved = not np.array_equal(result.centroids, self._centroids)
        self._labels = result.labels
        self._empty_clusters = result.empty_clusters
        self._centroids = result.centroids
        self._objectives.append(result.objective)
        if moved:
            self._history.append(result.centroids.copy())

        if unchanged:
            self._converged = True
            logger.debug("Step %d: centroids fixed, converged", self._step)
        else:
            self._step += 1
            logger.debug("Step %d: max shift %.4g, OD %.4g",
                         self._step, result.shift, result.objective)
