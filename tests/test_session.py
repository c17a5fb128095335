"""Tests for the clustering session state machine.

Verifies the NOT_STARTED -> STEPPING -> CONVERGED lifecycle, manual
centroid collection, reset semantics, run-to-convergence and the
no-partial-mutation guarantee on rejected calls.
"""

import numpy as np
import pytest

from kmeans_explorer.clustering.initialization import CentroidInitializer, InitMethod
from kmeans_explorer.config import ExplorerConfig
from kmeans_explorer.data.synthetic import Point, PointSampler
from kmeans_explorer.errors import (
    EmptyDatasetError,
    IncompleteManualInitializationError,
    InvalidKError,
    InvalidTransitionError,
    ManualOverflowError,
)
from kmeans_explorer.session import ClusteringSession, SessionState


FOUR_POINTS = np.array([
    [-5.0, -5.0],   # A
    [-5.0, -4.0],   # B
    [5.0, 5.0],     # C
    [5.0, 4.0],     # D
])


class FirstRowRng:
    """Generator stand-in that always draws index 0."""

    def integers(self, n):
        return 0

    def random(self):
        return 0.5

    def permutation(self, n):
        return np.arange(n)


def make_config(k=3, method="Random", seed=0, **session_kwargs):
    config = ExplorerConfig()
    config.session.n_clusters = k
    config.session.method = InitMethod.parse(method).value
    config.session.seed = seed
    config.sampler.seed = seed
    for key, value in session_kwargs.items():
        setattr(config.session, key, value)
    return config


@pytest.fixture
def random_session():
    return ClusteringSession(make_config(k=3, method="KMeans++", seed=5))


class TestWorkedExample:
    """Four points, k=2, Farthest-First starting at A."""

    @pytest.fixture
    def session(self):
        return ClusteringSession(
            make_config(k=2, method="Farthest-First"),
            data=FOUR_POINTS,
            initializer=CentroidInitializer(rng=FirstRowRng()),
        )

    def test_first_call_initializes_only(self, session):
        """Step 1 places centroids on A and C without assigning"""
        state = session.advance_step()

        assert state is SessionState.STEPPING
        assert session.step == 1
        assert not session.converged
        np.testing.assert_array_equal(session.centroids, [[-5, -5], [5, 5]])
        assert len(session.labels) == 0

    def test_second_call_runs_lloyd(self, session):
        """Step 2 assigns {A,B}, {C,D} and moves both centroids"""
        session.advance_step()
        state = session.advance_step()

        assert state is SessionState.STEPPING
        assert session.step == 2
        np.testing.assert_array_equal(session.labels, [0, 0, 1, 1])
        np.testing.assert_array_equal(session.centroids, [[-5, -4.5], [5, 4.5]])

    def test_third_call_converges(self, session):
        """Nothing moves on the third call, so the session converges"""
        for _ in range(3):
            state = session.advance_step()

        assert state is SessionState.CONVERGED
        assert session.converged
        assert session.step == 2
        np.testing.assert_array_equal(session.labels, [0, 0, 1, 1])
        np.testing.assert_array_equal(session.centroids, [[-5, -4.5], [5, 4.5]])

    def test_history_records_moves(self, session):
        """History holds the initial and the moved centroids"""
        session.run_to_convergence()

        history = session.history
        assert len(history) == 2
        np.testing.assert_array_equal(history[0], [[-5, -5], [5, 5]])
        np.testing.assert_array_equal(history[1], [[-5, -4.5], [5, 4.5]])


class TestConvergedState:
    """CONVERGED is terminal until reset."""

    def test_advance_is_idempotent(self, random_session):
        """Stepping a converged session changes nothing"""
        assert random_session.run_to_convergence() is SessionState.CONVERGED
        before = random_session.snapshot()

        assert random_session.advance_step() is SessionState.CONVERGED
        assert random_session.snapshot() == before

    def test_run_again_is_idempotent(self, random_session):
        """run_to_convergence on a converged session is a no-op"""
        random_session.run_to_convergence()
        before = random_session.snapshot()

        random_session.run_to_convergence()
        assert random_session.snapshot() == before


class TestReset:
    """reset() and new_dataset()."""

    def test_reset_clears_run(self, random_session):
        """Reset returns to step 0 with no centroids"""
        random_session.run_to_convergence()
        random_session.reset()

        assert random_session.step == 0
        assert random_session.centroids.shape == (0, 2)
        assert len(random_session.labels) == 0
        assert not random_session.converged
        assert random_session.state is SessionState.NOT_STARTED
        assert random_session.history == []

    def test_reset_keeps_k_method_and_data(self, random_session):
        """User choices and the dataset survive a reset"""
        data = random_session.data
        random_session.advance_step()
        random_session.reset()

        assert random_session.k == 3
        assert random_session.method is InitMethod.KMEANS_PLUS_PLUS
        np.testing.assert_array_equal(random_session.data, data)

    def test_reset_from_not_started(self, random_session):
        """Reset on a fresh session is harmless"""
        random_session.reset()
        assert random_session.state is SessionState.NOT_STARTED

    def test_new_dataset(self, random_session):
        """new_dataset resamples and resets"""
        random_session.run_to_convergence()
        random_session.new_dataset(n=25, bounds=(0, 3))

        data = random_session.data
        assert data.shape == (25, 2)
        assert data.min() >= 0 and data.max() <= 3
        assert random_session.step == 0
        assert random_session.centroids.shape == (0, 2)
        assert random_session.k == 3

    def test_new_dataset_uses_config_defaults(self):
        """Without arguments the sampler config is used"""
        config = make_config()
        config.sampler.n_points = 40
        session = ClusteringSession(config)

        session.new_dataset()

        assert session.data.shape == (40, 2)

    def test_set_data(self):
        """User-supplied points replace the dataset"""
        session = ClusteringSession(make_config(k=1))
        session.advance_step()

        session.set_data([Point(1.0, 2.0), Point(3.0, 4.0)])

        np.testing.assert_array_equal(session.data, [[1, 2], [3, 4]])
        assert session.step == 0


class TestRunToConvergence:
    """Driving the step transition to a fixed point."""

    @pytest.mark.parametrize("method", ["Random", "Farthest-First", "KMeans++"])
    def test_converges(self, method):
        """Each sampling strategy reaches a fixed point on random data"""
        session = ClusteringSession(make_config(k=4, method=method, seed=9))

        state = session.run_to_convergence()

        assert state is SessionState.CONVERGED
        assert session.snapshot().cluster_sizes.sum() == len(session.data)
        assert len(session.history) == session.step

    def test_iteration_cap(self, random_session):
        """A cap of one only initializes"""
        state = random_session.run_to_convergence(max_iterations=1)

        assert state is SessionState.STEPPING
        assert random_session.step == 1

    def test_invalid_cap(self, random_session):
        """A cap below one is rejected"""
        with pytest.raises(ValueError):
            random_session.run_to_convergence(max_iterations=0)

    def test_objective_non_increasing(self):
        """Overall distance never grows between Lloyd steps"""
        session = ClusteringSession(make_config(k=5, method="Random", seed=21))
        session.run_to_convergence()

        od = np.array(session.objectives)
        assert len(od) >= 1
        assert np.all(np.diff(od) <= 1e-9)

    def test_centroid_count_bounded_by_k(self, random_session):
        """len(centroids) <= k after every transition"""
        for _ in range(20):
            random_session.advance_step()
            assert len(random_session.centroids) <= random_session.k

    def test_single_cluster(self):
        """k=1 lands on the dataset mean within two steps"""
        session = ClusteringSession(make_config(k=1, seed=4))

        session.run_to_convergence()

        assert session.converged
        assert session.step <= 2
        np.testing.assert_allclose(session.centroids[0], session.data.mean(axis=0))

    @pytest.mark.parametrize("method", ["Random", "Farthest-First", "KMeans++"])
    @pytest.mark.parametrize("k", [1, 2, 4])
    def test_identical_points_converge_in_two_calls(self, method, k):
        """A dataset of one repeated point converges on the second call"""
        data = np.full((6, 2), 3.0)
        session = ClusteringSession(make_config(k=k, method=method), data=data)

        assert session.advance_step() is SessionState.STEPPING
        assert session.advance_step() is SessionState.CONVERGED
        assert session.empty_clusters.tolist() == [False] + [True] * (k - 1)

    def test_convergence_tolerance(self):
        """A loose tolerance converges on the first Lloyd step"""
        config = make_config(k=3, seed=2, convergence_tol=1e9)
        session = ClusteringSession(config)

        session.advance_step()
        assert session.advance_step() is SessionState.CONVERGED
        assert session.step == 1


class TestManualMode:
    """Collecting centroids by hand."""

    @pytest.fixture
    def session(self):
        return ClusteringSession(make_config(k=2, method="Manual"), data=FOUR_POINTS)

    def test_collecting_state(self, session):
        """Fewer than k manual points means COLLECTING_CENTROIDS"""
        assert session.state is SessionState.COLLECTING_CENTROIDS
        session.add_manual_centroid((0.0, 0.0))
        assert session.state is SessionState.COLLECTING_CENTROIDS
        np.testing.assert_array_equal(session.centroids, [[0.0, 0.0]])

    def test_full_run(self, session):
        """Manual centroids are used as-is, then Lloyd takes over"""
        session.add_manual_centroid(Point(-4.0, -4.0))
        session.add_manual_centroid((4.0, 4.0))
        assert session.state is SessionState.NOT_STARTED

        session.advance_step()
        assert session.step == 1
        np.testing.assert_array_equal(session.centroids, [[-4, -4], [4, 4]])

        assert session.run_to_convergence() is SessionState.CONVERGED
        np.testing.assert_array_equal(session.centroids, [[-5, -4.5], [5, 4.5]])

    def test_overflow(self, session):
        """Adding past k raises ManualOverflowError"""
        session.add_manual_centroid((0.0, 0.0))
        session.add_manual_centroid((1.0, 1.0))

        with pytest.raises(ManualOverflowError):
            session.add_manual_centroid((2.0, 2.0))
        assert len(session.manual_points) == 2

    def test_incomplete(self, session):
        """Starting before k points are placed is rejected"""
        session.add_manual_centroid((0.0, 0.0))
        before = session.snapshot()

        with pytest.raises(IncompleteManualInitializationError):
            session.advance_step()
        assert session.snapshot() == before

    def test_requires_manual_mode(self):
        """Manual centroids are refused in other modes"""
        session = ClusteringSession(make_config(k=2, method="Random"), data=FOUR_POINTS)
        with pytest.raises(InvalidTransitionError):
            session.add_manual_centroid((0.0, 0.0))

    def test_refused_after_initialization(self):
        """Once the run starts no more centroids can be placed"""
        session = ClusteringSession(make_config(k=1, method="Manual"), data=FOUR_POINTS)
        session.add_manual_centroid((0.0, 0.0))
        session.advance_step()
        before = session.snapshot()

        with pytest.raises(InvalidTransitionError):
            session.add_manual_centroid((1.0, 1.0))
        assert session.snapshot() == before
        assert len(session.manual_points) == 1

    def test_refused_after_convergence(self, session):
        """A converged manual run refuses new centroids until reset"""
        session.add_manual_centroid((-4.0, -4.0))
        session.add_manual_centroid((4.0, 4.0))
        assert session.run_to_convergence() is SessionState.CONVERGED

        with pytest.raises(InvalidTransitionError):
            session.add_manual_centroid((0.0, 0.0))

        session.reset()
        session.add_manual_centroid((0.0, 0.0))
        assert session.state is SessionState.COLLECTING_CENTROIDS

    def test_reset_clears_manual_points(self, session):
        """Reset discards collected manual points"""
        session.add_manual_centroid((0.0, 0.0))
        session.reset()

        assert session.manual_points == []
        assert session.state is SessionState.COLLECTING_CENTROIDS

    def test_switching_method_discards_points(self, session):
        """Leaving Manual mode before starting drops the collected points"""
        session.add_manual_centroid((0.0, 0.0))
        session.set_method("Random")

        assert session.manual_points == []
        assert session.centroids.shape == (0, 2)
        assert session.state is SessionState.NOT_STARTED


class TestPreconditions:
    """Rejected calls leave the session untouched."""

    def test_invalid_k_in_config(self):
        """Constructing with k <= 0 fails"""
        with pytest.raises(InvalidKError):
            ClusteringSession(make_config(k=0))

    def test_set_k_non_positive(self, random_session):
        """set_k rejects k <= 0"""
        with pytest.raises(InvalidKError):
            random_session.set_k(0)
        assert random_session.k == 3

    def test_k_exceeds_dataset(self):
        """k larger than the dataset fails at initialization"""
        session = ClusteringSession(make_config(k=2), data=FOUR_POINTS)
        session.set_k(5)
        before = session.snapshot()

        with pytest.raises(InvalidKError):
            session.advance_step()
        assert session.snapshot() == before

    def test_empty_dataset(self):
        """Stepping with no data raises EmptyDatasetError"""
        session = ClusteringSession(make_config(k=1), data=np.empty((0, 2)))
        with pytest.raises(EmptyDatasetError):
            session.advance_step()
        assert session.step == 0

    def test_set_k_during_run(self, random_session):
        """k cannot change mid-run"""
        random_session.advance_step()
        with pytest.raises(InvalidTransitionError):
            random_session.set_k(2)

    def test_set_method_during_run(self, random_session):
        """The method cannot change mid-run, so the snapshot names the one used"""
        random_session.advance_step()
        before = random_session.snapshot()

        with pytest.raises(InvalidTransitionError):
            random_session.set_method("Farthest-First")
        assert random_session.snapshot() == before
        assert random_session.snapshot().method is InitMethod.KMEANS_PLUS_PLUS

    def test_set_same_method_during_run(self, random_session):
        """Re-selecting the current method mid-run is accepted"""
        random_session.advance_step()
        random_session.set_method("KMeans++")
        assert random_session.method is InitMethod.KMEANS_PLUS_PLUS

    def test_set_method_after_reset(self, random_session):
        """After a reset the method can change again"""
        random_session.run_to_convergence()
        random_session.reset()
        random_session.set_method("Random")
        assert random_session.method is InitMethod.RANDOM

    def test_set_k_below_manual_points(self):
        """k cannot drop below the manual centroids already placed"""
        session = ClusteringSession(make_config(k=3, method="Manual"), data=FOUR_POINTS)
        session.add_manual_centroid((0.0, 0.0))
        session.add_manual_centroid((1.0, 1.0))

        with pytest.raises(InvalidKError):
            session.set_k(1)
        assert session.k == 3

    def test_session_usable_after_error(self):
        """A rejected call does not break later calls"""
        session = ClusteringSession(make_config(k=2), data=FOUR_POINTS)
        session.set_k(9)
        with pytest.raises(InvalidKError):
            session.advance_step()

        session.set_k(2)
        assert session.run_to_convergence() is SessionState.CONVERGED


class TestSnapshot:
    """The read-only view handed to renderers."""

    def test_snapshot_is_a_copy(self, random_session):
        """Mutating a snapshot does not touch the session"""
        random_session.advance_step()
        snap = random_session.snapshot()
        snap.centroids[:] = 99.0

        assert not np.any(random_session.centroids == 99.0)

    def test_snapshot_fields(self, random_session):
        """Snapshot mirrors the session"""
        random_session.advance_step()
        random_session.advance_step()
        snap = random_session.snapshot()

        assert snap.step == random_session.step
        assert snap.k == 3
        assert snap.method is InitMethod.KMEANS_PLUS_PLUS
        assert snap.labels.shape == (len(snap.data),)
        assert snap.cluster_sizes.sum() == len(snap.data)

    def test_sampler_injection(self):
        """A supplied sampler generates the initial dataset"""
        config = make_config()
        config.sampler.n_points = 12
        session = ClusteringSession(config, sampler=PointSampler(seed=3))

        np.testing.assert_array_equal(
            session.data, PointSampler(seed=3).generate(12, (-10, 10))
        )
