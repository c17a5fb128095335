#!/usr/bin/env python3
"""Command-line front end for the k-means explorer.

Batch mode generates a dataset, runs the chosen initialization and Lloyd's
algorithm to convergence, and prints a summary. Interactive mode reads one
command per line from stdin and prints the session after each one.

Usage:
    python experiments/run_explorer.py --k 4 --method KMeans++ --seed 7
    python experiments/run_explorer.py --method Farthest-First --plot-dir outputs
    python experiments/run_explorer.py --interactive --method Manual --k 2

Interactive commands:
    step              advance one step (initialization is step 1)
    run [N]           run to convergence, at most N iterations
    reset             clear centroids, keep dataset, k and method
    new [N]           generate a new dataset of N points
    k <N>             set number of clusters
    method <name>     Random | Farthest-First | KMeans++ | Manual
    add <x> <y>       place a manual centroid
    show              print the session
    plot              write snapshot plots to --plot-dir
    quit              exit
"""

import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import argparse
import dataclasses
import logging

from kmeans_explorer.config import ExplorerConfig
from kmeans_explorer.errors import ClusteringError
from kmeans_explorer.session import ClusteringSession, SessionState
from kmeans_explorer.clustering.metrics import silhouette_score
from kmeans_explorer.visualization.plot_utils import (
    plot_session,
    plot_centroid_paths,
    plot_objective_curve,
)


def build_config(args: argparse.Namespace) -> ExplorerConfig:
    """Merge command-line overrides into a config."""
    config = ExplorerConfig.from_json(args.config) if args.config else ExplorerConfig()

    if args.n_points is not None:
        config.sampler.n_points = args.n_points
    if args.seed is not None:
        config.sampler.seed = args.seed
        config.session.seed = args.seed + 1
    if args.k is not None:
        config.session.n_clusters = args.k
    if args.method is not None:
        config.session.method = args.method
    if args.max_iter is not None:
        config.session.max_iterations = args.max_iter
    if args.tol is not None:
        config.session.convergence_tol = args.tol

    # replace() re-runs validation after overrides
    config.session = dataclasses.replace(config.session)
    return config


def print_session(session: ClusteringSession) -> None:
    """Print a compact read-out of the session."""
    snap = session.snapshot()
    print(f"  State: {snap.state.value}  Step: {snap.step}  "
          f"k={snap.k}  method={snap.method.value}  points={len(snap.data)}")
    for i, c in enumerate(snap.centroids):
        size = ""
        if len(snap.labels):
            size = f"  n={int(snap.cluster_sizes[i])}"
            if snap.empty_clusters[i]:
                size += " (empty)"
        print(f"    C{i}: ({c[0]:.4f}, {c[1]:.4f}){size}")
    if session.objectives:
        print(f"  OD: {session.objectives[-1]:.4f}")
    if snap.converged:
        print("  Converged!")


def write_plots(session: ClusteringSession, plot_dir: Path, tag: str) -> None:
    """Write snapshot, centroid-path and objective plots."""
    plot_dir.mkdir(parents=True, exist_ok=True)
    snap = session.snapshot()
    plot_cfg = session.config.plot
    paths = [plot_session(snap, plot_dir / f"{tag}_session.png", config=plot_cfg)]
    if session.history:
        paths.append(plot_centroid_paths(
            snap.data, session.history, plot_dir / f"{tag}_paths.png", config=plot_cfg))
    if session.objectives:
        paths.append(plot_objective_curve(
            session.objectives, plot_dir / f"{tag}_objective.png", config=plot_cfg))
    for p in paths:
        print(f"  Saved: {p}")


def run_batch(session: ClusteringSession, args: argparse.Namespace) -> int:
    """Run to convergence and report."""
    print("=" * 60)
    print("K-Means Explorer")
    print("=" * 60)
    print(f"  Points: {len(session.data)}")
    print(f"  k: {session.k}")
    print(f"  Method: {session.method.value}")
    print(f"  Max iterations: {session.max_iterations}")
    print()

    if session.state is SessionState.COLLECTING_CENTROIDS:
        print("Manual mode needs centroids; use --interactive to place them.")
        return 2

    try:
        final = session.run_to_convergence()
    except ClusteringError as exc:
        print(f"  Error: {exc}")
        return 1
    print("Result:")
    print_session(session)
    if final is not SessionState.CONVERGED:
        print(f"  Did not converge within {session.max_iterations} iterations")

    labels = session.labels
    if len(labels):
        print(f"  Silhouette: {silhouette_score(session.data, labels):.4f}")

    if args.plot_dir:
        write_plots(session, Path(args.plot_dir), "final")
    return 0


def handle_command(session: ClusteringSession, line: str, plot_dir: Path) -> bool:
    """Apply one interactive command. Returns False to quit."""
    parts = line.split()
    if not parts:
        return True
    cmd, rest = parts[0].lower(), parts[1:]

    if cmd in ("quit", "exit", "q"):
        return False
    if cmd == "step":
        session.advance_step()
    elif cmd == "run":
        session.run_to_convergence(int(rest[0]) if rest else None)
    elif cmd == "reset":
        session.reset()
    elif cmd == "new":
        session.new_dataset(int(rest[0]) if rest else None)
    elif cmd == "k":
        session.set_k(int(rest[0]))
    elif cmd == "method":
        session.set_method(" ".join(rest))
    elif cmd == "add":
        session.add_manual_centroid((float(rest[0]), float(rest[1])))
    elif cmd == "plot":
        write_plots(session, plot_dir, f"step{session.step:03d}")
        return True
    elif cmd != "show":
        print(f"  Unknown command: {cmd}")
        return True

    print_session(session)
    return True


def run_interactive(session: ClusteringSession, args: argparse.Namespace) -> int:
    """Read commands from stdin until EOF or quit."""
    plot_dir = Path(args.plot_dir or "./outputs")
    print("K-Means Explorer (type 'quit' to exit)")
    print_session(session)

    for line in sys.stdin:
        try:
            if not handle_command(session, line, plot_dir):
                break
        except (ClusteringError, ValueError, IndexError) as exc:
            # Rejected commands leave the session untouched
            print(f"  Error: {exc}")
    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        description="Step through k-means on a random 2D dataset.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--config", type=str, default=None,
                        help="JSON config file (overridden by flags)")
    parser.add_argument("--n-points", type=int, default=None,
                        help="Points in the generated dataset")
    parser.add_argument("--k", type=int, default=None, help="Number of clusters")
    parser.add_argument("--method", type=str, default=None,
                        help="Random | Farthest-First | KMeans++ | Manual")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument("--max-iter", type=int, default=None,
                        help="Iteration cap for run to convergence")
    parser.add_argument("--tol", type=float, default=None,
                        help="Convergence tolerance (0 = exact equality)")
    parser.add_argument("--plot-dir", type=str, default=None,
                        help="Directory for plots")
    parser.add_argument("--interactive", action="store_true",
                        help="Read commands from stdin")
    parser.add_argument("--log-level", type=str, default="WARNING",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
    )

    try:
        config = build_config(args)
        session = ClusteringSession(config)
    except (ClusteringError, ValueError) as exc:
        parser.error(str(exc))

    if args.interactive:
        return run_interactive(session, args)
    return run_batch(session, args)


if __name__ == "__main__":
    sys.exit(main())
