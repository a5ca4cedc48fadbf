"""CLI script for recommending services and segmenting clients.

Reads a wide client x service CSV, runs the recommendation and segmentation
pipeline and prints a friendly message per client.

Example:
    $ python scripts/recommend_cli.py data/customer_preferences.csv
    $ python scripts/recommend_cli.py data/customer_preferences.csv --n-recs 3 --show-segments
"""

import argparse
import logging
import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from servicerec.exceptions import ServiceRecException
from servicerec.pairwise import DEFAULT_N_JOBS
from servicerec.pipeline import run_pipeline
from servicerec.recommender.infer import DEFAULT_N_RECS
from servicerec.recommender.messages import format_recommendation_message
from servicerec.recommender.preferences import load_preferences_csv
from servicerec.recommender.report import recommendation_counts, segment_summary
from servicerec.segmentation.clustering import DEFAULT_N_CLUSTERS


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the script.

    Args:
        verbose: If True, set log level to INFO. Otherwise, WARNING.
    """
    level = logging.INFO if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def parse_arguments(argv=None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Recommend marketing services to clients from a usage CSV.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python scripts/recommend_cli.py data/customer_preferences.csv
  python scripts/recommend_cli.py data/customer_preferences.csv --n-recs 3
  python scripts/recommend_cli.py data/customer_preferences.csv --client "Biscuit Barn"
  python scripts/recommend_cli.py data/customer_preferences.csv --show-segments --clusters 3
        """,
    )

    parser.add_argument(
        "csv_path",
        type=str,
        help="CSV with a client column followed by one 0/1 column per service",
    )
    parser.add_argument(
        "--client-col",
        type=str,
        default=None,
        help="Name of the client identifier column (default: first column)",
    )
    parser.add_argument(
        "--n-recs",
        type=int,
        default=DEFAULT_N_RECS,
        help=f"Recommendations per client (default: {DEFAULT_N_RECS})",
    )
    parser.add_argument(
        "--neighbors",
        type=int,
        default=None,
        help="Neighborhood size per service (default: all other services)",
    )
    parser.add_argument(
        "--clusters",
        type=int,
        default=None,
        help=f"Number of client segments (default: {DEFAULT_N_CLUSTERS}, "
        "capped at the number of clients)",
    )
    parser.add_argument(
        "--n-jobs",
        type=int,
        default=DEFAULT_N_JOBS,
        help="Worker processes for pairwise computations (default: 1, -1 = all cores)",
    )
    parser.add_argument(
        "--client",
        type=str,
        default=None,
        help="Only print the message for this client",
    )
    parser.add_argument(
        "--show-segments",
        action="store_true",
        help="Print cluster assignments and a per-segment summary",
    )
    parser.add_argument(
        "--show-counts",
        action="store_true",
        help="Print how often each service was recommended vs used",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging",
    )

    return parser.parse_args(argv)


def main(argv=None) -> int:
    """Main entry point.

    Returns:
        Exit code: 0 on success, 1 on error, 130 if interrupted.
    """
    args = parse_arguments(argv)
    setup_logging(verbose=args.verbose)
    logger = logging.getLogger(__name__)

    try:
        matrix = load_preferences_csv(args.csv_path, client_col=args.client_col)

        n_clusters = args.clusters
        if n_clusters is None:
            n_clusters = min(DEFAULT_N_CLUSTERS, matrix.n_clients)

        result = run_pipeline(
            matrix,
            n_recs=args.n_recs,
            neighborhood_size=args.neighbors,
            n_clusters=n_clusters,
            n_jobs=args.n_jobs,
        )

        if args.client is not None:
            client = matrix.clients[matrix.client_index(args.client)]
            selected = [result.recommendations[client]]
        else:
            selected = list(result.recommendations.values())

        print("\n--- Service Recommendations ---\n")
        for recommendations in selected:
            print(format_recommendation_message(recommendations))
            print()

        if args.show_counts:
            print("--- Recommended vs Used ---\n")
            print(recommendation_counts(matrix, result.recommendations).to_string(index=False))
            print()

        if args.show_segments:
            print(f"--- Client Segments (k={n_clusters}) ---\n")
            for client in result.tree.leaf_order():
                print(f"  {client}: segment {result.segments[client]}")
            print()
            print(segment_summary(matrix, result.segments).round(2).to_string())
            print()

        return 0

    except FileNotFoundError as e:
        logger.error(f"File error: {e}")
        return 1
    except ServiceRecException as e:
        logger.error(f"{type(e).__name__}: {e.message}")
        return 1
    except Exception as e:
        logger.error(f"Unexpected error: {e}")
        return 1
    except KeyboardInterrupt:
        logger.warning("Interrupted by user")
        return 130


if __name__ == "__main__":
    sys.exit(main())
