#!/usr/bin/env python3
"""
Density Clustering CLI

Command-line interface for running DBSCAN over vector files.

Usage:
    python cli.py cluster vectors.npy --epsilon 0.5 --min-pts 5
    python cli.py cluster vectors.csv --ids --format jsonl --output-dir out/
    python cli.py cluster vectors.npz --distance-function cosine --epsilon 0.2
    python cli.py estimate-eps vectors.npy --min-pts 5 --quantile 0.9

Exit codes:
    0  success
    1  range query or storage failure
    2  invalid configuration
"""

import argparse
import sys
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from density_clustering.config.settings_loader import ConfigManager, Settings
from density_clustering.core.clustering_engine import ClusteringEngine
from density_clustering.core.progress import Progress
from density_clustering.schemas.data_models import PartitionRecord
from density_clustering.storage.result_writer import ResultWriter
from density_clustering.storage.vector_database import VectorDatabase
from density_clustering.utils.advanced_logging import configure_logging, log_exceptions
from density_clustering.utils.error_handling import (
    ClusteringError,
    ConfigurationError,
    StorageError,
)


EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CONFIG_ERROR = 2


def _ignore_progress(progress: Progress) -> None:
    pass


class ClusteringCLI:
    """CLI for the density clustering service."""

    def __init__(self, settings: Settings):
        """
        Initialize CLI.

        Args:
            settings: Validated settings (CLI overrides already applied)
        """
        self.settings = settings
        self.engine = ClusteringEngine()

    def cluster(self, input_path: str, id_column: bool = False, quiet: bool = False) -> Dict[str, Any]:
        """
        Cluster a vector file and write the partition.

        Args:
            input_path: Vector file (.npy, .npz, .csv, .txt)
            id_column: First column of a text file holds object ids
            quiet: Disable progress logging

        Returns:
            Summary with the written file path and partition counts
        """
        with log_exceptions(operation="load_vectors"):
            database = VectorDatabase.from_file(input_path, id_column=id_column)

        dbscan = self.settings.dbscan
        params: Dict[str, Any] = {
            "epsilon": dbscan.epsilon,
            "min_pts": dbscan.min_pts,
            "distance_function": dbscan.distance_function,
            "index": dbscan.index,
            "progress_log_interval": self.settings.progress.log_interval,
        }
        if quiet or not self.settings.progress.enabled:
            params["progress"] = _ignore_progress

        result = self.engine.cluster(database, algorithm="dbscan", algorithm_params=params)

        record = PartitionRecord.from_result(
            result,
            algorithm="dbscan",
            parameters={k: v for k, v in params.items() if k != "progress"},
        )

        output = self.settings.output
        writer = ResultWriter(
            output_dir=output.output_dir,
            pretty_print=output.pretty_print,
            file_pattern=output.file_pattern,
        )
        path = writer.write(record, format=output.format)

        return {
            "run_id": record.run_id,
            "path": str(path),
            "total_objects": record.total_objects,
            "n_clusters": record.n_clusters,
            "noise_count": record.noise_count,
            "cluster_sizes": [cluster.size for cluster in record.clusters],
            "quality_metrics": record.quality_metrics,
            "execution_time_ms": record.execution_time_ms,
        }

    def estimate_epsilon(self, input_path: str, min_pts: int, quantile: float = 0.9) -> float:
        """Estimate epsilon for a vector file from its k-distance curve."""
        with log_exceptions(operation="load_vectors"):
            database = VectorDatabase.from_file(input_path)
        return self.engine.estimate_epsilon(
            database.vectors,
            min_pts=min_pts,
            distance_function=self.settings.dbscan.distance_function,
            quantile=quantile,
        )


def print_summary(summary: Dict[str, Any]):
    """Print clustering summary."""
    print(f"✅ Clustering complete: {summary['run_id']}")
    print(f"   Objects: {summary['total_objects']}")
    print(f"   Clusters: {summary['n_clusters']}")
    print(f"   Noise: {summary['noise_count']}")

    sizes = summary.get("cluster_sizes") or []
    if sizes:
        print(f"   Cluster Sizes: {', '.join(str(size) for size in sizes)}")

    for name, value in summary.get("quality_metrics", {}).items():
        print(f"   {name}: {value:.4f}")

    print(f"   Time: {summary['execution_time_ms']:.1f}ms")
    print(f"📁 Results written to {summary['path']}")


def print_error(message: str):
    """Print an error message to stderr."""
    print(f"❌ {message}", file=sys.stderr)


def apply_overrides(settings: Settings, args: argparse.Namespace) -> Settings:
    """
    Apply command-line overrides to loaded settings.

    Values are re-validated through the settings models, so an invalid flag is
    reported exactly like an invalid configuration file entry.

    Raises:
        ConfigurationError: If an overridden value is invalid
    """
    data = settings.model_dump()

    dbscan_overrides = {
        "epsilon": getattr(args, "epsilon", None),
        "min_pts": getattr(args, "min_pts", None),
        "distance_function": getattr(args, "distance_function", None),
        "index": getattr(args, "index", None),
    }
    for key, value in dbscan_overrides.items():
        if value is not None:
            data["dbscan"][key] = value

    if getattr(args, "output_dir", None):
        data["output"]["output_dir"] = args.output_dir
    if getattr(args, "format", None):
        data["output"]["format"] = args.format
    if getattr(args, "quiet", False):
        data["logging"]["level"] = "WARNING"

    try:
        return Settings(**data)
    except ValidationError as e:
        error = e.errors()[0]
        parameter = str(error["loc"][-1]) if error.get("loc") else None
        raise ConfigurationError(error["msg"], parameter=parameter)


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        description="Density Clustering CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    cluster_parser = subparsers.add_parser("cluster", help="Cluster a vector file with DBSCAN")
    cluster_parser.add_argument("input", help="Vector file (.npy, .npz, .csv, .txt)")
    cluster_parser.add_argument("--epsilon", "-e", help="Neighborhood radius")
    cluster_parser.add_argument("--min-pts", "-m", type=int, help="Minimum neighborhood size")
    cluster_parser.add_argument("--distance-function", "-d", help="Distance function (euclidean/manhattan/chebyshev/cosine)")
    cluster_parser.add_argument("--index", help="Range query index (auto/linear/kd_tree/ball_tree/brute)")
    cluster_parser.add_argument("--config", help="Configuration file path")
    cluster_parser.add_argument("--output-dir", "-o", help="Output directory")
    cluster_parser.add_argument("--format", choices=["json", "jsonl"], help="Output format")
    cluster_parser.add_argument("--ids", action="store_true", help="First column of a text file holds object ids")
    cluster_parser.add_argument("--quiet", "-q", action="store_true", help="Only log warnings and errors")

    estimate_parser = subparsers.add_parser("estimate-eps", help="Estimate epsilon from the k-distance curve")
    estimate_parser.add_argument("input", help="Vector file (.npy, .npz, .csv, .txt)")
    estimate_parser.add_argument("--min-pts", "-m", type=int, required=True, help="Minimum neighborhood size")
    estimate_parser.add_argument("--quantile", type=float, default=0.9, help="k-distance quantile (0..1)")
    estimate_parser.add_argument("--distance-function", "-d", help="Distance function")
    estimate_parser.add_argument("--config", help="Configuration file path")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        ConfigManager.reset()
        settings = apply_overrides(ConfigManager.load_config(args.config), args)

        configure_logging(
            log_level=settings.logging.level,
            log_format=settings.logging.format,
            log_file=settings.logging.file,
            service_name=settings.service.name,
        )

        cli = ClusteringCLI(settings)

        if args.command == "cluster":
            summary = cli.cluster(args.input, id_column=args.ids, quiet=args.quiet)
            print_summary(summary)

        elif args.command == "estimate-eps":
            epsilon = cli.estimate_epsilon(args.input, min_pts=args.min_pts, quantile=args.quantile)
            print(f"📏 Estimated epsilon: {epsilon:.6g}")
            print(f"   min_pts: {args.min_pts}")
            print(f"   quantile: {args.quantile}")

    except ConfigurationError as e:
        parameter = e.parameter or "configuration"
        print_error(f"Invalid {parameter}: {e.message}")
        return EXIT_CONFIG_ERROR
    except (ClusteringError, StorageError) as e:
        print_error(e.message)
        return EXIT_FAILURE

    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
