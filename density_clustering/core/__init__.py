"""
Core clustering module.

Exports:
- DBSCAN / cluster: Density-based clustering engine
- ClustersPlusNoise: Partition result
- Progress: Progress snapshot passed to callbacks
- ClusteringEngine: Main orchestration class
- BaseClusteringAlgorithm, ClusteringResult, ClusteringConfig
- DBSCANAlgorithm: Vector-matrix adapter around the engine
"""

from density_clustering.core.base_clustering import (
    BaseClusteringAlgorithm,
    ClusteringConfig,
    ClusteringResult,
)
from density_clustering.core.clustering_engine import ClusteringEngine
from density_clustering.core.dbscan import DBSCAN, ClassificationState, cluster
from density_clustering.core.dbscan_algorithm import DBSCANAlgorithm
from density_clustering.core.partition import NOISE_LABEL, ClustersPlusNoise
from density_clustering.core.progress import Progress, ProgressCallback

__all__ = [
    "BaseClusteringAlgorithm",
    "ClusteringConfig",
    "ClusteringResult",
    "ClusteringEngine",
    "DBSCAN",
    "ClassificationState",
    "cluster",
    "DBSCANAlgorithm",
    "NOISE_LABEL",
    "ClustersPlusNoise",
    "Progress",
    "ProgressCallback",
]
