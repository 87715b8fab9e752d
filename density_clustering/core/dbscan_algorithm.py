"""
DBSCAN Clustering Algorithm Implementation.

Density-Based Spatial Clustering of Applications with Noise (DBSCAN) is ideal for:
- Finding arbitrarily shaped clusters
- Separating noise from dense regions
- Not requiring the number of clusters as input

This adapter turns a raw vector matrix into a VectorDatabase, builds a
range-query oracle and runs the DBSCAN engine over it.
"""

import logging
from typing import Any, Dict, Optional

import numpy as np

from density_clustering.core.base_clustering import (
    BaseClusteringAlgorithm,
    ClusteringConfig,
    ClusteringResult,
)
from density_clustering.core.dbscan import DBSCAN
from density_clustering.storage.distance import get_distance_function
from density_clustering.storage.neighborhood import build_oracle, recommend_index
from density_clustering.storage.vector_database import VectorDatabase
from density_clustering.utils.advanced_logging import (
    PerformanceLogger,
    ProgressLogger,
    get_logger,
)
from density_clustering.utils.error_handling import ConfigurationError

logger = logging.getLogger(__name__)


class DBSCANAlgorithm(BaseClusteringAlgorithm):
    """
    DBSCAN clustering implementation.

    Best for: Spatial data, feature vectors with noise, non-convex clusters
    Strengths: Explicit noise handling, deterministic for a fixed enumeration order
    Weaknesses: A single global density threshold (epsilon, min_pts)
    """

    def __init__(self, config: ClusteringConfig):
        """
        Initialize DBSCAN algorithm.

        Args:
            config: Clustering configuration
        """
        super().__init__(config)

        params = config.params
        if "epsilon" not in params:
            raise ConfigurationError("Parameter 'epsilon' is required", parameter="epsilon")

        self.distance_function = get_distance_function(params.get("distance_function", "euclidean"))
        self.epsilon = self.distance_function.parse_epsilon(params["epsilon"])
        self.min_pts = params.get("min_pts", 5)
        self.index = str(params.get("index", "auto")).lower()
        self.progress = params.get("progress")
        self.progress_log_interval = params.get("progress_log_interval", 100)

        logger.info(
            f"Initialized DBSCAN: epsilon={self.epsilon}, min_pts={self.min_pts}, "
            f"distance_function={self.distance_function.name}, index={self.index}"
        )

    def cluster(
        self,
        vectors: Any,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> ClusteringResult:
        """
        Perform DBSCAN clustering.

        Args:
            vectors: Feature vectors (N x D), dense or scipy sparse
            metadata: Optional metadata; ``metadata["ids"]`` supplies object ids

        Returns:
            ClusteringResult with labels, partition and metrics

        Raises:
            OracleError: If a range query fails (no partial result)
        """
        ids = metadata.get("ids") if metadata else None
        database = vectors if isinstance(vectors, VectorDatabase) else VectorDatabase(vectors, ids=ids)

        logger.info(f"Starting DBSCAN clustering on {len(database)} vectors")

        index = self.index
        if index == "auto":
            index = recommend_index(
                len(database),
                self.distance_function,
                dimensionality=database.dimensionality,
                sparse=database.is_sparse,
            )
        oracle = build_oracle(database, self.distance_function, index=index)

        progress = self.progress or ProgressLogger(log_interval=self.progress_log_interval)
        engine = DBSCAN(epsilon=self.epsilon, min_pts=self.min_pts, progress=progress)

        with PerformanceLogger(
            "dbscan",
            logger=get_logger(__name__),
            item_count=len(database),
            index=index,
            distance_function=self.distance_function.name,
        ) as timer:
            partition = engine.run(database, oracle)

        object_ids = database.ids
        cluster_labels = partition.to_labels(object_ids)

        logger.info(
            f"DBSCAN found {partition.n_clusters} clusters with {partition.noise_count} noise objects"
        )

        quality_metrics = self._calculate_quality_metrics(
            database.vectors, cluster_labels, metric=self.distance_function.metric
        )
        quality_metrics["range_queries"] = float(oracle.query_count)

        return ClusteringResult(
            cluster_labels=cluster_labels,
            n_clusters=partition.n_clusters,
            outlier_count=int(np.sum(cluster_labels == -1)),
            quality_metrics=quality_metrics,
            partition=partition,
            object_ids=object_ids,
            execution_time=timer.elapsed_time,
        )
