"""
Base Clustering Algorithm Interface.

Defines the contract for clustering algorithms operating on raw vectors.
Algorithms return a ClusteringResult carrying both per-vector labels and the
clusters-plus-noise partition.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Hashable, List, Optional

import numpy as np

from density_clustering.core.partition import NOISE_LABEL, ClustersPlusNoise


@dataclass
class ClusteringConfig:
    """Configuration for clustering algorithms."""

    algorithm_name: str
    params: Dict[str, Any]


class ClusteringResult:
    """Results from clustering operation."""

    def __init__(
        self,
        cluster_labels: np.ndarray,
        n_clusters: int,
        outlier_count: int,
        quality_metrics: Dict[str, float],
        partition: ClustersPlusNoise,
        object_ids: List[Hashable],
        execution_time: float = 0.0,
    ):
        self.cluster_labels = cluster_labels
        self.n_clusters = n_clusters
        self.outlier_count = outlier_count
        self.quality_metrics = quality_metrics
        self.partition = partition
        self.object_ids = object_ids
        self.execution_time = execution_time

    @property
    def labels(self) -> np.ndarray:
        """Alias for cluster_labels."""
        return self.cluster_labels

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "n_clusters": self.n_clusters,
            "outlier_count": self.outlier_count,
            "quality_metrics": self.quality_metrics,
            "total_items": len(self.cluster_labels),
            "cluster_sizes": self.partition.cluster_sizes(),
            "execution_time": self.execution_time,
        }


class BaseClusteringAlgorithm(ABC):
    """
    Abstract base class for clustering algorithms.

    Subclasses implement cluster() on an (N x D) vector matrix.
    """

    def __init__(self, config: ClusteringConfig):
        """
        Initialize clustering algorithm.

        Args:
            config: Clustering configuration
        """
        self.config = config
        self.name = config.algorithm_name

    @abstractmethod
    def cluster(
        self,
        vectors: Any,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> ClusteringResult:
        """
        Perform clustering on vectors.

        Args:
            vectors: Feature vectors (N x D), dense or sparse
            metadata: Optional metadata (e.g. object ids)

        Returns:
            ClusteringResult with labels and metrics
        """
        pass

    def _calculate_quality_metrics(
        self,
        vectors: Any,
        labels: np.ndarray,
        metric: str = "euclidean",
    ) -> Dict[str, float]:
        """
        Calculate clustering quality metrics on non-noise objects.

        Args:
            vectors: Input vectors
            labels: Cluster labels (-1 for noise)
            metric: Distance metric for the silhouette score

        Returns:
            Dictionary of quality metrics
        """
        from sklearn.metrics import davies_bouldin_score, silhouette_score

        metrics: Dict[str, float] = {}

        n_objects = len(labels)
        if n_objects > 0:
            metrics["noise_ratio"] = float(np.sum(labels == NOISE_LABEL) / n_objects)

        clustered_mask = labels != NOISE_LABEL
        n_clustered = int(np.sum(clustered_mask))
        n_labels = len(np.unique(labels[clustered_mask]))

        # Both scores need 2 <= n_labels <= n_samples - 1
        if n_labels < 2 or n_labels >= n_clustered:
            return metrics

        clustered_vectors = vectors[np.flatnonzero(clustered_mask)]
        clustered_labels = labels[clustered_mask]

        try:
            # Silhouette score (higher is better, range: -1 to 1)
            metrics["silhouette_score"] = float(
                silhouette_score(clustered_vectors, clustered_labels, metric=metric)
            )
        except ValueError:
            metrics["silhouette_score"] = 0.0

        try:
            # Davies-Bouldin Index (lower is better); dense input only
            if hasattr(clustered_vectors, "toarray"):
                clustered_vectors = clustered_vectors.toarray()
            metrics["davies_bouldin_index"] = float(
                davies_bouldin_score(clustered_vectors, clustered_labels)
            )
        except ValueError:
            metrics["davies_bouldin_index"] = 0.0

        return metrics
