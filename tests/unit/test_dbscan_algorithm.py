"""
Unit tests for the DBSCAN vector-matrix adapter.
"""

import numpy as np
import pytest
from scipy import sparse

from density_clustering.core.base_clustering import ClusteringConfig
from density_clustering.core.dbscan_algorithm import DBSCANAlgorithm
from density_clustering.utils.error_handling import ConfigurationError


def make_algorithm(**params) -> DBSCANAlgorithm:
    return DBSCANAlgorithm(ClusteringConfig(algorithm_name="dbscan", params=params))


@pytest.mark.unit
class TestDBSCANAlgorithm:
    """Test suite for DBSCANAlgorithm."""

    def test_init_defaults(self):
        """Test parameter defaults."""
        algorithm = make_algorithm(epsilon="0.5")

        assert algorithm.epsilon == 0.5
        assert algorithm.min_pts == 5
        assert algorithm.distance_function.name == "euclidean"
        assert algorithm.index == "auto"

    def test_init_requires_epsilon(self):
        """Test missing epsilon."""
        with pytest.raises(ConfigurationError) as exc_info:
            make_algorithm(min_pts=3)
        assert exc_info.value.parameter == "epsilon"

    def test_cluster_small(self, small_vectors):
        """Test clustering a tight group with two loners."""
        result = make_algorithm(epsilon=0.6, min_pts=2).cluster(small_vectors)

        assert result.n_clusters == 1
        assert result.labels.tolist() == [0, 0, 0, -1, -1]
        assert result.outlier_count == 2
        assert result.object_ids == [0, 1, 2, 3, 4]
        assert result.execution_time >= 0.0

    def test_metadata_ids(self, small_vectors):
        """Test object ids supplied through metadata."""
        ids = ["p", "q", "r", "s", "t"]
        result = make_algorithm(epsilon=0.6, min_pts=2).cluster(small_vectors, metadata={"ids": ids})

        assert result.partition.clusters == (("p", "q", "r"),)
        assert result.partition.noise == ("s", "t")

    def test_progress_callback(self, small_vectors):
        """Test progress updates reach the supplied callback."""
        updates = []
        make_algorithm(epsilon=0.6, min_pts=2, progress=updates.append).cluster(small_vectors)

        assert updates
        assert updates[-1].processed == 5
        assert all(update.total == 5 for update in updates)

    def test_quality_metrics(self, blob_vectors):
        """Test quality metrics for a multi-cluster result."""
        vectors, _ = blob_vectors
        result = make_algorithm(epsilon=1.0, min_pts=5).cluster(vectors)

        metrics = result.quality_metrics
        assert metrics["noise_ratio"] == pytest.approx(3 / 93)
        assert metrics["silhouette_score"] > 0.5
        assert "davies_bouldin_index" in metrics
        assert metrics["range_queries"] > 0

    def test_quality_metrics_single_cluster(self, small_vectors):
        """Test scores are skipped with fewer than two clusters."""
        result = make_algorithm(epsilon=0.6, min_pts=2).cluster(small_vectors)
        assert "silhouette_score" not in result.quality_metrics

    @pytest.mark.parametrize("index", ["linear", "kd_tree", "ball_tree", "brute"])
    def test_index_choice_does_not_change_labels(self, blob_vectors, index):
        """Test every index yields the same labels."""
        vectors, expected = blob_vectors
        result = make_algorithm(epsilon=1.0, min_pts=5, index=index).cluster(vectors)
        assert np.array_equal(result.labels, expected)

    def test_sparse_cosine(self):
        """Test cosine clustering of sparse vectors."""
        vectors = sparse.csr_matrix(np.array([
            [1.0, 0.0, 0.0],
            [2.0, 0.1, 0.0],
            [3.0, 0.0, 0.1],
            [0.0, 0.0, 5.0],
        ]))
        result = make_algorithm(epsilon=0.05, min_pts=2, distance_function="cosine").cluster(vectors)

        assert result.n_clusters == 1
        assert set(result.partition.clusters[0]) == {0, 1, 2}
        assert result.partition.noise == (3,)

    def test_empty_input(self):
        """Test clustering nothing."""
        result = make_algorithm(epsilon=1.0, min_pts=2).cluster(np.empty((0, 3)))

        assert result.n_clusters == 0
        assert result.partition.total == 0

    def test_result_to_dict(self, small_vectors):
        """Test result summary."""
        data = make_algorithm(epsilon=0.6, min_pts=2).cluster(small_vectors).to_dict()

        assert data["n_clusters"] == 1
        assert data["outlier_count"] == 2
        assert data["total_items"] == 5
        assert data["cluster_sizes"] == [3]
