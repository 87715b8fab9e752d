"""
Clustering Engine - Orchestrates clustering operations.

Main entry point for clustering functionality. Validates parameters before
any algorithm runs, so the DBSCAN core only ever sees resolved values.
"""

import logging
from typing import Any, Dict, Optional, Union

import numpy as np

from density_clustering.core.base_clustering import ClusteringConfig, ClusteringResult
from density_clustering.core.dbscan_algorithm import DBSCANAlgorithm
from density_clustering.storage.distance import DistanceFunction, get_distance_function
from density_clustering.storage.neighborhood import INDEX_TYPES, recommend_index
from density_clustering.utils.error_handling import ConfigurationError

logger = logging.getLogger(__name__)


class ClusteringEngine:
    """
    Main clustering engine.

    Provides a unified interface for clustering operations regardless of the
    underlying algorithm.
    """

    # Registry of available algorithms
    ALGORITHMS = {
        "dbscan": DBSCANAlgorithm,
    }

    def __init__(self):
        """Initialize clustering engine."""
        logger.info("Initialized ClusteringEngine")

    def cluster(
        self,
        vectors: Any,
        algorithm: str = "dbscan",
        algorithm_params: Optional[Dict[str, Any]] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> ClusteringResult:
        """
        Perform clustering using the specified algorithm.

        Args:
            vectors: Feature vectors (N x D), dense or sparse
            algorithm: Algorithm name
            algorithm_params: Algorithm-specific parameters
            metadata: Optional metadata (e.g. object ids)

        Returns:
            ClusteringResult with labels and metrics

        Raises:
            ConfigurationError: If the algorithm or a parameter is invalid
        """
        algorithm = algorithm.lower()
        algorithm_params = dict(algorithm_params or {})

        errors = self.validate_clustering_config(algorithm, algorithm_params)
        if errors:
            parameter, message = next(iter(errors.items()))
            raise ConfigurationError(
                f"Invalid value for '{parameter}': {message}",
                parameter=parameter,
                details={"errors": errors},
            )

        n_vectors = getattr(vectors, "shape", (len(vectors),))[0]
        logger.info(f"Starting {algorithm} clustering on {n_vectors} vectors")

        config = ClusteringConfig(algorithm_name=algorithm, params=algorithm_params)
        clusterer = self.ALGORITHMS[algorithm](config)

        result = clusterer.cluster(vectors, metadata)

        logger.info(
            f"{algorithm} clustering complete: {result.n_clusters} clusters, "
            f"{result.outlier_count} outliers"
        )

        return result

    def validate_clustering_config(
        self,
        algorithm: str,
        params: Dict[str, Any],
    ) -> Dict[str, str]:
        """
        Validate clustering configuration.

        Args:
            algorithm: Algorithm name
            params: Algorithm parameters

        Returns:
            Dictionary of validation errors keyed by parameter (empty if valid)
        """
        errors: Dict[str, str] = {}

        if algorithm not in self.ALGORITHMS:
            errors["algorithm"] = (
                f"Unsupported algorithm '{algorithm}'. Supported: {list(self.ALGORITHMS.keys())}"
            )
            return errors

        if algorithm == "dbscan":
            min_pts = params.get("min_pts", 5)
            if isinstance(min_pts, bool) or not isinstance(min_pts, (int, np.integer)):
                errors["min_pts"] = f"Must be an integer, got {min_pts!r}"
            elif min_pts < 1:
                errors["min_pts"] = "Must be > 0"

            distance_function = None
            try:
                distance_function = get_distance_function(
                    params.get("distance_function", "euclidean")
                )
            except ConfigurationError as e:
                errors["distance_function"] = e.message

            if "epsilon" not in params:
                errors["epsilon"] = "Required"
            elif distance_function is not None:
                try:
                    distance_function.parse_epsilon(params["epsilon"])
                except ConfigurationError as e:
                    errors["epsilon"] = e.message

            index = str(params.get("index", "auto")).lower()
            if index != "auto" and index not in INDEX_TYPES:
                errors["index"] = f"Unsupported index '{index}'. Supported: {['auto', *INDEX_TYPES]}"

        return errors

    def get_recommended_index(
        self,
        n_vectors: int,
        distance_function: Union[str, DistanceFunction] = "euclidean",
        dimensionality: int = 0,
        sparse: bool = False,
    ) -> str:
        """
        Recommend a range-query index based on dataset characteristics.

        Args:
            n_vectors: Number of vectors to cluster
            distance_function: Distance function name
            dimensionality: Vector dimensionality
            sparse: Whether vectors are sparse

        Returns:
            Recommended index type
        """
        return recommend_index(
            n_vectors,
            get_distance_function(distance_function),
            dimensionality=dimensionality,
            sparse=sparse,
        )

    def estimate_epsilon(
        self,
        vectors: Any,
        min_pts: int = 5,
        distance_function: Union[str, DistanceFunction] = "euclidean",
        quantile: float = 0.9,
    ) -> float:
        """
        Estimate epsilon from the sorted k-distance curve.

        The k-distance of an object is the distance to its min_pts-th nearest
        neighbor (the object itself counts as the first). The estimate is the
        given quantile of all k-distances.

        Args:
            vectors: Feature vectors (N x D)
            min_pts: Minimum points parameter that will be used for clustering
            distance_function: Distance function name
            quantile: Quantile of the k-distance distribution (0..1)

        Returns:
            Estimated epsilon

        Raises:
            ConfigurationError: If parameters are invalid for the data
        """
        from sklearn.neighbors import NearestNeighbors

        n_vectors = vectors.shape[0]
        if not 0.0 <= quantile <= 1.0:
            raise ConfigurationError("Quantile must be within [0, 1]", parameter="quantile")
        if min_pts < 1 or min_pts > n_vectors:
            raise ConfigurationError(
                f"min_pts must be within [1, {n_vectors}] to estimate epsilon",
                parameter="min_pts",
            )

        function = get_distance_function(distance_function)
        nn = NearestNeighbors(n_neighbors=min_pts, metric=function.metric)
        nn.fit(vectors)
        distances, _ = nn.kneighbors(vectors)

        k_distances = np.sort(distances[:, -1])
        epsilon = float(np.quantile(k_distances, quantile))

        logger.info(
            f"Estimated epsilon={epsilon:.6g} (min_pts={min_pts}, quantile={quantile})"
        )

        return epsilon
