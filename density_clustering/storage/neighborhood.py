"""
Neighborhood oracles answering epsilon range queries.

The clustering engine depends only on the ``NeighborhoodOracle`` protocol:
one method returning every object within a radius of a given object
(including the object itself), each tagged with its distance.

Implementations:
- LinearScanOracle: full scan over the vector database
- TreeIndexOracle: scikit-learn NearestNeighbors (kd-tree, ball-tree, brute)
"""

import logging
from typing import TYPE_CHECKING, Any, Hashable, List, NamedTuple, Protocol, runtime_checkable

from sklearn.neighbors import NearestNeighbors

from density_clustering.utils.error_handling import (
    ConfigurationError,
    DistanceComputationError,
)

if TYPE_CHECKING:
    from density_clustering.storage.distance import DistanceFunction
    from density_clustering.storage.vector_database import VectorDatabase

logger = logging.getLogger(__name__)


class NeighborResult(NamedTuple):
    """An object found by a range query and its distance to the query object."""

    object_id: Hashable
    distance: float


@runtime_checkable
class NeighborhoodOracle(Protocol):
    """Answers epsilon range queries for object ids."""

    def range_query(self, object_id: Hashable, epsilon: Any) -> List[NeighborResult]:
        """All objects within ``epsilon`` of ``object_id``, the object itself included."""
        ...


class LinearScanOracle:
    """Range queries by scanning every vector of the database."""

    def __init__(self, database: "VectorDatabase", distance_function: "DistanceFunction"):
        self.database = database
        self.distance_function = distance_function
        self.query_count = 0

    def range_query(self, object_id: Hashable, epsilon: Any) -> List[NeighborResult]:
        self.query_count += 1
        return self.database.range_query(object_id, float(epsilon), self.distance_function)


class TreeIndexOracle:
    """
    Range queries through a scikit-learn NearestNeighbors index.

    kd-trees and ball-trees do not support cosine distance or sparse input;
    those cases fall back to brute force.
    """

    ALGORITHMS = ("kd_tree", "ball_tree", "brute")

    def __init__(
        self,
        database: "VectorDatabase",
        distance_function: "DistanceFunction",
        algorithm: str = "kd_tree",
    ):
        """
        Build the index.

        Args:
            database: Vector database to index
            distance_function: Distance function (its sklearn metric is used)
            algorithm: kd_tree, ball_tree or brute
        """
        if algorithm not in self.ALGORITHMS:
            raise ConfigurationError(
                f"Unsupported index algorithm '{algorithm}'. Supported: {list(self.ALGORITHMS)}",
                parameter="index",
            )

        if algorithm != "brute" and (database.is_sparse or not distance_function.supports_kd_tree):
            logger.warning(
                f"{algorithm} does not support {distance_function.name} distance "
                f"on {'sparse' if database.is_sparse else 'dense'} vectors, using brute force"
            )
            algorithm = "brute"

        self.database = database
        self.distance_function = distance_function
        self.algorithm = algorithm
        self.query_count = 0

        self._index = NearestNeighbors(algorithm=algorithm, metric=distance_function.metric)
        if len(database) > 0:
            self._index.fit(database.vectors)

        logger.info(
            f"Built {algorithm} index over {len(database)} objects "
            f"(metric={distance_function.metric})"
        )

    def range_query(self, object_id: Hashable, epsilon: Any) -> List[NeighborResult]:
        self.query_count += 1
        position = self.database.index_of(object_id)

        try:
            distances, indices = self._index.radius_neighbors(
                self.database.get(object_id),
                radius=float(epsilon),
                return_distance=True,
                sort_results=True,
            )
        except (ValueError, TypeError) as e:
            raise DistanceComputationError(
                f"Index range query failed for object {object_id!r}: {e}",
                details={"index": self.algorithm},
            ) from e

        return self.database.sorted_neighbors(position, indices[0], distances[0])


INDEX_TYPES = ("linear",) + TreeIndexOracle.ALGORITHMS


def recommend_index(
    n_vectors: int,
    distance_function: "DistanceFunction",
    dimensionality: int = 0,
    sparse: bool = False,
) -> str:
    """
    Recommend an index type based on dataset characteristics.

    Args:
        n_vectors: Number of vectors in the database
        distance_function: Distance function of the range queries
        dimensionality: Vector dimensionality
        sparse: Whether vectors are stored sparse

    Returns:
        Index type name accepted by build_oracle
    """
    if n_vectors < 1000:
        # Small dataset: index construction does not pay off
        return "linear"

    if sparse or not distance_function.supports_kd_tree:
        return "brute"

    # kd-trees degrade in high dimensions
    return "kd_tree" if dimensionality <= 20 else "ball_tree"


def build_oracle(
    database: "VectorDatabase",
    distance_function: "DistanceFunction",
    index: str = "linear",
) -> NeighborhoodOracle:
    """
    Create a range-query oracle for a database.

    Args:
        database: Vector database
        distance_function: Distance function used by the queries
        index: linear, kd_tree, ball_tree or brute

    Raises:
        ConfigurationError: If the index type is unknown
    """
    index = index.lower()
    if index == "linear":
        return LinearScanOracle(database, distance_function)
    if index in TreeIndexOracle.ALGORITHMS:
        return TreeIndexOracle(database, distance_function, algorithm=index)

    raise ConfigurationError(
        f"Unsupported index type '{index}'. Supported: {list(INDEX_TYPES)}",
        parameter="index",
    )
