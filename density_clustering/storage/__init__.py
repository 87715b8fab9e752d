"""
Storage layer: vector database, distance functions and range-query oracles.

Exports:
- VectorDatabase: Object universe backed by dense or sparse vectors
- DistanceFunction / get_distance_function: Distance measures
- NeighborhoodOracle and its implementations
"""

from density_clustering.storage.distance import (
    DISTANCE_FUNCTIONS,
    DistanceFunction,
    get_distance_function,
)
from density_clustering.storage.neighborhood import (
    INDEX_TYPES,
    LinearScanOracle,
    NeighborhoodOracle,
    NeighborResult,
    TreeIndexOracle,
    build_oracle,
)
from density_clustering.storage.vector_database import VectorDatabase

__all__ = [
    "DISTANCE_FUNCTIONS",
    "DistanceFunction",
    "get_distance_function",
    "INDEX_TYPES",
    "LinearScanOracle",
    "NeighborhoodOracle",
    "NeighborResult",
    "TreeIndexOracle",
    "build_oracle",
    "VectorDatabase",
]
