"""
Distance functions for range queries.

Each distance function knows how to compute distances from one stored vector
to many (dense numpy or scipy sparse rows) and how to interpret an epsilon
value, which may be given as a number or as a numeric string pattern.
"""

import math
from dataclasses import dataclass
from typing import Any, Dict, Union

import numpy as np
from scipy import sparse
from sklearn.metrics import pairwise_distances

from density_clustering.utils.error_handling import (
    ConfigurationError,
    DistanceComputationError,
)

VectorLike = Union[np.ndarray, sparse.spmatrix]


@dataclass(frozen=True)
class DistanceFunction:
    """A named distance measure backed by a scikit-learn metric."""

    name: str
    metric: str
    max_epsilon: float = math.inf
    supports_kd_tree: bool = True

    def parse_epsilon(self, value: Any) -> float:
        """
        Interpret an epsilon value for this distance function.

        Args:
            value: Number or numeric string

        Returns:
            Epsilon as float

        Raises:
            ConfigurationError: If the value is not a valid radius
        """
        if isinstance(value, bool):
            raise ConfigurationError(
                f"Epsilon must be numeric for {self.name} distance, got {value!r}",
                parameter="epsilon",
            )
        try:
            epsilon = float(str(value).strip()) if isinstance(value, str) else float(value)
        except (TypeError, ValueError):
            raise ConfigurationError(
                f"Epsilon {value!r} does not match the pattern of {self.name} distance "
                f"(expected a non-negative number)",
                parameter="epsilon",
            )

        if math.isnan(epsilon) or epsilon < 0:
            raise ConfigurationError(
                f"Epsilon must be a non-negative number, got {value!r}",
                parameter="epsilon",
            )
        if epsilon > self.max_epsilon:
            raise ConfigurationError(
                f"Epsilon {epsilon} exceeds the maximum distance {self.max_epsilon} "
                f"of {self.name} distance",
                parameter="epsilon",
            )
        return epsilon

    def distances(self, query: VectorLike, vectors: VectorLike) -> np.ndarray:
        """
        Distances from a single query row to every row of ``vectors``.

        Raises:
            DistanceComputationError: If the metric cannot be evaluated
        """
        try:
            result = pairwise_distances(query, vectors, metric=self.metric)
        except (ValueError, TypeError) as e:
            raise DistanceComputationError(
                f"{self.name} distance computation failed: {e}",
                details={"distance_function": self.name},
            ) from e
        return np.asarray(result).ravel()


# Registry of available distance functions
DISTANCE_FUNCTIONS: Dict[str, DistanceFunction] = {
    "euclidean": DistanceFunction(name="euclidean", metric="euclidean"),
    "manhattan": DistanceFunction(name="manhattan", metric="manhattan"),
    "chebyshev": DistanceFunction(name="chebyshev", metric="chebyshev"),
    "cosine": DistanceFunction(
        name="cosine", metric="cosine", max_epsilon=2.0, supports_kd_tree=False
    ),
}


def get_distance_function(name: Union[str, DistanceFunction]) -> DistanceFunction:
    """
    Look up a distance function by name (case-insensitive).

    Raises:
        ConfigurationError: If the name is not registered
    """
    if isinstance(name, DistanceFunction):
        return name

    key = str(name).lower()
    if key not in DISTANCE_FUNCTIONS:
        raise ConfigurationError(
            f"Unsupported distance function '{name}'. "
            f"Supported: {list(DISTANCE_FUNCTIONS.keys())}",
            parameter="distance_function",
        )
    return DISTANCE_FUNCTIONS[key]
