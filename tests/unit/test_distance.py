"""
Unit tests for distance functions.
"""

import math

import numpy as np
import pytest
from scipy import sparse

from density_clustering.storage.distance import (
    DISTANCE_FUNCTIONS,
    DistanceFunction,
    get_distance_function,
)
from density_clustering.utils.error_handling import (
    ConfigurationError,
    DistanceComputationError,
)


@pytest.mark.unit
class TestDistanceFunctions:
    """Test suite for DistanceFunction."""

    def test_registry(self):
        """Test all distance functions are registered."""
        for name in ["euclidean", "manhattan", "chebyshev", "cosine"]:
            assert name in DISTANCE_FUNCTIONS

    def test_lookup_case_insensitive(self):
        """Test name lookup ignores case."""
        assert get_distance_function("Euclidean").name == "euclidean"

    def test_lookup_passthrough(self):
        """Test instances are returned unchanged."""
        function = DISTANCE_FUNCTIONS["manhattan"]
        assert get_distance_function(function) is function

    def test_lookup_unknown(self):
        """Test unknown names are configuration errors."""
        with pytest.raises(ConfigurationError) as exc_info:
            get_distance_function("hamming-ish")
        assert exc_info.value.parameter == "distance_function"

    def test_distances(self):
        """Test distances from one row to many."""
        vectors = np.array([[0.0, 0.0], [3.0, 4.0], [1.0, 1.0]])
        query = vectors[0:1]

        assert np.allclose(get_distance_function("euclidean").distances(query, vectors), [0, 5, math.sqrt(2)])
        assert np.allclose(get_distance_function("manhattan").distances(query, vectors), [0, 7, 2])
        assert np.allclose(get_distance_function("chebyshev").distances(query, vectors), [0, 4, 1])

    def test_cosine_distances_sparse(self):
        """Test cosine distances on sparse rows."""
        vectors = sparse.csr_matrix(np.array([[1.0, 0.0], [0.0, 1.0], [2.0, 0.0]]))
        distances = get_distance_function("cosine").distances(vectors[0:1], vectors)
        assert np.allclose(distances, [0.0, 1.0, 0.0])

    def test_distance_failure(self):
        """Test mismatched dimensions raise a distance error."""
        with pytest.raises(DistanceComputationError):
            get_distance_function("euclidean").distances(np.zeros((1, 3)), np.zeros((2, 2)))


@pytest.mark.unit
class TestEpsilonParsing:
    """Test epsilon validation per distance function."""

    def test_numbers(self):
        """Test numeric values."""
        function = get_distance_function("euclidean")
        assert function.parse_epsilon(0.5) == 0.5
        assert function.parse_epsilon(2) == 2.0
        assert function.parse_epsilon(0) == 0.0

    def test_numeric_string(self):
        """Test numeric string patterns."""
        assert get_distance_function("euclidean").parse_epsilon(" 1.25 ") == 1.25

    @pytest.mark.parametrize("value", ["abc", "", None, True, -1.0, float("nan")])
    def test_invalid(self, value):
        """Test values that do not describe a radius."""
        with pytest.raises(ConfigurationError) as exc_info:
            get_distance_function("euclidean").parse_epsilon(value)
        assert exc_info.value.parameter == "epsilon"

    def test_cosine_upper_bound(self):
        """Test cosine epsilon is bounded by the maximum cosine distance."""
        function = get_distance_function("cosine")
        assert function.parse_epsilon("2") == 2.0
        with pytest.raises(ConfigurationError):
            function.parse_epsilon(2.5)

    def test_custom_function(self):
        """Test custom distance functions keep their limits."""
        function = DistanceFunction(name="unit", metric="euclidean", max_epsilon=1.0)
        with pytest.raises(ConfigurationError):
            function.parse_epsilon(1.5)
