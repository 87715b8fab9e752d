"""
Pytest configuration and shared fixtures for density clustering tests.

This module provides:
- A dict-backed neighborhood oracle for exact control over range queries
- Vector generators with clear density structure
- Configuration file fixtures
"""

from typing import Any, Dict, Hashable, List, Sequence

import numpy as np
import pytest

from density_clustering.storage.neighborhood import NeighborResult

# =============================================================================
# Oracles
# =============================================================================


class DictOracle:
    """
    Neighborhood oracle answering range queries from a fixed table.

    Neighborhoods are returned in the given order with distance 0 for the
    query object and 1 for everything else. Epsilon is ignored.
    """

    def __init__(self, neighborhoods: Dict[Hashable, Sequence[Hashable]]):
        self.neighborhoods = neighborhoods
        self.calls: List[Hashable] = []

    def range_query(self, object_id: Hashable, epsilon: Any) -> List[NeighborResult]:
        self.calls.append(object_id)
        return [
            NeighborResult(neighbor, 0.0 if neighbor == object_id else 1.0)
            for neighbor in self.neighborhoods[object_id]
        ]


@pytest.fixture
def dict_oracle():
    """Factory for dict-backed oracles."""
    return DictOracle


@pytest.fixture
def two_cluster_oracle():
    """A-B-C chain plus a D-E pair; with min_pts=2 both are clusters."""
    return DictOracle({
        "A": ["A", "B"],
        "B": ["A", "B", "C"],
        "C": ["B", "C"],
        "D": ["D", "E"],
        "E": ["D", "E"],
    })


@pytest.fixture
def failed_expansion_oracle():
    """
    S has enough neighbors to start a cluster, but they already belong to
    the cluster grown from A, so S ends up alone and degrades to noise.
    """
    return DictOracle({
        "A": ["A", "B", "C"],
        "B": ["B"],
        "C": ["C"],
        "S": ["S", "B", "C"],
    })


# =============================================================================
# Test Data Generators
# =============================================================================


@pytest.fixture
def blob_vectors():
    """
    Generate 2-D vectors with three well separated blobs plus far outliers.

    Returns:
        (vectors, expected labels) with -1 for the outliers
    """
    np.random.seed(42)
    n_per_cluster = 30

    centers = np.array([[0.0, 0.0], [10.0, 10.0], [0.0, 10.0]])
    vectors = []
    labels = []
    for label, center in enumerate(centers):
        vectors.append(center + np.random.randn(n_per_cluster, 2) * 0.3)
        labels.extend([label] * n_per_cluster)

    outliers = np.array([[50.0, 50.0], [-50.0, 50.0], [50.0, -50.0]])
    vectors.append(outliers)
    labels.extend([-1] * len(outliers))

    return np.vstack(vectors), np.array(labels)


@pytest.fixture
def small_vectors():
    """Five points on a line: a tight group of three and two distant loners."""
    return np.array([
        [0.0, 0.0],
        [0.5, 0.0],
        [1.0, 0.0],
        [10.0, 0.0],
        [20.0, 0.0],
    ])


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture
def settings_file(tmp_path):
    """Write a YAML settings file and return its path."""

    def _write(content: str):
        path = tmp_path / "settings.yaml"
        path.write_text(content)
        return path

    return _write


@pytest.fixture(autouse=True)
def reset_config():
    """Drop cached settings between tests."""
    from density_clustering.config.settings_loader import ConfigManager

    ConfigManager.reset()
    yield
    ConfigManager.reset()


# =============================================================================
# Markers
# =============================================================================


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests for individual components"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests for component interactions"
    )
