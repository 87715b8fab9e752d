"""
Partition result of a density-based clustering run.

Clusters are kept in discovery order; noise is a separate field rather than
a trailing pseudo-cluster.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Hashable, Iterator, List, Optional, Sequence, Tuple

import numpy as np


NOISE_LABEL = -1


@dataclass(frozen=True)
class ClustersPlusNoise:
    """
    Immutable partition of a database into clusters plus noise.

    Every object of the clustered universe appears exactly once, either in
    one cluster or in the noise tuple.
    """

    clusters: Tuple[Tuple[Hashable, ...], ...] = ()
    noise: Tuple[Hashable, ...] = ()
    _membership: Dict[Hashable, Optional[int]] = field(
        default=None, init=False, repr=False, compare=False
    )

    def __post_init__(self):
        clusters = tuple(tuple(members) for members in self.clusters)
        noise = tuple(self.noise)
        object.__setattr__(self, "clusters", clusters)
        object.__setattr__(self, "noise", noise)

        membership: Dict[Hashable, Optional[int]] = {}
        labelled = [
            (object_id, index) for index, members in enumerate(clusters) for object_id in members
        ]
        labelled.extend((object_id, None) for object_id in noise)
        for object_id, index in labelled:
            if object_id in membership:
                raise ValueError(f"Object {object_id!r} appears more than once in the partition")
            membership[object_id] = index
        object.__setattr__(self, "_membership", membership)

    @property
    def n_clusters(self) -> int:
        """Number of clusters (noise excluded)."""
        return len(self.clusters)

    @property
    def noise_count(self) -> int:
        """Number of noise objects."""
        return len(self.noise)

    @property
    def total(self) -> int:
        """Number of objects covered by the partition."""
        return sum(len(members) for members in self.clusters) + len(self.noise)

    def __len__(self) -> int:
        return len(self.clusters)

    def __iter__(self) -> Iterator[Tuple[Hashable, ...]]:
        return iter(self.clusters)

    def __contains__(self, object_id: Hashable) -> bool:
        return object_id in self._membership

    def cluster_sizes(self) -> List[int]:
        """Sizes of the clusters in discovery order."""
        return [len(members) for members in self.clusters]

    def cluster_of(self, object_id: Hashable) -> Optional[int]:
        """
        Index of the cluster containing an object.

        Returns:
            Cluster index, or None if the object is noise

        Raises:
            KeyError: If the object was not part of the clustered universe
        """
        return self._membership[object_id]

    def to_labels(self, object_ids: Sequence[Hashable]) -> np.ndarray:
        """
        Label array aligned with ``object_ids``.

        Cluster members get their cluster index, noise gets -1.
        """
        labels = np.full(len(object_ids), NOISE_LABEL, dtype=np.int32)
        for position, object_id in enumerate(object_ids):
            index = self._membership[object_id]
            if index is not None:
                labels[position] = index
        return labels

    def to_lists(self) -> List[List[Hashable]]:
        """Clusters followed by the noise list as the last element."""
        return [list(members) for members in self.clusters] + [list(self.noise)]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "n_clusters": self.n_clusters,
            "noise_count": self.noise_count,
            "total_objects": self.total,
            "clusters": [list(members) for members in self.clusters],
            "noise": list(self.noise),
        }
