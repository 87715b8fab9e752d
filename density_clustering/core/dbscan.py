"""
DBSCAN clustering engine.

Density-Based Spatial Clustering of Applications with Noise (DBSCAN) finds
density-connected sets in a database given a neighborhood radius (epsilon) and
a minimum number of points (min_pts) per epsilon-neighborhood.

The engine only talks to the database through a neighborhood oracle; distance
functions, indexes and parameter validation live in the collaborators.

Reference:
    M. Ester, H.-P. Kriegel, J. Sander, and X. Xu: A Density-Based Algorithm
    for Discovering Clusters in Large Spatial Databases with Noise.
    In Proc. 2nd Int. Conf. on Knowledge Discovery and Data Mining (KDD '96),
    Portland, OR, 1996.
"""

import logging
from collections import deque
from collections.abc import Iterable, Sized
from dataclasses import dataclass, field
from typing import Any, Deque, Dict, Hashable, List, Optional

from density_clustering.core.partition import ClustersPlusNoise
from density_clustering.core.progress import Progress, ProgressCallback
from density_clustering.storage.neighborhood import NeighborResult, NeighborhoodOracle

logger = logging.getLogger(__name__)


@dataclass
class ClassificationState:
    """
    Classification bookkeeping owned by a single clustering run.

    ``noise`` and ``current_cluster`` are dicts used as insertion-ordered
    sets so that results are reproducible.
    """

    universe_size: int
    processed: set = field(default_factory=set)
    noise: Dict[Hashable, None] = field(default_factory=dict)
    worklist: Deque[NeighborResult] = field(default_factory=deque)
    current_cluster: Dict[Hashable, None] = field(default_factory=dict)
    clusters: List[List[Hashable]] = field(default_factory=list)

    def is_processed(self, object_id: Hashable) -> bool:
        return object_id in self.processed

    def is_noise(self, object_id: Hashable) -> bool:
        return object_id in self.noise

    def mark_noise(self, object_id: Hashable) -> None:
        self.noise[object_id] = None
        self.processed.add(object_id)

    def assign(self, object_id: Hashable) -> None:
        """Add an object to the cluster under construction."""
        self.current_cluster[object_id] = None
        self.processed.add(object_id)
        self.noise.pop(object_id, None)

    def is_complete(self) -> bool:
        """All objects processed and none left as noise."""
        return len(self.processed) == self.universe_size and not self.noise

    def to_partition(self) -> ClustersPlusNoise:
        return ClustersPlusNoise(
            clusters=tuple(tuple(members) for members in self.clusters),
            noise=tuple(self.noise),
        )


class DBSCAN:
    """
    DBSCAN over an enumerable universe of object ids.

    Border objects become members of the first cluster that reaches them.
    The instance holds parameters only; each ``run`` owns a fresh
    ``ClassificationState``.
    """

    TASK_NAME = "Clustering"

    def __init__(
        self,
        epsilon: Any,
        min_pts: int,
        progress: Optional[ProgressCallback] = None,
    ):
        """
        Initialize DBSCAN.

        Args:
            epsilon: Neighborhood radius, passed unchanged to the oracle
            min_pts: Minimum neighborhood size of a core object (> 0)
            progress: Optional callback receiving a Progress after each
                classification decision
        """
        self.epsilon = epsilon
        self.min_pts = min_pts
        self.progress = progress

    def run(self, universe: Iterable[Hashable], oracle: NeighborhoodOracle) -> ClustersPlusNoise:
        """
        Cluster every object of ``universe``.

        Args:
            universe: Object ids in enumeration order; iterables without len() are
                materialized into a list first
            oracle: Answers epsilon range queries for object ids

        Returns:
            ClustersPlusNoise partition of the universe

        Raises:
            OracleError: Propagated unchanged from the oracle
        """
        size = len(universe) if isinstance(universe, Sized) else None
        if size is None:
            universe = list(universe)
            size = len(universe)

        state = ClassificationState(universe_size=size)
        logger.debug(
            f"DBSCAN run on {size} objects (epsilon={self.epsilon}, min_pts={self.min_pts})"
        )

        if size == 0:
            return state.to_partition()

        if size < self.min_pts:
            # No object can be a core object
            for object_id in universe:
                state.noise[object_id] = None
                self._report(len(state.noise), size, len(state.clusters))
            return state.to_partition()

        for object_id in universe:
            if not state.is_processed(object_id):
                self._expand_cluster(state, object_id, oracle)
                if state.is_complete():
                    break
            self._report(len(state.processed), size, len(state.clusters))

        return state.to_partition()

    def _expand_cluster(
        self,
        state: ClassificationState,
        start_id: Hashable,
        oracle: NeighborhoodOracle,
    ) -> None:
        """Grow a new cluster from ``start_id`` or mark it as noise."""
        seeds = oracle.range_query(start_id, self.epsilon)

        if len(seeds) < self.min_pts:
            state.mark_noise(start_id)
            self._report(len(state.processed), state.universe_size, len(state.clusters))
            return

        state.current_cluster = {}
        for seed in seeds:
            object_id = seed.object_id
            if not state.is_processed(object_id) or state.is_noise(object_id):
                state.assign(object_id)

        state.worklist = deque(seeds)
        self._remove_start_entry(state.worklist, start_id)

        while state.worklist:
            o = state.worklist.popleft().object_id
            neighborhood = oracle.range_query(o, self.epsilon)

            if len(neighborhood) >= self.min_pts:
                for neighbor in neighborhood:
                    p = neighbor.object_id
                    unclassified = not state.is_processed(p)
                    if unclassified or state.is_noise(p):
                        if unclassified:
                            state.worklist.append(neighbor)
                        state.assign(p)

            n_clusters = len(state.clusters)
            if len(state.current_cluster) > self.min_pts:
                n_clusters += 1
            self._report(len(state.processed), state.universe_size, n_clusters)

            if state.is_complete():
                break

        if len(state.current_cluster) >= self.min_pts:
            state.clusters.append(list(state.current_cluster))
        else:
            # Failed expansion: the whole attempt degrades to noise
            for object_id in state.current_cluster:
                state.noise[object_id] = None
            state.mark_noise(start_id)

        state.current_cluster = {}
        state.worklist.clear()

    @staticmethod
    def _remove_start_entry(worklist: Deque[NeighborResult], start_id: Hashable) -> None:
        """Drop the start object's own entry (only the first one) from the worklist."""
        for entry in worklist:
            if entry.object_id == start_id:
                worklist.remove(entry)
                return

    def _report(self, processed: int, total: int, clusters: int) -> None:
        if self.progress is not None:
            self.progress(Progress(self.TASK_NAME, processed, total, clusters))


def cluster(
    universe: Iterable[Hashable],
    min_pts: int,
    epsilon: Any,
    oracle: NeighborhoodOracle,
    progress: Optional[ProgressCallback] = None,
) -> ClustersPlusNoise:
    """
    Run DBSCAN over ``universe`` with ``oracle`` answering range queries.

    Preconditions (not re-validated): ``min_pts`` is a positive integer and
    ``epsilon`` is meaningful to the oracle's distance function.
    """
    return DBSCAN(epsilon=epsilon, min_pts=min_pts, progress=progress).run(universe, oracle)
