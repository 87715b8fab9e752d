"""
Vector Database

In-memory database of feature vectors addressed by object ids. Provides the
object universe for clustering (enumerable, sized) and a linear-scan epsilon
range query. Supports dense numpy arrays and scipy sparse matrices.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Hashable, Iterator, List, Optional, Sequence, Union

import numpy as np
from scipy import sparse

from density_clustering.storage.distance import DistanceFunction, VectorLike
from density_clustering.storage.neighborhood import NeighborResult
from density_clustering.utils.error_handling import (
    ConfigurationError,
    FileStorageError,
    ObjectNotFoundError,
)

logger = logging.getLogger(__name__)


class VectorDatabase:
    """
    Feature vectors keyed by object id.

    Object ids default to row positions ``0..n-1``. Iteration yields ids in
    row order, which is the enumeration order used by clustering.
    """

    def __init__(
        self,
        vectors: Union[np.ndarray, sparse.spmatrix, Sequence[Sequence[float]]],
        ids: Optional[Sequence[Hashable]] = None,
    ):
        """
        Initialize database.

        Args:
            vectors: 2-D array (N x D), dense or scipy sparse
            ids: Optional object ids, one per row, unique

        Raises:
            ConfigurationError: If shapes or ids are inconsistent
        """
        if sparse.issparse(vectors):
            self._vectors: VectorLike = sparse.csr_matrix(vectors)
        else:
            self._vectors = np.asarray(vectors, dtype=np.float64)
            if self._vectors.ndim == 1 and self._vectors.size == 0:
                self._vectors = self._vectors.reshape(0, 0)
            if self._vectors.ndim != 2:
                raise ConfigurationError(
                    f"Vectors must be a 2-D array, got shape {self._vectors.shape}",
                    parameter="vectors",
                )

        n_rows = self._vectors.shape[0]
        if ids is None:
            self._ids: List[Hashable] = list(range(n_rows))
        else:
            self._ids = list(ids)
            if len(self._ids) != n_rows:
                raise ConfigurationError(
                    f"Got {len(self._ids)} ids for {n_rows} vectors",
                    parameter="ids",
                )

        self._positions: Dict[Hashable, int] = {
            object_id: position for position, object_id in enumerate(self._ids)
        }
        if len(self._positions) != len(self._ids):
            raise ConfigurationError("Object ids must be unique", parameter="ids")

        logger.debug(
            f"Initialized VectorDatabase with {n_rows} objects "
            f"({'sparse' if self.is_sparse else 'dense'}, dim={self.dimensionality})"
        )

    # -------------------------------------------------------------------------
    # Universe
    # -------------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._ids)

    def __iter__(self) -> Iterator[Hashable]:
        return iter(self._ids)

    def __contains__(self, object_id: Any) -> bool:
        return object_id in self._positions

    @property
    def size(self) -> int:
        return len(self._ids)

    @property
    def ids(self) -> List[Hashable]:
        """Object ids in enumeration order."""
        return list(self._ids)

    @property
    def vectors(self) -> VectorLike:
        return self._vectors

    @property
    def dimensionality(self) -> int:
        return self._vectors.shape[1] if self._vectors.ndim == 2 else 0

    @property
    def is_sparse(self) -> bool:
        return sparse.issparse(self._vectors)

    def index_of(self, object_id: Hashable) -> int:
        """
        Row position of an object.

        Raises:
            ObjectNotFoundError: If the id is unknown
        """
        try:
            return self._positions[object_id]
        except (KeyError, TypeError):
            raise ObjectNotFoundError(object_id)

    def get(self, object_id: Hashable) -> VectorLike:
        """Vector of an object as a 1 x D row."""
        position = self.index_of(object_id)
        return self._vectors[position:position + 1]

    # -------------------------------------------------------------------------
    # Range query
    # -------------------------------------------------------------------------

    def range_query(
        self,
        object_id: Hashable,
        epsilon: float,
        distance_function: DistanceFunction,
    ) -> List[NeighborResult]:
        """
        All objects within ``epsilon`` of ``object_id`` (linear scan).

        Results are sorted by distance. The query object comes first among
        equal distances, remaining ties keep enumeration order.

        Raises:
            ObjectNotFoundError: If the id is unknown
            DistanceComputationError: If distances cannot be computed
        """
        position = self.index_of(object_id)
        distances = distance_function.distances(self.get(object_id), self._vectors)
        candidates = np.flatnonzero(distances <= epsilon)
        return self.sorted_neighbors(position, candidates, distances[candidates])

    def sorted_neighbors(
        self,
        query_position: int,
        positions: np.ndarray,
        distances: np.ndarray,
    ) -> List[NeighborResult]:
        """Order candidate rows by (distance, query object first, row position)."""
        positions = np.asarray(positions, dtype=np.int64)
        distances = np.asarray(distances, dtype=np.float64)
        not_self = positions != query_position

        # The query object is its own neighbor at distance zero, even when
        # floating point error pushed its computed distance above epsilon
        if not_self.all():
            positions = np.append(positions, query_position)
            distances = np.append(distances, 0.0)
            not_self = np.append(not_self, False)
        distances = np.where(not_self, distances, 0.0)

        order = np.lexsort((positions, not_self, distances))
        return [
            NeighborResult(self._ids[positions[i]], float(distances[i]))
            for i in order
        ]

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    @classmethod
    def from_file(cls, path: Union[str, Path], id_column: bool = False) -> "VectorDatabase":
        """
        Load vectors from a file.

        Supported formats:
        - ``.npy``: dense numpy array
        - ``.npz``: scipy sparse matrix (``scipy.sparse.save_npz``)
        - ``.csv`` / ``.txt`` / other: comma or whitespace separated rows,
          optionally with the object id in the first column

        Raises:
            FileStorageError: If the file cannot be read or parsed
        """
        path = Path(path)
        if not path.exists():
            raise FileStorageError(
                f"Vector file not found: {path}", details={"path": str(path)}
            )

        ids = None
        try:
            if path.suffix == ".npy":
                vectors = np.load(path)
            elif path.suffix == ".npz":
                vectors = sparse.load_npz(path)
            else:
                with open(path, "r") as f:
                    first_line = f.readline()
                delimiter = "," if "," in first_line else None

                if id_column:
                    raw = np.loadtxt(path, delimiter=delimiter, dtype=str, ndmin=2)
                    ids = raw[:, 0].tolist()
                    vectors = raw[:, 1:].astype(np.float64)
                else:
                    vectors = np.loadtxt(path, delimiter=delimiter, dtype=np.float64, ndmin=2)
        except (OSError, ValueError) as e:
            raise FileStorageError(
                f"Failed to load vectors from {path}: {e}", details={"path": str(path)}
            ) from e

        logger.info(f"Loaded {vectors.shape[0]} vectors from {path}")
        return cls(vectors, ids=ids)
