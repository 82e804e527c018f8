import logging
import math
import numpy as np
from scipy.spatial import KDTree
from typing import Optional, Tuple, Protocol

from .cloud import PointCloud, IndexSubset, as_indices

logger = logging.getLogger(__name__)

SearchResult = Tuple[np.ndarray, np.ndarray]


class SpatialIndex(Protocol):
    """
    Radius-query structure built over a cloud (optionally a subset of it).

    Point ids passed in and returned are always ids into the full cloud.
    """

    @property
    def sorted_results(self) -> bool:
        ...

    def radius_search(self, point_id: int, radius: float) -> Optional[SearchResult]:
        ...

    def backing_cloud_size(self) -> int:
        ...

    def backing_subset_size(self) -> Optional[int]:
        ...


def _order_results(point_id: int, ids: np.ndarray, distances: np.ndarray) -> SearchResult:
    # ascending distance, query point first among ties
    order = np.lexsort((ids != point_id, distances))
    return ids[order], distances[order]


class _CloudIndex:
    """Shared bookkeeping for indices built over (cloud, subset)."""

    def __init__(self, cloud: PointCloud, indices: Optional[IndexSubset] = None, sorted_results: bool = False):
        self.cloud = cloud
        self.indices = as_indices(indices) if indices is not None else None
        self._sorted = bool(sorted_results)

        if self.indices is not None:
            self.xyz = cloud.xyz[self.indices]
        else:
            self.xyz = cloud.xyz

    @property
    def sorted_results(self) -> bool:
        return self._sorted

    def backing_cloud_size(self) -> int:
        return len(self.cloud)

    def backing_subset_size(self) -> Optional[int]:
        if self.indices is None:
            return None
        return len(self.indices)

    def _to_global(self, local_ids: np.ndarray) -> np.ndarray:
        if self.indices is None:
            return local_ids
        return self.indices[local_ids]

    def _finish(self, point_id: int, local_ids: np.ndarray, query: np.ndarray) -> Optional[SearchResult]:
        if len(local_ids) == 0:
            return None
        distances = np.linalg.norm(self.xyz[local_ids] - query, axis=1)
        ids = self._to_global(local_ids)
        if self._sorted:
            return _order_results(point_id, ids, distances)
        return ids, distances


class KDTreeIndex(_CloudIndex):
    """
    scipy KDTree over the xyz columns of the cloud (or of the given subset).
    """

    def __init__(self, cloud: PointCloud, indices: Optional[IndexSubset] = None, sorted_results: bool = False):
        super().__init__(cloud, indices, sorted_results)
        self.tree = KDTree(self.xyz) if len(self.xyz) > 0 else None
        logger.debug(
            "Built KDTree over %d points (subset=%s, sorted=%s)",
            len(self.xyz), self.indices is not None, self._sorted,
        )

    def radius_search(self, point_id: int, radius: float) -> Optional[SearchResult]:
        if self.tree is None or not math.isfinite(radius) or radius <= 0:
            return None

        query = self.cloud.xyz[point_id]
        local_ids = np.asarray(self.tree.query_ball_point(query, radius, return_sorted=True), dtype=np.int64)
        return self._finish(point_id, local_ids, query)


class BruteForceIndex(_CloudIndex):
    """
    Exhaustive distance scan. Slow, but handy as a reference for small clouds.
    """

    def __init__(self, cloud: PointCloud, indices: Optional[IndexSubset] = None, sorted_results: bool = False):
        super().__init__(cloud, indices, sorted_results)
        logger.debug("Brute-force index over %d points", len(self.xyz))

    def radius_search(self, point_id: int, radius: float) -> Optional[SearchResult]:
        if len(self.xyz) == 0 or not math.isfinite(radius) or radius <= 0:
            return None

        query = self.cloud.xyz[point_id]
        distances = np.linalg.norm(self.xyz - query, axis=1)
        local_ids = np.flatnonzero(distances <= radius)
        return self._finish(point_id, local_ids, query)


def build_index(kind: str, cloud: PointCloud, indices: Optional[IndexSubset] = None, sorted_results: bool = False):
    """
    Create a spatial index by name ("kdtree" or "brute").
    """
    if kind == "kdtree":
        return KDTreeIndex(cloud, indices, sorted_results=sorted_results)
    if kind == "brute":
        return BruteForceIndex(cloud, indices, sorted_results=sorted_results)
    raise ValueError(f"Unknown spatial index kind: {kind}")
