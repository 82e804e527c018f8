import logging
import numpy as np
from typing import Optional, List

from .cloud import PointCloud, Cluster, IndexSubset, as_indices
from .clustering import extract_euclidean_clusters
from .search import SpatialIndex, KDTreeIndex

logger = logging.getLogger(__name__)


class CloudConsumer:
    """
    Holds the input cloud and the optional subset of point ids to work on.
    """

    def __init__(self):
        self._input: Optional[PointCloud] = None
        self._indices: Optional[np.ndarray] = None

    def set_input_cloud(self, cloud: PointCloud):
        self._input = cloud

    @property
    def input_cloud(self) -> Optional[PointCloud]:
        return self._input

    def set_indices(self, indices: Optional[IndexSubset]):
        self._indices = as_indices(indices) if indices is not None else None

    @property
    def indices(self) -> Optional[np.ndarray]:
        return self._indices

    def init_compute(self) -> bool:
        if self._input is None:
            logger.error("No input point cloud given")
            return False

        if self._indices is not None and len(self._indices) > 0:
            n = len(self._input)
            if self._indices.min() < 0 or self._indices.max() >= n:
                logger.error("Indices reference points outside the input cloud (size %d)", n)
                return False
        return True


class EuclideanClusterExtraction(CloudConsumer):
    """
    Euclidean cluster extraction over the cloud (and subset) set on this object.

    extractor = EuclideanClusterExtraction()
    extractor.set_input_cloud(cloud)
    extractor.cluster_tolerance = 0.5
    clusters = extractor.extract()
    """

    def __init__(self):
        super().__init__()
        self.search_method: Optional[SpatialIndex] = None
        self.cluster_tolerance: float = 0.0
        self.min_cluster_size: int = 1
        self.max_cluster_size: Optional[int] = None
        # built over (input, indices) when no search method is given
        self._default_index: Optional[KDTreeIndex] = None

    def set_input_cloud(self, cloud: PointCloud):
        super().set_input_cloud(cloud)
        self._default_index = None

    def set_indices(self, indices: Optional[IndexSubset]):
        super().set_indices(indices)
        self._default_index = None

    def set_search_method(self, tree: SpatialIndex):
        self.search_method = tree

    def get_search_method(self) -> Optional[SpatialIndex]:
        return self.search_method

    def set_cluster_tolerance(self, tolerance: float):
        self.cluster_tolerance = tolerance

    def get_cluster_tolerance(self) -> float:
        return self.cluster_tolerance

    def set_min_cluster_size(self, min_cluster_size: int):
        self.min_cluster_size = min_cluster_size

    def get_min_cluster_size(self) -> int:
        return self.min_cluster_size

    def set_max_cluster_size(self, max_cluster_size: Optional[int]):
        self.max_cluster_size = max_cluster_size

    def get_max_cluster_size(self) -> Optional[int]:
        return self.max_cluster_size

    def extract(self) -> List[Cluster]:
        if not self.init_compute():
            return []

        cloud = self._input
        if len(cloud) == 0 or (self._indices is not None and len(self._indices) == 0):
            return []

        index = self.search_method
        if index is None:
            if self._default_index is None:
                self._default_index = KDTreeIndex(cloud, self._indices)
            index = self._default_index

        return extract_euclidean_clusters(
            cloud,
            index,
            self.cluster_tolerance,
            min_size=self.min_cluster_size,
            max_size=self.max_cluster_size,
            indices=self._indices,
        )
