import logging
import numpy as np
from dataclasses import dataclass
from functools import cmp_to_key
from typing import Optional, List

from .cloud import PointCloud, Cluster, IndexSubset, as_indices
from .predicates import MergePredicate, accept_all, normal_deviation_predicate
from .search import SpatialIndex

logger = logging.getLogger(__name__)


@dataclass
class ClusterResult:
    labels: np.ndarray
    num_clusters: int
    cluster_sizes: List[int]
    noise_count: int


def _index_matches(cloud: PointCloud, index: SpatialIndex, indices: Optional[np.ndarray]) -> bool:
    if indices is None:
        tree_size = index.backing_cloud_size()
        if tree_size != len(cloud):
            logger.error(
                "Tree built with a different point cloud size (%d) than the input cloud (%d)",
                tree_size, len(cloud),
            )
            return False
        return True

    tree_size = index.backing_subset_size()
    if tree_size is None:
        tree_size = index.backing_cloud_size()
    if tree_size != len(indices):
        logger.error(
            "Tree built with a different size of indices (%d) than the input set (%d)",
            tree_size, len(indices),
        )
        return False
    return True


def grow_clusters(
    cloud: PointCloud,
    predicate: MergePredicate,
    index: SpatialIndex,
    tolerance: float,
    min_size: int = 1,
    max_size: Optional[int] = None,
    indices: Optional[IndexSubset] = None,
) -> List[Cluster]:
    """
    Region growing over the neighbor graph given by radius queries on the index.

    Clusters come back in the order their seeds were found. Clusters outside
    [min_size, max_size] are dropped and their points are not reused.
    """
    if indices is not None:
        indices = as_indices(indices)

    if not _index_matches(cloud, index, indices):
        return []

    # sorted results put the query point first, no need to look at it
    nn_start_idx = 1 if index.sorted_results else 0
    processed = np.zeros(len(cloud), dtype=bool)
    view = indices if indices is not None else range(len(cloud))

    clusters = []
    rejected = 0
    failed_queries = 0

    for seed in view:
        seed = int(seed)
        if processed[seed]:
            continue

        seed_queue = [seed]
        processed[seed] = True

        sq_idx = 0
        while sq_idx < len(seed_queue):
            result = index.radius_search(seed_queue[sq_idx], tolerance)
            sq_idx += 1
            if result is None:
                failed_queries += 1
                continue

            nn_indices, _ = result
            for j in range(nn_start_idx, len(nn_indices)):
                neighbor = int(nn_indices[j])
                if processed[neighbor]:
                    continue
                if predicate(cloud, seed, nn_indices, j):
                    seed_queue.append(neighbor)
                    processed[neighbor] = True

        size = len(seed_queue)
        if size >= min_size and (max_size is None or size <= max_size):
            clusters.append(Cluster(indices=seed_queue, header=cloud.header))
        else:
            rejected += 1

    logger.debug(
        "Extracted %d clusters (%d rejected by size, %d failed queries)",
        len(clusters), rejected, failed_queries,
    )
    return clusters


def extract_euclidean_clusters(
    cloud: PointCloud,
    index: SpatialIndex,
    tolerance: float,
    min_size: int = 1,
    max_size: Optional[int] = None,
    indices: Optional[IndexSubset] = None,
) -> List[Cluster]:
    """
    Plain Euclidean clustering: every neighbor within tolerance joins.
    """
    return grow_clusters(cloud, accept_all, index, tolerance, min_size, max_size, indices)


def extract_normal_clusters(
    cloud: PointCloud,
    normals: np.ndarray,
    index: SpatialIndex,
    tolerance: float,
    max_angle: float,
    min_size: int = 1,
    max_size: Optional[int] = None,
    indices: Optional[IndexSubset] = None,
) -> List[Cluster]:
    """
    Euclidean clustering that also requires neighbor normals to stay within
    max_angle (radians) of the seed normal.

    Normals are indexed by cloud point id, also when a subset is given.
    """
    if len(cloud) != len(normals):
        logger.error(
            "Number of points in the input point cloud (%d) different than normals (%d)",
            len(cloud), len(normals),
        )
        return []

    if indices is not None and len(indices) == 0:
        return []

    predicate = normal_deviation_predicate(normals, max_angle)
    return grow_clusters(cloud, predicate, index, tolerance, min_size, max_size, indices)


def compare_cluster_size(a: Cluster, b: Cluster) -> int:
    return (len(a) > len(b)) - (len(a) < len(b))


def sort_clusters(clusters: List[Cluster], reverse: bool = False) -> List[Cluster]:
    return sorted(clusters, key=cmp_to_key(compare_cluster_size), reverse=reverse)


def clusters_to_labels(clusters: List[Cluster], n_points: int) -> ClusterResult:
    """
    Per-point labels for a cluster collection, -1 for points in no cluster.
    """
    labels = np.full(n_points, -1, dtype=int)
    for cid, cluster in enumerate(clusters):
        labels[np.asarray(cluster.indices, dtype=int)] = cid

    cluster_sizes = [len(cluster) for cluster in clusters]
    noise_count = int((labels == -1).sum())

    return ClusterResult(
        labels=labels,
        num_clusters=len(clusters),
        cluster_sizes=sorted(cluster_sizes, reverse=True),
        noise_count=noise_count,
    )
