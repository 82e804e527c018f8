import logging
import math
import time
import numpy as np
from dataclasses import dataclass
from typing import Optional, List

from .cloud import PointCloud, CloudHeader, Cluster, IndexSubset
from .clustering import extract_euclidean_clusters, extract_normal_clusters, clusters_to_labels
from .config import ClusterParams
from .search import build_index

logger = logging.getLogger(__name__)


@dataclass
class FrameClusters:
    """Result of clustering a single frame."""
    cloud: PointCloud
    clusters: List[Cluster]

    # Labelling
    cluster_labels: np.ndarray
    num_clusters: int
    cluster_sizes: list
    noise_count: int

    elapsed: float


def run_cluster_pipeline(
    points: np.ndarray,
    params: ClusterParams,
    normals: Optional[np.ndarray] = None,
    indices: Optional[IndexSubset] = None,
    header: Optional[CloudHeader] = None,
) -> FrameClusters:
    """
    Build the index and extract clusters from one frame of points.
    """
    start = time.perf_counter()

    cloud = PointCloud(points, header=header)
    index = build_index(params.index, cloud, indices, sorted_results=params.sorted_results)

    if params.max_angle_deg is not None:
        if normals is None:
            raise ValueError("max_angle_deg is set but no normals were given")
        clusters = extract_normal_clusters(
            cloud,
            normals,
            index,
            params.tolerance,
            math.radians(params.max_angle_deg),
            min_size=params.min_cluster,
            max_size=params.max_cluster_size,
            indices=indices,
        )
    else:
        if normals is not None:
            logger.debug("Normals given but max_angle_deg is not set, ignoring them")
        clusters = extract_euclidean_clusters(
            cloud,
            index,
            params.tolerance,
            min_size=params.min_cluster,
            max_size=params.max_cluster_size,
            indices=indices,
        )

    result = clusters_to_labels(clusters, len(cloud))
    elapsed = time.perf_counter() - start
    logger.info("Found %d clusters in %d points (%.3fs)", result.num_clusters, len(cloud), elapsed)

    return FrameClusters(
        cloud=cloud,
        clusters=clusters,
        cluster_labels=result.labels,
        num_clusters=result.num_clusters,
        cluster_sizes=result.cluster_sizes,
        noise_count=result.noise_count,
        elapsed=elapsed,
    )
