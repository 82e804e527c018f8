"""
Euclidean cluster extraction: region growing over radius queries on a spatial index.
"""

from .cloud import PointCloud, CloudHeader, Cluster
from .search import SpatialIndex, KDTreeIndex, BruteForceIndex, build_index
from .predicates import MergePredicate, accept_all, normal_deviation_predicate
from .clustering import (
    grow_clusters,
    extract_euclidean_clusters,
    extract_normal_clusters,
    compare_cluster_size,
    sort_clusters,
    clusters_to_labels,
    ClusterResult,
)
from .extraction import EuclideanClusterExtraction
from .config import ClusterParams, load_params
from .pipeline import run_cluster_pipeline, FrameClusters

__version__ = "1.1.0"
