import logging
import math

import numpy as np

from euclidean_clustering import PointCloud, KDTreeIndex, extract_normal_clusters
from euclidean_clustering.predicates import clamp_angle, normal_deviation_predicate


def _unit(v) -> np.ndarray:
    v = np.asarray(v, dtype=float)
    return v / np.linalg.norm(v)


def _tilted_normal(deg: float) -> np.ndarray:
    """Unit normal rotated deg degrees from +z towards +x."""
    rad = math.radians(deg)
    return np.array([math.sin(rad), 0.0, math.cos(rad)])


def test_perpendicular_normals_stay_apart():
    cloud = PointCloud(np.array([[0.0, 0.0, 0.0], [0.1, 0.0, 0.0]]))
    normals = np.array([[0.0, 0.0, 1.0], [1.0, 0.0, 0.0]])

    clusters = extract_normal_clusters(cloud, normals, KDTreeIndex(cloud), 0.5, math.radians(30.0))

    assert [c.indices for c in clusters] == [[0], [1]]


def test_parallel_normals_merge():
    cloud = PointCloud(np.array([[0.0, 0.0, 0.0], [0.1, 0.0, 0.0]]))
    normals = np.array([[0.0, 0.0, 1.0], [0.0, 0.0, 1.0]])

    clusters = extract_normal_clusters(cloud, normals, KDTreeIndex(cloud), 0.5, math.radians(10.0))

    assert [c.indices for c in clusters] == [[0, 1]]


def test_flipped_normals_merge():
    cloud = PointCloud(np.array([[0.0, 0.0, 0.0], [0.1, 0.0, 0.0]]))
    normals = np.array([[0.0, 0.0, 1.0], [0.0, 0.0, -1.0]])

    clusters = extract_normal_clusters(cloud, normals, KDTreeIndex(cloud), 0.5, math.radians(5.0))

    assert len(clusters) == 1


def test_normals_compared_against_seed():
    points = np.array([[float(i), 0.0, 0.0] for i in range(3)])
    cloud = PointCloud(points)
    # each step turns 20 degrees, the third point is 40 degrees from the seed
    normals = np.array([_tilted_normal(0.0), _tilted_normal(20.0), _tilted_normal(40.0)])

    clusters = extract_normal_clusters(cloud, normals, KDTreeIndex(cloud), 1.1, math.radians(30.0))

    assert [c.indices for c in clusters] == [[0, 1], [2]]


def test_normal_count_mismatch_reports_error(caplog):
    cloud = PointCloud(np.zeros((4, 3)))
    normals = np.tile([0.0, 0.0, 1.0], (3, 1))

    with caplog.at_level(logging.ERROR):
        clusters = extract_normal_clusters(cloud, normals, KDTreeIndex(cloud), 0.5, 0.2)

    assert clusters == []
    assert "different than normals" in caplog.text


def test_normal_count_mismatch_with_subset_reports_error(caplog):
    cloud = PointCloud(np.zeros((4, 3)))
    normals = np.tile([0.0, 0.0, 1.0], (2, 1))
    subset = [0, 1]

    with caplog.at_level(logging.ERROR):
        clusters = extract_normal_clusters(
            cloud, normals, KDTreeIndex(cloud, subset), 0.5, 0.2, indices=subset
        )

    assert clusters == []
    assert "different than normals" in caplog.text


def test_empty_subset_returns_nothing_silently(caplog):
    cloud = PointCloud(np.zeros((4, 3)))
    normals = np.tile([0.0, 0.0, 1.0], (4, 1))

    with caplog.at_level(logging.ERROR):
        clusters = extract_normal_clusters(cloud, normals, KDTreeIndex(cloud, []), 0.5, 0.2, indices=[])

    assert clusters == []
    assert caplog.text == ""


def test_subset_uses_cloud_ids_for_normals():
    points = np.array([
        [0.0, 0.0, 0.0],
        [0.1, 0.0, 0.0],
        [0.2, 0.0, 0.0],
        [0.3, 0.0, 0.0],
    ])
    cloud = PointCloud(points)
    normals = np.array([
        [1.0, 0.0, 0.0],
        [0.0, 1.0, 0.0],
        [0.0, 0.0, 1.0],
        _unit([0.0, 0.05, 1.0]),
    ])
    subset = [2, 3]

    clusters = extract_normal_clusters(
        cloud, normals, KDTreeIndex(cloud, subset), 0.5, math.radians(10.0), indices=subset
    )

    assert [c.indices for c in clusters] == [[2, 3]]


def test_clamp_angle():
    assert clamp_angle(-0.5) == 0.5
    assert clamp_angle(10.0) == math.pi


def test_predicate_threshold():
    normals = np.array([_tilted_normal(0.0), _tilted_normal(25.0), _tilted_normal(35.0)])
    predicate = normal_deviation_predicate(normals, math.radians(30.0))
    cloud = PointCloud(np.zeros((3, 3)))
    nn = np.array([0, 1, 2])

    assert predicate(cloud, 0, nn, 1)
    assert not predicate(cloud, 0, nn, 2)
    # pi and beyond accepts any pair
    assert normal_deviation_predicate(normals, -4.0)(cloud, 0, nn, 2)


def test_predicate_boundary_is_inclusive():
    normals = np.array([_tilted_normal(0.0), _tilted_normal(0.0), _tilted_normal(1.0)])
    cloud = PointCloud(np.zeros((3, 3)))
    nn = np.array([0, 1, 2])

    # zero deviation allowed: identical normals still merge
    predicate = normal_deviation_predicate(normals, 0.0)
    assert predicate(cloud, 0, nn, 1)
    assert not predicate(cloud, 0, nn, 2)
