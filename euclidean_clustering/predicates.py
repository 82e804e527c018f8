import math
import numpy as np
from dataclasses import dataclass
from typing import Callable

from .cloud import PointCloud

# (cloud, seed_id, nn_indices, j) -> accept nn_indices[j] into the seed's cluster
MergePredicate = Callable[[PointCloud, int, np.ndarray, int], bool]


def accept_all(cloud: PointCloud, seed_id: int, nn_indices: np.ndarray, j: int) -> bool:
    return True


def clamp_angle(max_angle: float) -> float:
    return min(abs(max_angle), math.pi)


@dataclass
class NormalDeviationPredicate:
    """
    Accept a neighbor when its normal deviates from the seed normal by at most
    the angle whose cosine is cos_max_angle. Normals are indexed by cloud point
    id and must already be unit length; orientation is ignored.
    """
    normals: np.ndarray
    cos_max_angle: float

    def __call__(self, cloud: PointCloud, seed_id: int, nn_indices: np.ndarray, j: int) -> bool:
        dot_p = float(np.dot(self.normals[seed_id, :3], self.normals[nn_indices[j], :3]))
        return abs(dot_p) >= self.cos_max_angle


def normal_deviation_predicate(normals: np.ndarray, max_angle: float) -> NormalDeviationPredicate:
    """
    Normal deviation test for a maximum angle in radians, clamped to [0, pi].
    """
    normals = np.asarray(normals, dtype=np.float64)
    return NormalDeviationPredicate(normals=normals, cos_max_angle=math.cos(clamp_angle(max_angle)))
