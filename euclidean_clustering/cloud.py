import numpy as np
from dataclasses import dataclass, field
from typing import Optional, List, Sequence, Union


@dataclass(frozen=True)
class CloudHeader:
    """
    Provenance of a point cloud, copied onto every cluster extracted from it.
    """
    frame_id: str = ""
    stamp: int = 0
    seq: int = 0


class PointCloud:
    """
    Point set of shape (N, >=3). Columns beyond xyz are carried along untouched.
    """

    def __init__(self, points: np.ndarray, header: Optional[CloudHeader] = None):
        points = np.asarray(points, dtype=np.float64)
        if points.ndim == 1 and points.size == 0:
            points = points.reshape(0, 3)
        if points.ndim != 2 or points.shape[1] < 3:
            raise ValueError(f"Expected an (N, 3) point array, got shape {points.shape}")

        self.points = points
        self.header = header if header is not None else CloudHeader()

    @property
    def xyz(self) -> np.ndarray:
        return self.points[:, :3]

    def __len__(self) -> int:
        return len(self.points)

    def __repr__(self) -> str:
        return f"PointCloud(n={len(self)}, frame_id={self.header.frame_id!r})"


@dataclass
class Cluster:
    indices: List[int] = field(default_factory=list)
    header: Optional[CloudHeader] = None

    def __len__(self) -> int:
        return len(self.indices)


IndexSubset = Union[Sequence[int], np.ndarray]


def as_indices(indices: IndexSubset) -> np.ndarray:
    """
    Normalize a subset of point ids to a flat int64 array.
    """
    arr = np.asarray(indices, dtype=np.int64)
    return arr.reshape(-1)
