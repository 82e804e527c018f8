import os
import yaml
from dataclasses import dataclass, fields, replace
from typing import Optional


@dataclass(frozen=True)
class ClusterParams:
    """Parameters for cluster extraction."""
    # Neighbor search
    tolerance: float = 0.5
    index: str = "kdtree"
    sorted_results: bool = False
    # Size bounds, max_cluster=0 means unbounded
    min_cluster: int = 1
    max_cluster: int = 0
    # Normal deviation in degrees, None disables the normal test
    max_angle_deg: Optional[float] = None

    @property
    def max_cluster_size(self) -> Optional[int]:
        return self.max_cluster if self.max_cluster > 0 else None


def _read(path: str):
    with open(path, "r") as f:
        return yaml.safe_load(f)


def load_params(path: Optional[str]) -> ClusterParams:
    """
    Load ClusterParams from a YAML file, either at the top level or under a
    "clustering" section. A missing file gives the defaults.
    """
    params = ClusterParams()
    if not path or not os.path.isfile(path):
        return params

    data = _read(path) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Expected a mapping of clustering parameters in {path}")

    section = data.get("clustering", data) or {}
    if not isinstance(section, dict):
        raise ValueError(f"Expected a mapping under 'clustering' in {path}")

    known = {f.name for f in fields(ClusterParams)}
    unknown = sorted(set(section) - known)
    if unknown:
        raise ValueError(f"Unknown clustering parameters in {path}: {', '.join(unknown)}")

    return replace(params, **section)
