"""
Building data models: Building, HousingUnit.
Both are derived from named scene nodes during classification and are
immutable afterwards.
"""

from typing import Tuple, Optional
from dataclasses import dataclass, field

import numpy as np
import trimesh


@dataclass(frozen=True)
class Building:
    """Building group node (e.g. '8D') with its label anchor."""

    index: int  # Leading building number
    name: str  # Source node name
    label: str  # Display label, e.g. '8栋'
    position: Tuple[float, float, float]  # Anchor, copied from the source node
    node_id: str = ""


@dataclass(frozen=True, eq=False)
class HousingUnit:
    """Residential suite (e.g. '8D701') with its world-space geometry."""

    name: str
    node_id: str
    mesh: trimesh.Trimesh = field(repr=False)  # World-space geometry of the unit subtree
    bounds_min: Tuple[float, float, float]
    bounds_max: Tuple[float, float, float]
    world_position: Tuple[float, float, float]
    building_index: int = 0
    block: str = ""  # Unit letter following the building number
    suite: str = ""  # Three-digit suite code, e.g. '701'

    @property
    def floor(self) -> int:
        """Floor number encoded in the suite code ('701' -> 7)."""
        return int(self.suite[0]) if self.suite else 0

    @property
    def midpoint(self) -> np.ndarray:
        return (np.asarray(self.bounds_min) + np.asarray(self.bounds_max)) * 0.5

    def get_size(self) -> Tuple[float, float, float]:
        """Bounding box extents along x, y, z."""
        return tuple(float(b - a) for a, b in zip(self.bounds_min, self.bounds_max))


@dataclass(frozen=True)
class ClassificationResult:
    """Outcome of a classification pass over a scene graph."""

    buildings: Tuple[Building, ...] = ()
    units: Tuple[HousingUnit, ...] = ()
    hidden_node_ids: Tuple[str, ...] = ()
    skipped_units: Tuple[str, ...] = ()

    def get_unit(self, name: str) -> Optional[HousingUnit]:
        """Find a housing unit by name."""
        return next((u for u in self.units if u.name == name), None)

    def get_total_units(self) -> int:
        return len(self.units)

    @property
    def unit_names(self) -> Tuple[str, ...]:
        return tuple(u.name for u in self.units)
