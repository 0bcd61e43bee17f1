"""
Calculation result models for sunlight and field-of-view analysis.
"""

from typing import List, Dict, Optional, Tuple
from dataclasses import dataclass, field
from datetime import datetime

import numpy as np


@dataclass(frozen=True)
class SolarSample:
    """Sun direction at one instant."""

    timestamp: datetime
    direction: Tuple[float, float, float]  # Unit vector in scene frame (y-up)
    azimuth: float = 0.0  # Degrees, 0 = North, clockwise
    elevation: float = 0.0  # Degrees above horizon


@dataclass
class SunlightResult:
    """Unobstructed sample count per housing unit."""

    counts: Dict[str, int] = field(default_factory=dict)
    sample_count: int = 0
    step_minutes: int = 1
    skipped: List[str] = field(default_factory=list)

    def increment(self, unit_name: str):
        self.counts[unit_name] = self.counts.get(unit_name, 0) + 1

    def minutes(self, unit_name: str) -> int:
        """Sunlit minutes for a unit (count times the sampling step)."""
        return self.counts.get(unit_name, 0) * self.step_minutes

    def formatted(self, unit_name: str) -> str:
        """
        Format sunlit duration as HH:MM:SS.

        Args:
            unit_name: Housing unit name

        Returns:
            Formatted string (HH:MM:SS)
        """
        seconds = self.minutes(unit_name) * 60
        hours = int(seconds // 3600)
        minutes = int((seconds % 3600) // 60)
        secs = int(seconds % 60)
        return f"{hours:02d}:{minutes:02d}:{secs:02d}"

    def ranking(self) -> List[Tuple[str, int]]:
        """Units sorted by count, best first (ties keep catalog order)."""
        return sorted(self.counts.items(), key=lambda item: -item[1])

    def to_dict(self) -> Dict[str, int]:
        return dict(self.counts)


@dataclass
class ViewFan:
    """
    Triangle fan approximating the visible region from one unit.

    Vertex 0 is the center; vertices 1..valid_count are edge vertices.
    Triangles are (0, i + 1, i + 2) for i in range(valid_count - 1).
    """

    center: np.ndarray
    edges: np.ndarray  # (segments + 1, 3)
    valid_count: int = 0

    @property
    def vertices(self) -> np.ndarray:
        return np.vstack([self.center, self.edges])

    @property
    def faces(self) -> np.ndarray:
        count = max(self.valid_count - 1, 0)
        return np.array([(0, i + 1, i + 2) for i in range(count)], dtype=np.int64).reshape(-1, 3)

    def area(self) -> float:
        """Sum of (center, edge[i], edge[i + 1]) triangle areas over valid edges."""
        if self.valid_count < 2:
            return 0.0
        edges = self.edges[:self.valid_count]
        ab = edges[:-1] - self.center
        ac = edges[1:] - self.center
        cross = np.cross(ab, ac)
        return float(np.linalg.norm(cross, axis=1).sum() / 2.0)

    def outline_xz(self) -> np.ndarray:
        """Closed polygon outline projected to the ground (x, z) plane."""
        points = np.vstack([self.center, self.edges[:self.valid_count], self.center])
        return points[:, [0, 2]]


@dataclass
class ViewFieldResult:
    """View-quality score (fan area) per housing unit."""

    areas: Dict[str, float] = field(default_factory=dict)
    fans: Dict[str, ViewFan] = field(default_factory=dict)  # Kept only when requested
    max_radius: float = 0.0
    angle_range: float = 0.0
    segments: int = 0
    skipped: List[str] = field(default_factory=list)

    def ranking(self) -> List[Tuple[str, float]]:
        """Units sorted by view area, best first."""
        return sorted(self.areas.items(), key=lambda item: -item[1])

    def get_fan(self, unit_name: str) -> Optional[ViewFan]:
        return self.fans.get(unit_name)

    def to_dict(self) -> Dict[str, float]:
        return dict(self.areas)
