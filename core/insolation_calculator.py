"""
Insolation (sunlight occlusion) calculator.
Counts, per housing unit, the solar samples whose ray toward the sun is not
blocked by any other housing unit.
"""

import logging
from typing import Callable, Iterable, List, Optional, Sequence

import numpy as np
import trimesh

from models.building import HousingUnit
from models.calculation_result import SolarSample, SunlightResult
from utils.config_loader import get_config_value
from utils.geometry_utils import is_finite_vector

logger = logging.getLogger(__name__)

DEFAULT_SUN_DISTANCE = 200.0

ProgressCallback = Callable[[str], None]


class InsolationCalculator:
    """
    Calculates unobstructed sunlight samples for housing units.

    For each sample the sun is placed at direction * sun_distance. A ray is
    cast from each unit's world position toward that point and tested
    against the meshes of all other units; a ray with no hit counts as one
    sunlit sample.
    """

    def __init__(self, sun_distance: float = DEFAULT_SUN_DISTANCE):
        """
        Initialize insolation calculator.

        Args:
            sun_distance: Distance at which the virtual sun is placed
        """
        if sun_distance <= 0:
            raise ValueError(f"Sun distance must be positive, got {sun_distance}")
        self.sun_distance = sun_distance

    @classmethod
    def from_config(cls, config: dict) -> 'InsolationCalculator':
        return cls(sun_distance=float(get_config_value(config, 'sunlight.sun_distance', DEFAULT_SUN_DISTANCE)))

    def calculate(
        self,
        samples: Iterable[SolarSample],
        units: Sequence[HousingUnit],
        step_minutes: int = 1,
        progress_callback: Optional[ProgressCallback] = None
    ) -> SunlightResult:
        """
        Count unobstructed solar samples for every housing unit.

        Args:
            samples: Solar samples (one per time step)
            units: Housing unit catalog
            step_minutes: Minutes represented by one sample
            progress_callback: Called once per sample with a progress message

        Returns:
            SunlightResult with a count for every valid unit
        """
        samples = list(samples)
        result = SunlightResult(sample_count=len(samples), step_minutes=step_minutes)

        valid_units = self._valid_units(units, result)
        for unit in valid_units:
            result.counts[unit.name] = 0

        total_samples = len(samples)
        logger.info(f"Starting sunlight calculation: {len(valid_units)} unit(s), {total_samples} sample(s)")

        if not valid_units:
            logger.warning("No housing units to analyze - sunlight result is empty")

        obstacles, face_owner = self._build_obstacles(valid_units)
        origins = np.array([unit.world_position for unit in valid_units], dtype=np.float64).reshape(-1, 3)

        for i, sample in enumerate(samples):
            message = f"Sunlight calculate process: {i / total_samples * 100:.2f}%"
            logger.debug(message)
            if progress_callback:
                progress_callback(message)

            if not valid_units:
                continue

            sun_position = np.asarray(sample.direction, dtype=np.float64) * self.sun_distance
            blocked = self._blocked_rays(obstacles, face_owner, origins, sun_position)
            for unit, is_blocked in zip(valid_units, blocked):
                if not is_blocked:
                    result.increment(unit.name)

        logger.info("Sunlight calculation complete")
        return result

    def _valid_units(self, units: Sequence[HousingUnit], result: SunlightResult) -> List[HousingUnit]:
        valid = []
        for index, unit in enumerate(units):
            if not is_finite_vector(unit.world_position):
                logger.warning(f"Invalid position for house {unit.name} at index {index} - skipped")
                result.skipped.append(unit.name)
                continue
            valid.append(unit)
        return valid

    @staticmethod
    def _build_obstacles(units: Sequence[HousingUnit]):
        """
        Concatenate all unit meshes and record which unit owns each face.

        Returns:
            Tuple of (combined mesh or None, face owner index array)
        """
        if not units:
            return None, np.zeros(0, dtype=np.int64)
        meshes = [unit.mesh for unit in units]
        face_owner = np.repeat(np.arange(len(meshes)), [len(m.faces) for m in meshes])
        combined = trimesh.util.concatenate(meshes)
        logger.info(f"Obstacle mesh: {len(combined.vertices):,} vertices, {len(combined.faces):,} faces")
        return combined, face_owner

    @staticmethod
    def _blocked_rays(
        obstacles: trimesh.Trimesh,
        face_owner: np.ndarray,
        origins: np.ndarray,
        sun_position: np.ndarray
    ) -> np.ndarray:
        """
        Test one ray per unit toward the sun against the other units.

        Args:
            obstacles: Combined mesh of all units
            face_owner: Owning unit index per face of the combined mesh
            origins: Ray origins, one per unit
            sun_position: Virtual sun position

        Returns:
            Boolean array, True where the ray hits another unit
        """
        blocked = np.zeros(len(origins), dtype=bool)

        offsets = sun_position - origins
        lengths = np.linalg.norm(offsets, axis=1)
        castable = lengths > 0
        if not np.any(castable):
            return blocked

        ray_units = np.flatnonzero(castable)
        directions = offsets[castable] / lengths[castable][:, None]

        index_tri, index_ray = obstacles.ray.intersects_id(
            ray_origins=origins[castable],
            ray_directions=directions,
            multiple_hits=True
        )
        if len(index_tri) == 0:
            return blocked

        hit_units = ray_units[np.asarray(index_ray, dtype=np.int64)]
        foreign = face_owner[np.asarray(index_tri, dtype=np.int64)] != hit_units
        blocked[hit_units[foreign]] = True
        return blocked
