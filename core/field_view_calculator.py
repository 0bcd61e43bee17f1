"""
Field-of-view calculator.
Sweeps a fan of horizontal rays from each housing unit, finds the nearest
obstruction per ray and scores the unit by the area of the resulting fan.
"""

import math
import logging
from typing import Callable, Optional, Sequence, Tuple

import numpy as np
import trimesh

from models.building import HousingUnit
from models.calculation_result import ViewFan, ViewFieldResult
from utils.config_loader import get_config_value
from utils.geometry_utils import (
    UP_AXIS,
    normalize_vector,
    rotate_about_axis,
    horizontal_perpendicular,
    is_degenerate_box,
)
from .errors import ModelNotReadyError

logger = logging.getLogger(__name__)

DEFAULT_MAX_RADIUS = 120.0
DEFAULT_ANGLE_RANGE = math.radians(120.0)
DEFAULT_SEGMENTS = 120
DEFAULT_ORIGIN_LIFT = 0.1
# Slack around a unit box when discarding hits on its own walls
BOUNDS_TOLERANCE = 1e-6

ProgressCallback = Callable[[str], None]


class FieldViewCalculator:
    """
    Calculates view-quality scores (fan areas) for housing units.
    """

    def __init__(
        self,
        max_radius: float = DEFAULT_MAX_RADIUS,
        angle_range: float = DEFAULT_ANGLE_RANGE,
        segments: int = DEFAULT_SEGMENTS,
        origin_lift: float = DEFAULT_ORIGIN_LIFT,
        keep_fans: bool = False
    ):
        """
        Initialize field-of-view calculator.

        Args:
            max_radius: Maximum visibility distance (model units)
            angle_range: Angular width of the sweep in radians
            segments: Number of angular segments (rays = segments + 1)
            origin_lift: Vertical offset of the observation point above the box midpoint
            keep_fans: Keep each unit's fan in the result for visualization
        """
        if max_radius < 0:
            raise ValueError(f"Max radius must not be negative, got {max_radius}")
        if segments < 1:
            raise ValueError(f"Segment count must be at least 1, got {segments}")
        if not 0 < angle_range <= 2 * math.pi:
            raise ValueError(f"Angle range must be in (0, 2*pi], got {angle_range}")

        self.max_radius = float(max_radius)
        self.angle_range = float(angle_range)
        self.segments = int(segments)
        self.origin_lift = float(origin_lift)
        self.keep_fans = keep_fans

    @classmethod
    def from_config(cls, config: dict) -> 'FieldViewCalculator':
        """Build a calculator from the 'field_view' config section (angle in degrees)."""
        return cls(
            max_radius=float(get_config_value(config, 'field_view.max_radius', DEFAULT_MAX_RADIUS)),
            angle_range=math.radians(float(get_config_value(config, 'field_view.angle_range_deg', 120.0))),
            segments=int(get_config_value(config, 'field_view.segments', DEFAULT_SEGMENTS)),
            origin_lift=float(get_config_value(config, 'field_view.origin_lift', DEFAULT_ORIGIN_LIFT)),
            keep_fans=bool(get_config_value(config, 'field_view.keep_fans', False))
        )

    def calculate(
        self,
        units: Sequence[HousingUnit],
        global_mesh: Optional[trimesh.Trimesh],
        progress_callback: Optional[ProgressCallback] = None
    ) -> ViewFieldResult:
        """
        Calculate the view area of every housing unit.

        Args:
            units: Housing unit catalog
            global_mesh: Combined world-space mesh of the whole model
            progress_callback: Called once per unit with a progress message

        Returns:
            ViewFieldResult mapping unit name to fan area

        Raises:
            ModelNotReadyError: If no global mesh is available
        """
        if global_mesh is None:
            logger.error("Field-of-view calculation requested without a loaded model")
            raise ModelNotReadyError("Model not ready: no global mesh for field-of-view calculation")

        result = ViewFieldResult(
            max_radius=self.max_radius,
            angle_range=self.angle_range,
            segments=self.segments
        )

        total_units = len(units)
        logger.info(
            f"Starting field-of-view calculation: {total_units} unit(s), radius {self.max_radius}, "
            f"angle {math.degrees(self.angle_range):.1f}°, {self.segments} segment(s)"
        )

        for i, unit in enumerate(units):
            message = f"FieldView calculate process: {i / total_units * 100:.2f}%"
            logger.debug(message)
            if progress_callback:
                progress_callback(message)

            fan = self.compute_fan(unit.bounds_min, unit.bounds_max, global_mesh, unit.name)
            if fan is None:
                result.skipped.append(unit.name)
                continue

            result.areas[unit.name] = fan.area()
            if self.keep_fans:
                result.fans[unit.name] = fan

        logger.info(f"Field-of-view calculation complete: {len(result.areas)} unit(s) scored")
        return result

    def observation_frame(self, bounds_min, bounds_max) -> Optional[Tuple[np.ndarray, np.ndarray]]:
        """
        Observation origin and outward direction for a bounding box.

        Args:
            bounds_min: Minimum corner
            bounds_max: Maximum corner

        Returns:
            Tuple of (origin, outward direction), or None if the box gives no
            usable horizontal direction
        """
        lo = np.asarray(bounds_min, dtype=np.float64)
        hi = np.asarray(bounds_max, dtype=np.float64)
        if is_degenerate_box(lo, hi):
            return None

        midpoint = (lo + hi) * 0.5
        forward = normalize_vector(hi - lo)
        outward = horizontal_perpendicular(forward)
        if np.linalg.norm(outward) < 1e-12:
            return None

        origin = midpoint + UP_AXIS * self.origin_lift
        return origin, outward

    def sweep_directions(self, outward: np.ndarray) -> np.ndarray:
        """Unit ray directions from -range/2 to +range/2 about the vertical axis."""
        half = self.angle_range / 2.0
        directions = np.empty((self.segments + 1, 3))
        for i in range(self.segments + 1):
            angle = -half + (i / self.segments) * self.angle_range
            directions[i] = normalize_vector(rotate_about_axis(outward, UP_AXIS, angle))
        return directions

    def compute_fan(
        self,
        bounds_min,
        bounds_max,
        global_mesh: trimesh.Trimesh,
        unit_name: str = ""
    ) -> Optional[ViewFan]:
        """
        Build the visibility fan for one bounding box.

        Args:
            bounds_min: Minimum corner of the unit bounding box
            bounds_max: Maximum corner of the unit bounding box
            global_mesh: Mesh tested for obstructions
            unit_name: Used in log messages

        Returns:
            ViewFan, or None if the unit cannot be analyzed
        """
        frame = self.observation_frame(bounds_min, bounds_max)
        if frame is None:
            logger.warning(f"Housing unit {unit_name} has no usable viewing direction - skipped")
            return None
        origin, outward = frame

        directions = self.sweep_directions(outward)
        # The origin sits inside the unit, so its own walls are not obstructions
        distances = self.nearest_hit_distances(
            global_mesh, origin, directions, exclude_bounds=(bounds_min, bounds_max)
        )

        edges = origin + directions * distances[:, None]
        # The sweep is planar at the observation height
        edges[:, 1] = origin[1]
        return ViewFan(center=origin.copy(), edges=edges, valid_count=len(edges))

    def nearest_hit_distances(
        self,
        mesh: trimesh.Trimesh,
        origin: np.ndarray,
        directions: np.ndarray,
        exclude_bounds: Optional[Tuple[Sequence[float], Sequence[float]]] = None
    ) -> np.ndarray:
        """
        Distance to the nearest obstruction along each ray, capped at max radius.

        Args:
            mesh: Mesh to intersect
            origin: Common ray origin
            directions: Unit ray directions (N, 3)
            exclude_bounds: Optional (min, max) box; hits inside it are ignored

        Returns:
            Distances (N,), max_radius where nothing is hit within range
        """
        distances = np.full(len(directions), self.max_radius)
        if len(mesh.faces) == 0:
            return distances

        origins = np.tile(origin, (len(directions), 1))
        locations, index_ray, _ = mesh.ray.intersects_location(
            ray_origins=origins,
            ray_directions=directions,
            multiple_hits=True
        )
        if len(index_ray) == 0:
            return distances

        index_ray = np.asarray(index_ray, dtype=np.int64)
        locations = np.asarray(locations, dtype=np.float64)
        if exclude_bounds is not None:
            lo = np.asarray(exclude_bounds[0], dtype=np.float64) - BOUNDS_TOLERANCE
            hi = np.asarray(exclude_bounds[1], dtype=np.float64) + BOUNDS_TOLERANCE
            outside = ~np.all((locations >= lo) & (locations <= hi), axis=1)
            locations = locations[outside]
            index_ray = index_ray[outside]

        hit_distances = np.linalg.norm(locations - origins[index_ray], axis=1)
        np.minimum.at(distances, index_ray, hit_distances)
        return distances
