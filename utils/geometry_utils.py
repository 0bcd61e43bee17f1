"""
Geometry utility functions for 3D calculations.
Scene frame is right-handed with +Y up (glTF convention).
"""

import math
from typing import Tuple

import numpy as np
from trimesh.transformations import rotation_matrix

UP_AXIS = np.array([0.0, 1.0, 0.0])


def normalize_vector(vector) -> np.ndarray:
    """
    Normalize a 3D vector to unit length.

    Args:
        vector: Input vector

    Returns:
        Normalized vector (zero vector stays zero)
    """
    v = np.asarray(vector, dtype=np.float64)
    magnitude = np.linalg.norm(v)
    if magnitude == 0 or not np.isfinite(magnitude):
        return np.zeros(3)
    return v / magnitude


def spherical_to_cartesian(radius: float, phi: float, theta: float) -> np.ndarray:
    """
    Convert spherical coordinates to the scene frame.

    Args:
        radius: Distance from origin
        phi: Polar angle from +Y in radians
        theta: Azimuthal angle around Y in radians (0 points to +Z)

    Returns:
        Cartesian vector (x, y, z)
    """
    sin_phi = math.sin(phi)
    return np.array([
        radius * sin_phi * math.sin(theta),
        radius * math.cos(phi),
        radius * sin_phi * math.cos(theta),
    ])


def rotate_about_axis(vector, axis, angle: float) -> np.ndarray:
    """Rotate a vector by angle (radians) about an axis through the origin (right-handed)."""
    matrix = rotation_matrix(angle, normalize_vector(axis))
    return matrix[:3, :3] @ np.asarray(vector, dtype=np.float64)


def horizontal_perpendicular(direction) -> np.ndarray:
    """Quarter turn of a direction about the vertical axis, dropping its vertical part."""
    d = np.asarray(direction, dtype=np.float64)
    return np.array([-d[2], 0.0, d[0]])


def triangle_area(a, b, c) -> float:
    """Area of triangle ABC from half the magnitude of AB x AC."""
    ab = np.asarray(b, dtype=np.float64) - np.asarray(a, dtype=np.float64)
    ac = np.asarray(c, dtype=np.float64) - np.asarray(a, dtype=np.float64)
    return float(np.linalg.norm(np.cross(ab, ac)) / 2.0)


def sector_area(angle_range: float, radius: float) -> float:
    """Closed-form area of a circular sector."""
    return 0.5 * angle_range * radius * radius


def is_finite_vector(vector) -> bool:
    return bool(np.all(np.isfinite(np.asarray(vector, dtype=np.float64))))


def is_degenerate_box(bounds_min, bounds_max, tolerance: float = 1e-9) -> bool:
    """
    Check a bounding box for degeneracy.

    A box is degenerate if any corner is non-finite or if it has non-zero
    extent along fewer than two axes.

    Args:
        bounds_min: Minimum corner
        bounds_max: Maximum corner
        tolerance: Extent below which an axis counts as flat

    Returns:
        True if the box cannot be used for analysis
    """
    lo = np.asarray(bounds_min, dtype=np.float64)
    hi = np.asarray(bounds_max, dtype=np.float64)
    if not (is_finite_vector(lo) and is_finite_vector(hi)):
        return True
    extents = hi - lo
    return int(np.count_nonzero(extents > tolerance)) < 2
