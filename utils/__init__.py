"""
Utility functions and helpers.
"""

from .config_loader import load_config, get_config_value
from .geometry_utils import (
    normalize_vector,
    spherical_to_cartesian,
    rotate_about_axis,
    horizontal_perpendicular,
    triangle_area,
    sector_area,
    is_degenerate_box,
)

__all__ = [
    'load_config',
    'get_config_value',
    'normalize_vector',
    'spherical_to_cartesian',
    'rotate_about_axis',
    'horizontal_perpendicular',
    'triangle_area',
    'sector_area',
    'is_degenerate_box',
]
