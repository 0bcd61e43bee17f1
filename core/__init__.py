"""
Core analysis engines: scene classification, solar sampling, sunlight
occlusion and field-of-view calculations.
"""

from .errors import AnalysisError, ModelLoadError, ModelNotReadyError
from .scene_classifier import SceneClassifier
from .solar_terms import SolarTerm, solar_term_date
from .sun_position import SunPositionCalculator, SolarDirectionSampler
from .insolation_calculator import InsolationCalculator
from .field_view_calculator import FieldViewCalculator

__all__ = [
    'AnalysisError',
    'ModelLoadError',
    'ModelNotReadyError',
    'SceneClassifier',
    'SolarTerm',
    'solar_term_date',
    'SunPositionCalculator',
    'SolarDirectionSampler',
    'InsolationCalculator',
    'FieldViewCalculator',
]
