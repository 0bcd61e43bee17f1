"""
Data models for scene nodes, buildings, housing units and analysis results.
"""

from .scene import SceneNode
from .building import Building, HousingUnit, ClassificationResult
from .calculation_result import SolarSample, SunlightResult, ViewFan, ViewFieldResult

__all__ = [
    'SceneNode',
    'Building',
    'HousingUnit',
    'ClassificationResult',
    'SolarSample',
    'SunlightResult',
    'ViewFan',
    'ViewFieldResult',
]
