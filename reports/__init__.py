"""
Diagram generation for analysis results.
"""

from .diagram_generator import DiagramGenerator, OffscreenSurface

__all__ = [
    'DiagramGenerator',
    'OffscreenSurface',
]
