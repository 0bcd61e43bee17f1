"""
Model importers (Model Loader) for GLB/glTF scenes.
"""

from .base_importer import BaseImporter
from .glb_importer import GLBImporter, scene_to_nodes

__all__ = [
    'BaseImporter',
    'GLBImporter',
    'scene_to_nodes',
]
