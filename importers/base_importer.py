"""
Base importer class for building models.
"""

from abc import ABC, abstractmethod
from typing import Optional

from models.scene import SceneNode


class BaseImporter(ABC):
    """Base class for all model importers (the Model Loader interface)."""

    def __init__(self, source: str):
        """
        Initialize importer.

        Args:
            source: Path or URL of the model file
        """
        self.source = source
        self.root: Optional[SceneNode] = None

    @abstractmethod
    def import_model(self) -> SceneNode:
        """
        Load the model and build its scene graph.

        Returns:
            Root SceneNode

        Raises:
            ModelLoadError: If the model cannot be fetched or parsed
        """
        pass

    @property
    def is_remote(self) -> bool:
        return str(self.source).lower().startswith(('http://', 'https://'))
