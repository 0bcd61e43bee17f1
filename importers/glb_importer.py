"""
GLB (glTF Binary) model importer.
GLB files contain 3D geometry with scene graph structure.
This importer converts the trimesh scene graph into SceneNode trees.
"""

import io
import logging
from pathlib import Path
from typing import Dict, Optional, Tuple

import httpx
import numpy as np
import trimesh

from core.errors import ModelLoadError
from models.scene import SceneNode
from .base_importer import BaseImporter

logger = logging.getLogger(__name__)


class GLBImporter(BaseImporter):
    """
    Importer for GLB/glTF models from a local path or an http(s) URL.
    """

    def __init__(self, source: str, timeout: float = 60.0):
        """
        Initialize GLB importer.

        Args:
            source: Path or URL of the GLB file
            timeout: Download timeout in seconds for remote models
        """
        super().__init__(source)
        self.timeout = timeout
        self.scene: Optional[trimesh.Scene] = None

    def import_model(self) -> SceneNode:
        """
        Load the GLB file and build the SceneNode tree.

        Returns:
            Root SceneNode
        """
        logger.info(f"Loading GLB model: {self.source}")

        try:
            if self.is_remote:
                loaded = trimesh.load(
                    file_obj=io.BytesIO(self._download()),
                    file_type=Path(httpx.URL(self.source).path).suffix.lstrip('.') or 'glb',
                    force='scene'
                )
            else:
                path = Path(self.source)
                if not path.exists():
                    raise ModelLoadError(self.source, "file not found")
                loaded = trimesh.load(str(path.resolve()), force='scene')
        except ModelLoadError:
            raise
        except Exception as e:
            logger.error(f"Failed to load GLB model: {e}", exc_info=True)
            raise ModelLoadError(self.source, str(e)) from e

        if not isinstance(loaded, trimesh.Scene):
            raise ModelLoadError(self.source, f"unexpected loaded type: {type(loaded)}")

        self.scene = loaded
        logger.info(f"Scene has {len(loaded.geometry)} geometry object(s), {len(loaded.graph.nodes)} node(s)")

        self.root = scene_to_nodes(loaded, name=Path(str(self.source)).stem)
        mesh_nodes = sum(1 for node in self.root.traverse() if node.is_mesh)
        logger.info(f"Scene graph built: {mesh_nodes} mesh node(s)")
        return self.root

    def _download(self) -> bytes:
        """Fetch a remote model."""
        try:
            response = httpx.get(self.source, timeout=self.timeout, follow_redirects=True)
            response.raise_for_status()
        except httpx.TimeoutException as e:
            raise ModelLoadError(self.source, f"download timed out after {self.timeout}s") from e
        except httpx.HTTPError as e:
            raise ModelLoadError(self.source, f"download failed: {e}") from e
        logger.info(f"Downloaded {len(response.content):,} bytes")
        return response.content


def scene_to_nodes(scene: trimesh.Scene, name: str = "Scene") -> SceneNode:
    """
    Convert a trimesh scene graph into a SceneNode tree.

    Args:
        scene: Loaded trimesh scene
        name: Name for the root node

    Returns:
        Root SceneNode mirroring the scene graph
    """
    graph = scene.graph
    base = graph.base_frame
    children_map: Dict[str, list] = graph.transforms.children

    root = SceneNode(id=str(base), name=name)
    stack = [(base, root)]
    while stack:
        frame, node = stack.pop()
        for child_frame in children_map.get(frame, []):
            local_matrix, geometry_name = graph.get(frame_to=child_frame, frame_from=frame)
            mesh = None
            if geometry_name is not None:
                geometry = scene.geometry.get(geometry_name)
                if isinstance(geometry, trimesh.Trimesh):
                    mesh = geometry
            child = node.add_child(SceneNode(
                id=str(child_frame),
                name=str(child_frame),
                local_transform=np.array(local_matrix, dtype=np.float64),
                mesh=mesh,
                color=_mesh_color(mesh)
            ))
            stack.append((child_frame, child))
    return root


def _mesh_color(mesh: Optional[trimesh.Trimesh]) -> Optional[Tuple[int, int, int, int]]:
    """Base color of a mesh material, if it has one."""
    if mesh is None:
        return None
    material = getattr(mesh.visual, 'material', None)
    factor = getattr(material, 'baseColorFactor', None)
    if factor is not None:
        return tuple(int(c) for c in np.asarray(factor).ravel()[:4])
    main_color = getattr(material, 'main_color', None)
    if main_color is not None:
        return tuple(int(c) for c in np.asarray(main_color).ravel()[:4])
    return None
