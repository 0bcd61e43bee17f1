"""
Scene graph model: SceneNode.
A thin, library-neutral view of a loaded glTF scene that the analysis
components can walk without depending on the loader.
"""

from typing import List, Optional, Tuple, Iterator
from dataclasses import dataclass, field

import numpy as np
import trimesh


@dataclass(eq=False)
class SceneNode:
    """Node of a loaded model with its transform and optional mesh."""

    id: str
    name: str
    local_transform: np.ndarray = field(default_factory=lambda: np.eye(4))
    mesh: Optional[trimesh.Trimesh] = None  # Geometry in the node's local frame
    visible: bool = True
    color: Optional[Tuple[int, int, int, int]] = None  # RGBA 0-255
    original_color: Optional[Tuple[int, int, int, int]] = None
    children: List['SceneNode'] = field(default_factory=list)
    parent: Optional['SceneNode'] = field(default=None, repr=False)

    def add_child(self, child: 'SceneNode') -> 'SceneNode':
        """Attach a child node and return it."""
        child.parent = self
        self.children.append(child)
        return child

    @property
    def world_transform(self) -> np.ndarray:
        """World transform as the product of all ancestor transforms."""
        matrix = np.asarray(self.local_transform, dtype=np.float64)
        node = self.parent
        while node is not None:
            matrix = np.asarray(node.local_transform, dtype=np.float64) @ matrix
            node = node.parent
        return matrix

    @property
    def position(self) -> np.ndarray:
        """Local position (translation of the local transform), as a copy."""
        return np.array(self.local_transform[:3, 3], dtype=np.float64)

    def get_world_position(self) -> np.ndarray:
        """World position (translation of the world transform)."""
        return np.array(self.world_transform[:3, 3], dtype=np.float64)

    @property
    def is_mesh(self) -> bool:
        return self.mesh is not None and len(self.mesh.faces) > 0

    def traverse(self) -> Iterator['SceneNode']:
        """Pre-order walk over this node and all descendants."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            # Reversed so children are visited in declaration order
            stack.extend(reversed(node.children))

    def world_meshes(self, include_hidden: bool = True) -> List[trimesh.Trimesh]:
        """
        Collect all mesh geometry in this subtree, transformed to world space.

        Args:
            include_hidden: If False, skip nodes (and their subtrees) marked invisible

        Returns:
            List of world-space meshes (copies, the source geometry is untouched)
        """
        meshes = []
        stack = [(self, self.world_transform)]
        while stack:
            node, matrix = stack.pop()
            if not include_hidden and not node.visible:
                continue
            if node.is_mesh:
                world_mesh = node.mesh.copy()
                world_mesh.apply_transform(matrix)
                meshes.append(world_mesh)
            for child in reversed(node.children):
                stack.append((child, matrix @ np.asarray(child.local_transform, dtype=np.float64)))
        return meshes

    def combined_world_mesh(self, include_hidden: bool = True) -> Optional[trimesh.Trimesh]:
        """Concatenate the subtree's world meshes into one mesh, or None if empty."""
        meshes = self.world_meshes(include_hidden=include_hidden)
        if not meshes:
            return None
        if len(meshes) == 1:
            return meshes[0]
        return trimesh.util.concatenate(meshes)
