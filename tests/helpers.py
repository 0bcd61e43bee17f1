"""Synthetic scene builders shared by the test modules."""

import numpy as np
import trimesh
from trimesh.transformations import translation_matrix

from models.scene import SceneNode
from models.calculation_result import SolarSample

UNIT_EXTENTS = (4.0, 3.0, 4.0)


def make_box_node(name, center=(0.0, 0.0, 0.0), extents=UNIT_EXTENTS, node_id=None):
    """Mesh node holding a box centered on the node origin."""
    return SceneNode(
        id=node_id or name,
        name=name,
        local_transform=translation_matrix(center),
        mesh=trimesh.creation.box(extents=extents),
        color=(200, 10, 10, 255)
    )


def make_group_node(name, center=(0.0, 0.0, 0.0), node_id=None):
    return SceneNode(id=node_id or name, name=name, local_transform=translation_matrix(center))


def make_root(*children):
    root = SceneNode(id='world', name='Scene')
    for child in children:
        root.add_child(child)
    return root


def overhead_samples(count=480):
    """Samples with the sun straight up."""
    return [SolarSample(timestamp=None, direction=(0.0, 1.0, 0.0), elevation=90.0) for _ in range(count)]


def horizontal_samples(direction=(1.0, 0.0, 0.0), count=480):
    d = np.asarray(direction, dtype=float)
    d = d / np.linalg.norm(d)
    return [SolarSample(timestamp=None, direction=tuple(d)) for _ in range(count)]
