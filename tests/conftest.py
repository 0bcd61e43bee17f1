"""Shared fixtures: synthetic scenes built from boxes."""

import numpy as np
import pytest
import trimesh
from trimesh.transformations import translation_matrix

from tests.helpers import UNIT_EXTENTS, make_box_node, make_group_node, make_root


@pytest.fixture
def tower_scene():
    """
    Building '8D' with unit 8D701 and a unit 18D701 stacked above it,
    plus pedestal nodes and an unclassified mesh.
    """
    building = make_group_node('8D', center=(5.0, 0.0, 5.0))
    building.add_child(make_box_node('8D701', center=(-5.0, 0.0, -5.0)))
    tower = make_group_node('18D')
    tower.add_child(make_box_node('18D701', center=(0.3, 20.0, 0.7)))
    root = make_root(
        building,
        tower,
        make_box_node('Default_light', center=(0.0, -50.0, 0.0)),
        make_box_node('Rectangle002', center=(0.0, -60.0, 0.0), extents=(100.0, 1.0, 100.0)),
        make_box_node('8D70', center=(40.0, 0.0, 40.0)),
    )
    return root


@pytest.fixture
def glb_model(tmp_path):
    """GLB file with one building group and two housing units."""
    scene = trimesh.Scene()
    scene.graph.update(frame_to='8D', frame_from=scene.graph.base_frame, matrix=np.eye(4))
    scene.add_geometry(
        trimesh.creation.box(extents=UNIT_EXTENTS),
        node_name='8D701', geom_name='8D701_mesh', parent_node_name='8D',
        transform=translation_matrix((0.0, 0.0, 0.0))
    )
    scene.add_geometry(
        trimesh.creation.box(extents=UNIT_EXTENTS),
        node_name='18D701', geom_name='18D701_mesh', parent_node_name='8D',
        transform=translation_matrix((0.3, 20.0, 0.7))
    )
    scene.add_geometry(
        trimesh.creation.box(extents=(100.0, 1.0, 100.0)),
        node_name='Rectangle002', geom_name='pedestal_mesh',
        transform=translation_matrix((0.0, -30.0, 0.0))
    )
    path = tmp_path / 'model.glb'
    path.write_bytes(scene.export(file_type='glb'))
    return path


@pytest.fixture
def fast_config():
    """Small sampling grid and fan so end-to-end runs stay quick."""
    return {
        'solar': {'date': '2024-06-21', 'start_time': '08:00', 'end_time': '16:00', 'step_minutes': 60},
        'field_view': {'max_radius': 50.0, 'angle_range_deg': 120.0, 'segments': 12},
    }
