"""Tests for GLB loading from disk and over HTTP."""

import httpx
import numpy as np
import pytest
import trimesh
from trimesh.transformations import translation_matrix

from core.errors import ModelLoadError
from importers import GLBImporter, scene_to_nodes


def test_load_local_glb(glb_model):
    root = GLBImporter(str(glb_model)).import_model()
    nodes = {node.name: node for node in root.traverse()}

    assert root.name == 'model'
    assert {'8D', '8D701', '18D701', 'Rectangle002'} <= set(nodes)
    assert nodes['8D701'].is_mesh
    assert not nodes['8D'].is_mesh
    assert nodes['18D701'].get_world_position() == pytest.approx([0.3, 20.0, 0.7])


def test_missing_file():
    with pytest.raises(ModelLoadError, match='file not found'):
        GLBImporter('/nonexistent/model.glb').import_model()


def test_invalid_file(tmp_path):
    path = tmp_path / 'broken.glb'
    path.write_bytes(b'\x00' * 64)
    with pytest.raises(ModelLoadError):
        GLBImporter(str(path)).import_model()


def test_remote_glb(glb_model, monkeypatch):
    payload = glb_model.read_bytes()
    requested = []

    def fake_get(url, **kwargs):
        requested.append((url, kwargs))
        return httpx.Response(200, content=payload, request=httpx.Request('GET', url))

    monkeypatch.setattr(httpx, 'get', fake_get)
    importer = GLBImporter('https://models.example.com/site/model.glb', timeout=5.0)
    root = importer.import_model()

    assert importer.is_remote
    assert requested[0][1]['timeout'] == 5.0
    assert '18D701' in {node.name for node in root.traverse()}


def test_remote_http_error(monkeypatch):
    def fake_get(url, **kwargs):
        return httpx.Response(404, request=httpx.Request('GET', url))

    monkeypatch.setattr(httpx, 'get', fake_get)
    with pytest.raises(ModelLoadError, match='download failed'):
        GLBImporter('https://models.example.com/missing.glb').import_model()


def test_remote_timeout(monkeypatch):
    def fake_get(url, **kwargs):
        raise httpx.ReadTimeout('timed out', request=httpx.Request('GET', url))

    monkeypatch.setattr(httpx, 'get', fake_get)
    with pytest.raises(ModelLoadError, match='timed out'):
        GLBImporter('http://models.example.com/slow.glb', timeout=1.0).import_model()


def test_scene_to_nodes_keeps_hierarchy():
    scene = trimesh.Scene()
    scene.graph.update(frame_to='3A', frame_from=scene.graph.base_frame, matrix=translation_matrix((10.0, 0.0, 0.0)))
    scene.add_geometry(
        trimesh.creation.box(extents=(2.0, 2.0, 2.0)),
        node_name='3A101', geom_name='unit', parent_node_name='3A',
        transform=translation_matrix((0.0, 5.0, 0.0))
    )
    root = scene_to_nodes(scene, name='site')

    building = root.children[0]
    unit = building.children[0]
    assert (building.name, unit.name) == ('3A', '3A101')
    assert unit.parent is building
    assert np.allclose(unit.get_world_position(), [10.0, 5.0, 0.0])
    assert unit.combined_world_mesh().bounds[0] == pytest.approx([9.0, 4.0, -1.0])
