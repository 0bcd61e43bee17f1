"""Tests for the workflow functions shared by the worker and the CLI."""

import json
import logging
from datetime import date

import pytest
import trimesh

from core.errors import ModelNotReadyError
from core.sun_position import SolarDirectionSampler
from models.scene import SceneNode
from run_analysis import apply_overrides, build_parser
from workflow import (
    import_building_model,
    prepare_scene,
    calculate_sunlight,
    calculate_field_view,
    log_daylight_window,
)


def test_prepare_scene_hides_pedestal(tower_scene):
    classification, global_mesh = prepare_scene(tower_scene, {})

    assert classification.unit_names == ('8D701', '18D701')
    # Hidden pedestal nodes are not part of the obstruction mesh
    assert global_mesh.bounds[0][1] == pytest.approx(-1.5)
    hidden = [node.name for node in tower_scene.traverse() if not node.visible]
    assert sorted(hidden) == ['Default_light', 'Rectangle002']


def test_prepare_scene_without_geometry():
    classification, global_mesh = prepare_scene(SceneNode(id='world', name='empty'), {})
    assert classification.units == ()
    assert isinstance(global_mesh, trimesh.Trimesh)
    assert len(global_mesh.faces) == 0


def test_pipeline_on_glb(glb_model, fast_config):
    root = import_building_model(str(glb_model), fast_config)
    classification, global_mesh = prepare_scene(root, fast_config)

    sunlight = calculate_sunlight(classification, fast_config)
    view = calculate_field_view(classification, global_mesh, fast_config)

    assert sunlight.sample_count == 8
    assert sunlight.step_minutes == 60
    assert set(sunlight.counts) == set(view.areas) == {'8D701', '18D701'}
    json.dumps({'sunlight': sunlight.to_dict(), 'field_view': view.to_dict()})


def test_field_view_requires_model(tower_scene):
    classification, _ = prepare_scene(tower_scene, {})
    with pytest.raises(ModelNotReadyError):
        calculate_field_view(classification, None, {})


def test_cli_overrides():
    args = build_parser().parse_args([
        'model.glb', '--term', 'winter_solstice', '--latitude', '31.2', '--longitude', '121.5'
    ])
    config = apply_overrides({'solar': {'term': 'minor_cold'}}, args)

    assert config['solar']['term'] == 'winter_solstice'
    assert config['location'] == {'latitude': 31.2, 'longitude': 121.5}
    assert 'date' not in config['solar']


def test_cli_chart_path():
    args = build_parser().parse_args(['model.glb', '--chart', 'sunlight.png'])
    assert args.chart == 'sunlight.png'
    assert build_parser().parse_args(['model.glb']).chart is None


def test_daylight_window_logged(caplog):
    sampler = SolarDirectionSampler(calculation_date=date(2024, 6, 21))
    with caplog.at_level(logging.INFO, logger='workflow'):
        window = log_daylight_window(sampler)

    sunrise, sunset = window
    assert sunrise < sunset
    assert sunrise.time() < sampler.start_time
    assert 'Sunrise' in caplog.text
    assert not [r for r in caplog.records if r.levelno == logging.WARNING]


def test_sampling_before_sunrise_warns(caplog):
    sampler = SolarDirectionSampler(calculation_date=date(2024, 6, 21), start_time='05:00')
    with caplog.at_level(logging.INFO, logger='workflow'):
        log_daylight_window(sampler)
    assert 'extends beyond daylight' in caplog.text


def test_polar_night_has_no_daylight_window(caplog):
    sampler = SolarDirectionSampler(latitude=89.0, calculation_date=date(2024, 12, 21))
    with caplog.at_level(logging.WARNING, logger='workflow'):
        assert log_daylight_window(sampler) is None
    assert 'No sunrise/sunset' in caplog.text
