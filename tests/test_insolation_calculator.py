"""Tests for the sunlight occlusion analysis."""

import math

import pytest
import trimesh

from core.insolation_calculator import InsolationCalculator
from core.scene_classifier import SceneClassifier
from models.building import HousingUnit
from tests.helpers import make_box_node, make_root, overhead_samples, horizontal_samples


def classify(*nodes):
    return SceneClassifier().classify(make_root(*nodes)).units


def test_unobstructed_units_see_every_sample():
    units = classify(
        make_box_node('8D701', center=(-20.0, 0.0, 0.0)),
        make_box_node('9D701', center=(20.0, 0.0, 0.0)),
    )
    result = InsolationCalculator().calculate(overhead_samples(), units)

    assert result.counts == {'8D701': 480, '9D701': 480}
    assert result.sample_count == 480
    assert result.formatted('8D701') == '08:00:00'


def test_unit_above_blocks_overhead_sun(tower_scene):
    units = SceneClassifier().classify(tower_scene).units
    result = InsolationCalculator().calculate(overhead_samples(), units)

    assert result.counts['8D701'] == 0
    assert result.counts['18D701'] == 480
    assert result.ranking()[0] == ('18D701', 480)


def test_blocking_wall_between_unit_and_low_sun():
    units = classify(
        make_box_node('8D701'),
        make_box_node('8D702', center=(30.0, 0.4, 0.3)),
    )
    result = InsolationCalculator().calculate(horizontal_samples((1.0, 0.0, 0.0)), units)

    assert result.counts['8D701'] == 0
    assert result.counts['8D702'] == 480


def test_own_mesh_never_blocks():
    # The ray leaves through the unit's own ceiling; only other units count
    units = classify(make_box_node('8D701'))
    result = InsolationCalculator().calculate(overhead_samples(10), units)
    assert result.counts == {'8D701': 10}


def test_counts_bounded_by_sample_count(tower_scene):
    units = SceneClassifier().classify(tower_scene).units
    samples = overhead_samples(5) + horizontal_samples((0.0, 0.2, 1.0), 7)
    result = InsolationCalculator().calculate(samples, units)

    assert set(result.counts) == {'8D701', '18D701'}
    for count in result.counts.values():
        assert 0 <= count <= len(samples)


def test_non_finite_position_skipped():
    valid = classify(make_box_node('8D701'))[0]
    broken = HousingUnit(
        name='8D702',
        node_id='broken',
        mesh=trimesh.creation.box(extents=(4.0, 3.0, 4.0)),
        bounds_min=(-2.0, -1.5, -2.0),
        bounds_max=(2.0, 1.5, 2.0),
        world_position=(math.nan, 0.0, 0.0),
    )
    result = InsolationCalculator().calculate(overhead_samples(20), [valid, broken])

    assert result.counts == {'8D701': 20}
    assert result.skipped == ['8D702']


def test_empty_catalog_gives_empty_result():
    messages = []
    result = InsolationCalculator().calculate(overhead_samples(3), [], progress_callback=messages.append)

    assert result.counts == {}
    assert len(messages) == 3


def test_progress_reported_per_sample(tower_scene):
    units = SceneClassifier().classify(tower_scene).units
    messages = []
    InsolationCalculator().calculate(overhead_samples(4), units, progress_callback=messages.append)

    assert messages == [
        'Sunlight calculate process: 0.00%',
        'Sunlight calculate process: 25.00%',
        'Sunlight calculate process: 50.00%',
        'Sunlight calculate process: 75.00%',
    ]


def test_step_minutes_scales_duration():
    units = classify(make_box_node('8D701'))
    result = InsolationCalculator().calculate(overhead_samples(8), units, step_minutes=60)

    assert result.minutes('8D701') == 480
    assert result.formatted('8D701') == '08:00:00'


def test_sun_distance_validation():
    with pytest.raises(ValueError):
        InsolationCalculator(sun_distance=0.0)
    assert InsolationCalculator.from_config({'sunlight': {'sun_distance': 500}}).sun_distance == 500.0


def test_duplicate_unit_names_counted_once():
    units = classify(
        make_box_node('8D701', node_id='first'),
        make_box_node('8D701', center=(30.0, 0.0, 0.0), node_id='second'),
    )
    result = InsolationCalculator().calculate(overhead_samples(6), units)
    assert result.counts == {'8D701': 6}
