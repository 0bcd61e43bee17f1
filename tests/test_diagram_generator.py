"""Tests for off-screen plan and chart rendering."""

import pytest

from core.field_view_calculator import FieldViewCalculator
from core.insolation_calculator import InsolationCalculator
from core.scene_classifier import SceneClassifier
from reports import DiagramGenerator, OffscreenSurface
from tests.helpers import overhead_samples


def test_plan_diagram_written(tower_scene, tmp_path):
    classification = SceneClassifier().classify(tower_scene)
    sunlight = InsolationCalculator().calculate(overhead_samples(4), classification.units)
    view = FieldViewCalculator(segments=8, keep_fans=True).calculate(
        classification.units, tower_scene.combined_world_mesh()
    )
    output = tmp_path / 'plan.png'

    generator = DiagramGenerator(OffscreenSurface(width=400, height=300))
    fig = generator.generate_plan_diagram(
        classification.buildings, classification.units,
        view_result=view, sunlight_result=sunlight, output_path=str(output)
    )

    assert output.stat().st_size > 0
    labels = [text.get_text() for text in fig.axes[0].texts]
    assert labels == ['8栋', '18栋']


def test_sunlight_chart_written(tower_scene, tmp_path):
    classification = SceneClassifier().classify(tower_scene)
    sunlight = InsolationCalculator().calculate(overhead_samples(4), classification.units, step_minutes=15)
    output = tmp_path / 'sunlight.png'

    DiagramGenerator(OffscreenSurface(width=400, height=300)).generate_sunlight_diagram(
        sunlight, output_path=str(output)
    )
    assert output.exists()


def test_released_surface_cannot_draw():
    surface = OffscreenSurface(width=100, height=100)
    surface.release()

    assert surface.is_released
    with pytest.raises(RuntimeError):
        surface.clear()


def test_invalid_surface_size():
    with pytest.raises(ValueError):
        OffscreenSurface(width=0, height=100)
