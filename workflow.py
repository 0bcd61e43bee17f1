"""
Analysis workflow functions for the sunlight and view analysis engine.

This module contains the workflow functions for loading models and
performing calculations. They are used by the background worker and the
command-line runner.
"""

import logging
from datetime import datetime
from typing import Callable, Optional, Tuple

import trimesh

from models.scene import SceneNode
from models.building import ClassificationResult
from models.calculation_result import SunlightResult, ViewFieldResult
from core import (
    SceneClassifier,
    SolarDirectionSampler,
    InsolationCalculator,
    FieldViewCalculator,
    ModelNotReadyError,
)
from importers import GLBImporter
from utils.config_loader import get_config_value

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str], None]


def import_building_model(source: str, config: dict) -> SceneNode:
    """
    Import building model from a path or URL.

    Args:
        source: Path or URL of the GLB model
        config: Configuration dictionary

    Returns:
        Root SceneNode

    Raises:
        ModelLoadError: If the model cannot be loaded
    """
    logger.info(f"Starting import of building model: {source}")
    importer = GLBImporter(source, timeout=float(get_config_value(config, 'worker.download_timeout', 60.0)))
    root = importer.import_model()
    logger.info("Import complete")
    return root


def prepare_scene(root: SceneNode, config: dict) -> Tuple[ClassificationResult, trimesh.Trimesh]:
    """
    Classify the scene, apply scene styling and build the global mesh.

    Args:
        root: Root node of the loaded model
        config: Configuration dictionary

    Returns:
        Tuple of (ClassificationResult, global world-space mesh)
    """
    classifier = SceneClassifier.from_config(config)
    classification = classifier.classify(root)
    classifier.apply_scene_styling(root, classification)

    global_mesh = root.combined_world_mesh(include_hidden=False)
    if global_mesh is None:
        logger.warning("Model has no visible geometry")
        global_mesh = trimesh.Trimesh()
    else:
        logger.info(f"Global mesh: {len(global_mesh.vertices):,} vertices, {len(global_mesh.faces):,} faces")

    return classification, global_mesh


def calculate_sunlight(
    classification: ClassificationResult,
    config: dict,
    progress_callback: Optional[ProgressCallback] = None
) -> SunlightResult:
    """
    Calculate sunlit minutes for all housing units.

    Args:
        classification: Classified scene
        config: Configuration dictionary
        progress_callback: Called once per solar sample

    Returns:
        SunlightResult
    """
    sampler = SolarDirectionSampler.from_config(config)
    logger.info(
        f"Solar sampling at ({sampler.sun_calculator.latitude}, {sampler.sun_calculator.longitude}) "
        f"on {sampler.calculation_date}"
        + (f" ({sampler.solar_term.name})" if sampler.solar_term else "")
    )
    log_daylight_window(sampler)

    calculator = InsolationCalculator.from_config(config)
    result = calculator.calculate(
        sampler.samples(),
        classification.units,
        step_minutes=sampler.step_minutes,
        progress_callback=progress_callback
    )

    for name, count in result.ranking()[:5]:
        logger.info(f"  {name}: {count} sample(s), {result.formatted(name)}")
    return result


def log_daylight_window(sampler: SolarDirectionSampler) -> Optional[Tuple[datetime, datetime]]:
    """
    Log sunrise, sunset and daylight hours, warning when the sampling window
    reaches outside daylight.

    Args:
        sampler: Configured solar direction sampler

    Returns:
        Tuple of (sunrise, sunset), or None where the sun does not rise or set
    """
    calculator = sampler.sun_calculator
    try:
        sunrise, sunset = calculator.get_sunrise_sunset(sampler.calculation_date)
        daylight = calculator.get_daylight_hours(sampler.calculation_date)
    except ValueError as e:
        # astral raises for polar day or night
        logger.warning(f"No sunrise/sunset on {sampler.calculation_date}: {e}")
        return None

    logger.info(f"Sunrise {sunrise:%H:%M}, sunset {sunset:%H:%M} ({daylight:.2f} h daylight)")
    if sunrise.time() > sampler.start_time or sunset.time() < sampler.end_time:
        logger.warning(
            f"Sampling window {sampler.start_time:%H:%M}-{sampler.end_time:%H:%M} extends beyond daylight; "
            f"samples with the sun below the horizon are still cast"
        )
    return sunrise, sunset


def calculate_field_view(
    classification: ClassificationResult,
    global_mesh: Optional[trimesh.Trimesh],
    config: dict,
    progress_callback: Optional[ProgressCallback] = None
) -> ViewFieldResult:
    """
    Calculate view areas for all housing units.

    Args:
        classification: Classified scene
        global_mesh: Combined mesh of the whole model
        config: Configuration dictionary
        progress_callback: Called once per housing unit

    Returns:
        ViewFieldResult

    Raises:
        ModelNotReadyError: If the model has not been loaded
    """
    if global_mesh is None:
        raise ModelNotReadyError()

    calculator = FieldViewCalculator.from_config(config)
    result = calculator.calculate(classification.units, global_mesh, progress_callback=progress_callback)

    for name, area in result.ranking()[:5]:
        logger.info(f"  {name}: view area {area:.2f}")
    return result
