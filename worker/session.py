"""
Analysis session: all state owned by one background worker.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import trimesh

from models.scene import SceneNode
from models.building import ClassificationResult
from models.calculation_result import SunlightResult, ViewFieldResult
from reports.diagram_generator import DiagramGenerator, OffscreenSurface
from workflow import import_building_model, prepare_scene, calculate_sunlight, calculate_field_view
from core.errors import ModelNotReadyError

logger = logging.getLogger(__name__)


@dataclass
class AnalysisSession:
    """
    Scene, mesh and results of one worker, plus its off-screen surface.

    Nothing here is shared with the caller; results leave the worker only
    as plain dictionaries inside protocol messages.
    """

    config: Dict[str, Any] = field(default_factory=dict)
    surface: Optional[OffscreenSurface] = None
    snapshot_path: Optional[str] = None
    chart_path: Optional[str] = None
    model_url: Optional[str] = None
    root: Optional[SceneNode] = None
    classification: Optional[ClassificationResult] = None
    global_mesh: Optional[trimesh.Trimesh] = None
    sunlight_result: Optional[SunlightResult] = None
    view_result: Optional[ViewFieldResult] = None

    @property
    def is_model_loaded(self) -> bool:
        return self.classification is not None and self.global_mesh is not None

    def bind_surface(self, options: Optional[Dict[str, Any]] = None):
        """
        Create the off-screen surface.

        Args:
            options: Optional 'width', 'height', 'dpi', 'snapshot_path' and 'chart_path'
        """
        options = options or {}
        self.release_surface()
        self.surface = OffscreenSurface(
            width=int(options.get('width', 1280)),
            height=int(options.get('height', 960)),
            dpi=int(options.get('dpi', 100))
        )
        self.snapshot_path = options.get('snapshot_path')
        self.chart_path = options.get('chart_path')
        if self.snapshot_path:
            # Fans are needed for the plan snapshot
            self.config.setdefault('field_view', {})['keep_fans'] = True
        logger.info(f"Off-screen surface bound: {self.surface.width}x{self.surface.height}")

    def load_model(self, url: str):
        """Load and prepare a model, replacing any previous one."""
        self.model_url = url
        self.root = None
        self.classification = None
        self.global_mesh = None
        self.sunlight_result = None
        self.view_result = None

        root = import_building_model(url, self.config)
        classification, global_mesh = prepare_scene(root, self.config)
        self.root = root
        self.classification = classification
        self.global_mesh = global_mesh

    def run_sunlight(self, progress_callback=None) -> SunlightResult:
        if not self.is_model_loaded:
            raise ModelNotReadyError()
        self.sunlight_result = calculate_sunlight(self.classification, self.config, progress_callback)
        return self.sunlight_result

    def run_field_view(self, progress_callback=None) -> ViewFieldResult:
        if not self.is_model_loaded:
            raise ModelNotReadyError()
        self.view_result = calculate_field_view(
            self.classification, self.global_mesh, self.config, progress_callback
        )
        return self.view_result

    def render_snapshot(self) -> Optional[str]:
        """Draw the plan diagram to the snapshot path, if both are configured."""
        if self.surface is None or self.surface.is_released or not self.snapshot_path:
            return None
        if not self.is_model_loaded:
            return None
        generator = DiagramGenerator(self.surface)
        generator.generate_plan_diagram(
            self.classification.buildings,
            self.classification.units,
            view_result=self.view_result,
            sunlight_result=self.sunlight_result,
            output_path=self.snapshot_path
        )
        logger.info(f"Plan snapshot saved: {self.snapshot_path}")
        return self.snapshot_path

    def render_chart(self) -> Optional[str]:
        """Draw the sunlight duration chart to the chart path, if both are configured."""
        if self.surface is None or self.surface.is_released or not self.chart_path:
            return None
        if self.sunlight_result is None:
            return None
        DiagramGenerator(self.surface).generate_sunlight_diagram(self.sunlight_result, output_path=self.chart_path)
        logger.info(f"Sunlight chart saved: {self.chart_path}")
        return self.chart_path

    def release_surface(self):
        if self.surface is not None:
            self.surface.release()
            self.surface = None

    def release(self):
        """Release the surface and drop all scene state."""
        self.release_surface()
        self.root = None
        self.classification = None
        self.global_mesh = None
