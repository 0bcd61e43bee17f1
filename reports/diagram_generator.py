"""
Diagram generator for visualization of analysis results.
Draws on an off-screen Agg surface, so it works inside the background worker.
"""

from typing import Optional, Sequence

from matplotlib.backends.backend_agg import FigureCanvasAgg
from matplotlib.figure import Figure
import matplotlib.patches as patches

from models.building import Building, HousingUnit
from models.calculation_result import SunlightResult, ViewFieldResult


class OffscreenSurface:
    """Off-screen rendering surface (an Agg-backed figure)."""

    def __init__(self, width: int = 1280, height: int = 960, dpi: int = 100):
        """
        Initialize off-screen surface.

        Args:
            width: Width in pixels
            height: Height in pixels
            dpi: Resolution
        """
        if width <= 0 or height <= 0:
            raise ValueError(f"Invalid surface size: {width}x{height}")
        self.width = width
        self.height = height
        self.dpi = dpi
        self.figure: Optional[Figure] = Figure(figsize=(width / dpi, height / dpi), dpi=dpi)
        self.canvas = FigureCanvasAgg(self.figure)

    @property
    def is_released(self) -> bool:
        return self.figure is None

    def clear(self) -> Figure:
        if self.figure is None:
            raise RuntimeError("Surface has been released")
        self.figure.clear()
        return self.figure

    def save(self, output_path: str):
        self.figure.savefig(output_path, dpi=self.dpi)

    def release(self):
        """Drop the figure; the surface cannot be drawn on afterwards."""
        if self.figure is not None:
            self.figure.clear()
        self.figure = None
        self.canvas = None


class DiagramGenerator:
    """Generates plan diagrams and charts for analysis results."""

    def __init__(self, surface: Optional[OffscreenSurface] = None):
        """
        Initialize diagram generator.

        Args:
            surface: Surface to draw on (a default-sized one is created if omitted)
        """
        self.surface = surface or OffscreenSurface()

    def generate_plan_diagram(
        self,
        buildings: Sequence[Building],
        units: Sequence[HousingUnit],
        view_result: Optional[ViewFieldResult] = None,
        sunlight_result: Optional[SunlightResult] = None,
        output_path: Optional[str] = None
    ) -> Figure:
        """
        Generate a top-down plan: unit footprints, view fans and building labels.

        Footprints are shaded by sunlit share when a sunlight result is given.

        Args:
            buildings: Buildings whose labels are placed at their anchors
            units: Housing units drawn as footprints
            view_result: Optional view result with retained fans
            sunlight_result: Optional sunlight result for footprint shading
            output_path: Optional path to save diagram

        Returns:
            Matplotlib figure
        """
        fig = self.surface.clear()
        ax = fig.add_subplot(1, 1, 1)

        for unit in units:
            x0, _, z0 = unit.bounds_min
            x1, _, z1 = unit.bounds_max
            share = 0.0
            if sunlight_result and sunlight_result.sample_count:
                share = sunlight_result.counts.get(unit.name, 0) / sunlight_result.sample_count
            footprint = patches.Rectangle(
                (x0, z0), x1 - x0, z1 - z0,
                linewidth=0.5, edgecolor='dimgray', facecolor=(1.0, 0.85, 0.2, 0.2 + 0.6 * share)
            )
            ax.add_patch(footprint)

        if view_result:
            for fan in view_result.fans.values():
                outline = fan.outline_xz()
                ax.add_patch(patches.Polygon(outline, closed=True, facecolor='yellow', edgecolor='orange', alpha=0.35))

        # Labels placed at building anchors (plan x, z)
        for building in buildings:
            x, _, z = building.position
            ax.text(x, z, building.label, ha='center', va='center', fontsize=10, fontweight='bold',
                    bbox=dict(boxstyle='round', facecolor='white', alpha=0.8))

        ax.autoscale_view()
        ax.set_xlabel('X')
        ax.set_ylabel('Z')
        ax.set_title('Sunlight and view analysis plan')
        ax.set_aspect('equal')
        ax.grid(True, alpha=0.3)
        fig.tight_layout()

        if output_path:
            self.surface.save(output_path)

        return fig

    def generate_sunlight_diagram(
        self,
        sunlight_result: SunlightResult,
        output_path: Optional[str] = None,
        limit: int = 20
    ) -> Figure:
        """
        Generate a bar chart of sunlit minutes for the best units.

        Args:
            sunlight_result: Sunlight result
            output_path: Optional path to save diagram
            limit: Number of units shown (limited for readability)

        Returns:
            Matplotlib figure
        """
        fig = self.surface.clear()
        ax = fig.add_subplot(1, 1, 1)

        ranking = sunlight_result.ranking()[:limit]
        names = [name for name, _ in ranking]
        minutes = [count * sunlight_result.step_minutes for _, count in ranking]

        ax.barh(names, minutes, color='orange', alpha=0.7)
        ax.invert_yaxis()
        ax.set_xlabel('Sunlit minutes')
        ax.set_title(f'Sunlight duration (top {len(names)})')
        ax.grid(axis='x', alpha=0.3)
        fig.tight_layout()

        if output_path:
            self.surface.save(output_path)

        return fig
