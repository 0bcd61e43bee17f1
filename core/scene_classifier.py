"""
Scene classifier.
Tags scene nodes as buildings or housing units by their structural names.

Classification is a pure traversal; scene styling (hiding pedestal nodes,
tinting materials) is a separate mutation pass.
"""

import re
import logging
from typing import List, Optional, Sequence, Tuple

import numpy as np

from models.scene import SceneNode
from models.building import Building, HousingUnit, ClassificationResult
from utils.config_loader import get_config_value
from utils.geometry_utils import is_degenerate_box, is_finite_vector

logger = logging.getLogger(__name__)

BUILDING_PATTERN = re.compile(r'^\d{1,2}[A-Z]$')
UNIT_PATTERN = re.compile(r'^(\d{1,2})([A-Z])(\d{3})$')
HIDDEN_NODE_NAMES = ('Default_light', 'Rectangle002')
BUILDING_LABEL_SUFFIX = '栋'
TINT_COLOR = (0xFF, 0xFF, 0xF0, 0xFF)  # Warm white, #FFFFF0


def is_building_name(name: Optional[str]) -> bool:
    return bool(name) and BUILDING_PATTERN.fullmatch(name) is not None


def is_unit_name(name: Optional[str]) -> bool:
    return bool(name) and UNIT_PATTERN.fullmatch(name) is not None


class SceneClassifier:
    """
    Builds the building/housing-unit catalog of a loaded scene.
    """

    def __init__(
        self,
        hidden_names: Sequence[str] = HIDDEN_NODE_NAMES,
        label_suffix: str = BUILDING_LABEL_SUFFIX,
        tint_color: Tuple[int, int, int, int] = TINT_COLOR
    ):
        """
        Initialize scene classifier.

        Args:
            hidden_names: Node names that are always hidden (default pedestal)
            label_suffix: Word appended to the building number in labels
            tint_color: RGBA color applied to every mesh node by the styling pass
        """
        self.hidden_names = tuple(hidden_names)
        self.label_suffix = label_suffix
        self.tint_color = tuple(tint_color)

    @classmethod
    def from_config(cls, config: dict) -> 'SceneClassifier':
        tint = get_config_value(config, 'classification.tint_color', '#FFFFF0')
        return cls(
            hidden_names=get_config_value(config, 'classification.hidden_nodes', list(HIDDEN_NODE_NAMES)),
            label_suffix=get_config_value(config, 'classification.label_suffix', BUILDING_LABEL_SUFFIX),
            tint_color=parse_hex_color(tint)
        )

    def classify(self, root: SceneNode) -> ClassificationResult:
        """
        Walk the scene graph once and collect buildings and housing units.

        Args:
            root: Root node of a loaded model

        Returns:
            ClassificationResult with catalogs in traversal order
        """
        buildings: List[Building] = []
        units: List[HousingUnit] = []
        hidden: List[str] = []
        skipped: List[str] = []
        unit_names = set()
        visited = 0

        for node in root.traverse():
            visited += 1
            if node.name in self.hidden_names:
                hidden.append(node.id)

            if is_building_name(node.name):
                buildings.append(self._make_building(node))
            elif is_unit_name(node.name):
                if node.name in unit_names:
                    # Results are keyed by unit name
                    logger.warning(f"Duplicate housing unit name {node.name} (node {node.id}) - skipped")
                    skipped.append(node.name)
                    continue
                unit_names.add(node.name)
                unit = self._make_unit(node)
                if unit is None:
                    skipped.append(node.name)
                else:
                    units.append(unit)

        logger.info(
            f"Classified {visited} node(s): {len(buildings)} building(s), "
            f"{len(units)} housing unit(s), {len(skipped)} skipped"
        )
        if not units:
            logger.warning("No housing units found in model - analysis results will be empty")

        return ClassificationResult(
            buildings=tuple(buildings),
            units=tuple(units),
            hidden_node_ids=tuple(hidden),
            skipped_units=tuple(skipped)
        )

    def _make_building(self, node: SceneNode) -> Building:
        index = int(re.match(r'\d{1,2}', node.name).group(0))
        return Building(
            index=index,
            name=node.name,
            label=f"{index}{self.label_suffix}",
            position=tuple(float(c) for c in node.position),
            node_id=node.id
        )

    def _make_unit(self, node: SceneNode) -> Optional[HousingUnit]:
        mesh = node.combined_world_mesh()
        if mesh is None or len(mesh.faces) == 0:
            logger.warning(f"Housing unit {node.name} has no geometry - skipped")
            return None

        bounds = np.asarray(mesh.bounds, dtype=np.float64)
        if is_degenerate_box(bounds[0], bounds[1]):
            logger.warning(f"Housing unit {node.name} has a degenerate bounding box {bounds.tolist()} - skipped")
            return None

        world_position = node.get_world_position()
        if not is_finite_vector(world_position):
            # Kept in the catalog; the sunlight analysis skips it per sample
            logger.warning(f"Housing unit {node.name} has a non-finite world position")

        match = UNIT_PATTERN.fullmatch(node.name)
        return HousingUnit(
            name=node.name,
            node_id=node.id,
            mesh=mesh,
            bounds_min=tuple(float(c) for c in bounds[0]),
            bounds_max=tuple(float(c) for c in bounds[1]),
            world_position=tuple(float(c) for c in world_position),
            building_index=int(match.group(1)),
            block=match.group(2),
            suite=match.group(3)
        )

    def apply_scene_styling(self, root: SceneNode, classification: ClassificationResult):
        """
        Hide pedestal nodes and tint every mesh node, keeping original colors.

        Args:
            root: Root node that was classified
            classification: Result of classify() on the same root
        """
        hidden_ids = set(classification.hidden_node_ids)
        tinted = 0
        for node in root.traverse():
            if node.id in hidden_ids:
                node.visible = False
            if node.is_mesh and node.color != self.tint_color:
                node.original_color = node.color
                node.color = self.tint_color
                tinted += 1
        logger.info(f"Scene styling applied: {len(hidden_ids)} node(s) hidden, {tinted} mesh node(s) tinted")

    def restore_scene_styling(self, root: SceneNode):
        """Restore the original colors recorded by apply_scene_styling()."""
        for node in root.traverse():
            if node.is_mesh and node.color == self.tint_color:
                node.color = node.original_color
                node.original_color = None


def parse_hex_color(value) -> Tuple[int, int, int, int]:
    """Parse '#RRGGBB' (or an RGB/RGBA sequence) into an RGBA tuple."""
    if isinstance(value, str):
        text = value.lstrip('#')
        if len(text) != 6:
            raise ValueError(f"Invalid color: {value}")
        return (int(text[0:2], 16), int(text[2:4], 16), int(text[4:6], 16), 0xFF)
    components = tuple(int(c) for c in value)
    if len(components) == 3:
        components = components + (0xFF,)
    return components
