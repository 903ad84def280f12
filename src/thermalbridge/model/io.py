"""
Input/Output Manager
====================
Handles saving and loading the drawn regions to the editor's JSON format, and
exporting solved fields to .vtu files for ParaView.

Drawing format::

    {"version": "1.0", "elements": [{"id": ..., "type": "rectangle",
      "points": [{"x": ..., "y": ...}, {"x": ..., "y": ...}],
      "properties": {"material": {...}}, ...}, ...]}
"""
from __future__ import annotations

import json
import logging
import math
from typing import Any, Dict, TYPE_CHECKING

import meshio
import numpy as np

from thermalbridge.exceptions import InvalidGeometry
from thermalbridge.model.geometry import Point, Region
from thermalbridge.model.materials import Material

if TYPE_CHECKING:
    from thermalbridge.fea.solvers.solver import SimulationResult

logger = logging.getLogger(__name__)

DRAWING_FORMAT_VERSION = "1.0"


def _round_coordinate(value: float) -> float:
    # Half-up rounding to 3 decimals, as the editor does
    return math.floor(value * 1000.0 + 0.5) / 1000.0


def region_to_element(region: Region) -> Dict[str, Any]:
    material = region.material
    return {
        "id": region.id,
        "type": "rectangle",
        "layerId": "default",
        "points": [{"x": _round_coordinate(p.x), "y": _round_coordinate(p.y)} for p in region.points],
        "properties": {
            "material": material.to_dict(),
            "thickness": material.thickness,
            "thermalConductivity": material.thermal_conductivity,
        },
        "style": {"color": "#000000", "lineWidth": 1, "fillColor": material.color},
        "isClosed": True,
    }


def element_to_region(element: Dict[str, Any]) -> Region | None:
    """
    Convert one drawing element into a region.

    Returns None for elements that do not describe a material-filled rectangle
    (lines, dimensions, text, ...).
    """
    if element.get("type") != "rectangle":
        return None

    material_data = (element.get("properties") or {}).get("material")
    if not material_data:
        logger.warning(f"Rectangle '{element.get('id')}' has no material and is ignored.")
        return None

    points = element.get("points") or []
    if len(points) < 2:
        raise InvalidGeometry(f"Element '{element.get('id')}' must have at least 2 points.")

    try:
        p1, p2 = (Point(float(p["x"]), float(p["y"])) for p in points[:2])
        material = Material.from_dict(material_data)
    except (KeyError, TypeError, ValueError) as e:
        raise InvalidGeometry(f"Element '{element.get('id')}' is malformed: {e}") from e

    return Region(id=str(element.get("id", "")), corner1=p1, corner2=p2, material=material)


def export_drawing(regions: list[Region]) -> str:
    """Serialize regions to the drawing JSON format (coordinates rounded to 3 decimals)."""
    drawing_data = {
        "version": DRAWING_FORMAT_VERSION,
        "elements": [region_to_element(r) for r in regions],
    }
    return json.dumps(drawing_data, indent=2)


def import_drawing(data: str) -> list[Region]:
    """
    Parse the drawing JSON format into regions.

    Raises:
        InvalidGeometry: If the text is not valid JSON or has no element list.
    """
    try:
        parsed = json.loads(data)
    except json.JSONDecodeError as e:
        logger.error(f"Failed to import drawing: {e}")
        raise InvalidGeometry(f"Invalid drawing data: {e}") from e

    if not isinstance(parsed, dict) or not isinstance(parsed.get("elements"), list):
        logger.error("Failed to import drawing: missing element list.")
        raise InvalidGeometry("Invalid drawing data format")

    version = parsed.get("version")
    if version != DRAWING_FORMAT_VERSION:
        logger.warning(f"Drawing format version {version!r} differs from {DRAWING_FORMAT_VERSION!r}.")

    regions: list[Region] = []
    for element in parsed["elements"]:
        region = element_to_region(element)
        if region is not None:
            regions.append(region)

    logger.debug(f"Imported {len(regions)} regions from {len(parsed['elements'])} drawing elements.")
    return regions


def save_drawing(regions: list[Region], filepath: str) -> None:
    with open(filepath, "w", encoding="utf-8") as f:
        f.write(export_drawing(regions))
    logger.info(f"Drawing saved to: {filepath}")


def load_drawing(filepath: str) -> list[Region]:
    logger.info(f"Loading drawing from: {filepath}")
    with open(filepath, "r", encoding="utf-8") as f:
        return import_drawing(f.read())


def export_result_to_vtu(result: SimulationResult, filepath: str) -> None:
    """
    Write the solved field as an unstructured grid.

    Point data: temperature [°C]. Cell data: heat flux components and
    magnitude, thermal conductivity.
    """
    points = np.array([[node.x, node.y, 0.0] for node in result.nodes], dtype=np.float64)
    cells = np.array([element.global_dofs for element in result.elements], dtype=np.int64)

    mesh = meshio.Mesh(
        points=points,
        cells=[("triangle", cells)],
        point_data={"Temperature [C]": result.temperatures},
        cell_data={
            "Heat flux [W/m2]": [np.array([[f.qx, f.qy, 0.0] for f in result.flux_values], dtype=np.float64)],
            "Heat flux magnitude [W/m2]": [np.array([f.magnitude for f in result.flux_values], dtype=np.float64)],
            "Conductivity [W/(m.K)]": [
                np.array([e.material.thermal_conductivity for e in result.elements], dtype=np.float64)
            ],
        },
    )
    mesh.write(filepath)
    logger.info(f"Result exported to: {filepath}")
