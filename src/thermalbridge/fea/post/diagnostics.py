"""
Diagnostics Estimator
=====================
Derives the engineering quantities of a solved temperature field.

- PSI: linear thermal transmittance, the heat flow through the interior
  boundary minus the heat flow a set of 1-D wall strips would carry.
- fRsi: temperature factor of the coldest interior surface node.
- Isotherm levels and per-element heat flux vectors for display.
"""
from __future__ import annotations

from dataclasses import dataclass
import logging
import math
from typing import TYPE_CHECKING

import numpy as np

from thermalbridge.config import (
    BAND_TOLERANCE,
    EXTERIOR_HEAT_TRANSFER_COEFFICIENT,
    INTERIOR_HEAT_TRANSFER_COEFFICIENT,
    NUMBER_OF_ISOTHERMS,
)
from thermalbridge.fea.analysis.node import BoundaryType

if TYPE_CHECKING:
    import numpy.typing as npt

    from thermalbridge.fea.analysis.node import Node
    from thermalbridge.fea.pre.mesh import Mesh
    from thermalbridge.model.materials import Material

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HeatFlux:
    """Heat flux of one element, reported at its centroid (W/m²)."""
    x: float
    y: float
    qx: float
    qy: float
    magnitude: float

    @property
    def position(self) -> tuple[float, float]:
        return self.x, self.y


@dataclass(frozen=True)
class Diagnostics:
    psi_value: float
    frsi_value: float
    frsi_prescribed: float


def compute_isotherms(
    min_temperature: float,
    max_temperature: float,
    count: int = NUMBER_OF_ISOTHERMS,
) -> list[float]:
    """Levels evenly spaced strictly between the extrema: min + k (max - min) / (count + 1)."""
    span = max_temperature - min_temperature
    return [min_temperature + k * span / (count + 1) for k in range(1, count + 1)]


def compute_heat_flux(
    mesh: Mesh,
    temperatures: npt.NDArray[np.float64] | None = None,
) -> list[HeatFlux]:
    """
    Fourier heat flux q = -k ∇T of every element, in element order.

    Degenerate elements carry no gradient and are reported with zero flux.
    """
    if temperatures is None:
        temperatures = mesh.temperatures

    fluxes: list[HeatFlux] = []
    for element in mesh.elements:
        cx, cy = element.centroid
        if element.is_degenerate:
            logger.debug(f"Element {element.id} has zero area, flux set to zero.")
            fluxes.append(HeatFlux(cx, cy, 0.0, 0.0, 0.0))
            continue
        qx, qy = element.heat_flux(temperatures)
        fluxes.append(HeatFlux(cx, cy, qx, qy, math.sqrt(qx * qx + qy * qy)))
    return fluxes


def _interior_nodes(mesh: Mesh) -> list[Node]:
    return [node for node in mesh.nodes if node.is_boundary and node.boundary_type == BoundaryType.INTERIOR]


def estimate_total_heat_flow(mesh: Mesh, temperatures: npt.NDArray[np.float64]) -> float:
    """
    Heat flow through the interior boundary.

    Every interior boundary node contributes, for each adjacent element,
    k * (|T_node - T_avg| / sqrt(A)) * sqrt(A), with T_avg the mean of the
    element's nodal temperatures.
    """
    total = 0.0
    for node in _interior_nodes(mesh):
        local_flow = 0.0
        for e in mesh.node_elements[node.uid]:
            element = mesh.elements[e]
            if element.is_degenerate:
                continue
            delta = abs(temperatures[node.uid] - temperatures[element.global_dofs].sum() / 3.0)
            length = math.sqrt(element.area)  # characteristic length
            local_flow += element.material.thermal_conductivity * (delta / length) * length
        total += local_flow
    return total


def _boundary_bands(mesh: Mesh, tolerance: float) -> list[tuple[float, list[Node]]]:
    """Group boundary nodes into horizontal bands; a node joins the first band whose anchor y is close enough."""
    bands: list[tuple[float, list[Node]]] = []
    for node in mesh.nodes:
        if not node.is_boundary:
            continue
        for anchor_y, members in bands:
            if abs(anchor_y - node.y) < tolerance:
                members.append(node)
                break
        else:
            bands.append((node.y, [node]))
    return bands


def estimate_one_dimensional_heat_flow(
    mesh: Mesh,
    min_temperature: float,
    max_temperature: float,
    interior_heat_transfer_coefficient: float = INTERIOR_HEAT_TRANSFER_COEFFICIENT,
    exterior_heat_transfer_coefficient: float = EXTERIOR_HEAT_TRANSFER_COEFFICIENT,
    tolerance: float = BAND_TOLERANCE,
) -> float:
    """
    Heat flow the horizontal wall strips would carry as 1-D layered walls.

    A band only counts if it holds both exterior and interior boundary nodes.
    Its layers are the materials of the elements whose centroid lies between
    the mean exterior and the mean interior x within ±tolerance of the band,
    each layer as thick as its share of those elements. A band that
    collects no elements still counts, with the surface resistances alone.
    """
    if mesh.number_of_elements == 0:
        return 0.0
    centroids = np.array([element.centroid for element in mesh.elements], dtype=np.float64)

    flow = 0.0
    for anchor_y, members in _boundary_bands(mesh, tolerance):
        exterior_x = [node.x for node in members if node.boundary_type == BoundaryType.EXTERIOR]
        interior_x = [node.x for node in members if node.boundary_type == BoundaryType.INTERIOR]
        if not exterior_x or not interior_x:
            continue

        avg_exterior_x = sum(exterior_x) / len(exterior_x)
        avg_interior_x = sum(interior_x) / len(interior_x)
        wall_thickness = abs(avg_interior_x - avg_exterior_x)

        inside = np.flatnonzero(
            (centroids[:, 0] >= min(avg_exterior_x, avg_interior_x))
            & (centroids[:, 0] <= max(avg_exterior_x, avg_interior_x))
            & (centroids[:, 1] >= anchor_y - tolerance)
            & (centroids[:, 1] <= anchor_y + tolerance)
        )
        # Materials are told apart by name, in order of first appearance
        layers: dict[str, tuple[Material, int]] = {}
        for e in inside:
            material = mesh.elements[e].material
            first, count = layers.get(material.name, (material, 0))
            layers[material.name] = (first, count + 1)

        resistance = 0.0
        for material, count in layers.values():
            thickness = wall_thickness * (count / inside.size)
            resistance += thickness / material.thermal_conductivity
        resistance += 1.0 / interior_heat_transfer_coefficient + 1.0 / exterior_heat_transfer_coefficient

        u_value = 1.0 / resistance
        wall_length = len(members) * tolerance
        flow += u_value * wall_length * (max_temperature - min_temperature)
    return flow


def temperature_factor(surface_temperature: float, low: float, high: float) -> float:
    """(Tsi - low) / (high - low), or 1.0 when the range is empty."""
    if high == low:
        return 1.0
    return (surface_temperature - low) / (high - low)


def estimate_diagnostics(
    mesh: Mesh,
    min_temperature: float | None = None,
    max_temperature: float | None = None,
    interior_heat_transfer_coefficient: float = INTERIOR_HEAT_TRANSFER_COEFFICIENT,
    exterior_heat_transfer_coefficient: float = EXTERIOR_HEAT_TRANSFER_COEFFICIENT,
) -> Diagnostics:
    """
    Estimate PSI and fRsi of a solved mesh.

    Args:
        mesh: Mesh carrying the solved nodal temperatures.
        min_temperature: Field minimum; taken from the mesh when omitted.
        max_temperature: Field maximum; taken from the mesh when omitted.
        interior_heat_transfer_coefficient: h_i used for the 1-D surface resistance.
        exterior_heat_transfer_coefficient: h_e used for the 1-D surface resistance.

    Returns:
        PSI in W/(m·K), fRsi against the field extrema, and fRsi against the
        prescribed interior/exterior temperatures (NaN when they are unknown
        or equal).
    """
    temperatures = mesh.temperatures
    if min_temperature is None:
        min_temperature = float(temperatures.min())
    if max_temperature is None:
        max_temperature = float(temperatures.max())

    total_flow = estimate_total_heat_flow(mesh, temperatures)
    one_dimensional_flow = estimate_one_dimensional_heat_flow(
        mesh,
        min_temperature,
        max_temperature,
        interior_heat_transfer_coefficient,
        exterior_heat_transfer_coefficient,
    )
    psi = total_flow - one_dimensional_flow

    min_surface_temperature = max_temperature
    for node in _interior_nodes(mesh):
        min_surface_temperature = min(min_surface_temperature, node.temperature)
    frsi = temperature_factor(min_surface_temperature, min_temperature, max_temperature)

    t_int = mesh.interior_temperature
    t_ext = mesh.exterior_temperature
    if t_int is None or t_ext is None or t_int == t_ext:
        frsi_prescribed = math.nan
    else:
        frsi_prescribed = (min_surface_temperature - t_ext) / (t_int - t_ext)

    logger.debug(f"Total heat flow {total_flow:.6g}, 1-D heat flow {one_dimensional_flow:.6g}.")
    return Diagnostics(psi_value=psi, frsi_value=frsi, frsi_prescribed=frsi_prescribed)
