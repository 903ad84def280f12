"""
Mesh Generation
===============
This module translates the drawn regions into a Finite Element Mesh.

Why is this file needed?
------------------------
1. Discretisation: It lays a structured grid over the bounding box of the
   drawing (plus a margin for the boundary conditions) and splits every cell
   into two Tri3 elements.
2. Boundary conditions: It classifies the edge nodes (exterior on the left,
   interior on the right, adiabatic top and bottom).
3. Materials: It resolves the material of every cell from the regions.
"""
from __future__ import annotations

from functools import cached_property
import logging
import math
from typing import TYPE_CHECKING

import numpy as np

from thermalbridge.config import (
    BOUNDARY_TOLERANCE,
    DOMAIN_MARGIN_FACTOR,
    JUNCTION_TOLERANCE,
    REFINEMENT_RADIUS_FACTOR,
)
from thermalbridge.exceptions import InvalidConfiguration, InvalidGeometry
from thermalbridge.fea.analysis.finite_elements.tri3 import Tri3
from thermalbridge.fea.analysis.node import BoundaryType, Node
from thermalbridge.model.geometry import (
    Bounds,
    Point,
    Region,
    bounding_box,
    find_junctions,
    find_material_at_point,
)
from thermalbridge.model.materials import AIR
from thermalbridge.utils import timer

if TYPE_CHECKING:
    import numpy.typing as npt

logger = logging.getLogger(__name__)


class Mesh:
    """
    Nodes and Tri3 elements of one simulation run.

    Elements reference nodes by index, so the node list must not be reordered
    once elements exist. Only node temperatures change after generation.
    """
    def __init__(
        self,
        nodes: list[Node],
        elements: list[Tri3],
        domain: Bounds | None = None,
        nx: int = 0,
        ny: int = 0,
        junctions: list[Point] | None = None,
        interior_temperature: float | None = None,
        exterior_temperature: float | None = None,
    ) -> None:
        """
        Initialize the Mesh class.

        Args:
            nodes: Nodes, node ``i`` must carry uid ``i``.
            elements: Tri3 elements referencing the nodes by index.
            domain: Extent of the meshed domain.
            nx: Number of structured grid nodes along x (0 for a hand-built mesh).
            ny: Number of structured grid nodes along y (0 for a hand-built mesh).
            junctions: Junction points used for refinement.
            interior_temperature: Temperature prescribed on the interior edge.
            exterior_temperature: Temperature prescribed on the exterior edge.

        Raises:
            InvalidGeometry: If node ids do not match their positions or an
                element references a node outside of the node list.
        """
        for i, node in enumerate(nodes):
            if node.uid != i:
                raise InvalidGeometry(f"Node at position {i} carries id {node.uid}.")
        n = len(nodes)
        for element in elements:
            if element.global_dofs.min() < 0 or element.global_dofs.max() >= n:
                raise InvalidGeometry(f"Element {element.id} references a node outside [0, {n}).")

        self.nodes = nodes
        self.elements = elements
        self.domain = domain
        self.nx = nx
        self.ny = ny
        self.junctions = junctions or []
        self.interior_temperature = interior_temperature
        self.exterior_temperature = exterior_temperature

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(nodes={self.number_of_nodes}, elements={self.number_of_elements})"

    @property
    def number_of_nodes(self) -> int:
        return len(self.nodes)

    @property
    def number_of_elements(self) -> int:
        return len(self.elements)

    @property
    def grid_node_count(self) -> int:
        """Number of structured grid nodes (the first nodes of the list)."""
        return self.nx * self.ny

    @property
    def temperatures(self) -> npt.NDArray[np.float64]:
        return np.array([node.temperature for node in self.nodes], dtype=np.float64)

    def set_temperatures(self, temperatures: npt.NDArray[np.float64]) -> None:
        for node, t in zip(self.nodes, temperatures):
            node.temperature = float(t)

    @cached_property
    def node_elements(self) -> list[list[int]]:
        """Indices of the elements adjacent to every node, in element order."""
        adjacency: list[list[int]] = [[] for _ in self.nodes]
        for e, element in enumerate(self.elements):
            for dof in element.global_dofs:
                adjacency[dof].append(e)
        return adjacency

    @cached_property
    def detached_nodes(self) -> list[int]:
        """Nodes not referenced by any element."""
        return [i for i, adjacent in enumerate(self.node_elements) if not adjacent]

    def locate_element(self, x: float, y: float) -> Tri3 | None:
        """
        Element containing the point (x, y).

        Uses the grid layout for generated meshes and falls back to a linear
        search for hand-built meshes.
        """
        if self.domain is not None and self.nx > 1 and self.ny > 1:
            if not self.domain.contains(x, y):
                return None
            dx = self.domain.width / (self.nx - 1)
            dy = self.domain.height / (self.ny - 1)
            i = min(int((x - self.domain.min_x) / dx), self.nx - 2)
            j = min(int((y - self.domain.min_y) / dy), self.ny - 2)
            cell = j * (self.nx - 1) + i
            # Lower triangle (bl, br, tr) lies below the bl-tr diagonal
            local_x = (x - self.domain.min_x - i * dx) / dx
            local_y = (y - self.domain.min_y - j * dy) / dy
            return self.elements[2 * cell if local_y <= local_x else 2 * cell + 1]

        for element in self.elements:
            if not element.is_degenerate and np.all(element.barycentric_coordinates(x, y) >= -1e-12):
                return element
        return None


def _grid_nodes(
    domain: Bounds,
    nx: int,
    ny: int,
    interior_temperature: float,
    exterior_temperature: float,
) -> list[Node]:
    """Structured grid nodes, row by row from the bottom, with edge classification."""
    nodes: list[Node] = []
    node_id = 0
    for j in range(ny):
        for i in range(nx):
            x = domain.min_x + i * (domain.width / (nx - 1))
            y = domain.min_y + j * (domain.height / (ny - 1))

            is_left = abs(x - domain.min_x) < BOUNDARY_TOLERANCE
            is_right = abs(x - domain.max_x) < BOUNDARY_TOLERANCE
            is_bottom = abs(y - domain.min_y) < BOUNDARY_TOLERANCE
            is_top = abs(y - domain.max_y) < BOUNDARY_TOLERANCE
            is_boundary = is_left or is_right or is_bottom or is_top

            # By convention the exterior is on the left, the interior on the right
            boundary_type: BoundaryType | None = None
            fixed = False
            temperature = 0.0
            if is_left:
                boundary_type = BoundaryType.EXTERIOR
                fixed = True
                temperature = exterior_temperature
            elif is_right:
                boundary_type = BoundaryType.INTERIOR
                fixed = True
                temperature = interior_temperature
            elif is_top or is_bottom:
                boundary_type = BoundaryType.ADIABATIC

            nodes.append(Node(
                index=node_id,
                coords=[x, y],
                temperature=temperature,
                fixed=fixed,
                is_boundary=is_boundary,
                boundary_type=boundary_type,
            ))
            node_id += 1
    return nodes


def _refine_around_junctions(
    nodes: list[Node],
    junctions: list[Point],
    domain: Bounds,
    mesh_size: float,
    adaptive_factor: float,
) -> int:
    """
    Append free nodes on a finer lattice around every junction.

    Candidates outside the domain, or closer than half the refined spacing
    to any existing node, are skipped.

    Returns:
        Number of nodes appended.
    """
    radius = mesh_size * REFINEMENT_RADIUS_FACTOR
    spacing = mesh_size * adaptive_factor
    steps = math.ceil(2 * radius / spacing)

    capacity = len(nodes) + len(junctions) * (steps + 1) ** 2
    xs = np.empty(capacity, dtype=np.float64)
    ys = np.empty(capacity, dtype=np.float64)
    count = len(nodes)
    xs[:count] = [node.x for node in nodes]
    ys[:count] = [node.y for node in nodes]

    added = 0
    for junction in junctions:
        for j in range(steps + 1):
            for i in range(steps + 1):
                x = junction.x - radius + i * spacing
                y = junction.y - radius + j * spacing
                if not domain.contains(x, y):
                    continue

                dx = xs[:count] - x
                dy = ys[:count] - y
                if np.any(np.sqrt(dx * dx + dy * dy) < spacing / 2):
                    continue

                nodes.append(Node(index=count, coords=[x, y]))
                xs[count] = x
                ys[count] = y
                count += 1
                added += 1
    return added


def _triangulate(
    nodes: list[Node],
    regions: list[Region],
    nx: int,
    ny: int,
) -> list[Tri3]:
    """Split every grid cell into two triangles sharing the bottom-left/top-right diagonal."""
    elements: list[Tri3] = []
    element_id = 0
    for j in range(ny - 1):
        for i in range(nx - 1):
            bottom_left = j * nx + i
            bottom_right = j * nx + i + 1
            top_left = (j + 1) * nx + i
            top_right = (j + 1) * nx + i + 1

            center_x = (nodes[bottom_left].x + nodes[top_right].x) / 2
            center_y = (nodes[bottom_left].y + nodes[top_right].y) / 2
            material = find_material_at_point(regions, center_x, center_y) or AIR

            elements.append(Tri3(
                index=element_id,
                nodes=[nodes[bottom_left], nodes[bottom_right], nodes[top_right]],
                material=material,
            ))
            element_id += 1
            elements.append(Tri3(
                index=element_id,
                nodes=[nodes[bottom_left], nodes[top_right], nodes[top_left]],
                material=material,
            ))
            element_id += 1
    return elements


@timer
def generate_mesh(
    regions: list[Region],
    mesh_size: float = 3.0,
    adaptive_factor: float = 0.3,
    interior_temperature: float = 20.0,
    exterior_temperature: float = 0.0,
) -> Mesh:
    """
    Generate a structured Tri3 mesh from material-tagged regions.

    Args:
        regions: Drawn regions; where regions overlap the first one listed wins.
        mesh_size: Target grid spacing in mm.
        adaptive_factor: Refined spacing around junctions as a fraction of ``mesh_size``.
        interior_temperature: Temperature prescribed on the interior (right) edge in °C.
        exterior_temperature: Temperature prescribed on the exterior (left) edge in °C.

    Returns:
        The generated mesh. Nodes ``[0, nx*ny)`` form the grid; refinement
        nodes follow and are not referenced by any element.

    Raises:
        InvalidGeometry: If no regions are supplied or the mesh is degenerate.
        InvalidConfiguration: If the mesh size or adaptive factor is out of range.
    """
    if not regions:
        raise InvalidGeometry("No regions supplied.")
    if not (math.isfinite(mesh_size) and mesh_size > 0.0):
        raise InvalidConfiguration(f"Mesh size must be a positive number, got {mesh_size!r}.")
    if not (0.0 < adaptive_factor <= 1.0):
        raise InvalidConfiguration(f"Adaptive factor must lie in (0, 1], got {adaptive_factor!r}.")

    logger.info(f"Generating mesh for {len(regions)} regions (mesh size {mesh_size} mm).")

    # Leave room for the boundary conditions around the drawing
    domain = bounding_box(regions).expanded(mesh_size * DOMAIN_MARGIN_FACTOR)
    nx = math.ceil(domain.width / mesh_size) + 1
    ny = math.ceil(domain.height / mesh_size) + 1
    logger.debug(f"Domain {domain}, grid {nx} x {ny}.")

    nodes = _grid_nodes(domain, nx, ny, interior_temperature, exterior_temperature)

    junctions = find_junctions(regions, JUNCTION_TOLERANCE)
    added = _refine_around_junctions(nodes, junctions, domain, mesh_size, adaptive_factor)
    if junctions:
        logger.debug(f"Found {len(junctions)} junctions, inserted {added} refinement nodes.")

    elements = _triangulate(nodes, regions, nx, ny)
    if not nodes or not elements:
        raise InvalidGeometry("Mesh generation produced no nodes or no elements.")

    mesh = Mesh(
        nodes=nodes,
        elements=elements,
        domain=domain,
        nx=nx,
        ny=ny,
        junctions=junctions,
        interior_temperature=interior_temperature,
        exterior_temperature=exterior_temperature,
    )
    logger.info(f"Mesh generated: {mesh.number_of_nodes} nodes, {mesh.number_of_elements} elements.")
    return mesh
