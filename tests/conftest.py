"""Shared fixtures for the thermal bridge engine tests."""

import logging

import pytest

from thermalbridge.fea.analysis.finite_elements.tri3 import Tri3
from thermalbridge.fea.analysis.node import BoundaryType, Node
from thermalbridge.fea.pre.mesh import Mesh
from thermalbridge.model.geometry import Point, Region
from thermalbridge.model.materials import CONCRETE, INSULATION, Material


UNIT_MATERIAL = Material(name="Unit", thermal_conductivity=1.0, thickness=100.0)


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop handlers installed by the CLI so they never outlive the captured streams."""
    yield
    logger = logging.getLogger("thermalbridge")
    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)


def _build_grid_mesh(
    nx=3,
    ny=2,
    material=UNIT_MATERIAL,
    exterior_temperature=0.0,
    interior_temperature=20.0,
    interior_fixed=True,
):
    """
    Unit-spaced grid with the same node and element layout as generated meshes.

    Left column: exterior, fixed. Right column: interior, fixed or Robin.
    Remaining top/bottom nodes: adiabatic.
    """
    nodes = []
    for j in range(ny):
        for i in range(nx):
            left, right = i == 0, i == nx - 1
            edge = j == 0 or j == ny - 1
            if left:
                node = Node(len(nodes), [i, j], exterior_temperature, True, True, BoundaryType.EXTERIOR)
            elif right:
                temperature = interior_temperature if interior_fixed else 0.0
                node = Node(len(nodes), [i, j], temperature, interior_fixed, True, BoundaryType.INTERIOR)
            elif edge:
                node = Node(len(nodes), [i, j], 0.0, False, True, BoundaryType.ADIABATIC)
            else:
                node = Node(len(nodes), [i, j])
            nodes.append(node)

    elements = []
    for j in range(ny - 1):
        for i in range(nx - 1):
            bl, br = j * nx + i, j * nx + i + 1
            tl, tr = (j + 1) * nx + i, (j + 1) * nx + i + 1
            elements.append(Tri3(len(elements), [nodes[bl], nodes[br], nodes[tr]], material))
            elements.append(Tri3(len(elements), [nodes[bl], nodes[tr], nodes[tl]], material))

    return Mesh(
        nodes,
        elements,
        interior_temperature=interior_temperature,
        exterior_temperature=exterior_temperature,
    )


@pytest.fixture
def grid_mesh_factory():
    """Factory for small hand-built grid meshes."""
    return _build_grid_mesh


@pytest.fixture
def grid_mesh():
    """3 x 2 unit grid, exterior fixed at 0 °C, interior fixed at 20 °C."""
    return _build_grid_mesh()


@pytest.fixture
def single_region():
    return [Region("wall", Point(0.0, 0.0), Point(100.0, 50.0), CONCRETE)]


@pytest.fixture
def junction_regions():
    """Concrete wall and insulation sharing the corner (100, 50)."""
    return [
        Region("wall", Point(0.0, 0.0), Point(100.0, 50.0), CONCRETE),
        Region("insulation", Point(100.0, 50.0), Point(160.0, 0.0), INSULATION),
    ]
