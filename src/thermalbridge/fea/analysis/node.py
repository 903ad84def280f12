from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    import numpy.typing as npt


class BoundaryType(StrEnum):
    INTERIOR = "interior"
    EXTERIOR = "exterior"
    ADIABATIC = "adiabatic"


class Node:
    """
    Represents a node in a thermal bridge simulation.
    """
    def __init__(
        self,
        index: int,
        coords: list[float] | npt.NDArray[np.float64],
        temperature: float = 0.0,
        fixed: bool = False,
        is_boundary: bool = False,
        boundary_type: BoundaryType | None = None,
    ) -> None:
        """
        Initialize the node with coordinates.

        Args:
            index: Position of the node in the mesh node list.
            coords: Coordinates of the node in the global system [X, Y] in mm.
            temperature: Initial (or prescribed, if fixed) temperature in °C.
            fixed: True if the temperature is prescribed (Dirichlet condition).
            is_boundary: True if the node lies on the edge of the domain.
            boundary_type: Kind of boundary condition of a boundary node.
        """
        if fixed and not is_boundary:
            raise ValueError(f"Node {index} is fixed but does not lie on the boundary.")
        if is_boundary != (boundary_type is not None):
            raise ValueError(f"Node {index}: boundary type must be set exactly for boundary nodes.")

        self.coords = np.array(coords, dtype=np.float64)
        self.uid = index
        self.temperature = float(temperature)
        self.fixed = fixed
        self.is_boundary = is_boundary
        self.boundary_type = boundary_type

    def __repr__(self) -> str:
        """String representation of the node."""
        return (
            f"{self.__class__.__name__}(id={self.uid}, coords={self.coords}, "
            f"boundary_type={self.boundary_type}, fixed={self.fixed})"
        )

    @property
    def x(self) -> float:
        """X-coordinate of the node."""
        return float(self.coords[0])

    @property
    def y(self) -> float:
        """Y-coordinate of the node."""
        return float(self.coords[1])
