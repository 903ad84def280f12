from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
import numba as nb

if TYPE_CHECKING:
    import numpy.typing as npt
    from thermalbridge.fea.analysis.node import Node
    from thermalbridge.model.materials import Material


@nb.jit(cache=True)
def _tri3_coefficients(
    x: npt.NDArray[np.float64],
    y: npt.NDArray[np.float64]
) -> tuple[npt.NDArray[np.float64], npt.NDArray[np.float64], float]:
    """
    Shape-function gradient coefficients and area of a linear triangle.

    Args:
        x: (3, ) array of x-coordinates of the element's nodes.
        y: (3, ) array of y-coordinates of the element's nodes.

    Returns:
        b: (3, ) coefficients of dN/dx scaled by 2A.
        c: (3, ) coefficients of dN/dy scaled by 2A.
        area: Unsigned area (shoelace formula).
    """
    b = np.empty(3, dtype=np.float64)
    c = np.empty(3, dtype=np.float64)
    b[0] = y[1] - y[2]
    b[1] = y[2] - y[0]
    b[2] = y[0] - y[1]
    c[0] = x[2] - x[1]
    c[1] = x[0] - x[2]
    c[2] = x[1] - x[0]
    area = 0.5 * abs((x[1] - x[0]) * (y[2] - y[0]) - (x[2] - x[0]) * (y[1] - y[0]))
    return b, c, area


@nb.jit(cache=True)
def _tri3_conductivity_matrix(
    b: npt.NDArray[np.float64],
    c: npt.NDArray[np.float64],
    area: float,
    conductivity: float
) -> npt.NDArray[np.float64]:
    """[K] = k / (4A) * (b bᵀ + c cᵀ)"""
    factor = conductivity / (4.0 * area)
    k_e = np.empty((3, 3), dtype=np.float64)
    for i in range(3):
        for j in range(3):
            k_e[i, j] = factor * (b[i] * b[j] + c[i] * c[j])
    return k_e


class Tri3:
    """
    Represents a three-node linear triangular finite element (Tri3).

    The element refers to its nodes by index into the mesh node list; node
    orientation may be clockwise or counter-clockwise.
    """
    def __init__(
        self,
        index: int,
        nodes: list[Node],
        material: Material
    ) -> None:
        """
        Initialize the Tri3 element.

        Args:
            index: Element index.
            nodes: List of the three nodes that form the element.
            material: The material associated with the element.
        """
        if len(nodes) != 3:
            raise ValueError(f"Tri3 element {index} needs exactly 3 nodes, got {len(nodes)}.")

        self.id = index
        self.material = material
        self.global_dofs: npt.NDArray[np.int64] = np.array([node.uid for node in nodes], dtype=np.int64)

        self.x = np.array([node.coords[0] for node in nodes], dtype=np.float64)
        self.y = np.array([node.coords[1] for node in nodes], dtype=np.float64)

        self._b, self._c, self._area = _tri3_coefficients(self.x, self.y)

    def __repr__(self) -> str:
        """String representation of the finite element."""
        return f"{self.__class__.__name__}(id={self.id}, nodes={self.global_dofs.tolist()}, material={self.material.name})"

    @property
    def area(self) -> float:
        """Unsigned area of the element in mm²."""
        return float(self._area)

    @property
    def is_degenerate(self) -> bool:
        return self._area <= 0.0

    @property
    def centroid(self) -> tuple[float, float]:
        return float(self.x.sum() / 3.0), float(self.y.sum() / 3.0)

    def get_conductivity_matrix(self) -> npt.NDArray[np.float64]:
        """
        Calculate the element conductivity matrix [K].

        Returns:
            (3, 3) conductivity matrix for Tri3.

        Raises:
            ZeroDivisionError: For a degenerate (zero-area) element.
        """
        if self.is_degenerate:
            raise ZeroDivisionError(f"Element {self.id} has zero area.")
        return _tri3_conductivity_matrix(self._b, self._c, self._area, self.material.thermal_conductivity)

    def temperature_gradient(self, temperatures: npt.NDArray[np.float64]) -> tuple[float, float]:
        """
        Constant temperature gradient of the element.

        Args:
            temperatures: Global nodal temperature vector.

        Returns:
            (dT/dx, dT/dy) in K/mm.
        """
        t_e = temperatures[self.global_dofs]
        two_area = 2.0 * self._area
        grad_x = (self._b[0] * t_e[0] + self._b[1] * t_e[1] + self._b[2] * t_e[2]) / two_area
        grad_y = (self._c[0] * t_e[0] + self._c[1] * t_e[1] + self._c[2] * t_e[2]) / two_area
        return float(grad_x), float(grad_y)

    def heat_flux(self, temperatures: npt.NDArray[np.float64]) -> tuple[float, float]:
        """Fourier flux q = -k ∇T."""
        grad_x, grad_y = self.temperature_gradient(temperatures)
        k = self.material.thermal_conductivity
        return -k * grad_x, -k * grad_y

    def barycentric_coordinates(self, x: float, y: float) -> npt.NDArray[np.float64]:
        """Linear shape function values [N1, N2, N3] at a point of the plane."""
        # Signed double area keeps the result independent of node orientation
        two_area = (self.x[1] - self.x[0]) * (self.y[2] - self.y[0]) - (self.x[2] - self.x[0]) * (self.y[1] - self.y[0])
        n = np.empty(3, dtype=np.float64)
        for i in range(3):
            j, k = (i + 1) % 3, (i + 2) % 3
            n[i] = ((self.x[j] - x) * (self.y[k] - y) - (self.x[k] - x) * (self.y[j] - y)) / two_area
        return n

    def interpolate(self, x: float, y: float, temperatures: npt.NDArray[np.float64]) -> float:
        """Linear interpolation of the nodal temperatures at (x, y)."""
        return float(self.barycentric_coordinates(x, y) @ temperatures[self.global_dofs])
