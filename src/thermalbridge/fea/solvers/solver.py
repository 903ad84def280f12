from __future__ import annotations

from dataclasses import dataclass
import logging
import math
from typing import TYPE_CHECKING

import numba as nb
import numpy as np
import scipy as sp

from thermalbridge.config import (
    EXTERIOR_HEAT_TRANSFER_COEFFICIENT,
    EXTERIOR_REFERENCE_TEMPERATURE,
    INTERIOR_HEAT_TRANSFER_COEFFICIENT,
    INTERIOR_REFERENCE_TEMPERATURE,
    SolverMethod,
)
from thermalbridge.exceptions import (
    InvalidConfiguration,
    InvalidGeometry,
    NotConverged,
    SolverDivergence,
)
from thermalbridge.fea.analysis.model import Model
from thermalbridge.fea.analysis.node import BoundaryType
from thermalbridge.fea.post.diagnostics import (
    HeatFlux,
    compute_heat_flux,
    compute_isotherms,
    estimate_diagnostics,
)
from thermalbridge.utils import timer

if TYPE_CHECKING:
    import numpy.typing as npt

    from thermalbridge.fea.analysis.finite_elements.tri3 import Tri3
    from thermalbridge.fea.analysis.node import Node
    from thermalbridge.fea.pre.mesh import Mesh

logger = logging.getLogger(__name__)


@nb.njit(cache=True, nogil=True)
def _gauss_seidel(
    indptr: npt.NDArray[np.int32],
    indices: npt.NDArray[np.int32],
    data: npt.NDArray[np.float64],
    diagonal: npt.NDArray[np.float64],
    load: npt.NDArray[np.float64],
    temperatures: npt.NDArray[np.float64],
    active: npt.NDArray[np.int64],
    max_iterations: int,
    tolerance: float
) -> tuple[int, float]:
    """
    In-place Gauss-Seidel sweeps over the active nodes in ascending order.

    Returns:
        Number of sweeps performed and the largest temperature change of the last sweep.
    """
    iterations = 0
    max_change = tolerance + 1.0
    while iterations < max_iterations and max_change > tolerance:
        max_change = 0.0
        for a in range(active.size):
            i = active[a]
            total = load[i]
            for p in range(indptr[i], indptr[i + 1]):
                j = indices[p]
                if j != i:
                    total -= data[p] * temperatures[j]
            updated = total / diagonal[i]
            change = abs(updated - temperatures[i])
            if change > max_change:
                max_change = change
            temperatures[i] = updated
        iterations += 1
    return iterations, max_change


@dataclass(frozen=True, eq=False)
class SimulationResult:
    """Snapshot of a solved run: temperature field and diagnostics."""
    nodes: list[Node]
    elements: list[Tri3]
    temperatures: npt.NDArray[np.float64]
    min_temperature: float
    max_temperature: float
    isotherms: list[float]
    psi_value: float
    frsi_value: float
    frsi_prescribed: float
    flux_values: list[HeatFlux]
    converged: bool
    iterations: int
    max_change: float
    tolerance: float

    def raise_for_convergence(self) -> None:
        """
        Raises:
            NotConverged: If the iteration cap was reached first.
        """
        if not self.converged:
            raise NotConverged(self.iterations, self.max_change, self.tolerance)


class Solver:
    """
    Class for the steady-state conduction solver.
    """

    def __init__(
        self,
        model: Model,
        interior_reference_temperature: float = INTERIOR_REFERENCE_TEMPERATURE,
        exterior_reference_temperature: float = EXTERIOR_REFERENCE_TEMPERATURE,
        interior_heat_transfer_coefficient: float = INTERIOR_HEAT_TRANSFER_COEFFICIENT,
        exterior_heat_transfer_coefficient: float = EXTERIOR_HEAT_TRANSFER_COEFFICIENT,
    ) -> None:
        """
        Initialize the solver with a model.

        Args:
            model: The model to be solved.
            interior_reference_temperature: Ambient temperature of interior Robin nodes in °C.
            exterior_reference_temperature: Ambient temperature of exterior Robin nodes in °C.
            interior_heat_transfer_coefficient: h of interior Robin nodes in W/(m²·K).
            exterior_heat_transfer_coefficient: h of exterior Robin nodes in W/(m²·K).
        """
        self.model = model
        self.neq = self.model.number_of_equations

        self._robin = {
            BoundaryType.INTERIOR: (interior_heat_transfer_coefficient, interior_reference_temperature),
            BoundaryType.EXTERIOR: (exterior_heat_transfer_coefficient, exterior_reference_temperature),
        }

    def assemble_global_conductivity_matrix(self) -> None:
        """
        Assemble the global conductivity map [K] in element order.

        Zero-area elements are skipped.
        """
        K = self.model.k_global
        skipped = 0
        for element in self.model.mesh.elements:
            if element.is_degenerate:
                skipped += 1
                logger.debug(f"Skipping zero-area element {element.id}.")
                continue
            Ke = element.get_conductivity_matrix()
            dofs = element.global_dofs
            for a in range(3):
                for b in range(3):
                    K.add(int(dofs[a]), int(dofs[b]), float(Ke[a, b]))
        if skipped:
            logger.warning(f"{skipped} zero-area elements contribute nothing to the conductance matrix.")

    def apply_boundary_conditions(self) -> None:
        """
        Apply Dirichlet, then Robin conditions. Adiabatic nodes are left untouched.

        Dirichlet rows and columns are eliminated from [K]; the eliminated
        column entries times the prescribed temperature move to the load of
        the free rows before deletion.
        """
        K = self.model.k_global
        q = self.model.q_global
        nodes = self.model.mesh.nodes
        fixed = self.model.fixed_mask

        for node in nodes:
            i = node.uid
            if node.fixed:
                for j, k_ji in list(K.column(i)):
                    if not fixed[j]:
                        q[j] -= k_ji * node.temperature
                K.delete_row(i)
                K.delete_column(i)
                K.add(i, i, 1.0)
                q[i] = node.temperature
            elif node.is_boundary and node.boundary_type in self._robin:
                h, reference = self._robin[node.boundary_type]
                K.add(i, i, h)
                q[i] += h * reference

    def _active_nodes(self) -> npt.NDArray[np.int64]:
        """Free nodes referenced by at least one element, in ascending order."""
        fixed = self.model.fixed_mask
        node_elements = self.model.mesh.node_elements
        return np.array(
            [i for i in range(self.neq) if not fixed[i] and node_elements[i]],
            dtype=np.int64,
        )

    @staticmethod
    def _check_diagonal(diagonal: npt.NDArray[np.float64], active: npt.NDArray[np.int64]) -> None:
        zero = active[diagonal[active] == 0.0]
        if zero.size:
            node_ids = zero.tolist()
            logger.error(f"Zero or missing diagonal conductance at nodes {node_ids[:10]}.")
            raise SolverDivergence(
                f"Zero or missing diagonal conductance at {len(node_ids)} free nodes (first: {node_ids[0]}).",
                node_ids=node_ids,
            )

    def _interpolate_detached_nodes(self, temperatures: npt.NDArray[np.float64]) -> None:
        mesh = self.model.mesh
        for i in mesh.detached_nodes:
            node = mesh.nodes[i]
            element = mesh.locate_element(node.x, node.y)
            if element is None:
                logger.warning(f"Node {i} lies outside every element and keeps T={temperatures[i]}.")
                continue
            temperatures[i] = element.interpolate(node.x, node.y, temperatures)

    @timer
    def solve(
        self,
        max_iterations: int = 1000,
        tolerance: float = 1e-6,
        method: SolverMethod = SolverMethod.GAUSS_SEIDEL,
    ) -> tuple[bool, int, float]:
        """
        Assemble and solve the conduction system.

        Args:
            max_iterations: Cap on the number of Gauss-Seidel sweeps.
            tolerance: Sweep stops once the largest temperature change is at most this value.
            method: Gauss-Seidel sweeps or a sparse direct solve.

        Returns:
            (converged, iterations, max_change) of the solve.

        Raises:
            SolverDivergence: If a free node has a zero or missing diagonal entry.
        """
        self.assemble_global_conductivity_matrix()
        self.apply_boundary_conditions()

        K = self.model.k_global.to_csr()
        q = self.model.q_global
        T = self.model.t_global.copy()

        active = self._active_nodes()
        self._check_diagonal(K.diagonal(), active)
        logger.info(f"Solving {self.neq} equations ({active.size} free) with {SolverMethod(method).value}.")

        if method == SolverMethod.DIRECT:
            if active.size:
                K_aa = K[active][:, active].tocsc()
                T[active] = sp.sparse.linalg.spsolve(K_aa, q[active])
            converged, iterations, max_change = True, 0, 0.0
        else:
            iterations, max_change = _gauss_seidel(
                K.indptr,
                K.indices,
                K.data,
                K.diagonal(),
                q,
                T,
                active,
                max_iterations,
                tolerance,
            )
            converged = max_change <= tolerance
            if converged:
                logger.info(f"Gauss-Seidel converged after {iterations} iterations (max change {max_change:.3e}).")
            else:
                logger.warning(
                    f"Gauss-Seidel stopped after {iterations} iterations without converging "
                    f"(max change {max_change:.3e} > tolerance {tolerance:.3e})."
                )

        self._interpolate_detached_nodes(T)

        self.model.t_global = T
        self.model.mesh.set_temperatures(T)
        return converged, int(iterations), float(max_change)


@timer
def solve_heat_transfer(
    mesh: Mesh,
    max_iterations: int = 1000,
    tolerance: float = 1e-6,
    interior_reference_temperature: float = INTERIOR_REFERENCE_TEMPERATURE,
    exterior_reference_temperature: float = EXTERIOR_REFERENCE_TEMPERATURE,
    interior_heat_transfer_coefficient: float = INTERIOR_HEAT_TRANSFER_COEFFICIENT,
    exterior_heat_transfer_coefficient: float = EXTERIOR_HEAT_TRANSFER_COEFFICIENT,
    method: SolverMethod = SolverMethod.GAUSS_SEIDEL,
) -> SimulationResult:
    """
    Solve the steady-state temperature field of a mesh and derive its diagnostics.

    The nodal temperatures of ``mesh`` are overwritten with the solution.
    Running out of iterations is not an error: the best-effort field is
    returned with ``converged=False``.

    Raises:
        InvalidGeometry: If the mesh has no nodes or no elements.
        InvalidConfiguration: If max_iterations or tolerance is not positive.
        SolverDivergence: If a free node has a zero or missing diagonal entry.
    """
    if mesh.number_of_nodes == 0 or mesh.number_of_elements == 0:
        raise InvalidGeometry("Cannot solve a mesh without nodes or elements.")
    if isinstance(max_iterations, bool) or not isinstance(max_iterations, int) or max_iterations <= 0:
        raise InvalidConfiguration(f"Max iterations must be a positive integer, got {max_iterations!r}.")
    if not (math.isfinite(tolerance) and tolerance > 0.0):
        raise InvalidConfiguration(f"Tolerance must be a positive number, got {tolerance!r}.")
    try:
        method = SolverMethod(method)
    except ValueError:
        raise InvalidConfiguration(f"Unknown solver method: {method!r}.") from None

    model = Model(mesh)
    solver = Solver(
        model,
        interior_reference_temperature=interior_reference_temperature,
        exterior_reference_temperature=exterior_reference_temperature,
        interior_heat_transfer_coefficient=interior_heat_transfer_coefficient,
        exterior_heat_transfer_coefficient=exterior_heat_transfer_coefficient,
    )
    converged, iterations, max_change = solver.solve(max_iterations, tolerance, method)

    temperatures = model.t_global.copy()
    temperatures.setflags(write=False)
    min_temperature = float(temperatures.min())
    max_temperature = float(temperatures.max())

    diagnostics = estimate_diagnostics(
        mesh,
        min_temperature,
        max_temperature,
        interior_heat_transfer_coefficient,
        exterior_heat_transfer_coefficient,
    )

    return SimulationResult(
        nodes=mesh.nodes,
        elements=mesh.elements,
        temperatures=temperatures,
        min_temperature=min_temperature,
        max_temperature=max_temperature,
        isotherms=compute_isotherms(min_temperature, max_temperature),
        psi_value=diagnostics.psi_value,
        frsi_value=diagnostics.frsi_value,
        frsi_prescribed=diagnostics.frsi_prescribed,
        flux_values=compute_heat_flux(mesh, temperatures),
        converged=converged,
        iterations=iterations,
        max_change=max_change,
        tolerance=tolerance,
    )
