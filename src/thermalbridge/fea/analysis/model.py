from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

from thermalbridge.fea.analysis.sparse import SparseConductanceMap

if TYPE_CHECKING:
    import numpy.typing as npt

    from thermalbridge.fea.pre.mesh import Mesh


class Model:
    """
    Class represent the entire steady-state conduction model.

    This class owns the mesh of one run together with the global conductance
    map, the load vector and the nodal temperature vector.
    """
    def __init__(self, mesh: Mesh) -> None:
        """Initialize the Model object."""
        self.mesh = mesh

        self.n_dof_per_node: int = 1  # Number of degrees of freedom per node (temperature only)

        self.k_global = SparseConductanceMap(self.number_of_equations)
        self.q_global: npt.NDArray[np.float64] = np.zeros(self.number_of_equations, dtype=np.float64)
        self.t_global: npt.NDArray[np.float64] = mesh.temperatures

    @property
    def number_of_nodes(self) -> int:
        """Return the number of nodes in the model."""
        return self.mesh.number_of_nodes

    @property
    def number_of_elements(self) -> int:
        """Return the number of elements in the model."""
        return self.mesh.number_of_elements

    @property
    def number_of_equations(self) -> int:
        """Return the total number of equations in the model."""
        return self.number_of_nodes * self.n_dof_per_node

    @property
    def fixed_mask(self) -> npt.NDArray[np.bool_]:
        return np.array([node.fixed for node in self.mesh.nodes], dtype=np.bool_)
