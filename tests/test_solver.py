"""
Tests for assembly, boundary conditions and the iterative solve.
"""

import numpy as np
import pytest

from thermalbridge.config import SolverMethod
from thermalbridge.exceptions import (
    InvalidConfiguration,
    InvalidGeometry,
    NotConverged,
    SolverDivergence,
)
from thermalbridge.fea.analysis.model import Model
from thermalbridge.fea.pre.mesh import Mesh, generate_mesh
from thermalbridge.fea.solvers.solver import Solver, solve_heat_transfer
from thermalbridge.model.geometry import Point, Region
from thermalbridge.model.materials import Material

H_INTERIOR = 7.7


class TestAssembly:

    def test_global_matrix_is_symmetric_and_singular(self, grid_mesh):
        model = Model(grid_mesh)
        Solver(model).assemble_global_conductivity_matrix()

        K = model.k_global.to_csr().toarray()
        np.testing.assert_allclose(K, K.T)
        np.testing.assert_allclose(K.sum(axis=1), 0.0, atol=1e-12)

    def test_dirichlet_rows_become_identity(self, grid_mesh):
        model = Model(grid_mesh)
        solver = Solver(model)
        solver.assemble_global_conductivity_matrix()
        solver.apply_boundary_conditions()

        K = model.k_global.to_csr().toarray()
        for i in (0, 2, 3, 5):
            expected = np.zeros(6)
            expected[i] = 1.0
            np.testing.assert_array_equal(K[i], expected)
            np.testing.assert_array_equal(K[:, i], expected)
        assert model.q_global[2] == 20.0
        assert model.q_global[0] == 0.0

    def test_prescribed_temperatures_move_to_free_loads(self, grid_mesh):
        model = Model(grid_mesh)
        solver = Solver(model)
        solver.assemble_global_conductivity_matrix()
        solver.apply_boundary_conditions()

        # Each middle node couples to its interior neighbour with K = -0.5
        assert model.q_global[1] == pytest.approx(10.0)
        assert model.q_global[4] == pytest.approx(10.0)

    def test_robin_terms(self, grid_mesh_factory):
        mesh = grid_mesh_factory(exterior_temperature=5.0, interior_fixed=False)
        model = Model(mesh)
        solver = Solver(model)
        solver.assemble_global_conductivity_matrix()
        before = model.k_global[2, 2]
        solver.apply_boundary_conditions()

        assert model.k_global[2, 2] == pytest.approx(before + H_INTERIOR)
        assert model.q_global[2] == pytest.approx(H_INTERIOR * 20.0)

    def test_adiabatic_nodes_untouched(self, grid_mesh):
        model = Model(grid_mesh)
        solver = Solver(model)
        solver.assemble_global_conductivity_matrix()
        diagonal = model.k_global[1, 1]
        solver.apply_boundary_conditions()

        assert model.k_global[1, 1] == diagonal


class TestGaussSeidel:

    def test_dirichlet_field(self, grid_mesh):
        result = solve_heat_transfer(grid_mesh, max_iterations=500, tolerance=1e-12)

        assert result.converged
        np.testing.assert_allclose(result.temperatures, [0.0, 10.0, 20.0, 0.0, 10.0, 20.0], atol=1e-9)
        assert result.min_temperature == 0.0
        assert result.max_temperature == 20.0

    def test_robin_interior_edge(self, grid_mesh_factory):
        mesh = grid_mesh_factory(exterior_temperature=5.0, interior_fixed=False)

        result = solve_heat_transfer(mesh, max_iterations=10000, tolerance=1e-13)

        # 1-D solution: T = 5 + g x with 0.5 g + h (5 + 2 g) = 20 h
        gradient = 15.0 * H_INTERIOR / (0.5 + 2.0 * H_INTERIOR)
        assert result.converged
        assert result.temperatures[2] == pytest.approx(5.0 + 2.0 * gradient, abs=1e-8)
        assert result.temperatures[2] == pytest.approx(155.25 / 7.95, abs=1e-8)
        assert result.temperatures[1] == pytest.approx(5.0 + gradient, abs=1e-8)
        assert result.temperatures[4] == pytest.approx(result.temperatures[1], abs=1e-8)

    def test_robin_reference_temperature_is_configurable(self, grid_mesh_factory):
        mesh = grid_mesh_factory(exterior_temperature=0.0, interior_fixed=False)

        result = solve_heat_transfer(
            mesh,
            max_iterations=10000,
            tolerance=1e-13,
            interior_reference_temperature=10.0,
            interior_heat_transfer_coefficient=1.0,
        )

        # 0.5 g + 1 * 2 g = 10
        assert result.temperatures[2] == pytest.approx(2.0 * 10.0 / 2.5, abs=1e-8)

    def test_fixed_nodes_keep_prescribed_values(self, single_region):
        mesh = generate_mesh(single_region, mesh_size=20.0, interior_temperature=20.0, exterior_temperature=-10.0)

        result = solve_heat_transfer(mesh, max_iterations=50)

        for node in mesh.nodes:
            if node.fixed:
                expected = 20.0 if node.boundary_type == "interior" else -10.0
                assert result.temperatures[node.uid] == expected

    def test_maximum_principle(self, single_region):
        mesh = generate_mesh(single_region, mesh_size=20.0)

        result = solve_heat_transfer(mesh, max_iterations=100000, tolerance=1e-9)

        assert result.converged
        assert result.temperatures.min() >= -1e-6
        assert result.temperatures.max() <= 20.0 + 1e-6

    def test_matches_direct_solve(self, junction_regions):
        gs = solve_heat_transfer(generate_mesh(junction_regions, mesh_size=20.0), max_iterations=100000, tolerance=1e-10)
        direct = solve_heat_transfer(generate_mesh(junction_regions, mesh_size=20.0), method=SolverMethod.DIRECT)

        assert gs.converged
        assert direct.converged
        assert direct.iterations == 0
        np.testing.assert_allclose(gs.temperatures, direct.temperatures, atol=1e-4)

    def test_deterministic(self, junction_regions):
        first = solve_heat_transfer(generate_mesh(junction_regions, mesh_size=20.0), max_iterations=300)
        second = solve_heat_transfer(generate_mesh(junction_regions, mesh_size=20.0), max_iterations=300)

        np.testing.assert_array_equal(first.temperatures, second.temperatures)
        assert first.iterations == second.iterations
        assert first.psi_value == second.psi_value
        assert first.frsi_value == second.frsi_value


class TestConvergence:

    def test_single_iteration_is_not_converged(self, single_region):
        mesh = generate_mesh(single_region, mesh_size=20.0)

        result = solve_heat_transfer(mesh, max_iterations=1)

        assert not result.converged
        assert result.iterations == 1
        assert result.max_change > result.tolerance
        with pytest.raises(NotConverged):
            result.raise_for_convergence()

    def test_converged_result_does_not_raise(self, grid_mesh):
        result = solve_heat_transfer(grid_mesh, max_iterations=500, tolerance=1e-10)

        assert result.converged
        result.raise_for_convergence()

    def test_no_free_nodes_takes_one_sweep(self, grid_mesh_factory):
        mesh = grid_mesh_factory(nx=2, ny=2)

        result = solve_heat_transfer(mesh, max_iterations=100)

        assert result.converged
        assert result.iterations == 1
        assert result.max_change == 0.0


class TestDetachedNodes:

    def test_refinement_nodes_are_interpolated(self, junction_regions):
        mesh = generate_mesh(junction_regions, mesh_size=20.0)

        result = solve_heat_transfer(mesh, max_iterations=200)

        assert mesh.detached_nodes
        for i in mesh.detached_nodes:
            node = mesh.nodes[i]
            element = mesh.locate_element(node.x, node.y)
            assert result.temperatures[i] == pytest.approx(element.interpolate(node.x, node.y, result.temperatures))
            assert result.min_temperature <= result.temperatures[i] <= result.max_temperature

    def test_refinement_does_not_change_grid_solution(self):
        wall = Material("Wall", 1.0, 100.0)
        joined = [
            Region("a", Point(0.0, 0.0), Point(100.0, 50.0), wall),
            Region("b", Point(100.0, 50.0), Point(200.0, 0.0), wall),
        ]
        single = [Region("a", Point(0.0, 0.0), Point(200.0, 50.0), wall)]

        refined = solve_heat_transfer(generate_mesh(joined, mesh_size=25.0), max_iterations=100)
        plain = solve_heat_transfer(generate_mesh(single, mesh_size=25.0), max_iterations=100)

        grid = plain.temperatures.size
        assert refined.temperatures.size > grid
        np.testing.assert_array_equal(refined.temperatures[:grid], plain.temperatures)


class TestSolverErrors:

    def test_zero_conductivity_diverges(self, grid_mesh_factory):
        mesh = grid_mesh_factory(material=Material("Void", 0.0, 10.0))

        with pytest.raises(SolverDivergence) as excinfo:
            solve_heat_transfer(mesh)
        assert excinfo.value.node_ids == [1, 4]

    def test_empty_mesh(self):
        with pytest.raises(InvalidGeometry):
            solve_heat_transfer(Mesh([], []))

    @pytest.mark.parametrize("kwargs", [
        {"max_iterations": 0},
        {"max_iterations": 2.5},
        {"tolerance": 0.0},
        {"tolerance": float("inf")},
        {"method": "jacobi"},
    ])
    def test_invalid_settings(self, grid_mesh, kwargs):
        with pytest.raises(InvalidConfiguration):
            solve_heat_transfer(grid_mesh, **kwargs)


class TestResult:

    def test_isotherms_and_flux(self, grid_mesh):
        result = solve_heat_transfer(grid_mesh, max_iterations=500, tolerance=1e-12)

        assert result.isotherms == pytest.approx([2.0 * k for k in range(1, 10)])
        assert len(result.flux_values) == len(result.elements) == 4
        for flux in result.flux_values:
            assert flux.qx == pytest.approx(-10.0)
            assert flux.qy == pytest.approx(0.0, abs=1e-9)
            assert flux.magnitude == pytest.approx(10.0)

    def test_temperatures_are_read_only(self, grid_mesh):
        result = solve_heat_transfer(grid_mesh, max_iterations=10)

        with pytest.raises(ValueError):
            result.temperatures[0] = 1.0

    def test_mesh_nodes_carry_solution(self, grid_mesh):
        result = solve_heat_transfer(grid_mesh, max_iterations=500, tolerance=1e-12)

        assert [n.temperature for n in result.nodes] == pytest.approx(result.temperatures.tolist())
