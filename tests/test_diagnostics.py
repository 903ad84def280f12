"""
Tests for PSI, fRsi, isotherm and flux post-processing.
"""

import math

import numpy as np
import pytest

from thermalbridge.config import SolverMethod
from thermalbridge.fea.analysis.node import BoundaryType
from thermalbridge.fea.post.diagnostics import (
    compute_heat_flux,
    compute_isotherms,
    estimate_diagnostics,
    estimate_one_dimensional_heat_flow,
    estimate_total_heat_flow,
    temperature_factor,
)
from thermalbridge.fea.pre.mesh import generate_mesh
from thermalbridge.fea.solvers.solver import solve_heat_transfer
from thermalbridge.model.geometry import Point, Region
from thermalbridge.model.materials import Material


def _set_linear_field(mesh):
    """T = 10 x on the unit grid."""
    for node in mesh.nodes:
        node.temperature = 10.0 * node.x


class TestIsotherms:

    def test_nine_levels_strictly_inside(self):
        levels = compute_isotherms(0.0, 20.0)

        assert levels == pytest.approx([2.0, 4.0, 6.0, 8.0, 10.0, 12.0, 14.0, 16.0, 18.0])

    def test_offset_range(self):
        levels = compute_isotherms(-5.0, 15.0)

        assert len(levels) == 9
        assert levels[0] == pytest.approx(-3.0)
        assert levels[-1] == pytest.approx(13.0)

    def test_uniform_field(self):
        assert compute_isotherms(7.0, 7.0) == [7.0] * 9


class TestHeatFlux:

    def test_one_vector_per_element_at_centroid(self, grid_mesh):
        _set_linear_field(grid_mesh)

        fluxes = compute_heat_flux(grid_mesh)

        assert len(fluxes) == grid_mesh.number_of_elements
        assert fluxes[0].position == pytest.approx((2.0 / 3.0, 1.0 / 3.0))
        for flux in fluxes:
            assert flux.magnitude == pytest.approx(math.hypot(flux.qx, flux.qy))
            assert flux.qx == pytest.approx(-10.0)


class TestPsi:

    def test_total_heat_flow(self, grid_mesh):
        _set_linear_field(grid_mesh)

        # Node 2 touches element [1, 2, 5]; node 5 touches [1, 2, 5] and [1, 5, 4]
        expected = abs(20.0 - 50.0 / 3.0) + abs(20.0 - 50.0 / 3.0) + abs(20.0 - 40.0 / 3.0)
        assert estimate_total_heat_flow(grid_mesh, grid_mesh.temperatures) == pytest.approx(expected)

    def test_one_dimensional_heat_flow(self, grid_mesh):
        _set_linear_field(grid_mesh)

        # All six boundary nodes fall into one 5 mm band; wall 2 mm of λ = 1
        resistance = 2.0 / 1.0 + 1.0 / 7.7 + 1.0 / 25.0
        expected = (1.0 / resistance) * (6 * 5.0) * 20.0
        assert estimate_one_dimensional_heat_flow(grid_mesh, 0.0, 20.0) == pytest.approx(expected)

    def test_surface_coefficients_enter_resistance(self, grid_mesh):
        _set_linear_field(grid_mesh)

        flow = estimate_one_dimensional_heat_flow(grid_mesh, 0.0, 20.0, 1.0, 1.0)

        assert flow == pytest.approx((1.0 / 4.0) * 30.0 * 20.0)

    def test_psi_is_total_minus_one_dimensional(self, grid_mesh):
        _set_linear_field(grid_mesh)

        diagnostics = estimate_diagnostics(grid_mesh)

        total = estimate_total_heat_flow(grid_mesh, grid_mesh.temperatures)
        one_d = estimate_one_dimensional_heat_flow(grid_mesh, 0.0, 20.0)
        assert diagnostics.psi_value == pytest.approx(total - one_d)

    def test_band_without_elements_keeps_surface_resistances(self, grid_mesh):
        # Rows y = 0 and y = 1 form two bands; every centroid is 1/3 away from them
        surface_resistance = 1.0 / 7.7 + 1.0 / 25.0
        expected = 2 * (1.0 / surface_resistance) * (3 * 0.2) * 20.0

        flow = estimate_one_dimensional_heat_flow(grid_mesh, 0.0, 20.0, tolerance=0.2)

        assert flow == pytest.approx(expected)

    def test_coarse_mesh_bands_still_count(self):
        slab = [Region("slab", Point(0.0, 0.0), Point(1000.0, 200.0), Material("Slab", 1.0, 200.0))]
        mesh = generate_mesh(slab, mesh_size=20.0)
        result = solve_heat_transfer(mesh, method=SolverMethod.DIRECT)

        total = estimate_total_heat_flow(mesh, result.temperatures)
        one_d = estimate_one_dimensional_heat_flow(mesh, result.min_temperature, result.max_temperature)

        assert one_d > 0.0
        assert result.psi_value == pytest.approx(total - one_d)

    def test_band_without_interior_nodes_is_ignored(self, grid_mesh):
        _set_linear_field(grid_mesh)
        for i in (2, 5):
            grid_mesh.nodes[i].boundary_type = BoundaryType.ADIABATIC

        assert estimate_one_dimensional_heat_flow(grid_mesh, 0.0, 20.0) == 0.0


class TestFrsi:

    def test_fixed_interior_edge(self, grid_mesh):
        _set_linear_field(grid_mesh)

        diagnostics = estimate_diagnostics(grid_mesh)

        assert diagnostics.frsi_value == pytest.approx(1.0)
        assert diagnostics.frsi_prescribed == pytest.approx(1.0)

    def test_robin_interior_edge(self, grid_mesh_factory):
        mesh = grid_mesh_factory(exterior_temperature=5.0, interior_fixed=False)
        result = solve_heat_transfer(mesh, max_iterations=10000, tolerance=1e-13)

        surface = result.temperatures[[2, 5]].min()
        # The Robin edge is the warmest part of the field
        assert surface == pytest.approx(result.max_temperature)
        assert result.frsi_value == pytest.approx(1.0)
        assert result.frsi_prescribed == pytest.approx((surface - 5.0) / (20.0 - 5.0))
        assert result.frsi_prescribed < 1.0

    def test_uniform_field(self):
        assert temperature_factor(3.0, 3.0, 3.0) == 1.0

    def test_prescribed_factor_unknown_without_design_temperatures(self, grid_mesh):
        _set_linear_field(grid_mesh)
        grid_mesh.interior_temperature = None

        assert math.isnan(estimate_diagnostics(grid_mesh).frsi_prescribed)

    def test_generated_mesh_bounds(self, junction_regions):
        mesh = generate_mesh(junction_regions, mesh_size=20.0)
        result = solve_heat_transfer(mesh, max_iterations=2000)

        assert 0.0 <= result.frsi_value <= 1.0
        assert np.isfinite(result.psi_value)
        assert result.isotherms == sorted(result.isotherms)
