"""
Simulation Pipeline
===================
Runs the whole engine for one drawing: regions -> mesh -> solved field -> diagnostics.

Why is this file needed?
------------------------
1. Orchestration: It wires the mesh generator and the solver together with
   the scalar settings, so callers never touch the intermediate mesh.
2. Isolation: Every run builds its own mesh and result, which lets
   independent runs (parameter sweeps) execute side by side on a thread pool.
"""
from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
import logging
from typing import Sequence

from thermalbridge.config import SimulationSettings
from thermalbridge.exceptions import InvalidGeometry
from thermalbridge.fea.pre.mesh import generate_mesh
from thermalbridge.fea.solvers.solver import SimulationResult, solve_heat_transfer
from thermalbridge.model.geometry import Region
from thermalbridge.model.validation import validate_regions
from thermalbridge.utils import timer

logger = logging.getLogger(__name__)


def _check_regions(regions: Sequence[Region]) -> None:
    """
    Raises:
        InvalidGeometry: If the drawing is empty or any region fails validation.
    """
    if not regions:
        raise InvalidGeometry("No regions supplied.")
    report = validate_regions(list(regions))
    if not report.is_valid:
        details = "; ".join(f"{issue.region_id}: {issue.message}" for issue in report.errors)
        logger.error(f"Drawing rejected: {details}")
        raise InvalidGeometry(f"Invalid drawing ({len(report.errors)} errors): {details}")


@timer
def run_simulation(regions: Sequence[Region], settings: SimulationSettings | None = None) -> SimulationResult:
    """
    Mesh, solve and post-process a drawing.

    Args:
        regions: Material-tagged rectangles in mm.
        settings: Scalar configuration; defaults are used when omitted.

    Raises:
        InvalidGeometry: If no regions are supplied, a region has invalid geometry or
            material data, or the mesh is degenerate.
        InvalidConfiguration: If a setting is out of range.
        SolverDivergence: If the assembled system has a zero diagonal entry.
    """
    settings = settings or SimulationSettings()
    settings.validate()
    _check_regions(regions)

    logger.info(f"Starting simulation of {len(regions)} regions.")
    mesh = generate_mesh(
        list(regions),
        mesh_size=settings.mesh_size,
        adaptive_factor=settings.adaptive_factor,
        interior_temperature=settings.interior_temperature,
        exterior_temperature=settings.exterior_temperature,
    )
    result = solve_heat_transfer(
        mesh,
        max_iterations=settings.max_iterations,
        tolerance=settings.tolerance,
        interior_reference_temperature=settings.interior_reference_temperature,
        exterior_reference_temperature=settings.exterior_reference_temperature,
        interior_heat_transfer_coefficient=settings.interior_heat_transfer_coefficient,
        exterior_heat_transfer_coefficient=settings.exterior_heat_transfer_coefficient,
        method=settings.method,
    )
    logger.info(
        f"Simulation finished: PSI={result.psi_value:.4f} W/(m·K), fRsi={result.frsi_value:.3f}, "
        f"T in [{result.min_temperature:.2f}, {result.max_temperature:.2f}] °C."
    )
    return result


def run_parameter_sweep(
    regions: Sequence[Region],
    settings_list: Sequence[SimulationSettings],
    max_workers: int | None = None,
) -> list[SimulationResult]:
    """
    Run one simulation per settings object on a thread pool.

    Results are returned in the order of ``settings_list``. The first failing
    run re-raises its error.
    """
    # Settings are validated up front so no run starts on a bad sweep
    for settings in settings_list:
        settings.validate()
    _check_regions(regions)

    regions = list(regions)
    logger.info(f"Running parameter sweep of {len(settings_list)} simulations.")
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = [executor.submit(run_simulation, regions, settings) for settings in settings_list]
        return [future.result() for future in futures]
