"""
Command Line Entry Point
========================
Runs the engine on a saved drawing without the editor.

Usage:
    $ python -m thermalbridge run drawing.json --mesh-size 5 --vtu result.vtu
    $ python -m thermalbridge validate drawing.json
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Optional, Sequence

from thermalbridge.condensation import assess_condensation
from thermalbridge.config import SimulationSettings, SolverMethod
from thermalbridge.exceptions import NotConverged, ThermalBridgeError
from thermalbridge.logging_config import LOG_LEVELS, setup_logging
from thermalbridge.model.io import export_result_to_vtu, load_drawing
from thermalbridge.model.validation import validate_regions
from thermalbridge.simulation import run_simulation

logger = logging.getLogger(__name__)

# Command line option -> SimulationSettings field
_SETTING_OPTIONS = {
    "mesh_size": "mesh_size",
    "adaptive_factor": "adaptive_factor",
    "interior_temp": "interior_temperature",
    "exterior_temp": "exterior_temperature",
    "max_iterations": "max_iterations",
    "tolerance": "tolerance",
    "method": "method",
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="thermalbridge",
        description="Steady-state 2-D thermal bridge analysis (PSI, fRsi, condensation risk)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging (same as --log-level debug)",
    )
    parser.add_argument(
        "--log-level",
        choices=LOG_LEVELS,
        default="info",
        help="Console log level",
    )
    parser.add_argument(
        "--log-file",
        type=str,
        default=None,
        help="Also write a debug-level log to this file",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    run_parser = subparsers.add_parser("run", help="Simulate a drawing")
    run_parser.add_argument("drawing", type=str, help="Path to the drawing JSON file")
    run_parser.add_argument(
        "--settings",
        type=str,
        default=None,
        help="JSON file with simulation settings (command line options take precedence)",
    )
    run_parser.add_argument("--mesh-size", type=float, default=None, help="Grid spacing in mm (default: 3.0)")
    run_parser.add_argument("--adaptive-factor", type=float, default=None, help="Refinement factor (default: 0.3)")
    run_parser.add_argument("--interior-temp", type=float, default=None, help="Interior temperature in °C (default: 20)")
    run_parser.add_argument("--exterior-temp", type=float, default=None, help="Exterior temperature in °C (default: 0)")
    run_parser.add_argument("--max-iterations", type=int, default=None, help="Gauss-Seidel sweep cap (default: 1000)")
    run_parser.add_argument("--tolerance", type=float, default=None, help="Convergence tolerance (default: 1e-6)")
    run_parser.add_argument(
        "--method",
        type=str,
        choices=[m.value for m in SolverMethod],
        default=None,
        help="Linear solver (default: gauss-seidel)",
    )
    run_parser.add_argument(
        "--humidity",
        type=float,
        default=50.0,
        help="Interior relative humidity in %% for the condensation check (default: 50)",
    )
    run_parser.add_argument("--vtu", type=str, default=None, help="Export the solved field to this .vtu file")
    run_parser.add_argument("--json", type=str, default=None, help="Write the scalar results to this JSON file")
    run_parser.add_argument(
        "--strict",
        action="store_true",
        help="Fail when the iterative solver does not converge",
    )

    val_parser = subparsers.add_parser("validate", help="Validate a drawing")
    val_parser.add_argument("drawing", type=str, help="Path to the drawing JSON file")

    return parser


def load_settings(args: argparse.Namespace) -> SimulationSettings:
    """Settings file values, overridden by explicitly given command line options."""
    data = {}
    if args.settings:
        with open(args.settings, "r", encoding="utf-8") as f:
            data = json.load(f)
    for option, name in _SETTING_OPTIONS.items():
        value = getattr(args, option)
        if value is not None:
            data[name] = value
    settings = SimulationSettings.from_dict(data)
    settings.validate()
    return settings


def run_validate(args: argparse.Namespace) -> int:
    """Run the validate command."""
    regions = load_drawing(args.drawing)
    report = validate_regions(regions)

    for issue in report.issues:
        print(f"[{issue.severity.value}] {issue.region_id}: {issue.message}")
    if report.is_valid:
        print(f"Drawing is valid ({len(regions)} regions, {len(report.warnings)} warnings).")
        return 0
    print(f"Drawing is invalid ({len(report.errors)} errors).")
    return 1


def run_simulate(args: argparse.Namespace) -> int:
    """Run the run command."""
    settings = load_settings(args)
    regions = load_drawing(args.drawing)

    report = validate_regions(regions)
    if not report.is_valid:
        for issue in report.errors:
            print(f"[error] {issue.region_id}: {issue.message}")
        return 1

    result = run_simulation(regions, settings)
    assessment = assess_condensation(
        result.frsi_value,
        interior_temperature=settings.interior_temperature,
        exterior_temperature=settings.exterior_temperature,
        relative_humidity=args.humidity,
    )

    summary = {
        "psiValue": result.psi_value,
        "fRsiValue": result.frsi_value,
        "fRsiPrescribed": result.frsi_prescribed,
        "minTemperature": result.min_temperature,
        "maxTemperature": result.max_temperature,
        "isotherms": result.isotherms,
        "converged": result.converged,
        "iterations": result.iterations,
        "dewPoint": assessment.dew_point,
        "minSurfaceTemperature": assessment.minimum_surface_temperature,
        "condensationRisk": assessment.condensation_risk,
    }

    print(f"PSI:                      {result.psi_value:.4f} W/(m·K)")
    print(f"fRsi:                     {result.frsi_value:.3f}")
    print(f"Temperature range:        {result.min_temperature:.2f} .. {result.max_temperature:.2f} °C")
    print(f"Converged:                {result.converged} ({result.iterations} iterations)")
    print(f"Dew point:                {assessment.dew_point:.1f} °C")
    print(f"Min. surface temperature: {assessment.minimum_surface_temperature:.1f} °C")
    print("Condensation risk!" if assessment.condensation_risk else "No condensation risk.")

    if args.json:
        with open(args.json, "w", encoding="utf-8") as f:
            json.dump(summary, f, indent=2)
        logger.info(f"Results written to: {args.json}")
    if args.vtu:
        export_result_to_vtu(result, args.vtu)

    if args.strict:
        result.raise_for_convergence()
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    setup_logging(level="debug" if args.verbose else args.log_level, log_file=args.log_file)

    try:
        if args.command == "run":
            return run_simulate(args)
        return run_validate(args)
    except NotConverged as e:
        logger.error(str(e))
        return 3
    except (ThermalBridgeError, OSError, json.JSONDecodeError) as e:
        logger.error(f"{type(e).__name__}: {e}")
        return 2


if __name__ == "__main__":
    sys.exit(main())
