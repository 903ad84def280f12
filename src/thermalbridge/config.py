"""
Configuration & Global Constants
================================
This module serves as the central registry for the physical constants and the
scalar settings of a simulation run.

Why is this file needed?
------------------------
1. Abstraction: It prevents magic numbers (surface coefficients, tolerances)
   being scattered throughout the mesh generator, solver and estimator.
2. Validation: It rejects inadmissible settings before any mesh is built, so
   the caller gets a configuration error instead of a half-finished run.

Exports:
    SimulationSettings: Scalar configuration of one simulation run.
    SolverMethod: Available linear solvers.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, asdict, fields
from enum import StrEnum
from typing import Any, Dict

from thermalbridge.exceptions import InvalidConfiguration

# Surface heat transfer coefficients (Robin condition)
INTERIOR_HEAT_TRANSFER_COEFFICIENT = 7.7  # W m^(-2) K^(-1)
EXTERIOR_HEAT_TRANSFER_COEFFICIENT = 25.0  # W m^(-2) K^(-1)

# Nominal design temperatures used as Robin reference temperatures
INTERIOR_REFERENCE_TEMPERATURE = 20.0  # °C
EXTERIOR_REFERENCE_TEMPERATURE = 0.0  # °C

# Geometric tolerances, all in mm
BOUNDARY_TOLERANCE = 1e-3  # edge classification of grid nodes
JUNCTION_TOLERANCE = 0.5  # coincident corners of two regions
CONNECTION_TOLERANCE = 0.1  # drawing validation: connected regions
BAND_TOLERANCE = 5.0  # horizontal banding of boundary nodes in the PSI estimate

# Multiples of the mesh size
DOMAIN_MARGIN_FACTOR = 5.0
REFINEMENT_RADIUS_FACTOR = 5.0

NUMBER_OF_ISOTHERMS = 9


class SolverMethod(StrEnum):
    GAUSS_SEIDEL = "gauss-seidel"
    DIRECT = "direct"


@dataclass
class SimulationSettings:
    """
    Scalar configuration of a simulation run.

    Lengths are in mm, temperatures in °C and heat transfer coefficients
    in W/(m²·K). The Robin reference temperatures are independent of the
    Dirichlet temperatures prescribed on the domain edges.
    """
    mesh_size: float = 3.0
    adaptive_factor: float = 0.3
    interior_temperature: float = 20.0
    exterior_temperature: float = 0.0
    max_iterations: int = 1000
    tolerance: float = 1e-6
    interior_reference_temperature: float = INTERIOR_REFERENCE_TEMPERATURE
    exterior_reference_temperature: float = EXTERIOR_REFERENCE_TEMPERATURE
    interior_heat_transfer_coefficient: float = INTERIOR_HEAT_TRANSFER_COEFFICIENT
    exterior_heat_transfer_coefficient: float = EXTERIOR_HEAT_TRANSFER_COEFFICIENT
    method: SolverMethod = SolverMethod.GAUSS_SEIDEL

    def validate(self) -> None:
        """
        Check every setting against its admissible range.

        Raises:
            InvalidConfiguration: On the first inadmissible setting.
        """
        if not _is_finite_positive(self.mesh_size):
            raise InvalidConfiguration(f"Mesh size must be a positive number, got {self.mesh_size!r}.")
        if not (0.0 < self.adaptive_factor <= 1.0):
            raise InvalidConfiguration(f"Adaptive factor must lie in (0, 1], got {self.adaptive_factor!r}.")
        if isinstance(self.max_iterations, bool) or not isinstance(self.max_iterations, int) or self.max_iterations <= 0:
            raise InvalidConfiguration(f"Max iterations must be a positive integer, got {self.max_iterations!r}.")
        if not _is_finite_positive(self.tolerance):
            raise InvalidConfiguration(f"Tolerance must be a positive number, got {self.tolerance!r}.")
        for name in (
            "interior_temperature",
            "exterior_temperature",
            "interior_reference_temperature",
            "exterior_reference_temperature",
        ):
            value = getattr(self, name)
            if not math.isfinite(value):
                raise InvalidConfiguration(f"{name} must be finite, got {value!r}.")
        for name in ("interior_heat_transfer_coefficient", "exterior_heat_transfer_coefficient"):
            value = getattr(self, name)
            if not _is_finite_positive(value):
                raise InvalidConfiguration(f"{name} must be a positive number, got {value!r}.")
        try:
            SolverMethod(self.method)
        except ValueError:
            raise InvalidConfiguration(f"Unknown solver method: {self.method!r}.") from None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["method"] = SolverMethod(self.method).value
        return data

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> SimulationSettings:
        """Build settings from a dict, ignoring unknown keys."""
        known = {f.name for f in fields(SimulationSettings)}
        values = {k: v for k, v in data.items() if k in known}
        if "method" in values:
            try:
                values["method"] = SolverMethod(values["method"])
            except ValueError:
                raise InvalidConfiguration(f"Unknown solver method: {values['method']!r}.") from None
        return SimulationSettings(**values)


def _is_finite_positive(value: float) -> bool:
    return isinstance(value, (int, float)) and math.isfinite(value) and value > 0.0
