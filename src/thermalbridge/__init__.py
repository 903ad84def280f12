"""
Thermal Bridge Engine
=====================
Steady-state 2-D finite element analysis of building junctions drawn as
material-tagged rectangles. Produces the temperature field, the linear
thermal transmittance (PSI) and the surface temperature factor (fRsi).
"""
from thermalbridge.config import SimulationSettings, SolverMethod
from thermalbridge.exceptions import (
    InvalidConfiguration,
    InvalidGeometry,
    NotConverged,
    SolverDivergence,
    ThermalBridgeError,
)
from thermalbridge.simulation import run_parameter_sweep, run_simulation

__version__ = "0.1.0"

__all__ = [
    "SimulationSettings",
    "SolverMethod",
    "ThermalBridgeError",
    "InvalidGeometry",
    "InvalidConfiguration",
    "SolverDivergence",
    "NotConverged",
    "run_simulation",
    "run_parameter_sweep",
]
