"""
Engine Errors
=============
Error kinds raised by the mesh generator, the conduction solver and the
geometry I/O layer.
"""


class ThermalBridgeError(Exception):
    """Base class for all errors raised by the thermal bridge engine."""


class InvalidGeometry(ThermalBridgeError):
    """No regions were supplied, the drawing is malformed or the mesh is degenerate."""


class InvalidConfiguration(ThermalBridgeError, ValueError):
    """A simulation setting is outside of its admissible range."""


class SolverDivergence(ThermalBridgeError):
    """A diagonal conductance entry required by the Gauss-Seidel update is zero or missing."""

    def __init__(self, message: str, node_ids: list[int] | None = None) -> None:
        super().__init__(message)
        self.node_ids = node_ids or []


class NotConverged(ThermalBridgeError):
    """The iteration cap was reached before the tolerance criterion was met."""

    def __init__(self, iterations: int, max_change: float, tolerance: float) -> None:
        super().__init__(
            f"Gauss-Seidel did not converge after {iterations} iterations "
            f"(max change {max_change:.3e} > tolerance {tolerance:.3e})."
        )
        self.iterations = iterations
        self.max_change = max_change
        self.tolerance = tolerance
