"""
Condensation Risk
=================
Combines the temperature factor of a junction with the interior climate.

The dew point follows the Magnus approximation; the coldest interior surface
temperature is reconstructed from fRsi and the design temperatures. Surface
condensation is expected when that surface is colder than the dew point.
"""
from __future__ import annotations

from dataclasses import dataclass
import logging
import math

from thermalbridge.exceptions import InvalidConfiguration

logger = logging.getLogger(__name__)

# Magnus coefficients over water
MAGNUS_A = 17.27
MAGNUS_B = 237.7  # °C


@dataclass(frozen=True)
class CondensationAssessment:
    dew_point: float
    minimum_surface_temperature: float
    frsi: float

    @property
    def condensation_risk(self) -> bool:
        return self.minimum_surface_temperature < self.dew_point


def dew_point(temperature: float, relative_humidity: float) -> float:
    """
    Dew point temperature in °C.

    Args:
        temperature: Air temperature in °C.
        relative_humidity: Relative humidity in %, within (0, 100].
    """
    if not (0.0 < relative_humidity <= 100.0):
        raise InvalidConfiguration(f"Relative humidity must lie in (0, 100] %, got {relative_humidity!r}.")
    alpha = (MAGNUS_A * temperature) / (MAGNUS_B + temperature) + math.log(relative_humidity / 100.0)
    return (MAGNUS_B * alpha) / (MAGNUS_A - alpha)


def minimum_surface_temperature(frsi: float, interior_temperature: float, exterior_temperature: float) -> float:
    """Tsi,min = Te + fRsi (Ti - Te)"""
    return exterior_temperature + frsi * (interior_temperature - exterior_temperature)


def assess_condensation(
    frsi: float,
    interior_temperature: float = 20.0,
    exterior_temperature: float = 0.0,
    relative_humidity: float = 50.0,
) -> CondensationAssessment:
    """Check whether the coldest interior surface falls below the dew point of the interior air."""
    assessment = CondensationAssessment(
        dew_point=dew_point(interior_temperature, relative_humidity),
        minimum_surface_temperature=minimum_surface_temperature(frsi, interior_temperature, exterior_temperature),
        frsi=frsi,
    )
    if assessment.condensation_risk:
        logger.warning(
            f"Condensation risk: surface {assessment.minimum_surface_temperature:.1f} °C "
            f"below dew point {assessment.dew_point:.1f} °C."
        )
    return assessment
