"""
Material Library
================
Defines the material record assigned to drawn regions, and the built-in
materials of the editor.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict


@dataclass(frozen=True)
class Material:
    """
    Homogeneous, isotropic building material.

    Attributes:
        name: Display name, also used to tell materials apart in the PSI estimate.
        thermal_conductivity: Thermal conductivity λ in W/(m·K).
        thickness: Default layer thickness in mm.
        color: Display color (hex string).
    """
    name: str
    thermal_conductivity: float
    thickness: float = 0.0
    color: str = "#FFFFFF"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "thermalConductivity": self.thermal_conductivity,
            "defaultThickness": self.thickness,
            "color": self.color,
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> Material:
        """Deserialize from the editor's drawing format."""
        return Material(
            name=str(data.get("name", "Unnamed Material")),
            thermal_conductivity=float(data["thermalConductivity"]),
            thickness=float(data.get("defaultThickness", data.get("thickness", 0.0))),
            color=str(data.get("color", "#FFFFFF")),
        )


# Fills every part of the domain not covered by a region
AIR = Material(name="Air", thermal_conductivity=0.025, thickness=0.0, color="#FFFFFF")

CONCRETE = Material(name="Béton", thermal_conductivity=2.3, thickness=200.0, color="#9E9E9E")
INSULATION = Material(name="Isolation", thermal_conductivity=0.035, thickness=120.0, color="#FFEB3B")
PVC_FRAME = Material(name="Menuiserie PVC", thermal_conductivity=0.17, thickness=70.0, color="#ECEFF1")
DOUBLE_GLAZING = Material(name="Double vitrage", thermal_conductivity=1.0, thickness=24.0, color="#B3E5FC")

DEFAULT_MATERIALS: Dict[str, Material] = {
    m.name: m for m in (CONCRETE, INSULATION, PVC_FRAME, DOUBLE_GLAZING)
}
