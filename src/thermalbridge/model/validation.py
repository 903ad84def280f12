"""
Drawing Validation
==================
Checks a set of drawn regions before it is handed to the mesh generator.
Errors make the drawing unusable; warnings are reported but do not block a run.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
import logging
import math

from thermalbridge.config import CONNECTION_TOLERANCE
from thermalbridge.model.geometry import Region

logger = logging.getLogger(__name__)


class Severity(StrEnum):
    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class ValidationIssue:
    region_id: str
    message: str
    severity: Severity


@dataclass
class ValidationReport:
    issues: list[ValidationIssue] = field(default_factory=list)

    @property
    def errors(self) -> list[ValidationIssue]:
        return [i for i in self.issues if i.severity == Severity.ERROR]

    @property
    def warnings(self) -> list[ValidationIssue]:
        return [i for i in self.issues if i.severity == Severity.WARNING]

    @property
    def is_valid(self) -> bool:
        return not self.errors


def find_connections(region: Region, regions: list[Region], tolerance: float = CONNECTION_TOLERANCE) -> list[Region]:
    """Regions sharing at least one corner point with ``region`` (within tolerance)."""
    connections: list[Region] = []
    for other in regions:
        if other.id == region.id:
            continue
        if any(p1.distance_to(p2) <= tolerance for p1 in region.points for p2 in other.points):
            connections.append(other)
    return connections


def validate_regions(regions: list[Region]) -> ValidationReport:
    """
    Validate geometry and material data of the drawn regions.

    Args:
        regions: Regions in drawing order.

    Returns:
        Report listing every issue found, in region order.
    """
    report = ValidationReport()

    if not regions:
        report.issues.append(ValidationIssue("", "No regions supplied", Severity.ERROR))
        return report

    for region in regions:
        coords = [c for p in region.points for c in (p.x, p.y)]
        if not all(math.isfinite(c) for c in coords):
            report.issues.append(ValidationIssue(region.id, "Corner coordinates must be finite", Severity.ERROR))
        elif region.bounds.width <= 0.0 or region.bounds.height <= 0.0:
            report.issues.append(ValidationIssue(region.id, "Region must span a non-zero area", Severity.ERROR))

        material = region.material
        if not material.thermal_conductivity > 0.0:
            report.issues.append(ValidationIssue(region.id, "Invalid thermal conductivity value", Severity.ERROR))
        if not material.thickness > 0.0:
            report.issues.append(ValidationIssue(region.id, "Invalid thickness value", Severity.ERROR))

        if not find_connections(region, regions):
            report.issues.append(
                ValidationIssue(region.id, "Region is not connected to any other region", Severity.WARNING)
            )

    logger.debug(f"Validated {len(regions)} regions: {len(report.errors)} errors, {len(report.warnings)} warnings.")
    return report
