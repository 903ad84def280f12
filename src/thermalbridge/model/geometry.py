"""
Geometric Primitives
====================
Axis-aligned, material-tagged regions as produced by the drawing editor.
All coordinates are in mm.
"""
from __future__ import annotations

from dataclasses import dataclass
import math

from thermalbridge.model.materials import Material


@dataclass(frozen=True)
class Point:
    """A point of the drawing plane."""
    x: float
    y: float

    def distance_to(self, other: Point) -> float:
        return math.sqrt((self.x - other.x) ** 2 + (self.y - other.y) ** 2)


@dataclass(frozen=True)
class Bounds:
    """Axis-aligned bounding box."""
    min_x: float
    min_y: float
    max_x: float
    max_y: float

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y

    def contains(self, x: float, y: float) -> bool:
        """Inclusive point-in-box test."""
        return self.min_x <= x <= self.max_x and self.min_y <= y <= self.max_y

    def expanded(self, margin: float) -> Bounds:
        return Bounds(
            self.min_x - margin,
            self.min_y - margin,
            self.max_x + margin,
            self.max_y + margin,
        )


@dataclass(frozen=True)
class Region:
    """
    Rectangle defined by two opposite corners, filled with one material.

    The corners may be given in any order.
    """
    id: str
    corner1: Point
    corner2: Point
    material: Material

    @property
    def points(self) -> tuple[Point, Point]:
        """The two defining corners, in drawing order."""
        return self.corner1, self.corner2

    @property
    def bounds(self) -> Bounds:
        return Bounds(
            min(self.corner1.x, self.corner2.x),
            min(self.corner1.y, self.corner2.y),
            max(self.corner1.x, self.corner2.x),
            max(self.corner1.y, self.corner2.y),
        )

    def contains(self, x: float, y: float) -> bool:
        return self.bounds.contains(x, y)


def bounding_box(regions: list[Region]) -> Bounds:
    """Bounding box of all region corner points."""
    xs = [p.x for region in regions for p in region.points]
    ys = [p.y for region in regions for p in region.points]
    return Bounds(min(xs), min(ys), max(xs), max(ys))


def find_material_at_point(regions: list[Region], x: float, y: float) -> Material | None:
    """Material of the first region whose bounds contain the point, if any."""
    for region in regions:
        if region.contains(x, y):
            return region.material
    return None


def find_junctions(regions: list[Region], tolerance: float) -> list[Point]:
    """
    Points where corners of two distinct regions coincide.

    Every pair of regions is checked corner against corner; coincident
    corners closer than ``tolerance`` to an already found junction are
    merged into it.
    """
    junctions: list[Point] = []
    for i, first in enumerate(regions):
        for second in regions[i + 1:]:
            for p1 in first.points:
                for p2 in second.points:
                    if p1.distance_to(p2) < tolerance:
                        if not any(j.distance_to(p1) < tolerance for j in junctions):
                            junctions.append(Point(p1.x, p1.y))
    return junctions
