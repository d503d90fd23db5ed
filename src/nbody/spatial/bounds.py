"""
Axis-aligned square regions for quadtree partitioning.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Iterable, Tuple


class Quadrant(IntEnum):
    """Child quadrant of a region. North is +y, east is +x."""

    NW = 0
    NE = 1
    SW = 2
    SE = 3


@dataclass(frozen=True)
class Bounds:
    """
    An axis-aligned square region.

    The region is half-open: [x, x + size) x [y, y + size). A point on
    the upper edge belongs to the neighbouring region, so the four
    children of a subdivision never share a point.

    Attributes:
        x, y: Origin (lower-left corner)
        size: Edge length
    """

    x: float
    y: float
    size: float

    @property
    def center_x(self) -> float:
        return self.x + self.size * 0.5

    @property
    def center_y(self) -> float:
        return self.y + self.size * 0.5

    def contains(self, px: float, py: float) -> bool:
        """Check if point (px, py) is within this region."""
        return self.x <= px < self.x + self.size and self.y <= py < self.y + self.size

    def quadrant(self, px: float, py: float) -> Quadrant:
        """
        Classify a point against the region's center.

        Points on a center line go north/east.
        """
        east = px >= self.center_x
        north = py >= self.center_y
        if north:
            return Quadrant.NE if east else Quadrant.NW
        return Quadrant.SE if east else Quadrant.SW

    def subdivide(self, quadrant: int) -> Bounds:
        """Get the half-size region for a quadrant."""
        half = self.size * 0.5
        cx = self.center_x
        cy = self.center_y

        if quadrant == Quadrant.NW:
            return Bounds(self.x, cy, half)
        if quadrant == Quadrant.NE:
            return Bounds(cx, cy, half)
        if quadrant == Quadrant.SW:
            return Bounds(self.x, self.y, half)
        if quadrant == Quadrant.SE:
            return Bounds(cx, self.y, half)
        raise ValueError(f"Invalid quadrant: {quadrant}")

    @classmethod
    def enclosing(cls, points: Iterable[Tuple[float, float]], padding: float = 10.0) -> Bounds:
        """
        Build the square region enclosing a set of points.

        The bounding box is expanded by padding on every side and then
        made square using the larger side, so no point touches the
        upper boundary.

        Args:
            points: (x, y) pairs
            padding: Margin added on all sides. Must be positive, otherwise
                the right-most and top-most points fall on the open edge.

        Returns:
            Enclosing bounds, or the unit square at the origin if there
            are no points
        """
        pts = list(points)
        if not pts:
            return cls(0.0, 0.0, 1.0)

        min_x = min(p[0] for p in pts) - padding
        min_y = min(p[1] for p in pts) - padding
        max_x = max(p[0] for p in pts) + padding
        max_y = max(p[1] for p in pts) + padding

        size = max(max_x - min_x, max_y - min_y)
        return cls(float(min_x), float(min_y), float(size))


__all__ = ["Bounds", "Quadrant"]
