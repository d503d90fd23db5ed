"""
Spatial data structures for efficient force calculations.

Provides square bounds and a quadtree implementation for Barnes-Hut
O(n log n) gravity approximation.
"""

from .bounds import Bounds, Quadrant
from .quadtree import DEFAULT_MAX_DEPTH, QuadTree, QuadTreeNode

__all__ = ["Bounds", "Quadrant", "DEFAULT_MAX_DEPTH", "QuadTree", "QuadTreeNode"]
