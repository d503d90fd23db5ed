"""
Quadtree implementation for Barnes-Hut gravity approximation.

The quadtree recursively subdivides 2D space into quadrants,
enabling O(n log n) approximate n-body force calculations.
Nodes live in a flat arena and refer to their children by index.
"""

from __future__ import annotations

import warnings
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from ..forces import should_approximate, softened_acceleration
from .bounds import Bounds

ROOT = 0

# Past this depth leaves hold several particles instead of subdividing,
# which stops coincident particles from splitting forever.
DEFAULT_MAX_DEPTH = 48


@dataclass
class QuadTreeNode:
    """
    A node in the quadtree.

    Attributes:
        bounds: Square region covered by this node
        depth: Distance from the root (root = 0)
        center_of_mass_x/y: Center of mass of particles in this subtree
        total_mass: Total mass of particles in this subtree
        residents: Particle indices held by a leaf (one, or several at max depth)
        children: Arena ids of the four child quadrants [NW, NE, SW, SE] if internal
    """

    bounds: Bounds
    depth: int = 0

    # Aggregated properties
    center_of_mass_x: float = 0.0
    center_of_mass_y: float = 0.0
    total_mass: float = 0.0

    # Content
    residents: List[int] = field(default_factory=list)
    children: Optional[List[int]] = None

    def is_leaf(self) -> bool:
        """True if this node has no children."""
        return self.children is None

    def is_empty(self) -> bool:
        """True if this node contains no particles."""
        return not self.residents and self.children is None

    def absorb(self, x: float, y: float, mass: float) -> None:
        """Fold a particle into the aggregate mass and center of mass."""
        new_mass = self.total_mass + mass
        if new_mass > 0:
            self.center_of_mass_x = (self.center_of_mass_x * self.total_mass + x * mass) / new_mass
            self.center_of_mass_y = (self.center_of_mass_y * self.total_mass + y * mass) / new_mass
        self.total_mass = new_mass

    def reset(self) -> None:
        self.center_of_mass_x = 0.0
        self.center_of_mass_y = 0.0
        self.total_mass = 0.0
        self.residents = []


class QuadTree:
    """
    Barnes-Hut quadtree for approximate gravity calculations.

    For distant clusters, the algorithm treats the cluster as a single
    mass at its center of mass, reducing complexity from O(n^2) to
    O(n log n). Mass and center of mass are aggregated incrementally
    during insertion, so the tree is ready to query as soon as the last
    particle is in.

    Usage:
        tree = QuadTree.build(positions, masses, theta=0.5)
        ax, ay = tree.calculate_force(x, y, gravitational_constant=1.0,
                                      softening_sq=1.0, exclude=i)

    The theta parameter controls the accuracy/speed tradeoff:
    - theta = 0: Exact calculation (every node is opened)
    - theta = 0.5: Good balance (recommended)
    - theta = 1.0+: Fast but less accurate

    A particle outside the root bounds is dropped, counted in
    dropped_count and reported with a RuntimeWarning. build() chooses
    bounds that enclose every particle, so this should never happen.
    """

    def __init__(
        self,
        bounds: Bounds,
        theta: float = 0.5,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ):
        """
        Initialize an empty quadtree.

        Args:
            bounds: Square region covered by the root
            theta: Barnes-Hut threshold (0 = exact, higher = more approximation)
            max_depth: Depth at which leaves stop subdividing
        """
        self.nodes: List[QuadTreeNode] = [QuadTreeNode(bounds)]
        self.theta = theta
        self.max_depth = max_depth
        self.body_count = 0
        self.dropped_count = 0
        # Stored (x, y, mass) per particle, used to drop the excluded
        # resident from a bucket leaf
        self._bodies: Dict[int, Tuple[float, float, float]] = {}

    @property
    def root(self) -> QuadTreeNode:
        return self.nodes[ROOT]

    @property
    def bounds(self) -> Bounds:
        return self.nodes[ROOT].bounds

    def children_of(self, node: QuadTreeNode) -> List[QuadTreeNode]:
        """Child nodes of node (empty list for a leaf)."""
        if node.children is None:
            return []
        return [self.nodes[c] for c in node.children]

    def insert(self, index: int, x: float, y: float, mass: float) -> bool:
        """
        Insert a particle into the quadtree.

        Args:
            index: Particle index (used to skip self-interaction)
            x, y: Position
            mass: Mass

        Returns:
            True if inserted, False if the position lies outside the tree
        """
        self._bodies[index] = (x, y, mass)
        inserted = self._insert_into(ROOT, index, x, y, mass)
        if inserted:
            self.body_count += 1
        else:
            del self._bodies[index]
        return inserted

    def _insert_into(self, node_id: int, index: int, x: float, y: float, mass: float) -> bool:
        """Recursively insert a particle into the subtree rooted at node_id."""
        node = self.nodes[node_id]
        if not node.bounds.contains(x, y):
            self.dropped_count += 1
            warnings.warn(
                f"Particle {index} at ({x}, {y}) lies outside {node.bounds}; "
                "it is left out of the tree",
                RuntimeWarning,
                stacklevel=2,
            )
            return False

        if node.is_leaf():
            if node.residents and node.depth < self.max_depth:
                # Occupied leaf: split it, then place both particles. The
                # previous occupant goes back in at this leaf's aggregate
                # position and mass.
                previous = node.residents[0]
                prev_x = node.center_of_mass_x
                prev_y = node.center_of_mass_y
                prev_mass = node.total_mass
                self._bodies[previous] = (prev_x, prev_y, prev_mass)
                node.reset()
                self._subdivide(node_id)
                inserted = self._insert_into(node_id, index, x, y, mass)
                self._insert_into(node_id, previous, prev_x, prev_y, prev_mass)
                return inserted

            # Empty leaf, or a bucket at max depth
            node.residents.append(index)
            node.absorb(x, y, mass)
            return True

        # Internal node: descend, then aggregate
        assert node.children is not None
        child = node.children[node.bounds.quadrant(x, y)]
        inserted = self._insert_into(child, index, x, y, mass)
        if inserted:
            node.absorb(x, y, mass)
        return inserted

    def _subdivide(self, node_id: int) -> None:
        """Create four empty children for a node."""
        node = self.nodes[node_id]
        first = len(self.nodes)
        for quadrant in range(4):
            self.nodes.append(QuadTreeNode(node.bounds.subdivide(quadrant), depth=node.depth + 1))
        node.children = [first, first + 1, first + 2, first + 3]

    def calculate_force(
        self,
        x: float,
        y: float,
        gravitational_constant: float = 1.0,
        softening_sq: float = 0.0,
        exclude: int = -1,
    ) -> Tuple[float, float]:
        """
        Calculate approximate gravitational acceleration at a point.

        Uses Barnes-Hut approximation: if a cluster is sufficiently
        far away (size/distance < theta), treat it as a single mass.

        Args:
            x, y: Query position
            gravitational_constant: G
            softening_sq: Squared softening length
            exclude: Particle index that must not act on itself

        Returns:
            (ax, ay) acceleration vector (attractive, toward other particles)
        """
        return self._calculate_force(ROOT, x, y, gravitational_constant, softening_sq, exclude)

    def _calculate_force(
        self,
        node_id: int,
        x: float,
        y: float,
        g: float,
        softening_sq: float,
        exclude: int,
    ) -> Tuple[float, float]:
        """Recursively calculate the acceleration contribution from a node."""
        node = self.nodes[node_id]
        if node.total_mass == 0.0:
            return 0.0, 0.0

        mass = node.total_mass
        cx = node.center_of_mass_x
        cy = node.center_of_mass_y

        if node.is_leaf():
            if exclude in node.residents:
                # Skip self-interaction
                if len(node.residents) == 1:
                    return 0.0, 0.0
                # Bucket leaf: drop only the excluded resident
                bx, by, bm = self._bodies[exclude]
                rest = mass - bm
                if rest <= 0.0:
                    return 0.0, 0.0
                cx = (cx * mass - bx * bm) / rest
                cy = (cy * mass - by * bm) / rest
                mass = rest
            return softened_acceleration(cx - x, cy - y, mass, g, softening_sq)

        # Internal nodes act with their full aggregate, even when they
        # hold the excluded particle
        dx = cx - x
        dy = cy - y
        if should_approximate(node.bounds.size, dx * dx + dy * dy, self.theta):
            # Treat as single mass
            return softened_acceleration(dx, dy, mass, g, softening_sq)

        # Node is too close - recurse into children
        ax, ay = 0.0, 0.0
        assert node.children is not None
        for child in node.children:
            cax, cay = self._calculate_force(child, x, y, g, softening_sq, exclude)
            ax += cax
            ay += cay
        return ax, ay

    @classmethod
    def build(
        cls,
        positions: Sequence[Sequence[float]],
        masses: Sequence[float],
        theta: float = 0.5,
        padding: float = 10.0,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ) -> QuadTree:
        """
        Build a quadtree enclosing all given particles.

        Args:
            positions: (x, y) per particle; the sequence index is the particle index
            masses: Mass per particle
            theta: Barnes-Hut threshold
            padding: Margin around the bounding box
            max_depth: Depth at which leaves stop subdividing

        Returns:
            QuadTree with all particles inserted in input order, or an
            empty tree over the unit square if there are none
        """
        points = [(float(p[0]), float(p[1])) for p in positions]
        tree = cls(Bounds.enclosing(points, padding=padding), theta=theta, max_depth=max_depth)

        for i, (x, y) in enumerate(points):
            tree.insert(i, x, y, float(masses[i]))

        return tree


__all__ = ["DEFAULT_MAX_DEPTH", "QuadTree", "QuadTreeNode"]
