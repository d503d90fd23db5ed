"""
Gravitational particle simulations.

Two modes share the BaseSimulation tick skeleton
(prune -> advance -> commit):

- BarnesHutSimulation: forces from a quadtree rebuilt every tick,
  O(n log n) per tick, accuracy controlled by theta
- DirectSimulation: exact pairwise forces, O(n^2) per tick, with
  optional collision merging

The module-level create/tick/particle_count/positions functions are the
small surface a host embedding needs.
"""

from __future__ import annotations

from typing import Any, Optional, Sequence

import numpy as np

from .base import BaseSimulation
from .forces import direct_accelerations
from .integrator import drift, kick, leapfrog_step
from .merging import apply_merges, detect_merges, resolve_representatives
from .spatial.quadtree import DEFAULT_MAX_DEPTH, QuadTree
from .types import EventCallback, ParticleLike, ParticleStatus, Vec2
from .validation import (
    validate_max_depth,
    validate_merge_threshold,
    validate_positive,
    validate_theta,
)


class BarnesHutSimulation(BaseSimulation):
    """
    Barnes-Hut gravity simulation.

    Each tick builds a quadtree over the surviving particles, then
    advances every particle with a leapfrog step whose new acceleration
    comes from the tree walk at the particle's updated position. The tree
    is built from pre-tick positions and discarded at the end of the tick,
    so the result does not depend on the order particles are advanced in.

    Example:
        sim = BarnesHutSimulation(
            particles=particles,
            gravitational_constant=100.0,
            removal_radius=10000.0,
            softening_length=10.0,
            theta=0.7,
        )
        for _ in range(100):
            sim.tick()
    """

    def __init__(
        self,
        particles: Optional[Sequence[ParticleLike]] = None,
        *,
        gravitational_constant: float = 1.0,
        removal_radius: float = 1e4,
        softening_length: float = 1.0,
        dtype: Any = np.float64,
        on_start: Optional[EventCallback] = None,
        on_tick: Optional[EventCallback] = None,
        on_end: Optional[EventCallback] = None,
        # Barnes-Hut-specific parameters
        theta: float = 0.5,
        padding: float = 10.0,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ) -> None:
        """
        Initialize Barnes-Hut simulation.

        Args:
            particles: Initial particles
            gravitational_constant: G
            removal_radius: Particles further than this from the origin are removed
            softening_length: Plummer softening length
            dtype: Floating point type for particle state
            on_start: Callback fired before the first tick
            on_tick: Callback fired after every committed tick
            on_end: Callback fired by stop()
            theta: Opening angle (0 = exact, 0.5-1.0 typical, lower = more accurate)
            padding: Margin between the outermost particles and the tree bounds
            max_depth: Depth at which tree leaves stop subdividing
        """
        super().__init__(
            particles,
            gravitational_constant=gravitational_constant,
            removal_radius=removal_radius,
            softening_length=softening_length,
            dtype=dtype,
            on_start=on_start,
            on_tick=on_tick,
            on_end=on_end,
        )
        self._theta: float = validate_theta(theta)
        self._padding: float = validate_positive(padding, "padding")
        self._max_depth: int = validate_max_depth(max_depth)
        self._dropped_count: int = 0

    @property
    def theta(self) -> float:
        """Get Barnes-Hut opening angle."""
        return self._theta

    @property
    def padding(self) -> float:
        """Get margin around the tree bounds."""
        return self._padding

    @property
    def max_depth(self) -> int:
        """Get maximum tree depth."""
        return self._max_depth

    @property
    def dropped_count(self) -> int:
        """Total particles left out of a tree because they fell outside its bounds."""
        return self._dropped_count

    def build_tree(self) -> QuadTree:
        """Build a quadtree over the current particles."""
        return QuadTree.build(
            self._positions.tolist(),
            self._masses.tolist(),
            theta=self._theta,
            padding=self._padding,
            max_depth=self._max_depth,
        )

    def _advance(self) -> int:
        tree = self.build_tree()
        self._dropped_count += tree.dropped_count

        g = self._gravitational_constant
        softening_sq = self._softening_sq
        n = self.particle_count

        positions = self._positions.tolist()
        velocities = self._velocities.tolist()
        accelerations = self._accelerations.tolist()

        new_positions = np.empty((n, 2), dtype=self._dtype)
        new_velocities = np.empty((n, 2), dtype=self._dtype)
        new_accelerations = np.empty((n, 2), dtype=self._dtype)

        for i in range(n):

            def field(x: float, y: float, index: int = i) -> Vec2:
                return tree.calculate_force(x, y, g, softening_sq, exclude=index)

            pos, vel, acc = leapfrog_step(positions[i], velocities[i], accelerations[i], field)
            new_positions[i] = pos
            new_velocities[i] = vel
            new_accelerations[i] = acc

        self._positions = new_positions
        self._velocities = new_velocities
        self._accelerations = new_accelerations
        return 0


class DirectSimulation(BaseSimulation):
    """
    Direct pairwise gravity simulation with optional collision merging.

    Forces are the exact softened sum over all other active particles.
    With a merge_threshold, particles closer than the threshold coalesce
    before integration: the survivor takes the mass-weighted mean of
    position, velocity and acceleration and the summed mass.

    Example:
        sim = DirectSimulation(
            particles=particles,
            gravitational_constant=1.0,
            removal_radius=1000.0,
            softening_length=1.0,
            merge_threshold=2.0,
        )
        sim.tick()
    """

    def __init__(
        self,
        particles: Optional[Sequence[ParticleLike]] = None,
        *,
        gravitational_constant: float = 1.0,
        removal_radius: float = 1e4,
        softening_length: float = 1.0,
        dtype: Any = np.float64,
        on_start: Optional[EventCallback] = None,
        on_tick: Optional[EventCallback] = None,
        on_end: Optional[EventCallback] = None,
        # Direct-specific parameters
        merge_threshold: Optional[float] = None,
    ) -> None:
        """
        Initialize direct simulation.

        Args:
            particles: Initial particles
            gravitational_constant: G
            removal_radius: Particles further than this from the origin are removed
            softening_length: Plummer softening length
            dtype: Floating point type for particle state
            on_start: Callback fired before the first tick
            on_tick: Callback fired after every committed tick
            on_end: Callback fired by stop()
            merge_threshold: Unsoftened separation below which particles merge.
                None or 0 disables merging.
        """
        super().__init__(
            particles,
            gravitational_constant=gravitational_constant,
            removal_radius=removal_radius,
            softening_length=softening_length,
            dtype=dtype,
            on_start=on_start,
            on_tick=on_tick,
            on_end=on_end,
        )
        self._merge_threshold: Optional[float] = validate_merge_threshold(merge_threshold)

    @property
    def merge_threshold(self) -> Optional[float]:
        """Get merge distance (None when merging is disabled)."""
        return self._merge_threshold

    def _advance(self) -> int:
        merged = 0
        if self._merge_threshold is not None:
            merged = self._resolve_merges()

        active = self._active_mask()
        new_positions = drift(self._positions, self._velocities, self._accelerations)
        new_accelerations = direct_accelerations(
            new_positions,
            self._positions,
            self._masses,
            self._gravitational_constant,
            self._softening_sq,
            active=active,
        )
        new_velocities = kick(self._velocities, self._accelerations, new_accelerations)

        self._positions = new_positions.astype(self._dtype, copy=False)
        self._velocities = new_velocities.astype(self._dtype, copy=False)
        self._accelerations = new_accelerations.astype(self._dtype, copy=False)
        return merged

    def _resolve_merges(self) -> int:
        """Coalesce close particles; absorbed ones are marked merged."""
        assert self._merge_threshold is not None
        parent = detect_merges(self._positions, self._merge_threshold, active=self._active_mask())
        representatives = resolve_representatives(parent)
        absorbed = representatives != np.arange(len(representatives))
        count = int(absorbed.sum())
        if not count:
            return 0

        (
            self._positions,
            self._velocities,
            self._accelerations,
            self._masses,
        ) = apply_merges(
            self._positions,
            self._velocities,
            self._accelerations,
            self._masses,
            representatives,
        )
        self._status[absorbed] = ParticleStatus.merged
        self._merged_into[absorbed] = representatives[absorbed]
        return count


# -----------------------------------------------------------------------------
# Host-facing functions
# -----------------------------------------------------------------------------


def create(
    particles: Sequence[ParticleLike],
    gravitational_constant: float,
    removal_radius: float,
    softening_length: float,
    theta: Optional[float] = None,
    **kwargs: Any,
) -> BaseSimulation:
    """
    Create a simulation.

    Args:
        particles: Initial particles
        gravitational_constant: G
        removal_radius: Particles further than this from the origin are removed
        softening_length: Plummer softening length
        theta: Barnes-Hut opening angle. When given, a BarnesHutSimulation is
            created; when omitted, a DirectSimulation.
        **kwargs: Further mode-specific options (padding, max_depth,
            merge_threshold, dtype, event callbacks)

    Returns:
        The new simulation
    """
    if theta is not None:
        return BarnesHutSimulation(
            particles,
            gravitational_constant=gravitational_constant,
            removal_radius=removal_radius,
            softening_length=softening_length,
            theta=theta,
            **kwargs,
        )
    return DirectSimulation(
        particles,
        gravitational_constant=gravitational_constant,
        removal_radius=removal_radius,
        softening_length=softening_length,
        **kwargs,
    )


def tick(simulation: BaseSimulation) -> None:
    """Advance a simulation by exactly one step."""
    simulation.tick()


def particle_count(simulation: BaseSimulation) -> int:
    """Number of live particles."""
    return simulation.particle_count


def positions(simulation: BaseSimulation) -> list[Vec2]:
    """Snapshot of live particle positions in array order."""
    return simulation.positions()


__all__ = [
    "BarnesHutSimulation",
    "DirectSimulation",
    "create",
    "tick",
    "particle_count",
    "positions",
]
