"""
Simulation diagnostics.

Provides conserved-quantity measures for checking a run:
- Total mass and center of mass
- Linear momentum
- Kinetic, potential and total energy

All metrics work on Particle snapshots from any simulation mode
(e.g. sim.particles). Inactive particles are ignored.
"""

from __future__ import annotations

import math
from typing import Sequence

from .types import Particle, Vec2


def _live(particles: Sequence[Particle]) -> list[Particle]:
    return [p for p in particles if p.is_active()]


def total_mass(particles: Sequence[Particle]) -> float:
    """Sum of masses of active particles."""
    return math.fsum(p.mass for p in _live(particles))


def center_of_mass(particles: Sequence[Particle]) -> Vec2:
    """
    Mass-weighted mean position.

    Returns:
        (x, y), or (0, 0) if there are no active particles
    """
    live = _live(particles)
    mass = math.fsum(p.mass for p in live)
    if mass == 0:
        return 0.0, 0.0
    x = math.fsum(p.x * p.mass for p in live) / mass
    y = math.fsum(p.y * p.mass for p in live) / mass
    return x, y


def linear_momentum(particles: Sequence[Particle]) -> Vec2:
    """Total momentum (sum of m * v)."""
    live = _live(particles)
    return (
        math.fsum(p.vx * p.mass for p in live),
        math.fsum(p.vy * p.mass for p in live),
    )


def kinetic_energy(particles: Sequence[Particle]) -> float:
    """Sum of 0.5 * m * |v|^2."""
    return math.fsum(0.5 * p.mass * (p.vx * p.vx + p.vy * p.vy) for p in _live(particles))


def potential_energy(
    particles: Sequence[Particle],
    gravitational_constant: float = 1.0,
    softening_length: float = 0.0,
) -> float:
    """
    Softened gravitational potential energy.

    Each pair contributes -G * m_i * m_j / sqrt(d^2 + eps^2), the
    potential consistent with the Plummer-softened force law.

    Time Complexity: O(n^2)
    """
    live = _live(particles)
    softening_sq = softening_length * softening_length
    terms = []
    for i in range(len(live)):
        a = live[i]
        for j in range(i + 1, len(live)):
            b = live[j]
            dx = a.x - b.x
            dy = a.y - b.y
            r = math.sqrt(dx * dx + dy * dy + softening_sq)
            if r > 0:
                terms.append(-gravitational_constant * a.mass * b.mass / r)
    return math.fsum(terms)


def total_energy(
    particles: Sequence[Particle],
    gravitational_constant: float = 1.0,
    softening_length: float = 0.0,
) -> float:
    """Kinetic plus softened potential energy."""
    return kinetic_energy(particles) + potential_energy(
        particles, gravitational_constant, softening_length
    )


__all__ = [
    "total_mass",
    "center_of_mass",
    "linear_momentum",
    "kinetic_energy",
    "potential_energy",
    "total_energy",
]
