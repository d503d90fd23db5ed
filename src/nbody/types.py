"""
Common types for the particle simulation.

This module provides the fundamental types shared by all simulation modes:
- Particle: Point mass with position, velocity, acceleration and status
- ParticleStatus: Lifecycle state of a particle within a tick
- EventType: Simulation lifecycle events
- Event: Event payload for callbacks
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Callable, Dict, Optional, Sequence, Tuple, TypedDict, Union

Vec2 = Tuple[float, float]


class ParticleStatus(IntEnum):
    """
    Lifecycle state of a particle.

    - active: Live particle, integrated every tick
    - removed: Escaped past the removal radius
    - merged: Absorbed into another particle (see Particle.merged_into)
    """

    active = 0
    removed = 1
    merged = 2


class EventType(IntEnum):
    """
    Simulation lifecycle events.

    - start: First tick is about to run
    - tick: Fired once per committed tick
    - end: Simulation was stopped by the host
    """

    start = 0
    tick = 1
    end = 2


class Event(TypedDict, total=False):
    """Event payload passed to event listeners."""

    type: EventType
    tick: int
    particle_count: int
    removed: int
    merged: int


@dataclass
class Particle:
    """
    A point mass.

    Attributes:
        x, y: Position
        vx, vy: Velocity (distance per tick)
        mass: Strictly positive mass
        ax, ay: Acceleration from the previous tick (used by leapfrog)
        status: Lifecycle state
        merged_into: Index of the absorbing particle when status is merged
    """

    x: float
    y: float
    vx: float = 0.0
    vy: float = 0.0
    mass: float = 1.0
    ax: float = 0.0
    ay: float = 0.0
    status: ParticleStatus = ParticleStatus.active
    merged_into: Optional[int] = None

    @classmethod
    def from_vectors(
        cls,
        position: Sequence[float],
        velocity: Sequence[float] = (0.0, 0.0),
        mass: float = 1.0,
    ) -> Particle:
        """Build a particle from (x, y) position and (vx, vy) velocity pairs."""
        return cls(
            x=float(position[0]),
            y=float(position[1]),
            vx=float(velocity[0]),
            vy=float(velocity[1]),
            mass=float(mass),
        )

    @property
    def position(self) -> Vec2:
        return (self.x, self.y)

    @property
    def velocity(self) -> Vec2:
        return (self.vx, self.vy)

    @property
    def acceleration(self) -> Vec2:
        return (self.ax, self.ay)

    def is_active(self) -> bool:
        """True if the particle takes part in the next tick."""
        return self.status == ParticleStatus.active


# Accepted input for simulation constructors
ParticleLike = Union[Particle, Dict[str, Any], Any]

# Event listener signature
EventCallback = Callable[[Optional[Event]], None]


__all__ = [
    "Vec2",
    "ParticleStatus",
    "EventType",
    "Event",
    "EventCallback",
    "Particle",
    "ParticleLike",
]
