"""
Base class for particle simulations.

This module provides the abstract base class that defines the common
interface and shared functionality for all simulation modes:

- BaseSimulation: particle storage, immutable configuration, event
  system, and the per-tick prune/advance/commit skeleton

Subclasses implement _advance(), which computes forces and integrates
the surviving particles for one tick.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Optional, Sequence

import numpy as np

if TYPE_CHECKING:
    from typing_extensions import Self

from .types import Event, EventCallback, EventType, Particle, ParticleLike, ParticleStatus, Vec2
from .validation import (
    InvalidParticleError,
    validate_dtype,
    validate_particle,
    validate_positive,
)


class BaseSimulation(ABC):
    """
    Abstract base class for all simulation modes.

    Provides shared infrastructure:
    - Particle state held as numpy arrays in a configurable float dtype
    - Read-only configuration, fixed at construction
    - Event system (start/tick/end events)
    - Pruning of escaped particles and compaction at commit

    Example:
        sim = SomeSimulation(
            particles=[{"x": 0, "y": 0, "mass": 100}, {"x": 100, "y": 0}],
            gravitational_constant=1.0,
            removal_radius=1000.0,
            softening_length=1.0,
        )
        sim.tick()

        for x, y in sim.positions():
            print(f"({x}, {y})")
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
    ) -> None:
        """
        Initialize simulation with configuration.

        Args:
            particles: Initial particles (Particle objects, dicts, or objects
                with x/y/vx/vy/mass or position/velocity/mass attributes)
            gravitational_constant: G
            removal_radius: Particles further than this from the origin are removed
            softening_length: Plummer softening length (must be positive)
            dtype: Floating point type for particle state (float32 or float64)
            on_start: Callback fired before the first tick
            on_tick: Callback fired after every committed tick
            on_end: Callback fired by stop()

        Raises:
            InvalidConfigurationError: If a parameter is out of range
            InvalidParticleError: If a particle has a bad mass or coordinate
        """
        self._gravitational_constant: float = validate_positive(
            gravitational_constant, "gravitational_constant"
        )
        self._removal_radius: float = validate_positive(removal_radius, "removal_radius")
        self._softening_length: float = validate_positive(softening_length, "softening_length")
        self._softening_sq: float = self._softening_length * self._softening_length
        self._dtype: np.dtype = validate_dtype(dtype)

        self._events: dict[EventType, EventCallback] = {}
        self._tick_count: int = 0

        self._load(particles or [])

        # Register event callbacks
        if on_start:
            self._events[EventType.start] = on_start
        if on_tick:
            self._events[EventType.tick] = on_tick
        if on_end:
            self._events[EventType.end] = on_end

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def gravitational_constant(self) -> float:
        """Get gravitational constant G."""
        return self._gravitational_constant

    @property
    def removal_radius(self) -> float:
        """Get distance from the origin beyond which particles are removed."""
        return self._removal_radius

    @property
    def softening_length(self) -> float:
        """Get Plummer softening length."""
        return self._softening_length

    @property
    def dtype(self) -> np.dtype:
        """Get floating point type of the particle state."""
        return self._dtype

    @property
    def tick_count(self) -> int:
        """Get number of ticks run so far."""
        return self._tick_count

    @property
    def particle_count(self) -> int:
        """Get number of live particles."""
        return len(self._masses)

    @property
    def particles(self) -> list[Particle]:
        """Snapshot of the live particles, in array order."""
        return [
            Particle(
                x=float(p[0]),
                y=float(p[1]),
                vx=float(v[0]),
                vy=float(v[1]),
                mass=float(m),
                ax=float(a[0]),
                ay=float(a[1]),
                status=ParticleStatus(int(s)),
                merged_into=int(t) if t >= 0 else None,
            )
            for p, v, a, m, s, t in zip(
                self._positions,
                self._velocities,
                self._accelerations,
                self._masses,
                self._status,
                self._merged_into,
            )
        ]

    def positions(self) -> list[Vec2]:
        """Positions of all live particles as (x, y) tuples, in array order."""
        return [(float(x), float(y)) for x, y in self._positions]

    def positions_array(self) -> np.ndarray:
        """Copy of the (n, 2) position array in the simulation dtype."""
        return self._positions.copy()

    def positions_flat(self) -> np.ndarray:
        """
        Positions as one flat buffer [x0, y0, x1, y1, ...].

        This is the layout a rendering host usually uploads in one go.
        """
        return self._positions.ravel().copy()

    # -------------------------------------------------------------------------
    # Event System
    # -------------------------------------------------------------------------

    def on(self, event: EventType | str, callback: EventCallback) -> Self:
        """
        Subscribe to a simulation event.

        Args:
            event: Event type (EventType enum or string name)
            callback: Function to call when event fires

        Returns:
            self (for chaining)
        """
        if isinstance(event, str):
            event = EventType[event]
        self._events[event] = callback
        return self

    def trigger(self, event: Event) -> None:
        """
        Trigger an event, calling the registered callback.

        Args:
            event: Event payload with type and optional data
        """
        event_type = event.get("type")
        if event_type is not None and event_type in self._events:
            self._events[event_type](event)

    # -------------------------------------------------------------------------
    # Lifecycle Methods
    # -------------------------------------------------------------------------

    def tick(self) -> Self:
        """
        Advance the simulation by exactly one step.

        Prunes escaped particles, lets the subclass compute forces and
        integrate, then commits the new particle set and fires a tick
        event.

        Returns:
            self (for chaining)
        """
        if self._tick_count == 0:
            self.trigger({"type": EventType.start, "tick": 0, "particle_count": self.particle_count})

        removed = self._prune()
        merged = self._advance()
        self._commit()
        self._tick_count += 1

        self.trigger(
            {
                "type": EventType.tick,
                "tick": self._tick_count,
                "particle_count": self.particle_count,
                "removed": removed,
                "merged": merged,
            }
        )
        return self

    def stop(self) -> Self:
        """
        Signal that the host is done with the simulation.

        Returns:
            self (for chaining)
        """
        self.trigger({"type": EventType.end, "tick": self._tick_count, "particle_count": self.particle_count})
        return self

    @abstractmethod
    def _advance(self) -> int:
        """
        Compute forces and integrate the active particles for one tick.

        Implementations replace the state arrays and may mark particles
        as merged; _commit() discards them afterwards.

        Returns:
            Number of particles absorbed by merges during this tick
        """
        pass

    # -------------------------------------------------------------------------
    # Utility Methods
    # -------------------------------------------------------------------------

    def _load(self, particles: Sequence[ParticleLike]) -> None:
        """Normalize and validate input particles into the state arrays."""
        normalized = [
            validate_particle(_to_particle(data, i), i) for i, data in enumerate(particles)
        ]
        n = len(normalized)
        dtype = self._dtype

        self._positions = np.array([(p.x, p.y) for p in normalized], dtype=dtype).reshape(n, 2)
        self._velocities = np.array([(p.vx, p.vy) for p in normalized], dtype=dtype).reshape(n, 2)
        self._accelerations = np.array([(p.ax, p.ay) for p in normalized], dtype=dtype).reshape(n, 2)
        self._masses = np.array([p.mass for p in normalized], dtype=dtype)
        self._status = np.full(n, ParticleStatus.active, dtype=np.int8)
        self._merged_into = np.full(n, -1, dtype=np.int64)

    def _active_mask(self) -> np.ndarray:
        return self._status == ParticleStatus.active

    def _prune(self) -> int:
        """
        Remove particles beyond the removal radius.

        Removal is permanent. The survivors are compacted right away so
        that force evaluation only ever sees them.

        Returns:
            Number of particles removed
        """
        distance = np.hypot(self._positions[:, 0], self._positions[:, 1])
        escaped = distance > self._removal_radius
        count = int(escaped.sum())
        if count:
            self._status[escaped] = ParticleStatus.removed
            self._compact()
        return count

    def _commit(self) -> None:
        """Drop every particle that is no longer active."""
        if not self._active_mask().all():
            self._compact()

    def _compact(self) -> None:
        keep = self._active_mask()
        self._positions = self._positions[keep]
        self._velocities = self._velocities[keep]
        self._accelerations = self._accelerations[keep]
        self._masses = self._masses[keep]
        self._status = self._status[keep]
        self._merged_into = self._merged_into[keep]

    def __repr__(self) -> str:
        return f"{type(self).__name__}(particles={self.particle_count}, tick={self._tick_count})"


def _to_particle(data: ParticleLike, index: int) -> Particle:
    """Convert a Particle, dict, or generic object into a fresh active Particle."""
    try:
        if isinstance(data, Particle):
            particle = Particle(
                x=data.x, y=data.y, vx=data.vx, vy=data.vy, mass=data.mass, ax=data.ax, ay=data.ay
            )
        elif isinstance(data, dict):
            if "position" in data:
                particle = Particle.from_vectors(
                    data["position"], data.get("velocity", (0.0, 0.0)), data.get("mass", 1.0)
                )
            else:
                particle = Particle(**data)
        elif hasattr(data, "position"):
            particle = Particle.from_vectors(
                data.position, getattr(data, "velocity", (0.0, 0.0)), getattr(data, "mass", 1.0)
            )
        else:
            # Generic object - copy attributes
            if not (hasattr(data, "x") and hasattr(data, "y")):
                raise InvalidParticleError(
                    f"Particle {index}: malformed input {data!r} (needs x and y, or position)"
                )
            particle = Particle(x=0.0, y=0.0)
            for attr in ["x", "y", "vx", "vy", "mass", "ax", "ay"]:
                if hasattr(data, attr):
                    setattr(particle, attr, getattr(data, attr))
    except (TypeError, KeyError, IndexError) as exc:
        raise InvalidParticleError(f"Particle {index}: malformed input {data!r}") from exc

    try:
        for attr in ["x", "y", "vx", "vy", "mass", "ax", "ay"]:
            setattr(particle, attr, float(getattr(particle, attr)))
    except (TypeError, ValueError) as exc:
        raise InvalidParticleError(f"Particle {index}: non-numeric field in {data!r}") from exc

    particle.status = ParticleStatus.active
    particle.merged_into = None
    return particle


__all__ = ["BaseSimulation"]
