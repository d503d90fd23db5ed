"""
nbody: Barnes-Hut gravitational particle simulation in Python.

This package advances a set of 2-D point masses one discrete tick at a
time and exposes their positions to a host that draws them.

Available components:
- spatial: Square bounds and the Barnes-Hut quadtree
- forces: Plummer-softened gravity and the opening-angle test
- integrator: Leapfrog (velocity-Verlet) stepping
- merging: Collision merging for direct mode
- simulation: Barnes-Hut and direct simulations plus host-facing functions
- metrics: Mass, momentum and energy diagnostics
"""

__version__ = "0.1.0"

# Base class for building simulations
from .base import BaseSimulation

# Force model
from .forces import direct_accelerations, should_approximate, softened_acceleration

# Integration
from .integrator import drift, kick, leapfrog_step

# Collision merging
from .merging import apply_merges, detect_merges, resolve_representative, resolve_representatives

# Diagnostics
from .metrics import (
    center_of_mass,
    kinetic_energy,
    linear_momentum,
    potential_energy,
    total_energy,
    total_mass,
)

# Simulations
from .simulation import (
    BarnesHutSimulation,
    DirectSimulation,
    create,
    particle_count,
    positions,
    tick,
)

# Spatial data structures
from .spatial import Bounds, Quadrant, QuadTree, QuadTreeNode
from .types import (
    Event,
    EventType,
    Particle,
    ParticleLike,
    ParticleStatus,
)

# Validation utilities
from .validation import (
    InvalidConfigurationError,
    InvalidParticleError,
    ValidationError,
)

__all__ = [
    # Version
    "__version__",
    # Shared types
    "Particle",
    "ParticleStatus",
    "ParticleLike",
    "EventType",
    "Event",
    # Base class
    "BaseSimulation",
    # Simulations
    "BarnesHutSimulation",
    "DirectSimulation",
    "create",
    "tick",
    "particle_count",
    "positions",
    # Force model
    "softened_acceleration",
    "should_approximate",
    "direct_accelerations",
    # Integration
    "drift",
    "kick",
    "leapfrog_step",
    # Merging
    "detect_merges",
    "resolve_representative",
    "resolve_representatives",
    "apply_merges",
    # Metrics
    "total_mass",
    "center_of_mass",
    "linear_momentum",
    "kinetic_energy",
    "potential_energy",
    "total_energy",
    # Spatial data structures
    "Bounds",
    "Quadrant",
    "QuadTree",
    "QuadTreeNode",
    # Validation
    "ValidationError",
    "InvalidParticleError",
    "InvalidConfigurationError",
]
