"""
Input validation utilities for the particle simulation.

Provides centralized validation functions for particles and simulation
configuration. Raises descriptive exceptions on invalid input so that a
misconfigured simulation fails at construction rather than mid-run.
"""

from __future__ import annotations

import math
from typing import Any, Optional

import numpy as np

from .types import Particle


class ValidationError(ValueError):
    """Base exception for simulation validation errors."""

    pass


class InvalidParticleError(ValidationError):
    """Raised when a particle is malformed (bad mass or coordinates)."""

    pass


class InvalidConfigurationError(ValidationError):
    """Raised when a simulation parameter is out of range."""

    pass


def validate_particle(particle: Particle, index: Optional[int] = None) -> Particle:
    """
    Validate a single particle.

    Args:
        particle: Particle to check
        index: Position in the input sequence (for error messages)

    Returns:
        The same particle

    Raises:
        InvalidParticleError: If mass is not strictly positive or any
            coordinate is not finite
    """
    label = "Particle" if index is None else f"Particle {index}"

    for attr in ("x", "y", "vx", "vy", "ax", "ay"):
        value = getattr(particle, attr)
        if not math.isfinite(value):
            raise InvalidParticleError(f"{label}: {attr} must be finite, got {value}")

    mass = particle.mass
    if not math.isfinite(mass) or mass <= 0:
        raise InvalidParticleError(f"{label}: mass must be positive and finite, got {mass}")

    return particle


def validate_positive(value: Any, name: str) -> float:
    """
    Validate a strictly positive, finite parameter.

    Args:
        value: Parameter value
        name: Parameter name (for error messages)

    Returns:
        Validated value as float

    Raises:
        InvalidConfigurationError: If value <= 0 or not finite
    """
    value = float(value)
    if not math.isfinite(value) or value <= 0:
        raise InvalidConfigurationError(f"{name} must be positive and finite, got {value}")
    return value


def validate_non_negative(value: Any, name: str) -> float:
    """
    Validate a finite parameter that may be zero.

    Raises:
        InvalidConfigurationError: If value < 0 or not finite
    """
    value = float(value)
    if not math.isfinite(value) or value < 0:
        raise InvalidConfigurationError(f"{name} must be >= 0 and finite, got {value}")
    return value


def validate_theta(theta: Any) -> float:
    """
    Validate the Barnes-Hut opening angle.

    Args:
        theta: Opening angle (0 = exact, 0.5-1.0 typical)

    Returns:
        Validated theta

    Raises:
        InvalidConfigurationError: If theta is missing, negative or not finite
    """
    if theta is None:
        raise InvalidConfigurationError("theta is required for Barnes-Hut simulation")
    return validate_non_negative(theta, "theta")


def validate_merge_threshold(threshold: Any) -> Optional[float]:
    """Validate merge distance. None or 0 disables merging."""
    if threshold is None:
        return None
    threshold = validate_non_negative(threshold, "merge_threshold")
    return threshold if threshold > 0 else None


def validate_max_depth(max_depth: Any) -> int:
    """
    Validate maximum quadtree depth.

    Raises:
        InvalidConfigurationError: If max_depth < 1
    """
    depth = int(max_depth)
    if depth < 1:
        raise InvalidConfigurationError(f"max_depth must be >= 1, got {depth}")
    return depth


def validate_dtype(dtype: Any) -> np.dtype:
    """
    Validate the floating point type used for particle state.

    Args:
        dtype: numpy dtype or anything numpy.dtype() accepts

    Returns:
        Normalized numpy dtype

    Raises:
        InvalidConfigurationError: If dtype is not a floating point type
    """
    try:
        normalized = np.dtype(dtype)
    except TypeError as exc:
        raise InvalidConfigurationError(f"dtype not understood: {dtype!r}") from exc

    if not np.issubdtype(normalized, np.floating):
        raise InvalidConfigurationError(f"dtype must be a floating point type, got {normalized}")
    return normalized


__all__ = [
    "ValidationError",
    "InvalidParticleError",
    "InvalidConfigurationError",
    "validate_particle",
    "validate_positive",
    "validate_non_negative",
    "validate_theta",
    "validate_merge_threshold",
    "validate_max_depth",
    "validate_dtype",
]
