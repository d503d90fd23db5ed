"""
Softened gravity and the Barnes-Hut opening-angle test.

The force law is Plummer-softened Newtonian gravity:

    r^2 = d^2 + eps^2
    a   = (dx, dy) * G * m / (r^2 * sqrt(r^2))

where (dx, dy) points from the query position to the source mass.
Softening bounds the acceleration as two masses approach coincidence,
at the cost of slightly underestimating it at very short range.
"""

from __future__ import annotations

import math
from typing import Optional, Tuple

import numpy as np


def softened_acceleration(
    dx: float,
    dy: float,
    mass: float,
    gravitational_constant: float,
    softening_sq: float,
) -> Tuple[float, float]:
    """
    Acceleration induced on a unit test point by a point mass.

    Args:
        dx, dy: Displacement from the query point to the source
        mass: Source mass
        gravitational_constant: G
        softening_sq: Squared softening length

    Returns:
        (ax, ay) acceleration vector, pointing at the source
    """
    r_sq = dx * dx + dy * dy + softening_sq
    if r_sq <= 0.0:
        return 0.0, 0.0
    factor = gravitational_constant * mass / (r_sq * math.sqrt(r_sq))
    return dx * factor, dy * factor


def should_approximate(size: float, dist_sq: float, theta: float) -> bool:
    """
    Barnes-Hut criterion: s/d < theta, compared in squared form.

    Args:
        size: Edge length of the node's region
        dist_sq: Squared distance from the query to the node's center of mass
        theta: Opening angle

    Returns:
        True if the node may be treated as a single mass
    """
    return size * size < theta * theta * dist_sq


def direct_accelerations(
    queries: np.ndarray,
    sources: np.ndarray,
    masses: np.ndarray,
    gravitational_constant: float,
    softening_sq: float,
    active: Optional[np.ndarray] = None,
    exclude_self: bool = True,
) -> np.ndarray:
    """
    Exact pairwise accelerations, O(n * m).

    Query i is paired with every active source j; with exclude_self the
    pair (i, i) is skipped, so queries and sources must then describe
    the same particles (queries may be at updated positions).

    Args:
        queries: (n, 2) positions to evaluate the field at
        sources: (m, 2) source positions
        masses: (m,) source masses
        gravitational_constant: G
        softening_sq: Squared softening length
        active: Optional (m,) boolean mask of contributing sources
        exclude_self: Skip the i == j pair

    Returns:
        (n, 2) acceleration array in the dtype of queries
    """
    n = len(queries)
    m = len(sources)
    result = np.zeros((n, 2), dtype=queries.dtype)
    if n == 0 or m == 0:
        return result

    # Displacement from query i to source j
    dx = sources[np.newaxis, :, 0] - queries[:, np.newaxis, 0]
    dy = sources[np.newaxis, :, 1] - queries[:, np.newaxis, 1]
    r_sq = dx * dx + dy * dy + softening_sq

    with np.errstate(divide="ignore", invalid="ignore"):
        factor = gravitational_constant * masses[np.newaxis, :] / (r_sq * np.sqrt(r_sq))
    factor = np.where(r_sq > 0, factor, 0.0)

    if exclude_self:
        if n != m:
            raise ValueError(f"exclude_self needs matching queries/sources, got {n} and {m}")
        np.fill_diagonal(factor, 0.0)
    if active is not None:
        factor = factor * active[np.newaxis, :]

    result[:, 0] = (dx * factor).sum(axis=1)
    result[:, 1] = (dy * factor).sum(axis=1)
    return result


__all__ = ["softened_acceleration", "should_approximate", "direct_accelerations"]
