"""
Collision merging for direct-mode simulation.

Particles closer than a threshold coalesce into one (perfectly inelastic
collision). Resolution runs in two explicit passes:

1. detect_merges: ascending index scan. For each particle i, every later
   particle j that is close to i and not yet absorbed is attached to i.
2. resolve_representatives: union-find pass that follows each chain to
   its root, so that j attached to an already-absorbed i ends up in i's
   final representative rather than in i itself.

The result depends on index order: when three or more particles are
mutually close, ties resolve left to right, not by distance.
"""

from __future__ import annotations

from typing import Optional, Tuple

import numpy as np


def detect_merges(
    positions: np.ndarray,
    threshold: float,
    active: Optional[np.ndarray] = None,
) -> np.ndarray:
    """
    Find close pairs by ascending index scan.

    Args:
        positions: (n, 2) particle positions
        threshold: Unsoftened separation below which two particles merge
        active: Optional (n,) boolean mask; inactive particles never merge

    Returns:
        (n,) parent array: parent[j] = i if j was attached to i, else -1
    """
    n = len(positions)
    parent = np.full(n, -1, dtype=np.int64)
    if n < 2 or threshold <= 0:
        return parent

    if active is None:
        active = np.ones(n, dtype=bool)
    absorbed = np.zeros(n, dtype=bool)
    threshold_sq = threshold * threshold

    for i in range(n - 1):
        if not active[i]:
            continue
        dx = positions[i + 1 :, 0] - positions[i, 0]
        dy = positions[i + 1 :, 1] - positions[i, 1]
        close = (dx * dx + dy * dy < threshold_sq) & active[i + 1 :] & ~absorbed[i + 1 :]
        for j in np.flatnonzero(close) + i + 1:
            parent[j] = i
            absorbed[j] = True

    return parent


def resolve_representative(parent: np.ndarray, index: int) -> int:
    """
    Follow a merge chain to its final representative.

    Compresses the path in place so later lookups are one hop.

    Args:
        parent: Parent array from detect_merges (modified in place)
        index: Particle to resolve

    Returns:
        Index of the particle that ultimately absorbs index (index itself
        if it was never absorbed)
    """
    root = index
    while parent[root] >= 0:
        root = int(parent[root])

    node = index
    while parent[node] >= 0 and parent[node] != root:
        nxt = int(parent[node])
        parent[node] = root
        node = nxt

    return root


def resolve_representatives(parent: np.ndarray) -> np.ndarray:
    """
    Resolve every particle to its representative.

    Returns:
        (n,) array where entry i is the representative of i
    """
    flat = parent.copy()
    return np.array([resolve_representative(flat, i) for i in range(len(flat))], dtype=np.int64)


def apply_merges(
    positions: np.ndarray,
    velocities: np.ndarray,
    accelerations: np.ndarray,
    masses: np.ndarray,
    representatives: np.ndarray,
) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """
    Combine each merge group into its representative.

    The representative takes the mass-weighted mean of position, velocity
    and acceleration over its group and the summed mass. Particles that
    absorbed nothing are left bit-for-bit unchanged. Absorbed particles
    keep their old state; callers mark and discard them.

    Returns:
        New (positions, velocities, accelerations, masses) arrays
    """
    positions = positions.copy()
    velocities = velocities.copy()
    accelerations = accelerations.copy()
    masses = masses.copy()

    n = len(masses)
    targets = np.unique(representatives[representatives != np.arange(n)])
    if len(targets) == 0:
        return positions, velocities, accelerations, masses

    group_mass = np.zeros(n, dtype=np.float64)
    np.add.at(group_mass, representatives, masses)

    weights = masses.astype(np.float64)[:, np.newaxis]
    for state in (positions, velocities, accelerations):
        weighted = np.zeros((n, 2), dtype=np.float64)
        np.add.at(weighted, representatives, state * weights)
        state[targets] = weighted[targets] / group_mass[targets, np.newaxis]

    masses[targets] = group_mass[targets]
    return positions, velocities, accelerations, masses


__all__ = [
    "detect_merges",
    "resolve_representative",
    "resolve_representatives",
    "apply_merges",
]
