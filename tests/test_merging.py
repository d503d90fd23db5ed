"""Tests for collision merge detection and resolution."""

import numpy as np
import pytest

from nbody.merging import (
    apply_merges,
    detect_merges,
    resolve_representative,
    resolve_representatives,
)


def line(*xs):
    """Positions along the x axis."""
    return np.array([[x, 0.0] for x in xs])


class TestDetectMerges:
    """Tests for the ascending index scan."""

    def test_close_pair(self):
        """A close pair attaches the later particle to the earlier one."""
        parent = detect_merges(line(0.0, 0.5, 10.0), 1.0)
        assert parent.tolist() == [-1, 0, -1]

    def test_threshold_is_strict(self):
        """Particles exactly at the threshold do not merge."""
        parent = detect_merges(line(0.0, 1.0), 1.0)
        assert parent.tolist() == [-1, -1]

    def test_chain_attaches_to_absorbed_particle(self):
        """A particle close only to an absorbed one is attached to it."""
        parent = detect_merges(line(0.0, 0.8, 1.6), 1.0)
        assert parent.tolist() == [-1, 0, 1]

    def test_mutual_ties_resolve_left_to_right(self):
        """With three mutually close particles the lowest index absorbs both."""
        parent = detect_merges(line(0.0, 0.3, 0.2), 1.0)
        assert parent.tolist() == [-1, 0, 0]

    def test_inactive_never_merge(self):
        """Masked-out particles are neither absorbers nor absorbed."""
        active = np.array([False, True, True])
        parent = detect_merges(line(0.0, 0.1, 5.0), 1.0, active=active)
        assert parent.tolist() == [-1, -1, -1]

    def test_disabled(self):
        """Zero threshold never merges."""
        parent = detect_merges(line(0.0, 0.0), 0.0)
        assert parent.tolist() == [-1, -1]


class TestResolveRepresentatives:
    """Tests for union-find chain flattening."""

    def test_follows_chain(self):
        """Chains resolve to their root."""
        parent = np.array([-1, 0, 1, 2])
        assert resolve_representative(parent, 3) == 0

    def test_path_compression(self):
        """Resolving rewrites the chain to point at the root."""
        parent = np.array([-1, 0, 1, 2])
        resolve_representative(parent, 3)
        assert parent.tolist() == [-1, 0, 0, 0]

    def test_unabsorbed_is_own_representative(self):
        """Particles never absorbed resolve to themselves."""
        parent = np.array([-1, -1, 0])
        assert resolve_representative(parent, 1) == 1

    def test_all_representatives(self):
        """Every particle resolves and the input is left untouched."""
        parent = np.array([-1, 0, 1, -1, 3])
        reps = resolve_representatives(parent)
        assert reps.tolist() == [0, 0, 0, 3, 3]
        assert parent.tolist() == [-1, 0, 1, -1, 3]

    def test_detect_then_resolve(self):
        """A detected chain flattens to a single representative."""
        reps = resolve_representatives(detect_merges(line(0.0, 0.8, 1.6, 50.0), 1.0))
        assert reps.tolist() == [0, 0, 0, 3]


class TestApplyMerges:
    """Tests for merge arithmetic."""

    def test_weighted_average(self):
        """Survivor takes mass-weighted averages and the summed mass."""
        positions = line(0.0, 4.0)
        velocities = np.array([[1.0, 0.0], [-1.0, 2.0]])
        accelerations = np.array([[0.0, 4.0], [4.0, 0.0]])
        masses = np.array([1.0, 3.0])

        pos, vel, acc, m = apply_merges(
            positions, velocities, accelerations, masses, np.array([0, 0])
        )

        assert m[0] == 4.0
        assert pos[0].tolist() == pytest.approx([3.0, 0.0])
        assert vel[0].tolist() == pytest.approx([-0.5, 1.5])
        assert acc[0].tolist() == pytest.approx([3.0, 1.0])

    def test_momentum_and_mass_conserved(self):
        """Merging conserves total mass and momentum."""
        rng = np.random.default_rng(4)
        positions = rng.uniform(0, 2, size=(6, 2))
        velocities = rng.normal(size=(6, 2))
        accelerations = np.zeros((6, 2))
        masses = rng.uniform(1, 3, size=6)
        reps = resolve_representatives(detect_merges(positions, 1.0))

        pos, vel, acc, m = apply_merges(positions, velocities, accelerations, masses, reps)

        survivors = reps == np.arange(6)
        assert m[survivors].sum() == pytest.approx(masses.sum())
        momentum_before = (velocities * masses[:, np.newaxis]).sum(axis=0)
        momentum_after = (vel[survivors] * m[survivors, np.newaxis]).sum(axis=0)
        assert momentum_after == pytest.approx(momentum_before)

    def test_untouched_particles_unchanged(self):
        """Particles outside any merge keep their exact state."""
        positions = np.array([[0.1, 0.7], [0.3, 0.7], [13.37, -2.1]])
        velocities = np.array([[0.0, 0.0], [0.0, 0.0], [0.3, 0.1]])
        accelerations = np.zeros((3, 2))
        masses = np.array([1.0, 1.0, 0.7])

        pos, vel, acc, m = apply_merges(
            positions, velocities, accelerations, masses, np.array([0, 0, 2])
        )
        assert pos[2].tolist() == [13.37, -2.1]
        assert vel[2].tolist() == [0.3, 0.1]
        assert m[2] == 0.7

    def test_inputs_not_modified(self):
        """apply_merges returns new arrays."""
        positions = line(0.0, 1.0)
        masses = np.array([1.0, 1.0])
        apply_merges(positions, np.zeros((2, 2)), np.zeros((2, 2)), masses, np.array([0, 0]))
        assert positions.tolist() == [[0.0, 0.0], [1.0, 0.0]]
        assert masses.tolist() == [1.0, 1.0]
