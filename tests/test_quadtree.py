"""Tests for QuadTree implementation and Barnes-Hut force approximation."""

import random

import numpy as np
import pytest

from nbody.forces import direct_accelerations, softened_acceleration
from nbody.spatial import Bounds, Quadrant, QuadTree, QuadTreeNode


def random_cloud(n, seed=7, extent=500.0):
    """Random positions and masses."""
    rng = random.Random(seed)
    positions = [(rng.uniform(-extent, extent), rng.uniform(-extent, extent)) for _ in range(n)]
    masses = [rng.uniform(0.5, 5.0) for _ in range(n)]
    return positions, masses


def subtree_residents(tree, node):
    """All particle indices stored below node."""
    if node.is_leaf():
        return list(node.residents)
    found = []
    for child in tree.children_of(node):
        found.extend(subtree_residents(tree, child))
    return found


class TestQuadTreeNode:
    """Tests for QuadTreeNode."""

    def test_node_creation(self):
        """Test node creation with bounds."""
        node = QuadTreeNode(Bounds(0.0, 0.0, 100.0))
        assert node.depth == 0
        assert node.total_mass == 0.0
        assert node.is_empty()
        assert node.is_leaf()

    def test_absorb_weighted_average(self):
        """Absorbing particles keeps a mass-weighted center."""
        node = QuadTreeNode(Bounds(0.0, 0.0, 100.0))
        node.absorb(0.0, 0.0, 3.0)
        node.absorb(100.0, 40.0, 1.0)
        assert node.total_mass == 4.0
        assert node.center_of_mass_x == pytest.approx(25.0)
        assert node.center_of_mass_y == pytest.approx(10.0)


class TestQuadTreeInsertion:
    """Tests for QuadTree insertion operations."""

    def test_empty_tree(self):
        """Test empty tree state."""
        tree = QuadTree(Bounds(0.0, 0.0, 100.0))
        assert tree.body_count == 0
        assert tree.root.is_empty()
        assert len(tree.nodes) == 1

    def test_single_particle_insertion(self):
        """A single particle becomes the root's sole resident."""
        tree = QuadTree(Bounds(0.0, 0.0, 100.0))
        assert tree.insert(0, 30.0, 40.0, 2.0)

        assert tree.body_count == 1
        assert tree.root.residents == [0]
        assert tree.root.is_leaf()
        assert tree.root.total_mass == 2.0
        assert tree.root.center_of_mass_x == 30.0
        assert tree.root.center_of_mass_y == 40.0

    def test_two_particle_insertion(self):
        """A second particle subdivides the occupied leaf."""
        tree = QuadTree(Bounds(0.0, 0.0, 100.0))
        tree.insert(0, 25.0, 25.0, 1.0)
        tree.insert(1, 75.0, 75.0, 1.0)

        assert tree.body_count == 2
        assert not tree.root.is_leaf()
        assert tree.root.residents == []

        children = tree.children_of(tree.root)
        assert children[Quadrant.SW].residents == [0]
        assert children[Quadrant.NE].residents == [1]
        assert children[Quadrant.NW].is_empty()
        assert children[Quadrant.SE].is_empty()
        for child in children:
            assert child.depth == 1

    def test_same_quadrant_subdivides_deeper(self):
        """Two particles in one quadrant keep splitting until separated."""
        tree = QuadTree(Bounds(0.0, 0.0, 100.0))
        tree.insert(0, 10.0, 10.0, 1.0)
        tree.insert(1, 20.0, 20.0, 1.0)

        sw = tree.children_of(tree.root)[Quadrant.SW]
        assert not sw.is_leaf()
        assert sorted(subtree_residents(tree, sw)) == [0, 1]

    def test_mass_conservation(self):
        """Every node's mass is the sum of the masses below it."""
        positions, masses = random_cloud(200)
        tree = QuadTree.build(positions, masses)

        assert tree.body_count == 200
        assert tree.dropped_count == 0
        for node in tree.nodes:
            expected = sum(masses[i] for i in subtree_residents(tree, node))
            assert node.total_mass == pytest.approx(expected, rel=1e-9, abs=1e-12)

    def test_center_of_mass_correctness(self):
        """Every non-empty node's center is the weighted mean below it."""
        positions, masses = random_cloud(100, seed=3)
        tree = QuadTree.build(positions, masses)

        for node in tree.nodes:
            indices = subtree_residents(tree, node)
            if not indices:
                continue
            mass = sum(masses[i] for i in indices)
            cx = sum(positions[i][0] * masses[i] for i in indices) / mass
            cy = sum(positions[i][1] * masses[i] for i in indices) / mass
            assert node.center_of_mass_x == pytest.approx(cx, rel=1e-9, abs=1e-9)
            assert node.center_of_mass_y == pytest.approx(cy, rel=1e-9, abs=1e-9)

    def test_insertion_order_independence(self):
        """Root aggregates do not depend on insertion order."""
        positions, masses = random_cloud(60, seed=11)
        forward = QuadTree.build(positions, masses)
        backward = QuadTree.build(positions[::-1], masses[::-1])

        assert forward.root.total_mass == pytest.approx(backward.root.total_mass)
        assert forward.root.center_of_mass_x == pytest.approx(backward.root.center_of_mass_x)
        assert forward.root.center_of_mass_y == pytest.approx(backward.root.center_of_mass_y)

    def test_out_of_bounds_dropped(self):
        """Particles outside the root are counted and warned about, not inserted."""
        tree = QuadTree(Bounds(0.0, 0.0, 10.0))
        with pytest.warns(RuntimeWarning, match="outside"):
            assert not tree.insert(0, 20.0, 20.0, 1.0)

        assert tree.dropped_count == 1
        assert tree.body_count == 0
        assert tree.root.total_mass == 0.0

    def test_upper_edge_dropped(self):
        """A particle exactly on the upper edge is outside the tree."""
        tree = QuadTree(Bounds(0.0, 0.0, 10.0))
        with pytest.warns(RuntimeWarning):
            assert not tree.insert(0, 10.0, 5.0, 1.0)
        assert tree.dropped_count == 1

    def test_coincident_particles_bucket_at_max_depth(self):
        """Coincident particles stop splitting at max depth and share a leaf."""
        tree = QuadTree(Bounds(0.0, 0.0, 10.0), max_depth=8)
        for i in range(3):
            tree.insert(i, 5.0, 5.0, 1.0)

        assert tree.root.total_mass == 3.0
        buckets = [node for node in tree.nodes if len(node.residents) > 1]
        assert len(buckets) == 1
        assert buckets[0].depth == 8
        assert sorted(buckets[0].residents) == [0, 1, 2]
        assert max(node.depth for node in tree.nodes) == 8


class TestQuadTreeForceCalculation:
    """Tests for Barnes-Hut force approximation."""

    def test_empty_tree_no_force(self):
        """An empty tree exerts no force."""
        tree = QuadTree.build([], [])
        assert tree.bounds == Bounds(0.0, 0.0, 1.0)
        assert tree.calculate_force(0.5, 0.5, 1.0, 1.0) == (0.0, 0.0)

    def test_no_self_force(self):
        """A single particle has no force on itself."""
        tree = QuadTree.build([(50.0, 50.0)], [1.0])
        ax, ay = tree.calculate_force(50.0, 50.0, 1.0, 1.0, exclude=0)
        assert ax == 0.0
        assert ay == 0.0

    def test_attractive_direction(self):
        """Accelerations point toward the other particle."""
        tree = QuadTree.build([(40.0, 50.0), (60.0, 50.0)], [1.0, 1.0])

        ax, ay = tree.calculate_force(40.0, 50.0, 1.0, 1.0, exclude=0)
        assert ax > 0
        assert ay == pytest.approx(0.0)

        ax, ay = tree.calculate_force(60.0, 50.0, 1.0, 1.0, exclude=1)
        assert ax < 0

    def test_magnitude_decreases_with_distance(self):
        """Force weakens with distance."""
        tree = QuadTree.build([(0.0, 0.0)], [1.0])
        near, _ = tree.calculate_force(5.0, 0.0, 1.0, 0.01)
        far, _ = tree.calculate_force(8.0, 0.0, 1.0, 0.01)
        assert abs(near) > abs(far)

    def test_bucket_excludes_only_self(self):
        """In a shared leaf only the excluded particle is left out."""
        tree = QuadTree(Bounds(0.0, 0.0, 10.0), theta=0.0, max_depth=4)
        tree.insert(0, 5.0, 5.0, 1.0)
        tree.insert(1, 5.0, 5.0, 2.0)

        ax, ay = tree.calculate_force(8.0, 5.0, 1.0, 0.0, exclude=0)
        expected = softened_acceleration(-3.0, 0.0, 2.0, 1.0, 0.0)
        assert ax == pytest.approx(expected[0])
        assert ay == pytest.approx(expected[1])

    def test_approximated_ancestor_keeps_full_aggregate(self):
        """A distant node holding the excluded particle acts with its whole mass."""
        tree = QuadTree.build([(0.0, 0.0), (1.0, 0.0)], [1.0, 1.0], theta=1.0)
        root = tree.root

        ax, ay = tree.calculate_force(100.0, 0.0, 1.0, 1.0, exclude=0)
        expected = softened_acceleration(
            root.center_of_mass_x - 100.0, root.center_of_mass_y, root.total_mass, 1.0, 1.0
        )
        assert root.total_mass == 2.0
        assert ax == pytest.approx(expected[0])
        assert ay == pytest.approx(expected[1])

    def test_theta_zero_matches_direct(self):
        """theta=0 opens every node and reproduces the pairwise sum."""
        positions, masses = random_cloud(40, seed=5)
        tree = QuadTree.build(positions, masses, theta=0.0)

        pos = np.array(positions)
        exact = direct_accelerations(pos, pos, np.array(masses), 2.0, 4.0)

        for i, (x, y) in enumerate(positions):
            ax, ay = tree.calculate_force(x, y, 2.0, 4.0, exclude=i)
            assert ax == pytest.approx(exact[i, 0], rel=1e-9, abs=1e-12)
            assert ay == pytest.approx(exact[i, 1], rel=1e-9, abs=1e-12)

    def test_error_shrinks_with_theta(self):
        """Approximation error goes to zero as theta goes to zero."""
        positions, masses = random_cloud(150, seed=9)
        pos = np.array(positions)
        exact = direct_accelerations(pos, pos, np.array(masses), 1.0, 1.0)

        def relative_error(theta):
            tree = QuadTree.build(positions, masses, theta=theta)
            approx = np.array(
                [tree.calculate_force(x, y, 1.0, 1.0, exclude=i) for i, (x, y) in enumerate(positions)]
            )
            return np.linalg.norm(approx - exact) / np.linalg.norm(exact)

        coarse = relative_error(1.0)
        balanced = relative_error(0.5)
        exact_error = relative_error(0.0)

        assert balanced < 0.1
        assert exact_error < 1e-9
        assert exact_error <= balanced <= coarse + 1e-12


class TestQuadTreeBuild:
    """Tests for building a QuadTree from particle arrays."""

    def test_build_basic(self):
        """All particles are inserted and nothing is dropped."""
        tree = QuadTree.build([(10.0, 20.0), (30.0, 40.0), (50.0, 60.0)], [1.0, 1.0, 1.0])
        assert tree.body_count == 3
        assert tree.dropped_count == 0
        assert tree.root.total_mass == 3.0

    def test_build_theta(self):
        """Theta and max depth are passed through."""
        tree = QuadTree.build([(0.0, 0.0)], [1.0], theta=0.8, max_depth=5)
        assert tree.theta == 0.8
        assert tree.max_depth == 5

    def test_build_two_points_padding(self):
        """Root bounds enclose both points with margin on every side."""
        tree = QuadTree.build([(0.0, 0.0), (10.0, 10.0)], [1.0, 1.0], padding=10.0)
        bounds = tree.bounds
        assert bounds == Bounds(-10.0, -10.0, 30.0)
        assert bounds.quadrant(0.0, 0.0) != bounds.quadrant(10.0, 10.0)
