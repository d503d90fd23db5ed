#!/usr/bin/env python3
"""
Visualization script for nbody simulations.

Renders snapshots of a rotating disk under both simulation modes into
./build/, plus a tree overlay showing how the Barnes-Hut quadtree
partitions the particles.

Usage:
    python scripts/visualize.py
"""

from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np
from matplotlib.patches import Rectangle

from nbody import BarnesHutSimulation, DirectSimulation, Particle

# Output directory
BUILD_DIR = Path(__file__).parent.parent / "build"

SNAPSHOT_TICKS = [0, 50, 100, 200]


def ensure_build_dir():
    """Create build directory if it doesn't exist."""
    BUILD_DIR.mkdir(exist_ok=True)


def create_disk(n_particles=400, seed=42):
    """Rotating disk around a heavy central body."""
    rng = np.random.default_rng(seed)
    cx, cy = 800.0, 800.0
    omega = 0.003

    particles = [Particle(x=cx, y=cy, mass=100.0)]
    for _ in range(n_particles - 1):
        angle = rng.uniform(0.0, 2.0 * np.pi)
        radius = rng.uniform(50.0, 2000.0)
        dx, dy = radius * np.cos(angle), radius * np.sin(angle)
        particles.append(
            Particle(x=cx + dx, y=cy + dy, vx=-dy * omega, vy=dx * omega, mass=rng.uniform(0.001, 0.01))
        )
    return particles


def create_simulation(SimulationClass, **kwargs):
    return SimulationClass(
        create_disk(),
        gravitational_constant=100.0,
        removal_radius=10000.0,
        softening_length=10.0,
        **kwargs,
    )


def visualize(simulation, title="Simulation", ax=None):
    """Scatter the live particles of a simulation on an axis."""
    positions = simulation.positions_array()
    masses = np.array([p.mass for p in simulation.particles])
    sizes = 2.0 + 40.0 * masses / masses.max() if len(masses) else 2.0

    ax.scatter(positions[:, 0], positions[:, 1], s=sizes, c="steelblue", edgecolors="none")
    ax.set_title(title, fontsize=12, fontweight="bold")
    ax.set_aspect("equal")
    ax.axis("off")


def save_snapshots(SimulationClass, name, filename, **kwargs):
    """Run a simulation and save one panel per snapshot tick."""
    simulation = create_simulation(SimulationClass, **kwargs)

    fig, axes = plt.subplots(1, len(SNAPSHOT_TICKS), figsize=(5 * len(SNAPSHOT_TICKS), 5))
    for ax, target in zip(axes, SNAPSHOT_TICKS):
        while simulation.tick_count < target:
            simulation.tick()
        visualize(simulation, f"tick {target} ({simulation.particle_count} bodies)", ax=ax)
    simulation.stop()

    fig.suptitle(name, fontsize=14, fontweight="bold")
    plt.tight_layout()

    filepath = BUILD_DIR / filename
    fig.savefig(filepath, dpi=150, bbox_inches="tight", facecolor="white")
    plt.close(fig)
    print(f"  Saved: {filepath}")


def save_tree(filename, theta=0.7):
    """Draw the quadtree cells over the initial disk."""
    simulation = create_simulation(BarnesHutSimulation, theta=theta)
    tree = simulation.build_tree()

    fig, ax = plt.subplots(figsize=(8, 8))
    for node in tree.nodes:
        if node.is_leaf() and not node.is_empty():
            b = node.bounds
            ax.add_patch(Rectangle((b.x, b.y), b.size, b.size, fill=False, linewidth=0.3, color="gray"))
    visualize(simulation, f"Barnes-Hut quadtree ({len(tree.nodes)} nodes)", ax=ax)
    plt.tight_layout()

    filepath = BUILD_DIR / filename
    fig.savefig(filepath, dpi=150, bbox_inches="tight", facecolor="white")
    plt.close(fig)
    print(f"  Saved: {filepath}")


def generate_all():
    """Generate all visualization images."""
    ensure_build_dir()

    print("Generating snapshot images...")
    save_snapshots(BarnesHutSimulation, "Barnes-Hut (theta = 0.7)", "barnes_hut.png", theta=0.7)
    save_snapshots(DirectSimulation, "Direct summation", "direct.png")
    save_snapshots(DirectSimulation, "Direct summation with merging", "direct_merging.png", merge_threshold=5.0)

    print("Generating tree image...")
    save_tree("quadtree.png")

    print()
    print(f"All images saved to: {BUILD_DIR.absolute()}")


if __name__ == "__main__":
    generate_all()
