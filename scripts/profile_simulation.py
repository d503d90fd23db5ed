"""
Profiling script for nbody performance analysis.

This script runs the Barnes-Hut and direct-summation simulations on a
rotating disk galaxy and compares timings and energy drift across
different particle counts.
"""

import cProfile
import pstats
import io
from pstats import SortKey
import time
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import numpy as np

from nbody import BarnesHutSimulation, DirectSimulation, Particle
from nbody.metrics import total_energy


GRAVITATIONAL_CONSTANT = 100.0
REMOVAL_RADIUS = 10000.0
SOFTENING_LENGTH = 10.0
THETA = 0.7


def create_disk(n_particles, center=(800.0, 800.0), seed=42):
    """Create a rotating disk with a heavy central body.

    Orbiting particles are placed uniformly in angle between radius 50 and
    2000, each moving tangentially with angular velocity 0.003.
    """
    rng = np.random.default_rng(seed)
    cx, cy = center
    omega = 0.003

    particles = [Particle(x=cx, y=cy, mass=100.0)]
    for _ in range(n_particles - 1):
        angle = rng.uniform(0.0, 2.0 * np.pi)
        radius = rng.uniform(50.0, 2000.0)
        dx = radius * np.cos(angle)
        dy = radius * np.sin(angle)
        particles.append(
            Particle(
                x=cx + dx,
                y=cy + dy,
                vx=-dy * omega,
                vy=dx * omega,
                mass=rng.uniform(0.001, 0.01),
            )
        )
    return particles


def run_simulation(sim_class, n_particles, ticks, **kwargs):
    """Run a simulation for a number of ticks and return it."""
    sim = sim_class(
        create_disk(n_particles),
        gravitational_constant=GRAVITATIONAL_CONSTANT,
        removal_radius=REMOVAL_RADIUS,
        softening_length=SOFTENING_LENGTH,
        **kwargs,
    )
    for _ in range(ticks):
        sim.tick()
    sim.stop()
    return sim


def profile_bh_small():
    return run_simulation(BarnesHutSimulation, 200, 20, theta=THETA)


def profile_bh_medium():
    return run_simulation(BarnesHutSimulation, 1000, 10, theta=THETA)


def profile_bh_large():
    return run_simulation(BarnesHutSimulation, 3000, 5, theta=THETA)


def profile_direct_small():
    return run_simulation(DirectSimulation, 200, 20)


def profile_direct_medium():
    return run_simulation(DirectSimulation, 1000, 10)


def profile_direct_large():
    return run_simulation(DirectSimulation, 3000, 5)


def profile_direct_merging():
    return run_simulation(DirectSimulation, 1000, 10, merge_threshold=5.0)


def energy_drift(sim_class, n_particles, ticks, **kwargs):
    """Relative change in total energy over a run."""
    start = total_energy(create_disk(n_particles), GRAVITATIONAL_CONSTANT, SOFTENING_LENGTH)
    sim = run_simulation(sim_class, n_particles, ticks, **kwargs)
    end = total_energy(sim.particles, GRAVITATIONAL_CONSTANT, SOFTENING_LENGTH)
    return abs(end - start) / abs(start)


def benchmark_scenario(name, func, profile=True):
    """Benchmark a scenario and print timing."""
    print(f"\n{'-'*60}")
    print(f"  {name}")
    print('-'*60)

    if profile:
        profiler = cProfile.Profile()
        start_time = time.time()
        profiler.enable()
        func()
        profiler.disable()
        elapsed = time.time() - start_time

        s = io.StringIO()
        ps = pstats.Stats(profiler, stream=s).sort_stats(SortKey.CUMULATIVE)
        ps.print_stats(10)

        print(f"Time: {elapsed:.3f}s")
        print("\nTop 10 functions:")
        for line in s.getvalue().split('\n')[5:16]:
            if line.strip():
                print(line)

        return elapsed, profiler
    else:
        start_time = time.time()
        func()
        elapsed = time.time() - start_time
        print(f"Time: {elapsed:.3f}s")
        return elapsed, None


def main():
    """Run all profiling scenarios."""
    print("=" * 60)
    print("  nbody Performance Profiling")
    print("=" * 60)

    profile = "--profile" in sys.argv[1:]

    scenarios = [
        # Barnes-Hut
        ("Barnes-Hut: Small (200 bodies)", profile_bh_small),
        ("Barnes-Hut: Medium (1000 bodies)", profile_bh_medium),
        ("Barnes-Hut: Large (3000 bodies)", profile_bh_large),

        # Direct summation
        ("Direct: Small (200 bodies)", profile_direct_small),
        ("Direct: Medium (1000 bodies)", profile_direct_medium),
        ("Direct: Large (3000 bodies)", profile_direct_large),
        ("Direct: Medium + merging", profile_direct_merging),
    ]

    results = {}
    for name, func in scenarios:
        try:
            elapsed, _ = benchmark_scenario(name, func, profile=profile)
            results[name] = elapsed
        except Exception as e:
            print(f"  ERROR: {e}")
            results[name] = None

    print("\n" + "=" * 60)
    print("  Summary")
    print("=" * 60)
    print(f"\n{'Scenario':<35} {'Time':>10}")
    print("-" * 47)
    for name, elapsed in results.items():
        if elapsed is not None:
            print(f"{name:<35} {elapsed:>10.3f}s")
        else:
            print(f"{name:<35} {'ERROR':>10}")

    print(f"\n{'Energy drift (200 bodies, 20 ticks)':<35}")
    print("-" * 47)
    bh_drift = energy_drift(BarnesHutSimulation, 200, 20, theta=THETA)
    direct_drift = energy_drift(DirectSimulation, 200, 20)
    print(f"{'Barnes-Hut':<35} {bh_drift:>10.2e}")
    print(f"{'Direct':<35} {direct_drift:>10.2e}")


if __name__ == "__main__":
    main()
