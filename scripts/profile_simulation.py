#!/usr/bin/env python3
"""Headless simulation profiler.

Usage:
    python scripts/profile_simulation.py --ticks 500 --seed 42
    python scripts/profile_simulation.py --ticks 2000 --workers 40 --cprofile profile.prof
    python scripts/profile_simulation.py --ticks 500 --memory

Reports:
    - Per-tick timing statistics (min, max, p50, p95, p99)
    - Split between the world ticker and the unit controllers
    - Unit state distribution at the end of the run
    - Optional: cProfile dump, tracemalloc snapshot
"""

from __future__ import annotations

import argparse
import cProfile
import io
import os
import pstats
import statistics
import sys
import time
import tracemalloc
from collections import Counter

# Ensure project root is on path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from evorts.config import SimulationConfig
from evorts.engine.simulation import WORLD_TICKER_ID, Simulation


def _run_simulation(cfg: SimulationConfig, num_ticks: int) -> dict:
    """Step every registered entity by hand so the two groups can be timed apart."""
    t_build = time.perf_counter()
    sim = Simulation(cfg)
    build_time = time.perf_counter() - t_build

    interval = sim.scheduler.tick_interval
    world = sim.scheduler.entities[WORLD_TICKER_ID]
    tick_times: list[float] = []
    split_times: list[tuple[float, float]] = []

    for _ in range(num_ticks):
        t_start = time.perf_counter()
        world.update(interval)
        t1 = time.perf_counter()
        for engine in list(sim.engines.values()):
            engine.update(interval)
        t2 = time.perf_counter()
        tick_times.append(t2 - t_start)
        split_times.append((t1 - t_start, t2 - t1))

    return {
        "build_time": build_time,
        "tick_times": tick_times,
        "split_times": split_times,
        "states": Counter(e.entity.state.name.lower() for e in sim.engines.values()),
        "explored": sum(len(e.fog.explored) for e in sim.engines.values()),
        "stockpile": (sim.base.energy, sim.base.matter),
    }


def _percentile(data: list[float], p: float) -> float:
    if not data:
        return 0.0
    sorted_data = sorted(data)
    k = (len(sorted_data) - 1) * (p / 100.0)
    f = int(k)
    c = f + 1
    if c >= len(sorted_data):
        return sorted_data[f]
    return sorted_data[f] + (k - f) * (sorted_data[c] - sorted_data[f])


def _print_report(data: dict, wall_time: float) -> None:
    tick_times = data["tick_times"]
    num_ticks = len(tick_times)
    if num_ticks == 0:
        print("No ticks executed.")
        return

    print("\n" + "=" * 70)
    print("  SIMULATION PERFORMANCE REPORT")
    print("=" * 70)

    print(f"\n  World build time:  {data['build_time'] * 1000:.1f}ms")
    print(f"  Ticks executed:    {num_ticks}")
    print(f"  Wall clock time:   {wall_time:.3f}s")
    print(f"  Throughput:        {num_ticks / wall_time:.1f} ticks/sec")
    print(f"  Avg tick time:     {statistics.mean(tick_times) * 1000:.3f}ms")

    print(f"\n  {'Metric':<16} {'Time (ms)':>10}")
    print(f"  {'-' * 16} {'-' * 10}")
    print(f"  {'Min':<16} {min(tick_times) * 1000:>10.3f}")
    print(f"  {'P50 (median)':<16} {_percentile(tick_times, 50) * 1000:>10.3f}")
    print(f"  {'P95':<16} {_percentile(tick_times, 95) * 1000:>10.3f}")
    print(f"  {'P99':<16} {_percentile(tick_times, 99) * 1000:>10.3f}")
    print(f"  {'Max':<16} {max(tick_times) * 1000:>10.3f}")

    total_sum = sum(tick_times)
    print(f"\n  {'Group':<16} {'Avg (ms)':>10} {'P95 (ms)':>10} {'% Total':>10}")
    print(f"  {'-' * 16} {'-' * 10} {'-' * 10} {'-' * 10}")
    for idx, name in enumerate(("World", "Units")):
        times = [s[idx] for s in data["split_times"]]
        pct = (sum(times) / total_sum * 100) if total_sum > 0 else 0
        print(f"  {name:<16} {statistics.mean(times) * 1000:>10.3f} "
              f"{_percentile(times, 95) * 1000:>10.3f} {pct:>9.1f}%")

    print("\n  Unit states at end:")
    for state, count in data["states"].most_common():
        print(f"    {state:<12} {count}")
    energy, matter = data["stockpile"]
    print(f"\n  Cells explored (all units): {data['explored']}")
    print(f"  Base stockpile:             {energy} energy, {matter} matter")
    print("\n" + "=" * 70)


def main() -> None:
    parser = argparse.ArgumentParser(description="Profile the simulation core")
    parser.add_argument("--ticks", type=int, default=500, help="Number of ticks to run")
    parser.add_argument("--seed", type=int, default=42, help="World seed")
    parser.add_argument("--workers", type=int, default=12, help="Worker units to spawn")
    parser.add_argument("--width", type=int, default=80, help="Grid width in cells")
    parser.add_argument("--height", type=int, default=60, help="Grid height in cells")
    parser.add_argument("--no-pathfinding", action="store_true")
    parser.add_argument("--cprofile", type=str, default=None, help="Save cProfile output to file")
    parser.add_argument("--memory", action="store_true", help="Enable tracemalloc memory profiling")
    args = parser.parse_args()

    cfg = SimulationConfig(
        world_seed=args.seed,
        grid_width=args.width,
        grid_height=args.height,
        initial_worker_count=args.workers,
        use_pathfinding=not args.no_pathfinding,
        log_level="WARNING",
    )

    print(f"Profiling: {args.ticks} ticks, seed={args.seed}, "
          f"workers={args.workers}, grid={args.width}x{args.height}")

    if args.memory:
        tracemalloc.start()

    profiler = None
    if args.cprofile:
        profiler = cProfile.Profile()
        profiler.enable()

    wall_start = time.perf_counter()
    data = _run_simulation(cfg, args.ticks)
    wall_time = time.perf_counter() - wall_start

    if profiler:
        profiler.disable()

    _print_report(data, wall_time)

    if profiler and args.cprofile:
        profiler.dump_stats(args.cprofile)
        print(f"\n  cProfile data saved to: {args.cprofile}")
        print(f"\n  Top 20 functions by cumulative time:")
        stream = io.StringIO()
        ps = pstats.Stats(profiler, stream=stream)
        ps.sort_stats("cumulative")
        ps.print_stats(20)
        print(stream.getvalue())

    if args.memory:
        snapshot = tracemalloc.take_snapshot()
        print("\n  Top 15 memory allocations by size:")
        for stat in snapshot.statistics("lineno")[:15]:
            print(f"  {str(stat.traceback):<60} {stat.size / 1024:>8.1f} KB")
        current, peak = tracemalloc.get_traced_memory()
        print(f"\n  Current memory: {current / 1024:.1f} KB")
        print(f"  Peak memory:    {peak / 1024:.1f} KB")
        tracemalloc.stop()


if __name__ == "__main__":
    main()
