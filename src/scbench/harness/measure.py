"""Warmup and measurement loop for benchmark scenarios."""

from __future__ import annotations

import time

from scbench.scenarios import ScenarioFn
from scbench.stats import BenchmarkStats, compute_stats


def measure(run: ScenarioFn, repeat: int, warmup: int, depth: int) -> list[float]:
    """Measure a scenario's execution time.

    Every call to ``run`` starts and tears down its own event loop and task
    group, so no task spawned by iteration N survives into iteration N+1.

    Args:
        run: Scenario entry point, called as ``run(depth)``.
        repeat: Number of measured iterations.
        warmup: Number of iterations executed first and discarded.
        depth: Depth parameter passed to the scenario.

    Returns:
        Wall-clock duration of each measured iteration in milliseconds.
    """
    for _ in range(warmup):
        run(depth)

    samples: list[float] = []
    for _ in range(repeat):
        start = time.perf_counter()
        run(depth)
        samples.append((time.perf_counter() - start) * 1000.0)

    return samples


def measure_stats(run: ScenarioFn, repeat: int, warmup: int, depth: int) -> BenchmarkStats:
    return compute_stats(measure(run, repeat=repeat, warmup=warmup, depth=depth))
