"""Statistical aggregation for benchmark timing samples.

Provides the aggregates stored alongside (or derived from) raw samples:
- Arithmetic mean, minimum and maximum
- Population standard deviation
- Nearest-rank percentiles (p50, p95, p99)

This module only depends on the standard library: it is copied into every
benchmark workspace and imported by the harness on each target interpreter.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass, field


class EmptySamplesError(ValueError):
    """Raised when statistics are requested for an empty sample set."""


@dataclass(frozen=True)
class BenchmarkStats:
    """Statistical summary of benchmark samples.

    Attributes:
        avg_time: Arithmetic mean (ms).
        min_time: Smallest sample (ms).
        max_time: Largest sample (ms).
        std_dev: Population standard deviation (ms).
        p50: 50th percentile, nearest rank (ms).
        p95: 95th percentile, nearest rank (ms).
        p99: 99th percentile, nearest rank (ms).
        samples: Raw samples in measurement order.
    """

    avg_time: float
    min_time: float
    max_time: float
    std_dev: float
    p50: float
    p95: float
    p99: float
    samples: tuple[float, ...] = field(default_factory=tuple)

    @property
    def reps(self) -> int:
        return len(self.samples)

    @property
    def cv(self) -> float:
        """Coefficient of variation (std_dev / avg_time)."""
        return self.std_dev / self.avg_time if self.avg_time > 0 else 0.0


def percentile(sorted_samples: Sequence[float], p: float) -> float:
    """Return the p-th percentile of pre-sorted samples.

    Uses the nearest-rank method: index = ceil(p/100 * n) - 1, clamped to
    [0, n-1]. Historical results depend on this exact rule, so it must not
    be replaced by an interpolating variant.

    Args:
        sorted_samples: Samples sorted in ascending order.
        p: Percentile in the range 0-100.

    Raises:
        EmptySamplesError: If there are no samples.
    """
    n = len(sorted_samples)
    if n == 0:
        raise EmptySamplesError("Cannot calculate percentile from empty samples")

    index = math.ceil((p / 100) * n) - 1
    return sorted_samples[min(max(index, 0), n - 1)]


def compute_stats(samples: Sequence[float]) -> BenchmarkStats:
    """Compute aggregate statistics from timing samples (in ms).

    Args:
        samples: At least one timing measurement.

    Returns:
        BenchmarkStats with mean, extrema, population stddev and percentiles.

    Raises:
        EmptySamplesError: If samples is empty.
    """
    if not samples:
        raise EmptySamplesError("Cannot calculate stats from empty samples")

    ordered = sorted(samples)
    n = len(ordered)
    avg = math.fsum(ordered) / n
    variance = math.fsum((t - avg) ** 2 for t in ordered) / n

    return BenchmarkStats(
        # Clamp against float rounding so min <= avg <= max always holds
        avg_time=min(max(avg, ordered[0]), ordered[-1]),
        min_time=ordered[0],
        max_time=ordered[-1],
        std_dev=math.sqrt(variance),
        p50=percentile(ordered, 50),
        p95=percentile(ordered, 95),
        p99=percentile(ordered, 99),
        samples=tuple(samples),
    )


def to_stats_only(stats: BenchmarkStats) -> dict[str, float]:
    """Return the aggregate fields only, keyed by their JSON names."""
    return {
        "avgTime": stats.avg_time,
        "minTime": stats.min_time,
        "maxTime": stats.max_time,
        "stdDev": stats.std_dev,
        "p50": stats.p50,
        "p95": stats.p95,
        "p99": stats.p99,
    }


def format_stats(stats: BenchmarkStats) -> str:
    """Format benchmark statistics for display.

    Returns:
        Formatted string like "12.345ms +/- 0.210ms (p95=12.900ms, 10 runs)".
    """
    return (
        f"{stats.avg_time:.3f}ms +/- {stats.std_dev:.3f}ms "
        f"(p95={stats.p95:.3f}ms, {stats.reps} runs)"
    )
