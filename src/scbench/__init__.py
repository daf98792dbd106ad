"""Multi-runtime benchmark orchestrator for trio.

This package measures trio against other concurrency libraries with:
- Isolated per-release workspaces with pinned package versions
- Support for CPython, PyPy, and GraalPy runtimes
- Raw-sample JSON result files validated against a versioned schema
"""

from __future__ import annotations

from scbench.errors import (
    BenchError,
    ConfigurationError,
    HarnessError,
    InstallError,
    ResultValidationError,
    RuntimeUnavailableError,
)
from scbench.runner import (
    BenchmarkRequest,
    BenchmarkRunner,
    RunReport,
    load_benchmark_config,
)
from scbench.runtimes import RuntimeAdapter, RuntimeInfo, detect_runtimes
from scbench.schema import BenchmarkResult, validate_benchmark_result
from scbench.stats import BenchmarkStats, compute_stats

__all__ = [
    "BenchError",
    "BenchmarkRequest",
    "BenchmarkResult",
    "BenchmarkRunner",
    "BenchmarkStats",
    "ConfigurationError",
    "HarnessError",
    "InstallError",
    "ResultValidationError",
    "RunReport",
    "RuntimeAdapter",
    "RuntimeInfo",
    "RuntimeUnavailableError",
    "compute_stats",
    "detect_runtimes",
    "load_benchmark_config",
    "validate_benchmark_result",
]
