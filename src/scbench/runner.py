"""Benchmark orchestration and execution.

Provides the core benchmark runner that coordinates:
- Validating a benchmark request and loading the config file
- Provisioning one workspace per request
- Running every scenario on each runtime, one runtime at a time
- Collecting per-runtime outcomes without letting one failure hide others
- Writing validated result files and reporting a summary
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Mapping
from contextlib import AbstractContextManager
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

import yaml

from scbench.errors import ConfigurationError, RuntimeUnavailableError
from scbench.result import Err, Ok, Result, failures, successes, wrap_result
from scbench.runtimes import (
    DEFAULT_TIMEOUT,
    RuntimeAdapter,
    ScenarioOptions,
    get_adapter,
)
from scbench.schema import (
    RUNTIMES,
    SCENARIOS,
    BenchmarkConfig,
    BenchmarkResult,
    validate_benchmark_config,
)
from scbench.stats import compute_stats
from scbench.store import DEFAULT_DATA_DIR, write_result
from scbench.workspace import Workspace, WorkspaceConfig, provision

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("benchmark.config.json")

DEFAULT_TRIO_VERSIONS = ("0.27.0",)
DEFAULT_COMPARISON_VERSIONS = {
    "anyio": "4.6.2",
    "reactivex": "4.0.4",
    "curio": "1.6",
}

# Fewer samples than this are accepted but unsuitable for comparisons
MIN_RECOMMENDED_REPEAT = 5

_RELEASE_RE = re.compile(r"^v?\d+(\.\d+)*([.+-]?[0-9A-Za-z]+(\.[0-9A-Za-z]+)*)?$")


class Phase(str, Enum):
    PARSING = "parsing"
    WORKSPACE_PROVISIONING = "workspace-provisioning"
    RUNNING_RUNTIMES = "running-runtimes"
    WRITING = "writing"
    REPORTING = "reporting"


def _is_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


@dataclass(frozen=True)
class BenchmarkRequest:
    """One benchmark invocation.

    Attributes:
        release: trio version to benchmark.
        runtimes: Runtime ids, in execution order, without duplicates.
        scenarios: Scenario names; empty means every registered scenario.
        repeat: Measured iterations per scenario.
        warmup: Discarded iterations per scenario.
        depth: Recursion depth passed to scenarios.
        comparison_versions: Comparison library name -> version.
        fail_fast: Stop after the first failing runtime.
        use_cache: Reuse a cached workspace for this version set.
        timeout: Harness timeout per scenario, in seconds.
    """

    release: str
    runtimes: tuple[str, ...]
    scenarios: tuple[str, ...] = ()
    repeat: int = 10
    warmup: int = 3
    depth: int = 100
    comparison_versions: Mapping[str, str] = field(
        default_factory=lambda: dict(DEFAULT_COMPARISON_VERSIONS)
    )
    fail_fast: bool = False
    use_cache: bool = False
    timeout: float = DEFAULT_TIMEOUT

    def __post_init__(self) -> None:
        object.__setattr__(self, "runtimes", tuple(self.runtimes))
        object.__setattr__(self, "scenarios", tuple(self.scenarios) or SCENARIOS)
        object.__setattr__(self, "comparison_versions", dict(self.comparison_versions))
        self._validate()

    def _validate(self) -> None:
        if not self.release or not _RELEASE_RE.match(self.release):
            raise ConfigurationError(f"Invalid release version: {self.release!r}")

        if not self.runtimes:
            raise ConfigurationError("At least one runtime is required")
        unknown = [r for r in self.runtimes if r not in RUNTIMES]
        if unknown:
            raise ConfigurationError(
                f"Unknown runtime(s): {', '.join(unknown)} "
                f"(expected one of {', '.join(RUNTIMES)})"
            )
        if len(set(self.runtimes)) != len(self.runtimes):
            raise ConfigurationError(f"Duplicate runtimes: {', '.join(self.runtimes)}")

        unknown = [s for s in self.scenarios if s not in SCENARIOS]
        if unknown:
            raise ConfigurationError(f"Unknown scenario(s): {', '.join(unknown)}")
        if len(set(self.scenarios)) != len(self.scenarios):
            raise ConfigurationError(f"Duplicate scenarios: {', '.join(self.scenarios)}")

        if not _is_int(self.repeat) or self.repeat <= 0:
            raise ConfigurationError(f"repeat must be a positive integer, got {self.repeat!r}")
        if not _is_int(self.depth) or self.depth <= 0:
            raise ConfigurationError(f"depth must be a positive integer, got {self.depth!r}")
        if not _is_int(self.warmup) or self.warmup < 0:
            raise ConfigurationError(
                f"warmup must be a non-negative integer, got {self.warmup!r}"
            )
        if self.timeout <= 0:
            raise ConfigurationError(f"timeout must be positive, got {self.timeout!r}")

        for name, version in self.comparison_versions.items():
            if not version:
                raise ConfigurationError(f"Missing version for comparison library {name}")


def default_config() -> BenchmarkConfig:
    return BenchmarkConfig(
        trio_versions=list(DEFAULT_TRIO_VERSIONS),
        comparison_libraries=DEFAULT_COMPARISON_VERSIONS,
    )


def load_benchmark_config(config_path: Path | str = DEFAULT_CONFIG_PATH) -> BenchmarkConfig:
    """Load the benchmark config file (JSON or YAML, both read as YAML).

    A missing file yields the built-in defaults; a malformed one is an error.

    Raises:
        ConfigurationError: If the file cannot be parsed or validated.
    """
    config_path = Path(config_path)
    if not config_path.exists():
        logger.info("No config at %s, using default versions", config_path)
        return default_config()

    try:
        with config_path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Cannot parse {config_path}: {e}") from e

    return validate_benchmark_config(data)


def resolve_comparison_versions(
    config: BenchmarkConfig, overrides: Mapping[str, str | None] | None = None
) -> dict[str, str]:
    """Config defaults with per-invocation overrides applied."""
    versions = config.comparison_libraries.model_dump()
    for name, version in (overrides or {}).items():
        if version:
            versions[name] = version
    return versions


@dataclass
class BenchmarkProgress:
    """Progress callback information.

    Attributes:
        phase: Current orchestration phase.
        runtime: Runtime being run, if any.
        scenario: Scenario being run, if any.
        message: Human-readable detail.
    """

    phase: Phase
    runtime: str | None = None
    scenario: str | None = None
    message: str = ""


ProgressCallback = Callable[[BenchmarkProgress], None]
Provisioner = Callable[[WorkspaceConfig], AbstractContextManager[Workspace]]


@dataclass
class RunReport:
    """Outcome of a benchmark request.

    Attributes:
        outcomes: Per-runtime result, in execution order.
        written: Result files written.
        skipped: Runtimes not attempted because of fail-fast.
    """

    outcomes: dict[str, Result[list[BenchmarkResult]]]
    written: list[Path] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)

    @property
    def failures(self) -> list[Err]:
        return failures(self.outcomes.values())

    @property
    def results(self) -> list[BenchmarkResult]:
        return [r for batch in successes(self.outcomes.values()) for r in batch]

    @property
    def exit_code(self) -> int:
        return 1 if self.failures else 0

    def summary(self) -> str:
        return (
            f"Completed: {len(self.written)} result(s) written, "
            f"{len(self.failures)} runtime(s) failed"
        )


@dataclass
class BenchmarkRunner:
    """Main benchmark runner.

    Attributes:
        request: Validated benchmark request.
        adapters: Adapter overrides by runtime id (default: get_adapter).
        provisioner: Workspace context manager factory.
        output_dir: Directory receiving result files.
        cache_root: Workspace cache location override.
        install_command: Workspace install command override.
        progress_callback: Optional callback for progress updates.
    """

    request: BenchmarkRequest
    adapters: Mapping[str, RuntimeAdapter] | None = None
    provisioner: Provisioner = provision
    output_dir: Path = DEFAULT_DATA_DIR
    cache_root: Path | None = None
    install_command: tuple[str, ...] | None = None
    progress_callback: ProgressCallback | None = None

    def _progress(
        self,
        phase: Phase,
        runtime: str | None = None,
        scenario: str | None = None,
        message: str = "",
    ) -> None:
        if self.progress_callback:
            self.progress_callback(
                BenchmarkProgress(phase=phase, runtime=runtime, scenario=scenario, message=message)
            )

    def get_adapter(self, runtime_id: str) -> RuntimeAdapter:
        if self.adapters and runtime_id in self.adapters:
            return self.adapters[runtime_id]
        return get_adapter(runtime_id)

    def workspace_config(self) -> WorkspaceConfig:
        return WorkspaceConfig(
            target_version=self.request.release,
            comparison_versions=self.request.comparison_versions,
            use_cache=self.request.use_cache,
            cache_root=self.cache_root,
            install_command=self.install_command,
        )

    def run_for_runtime(
        self, adapter: RuntimeAdapter, workspace: Workspace
    ) -> list[BenchmarkResult]:
        """Run every requested scenario on one runtime, in order.

        Raises:
            RuntimeUnavailableError: If the runtime cannot be detected.
            HarnessError, ResultValidationError: On the first failing scenario.
        """
        if not adapter.detect():
            raise RuntimeUnavailableError(adapter.id)

        version = adapter.version()
        self._progress(
            Phase.RUNNING_RUNTIMES,
            runtime=adapter.id,
            message=f"{adapter.id} {version}: starting benchmarks",
        )

        results: list[BenchmarkResult] = []
        for scenario in self.request.scenarios:
            self._progress(Phase.RUNNING_RUNTIMES, runtime=adapter.id, scenario=scenario)
            opts = ScenarioOptions(
                release_tag=self.request.release,
                scenario=scenario,
                workspace=workspace.path,
                repeat=self.request.repeat,
                warmup=self.request.warmup,
                depth=self.request.depth,
                timeout=self.request.timeout,
            )
            results.append(adapter.run_scenario(opts))

        self._progress(
            Phase.RUNNING_RUNTIMES,
            runtime=adapter.id,
            message=f"{adapter.id} {version}: completed {len(results)} scenario(s)",
        )
        return results

    def run_runtimes(
        self, workspace: Workspace
    ) -> tuple[dict[str, Result[list[BenchmarkResult]]], list[str]]:
        """Run runtimes one after another.

        Runtimes never run concurrently: they would compete for CPU and
        distort each other's timings.

        Returns:
            Tuple of (outcomes by runtime id, runtimes skipped by fail-fast).
        """
        outcomes: dict[str, Result[list[BenchmarkResult]]] = {}
        runtimes = self.request.runtimes
        for index, runtime_id in enumerate(runtimes):
            outcome = wrap_result(
                runtime_id, self.run_for_runtime, self.get_adapter(runtime_id), workspace
            )
            outcomes[runtime_id] = outcome
            if isinstance(outcome, Err):
                logger.warning("Runtime %s failed: %s", runtime_id, outcome.error)
                if self.request.fail_fast:
                    return outcomes, list(runtimes[index + 1 :])
        return outcomes, []

    def write_results(self, outcomes: dict[str, Result[list[BenchmarkResult]]]) -> list[Path]:
        """Write every successful result.

        A runtime whose files cannot be written (disk full, permissions) is
        turned into a failure in ``outcomes``; files already written for it
        are kept.
        """
        written: list[Path] = []
        for runtime_id, outcome in list(outcomes.items()):
            match outcome:
                case Ok(value=results):
                    try:
                        for result in results:
                            path = write_result(result, self.output_dir)
                            self._progress(Phase.WRITING, message=f"Wrote: {path}")
                            written.append(path)
                    except OSError as e:
                        logger.error("Cannot write results for %s: %s", runtime_id, e)
                        outcomes[runtime_id] = Err(error=e, context=runtime_id)
                case Err():
                    continue
        return written

    def run_all(self) -> RunReport:
        """Run the whole request.

        Raises:
            InstallError: If the workspace cannot be provisioned.
        """
        request = self.request
        self._progress(
            Phase.PARSING,
            message=(
                f"trio {request.release} on {', '.join(request.runtimes)}: "
                f"{len(request.scenarios)} scenario(s)"
            ),
        )
        if request.repeat < MIN_RECOMMENDED_REPEAT:
            logger.warning(
                "repeat=%d gives fewer than %d samples per scenario; "
                "results are not suitable for comparisons",
                request.repeat,
                MIN_RECOMMENDED_REPEAT,
            )

        self._progress(Phase.WORKSPACE_PROVISIONING)
        with self.provisioner(self.workspace_config()) as workspace:
            logger.info("Workspace ready at %s", workspace.path)
            outcomes, skipped = self.run_runtimes(workspace)

        self._progress(Phase.WRITING)
        written = self.write_results(outcomes)

        report = RunReport(outcomes=outcomes, written=written, skipped=skipped)
        self._progress(Phase.REPORTING, message=report.summary())
        return report


def _avg_time(result: BenchmarkResult, entry_index: int = 0) -> float:
    entry = result.results[entry_index]
    if entry.samples is not None:
        return compute_stats(entry.samples).avg_time
    return entry.stats.avg_time


def format_results_table(results: list[BenchmarkResult]) -> str:
    """Format average times as a scenario x runtime table.

    Args:
        results: Benchmark results (one per scenario and runtime).

    Returns:
        Formatted table string.
    """
    lines = []

    # Group results by scenario, then runtime label
    table: dict[str, dict[str, float]] = {}
    labels: list[str] = []
    for result in results:
        metadata = result.metadata
        label = f"{metadata.runtime}-{metadata.runtime_major_version}"
        if label not in labels:
            labels.append(label)
        table.setdefault(metadata.scenario, {})[label] = _avg_time(result)

    width = 22
    lines.append("Average time per iteration (ms):")
    header = f"{'Scenario':<{width}}"
    for label in labels:
        header += f" {label:>12}"
    lines.append(header)
    lines.append("-" * (width + 13 * len(labels)))

    for scenario, by_runtime in sorted(table.items()):
        row = f"{scenario:<{width}}"
        for label in labels:
            if label in by_runtime:
                row += f" {by_runtime[label]:>12.3f}"
            else:
                row += f" {'-':>12}"
        lines.append(row)

    return "\n".join(lines)
