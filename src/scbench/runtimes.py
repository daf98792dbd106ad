"""Runtime detection and harness execution.

Provides one adapter per target interpreter:
- CPython (reference interpreter)
- PyPy (tracing JIT)
- GraalPy (Truffle-based JIT)

Each adapter probes its interpreter for availability and version, runs the
harness as a subprocess inside a workspace, and turns the harness output
into a validated BenchmarkResult.
"""

from __future__ import annotations

import json
import logging
import os
import platform
import re
import shlex
import shutil
import subprocess
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from scbench.errors import (
    ConfigurationError,
    HarnessError,
    ResultValidationError,
    RuntimeUnavailableError,
)
from scbench.schema import (
    RUNTIMES,
    SCHEMA_VERSION,
    BenchmarkResult,
    HarnessOutput,
    validate_benchmark_result,
    validate_harness_output,
)

logger = logging.getLogger(__name__)

HARNESS_MODULE = "scbench.harness"

# Seconds per harness invocation, before the runtime's timeout_factor
DEFAULT_TIMEOUT = 600.0
PROBE_TIMEOUT = 10.0
DETECT_CONCURRENCY = 2

_PROBE_SOURCE = (
    "import sys; "
    "print(sys.implementation.name, "
    "'.'.join(map(str, sys.implementation.version[:3])))"
)


@dataclass(frozen=True)
class RuntimeInfo:
    """Information about a detected runtime.

    Attributes:
        name: Runtime identifier ("cpython", "pypy", "graalpy").
        version: Implementation version (e.g., "3.12.4", "7.3.17", "24.1.0").
        available: Whether the runtime is available.
        path: Path to the interpreter, or None if unavailable.
    """

    name: str
    version: str
    available: bool
    path: str | None


@dataclass(frozen=True)
class RuntimeSpec:
    """How to find and launch one runtime family.

    Attributes:
        implementation: Expected ``sys.implementation.name``.
        binaries: Executable names tried in order.
        prefix_args: Interpreter flags placed before ``-m scbench.harness``.
        timeout_factor: Multiplier applied to the harness timeout.
    """

    implementation: str
    binaries: tuple[str, ...]
    prefix_args: tuple[str, ...] = ("-s", "-B")
    timeout_factor: float = 1.0


RUNTIME_SPECS: dict[str, RuntimeSpec] = {
    "cpython": RuntimeSpec("cpython", ("python3", "python")),
    "pypy": RuntimeSpec("pypy", ("pypy3", "pypy")),
    # JIT warm-up on GraalPy is considerably slower than on the others
    "graalpy": RuntimeSpec("graalpy", ("graalpy",), timeout_factor=2.0),
}


@dataclass(frozen=True)
class ScenarioOptions:
    """Options for running one benchmark scenario.

    Attributes:
        release_tag: trio version under test (e.g., "0.27.0").
        scenario: Scenario name (e.g., "trio.recursion").
        workspace: Workspace directory; used read-only as working directory.
        repeat: Number of measured iterations.
        warmup: Number of warmup iterations to discard.
        depth: Recursion depth for the scenario.
        timeout: Harness timeout in seconds.
    """

    release_tag: str
    scenario: str
    workspace: Path
    repeat: int = 10
    warmup: int = 3
    depth: int = 100
    timeout: float = DEFAULT_TIMEOUT


def _probe_interpreter(executable: str) -> tuple[str, str] | None:
    """Return (implementation name, version) for an interpreter, or None."""
    try:
        result = subprocess.run(
            [executable, "-c", _PROBE_SOURCE],
            capture_output=True,
            text=True,
            timeout=PROBE_TIMEOUT,
        )
    except (subprocess.TimeoutExpired, FileNotFoundError, OSError):
        return None

    if result.returncode != 0:
        return None
    # Output is like "cpython 3.12.4" or "pypy 7.3.17"
    parts = result.stdout.split()
    if len(parts) != 2:
        return None
    return parts[0], parts[1]


def parse_major_version(version: str) -> int:
    """Return the leading major version number, or 0 if there is none."""
    match = re.match(r"^v?(\d+)", version.strip())
    return int(match.group(1)) if match else 0


def runner_info() -> dict[str, str]:
    """Describe the host running the benchmarks."""
    machine = platform.machine().lower()
    arch = {"amd64": "x86_64", "arm64": "aarch64"}.get(machine, machine)
    return {"os": platform.system().lower() or "unknown", "arch": arch or "unknown"}


def build_harness_args(opts: ScenarioOptions) -> list[str]:
    return [
        "--scenario", opts.scenario,
        "--repeat", str(opts.repeat),
        "--warmup", str(opts.warmup),
        "--depth", str(opts.depth),
        "--json",
    ]  # fmt: skip


def harness_environment(workspace: Path) -> dict[str, str]:
    """Environment for the harness: only the workspace's packages are importable."""
    env = dict(os.environ)
    env["PYTHONPATH"] = str(Path(workspace) / "site-packages")
    env["PYTHONDONTWRITEBYTECODE"] = "1"
    return env


def parse_harness_output(stdout: str, scenario: str) -> HarnessOutput:
    """Parse the first JSON line of harness stdout.

    Raises:
        HarnessError: If there is no JSON line or it does not decode.
        ResultValidationError: If the JSON does not match the harness schema.
    """
    json_line = next(
        (line for line in stdout.strip().splitlines() if line.startswith("{")), None
    )
    if json_line is None:
        raise HarnessError(
            f"Harness did not output JSON for scenario {scenario}. Output:\n{stdout}",
            stdout=stdout,
        )

    try:
        data = json.loads(json_line)
    except json.JSONDecodeError as e:
        raise HarnessError(
            f"Failed to parse harness JSON output for scenario {scenario}: {e}\n"
            f"Output:\n{stdout}",
            stdout=stdout,
        ) from e

    try:
        return validate_harness_output(data)
    except ResultValidationError as e:
        raise ResultValidationError(
            f"Invalid harness output format for scenario {scenario}: {e}\n"
            f"Output:\n{stdout}"
        ) from e


def _text(stream: str | bytes | None) -> str:
    if stream is None:
        return ""
    if isinstance(stream, bytes):
        return stream.decode("utf-8", errors="replace")
    return stream


def invoke_harness(
    command: list[str],
    runtime_id: str,
    runtime_major_version: int,
    opts: ScenarioOptions,
    timeout: float,
) -> BenchmarkResult:
    """Run the harness subprocess and return a validated BenchmarkResult.

    Raises:
        HarnessError: On launch failure, timeout, non-zero exit or
            unparseable output.
        ResultValidationError: If the output or the assembled record
            violates the schema.
    """
    logger.debug("Running %s in %s", shlex.join(command), opts.workspace)
    try:
        proc = subprocess.run(
            command,
            cwd=opts.workspace,
            env=harness_environment(opts.workspace),
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired as e:
        raise HarnessError(
            f"Harness timed out after {timeout:.0f}s for scenario {opts.scenario}",
            command=command,
            stderr=_text(e.stderr),
            stdout=_text(e.stdout),
        ) from e
    except OSError as e:
        raise HarnessError(f"Failed to launch harness: {e}", command=command) from e

    if proc.returncode != 0:
        raise HarnessError(
            f"Harness exited with code {proc.returncode} for scenario "
            f"{opts.scenario}: {proc.stderr.strip()}",
            command=command,
            returncode=proc.returncode,
            stderr=proc.stderr,
            stdout=proc.stdout,
        )

    output = parse_harness_output(proc.stdout, opts.scenario)

    record = {
        "schemaVersion": SCHEMA_VERSION,
        "metadata": {
            "releaseTag": opts.release_tag,
            "runtime": runtime_id,
            "runtimeMajorVersion": runtime_major_version,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "runner": runner_info(),
            "scenario": opts.scenario,
            "benchmarkParams": {
                "repeat": opts.repeat,
                "warmup": opts.warmup,
                "depth": opts.depth,
            },
        },
        "results": list(output.results),
    }

    try:
        return validate_benchmark_result(record)
    except ResultValidationError as e:
        raise ResultValidationError(f"{e}\nOutput:\n{proc.stdout}") from e


class RuntimeAdapter:
    """Detects one runtime and runs harness scenarios on it."""

    def __init__(self, runtime_id: str, binary: str | None = None) -> None:
        """Create an adapter.

        Args:
            runtime_id: One of RUNTIMES.
            binary: Explicit interpreter to use instead of searching PATH.
        """
        runtime_spec = RUNTIME_SPECS.get(runtime_id)
        if runtime_spec is None:
            raise ConfigurationError(
                f"Unknown runtime: {runtime_id} (expected one of {', '.join(RUNTIMES)})"
            )
        self.id = runtime_id
        self.runtime_spec = runtime_spec
        self.binary = binary

    def __repr__(self) -> str:
        return f"RuntimeAdapter({self.id!r}, binary={self.binary!r})"

    def probe(self) -> RuntimeInfo:
        """Locate the interpreter and read its implementation version."""
        candidates = (self.binary,) if self.binary else self.runtime_spec.binaries
        for executable in candidates:
            path = shutil.which(executable)
            if not path:
                continue
            probed = _probe_interpreter(path)
            if probed is None:
                continue
            implementation, version = probed
            # e.g. "python3" resolving to a PyPy build
            if implementation != self.runtime_spec.implementation:
                logger.debug(
                    "%s is %s, not %s", path, implementation, self.runtime_spec.implementation
                )
                continue
            return RuntimeInfo(name=self.id, version=version, available=True, path=path)

        return RuntimeInfo(name=self.id, version="", available=False, path=None)

    def detect(self) -> bool:
        """Best-effort availability check; never raises."""
        try:
            return self.probe().available
        except Exception:
            logger.debug("Probing %s failed", self.id, exc_info=True)
            return False

    def version(self) -> str:
        info = self.probe()
        if not info.available:
            raise RuntimeUnavailableError(self.id)
        return info.version

    def major_version(self) -> int:
        return parse_major_version(self.version())

    def build_command(self, executable: str, opts: ScenarioOptions) -> list[str]:
        return [
            executable,
            *self.runtime_spec.prefix_args,
            "-m",
            HARNESS_MODULE,
            *build_harness_args(opts),
        ]

    def run_scenario(self, opts: ScenarioOptions) -> BenchmarkResult:
        """Run one scenario in a subprocess of this runtime.

        Raises:
            RuntimeUnavailableError: If the interpreter cannot be found.
            HarnessError: If the harness fails.
            ResultValidationError: If its output violates the schema.
        """
        info = self.probe()
        if not info.available or info.path is None:
            raise RuntimeUnavailableError(self.id)

        return invoke_harness(
            command=self.build_command(info.path, opts),
            runtime_id=self.id,
            runtime_major_version=parse_major_version(info.version),
            opts=opts,
            timeout=opts.timeout * self.runtime_spec.timeout_factor,
        )


def get_adapter(runtime_id: str) -> RuntimeAdapter:
    return RuntimeAdapter(runtime_id)


def detect_runtimes(max_workers: int = DETECT_CONCURRENCY) -> dict[str, RuntimeInfo]:
    """Probe all known runtimes with a small bounded pool.

    Returns:
        Dictionary mapping runtime id to RuntimeInfo, in RUNTIMES order.
    """
    adapters = [get_adapter(runtime_id) for runtime_id in RUNTIMES]
    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        infos = list(pool.map(RuntimeAdapter.probe, adapters))
    return {info.name: info for info in infos}
