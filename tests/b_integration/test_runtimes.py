"""Integration tests for scbench.runtimes module."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

from scbench.errors import (
    ConfigurationError,
    HarnessError,
    ResultValidationError,
    RuntimeUnavailableError,
)
from scbench.runner import BenchmarkRequest, BenchmarkRunner
from scbench.runtimes import (
    RuntimeAdapter,
    ScenarioOptions,
    detect_runtimes,
    parse_harness_output,
    parse_major_version,
)
from scbench.schema import RUNTIMES
from scbench.store import load_results
from scbench.workspace import WorkspaceConfig, provision

IS_CPYTHON = sys.implementation.name == "cpython"

# Creates an empty packages directory instead of calling pip
NOOP_INSTALL = (sys.executable, "-c", "import os, sys; os.makedirs(sys.argv[1])", "{target}")

requires_cpython = pytest.mark.skipif(not IS_CPYTHON, reason="Tests run under CPython")


@pytest.fixture
def workspace_dir():
    config = WorkspaceConfig(target_version="0.27.0", install_command=NOOP_INSTALL)
    with provision(config) as workspace:
        yield workspace.path


class TestParseMajorVersion:
    """Tests for parse_major_version function."""

    @pytest.mark.parametrize(
        ("version", "expected"),
        [("3.12.4", 3), ("v7.3.17", 7), ("24.1.0", 24), ("", 0), ("dev", 0)],
    )
    def test_versions(self, version: str, expected: int) -> None:
        """Test leading-number extraction."""
        assert parse_major_version(version) == expected


class TestParseHarnessOutput:
    """Tests for parse_harness_output function."""

    def test_skips_noise(self) -> None:
        """Test that the first JSON line is used."""
        stdout = 'warming up\n{"results":[{"name":"trio","samples":[1.5]}]}\n{"ignored":1}\n'

        output = parse_harness_output(stdout, "trio.recursion")

        assert output.results[0].samples == [1.5]

    def test_no_json(self) -> None:
        """Test that output without JSON is a harness error."""
        with pytest.raises(HarnessError, match="did not output JSON"):
            parse_harness_output("Error: boom\n", "trio.recursion")

    def test_bad_json(self) -> None:
        """Test that an undecodable line is a harness error."""
        with pytest.raises(HarnessError):
            parse_harness_output("{oops\n", "trio.recursion")

    def test_wrong_shape(self) -> None:
        """Test that schema violations carry the raw output."""
        with pytest.raises(ResultValidationError, match="Output:"):
            parse_harness_output('{"results":[{"name":"trio","samples":[]}]}', "trio.recursion")


class TestRuntimeDetection:
    """Tests for runtime detection."""

    @requires_cpython
    def test_detect_cpython(self) -> None:
        """Test CPython detection through an explicit binary."""
        adapter = RuntimeAdapter("cpython", binary=sys.executable)
        info = adapter.probe()

        assert info.name == "cpython"
        assert info.available is True
        assert info.path is not None
        assert "." in info.version
        assert adapter.detect() is True
        assert adapter.major_version() == sys.implementation.version.major

    @requires_cpython
    def test_implementation_mismatch(self) -> None:
        """Test that a CPython binary does not count as PyPy."""
        adapter = RuntimeAdapter("pypy", binary=sys.executable)

        assert adapter.detect() is False

    def test_missing_binary(self, tmp_path: Path) -> None:
        """Test that a missing interpreter is unavailable, not an error."""
        adapter = RuntimeAdapter("graalpy", binary=str(tmp_path / "no-such-python"))

        assert adapter.detect() is False
        info = adapter.probe()
        assert info.path is None
        with pytest.raises(RuntimeUnavailableError):
            adapter.version()

    def test_unknown_runtime(self) -> None:
        """Test that unknown ids are rejected."""
        with pytest.raises(ConfigurationError):
            RuntimeAdapter("jython")

    def test_detect_runtimes(self) -> None:
        """Test detection of all runtimes."""
        runtimes = detect_runtimes()

        assert list(runtimes) == list(RUNTIMES)
        for name, info in runtimes.items():
            assert info.name == name
            if info.available:
                assert info.path is not None
                assert len(info.version) > 0
            else:
                assert info.path is None


@requires_cpython
class TestRunScenario:
    """Tests for running the harness inside a provisioned workspace."""

    def test_run_scenario(self, workspace_dir: Path) -> None:
        """Test that a scenario run yields a validated record."""
        adapter = RuntimeAdapter("cpython", binary=sys.executable)
        opts = ScenarioOptions(
            release_tag="0.27.0",
            scenario="asyncio.recursion",
            workspace=workspace_dir,
            repeat=3,
            warmup=1,
            depth=5,
        )

        result = adapter.run_scenario(opts)

        assert result.schema_version == 2
        assert result.metadata.runtime == "cpython"
        assert result.metadata.runtime_major_version == sys.implementation.version.major
        assert result.metadata.scenario == "asyncio.recursion"
        assert result.metadata.benchmark_params.repeat == 3
        assert result.results[0].name == "asyncio"
        assert len(result.results[0].samples) == 3

    def test_workspace_not_modified(self, workspace_dir: Path) -> None:
        """Test that running the harness leaves no bytecode behind."""
        adapter = RuntimeAdapter("cpython", binary=sys.executable)
        opts = ScenarioOptions(
            release_tag="0.27.0",
            scenario="callbacks.events",
            workspace=workspace_dir,
            repeat=1,
            warmup=0,
            depth=3,
        )

        adapter.run_scenario(opts)

        assert not list(workspace_dir.rglob("__pycache__"))

    def test_unknown_scenario_fails(self, workspace_dir: Path) -> None:
        """Test that a harness usage error becomes HarnessError."""
        adapter = RuntimeAdapter("cpython", binary=sys.executable)
        opts = ScenarioOptions(release_tag="0.27.0", scenario="nope", workspace=workspace_dir)

        with pytest.raises(HarnessError) as exc_info:
            adapter.run_scenario(opts)

        assert exc_info.value.returncode == 1
        assert "Unknown scenario" in exc_info.value.stderr

    def test_timeout(self, workspace_dir: Path) -> None:
        """Test that a slow harness is killed and reported."""
        adapter = RuntimeAdapter("cpython", binary=sys.executable)
        opts = ScenarioOptions(
            release_tag="0.27.0",
            scenario="asyncio.recursion",
            workspace=workspace_dir,
            timeout=0.001,
        )

        with pytest.raises(HarnessError, match="timed out"):
            adapter.run_scenario(opts)


@requires_cpython
class TestEndToEnd:
    """Tests for a full orchestrated run on the current interpreter."""

    def test_run_all(self, tmp_path: Path) -> None:
        """Test provisioning, running and writing with real subprocesses."""
        runner = BenchmarkRunner(
            request=BenchmarkRequest(
                release="0.27.0",
                runtimes=("cpython",),
                scenarios=("asyncio.recursion", "callbacks.events"),
                repeat=5,
                warmup=1,
                depth=5,
            ),
            adapters={"cpython": RuntimeAdapter("cpython", binary=sys.executable)},
            output_dir=tmp_path / "json",
            install_command=NOOP_INSTALL,
        )

        report = runner.run_all()

        assert report.exit_code == 0, report.failures
        assert len(report.written) == 2
        stored = load_results(tmp_path / "json")
        assert sorted(r.metadata.scenario for r in stored) == [
            "asyncio.recursion",
            "callbacks.events",
        ]
