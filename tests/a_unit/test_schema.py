"""Unit tests for scbench.schema module."""

from __future__ import annotations

import copy
import json
from typing import Any

import pytest

from scbench.errors import ConfigurationError, ResultValidationError
from scbench.schema import (
    SCHEMA_VERSION,
    dump_benchmark_result,
    parse_benchmark_result,
    validate_benchmark_config,
    validate_benchmark_result,
    validate_harness_output,
)

RECORD: dict[str, Any] = {
    "schemaVersion": 2,
    "metadata": {
        "releaseTag": "0.27.0",
        "runtime": "cpython",
        "runtimeMajorVersion": 3,
        "timestamp": "2026-01-15T10:30:00+00:00",
        "runner": {"os": "linux", "arch": "x86_64"},
        "scenario": "trio.recursion",
        "benchmarkParams": {"repeat": 3, "warmup": 1, "depth": 100},
    },
    "results": [{"name": "trio", "samples": [1.5, 1.25, 1.75]}],
}

STATS = {
    "avgTime": 1.5,
    "minTime": 1.25,
    "maxTime": 1.75,
    "stdDev": 0.2,
    "p50": 1.5,
    "p95": 1.75,
    "p99": 1.75,
}


def make_record(**metadata: Any) -> dict[str, Any]:
    record = copy.deepcopy(RECORD)
    record["metadata"].update(metadata)
    return record


class TestValidateBenchmarkResult:
    """Tests for validate_benchmark_result function."""

    def test_valid_record(self) -> None:
        """Test that a well-formed v2 record validates."""
        result = validate_benchmark_result(make_record())

        assert result.schema_version == SCHEMA_VERSION
        assert result.metadata.runtime == "cpython"
        assert result.metadata.benchmark_params.depth == 100
        assert result.results[0].samples == [1.5, 1.25, 1.75]

    def test_v1_stats_record(self) -> None:
        """Test that v1 records with aggregates are still accepted."""
        record = make_record()
        record["schemaVersion"] = 1
        record["results"] = [{"name": "trio", "stats": STATS}]

        result = validate_benchmark_result(record)

        assert result.results[0].stats is not None
        assert result.results[0].stats.avg_time == 1.5

    def test_v1_with_samples_rejected(self) -> None:
        """Test that a v1 record must carry aggregates."""
        record = make_record()
        record["schemaVersion"] = 1

        with pytest.raises(ResultValidationError):
            validate_benchmark_result(record)

    def test_v2_with_stats_rejected(self) -> None:
        """Test that a v2 record must carry samples."""
        record = make_record()
        record["results"] = [{"name": "trio", "stats": STATS}]

        with pytest.raises(ResultValidationError):
            validate_benchmark_result(record)

    def test_both_payloads_rejected(self) -> None:
        """Test that an entry cannot carry samples and stats."""
        record = make_record()
        record["results"] = [{"name": "trio", "samples": [1.0], "stats": STATS}]

        with pytest.raises(ResultValidationError):
            validate_benchmark_result(record)

    def test_future_version_rejected(self) -> None:
        """Test that newer schema versions are not accepted."""
        record = make_record()
        record["schemaVersion"] = SCHEMA_VERSION + 1

        with pytest.raises(ResultValidationError):
            validate_benchmark_result(record)

    @pytest.mark.parametrize(
        "samples",
        [[], [-1.0], [float("nan")], [float("inf")], [1.0, "fast"]],
    )
    def test_bad_samples_rejected(self, samples: list[Any]) -> None:
        """Test empty, negative and non-finite samples."""
        record = make_record()
        record["results"] = [{"name": "trio", "samples": samples}]

        with pytest.raises(ResultValidationError):
            validate_benchmark_result(record)

    def test_empty_results_rejected(self) -> None:
        """Test that at least one result entry is required."""
        record = make_record()
        record["results"] = []

        with pytest.raises(ResultValidationError):
            validate_benchmark_result(record)

    def test_timestamp_without_offset_rejected(self) -> None:
        """Test that naive timestamps are rejected."""
        with pytest.raises(ResultValidationError):
            validate_benchmark_result(make_record(timestamp="2026-01-15T10:30:00"))

    def test_timestamp_not_iso_rejected(self) -> None:
        """Test that free-form dates are rejected."""
        with pytest.raises(ResultValidationError):
            validate_benchmark_result(make_record(timestamp="yesterday"))

    def test_unknown_runtime_rejected(self) -> None:
        """Test that the runtime must be a known id."""
        with pytest.raises(ResultValidationError):
            validate_benchmark_result(make_record(runtime="jython"))

    def test_major_version_must_be_int(self) -> None:
        """Test that numeric strings are not coerced."""
        with pytest.raises(ResultValidationError):
            validate_benchmark_result(make_record(runtimeMajorVersion="3"))

    @pytest.mark.parametrize(
        "params",
        [
            {"repeat": 0, "warmup": 1, "depth": 100},
            {"repeat": 3, "warmup": -1, "depth": 100},
            {"repeat": 3, "warmup": 1, "depth": 0},
            {"repeat": 3, "warmup": 1},
        ],
    )
    def test_bad_params_rejected(self, params: dict[str, int]) -> None:
        """Test benchmark parameter bounds."""
        with pytest.raises(ResultValidationError):
            validate_benchmark_result(make_record(benchmarkParams=params))

    def test_unknown_key_rejected(self) -> None:
        """Test that unexpected fields are rejected."""
        record = make_record()
        record["extra"] = True

        with pytest.raises(ResultValidationError):
            validate_benchmark_result(record)

    def test_missing_metadata_rejected(self) -> None:
        """Test that metadata is required."""
        record = make_record()
        del record["metadata"]

        with pytest.raises(ResultValidationError):
            validate_benchmark_result(record)


class TestSerialization:
    """Tests for dump_benchmark_result and parse_benchmark_result."""

    def test_round_trip(self) -> None:
        """Test that a dumped record parses back to an equal record."""
        result = validate_benchmark_result(make_record())

        assert parse_benchmark_result(dump_benchmark_result(result)) == result

    def test_wire_names(self) -> None:
        """Test that dumps use camelCase keys and omit absent payloads."""
        text = dump_benchmark_result(validate_benchmark_result(make_record()))
        data = json.loads(text)

        assert data == RECORD
        assert text.endswith("\n")

    def test_parse_invalid_json(self) -> None:
        """Test that malformed JSON is a validation error."""
        with pytest.raises(ResultValidationError):
            parse_benchmark_result("{not json")


class TestValidateHarnessOutput:
    """Tests for validate_harness_output function."""

    def test_valid(self) -> None:
        """Test a well-formed harness line."""
        output = validate_harness_output({"results": [{"name": "trio", "samples": [0.5]}]})

        assert output.results[0].name == "trio"

    def test_stats_rejected(self) -> None:
        """Test that the harness must report raw samples."""
        with pytest.raises(ResultValidationError):
            validate_harness_output({"results": [{"name": "trio", "stats": STATS}]})

    def test_missing_results(self) -> None:
        """Test that a results list is required."""
        with pytest.raises(ResultValidationError):
            validate_harness_output({})


class TestValidateBenchmarkConfig:
    """Tests for validate_benchmark_config function."""

    def test_valid(self) -> None:
        """Test a complete config."""
        config = validate_benchmark_config(
            {
                "trioVersions": ["0.27.0"],
                "comparisonLibraries": {"anyio": "4.6.2", "reactivex": "4.0.4", "curio": "1.6"},
            }
        )

        assert config.trio_versions == ["0.27.0"]
        assert config.comparison_libraries.curio == "1.6"

    def test_missing_library(self) -> None:
        """Test that every comparison library needs a version."""
        with pytest.raises(ConfigurationError):
            validate_benchmark_config(
                {
                    "trioVersions": ["0.27.0"],
                    "comparisonLibraries": {"anyio": "4.6.2", "reactivex": "4.0.4"},
                }
            )

    def test_not_a_mapping(self) -> None:
        """Test that a non-object document is rejected."""
        with pytest.raises(ConfigurationError):
            validate_benchmark_config(["0.27.0"])
