"""Pydantic models for benchmark result validation.

This is the single source of truth for the on-disk result format. Every
record is validated before it is written and again whenever it is read.

Schema versions:
    1: Results store pre-computed aggregates (``{name, stats}``).
    2: Results store raw timing samples (``{name, samples}``); aggregates
       are derived by downstream consumers.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Literal, NoReturn

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from scbench.errors import ConfigurationError, ResultValidationError
from scbench.scenarios import list_scenarios

SCHEMA_VERSION = 2

RUNTIMES = ("cpython", "pypy", "graalpy")
RuntimeId = Literal["cpython", "pypy", "graalpy"]

SCENARIOS = tuple(list_scenarios())

# Timing value in milliseconds
Millis = Annotated[float, Field(ge=0, allow_inf_nan=False)]
Samples = Annotated[list[Millis], Field(min_length=1)]


class _Record(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
        frozen=True,
    )


class StatsEntry(_Record):
    """Pre-aggregated statistics (schema version 1 only)."""

    avg_time: Millis
    min_time: Millis
    max_time: Millis
    std_dev: Millis
    p50: Millis
    p95: Millis
    p99: Millis


class ResultEntry(_Record):
    """Measurements for one library implementation."""

    name: str = Field(min_length=1)
    samples: Samples | None = None
    stats: StatsEntry | None = None

    @model_validator(mode="after")
    def _exactly_one_payload(self) -> ResultEntry:
        if (self.samples is None) == (self.stats is None):
            raise ValueError("exactly one of 'samples' or 'stats' is required")
        return self


class Runner(_Record):
    os: str = Field(min_length=1)
    arch: str = Field(min_length=1)


class BenchmarkParams(_Record):
    repeat: int = Field(gt=0, strict=True)
    warmup: int = Field(ge=0, strict=True)
    depth: int = Field(gt=0, strict=True)


class Metadata(_Record):
    """Where, when and how a result was measured."""

    release_tag: str = Field(min_length=1)
    runtime: RuntimeId
    runtime_major_version: int = Field(ge=0, strict=True)
    timestamp: str
    runner: Runner
    scenario: str = Field(min_length=1)
    benchmark_params: BenchmarkParams

    @field_validator("timestamp")
    @classmethod
    def _iso_with_offset(cls, value: str) -> str:
        try:
            parsed = datetime.fromisoformat(value)
        except ValueError as e:
            raise ValueError(f"not an ISO-8601 timestamp: {value!r}") from e
        if parsed.tzinfo is None:
            raise ValueError(f"timestamp has no UTC offset: {value!r}")
        return value


class BenchmarkResult(_Record):
    """Complete benchmark result file."""

    schema_version: int = Field(ge=1, strict=True)
    metadata: Metadata
    results: list[ResultEntry] = Field(min_length=1)

    @model_validator(mode="after")
    def _payload_matches_version(self) -> BenchmarkResult:
        if self.schema_version > SCHEMA_VERSION:
            raise ValueError(
                f"schemaVersion {self.schema_version} is newer than "
                f"supported version {SCHEMA_VERSION}"
            )
        for entry in self.results:
            if self.schema_version == 1 and entry.stats is None:
                raise ValueError(f"schemaVersion 1 entry {entry.name!r} needs 'stats'")
            if self.schema_version >= 2 and entry.samples is None:
                raise ValueError(
                    f"schemaVersion {self.schema_version} entry {entry.name!r} "
                    "needs 'samples'"
                )
        return self


class HarnessOutput(_Record):
    """JSON line printed by the harness on success."""

    results: list[ResultEntry] = Field(min_length=1)

    @model_validator(mode="after")
    def _samples_only(self) -> HarnessOutput:
        for entry in self.results:
            if entry.samples is None:
                raise ValueError(f"harness entry {entry.name!r} has no samples")
        return self


class ComparisonLibraries(BaseModel):
    anyio: str = Field(min_length=1)
    reactivex: str = Field(min_length=1)
    curio: str = Field(min_length=1)


class BenchmarkConfig(BaseModel):
    """Configuration file (benchmark.config.json)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    trio_versions: list[Annotated[str, Field(min_length=1)]] = Field(min_length=1)
    comparison_libraries: ComparisonLibraries


def _invalid(what: str, exc: ValidationError) -> NoReturn:
    raise ResultValidationError(f"Invalid {what}: {exc}", {"errors": exc.errors()}) from exc


def validate_benchmark_result(data: Any) -> BenchmarkResult:
    """Validate a benchmark result and return the typed record.

    Raises:
        ResultValidationError: If the data does not match the schema.
    """
    try:
        return BenchmarkResult.model_validate(data)
    except ValidationError as e:
        _invalid("benchmark result", e)


def parse_benchmark_result(text: str | bytes) -> BenchmarkResult:
    """Parse and validate a JSON-encoded benchmark result."""
    try:
        return BenchmarkResult.model_validate_json(text)
    except ValidationError as e:
        _invalid("benchmark result", e)


def dump_benchmark_result(result: BenchmarkResult) -> str:
    """Serialize a result as pretty-printed JSON using wire field names."""
    return result.model_dump_json(indent=2, by_alias=True, exclude_none=True) + "\n"


def validate_harness_output(data: Any) -> HarnessOutput:
    try:
        return HarnessOutput.model_validate(data)
    except ValidationError as e:
        _invalid("harness output", e)


def validate_benchmark_config(data: Any) -> BenchmarkConfig:
    """Validate the contents of a benchmark config file.

    Raises:
        ConfigurationError: If required keys are missing or malformed.
    """
    try:
        return BenchmarkConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid benchmark config: {e}") from e
