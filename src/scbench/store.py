"""JSON file storage for benchmark results.

One validated result per file, pretty-printed UTF-8 JSON, named
``<date>-<release>-<runtime>-<runtimeMajor>-<scenario>.json``. Filenames are
for humans; the metadata inside each file is authoritative. Files are
never rewritten once created.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from scbench.errors import ResultValidationError
from scbench.schema import (
    BenchmarkResult,
    dump_benchmark_result,
    parse_benchmark_result,
    validate_benchmark_result,
)

logger = logging.getLogger(__name__)

DEFAULT_DATA_DIR = Path("data") / "json"


def result_filename(result: BenchmarkResult) -> str:
    metadata = result.metadata
    date = datetime.fromisoformat(metadata.timestamp).date().isoformat()
    return (
        f"{date}-{metadata.release_tag}-{metadata.runtime}-"
        f"{metadata.runtime_major_version}-{metadata.scenario}.json"
    )


def write_result(result: BenchmarkResult, data_dir: Path | str = DEFAULT_DATA_DIR) -> Path:
    """Validate a result and write it to a new file.

    If the deterministic filename already exists, a numeric suffix is added
    (``-2``, ``-3``, ...) so that earlier records are never overwritten.

    Returns:
        Path of the file written.
    """
    result = validate_benchmark_result(result)
    data_dir = Path(data_dir)
    data_dir.mkdir(parents=True, exist_ok=True)

    content = dump_benchmark_result(result)
    base = result_filename(result).removesuffix(".json")
    attempt = 1
    while True:
        name = f"{base}.json" if attempt == 1 else f"{base}-{attempt}.json"
        path = data_dir / name
        try:
            with path.open("x", encoding="utf-8") as f:
                f.write(content)
        except FileExistsError:
            attempt += 1
            continue
        logger.debug("Wrote %s", path)
        return path


def load_result(path: Path) -> BenchmarkResult:
    try:
        return parse_benchmark_result(path.read_bytes())
    except ResultValidationError as e:
        raise ResultValidationError(f"{path}: {e}") from e


def load_results(data_dir: Path | str = DEFAULT_DATA_DIR) -> list[BenchmarkResult]:
    """Load and validate every result file in a directory, sorted by name."""
    data_dir = Path(data_dir)
    if not data_dir.is_dir():
        return []
    return [load_result(path) for path in sorted(data_dir.glob("*.json"))]


@dataclass
class StoreSummary:
    """Counts of stored results.

    Attributes:
        total: Number of result files.
        releases: Files per release tag.
        runtimes: Files per "runtime-major" label (e.g., "cpython-3").
        scenarios: Files per scenario.
        latest: Most recent timestamp, or None if empty.
    """

    total: int = 0
    releases: Counter[str] = field(default_factory=Counter)
    runtimes: Counter[str] = field(default_factory=Counter)
    scenarios: Counter[str] = field(default_factory=Counter)
    latest: str | None = None


def summarize(results: list[BenchmarkResult]) -> StoreSummary:
    summary = StoreSummary(total=len(results))
    for result in results:
        metadata = result.metadata
        summary.releases[metadata.release_tag] += 1
        summary.runtimes[f"{metadata.runtime}-{metadata.runtime_major_version}"] += 1
        summary.scenarios[metadata.scenario] += 1
    if results:
        summary.latest = max(
            (r.metadata.timestamp for r in results), key=datetime.fromisoformat
        )
    return summary
