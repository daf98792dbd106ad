"""Command-line interface for the benchmark orchestrator.

Provides the `scbench` command with subcommands for:
- Running benchmarks for a trio release on one or more runtimes
- Showing available runtimes and registered scenarios
- Summarizing stored result files
- Clearing the workspace cache
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from scbench.errors import BenchError
from scbench.runner import (
    DEFAULT_CONFIG_PATH,
    BenchmarkProgress,
    BenchmarkRequest,
    BenchmarkRunner,
    Phase,
    format_results_table,
    load_benchmark_config,
    resolve_comparison_versions,
)
from scbench.runtimes import DEFAULT_TIMEOUT, detect_runtimes
from scbench.scenarios import describe_scenario, scenarios
from scbench.schema import RUNTIMES
from scbench.store import DEFAULT_DATA_DIR, load_results, summarize
from scbench.workspace import clear_workspace_cache, get_cache_dir


class _ArgumentParser(argparse.ArgumentParser):
    """Argument parser whose usage errors exit with status 1."""

    def error(self, message: str) -> None:  # type: ignore[override]
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def _print_progress(p: BenchmarkProgress) -> None:
    if p.phase is Phase.RUNNING_RUNTIMES and p.scenario:
        print(f"  [{p.runtime}] {p.scenario}...", flush=True)
    elif p.message:
        print(p.message, flush=True)


def cmd_run(args: argparse.Namespace) -> int:
    """Run benchmarks."""
    try:
        config = load_benchmark_config(Path(args.config) if args.config else DEFAULT_CONFIG_PATH)
        comparison_versions = resolve_comparison_versions(
            config,
            {
                "anyio": args.anyio_version,
                "reactivex": args.reactivex_version,
                "curio": args.curio_version,
            },
        )
        request = BenchmarkRequest(
            release=args.release,
            runtimes=tuple(args.runtime),
            scenarios=tuple(args.scenario or ()),
            repeat=args.repeat,
            warmup=args.warmup,
            depth=args.depth,
            comparison_versions=comparison_versions,
            fail_fast=args.fail_fast,
            use_cache=args.cache_workspace,
            timeout=args.timeout,
        )
    except BenchError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print("scbench: structured concurrency benchmarks")
    print("=" * 60)
    print(f"  Release:   trio {request.release}")
    print(f"  Runtimes:  {', '.join(request.runtimes)}")
    print(f"  Scenarios: {', '.join(request.scenarios)}")
    versions = ", ".join(f"{k} {v}" for k, v in sorted(request.comparison_versions.items()))
    print(f"  Compared:  {versions}")
    print(f"  Params:    repeat={request.repeat} warmup={request.warmup} depth={request.depth}")
    print()

    runner = BenchmarkRunner(
        request=request,
        output_dir=Path(args.output_dir),
        progress_callback=None if args.quiet else _print_progress,
    )
    try:
        report = runner.run_all()
    except BenchError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if report.results:
        print()
        print(format_results_table(report.results))

    if report.failures:
        print("\nFailures:")
        for failure in report.failures:
            print(f"  {failure.context}: {failure.error}")
    if report.skipped:
        print(f"\nSkipped (fail-fast): {', '.join(report.skipped)}")

    print()
    print(report.summary())
    return report.exit_code


def cmd_runtimes(args: argparse.Namespace) -> int:
    """Show available runtimes."""
    runtimes = detect_runtimes()

    print("Available Runtimes")
    print("=" * 70)
    print(f"{'Name':<10} {'Version':<15} {'Status':<12} Path")
    print("-" * 70)

    for name in RUNTIMES:
        info = runtimes[name]
        status = "available" if info.available else "not found"
        version = info.version if info.available else "-"
        path = info.path or "-"
        print(f"{name:<10} {version:<15} {status:<12} {path}")

    return 0


def cmd_scenarios(args: argparse.Namespace) -> int:
    """Show registered scenarios."""
    print("Registered Scenarios")
    print("=" * 70)
    print(f"{'Name':<22} {'Library':<12} {'Kind':<10} Description")
    print("-" * 70)

    for scenario in scenarios.values():
        description = describe_scenario(scenario) or "-"
        print(f"{scenario.name:<22} {scenario.library:<12} {scenario.kind:<10} {description}")

    return 0


def cmd_status(args: argparse.Namespace) -> int:
    """Summarize stored results."""
    data_dir = Path(args.data_dir)
    try:
        results = load_results(data_dir)
    except BenchError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if not results:
        print(f"No benchmark results in {data_dir}.")
        return 0

    summary = summarize(results)
    print(f"Benchmark Results in {data_dir}")
    print("=" * 60)
    print(f"Total: {summary.total} result(s), latest {summary.latest}")

    for title, counter in (
        ("Releases", summary.releases),
        ("Runtimes", summary.runtimes),
        ("Scenarios", summary.scenarios),
    ):
        print(f"\n{title}:")
        for name, count in sorted(counter.items()):
            print(f"  {name:<24} {count:>5}")

    return 0


def cmd_clear_cache(args: argparse.Namespace) -> int:
    """Remove the workspace cache."""
    cache_dir = get_cache_dir()
    if clear_workspace_cache(cache_dir):
        print(f"Removed workspace cache at {cache_dir}")
    else:
        print(f"No workspace cache at {cache_dir}")
    return 0


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = _ArgumentParser(
        prog="scbench",
        description="Multi-runtime benchmarks for trio and other concurrency libraries",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # run command
    run_parser = subparsers.add_parser("run", help="Run benchmarks")
    run_parser.add_argument(
        "--release",
        required=True,
        help="trio version to benchmark (e.g., 0.27.0)",
    )
    run_parser.add_argument(
        "--runtime",
        action="append",
        required=True,
        choices=RUNTIMES,
        help="Runtime to benchmark on (repeatable, runs in the given order)",
    )
    run_parser.add_argument(
        "--scenario",
        action="append",
        help="Scenario to run (repeatable, default: all)",
    )
    run_parser.add_argument(
        "--repeat",
        type=int,
        default=10,
        help="Measured iterations per scenario (default: 10)",
    )
    run_parser.add_argument(
        "--warmup",
        type=int,
        default=3,
        help="Number of warmup iterations (default: 3)",
    )
    run_parser.add_argument(
        "--depth",
        type=int,
        default=100,
        help="Recursion depth for scenarios (default: 100)",
    )
    run_parser.add_argument("--anyio-version", help="Override the anyio version")
    run_parser.add_argument("--reactivex-version", help="Override the reactivex version")
    run_parser.add_argument("--curio-version", help="Override the curio version")
    run_parser.add_argument(
        "--cache-workspace",
        action="store_true",
        help="Reuse a cached workspace for this set of versions",
    )
    run_parser.add_argument(
        "--fail-fast",
        action="store_true",
        help="Stop after the first failing runtime",
    )
    run_parser.add_argument(
        "--timeout",
        type=float,
        default=DEFAULT_TIMEOUT,
        help=f"Timeout per scenario in seconds (default: {DEFAULT_TIMEOUT:.0f})",
    )
    run_parser.add_argument(
        "--config",
        help=f"Path to the benchmark config (default: {DEFAULT_CONFIG_PATH})",
    )
    run_parser.add_argument(
        "--output-dir",
        default=str(DEFAULT_DATA_DIR),
        help=f"Directory for result files (default: {DEFAULT_DATA_DIR})",
    )
    run_parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress output",
    )
    run_parser.set_defaults(func=cmd_run)

    # runtimes command
    runtimes_parser = subparsers.add_parser("runtimes", help="Show available runtimes")
    runtimes_parser.set_defaults(func=cmd_runtimes)

    # scenarios command
    scenarios_parser = subparsers.add_parser("scenarios", help="Show registered scenarios")
    scenarios_parser.set_defaults(func=cmd_scenarios)

    # status command
    status_parser = subparsers.add_parser("status", help="Summarize stored results")
    status_parser.add_argument(
        "--data-dir",
        default=str(DEFAULT_DATA_DIR),
        help=f"Directory containing result files (default: {DEFAULT_DATA_DIR})",
    )
    status_parser.set_defaults(func=cmd_status)

    # clear-cache command
    clear_parser = subparsers.add_parser("clear-cache", help="Remove the workspace cache")
    clear_parser.set_defaults(func=cmd_clear_cache)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command is None:
        parser.print_help()
        return 0

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
