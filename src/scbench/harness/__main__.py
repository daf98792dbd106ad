"""Benchmark harness entry point."""

from __future__ import annotations

import json
import sys
import traceback

from scbench.harness.args import (
    HarnessArgsError,
    parse_harness_args,
    validate_harness_args,
)
from scbench.harness.measure import measure
from scbench.scenarios import get_scenario, list_scenarios, load_scenario
from scbench.stats import compute_stats, format_stats


def _usage_error(message: str) -> int:
    print(f"Error: {message}", file=sys.stderr)
    print(f"\nAvailable scenarios: {', '.join(list_scenarios())}", file=sys.stderr)
    return 1


def main(argv: list[str] | None = None) -> int:
    """Run the harness; returns the process exit code."""
    try:
        args = parse_harness_args(sys.argv[1:] if argv is None else argv)
    except HarnessArgsError as e:
        return _usage_error(str(e))

    if args.list:
        for name in list_scenarios():
            print(name)
        return 0

    error = validate_harness_args(args)
    if error:
        return _usage_error(error)

    scenario = get_scenario(args.scenario)
    if scenario is None:
        return _usage_error(f"Unknown scenario: {args.scenario}")

    try:
        run = load_scenario(scenario)
        samples = measure(run, repeat=args.repeat, warmup=args.warmup, depth=args.depth)
    except Exception:
        print(f"Scenario {scenario.name} failed:", file=sys.stderr)
        traceback.print_exc()
        return 1

    if args.json:
        output = {"results": [{"name": scenario.library, "samples": samples}]}
        print(json.dumps(output, separators=(",", ":")))
    else:
        stats = compute_stats(samples)
        print(f"Scenario: {scenario.name}")
        print(f"Library: {scenario.library}")
        print(f"Stats: {format_stats(stats)}")
        print(f"  avgTime: {stats.avg_time:.3f} ms")
        print(f"  minTime: {stats.min_time:.3f} ms")
        print(f"  maxTime: {stats.max_time:.3f} ms")
        print(f"  stdDev: {stats.std_dev:.3f} ms")
        print(f"  p50: {stats.p50:.3f} ms")
        print(f"  p95: {stats.p95:.3f} ms")
        print(f"  p99: {stats.p99:.3f} ms")

    return 0


if __name__ == "__main__":
    sys.exit(main())
