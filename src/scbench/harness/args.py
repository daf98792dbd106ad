"""Argument parsing for the benchmark harness subprocess."""

from __future__ import annotations

import argparse
from dataclasses import dataclass


class HarnessArgsError(ValueError):
    """Raised for malformed harness command lines."""


@dataclass
class HarnessArgs:
    """Parsed harness arguments.

    Attributes:
        scenario: Scenario to run (e.g., "trio.recursion").
        depth: Recursion depth.
        repeat: Number of measured iterations.
        warmup: Number of warmup iterations.
        json: Emit a single JSON line on stdout.
        list: List scenario names and exit.
    """

    scenario: str = ""
    depth: int = 100
    repeat: int = 10
    warmup: int = 3
    json: bool = False
    list: bool = False


class _Parser(argparse.ArgumentParser):
    def error(self, message: str):  # type: ignore[override]
        raise HarnessArgsError(message)


def create_parser() -> argparse.ArgumentParser:
    parser = _Parser(
        prog="scbench.harness",
        description="Run one benchmark scenario and report timing samples",
        add_help=False,
    )
    parser.add_argument("--scenario", default="")
    parser.add_argument("--depth", type=int, default=100)
    parser.add_argument("--repeat", type=int, default=10)
    parser.add_argument("--warmup", type=int, default=3)
    parser.add_argument("--json", action="store_true")
    parser.add_argument("--list", action="store_true")
    return parser


def parse_harness_args(argv: list[str]) -> HarnessArgs:
    """Parse harness CLI arguments.

    Raises:
        HarnessArgsError: On unknown flags or non-integer values.
    """
    ns = create_parser().parse_args(argv)
    return HarnessArgs(
        scenario=ns.scenario,
        depth=ns.depth,
        repeat=ns.repeat,
        warmup=ns.warmup,
        json=ns.json,
        list=ns.list,
    )


def validate_harness_args(args: HarnessArgs) -> str | None:
    """Return an error message for invalid arguments, or None."""
    if not args.scenario:
        return "Missing required --scenario argument"
    if args.depth <= 0:
        return "--depth must be positive"
    if args.repeat <= 0:
        return "--repeat must be positive"
    if args.warmup < 0:
        return "--warmup cannot be negative"
    return None
