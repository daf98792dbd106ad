"""Scenario registry.

Maps scenario names to the modules implementing them. Modules are imported
on demand so that a library missing from a workspace only breaks its own
scenarios. Like the harness, this package must only use the standard
library at import time.
"""

from __future__ import annotations

import importlib
from collections.abc import Callable
from dataclasses import dataclass

ScenarioFn = Callable[[int], None]


@dataclass(frozen=True)
class Scenario:
    """A registered benchmark scenario.

    Attributes:
        name: Scenario name (e.g., "trio.recursion").
        library: Library being benchmarked (e.g., "trio", "asyncio").
        kind: Workload type ("recursion" or "events").
        module: Module (relative to this package) defining ``run``.
    """

    name: str
    library: str
    kind: str
    module: str


_SCENARIOS = (
    Scenario("trio.recursion", "trio", "recursion", "trio_recursion"),
    Scenario("trio.events", "trio", "events", "trio_events"),
    Scenario("anyio.recursion", "anyio", "recursion", "anyio_recursion"),
    Scenario("anyio.events", "anyio", "events", "anyio_events"),
    Scenario("reactivex.recursion", "reactivex", "recursion", "reactivex_recursion"),
    Scenario("reactivex.events", "reactivex", "events", "reactivex_events"),
    Scenario("curio.recursion", "curio", "recursion", "curio_recursion"),
    Scenario("asyncio.recursion", "asyncio", "recursion", "asyncio_recursion"),
    Scenario("callbacks.events", "callbacks", "events", "callbacks_events"),
)

scenarios: dict[str, Scenario] = {s.name: s for s in _SCENARIOS}


def get_scenario(name: str) -> Scenario | None:
    return scenarios.get(name)


def list_scenarios() -> list[str]:
    return list(scenarios)


def load_scenario(scenario: Scenario) -> ScenarioFn:
    """Import the scenario's module and return its ``run(depth)`` function."""
    module = importlib.import_module(f"{__name__}.{scenario.module}")
    return module.run


def describe_scenario(scenario: Scenario) -> str:
    """Return the scenario's description, or "" if its module cannot load."""
    try:
        module = importlib.import_module(f"{__name__}.{scenario.module}")
    except ImportError:
        return ""
    return getattr(module, "DESCRIPTION", "")
