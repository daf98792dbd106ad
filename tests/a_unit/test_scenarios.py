"""Unit tests for scbench.scenarios package."""

from __future__ import annotations

import pytest

from scbench.scenarios import (
    callbacks_events,
    describe_scenario,
    get_scenario,
    list_scenarios,
    load_scenario,
)

STDLIB_LIBRARIES = {"asyncio", "callbacks"}


class TestRegistry:
    """Tests for the scenario registry."""

    def test_names_match_library_and_kind(self) -> None:
        """Test that every name is <library>.<kind>."""
        for name in list_scenarios():
            scenario = get_scenario(name)
            assert scenario is not None
            assert name == f"{scenario.library}.{scenario.kind}"
            assert scenario.kind in ("recursion", "events")

    def test_unknown(self) -> None:
        """Test lookup of an unregistered name."""
        assert get_scenario("trio.nope") is None


@pytest.mark.parametrize("name", list_scenarios())
@pytest.mark.parametrize("depth", [1, 100])
def test_scenario_runs(name: str, depth: int) -> None:
    """Test that each scenario module imports and completes a run."""
    scenario = get_scenario(name)
    if scenario.library not in STDLIB_LIBRARIES:
        pytest.importorskip(scenario.library)

    run = load_scenario(scenario)
    run(depth)

    assert describe_scenario(scenario)


class TestCallbacksEvents:
    """Tests for the plain callbacks baseline."""

    @pytest.mark.parametrize("depth", [1, 2, 5])
    def test_chain_length(self, depth: int, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that depth N builds N listener levels, like the other event chains."""
        created: list[callbacks_events.EventTarget] = []

        class CountingTarget(callbacks_events.EventTarget):
            def __init__(self) -> None:
                super().__init__()
                created.append(self)

        monkeypatch.setattr(callbacks_events, "EventTarget", CountingTarget)

        callbacks_events.run(depth)

        assert len(created) == depth
        assert all(not target._listeners for target in created)
