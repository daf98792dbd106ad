"""Plain callbacks events scenario.

Baseline comparison using hand-managed listener registration on asyncio.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable

DESCRIPTION = """
Baseline measurement using plain listener callbacks. Each level of the chain
registers a handler that re-dispatches to the next level; the bottom level
waits for an abort signal and every level removes its own listener on the
way out.
""".strip()


class EventTarget:
    """Minimal synchronous event emitter."""

    def __init__(self) -> None:
        self._listeners: list[Callable[[], None]] = []

    def add_listener(self, handler: Callable[[], None]) -> None:
        self._listeners.append(handler)

    def remove_listener(self, handler: Callable[[], None]) -> None:
        self._listeners.remove(handler)

    def dispatch(self) -> None:
        for handler in list(self._listeners):
            handler()


def _bottom() -> None:
    pass


async def recurse(target: EventTarget, abort: asyncio.Event, depth: int) -> None:
    if depth > 1:
        sub_target = EventTarget()
        handler = sub_target.dispatch
        target.add_listener(handler)
        try:
            await recurse(sub_target, abort, depth - 1)
        finally:
            target.remove_listener(handler)
    else:
        target.add_listener(_bottom)
        try:
            await abort.wait()
        finally:
            target.remove_listener(_bottom)


async def start(depth: int) -> None:
    target = EventTarget()
    abort = asyncio.Event()
    async with asyncio.TaskGroup() as tg:
        tg.create_task(recurse(target, abort, depth))
        for _ in range(100):
            await asyncio.sleep(0)
            target.dispatch()
        await asyncio.sleep(0)
        abort.set()


def run(depth: int) -> None:
    asyncio.run(start(depth))
