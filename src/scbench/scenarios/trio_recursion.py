"""trio recursion scenario.

Each iteration runs inside its own ``trio.run`` and nursery, so any task
left behind is cancelled before the call returns.
"""

from __future__ import annotations

import trio

DESCRIPTION = """
Measures trio's overhead for deeply nested coroutine calls. Creates a
recursive chain of awaits that bottoms out with 100 scheduler checkpoints,
testing how efficiently trio manages task lifecycles and cancel scopes
through the call stack.
""".strip()


async def recurse(depth: int) -> None:
    if depth > 1:
        await recurse(depth - 1)
    else:
        for _ in range(100):
            await trio.lowlevel.checkpoint()


async def _scoped(depth: int) -> None:
    async with trio.open_nursery() as nursery:
        nursery.start_soon(recurse, depth)


def run(depth: int) -> None:
    trio.run(_scoped, depth)
