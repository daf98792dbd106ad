"""curio recursion scenario."""

from __future__ import annotations

import curio

DESCRIPTION = """
Measures curio's coroutine kernel on a recursive chain of awaits that
bottoms out with 100 zero-length sleeps.
""".strip()


async def recurse(depth: int) -> None:
    if depth > 1:
        await recurse(depth - 1)
    else:
        for _ in range(100):
            await curio.sleep(0)


async def _scoped(depth: int) -> None:
    async with curio.TaskGroup() as group:
        await group.spawn(recurse, depth)


def run(depth: int) -> None:
    curio.run(_scoped, depth)
