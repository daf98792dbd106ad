"""asyncio recursion scenario.

Baseline comparison using plain async/await on the standard event loop.
"""

from __future__ import annotations

import asyncio

DESCRIPTION = """
Baseline measurement using native async/await. Creates a recursive coroutine
chain that bottoms out with 100 ``asyncio.sleep(0)`` calls. This represents
the minimal overhead of Python's built-in async machinery, providing a
reference point for the structured concurrency libraries.
""".strip()


async def recurse(depth: int) -> None:
    if depth > 1:
        await recurse(depth - 1)
    else:
        for _ in range(100):
            await asyncio.sleep(0)


async def _scoped(depth: int) -> None:
    async with asyncio.TaskGroup() as tg:
        tg.create_task(recurse(depth))


def run(depth: int) -> None:
    asyncio.run(_scoped(depth))
