"""anyio recursion scenario (asyncio backend)."""

from __future__ import annotations

import anyio
import anyio.lowlevel

DESCRIPTION = """
Measures anyio's task group overhead for deeply nested coroutine calls on
the asyncio backend. Creates a recursive chain of awaits that bottoms out
with 100 checkpoints.
""".strip()


async def recurse(depth: int) -> None:
    if depth > 1:
        await recurse(depth - 1)
    else:
        for _ in range(100):
            await anyio.lowlevel.checkpoint()


async def _scoped(depth: int) -> None:
    async with anyio.create_task_group() as tg:
        tg.start_soon(recurse, depth)


def run(depth: int) -> None:
    anyio.run(_scoped, depth)
