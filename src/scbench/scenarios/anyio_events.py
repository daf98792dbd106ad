"""anyio events scenario (asyncio backend)."""

from __future__ import annotations

import math

import anyio

DESCRIPTION = """
Measures anyio's event propagation through a chain of task groups linked
by memory object streams. Events dispatched at the root are forwarded level
by level; the task tree is cancelled once all events have been sent.
""".strip()


async def recurse(receive, depth: int) -> None:
    if depth > 1:
        async with anyio.create_task_group() as tg:
            sub_send, sub_receive = anyio.create_memory_object_stream(math.inf)
            tg.start_soon(recurse, sub_receive, depth - 1)
            async for event in receive:
                sub_send.send_nowait(event)
    else:
        async for _ in receive:
            pass


async def start(depth: int) -> None:
    async with anyio.create_task_group() as tg:
        send, receive = anyio.create_memory_object_stream(math.inf)
        tg.start_soon(recurse, receive, depth)
        for _ in range(100):
            await anyio.sleep(0)
            send.send_nowait("foo")
        await anyio.sleep(0)
        tg.cancel_scope.cancel()


def run(depth: int) -> None:
    anyio.run(start, depth)
