"""trio events scenario."""

from __future__ import annotations

import math

import trio

DESCRIPTION = """
Measures trio's event handling performance with nested event propagation.
Creates a recursive chain of tasks, each listening on a memory channel and
forwarding every event to the next level. Events dispatched at the root
propagate through the entire chain, after which the whole task tree is
cancelled, testing subscription management and structured cleanup.
""".strip()


async def recurse(receive: trio.MemoryReceiveChannel, depth: int) -> None:
    if depth > 1:
        async with trio.open_nursery() as nursery:
            sub_send, sub_receive = trio.open_memory_channel(math.inf)
            nursery.start_soon(recurse, sub_receive, depth - 1)
            async for event in receive:
                sub_send.send_nowait(event)
    else:
        async for _ in receive:
            pass


async def start(depth: int) -> None:
    async with trio.open_nursery() as nursery:
        send, receive = trio.open_memory_channel(math.inf)
        nursery.start_soon(recurse, receive, depth)
        for _ in range(100):
            await trio.sleep(0)
            send.send_nowait("foo")
        await trio.sleep(0)
        nursery.cancel_scope.cancel()


def run(depth: int) -> None:
    trio.run(start, depth)
