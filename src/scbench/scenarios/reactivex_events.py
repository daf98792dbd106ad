"""reactivex (RxPY) events scenario."""

from __future__ import annotations

import asyncio

import reactivex
from reactivex import operators as ops
from reactivex.disposable import CompositeDisposable
from reactivex.subject import Subject

DESCRIPTION = """
Measures reactivex event propagation through a chain of Subjects. Each
level subscribes to its parent and re-emits to its own Subject; the chain is
torn down with ``take_until`` once all 100 events have been dispatched.
""".strip()


def recurse(target: Subject, depth: int) -> reactivex.Observable:
    def subscribe(observer, scheduler=None):
        if depth > 1:
            sub_target: Subject = Subject()
            return CompositeDisposable(
                target.subscribe(lambda _: sub_target.on_next(None)),
                recurse(sub_target, depth - 1).subscribe(),
            )
        return CompositeDisposable(target.subscribe(lambda _: None))

    return reactivex.create(subscribe)


async def start(depth: int) -> None:
    target: Subject = Subject()
    abort: Subject = Subject()
    finished = asyncio.Event()
    subscription = (
        recurse(target, depth)
        .pipe(ops.take_until(abort))
        .subscribe(on_completed=finished.set)
    )
    try:
        for _ in range(100):
            await asyncio.sleep(0)
            target.on_next(None)
        await asyncio.sleep(0)
        abort.on_next(None)
        await finished.wait()
    finally:
        subscription.dispose()


def run(depth: int) -> None:
    asyncio.run(start(depth))
