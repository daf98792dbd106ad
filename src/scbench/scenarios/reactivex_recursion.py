"""reactivex (RxPY) recursion scenario."""

from __future__ import annotations

import reactivex
from reactivex import operators as ops

DESCRIPTION = """
Measures reactivex Observable overhead for deeply nested subscriptions.
Creates a recursive chain of Observables that bottoms out with 100 deferred
emissions, testing subscription lifecycle management and operator chaining.
""".strip()


def recurse(depth: int) -> reactivex.Observable:
    def subscribe(observer, scheduler=None):
        if depth > 1:
            source = recurse(depth - 1)
        else:
            source = reactivex.defer(lambda _: reactivex.of(None)).pipe(ops.repeat(100))
        return source.subscribe(
            on_error=observer.on_error,
            on_completed=observer.on_completed,
        )

    return reactivex.create(subscribe)


def run(depth: int) -> None:
    completed: list[bool] = []
    errors: list[Exception] = []
    subscription = recurse(depth).subscribe(
        on_error=errors.append,
        on_completed=lambda: completed.append(True),
    )
    subscription.dispose()
    if errors:
        raise errors[0]
    if not completed:
        raise RuntimeError("reactivex.recursion finished without completing")
