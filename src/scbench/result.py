"""Success/failure wrapper for per-runtime outcomes.

Lets the runner collect results from several runtimes even when some of
them fail, without one failure discarding the others.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T


@dataclass(frozen=True)
class Err:
    """A failed outcome.

    Attributes:
        error: The exception that ended the operation.
        context: Identifier for reporting (e.g. the runtime id).
    """

    error: Exception
    context: str


Result = Ok[T] | Err


def wrap_result(context: str, fn: Callable[..., T], *args: object) -> Result[T]:
    """Call fn and capture its outcome instead of letting it raise.

    Only ``Exception`` subclasses are captured; KeyboardInterrupt and
    SystemExit still propagate.
    """
    try:
        return Ok(fn(*args))
    except Exception as e:
        return Err(error=e, context=context)


def successes(results: Iterable[Result[T]]) -> list[T]:
    return [r.value for r in results if isinstance(r, Ok)]


def failures(results: Iterable[Result[T]]) -> list[Err]:
    return [r for r in results if isinstance(r, Err)]
