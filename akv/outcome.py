"""Explicit results for backend calls."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Generic, TypeVar

from .errors import ErrorKind, classify

V = TypeVar("V")


@dataclass(frozen=True)
class Outcome(Generic[V]):
    """The result of one backend call: a value, or an error and its kind.

    The facade's internal primitives return outcomes; only the public
    methods of ``Store`` turn a failed outcome into a fallback value.
    """

    value: V | None = None
    error: Exception | None = None
    kind: ErrorKind | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: V | None = None) -> Outcome[V]:
        return cls(value=value)

    @classmethod
    def failure(cls, error: Exception) -> Outcome[Any]:
        return cls(error=error, kind=classify(error))

    def unwrap_or(self, default: Any) -> Any:
        return self.value if self.ok else default


async def attempt(call: Awaitable[V]) -> Outcome[V]:
    """Await a backend call, capturing any exception as a failed outcome.

    ``asyncio.CancelledError`` derives from ``BaseException`` and is
    not captured.
    """
    try:
        return Outcome.success(await call)
    except Exception as e:
        return Outcome.failure(e)
