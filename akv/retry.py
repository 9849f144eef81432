"""Bounded retry policy for version conflicts."""

from dataclasses import dataclass
from typing import Iterator


@dataclass(frozen=True)
class RetryPolicy:
    """How many times ``Store.put`` writes before giving up on a conflict.

    Args:
        max_attempts: Total write attempts, including the first. The
            default of two is one retry.
        backoff: Seconds to sleep before the first retry.
        multiplier: Factor applied to the delay after each retry.
    """

    max_attempts: int = 2
    backoff: float = 0.0
    multiplier: float = 2.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.backoff < 0:
            raise ValueError("backoff must not be negative")
        if self.multiplier < 1:
            raise ValueError("multiplier must be at least 1")

    def delays(self) -> Iterator[float]:
        """Yield the sleep before each retry (``max_attempts - 1`` items)."""
        delay = self.backoff
        for _ in range(self.max_attempts - 1):
            yield delay
            delay *= self.multiplier
