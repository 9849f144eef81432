"""Store configuration."""

from dataclasses import dataclass, field
from typing import Any, Mapping

from .retry import RetryPolicy


@dataclass(frozen=True)
class StoreConfig:
    """Options for ``Store.new``.

    Args:
        connection: Backend identifier: ``":memory:"``, ``"memory://"``,
            ``"disk:///path"``, ``"redis://host:port/db"``, or a bare
            directory name for a disk database.
        retry: Retry policy for version conflicts on ``put``.
        raise_errors: Re-raise backend failures instead of returning
            the operation's fallback value. Missing keys never raise.
    """

    connection: str
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    raise_errors: bool = False

    @classmethod
    def from_mapping(cls, options: Mapping[str, Any]) -> "StoreConfig":
        """Build a config from ``{"connection": ..., ...}``."""
        unknown = set(options) - {"connection", "retry", "raise_errors"}
        if unknown:
            raise ValueError(f"Unknown store options: {', '.join(sorted(unknown))}")
        if "connection" not in options:
            raise ValueError("connection is required")
        retry = options.get("retry")
        if retry is None:
            retry = RetryPolicy()
        elif isinstance(retry, Mapping):
            retry = RetryPolicy(**retry)
        return cls(
            connection=options["connection"],
            retry=retry,
            raise_errors=bool(options.get("raise_errors", False)),
        )
