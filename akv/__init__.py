"""akv: asynchronous key-value store over pluggable backends."""

from .config import StoreConfig
from .errors import BackendError, ErrorKind, NotFound, VersionConflict
from .kv.base import Backend, Document
from .kv.registry import register_backend
from .outcome import Outcome
from .retry import RetryPolicy
from .store import FlushOutcome, Store, store

__all__ = [
    "Backend",
    "BackendError",
    "Document",
    "ErrorKind",
    "FlushOutcome",
    "NotFound",
    "Outcome",
    "RetryPolicy",
    "Store",
    "StoreConfig",
    "VersionConflict",
    "register_backend",
    "store",
]
