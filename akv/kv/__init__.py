"""Storage backends."""

from .base import Backend, Document
from .disk import Disk
from .memory import Memory
from .registry import Connection, open_backend, register_backend
from .remote import Redis

__all__ = [
    "Backend",
    "Connection",
    "Disk",
    "Document",
    "Memory",
    "Redis",
    "open_backend",
    "register_backend",
]
