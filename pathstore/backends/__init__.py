"""Storage backends for pathstore."""

from .base import StorageBackend
from .filesystem import FileSystemBackend
from .memory import MemoryBackend

__all__ = [
    "StorageBackend",
    "FileSystemBackend",
    "MemoryBackend",
]
