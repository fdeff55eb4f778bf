"""In-memory storage backend for testing."""

import posixpath
from typing import Dict, Optional, Set

from .base import StorageBackend


class MemoryBackend(StorageBackend):
    """In-memory storage backend.

    Useful for testing and throwaway registries. Files are lost when the
    process ends.

    Example:
        backend = MemoryBackend()
        backend.write_text("/data/settings.json", "{}")
        backend.read_text("/data/settings.json")  # "{}"
    """

    def __init__(self):
        self.files: Dict[str, str] = {}
        self.directories: Set[str] = set()

    def read_text(self, path: str) -> Optional[str]:
        """Return stored contents, or None if absent."""
        return self.files.get(path)

    def write_text(self, path: str, text: str) -> None:
        """Store contents under path."""
        parent = posixpath.dirname(path)
        if parent and parent not in self.directories:
            raise FileNotFoundError(f"No such directory: {parent}")
        self.files[path] = text

    def exists(self, path: str) -> bool:
        """Check if a file or directory exists."""
        return path in self.files or path in self.directories

    def make_dirs(self, path: str) -> None:
        """Record path and all of its ancestors as directories."""
        missing = []
        while path and path not in self.directories:
            if path in self.files:
                raise FileExistsError(f"Not a directory: {path}")
            missing.append(path)
            parent = posixpath.dirname(path)
            if parent == path:
                break
            path = parent
        self.directories.update(missing)
