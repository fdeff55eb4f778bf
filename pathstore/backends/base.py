"""Abstract base class for storage backends."""

from abc import ABC, abstractmethod
from typing import Optional


class StorageBackend(ABC):
    """Abstract base class for storage backends.

    Backends only move text to and from a location (the local file system,
    memory, ...). The StoreRegistry handles formats, caching and the public API.
    """

    @abstractmethod
    def read_text(self, path: str) -> Optional[str]:
        """Read a whole file.

        Args:
            path: File path including extension

        Returns:
            The file contents, or None if the file does not exist

        Raises:
            OSError: If the file exists but cannot be read
        """
        pass

    @abstractmethod
    def write_text(self, path: str, text: str) -> None:
        """Create or replace a file.

        Args:
            path: File path including extension
            text: New contents

        Raises:
            OSError: If the file cannot be written
        """
        pass

    @abstractmethod
    def exists(self, path: str) -> bool:
        """Check if a file exists at path."""
        pass

    @abstractmethod
    def make_dirs(self, path: str) -> None:
        """Create a directory and any missing parents.

        Raises:
            OSError: If the directory cannot be created
        """
        pass
