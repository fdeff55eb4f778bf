"""Local file system storage backend."""

from pathlib import Path
from typing import Optional

from .base import StorageBackend


class FileSystemBackend(StorageBackend):
    """Reads and writes UTF-8 text files on the local file system.

    Example:
        backend = FileSystemBackend()
        backend.make_dirs(".storage")
        backend.write_text(".storage/settings.json", "{}")
    """

    def __init__(self, encoding: str = "utf-8"):
        self.encoding = encoding

    def read_text(self, path: str) -> Optional[str]:
        """Read the file, or return None if it does not exist."""
        file = Path(path)
        if not file.exists():
            return None
        with open(file, "r", encoding=self.encoding) as f:
            return f.read()

    def write_text(self, path: str, text: str) -> None:
        """Write the file, replacing any previous contents."""
        with open(path, "w", encoding=self.encoding) as f:
            f.write(text)

    def exists(self, path: str) -> bool:
        """Check if a file or directory exists."""
        return Path(path).exists()

    def make_dirs(self, path: str) -> None:
        """Create the directory and its parents if missing."""
        Path(path).mkdir(parents=True, exist_ok=True)
