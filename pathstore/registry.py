"""Registry that binds stores to files and keeps one live store per file."""

import logging
import os
import threading
from pathlib import Path
from typing import Callable, Dict, List, Optional, Type, Union
from urllib.parse import urlparse

from .backends.base import StorageBackend
from .backends.filesystem import FileSystemBackend
from .backends.memory import MemoryBackend
from .core import Store
from .exceptions import (
    DigitalSaveError,
    FormatDecodeError,
    SetupError,
    StoreError,
    StoreIOError,
    TypeMismatchError,
)
from .formats import Format, deserialize

DEFAULT_STORAGE_DIR = ".storage"
HOME_ENV_VAR = "PATHSTORE_HOME"


def default_base_dir() -> str:
    """Base directory from PATHSTORE_HOME, or ".storage"."""
    return os.environ.get(HOME_ENV_VAR) or DEFAULT_STORAGE_DIR


class StoreRegistry:
    """Creates, caches, loads and saves stores under one base directory.

    At most one live store exists per resolved file path. Asking for the
    same file again returns the identical instance.

    Example:
        registry = StoreRegistry("data")
        users = registry.register("users", Format.YAML)
        users.set("hans.age", 42)
        users.save()                          # data/users.yml

        registry.register("users") is users   # True
    """

    def __init__(
        self,
        base_dir: Union[str, Path, None] = None,
        logger: Optional[logging.Logger] = None,
        backend: Optional[StorageBackend] = None,
    ):
        """Create a registry.

        Args:
            base_dir: Directory for backing files (default: PATHSTORE_HOME
                or ".storage")
            logger: Logger for registry events (default: this module's logger)
            backend: Where files are read and written (default: local file system)
        """
        self.base_dir = str(base_dir) if base_dir is not None else default_base_dir()
        self.logger = logger if logger is not None else logging.getLogger(__name__)
        self.backend = backend or FileSystemBackend()
        self._stores: Dict[str, Store] = {}
        self._lock = threading.Lock()

    def resolve(self, name: str) -> str:
        """Absolute base path (no extension) for a store name."""
        return str((Path(self.base_dir) / name).resolve())

    # Registration

    def register(
        self,
        name: str,
        fmt: Format = Format.JSON,
        digital: bool = False,
        factory: Callable[[], Store] = Store,
        expected_type: Optional[Type[Store]] = None,
    ) -> Store:
        """Return the store for ``name``, creating and loading it on first use.

        Args:
            name: File name relative to the base directory, without extension
            fmt: File format of a newly created store
            digital: If True, a newly created store can never be saved
            factory: Zero-argument callable building the store instance
            expected_type: Type a cached store must have. Defaults to
                ``factory`` when the factory is a class.

        Returns:
            The live store for this file

        Raises:
            TypeMismatchError: If the cached store is not of the expected type
            StoreIOError: If the backing file cannot be read
            FormatDecodeError: If the backing file is malformed
        """
        key = self.resolve(name)
        if expected_type is None and isinstance(factory, type):
            expected_type = factory

        with self._lock:
            cached = self._stores.get(key)
            if cached is not None:
                if expected_type is not None and not isinstance(cached, expected_type):
                    raise TypeMismatchError(name, expected_type, type(cached))
                self.logger.debug("Store cache hit for %s", key)
                return cached

            store = factory()
            if not isinstance(store, Store):
                raise TypeError(
                    f"Store factory for {name} returned {type(store).__name__}, not a Store"
                )
            store.name = name
            store.format = Format(fmt)
            store.digital = digital
            store.file_path = key
            store.registry = self

            self.reload(store)
            self._stores[key] = store
            self.logger.info(
                "Created %s %s (%s%s)",
                type(store).__name__,
                name,
                store.format.name,
                ", digital" if digital else "",
            )
            return store

    def get(self, name: str) -> Optional[Store]:
        """Cached store for ``name``, or None if it was never registered."""
        with self._lock:
            return self._stores.get(self.resolve(name))

    def evict(self, name: str) -> bool:
        """Drop a store from the cache without saving it.

        Returns:
            True if a store was cached under ``name``
        """
        with self._lock:
            store = self._stores.pop(self.resolve(name), None)
        if store is None:
            return False
        store.registry = None
        return True

    def clear_cache(self) -> None:
        """Drop every cached store without saving.

        Evicted stores are unbound and can no longer save or reload.
        """
        with self._lock:
            stores = list(self._stores.values())
            self._stores.clear()
        for store in stores:
            store.registry = None

    def stores(self) -> List[Store]:
        with self._lock:
            return list(self._stores.values())

    def __contains__(self, name: str) -> bool:
        return self.get(name) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._stores)

    # Persistence

    def reload(self, store: Store, keep_existing: bool = False) -> None:
        """Load a store's backing file into its tree.

        A missing file counts as an empty document. The file is decoded
        before the tree is touched, so a decode failure leaves it unchanged.

        Args:
            store: A store bound to a file
            keep_existing: If False, the tree is cleared before loading, so
                keys deleted on disk disappear. If True, decoded top-level
                keys are laid over the current tree.

        Raises:
            StoreIOError: If the file exists but cannot be read
            FormatDecodeError: If the file is malformed
        """
        path = self._path_of(store)
        try:
            text = self.backend.read_text(path)
        except UnicodeDecodeError as e:
            raise FormatDecodeError(f"{path} is not valid text: {e}") from e
        except OSError as e:
            raise StoreIOError(f"Failed to read {path}: {e}") from e

        tree = deserialize(text or "", store.format)
        store.load_tree(tree, replace=not keep_existing)
        self.logger.debug("Loaded %d top-level keys into %s from %s", len(tree), store.name, path)

    def save(self, store: Store) -> bool:
        """Write a store's tree to its backing file.

        Parent directories are created as needed. If creating them or
        writing the file fails, the error is logged and the save is
        abandoned without raising.

        Returns:
            True if the file was written, False if the save was abandoned

        Raises:
            DigitalSaveError: If the store is digital
            FormatEncodeError: If the tree cannot be encoded in the store's format
        """
        if store.digital:
            raise DigitalSaveError(store.name)

        path = self._path_of(store)
        text = store.to_string_as(store.format)

        parent = os.path.dirname(path)
        if parent and not self.backend.exists(parent):
            try:
                self.backend.make_dirs(parent)
            except OSError as e:
                self.logger.error("Failed to create directories %s: %s", parent, e)
                return False

        try:
            self.backend.write_text(path, text)
        except OSError as e:
            self.logger.error("Failed to write %s: %s", path, e)
            return False

        self.logger.debug("Saved %s to %s", store.name, path)
        return True

    def save_all(self) -> Dict[str, bool]:
        """Save every cached store that is not digital.

        Returns:
            Mapping of store name to the result of save()
        """
        return {store.name: self.save(store) for store in self.stores() if not store.digital}

    def _path_of(self, store: Store) -> str:
        path = store.path_on_disk
        if path is None:
            raise StoreError(f"Store {store.name or '<unnamed>'} has no backing file")
        return path


def connect(url: str, logger: Optional[logging.Logger] = None) -> StoreRegistry:
    """Create a StoreRegistry from a URL.

    Supported URL schemes:
        - file:///abs/dir    Files under an absolute directory
        - file://rel/dir     Files under a directory relative to the cwd
        - file://            Files under PATHSTORE_HOME or ".storage"
        - memory://          In-memory files (testing)

    Args:
        url: Connection URL
        logger: Optional logger for the registry

    Returns:
        A new StoreRegistry

    Example:
        registry = connect("file:///var/lib/myapp")
        registry = connect("memory://")
    """
    parsed = urlparse(url)
    scheme = parsed.scheme
    location = parsed.netloc + parsed.path

    if scheme == "memory":
        return StoreRegistry("/" + location.strip("/"), logger=logger, backend=MemoryBackend())

    elif scheme == "file":
        return StoreRegistry(location or None, logger=logger, backend=FileSystemBackend())

    else:
        raise ValueError(f"Unknown storage scheme: {scheme}")


# Process-wide default registry

_default_registry: Optional[StoreRegistry] = None
_default_lock = threading.Lock()


def setup(
    base_dir: Union[str, Path, None] = None,
    logger: Optional[logging.Logger] = None,
    backend: Optional[StorageBackend] = None,
) -> StoreRegistry:
    """Create the process-wide default registry. May be called only once.

    Raises:
        SetupError: If setup() was already called
    """
    global _default_registry
    with _default_lock:
        if _default_registry is not None:
            raise SetupError("pathstore is already set up")
        _default_registry = StoreRegistry(base_dir, logger=logger, backend=backend)
        return _default_registry


def is_setup() -> bool:
    """Whether setup() has created the default registry."""
    return _default_registry is not None


def get_registry() -> StoreRegistry:
    """The default registry.

    Raises:
        SetupError: If setup() has not been called
    """
    registry = _default_registry
    if registry is None:
        raise SetupError("Setup required before using pathstore; call setup() first")
    return registry


def teardown() -> None:
    """Forget the default registry so setup() can run again."""
    global _default_registry
    with _default_lock:
        _default_registry = None


def open_store(
    name: str,
    fmt: Format = Format.JSON,
    digital: bool = False,
    factory: Callable[[], Store] = Store,
    expected_type: Optional[Type[Store]] = None,
) -> Store:
    """Register ``name`` with the default registry. See StoreRegistry.register()."""
    return get_registry().register(name, fmt, digital, factory, expected_type)


def reload(store: Store, keep_existing: bool = False) -> None:
    """Reload ``store`` through the default registry."""
    get_registry().reload(store, keep_existing=keep_existing)


def save(store: Store) -> bool:
    """Save ``store`` through the default registry."""
    return get_registry().save(store)
