"""Dot-path addressed key-value stores persisted as JSON, YAML or TOML.

Quick Start:
    from pathstore import StoreRegistry, StandardStore, Format

    # One registry per storage directory
    registry = StoreRegistry("config")

    # One live store per file
    settings = registry.register("settings", Format.YAML, factory=StandardStore)

    # Read and write with dot paths
    settings.set("window.size.width", 800)
    settings.get("window.size.width", int)   # 800
    settings.keys("window", deep=True)       # {"size", "size.width"}

    # Persist to config/settings.yml
    settings.save()

Supported formats:
    - Format.JSON   .json
    - Format.YAML   .yml
    - Format.TOML   .toml (keys holding None are not written)

Key Classes:
    - PathStore: In-memory tree with dot-path access and type adapters
    - Store: PathStore bound to a backing file
    - StandardStore: Store with adapters for UUID, dates, paths, URLs, decimals
    - Section: Prefixed view of part of a store
    - StoreRegistry: Creates, caches, loads and saves stores
    - connect(): Create a StoreRegistry from a URL

Process-wide default:
    - setup() once, then open_store(), reload() and save()
"""

from .adapters import Adapter, AdapterRegistry, FunctionAdapter, SectionAdapter, StringAdapter
from .backends import FileSystemBackend, MemoryBackend, StorageBackend
from .core import PathStore, StandardStore, Store
from .exceptions import (
    AdapterConversionError,
    DigitalSaveError,
    FormatDecodeError,
    FormatEncodeError,
    NotFoundError,
    SerializationError,
    SetupError,
    StoreError,
    StoreIOError,
    TypeMismatchError,
)
from .formats import Format, deserialize, serialize
from .registry import (
    StoreRegistry,
    connect,
    get_registry,
    is_setup,
    open_store,
    setup,
    teardown,
)
from .section import Section

__all__ = [
    # Stores
    "PathStore",
    "Store",
    "StandardStore",
    "Section",
    # Registry
    "StoreRegistry",
    "connect",
    "setup",
    "teardown",
    "get_registry",
    "is_setup",
    "open_store",
    # Formats
    "Format",
    "serialize",
    "deserialize",
    # Adapters
    "Adapter",
    "AdapterRegistry",
    "FunctionAdapter",
    "SectionAdapter",
    "StringAdapter",
    # Backends
    "StorageBackend",
    "FileSystemBackend",
    "MemoryBackend",
    # Exceptions
    "StoreError",
    "SetupError",
    "NotFoundError",
    "TypeMismatchError",
    "SerializationError",
    "FormatDecodeError",
    "FormatEncodeError",
    "AdapterConversionError",
    "DigitalSaveError",
    "StoreIOError",
]

__version__ = "0.1.0"
