"""Core store classes for dot-path addressed trees."""

import threading
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Callable, Dict, Iterator, Mapping, Optional, Set, Type, Union

from .adapters import Adapter, AdapterRegistry, FunctionAdapter, SectionAdapter, standard_adapters
from .exceptions import AdapterConversionError, DigitalSaveError, NotFoundError, StoreError
from .formats import Format, deserialize, serialize
from .section import Section

if TYPE_CHECKING:
    from .registry import StoreRegistry


def join_path(base: str, key: str) -> str:
    """Join two dot paths, treating an empty side as the root."""
    if not base:
        return key
    if not key:
        return base
    return f"{base}.{key}"


def _copy_value(value: Any) -> Any:
    if isinstance(value, dict):
        return _copy_tree(value)
    if isinstance(value, list):
        return [_copy_value(item) for item in value]
    return value


def _copy_tree(tree: Mapping[str, Any]) -> Dict[str, Any]:
    return {key: _copy_value(value) for key, value in tree.items()}


def _collect_paths(tree: Dict[str, Any], prefix: str, collector: Set[str]) -> None:
    for key, value in tree.items():
        path = join_path(prefix, key)
        collector.add(path)
        if isinstance(value, dict):
            _collect_paths(value, path, collector)


class PathStore:
    """In-memory tree addressed by dot paths like "user.profile.name".

    Values are scalars, adapter-encoded objects, or nested dicts. Writes
    create missing intermediate dicts; reads never do. Navigation misses
    and type mismatches on reads return the default instead of raising.

    Example:
        store = PathStore()
        store.set("user.name.hans", "Hans")
        store.set("user.name.paul", "Paul")

        store.keys()                      # {"user"}
        store.keys("user", deep=True)     # {"name", "name.hans", "name.paul"}
        store.get("user.name.hans", str)  # "Hans"

    Subclasses register their own adapters by overriding
    register_adapters(), which runs once when the store is created.
    """

    format: Format = Format.JSON

    def __init__(self):
        self._tree: Dict[str, Any] = {}
        self._lock = threading.RLock()
        self._adapters = AdapterRegistry()
        self._adapters.register(SectionAdapter())
        self.register_adapters()

    # Adapter registration

    def register_adapters(self) -> None:
        """Hook for subclasses to register their type adapters."""
        pass

    def register_adapter(self, adapter: Adapter) -> None:
        """Register an adapter, replacing any existing one for its types."""
        self._adapters.register(adapter)

    def add_adapter(
        self,
        cls: type,
        setter: Callable[[str, Any], None],
        getter: Callable[[str], Any],
    ) -> None:
        """Register a setter/getter function pair for exactly ``cls``.

        Args:
            cls: The type to adapt (subclasses are not matched)
            setter: Called as setter(path, value); should store a primitive
            getter: Called as getter(path); should rebuild the value
        """
        self._adapters.register(FunctionAdapter(cls, setter, getter))

    @property
    def adapters(self) -> AdapterRegistry:
        return self._adapters

    # Navigation

    def _node(self, path: str) -> Any:
        """Value at ``path``; the empty path is the root tree."""
        if not path:
            return self._tree
        return self._value_at(path)

    def _parent_of(self, parts, create: bool = False) -> Optional[Dict[str, Any]]:
        current = self._tree
        for part in parts[:-1]:
            child = current.get(part)
            if not isinstance(child, dict):
                if not create:
                    return None
                child = {}
                current[part] = child
            current = child
        return current

    def _value_at(self, path: str) -> Any:
        parts = path.split(".")
        parent = self._parent_of(parts)
        if parent is None:
            return None
        return parent.get(parts[-1])

    def _put(self, path: str, value: Any) -> None:
        parts = path.split(".")
        parent = self._parent_of(parts, create=True)
        parent[parts[-1]] = value

    # Reads

    def get(self, path: str, cls: Optional[Type] = None, default: Any = None) -> Any:
        """Read the value at ``path``.

        Args:
            path: Dot path (e.g., "user.profile.name")
            cls: Requested type. A stored value of this type is returned
                as-is; otherwise the getter registered for ``cls`` rebuilds
                it. None returns the raw stored value.
            default: Returned when the path is absent, or the value is not a
                ``cls`` and no getter exists for it

        Returns:
            The value, or ``default``

        Raises:
            AdapterConversionError: If the getter for ``cls`` fails
        """
        with self._lock:
            value = self._value_at(path)
            if value is None:
                return default
            if cls is None or isinstance(value, cls):
                return value

            adapter = self._adapters.getter_for(cls)
            if adapter is None:
                return default
            try:
                result = adapter.decode(self, path)
            except AdapterConversionError:
                raise
            except Exception as e:
                raise AdapterConversionError(path, cls, e) from e
            return default if result is None else result

    def contains(self, path: str) -> bool:
        """Whether a key exists at ``path`` (its value may be None)."""
        with self._lock:
            parts = path.split(".")
            parent = self._parent_of(parts)
            return parent is not None and parts[-1] in parent

    def contains_not_none(self, path: str) -> bool:
        """Whether ``path`` holds a value other than None."""
        with self._lock:
            return self._value_at(path) is not None

    def size(self, path: str = "") -> int:
        """Number of immediate children at ``path`` (0 if not a mapping)."""
        with self._lock:
            node = self._node(path)
            return len(node) if isinstance(node, dict) else 0

    def keys(self, base: str = "", deep: bool = False) -> Set[str]:
        """Keys under ``base``.

        Args:
            base: Dot path to list under; empty for the root
            deep: If True, every descendant path, dotted and relative to
                ``base``. If False, only the immediate child keys.

        Returns:
            Set of keys; empty if ``base`` is not a mapping
        """
        with self._lock:
            node = self._node(base)
            if not isinstance(node, dict):
                return set()
            if not deep:
                return set(node)
            result: Set[str] = set()
            _collect_paths(node, "", result)
            return result

    def for_each(
        self,
        action: Callable[[str, Any], None],
        base: str = "",
        recursive: bool = False,
    ) -> None:
        """Call action(path, value) for each entry under ``base``.

        Paths passed to ``action`` are full dot paths from the root. With
        ``recursive``, nested mappings are visited after their own entry.
        """
        with self._lock:
            node = self._node(base)
            if not isinstance(node, dict):
                return
            entries = list(node.items())

        for key, value in entries:
            path = join_path(base, key)
            action(path, value)
            if recursive and isinstance(value, dict):
                self.for_each(action, path, recursive=True)

    def for_each_key(self, action: Callable[[str], None]) -> None:
        """Call action(path) for every deep path in the store."""
        for path in self.keys(deep=True):
            action(path)

    def for_each_value(self, action: Callable[[Any], None]) -> None:
        """Call action(value) for each top-level value."""
        self.for_each(lambda _path, value: action(value))

    def to_map(self, path: str = "") -> Dict[str, Any]:
        """Shallow copy of the mapping at ``path`` ({} if not a mapping)."""
        with self._lock:
            node = self._node(path)
            return dict(node) if isinstance(node, dict) else {}

    def map_view(self, path: str = "") -> Mapping[str, Any]:
        """Read-only live view of the mapping at ``path``."""
        with self._lock:
            node = self._node(path)
            return MappingProxyType(node if isinstance(node, dict) else {})

    def deep_copy(self, path: str = "") -> Dict[str, Any]:
        """Structurally independent copy of the tree (or the subtree at ``path``)."""
        with self._lock:
            node = self._node(path)
            return _copy_tree(node) if isinstance(node, dict) else {}

    def section(self, path: str) -> Section:
        """View of the subtree at ``path``; the path need not exist yet."""
        return Section(self, path)

    # Writes

    def set(self, path: str, value: Any) -> None:
        """Write ``value`` at ``path``.

        None removes the key. A value whose exact type has a registered
        adapter is handed to that adapter's setter; anything else is stored
        as-is, creating intermediate mappings as needed.
        """
        if value is None:
            self.remove(path)
            return

        with self._lock:
            adapter = self._adapters.setter_for(value)
            if adapter is None:
                self._put(path, value)
                return

        # Encoded outside the lock; the setter may read another store
        adapter.encode(self, path, value)

    def remove(self, path: str) -> bool:
        """Delete the key at ``path``.

        Returns:
            True if a key was removed, False if the path did not exist
        """
        with self._lock:
            parts = path.split(".")
            parent = self._parent_of(parts)
            if parent is None or parts[-1] not in parent:
                return False
            del parent[parts[-1]]
            return True

    def clear(self, path: str = "") -> None:
        """Empty the mapping at ``path`` (the whole tree by default)."""
        with self._lock:
            node = self._node(path)
            if isinstance(node, dict):
                node.clear()

    def put_all(self, mapping: Mapping[str, Any], base: str = "") -> None:
        """Set every entry of ``mapping`` under ``base``.

        Each entry is written atomically; the batch as a whole is not.
        """
        for key, value in mapping.items():
            self.set(join_path(base, key), _copy_value(value))

    def merge(self, other: Union["PathStore", Mapping[str, Any]], overwrite: bool = False) -> None:
        """Recursively merge another store's tree into this one.

        Nested mappings present on both sides are merged key by key. Any
        other conflict keeps this store's value unless ``overwrite`` is set.
        Keys missing from ``other`` are never touched.
        """
        if isinstance(other, PathStore):
            source = other.deep_copy()
        else:
            source = _copy_tree(other)

        with self._lock:
            self._merge("", source, overwrite)

    def _merge(self, current: str, source: Dict[str, Any], overwrite: bool) -> None:
        for key, value in source.items():
            path = join_path(current, key)
            if isinstance(value, dict):
                target = self._value_at(path)
                if isinstance(target, dict):
                    self._merge(path, value, overwrite)
                elif overwrite or target is None:
                    self._put(path, value)
            elif overwrite or not self.contains(path):
                self._put(path, value)

    # Text conversion

    def to_string_as(self, fmt: Format) -> str:
        """Encode the whole tree in ``fmt``."""
        with self._lock:
            return serialize(self._tree, fmt)

    def from_specific_string(self, text: str, fmt: Format) -> None:
        """Decode ``text`` in ``fmt`` and load its top-level keys into the tree.

        Raises:
            FormatDecodeError: If the text is malformed
        """
        self.load_tree(deserialize(text, fmt), replace=False)

    def from_string(self, text: str) -> None:
        """Decode ``text`` in this store's own format."""
        self.from_specific_string(text, self.format)

    def load_tree(self, tree: Mapping[str, Any], replace: bool = True) -> None:
        """Load a decoded tree.

        Args:
            tree: Tree to load; it is copied, not shared
            replace: If True, drop the current contents first. If False,
                top-level keys of ``tree`` replace the same keys here and
                every other key is kept.
        """
        copy = _copy_tree(tree)
        with self._lock:
            if replace:
                self._tree.clear()
            self._tree.update(copy)

    # Dict-like interface

    def __getitem__(self, path: str) -> Any:
        value = self.get(path)
        if value is None:
            raise NotFoundError(path)
        return value

    def __setitem__(self, path: str, value: Any) -> None:
        self.set(path, value)

    def __delitem__(self, path: str) -> None:
        if not self.remove(path):
            raise NotFoundError(path)

    def __contains__(self, path: str) -> bool:
        return self.contains(path)

    def __iter__(self) -> Iterator[str]:
        return iter(self.keys())

    def __len__(self) -> int:
        return self.size()

    def __str__(self) -> str:
        return self.to_string_as(self.format)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(keys={len(self)})"


class Store(PathStore):
    """A PathStore bound to a backing file.

    Stores are normally obtained from a StoreRegistry, which assigns the
    file identity and keeps at most one live instance per file:

        registry = StoreRegistry("config")
        settings = registry.register("settings", Format.YAML)
        settings.set("window.width", 800)
        settings.save()                   # writes config/settings.yml

    A digital store lives only in memory; save() always raises
    DigitalSaveError.
    """

    def __init__(self, name: Optional[str] = None, fmt: Format = Format.JSON, digital: bool = False):
        self.name = name
        self.format = fmt
        self.digital = digital
        self.file_path: Optional[str] = None
        self.registry: Optional["StoreRegistry"] = None
        super().__init__()

    @property
    def path_on_disk(self) -> Optional[str]:
        """Backing file path including the format's extension."""
        if self.file_path is None:
            return None
        return f"{self.file_path}.{self.format.extension}"

    def _require_registry(self) -> "StoreRegistry":
        if self.registry is None:
            raise StoreError(
                f"Store {self.name or '<unnamed>'} is not registered. "
                "Use StoreRegistry.register() to bind it to a file."
            )
        return self.registry

    def save(self) -> bool:
        """Write the tree to the backing file.

        Returns:
            True if written; False if the write failed (the failure is logged)

        Raises:
            DigitalSaveError: If this store is digital
            StoreError: If the store was never registered
        """
        if self.digital:
            raise DigitalSaveError(self.name)
        return self._require_registry().save(self)

    def reload(self, keep_existing: bool = False) -> None:
        """Reload the tree from the backing file. See StoreRegistry.reload()."""
        self._require_registry().reload(self, keep_existing=keep_existing)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(name={self.name!r}, format={self.format.name}, "
            f"digital={self.digital})"
        )


class StandardStore(Store):
    """Store with adapters for common standard-library types.

    Handles UUID, date, time, datetime, timedelta, Path, parsed URLs,
    Decimal and Fraction values.
    """

    def register_adapters(self) -> None:
        for adapter in standard_adapters():
            self.register_adapter(adapter)
