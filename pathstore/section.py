"""Prefixed views over a store."""

import weakref
from typing import TYPE_CHECKING, Any, Callable, Dict, Iterator, Mapping, Optional, Set, Type

from .exceptions import NotFoundError, StoreError

if TYPE_CHECKING:
    from .core import PathStore


class Section:
    """A namespaced view of part of a store.

    Every key is prefixed with the section's path and the call is forwarded
    to the parent store. A section holds no data of its own and cannot be
    saved or reloaded; persist the parent store instead.

    Example:
        user = store.section("user")
        user.set("profile.name", "Hans")      # writes "user.profile.name"
        store.get("user.profile.name", str)   # "Hans"
    """

    def __init__(self, parent: "PathStore", prefix: str):
        if not prefix:
            raise ValueError("Section prefix must not be empty")
        self._parent_ref = weakref.ref(parent)
        self._prefix = prefix

    @property
    def prefix(self) -> str:
        return self._prefix

    @property
    def parent(self) -> "PathStore":
        """The store this section reads from and writes to.

        Raises:
            StoreError: If the parent store no longer exists
        """
        parent = self._parent_ref()
        if parent is None:
            raise StoreError(f"Parent store of section '{self._prefix}' no longer exists")
        return parent

    def _full(self, key: str) -> str:
        return f"{self._prefix}.{key}" if key else self._prefix

    def get(self, key: str, cls: Optional[Type] = None, default: Any = None) -> Any:
        return self.parent.get(self._full(key), cls, default)

    def set(self, key: str, value: Any) -> None:
        self.parent.set(self._full(key), value)

    def remove(self, key: str) -> bool:
        return self.parent.remove(self._full(key))

    def contains(self, key: str) -> bool:
        return self.parent.contains(self._full(key))

    def keys(self, base: str = "", deep: bool = False) -> Set[str]:
        return self.parent.keys(self._full(base), deep)

    def size(self, key: str = "") -> int:
        return self.parent.size(self._full(key))

    def clear(self, key: str = "") -> None:
        self.parent.clear(self._full(key))

    def for_each(
        self,
        action: Callable[[str, Any], None],
        base: str = "",
        recursive: bool = False,
    ) -> None:
        """Visit entries under ``base``; paths passed to ``action`` are full store paths."""
        self.parent.for_each(action, self._full(base), recursive)

    def put_all(self, mapping: Mapping[str, Any], base: str = "") -> None:
        self.parent.put_all(mapping, self._full(base))

    def to_map(self, key: str = "") -> Dict[str, Any]:
        return self.parent.to_map(self._full(key))

    def deep_copy(self) -> Dict[str, Any]:
        """Independent copy of this section's subtree."""
        return self.parent.deep_copy(self._prefix)

    def section(self, key: str) -> "Section":
        return Section(self.parent, self._full(key))

    # Dict-like interface

    def __getitem__(self, key: str) -> Any:
        value = self.get(key)
        if value is None:
            raise NotFoundError(self._full(key))
        return value

    def __setitem__(self, key: str, value: Any) -> None:
        self.set(key, value)

    def __delitem__(self, key: str) -> None:
        if not self.remove(key):
            raise NotFoundError(self._full(key))

    def __contains__(self, key: str) -> bool:
        return self.contains(key)

    def __iter__(self) -> Iterator[str]:
        return iter(self.keys())

    def __len__(self) -> int:
        return self.size()

    def __repr__(self) -> str:
        return f"Section({self._prefix!r})"
