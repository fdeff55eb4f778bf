"""Type adapters for pathstore.

An adapter transcodes one rich type to and from the primitive form kept in
a store's tree. Dispatch is by exact type: a value is encoded by the adapter
registered for ``type(value)``, and ``get(path, cls)`` decodes with the
adapter registered for ``cls``. Subclasses are not matched.

Example:
    store.add_adapter(
        Color,
        lambda path, color: store.set(path, color.hex),
        lambda path: Color.from_hex(store.get(path, str)),
    )

    store.set("theme.accent", Color("#ff8800"))
    store.get("theme.accent", Color)

Setters usually call ``store.set`` again with a primitive. A setter must
never write a value of its own type back, or it recurses forever.
"""

import uuid
from abc import ABC, abstractmethod
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from fractions import Fraction
from pathlib import Path, PosixPath, WindowsPath
from typing import TYPE_CHECKING, Any, Callable, Dict, Iterable, List, Optional, Tuple, Type
from urllib.parse import ParseResult, urlparse

from .section import Section

if TYPE_CHECKING:
    from .core import PathStore


class Adapter(ABC):
    """Setter/getter pair bound to one or more concrete types.

    ``value_types`` is the type tag: the exact types this adapter serves.
    """

    value_types: Tuple[type, ...] = ()

    @abstractmethod
    def encode(self, store: "PathStore", path: str, value: Any) -> None:
        """Write ``value`` at ``path`` in a storable form."""
        pass

    @abstractmethod
    def decode(self, store: "PathStore", path: str) -> Any:
        """Rebuild the typed value stored at ``path``.

        Reads whatever primitive ``encode`` wrote. May raise if the stored
        primitive cannot be parsed; the store wraps that error.
        """
        pass


class FunctionAdapter(Adapter):
    """Adapter built from a plain setter and getter function."""

    def __init__(
        self,
        value_type: type,
        setter: Callable[[str, Any], None],
        getter: Callable[[str], Any],
    ):
        self.value_types = (value_type,)
        self._setter = setter
        self._getter = getter

    def encode(self, store: "PathStore", path: str, value: Any) -> None:
        self._setter(path, value)

    def decode(self, store: "PathStore", path: str) -> Any:
        return self._getter(path)


class SectionAdapter(Adapter):
    """Built-in adapter for Section values.

    Reading a mapping as a Section yields a view bound to the store and path.
    Writing a Section copies the section's subtree to the target path.
    """

    value_types = (Section,)

    def encode(self, store: "PathStore", path: str, value: Section) -> None:
        store.set(path, value.deep_copy())

    def decode(self, store: "PathStore", path: str) -> Optional[Section]:
        if not isinstance(store.get(path), dict):
            return None
        return Section(store, path)


class StringAdapter(Adapter):
    """Adapter that stores a value as its canonical string form."""

    def __init__(
        self,
        value_types: Iterable[type],
        parse: Callable[[str], Any],
        render: Callable[[Any], str] = str,
    ):
        self.value_types = tuple(value_types)
        self._parse = parse
        self._render = render

    def encode(self, store: "PathStore", path: str, value: Any) -> None:
        store.set(path, self._render(value))

    def decode(self, store: "PathStore", path: str) -> Any:
        raw = store.get(path)
        if raw is None:
            return None
        # YAML and TOML can hand back native dates; parse their string form
        return self._parse(raw if isinstance(raw, str) else str(raw))


class TimedeltaAdapter(Adapter):
    """Stores a timedelta as its total seconds."""

    value_types = (timedelta,)

    def encode(self, store: "PathStore", path: str, value: timedelta) -> None:
        store.set(path, value.total_seconds())

    def decode(self, store: "PathStore", path: str) -> Optional[timedelta]:
        raw = store.get(path)
        if raw is None:
            return None
        return timedelta(seconds=float(raw))


def parse_url(value: str) -> ParseResult:
    """Parse an absolute URL, rejecting strings without scheme or host."""
    result = urlparse(value)
    if not result.scheme or not (result.netloc or result.scheme == "file"):
        raise ValueError(f"Not an absolute URL: {value!r}")
    return result


def standard_adapters() -> List[Adapter]:
    """Adapters for common standard-library types.

    Covers UUIDs, dates and times (ISO 8601), durations, file paths, URLs,
    decimals and fractions.
    """
    return [
        StringAdapter([uuid.UUID], uuid.UUID),
        StringAdapter([date], date.fromisoformat, date.isoformat),
        StringAdapter([time], time.fromisoformat, time.isoformat),
        StringAdapter([datetime], datetime.fromisoformat, datetime.isoformat),
        TimedeltaAdapter(),
        StringAdapter([Path, PosixPath, WindowsPath], Path),
        StringAdapter([ParseResult], parse_url, ParseResult.geturl),
        StringAdapter([Decimal], Decimal),
        StringAdapter([Fraction], Fraction),
    ]


class AdapterRegistry:
    """Maps exact types to adapters for a single store.

    Example:
        registry = AdapterRegistry()
        registry.register(StringAdapter([uuid.UUID], uuid.UUID))

        registry.setter_for(uuid.uuid4())   # the UUID adapter
        registry.getter_for(uuid.UUID)      # the same adapter
    """

    def __init__(self):
        self._adapters: Dict[type, Adapter] = {}

    def register(self, adapter: Adapter) -> None:
        """Register an adapter for each of its value types.

        A later registration for the same type replaces the earlier one.
        """
        if not adapter.value_types:
            raise ValueError(f"{type(adapter).__name__} declares no value types")
        for value_type in adapter.value_types:
            self._adapters[value_type] = adapter

    def setter_for(self, value: Any) -> Optional[Adapter]:
        """Adapter that encodes ``value``, chosen by its exact runtime type."""
        return self._adapters.get(type(value))

    def getter_for(self, cls: Type) -> Optional[Adapter]:
        """Adapter that decodes values requested as ``cls``."""
        return self._adapters.get(cls)

    def types(self) -> List[type]:
        return list(self._adapters)

    def __contains__(self, cls: type) -> bool:
        return cls in self._adapters

    def __len__(self) -> int:
        return len(self._adapters)
