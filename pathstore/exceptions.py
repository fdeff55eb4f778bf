"""Exceptions for the pathstore package."""

from typing import Any, Optional


class StoreError(Exception):
    """Base exception for all store errors."""

    pass


class SetupError(StoreError):
    """The default registry was set up twice, or used before setup()."""

    pass


class NotFoundError(StoreError, KeyError):
    """No value at the specified path."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"No value at path: {path}")


class TypeMismatchError(StoreError, TypeError):
    """A cached store is not of the type the caller expected."""

    def __init__(self, name: str, expected: type, actual: type):
        self.name = name
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Store {name} expects {expected.__name__}, got {actual.__name__}"
        )


class SerializationError(StoreError):
    """Failed to serialize or deserialize a value or a document."""

    pass


class FormatDecodeError(SerializationError):
    """Text could not be decoded into a tree."""

    pass


class FormatEncodeError(SerializationError):
    """A tree could not be encoded in the requested format."""

    pass


class AdapterConversionError(SerializationError):
    """An adapter getter could not rebuild a value from its stored form."""

    def __init__(self, path: str, target: type, cause: Optional[BaseException] = None):
        self.path = path
        self.target = target
        self.cause = cause
        message = f"Cannot convert value at {path} to {target.__name__}"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


class DigitalSaveError(StoreError):
    """Save attempted on a digital (memory-only) store."""

    def __init__(self, name: Any = None):
        self.name = name
        label = f" {name}" if name else ""
        super().__init__(f"Digital store{label} cannot be saved to file")


class StoreIOError(StoreError, OSError):
    """Reading a backing file failed."""

    pass
