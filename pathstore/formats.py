"""On-disk formats and the codecs that turn trees into text and back.

Every codec works on plain trees: dicts with string keys whose values are
scalars, lists or nested dicts. Strings, numbers, booleans and nested
mappings round-trip losslessly through all three formats.

TOML has no null. When encoding TOML, keys holding None are left out at
every depth and None items are dropped from lists. JSON and YAML write
nulls as-is.
"""

import json
import tomllib
from abc import ABC, abstractmethod
from enum import Enum
from pathlib import PurePath
from typing import Any, Dict, Union

import tomli_w
import yaml

from .exceptions import FormatDecodeError, FormatEncodeError


class Format(Enum):
    """Supported file formats, valued by their file extension."""

    YAML = "yml"
    JSON = "json"
    TOML = "toml"

    @property
    def extension(self) -> str:
        return self.value

    @classmethod
    def from_extension(cls, extension: str) -> "Format":
        """Map an extension such as "json" or ".yaml" to a Format.

        Raises:
            ValueError: If the extension is not supported
        """
        ext = extension.lower().lstrip(".")
        if ext == "yaml":
            ext = "yml"
        try:
            return cls(ext)
        except ValueError:
            raise ValueError(f"Unsupported format extension: {extension}") from None

    @classmethod
    def from_path(cls, path: Union[str, PurePath]) -> "Format":
        """Pick the Format matching a file name's suffix."""
        return cls.from_extension(PurePath(path).suffix)


class Codec(ABC):
    """Encodes a tree to text and decodes text to a tree."""

    format: Format

    @abstractmethod
    def encode(self, tree: Dict[str, Any]) -> str:
        pass

    @abstractmethod
    def decode(self, text: str) -> Any:
        pass


class JsonCodec(Codec):
    format = Format.JSON

    def encode(self, tree: Dict[str, Any]) -> str:
        return json.dumps(tree, indent=2, ensure_ascii=False)

    def decode(self, text: str) -> Any:
        return json.loads(text)


class YamlCodec(Codec):
    format = Format.YAML

    def encode(self, tree: Dict[str, Any]) -> str:
        return yaml.safe_dump(
            tree, default_flow_style=False, sort_keys=False, allow_unicode=True
        )

    def decode(self, text: str) -> Any:
        return yaml.safe_load(text)


class TomlCodec(Codec):
    format = Format.TOML

    def encode(self, tree: Dict[str, Any]) -> str:
        return tomli_w.dumps(_drop_nulls(tree))

    def decode(self, text: str) -> Any:
        return tomllib.loads(text)


_CODECS: Dict[Format, Codec] = {
    Format.JSON: JsonCodec(),
    Format.YAML: YamlCodec(),
    Format.TOML: TomlCodec(),
}


def get_codec(fmt: Format) -> Codec:
    """Return the codec for a format."""
    return _CODECS[Format(fmt)]


def serialize(tree: Dict[str, Any], fmt: Format) -> str:
    """Encode a tree as text in the given format.

    Args:
        tree: Tree to encode
        fmt: Target format

    Returns:
        The encoded document

    Raises:
        FormatEncodeError: If the tree holds values the format cannot represent
    """
    codec = get_codec(fmt)
    try:
        return codec.encode(_to_plain(tree))
    except FormatEncodeError:
        raise
    except (TypeError, ValueError, yaml.YAMLError) as e:
        raise FormatEncodeError(f"Failed to encode tree as {codec.format.name}: {e}") from e


def deserialize(text: str, fmt: Format) -> Dict[str, Any]:
    """Decode text in the given format into a tree.

    Empty or whitespace-only text decodes to an empty tree.

    Args:
        text: Document text
        fmt: Source format

    Returns:
        The decoded tree, with all keys as strings

    Raises:
        FormatDecodeError: If the text is malformed or its top level is not a mapping
    """
    codec = get_codec(fmt)
    if not text or not text.strip():
        return {}

    try:
        data = codec.decode(text)
    except (ValueError, yaml.YAMLError) as e:
        # json.JSONDecodeError and tomllib.TOMLDecodeError are ValueErrors
        raise FormatDecodeError(f"Malformed {codec.format.name} document: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise FormatDecodeError(
            f"{codec.format.name} document must be a mapping at the top level, "
            f"got {type(data).__name__}"
        )
    return _string_keys(data)


def _to_plain(value: Any) -> Any:
    """Copy a tree, turning tuples into lists and mapping keys into strings."""
    if isinstance(value, dict):
        return {str(k): _to_plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_plain(v) for v in value]
    return value


def _drop_nulls(value: Any) -> Any:
    if isinstance(value, dict):
        return {k: _drop_nulls(v) for k, v in value.items() if v is not None}
    if isinstance(value, list):
        return [_drop_nulls(v) for v in value if v is not None]
    return value


def _string_keys(value: Any) -> Any:
    if isinstance(value, dict):
        return {str(k): _string_keys(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_string_keys(v) for v in value]
    return value
