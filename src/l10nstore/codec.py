"""Catalog codecs: serialization of one language's key to text mapping.

The store treats the catalog file format as opaque. Any object that
satisfies the CatalogCodec protocol can be plugged into StoreConfig.

Components:
    CatalogCodec - Protocol for catalog encoders/decoders (structural typing)
    PlistCatalogCodec - Property list codec (binary or XML), the platform default
    JsonCatalogCodec - UTF-8 JSON object codec
    detect_format - Identify a catalog's format from its leading marker bytes

Python 3.13+. Zero external dependencies.
"""

from __future__ import annotations

import json
import plistlib
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Protocol
from xml.parsers.expat import ExpatError

from l10nstore.enums import CatalogFormat
from l10nstore.errors import DecodeError, StoreErrorContext

__all__ = [
    "CatalogCodec",
    "JsonCatalogCodec",
    "PlistCatalogCodec",
    "detect_format",
]

_BINARY_PLIST_MARKER = b"bplist00"
_XML_PLIST_MARKERS = (b"<?xml", b"<plist", b"<!DOCTYPE plist")
_UTF8_BOM = b"\xef\xbb\xbf"


class CatalogCodec(Protocol):
    """Protocol for encoding and decoding a single language catalog.

    Implementations must round-trip every mapping of str to str exactly.
    ``decode`` raises DecodeError for corrupt input; ``encode`` raises
    TypeError or ValueError for mappings it cannot represent.

    Example:
        >>> class LinesCodec:
        ...     def encode(self, catalog):
        ...         return "\\n".join(f"{k}={v}" for k, v in catalog.items()).encode()
        ...     def decode(self, data):
        ...         return dict(line.split("=", 1) for line in data.decode().splitlines())
        ...
        >>> config = StoreConfig(destination_root=root, codec=LinesCodec())
    """

    def encode(self, catalog: Mapping[str, str]) -> bytes:
        """Serialize a catalog to bytes.

        Args:
            catalog: Key to text mapping for one language

        Returns:
            Encoded catalog file contents

        Raises:
            TypeError: If a key or value is not a string
        """

    def decode(self, data: bytes) -> dict[str, str]:
        """Deserialize catalog file contents.

        Args:
            data: Raw catalog file contents

        Returns:
            Key to text mapping

        Raises:
            DecodeError: If data is not a valid catalog
        """


def detect_format(data: bytes) -> CatalogFormat | None:
    """Identify the format of catalog bytes from their leading marker.

    Args:
        data: Raw catalog file contents

    Returns:
        Detected CatalogFormat, or None if no known marker is present

    Example:
        >>> detect_format(b"bplist00...")
        <CatalogFormat.BINARY_PLIST: 'binary_plist'>
        >>> detect_format(b'{"hello": "Hi"}')
        <CatalogFormat.JSON: 'json'>
    """
    if data.startswith(_BINARY_PLIST_MARKER):
        return CatalogFormat.BINARY_PLIST
    head = data.removeprefix(_UTF8_BOM).lstrip()
    if head.startswith(_XML_PLIST_MARKERS):
        return CatalogFormat.XML_PLIST
    if head.startswith(b"{"):
        return CatalogFormat.JSON
    return None


def _check_catalog(catalog: Mapping[str, str]) -> dict[str, str]:
    """Copy a catalog into a plain dict, rejecting non-string entries."""
    result: dict[str, str] = {}
    for key, value in catalog.items():
        if not isinstance(key, str) or not isinstance(value, str):
            msg = (
                f"Catalog entries must be str to str, got "
                f"{type(key).__name__} -> {type(value).__name__} for key {key!r}"
            )
            raise TypeError(msg)
        result[key] = value
    return result


def _as_catalog(decoded: object, codec_name: str) -> dict[str, str]:
    """Validate a decoded document as a str to str mapping."""
    if not isinstance(decoded, dict):
        msg = f"{codec_name} catalog must be a dictionary, got {type(decoded).__name__}"
        raise DecodeError(msg, StoreErrorContext(operation="decode"))
    try:
        return _check_catalog(decoded)
    except TypeError as e:
        raise DecodeError(str(e), StoreErrorContext(operation="decode")) from e


@dataclass(frozen=True, slots=True)
class PlistCatalogCodec:
    """Property list catalog codec.

    Encodes in the configured format (binary by default, as the platform
    resource loader expects). Decoding accepts both binary and XML
    property lists regardless of the configured output format, so bundles
    written by older releases stay readable after a format change.

    Attributes:
        fmt: Output format, BINARY_PLIST or XML_PLIST
    """

    fmt: CatalogFormat = CatalogFormat.BINARY_PLIST

    def __post_init__(self) -> None:
        """Reject formats that are not property lists.

        Raises:
            ValueError: If fmt is not a property list format
        """
        if self.fmt not in (CatalogFormat.BINARY_PLIST, CatalogFormat.XML_PLIST):
            msg = f"PlistCatalogCodec cannot write {self.fmt!s}"
            raise ValueError(msg)

    def encode(self, catalog: Mapping[str, str]) -> bytes:
        """Serialize a catalog as a property list dictionary."""
        plist_fmt = plistlib.FMT_BINARY if self.fmt == CatalogFormat.BINARY_PLIST else plistlib.FMT_XML
        return plistlib.dumps(_check_catalog(catalog), fmt=plist_fmt, sort_keys=True)

    def decode(self, data: bytes) -> dict[str, str]:
        """Deserialize a binary or XML property list dictionary."""
        # plistlib surfaces malformed values as whatever its converters raise
        try:
            decoded = plistlib.loads(data)
        except (
            plistlib.InvalidFileException,
            ExpatError,
            ValueError,
            AttributeError,
            TypeError,
            KeyError,
            OverflowError,
        ) as e:
            msg = f"Invalid property list catalog: {e}"
            raise DecodeError(msg, StoreErrorContext(operation="decode")) from e
        return _as_catalog(decoded, "Property list")


@dataclass(frozen=True, slots=True)
class JsonCatalogCodec:
    """UTF-8 JSON object catalog codec.

    Output is sorted and indented so catalogs diff cleanly under version
    control.
    """

    indent: int | None = 2

    def encode(self, catalog: Mapping[str, str]) -> bytes:
        """Serialize a catalog as a JSON object."""
        text = json.dumps(
            _check_catalog(catalog), ensure_ascii=False, indent=self.indent, sort_keys=True
        )
        return text.encode("utf-8")

    def decode(self, data: bytes) -> dict[str, str]:
        """Deserialize a JSON object."""
        try:
            decoded = json.loads(data.decode("utf-8-sig"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            msg = f"Invalid JSON catalog: {e}"
            raise DecodeError(msg, StoreErrorContext(operation="decode")) from e
        return _as_catalog(decoded, "JSON")
