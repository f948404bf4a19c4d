"""Enumerations for l10nstore type-safe constants.

Uses StrEnum (Python 3.11+) for automatic string conversion.

Python 3.13+.
"""

from enum import StrEnum


class CatalogFormat(StrEnum):
    """Serialization format of a catalog file.

    StrEnum provides automatic string conversion: str(CatalogFormat.JSON) == "json"
    """

    BINARY_PLIST = "binary_plist"
    """Binary property list, marker b'bplist00'"""

    XML_PLIST = "xml_plist"
    """XML property list, marker b'<?xml' or b'<plist'"""

    JSON = "json"
    """UTF-8 JSON object, marker b'{'"""


class StartupStatus(StrEnum):
    """How BundleStore obtained its current bundle at startup."""

    RESUMED = "resumed"
    """An existing valid bundle was found in the destination root"""

    BOOTSTRAPPED = "bootstrapped"
    """A new bundle was copied from the default source"""

    READ_ONLY_FALLBACK = "read_only_fallback"
    """Bootstrap failed; the default source is used directly and updates are rejected"""


__all__ = [
    "CatalogFormat",
    "StartupStatus",
]
