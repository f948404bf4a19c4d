"""l10nstore - Versioned on-disk store for runtime translation updates.

Keeps localized text catalogs in versioned bundle directories and applies
incremental translation updates without a restart. Every update builds a
complete new generation and swaps it in atomically, so readers never see
a partially written bundle.

Public API:
    BundleStore - Versioned store: open, bundle lookup, apply_update
    BundleHandle - Reference-counted read lease on a bundle or language
    StoreConfig - Store configuration
    StartupResult - How the store obtained its current bundle
    merge_translations - Pure merge of incoming translations

Codecs:
    CatalogCodec - Protocol for pluggable catalog formats
    PlistCatalogCodec - Binary or XML property list catalogs (default)
    JsonCatalogCodec - JSON catalogs

Exceptions:
    BundleStoreError - Base exception class
    CopyError, CreationError, DecodeError, BootstrapError, NoWritableStoreError

Submodules:
    l10nstore.layout - Filesystem layout and discovery
    l10nstore.materializer - Building new bundle generations
    l10nstore.resolver - Startup resolution and bootstrap
    l10nstore.versioning - Bundle version naming
    l10nstore.sync - RWLock and reference table
"""

from .codec import CatalogCodec, JsonCatalogCodec, PlistCatalogCodec
from .config import StoreConfig
from .enums import CatalogFormat, StartupStatus
from .errors import (
    BootstrapError,
    BundleStoreError,
    CopyError,
    CreationError,
    DecodeError,
    NoWritableStoreError,
)
from .layout import BundleDirectory
from .merge import merge_translations
from .store import BundleHandle, BundleStore, StartupResult

# Version information - Auto-populated from package metadata
try:
    from importlib.metadata import PackageNotFoundError
    from importlib.metadata import version as _get_version
except ImportError as e:
    raise RuntimeError("importlib.metadata unavailable - Python version too old? " + str(e)) from e

try:
    __version__ = _get_version("l10nstore")
except PackageNotFoundError:
    # Development mode: package not installed yet
    __version__ = "0.0.0+dev"

__all__ = [
    "BootstrapError",
    "BundleDirectory",
    "BundleHandle",
    "BundleStore",
    "BundleStoreError",
    "CatalogCodec",
    "CatalogFormat",
    "CopyError",
    "CreationError",
    "DecodeError",
    "JsonCatalogCodec",
    "NoWritableStoreError",
    "PlistCatalogCodec",
    "StartupResult",
    "StartupStatus",
    "StoreConfig",
    "__version__",
    "merge_translations",
]
