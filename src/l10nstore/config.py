"""Store configuration.

Provides a single frozen dataclass that collects every BundleStore
parameter: where generations live, where the read-only defaults come
from, how directories and catalog files are named, and which codec and
version clock to use.

Python 3.13+.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from l10nstore.codec import CatalogCodec, PlistCatalogCodec
from l10nstore.constants import (
    DEFAULT_BUNDLE_EXTENSION,
    DEFAULT_CATALOG_FILENAME,
    DEFAULT_LANGUAGE,
    DEFAULT_LANGUAGE_SUFFIX,
)
from l10nstore.layout import BundleLayout
from l10nstore.locale_utils import validate_language_code
from l10nstore.versioning import VersionClock, default_clock

__all__ = ["StoreConfig"]


@dataclass(frozen=True, slots=True)
class StoreConfig:
    """Immutable configuration for BundleStore.

    Only ``destination_root`` is required. Without a ``default_source`` a
    store with no existing generation bootstraps an empty one.

    Attributes:
        destination_root: Directory holding all generations (created on demand).
        default_source: Read-only directory with the shipped catalogs, laid out
            like a bundle. Copied into the first generation at bootstrap.
        bundle_extension: Extension of generation directories
            (default: "localizationBundle").
        language_suffix: Extension of per-language directories (default: "lproj").
        catalog_filename: Catalog file name inside each language directory
            (default: "Localizable.strings").
        default_language: Language read when a lookup goes through the bundle
            root rather than a language directory (default: "en").
        codec: Catalog codec (default: binary property list).
        clock: Version clock (default: the process-wide clock).

    Example:
        >>> config = StoreConfig(
        ...     destination_root=Path("~/.local/share/myapp/l10n").expanduser(),
        ...     default_source=Path(__file__).parent / "resources",
        ... )
        >>> store = BundleStore.open(config)
    """

    destination_root: Path
    default_source: Path | None = None
    bundle_extension: str = DEFAULT_BUNDLE_EXTENSION
    language_suffix: str = DEFAULT_LANGUAGE_SUFFIX
    catalog_filename: str = DEFAULT_CATALOG_FILENAME
    default_language: str = DEFAULT_LANGUAGE
    codec: CatalogCodec = field(default_factory=PlistCatalogCodec)
    clock: VersionClock = field(default=default_clock, repr=False)

    def __post_init__(self) -> None:
        """Normalize paths and validate names at construction time.

        Raises:
            ValueError: If a name component or default_language is invalid,
                or if default_source lies inside destination_root
        """
        object.__setattr__(self, "destination_root", Path(self.destination_root))
        if self.default_source is not None:
            object.__setattr__(self, "default_source", Path(self.default_source))
        validate_language_code(self.default_language)
        # BundleLayout validates the naming components.
        self.layout()
        if self.default_source is not None:
            root = self.destination_root.resolve()
            source = self.default_source.resolve()
            if source == root or root in source.parents:
                msg = (
                    f"default_source must not lie inside destination_root, "
                    f"got: '{self.default_source}'"
                )
                raise ValueError(msg)

    def layout(self) -> BundleLayout:
        """Build the BundleLayout described by this configuration."""
        return BundleLayout(
            destination_root=self.destination_root,
            bundle_extension=self.bundle_extension,
            language_suffix=self.language_suffix,
            catalog_filename=self.catalog_filename,
        )
