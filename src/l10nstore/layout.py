"""On-disk layout of the versioned bundle store.

Every generation of the store is a directory under a single destination
root:

    <destination_root>/<version>.<bundle_extension>/<code>.<language_suffix>/<catalog_filename>

The directory listing is the store's source of truth. Discovery lists
the destination root, keeps entries whose name ends with
``.<bundle_extension>``, and sorts them by name descending, so the newest
generation comes first.

Components:
    BundleDirectory - Immutable handle naming one on-disk generation
    BundleLayout - Path construction and discovery for one destination root
    remove_path - Best-effort removal used by cleanup paths

Python 3.13+. Zero external dependencies.
"""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass
from pathlib import Path

from l10nstore.constants import (
    DEFAULT_BUNDLE_EXTENSION,
    DEFAULT_CATALOG_FILENAME,
    DEFAULT_LANGUAGE_SUFFIX,
    STAGING_SUFFIX,
)
from l10nstore.locale_utils import validate_language_code
from l10nstore.types import BundleVersion, LanguageCode

__all__ = [
    "BundleDirectory",
    "BundleLayout",
    "remove_path",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class BundleDirectory:
    """One generation of the store on disk.

    Attributes:
        path: Directory holding the per-language sub-directories
        version: Generation identifier, or None for the read-only default source
    """

    path: Path
    version: BundleVersion | None = None

    @property
    def is_versioned(self) -> bool:
        """True if this directory is a store-managed generation."""
        return self.version is not None


def remove_path(path: Path) -> bool:
    """Remove a file or directory tree, logging instead of raising.

    Args:
        path: File or directory to remove

    Returns:
        True if path no longer exists afterwards
    """
    try:
        if path.is_dir() and not path.is_symlink():
            shutil.rmtree(path)
        else:
            path.unlink(missing_ok=True)
    except OSError as e:
        logger.warning("Failed to remove %s: %s", path, e)
        return False
    return True


def _check_segment(value: str, name: str) -> None:
    if not value:
        msg = f"{name} cannot be empty"
        raise ValueError(msg)
    if "/" in value or "\\" in value or "." in value:
        msg = f"{name} must be a plain name without separators or dots, got: '{value}'"
        raise ValueError(msg)


@dataclass(frozen=True, slots=True)
class BundleLayout:
    """Path construction and discovery for one destination root.

    Attributes:
        destination_root: Directory holding all generations
        bundle_extension: Extension marking generation directories
        language_suffix: Extension marking per-language sub-directories
        catalog_filename: Name of the catalog file in each language directory

    Example:
        >>> layout = BundleLayout(Path("/data/l10n"))
        >>> layout.bundle_path("2026-10-19_12-30-45-123456")
        PosixPath('/data/l10n/2026-10-19_12-30-45-123456.localizationBundle')
    """

    destination_root: Path
    bundle_extension: str = DEFAULT_BUNDLE_EXTENSION
    language_suffix: str = DEFAULT_LANGUAGE_SUFFIX
    catalog_filename: str = DEFAULT_CATALOG_FILENAME

    def __post_init__(self) -> None:
        """Validate name components at construction time.

        Raises:
            ValueError: If an extension is empty or contains separators or
                dots, or if catalog_filename is not a plain file name
        """
        object.__setattr__(self, "destination_root", Path(self.destination_root))
        _check_segment(self.bundle_extension, "bundle_extension")
        _check_segment(self.language_suffix, "language_suffix")
        name = self.catalog_filename
        if not name or "/" in name or "\\" in name or name in (".", ".."):
            msg = f"catalog_filename must be a plain file name, got: '{name}'"
            raise ValueError(msg)

    # ------------------------------------------------------------------
    # Path construction
    # ------------------------------------------------------------------

    def bundle_name(self, version: BundleVersion) -> str:
        """Directory name of a generation."""
        return f"{version}.{self.bundle_extension}"

    def bundle_path(self, version: BundleVersion) -> Path:
        """Final path of a generation."""
        return self.destination_root / self.bundle_name(version)

    def staging_path(self, version: BundleVersion) -> Path:
        """Path where a generation is built before it is renamed into place."""
        return self.destination_root / f".{self.bundle_name(version)}{STAGING_SUFFIX}"

    def language_dir_name(self, code: LanguageCode) -> str:
        """Directory name of a language inside a generation.

        Raises:
            ValueError: If code is not a valid language code
        """
        validate_language_code(code)
        return f"{code}.{self.language_suffix}"

    def language_path(self, bundle_path: Path, code: LanguageCode) -> Path:
        """Path of a language directory inside a bundle directory."""
        return bundle_path / self.language_dir_name(code)

    def catalog_path(self, language_path: Path) -> Path:
        """Path of the catalog file inside a language directory."""
        return language_path / self.catalog_filename

    # ------------------------------------------------------------------
    # Discovery
    # ------------------------------------------------------------------

    def list_candidates(self) -> list[BundleDirectory]:
        """List generations in the destination root, newest first.

        Entries are kept when their name ends with ``.<bundle_extension>``;
        they are sorted by name descending. A missing or unreadable root
        yields an empty list.
        """
        suffix = f".{self.bundle_extension}"
        try:
            entries = list(self.destination_root.iterdir())
        except OSError as e:
            logger.debug("Cannot list %s: %s", self.destination_root, e)
            return []
        candidates = [
            BundleDirectory(path=entry, version=entry.name.removesuffix(suffix))
            for entry in entries
            if entry.name.endswith(suffix) and len(entry.name) > len(suffix)
        ]
        candidates.sort(key=lambda candidate: candidate.path.name, reverse=True)
        return candidates

    def list_staging(self) -> list[Path]:
        """List staging directories left behind by interrupted builds."""
        suffix = f".{self.bundle_extension}{STAGING_SUFFIX}"
        try:
            entries = list(self.destination_root.iterdir())
        except OSError:
            return []
        return sorted(
            entry for entry in entries if entry.name.startswith(".") and entry.name.endswith(suffix)
        )

    def language_dirs(self, bundle_path: Path, *, strict: bool = False) -> dict[LanguageCode, Path]:
        """Map language codes to their directories inside a bundle.

        Only directories ending in ``.<language_suffix>`` are included. A
        missing or unreadable bundle directory yields an empty mapping,
        unless ``strict`` is set.

        Raises:
            OSError: If strict and bundle_path cannot be listed
        """
        suffix = f".{self.language_suffix}"
        try:
            entries = sorted(bundle_path.iterdir())
        except OSError:
            if strict:
                raise
            return {}
        return {
            entry.name.removesuffix(suffix): entry
            for entry in entries
            if entry.name.endswith(suffix) and len(entry.name) > len(suffix) and entry.is_dir()
        }

    def find_language(self, bundle_path: Path, code: LanguageCode) -> Path | None:
        """Return the directory of ``code`` inside a bundle, if present."""
        candidate = self.language_path(bundle_path, code)
        return candidate if candidate.is_dir() else None

    def is_valid_bundle(self, bundle_path: Path) -> bool:
        """A bundle is valid when it holds at least one language directory."""
        return bundle_path.is_dir() and bool(self.language_dirs(bundle_path))
