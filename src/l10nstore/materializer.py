"""Directory materializer: builds new bundle generations on disk.

Both entry points are all-or-nothing against the filesystem. A
generation is assembled in a staging directory whose name does not end
in the bundle extension, then renamed to its final path in one step.
Discovery therefore never sees a half-built generation, and a failed
build leaves nothing at the final path.

Build order:
    1. Remove any stale directory at the final path and at the staging path
    2. Create the staging directory
    3. Populate one sub-directory per language
    4. Rename staging to the final path

Python 3.13+.
"""

from __future__ import annotations

import logging
import os
import shutil
from typing import TYPE_CHECKING

from l10nstore.errors import CopyError, CreationError, StoreErrorContext
from l10nstore.layout import BundleDirectory, BundleLayout, remove_path

if TYPE_CHECKING:
    from pathlib import Path

    from l10nstore.codec import CatalogCodec
    from l10nstore.types import BundleVersion, TranslationSet

__all__ = ["Materializer"]

logger = logging.getLogger(__name__)


def _clear(path: Path) -> None:
    """Remove a stale file or directory tree at path, raising on failure."""
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    elif path.exists() or path.is_symlink():
        path.unlink()


def _write_atomic(path: Path, data: bytes) -> None:
    """Write data to a sibling temporary file and rename it over path."""
    tmp_path = path.with_name(f".{path.name}.tmp")
    try:
        with tmp_path.open("wb") as fh:
            fh.write(data)
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp_path, path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise


class Materializer:
    """Creates bundle generations from a source bundle or from catalogs.

    Example:
        >>> materializer = Materializer(layout, PlistCatalogCodec())
        >>> bundle = materializer.materialize_from_catalogs(
        ...     clock.new_version(), {"en": {"hello": "Hi"}}
        ... )
        >>> sorted(layout.language_dirs(bundle.path))
        ['en']
    """

    __slots__ = ("_codec", "_layout")

    def __init__(self, layout: BundleLayout, codec: CatalogCodec) -> None:
        """Initialize materializer.

        Args:
            layout: Layout of the destination root
            codec: Codec used to encode catalogs
        """
        self._layout = layout
        self._codec = codec

    @property
    def layout(self) -> BundleLayout:
        """Layout this materializer writes into."""
        return self._layout

    def _prepare(self, version: BundleVersion) -> tuple[Path, Path]:
        """Clear stale paths for version and create its staging directory.

        Raises:
            OSError: If a stale path cannot be removed or staging cannot be created
        """
        final_path = self._layout.bundle_path(version)
        staging_path = self._layout.staging_path(version)
        self._layout.destination_root.mkdir(parents=True, exist_ok=True)
        if final_path.exists() or final_path.is_symlink():
            logger.warning("Removing stale bundle at %s", final_path)
        _clear(final_path)
        _clear(staging_path)
        staging_path.mkdir()
        return final_path, staging_path

    def materialize_from_source(self, version: BundleVersion, source: Path) -> BundleDirectory:
        """Copy every language catalog of a source bundle into a new generation.

        Languages whose catalog file is missing or unreadable are skipped.

        Args:
            version: Version of the new generation
            source: Directory laid out like a bundle (one sub-directory per language)

        Returns:
            The new generation

        Raises:
            CopyError: If the source cannot be listed, the destination cannot
                be cleared or created, or a catalog copy fails
        """
        context = StoreErrorContext(
            operation="copy", path=self._layout.bundle_path(version), version=version
        )
        if not source.is_dir():
            msg = f"Source bundle {source} is not a readable directory"
            raise CopyError(msg, context)
        try:
            languages = self._layout.language_dirs(source, strict=True)
        except OSError as e:
            msg = f"Cannot list source bundle {source}: {e}"
            raise CopyError(msg, context) from e

        try:
            final_path, staging_path = self._prepare(version)
        except OSError as e:
            msg = f"Cannot prepare destination for bundle {version}: {e}"
            raise CopyError(msg, context) from e

        try:
            copied = 0
            for code, source_dir in languages.items():
                source_catalog = self._layout.catalog_path(source_dir)
                if not source_catalog.is_file() or not os.access(source_catalog, os.R_OK):
                    logger.warning("Skipping language %s: no readable catalog in %s", code, source_dir)
                    continue
                target_dir = self._layout.language_path(staging_path, code)
                target_dir.mkdir()
                shutil.copy2(source_catalog, self._layout.catalog_path(target_dir))
                logger.debug("Copied %s catalog from %s", code, source_dir)
                copied += 1
            staging_path.rename(final_path)
        except (OSError, ValueError) as e:
            remove_path(staging_path)
            msg = f"Failed to copy {source} into bundle {version}: {e}"
            raise CopyError(msg, context) from e

        logger.info("Materialized bundle %s from %s (%d languages)", version, source, copied)
        return BundleDirectory(path=final_path, version=version)

    def materialize_from_catalogs(
        self, version: BundleVersion, translations: TranslationSet
    ) -> BundleDirectory:
        """Encode and write every catalog of a translation set into a new generation.

        Args:
            version: Version of the new generation
            translations: Catalogs keyed by language code

        Returns:
            The new generation

        Raises:
            ValueError: If a language code is invalid (nothing is written)
            CreationError: If the destination cannot be created or any
                catalog cannot be encoded or written
        """
        for code in translations:
            self._layout.language_dir_name(code)

        context = StoreErrorContext(
            operation="create", path=self._layout.bundle_path(version), version=version
        )
        try:
            final_path, staging_path = self._prepare(version)
        except OSError as e:
            msg = f"Cannot prepare destination for bundle {version}: {e}"
            raise CreationError(msg, context) from e

        code = None
        try:
            for code, catalog in translations.items():
                data = self._codec.encode(catalog)
                language_dir = self._layout.language_path(staging_path, code)
                language_dir.mkdir()
                _write_atomic(self._layout.catalog_path(language_dir), data)
                logger.debug("Wrote %s catalog (%d keys)", code, len(catalog))
            staging_path.rename(final_path)
        except (OSError, TypeError, ValueError) as e:
            remove_path(staging_path)
            msg = f"Failed to write bundle {version}: {e}"
            raise CreationError(
                msg,
                StoreErrorContext(
                    operation="create", path=final_path, version=version, language=code
                ),
            ) from e

        logger.info("Materialized bundle %s (%d languages)", version, len(translations))
        return BundleDirectory(path=final_path, version=version)
