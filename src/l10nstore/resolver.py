"""Bundle resolver: finds the current generation at startup.

A process that crashes mid-update can leave abandoned generations or
staging directories behind. Resolution is self-healing: it keeps only
the newest valid generation and removes everything else it discovers.

Python 3.13+.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from l10nstore.errors import BootstrapError, CopyError, CreationError, StoreErrorContext
from l10nstore.layout import BundleDirectory, remove_path

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from l10nstore.materializer import Materializer
    from l10nstore.versioning import VersionClock

__all__ = ["BundleResolver"]

logger = logging.getLogger(__name__)


class BundleResolver:
    """Discovers, validates, and bootstraps the current generation."""

    __slots__ = ("_clock", "_materializer")

    def __init__(self, materializer: Materializer, clock: VersionClock) -> None:
        self._materializer = materializer
        self._clock = clock

    def discover(self) -> list[BundleDirectory]:
        """List candidate generations newest first (see BundleLayout.list_candidates)."""
        return self._materializer.layout.list_candidates()

    def resolve_current(self, candidates: Sequence[BundleDirectory]) -> BundleDirectory | None:
        """Pick the newest valid candidate and delete all others.

        A candidate is valid when it contains at least one language
        directory. Every candidate other than the returned one is removed
        from disk, including newer ones that are invalid. Removal
        failures are logged and otherwise ignored; the next startup
        retries them.

        Args:
            candidates: Generations ordered newest first

        Returns:
            The current generation, or None if no candidate is valid
        """
        layout = self._materializer.layout
        current = next(
            (candidate for candidate in candidates if layout.is_valid_bundle(candidate.path)),
            None,
        )

        for candidate in candidates:
            if candidate is current:
                continue
            logger.info("Removing abandoned bundle %s", candidate.path)
            remove_path(candidate.path)

        for staging_path in layout.list_staging():
            logger.info("Removing interrupted build %s", staging_path)
            remove_path(staging_path)

        if current is not None:
            logger.info("Resolved current bundle %s", current.version)
        return current

    def bootstrap(self, default_source: Path | None) -> BundleDirectory:
        """Copy the default source into a fresh generation.

        Args:
            default_source: Read-only directory laid out like a bundle. None
                bootstraps an empty generation.

        Returns:
            The new generation

        Raises:
            BootstrapError: If the copy fails
        """
        version = self._clock.new_version()
        try:
            if default_source is None:
                bundle = self._materializer.materialize_from_catalogs(version, {})
            else:
                bundle = self._materializer.materialize_from_source(version, default_source)
        except (CopyError, CreationError) as e:
            msg = f"Cannot bootstrap store from {default_source}: {e}"
            raise BootstrapError(
                msg,
                StoreErrorContext(operation="bootstrap", path=default_source, version=version),
            ) from e
        logger.info("Bootstrapped bundle %s from %s", version, default_source)
        return bundle
