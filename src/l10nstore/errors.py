"""Exception hierarchy for the versioned bundle store.

These exceptions report failures of the on-disk store: building a new
bundle generation, reading an existing one, or initializing the store.
They carry a StoreErrorContext for diagnosis and chain the underlying
OSError or codec exception via ``raise ... from``.

Hierarchy:
    BundleStoreError (base)
    ├─ CopyError (materializing from a source bundle failed)
    ├─ CreationError (encoding or writing a catalog failed)
    ├─ DecodeError (catalog file present but unparseable)
    ├─ BootstrapError (no valid bundle and the default copy failed)
    └─ NoWritableStoreError (update attempted against the read-only fallback)

Python 3.13+. Zero external dependencies.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, final

if TYPE_CHECKING:
    from pathlib import Path

__all__ = [
    "BootstrapError",
    "BundleStoreError",
    "CopyError",
    "CreationError",
    "DecodeError",
    "NoWritableStoreError",
    "StoreErrorContext",
]


@dataclass(frozen=True, slots=True)
class StoreErrorContext:
    """Context for store error diagnosis.

    Attributes:
        operation: Operation being performed (copy, create, decode, bootstrap, update)
        path: Filesystem path involved (optional)
        version: Bundle version involved (optional)
        language: Language code involved (optional)
    """

    operation: str
    path: Path | None = None
    version: str | None = None
    language: str | None = None


class BundleStoreError(Exception):
    """Base exception for all bundle store failures.

    Attributes:
        context: Structured diagnostic context (optional)
    """

    def __init__(self, message: str, context: StoreErrorContext | None = None) -> None:
        """Initialize BundleStoreError.

        Args:
            message: Human-readable error description
            context: Structured diagnostic context (optional)
        """
        super().__init__(message)
        self._context = context

    @property
    def context(self) -> StoreErrorContext | None:
        """Structured diagnostic context."""
        return self._context

    def __repr__(self) -> str:
        """Return detailed representation for debugging."""
        return f"{self.__class__.__name__}({self.args[0]!r}, context={self._context!r})"


@final
class CopyError(BundleStoreError):
    """Copying a source bundle into a new generation failed.

    Causes include a full disk, denied permissions, an unlistable source
    directory, or a stale destination that could not be cleared.
    """


@final
class CreationError(BundleStoreError):
    """Encoding or writing a catalog into a new generation failed."""


@final
class DecodeError(BundleStoreError):
    """A catalog file exists but cannot be parsed.

    Readers of a whole bundle skip the affected language with a warning
    rather than aborting the read.
    """


@final
class BootstrapError(BundleStoreError):
    """No valid bundle was found and copying the default source failed.

    The store falls back to serving the default source read-only.
    """


@final
class NoWritableStoreError(BundleStoreError):
    """An update was attempted while the store serves the read-only fallback."""
