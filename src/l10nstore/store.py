"""Versioned bundle store: update coordinator and lookup facade.

BundleStore owns exactly one current generation at a time. Updates never
modify a generation in place; they build a complete new one and swap
the current reference to it.

Update sequence (apply_update):
    1. Read every catalog of the current generation
    2. Merge the incoming translations over them
    3. Materialize the merged set as a new generation
    4. Swap the current reference under the write lock
    5. Retire the previous generation; its files are removed once no
       handle references it

A failure in steps 1 to 3 propagates to the caller and leaves the current
generation untouched. Failures while removing a superseded generation
are only logged; the next startup sweeps leftovers.

Key architectural decisions:
- Explicit startup (BundleStore.open / start) reporting a StartupResult
  instead of a lazily created global
- Generations kept in a small table keyed by version; superseded entries
  are reclaimed through that table, never by raw path
- Reference-counted handles defer deletion of superseded generations

Python 3.13+.
"""

from __future__ import annotations

import functools
import logging
import threading
import weakref
from dataclasses import dataclass
from typing import TYPE_CHECKING, Self

from l10nstore.enums import StartupStatus
from l10nstore.errors import BootstrapError, DecodeError, NoWritableStoreError, StoreErrorContext
from l10nstore.layout import BundleDirectory, remove_path
from l10nstore.locale_utils import negotiate_language, validate_language_code
from l10nstore.materializer import Materializer
from l10nstore.merge import merge_translations
from l10nstore.resolver import BundleResolver
from l10nstore.sync import ReferenceTable, RWLock

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable
    from pathlib import Path
    from types import TracebackType

    from l10nstore.codec import CatalogCodec
    from l10nstore.config import StoreConfig
    from l10nstore.layout import BundleLayout
    from l10nstore.types import BundleVersion, LanguageCode, TranslationSet

__all__ = ["BundleHandle", "BundleStore", "StartupResult"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class StartupResult:
    """Outcome of store startup.

    Attributes:
        status: How the current generation was obtained
        bundle: The generation that became current
        error: The bootstrap failure when status is READ_ONLY_FALLBACK
    """

    status: StartupStatus
    bundle: BundleDirectory
    error: BootstrapError | None = None

    @property
    def is_writable(self) -> bool:
        """True unless the store fell back to the read-only default source."""
        return self.status != StartupStatus.READ_ONLY_FALLBACK


class BundleHandle:
    """Read lease on a generation or on one of its language directories.

    While a handle is open its generation stays on disk even if an update
    supersedes it. Release the handle (or leave its ``with`` block) once
    reading is done. A handle that is garbage collected without being
    released is released then.

    Attributes:
        bundle: The generation this handle reads from
        path: Language directory, or the generation root when no language
            directory matched
        language: Language of ``path``, or None for the generation root

    Example:
        >>> with store.bundle("fr") as handle:
        ...     handle.text("hello")
        'Salut'
    """

    __slots__ = (
        "__weakref__",
        "_catalog",
        "_codec",
        "_finalizer",
        "_layout",
        "_lookup_language",
        "bundle",
        "language",
        "path",
    )

    def __init__(
        self,
        bundle: BundleDirectory,
        language: LanguageCode | None,
        *,
        layout: BundleLayout,
        codec: CatalogCodec,
        default_language: LanguageCode,
        on_release: Callable[[], None] | None,
    ) -> None:
        self.bundle = bundle
        self.language = language
        self.path = bundle.path if language is None else layout.language_path(bundle.path, language)
        self._layout = layout
        self._codec = codec
        self._lookup_language = default_language if language is None else language
        self._catalog: dict[str, str] | None = None
        self._finalizer = weakref.finalize(self, on_release) if on_release is not None else None

    def __repr__(self) -> str:
        """Return string representation for debugging."""
        return (
            f"BundleHandle(version={self.bundle.version!r}, "
            f"language={self.language!r}, released={self.released})"
        )

    @property
    def version(self) -> BundleVersion | None:
        """Version of the generation, None for the read-only fallback."""
        return self.bundle.version

    @property
    def released(self) -> bool:
        """True once the handle no longer holds its generation."""
        return self._finalizer is not None and not self._finalizer.alive

    def catalog(self) -> dict[str, str]:
        """Decode the catalog this handle resolves strings from.

        Root handles read the store's default language.

        Returns:
            Key to text mapping; empty when the catalog file does not exist

        Raises:
            DecodeError: If the catalog file is corrupt
            OSError: If the catalog file exists but cannot be read
        """
        if self._catalog is None:
            language_dir = self._layout.language_path(self.bundle.path, self._lookup_language)
            catalog_path = self._layout.catalog_path(language_dir)
            try:
                data = catalog_path.read_bytes()
            except FileNotFoundError:
                self._catalog = {}
            else:
                self._catalog = _decode_catalog(
                    self._codec, data, self.bundle, self._lookup_language, catalog_path
                )
        return self._catalog

    def text(self, key: str, default: str | None = None) -> str:
        """Look up the text for key.

        Mirrors the platform lookup: a missing key (or an unreadable
        catalog) yields ``default``, or the key itself when no default is
        given.
        """
        try:
            catalog = self.catalog()
        except (DecodeError, OSError) as e:
            logger.warning("Cannot read catalog for '%s': %s", self._lookup_language, e)
            catalog = {}
        if key in catalog:
            return catalog[key]
        return key if default is None else default

    def release(self) -> None:
        """Release the generation. Safe to call more than once."""
        if self._finalizer is not None:
            self._finalizer()

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.release()


def _decode_catalog(
    codec: CatalogCodec,
    data: bytes,
    bundle: BundleDirectory,
    language: LanguageCode,
    catalog_path: Path,
) -> dict[str, str]:
    """Decode catalog bytes, attaching location context to a DecodeError."""
    try:
        return codec.decode(data)
    except DecodeError as e:
        raise DecodeError(
            str(e),
            StoreErrorContext(
                operation="decode", path=catalog_path, version=bundle.version, language=language
            ),
        ) from e


class BundleStore:
    """Mutable, versioned store of translation catalogs on local disk.

    Thread Safety:
        Any number of threads may call bundle(), bundle_for_locales(),
        languages(), and read handles concurrently with an update.
        apply_update() calls are serialized internally.

    Example:
        >>> store = BundleStore.open(StoreConfig(root, default_source=defaults))
        >>> bundle = store.apply_update({"en": {"hello": "Hi"}, "fr": {"hello": "Salut"}})
        >>> with store.bundle("en") as en:
        ...     en.text("hello"), en.text("goodbye")
        ('Hi', 'BYE')
    """

    __slots__ = (
        "_bundles",
        "_closed",
        "_config",
        "_current",
        "_layout",
        "_lock",
        "_materializer",
        "_references",
        "_resolver",
        "_startup",
        "_update_lock",
    )

    def __init__(self, config: StoreConfig) -> None:
        """Create a store. No disk access happens until start().

        Args:
            config: Store configuration
        """
        self._config = config
        self._layout = config.layout()
        self._materializer = Materializer(self._layout, config.codec)
        self._resolver = BundleResolver(self._materializer, config.clock)
        self._lock = RWLock()
        self._update_lock = threading.Lock()
        self._references = ReferenceTable(self._reclaim)
        self._bundles: dict[BundleVersion, BundleDirectory] = {}
        self._current: BundleDirectory | None = None
        self._startup: StartupResult | None = None
        self._closed = False

    @classmethod
    def open(cls, config: StoreConfig) -> BundleStore:
        """Create a store and run startup.

        Args:
            config: Store configuration

        Returns:
            Started store; inspect ``startup`` for how it was initialized
        """
        store = cls(config)
        store.start()
        return store

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> StartupResult:
        """Resolve the current generation, bootstrapping one if needed.

        Abandoned generations and interrupted builds are removed. When no
        valid generation exists the default source is copied into a new
        one. If that copy fails, the default source itself becomes current
        in read-only mode and apply_update() raises NoWritableStoreError.

        Returns:
            StartupResult describing the outcome

        Raises:
            RuntimeError: If the store was already started or is closed
        """
        if self._closed:
            msg = "BundleStore is closed"
            raise RuntimeError(msg)
        if self._startup is not None:
            msg = "BundleStore already started"
            raise RuntimeError(msg)

        current = self._resolver.resolve_current(self._resolver.discover())
        if current is not None:
            if current.version is not None:
                self._config.clock.observe(current.version)
            result = StartupResult(StartupStatus.RESUMED, current)
        else:
            try:
                current = self._resolver.bootstrap(self._config.default_source)
                result = StartupResult(StartupStatus.BOOTSTRAPPED, current)
            except BootstrapError as e:
                fallback_path = self._config.default_source or self._layout.destination_root
                logger.error("%s. Serving %s read-only", e, fallback_path)
                result = StartupResult(
                    StartupStatus.READ_ONLY_FALLBACK, BundleDirectory(path=fallback_path), e
                )

        with self._lock.write():
            if result.bundle.version is not None:
                self._bundles[result.bundle.version] = result.bundle
            self._current = result.bundle
            self._startup = result
        return result

    def close(self) -> None:
        """Stop serving new handles and updates.

        Nothing is removed from disk. Outstanding handles stay valid, and
        releasing one still reclaims a superseded generation it was holding.
        """
        self._closed = True

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    def _require_current(self) -> BundleDirectory:
        if self._closed:
            msg = "BundleStore is closed"
            raise RuntimeError(msg)
        current = self._current
        if current is None:
            msg = "BundleStore not started; call start() or use BundleStore.open()"
            raise RuntimeError(msg)
        return current

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def config(self) -> StoreConfig:
        """Configuration of this store."""
        return self._config

    @property
    def layout(self) -> BundleLayout:
        """On-disk layout of this store."""
        return self._layout

    @property
    def startup(self) -> StartupResult | None:
        """Startup outcome, None before start()."""
        return self._startup

    @property
    def writable(self) -> bool:
        """False when serving the read-only fallback or before start()."""
        return self._startup is not None and self._startup.is_writable

    @property
    def current(self) -> BundleDirectory:
        """The current generation (no reference is taken).

        Raises:
            RuntimeError: If the store is not started or is closed
        """
        return self._require_current()

    def pending_deletions(self) -> tuple[BundleVersion, ...]:
        """Superseded versions kept on disk for handles not yet released."""
        return self._references.pending()

    def reference_count(self, version: BundleVersion) -> int:
        """Number of open handles on a version."""
        return self._references.count(version)

    # ------------------------------------------------------------------
    # Lookup facade
    # ------------------------------------------------------------------

    def _acquire_current(self) -> BundleDirectory:
        with self._lock.read():
            current = self._require_current()
            if current.version is not None:
                self._references.acquire(current.version)
        return current

    def _handle(self, bundle: BundleDirectory, language: LanguageCode | None) -> BundleHandle:
        on_release = (
            functools.partial(self._references.release, bundle.version)
            if bundle.version is not None
            else None
        )
        return BundleHandle(
            bundle,
            language,
            layout=self._layout,
            codec=self._config.codec,
            default_language=self._config.default_language,
            on_release=on_release,
        )

    def _release(self, bundle: BundleDirectory) -> None:
        if bundle.version is not None:
            self._references.release(bundle.version)

    def bundle(self, language: LanguageCode | None = None) -> BundleHandle:
        """Open a handle on the current generation.

        Args:
            language: Language directory to resolve. When None, or when the
                current generation has no directory for it, the handle
                points at the generation root and lookups fall back to the
                default language.

        Returns:
            Reference-counted handle; release it when done reading

        Raises:
            ValueError: If language is not a valid language code
            RuntimeError: If the store is not started or is closed
        """
        if language is not None:
            validate_language_code(language)
        current = self._acquire_current()
        try:
            found = language
            if language is not None and self._layout.find_language(current.path, language) is None:
                logger.debug("No '%s' directory in %s, using bundle root", language, current.path)
                found = None
            return self._handle(current, found)
        except BaseException:
            self._release(current)
            raise

    def bundle_for_locales(self, preferred: Iterable[str]) -> BundleHandle:
        """Open a handle on the best available language for preferred locales.

        Args:
            preferred: Locale codes in order of preference (BCP-47 or POSIX)

        Returns:
            Handle on the negotiated language directory, or on the generation
            root if no language matches
        """
        current = self._acquire_current()
        try:
            available = self._layout.language_dirs(current.path)
            match = negotiate_language(preferred, available)
            if match is None:
                logger.debug("No language in %s matches %s", current.path, preferred)
            return self._handle(current, match)
        except BaseException:
            self._release(current)
            raise

    def languages(self) -> tuple[LanguageCode, ...]:
        """Language codes present in the current generation, sorted."""
        with self.bundle() as handle:
            return tuple(sorted(self._layout.language_dirs(handle.bundle.path)))

    # ------------------------------------------------------------------
    # Update coordinator
    # ------------------------------------------------------------------

    def read_translations(self) -> dict[LanguageCode, dict[str, str]]:
        """Decode every catalog of the current generation.

        Returns:
            Catalogs keyed by language; see _read_bundle for skipped languages
        """
        with self.bundle() as handle:
            return self._read_bundle(handle.bundle)

    def _read_bundle(self, bundle: BundleDirectory) -> dict[LanguageCode, dict[str, str]]:
        """Decode every catalog of a generation.

        Language directories without a catalog file contribute nothing.
        Corrupt catalogs are skipped with a warning.

        Raises:
            OSError: If a catalog file exists but cannot be read
        """
        translations: dict[LanguageCode, dict[str, str]] = {}
        for code, language_dir in self._layout.language_dirs(bundle.path).items():
            catalog_path = self._layout.catalog_path(language_dir)
            try:
                data = catalog_path.read_bytes()
            except FileNotFoundError:
                logger.debug("No catalog for '%s' in %s", code, bundle.path)
                continue
            try:
                translations[code] = _decode_catalog(
                    self._config.codec, data, bundle, code, catalog_path
                )
            except DecodeError as e:
                logger.warning("Skipping corrupt catalog for '%s': %s", code, e)
        return translations

    def apply_update(self, updates: TranslationSet) -> BundleDirectory:
        """Merge translations into a new generation and make it current.

        Keys in ``updates`` replace or extend the existing catalogs; every
        other key and language keeps its text. Calls are serialized.

        Args:
            updates: Incoming catalogs keyed by language code

        Returns:
            The generation that became current

        Raises:
            NoWritableStoreError: If the store serves the read-only fallback
            ValueError: If a language code is invalid
            CreationError: If the new generation cannot be written
            OSError: If an existing catalog cannot be read
            RuntimeError: If the store is not started or is closed
        """
        self._require_current()
        if not self.writable:
            msg = "Store is serving the read-only default source; updates are disabled"
            raise NoWritableStoreError(msg, StoreErrorContext(operation="update"))
        for code in updates:
            validate_language_code(code)

        with self._update_lock:
            previous = self._require_current()
            existing = self._read_bundle(previous)
            merged = merge_translations(existing, updates)
            version = self._config.clock.new_version()
            bundle = self._materializer.materialize_from_catalogs(version, merged)

            with self._lock.write():
                self._bundles[version] = bundle
                self._current = bundle

            logger.info("Promoted bundle %s (replacing %s)", version, previous.version)
            if previous.version is not None:
                self._references.retire(previous.version)
        return bundle

    def _reclaim(self, version: BundleVersion) -> None:
        """Delete a superseded generation that no handle references."""
        bundle = self._bundles.pop(version, None)
        if bundle is None:
            return
        if remove_path(bundle.path):
            logger.debug("Removed superseded bundle %s", version)
        else:
            logger.warning("Superseded bundle %s left on disk for the next startup", version)
