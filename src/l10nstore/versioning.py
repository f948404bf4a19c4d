"""Bundle version naming.

A BundleVersion is the UTC creation time of a bundle generation,
formatted with microsecond resolution and zero padding so that sorting
names as strings sorts generations by age.

Wall clocks can be coarser than the call rate or can step backwards.
VersionClock therefore never issues a version that is not strictly
greater than the previous one: when the clock has not advanced, the
next version is the previous one plus one microsecond.

Python 3.13+. Zero external dependencies.
"""

from __future__ import annotations

import re
import threading
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from l10nstore.constants import VERSION_FORMAT, VERSION_PATTERN
from l10nstore.types import BundleVersion

__all__ = [
    "VersionClock",
    "default_clock",
    "parse_version",
]

_VERSION_RE = re.compile(VERSION_PATTERN)
_TICK = timedelta(microseconds=1)


def _utc_now() -> datetime:
    return datetime.now(UTC)


class VersionClock:
    """Issues strictly increasing, collision-free bundle versions.

    Thread Safety:
        new_version() is serialized by an internal lock; concurrent
        callers always receive distinct versions.

    Example:
        >>> clock = VersionClock()
        >>> first = clock.new_version()
        >>> second = clock.new_version()
        >>> first < second
        True
    """

    __slots__ = ("_last", "_lock", "_now")

    def __init__(self, now: Callable[[], datetime] = _utc_now) -> None:
        """Initialize the clock.

        Args:
            now: Source of timezone-aware current time. Injectable for tests.
        """
        self._now = now
        self._lock = threading.Lock()
        self._last: datetime | None = None

    def new_version(self) -> BundleVersion:
        """Return a version greater than every version issued before it."""
        with self._lock:
            candidate = self._now().astimezone(UTC)
            if self._last is not None and candidate <= self._last:
                candidate = self._last + _TICK
            self._last = candidate
        return candidate.strftime(VERSION_FORMAT)

    def observe(self, version: BundleVersion) -> None:
        """Ensure later versions sort after an existing one.

        Called with the generation resumed at startup, so a wall clock
        that stepped backwards across a restart cannot mint a name older
        than the current generation. Names that are not versions are ignored.
        """
        moment = parse_version(version)
        if moment is None:
            return
        with self._lock:
            if self._last is None or moment > self._last:
                self._last = moment


def parse_version(name: str) -> datetime | None:
    """Parse a version string back into its UTC creation time.

    Args:
        name: Candidate version string (without bundle extension)

    Returns:
        Timezone-aware datetime, or None if name is not a version string

    Example:
        >>> parse_version("2026-10-19_12-30-45-123456").microsecond
        123456
        >>> parse_version("not-a-version") is None
        True
    """
    if not _VERSION_RE.match(name):
        return None
    try:
        return datetime.strptime(name, VERSION_FORMAT).replace(tzinfo=UTC)
    except ValueError:
        return None


# Shared by every store in the process so that stores writing to the same
# destination root never mint the same version.
default_clock = VersionClock()
