"""Language code utilities.

Language codes are used both as map keys and as directory name segments,
so every code entering the store is validated here against path
traversal. Negotiation between a user's preferred locales and the
languages present in a bundle is delegated to Babel.

Python 3.13+.
"""

from __future__ import annotations

from collections.abc import Iterable

from babel.core import LOCALE_ALIASES, negotiate_locale

from l10nstore.types import LanguageCode

__all__ = [
    "negotiate_language",
    "normalize_locale",
    "validate_language_code",
]


def normalize_locale(locale_code: str) -> str:
    """Convert a BCP-47 locale code to POSIX format.

    BCP-47 uses hyphens (en-US), while Babel and platform language
    directories use underscores (en_US).

    Example:
        >>> normalize_locale("pt-BR")
        'pt_BR'
        >>> normalize_locale("en")
        'en'
    """
    return locale_code.replace("-", "_")


def validate_language_code(code: LanguageCode) -> None:
    """Validate a language code for use as a directory segment.

    Args:
        code: Language code to validate

    Raises:
        ValueError: If code is empty or contains unsafe path components
    """
    if not isinstance(code, str) or not code:
        msg = f"Language code must be a non-empty string, got {code!r}"
        raise ValueError(msg)
    if ".." in code:
        msg = f"Path traversal sequences not allowed in language code: '{code}'"
        raise ValueError(msg)
    if "/" in code or "\\" in code or "\x00" in code:
        msg = f"Path separators not allowed in language code: '{code}'"
        raise ValueError(msg)
    if code.strip() != code:
        msg = f"Language code contains leading/trailing whitespace: {code!r}"
        raise ValueError(msg)


def negotiate_language(
    preferred: Iterable[str],
    available: Iterable[LanguageCode],
) -> LanguageCode | None:
    """Pick the best available language for a list of preferred locales.

    Matching is case-insensitive, treats ``en-US`` and ``en_US`` alike,
    falls back from a territory-specific preference to its bare language
    (``de_AT`` matches ``de``), and honours Babel's locale aliases
    (``no`` matches ``nb_NO``).

    Args:
        preferred: Locale codes in order of preference
        available: Language codes present in the bundle

    Returns:
        The matching code exactly as it appears in ``available``, or None

    Example:
        >>> negotiate_language(["de-AT", "en"], ["en", "de"])
        'de'
        >>> negotiate_language(["ja"], ["en", "fr"]) is None
        True
    """
    by_folded: dict[str, LanguageCode] = {}
    for code in available:
        by_folded.setdefault(normalize_locale(code).lower(), code)
    if not by_folded:
        return None

    candidates = list(by_folded)
    for locale_code in preferred:
        match = negotiate_locale(
            [normalize_locale(locale_code)], candidates, sep="_", aliases=LOCALE_ALIASES
        )
        if match is not None:
            # negotiate_locale echoes the preferred spelling; map back to the directory name
            return by_folded[match.lower()]
    return None
