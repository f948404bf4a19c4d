"""Merging of incoming translations into an existing translation set.

Python 3.13+. Zero external dependencies.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from l10nstore.types import LanguageCode, TranslationSet

__all__ = ["merge_translations"]


def merge_translations(
    existing: TranslationSet, updates: TranslationSet
) -> dict[LanguageCode, dict[str, str]]:
    """Overlay updates onto existing catalogs.

    For every language in ``updates`` its keys replace or extend the
    existing catalog of that language; keys absent from the update keep
    their existing text. Languages present only in ``existing`` are
    copied unchanged, and languages present only in ``updates`` are added.

    Neither input is mutated.

    Args:
        existing: Current translation set
        updates: Incoming translations

    Returns:
        New translation set with plain dict catalogs

    Example:
        >>> merge_translations(
        ...     {"en": {"hello": "HELLO", "goodbye": "BYE"}},
        ...     {"en": {"hello": "Hi"}},
        ... )
        {'en': {'hello': 'Hi', 'goodbye': 'BYE'}}
    """
    merged = {code: dict(catalog) for code, catalog in existing.items()}
    for code, catalog in updates.items():
        merged.setdefault(code, {}).update(catalog)
    return merged
