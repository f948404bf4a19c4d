"""Type aliases for the translation store domain.

Semantic aliases used throughout the package and by user code when
annotating calls into BundleStore.

Python 3.13+. Zero external dependencies.
"""

from collections.abc import Mapping
from typing import TypeAlias

__all__ = [
    "BundleVersion",
    "LanguageCatalog",
    "LanguageCode",
    "TranslationKey",
    "TranslationSet",
    "TranslationText",
]

LanguageCode: TypeAlias = str
"""Language directory code (e.g., 'en', 'fr', 'pt_BR', 'Base')."""

TranslationKey: TypeAlias = str
"""Lookup key within one language catalog (e.g., 'hello')."""

TranslationText: TypeAlias = str
"""Localized text stored under a TranslationKey."""

LanguageCatalog: TypeAlias = Mapping[TranslationKey, TranslationText]
"""Key to text mapping for a single language."""

TranslationSet: TypeAlias = Mapping[LanguageCode, LanguageCatalog]
"""Catalogs of every language, keyed by language code."""

BundleVersion: TypeAlias = str
"""Sortable generation identifier (e.g., '2026-10-19_12-30-45-123456')."""
