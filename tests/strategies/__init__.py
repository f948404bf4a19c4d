"""Hypothesis strategies for l10nstore property-based testing.

Strategies are organized by domain:

- catalogs: language codes, catalogs, translation sets, update pairs

Usage:
    from tests.strategies import language_codes, translation_sets
"""

from .catalogs import (
    catalogs,
    language_codes,
    translation_keys,
    translation_sets,
    translation_texts,
    update_pairs,
)

__all__ = [
    "catalogs",
    "language_codes",
    "translation_keys",
    "translation_sets",
    "translation_texts",
    "update_pairs",
]
