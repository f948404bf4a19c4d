"""Shared constants for l10nstore.

Centralizes the on-disk layout defaults and the version name format so
that the layout, materializer, and resolver agree on a single source of
truth.

Constants are grouped by domain:
- Layout defaults: directory extensions and catalog filename
- Versioning: timestamp format used for bundle generations
- Staging: marker for bundles still being built

Python 3.13+. Zero external dependencies.
"""

# ruff: noqa: RUF022 - __all__ organized by category for readability
__all__ = [
    # Layout defaults
    "DEFAULT_BUNDLE_EXTENSION",
    "DEFAULT_LANGUAGE_SUFFIX",
    "DEFAULT_CATALOG_FILENAME",
    "DEFAULT_LANGUAGE",
    # Versioning
    "VERSION_FORMAT",
    "VERSION_PATTERN",
    # Staging
    "STAGING_SUFFIX",
]

# ============================================================================
# LAYOUT DEFAULTS
# ============================================================================
#
# On-disk layout, reproduced exactly for compatibility with bundles written
# by earlier releases and by the platform resource loader:
#
#   <destination_root>/<version>.<bundle_extension>/<code>.<language_suffix>/<catalog_filename>
#
# Only directories ending in ".<bundle_extension>" take part in discovery.
#
# ============================================================================

DEFAULT_BUNDLE_EXTENSION: str = "localizationBundle"

DEFAULT_LANGUAGE_SUFFIX: str = "lproj"

DEFAULT_CATALOG_FILENAME: str = "Localizable.strings"

# Language used when a lookup goes through the bundle root instead of a
# language sub-directory.
DEFAULT_LANGUAGE: str = "en"

# ============================================================================
# VERSIONING
# ============================================================================

# UTC timestamp with microsecond resolution. Every field is zero-padded, so
# lexicographic order of names equals chronological order.
VERSION_FORMAT: str = "%Y-%m-%d_%H-%M-%S-%f"

# Regex matching names produced with VERSION_FORMAT.
VERSION_PATTERN: str = r"^\d{4}-\d{2}-\d{2}_\d{2}-\d{2}-\d{2}-\d{6}$"

# ============================================================================
# STAGING
# ============================================================================

# Appended to "<version>.<bundle_extension>" while a bundle is being built.
# The staging name no longer ends in the bundle extension, so discovery
# never treats a half-built bundle as a candidate.
STAGING_SUFFIX: str = ".staging"
