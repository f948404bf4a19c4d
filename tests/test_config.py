"""Tests for StoreConfig validation."""

from __future__ import annotations

from pathlib import Path

import pytest

from l10nstore import JsonCatalogCodec, PlistCatalogCodec, StoreConfig
from l10nstore.constants import (
    DEFAULT_BUNDLE_EXTENSION,
    DEFAULT_CATALOG_FILENAME,
    DEFAULT_LANGUAGE,
    DEFAULT_LANGUAGE_SUFFIX,
)


class TestStoreConfigDefaults:
    """Default values and normalization."""

    def test_defaults(self, tmp_path: Path) -> None:
        config = StoreConfig(destination_root=tmp_path)
        assert config.default_source is None
        assert config.bundle_extension == DEFAULT_BUNDLE_EXTENSION
        assert config.language_suffix == DEFAULT_LANGUAGE_SUFFIX
        assert config.catalog_filename == DEFAULT_CATALOG_FILENAME
        assert config.default_language == DEFAULT_LANGUAGE
        assert isinstance(config.codec, PlistCatalogCodec)

    def test_string_paths_coerced(self, tmp_path: Path) -> None:
        config = StoreConfig(
            destination_root=str(tmp_path / "out"),  # type: ignore[arg-type]
            default_source=str(tmp_path / "in"),  # type: ignore[arg-type]
        )
        assert config.destination_root == tmp_path / "out"
        assert config.default_source == tmp_path / "in"

    def test_layout_reflects_config(self, tmp_path: Path) -> None:
        config = StoreConfig(
            destination_root=tmp_path,
            bundle_extension="bundle",
            language_suffix="lang",
            catalog_filename="strings.json",
            codec=JsonCatalogCodec(),
        )
        layout = config.layout()
        assert layout.bundle_path("v1") == tmp_path / "v1.bundle"
        assert layout.catalog_path(layout.language_path(tmp_path, "en")) == (
            tmp_path / "en.lang" / "strings.json"
        )

    def test_frozen(self, tmp_path: Path) -> None:
        config = StoreConfig(destination_root=tmp_path)
        with pytest.raises(AttributeError):
            config.default_language = "fr"  # type: ignore[misc]


class TestStoreConfigValidation:
    """Invalid configurations fail at construction."""

    @pytest.mark.parametrize("field", ["bundle_extension", "language_suffix"])
    @pytest.mark.parametrize("value", ["", "a/b", "a.b"])
    def test_invalid_segments(self, tmp_path: Path, field: str, value: str) -> None:
        with pytest.raises(ValueError, match=field):
            StoreConfig(destination_root=tmp_path, **{field: value})

    @pytest.mark.parametrize("value", ["", "dir/file.strings", ".."])
    def test_invalid_catalog_filename(self, tmp_path: Path, value: str) -> None:
        with pytest.raises(ValueError, match="catalog_filename"):
            StoreConfig(destination_root=tmp_path, catalog_filename=value)

    def test_invalid_default_language(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError, match="traversal"):
            StoreConfig(destination_root=tmp_path, default_language="../en")

    def test_default_source_inside_destination(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError, match="must not lie inside"):
            StoreConfig(destination_root=tmp_path, default_source=tmp_path / "defaults")

    def test_default_source_equal_to_destination(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError, match="must not lie inside"):
            StoreConfig(destination_root=tmp_path, default_source=tmp_path)

    def test_sibling_default_source_accepted(self, tmp_path: Path) -> None:
        config = StoreConfig(
            destination_root=tmp_path / "bundles", default_source=tmp_path / "defaults"
        )
        assert config.default_source == tmp_path / "defaults"
