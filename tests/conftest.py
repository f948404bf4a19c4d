"""Pytest configuration for the l10nstore test suite.

Single Source of Truth for Hypothesis max_examples:
- dev: Local development with 200 examples (thorough property testing)
- ci: CI runs with 50 examples (fast feedback)
- verbose: Debug mode with progress output (100 examples)

Profile auto-detection:
- HYPOTHESIS_PROFILE env var -> explicit override
- CI=true environment variable -> "ci" profile
- Otherwise -> "dev" profile

Store tests write real bundles on disk, so the profiles disable the
Hypothesis deadline: filesystem latency varies too much between machines.

Fuzzing Test Separation:
Tests marked with @pytest.mark.fuzz are excluded from normal test runs.
Run them via: pytest -m fuzz
"""

from __future__ import annotations

import os
from pathlib import Path

import pytest
from hypothesis import HealthCheck, Phase, Verbosity, settings

from l10nstore import BundleStore, StoreConfig
from tests.helpers.bundles import DEFAULT_TRANSLATIONS, write_bundle

# =============================================================================
# HYPOTHESIS PROFILES - SINGLE SOURCE OF TRUTH
# =============================================================================

_PHASES = [Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink]
_SUPPRESSED = [HealthCheck.function_scoped_fixture, HealthCheck.too_slow]

settings.register_profile(
    "dev",
    max_examples=200,
    phases=_PHASES,
    deadline=None,
    suppress_health_check=_SUPPRESSED,
)

settings.register_profile(
    "ci",
    max_examples=50,
    phases=_PHASES,
    deadline=None,
    derandomize=True,
    print_blob=True,
    suppress_health_check=_SUPPRESSED,
)

settings.register_profile(
    "verbose",
    max_examples=100,
    phases=_PHASES,
    deadline=None,
    verbosity=Verbosity.verbose,
    suppress_health_check=_SUPPRESSED,
)


def _detect_profile() -> str:
    """Detect appropriate Hypothesis profile based on execution context.

    Priority:
    1. HYPOTHESIS_PROFILE env var (explicit override)
    2. CI=true env var
    3. Default to "dev" (local development)
    """
    explicit = os.environ.get("HYPOTHESIS_PROFILE")
    if explicit in ("dev", "ci", "verbose"):
        return explicit
    if os.environ.get("CI") == "true":
        return "ci"
    return "dev"


settings.load_profile(_detect_profile())


# =============================================================================
# FUZZING TEST SEPARATION
# =============================================================================


def pytest_collection_modifyitems(
    config: pytest.Config, items: list[pytest.Item]
) -> None:
    """Skip fuzz-marked tests unless explicitly requested with -m fuzz."""
    marker_expr = config.getoption("-m", default="")
    if "fuzz" in str(marker_expr):
        return
    skip_fuzz = pytest.mark.skip(reason="Fuzzing test - run with: pytest -m fuzz")
    for item in items:
        if "fuzz" in item.keywords:
            item.add_marker(skip_fuzz)


# =============================================================================
# SHARED FIXTURES
# =============================================================================


@pytest.fixture
def default_source(tmp_path: Path) -> Path:
    """Read-only default resources with en and fr catalogs."""
    return write_bundle(tmp_path / "defaults", DEFAULT_TRANSLATIONS)


@pytest.fixture
def destination(tmp_path: Path) -> Path:
    """Empty destination root for bundle generations."""
    path = tmp_path / "bundles"
    path.mkdir()
    return path


@pytest.fixture
def config(destination: Path, default_source: Path) -> StoreConfig:
    """Store configuration over the default source and destination fixtures."""
    return StoreConfig(destination_root=destination, default_source=default_source)


@pytest.fixture
def store(config: StoreConfig) -> BundleStore:
    """Started store bootstrapped from the default source."""
    return BundleStore.open(config)
