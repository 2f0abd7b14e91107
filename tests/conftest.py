"""Pytest configuration and fixtures."""

from __future__ import annotations

import os

# Select the testing profile (fixed SipHash key) before the package reads its settings.
os.environ.setdefault("SIMHASH_ENV", "testing")

import pytest
from _pytest.config import Config
from hypothesis import settings as _settings

from simhash_core.core.simhasher import SimHasher
from simhash_core.settings import get_settings

# Deterministic Hypothesis profile shared by all tests.  A seed taken from
# ``HYPOTHESIS_SEED`` replaces derandomisation so CI failures can be replayed.
_seed = os.getenv("HYPOTHESIS_SEED")
_settings.register_profile(
    "default",
    max_examples=50,
    deadline=None,
    derandomize=_seed is None,
)
_settings.load_profile("default")


def pytest_configure(config: Config) -> None:
    """Register custom markers used in the test suite."""
    for name, desc in [
        ("property", "property-based tests"),
        ("slow", "slow tests"),
        ("smoke", "quick smoke tests"),
    ]:
        config.addinivalue_line("markers", f"{name}: {desc}")
    if _seed is not None and hasattr(config.option, "hypothesis_seed"):
        config.option.hypothesis_seed = int(_seed)


@pytest.fixture(autouse=True)
def _fresh_settings():
    """Drop cached settings so environment tweaks in one test never leak."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def hasher() -> SimHasher:
    return SimHasher()


@pytest.fixture(params=["siphash", "xxhash"])
def method(request: pytest.FixtureRequest) -> str:
    return request.param


@pytest.fixture(params=["bytes", "chars", "graphemes", "words"])
def feature_type(request: pytest.FixtureRequest) -> str:
    return request.param
