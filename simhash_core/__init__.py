"""
SimHash Core.

Locality-sensitive 64-bit text fingerprints and Hamming-distance indexes for
near-duplicate detection.

This package provides:
- Unicode-aware feature windows over bytes, characters, graphemes and words
- Table-accelerated SipHash and xxHash feature hashing
- Majority-vote SimHash aggregation
- A 16-way hash tree and a combined exact/approximate map for grouping
"""

from __future__ import annotations

import logging
from typing import Any

__version__: str = "1.0.0"
# Rebuild the module docstring to embed the current version.
__doc__ = f"SimHash Core v{__version__}.\n\n" + __doc__.split("\n", 1)[1]
__description__ = "Locality-sensitive text fingerprints with Hamming-distance indexing"

# Configure default logging (no handlers by default for library use)
logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "FeatureToken",
    "FeatureType",
    "Fingerprint",
    "HashMethod",
    "HashTree",
    "InvalidWindowSize",
    "SimHashError",
    "SimHashSettings",
    "SimHasher",
    "SimMap",
    "UnsupportedCombination",
    "__version__",
    "configure_logging",
    "features",
    "get_settings",
    "group_indices",
    "group_texts",
    "hamming_distance",
    "hash",
]

_LAZY: dict[str, str] = {
    "FeatureToken": "simhash_core.core.features",
    "FeatureType": "simhash_core.core.features",
    "Fingerprint": "simhash_core.core.fingerprint",
    "HashMethod": "simhash_core.core.hashing",
    "HashTree": "simhash_core.core.tree",
    "InvalidWindowSize": "simhash_core.core.errors",
    "SimHashError": "simhash_core.core.errors",
    "UnsupportedCombination": "simhash_core.core.errors",
    "SimHasher": "simhash_core.core.simhasher",
    "SimMap": "simhash_core.core.simmap",
    "SimHashSettings": "simhash_core.settings",
    "configure_logging": "simhash_core.settings",
    "get_settings": "simhash_core.settings",
    "features": "simhash_core.api",
    "group_indices": "simhash_core.api",
    "group_texts": "simhash_core.api",
    "hamming_distance": "simhash_core.api",
    "hash": "simhash_core.api",
}


# Lazy attribute access keeps ``import simhash_core`` free of numpy/regex work.
def __getattr__(name: str) -> Any:
    """Lazily import and return objects from submodules on attribute access."""
    module_name = _LAZY.get(name)
    if module_name is None:
        raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
    from importlib import import_module

    return getattr(import_module(module_name), name)


def get_version_info() -> dict[str, Any]:
    """Get version information of the SimHash Core package."""
    return {
        "version": __version__,
        "description": __description__,
    }
