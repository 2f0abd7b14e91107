# simhash_core/core/__init__.py
"""Core algorithms: feature windows, hashing, aggregation and indexes."""

from __future__ import annotations

__all__ = [
    "FeatureType",
    "Fingerprint",
    "HashMethod",
    "HashTree",
    "SimHasher",
    "SimMap",
]


def __getattr__(name: str) -> object:
    if name == "FeatureType":
        from simhash_core.core.features import FeatureType

        return FeatureType
    if name == "Fingerprint":
        from simhash_core.core.fingerprint import Fingerprint

        return Fingerprint
    if name == "HashMethod":
        from simhash_core.core.hashing import HashMethod

        return HashMethod
    if name == "HashTree":
        from simhash_core.core.tree import HashTree

        return HashTree
    if name == "SimHasher":
        from simhash_core.core.simhasher import SimHasher

        return SimHasher
    if name == "SimMap":
        from simhash_core.core.simmap import SimMap

        return SimMap
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
