"""
Module-level convenience functions.

These mirror the :class:`~simhash_core.core.simhasher.SimHasher` methods for
one-off calls.  Hashers are cached per configuration, so repeated calls with
the same arguments reuse the same derived hashing function.
"""

from __future__ import annotations

import functools

from simhash_core.core.features import FeatureType, TextLike, extract_features
from simhash_core.core.fingerprint import Fingerprint
from simhash_core.core.grouping import group_indices, group_texts
from simhash_core.core.hamming import hamming_distance as _hamming_distance
from simhash_core.core.hashing import HashMethod
from simhash_core.core.simhasher import SimHasher

__all__ = [
    "features",
    "group_indices",
    "group_texts",
    "hamming_distance",
    "hash",
    "hasher_for",
]


@functools.lru_cache(maxsize=64)
def _cached_hasher(method: HashMethod, feature_type: FeatureType, window_size: int) -> SimHasher:
    return SimHasher(method, feature_type, window_size)


def hasher_for(
    method: HashMethod | str | None = None,
    feature_type: FeatureType | str | None = None,
    window_size: int | None = None,
) -> SimHasher:
    """Return a shared hasher, filling ``None`` arguments from the settings."""
    from simhash_core.settings import get_settings

    hashing = get_settings().hashing
    return _cached_hasher(
        HashMethod.coerce(hashing.method if method is None else method),
        FeatureType.coerce(hashing.feature_type if feature_type is None else feature_type),
        hashing.window_size if window_size is None else window_size,
    )


def hash(  # noqa: A001
    text: TextLike,
    method: HashMethod | str | None = None,
    features: FeatureType | str | None = None,
    n: int | None = None,
) -> Fingerprint:
    """
    Return the SimHash fingerprint of *text*.

    With the default settings this hashes overlapping byte pairs with xxHash.
    Raises :class:`~simhash_core.core.errors.InvalidWindowSize` when *n* is
    not a positive integer.
    """
    return hasher_for(method, features, n).hash(text)


def features(
    text: TextLike,
    feature_type: FeatureType | str = FeatureType.BYTES,
    window_size: int = 1,
) -> list[bytes] | list[str]:
    """Return the windows of *text*; see :func:`~simhash_core.core.features.extract_features`."""
    return extract_features(text, feature_type, window_size)


def hamming_distance(a: Fingerprint | int, b: Fingerprint | int) -> int:
    """Number of differing bits between two fingerprints."""
    return _hamming_distance(int(a), int(b))
