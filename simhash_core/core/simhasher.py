# simhasher.py: text -> 64-bit SimHash fingerprint
"""
SimHash aggregation and the :class:`SimHasher` composition.

A :class:`SimHasher` binds a hash method, a feature type and a window size
into a pure function ``text -> Fingerprint``:

1. cut the text into windows (:mod:`simhash_core.core.features`);
2. hash every window (:mod:`simhash_core.core.hashing`), through the byte and
   byte-pair lookup tables for byte windows of size 1 and 2, and through the
   general multi-range path otherwise;
3. fold the hashes into one fingerprint by per-bit majority vote
   (:func:`aggregate`).

Instances hold no mutable state and may be shared between threads.
"""

from __future__ import annotations

import copy
from collections.abc import Callable, Iterable, Iterator
from typing import TYPE_CHECKING, Any

import numpy as np
from numpy.typing import NDArray

from simhash_core.core.errors import InvalidWindowSize, UnsupportedCombination
from simhash_core.core.features import (
    FeatureToken,
    FeatureType,
    TextLike,
    as_bytes,
    extract_features,
    extract_hashed_features,
    iter_units,
    iter_windows,
    sliding_windows,
    validate_window_size,
)
from simhash_core.core.fingerprint import Fingerprint
from simhash_core.core.hashing import HashBackend, HashMethod, get_backend
from simhash_core.utils.metrics import FINGERPRINTS_TOTAL

if TYPE_CHECKING:  # pragma: no cover - typing helper
    from collections.abc import Sequence

__all__ = [
    "COUNTER_MAX",
    "InvalidWindowSize",
    "SimHasher",
    "UnsupportedCombination",
    "aggregate",
]

# Bit counters saturate like 32-bit unsigned integers.
COUNTER_MAX = 0xFFFF_FFFF
# Rows unpacked per step, bounding the temporary bit matrix to 4 MiB.
_CHUNK_ROWS = 1 << 16

HashArray = NDArray[np.uint64]
HashFn = Callable[[bytes], HashArray]


###############################################################################
# Aggregation
###############################################################################


def aggregate(hashes: Iterable[int] | HashArray) -> int:
    """
    Fold 64-bit hashes into one value by strict per-bit majority vote.

    Bit ``i`` of the result is set iff more than ``count // 2`` of the inputs
    have bit ``i`` set; ties therefore clear the bit.  The result does not
    depend on input order and is 0 for an empty input.
    """
    if isinstance(hashes, np.ndarray):
        values = hashes.astype(np.uint64, copy=False)
    else:
        values = np.fromiter(hashes, dtype=np.uint64)
    total = int(values.shape[0])
    if total == 0:
        return 0

    counters = np.zeros(64, dtype=np.uint64)
    little = values.astype("<u8", copy=False)
    for offset in range(0, total, _CHUNK_ROWS):
        chunk = np.ascontiguousarray(little[offset : offset + _CHUNK_ROWS])
        bits = np.unpackbits(chunk.view(np.uint8).reshape(-1, 8), axis=1, bitorder="little")
        counters += bits.sum(axis=0, dtype=np.uint64)

    np.minimum(counters, COUNTER_MAX, out=counters)
    threshold = min(total, COUNTER_MAX) // 2
    winners = (counters > threshold).astype(np.uint8)
    return int(np.packbits(winners, bitorder="little").view("<u8")[0])


###############################################################################
# Hash strategies
###############################################################################


def _byte_table_fn(backend: HashBackend) -> HashFn:
    def hash_fn(data: bytes) -> HashArray:
        codes = np.frombuffer(data, dtype=np.uint8)
        return backend.u8_table[codes]

    return hash_fn


def _byte_pair_table_fn(backend: HashBackend) -> HashFn:
    def hash_fn(data: bytes) -> HashArray:
        codes = np.frombuffer(data, dtype=np.uint8).astype(np.uint16)
        if codes.shape[0] < 2:
            return np.empty(0, dtype=np.uint64)
        pairs = codes[:-1] | (codes[1:] << 8)
        return backend.u16_table[pairs]

    return hash_fn


def _byte_window_fn(backend: HashBackend, window_size: int) -> HashFn:
    hash_bytes = backend.hash_bytes

    def hash_fn(data: bytes) -> HashArray:
        count = len(data) - window_size + 1
        return np.fromiter(
            (hash_bytes(data[i : i + window_size]) for i in range(max(count, 0))),
            dtype=np.uint64,
        )

    return hash_fn


def _unit_fn(backend: HashBackend, feature_type: FeatureType) -> HashFn:
    hash_bytes = backend.hash_bytes

    def hash_fn(data: bytes) -> HashArray:
        return np.fromiter(
            (hash_bytes(data[start:end]) for start, end in iter_units(data, feature_type)),
            dtype=np.uint64,
        )

    return hash_fn


def _multi_range_fn(backend: HashBackend, feature_type: FeatureType, window_size: int) -> HashFn:
    hash_ranges = backend.hash_ranges

    def hash_fn(data: bytes) -> HashArray:
        windows = sliding_windows(iter_units(data, feature_type), window_size)
        return np.fromiter((hash_ranges(data, window) for window in windows), dtype=np.uint64)

    return hash_fn


def make_hash_fn(method: HashMethod, feature_type: FeatureType, window_size: int) -> HashFn:
    """Select the cheapest hashing strategy for the configuration."""
    backend = get_backend(method)
    if feature_type is FeatureType.BYTES:
        if window_size == 1:
            return _byte_table_fn(backend)
        if window_size == 2:
            return _byte_pair_table_fn(backend)
        return _byte_window_fn(backend, window_size)
    if window_size == 1:
        return _unit_fn(backend, feature_type)
    return _multi_range_fn(backend, feature_type, window_size)


###############################################################################
# SimHasher
###############################################################################


class SimHasher:
    """
    Immutable SimHash configuration with its derived hashing function.

    Parameters
    ----------
    hash_method:
        Feature hash, :class:`HashMethod` member or its name.
    feature_type:
        Unit boundaries, :class:`FeatureType` member or its name.
    window_size:
        Number of consecutive units per feature; must be at least 1.

    """

    __slots__ = ("_feature_type", "_hash_fn", "_hash_method", "_window_size")

    def __init__(
        self,
        hash_method: HashMethod | str = HashMethod.XXHASH,
        feature_type: FeatureType | str = FeatureType.BYTES,
        window_size: int = 2,
    ) -> None:
        self._window_size = validate_window_size(window_size)
        self._hash_method = HashMethod.coerce(hash_method)
        self._feature_type = FeatureType.coerce(feature_type)
        self._hash_fn = make_hash_fn(self._hash_method, self._feature_type, self._window_size)

    @property
    def hash_method(self) -> HashMethod:
        return self._hash_method

    @property
    def feature_type(self) -> FeatureType:
        return self._feature_type

    @property
    def window_size(self) -> int:
        return self._window_size

    # Hashing --------------------------------------------------------------

    def feature_hashes(self, text: TextLike) -> HashArray:
        """Return the per-window hashes that feed the aggregation."""
        return self._hash_fn(as_bytes(text))

    def hash_int(self, text: TextLike) -> int:
        """Return the fingerprint of *text* as a plain integer."""
        FINGERPRINTS_TOTAL.labels(self._hash_method.value, self._feature_type.value).inc()
        return aggregate(self._hash_fn(as_bytes(text)))

    def hash(self, text: TextLike) -> Fingerprint:
        """Return the fingerprint of *text*."""
        return Fingerprint(self.hash_int(text))

    # Introspection --------------------------------------------------------

    def tokens(self, text: TextLike) -> Iterator[FeatureToken]:
        """Lazily yield the byte span of every window of *text*."""
        return iter_windows(as_bytes(text), self._feature_type, self._window_size)

    def features(self, text: TextLike) -> list[bytes] | list[str]:
        """
        Return the windows of *text* as owned ``bytes`` or ``str`` values.

        Each item is the window's full byte span, separators included.  The
        hash of a multi-unit window covers only its units; see
        :meth:`hashed_features` for that view.
        """
        return extract_features(text, self._feature_type, self._window_size)

    def hashed_features(self, text: TextLike) -> list[bytes] | list[str]:
        """Return, per window, the bytes or text that :meth:`feature_hashes` hashes."""
        return extract_hashed_features(text, self._feature_type, self._window_size)

    # Grouping -------------------------------------------------------------

    def group_texts(self, texts: Iterable[str], max_diff: int = 3) -> list[list[str]]:
        """Group near-duplicate *texts*; see :func:`simhash_core.core.grouping.group_texts`."""
        from simhash_core.core.grouping import group_with

        return group_with(self, texts, max_diff)

    def group_indices(self, texts: Sequence[str], max_diff: int = 3) -> list[list[int]]:
        """Group near-duplicate *texts* by input position."""
        from simhash_core.core.grouping import group_indices_with

        return group_indices_with(self, texts, max_diff)

    # Value semantics ------------------------------------------------------

    def _config(self) -> tuple[HashMethod, FeatureType, int]:
        return (self._hash_method, self._feature_type, self._window_size)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SimHasher):
            return NotImplemented
        return self._config() == other._config()

    def __hash__(self) -> int:
        return hash(self._config())

    def __copy__(self) -> SimHasher:
        return SimHasher(*self._config())

    def __deepcopy__(self, memo: dict[int, Any]) -> SimHasher:
        return self.__copy__()

    def __reduce__(self) -> tuple[type[SimHasher], tuple[HashMethod, FeatureType, int]]:
        return (SimHasher, self._config())

    def clone(self) -> SimHasher:
        """Return an equivalent hasher re-derived from the configuration."""
        return copy.copy(self)

    def __repr__(self) -> str:
        return (
            f"SimHasher(hash_method={self._hash_method.value!r}, "
            f"feature_type={self._feature_type.value!r}, window_size={self._window_size})"
        )
