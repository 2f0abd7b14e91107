"""
Interchangeable 64-bit feature hashes.

Two methods are provided:

- :attr:`HashMethod.SIPHASH` – SipHash-2-4 keyed once per process.
- :attr:`HashMethod.XXHASH` – unseeded XXH3-64.

Each backend exposes the general byte-slice path (:meth:`HashBackend.hash_bytes`,
:meth:`HashBackend.hash_ranges`) and two precomputed lookup tables for
single bytes and byte pairs.  A pair ``(a, b)`` is looked up at index
``a | b << 8`` and hashes exactly like ``bytes([a, b])``.  Tables are built
once, on first use, and are read-only afterwards.
"""

from __future__ import annotations

import logging
import secrets
import threading
import time
from collections.abc import Iterable
from enum import Enum

import numpy as np
import siphash24
import xxhash
from numpy.typing import NDArray

from simhash_core.core.errors import UnsupportedCombination

__all__ = [
    "HashBackend",
    "HashMethod",
    "SipHashBackend",
    "XXHashBackend",
    "get_backend",
]

log = logging.getLogger(__name__)

U8_TABLE_SIZE = 1 << 8
U16_TABLE_SIZE = 1 << 16
SIPHASH_KEY_BYTES = 16


class HashMethod(str, Enum):
    """Feature hash selection."""

    SIPHASH = "siphash"
    XXHASH = "xxhash"

    @classmethod
    def coerce(cls, value: HashMethod | str) -> HashMethod:
        """Resolve *value* (member or case-insensitive name) to a member."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.lower())
            except ValueError:
                pass
        raise UnsupportedCombination(f"unknown hash method {value!r}")

    @property
    def backend(self) -> HashBackend:
        """Return the process-wide backend for this method."""
        return get_backend(self)


class HashBackend:
    """Base class: general hashing paths plus lazily built lookup tables."""

    method: HashMethod

    def __init__(self) -> None:
        self._tables_lock = threading.Lock()
        self._u8_table: NDArray[np.uint64] | None = None
        self._u16_table: NDArray[np.uint64] | None = None

    # General paths -------------------------------------------------------

    def hash_bytes(self, data: bytes) -> int:
        """Return the 64-bit hash of *data*."""
        raise NotImplementedError

    def hash_ranges(self, source: bytes, ranges: Iterable[tuple[int, int]]) -> int:
        """Hash the listed ``[start, end)`` slices of *source* as one input."""
        raise NotImplementedError

    # Table paths ---------------------------------------------------------

    @property
    def u8_table(self) -> NDArray[np.uint64]:
        """Hashes of every single byte value, indexed by the byte."""
        if self._u8_table is None:
            self._build_tables()
        assert self._u8_table is not None
        return self._u8_table

    @property
    def u16_table(self) -> NDArray[np.uint64]:
        """Hashes of every byte pair, indexed by ``first | second << 8``."""
        if self._u16_table is None:
            self._build_tables()
        assert self._u16_table is not None
        return self._u16_table

    def hash_u8(self, value: int) -> int:
        """Return the table hash of the single byte *value*."""
        return int(self.u8_table[value])

    def hash_u16(self, value: int) -> int:
        """Return the table hash of the byte pair encoded in *value*."""
        return int(self.u16_table[value])

    def _build_table(self, size: int, width: int) -> NDArray[np.uint64]:
        table = np.fromiter(
            (self.hash_bytes(v.to_bytes(width, "little")) for v in range(size)),
            dtype=np.uint64,
            count=size,
        )
        table.flags.writeable = False
        return table

    def _build_tables(self) -> None:
        with self._tables_lock:
            if self._u16_table is not None:
                return
            started = time.perf_counter()
            u8 = self._build_table(U8_TABLE_SIZE, 1)
            u16 = self._build_table(U16_TABLE_SIZE, 2)
            self._u8_table = u8
            self._u16_table = u16
            log.debug(
                "Built %s lookup tables (%d + %d entries) in %.3fs",
                self.method.value,
                U8_TABLE_SIZE,
                U16_TABLE_SIZE,
                time.perf_counter() - started,
            )

    def __repr__(self) -> str:
        return f"<{type(self).__name__} method={self.method.value}>"


class SipHashBackend(HashBackend):
    """SipHash-2-4 with a fixed 16-byte key."""

    method = HashMethod.SIPHASH

    def __init__(self, key: bytes) -> None:
        if len(key) != SIPHASH_KEY_BYTES:
            raise ValueError(f"SipHash key must be {SIPHASH_KEY_BYTES} bytes, got {len(key)}")
        super().__init__()
        self._key = bytes(key)

    def hash_bytes(self, data: bytes) -> int:
        state = siphash24.siphash24(key=self._key)
        state.update(data)
        return int.from_bytes(state.digest(), "little")

    def hash_ranges(self, source: bytes, ranges: Iterable[tuple[int, int]]) -> int:
        state = siphash24.siphash24(key=self._key)
        for start, end in ranges:
            state.update(source[start:end])
        return int.from_bytes(state.digest(), "little")


class XXHashBackend(HashBackend):
    """XXH3-64 with seed 0."""

    method = HashMethod.XXHASH

    def hash_bytes(self, data: bytes) -> int:
        return xxhash.xxh3_64_intdigest(data)

    def hash_ranges(self, source: bytes, ranges: Iterable[tuple[int, int]]) -> int:
        state = xxhash.xxh3_64()
        for start, end in ranges:
            state.update(source[start:end])
        return state.intdigest()


###############################################################################
# Process-wide backends
###############################################################################

_backends: dict[HashMethod, HashBackend] = {}
_backends_lock = threading.Lock()


def _siphash_key() -> bytes:
    """Return the configured SipHash key, or a fresh random one."""
    from simhash_core.settings import get_settings

    configured = get_settings().hashing.siphash_key
    if configured:
        return bytes.fromhex(configured)
    return secrets.token_bytes(SIPHASH_KEY_BYTES)


def get_backend(method: HashMethod | str) -> HashBackend:
    """Return the shared backend for *method*, creating it on first use."""
    method = HashMethod.coerce(method)
    backend = _backends.get(method)
    if backend is None:
        with _backends_lock:
            backend = _backends.get(method)
            if backend is None:
                if method is HashMethod.SIPHASH:
                    backend = SipHashBackend(_siphash_key())
                else:
                    backend = XXHashBackend()
                _backends[method] = backend
                log.debug("Initialised %r", backend)
    return backend
