"""Bit-difference primitive shared by the hash tree and the public API."""

from __future__ import annotations

__all__ = ["MASK64", "hamming_distance", "nibble_distance"]

MASK64 = (1 << 64) - 1

# Popcount of ``a ^ b`` for every pair of 4-bit values, indexed ``[a][b]``.
_NIBBLE_DISTANCE: tuple[tuple[int, ...], ...] = tuple(
    tuple((a ^ b).bit_count() for b in range(16)) for a in range(16)
)


def hamming_distance(a: int, b: int) -> int:
    """Return the number of differing bits between two 64-bit values."""
    return ((a ^ b) & MASK64).bit_count()


def nibble_distance(a: int) -> tuple[int, ...]:
    """Return the distances from nibble *a* to each nibble ``0..15``."""
    return _NIBBLE_DISTANCE[a]
