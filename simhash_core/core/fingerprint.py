"""64-bit SimHash fingerprint value type."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Self

from simhash_core.core.hamming import MASK64, hamming_distance

__all__ = ["Fingerprint"]


@dataclass(slots=True, frozen=True, order=True)
class Fingerprint:
    """Immutable 64-bit fingerprint; equality is bitwise, ordering numeric."""

    value: int

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise TypeError(f"fingerprint value must be an int, got {type(self.value).__name__}")
        if not 0 <= self.value <= MASK64:
            raise ValueError(f"fingerprint value {self.value} is outside the 64-bit range")

    @classmethod
    def from_integer(cls, value: int) -> Self:
        return cls(value)

    from_int = from_integer

    @classmethod
    def parse(cls, text: str) -> Self:
        """Read the canonical ``0x``-prefixed hexadecimal form."""
        if not text.lower().startswith("0x"):
            raise ValueError(f"expected a 0x-prefixed hex string, got {text!r}")
        return cls(int(text, 16))

    def to_integer(self) -> int:
        return self.value

    def hamming_distance(self, other: Fingerprint | int) -> int:
        """Return the number of bits that differ from *other*."""
        other_value = other.value if isinstance(other, Fingerprint) else other
        return hamming_distance(self.value, other_value)

    difference = hamming_distance

    def __int__(self) -> int:
        return self.value

    def __index__(self) -> int:
        return self.value

    def __hash__(self) -> int:
        return hash(self.value)

    def __str__(self) -> str:
        return f"0x{self.value:016x}"

    def __repr__(self) -> str:
        return f"<Fingerprint 0x{self.value:016x}>"
