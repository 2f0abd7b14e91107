"""Exception hierarchy for fingerprinting and indexing."""

from __future__ import annotations

__all__ = ["InvalidWindowSize", "SimHashError", "UnsupportedCombination"]


class SimHashError(ValueError):
    """Base class for configuration errors raised by :mod:`simhash_core`."""


class InvalidWindowSize(SimHashError):
    """Raised when a :class:`SimHasher` is configured with a window size below 1."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Invalid window size: {reason}")
        self.reason = reason


class UnsupportedCombination(SimHashError):
    """Raised when a hash method or feature type cannot be resolved."""
