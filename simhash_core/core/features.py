"""
Feature windowing over text.

Units are half-open byte ranges into the UTF-8 (or raw byte) form of the
input:

- **bytes** – every octet;
- **chars** – Unicode scalar values;
- **graphemes** – extended grapheme clusters;
- **words** – Unicode default word segments holding a letter or number.

Invalid UTF-8 never raises: the input is split into maximal runs of valid
UTF-8 and the invalid bytes between them produce no char/grapheme/word units.
All iterators are lazy; nothing is materialised unless the caller collects it.
"""

from __future__ import annotations

import re
from collections import deque
from collections.abc import Callable, Iterable, Iterator
from enum import Enum
from typing import NamedTuple, TypeAlias

import regex

from simhash_core.core.errors import InvalidWindowSize, UnsupportedCombination

__all__ = [
    "FeatureToken",
    "FeatureType",
    "TextLike",
    "as_bytes",
    "extract_features",
    "extract_hashed_features",
    "iter_units",
    "iter_windows",
    "sliding_windows",
    "validate_window_size",
    "window_spans",
]

TextLike: TypeAlias = str | bytes | bytearray | memoryview


class FeatureType(str, Enum):
    """Unit boundaries used to cut text into features."""

    BYTES = "bytes"
    CHARS = "chars"
    GRAPHEMES = "graphemes"
    WORDS = "words"

    @classmethod
    def coerce(cls, value: FeatureType | str) -> FeatureType:
        """Resolve *value* (member or case-insensitive name) to a member."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.lower())
            except ValueError:
                pass
        raise UnsupportedCombination(f"unknown feature type {value!r}")


class FeatureToken(NamedTuple):
    """Half-open byte range ``[start, end)`` into the source bytes."""

    start: int
    end: int

    def extract(self, data: bytes) -> bytes:
        """Return the bytes covered by this token."""
        return data[self.start : self.end]


def as_bytes(text: TextLike) -> bytes:
    """Return the byte form used for windowing and hashing."""
    if isinstance(text, str):
        # Lone surrogates survive as 3-byte sequences and are later seen as invalid UTF-8.
        return text.encode("utf-8", "surrogatepass")
    if isinstance(text, bytes | bytearray | memoryview):
        return bytes(text)
    raise TypeError(f"expected str or bytes-like object, got {type(text).__name__}")


def validate_window_size(window_size: int) -> int:
    """Return *window_size* if it is a usable window, else raise :class:`InvalidWindowSize`."""
    if isinstance(window_size, bool) or not isinstance(window_size, int):
        raise InvalidWindowSize(f"expected an integer, got {type(window_size).__name__}")
    if window_size < 1:
        raise InvalidWindowSize("window size must be greater than 0")
    return window_size


###############################################################################
# Unit boundaries
###############################################################################

_ESCAPED_OR_VALID = re.compile(r"[\udc80-\udcff]+|[^\udc80-\udcff]+")
_GRAPHEME = regex.compile(r"\X")
_WORD_BOUNDARY = regex.compile(r"\b", flags=regex.WORD)
_WORDLIKE = regex.compile(r"[\p{Alphabetic}\p{N}]")


def _valid_runs(data: bytes) -> Iterator[tuple[int, str]]:
    """Yield ``(byte_offset, text)`` for each maximal run of valid UTF-8."""
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError:
        pass
    else:
        if text:
            yield 0, text
        return

    # surrogateescape maps each invalid byte to one code point in U+DC80..U+DCFF
    decoded = data.decode("utf-8", "surrogateescape")
    offset = 0
    for match in _ESCAPED_OR_VALID.finditer(decoded):
        chunk = match.group()
        if "\udc80" <= chunk[0] <= "\udcff":
            offset += len(chunk)
            continue
        yield offset, chunk
        offset += len(chunk.encode("utf-8"))


def _utf8_width(ch: str) -> int:
    cp = ord(ch)
    if cp < 0x80:
        return 1
    if cp < 0x800:
        return 2
    if cp < 0x10000:
        return 3
    return 4


def byte_units(data: bytes) -> Iterator[FeatureToken]:
    """Yield one token per octet."""
    for i in range(len(data)):
        yield FeatureToken(i, i + 1)


def char_units(data: bytes) -> Iterator[FeatureToken]:
    """Yield one token per Unicode scalar value."""
    for offset, run in _valid_runs(data):
        pos = offset
        for ch in run:
            end = pos + _utf8_width(ch)
            yield FeatureToken(pos, end)
            pos = end


def grapheme_units(data: bytes) -> Iterator[FeatureToken]:
    """Yield one token per extended grapheme cluster."""
    for offset, run in _valid_runs(data):
        pos = offset
        for match in _GRAPHEME.finditer(run):
            end = pos + len(match.group().encode("utf-8"))
            yield FeatureToken(pos, end)
            pos = end


def _segments(run: str) -> Iterator[str]:
    prev = 0
    for match in _WORD_BOUNDARY.finditer(run):
        boundary = match.start()
        if boundary > prev:
            yield run[prev:boundary]
            prev = boundary
    if prev < len(run):
        yield run[prev:]


def word_units(data: bytes) -> Iterator[FeatureToken]:
    """Yield one token per word; punctuation and whitespace segments are skipped."""
    for offset, run in _valid_runs(data):
        pos = offset
        for segment in _segments(run):
            end = pos + len(segment.encode("utf-8"))
            if _WORDLIKE.search(segment):
                yield FeatureToken(pos, end)
            pos = end


_UNIT_ITERATORS: dict[FeatureType, Callable[[bytes], Iterator[FeatureToken]]] = {
    FeatureType.BYTES: byte_units,
    FeatureType.CHARS: char_units,
    FeatureType.GRAPHEMES: grapheme_units,
    FeatureType.WORDS: word_units,
}


def iter_units(data: bytes, feature_type: FeatureType) -> Iterator[FeatureToken]:
    """Return a lazy iterator over the units of *data*."""
    return _UNIT_ITERATORS[feature_type](data)


###############################################################################
# Windows
###############################################################################


def sliding_windows(
    units: Iterable[FeatureToken], window_size: int
) -> Iterator[tuple[FeatureToken, ...]]:
    """Yield every run of *window_size* consecutive units; no partial windows."""
    window: deque[FeatureToken] = deque(maxlen=window_size)
    for unit in units:
        window.append(unit)
        if len(window) == window_size:
            yield tuple(window)


def window_spans(units: Iterable[FeatureToken], window_size: int) -> Iterator[FeatureToken]:
    """
    Yield the byte span of each window.

    For a window size of 1 the spans are the units themselves.  Otherwise a
    span starts at the end of the unit that left the window on the previous
    step (or at offset 0 for the first window) and ends at the end of the
    newest unit.
    """
    if window_size == 1:
        yield from units
        return
    ends: deque[int] = deque([0])
    for unit in units:
        ends.append(unit.end)
        if len(ends) > window_size:
            yield FeatureToken(ends.popleft(), ends[-1])


def iter_windows(
    data: bytes, feature_type: FeatureType, window_size: int
) -> Iterator[FeatureToken]:
    """Return a lazy iterator over the window spans of *data*."""
    if feature_type is FeatureType.BYTES:
        return (FeatureToken(i, i + window_size) for i in range(len(data) - window_size + 1))
    return window_spans(iter_units(data, feature_type), window_size)


def extract_features(
    text: TextLike,
    feature_type: FeatureType | str = FeatureType.BYTES,
    window_size: int = 1,
) -> list[bytes] | list[str]:
    """
    Return the windows of *text* as owned values.

    Bytes windows are returned as :class:`bytes`; every other feature type is
    decoded back to :class:`str`.
    """
    feature_type = FeatureType.coerce(feature_type)
    validate_window_size(window_size)
    data = as_bytes(text)
    spans = iter_windows(data, feature_type, window_size)
    if feature_type is FeatureType.BYTES:
        return [data[start:end] for start, end in spans]
    return [data[start:end].decode("utf-8", "replace") for start, end in spans]


def extract_hashed_features(
    text: TextLike,
    feature_type: FeatureType | str = FeatureType.BYTES,
    window_size: int = 1,
) -> list[bytes] | list[str]:
    """
    Return the exact input of every window hash.

    Unlike :func:`extract_features`, windows of several chars, graphemes or
    words are the concatenation of their units, so the text between words
    and any invalid bytes are left out.  Bytes windows are contiguous and
    identical in both views.
    """
    feature_type = FeatureType.coerce(feature_type)
    validate_window_size(window_size)
    data = as_bytes(text)
    if feature_type is FeatureType.BYTES:
        return [data[start:end] for start, end in iter_windows(data, feature_type, window_size)]
    return [
        b"".join(data[start:end] for start, end in window).decode("utf-8", "replace")
        for window in sliding_windows(iter_units(data, feature_type), window_size)
    ]
