"""
Exact and approximate lookup combined.

:class:`SimMap` keeps a plain ``dict`` from keys to values next to a
:class:`~simhash_core.core.tree.HashTree` from fingerprints to values.  Both
are filled through one :class:`~simhash_core.core.simhasher.SimHasher`, so a
new key can be resolved to the value of an earlier key whose fingerprint lies
within ``max_distance`` bits, which is the basis for near-duplicate grouping.

Neither structure supports concurrent mutation; callers serialise writers.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, ItemsView, Iterator, KeysView, ValuesView
from typing import Generic, SupportsIndex, TypeVar

from simhash_core.core.features import TextLike
from simhash_core.core.simhasher import SimHasher
from simhash_core.core.tree import HashTree
from simhash_core.utils.metrics import TREE_PROBES_TOTAL

__all__ = ["OccupiedEntry", "SimMap", "VacantEntry"]

K = TypeVar("K", str, bytes)
V = TypeVar("V")

_MISSING = object()


class SimMap(Generic[K, V]):
    """Map with exact keys plus a fingerprint tree for near-duplicate lookup."""

    def __init__(self, hasher: SimHasher, max_dist: int = 3) -> None:
        self._items: dict[K, V] = {}
        self._tree: HashTree[V] = HashTree()
        self._hasher = hasher
        self.max_distance = max_dist

    # Configuration --------------------------------------------------------

    @property
    def hasher(self) -> SimHasher:
        return self._hasher

    @property
    def max_distance(self) -> int:
        """Largest Hamming distance treated as the same cluster."""
        return self._max_dist

    @max_distance.setter
    def max_distance(self, value: int) -> None:
        if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= 64:
            raise ValueError(f"max_distance must be an int between 0 and 64, got {value!r}")
        self._max_dist = value

    def hash(self, key: TextLike) -> int:
        """Return the fingerprint of *key* under the map's hasher."""
        return self._hasher.hash_int(key)

    # Exact map ------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[K]:
        return iter(self._items)

    def __getitem__(self, key: K) -> V:
        return self._items[key]

    def __setitem__(self, key: K, value: V) -> None:
        """Insert *value* unless *key* or a near-duplicate of it is already present."""
        self.maybe_insert_close_or(key, lambda: value)

    def __contains__(self, key: object) -> bool:
        """True if *key* is stored exactly or its fingerprint is within range of the tree."""
        if key in self._items:
            return True
        if not isinstance(key, str | bytes):
            return False
        return self.contains_hash(self.hash(key))

    def is_empty(self) -> bool:
        return not self._items

    def contains_key(self, key: K) -> bool:
        return key in self._items

    def get(self, key: K, default: V | None = None) -> V | None:
        return self._items.get(key, default)

    def insert_key(self, key: K, value: V) -> V | None:
        """Store *value* in the exact map only, returning the previous value."""
        previous = self._items.get(key)
        self._items[key] = value
        return previous

    def remove_key(self, key: K) -> V | None:
        """Drop *key* from the exact map; the tree keeps its entry."""
        return self._items.pop(key, None)

    def keys(self) -> KeysView[K]:
        return self._items.keys()

    def values(self) -> ValuesView[V]:
        return self._items.values()

    def items(self) -> ItemsView[K, V]:
        return self._items.items()

    # Fingerprint tree -----------------------------------------------------

    def _probe(self, fingerprint: SupportsIndex, max_dist: int) -> tuple[bool, V | None]:
        found = self._tree.get(fingerprint, max_dist, _MISSING)
        hit = found is not _MISSING
        TREE_PROBES_TOTAL.labels("hit" if hit else "miss").inc()
        return hit, (found if hit else None)  # type: ignore[return-value]

    def get_hash_within(self, fingerprint: SupportsIndex, max_dist: int) -> V | None:
        """Return a tree value within *max_dist* bits of *fingerprint*."""
        return self._probe(fingerprint, max_dist)[1]

    def get_hash(self, fingerprint: SupportsIndex) -> V | None:
        """Return a tree value within :attr:`max_distance` bits of *fingerprint*."""
        return self.get_hash_within(fingerprint, self._max_dist)

    def contains_hash(self, fingerprint: SupportsIndex) -> bool:
        return self._probe(fingerprint, self._max_dist)[0]

    def insert_hash(self, fingerprint: SupportsIndex, value: V) -> None:
        self._tree.add(fingerprint, value)

    def tree_len(self) -> int:
        return len(self._tree)

    # Combined -------------------------------------------------------------

    def entry(self, key: K) -> OccupiedEntry[K, V] | VacantEntry[K, V]:
        """Return an entry for *key*, occupied if it is in the exact map."""
        if key in self._items:
            return OccupiedEntry(self, key)
        return VacantEntry(self, key)

    def maybe_insert_close_or(self, key: K, make_default: Callable[[], V]) -> V:
        """
        Return the value for *key*, adopting or creating a cluster as needed.

        An exact hit is returned unchanged.  Otherwise the key's fingerprint is
        probed against the tree: a value within :attr:`max_distance` bits is
        stored for *key* and returned without touching the tree; when nothing
        is close, ``make_default()`` starts a new cluster in both indexes.
        """
        entry = self.entry(key)
        if isinstance(entry, OccupiedEntry):
            return entry.get()
        found, close = entry.tree_probe()
        if found:
            return entry.insert(close)  # type: ignore[arg-type]
        return entry.insert_with_tree(make_default())

    def __repr__(self) -> str:
        return (
            f"<SimMap size={len(self._items)} clusters={len(self._tree)} "
            f"max_distance={self._max_dist} hasher={self._hasher!r}>"
        )


###############################################################################
# Entries
###############################################################################


class _Entry(ABC, Generic[K, V]):
    __slots__ = ("_key", "_map")

    def __init__(self, sim_map: SimMap[K, V], key: K) -> None:
        self._map = sim_map
        self._key = key

    @property
    def key(self) -> K:
        return self._key

    def or_insert(self, default: V) -> V:
        """Return the stored value, inserting *default* into the exact map if vacant."""
        return self.or_insert_with(lambda: default)

    @abstractmethod
    def or_insert_with(self, default: Callable[[], V]) -> V:
        """Return the stored value, inserting ``default()`` if vacant."""

    def and_modify(self, func: Callable[[V], V]) -> _Entry[K, V]:
        """Replace an occupied value with ``func(value)``; vacant entries pass through."""
        return self


class OccupiedEntry(_Entry[K, V]):
    """Entry for a key already present in the exact map."""

    __slots__ = ()

    def get(self) -> V:
        return self._map._items[self._key]

    def set(self, value: V) -> V:
        """Replace the stored value, returning the old one."""
        old = self._map._items[self._key]
        self._map._items[self._key] = value
        return old

    def or_insert_with(self, default: Callable[[], V]) -> V:
        return self.get()

    def and_modify(self, func: Callable[[V], V]) -> OccupiedEntry[K, V]:
        self._map._items[self._key] = func(self.get())
        return self


class VacantEntry(_Entry[K, V]):
    """
    Entry for a key absent from the exact map.

    The tree can be probed before committing; insertion touches the exact
    map first and the tree second, never both at once.
    """

    __slots__ = ("_fingerprint",)

    def __init__(self, sim_map: SimMap[K, V], key: K) -> None:
        super().__init__(sim_map, key)
        self._fingerprint: int | None = None

    @property
    def fingerprint(self) -> int:
        """Fingerprint of the key, computed on first access."""
        if self._fingerprint is None:
            self._fingerprint = self._map.hash(self._key)
        return self._fingerprint

    def tree_probe(self, max_dist: int | None = None) -> tuple[bool, V | None]:
        """Return ``(found, value)`` for the tree entry closest in search order."""
        limit = self._map.max_distance if max_dist is None else max_dist
        return self._map._probe(self.fingerprint, limit)

    def tree_get(self, max_dist: int | None = None) -> V | None:
        """Return a tree value close to this key's fingerprint, if any."""
        return self.tree_probe(max_dist)[1]

    def tree_contains(self, max_dist: int | None = None) -> bool:
        return self.tree_probe(max_dist)[0]

    def insert(self, value: V) -> V:
        """Store *value* in the exact map only."""
        self._map._items[self._key] = value
        return value

    def insert_into_tree(self, value: V) -> None:
        """Store *value* in the tree only, under this key's fingerprint."""
        self._map.insert_hash(self.fingerprint, value)

    def insert_with_tree(self, value: V, tree_value: V | None = None) -> V:
        """Store *value* in the exact map and *tree_value* (default: *value*) in the tree."""
        stored = self.insert(value)
        self.insert_into_tree(stored if tree_value is None else tree_value)
        return stored

    def insert_with_tree_from(self, value: V, to_tree: Callable[[V], V]) -> V:
        """Store *value* in the map and ``to_tree(value)`` in the tree."""
        stored = self.insert(value)
        self.insert_into_tree(to_tree(stored))
        return stored

    def or_insert_with(self, default: Callable[[], V]) -> V:
        return self.insert(default())
