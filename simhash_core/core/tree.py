# tree.py: 16-way hash tree for Hamming-bounded lookup
"""
Hash tree over 64-bit keys.

Each key is split into sixteen 4-bit nibbles, least significant first; nibble
``i`` selects the branch taken at depth ``i``.  Values live only at depth 16.

A lookup with ``max_diff`` walks every branch whose nibble differs from the
query nibble by no more than the remaining budget, charging that difference
against the budget.  Any stored key whose total distance is within
``max_diff`` is therefore reachable.  Branches are visited in ascending nibble
order and the first stored value found is returned, which is deterministic
but not necessarily the closest match.

Complexity:
- insert: O(16)
- search: bounded by ``16 ** levels_with_budget``, small for ``max_diff <= 4``
"""

from __future__ import annotations

import operator
from collections.abc import Iterator
from typing import Generic, SupportsIndex, TypeVar, overload

from simhash_core.core.hamming import MASK64, nibble_distance

__all__ = ["BRANCH_BITS", "BRANCH_FACTOR", "TREE_DEPTH", "HashTree"]

BRANCH_BITS = 4
BRANCH_FACTOR = 1 << BRANCH_BITS
TREE_DEPTH = 64 // BRANCH_BITS
_NIBBLE_MASK = BRANCH_FACTOR - 1

V = TypeVar("V")
D = TypeVar("D")

_MISSING = object()


class _Node:
    __slots__ = ("branches", "value")

    def __init__(self, *, leaf: bool = False) -> None:
        self.branches: list[_Node | None] = [] if leaf else [None] * BRANCH_FACTOR
        self.value: object = _MISSING


def _check_key(key: SupportsIndex) -> int:
    value = operator.index(key)
    if not 0 <= value <= MASK64:
        raise ValueError(f"key {value} is outside the 64-bit range")
    return value


def _check_max_diff(max_diff: int) -> int:
    if isinstance(max_diff, bool) or not isinstance(max_diff, int):
        raise TypeError(f"max_diff must be an int, got {type(max_diff).__name__}")
    if not 0 <= max_diff <= 64:
        raise ValueError(f"max_diff must be between 0 and 64, got {max_diff}")
    return max_diff


class HashTree(Generic[V]):
    """Trie of depth 16 with one value per distinct 64-bit key."""

    def __init__(self) -> None:
        self._root = _Node()
        self._len = 0

    def add(self, key: SupportsIndex, value: V) -> None:
        """Store *value* under *key*, replacing any value already there."""
        remaining = _check_key(key)
        node = self._root
        for level in range(TREE_DEPTH):
            nibble = remaining & _NIBBLE_MASK
            remaining >>= BRANCH_BITS
            child = node.branches[nibble]
            if child is None:
                child = _Node(leaf=level == TREE_DEPTH - 1)
                node.branches[nibble] = child
            node = child
        if node.value is _MISSING:
            self._len += 1
        node.value = value

    # Lookup ---------------------------------------------------------------

    def _search(self, node: _Node, key: int, budget: int, level: int) -> _Node | None:
        if level == TREE_DEPTH:
            return node if node.value is not _MISSING else None
        if budget == 0:
            return self._exact_from(node, key, level)
        distances = nibble_distance(key & _NIBBLE_MASK)
        rest = key >> BRANCH_BITS
        for nibble, child in enumerate(node.branches):
            if child is None:
                continue
            diff = distances[nibble]
            if diff <= budget:
                found = self._search(child, rest, budget - diff, level + 1)
                if found is not None:
                    return found
        return None

    def _exact_from(self, node: _Node, key: int, level: int) -> _Node | None:
        current: _Node | None = node
        for _ in range(level, TREE_DEPTH):
            assert current is not None
            current = current.branches[key & _NIBBLE_MASK]
            if current is None:
                return None
            key >>= BRANCH_BITS
        assert current is not None
        return current if current.value is not _MISSING else None

    def _find(self, key: SupportsIndex, max_diff: int) -> _Node | None:
        query = _check_key(key)
        budget = _check_max_diff(max_diff)
        if budget == 0:
            return self._exact_from(self._root, query, 0)
        return self._search(self._root, query, budget, 0)

    def contains(self, key: SupportsIndex, max_diff: int = 0) -> V | None:
        """Return a value stored within *max_diff* bits of *key*, or ``None``."""
        node = self._find(key, max_diff)
        return None if node is None else node.value  # type: ignore[return-value]

    @overload
    def get(self, key: SupportsIndex, max_diff: int = ...) -> V | None: ...
    @overload
    def get(self, key: SupportsIndex, max_diff: int, default: D) -> V | D: ...

    def get(self, key: SupportsIndex, max_diff: int = 0, default: object = None) -> object:
        """Like :meth:`contains` but returning *default* when nothing qualifies."""
        node = self._find(key, max_diff)
        return default if node is None else node.value

    def __contains__(self, key: object) -> bool:
        try:
            return self._find(key, 0) is not None  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return False

    # Size and iteration ---------------------------------------------------

    def __len__(self) -> int:
        return self._len

    def count_leaves(self) -> int:
        """Count stored values by walking the whole tree."""
        count = 0
        stack = [self._root]
        while stack:
            node = stack.pop()
            if node.value is not _MISSING:
                count += 1
            stack.extend(child for child in node.branches if child is not None)
        return count

    def items(self) -> Iterator[tuple[int, V]]:
        """Yield ``(key, value)`` pairs in ascending nibble order, low nibble first."""
        yield from self._walk(self._root, 0, 0)

    def _walk(self, node: _Node, prefix: int, level: int) -> Iterator[tuple[int, V]]:
        if level == TREE_DEPTH:
            if node.value is not _MISSING:
                yield prefix, node.value  # type: ignore[misc]
            return
        shift = level * BRANCH_BITS
        for nibble, child in enumerate(node.branches):
            if child is not None:
                yield from self._walk(child, prefix | nibble << shift, level + 1)

    def keys(self) -> Iterator[int]:
        return (key for key, _ in self.items())

    def __iter__(self) -> Iterator[int]:
        return self.keys()

    def __repr__(self) -> str:
        return f"<HashTree size={self._len}>"
