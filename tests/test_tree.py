import pytest

from simhash_core.core.fingerprint import Fingerprint
from simhash_core.core.hamming import MASK64
from simhash_core.core.tree import HashTree


def test_exact_lookup() -> None:
    tree: HashTree[str] = HashTree()
    tree.add(0x1234, "a")
    assert tree.contains(0x1234) == "a"
    assert tree.contains(0x1234, 0) == "a"
    assert tree.contains(0x1235) is None
    assert 0x1234 in tree
    assert 0x1235 not in tree


def test_empty_tree() -> None:
    tree: HashTree[int] = HashTree()
    assert len(tree) == 0
    assert tree.contains(0, 64) is None
    assert list(tree.items()) == []


def test_add_overwrites() -> None:
    tree: HashTree[str] = HashTree()
    tree.add(7, "old")
    tree.add(7, "new")
    assert tree.contains(7) == "new"
    assert len(tree) == 1
    assert tree.count_leaves() == 1


def test_approximate_lookup() -> None:
    tree: HashTree[str] = HashTree()
    tree.add(0b1010, "x")
    assert tree.contains(0b1011, 1) == "x"
    assert tree.contains(0b0101, 3) is None
    assert tree.contains(0b0101, 4) == "x"


def test_distance_spread_across_nibbles() -> None:
    key = 0xFFFF_0000_FFFF_0000
    tree: HashTree[str] = HashTree()
    tree.add(key, "v")
    probe = key ^ (1 | 1 << 20 | 1 << 40 | 1 << 63)
    assert tree.contains(probe, 3) is None
    assert tree.contains(probe, 4) == "v"


def test_extreme_keys() -> None:
    tree: HashTree[str] = HashTree()
    tree.add(0, "zero")
    tree.add(MASK64, "ones")
    assert tree.contains(MASK64) == "ones"
    assert tree.contains(0) == "zero"
    assert tree.contains(1, 1) == "zero"
    assert tree.contains(MASK64 ^ 1, 1) == "ones"


def test_first_match_in_ascending_nibble_order() -> None:
    tree: HashTree[str] = HashTree()
    tree.add(0b0011, "three")
    tree.add(0b0000, "zero")
    # Both keys are one bit away from 0b0001; nibble 0 is explored first.
    assert tree.contains(0b0001, 1) == "zero"


def test_get_with_default() -> None:
    tree: HashTree[int] = HashTree()
    assert tree.get(5) is None
    assert tree.get(5, 0, -1) == -1
    tree.add(5, 0)
    assert tree.get(5, 0, -1) == 0


def test_fingerprint_keys() -> None:
    tree: HashTree[str] = HashTree()
    tree.add(Fingerprint(42), "fp")
    assert tree.contains(42) == "fp"
    assert Fingerprint(42) in tree


def test_items_rebuild_keys() -> None:
    tree: HashTree[str] = HashTree()
    keys = [0, 1, 0x10, 0xF0, MASK64, 0x8000_0000_0000_0000]
    for key in keys:
        tree.add(key, hex(key))
    assert sorted(tree.keys()) == sorted(keys)
    assert dict(tree.items()) == {key: hex(key) for key in keys}
    assert list(tree)[:2] == [0, 0x8000_0000_0000_0000]
    assert len(tree) == tree.count_leaves() == len(keys)


@pytest.mark.parametrize("key", [-1, 1 << 64])
def test_key_range(key: int) -> None:
    with pytest.raises(ValueError):
        HashTree().add(key, None)
    assert key not in HashTree()


@pytest.mark.parametrize("max_diff", [-1, 65])
def test_max_diff_range(max_diff: int) -> None:
    with pytest.raises(ValueError):
        HashTree().contains(0, max_diff)


def test_max_diff_type() -> None:
    with pytest.raises(TypeError):
        HashTree().contains(0, 1.5)  # type: ignore[arg-type]
