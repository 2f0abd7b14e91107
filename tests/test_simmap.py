import pytest

from simhash_core.core.simhasher import SimHasher
from simhash_core.core.simmap import OccupiedEntry, SimMap, VacantEntry, _Entry

BASE = "The cat sat on the mat"


@pytest.fixture
def sim_map() -> SimMap[str, int]:
    return SimMap(SimHasher(), max_dist=6)


def test_setitem_and_lookup() -> None:
    sm: SimMap[str, int] = SimMap(SimHasher())
    sm[BASE] = 1
    assert len(sm) == 1
    assert BASE in sm
    assert sm.get(BASE) == 1
    assert sm[BASE] == 1
    assert sm.tree_len() == 1


def test_near_duplicate_adopts_first_value(sim_map: SimMap[str, int]) -> None:
    sim_map[BASE] = 1
    assert BASE + "!" in sim_map
    assert "bob the builder" not in sim_map
    sim_map[BASE + "!"] = 2
    assert sim_map[BASE + "!"] == 1
    assert sim_map[BASE] == 1
    assert len(sim_map) == 2
    assert sim_map.tree_len() == 1


def test_maybe_insert_close_or(sim_map: SimMap[str, int]) -> None:
    calls: list[int] = []

    def make() -> int:
        calls.append(1)
        return len(calls)

    assert sim_map.maybe_insert_close_or(BASE, make) == 1
    assert sim_map.maybe_insert_close_or(BASE, make) == 1
    assert sim_map.maybe_insert_close_or("The cat spat on the mat", make) == 1
    assert sim_map.maybe_insert_close_or("A dog barked all the way to the $MOON", make) == 2
    assert len(calls) == 2


def test_falsy_values_are_found(sim_map: SimMap[str, object]) -> None:
    sim_map.maybe_insert_close_or(BASE, lambda: None)
    assert sim_map.maybe_insert_close_or(BASE + "!", lambda: "new") is None
    assert sim_map.tree_len() == 1


def test_missing_key_raises(sim_map: SimMap[str, int]) -> None:
    with pytest.raises(KeyError):
        sim_map["absent"]


def test_exact_map_accessors(sim_map: SimMap[str, int]) -> None:
    assert sim_map.is_empty()
    assert sim_map.insert_key("a", 1) is None
    assert sim_map.insert_key("a", 2) == 1
    assert sim_map.contains_key("a")
    assert list(sim_map) == ["a"]
    assert list(sim_map.keys()) == ["a"]
    assert list(sim_map.values()) == [2]
    assert list(sim_map.items()) == [("a", 2)]
    assert sim_map.tree_len() == 0
    assert sim_map.remove_key("a") == 2
    assert sim_map.remove_key("a") is None
    assert sim_map.is_empty()


def test_remove_keeps_tree_entry(sim_map: SimMap[str, int]) -> None:
    sim_map[BASE] = 1
    sim_map.remove_key(BASE)
    assert not sim_map.contains_key(BASE)
    assert BASE in sim_map
    sim_map[BASE] = 5
    assert sim_map[BASE] == 1


def test_hash_accessors(sim_map: SimMap[str, str]) -> None:
    fp = sim_map.hash(BASE)
    assert fp == SimHasher().hash_int(BASE)
    sim_map.insert_hash(fp, "cluster")
    assert sim_map.get_hash(fp) == "cluster"
    assert sim_map.get_hash(fp ^ 0b111) == "cluster"
    assert sim_map.get_hash_within(fp ^ 0b111, 2) is None
    assert sim_map.contains_hash(fp ^ 1)
    assert not sim_map.contains_hash(fp ^ 0xFF)
    assert sim_map.is_empty()


def test_max_distance_validation() -> None:
    sm: SimMap[str, int] = SimMap(SimHasher())
    assert sm.max_distance == 3
    sm.max_distance = 10
    assert sm.max_distance == 10
    with pytest.raises(ValueError):
        sm.max_distance = 65
    with pytest.raises(ValueError):
        SimMap(SimHasher(), max_dist=-1)


class TestEntries:
    def test_base_entry_is_abstract(self, sim_map: SimMap[str, int]) -> None:
        with pytest.raises(TypeError):
            _Entry(sim_map, "k")

    def test_vacant_then_occupied(self, sim_map: SimMap[str, int]) -> None:
        entry = sim_map.entry("k")
        assert isinstance(entry, VacantEntry)
        assert entry.key == "k"
        assert entry.or_insert(3) == 3
        occupied = sim_map.entry("k")
        assert isinstance(occupied, OccupiedEntry)
        assert occupied.or_insert(9) == 3
        assert occupied.get() == 3
        assert sim_map.tree_len() == 0

    def test_and_modify(self, sim_map: SimMap[str, int]) -> None:
        sim_map.insert_key("k", 1)
        assert sim_map.entry("k").and_modify(lambda v: v + 1).or_insert(0) == 2
        assert sim_map.entry("new").and_modify(lambda v: v + 1).or_insert(0) == 0

    def test_occupied_set(self, sim_map: SimMap[str, int]) -> None:
        sim_map.insert_key("k", 1)
        entry = sim_map.entry("k")
        assert isinstance(entry, OccupiedEntry)
        assert entry.set(7) == 1
        assert sim_map["k"] == 7

    def test_vacant_tree_operations(self, sim_map: SimMap[str, int]) -> None:
        entry = sim_map.entry(BASE)
        assert isinstance(entry, VacantEntry)
        assert entry.fingerprint == sim_map.hash(BASE)
        assert not entry.tree_contains()
        assert entry.tree_get() is None
        entry.insert_into_tree(10)
        assert entry.tree_contains()
        assert entry.tree_get(0) == 10
        assert not sim_map.contains_key(BASE)

    def test_insert_with_tree(self, sim_map: SimMap[str, int]) -> None:
        entry = sim_map.entry(BASE)
        assert isinstance(entry, VacantEntry)
        assert entry.insert_with_tree(1, tree_value=100) == 1
        assert sim_map[BASE] == 1
        assert sim_map.get_hash(sim_map.hash(BASE)) == 100

    def test_insert_with_tree_from(self, sim_map: SimMap[str, int]) -> None:
        entry = sim_map.entry(BASE)
        assert isinstance(entry, VacantEntry)
        entry.insert_with_tree_from(4, lambda v: v * 10)
        assert sim_map[BASE] == 4
        assert sim_map.get_hash(sim_map.hash(BASE)) == 40
