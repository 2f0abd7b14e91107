from concurrent.futures import ThreadPoolExecutor

import numpy as np
import pytest
import xxhash

from simhash_core.core.errors import UnsupportedCombination
from simhash_core.core.hashing import (
    HashMethod,
    SipHashBackend,
    XXHashBackend,
    get_backend,
)
from simhash_core.core.simhasher import SimHasher
from simhash_core.settings.core import TESTING_SIPHASH_KEY


def test_backends_are_shared(method: str) -> None:
    assert get_backend(method) is get_backend(HashMethod.coerce(method))
    assert HashMethod.coerce(method).backend is get_backend(method)


def test_hash_is_deterministic(method: str) -> None:
    backend = get_backend(method)
    assert backend.hash_bytes(b"hello") == backend.hash_bytes(b"hello")
    assert backend.hash_bytes(b"hello") != backend.hash_bytes(b"world")


def test_xxhash_matches_reference() -> None:
    backend = get_backend(HashMethod.XXHASH)
    assert backend.hash_bytes(b"hello") == xxhash.xxh3_64_intdigest(b"hello")


def test_siphash_uses_configured_key() -> None:
    pinned = SipHashBackend(bytes.fromhex(TESTING_SIPHASH_KEY))
    assert get_backend("siphash").hash_bytes(b"abc") == pinned.hash_bytes(b"abc")


def test_siphash_key_changes_output() -> None:
    a = SipHashBackend(bytes(16))
    b = SipHashBackend(bytes(range(16)))
    assert a.hash_bytes(b"abc") != b.hash_bytes(b"abc")


def test_siphash_key_length_checked() -> None:
    with pytest.raises(ValueError):
        SipHashBackend(b"short")


def test_hash_ranges_concatenates_slices(method: str) -> None:
    backend = get_backend(method)
    source = b"Hello, world!"
    assert backend.hash_ranges(source, [(0, 5), (7, 12)]) == backend.hash_bytes(b"Helloworld")
    assert backend.hash_ranges(source, [(0, 13)]) == backend.hash_bytes(source)


def test_u8_table_matches_hash_bytes(method: str) -> None:
    backend = get_backend(method)
    table = backend.u8_table
    assert table.shape == (256,)
    assert table.dtype == np.uint64
    for value in (0, 1, 65, 254, 255):
        assert int(table[value]) == backend.hash_bytes(bytes([value]))
        assert backend.hash_u8(value) == backend.hash_bytes(bytes([value]))


def test_u16_table_matches_byte_pairs(method: str) -> None:
    backend = get_backend(method)
    table = backend.u16_table
    assert table.shape == (65536,)
    for a, b in [(0, 0), (0x54, 0x68), (0xFF, 0x00), (0x00, 0xFF), (0xFF, 0xFF)]:
        assert backend.hash_u16(a | b << 8) == backend.hash_bytes(bytes([a, b]))
        assert backend.hash_u16(a | b << 8) == backend.hash_ranges(bytes([a, b]), [(0, 2)])


def test_tables_are_read_only(method: str) -> None:
    table = get_backend(method).u8_table
    with pytest.raises(ValueError):
        table[0] = 1


def test_tables_built_once() -> None:
    backend = XXHashBackend()
    assert backend.u16_table is backend.u16_table
    assert backend.u8_table is backend.u8_table


def test_unknown_method() -> None:
    with pytest.raises(UnsupportedCombination):
        HashMethod.coerce("md5")
    assert HashMethod.coerce("XXHash") is HashMethod.XXHASH


def test_siphash_values_are_unsigned() -> None:
    backend = SipHashBackend(bytes.fromhex(TESTING_SIPHASH_KEY))
    table = backend.u8_table
    assert all(0 <= int(value) < 2**64 for value in table)
    assert all(0 <= backend.hash_bytes(bytes([b, b])) < 2**64 for b in range(256))
    assert 0 <= backend.hash_ranges(b"alpha, beta", [(0, 5), (7, 11)]) < 2**64


def test_siphash_multi_unit_windows_hash() -> None:
    texts = [f"text number {i} " * 3 for i in range(64)]
    for feature_type in ("chars", "graphemes", "words"):
        hasher = SimHasher(HashMethod.SIPHASH, feature_type, 3)
        assert all(0 <= hasher.hash_int(text) < 2**64 for text in texts)
        hashes = hasher.feature_hashes(texts[0])
        assert hashes.dtype == np.uint64


def test_concurrent_first_use_builds_one_table() -> None:
    backend = XXHashBackend()
    with ThreadPoolExecutor(max_workers=8) as pool:
        tables = list(pool.map(lambda _: backend.u16_table, range(16)))
    assert all(table is tables[0] for table in tables)
