import random

import pytest

from fmodpack.fmod.fmodkeys import (
    LABEL_ALPHABET,
    LABEL_MAX_LEN,
    LABEL_MIN_LEN,
    CharacterTable,
    FrozenTableError,
)
from fmodpack.gameres.gameres import IndexSpaceExhausted, InvalidFormatException, LabelSpaceExhausted


class StuckRandom:
    """항상 같은 라벨만 만드는 난수원"""

    def randint(self, a, b):
        return a

    def choice(self, seq):
        return seq[0]


def test_ensure_entry_is_idempotent():
    table = CharacterTable(rng=random.Random(1))
    label = table.ensure_entry("h")
    assert table.ensure_entry("h") == label
    assert len(table) == 1
    assert table.bin == {label: 0}


def test_indices_follow_first_seen_order():
    table = CharacterTable(rng=random.Random(2))
    for ch in "hello":
        table.ensure_entry(ch)
    assert [table.index_of(ch) for ch in "helo"] == [0, 1, 2, 3]


def test_labels_use_alphabet_and_length_range():
    table = CharacterTable(rng=random.Random(3))
    for i in range(200):
        table.ensure_entry(chr(0x20 + i))
    for label in table.keys.values():
        assert LABEL_MIN_LEN <= len(label) <= LABEL_MAX_LEN
        assert set(label) <= set(LABEL_ALPHABET)


def test_maps_are_injective_and_same_size():
    table = CharacterTable(rng=random.Random(4))
    for i in range(1000):
        table.ensure_entry(chr(0x100 + i))
    assert len(table.keys) == len(table.bin) == 1000
    assert len(set(table.keys.values())) == 1000
    assert sorted(table.bin.values()) == list(range(1000))
    assert set(table.keys.values()) == set(table.bin)


def test_label_collisions_are_bounded():
    table = CharacterTable(rng=StuckRandom())
    table.ensure_entry("a")
    with pytest.raises(LabelSpaceExhausted):
        table.ensure_entry("b")
    # 실패한 문자는 등록되지 않음
    assert "b" not in table
    assert len(table.bin) == 1


def test_index_space_is_checked():
    table = CharacterTable(index_width=1, rng=random.Random(5))
    for i in range(256):
        table.ensure_entry(chr(i))
    with pytest.raises(IndexSpaceExhausted):
        table.ensure_entry(chr(256))
    assert len(table) == 256


@pytest.mark.parametrize("width", [0, 3, 8, True, "2"])
def test_invalid_index_width(width):
    with pytest.raises(ValueError):
        CharacterTable(index_width=width)


def test_frozen_table_rejects_new_characters():
    table = CharacterTable(rng=random.Random(6))
    label = table.ensure_entry("x")
    table.freeze()
    assert table.ensure_entry("x") == label
    with pytest.raises(FrozenTableError):
        table.ensure_entry("y")


def test_same_seed_same_labels():
    a = CharacterTable(rng=random.Random(42))
    b = CharacterTable(rng=random.Random(42))
    for ch in "abc":
        a.ensure_entry(ch)
        b.ensure_entry(ch)
    assert a.keys == b.keys


def test_reverse_maps():
    table = CharacterTable(rng=random.Random(7))
    for ch in "ab":
        table.ensure_entry(ch)
    label_b = table.keys["b"]
    assert table.reverse_bin()[1] == label_b
    assert table.reverse_keys()[label_b] == "b"


def test_metadata_round_trip():
    table = CharacterTable(rng=random.Random(8))
    for ch in "xyz":
        table.ensure_entry(ch)
    keys, bin_map = table.to_metadata()
    restored = CharacterTable.from_metadata(keys, bin_map)
    assert restored.keys == table.keys
    assert restored.bin == table.bin


@pytest.mark.parametrize("keys, bin_map", [
    ({"a": "AAAAAAA"}, {}),
    ({"a": "AAAAAAA", "b": "AAAAAAA"}, {"AAAAAAA": 0}),
    ({"a": "AAAAAAA"}, {"AAAAAAA": 0, "BBBBBBB": 1}),
    ({"a": "AAAAAAA", "b": "BBBBBBB"}, {"AAAAAAA": 0, "BBBBBBB": 0}),
    ({"a": "AAAAAAA"}, {"AAAAAAA": 70000}),
    ({"a": "AAAAAAA"}, {"AAAAAAA": "0"}),
])
def test_from_metadata_rejects_inconsistent_tables(keys, bin_map):
    with pytest.raises(InvalidFormatException):
        CharacterTable.from_metadata(keys, bin_map)
