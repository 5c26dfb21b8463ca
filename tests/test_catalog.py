from __future__ import annotations

import random

import pytest

from catalogtool import Catalog, DuplicateInternalIdError
from catalogtool.errors import TableMismatchError
from catalogtool.tables import (
    BucketEntry,
    BucketTable,
    EntryRecord,
    EntryTable,
    ExtraDataStream,
    ExtraRecord,
    HashKey,
    KeyTable,
    StringKey,
)

from conftest import BUNDLE_ID, BUNDLE_PATH, PREFAB_ID, PREFAB_PATH, bundle_extra


class SequenceRandom:
    """Returns queued values from randint(), in order."""

    def __init__(self, values):
        self._values = list(values)
        self.calls = 0

    def randint(self, a, b):
        self.calls += 1
        return self._values.pop(0)


def test_add_internal_id_rejects_duplicates():
    cat = Catalog(internal_ids=["a", "b"])
    assert cat.add_internal_id("c") == 2
    with pytest.raises(DuplicateInternalIdError):
        cat.add_internal_id("a")
    assert cat.internal_ids == ["a", "b", "c"]


def test_internal_id_lookups():
    cat = Catalog(internal_ids=["Assets/x.prefab", "Assets/y.prefab", "z.bundle"])
    assert cat.get_internal_id("Assets/y.prefab") == 1
    assert cat.get_internal_id("missing") is None
    assert cat.get_internal_id_name(2) == "z.bundle"
    assert cat.get_internal_id_name(3) is None
    assert cat.find_internal_ids("Assets/") == ["Assets/x.prefab", "Assets/y.prefab"]


def test_out_of_range_lookups_return_none():
    cat = Catalog()
    assert cat.get_key(0) is None
    assert cat.get_bucket(0) is None
    assert cat.get_entry(0) is None
    assert cat.get_entry(None) is None
    assert cat.get_entry(-1) is None
    assert cat.get_extra(0) is None
    assert cat.get_extra(None) is None
    assert cat.get_extra_at(0) is None
    assert cat.get_entry_by_internal_id(0) is None


def test_next_key_byte_offset_empty():
    assert Catalog().next_key_byte_offset() == 0


def test_next_key_byte_offset_tracks_appended_keys():
    cat = Catalog(
        key_table=KeyTable([StringKey("abc")]),
        bucket_table=BucketTable([BucketEntry(100, [])]),
    )
    assert cat.next_key_byte_offset() == 108
    first = cat.add_key(HashKey(5))
    second = cat.add_key(StringKey("xy"))
    assert cat.get_bucket(first).key_data_offset == 108
    assert cat.get_bucket(second).key_data_offset == 113
    assert cat.next_key_byte_offset() == 100 + 8 + 5 + 7


def test_add_key_bucket_points_at_next_entry():
    cat = Catalog(
        entry_table=EntryTable(
            [EntryRecord(0, 0, None, 0, None, 0, 0)]
        )
    )
    key_id = cat.add_key(StringKey("k"))
    assert cat.get_bucket(key_id).entries == [1]
    assert len(cat.key_table) == len(cat.bucket_table)


def test_unique_random_hash_resamples_on_collision():
    rng = SequenceRandom([5, 7, 5, 9])
    cat = Catalog(
        key_table=KeyTable([HashKey(5), StringKey("a"), HashKey(7)]),
        bucket_table=BucketTable([BucketEntry(0, []), BucketEntry(5, []), BucketEntry(11, [])]),
        rng=rng,
    )
    assert cat.unique_random_hash() == 9
    assert rng.calls == 4


def test_unique_random_hash_is_deterministic_with_seed():
    a = Catalog(rng=random.Random(42)).unique_random_hash()
    b = Catalog(rng=random.Random(42)).unique_random_hash()
    assert a == b
    assert -(2**31) <= a <= 2**31 - 1


def test_extra_data_offsets():
    cat = Catalog()
    assert cat.add_extra_data(ExtraRecord("A", "B", "")) == 0
    second = ExtraRecord("Asm", "Cls", "{}")
    assert cat.add_extra_data(second) == 9
    assert cat.next_extra_byte_offset() == 9 + 7 + 3 + 3 + 2
    assert cat.get_extra(9) is second
    assert cat.get_extra_at(1) is second
    # only record boundaries resolve
    assert cat.get_extra(4) is None
    assert cat.get_extra(1000) is None


def test_add_bundle_entry():
    cat = Catalog(rng=random.Random(0))
    extra = bundle_extra()
    entry_id = cat.add_bundle_entry(BUNDLE_ID, BUNDLE_PATH, extra)
    assert entry_id == 0
    entry = cat.get_entry(entry_id)
    assert entry.internal_id == 0
    assert entry.provider_index == 0
    assert entry.dependency_key is None
    assert entry.dependency_hash == 0
    assert entry.extra_data_id == 0
    assert entry.resource_type == 0
    assert cat.get_key(entry.primary_key) == StringKey(BUNDLE_PATH)
    assert cat.get_bucket(entry.primary_key).entries == [0]
    assert cat.get_extra(entry.extra_data_id) is extra
    assert cat.get_dependencies(entry) is None
    assert not entry.has_dependencies


def test_add_prefab_entry_links_bundle():
    cat = Catalog(rng=SequenceRandom([77]))
    cat.add_bundle_entry(BUNDLE_ID, BUNDLE_PATH, bundle_extra())
    entry_id = cat.add_prefab_entry(PREFAB_ID, PREFAB_PATH, [BUNDLE_ID])
    assert entry_id == 1
    entry = cat.get_entry(entry_id)
    assert entry.internal_id == 1
    assert entry.provider_index == 2
    assert entry.resource_type == 4
    assert entry.extra_data_id is None
    assert entry.dependency_hash == 77
    assert cat.get_key(entry.primary_key) == StringKey(PREFAB_PATH)
    assert cat.get_bucket(entry.primary_key).entries == [1]
    assert cat.get_key(entry.dependency_key) == HashKey(77)
    assert cat.get_dependencies(entry) == [0]
    # bundle key, prefab key, dependency hash key
    assert len(cat.key_table) == 3
    offsets = [b.key_data_offset for b in cat.bucket_table.buckets]
    bundle_key_size = len(BUNDLE_PATH) + 5
    prefab_key_size = len(PREFAB_PATH) + 5
    assert offsets == [0, bundle_key_size, bundle_key_size + prefab_key_size]


def test_add_prefab_entry_drops_unresolved_dependencies():
    cat = Catalog(rng=random.Random(3))
    cat.add_bundle_entry(BUNDLE_ID, BUNDLE_PATH, bundle_extra())
    entry_id = cat.add_prefab_entry(
        PREFAB_ID, PREFAB_PATH, ["does/not/exist.bundle", BUNDLE_ID]
    )
    assert cat.get_dependencies(cat.get_entry(entry_id)) == [0]


def test_add_prefab_entry_without_dependencies_has_empty_set():
    cat = Catalog(rng=random.Random(3))
    entry_id = cat.add_prefab_entry(PREFAB_ID, PREFAB_PATH, [])
    assert cat.get_dependencies(cat.get_entry(entry_id)) == []


def test_entry_by_internal_id(catalog):
    iid = catalog.get_internal_id(PREFAB_ID)
    assert catalog.get_entry_id_by_internal_id(iid) == 1
    assert catalog.get_entry_by_internal_id(iid).provider_index == 2


def test_mismatched_tables_still_load():
    cat = Catalog(
        key_table=KeyTable([StringKey("a")]),
        bucket_table=BucketTable(),
        extra_data=ExtraDataStream(),
    )
    assert len(cat.key_table) == 1
    assert cat.get_bucket(0) is None


def test_mismatched_tables_refuse_new_keys():
    cat = Catalog(
        key_table=KeyTable([StringKey("a"), StringKey("bb")]),
        bucket_table=BucketTable([BucketEntry(0, [0])]),
    )
    with pytest.raises(TableMismatchError) as exc:
        cat.add_key(StringKey("new"))
    assert exc.value.context == {"keys": 2, "buckets": 1}
    assert len(cat.key_table) == 2
    assert len(cat.bucket_table) == 1


def test_mismatched_tables_refuse_entries_before_touching_ids():
    cat = Catalog(
        key_table=KeyTable([StringKey("a")]),
        bucket_table=BucketTable(),
    )
    with pytest.raises(TableMismatchError):
        cat.add_bundle_entry(BUNDLE_ID, BUNDLE_PATH, bundle_extra())
    with pytest.raises(TableMismatchError):
        cat.add_prefab_entry(PREFAB_ID, PREFAB_PATH, [BUNDLE_ID])
    assert cat.internal_ids == []
    assert len(cat.entry_table) == 0


def test_empty_tables_passed_in_are_kept():
    keys, buckets, entries, extra = (
        KeyTable(),
        BucketTable(),
        EntryTable(),
        ExtraDataStream(),
    )
    cat = Catalog(
        key_table=keys, bucket_table=buckets, entry_table=entries, extra_data=extra
    )
    cat.add_bundle_entry(BUNDLE_ID, BUNDLE_PATH, bundle_extra())
    assert cat.key_table is keys
    assert len(keys) == 1
    assert len(buckets) == 1
    assert len(entries) == 1
    assert len(extra.records) == 1
