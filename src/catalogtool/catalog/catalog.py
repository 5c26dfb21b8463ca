"""In-memory addressables catalog: lookups and append-only mutation.

The catalog owns five positional structures:

* ``internal_ids`` - path strings, position is the ``InternalId``;
* ``key_table`` - string or hash keys, position is the ``KeyId``;
* ``bucket_table`` - parallel to the key table, each bucket lists the entry
  ids its key selects;
* ``entry_table`` - resolution records, position is the ``EntryId``;
* ``extra_data`` - metadata records addressed by byte offset (``ExtraId``).

Lookups are bounds checked and return ``None`` when an id does not resolve.
Mutations only ever append, so existing ids stay valid for the lifetime of the
catalog.
"""

from __future__ import annotations

import random
from typing import Iterable, List, Optional, Sequence

from ..errors import (
    DuplicateInternalIdError,
    TableMismatchError,
    E_DUP_INTERNAL_ID,
    E_TABLE_MISMATCH,
)
from ..logging import get_logger
from ..tables import (
    StringKey,
    HashKey,
    KeyEntry,
    BucketEntry,
    EntryRecord,
    ExtraRecord,
    KeyTable,
    BucketTable,
    EntryTable,
    ExtraDataStream,
)
from ..tables.constants import (
    I32_MIN,
    I32_MAX,
    PROVIDER_INDEX_BUNDLE,
    PROVIDER_INDEX_PREFAB,
    RESOURCE_TYPE_BUNDLE,
    RESOURCE_TYPE_PREFAB,
)
from . import resolver

__all__ = ["Catalog"]

logger = get_logger("catalog")


def _get(seq: Sequence, index: Optional[int]):
    if index is None or index < 0 or index >= len(seq):
        return None
    return seq[index]


class Catalog:
    def __init__(
        self,
        internal_ids: Iterable[str] = (),
        key_table: KeyTable | None = None,
        bucket_table: BucketTable | None = None,
        entry_table: EntryTable | None = None,
        extra_data: ExtraDataStream | None = None,
        *,
        rng: random.Random | None = None,
    ) -> None:
        self.internal_ids: List[str] = list(internal_ids)
        self.key_table = key_table if key_table is not None else KeyTable()
        self.bucket_table = (
            bucket_table if bucket_table is not None else BucketTable()
        )
        self.entry_table = entry_table if entry_table is not None else EntryTable()
        self.extra_data = (
            extra_data if extra_data is not None else ExtraDataStream()
        )
        # Anything with random.Random's randint() works; tests inject
        # deterministic sequences here.
        self.rng = rng or random.Random()
        if len(self.key_table) != len(self.bucket_table):
            logger.warning(
                "Key table (%d) and bucket table (%d) differ in length",
                len(self.key_table),
                len(self.bucket_table),
            )

    # Internal ids -------------------------------------------------------------
    def get_internal_id(self, name: str) -> Optional[int]:
        try:
            return self.internal_ids.index(name)
        except ValueError:
            return None

    def get_internal_id_name(self, internal_id: int) -> Optional[str]:
        return _get(self.internal_ids, internal_id)

    def find_internal_ids(self, fragment: str) -> List[str]:
        return [name for name in self.internal_ids if fragment in name]

    def add_internal_id(self, name: str) -> int:
        if self.get_internal_id(name) is not None:
            raise DuplicateInternalIdError(
                code=E_DUP_INTERNAL_ID,
                message=f"InternalId already exists: {name}",
                context={"internal_id": name},
            )
        self.internal_ids.append(name)
        return len(self.internal_ids) - 1

    # Positional lookups -------------------------------------------------------
    def get_key(self, key_id: Optional[int]) -> Optional[KeyEntry]:
        return _get(self.key_table.keys, key_id)

    def get_bucket(self, key_id: Optional[int]) -> Optional[BucketEntry]:
        return _get(self.bucket_table.buckets, key_id)

    def get_entry(self, entry_id: Optional[int]) -> Optional[EntryRecord]:
        return _get(self.entry_table.entries, entry_id)

    def get_entry_by_internal_id(self, internal_id: int) -> Optional[EntryRecord]:
        return self.get_entry(self.get_entry_id_by_internal_id(internal_id))

    def get_entry_id_by_internal_id(self, internal_id: int) -> Optional[int]:
        for i, entry in enumerate(self.entry_table.entries):
            if entry.internal_id == internal_id:
                return i
        return None

    def get_extra(self, extra_id: Optional[int]) -> Optional[ExtraRecord]:
        """Record starting at byte offset ``extra_id`` of the encoded stream."""
        if extra_id is None or extra_id < 0:
            return None
        offset = 0
        for rec in self.extra_data.records:
            if offset == extra_id:
                return rec
            if offset > extra_id:
                break
            offset += rec.size
        return None

    def get_extra_at(self, index: int) -> Optional[ExtraRecord]:
        return _get(self.extra_data.records, index)

    # Offsets ------------------------------------------------------------------
    def next_key_byte_offset(self) -> int:
        if not self.bucket_table.buckets or not self.key_table.keys:
            return 0
        last_bucket = self.bucket_table.buckets[-1]
        last_key = self.key_table.keys[-1]
        return last_bucket.key_data_offset + last_key.size

    def next_extra_byte_offset(self) -> int:
        return self.extra_data.byte_size

    # Mutation -----------------------------------------------------------------
    def add_key(self, key: KeyEntry) -> int:
        """Append ``key`` with a bucket selecting the next entry to be added."""
        return self.add_dependency_key(key, [len(self.entry_table)])

    def _require_parallel_tables(self) -> None:
        # Bucket i belongs to key i.
        if len(self.key_table) != len(self.bucket_table):
            raise TableMismatchError(
                code=E_TABLE_MISMATCH,
                message="Cannot append a key: key table has"
                f" {len(self.key_table)} keys but bucket table has"
                f" {len(self.bucket_table)} buckets",
                context={
                    "keys": len(self.key_table),
                    "buckets": len(self.bucket_table),
                },
            )

    def add_dependency_key(self, key: KeyEntry, dependencies: Sequence[int]) -> int:
        self._require_parallel_tables()
        key_data_offset = self.next_key_byte_offset()
        self.key_table.keys.append(key)
        self.bucket_table.buckets.append(
            BucketEntry(key_data_offset, list(dependencies))
        )
        return len(self.key_table) - 1

    def add_extra_data(self, extra: ExtraRecord) -> int:
        offset = self.next_extra_byte_offset()
        self.extra_data.records.append(extra)
        return offset

    def unique_random_hash(self) -> int:
        taken = {k.value for k in self.key_table.keys if isinstance(k, HashKey)}
        value = self.rng.randint(I32_MIN, I32_MAX)
        while value in taken:
            value = self.rng.randint(I32_MIN, I32_MAX)
        return value

    def add_bundle_entry(
        self, internal_id: str, key: str, extra: ExtraRecord
    ) -> int:
        """Append a bundle entry and return its entry id."""
        self._require_parallel_tables()
        iid = self.add_internal_id(internal_id)
        primary_key = self.add_key(StringKey(key))
        entry = EntryRecord(
            internal_id=iid,
            provider_index=PROVIDER_INDEX_BUNDLE,
            dependency_key=None,
            dependency_hash=0,
            extra_data_id=self.add_extra_data(extra),
            primary_key=primary_key,
            resource_type=RESOURCE_TYPE_BUNDLE,
        )
        self.entry_table.entries.append(entry)
        logger.debug("Added bundle %s (entry %d)", internal_id, len(self.entry_table) - 1)
        return len(self.entry_table) - 1

    def add_prefab_entry(
        self, internal_id: str, key: str, dependencies: Iterable[str]
    ) -> int:
        """Append a prefab entry depending on already registered entries.

        Dependency names that do not resolve to an entry are dropped.
        """
        self._require_parallel_tables()
        iid = self.add_internal_id(internal_id)
        primary_key = self.add_key(StringKey(key))
        hash_value = self.unique_random_hash()

        resolved: List[int] = []
        for name in dependencies:
            dep_iid = self.get_internal_id(name)
            entry_id = (
                None
                if dep_iid is None
                else self.get_entry_id_by_internal_id(dep_iid)
            )
            if entry_id is None:
                logger.debug("Dropping unresolved dependency %s of %s", name, internal_id)
                continue
            resolved.append(entry_id)

        dependency_key = self.add_dependency_key(HashKey(hash_value), resolved)
        entry = EntryRecord(
            internal_id=iid,
            provider_index=PROVIDER_INDEX_PREFAB,
            dependency_key=dependency_key,
            dependency_hash=hash_value,
            extra_data_id=None,
            primary_key=primary_key,
            resource_type=RESOURCE_TYPE_PREFAB,
        )
        self.entry_table.entries.append(entry)
        logger.debug(
            "Added prefab %s (entry %d, %d dependencies)",
            internal_id,
            len(self.entry_table) - 1,
            len(resolved),
        )
        return len(self.entry_table) - 1

    # Dependencies -------------------------------------------------------------
    def get_dependencies(self, entry: EntryRecord) -> Optional[List[int]]:
        return resolver.get_dependencies(self, entry)

    def transitive_dependencies(self, entries: Sequence[int]) -> List[int]:
        return resolver.transitive_dependencies(self, entries)
