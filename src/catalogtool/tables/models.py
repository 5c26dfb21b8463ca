"""Dataclass models for the catalog binary tables."""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import IntEnum
from typing import List, Optional, Union

from .constants import (
    HASH_KEY_SIZE,
    STRING_KEY_OVERHEAD,
    EXTRA_RECORD_OVERHEAD,
)

__all__ = [
    "ExtraKind",
    "StringKey",
    "HashKey",
    "KeyEntry",
    "BucketEntry",
    "EntryRecord",
    "ExtraRecord",
    "KeyTable",
    "BucketTable",
    "EntryTable",
    "ExtraDataStream",
]


class ExtraKind(IntEnum):
    """Leading tag byte of an extra-data record."""

    ASCII_STRING = 0
    UNICODE_STRING = 1
    UINT16 = 2
    UINT32 = 3
    INT32 = 4
    HASH128 = 5
    TYPE = 6
    JSON_OBJECT = 7


@dataclass(frozen=True, slots=True)
class StringKey:
    text: str

    @property
    def size(self) -> int:
        # tag + u32 length + payload
        return len(self.text.encode("utf-8")) + STRING_KEY_OVERHEAD

    def __str__(self) -> str:
        return self.text


@dataclass(frozen=True, slots=True)
class HashKey:
    value: int

    @property
    def size(self) -> int:
        return HASH_KEY_SIZE

    def __str__(self) -> str:
        return str(self.value)


KeyEntry = Union[StringKey, HashKey]


@dataclass(slots=True)
class BucketEntry:
    key_data_offset: int
    entries: List[int] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.entries)


@dataclass(slots=True)
class EntryRecord:
    internal_id: int
    provider_index: int
    dependency_key: Optional[int]
    dependency_hash: int
    extra_data_id: Optional[int]
    primary_key: int
    resource_type: int

    @property
    def has_dependencies(self) -> bool:
        return self.dependency_key is not None


@dataclass(slots=True)
class ExtraRecord:
    assembly_name: str
    class_name: str
    json_text: str = ""
    kind: int = ExtraKind.JSON_OBJECT

    @property
    def size(self) -> int:
        return (
            EXTRA_RECORD_OVERHEAD
            + len(self.assembly_name.encode("utf-8"))
            + len(self.class_name.encode("utf-8"))
            + len(self.json_text.encode("utf-8"))
        )


@dataclass(slots=True)
class KeyTable:
    keys: List[KeyEntry] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.keys)


@dataclass(slots=True)
class BucketTable:
    buckets: List[BucketEntry] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.buckets)


@dataclass(slots=True)
class EntryTable:
    entries: List[EntryRecord] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.entries)


@dataclass(slots=True)
class ExtraDataStream:
    records: List[ExtraRecord] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.records)

    @property
    def byte_size(self) -> int:
        return sum(r.size for r in self.records)
