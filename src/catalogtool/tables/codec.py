"""Pure binary codec for the four catalog tables.

Public functions:
- encode_key_table / decode_key_table
- encode_bucket_table / decode_bucket_table
- encode_entry_table / decode_entry_table
- encode_extra_data / decode_extra_data
- encode_table / decode_table (dispatch on table type / kind)

All integers are little-endian and fixed width, with no padding. Decoders raise
:class:`TableDecodeError` naming the table, the record index and the reason;
encoders raise :class:`TableEncodeError` for values the layout cannot hold.
Sentinel ``-1`` indices on the wire map to ``None`` in the models; any other
negative index is rejected on decode, so every decoded table encodes again.
"""

from __future__ import annotations

import struct
from typing import Optional, Union

from ..errors import decode_error, encode_error
from .constants import (
    KEY_TAG_STRING,
    KEY_TAG_HASH,
    ENTRY_RECORD_FORMAT,
    EXTRA_NAME_MAX_LENGTH,
    NO_INDEX,
    I32_MIN,
    I32_MAX,
    U32_MAX,
)
from .models import (
    StringKey,
    HashKey,
    BucketEntry,
    EntryRecord,
    ExtraRecord,
    KeyTable,
    BucketTable,
    EntryTable,
    ExtraDataStream,
)

__all__ = [
    "TABLE_KINDS",
    "encode_key_table",
    "decode_key_table",
    "encode_bucket_table",
    "decode_bucket_table",
    "encode_entry_table",
    "decode_entry_table",
    "encode_extra_data",
    "decode_extra_data",
    "encode_table",
    "decode_table",
]

KEY_TABLE = "key_table"
BUCKET_TABLE = "bucket_table"
ENTRY_TABLE = "entry_table"
EXTRA_DATA = "extra_data"

TABLE_KINDS = (KEY_TABLE, BUCKET_TABLE, ENTRY_TABLE, EXTRA_DATA)

AnyTable = Union[KeyTable, BucketTable, EntryTable, ExtraDataStream]


class _Reader:
    """Bounds-checked cursor over a byte buffer."""

    __slots__ = ("data", "pos", "table", "index")

    def __init__(self, data: bytes, table: str) -> None:
        self.data = bytes(data)
        self.pos = 0
        self.table = table
        self.index: Optional[int] = None

    @property
    def remaining(self) -> int:
        return len(self.data) - self.pos

    def fail(self, reason: str, offset: Optional[int] = None):
        return decode_error(
            self.table,
            self.index,
            self.pos if offset is None else offset,
            reason,
        )

    def take(self, size: int, label: str) -> bytes:
        if size > self.remaining:
            raise self.fail(
                f"truncated input reading {label}: need {size} bytes,"
                f" {self.remaining} left"
            )
        out = self.data[self.pos : self.pos + size]
        self.pos += size
        return out

    def unpack(self, fmt: str, label: str) -> tuple:
        raw = self.take(struct.calcsize(fmt), label)
        return struct.unpack(fmt, raw)

    def u8(self, label: str) -> int:
        return self.unpack("<B", label)[0]

    def u32(self, label: str) -> int:
        return self.unpack("<I", label)[0]

    def i32(self, label: str) -> int:
        return self.unpack("<i", label)[0]

    def text(self, size: int, label: str) -> str:
        start = self.pos
        raw = self.take(size, label)
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise self.fail(
                f"invalid UTF-8 in {label}: {e.reason}", offset=start + e.start
            ) from e


def _opt_index(r: _Reader, value: int, label: str, offset: int) -> Optional[int]:
    if value == NO_INDEX:
        return None
    if value < 0:
        raise r.fail(f"negative {label} {value}", offset)
    return value


def _wire_index(value: Optional[int]) -> int:
    return NO_INDEX if value is None else value


def _check_range(
    table: str, index: int, label: str, value: int, lo: int, hi: int
) -> int:
    if not isinstance(value, int) or value < lo or value > hi:
        raise encode_error(
            table, index, f"{label}={value!r} out of range [{lo}, {hi}]"
        )
    return value


# Key table -------------------------------------------------------------------


def encode_key_table(table: KeyTable) -> bytes:
    out = bytearray(struct.pack("<I", len(table.keys)))
    for i, key in enumerate(table.keys):
        if isinstance(key, StringKey):
            payload = key.text.encode("utf-8")
            out += struct.pack("<BI", KEY_TAG_STRING, len(payload))
            out += payload
        elif isinstance(key, HashKey):
            value = _check_range(
                KEY_TABLE, i, "hash", key.value, I32_MIN, I32_MAX
            )
            out += struct.pack("<Bi", KEY_TAG_HASH, value)
        else:
            raise encode_error(
                KEY_TABLE, i, f"unsupported key type {type(key).__name__}"
            )
    return bytes(out)


def decode_key_table(data: bytes) -> KeyTable:
    r = _Reader(data, KEY_TABLE)
    count = r.u32("count")
    table = KeyTable()
    for i in range(count):
        r.index = i
        tag_offset = r.pos
        tag = r.u8("tag")
        if tag == KEY_TAG_STRING:
            length = r.u32("string length")
            table.keys.append(StringKey(r.text(length, "string key")))
        elif tag == KEY_TAG_HASH:
            table.keys.append(HashKey(r.i32("hash key")))
        else:
            raise r.fail(f"invalid key tag {tag}", offset=tag_offset)
    return table


# Bucket table ----------------------------------------------------------------


def encode_bucket_table(table: BucketTable) -> bytes:
    out = bytearray(struct.pack("<I", len(table.buckets)))
    for i, bucket in enumerate(table.buckets):
        offset = _check_range(
            BUCKET_TABLE, i, "key_data_offset", bucket.key_data_offset, 0, U32_MAX
        )
        out += struct.pack("<II", offset, len(bucket.entries))
        for entry_id in bucket.entries:
            _check_range(BUCKET_TABLE, i, "entry id", entry_id, 0, U32_MAX)
        out += struct.pack(f"<{len(bucket.entries)}I", *bucket.entries)
    return bytes(out)


def decode_bucket_table(data: bytes) -> BucketTable:
    r = _Reader(data, BUCKET_TABLE)
    count = r.u32("count")
    table = BucketTable()
    for i in range(count):
        r.index = i
        key_data_offset, n = r.unpack("<II", "bucket header")
        entries = list(r.unpack(f"<{n}I", "bucket entries")) if n else []
        table.buckets.append(BucketEntry(key_data_offset, entries))
    return table


# Entry table -----------------------------------------------------------------


def encode_entry_table(table: EntryTable) -> bytes:
    out = bytearray(struct.pack("<I", len(table.entries)))
    for i, e in enumerate(table.entries):
        fields = (
            _check_range(ENTRY_TABLE, i, "internal_id", e.internal_id, 0, U32_MAX),
            _check_range(
                ENTRY_TABLE, i, "provider_index", e.provider_index, 0, U32_MAX
            ),
            _check_range(
                ENTRY_TABLE,
                i,
                "dependency_key",
                _wire_index(e.dependency_key),
                NO_INDEX,
                I32_MAX,
            ),
            _check_range(
                ENTRY_TABLE, i, "dependency_hash", e.dependency_hash, I32_MIN, I32_MAX
            ),
            _check_range(
                ENTRY_TABLE,
                i,
                "extra_data_id",
                _wire_index(e.extra_data_id),
                NO_INDEX,
                I32_MAX,
            ),
            _check_range(
                ENTRY_TABLE, i, "primary_key", e.primary_key, I32_MIN, I32_MAX
            ),
            _check_range(
                ENTRY_TABLE, i, "resource_type", e.resource_type, I32_MIN, I32_MAX
            ),
        )
        out += struct.pack(ENTRY_RECORD_FORMAT, *fields)
    return bytes(out)


def decode_entry_table(data: bytes) -> EntryTable:
    r = _Reader(data, ENTRY_TABLE)
    count = r.u32("count")
    table = EntryTable()
    for i in range(count):
        r.index = i
        start = r.pos
        (
            internal_id,
            provider_index,
            dependency_key,
            dependency_hash,
            extra_data_id,
            primary_key,
            resource_type,
        ) = r.unpack(ENTRY_RECORD_FORMAT, "entry record")
        table.entries.append(
            EntryRecord(
                internal_id=internal_id,
                provider_index=provider_index,
                dependency_key=_opt_index(
                    r, dependency_key, "dependency_key", start + 8
                ),
                dependency_hash=dependency_hash,
                extra_data_id=_opt_index(
                    r, extra_data_id, "extra_data_id", start + 16
                ),
                primary_key=primary_key,
                resource_type=resource_type,
            )
        )
    return table


# Extra data ------------------------------------------------------------------


def _encode_short_name(index: int, label: str, value: str) -> bytes:
    raw = value.encode("utf-8")
    if len(raw) > EXTRA_NAME_MAX_LENGTH:
        raise encode_error(
            EXTRA_DATA,
            index,
            f"{label} is {len(raw)} bytes, limit is {EXTRA_NAME_MAX_LENGTH}",
        )
    return struct.pack("<B", len(raw)) + raw


def encode_extra_data(stream: ExtraDataStream) -> bytes:
    out = bytearray()
    for i, rec in enumerate(stream.records):
        kind = _check_range(EXTRA_DATA, i, "kind", int(rec.kind), 0, 0xFF)
        json_raw = rec.json_text.encode("utf-8")
        out += struct.pack("<B", kind)
        out += _encode_short_name(i, "assembly_name", rec.assembly_name)
        out += _encode_short_name(i, "class_name", rec.class_name)
        out += struct.pack("<i", len(json_raw))
        out += json_raw
    return bytes(out)


def decode_extra_data(data: bytes) -> ExtraDataStream:
    # No count prefix: records run until the input is exhausted. The tag is
    # kept on the record but the layout is the same for every tag.
    r = _Reader(data, EXTRA_DATA)
    stream = ExtraDataStream()
    i = 0
    while r.remaining:
        r.index = i
        kind = r.u8("tag")
        assembly_name = r.text(r.u8("assembly name length"), "assembly name")
        class_name = r.text(r.u8("class name length"), "class name")
        json_len_offset = r.pos
        json_len = r.i32("json length")
        if json_len < 0:
            raise r.fail(f"negative json length {json_len}", json_len_offset)
        json_text = r.text(json_len, "json text")
        stream.records.append(
            ExtraRecord(
                assembly_name=assembly_name,
                class_name=class_name,
                json_text=json_text,
                kind=kind,
            )
        )
        i += 1
    return stream


# Dispatch --------------------------------------------------------------------

_DECODERS = {
    KEY_TABLE: decode_key_table,
    BUCKET_TABLE: decode_bucket_table,
    ENTRY_TABLE: decode_entry_table,
    EXTRA_DATA: decode_extra_data,
}


def encode_table(table: AnyTable) -> bytes:
    if isinstance(table, KeyTable):
        return encode_key_table(table)
    if isinstance(table, BucketTable):
        return encode_bucket_table(table)
    if isinstance(table, EntryTable):
        return encode_entry_table(table)
    if isinstance(table, ExtraDataStream):
        return encode_extra_data(table)
    raise TypeError(f"Not a catalog table: {type(table).__name__}")


def decode_table(kind: str, data: bytes) -> AnyTable:
    try:
        decoder = _DECODERS[kind]
    except KeyError:
        raise ValueError(
            f"Unknown table kind {kind!r}; expected one of {TABLE_KINDS}"
        ) from None
    return decoder(data)

