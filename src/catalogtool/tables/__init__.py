from .models import (
    ExtraKind,
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
from .codec import (
    TABLE_KINDS,
    encode_key_table,
    decode_key_table,
    encode_bucket_table,
    decode_bucket_table,
    encode_entry_table,
    decode_entry_table,
    encode_extra_data,
    decode_extra_data,
    encode_table,
    decode_table,
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
