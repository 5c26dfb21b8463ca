"""Binary layout constants for the catalog tables."""

from __future__ import annotations

KEY_TAG_STRING = 0
KEY_TAG_HASH = 4

# tag(u8) + length(u32)
STRING_KEY_OVERHEAD = 5
# tag(u8) + value(i32)
HASH_KEY_SIZE = 5

# internal_id, provider_index, dependency_key, dependency_hash,
# extra_data_id, primary_key, resource_type
ENTRY_RECORD_FORMAT = "<IIiiiii"
ENTRY_RECORD_SIZE = 28

# tag(u8) + assembly_len(u8) + class_len(u8) + json_len(i32)
EXTRA_RECORD_OVERHEAD = 7
EXTRA_NAME_MAX_LENGTH = 0xFF

NO_INDEX = -1

PROVIDER_INDEX_BUNDLE = 0
PROVIDER_INDEX_PREFAB = 2
RESOURCE_TYPE_BUNDLE = 0
RESOURCE_TYPE_PREFAB = 4

I32_MIN = -(2**31)
I32_MAX = 2**31 - 1
U32_MAX = 2**32 - 1
