"""JSON envelope of an addressables catalog.

The catalog JSON carries scalar/array fields that this tool never interprets
(locator id, provider data, resource types ...) plus four binary tables stored
as base64 strings. Loading keeps the raw document so every untouched field is
written back as it was read, in its original order.
"""

from __future__ import annotations

import base64
import binascii
import json
from pathlib import Path
from typing import Any, Dict

from ..errors import CatalogDocumentError, E_DOCUMENT
from ..tables import (
    decode_key_table,
    decode_bucket_table,
    decode_entry_table,
    decode_extra_data,
    encode_table,
)
from .catalog import Catalog

__all__ = [
    "CatalogDocument",
    "INTERNAL_IDS_FIELD",
    "KEY_DATA_FIELD",
    "BUCKET_DATA_FIELD",
    "ENTRY_DATA_FIELD",
    "EXTRA_DATA_FIELD",
    "loads_catalog",
    "load_catalog",
    "dumps_catalog",
    "save_catalog",
]

INTERNAL_IDS_FIELD = "m_InternalIds"
KEY_DATA_FIELD = "m_KeyDataString"
BUCKET_DATA_FIELD = "m_BucketDataString"
ENTRY_DATA_FIELD = "m_EntryDataString"
EXTRA_DATA_FIELD = "m_ExtraDataString"

_TABLE_DECODERS = {
    KEY_DATA_FIELD: decode_key_table,
    BUCKET_DATA_FIELD: decode_bucket_table,
    ENTRY_DATA_FIELD: decode_entry_table,
    EXTRA_DATA_FIELD: decode_extra_data,
}


class CatalogDocument(Catalog):
    """A :class:`Catalog` that remembers the JSON document it came from."""

    def __init__(self, raw: Dict[str, Any], **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.raw = raw

    def to_dict(self) -> Dict[str, Any]:
        out = dict(self.raw)
        out[INTERNAL_IDS_FIELD] = list(self.internal_ids)
        out[KEY_DATA_FIELD] = _b64(encode_table(self.key_table))
        out[BUCKET_DATA_FIELD] = _b64(encode_table(self.bucket_table))
        out[ENTRY_DATA_FIELD] = _b64(encode_table(self.entry_table))
        out[EXTRA_DATA_FIELD] = _b64(encode_table(self.extra_data))
        return out


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def _field(raw: Dict[str, Any], name: str) -> Any:
    if name not in raw:
        raise CatalogDocumentError(
            code=E_DOCUMENT,
            message=f"Catalog is missing field '{name}'",
            context={"field": name},
        )
    return raw[name]


def _decode_field(raw: Dict[str, Any], name: str):
    value = _field(raw, name)
    if not isinstance(value, str):
        raise CatalogDocumentError(
            code=E_DOCUMENT,
            message=f"'{name}' must be a base64 string",
            context={"field": name},
        )
    try:
        data = base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError) as e:
        raise CatalogDocumentError(
            code=E_DOCUMENT,
            message=f"'{name}' is not valid base64: {e}",
            context={"field": name},
        ) from e
    return _TABLE_DECODERS[name](data)


def loads_catalog(text: str | bytes, **kwargs: Any) -> CatalogDocument:
    """Parse a catalog JSON document; extra kwargs go to :class:`Catalog`."""
    try:
        raw = json.loads(text)
    except json.JSONDecodeError as e:
        raise CatalogDocumentError(
            code=E_DOCUMENT,
            message=f"Invalid catalog JSON: {e}",
            context={"line": e.lineno, "column": e.colno},
        ) from e
    if not isinstance(raw, dict):
        raise CatalogDocumentError(
            code=E_DOCUMENT, message="Root of the catalog must be an object"
        )
    internal_ids = _field(raw, INTERNAL_IDS_FIELD)
    if not isinstance(internal_ids, list) or not all(
        isinstance(i, str) for i in internal_ids
    ):
        raise CatalogDocumentError(
            code=E_DOCUMENT,
            message=f"'{INTERNAL_IDS_FIELD}' must be a list of strings",
            context={"field": INTERNAL_IDS_FIELD},
        )
    return CatalogDocument(
        raw,
        internal_ids=internal_ids,
        key_table=_decode_field(raw, KEY_DATA_FIELD),
        bucket_table=_decode_field(raw, BUCKET_DATA_FIELD),
        entry_table=_decode_field(raw, ENTRY_DATA_FIELD),
        extra_data=_decode_field(raw, EXTRA_DATA_FIELD),
        **kwargs,
    )


def load_catalog(path: str | Path, **kwargs: Any) -> CatalogDocument:
    p = Path(path)
    return loads_catalog(p.read_text(encoding="utf-8"), **kwargs)


def dumps_catalog(catalog: CatalogDocument) -> str:
    return json.dumps(
        catalog.to_dict(), ensure_ascii=False, separators=(",", ":")
    )


def save_catalog(catalog: CatalogDocument, path: str | Path) -> int:
    """Write the catalog JSON, replacing ``path``; returns bytes written."""
    data = dumps_catalog(catalog).encode("utf-8")
    Path(path).write_bytes(data)
    return len(data)
