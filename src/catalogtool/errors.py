"""Error definitions for catalogtool."""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Optional

E_DECODE = "E_DECODE"
E_ENCODE = "E_ENCODE"
E_DUP_INTERNAL_ID = "E_DUP_INTERNAL_ID"
E_MISSING_INTERNAL_ID = "E_MISSING_INTERNAL_ID"
E_MISSING_ENTRY = "E_MISSING_ENTRY"
E_MISSING_KEY = "E_MISSING_KEY"
E_MISSING_EXTRA = "E_MISSING_EXTRA"
E_NOT_A_PREFAB = "E_NOT_A_PREFAB"
E_DEPENDENCY_CYCLE = "E_DEPENDENCY_CYCLE"
E_DOCUMENT = "E_DOCUMENT"
E_ADDITIONS = "E_ADDITIONS"
E_CONTAINER = "E_CONTAINER"
E_TABLE_MISMATCH = "E_TABLE_MISMATCH"


@dataclass
class CatalogError(Exception):
    code: str
    message: str
    context: Optional[Dict[str, Any]] = None

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.code}: {self.message}" + (
            f" | ctx={self.context}" if self.context else ""
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "context": self.context or {},
        }


class TableEncodeError(CatalogError):
    pass


class DuplicateInternalIdError(CatalogError):
    pass


class DependencyCycleError(CatalogError):
    pass


class CatalogDocumentError(CatalogError):
    pass


class AdditionsError(CatalogError):
    pass


class InternalIdLookupError(CatalogError):
    pass


class ContainerUnavailableError(CatalogError):
    pass


class TableMismatchError(CatalogError):
    pass


class TableDecodeError(CatalogError):
    """Malformed table bytes.

    ``context`` always carries ``table``, ``index`` (record number, ``None``
    for the count prefix), ``offset`` (byte position) and ``reason``.
    """

    @property
    def table(self) -> str:
        return (self.context or {}).get("table", "")

    @property
    def index(self) -> Optional[int]:
        return (self.context or {}).get("index")

    @property
    def reason(self) -> str:
        return (self.context or {}).get("reason", "")


def decode_error(
    table: str, index: Optional[int], offset: int, reason: str
) -> TableDecodeError:
    where = "count prefix" if index is None else f"record {index}"
    return TableDecodeError(
        code=E_DECODE,
        message=f"{table}: {reason} at {where} (offset {offset})",
        context={
            "table": table,
            "index": index,
            "offset": offset,
            "reason": reason,
        },
    )


def encode_error(
    table: str, index: int, message: str
) -> TableEncodeError:
    return TableEncodeError(
        code=E_ENCODE,
        message=f"{table}: {message} at record {index}",
        context={"table": table, "index": index},
    )


__all__ = [
    "CatalogError",
    "TableDecodeError",
    "TableEncodeError",
    "DuplicateInternalIdError",
    "DependencyCycleError",
    "CatalogDocumentError",
    "AdditionsError",
    "InternalIdLookupError",
    "ContainerUnavailableError",
    "TableMismatchError",
    "decode_error",
    "encode_error",
    "E_DECODE",
    "E_ENCODE",
    "E_DUP_INTERNAL_ID",
    "E_MISSING_INTERNAL_ID",
    "E_MISSING_ENTRY",
    "E_MISSING_KEY",
    "E_MISSING_EXTRA",
    "E_NOT_A_PREFAB",
    "E_DEPENDENCY_CYCLE",
    "E_DOCUMENT",
    "E_ADDITIONS",
    "E_CONTAINER",
    "E_TABLE_MISMATCH",
]
