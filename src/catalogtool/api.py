"""High-level operations behind the catalogtool commands.

Every function here works on a loaded :class:`CatalogDocument` (or a path) and
turns the catalog's "not found" results into :class:`CatalogError`s so the CLI
has a single place to decide how failures are reported.
"""

from __future__ import annotations

import dataclasses
import random
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from .additions import (
    BundleAddition,
    CatalogAdditions,
    PrefabAddition,
    load_additions,
)
from .catalog import (
    CatalogDocument,
    dumps_catalog,
    load_catalog,
    loads_catalog,
    save_catalog,
)
from .container import load_container
from .errors import (
    CatalogError,
    InternalIdLookupError,
    E_MISSING_ENTRY,
    E_MISSING_EXTRA,
    E_MISSING_INTERNAL_ID,
    E_MISSING_KEY,
    E_NOT_A_PREFAB,
)
from .logging import get_logger, section
from .reporting import get_reporter, task
from .tables import EntryRecord, ExtraRecord, StringKey, encode_table

__all__ = [
    "AddOptions",
    "AddResult",
    "open_catalog",
    "write_catalog",
    "extract_catalog_text",
    "select_extra_template",
    "apply_additions",
    "add_entries",
    "resolve_internal_id",
    "entry_for",
    "dependency_names",
    "dump_entry",
    "inspect_catalog",
]

Chooser = Callable[[str, Sequence[str]], Optional[str]]


@dataclass(slots=True)
class AddOptions:
    catalog_path: Path
    additions_path: Path
    output_path: Path
    bundled: bool = False
    # Positional index of the extra-data record copied onto new bundles;
    # ``None`` selects the last record of the stream.
    extra_index: Optional[int] = None


@dataclass(slots=True)
class AddResult:
    bundles: int
    prefabs: int
    bytes_written: int


def open_catalog(
    path: str | Path,
    *,
    bundled: bool = False,
    rng: random.Random | None = None,
) -> CatalogDocument:
    logger = get_logger()
    if bundled:
        container = load_container(path)
        catalog = loads_catalog(container.take_string(), rng=rng)
    else:
        catalog = load_catalog(path, rng=rng)
    logger.info(
        "Loaded catalog %s (internal_ids=%d keys=%d entries=%d extra=%d)",
        Path(path).name,
        len(catalog.internal_ids),
        len(catalog.key_table),
        len(catalog.entry_table),
        len(catalog.extra_data),
    )
    return catalog


def write_catalog(
    catalog: CatalogDocument,
    source_path: str | Path,
    output_path: str | Path,
    *,
    bundled: bool = False,
) -> int:
    """Write ``catalog`` to ``output_path``; returns the JSON size in bytes.

    With ``bundled`` the container at ``source_path`` is reloaded, its text
    replaced and the whole container written to ``output_path``.
    """
    if bundled:
        text = dumps_catalog(catalog)
        container = load_container(source_path)
        container.replace_string(text)
        container.save(Path(output_path))
        return len(text.encode("utf-8"))
    return save_catalog(catalog, output_path)


def extract_catalog_text(container_path: str | Path, output_path: str | Path) -> int:
    text = load_container(container_path).take_string()
    data = text.encode("utf-8")
    Path(output_path).write_bytes(data)
    return len(data)


def select_extra_template(
    catalog: CatalogDocument, index: Optional[int] = None
) -> ExtraRecord:
    """Copy of an existing extra-data record to attach to new bundles."""
    count = len(catalog.extra_data)
    rec = catalog.get_extra_at(count - 1 if index is None else index)
    if rec is None:
        raise CatalogError(
            code=E_MISSING_EXTRA,
            message=(
                "Catalog has no extra data to copy"
                if index is None
                else f"No extra data record at index {index} (stream has {count})"
            ),
            context={"index": index, "count": count},
        )
    return dataclasses.replace(rec)


def apply_additions(
    catalog: CatalogDocument,
    additions: CatalogAdditions,
    extra: ExtraRecord,
) -> Tuple[int, int]:
    """Append bundles then prefabs; returns ``(bundles, prefabs)`` added.

    Bundles go first so prefab dependency names can resolve to them.
    """
    rep = get_reporter()
    total = len(additions.bundles)
    with task("add.bundles", "Add bundle entries", total=total) as stats:
        for bundle in additions.bundles:
            catalog.add_bundle_entry(
                bundle.internal_id, bundle.internal_path, dataclasses.replace(extra)
            )
            rep.advance("add.bundles", item=bundle.internal_path)
        stats["bundles"] = total
    total = len(additions.prefabs)
    with task("add.prefabs", "Add prefab entries", total=total) as stats:
        for prefab in additions.prefabs:
            catalog.add_prefab_entry(
                prefab.internal_id, prefab.internal_path, prefab.dependencies
            )
            rep.advance("add.prefabs", item=prefab.internal_path)
        stats["prefabs"] = total
    return len(additions.bundles), len(additions.prefabs)


def add_entries(options: AddOptions) -> AddResult:
    logger = get_logger()
    rep = get_reporter()
    catalog = open_catalog(options.catalog_path, bundled=options.bundled)
    additions = load_additions(options.additions_path)
    extra = select_extra_template(catalog, options.extra_index)
    logger.info(
        "Extra data template: %s / %s", extra.assembly_name, extra.class_name
    )
    with section(f"Add entries from {Path(options.additions_path).name}"):
        bundles, prefabs = apply_additions(catalog, additions, extra)
    with task("save", "Write catalog") as stats:
        bytes_written = write_catalog(
            catalog,
            options.catalog_path,
            options.output_path,
            bundled=options.bundled,
        )
        stats["bytes"] = bytes_written
    rep.summary(
        "add",
        bundles=bundles,
        prefabs=prefabs,
        entries=len(catalog.entry_table),
        output=Path(options.output_path).name,
        bytes=bytes_written,
    )
    return AddResult(bundles=bundles, prefabs=prefabs, bytes_written=bytes_written)


def resolve_internal_id(
    catalog: CatalogDocument, query: str, chooser: Chooser | None = None
) -> int:
    """Resolve ``query`` to an InternalId.

    An exact match wins. Otherwise every registered id containing ``query`` is
    a candidate; a single candidate is taken as is, several are handed to
    ``chooser`` (which returns one of them or ``None``).
    """
    iid = catalog.get_internal_id(query)
    if iid is not None:
        return iid
    candidates = catalog.find_internal_ids(query)
    picked: Optional[str] = None
    if len(candidates) == 1:
        picked = candidates[0]
    elif candidates and chooser is not None:
        picked = chooser(query, candidates)
    if picked is None:
        if candidates:
            message = (
                f"InternalId '{query}' is ambiguous ({len(candidates)} matches)"
            )
        else:
            message = (
                f"Couldn't find the InternalId '{query}'."
                " Make sure you've got the spelling right."
            )
        raise InternalIdLookupError(
            code=E_MISSING_INTERNAL_ID,
            message=message,
            context={"query": query, "candidates": candidates},
        )
    return catalog.internal_ids.index(picked)


def entry_for(catalog: CatalogDocument, internal_id: int) -> Tuple[int, EntryRecord]:
    entry_id = catalog.get_entry_id_by_internal_id(internal_id)
    entry = catalog.get_entry(entry_id)
    if entry_id is None or entry is None:
        raise CatalogError(
            code=E_MISSING_ENTRY,
            message="No entry found for this InternalId. Is the file corrupted?",
            context={"internal_id": catalog.get_internal_id_name(internal_id)},
        )
    return entry_id, entry


def _entry_name(catalog: CatalogDocument, entry_id: int) -> str:
    entry = catalog.get_entry(entry_id)
    name = None if entry is None else catalog.get_internal_id_name(entry.internal_id)
    if name is None:
        raise CatalogError(
            code=E_MISSING_ENTRY,
            message=f"Dependency entry {entry_id} does not resolve to an InternalId",
            context={"entry_id": entry_id},
        )
    return name


def _prefab_dependencies(catalog: CatalogDocument, entry: EntryRecord) -> List[int]:
    deps = catalog.get_dependencies(entry)
    if deps is None:
        raise CatalogError(
            code=E_NOT_A_PREFAB,
            message=(
                "No dependency found for this InternalId."
                " Are you sure this is a prefab?"
            ),
            context={"internal_id": catalog.get_internal_id_name(entry.internal_id)},
        )
    return deps


def dependency_names(
    catalog: CatalogDocument, internal_id: int, *, transitive: bool = False
) -> List[str]:
    _, entry = entry_for(catalog, internal_id)
    deps = _prefab_dependencies(catalog, entry)
    if transitive:
        deps = catalog.transitive_dependencies(deps)
    return [_entry_name(catalog, d) for d in deps]


def _internal_path(catalog: CatalogDocument, entry: EntryRecord) -> str:
    key = catalog.get_key(entry.primary_key)
    if key is None:
        raise CatalogError(
            code=E_MISSING_KEY,
            message=f"Primary key {entry.primary_key} does not exist",
            context={"key_id": entry.primary_key},
        )
    if not isinstance(key, StringKey):
        raise CatalogError(
            code=E_MISSING_KEY,
            message="Primary key is a hash key. Is the file corrupted?",
            context={"key_id": entry.primary_key},
        )
    return key.text


def dump_entry(catalog: CatalogDocument, internal_id: int) -> CatalogAdditions:
    """Describe an existing entry as an additions document.

    A dependency hash of ``0`` marks a bundle. Prefabs are dumped with their
    dependency names plus the bundle record of their first dependency.
    """
    _, entry = entry_for(catalog, internal_id)
    name = catalog.get_internal_id_name(internal_id) or ""
    internal_path = _internal_path(catalog, entry)
    out = CatalogAdditions()
    if entry.dependency_hash == 0:
        out.bundles.append(BundleAddition(name, internal_path))
        return out
    deps = _prefab_dependencies(catalog, entry)
    if deps:
        bundle_entry = catalog.get_entry(deps[0])
        if bundle_entry is None:
            raise CatalogError(
                code=E_MISSING_ENTRY,
                message=f"Dependency entry {deps[0]} does not exist",
                context={"entry_id": deps[0]},
            )
        out.bundles.append(
            BundleAddition(
                _entry_name(catalog, deps[0]),
                _internal_path(catalog, bundle_entry),
            )
        )
    out.prefabs.append(
        PrefabAddition(
            internal_id=name,
            internal_path=internal_path,
            dependencies=[_entry_name(catalog, d) for d in deps],
        )
    )
    return out


def inspect_catalog(catalog: CatalogDocument) -> Dict[str, Any]:
    bundles = sum(1 for e in catalog.entry_table.entries if e.dependency_key is None)
    return {
        "internal_ids": len(catalog.internal_ids),
        "keys": len(catalog.key_table),
        "buckets": len(catalog.bucket_table),
        "entries": len(catalog.entry_table),
        "entries_without_dependencies": bundles,
        "extra_records": len(catalog.extra_data),
        "table_bytes": {
            "keys": len(encode_table(catalog.key_table)),
            "buckets": len(encode_table(catalog.bucket_table)),
            "entries": len(encode_table(catalog.entry_table)),
            "extra": len(encode_table(catalog.extra_data)),
        },
        "next_key_byte_offset": catalog.next_key_byte_offset(),
        "next_extra_byte_offset": catalog.next_extra_byte_offset(),
    }
