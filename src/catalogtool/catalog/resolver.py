"""Dependency resolution across the bucket and entry tables.

An entry's dependency set is the bucket selected by its ``dependency_key``.
Bundle entries carry no dependency key; prefab entries point at a hash-keyed
bucket listing the entries (usually bundles) they need loaded first.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterator, List, Optional, Sequence, Tuple

from ..errors import DependencyCycleError, E_DEPENDENCY_CYCLE
from ..tables import EntryRecord

if TYPE_CHECKING:  # pragma: no cover
    from .catalog import Catalog

__all__ = ["get_dependencies", "transitive_dependencies"]


def get_dependencies(
    catalog: "Catalog", entry: EntryRecord
) -> Optional[List[int]]:
    """Return the entry ids selected by ``entry.dependency_key``.

    ``None`` when the entry has no dependency key or the key does not index a
    bucket; an empty list is a valid (empty) dependency set.
    """
    if entry.dependency_key is None:
        return None
    bucket = catalog.get_bucket(entry.dependency_key)
    if bucket is None:
        return None
    return list(bucket.entries)


def transitive_dependencies(
    catalog: "Catalog", entries: Sequence[int]
) -> List[int]:
    """Depth-first expansion of ``entries``.

    The input ids come first, followed by the expansion of each input's
    dependency set in input order. Duplicates are kept. A cycle on the current
    expansion path raises :class:`DependencyCycleError`.
    """
    # Each frame walks one dependency list; ``path`` holds the entries whose
    # expansion is in progress, outermost first.
    result = list(entries)
    stack: List[Tuple[Iterator[int], Tuple[int, ...]]] = [(iter(entries), ())]
    while stack:
        pending, path = stack[-1]
        entry_id = next(pending, None)
        if entry_id is None:
            stack.pop()
            continue
        entry = catalog.get_entry(entry_id)
        if entry is None:
            continue
        deps = get_dependencies(catalog, entry)
        if not deps:
            continue
        if entry_id in path:
            cycle = list(path[path.index(entry_id) :]) + [entry_id]
            raise DependencyCycleError(
                code=E_DEPENDENCY_CYCLE,
                message="Dependency cycle: "
                + " -> ".join(str(e) for e in cycle),
                context={"cycle": cycle},
            )
        result.extend(deps)
        stack.append((iter(deps), path + (entry_id,)))
    return result
