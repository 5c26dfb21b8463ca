"""Catalog additions file: bundles and prefabs to append to a catalog.

The file has two lists::

    [[bundles]]
    internal_id = "{UnityEngine.AddressableAssets.Addressables.RuntimePath}/Switch/ubody_c069.bundle"
    internal_path = "fe_assets_unit/model/ubody/c069/prefabs/ubody_c069.bundle"

    [[prefabs]]
    internal_id = "Assets/Share/Addressables/Unit/Model/uBody/c069/Prefabs/uBody_c069.prefab"
    internal_path = "Unit/Model/uBody/c069/Prefabs/uBody_c069"
    dependencies = ["{UnityEngine.AddressableAssets.Addressables.RuntimePath}/Switch/ubody_c069.bundle"]

TOML, YAML and JSON are accepted on load and written on dump, picked by suffix.
"""

from __future__ import annotations

import json
import tomllib
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Any, Dict, List

import tomli_w
import yaml

from .errors import AdditionsError, E_ADDITIONS

__all__ = [
    "BundleAddition",
    "PrefabAddition",
    "CatalogAdditions",
    "parse_additions",
    "load_additions",
    "dump_additions",
]


@dataclass(slots=True)
class BundleAddition:
    internal_id: str
    internal_path: str


@dataclass(slots=True)
class PrefabAddition:
    internal_id: str
    internal_path: str
    dependencies: List[str] = field(default_factory=list)


@dataclass(slots=True)
class CatalogAdditions:
    bundles: List[BundleAddition] = field(default_factory=list)
    prefabs: List[PrefabAddition] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "bundles": [asdict(b) for b in self.bundles],
            "prefabs": [asdict(p) for p in self.prefabs],
        }


def _fail(message: str, path: str) -> AdditionsError:
    return AdditionsError(
        code=E_ADDITIONS, message=message, context={"path": path}
    )


def _str_field(item: Dict[str, Any], key: str, path: str) -> str:
    value = item.get(key)
    if not isinstance(value, str) or not value:
        raise _fail(f"Missing or invalid '{key}'", f"{path}.{key}")
    return value


def _items(data: Dict[str, Any], key: str) -> List[Dict[str, Any]]:
    items = data.get(key, [])
    if items is None:
        return []
    if not isinstance(items, list):
        raise _fail(f"'{key}' must be a list", key)
    for i, item in enumerate(items):
        if not isinstance(item, dict):
            raise _fail("Entry must be an object", f"{key}[{i}]")
    return items


def parse_additions(data: Any) -> CatalogAdditions:
    if not isinstance(data, dict):
        raise _fail("Root of the additions file must be an object", "")
    out = CatalogAdditions()
    for i, item in enumerate(_items(data, "bundles")):
        path = f"bundles[{i}]"
        out.bundles.append(
            BundleAddition(
                internal_id=_str_field(item, "internal_id", path),
                internal_path=_str_field(item, "internal_path", path),
            )
        )
    for i, item in enumerate(_items(data, "prefabs")):
        path = f"prefabs[{i}]"
        deps = item.get("dependencies", [])
        if deps is None:
            deps = []
        if not isinstance(deps, list) or not all(isinstance(d, str) for d in deps):
            raise _fail(
                "'dependencies' must be a list of strings", f"{path}.dependencies"
            )
        out.prefabs.append(
            PrefabAddition(
                internal_id=_str_field(item, "internal_id", path),
                internal_path=_str_field(item, "internal_path", path),
                dependencies=list(deps),
            )
        )
    return out


def load_additions(path: str | Path) -> CatalogAdditions:
    p = Path(path)
    text = p.read_text(encoding="utf-8")
    suffix = p.suffix.lower()
    try:
        if suffix == ".toml":
            data: Any = tomllib.loads(text)
        elif suffix in {".yaml", ".yml"}:
            data = yaml.safe_load(text)
        else:
            data = json.loads(text)
    except (tomllib.TOMLDecodeError, yaml.YAMLError, json.JSONDecodeError) as e:
        raise AdditionsError(
            code=E_ADDITIONS,
            message=f"Could not parse {p.name}: {e}",
            context={"file": str(p)},
        ) from e
    return parse_additions(data)


def dump_additions(additions: CatalogAdditions, path: str | Path) -> None:
    p = Path(path)
    data = additions.to_dict()
    suffix = p.suffix.lower()
    if suffix == ".toml":
        text = tomli_w.dumps(data)
    elif suffix == ".json":
        text = json.dumps(data, indent=2, ensure_ascii=False) + "\n"
    elif suffix in {".yaml", ".yml"}:
        text = yaml.safe_dump(data, sort_keys=False, allow_unicode=True)
    else:
        raise AdditionsError(
            code=E_ADDITIONS,
            message=f"Unsupported additions output format '{p.suffix}'"
            " (use .toml, .yaml, .yml or .json)",
            context={"file": str(p)},
        )
    p.write_text(text, encoding="utf-8")
