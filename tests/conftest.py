from __future__ import annotations

import random
from pathlib import Path

import pytest

from catalogtool.catalog import CatalogDocument, save_catalog
from catalogtool.container import register_container_backend
from catalogtool.reporting import SilentReporter, set_reporter, set_verbosity
from catalogtool.tables import ExtraRecord

RUNTIME = "{UnityEngine.AddressableAssets.Addressables.RuntimePath}/Switch"
BUNDLE_ID = f"{RUNTIME}/fe_assets_unit/model/ubody/cor0af/c069/prefabs/ubody_cor0af_c069.bundle"
BUNDLE_PATH = "fe_assets_unit/model/ubody/cor0af/c069/prefabs/ubody_cor0af_c069.bundle"
PREFAB_ID = "Assets/Share/Addressables/Unit/Model/uBody/Cor0AF/c069/Prefabs/uBody_Cor0AF_c069.prefab"
PREFAB_PATH = "Unit/Model/uBody/Cor0AF/c069/Prefabs/uBody_Cor0AF_c069"

RAW_FIELDS = {
    "m_LocatorId": "AddressablesMainContentCatalog",
    "m_InstanceProviderData": {
        "m_Id": "UnityEngine.ResourceManagement.ResourceProviders.InstanceProvider",
        "m_ObjectType": {
            "m_AssemblyName": "Unity.ResourceManager",
            "m_ClassName": "UnityEngine.ResourceManagement.ResourceProviders.InstanceProvider",
        },
        "m_Data": "",
    },
    "m_SceneProviderData": {
        "m_Id": "UnityEngine.ResourceManagement.ResourceProviders.SceneProvider",
        "m_ObjectType": {
            "m_AssemblyName": "Unity.ResourceManager",
            "m_ClassName": "UnityEngine.ResourceManagement.ResourceProviders.SceneProvider",
        },
        "m_Data": "",
    },
    "m_ResourceProviderData": [],
    "m_ProviderIds": [
        "UnityEngine.ResourceManagement.ResourceProviders.AssetBundleProvider",
        "UnityEngine.ResourceManagement.ResourceProviders.LegacyResourcesProvider",
        "UnityEngine.ResourceManagement.ResourceProviders.BundledAssetProvider",
    ],
    "m_InternalIds": [],
    "m_KeyDataString": "",
    "m_BucketDataString": "",
    "m_EntryDataString": "",
    "m_ExtraDataString": "",
    "m_resourceTypes": [
        {
            "m_AssemblyName": "Unity.ResourceManager",
            "m_ClassName": "UnityEngine.ResourceManagement.ResourceProviders.IAssetBundleResource",
        }
    ],
    "m_InternalIdPrefixes": [],
}


def bundle_extra(json_text: str = '{"m_Hash":"8d1f","m_Crc":0}') -> ExtraRecord:
    return ExtraRecord(
        assembly_name="Unity.ResourceManager, Version=0.0.0.0",
        class_name="UnityEngine.ResourceManagement.ResourceProviders.AssetBundleRequestOptions",
        json_text=json_text,
    )


def build_catalog(seed: int = 1234) -> CatalogDocument:
    """One bundle plus one prefab depending on it."""
    doc = CatalogDocument(dict(RAW_FIELDS), rng=random.Random(seed))
    doc.add_bundle_entry(BUNDLE_ID, BUNDLE_PATH, bundle_extra())
    doc.add_prefab_entry(PREFAB_ID, PREFAB_PATH, [BUNDLE_ID])
    return doc


class FakeBundle:
    """Container backend whose "bundle" is the catalog JSON itself."""

    def __init__(self, path: Path) -> None:
        self.text = path.read_text(encoding="utf-8")

    def take_string(self) -> str:
        return self.text

    def replace_string(self, text: str) -> None:
        self.text = text

    def save(self, path: Path) -> None:
        path.write_text(self.text, encoding="utf-8")


@pytest.fixture(autouse=True)
def _reset_globals():
    set_reporter(SilentReporter())
    set_verbosity(0)
    yield
    register_container_backend(None)


@pytest.fixture
def catalog() -> CatalogDocument:
    return build_catalog()


@pytest.fixture
def catalog_file(tmp_path: Path) -> Path:
    path = tmp_path / "catalog.json"
    save_catalog(build_catalog(), path)
    return path
