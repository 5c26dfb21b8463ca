from .catalog import Catalog
from .document import (
    CatalogDocument,
    loads_catalog,
    load_catalog,
    dumps_catalog,
    save_catalog,
)
from .resolver import get_dependencies, transitive_dependencies

__all__ = [
    "Catalog",
    "CatalogDocument",
    "loads_catalog",
    "load_catalog",
    "dumps_catalog",
    "save_catalog",
    "get_dependencies",
    "transitive_dependencies",
]
