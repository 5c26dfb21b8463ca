"""catalogtool - consult and edit Unity Addressables catalogs."""

from .catalog import Catalog, CatalogDocument, load_catalog, save_catalog
from .errors import CatalogError, DuplicateInternalIdError, TableDecodeError

__all__ = [
    "Catalog",
    "CatalogDocument",
    "load_catalog",
    "save_catalog",
    "CatalogError",
    "DuplicateInternalIdError",
    "TableDecodeError",
]

__version__ = "0.1.0"
