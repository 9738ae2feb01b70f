from .catalog import Catalog
from .config import CatalogSettings, open_store
from .storage import PersistentStore, StorageError, MemoryMedium, FileMedium
from .repositories import ComponentRepository, ProductRepository, SupplierRepository, DraftStore
from .composition import BomComposer, compute_totals, reorder, validate_for_save

__all__ = [
    "Catalog",
    "CatalogSettings",
    "open_store",
    "PersistentStore",
    "StorageError",
    "MemoryMedium",
    "FileMedium",
    "ComponentRepository",
    "ProductRepository",
    "SupplierRepository",
    "DraftStore",
    "BomComposer",
    "compute_totals",
    "reorder",
    "validate_for_save",
]
