"""Catalog facade: one store, its repositories and the BOM composer, wired together."""

from typing import Optional

from .composition import BomComposer
from .config import CatalogSettings, open_store
from .repositories import ComponentRepository, DraftStore, ProductRepository, SupplierRepository
from .storage import PersistentStore


class Catalog:
    """
    Entry point for UI flows.

    Every creation wizard works against the same Catalog (and therefore the
    same store), so they all see one consistent dataset.
    """

    def __init__(self, store: PersistentStore, debug: bool = False):
        self.store = store
        self.components = ComponentRepository(store, debug=debug)
        self.products = ProductRepository(store, debug=debug)
        self.suppliers = SupplierRepository(store, debug=debug)
        self.drafts = DraftStore(store)
        self.boms = BomComposer(self.products, self.components)

    @classmethod
    def open(cls, settings: Optional[CatalogSettings] = None, debug: bool = False) -> "Catalog":
        return cls(open_store(settings), debug=debug)
