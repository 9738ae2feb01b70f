"""
Entity repositories over the persistent store.

Each repository owns one collection in the store and implements:
- Identity generation (uuid4, assigned once at creation, never changed)
- Write-through persistence (every mutation is written immediately)
- Tolerant reads (undecodable rows are skipped, never returned half-built)

Repositories do not re-validate business rules; that is the job of the form
layer calling them. Not-found is reported as None (or False for deletes),
never as an exception, so UI flows can show a message and let the user retry.
"""

import copy
import logging
from dataclasses import asdict, is_dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Generic, List, Optional, Sequence, TypeVar, Union
from uuid import uuid4

from .projections import by_workspace
from .schema import (
    Bom,
    BomLine,
    Component,
    Product,
    Supplier,
    PRODUCTS_KEY,
    COMPONENTS_KEY,
    SUPPLIERS_KEY,
    DRAFT_KEY_PREFIX,
)
from .storage import PersistentStore
from .units import projected_weight

logger = logging.getLogger(__name__)

E = TypeVar("E", Component, Product, Supplier)

# Fields callers can never set through create/update
PROTECTED_FIELDS = {"id", "created_at", "updated_at"}


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _plain(value: Any) -> Any:
    """Turn dataclass instances (possibly nested in lists/dicts) into plain dicts."""
    if is_dataclass(value) and not isinstance(value, type):
        return asdict(value)
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    return value


class _EntityRepository(Generic[E]):
    """Shared CRUD over one collection of entities."""

    collection_key: str = ""
    entity_type: Any = None
    workspace_attribute = "workspace_id"

    # Keys stripped from create and update payloads on top of PROTECTED_FIELDS
    unsettable_fields: set = set()

    def __init__(self, store: PersistentStore, debug: bool = False):
        self.store = store
        self.debug = debug

    def _load(self) -> List[E]:
        entities = []
        for index, row in enumerate(self.store.read(self.collection_key)):
            if not isinstance(row, dict) or not row.get("id"):
                logger.warning(
                    f"Skipping unreadable {self.collection_key} row at index {index}"
                )
                continue
            entities.append(self.entity_type.from_dict(row))
        return entities

    def _save(self, entities: List[E]) -> None:
        self.store.write(self.collection_key, [e.to_dict() for e in entities])

    def _prepare(self, entity: E) -> E:
        """Hook for derived fields recomputed on every write."""
        return entity

    def _payload(self, data: Dict[str, Any]) -> Dict[str, Any]:
        plain = _plain(data)
        return {
            k: v for k, v in plain.items()
            if k not in PROTECTED_FIELDS and k not in self.unsettable_fields
        }

    def list(self, workspace_id: Optional[str] = None) -> List[E]:
        entities = self._load()
        if workspace_id is None:
            return entities
        return by_workspace(entities, workspace_id, attribute=self.workspace_attribute)

    def get(self, entity_id: str) -> Optional[E]:
        for entity in self._load():
            if entity.id == entity_id:
                return entity
        return None

    def create(self, draft: Dict[str, Any]) -> E:
        """
        Create an entity from a draft and persist it.

        Args:
            draft: Entity fields; id and timestamps are ignored if present

        Returns:
            The stored entity, with its new identity

        Raises:
            StorageError: If the store rejects the write
        """
        with self.store.locked(self.collection_key):
            entities = self._load()
            existing_ids = {e.id for e in entities}

            entity_id = str(uuid4())
            while entity_id in existing_ids:
                entity_id = str(uuid4())

            now = _now()
            data = self._payload(draft)
            data.update(id=entity_id, created_at=now, updated_at=now)
            entity = self._prepare(self.entity_type.from_dict(data))

            if not entity.id:
                raise ValueError(f"Refusing to store {self.collection_key} entry without identity")

            entities.append(entity)
            self._save(entities)

        if self.debug:
            logger.info(f"Created {self.collection_key} entry '{getattr(entity, 'name', '')}' → {entity.id}")

        return copy.deepcopy(entity)

    def update(self, entity_id: str, updates: Dict[str, Any]) -> Optional[E]:
        """Merge updates into an entity. id and created_at never change."""
        with self.store.locked(self.collection_key):
            entities = self._load()
            for index, current in enumerate(entities):
                if current.id == entity_id:
                    break
            else:
                return None

            data = current.to_dict()
            data.update(self._payload(updates))
            data.update(id=current.id, created_at=current.created_at, updated_at=_now())
            entity = self._prepare(self.entity_type.from_dict(data))

            entities[index] = entity
            self._save(entities)

        if self.debug:
            logger.info(f"Updated {self.collection_key} entry {entity_id}")

        return copy.deepcopy(entity)

    def delete(self, entity_id: str) -> bool:
        with self.store.locked(self.collection_key):
            entities = self._load()
            remaining = [e for e in entities if e.id != entity_id]
            if len(remaining) == len(entities):
                return False
            self._save(remaining)

        if self.debug:
            logger.info(f"Deleted {self.collection_key} entry {entity_id}")

        return True


class ComponentRepository(_EntityRepository[Component]):
    """Components (materials). Deleting one never touches BOM lines referencing it."""

    collection_key = COMPONENTS_KEY
    entity_type = Component

    def _prepare(self, entity: Component) -> Component:
        # Substance weights follow the component weight
        for substance in entity.substances:
            substance.projected_weight = projected_weight(entity.weight, substance.percentage)
            for child in substance.sub_compositions:
                child.projected_weight = projected_weight(substance.projected_weight, child.percentage)
        return entity

    def create_component(self, draft: Dict[str, Any]) -> Component:
        return self.create(draft)

    def list_components(self, workspace_id: Optional[str] = None) -> List[Component]:
        return self.list(workspace_id)

    def get_component_by_id(self, component_id: str) -> Optional[Component]:
        return self.get(component_id)

    def update_component(self, component_id: str, updates: Dict[str, Any]) -> Optional[Component]:
        return self.update(component_id, updates)

    def delete_component(self, component_id: str) -> bool:
        return self.delete(component_id)


class ProductRepository(_EntityRepository[Product]):
    """Products and their (at most one) BOM."""

    collection_key = PRODUCTS_KEY
    entity_type = Product
    # The BOM is only ever replaced through attach_bom
    unsettable_fields = {"bom"}

    def create_product(self, draft: Dict[str, Any]) -> Product:
        return self.create(draft)

    def list_products(self, workspace_id: Optional[str] = None) -> List[Product]:
        return self.list(workspace_id)

    def get_product_by_id(self, product_id: str) -> Optional[Product]:
        return self.get(product_id)

    def update_product(self, product_id: str, updates: Dict[str, Any]) -> Optional[Product]:
        return self.update(product_id, updates)

    def delete_product(self, product_id: str) -> bool:
        return self.delete(product_id)

    def attach_bom(
        self,
        product_id: str,
        lines: Sequence[Union[BomLine, Dict[str, Any]]]
    ) -> Optional[Product]:
        """
        Replace a product's BOM lines.

        Lines are stored verbatim: same order, same snapshots. Referenced
        component ids are NOT checked; a component may have been deleted
        after it was added to a draft BOM.

        Repeating the call with identical lines leaves the stored state
        unchanged (timestamps only move when the lines differ).

        Args:
            product_id: Product to attach the BOM to
            lines: Ordered BOM lines

        Returns:
            The updated product, or None if the product no longer exists

        Raises:
            StorageError: If the store rejects the write
        """
        # Round-trip through the stored shape so repeated saves encode identically
        items = [BomLine.from_dict(_plain(line)) for line in lines]

        with self.store.locked(self.collection_key):
            products = self._load()
            for index, product in enumerate(products):
                if product.id == product_id:
                    break
            else:
                logger.warning(f"Cannot attach BOM: product {product_id} not found in cache")
                return None

            if product.bom is None or product.bom.items != items:
                now = _now()
                product.bom = Bom(items=items, updated_at=now)
                product.updated_at = now

            products[index] = product
            self._save(products)

        if self.debug:
            logger.info(f"BOM attached to product {product_id}: {len(items)} lines")

        return copy.deepcopy(product)


class SupplierRepository(_EntityRepository[Supplier]):
    collection_key = SUPPLIERS_KEY
    entity_type = Supplier
    workspace_attribute = "linked_workspace_id"

    def create_supplier(self, draft: Dict[str, Any]) -> Supplier:
        return self.create(draft)

    def list_suppliers(self, workspace_id: Optional[str] = None) -> List[Supplier]:
        return self.list(workspace_id)

    def get_supplier_by_id(self, supplier_id: str) -> Optional[Supplier]:
        return self.get(supplier_id)

    def update_supplier(self, supplier_id: str, updates: Dict[str, Any]) -> Optional[Supplier]:
        return self.update(supplier_id, updates)

    def delete_supplier(self, supplier_id: str) -> bool:
        return self.delete(supplier_id)


class DraftStore:
    """In-progress wizard state, one JSON value per draft name."""

    def __init__(self, store: PersistentStore):
        self.store = store

    def _key(self, name: str) -> str:
        return f"{DRAFT_KEY_PREFIX}{name}"

    def get_draft(self, name: str) -> Any:
        return self.store.read_value(self._key(name))

    def set_draft(self, name: str, value: Any) -> None:
        self.store.write_value(self._key(name), _plain(value))

    def clear_draft(self, name: str) -> None:
        self.store.remove(self._key(name))
