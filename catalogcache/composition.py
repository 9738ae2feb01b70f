"""
BOM composition engine.

Pure computation over BOM lines, shared by the BOM editor and every detail
view, plus a thin coordinator (BomComposer) that loads and saves BOMs through
the repositories.

DESIGN PRINCIPLES:
1. Stateless: every function takes the full line list and returns new values
2. Inputs are never mutated
3. Totals are derived on every call, never stored
4. Percentage checks warn, they never block a save

Money is summed nominally: lines in different currencies are added together
as plain numbers. `cost_by_currency` gives the per-currency breakdown for
callers that need to show it.
"""

import copy
import logging
from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, List, Optional, Sequence, Set
from uuid import uuid4

from .repositories import ComponentRepository, ProductRepository
from .schema import BomLine, Component, ComponentSnapshot, Product, PERCENTAGE_LIMIT
from .units import to_kilograms

logger = logging.getLogger(__name__)

PERCENTAGE_WARNING = "percentage exceeds 100"


@dataclass
class BomTotals:
    total_cost: float = 0.0
    total_percentage: float = 0.0
    cost_by_currency: Dict[str, float] = field(default_factory=dict)
    total_mass_kg: float = 0.0


@dataclass
class BomValidation:
    """Outcome of the pre-save check. A warning never prevents saving."""
    warning: Optional[str] = None
    total_percentage: float = 0.0

    @property
    def ok(self) -> bool:
        return self.warning is None


@dataclass
class BomSaveResult:
    """
    Result of BomComposer.save().

    `product` is None when the product vanished from the cache mid-edit; the
    caller must treat that as a failed save.
    """
    product: Optional[Product]
    validation: BomValidation

    @property
    def saved(self) -> bool:
        return self.product is not None


# =============================================================================
# PURE LINE OPERATIONS
# =============================================================================

def compute_totals(lines: Iterable[BomLine]) -> BomTotals:
    """
    Aggregate cost, percentage and mass over BOM lines.

    total_cost = Σ quantity × unit_cost (currencies are not converted)
    total_percentage = Σ percentage
    total_mass_kg counts only lines whose unit is a mass unit.

    The result does not depend on line order.
    """
    totals = BomTotals()
    for line in lines:
        line_cost = line.quantity * line.component.unit_cost
        totals.total_cost += line_cost
        totals.total_percentage += line.percentage

        currency = line.component.unit_cost_currency
        totals.cost_by_currency[currency] = totals.cost_by_currency.get(currency, 0.0) + line_cost

        mass = to_kilograms(line.quantity, line.component.unit_of_measurement)
        if mass is not None:
            totals.total_mass_kg += mass

    return totals


def reorder(lines: Sequence[BomLine], from_index: int, to_index: int) -> List[BomLine]:
    """Move the line at from_index to to_index, shifting the lines in between.

    Args:
        lines: Current BOM lines (not modified)
        from_index: Position of the line to move
        to_index: Position the line ends up at

    Returns:
        New list with the same lines in the new order

    Raises:
        IndexError: If either index is out of range; callers must clamp
    """
    size = len(lines)
    for name, index in (("from_index", from_index), ("to_index", to_index)):
        if not 0 <= index < size:
            raise IndexError(f"{name} {index} out of range for {size} BOM lines")

    reordered = list(lines)
    moved = reordered.pop(from_index)
    reordered.insert(to_index, moved)
    return reordered


def validate_for_save(lines: Iterable[BomLine]) -> BomValidation:
    total = sum(line.percentage for line in lines)
    if total > PERCENTAGE_LIMIT:
        return BomValidation(warning=PERCENTAGE_WARNING, total_percentage=total)
    return BomValidation(total_percentage=total)


def new_line(component: Component, quantity: float = 1.0, percentage: float = 0.0) -> BomLine:
    """Build a BOM line with a fresh id and a snapshot of the component."""
    return BomLine(
        id=str(uuid4()),
        component=ComponentSnapshot.of(component),
        quantity=quantity,
        percentage=percentage,
    )


def update_line(lines: Sequence[BomLine], line_id: str, **changes) -> List[BomLine]:
    """Return lines with the given fields (quantity, percentage) replaced on one line."""
    allowed = {"quantity", "percentage"}
    unknown = set(changes) - allowed
    if unknown:
        raise ValueError(f"Cannot update BOM line fields: {sorted(unknown)}")
    return [replace(line, **changes) if line.id == line_id else line for line in lines]


def remove_line(lines: Sequence[BomLine], line_id: str) -> List[BomLine]:
    return [line for line in lines if line.id != line_id]


def component_ids(lines: Iterable[BomLine]) -> Set[str]:
    """Ids of the components already in the BOM."""
    return {line.component.id for line in lines}


def resolve_lines(lines: Iterable[BomLine], components: Iterable[Component]) -> List[BomLine]:
    """
    Refresh line snapshots from live components.

    Lines whose component still exists get its current name, unit and cost;
    lines whose component is gone keep the snapshot taken when they were
    added. No line is ever dropped or left without component data.
    """
    live = {component.id: component for component in components}
    resolved = []
    for line in lines:
        component = live.get(line.component.id)
        if component is None:
            resolved.append(copy.deepcopy(line))
        else:
            resolved.append(replace(line, component=ComponentSnapshot.of(component)))
    return resolved


# =============================================================================
# REPOSITORY COORDINATION
# =============================================================================

class BomComposer:
    """Loads and saves product BOMs through the product and component repositories."""

    def __init__(self, products: ProductRepository, components: ComponentRepository):
        self.products = products
        self.components = components

    def load(self, product_id: str) -> Optional[List[BomLine]]:
        """Resolved BOM lines of a product; [] without a BOM, None if the product is gone."""
        product = self.products.get_product_by_id(product_id)
        if product is None:
            return None
        if product.bom is None:
            return []
        return resolve_lines(product.bom.items, self.components.list_components())

    def totals(self, product_id: str) -> Optional[BomTotals]:
        lines = self.load(product_id)
        if lines is None:
            return None
        return compute_totals(lines)

    def add_component(self, lines: Sequence[BomLine], component_id: str) -> Optional[List[BomLine]]:
        """Append a line for component_id; None if the component does not exist."""
        component = self.components.get_component_by_id(component_id)
        if component is None:
            return None
        return list(lines) + [new_line(component)]

    def save(self, product_id: str, lines: Sequence[BomLine]) -> BomSaveResult:
        """
        Validate, then attach the lines to the product.

        The percentage check is advisory: the lines are attached whatever it
        says.

        Raises:
            StorageError: If the store rejects the write
        """
        validation = validate_for_save(lines)
        if not validation.ok:
            logger.warning(
                f"BOM for product {product_id} totals {validation.total_percentage:.2f}% "
                f"({validation.warning}), saving anyway"
            )

        product = self.products.attach_bom(product_id, lines)
        if product is None:
            logger.error(f"BOM save failed: product {product_id} not found")

        return BomSaveResult(product=product, validation=validation)
