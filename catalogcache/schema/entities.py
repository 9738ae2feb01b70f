"""
Catalog entity definitions.

Every entity is a plain dataclass with a `to_dict()` / `from_dict()` pair used
by the repositories to move between Python objects and the JSON collections
held in the persistent store.

`from_dict` is deliberately tolerant: stored data may have been written by an
older UI flow, so missing lists become empty lists, missing strings become ""
and missing numbers become 0. Unknown keys are dropped.
"""

from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional


def _as_list(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


def _as_float(value: Any, default: float = 0.0) -> float:
    if value is None or isinstance(value, bool):
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _as_optional_float(value: Any) -> Optional[float]:
    if value is None:
        return None
    return _as_float(value)


def _as_str(value: Any) -> str:
    return "" if value is None else str(value)


def _as_optional_str(value: Any) -> Optional[str]:
    return None if value is None else str(value)


def _as_bool(value: Any, default: bool = True) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        text = value.strip().lower()
        if text in ("true", "1", "yes"):
            return True
        if text in ("false", "0", "no"):
            return False
    return default


# =============================================================================
# ATTACHMENTS
# =============================================================================

@dataclass
class Image:
    id: str
    url: str
    name: Optional[str] = None
    size: Optional[int] = None
    content_type: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Image":
        return cls(
            id=_as_str(data.get("id")),
            url=_as_str(data.get("url")),
            name=_as_optional_str(data.get("name")),
            size=data.get("size"),
            content_type=_as_optional_str(data.get("content_type")),
        )


@dataclass
class UploadedFile:
    id: str
    name: str
    size: int = 0
    type: str = ""
    url: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UploadedFile":
        return cls(
            id=_as_str(data.get("id")),
            name=_as_str(data.get("name")),
            size=int(_as_float(data.get("size"))),
            type=_as_str(data.get("type")),
            url=_as_optional_str(data.get("url")),
        )


@dataclass
class Certificate:
    id: str
    type: str
    number: str
    expiry_date: str
    weight: Optional[float] = None
    files: List[UploadedFile] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Certificate":
        return cls(
            id=_as_str(data.get("id")),
            type=_as_str(data.get("type")),
            number=_as_str(data.get("number")),
            expiry_date=_as_str(data.get("expiry_date")),
            weight=_as_optional_float(data.get("weight")),
            files=[UploadedFile.from_dict(f) for f in _as_list(data.get("files")) if isinstance(f, dict)],
        )


# =============================================================================
# SUBSTANCES (component composition)
# =============================================================================

@dataclass
class SubComposition:
    """A child entry of a substance (e.g. one constituent of a manual blend)."""
    id: str
    input_type: str  # "chemical" or "manual"
    substance_name: str
    substance_code: str
    percentage: float
    projected_weight: float
    supplier_id: str = ""
    supplier_name: str = ""
    country_of_origin: Optional[str] = None
    reach_registration_number: Optional[str] = None
    documents: List[UploadedFile] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SubComposition":
        return cls(
            id=_as_str(data.get("id")),
            input_type=_as_str(data.get("input_type")) or "chemical",
            substance_name=_as_str(data.get("substance_name")),
            substance_code=_as_str(data.get("substance_code")),
            percentage=_as_float(data.get("percentage")),
            projected_weight=_as_float(data.get("projected_weight")),
            supplier_id=_as_str(data.get("supplier_id")),
            supplier_name=_as_str(data.get("supplier_name")),
            country_of_origin=_as_optional_str(data.get("country_of_origin")),
            reach_registration_number=_as_optional_str(data.get("reach_registration_number")),
            documents=[UploadedFile.from_dict(d) for d in _as_list(data.get("documents")) if isinstance(d, dict)],
        )


@dataclass
class Substance:
    """A composition entry of a component (what the material is made of)."""
    id: str
    input_type: str
    substance_name: str
    substance_code: str
    percentage: float
    projected_weight: float
    sub_compositions: List[SubComposition] = field(default_factory=list)
    source_type: Optional[str] = None  # natural, eu, other, no
    other_source_reason: Optional[str] = None
    reach_registration_number: Optional[str] = None
    supplier_id: str = ""
    supplier_name: str = ""
    country_of_origin: Optional[str] = None
    documents: List[UploadedFile] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Substance":
        return cls(
            id=_as_str(data.get("id")),
            input_type=_as_str(data.get("input_type")) or "chemical",
            substance_name=_as_str(data.get("substance_name")),
            substance_code=_as_str(data.get("substance_code")),
            percentage=_as_float(data.get("percentage")),
            projected_weight=_as_float(data.get("projected_weight")),
            sub_compositions=[
                SubComposition.from_dict(s)
                for s in _as_list(data.get("sub_compositions"))
                if isinstance(s, dict)
            ],
            source_type=_as_optional_str(data.get("source_type")),
            other_source_reason=_as_optional_str(data.get("other_source_reason")),
            reach_registration_number=_as_optional_str(data.get("reach_registration_number")),
            supplier_id=_as_str(data.get("supplier_id")),
            supplier_name=_as_str(data.get("supplier_name")),
            country_of_origin=_as_optional_str(data.get("country_of_origin")),
            documents=[UploadedFile.from_dict(d) for d in _as_list(data.get("documents")) if isinstance(d, dict)],
        )


# =============================================================================
# COMPONENT
# =============================================================================

@dataclass
class Component:
    """
    A material or part that BOM lines can reference.

    Components carry their own cost and unit; BOM lines copy those fields into
    a ComponentSnapshot when the component is added, so deleting a component
    never breaks a product's BOM.
    """
    id: str
    name: str
    unit_of_measurement: str
    unit_cost: float
    unit_cost_currency: str
    description: str = ""
    weight: float = 0.0
    length: Optional[float] = None
    width: Optional[float] = None
    height: Optional[float] = None
    photos: List[Image] = field(default_factory=list)
    certificates: List[Certificate] = field(default_factory=list)
    substances: List[Substance] = field(default_factory=list)
    workspace_id: Optional[str] = None
    created_at: str = ""
    updated_at: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Component":
        return cls(
            id=_as_str(data.get("id")),
            name=_as_str(data.get("name")),
            unit_of_measurement=_as_str(data.get("unit_of_measurement")),
            unit_cost=_as_float(data.get("unit_cost")),
            unit_cost_currency=_as_str(data.get("unit_cost_currency")),
            description=_as_str(data.get("description")),
            weight=_as_float(data.get("weight")),
            length=_as_optional_float(data.get("length")),
            width=_as_optional_float(data.get("width")),
            height=_as_optional_float(data.get("height")),
            photos=[Image.from_dict(p) for p in _as_list(data.get("photos")) if isinstance(p, dict)],
            certificates=[
                Certificate.from_dict(c) for c in _as_list(data.get("certificates")) if isinstance(c, dict)
            ],
            substances=[Substance.from_dict(s) for s in _as_list(data.get("substances")) if isinstance(s, dict)],
            workspace_id=_as_optional_str(data.get("workspace_id")),
            created_at=_as_str(data.get("created_at")),
            updated_at=_as_str(data.get("updated_at")),
        )


# =============================================================================
# BOM
# =============================================================================

@dataclass
class ComponentSnapshot:
    """
    Denormalized copy of a component's display fields.

    `id` is a non-owning back-reference: it is used to refresh the snapshot
    while the component still exists, and is never dereferenced blindly.
    """
    id: str
    name: str
    unit_of_measurement: str
    unit_cost: float
    unit_cost_currency: str

    @classmethod
    def of(cls, component: Component) -> "ComponentSnapshot":
        return cls(
            id=component.id,
            name=component.name,
            unit_of_measurement=component.unit_of_measurement,
            unit_cost=component.unit_cost,
            unit_cost_currency=component.unit_cost_currency,
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ComponentSnapshot":
        return cls(
            id=_as_str(data.get("id")),
            name=_as_str(data.get("name")),
            unit_of_measurement=_as_str(data.get("unit_of_measurement")),
            unit_cost=_as_float(data.get("unit_cost")),
            unit_cost_currency=_as_str(data.get("unit_cost_currency")),
        )


@dataclass
class BomLine:
    id: str
    component: ComponentSnapshot
    quantity: float = 1.0
    percentage: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BomLine":
        component = data.get("component")
        return cls(
            id=_as_str(data.get("id")),
            component=ComponentSnapshot.from_dict(component if isinstance(component, dict) else {}),
            quantity=_as_float(data.get("quantity")),
            percentage=_as_float(data.get("percentage")),
        )


@dataclass
class Bom:
    items: List[BomLine] = field(default_factory=list)
    updated_at: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Bom":
        return cls(
            items=[BomLine.from_dict(i) for i in _as_list(data.get("items")) if isinstance(i, dict)],
            updated_at=_as_str(data.get("updated_at")),
        )


# =============================================================================
# PRODUCT
# =============================================================================

@dataclass
class Product:
    id: str
    name: str
    upc: str
    category_type: str
    sub_category: str
    unit_of_measure: str
    measure_value: float
    sku: Optional[str] = None
    description: str = ""
    weight: Optional[float] = None
    color: Optional[str] = None
    collection: Optional[str] = None
    hs_code: Optional[str] = None
    external_reference: Optional[str] = None
    is_active: bool = True
    photos: List[Image] = field(default_factory=list)
    bom: Optional[Bom] = None
    workspace_id: Optional[str] = None
    created_at: str = ""
    updated_at: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Product":
        bom = data.get("bom")
        return cls(
            id=_as_str(data.get("id")),
            name=_as_str(data.get("name")),
            upc=_as_str(data.get("upc")),
            category_type=_as_str(data.get("category_type")),
            sub_category=_as_str(data.get("sub_category")),
            unit_of_measure=_as_str(data.get("unit_of_measure")),
            measure_value=_as_float(data.get("measure_value")),
            sku=_as_optional_str(data.get("sku")),
            description=_as_str(data.get("description")),
            weight=_as_optional_float(data.get("weight")),
            color=_as_optional_str(data.get("color")),
            collection=_as_optional_str(data.get("collection")),
            hs_code=_as_optional_str(data.get("hs_code")),
            external_reference=_as_optional_str(data.get("external_reference")),
            is_active=_as_bool(data.get("is_active")),
            photos=[Image.from_dict(p) for p in _as_list(data.get("photos")) if isinstance(p, dict)],
            bom=Bom.from_dict(bom) if isinstance(bom, dict) else None,
            workspace_id=_as_optional_str(data.get("workspace_id")),
            created_at=_as_str(data.get("created_at")),
            updated_at=_as_str(data.get("updated_at")),
        )


# =============================================================================
# SUPPLIER
# =============================================================================

@dataclass
class Supplier:
    id: str
    name: str
    country_of_origin: str
    address: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    website: Optional[str] = None
    notes: Optional[str] = None
    linked_workspace_id: Optional[str] = None
    created_at: str = ""
    updated_at: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Supplier":
        return cls(
            id=_as_str(data.get("id")),
            name=_as_str(data.get("name")),
            country_of_origin=_as_str(data.get("country_of_origin")),
            address=_as_optional_str(data.get("address")),
            contact_email=_as_optional_str(data.get("contact_email")),
            contact_phone=_as_optional_str(data.get("contact_phone")),
            website=_as_optional_str(data.get("website")),
            notes=_as_optional_str(data.get("notes")),
            linked_workspace_id=_as_optional_str(data.get("linked_workspace_id")),
            created_at=_as_str(data.get("created_at")),
            updated_at=_as_str(data.get("updated_at")),
        )
