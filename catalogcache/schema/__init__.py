"""Catalog schema: entity types and the persisted collection layout."""

from typing import Dict, List

from .entities import (
    Image,
    UploadedFile,
    Certificate,
    SubComposition,
    Substance,
    Component,
    ComponentSnapshot,
    BomLine,
    Bom,
    Product,
    Supplier,
)

DEFAULT_NAMESPACE = "t4s.catalog.v1"

# Collection names, appended to the store namespace
PRODUCTS_KEY = "products"
COMPONENTS_KEY = "components"
SUPPLIERS_KEY = "suppliers"
DRAFT_KEY_PREFIX = "draft."

# Well-known draft names used by the creation wizards
PRODUCT_CREATION_DRAFT = "product-creation"
MATERIAL_CREATION_DRAFT = "material-creation"

# Unit codes offered by the component forms
COMPONENT_UNITS: Dict[str, str] = {
    "kg": "Kilogram (kg)",
    "g": "Gram (g)",
    "m": "Meter (m)",
    "cm": "Centimeter (cm)",
    "pcs": "Pieces",
    "sqm": "Square Meter (m²)",
}

CURRENCIES: List[str] = ["USD", "EUR", "GBP", "CNY"]

PERCENTAGE_LIMIT = 100.0

__all__ = [
    "Image",
    "UploadedFile",
    "Certificate",
    "SubComposition",
    "Substance",
    "Component",
    "ComponentSnapshot",
    "BomLine",
    "Bom",
    "Product",
    "Supplier",
    "DEFAULT_NAMESPACE",
    "PRODUCTS_KEY",
    "COMPONENTS_KEY",
    "SUPPLIERS_KEY",
    "DRAFT_KEY_PREFIX",
    "PRODUCT_CREATION_DRAFT",
    "MATERIAL_CREATION_DRAFT",
    "COMPONENT_UNITS",
    "CURRENCIES",
    "PERCENTAGE_LIMIT",
]
