"""Unit-of-measure handling for components and BOM lines, using the Pint library."""

import math
import re
from typing import Optional

from pint import UnitRegistry

# Initialize Pint unit registry
ureg = UnitRegistry()


class UnitResolver:
    """Maps free-form unit strings onto the catalog unit codes and converts masses."""

    # Physical catalog units and the Pint unit each one stands for
    CATALOG_UNITS = {
        "kg": "kilogram",
        "g": "gram",
        "m": "meter",
        "cm": "centimeter",
    }

    # Units Pint either doesn't know or would misread ("pcs" parses as parsecs)
    ALIASES = {
        "pcs": "pcs", "pc": "pcs", "piece": "pcs", "pieces": "pcs",
        "ea": "pcs", "each": "pcs", "unit": "pcs", "units": "pcs",
        "sqm": "sqm", "m2": "sqm", "m²": "sqm", "sq m": "sqm",
        "square meter": "sqm", "square meters": "sqm",
        "square metre": "sqm", "square metres": "sqm",
    }

    # Form labels look like "Kilogram (kg)"
    LABEL_PATTERN = re.compile(r'\(([^)]+)\)\s*$')

    def __init__(self):
        self.ureg = ureg

    def _parse(self, text: str):
        try:
            return self.ureg.parse_units(text)
        except Exception:
            # Pint's tokenizer raises more than PintError on malformed text
            return None

    def canonical(self, unit: Optional[str]) -> str:
        """Return the catalog code for unit, or the stripped input if unknown.

        Examples:
            canonical("Kilogram") -> "kg"
            canonical("Pieces") -> "pcs"
            canonical("Square Meter (m²)") -> "sqm"
            canonical("bale") -> "bale"
        """
        text = (unit or "").strip()
        if not text:
            return ""

        label = self.LABEL_PATTERN.search(text)
        if label:
            text = label.group(1).strip()

        lowered = text.lower()
        if lowered in self.ALIASES:
            return self.ALIASES[lowered]
        if lowered in self.CATALOG_UNITS:
            return lowered

        for candidate in (text, lowered):
            parsed = self._parse(candidate)
            if parsed is None:
                continue
            for code, pint_name in self.CATALOG_UNITS.items():
                if parsed == getattr(self.ureg, pint_name):
                    return code

        return text

    def to_kilograms(self, value: float, unit: Optional[str]) -> Optional[float]:
        """Convert value to kilograms, or None if unit is not a mass unit."""
        code = self.canonical(unit)
        if not code or code in self.ALIASES.values():
            return None

        parsed = self._parse(self.CATALOG_UNITS.get(code, code))
        if parsed is None or parsed.dimensionality != self.ureg.kilogram.dimensionality:
            return None

        quantity = self.ureg.Quantity(float(value), parsed)
        return float(quantity.to(self.ureg.kilogram).magnitude)


_default_resolver = UnitResolver()


def canonical_unit(unit: Optional[str]) -> str:
    return _default_resolver.canonical(unit)


def to_kilograms(value: float, unit: Optional[str]) -> Optional[float]:
    return _default_resolver.to_kilograms(value, unit)


def projected_weight(weight: float, percentage: float) -> float:
    """Weight contributed by a substance making up `percentage` of `weight`."""
    try:
        weight = float(weight)
        percentage = float(percentage)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(weight) or not math.isfinite(percentage):
        return 0.0
    return round(weight * percentage / 100, 6)
