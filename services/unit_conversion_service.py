"""
Unit conversion between measurement units using the global conversion table.
"""

import logging
from typing import Optional, Tuple

from app.exceptions import ConversionUnavailableError
from repositories import UnitOfWork

logger = logging.getLogger("pantryledger.units")


DEFAULT_CONVERSIONS = [
    # Weight
    ("lb", "g", 453.592),
    ("oz", "g", 28.3495),
    ("kg", "g", 1000.0),
    # Volume
    ("l", "ml", 1000.0),
    ("cup", "ml", 236.588),
    ("tbsp", "ml", 14.787),
    ("tsp", "ml", 4.929),
    ("fl_oz", "ml", 29.574),
    # Count
    ("dozen", "count", 12.0),
]

UNIT_ALIASES = {
    "gram": "g", "grams": "g", "gr": "g",
    "kilogram": "kg", "kilograms": "kg", "kgs": "kg",
    "pound": "lb", "pounds": "lb", "lbs": "lb",
    "ounce": "oz", "ounces": "oz",
    "liter": "l", "liters": "l", "litre": "l", "litres": "l",
    "milliliter": "ml", "milliliters": "ml", "millilitre": "ml", "millilitres": "ml",
    "cups": "cup",
    "tablespoon": "tbsp", "tablespoons": "tbsp", "tbs": "tbsp",
    "teaspoon": "tsp", "teaspoons": "tsp", "tsps": "tsp",
    "fl oz": "fl_oz", "fl. oz": "fl_oz", "floz": "fl_oz",
    "pcs": "count", "pc": "count", "piece": "count", "pieces": "count", "ea": "count",
}


def normalize_unit(unit: str) -> str:
    """Map common unit variants to a canonical form."""
    u = unit.lower().strip().rstrip(".")
    return UNIT_ALIASES.get(u, u)


class UnitConversionService:
    @staticmethod
    def convert(uow: UnitOfWork, quantity: float, from_unit: str, to_unit: str) -> float:
        """
        Convert ``quantity`` from one unit into another.

        Lookup order: identical units, direct factor, inverse of the reverse factor.

        Raises:
            ConversionUnavailableError: no factor links the two units
        """
        src = normalize_unit(from_unit)
        dst = normalize_unit(to_unit)
        if src == dst:
            return quantity

        factor = uow.conversions.get_factor(src, dst)
        if factor is not None:
            return quantity * factor

        reverse = uow.conversions.get_factor(dst, src)
        if reverse is not None:
            return quantity / reverse

        raise ConversionUnavailableError(src, dst)

    @staticmethod
    def convert_or_passthrough(
        uow: UnitOfWork, quantity: float, from_unit: str, to_unit: str
    ) -> Tuple[float, Optional[str]]:
        """
        Convert, or fall back to treating ``quantity`` as already in ``to_unit``.

        Returns:
            (quantity in to_unit, warning text or None)
        """
        try:
            return UnitConversionService.convert(uow, quantity, from_unit, to_unit), None
        except ConversionUnavailableError as exc:
            logger.warning("%s; using %s %s as-is", exc, quantity, to_unit)
            return quantity, f"UNIT_MISMATCH: cannot convert {exc.from_unit} to {exc.to_unit}, used quantity as-is"

    @staticmethod
    def seed_defaults(uow: UnitOfWork) -> int:
        """Insert the built-in factors that are missing. Returns the number inserted."""
        inserted = 0
        for from_unit, to_unit, factor in DEFAULT_CONVERSIONS:
            if uow.conversions.insert_if_absent(from_unit, to_unit, factor):
                inserted += 1
        logger.info("Seeded %d unit conversions", inserted)
        return inserted
