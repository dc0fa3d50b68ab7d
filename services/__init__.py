"""Services package - Business logic layer"""

from services.concurrency import run_atomic
from services.unit_conversion_service import UnitConversionService
from services.ingredient_service import IngredientService
from services.ingredient_resolver import IngredientResolver, CatalogIndex, LinearScanCatalogIndex
from services.deduction_service import DeductionService
from services.inventory_service import InventoryService
from services.duplicate_service import DuplicateService

# Note: container_state contains lifecycle functions, not a class

__all__ = [
    "run_atomic",
    "UnitConversionService",
    "IngredientService",
    "IngredientResolver",
    "CatalogIndex",
    "LinearScanCatalogIndex",
    "DeductionService",
    "InventoryService",
    "DuplicateService",
]
