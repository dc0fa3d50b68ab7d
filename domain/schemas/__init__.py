"""
Domain schemas package - Pydantic models for validation.
"""

from domain.schemas.ingredient_schemas import (
    MasterIngredientResponse,
    MasterIngredientCorrection,
    AliasCreate,
    AliasResponse,
    ResolveCandidate,
    ResolveResult,
)
from domain.schemas.inventory_schemas import (
    ContainerSpec,
    ContentsSpec,
    AddInventoryItem,
    AddInventoryRequest,
    AddInventoryResult,
    AddLeftoverRequest,
    AddLeftoverResult,
    DeductRequest,
    DeductResult,
    InventoryUpdates,
    UpdateInventoryRequest,
    MergeRequest,
    MergeResult,
    DuplicateCheckRequest,
    DuplicateCheckResult,
    SearchInventoryFilters,
    InventoryItemResponse,
    TransactionResponse,
    ProjectionCheck,
    CategorySummary,
    InventorySummary,
)

__all__ = [
    # Ingredient schemas
    "MasterIngredientResponse",
    "MasterIngredientCorrection",
    "AliasCreate",
    "AliasResponse",
    "ResolveCandidate",
    "ResolveResult",
    # Inventory input schemas
    "ContainerSpec",
    "ContentsSpec",
    "AddInventoryItem",
    "AddInventoryRequest",
    "AddLeftoverRequest",
    "DeductRequest",
    "InventoryUpdates",
    "UpdateInventoryRequest",
    "MergeRequest",
    "DuplicateCheckRequest",
    "SearchInventoryFilters",
    # Inventory output schemas
    "AddInventoryResult",
    "AddLeftoverResult",
    "DeductResult",
    "MergeResult",
    "DuplicateCheckResult",
    "InventoryItemResponse",
    "TransactionResponse",
    "ProjectionCheck",
    "CategorySummary",
    "InventorySummary",
]
