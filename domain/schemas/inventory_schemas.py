from pydantic import BaseModel, Field
from typing import Optional, List, Dict
from datetime import datetime

from domain.enums import (
    IngredientCategory,
    ContainerStatus,
    ContainerSource,
    Confidence,
    DuplicateType,
    DuplicateRecommendation,
)


# =============================================================================
# INPUT RECORDS
# =============================================================================


class ContainerSpec(BaseModel):
    """Physical packaging of a purchase"""

    unit: Optional[str] = Field(
        None, description="Packaging unit (e.g., 'bag', 'carton', 'bottle', 'can')"
    )
    status: ContainerStatus = Field(
        default=ContainerStatus.SEALED, description="Initial container status"
    )


class ContentsSpec(BaseModel):
    """Quantity held by a container"""

    quantity: float = Field(..., gt=0, description="Amount in the container")
    unit: str = Field(
        ..., min_length=1, description="Unit of measurement (e.g., 'g', 'ml', 'count')"
    )


class AddInventoryItem(BaseModel):
    """One purchase to ingest"""

    name: str = Field(..., min_length=1, description="Raw ingredient name")
    master_id: Optional[str] = Field(
        None, description="Resolved master ingredient, when already known"
    )
    category: Optional[IngredientCategory] = None
    default_unit: Optional[str] = None
    default_shelf_life_days: Optional[int] = Field(None, ge=0)
    container: ContainerSpec = Field(default_factory=ContainerSpec)
    contents: ContentsSpec
    expires_at: Optional[datetime] = None
    source: ContainerSource = ContainerSource.MANUAL
    confidence: Optional[Confidence] = None
    vision_job_id: Optional[str] = Field(
        None, description="Image extraction run that produced this item"
    )


class AddInventoryRequest(BaseModel):
    items: List[AddInventoryItem] = Field(..., min_length=1)


class AddInventoryResult(BaseModel):
    container_ids: List[str]
    created: int


class AddLeftoverRequest(BaseModel):
    """A cooked batch to store"""

    dish_name: str = Field(..., min_length=1)
    quantity: float = Field(..., gt=0)
    unit: str = Field(..., min_length=1, description="e.g. 'serving', 'portion', 'cups'")
    expires_in_days: Optional[int] = Field(None, ge=0)
    recipe_id: Optional[str] = None


class AddLeftoverResult(BaseModel):
    container_id: str


class DeductRequest(BaseModel):
    """Consume stock of an ingredient"""

    master_id: str = Field(..., min_length=1)
    quantity: float = Field(..., gt=0)
    unit: str = Field(..., min_length=1)
    reason: str = Field(default="consumed", description="e.g. 'cooking', 'snack'")


class InventoryUpdates(BaseModel):
    """Fields that may be changed on a container"""

    remaining_qty: Optional[float] = Field(None, ge=0)
    unit: Optional[str] = Field(None, min_length=1)
    status: Optional[ContainerStatus] = None
    expires_at: Optional[datetime] = None
    master_id: Optional[str] = None
    name: Optional[str] = None


class UpdateInventoryRequest(BaseModel):
    updates: InventoryUpdates
    reason: Optional[str] = None


class MergeRequest(BaseModel):
    source_id: str
    target_id: str


class DuplicateCheckRequest(BaseModel):
    master_id: str
    vision_job_id: Optional[str] = None
    quantity: Optional[float] = Field(None, ge=0)


class SearchInventoryFilters(BaseModel):
    """Filters for listing inventory"""

    query: Optional[str] = None
    category: Optional[IngredientCategory] = None
    status: Optional[List[ContainerStatus]] = None
    expiring_within_days: Optional[int] = Field(None, ge=0)
    include_leftovers: bool = True
    master_id: Optional[str] = None
    limit: Optional[int] = Field(None, ge=1, le=1000)


# =============================================================================
# OUTPUT RECORDS
# =============================================================================


class InventoryItemResponse(BaseModel):
    """A container joined with its contents and catalog entry"""

    container_id: str
    master_id: Optional[str] = None
    name: str
    category: Optional[str] = None
    remaining_qty: float
    unit: str
    status: ContainerStatus
    purchase_unit: Optional[str] = None
    expires_at: Optional[datetime] = None
    days_until_expiry: Optional[int] = None
    is_leftover: bool
    dish_name: Optional[str] = None
    confidence: Optional[str] = None
    source: str
    vision_job_id: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class DeductResult(BaseModel):
    """Outcome of a FIFO deduction"""

    requested: float
    deducted: float
    unit: str
    container_id: str
    remaining_after: float
    status: ContainerStatus
    warning: Optional[str] = None


class MergeResult(BaseModel):
    target_id: str
    new_qty: float
    unit: str
    warning: Optional[str] = None


class DuplicateCheckResult(BaseModel):
    duplicate_type: DuplicateType
    existing_containers: List[InventoryItemResponse] = Field(default_factory=list)
    recommendation: DuplicateRecommendation


class TransactionResponse(BaseModel):
    id: int
    container_id: str
    operation: str
    delta: Optional[float] = None
    unit: Optional[str] = None
    reason: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class ProjectionCheck(BaseModel):
    """Comparison of the materialized quantity with the transaction log"""

    container_id: str
    unit: str
    expected: float
    actual: float
    consistent: bool


class CategorySummary(BaseModel):
    count: int = 0
    items: List[InventoryItemResponse] = Field(default_factory=list)


class InventorySummary(BaseModel):
    expiring_soon: List[InventoryItemResponse]
    categories: Dict[str, CategorySummary]
    leftovers: List[InventoryItemResponse]
    total_count: int
