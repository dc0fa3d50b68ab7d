"""Inventory ledger routes"""

from fastapi import APIRouter, Depends, Query, status
import logging
from typing import List, Optional

from api.dependencies import get_uow
from domain.enums import ContainerStatus, IngredientCategory
from domain.schemas.inventory_schemas import (
    AddInventoryRequest,
    AddInventoryResult,
    AddLeftoverRequest,
    AddLeftoverResult,
    DeductRequest,
    DeductResult,
    DuplicateCheckRequest,
    DuplicateCheckResult,
    InventoryItemResponse,
    InventorySummary,
    MergeRequest,
    MergeResult,
    ProjectionCheck,
    SearchInventoryFilters,
    TransactionResponse,
    UpdateInventoryRequest,
)
from repositories import UnitOfWork
from services.deduction_service import DeductionService
from services.duplicate_service import DuplicateService
from services.inventory_service import InventoryService

router = APIRouter(prefix="/inventory", tags=["Inventory"])
logger = logging.getLogger("pantryledger.api.inventory")


@router.get("", response_model=List[InventoryItemResponse])
def search_inventory(
    query: Optional[str] = Query(None, description="Case-insensitive name substring"),
    category: Optional[IngredientCategory] = Query(None),
    status_filter: Optional[List[ContainerStatus]] = Query(None, alias="status"),
    expiring_within_days: Optional[int] = Query(None, ge=0),
    include_leftovers: bool = Query(True),
    master_id: Optional[str] = Query(None),
    limit: Optional[int] = Query(None, ge=1, le=1000),
    uow: UnitOfWork = Depends(get_uow),
):
    """List inventory items; DELETED containers only when asked for by status"""
    filters = SearchInventoryFilters(
        query=query,
        category=category,
        status=status_filter,
        expiring_within_days=expiring_within_days,
        include_leftovers=include_leftovers,
        master_id=master_id,
        limit=limit,
    )
    return InventoryService.search_inventory(uow, filters)


@router.post("", response_model=AddInventoryResult, status_code=status.HTTP_201_CREATED)
def add_inventory(payload: AddInventoryRequest, uow: UnitOfWork = Depends(get_uow)):
    """Add purchased items, one container each"""
    return InventoryService.add_inventory(uow, payload)


@router.post("/leftovers", response_model=AddLeftoverResult, status_code=status.HTTP_201_CREATED)
def add_leftover(payload: AddLeftoverRequest, uow: UnitOfWork = Depends(get_uow)):
    return InventoryService.add_leftover(uow, payload)


@router.post("/deduct", response_model=DeductResult)
def deduct_inventory(payload: DeductRequest, uow: UnitOfWork = Depends(get_uow)):
    """
    Consume an ingredient from its oldest container.

    Example: {"master_id": "milk", "quantity": 250, "unit": "ml", "reason": "cooking"}
    """
    return DeductionService.deduct(uow, payload)


@router.post("/merge", response_model=MergeResult)
def merge_inventory(payload: MergeRequest, uow: UnitOfWork = Depends(get_uow)):
    return InventoryService.merge_inventory(uow, payload.source_id, payload.target_id)


@router.get("/expiring", response_model=List[InventoryItemResponse])
def get_expiring_items(
    within_days: Optional[int] = Query(None, ge=0),
    uow: UnitOfWork = Depends(get_uow),
):
    return InventoryService.get_expiring_items(uow, within_days)


@router.get("/summary", response_model=InventorySummary)
def get_inventory_summary(uow: UnitOfWork = Depends(get_uow)):
    return InventoryService.get_summary(uow)


@router.post("/duplicates/check", response_model=DuplicateCheckResult)
def check_duplicates(payload: DuplicateCheckRequest, uow: UnitOfWork = Depends(get_uow)):
    return DuplicateService.check_duplicates(
        uow, payload.master_id, payload.vision_job_id, payload.quantity
    )


@router.get("/{container_id}", response_model=InventoryItemResponse)
def get_item(container_id: str, uow: UnitOfWork = Depends(get_uow)):
    return InventoryService.get_item(uow, container_id)


@router.patch("/{container_id}", response_model=InventoryItemResponse)
def update_inventory(
    container_id: str, payload: UpdateInventoryRequest, uow: UnitOfWork = Depends(get_uow)
):
    return InventoryService.update_inventory(uow, container_id, payload)


@router.delete("/{container_id}", response_model=InventoryItemResponse)
def delete_inventory(
    container_id: str,
    reason: str = Query("user_removed"),
    uow: UnitOfWork = Depends(get_uow),
):
    """Soft delete; the container stays in the log with status DELETED"""
    return InventoryService.delete_inventory(uow, container_id, reason)


@router.get("/{container_id}/transactions", response_model=List[TransactionResponse])
def get_transactions(container_id: str, uow: UnitOfWork = Depends(get_uow)):
    return [
        TransactionResponse.model_validate(t)
        for t in InventoryService.get_transactions(uow, container_id)
    ]


@router.get("/{container_id}/projection", response_model=ProjectionCheck)
def verify_projection(container_id: str, uow: UnitOfWork = Depends(get_uow)):
    return InventoryService.verify_projection(uow, container_id)
