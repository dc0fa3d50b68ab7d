"""Ingredient catalog and resolution routes"""

from fastapi import APIRouter, Depends, Query, status
import logging
from typing import List, Optional

from api.dependencies import get_uow
from domain.enums import IngredientCategory
from domain.schemas.ingredient_schemas import (
    AliasCreate,
    AliasResponse,
    MasterIngredientCorrection,
    MasterIngredientResponse,
    ResolveResult,
)
from repositories import UnitOfWork
from services.ingredient_service import IngredientService

router = APIRouter(prefix="/ingredients", tags=["Ingredients"])
logger = logging.getLogger("pantryledger.api.ingredients")


@router.get("/resolve", response_model=ResolveResult)
def resolve_ingredient(
    name: str = Query(..., min_length=1, description="Raw ingredient name"),
    category_hint: Optional[IngredientCategory] = Query(None),
    uow: UnitOfWork = Depends(get_uow),
):
    """Resolve a raw name to a catalog entry (exact, alias, fuzzy, ambiguous or unknown)"""
    return IngredientService.resolve(uow, name, category_hint)


@router.post("/aliases", response_model=AliasResponse, status_code=status.HTTP_201_CREATED)
def register_alias(payload: AliasCreate, uow: UnitOfWork = Depends(get_uow)):
    """Register or re-point an alias; the last write wins"""
    alias = IngredientService.register_alias(uow, payload.alias, payload.master_id, payload.source)
    return AliasResponse.model_validate(alias)


@router.get("/{master_id}", response_model=MasterIngredientResponse)
def get_ingredient(master_id: str, uow: UnitOfWork = Depends(get_uow)):
    return MasterIngredientResponse.model_validate(IngredientService.get_ingredient(uow, master_id))


@router.patch("/{master_id}", response_model=MasterIngredientResponse)
def correct_ingredient(
    master_id: str,
    correction: MasterIngredientCorrection,
    uow: UnitOfWork = Depends(get_uow),
):
    """Apply a user correction to a catalog entry"""
    master = IngredientService.correct_ingredient(uow, master_id, correction)
    return MasterIngredientResponse.model_validate(master)


@router.get("/{master_id}/aliases", response_model=List[AliasResponse])
def list_aliases(master_id: str, uow: UnitOfWork = Depends(get_uow)):
    return [AliasResponse.model_validate(a) for a in IngredientService.list_aliases(uow, master_id)]
