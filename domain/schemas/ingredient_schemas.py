from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime

from domain.enums import IngredientCategory, AliasSource, MatchType


class MasterIngredientResponse(BaseModel):
    """Schema for a master catalog entry"""

    id: str
    canonical_name: str
    category: str
    default_unit: Optional[str] = None
    default_shelf_life_days: Optional[int] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class MasterIngredientCorrection(BaseModel):
    """Explicit user correction of a catalog entry"""

    canonical_name: Optional[str] = Field(None, min_length=1)
    category: Optional[IngredientCategory] = None
    default_unit: Optional[str] = None
    default_shelf_life_days: Optional[int] = Field(None, ge=0)


class AliasCreate(BaseModel):
    """Schema for registering an alias"""

    alias: str = Field(..., min_length=1, description="Raw ingredient name as seen")
    master_id: str = Field(..., min_length=1, description="Target master ingredient")
    source: AliasSource = Field(
        default=AliasSource.AGENT,
        description="'agent' for automatic learning, 'user_correction' for overrides",
    )


class AliasResponse(BaseModel):
    """Schema for a stored alias"""

    alias: str
    master_id: str
    source: str
    created_at: datetime

    model_config = {"from_attributes": True}


class ResolveCandidate(BaseModel):
    """A scored catalog entry offered as an alternative"""

    master_id: str
    canonical_name: str
    score: float


class ResolveResult(BaseModel):
    """Outcome of resolving a raw ingredient name"""

    match_type: MatchType
    master_id: Optional[str] = None
    canonical_name: Optional[str] = None
    confidence: float = Field(..., ge=0, le=1)
    alternatives: List[ResolveCandidate] = Field(default_factory=list)
