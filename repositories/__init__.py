"""
Repositories package - Data access layer.
"""

from repositories.base import BaseRepository
from repositories.ingredient_repository import (
    MasterIngredientRepository,
    IngredientAliasRepository,
)
from repositories.unit_conversion_repository import UnitConversionRepository
from repositories.container_repository import ContainerRepository, ACTIVE_STATUSES
from repositories.transaction_repository import TransactionRepository
from repositories.unit_of_work import UnitOfWork

__all__ = [
    "BaseRepository",
    "MasterIngredientRepository",
    "IngredientAliasRepository",
    "UnitConversionRepository",
    "ContainerRepository",
    "ACTIVE_STATUSES",
    "TransactionRepository",
    "UnitOfWork",
]
