"""
Domain models package - SQLAlchemy ORM models.
"""

from domain.models.database import (
    Base,
    engine,
    SessionLocal,
    build_engine,
    init_database,
    get_db_session,
    utcnow,
)
from domain.models.ingredient import MasterIngredient, IngredientAlias, UnitConversion
from domain.models.inventory import Container, Contents, InventoryTransaction

__all__ = [
    # Database
    "Base",
    "engine",
    "SessionLocal",
    "build_engine",
    "init_database",
    "get_db_session",
    "utcnow",
    # Ingredient models
    "MasterIngredient",
    "IngredientAlias",
    "UnitConversion",
    # Inventory models
    "Container",
    "Contents",
    "InventoryTransaction",
]
