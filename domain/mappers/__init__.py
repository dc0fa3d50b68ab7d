"""
Domain mappers package.
Handles transformation between ORM models and DTOs (Data Transfer Objects).
"""

from domain.mappers.inventory_mapper import InventoryMapper

__all__ = ["InventoryMapper"]
