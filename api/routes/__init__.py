"""API routes package"""

from . import health, ingredients, inventory

__all__ = ["health", "ingredients", "inventory"]
