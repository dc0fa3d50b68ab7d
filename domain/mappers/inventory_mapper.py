"""
Inventory domain mappers.
Handles transformation between ORM containers and inventory item DTOs.
"""

import math
from datetime import datetime
from typing import Optional

from domain.models import Container, utcnow
from domain.schemas.inventory_schemas import InventoryItemResponse


def days_until_expiry(expires_at: Optional[datetime], now: Optional[datetime] = None) -> Optional[int]:
    """Whole days left before expiry, rounded up; None when no expiry is known."""
    if expires_at is None:
        return None
    now = now or utcnow()
    return math.ceil((expires_at - now).total_seconds() / 86400)


class InventoryMapper:
    """Mapper for container transformations."""

    @staticmethod
    def to_item(container: Container, now: Optional[datetime] = None) -> InventoryItemResponse:
        """
        Convert an ORM Container (with contents and master loaded) to an item DTO.

        Args:
            container: Container ORM instance
            now: Reference time for days_until_expiry (defaults to utcnow)

        Returns:
            InventoryItemResponse DTO
        """
        contents = container.contents
        master = container.master
        return InventoryItemResponse(
            container_id=container.id,
            master_id=container.master_id,
            name=container.display_name,
            category=master.category if master is not None else None,
            remaining_qty=float(contents.remaining_qty),
            unit=contents.unit,
            status=container.status,
            purchase_unit=container.purchase_unit,
            expires_at=container.expires_at,
            days_until_expiry=days_until_expiry(container.expires_at, now),
            is_leftover=container.is_leftover,
            dish_name=container.dish_name,
            confidence=container.confidence,
            source=container.source,
            vision_job_id=container.vision_job_id,
            created_at=container.created_at,
        )
