"""
Transaction Repository - Append-only access to the inventory audit log
"""

from typing import List, Optional
from sqlalchemy.orm import Session

from domain.enums import TransactionOperation
from domain.models import InventoryTransaction
from repositories.base import BaseRepository


class TransactionRepository(BaseRepository[InventoryTransaction]):
    """Repository for the transaction log. There is no update or delete."""

    def __init__(self, db: Session):
        super().__init__(db, InventoryTransaction)

    def append(
        self,
        container_id: str,
        operation: TransactionOperation,
        delta: Optional[float] = None,
        unit: Optional[str] = None,
        reason: Optional[str] = None,
    ) -> InventoryTransaction:
        """Record one ledger mutation"""
        return self.add(
            InventoryTransaction(
                container_id=container_id,
                operation=operation.value,
                delta=delta,
                unit=unit,
                reason=reason,
            )
        )

    def get_for_container(self, container_id: str) -> List[InventoryTransaction]:
        """Audit trail of a container, oldest first"""
        return (
            self.db.query(InventoryTransaction)
            .filter(InventoryTransaction.container_id == container_id)
            .order_by(InventoryTransaction.id)
            .all()
        )

    def get_first_add(self, container_id: str) -> Optional[InventoryTransaction]:
        """The ADD that created a container"""
        return (
            self.db.query(InventoryTransaction)
            .filter(
                InventoryTransaction.container_id == container_id,
                InventoryTransaction.operation == TransactionOperation.ADD.value,
            )
            .order_by(InventoryTransaction.id)
            .first()
        )
