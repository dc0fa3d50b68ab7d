"""
Inventory ledger models - containers, their contents and the transaction log.
"""

import uuid

from sqlalchemy import (
    Column,
    Text,
    Float,
    Integer,
    DateTime,
    ForeignKey,
    CheckConstraint,
    Index,
    event,
)
from sqlalchemy.orm import relationship

from app.exceptions import InvalidOperationError
from domain.models.database import Base, utcnow


def _new_id() -> str:
    return str(uuid.uuid4())


class Container(Base):
    """One physical purchase or cooked batch"""

    __tablename__ = "containers"

    id = Column(Text, primary_key=True, default=_new_id)
    master_id = Column(Text, ForeignKey("master_ingredients.id"), index=True)
    dish_name = Column(Text)  # leftovers only
    cooked_from_recipe_id = Column(Text)
    status = Column(Text, nullable=False, default="SEALED")
    purchase_unit = Column(Text)  # bag, carton, bottle, bunch, can, box, piece
    source = Column(Text, nullable=False)
    confidence = Column(Text)
    vision_job_id = Column(Text, index=True)
    expires_at = Column(DateTime)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    master = relationship("MasterIngredient", back_populates="containers")
    contents = relationship("Contents", back_populates="container", uselist=False)

    __table_args__ = (
        CheckConstraint(
            "status IN ('SEALED', 'OPEN', 'LOW', 'EMPTY', 'DELETED')",
            name="ck_container_status",
        ),
        CheckConstraint(
            "master_id IS NOT NULL OR dish_name IS NOT NULL",
            name="ck_container_identity",
        ),
        Index("idx_containers_master_status_created", "master_id", "status", "created_at"),
    )

    @property
    def is_leftover(self) -> bool:
        return self.dish_name is not None

    @property
    def display_name(self) -> str:
        if self.dish_name:
            return self.dish_name
        if self.master is not None:
            return self.master.canonical_name
        return "Unknown"

    def __repr__(self):
        return f"<Container(id='{self.id}', master='{self.master_id}', status={self.status})>"


class Contents(Base):
    """
    Mutable quantity state of a container.

    Exactly one row per container, created with it and updated in place.
    ``version`` is bumped on every UPDATE and checked in its WHERE clause,
    so a write based on a stale read fails instead of silently winning.
    """

    __tablename__ = "contents"

    id = Column(Text, primary_key=True, default=_new_id)
    container_id = Column(
        Text,
        ForeignKey("containers.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    remaining_qty = Column(Float, nullable=False)
    unit = Column(Text, nullable=False)
    version = Column(Integer, nullable=False)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    container = relationship("Container", back_populates="contents")

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        CheckConstraint("remaining_qty >= 0", name="ck_contents_qty_nonneg"),
    )


class InventoryTransaction(Base):
    """Immutable audit record of one ledger mutation"""

    __tablename__ = "transactions"

    # Monotonic identity gives the log a total order
    id = Column(Integer, primary_key=True, autoincrement=True)
    container_id = Column(Text, ForeignKey("containers.id"), nullable=False, index=True)
    operation = Column(Text, nullable=False)
    delta = Column(Float)  # NULL for pure status changes
    unit = Column(Text)
    reason = Column(Text)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        CheckConstraint(
            "operation IN ('ADD', 'DEDUCT', 'ADJUST', 'MERGE', 'DELETE', 'STATUS_CHANGE')",
            name="ck_transaction_operation",
        ),
    )

    def __repr__(self):
        return (
            f"<InventoryTransaction(container='{self.container_id}', "
            f"op={self.operation}, delta={self.delta} {self.unit})>"
        )


@event.listens_for(InventoryTransaction, "before_update")
def _reject_transaction_update(mapper, connection, target):
    raise InvalidOperationError(
        f"Transaction {target.id} is immutable", code="TRANSACTION_IMMUTABLE"
    )


@event.listens_for(InventoryTransaction, "before_delete")
def _reject_transaction_delete(mapper, connection, target):
    raise InvalidOperationError(
        f"Transaction {target.id} cannot be deleted", code="TRANSACTION_IMMUTABLE"
    )
