"""
Container Repository - Data access layer for containers and their contents
"""

from typing import List, Optional, Sequence
from datetime import datetime, timedelta
from sqlalchemy import and_, or_, func, select
from sqlalchemy.orm import Session, contains_eager

from domain.enums import ContainerStatus
from domain.models import Container, Contents, InventoryTransaction, MasterIngredient, utcnow
from repositories.base import BaseRepository

ACTIVE_STATUSES = (
    ContainerStatus.SEALED.value,
    ContainerStatus.OPEN.value,
    ContainerStatus.LOW.value,
)


def _first_log_id():
    """Id of a container's first log entry; ids grow in insertion order"""
    return (
        select(func.min(InventoryTransaction.id))
        .where(InventoryTransaction.container_id == Container.id)
        .correlate(Container)
        .scalar_subquery()
    )


class ContainerRepository(BaseRepository[Container]):
    """Repository for container and contents data access"""

    def __init__(self, db: Session):
        super().__init__(db, Container)

    def get_by_id(self, container_id: str, lock: bool = False) -> Optional[Container]:
        """
        Get container by ID.

        With ``lock`` the container and its contents rows are read with
        SELECT ... FOR UPDATE, holding them until the surrounding transaction ends.
        """
        query = self.db.query(Container).filter(Container.id == container_id)
        if lock:
            query = query.with_for_update()
        container = query.first()
        if container is not None and lock:
            self.lock_contents(container.id)
        return container

    def lock_contents(self, container_id: str) -> Optional[Contents]:
        """Read the contents row of a container FOR UPDATE"""
        return (
            self.db.query(Contents)
            .filter(Contents.container_id == container_id)
            .with_for_update()
            .populate_existing()
            .first()
        )

    def get_active_for_master(self, master_id: str, lock: bool = False) -> List[Container]:
        """Active containers of an ingredient, oldest stock first"""
        query = (
            self.db.query(Container)
            .filter(
                and_(
                    Container.master_id == master_id,
                    Container.status.in_(ACTIVE_STATUSES),
                )
            )
            .order_by(Container.created_at, _first_log_id(), Container.id)
        )
        if lock:
            query = query.with_for_update().populate_existing()
        return query.all()

    def create_with_contents(self, container: Container, quantity: float, unit: str) -> Container:
        """Insert a container together with its single contents row"""
        self.db.add(container)
        container.contents = Contents(remaining_qty=quantity, unit=unit)
        self.db.flush()
        return container

    def search(
        self,
        statuses: Optional[Sequence[str]] = None,
        master_id: Optional[str] = None,
        category: Optional[str] = None,
        query_text: Optional[str] = None,
        include_leftovers: bool = True,
        expiring_within_days: Optional[int] = None,
        order_by_expiry: bool = False,
        limit: Optional[int] = 100,
        now: Optional[datetime] = None,
    ) -> List[Container]:
        """
        List containers joined with contents and catalog entry.

        DELETED containers are excluded unless explicitly requested in
        ``statuses``. All filters are applied before the limit; a ``None``
        limit returns every match.
        """
        query = (
            self.db.query(Container)
            .join(Contents, Contents.container_id == Container.id)
            .outerjoin(MasterIngredient, Container.master_id == MasterIngredient.id)
            .options(contains_eager(Container.contents), contains_eager(Container.master))
        )

        if statuses:
            query = query.filter(Container.status.in_(list(statuses)))
        if not statuses or ContainerStatus.DELETED.value not in statuses:
            query = query.filter(Container.status != ContainerStatus.DELETED.value)

        if master_id:
            query = query.filter(Container.master_id == master_id)

        if not include_leftovers:
            query = query.filter(Container.dish_name.is_(None))

        if category:
            query = query.filter(MasterIngredient.category == category)

        if query_text:
            pattern = f"%{query_text.lower()}%"
            query = query.filter(
                or_(
                    func.lower(Container.dish_name).like(pattern),
                    func.lower(MasterIngredient.canonical_name).like(pattern),
                )
            )

        if expiring_within_days is not None:
            cutoff = (now or utcnow()) + timedelta(days=expiring_within_days)
            query = query.filter(
                and_(Container.expires_at.isnot(None), Container.expires_at <= cutoff)
            )

        if order_by_expiry:
            query = query.order_by(Container.expires_at, Container.created_at, _first_log_id())
        else:
            query = query.order_by(Container.created_at, _first_log_id(), Container.id)

        if limit is not None:
            query = query.limit(limit)
        return query.all()
