"""
Ingredient Repositories - Data access for the master catalog and learned aliases
"""

from typing import List, Optional, Dict, Any
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError

from domain.models import MasterIngredient, IngredientAlias
from repositories.base import BaseRepository


def dialect_insert(dialect_name: str):
    """Return the dialect-specific INSERT construct supporting ON CONFLICT, if any"""
    if dialect_name == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
        return insert
    if dialect_name == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
        return insert
    return None


class MasterIngredientRepository(BaseRepository[MasterIngredient]):
    """Repository for master ingredient catalog data"""

    def __init__(self, db: Session):
        super().__init__(db, MasterIngredient)

    def list_all(self) -> List[MasterIngredient]:
        """Every catalog entry, ordered by id"""
        return self.db.query(MasterIngredient).order_by(MasterIngredient.id).all()

    def insert_if_absent(self, values: Dict[str, Any]) -> MasterIngredient:
        """
        Insert a catalog row unless one with the same id already exists.

        The existence check and the insert are a single statement keyed on the
        primary key, so two requests seeing the same new ingredient at once
        both end up with the one row.

        Args:
            values: column values; must include ``id``

        Returns:
            The stored MasterIngredient (pre-existing or newly inserted)
        """
        insert = dialect_insert(self.dialect_name)
        if insert is not None:
            stmt = (
                insert(MasterIngredient.__table__)
                .values(**values)
                .on_conflict_do_nothing(index_elements=["id"])
            )
            self.db.execute(stmt)
        else:
            try:
                with self.db.begin_nested():
                    self.db.add(MasterIngredient(**values))
            except IntegrityError:
                # Another request created it first
                pass
        return self.db.get(MasterIngredient, values["id"], populate_existing=True)


class IngredientAliasRepository(BaseRepository[IngredientAlias]):
    """Repository for alias lookups and upserts"""

    def __init__(self, db: Session):
        super().__init__(db, IngredientAlias)

    def get_by_alias(self, alias: str) -> Optional[IngredientAlias]:
        """Get alias row by its normalized key"""
        return self.db.get(IngredientAlias, alias)

    def get_for_master(self, master_id: str) -> List[IngredientAlias]:
        """All aliases pointing at a master ingredient"""
        return (
            self.db.query(IngredientAlias)
            .filter(IngredientAlias.master_id == master_id)
            .order_by(IngredientAlias.alias)
            .all()
        )

    def upsert(self, alias: str, master_id: str, source: str) -> IngredientAlias:
        """Insert or re-point an alias; the last write wins"""
        insert = dialect_insert(self.dialect_name)
        if insert is not None:
            stmt = insert(IngredientAlias.__table__).values(
                alias=alias, master_id=master_id, source=source
            )
            stmt = stmt.on_conflict_do_update(
                index_elements=["alias"],
                set_={"master_id": master_id, "source": source},
            )
            self.db.execute(stmt)
        else:
            existing = self.db.get(IngredientAlias, alias, with_for_update=True)
            if existing:
                existing.master_id = master_id
                existing.source = source
            else:
                self.db.add(IngredientAlias(alias=alias, master_id=master_id, source=source))
            self.db.flush()
        return self.db.get(IngredientAlias, alias, populate_existing=True)
