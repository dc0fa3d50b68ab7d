"""
Unit Conversion Repository - Data access for the global conversion factor table
"""

from typing import List, Optional
from sqlalchemy.orm import Session

from domain.models import UnitConversion
from repositories.base import BaseRepository
from repositories.ingredient_repository import dialect_insert


class UnitConversionRepository(BaseRepository[UnitConversion]):
    """Repository for unit conversion factors"""

    def __init__(self, db: Session):
        super().__init__(db, UnitConversion)

    def get_factor(self, from_unit: str, to_unit: str) -> Optional[float]:
        """Factor for the direct from -> to direction, or None"""
        row = (
            self.db.query(UnitConversion)
            .filter(
                UnitConversion.from_unit == from_unit,
                UnitConversion.to_unit == to_unit,
            )
            .first()
        )
        return row.factor if row else None

    def list_all(self) -> List[UnitConversion]:
        return self.db.query(UnitConversion).order_by(UnitConversion.id).all()

    def insert_if_absent(self, from_unit: str, to_unit: str, factor: float) -> bool:
        """
        Seed one factor; existing rows are left untouched.

        Returns:
            True if a row was inserted
        """
        conversion_id = f"{from_unit}:{to_unit}"
        insert = dialect_insert(self.dialect_name)
        if insert is not None:
            stmt = (
                insert(UnitConversion.__table__)
                .values(id=conversion_id, from_unit=from_unit, to_unit=to_unit, factor=factor)
                .on_conflict_do_nothing()
            )
            return self.db.execute(stmt).rowcount > 0
        if self.exists(conversion_id):
            return False
        self.add(UnitConversion(id=conversion_id, from_unit=from_unit, to_unit=to_unit, factor=factor))
        return True
