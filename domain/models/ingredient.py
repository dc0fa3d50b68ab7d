"""
Ingredient reference models - master catalog, learned aliases and unit conversions.
"""

from sqlalchemy import (
    Column,
    Text,
    Integer,
    Float,
    DateTime,
    ForeignKey,
    CheckConstraint,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from domain.models.database import Base, utcnow


class MasterIngredient(Base):
    """
    Canonical identity of a foodstuff.

    The primary key is a slug derived from the name, so concurrent first
    sightings of the same ingredient collapse onto one row through the
    primary key constraint. Rows are never deleted; containers reference them.
    """

    __tablename__ = "master_ingredients"

    id = Column(Text, primary_key=True)
    canonical_name = Column(Text, nullable=False)
    category = Column(Text, nullable=False, default="unknown")
    default_unit = Column(Text)
    default_shelf_life_days = Column(Integer)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    aliases = relationship("IngredientAlias", back_populates="master")
    containers = relationship("Container", back_populates="master")

    __table_args__ = (
        CheckConstraint(
            "default_shelf_life_days IS NULL OR default_shelf_life_days >= 0",
            name="ck_master_shelf_life_nonneg",
        ),
    )

    def __repr__(self):
        return f"<MasterIngredient(id='{self.id}', name='{self.canonical_name}')>"


class IngredientAlias(Base):
    """Learned mapping from a normalized raw name to a master ingredient"""

    __tablename__ = "ingredient_aliases"

    alias = Column(Text, primary_key=True)
    master_id = Column(Text, ForeignKey("master_ingredients.id"), nullable=False, index=True)
    source = Column(Text, nullable=False, default="agent")
    created_at = Column(DateTime, nullable=False, default=utcnow)

    master = relationship("MasterIngredient", back_populates="aliases")

    def __repr__(self):
        return f"<IngredientAlias('{self.alias}' -> '{self.master_id}')>"


class UnitConversion(Base):
    """Multiplicative factor turning a quantity in from_unit into to_unit"""

    __tablename__ = "global_unit_conversions"

    id = Column(Text, primary_key=True)  # "from_unit:to_unit"
    from_unit = Column(Text, nullable=False)
    to_unit = Column(Text, nullable=False)
    factor = Column(Float, nullable=False)

    __table_args__ = (
        UniqueConstraint("from_unit", "to_unit", name="uq_unit_conversion_pair"),
        CheckConstraint("factor > 0", name="ck_unit_conversion_factor_pos"),
    )
