"""Ingredient service - master catalog, aliases and name resolution."""

import logging
import re
import string
from typing import List, Optional

from app.exceptions import NotFoundError, ServiceValidationError
from domain.enums import AliasSource
from domain.models import MasterIngredient, IngredientAlias
from domain.schemas.ingredient_schemas import MasterIngredientCorrection, ResolveResult
from repositories import UnitOfWork
from services.concurrency import run_atomic
from services.ingredient_resolver import IngredientResolver
from services.unit_conversion_service import normalize_unit

logger = logging.getLogger("pantryledger.ingredients")

_NON_SLUG = re.compile(r"[^a-z0-9]+")


def _enum_value(value):
    return value.value if hasattr(value, "value") else value


class IngredientService:
    """Business logic for the master ingredient catalog."""

    @staticmethod
    def slugify(name: str, strict: bool = True) -> str:
        """
        Catalog id for a name: lowercase, non-alphanumeric runs collapsed to '-'.

        Raises:
            ServiceValidationError: the name has no alphanumeric character (strict only)
        """
        slug = _NON_SLUG.sub("-", name.lower()).strip("-")
        if strict and not slug:
            raise ServiceValidationError(
                f"Ingredient name '{name}' has no usable characters", code="INVALID_NAME"
            )
        return slug

    @staticmethod
    def normalize_name(raw_name: str) -> str:
        """Alias key form of a raw name"""
        return raw_name.strip().lower()

    @staticmethod
    def get_or_create(
        uow: UnitOfWork,
        name: str,
        category: Optional[str] = None,
        default_unit: Optional[str] = None,
        default_shelf_life_days: Optional[int] = None,
    ) -> MasterIngredient:
        """
        Return the catalog entry for ``name``'s slug, inserting it on first sight.

        Runs inside the caller's transaction. The insert is an upsert on the
        primary key, so concurrent first sightings converge on one row and an
        existing row is never modified.
        """
        if not name or not name.strip():
            raise ServiceValidationError("Ingredient name must not be empty", code="INVALID_NAME")

        slug = IngredientService.slugify(name)
        existing = uow.ingredients.get_by_id(slug)
        if existing is not None:
            return existing

        master = uow.ingredients.insert_if_absent(
            {
                "id": slug,
                "canonical_name": string.capwords(name.strip()),
                "category": _enum_value(category) or "unknown",
                "default_unit": normalize_unit(default_unit) if default_unit else None,
                "default_shelf_life_days": default_shelf_life_days,
            }
        )
        logger.info("Catalog entry ready: %s (%s)", master.id, master.canonical_name)
        return master

    @staticmethod
    def learn_alias(uow: UnitOfWork, alias: str, master_id: str, source) -> IngredientAlias:
        """Upsert an alias inside the caller's transaction; the last write wins"""
        key = IngredientService.normalize_name(alias)
        if not key:
            raise ServiceValidationError("Alias must not be empty", code="INVALID_ALIAS")
        if uow.ingredients.get_by_id(master_id) is None:
            raise NotFoundError(f"Master ingredient {master_id} not found")
        row = uow.aliases.upsert(key, master_id, _enum_value(source))
        logger.info("Alias '%s' -> %s (%s)", key, master_id, row.source)
        return row

    @staticmethod
    def register_alias(
        uow: UnitOfWork, alias: str, master_id: str, source=AliasSource.AGENT
    ) -> IngredientAlias:
        """Register an alias as its own unit of work."""
        return run_atomic(
            uow, lambda: IngredientService.learn_alias(uow, alias, master_id, source)
        )

    @staticmethod
    def resolve(uow: UnitOfWork, raw_name: str, category_hint: Optional[str] = None) -> ResolveResult:
        if not raw_name or not raw_name.strip():
            raise ServiceValidationError("Ingredient name must not be empty", code="INVALID_NAME")
        return IngredientResolver(uow).resolve(raw_name, category_hint)

    @staticmethod
    def get_ingredient(uow: UnitOfWork, master_id: str) -> MasterIngredient:
        master = uow.ingredients.get_by_id(master_id)
        if master is None:
            raise NotFoundError(f"Master ingredient {master_id} not found")
        return master

    @staticmethod
    def list_aliases(uow: UnitOfWork, master_id: str) -> List[IngredientAlias]:
        IngredientService.get_ingredient(uow, master_id)
        return uow.aliases.get_for_master(master_id)

    @staticmethod
    def correct_ingredient(
        uow: UnitOfWork, master_id: str, correction: MasterIngredientCorrection
    ) -> MasterIngredient:
        """
        Apply an explicit user correction to a catalog entry.

        This is the only path that mutates an existing catalog row; the id
        (slug) never changes.

        Raises:
            NotFoundError: unknown master_id
        """

        def _apply():
            master = IngredientService.get_ingredient(uow, master_id)
            changes = correction.model_dump(exclude_unset=True)
            if changes.get("canonical_name") is not None:
                master.canonical_name = changes["canonical_name"].strip()
            if changes.get("category") is not None:
                master.category = _enum_value(changes["category"])
            if "default_unit" in changes:
                unit = changes["default_unit"]
                master.default_unit = normalize_unit(unit) if unit else None
            if "default_shelf_life_days" in changes:
                master.default_shelf_life_days = changes["default_shelf_life_days"]
            uow.db.flush()
            logger.info("Corrected catalog entry %s: %s", master_id, sorted(changes))
            return master

        return run_atomic(uow, _apply)
