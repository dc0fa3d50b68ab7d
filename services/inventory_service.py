"""
Inventory service - the container ledger.

Every mutation locks the rows it touches, applies the new state, and appends
to the transaction log inside one unit of work.
"""

import logging
from collections import defaultdict
from datetime import timedelta
from typing import Dict, List, Optional

from app.config import settings
from app.exceptions import InvalidOperationError, NotFoundError, ServiceValidationError
from domain.enums import (
    AliasSource,
    ContainerSource,
    ContainerStatus,
    IngredientCategory,
    TransactionOperation,
)
from domain.mappers import InventoryMapper
from domain.models import Container, InventoryTransaction, utcnow
from domain.schemas.inventory_schemas import (
    AddInventoryItem,
    AddInventoryRequest,
    AddInventoryResult,
    AddLeftoverRequest,
    AddLeftoverResult,
    CategorySummary,
    InventoryItemResponse,
    InventorySummary,
    MergeResult,
    ProjectionCheck,
    SearchInventoryFilters,
    UpdateInventoryRequest,
)
from repositories import ACTIVE_STATUSES, UnitOfWork
from services.concurrency import run_atomic
from services.container_state import (
    derive_quantity_status,
    ensure_active,
    ensure_transition,
    is_active,
    low_stock_warning,
)
from services.deduction_service import DeductionService
from services.ingredient_service import IngredientService
from services.unit_conversion_service import UnitConversionService, normalize_unit

logger = logging.getLogger("pantryledger.inventory")

PROJECTION_TOLERANCE = 1e-6


class InventoryService:
    # =========================================================================
    # CREATE
    # =========================================================================

    @staticmethod
    def add_inventory(uow: UnitOfWork, request: AddInventoryRequest) -> AddInventoryResult:
        """
        Ingest a batch of purchases as one unit of work.

        Each item gets its catalog entry (resolved by ``master_id`` or created
        from the name's slug), a container, a contents row and an ADD
        transaction. A failure on any item stores none of them.

        Raises:
            NotFoundError: an explicit master_id does not exist
            ServiceValidationError: bad name, quantity or initial status
        """

        def _apply():
            container_ids = [
                InventoryService._add_item(uow, item).id for item in request.items
            ]
            return AddInventoryResult(container_ids=container_ids, created=len(container_ids))

        result = run_atomic(uow, _apply)
        logger.info("Added %d containers", result.created)
        return result

    @staticmethod
    def _add_item(uow: UnitOfWork, item: AddInventoryItem) -> Container:
        if item.contents.quantity <= 0:
            raise ServiceValidationError("Quantity must be positive", code="INVALID_QUANTITY")
        status = ContainerStatus(item.container.status)
        if not is_active(status):
            raise ServiceValidationError(
                f"A new container cannot start as {status.value}", code="INVALID_STATUS"
            )

        unit = normalize_unit(item.contents.unit)
        if item.master_id:
            master = IngredientService.get_ingredient(uow, item.master_id)
            normalized = IngredientService.normalize_name(item.name)
            if normalized and normalized != master.canonical_name.lower() \
                    and IngredientService.slugify(normalized, strict=False) != master.id:
                IngredientService.learn_alias(uow, normalized, master.id, AliasSource.AGENT)
        else:
            master = IngredientService.get_or_create(
                uow,
                item.name,
                category=item.category,
                default_unit=item.default_unit or unit,
                default_shelf_life_days=item.default_shelf_life_days,
            )

        expires_at = item.expires_at
        if expires_at is None and master.default_shelf_life_days is not None:
            expires_at = utcnow() + timedelta(days=master.default_shelf_life_days)

        container = uow.containers.create_with_contents(
            Container(
                master_id=master.id,
                status=status.value,
                purchase_unit=item.container.unit,
                source=ContainerSource(item.source).value,
                confidence=item.confidence.value if item.confidence else None,
                vision_job_id=item.vision_job_id,
                expires_at=expires_at,
            ),
            item.contents.quantity,
            unit,
        )
        uow.transactions.append(
            container.id,
            TransactionOperation.ADD,
            delta=item.contents.quantity,
            unit=unit,
            reason=f"{ContainerSource(item.source).value}_ingest",
        )
        logger.info(
            "Container %s: %g %s of %s", container.id, item.contents.quantity, unit, master.id
        )
        return container

    @staticmethod
    def add_leftover(uow: UnitOfWork, request: AddLeftoverRequest) -> AddLeftoverResult:
        """Store a cooked batch as an OPEN container without a catalog entry"""
        dish_name = request.dish_name.strip()
        if not dish_name:
            raise ServiceValidationError("Dish name must not be empty", code="INVALID_NAME")
        if request.quantity <= 0:
            raise ServiceValidationError("Quantity must be positive", code="INVALID_QUANTITY")

        days = request.expires_in_days
        if days is None:
            days = settings.leftover_default_expiry_days
        unit = normalize_unit(request.unit)

        def _apply():
            container = uow.containers.create_with_contents(
                Container(
                    master_id=None,
                    dish_name=dish_name,
                    cooked_from_recipe_id=request.recipe_id,
                    status=ContainerStatus.OPEN.value,
                    source=ContainerSource.COOKED.value,
                    expires_at=utcnow() + timedelta(days=days),
                ),
                request.quantity,
                unit,
            )
            uow.transactions.append(
                container.id,
                TransactionOperation.ADD,
                delta=request.quantity,
                unit=unit,
                reason=f"leftover:{request.recipe_id or 'manual'}",
            )
            return AddLeftoverResult(container_id=container.id)

        result = run_atomic(uow, _apply)
        logger.info("Leftover '%s' stored as %s", dish_name, result.container_id)
        return result

    # =========================================================================
    # UPDATE / DELETE
    # =========================================================================

    @staticmethod
    def update_inventory(
        uow: UnitOfWork, container_id: str, request: UpdateInventoryRequest
    ) -> InventoryItemResponse:
        """
        Apply manual corrections to a container.

        Quantity changes are logged as ADJUST; a unit change is logged as two
        ADJUSTs so the log stays balanced per unit. Status changes follow the
        container lifecycle, and status DELETED is a soft delete. Status EMPTY
        adjusts the remaining quantity to zero; OPEN and LOW must agree with
        the status the remaining quantity implies.

        Raises:
            NotFoundError: unknown container or target ingredient
            InvalidOperationError: container is EMPTY or DELETED, or the status
                change is not permitted
        """
        return run_atomic(uow, lambda: InventoryService._update(uow, container_id, request))

    @staticmethod
    def _update(uow: UnitOfWork, container_id: str, request: UpdateInventoryRequest):
        container = InventoryService._get_container(uow, container_id, lock=True)
        updates = request.updates
        reason = request.reason or "manual_adjustment"

        if updates.status == ContainerStatus.DELETED:
            InventoryService._soft_delete(uow, container, request.reason or "user_removed")
            uow.db.flush()
            return InventoryMapper.to_item(container)

        ensure_active(container, "update")
        contents = container.contents
        old_qty = contents.remaining_qty
        old_unit = contents.unit
        new_qty = old_qty

        if updates.master_id and updates.master_id != container.master_id:
            new_master = IngredientService.get_ingredient(uow, updates.master_id)
            if updates.name and container.master_id:
                old_master = uow.ingredients.get_by_id(container.master_id)
                if old_master is not None:
                    IngredientService.learn_alias(
                        uow,
                        old_master.canonical_name.lower(),
                        new_master.id,
                        AliasSource.USER_CORRECTION,
                    )
            logger.info("Container %s re-pointed %s -> %s", container.id, container.master_id, new_master.id)
            container.master = new_master
        elif updates.name and container.is_leftover:
            container.dish_name = updates.name.strip()

        new_unit = normalize_unit(updates.unit) if updates.unit else old_unit
        if new_unit != old_unit:
            if updates.remaining_qty is not None:
                new_qty = updates.remaining_qty
            else:
                new_qty, _ = UnitConversionService.convert_or_passthrough(
                    uow, old_qty, old_unit, new_unit
                )
            uow.transactions.append(
                container.id, TransactionOperation.ADJUST, delta=-old_qty, unit=old_unit, reason=reason
            )
            uow.transactions.append(
                container.id, TransactionOperation.ADJUST, delta=new_qty, unit=new_unit, reason=reason
            )
            contents.unit = new_unit
            contents.remaining_qty = new_qty
        elif updates.remaining_qty is not None and updates.remaining_qty != old_qty:
            new_qty = updates.remaining_qty
            uow.transactions.append(
                container.id,
                TransactionOperation.ADJUST,
                delta=new_qty - old_qty,
                unit=old_unit,
                reason=reason,
            )
            contents.remaining_qty = new_qty

        if updates.status == ContainerStatus.EMPTY and new_qty > 0:
            uow.transactions.append(
                container.id, TransactionOperation.ADJUST, delta=-new_qty, unit=new_unit, reason=reason
            )
            new_qty = 0.0
            contents.remaining_qty = new_qty

        if new_qty != old_qty or new_unit != old_unit:
            InventoryService._rederive_status(uow, container, new_qty, new_unit)

        if updates.status is not None and updates.status.value != container.status:
            ensure_transition(container.status, updates.status, container.id)
            if updates.status in (ContainerStatus.OPEN, ContainerStatus.LOW):
                implied, _ = InventoryService._quantity_status(uow, container, new_qty, new_unit)
                if implied != updates.status:
                    raise InvalidOperationError(
                        f"Container {container.id} holds {new_qty:g} {new_unit}, "
                        f"which is {implied.value}, not {updates.status.value}",
                        code="STATUS_QUANTITY_MISMATCH",
                    )
            container.status = updates.status.value
            uow.transactions.append(
                container.id, TransactionOperation.STATUS_CHANGE, reason=reason
            )

        if updates.expires_at is not None:
            container.expires_at = updates.expires_at

        container.updated_at = utcnow()
        uow.db.flush()
        return InventoryMapper.to_item(container)

    @staticmethod
    def _rederive_status(uow: UnitOfWork, container: Container, qty: float, unit: str) -> None:
        """Quantity-driven status after an adjust or merge; SEALED stays SEALED unless emptied"""
        if qty > 0 and container.status == ContainerStatus.SEALED.value:
            return
        target, pct = InventoryService._quantity_status(uow, container, qty, unit)
        if target == ContainerStatus.LOW:
            logger.warning("Container %s %s", container.id, low_stock_warning(pct))
        if target.value != container.status:
            ensure_transition(container.status, target, container.id)
            container.status = target.value

    @staticmethod
    def _quantity_status(uow: UnitOfWork, container: Container, qty: float, unit: str):
        """(status, remaining fraction) implied by ``qty`` for an opened container"""
        if qty <= 0:
            return ContainerStatus.EMPTY, None
        initial = DeductionService.initial_quantity(uow, container.id, unit, qty)
        return derive_quantity_status(qty, initial, settings.low_stock_threshold)

    @staticmethod
    def delete_inventory(
        uow: UnitOfWork, container_id: str, reason: str = "user_removed"
    ) -> InventoryItemResponse:
        """Soft delete: status DELETED plus a DELETE transaction; the quantity is kept"""

        def _apply():
            container = InventoryService._get_container(uow, container_id, lock=True)
            InventoryService._soft_delete(uow, container, reason)
            uow.db.flush()
            return InventoryMapper.to_item(container)

        return run_atomic(uow, _apply)

    @staticmethod
    def _soft_delete(uow: UnitOfWork, container: Container, reason: str) -> None:
        if container.status == ContainerStatus.DELETED.value:
            raise InvalidOperationError(
                f"Container {container.id} is already deleted", code="CONTAINER_NOT_ACTIVE"
            )
        ensure_transition(container.status, ContainerStatus.DELETED, container.id)
        container.status = ContainerStatus.DELETED.value
        container.updated_at = utcnow()
        uow.transactions.append(container.id, TransactionOperation.DELETE, reason=reason)
        logger.info("Container %s deleted (%s)", container.id, reason)

    # =========================================================================
    # MERGE
    # =========================================================================

    @staticmethod
    def merge_inventory(uow: UnitOfWork, source_id: str, target_id: str) -> MergeResult:
        """
        Pour the source container into the target.

        The source quantity is converted into the target's unit (or used as-is
        with a warning), the source is emptied and soft-deleted, and one MERGE
        transaction is logged on each side.

        Raises:
            NotFoundError: either container is missing
            InvalidOperationError: same container, inactive container, or
                different ingredients
        """
        if source_id == target_id:
            raise InvalidOperationError("Cannot merge a container into itself", code="MERGE_SELF")
        return run_atomic(uow, lambda: InventoryService._merge(uow, source_id, target_id))

    @staticmethod
    def _merge(uow: UnitOfWork, source_id: str, target_id: str) -> MergeResult:
        # Lock in id order so concurrent merges of the same pair cannot deadlock
        locked = {
            cid: InventoryService._get_container(uow, cid, lock=True)
            for cid in sorted((source_id, target_id))
        }
        source, target = locked[source_id], locked[target_id]
        ensure_active(source, "merge")
        ensure_active(target, "merge")

        if source.master_id != target.master_id:
            raise InvalidOperationError(
                "Cannot merge containers with different ingredients", code="MERGE_MISMATCH"
            )
        if source.master_id is None and source.dish_name.lower() != target.dish_name.lower():
            raise InvalidOperationError(
                "Cannot merge leftovers of different dishes", code="MERGE_MISMATCH"
            )

        src_contents, tgt_contents = source.contents, target.contents
        source_qty, source_unit = src_contents.remaining_qty, src_contents.unit
        added, warning = UnitConversionService.convert_or_passthrough(
            uow, source_qty, source_unit, tgt_contents.unit
        )
        new_qty = tgt_contents.remaining_qty + added
        tgt_contents.remaining_qty = new_qty
        InventoryService._rederive_status(uow, target, new_qty, tgt_contents.unit)
        target.updated_at = utcnow()

        src_contents.remaining_qty = 0.0
        ensure_transition(source.status, ContainerStatus.DELETED, source.id)
        source.status = ContainerStatus.DELETED.value
        source.updated_at = utcnow()

        uow.transactions.append(
            target.id, TransactionOperation.MERGE, delta=added,
            unit=tgt_contents.unit, reason=f"merged_from:{source.id}",
        )
        uow.transactions.append(
            source.id, TransactionOperation.MERGE, delta=-source_qty,
            unit=source_unit, reason=f"merged_into:{target.id}",
        )
        uow.db.flush()

        logger.info(
            "Merged %s into %s: +%g %s, now %g", source.id, target.id, added, tgt_contents.unit, new_qty
        )
        return MergeResult(
            target_id=target.id, new_qty=new_qty, unit=tgt_contents.unit, warning=warning
        )

    # =========================================================================
    # READ
    # =========================================================================

    @staticmethod
    def get_item(uow: UnitOfWork, container_id: str) -> InventoryItemResponse:
        return InventoryMapper.to_item(InventoryService._get_container(uow, container_id))

    @staticmethod
    def search_inventory(
        uow: UnitOfWork, filters: Optional[SearchInventoryFilters] = None
    ) -> List[InventoryItemResponse]:
        """Inventory items matching every given filter, oldest first"""
        filters = filters or SearchInventoryFilters()
        now = utcnow()
        containers = uow.containers.search(
            statuses=[s.value for s in filters.status] if filters.status else None,
            master_id=filters.master_id,
            category=filters.category.value if filters.category else None,
            query_text=filters.query.strip() if filters.query else None,
            include_leftovers=filters.include_leftovers,
            expiring_within_days=filters.expiring_within_days,
            limit=filters.limit or settings.search_default_limit,
            now=now,
        )
        return [InventoryMapper.to_item(c, now) for c in containers]

    @staticmethod
    def get_expiring_items(
        uow: UnitOfWork, within_days: Optional[int] = None
    ) -> List[InventoryItemResponse]:
        """Active containers expiring within the window, soonest first"""
        if within_days is None:
            within_days = settings.expiring_default_days
        if within_days < 0:
            raise ServiceValidationError("within_days must not be negative", code="INVALID_WINDOW")
        now = utcnow()
        containers = uow.containers.search(
            statuses=ACTIVE_STATUSES,
            expiring_within_days=within_days,
            order_by_expiry=True,
            limit=None,
            now=now,
        )
        return [InventoryMapper.to_item(c, now) for c in containers]

    @staticmethod
    def get_summary(uow: UnitOfWork) -> InventorySummary:
        """Active inventory grouped by category, with leftovers and expiring items"""
        now = utcnow()
        items = [
            InventoryMapper.to_item(c, now)
            for c in uow.containers.search(statuses=ACTIVE_STATUSES, limit=None, now=now)
        ]
        categories: Dict[str, CategorySummary] = {
            category.value: CategorySummary() for category in IngredientCategory
        }
        leftovers = []
        for item in items:
            if item.is_leftover:
                leftovers.append(item)
                continue
            bucket = categories.setdefault(item.category or "unknown", CategorySummary())
            bucket.count += 1
            bucket.items.append(item)

        return InventorySummary(
            expiring_soon=InventoryService.get_expiring_items(uow),
            categories=categories,
            leftovers=leftovers,
            total_count=len(items),
        )

    @staticmethod
    def get_transactions(uow: UnitOfWork, container_id: str) -> List[InventoryTransaction]:
        InventoryService._get_container(uow, container_id)
        return uow.transactions.get_for_container(container_id)

    @staticmethod
    def verify_projection(uow: UnitOfWork, container_id: str) -> ProjectionCheck:
        """
        Recompute a container's quantity from its transaction log.

        Deltas are summed per unit and each unit's total is projected into the
        container's current unit before comparing with the stored quantity.
        """
        container = InventoryService._get_container(uow, container_id)
        contents = container.contents
        per_unit: Dict[str, float] = defaultdict(float)
        for txn in uow.transactions.get_for_container(container_id):
            if txn.delta is not None:
                per_unit[txn.unit or contents.unit] += txn.delta

        expected = 0.0
        for unit, total in per_unit.items():
            if abs(total) <= PROJECTION_TOLERANCE:
                continue
            projected, _ = UnitConversionService.convert_or_passthrough(
                uow, total, unit, contents.unit
            )
            expected += projected

        actual = contents.remaining_qty
        consistent = abs(expected - actual) <= PROJECTION_TOLERANCE * max(1.0, abs(actual))
        if not consistent:
            logger.error(
                "Projection mismatch on %s: log says %g %s, contents say %g",
                container_id, expected, contents.unit, actual,
            )
        return ProjectionCheck(
            container_id=container_id,
            unit=contents.unit,
            expected=expected,
            actual=actual,
            consistent=consistent,
        )

    # =========================================================================
    # HELPERS
    # =========================================================================

    @staticmethod
    def _get_container(uow: UnitOfWork, container_id: str, lock: bool = False) -> Container:
        container = uow.containers.get_by_id(container_id, lock=lock)
        if container is None:
            raise NotFoundError(f"Container {container_id} not found")
        return container
