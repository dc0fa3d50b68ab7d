"""
FIFO deduction - consume stock of an ingredient from its oldest container.
"""

import logging
from typing import List

from app.config import settings
from app.exceptions import ConversionUnavailableError, NotFoundError, ServiceValidationError
from domain.enums import ContainerStatus, TransactionOperation
from domain.schemas.inventory_schemas import DeductRequest, DeductResult
from repositories import UnitOfWork
from services.concurrency import run_atomic
from services.container_state import (
    derive_quantity_status,
    ensure_transition,
    low_stock_warning,
)
from services.unit_conversion_service import UnitConversionService, normalize_unit

logger = logging.getLogger("pantryledger.deduction")


class DeductionService:
    @staticmethod
    def initial_quantity(uow: UnitOfWork, container_id: str, unit: str, fallback: float) -> float:
        """Quantity of the first ADD, expressed in ``unit``; ``fallback`` when unknown"""
        first_add = uow.transactions.get_first_add(container_id)
        if first_add is None or not first_add.delta:
            return fallback
        if not first_add.unit or first_add.unit == unit:
            return first_add.delta
        try:
            return UnitConversionService.convert(uow, first_add.delta, first_add.unit, unit)
        except ConversionUnavailableError:
            return fallback

    @staticmethod
    def deduct(uow: UnitOfWork, request: DeductRequest) -> DeductResult:
        """
        Deduct ``request.quantity`` of an ingredient from its oldest active container.

        Only the single oldest container (by creation time) is touched. When it
        holds less than requested, the deduction is clamped to what it holds and
        the shortfall is reported in ``warning``; callers deduct again to draw
        from the next container.

        The requested quantity is converted into the container's unit; when no
        conversion factor exists it is used as-is and a warning is returned.

        Raises:
            ServiceValidationError: non-positive quantity
            NotFoundError: no SEALED, OPEN or LOW container for the ingredient
        """
        if request.quantity <= 0:
            raise ServiceValidationError(
                "Deduction quantity must be positive", code="INVALID_QUANTITY"
            )
        return run_atomic(uow, lambda: DeductionService._deduct(uow, request))

    @staticmethod
    def _deduct(uow: UnitOfWork, request: DeductRequest) -> DeductResult:
        candidates = uow.containers.get_active_for_master(request.master_id, lock=True)
        if not candidates:
            raise NotFoundError(
                f"No available inventory for {request.master_id}", code="NO_ACTIVE_CONTAINER"
            )

        container = candidates[0]
        contents = uow.containers.lock_contents(container.id)
        warnings: List[str] = []

        if container.status == ContainerStatus.SEALED.value:
            ensure_transition(container.status, ContainerStatus.OPEN, container.id)
            container.status = ContainerStatus.OPEN.value
            uow.transactions.append(
                container.id, TransactionOperation.STATUS_CHANGE, reason="opened_for_use"
            )

        wanted, mismatch = UnitConversionService.convert_or_passthrough(
            uow, request.quantity, normalize_unit(request.unit), contents.unit
        )
        if mismatch:
            warnings.append(mismatch)

        current_qty = contents.remaining_qty
        new_qty = max(0.0, current_qty - wanted)
        actual = current_qty - new_qty

        initial_qty = DeductionService.initial_quantity(uow, container.id, contents.unit, current_qty)
        status, remaining_pct = derive_quantity_status(
            new_qty, initial_qty, settings.low_stock_threshold
        )
        if status == ContainerStatus.LOW:
            warnings.append(low_stock_warning(remaining_pct))
            logger.warning(
                "Container %s of %s is low: %.1f%% remaining",
                container.id, request.master_id, remaining_pct * 100,
            )

        if actual < wanted:
            warnings.append(
                f"INSUFFICIENT_STOCK: deducted {actual:g} of {wanted:g} {contents.unit}"
            )
            logger.info(
                "Deduction from %s clamped: short by %g %s",
                container.id, wanted - actual, contents.unit,
            )

        if status.value != container.status:
            ensure_transition(container.status, status, container.id)
            container.status = status.value

        contents.remaining_qty = new_qty
        uow.transactions.append(
            container.id,
            TransactionOperation.DEDUCT,
            delta=-actual,
            unit=contents.unit,
            reason=request.reason,
        )
        uow.db.flush()

        logger.info(
            "Deducted %g %s from container %s (%s), %g left",
            actual, contents.unit, container.id, request.master_id, new_qty,
        )
        return DeductResult(
            requested=wanted,
            deducted=actual,
            unit=contents.unit,
            container_id=container.id,
            remaining_after=new_qty,
            status=status,
            warning="; ".join(warnings) if warnings else None,
        )
