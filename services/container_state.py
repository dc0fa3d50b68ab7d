"""
Container lifecycle rules.

SEALED -> OPEN -> LOW -> EMPTY, forward only, with OPEN <-> LOW re-derived
from the remaining quantity. DELETED is a soft delete reachable from every
state except DELETED itself. Nothing leaves EMPTY except a soft delete, and
nothing leaves DELETED.
"""

import math
from typing import Optional, Tuple

from app.exceptions import InvalidOperationError
from domain.enums import ContainerStatus

S = ContainerStatus

ALLOWED_TRANSITIONS = {
    S.SEALED: {S.OPEN, S.LOW, S.EMPTY, S.DELETED},
    S.OPEN: {S.LOW, S.EMPTY, S.DELETED},
    S.LOW: {S.OPEN, S.EMPTY, S.DELETED},
    S.EMPTY: {S.DELETED},
    S.DELETED: set(),
}

ACTIVE = frozenset({S.SEALED, S.OPEN, S.LOW})


def is_active(status) -> bool:
    return ContainerStatus(status) in ACTIVE


def can_transition(current, target) -> bool:
    current, target = ContainerStatus(current), ContainerStatus(target)
    if current == target:
        return current != S.DELETED
    return target in ALLOWED_TRANSITIONS[current]


def ensure_transition(current, target, container_id: Optional[str] = None) -> None:
    """Raise InvalidOperationError unless ``current -> target`` is permitted"""
    if not can_transition(current, target):
        subject = f"Container {container_id}" if container_id else "Container"
        raise InvalidOperationError(
            f"{subject} cannot move from "
            f"{ContainerStatus(current).value} to {ContainerStatus(target).value}",
            code="INVALID_STATUS_TRANSITION",
        )


def ensure_active(container, action: str) -> None:
    """Reject mutations of EMPTY or DELETED containers"""
    if not is_active(container.status):
        raise InvalidOperationError(
            f"Cannot {action} container {container.id}: status is {container.status}",
            code="CONTAINER_NOT_ACTIVE",
        )


def derive_quantity_status(
    new_qty: float, initial_qty: Optional[float], threshold: float
) -> Tuple[ContainerStatus, Optional[float]]:
    """
    Status implied by the remaining quantity of an opened container.

    Args:
        new_qty: quantity left after the mutation
        initial_qty: quantity the container was created with
        threshold: fraction at or below which stock is LOW

    Returns:
        (status, remaining fraction or None when the container is empty)
    """
    if new_qty <= 0:
        return S.EMPTY, None
    if not initial_qty or initial_qty <= 0:
        return S.OPEN, None
    remaining_pct = new_qty / initial_qty
    if remaining_pct <= threshold:
        return S.LOW, remaining_pct
    return S.OPEN, remaining_pct


def low_stock_warning(remaining_pct: float) -> str:
    """Warning text for a LOW container, percentage rounded half up"""
    return f"LOW_INVENTORY: {int(math.floor(remaining_pct * 100 + 0.5))}% remaining"
