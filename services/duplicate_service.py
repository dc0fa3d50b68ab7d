"""
Duplicate detection for incoming purchases.
"""

import logging
from datetime import timedelta
from typing import Optional

from app.config import settings
from domain.enums import DuplicateRecommendation, DuplicateType
from domain.mappers import InventoryMapper
from domain.models import utcnow
from domain.schemas.inventory_schemas import DuplicateCheckResult
from repositories import UnitOfWork

logger = logging.getLogger("pantryledger.duplicates")


class DuplicateService:
    @staticmethod
    def check_duplicates(
        uow: UnitOfWork,
        master_id: str,
        vision_job_id: Optional[str] = None,
        quantity: Optional[float] = None,
    ) -> DuplicateCheckResult:
        """
        Classify a prospective purchase against the active containers of its ingredient.

        First match wins:
            1. no active container             -> NONE / ADD_NEW
            2. same vision job already stored  -> DEFINITE / SKIP
            3. container created recently      -> LIKELY / ASK_USER
            4. remaining quantity within the
               tolerance of ``quantity``       -> POSSIBLE / ASK_USER
            5. otherwise                       -> NONE / ADD_NEW

        Args:
            uow: unit of work
            master_id: ingredient of the prospective purchase
            vision_job_id: extraction run that produced it, if any
            quantity: its quantity, if known

        Returns:
            DuplicateCheckResult listing the containers behind the verdict
        """
        now = utcnow()
        existing = uow.containers.get_active_for_master(master_id)

        def _result(kind, recommendation, containers):
            logger.debug("Duplicate check %s: %s", master_id, kind.value)
            return DuplicateCheckResult(
                duplicate_type=kind,
                existing_containers=[InventoryMapper.to_item(c, now) for c in containers],
                recommendation=recommendation,
            )

        if not existing:
            return _result(DuplicateType.NONE, DuplicateRecommendation.ADD_NEW, [])

        if vision_job_id:
            same_job = [c for c in existing if c.vision_job_id == vision_job_id]
            if same_job:
                return _result(DuplicateType.DEFINITE, DuplicateRecommendation.SKIP, same_job)

        cutoff = now - timedelta(hours=settings.duplicate_recent_window_hours)
        recent = [c for c in existing if c.created_at > cutoff]
        if recent:
            return _result(DuplicateType.LIKELY, DuplicateRecommendation.ASK_USER, recent)

        if quantity:
            similar = [
                c for c in existing
                if abs(c.contents.remaining_qty - quantity) / quantity
                <= settings.duplicate_qty_tolerance
            ]
            if similar:
                return _result(DuplicateType.POSSIBLE, DuplicateRecommendation.ASK_USER, similar)

        return _result(DuplicateType.NONE, DuplicateRecommendation.ADD_NEW, existing)
