"""Health check and utility routes"""

from fastapi import APIRouter, Depends
import logging
from sqlalchemy import text

from api.dependencies import get_uow
from app.config import settings
from repositories import UnitOfWork

router = APIRouter(tags=["Health"])
logger = logging.getLogger("pantryledger.api.health")


@router.get("/health-check")
def health_check():
    """Basic health check endpoint"""
    return {"status": "ok", "service": settings.app_name}


@router.get("/health-check/db")
def database_health(uow: UnitOfWork = Depends(get_uow)):
    """Check the database answers and report the seeded conversion count."""
    uow.db.execute(text("SELECT 1"))
    return {"status": "ok", "unit_conversions": len(uow.conversions.list_all())}
