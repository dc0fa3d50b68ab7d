"""
API dependencies for dependency injection
"""

from typing import Generator

from fastapi import Depends
from sqlalchemy.orm import Session

from domain.models import get_db_session
from repositories import UnitOfWork


def get_db() -> Generator[Session, None, None]:
    """Database session dependency for FastAPI routes."""
    yield from get_db_session()


def get_uow(db: Session = Depends(get_db)) -> UnitOfWork:
    """
    Unit of work over the request's session.

    Usage:
        @router.post("/example")
        def example(uow: UnitOfWork = Depends(get_uow)):
            InventoryService.add_inventory(uow, ...)
    """
    return UnitOfWork(db)
