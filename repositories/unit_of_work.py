"""
Unit of Work - one atomic ledger mutation over a single database session.

Every ledger service method receives a UnitOfWork. Reads, the state change,
the contents write and the transaction-log append all happen inside
``uow.transaction()``, which commits them together or not at all.
"""

import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from app.exceptions import ConcurrencyConflictError
from repositories.container_repository import ContainerRepository
from repositories.ingredient_repository import (
    MasterIngredientRepository,
    IngredientAliasRepository,
)
from repositories.transaction_repository import TransactionRepository
from repositories.unit_conversion_repository import UnitConversionRepository

logger = logging.getLogger("pantryledger.unit_of_work")


class UnitOfWork:
    """Bundles the ledger repositories around one session"""

    def __init__(self, db: Session):
        self.db = db
        self.ingredients = MasterIngredientRepository(db)
        self.aliases = IngredientAliasRepository(db)
        self.conversions = UnitConversionRepository(db)
        self.containers = ContainerRepository(db)
        self.transactions = TransactionRepository(db)

    @contextmanager
    def transaction(self) -> Iterator["UnitOfWork"]:
        """
        Commit everything done in the block, or roll all of it back.

        Raises:
            ConcurrencyConflictError: a versioned row changed since it was read
        """
        try:
            yield self
            self.db.commit()
        except StaleDataError as exc:
            self.db.rollback()
            logger.warning("Stale row detected, transaction rolled back: %s", exc)
            raise ConcurrencyConflictError(str(exc), code="STALE_ROW") from exc
        except Exception:
            self.db.rollback()
            raise
