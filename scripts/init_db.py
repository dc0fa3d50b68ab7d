#!/usr/bin/env python3
"""
Standalone database initialization script
Creates the ledger tables and seeds the unit conversion table.
Safe to run repeatedly.
"""

import sys
import os
import logging

# Ensure we're using the right Python path
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, project_root)

from app.config import settings
from domain.models import SessionLocal, init_database
from repositories import UnitOfWork
from services.concurrency import run_atomic
from services.unit_conversion_service import UnitConversionService

logger = logging.getLogger("pantryledger.scripts.init_db")


def main() -> int:
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper()), format=settings.log_format
    )
    try:
        init_database()
    except Exception as exc:
        logger.error("Table creation failed: %s", exc)
        return 1

    db = SessionLocal()
    try:
        uow = UnitOfWork(db)
        inserted = run_atomic(uow, lambda: UnitConversionService.seed_defaults(uow))
        total = len(uow.conversions.list_all())
    except Exception as exc:
        logger.error("Seeding unit conversions failed: %s", exc)
        return 1
    finally:
        db.close()

    print(f"  • unit conversions: {inserted} inserted, {total} total")
    return 0


if __name__ == "__main__":
    print("\n" + "=" * 60)
    print("PantryLedger Database Initialization")
    print("=" * 60)
    print("\nThis will create/update:")
    print("  • master_ingredients, ingredient_aliases, global_unit_conversions")
    print("  • containers, contents, transactions")
    print("  • default unit conversion factors")
    print("\n" + "=" * 60 + "\n")

    exit_code = main()

    if exit_code == 0:
        print("\n" + "=" * 60)
        print("SUCCESS! The ledger database is ready to use.")
        print("=" * 60 + "\n")
    else:
        print("\n" + "=" * 60)
        print("FAILED! Check the errors above.")
        print("=" * 60 + "\n")

    sys.exit(exit_code)
