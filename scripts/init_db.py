#!/usr/bin/env python3
"""
Standalone database initialization script.
Creates the TrayPrep tables in the configured database.
"""

import logging
import sys
from pathlib import Path

# Add parent directory to path to import app modules
sys.path.insert(0, str(Path(__file__).parent.parent))

logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger("init_db")


def main() -> int:
    try:
        from domain.models.database import engine, init_database
        from sqlalchemy import inspect

        init_database()

        tables = inspect(engine).get_table_names()
        logger.info(f"✓ Database ready with {len(tables)} tables: {', '.join(tables)}")
        return 0
    except Exception as e:
        logger.exception(f"✗ Failed to initialize database: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
