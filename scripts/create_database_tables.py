"""
Create Database Tables Using SQLAlchemy

This script creates the land inventory tables directly with create_all().
It bypasses Alembic migrations and is meant for local setup and testing.
"""
import argparse
import sys
from pathlib import Path

# Add parent directory to Python path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy import inspect

from src.landinventory.db.session import create_all_tables, drop_all_tables, get_db_session, get_engine
from src.landinventory.db.utils import get_database_stats
from src.landinventory.utils.logger import get_logger, setup_logging

logger = get_logger(__name__)


def main():
    """Create all land inventory tables."""
    parser = argparse.ArgumentParser(
        description="Create the land inventory tables without Alembic"
    )
    parser.add_argument(
        '--drop',
        action='store_true',
        help='Drop existing land inventory tables first (deletes all data)'
    )
    args = parser.parse_args()

    setup_logging()
    engine = get_engine()

    if args.drop:
        drop_all_tables(engine)

    create_all_tables(engine)

    inspector = inspect(engine)
    tables = sorted(inspector.get_table_names())
    index_count = sum(len(inspector.get_indexes(table)) for table in tables)

    logger.info("tables_verified", tables=tables, indexes=index_count)
    print(f"Created {len(tables)} tables with {index_count} indexes:")
    with get_db_session() as session:
        row_counts = get_database_stats(session)
    for table in tables:
        print(f"  - {table} ({row_counts.get(table, 0)} rows)")


if __name__ == "__main__":
    main()
