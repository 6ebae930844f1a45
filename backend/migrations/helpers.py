"""
Shared helper functions for Alembic migrations.

These helpers keep migrations idempotent by checking existence before
creating or dropping schema objects.
"""

from typing import Any

from alembic import op


def table_exists(inspector: Any, table_name: str) -> bool:
    """Check if a table exists in the database.

    Args:
        inspector: SQLAlchemy Inspector instance
        table_name: Name of the table to check

    Returns:
        True if the table exists, False otherwise
    """
    return table_name in inspector.get_table_names()


def drop_table_if_exists(inspector: Any, table_name: str) -> None:
    """Drop a table if it exists."""
    if table_exists(inspector, table_name):
        op.drop_table(table_name)
