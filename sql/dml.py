"""
=========================================
Data Manipulation Language (DML) helpers.
=========================================

Functions:
- record_migration_sql: INSERT marking a migration version as applied

Usage:
    from sql.dml import record_migration_sql

    connection.execute(text(record_migration_sql()), {"version": "0001"})
"""

from sql.ddl import MIGRATIONS_TABLE, quote_identifier


def record_migration_sql(table_name: str = MIGRATIONS_TABLE) -> str:
    """
    Generate INSERT statement recording an applied migration.

    Args:
        table_name: Name of the tracking table

    Returns:
        SQL INSERT statement with a :version bind parameter
    """
    return f"INSERT INTO {quote_identifier(table_name)} (version) VALUES (:version)"
