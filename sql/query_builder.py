"""
=======================
Metadata query helpers.
=======================

Read-only queries used around database provisioning. All queries take
their values as SQLAlchemy bind parameters (':name' style).

Metadata Query Functions:
- check_database_exists_sql: Check if a (non-template) database exists
- is_superuser_sql: Check if the current role is a superuser
- applied_migrations_sql: List applied migration versions

Usage:
    from sqlalchemy import text
    from sql.query_builder import check_database_exists_sql

    result = conn.execute(text(check_database_exists_sql()), {"database_name": "suite_x"})
"""

from sql.ddl import MIGRATIONS_TABLE, quote_identifier


def check_database_exists_sql() -> str:
    """
    Generate SQL to check if a database exists.

    Returns:
        SQL query returning 1 if the database exists, nothing if not
    """
    return (
        "SELECT 1 FROM pg_database "
        "WHERE datname = :database_name AND NOT datistemplate"
    )


def is_superuser_sql() -> str:
    """
    Generate SQL to check whether the connected role is a superuser.

    Returns:
        SQL query returning a single boolean
    """
    return "SELECT usesuper FROM pg_user WHERE usename = CURRENT_USER"


def applied_migrations_sql(table_name: str = MIGRATIONS_TABLE) -> str:
    """
    Generate SQL listing applied migration versions.

    Args:
        table_name: Name of the tracking table

    Returns:
        SQL query returning one version per row
    """
    return f"SELECT version FROM {quote_identifier(table_name)} ORDER BY version"
