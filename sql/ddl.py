"""
==============================================================
Data Definition Language (DDL) utilities for test databases.
==============================================================

Provides pure functions generating the PostgreSQL DDL used while
provisioning and tearing down ephemeral databases.

Functions:
    quote_identifier: Double-quote an identifier, escaping embedded quotes
    create_database_sql: Generate CREATE DATABASE statement
    drop_database_sql: Generate DROP DATABASE statement
    create_migrations_table_sql: Generate the migration tracking table

Example:
    >>> from sql.ddl import create_database_sql, drop_database_sql
    >>>
    >>> create_database_sql('suite_abc')
    'CREATE DATABASE "suite_abc";'
    >>> drop_database_sql('suite_abc')
    'DROP DATABASE IF EXISTS "suite_abc";'
"""

from typing import Optional

MIGRATIONS_TABLE = '__ephemeral_schema_migrations'


def quote_identifier(identifier: str) -> str:
    """Quote an identifier so mixed case and '-' survive verbatim.

    Args:
        identifier: Raw identifier (database, table, ...)

    Returns:
        Identifier wrapped in double quotes with '"' doubled
    """
    return '"' + identifier.replace('"', '""') + '"'


def create_database_sql(
    database_name: str,
    template: Optional[str] = None,
    encoding: Optional[str] = None,
    owner: Optional[str] = None
) -> str:
    """
    Generate CREATE DATABASE statement.

    Note: CREATE DATABASE cannot run inside a transaction block; the caller
    must execute it on a connection in AUTOCOMMIT mode.

    Args:
        database_name: Name of the database to create
        template: Optional template database
        encoding: Optional character encoding
        owner: Optional database owner

    Returns:
        SQL CREATE DATABASE statement
    """
    sql_parts = [f"CREATE DATABASE {quote_identifier(database_name)}"]

    options = []
    if template:
        options.append(f"TEMPLATE = {quote_identifier(template)}")
    if encoding:
        options.append(f"ENCODING = '{encoding}'")
    if owner:
        options.append(f"OWNER = {quote_identifier(owner)}")

    if options:
        sql_parts.append("WITH " + " ".join(options))

    return " ".join(sql_parts) + ";"


def drop_database_sql(
    database_name: str,
    if_exists: bool = True,
    force: bool = False
) -> str:
    """
    Generate DROP DATABASE statement.

    Teardown relies on the server refusing to drop a database that still
    has sessions attached, so FORCE is off unless asked for.

    Args:
        database_name: Name of the database to drop
        if_exists: Add IF EXISTS clause
        force: Add WITH (FORCE) clause (PostgreSQL 13+)

    Returns:
        SQL DROP DATABASE statement
    """
    sql_parts = ["DROP DATABASE"]

    if if_exists:
        sql_parts.append("IF EXISTS")

    sql_parts.append(quote_identifier(database_name))

    if force:
        sql_parts.append("WITH (FORCE)")

    return " ".join(sql_parts) + ";"


def create_migrations_table_sql(table_name: str = MIGRATIONS_TABLE) -> str:
    """
    Generate the table recording which migrations have been applied.

    Args:
        table_name: Name of the tracking table

    Returns:
        SQL CREATE TABLE IF NOT EXISTS statement
    """
    return f"""CREATE TABLE IF NOT EXISTS {quote_identifier(table_name)} (
    version VARCHAR(50) PRIMARY KEY NOT NULL,
    run_on TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
);"""
