"""
===============================================
SQL utilities package for database provisioning.
===============================================

Pure functions generating the SQL executed by the provisioning package:
    - ddl.py: CREATE/DROP DATABASE and the migration tracking table
    - dml.py: Recording applied migrations
    - query_builder.py: Metadata queries (existence, privileges, applied migrations)

Example:
    >>> from sql.ddl import create_database_sql
    >>> create_database_sql('suite_abc')
    'CREATE DATABASE "suite_abc";'
"""

__version__ = "1.0.0"
__all__ = [
    # DDL functions
    'quote_identifier', 'create_database_sql', 'drop_database_sql',
    'create_migrations_table_sql',
    # DML functions
    'record_migration_sql',
    # Metadata queries
    'check_database_exists_sql',
    'is_superuser_sql', 'applied_migrations_sql'
]

from .ddl import (
    create_database_sql,
    create_migrations_table_sql,
    drop_database_sql,
    quote_identifier,
)
from .dml import record_migration_sql
from .query_builder import (
    applied_migrations_sql,
    check_database_exists_sql,
    is_superuser_sql,
)
