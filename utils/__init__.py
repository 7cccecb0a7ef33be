"""
==========================
Utility Functions Package.
==========================

Reusable connectivity helpers for the provisioning package and fixtures.

Modules:
    database_utils: URLs, admin connections, working engines, availability
"""

__version__ = "1.0.0"
__all__ = [
    'POOL_MAX_SIZE',
    'DatabaseUnavailableError',
    'database_url',
    'origin_from_url',
    'connect_admin',
    'create_connection_engine',
    'create_pool_engine',
    'check_database_available',
    'wait_for_database'
]

from .database_utils import (
    POOL_MAX_SIZE,
    DatabaseUnavailableError,
    check_database_available,
    connect_admin,
    create_connection_engine,
    create_pool_engine,
    database_url,
    origin_from_url,
    wait_for_database,
)
