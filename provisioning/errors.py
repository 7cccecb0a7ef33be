"""
=================================================
Error taxonomy for ephemeral database lifecycles.
=================================================

Every error raised by the provisioning package derives from
EphemeralDatabaseError. Driver and SQLAlchemy exceptions are chained as
__cause__ so the original server message stays available.

Provisioning phase:
    MigrationDiscoveryError: migrations directory not found or unreadable
    MigrationRunError: applying a migration failed
    QueryError: CREATE/DROP DATABASE or a metadata query failed
    DatabaseConnectionError: connecting to the new database failed
    PoolCreationError: the working pool could not hand out a connection

Teardown phase:
    CleanupOrderingViolation: DROP DATABASE refused because sessions are
        still attached; a handle-lifetime bug in the caller, not a
        transient fault

Misuse:
    BuilderStateError: builder configured or finalized twice
    HandleReleasedError: handle used after release or unpacking
"""

from typing import Optional


class EphemeralDatabaseError(Exception):
    """Base class for all provisioning and teardown errors."""
    pass


class MigrationDiscoveryError(EphemeralDatabaseError):
    """Raised when the migrations directory cannot be found or read."""
    pass


class MigrationRunError(EphemeralDatabaseError):
    """Raised when a pending migration fails to apply."""

    def __init__(self, message: str, version: Optional[str] = None):
        super().__init__(message)
        self.version = version


class PoolCreationError(EphemeralDatabaseError):
    """Raised when the working connection pool cannot be built."""
    pass


class DatabaseConnectionError(EphemeralDatabaseError):
    """Raised when a connection to the new database cannot be established."""
    pass


class QueryError(EphemeralDatabaseError):
    """Raised for database-level failures during create, drop or lookups."""
    pass


class CleanupOrderingViolation(EphemeralDatabaseError):
    """Raised when a database is dropped while sessions are still attached.

    Signals that a working connection or pool outlived the cleanup guard of
    the same database. The database is left on the server.

    Attributes:
        database_name: Name of the database that could not be dropped
    """

    def __init__(self, database_name: str, detail: str = ''):
        message = (
            f"Database '{database_name}' is still in use and was not dropped: "
            f"release every connection and pool to it before its cleanup guard"
        )
        if detail:
            message += f" ({detail})"
        super().__init__(message)
        self.database_name = database_name


class BuilderStateError(EphemeralDatabaseError):
    """Raised when a builder is used after provisioning has started."""
    pass


class HandleReleasedError(EphemeralDatabaseError):
    """Raised when a released or unpacked handle is accessed."""
    pass
