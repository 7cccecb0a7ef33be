"""
Backend adapters for administrative database operations.

An AdminBackend is the capability set a server must offer to host
ephemeral databases: creating and dropping sibling databases from an
admin connection, and recognising the server's "object in use" error.
Engines without multiple databases per server (e.g. file-based ones) have
no adapter and are rejected by backend_for().
"""

from typing import Dict, Protocol, runtime_checkable

from psycopg2 import errorcodes
from psycopg2.extensions import ISOLATION_LEVEL_AUTOCOMMIT
from sqlalchemy import text
from sqlalchemy.engine import Connection

from provisioning.errors import EphemeralDatabaseError
from sql.ddl import create_database_sql, drop_database_sql
from sql.query_builder import check_database_exists_sql, is_superuser_sql


@runtime_checkable
class AdminBackend(Protocol):
    """Protocol implemented by backend adapters."""

    dialect_name: str

    def create_database(self, connection: Connection, database_name: str) -> None:
        """Create database_name; raise the driver error on failure."""

    def drop_database(self, connection: Connection, database_name: str) -> None:
        """Drop database_name if it exists; raise the driver error on failure."""

    def database_exists(self, connection: Connection, database_name: str) -> bool:
        """Return True if database_name exists."""

    def is_superuser(self, connection: Connection) -> bool:
        """Return True if the connected role is a superuser."""

    def is_in_use_error(self, error: BaseException) -> bool:
        """Return True if error reports sessions still attached to a database."""


class PostgresBackend:
    """PostgreSQL adapter.

    CREATE/DROP DATABASE cannot run inside a transaction block, so both
    statements go through the raw psycopg2 connection switched to
    autocommit. DROP is issued without FORCE: the server's refusal to drop
    a database with attached sessions (SQLSTATE 55006) is how ordering
    violations are detected.
    """

    dialect_name = 'postgresql'

    def _execute_ddl(self, connection: Connection, statement: str) -> None:
        raw_conn = connection.connection.driver_connection
        raw_conn.set_isolation_level(ISOLATION_LEVEL_AUTOCOMMIT)

        with raw_conn.cursor() as cursor:
            cursor.execute(statement)

    def create_database(self, connection: Connection, database_name: str) -> None:
        self._execute_ddl(connection, create_database_sql(database_name))

    def drop_database(self, connection: Connection, database_name: str) -> None:
        self._execute_ddl(connection, drop_database_sql(database_name, if_exists=True))

    def database_exists(self, connection: Connection, database_name: str) -> bool:
        result = connection.execute(
            text(check_database_exists_sql()),
            {"database_name": database_name}
        )
        return result.fetchone() is not None

    def is_superuser(self, connection: Connection) -> bool:
        result = connection.execute(text(is_superuser_sql()))
        return bool(result.scalar())

    def is_in_use_error(self, error: BaseException) -> bool:
        # SQLAlchemy wraps driver errors; raw cursor errors arrive unwrapped
        original = getattr(error, 'orig', None) or error
        return getattr(original, 'pgcode', None) == errorcodes.OBJECT_IN_USE


_BACKENDS: Dict[str, AdminBackend] = {
    PostgresBackend.dialect_name: PostgresBackend(),
}


def backend_for(connection: Connection) -> AdminBackend:
    """Select the adapter matching the connection's dialect.

    Args:
        connection: Admin connection

    Returns:
        AdminBackend for the connection's server

    Raises:
        EphemeralDatabaseError: If the dialect has no adapter
    """
    dialect_name = connection.dialect.name
    try:
        return _BACKENDS[dialect_name]
    except KeyError:
        raise EphemeralDatabaseError(
            f"Dialect '{dialect_name}' cannot host ephemeral databases; "
            f"supported: {', '.join(sorted(_BACKENDS))}"
        ) from None
