"""
=====================================================
Handles binding a working resource to its teardown.
=====================================================

EphemeralDatabaseConnection and EphemeralDatabasePool co-own two things:

    A. the working connection / pool to the ephemeral database
    B. the Cleanup guard that drops that database

Releasing a handle always closes A before B, so the drop never runs while
the handle's own sessions are attached. Release happens on close(), on
leaving a `with` block (also when the block raises), or when the handle is
garbage-collected without either. Only the explicit forms raise a failed drop;
from garbage collection it is logged and reported as unraisable (see
provisioning.cleanup).

Tests reach the working resource through the handle: the .connection /
.pool properties, or plain attribute access which is forwarded to it:

    >>> with builder.setup_pool() as db:
    ...     with db.connect() as conn:          # forwarded to the Engine
    ...         conn.execute(text("SELECT 1"))

into_tuple() is the escape hatch: it hands back A and B as separate
values and the handle stops managing them. The caller must then close A
before dropping B, or the drop fails with CleanupOrderingViolation.
"""

import weakref
from functools import partial
from typing import Callable, Tuple

from sqlalchemy.engine import URL, Connection, Engine

from provisioning.cleanup import Cleanup
from provisioning.errors import HandleReleasedError


def _release_in_order(close_resource: Callable[[], None], cleanup: Cleanup) -> None:
    try:
        close_resource()
    finally:
        cleanup.drop()


def _close_connection(connection: Connection, engine: Engine) -> None:
    try:
        connection.close()
    finally:
        engine.dispose()


class _EphemeralDatabaseHandle:
    """Ordered ownership shared by the connection and pool handles."""

    def __init__(self, resource, cleanup: Cleanup, close_resource: Callable[[], None]):
        self._resource = resource    # released first
        self._cleanup = cleanup      # released second
        self._unpacked = False
        self._finalizer = weakref.finalize(self, _release_in_order, close_resource, cleanup)

    @property
    def database_name(self) -> str:
        """Name of the ephemeral database."""
        return self._cleanup.database_name

    @property
    def released(self) -> bool:
        """True once the handle was closed or unpacked."""
        return not self._finalizer.alive

    def _live_resource(self):
        if not self._finalizer.alive:
            state = 'unpacked' if self._unpacked else 'released'
            raise HandleReleasedError(
                f"Handle for database '{self.database_name}' was already {state}"
            )
        return self._resource

    def close(self) -> None:
        """Close the working resource, then drop the database.

        Only the first call acts.

        Raises:
            CleanupOrderingViolation: If other sessions still use the database
            QueryError: If the drop fails for another reason
        """
        self._finalizer()

    def into_tuple(self) -> Tuple[object, Cleanup]:
        """Split the handle into (working resource, cleanup guard).

        Warning:
            The handle no longer releases anything. Close the working
            resource before dropping the guard.
        """
        resource = self._live_resource()
        self._finalizer.detach()
        self._unpacked = True
        return resource, self._cleanup

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    def __getattr__(self, name):
        if name.startswith('_'):
            raise AttributeError(name)
        return getattr(self._live_resource(), name)


class EphemeralDatabaseConnection(_EphemeralDatabaseHandle):
    """A single working connection to an ephemeral database.

    The connection comes from a private NullPool engine, so closing it
    ends the server session.

    Example:
        >>> with builder.setup_connection() as db:
        ...     db.execute(text("INSERT INTO users (name) VALUES ('a')"))
    """

    def __init__(self, connection: Connection, engine: Engine, cleanup: Cleanup):
        super().__init__(
            connection,
            cleanup,
            partial(_close_connection, connection, engine)
        )
        self._engine = engine

    @property
    def connection(self) -> Connection:
        """The working connection, still owned by the handle."""
        return self._live_resource()

    @property
    def url(self) -> URL:
        """URL of the ephemeral database."""
        return self._engine.url

    def into_tuple(self) -> Tuple[Connection, Cleanup]:
        """Split into (connection, cleanup); close the connection first."""
        return super().into_tuple()


class EphemeralDatabasePool(_EphemeralDatabaseHandle):
    """A bounded pool of working connections to an ephemeral database.

    Releasing the handle disposes the pool. Connections checked out and
    still held by the caller at that point keep their sessions open, and
    the drop then fails with CleanupOrderingViolation.

    Example:
        >>> with builder.setup_pool() as db:
        ...     with db.pool.connect() as conn:
        ...         conn.execute(text("SELECT 1"))
    """

    def __init__(self, pool: Engine, cleanup: Cleanup):
        super().__init__(pool, cleanup, pool.dispose)

    @property
    def pool(self) -> Engine:
        """The pooled engine, still owned by the handle."""
        return self._live_resource()

    @property
    def url(self) -> URL:
        """URL of the ephemeral database."""
        return self._resource.url

    def into_tuple(self) -> Tuple[Engine, Cleanup]:
        """Split into (pool, cleanup); dispose the pool first."""
        return super().into_tuple()
