"""
Teardown guard dropping an ephemeral database.

Cleanup owns the admin connection and the name of the database it must
drop. The drop happens exactly once: on drop(), on leaving a `with` block,
or, as a backstop, when the guard is garbage-collected without either.

Warning:
    The guard must be released after every connection and pool to its
    database. Dropping earlier fails with CleanupOrderingViolation and the
    database stays on the server. The composite handles in
    provisioning.handles enforce this order; only code that unpacks them
    with into_tuple() has to get it right by hand.

Note:
    Only drop(), `with` and close() on a handle raise a failed drop to the
    caller. When the garbage-collection backstop performs the drop, a
    failure is logged at CRITICAL and printed by sys.unraisablehook, but it
    cannot propagate: it does not fail the test that leaked the guard.
    Release guards and handles explicitly to have teardown failures fail
    the run.
"""

import logging
import threading
import weakref

from sqlalchemy.engine import Connection

from provisioning.admin import drop_database_if_exists
from provisioning.errors import CleanupOrderingViolation, QueryError

logger = logging.getLogger(__name__)


def _drop_and_close(admin_connection: Connection, database_name: str) -> None:
    try:
        drop_database_if_exists(admin_connection, database_name)
    except CleanupOrderingViolation as e:
        logger.critical(f"🔥 {e}")
        raise
    except QueryError as e:
        logger.critical(f"🔥 Couldn't drop database {database_name} at end of test: {e}")
        raise
    finally:
        admin_connection.close()
    logger.info(f"Dropped ephemeral database {database_name}")


class Cleanup:
    """Drops its database when released.

    A guard left to garbage collection still drops its database, but a
    failure there is only logged and does not fail the running test.

    Attributes:
        admin_connection: Connection used to issue the drop
        database_name: Database to drop

    Example:
        >>> cleanup = Cleanup(admin_conn, 'suite_abc')
        >>> cleanup.drop()
        >>> cleanup.drop()  # no-op
    """

    def __init__(self, admin_connection: Connection, database_name: str):
        self.admin_connection = admin_connection
        self.database_name = database_name
        self._lock = threading.Lock()
        self._finalizer = weakref.finalize(
            self, _drop_and_close, admin_connection, database_name
        )

    @property
    def dropped(self) -> bool:
        """True once the drop has been attempted."""
        return not self._finalizer.alive

    def drop(self) -> None:
        """Drop the database and close the admin connection.

        Only the first call acts. A failed drop is logged at CRITICAL and
        raised; the guard is spent either way.

        Raises:
            CleanupOrderingViolation: If sessions are still attached
            QueryError: For any other database failure
        """
        with self._lock:
            self._finalizer()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.drop()
        return False

    def __repr__(self):
        state = 'dropped' if self.dropped else 'pending'
        return f"Cleanup(database_name={self.database_name!r}, {state})"
