"""
=========================================
Directory-based schema migration runner.
=========================================

Applies the pending migrations of a migrations directory to a working
connection. Each migration is a sub-directory named '<version>_<name>'
holding an 'up.sql' script:

    migrations/
        0001_init/up.sql
        0002_add_table/up.sql

Migrations run in ascending version order. Applied versions are recorded
in a tracking table inside the migrated database, so running the same
directory twice is a no-op. Each migration and its tracking row commit in
one transaction.

Example:
    >>> from provisioning.migrations import find_migrations_directory, run_pending_migrations
    >>>
    >>> directory = find_migrations_directory()
    >>> with engine.connect() as conn:
    ...     applied = run_pending_migrations(conn, directory)
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Union

from sqlalchemy import text
from sqlalchemy.engine import Connection
from sqlalchemy.exc import SQLAlchemyError

from core.config import DEFAULT_MIGRATIONS_DIR_NAME
from provisioning.errors import MigrationDiscoveryError, MigrationRunError
from sql.ddl import create_migrations_table_sql
from sql.dml import record_migration_sql
from sql.query_builder import applied_migrations_sql

logger = logging.getLogger(__name__)

UP_SCRIPT = 'up.sql'


@dataclass(frozen=True)
class Migration:
    """One migration directory.

    Attributes:
        version: Text before the first '_' of the directory name
        name: Remainder of the directory name
        path: Migration directory
    """

    version: str
    name: str
    path: Path

    def up_sql(self) -> str:
        """Read the migration's up script."""
        return (self.path / UP_SCRIPT).read_text(encoding='utf-8')


def find_migrations_directory(
    start: Optional[Union[str, Path]] = None,
    dir_name: str = DEFAULT_MIGRATIONS_DIR_NAME
) -> Path:
    """
    Search start and its parents for a migrations directory.

    Args:
        start: Directory to start from (defaults to the current directory)
        dir_name: Name of the directory to look for

    Returns:
        Path of the first matching directory

    Raises:
        MigrationDiscoveryError: If no ancestor holds such a directory
    """
    current = Path(start or Path.cwd()).resolve()

    for directory in (current, *current.parents):
        candidate = directory / dir_name
        if candidate.is_dir():
            logger.debug(f"Found migrations directory {candidate}")
            return candidate

    raise MigrationDiscoveryError(
        f"Unable to find a '{dir_name}' directory in {current} or any parent directory"
    )


def discover_migrations(directory: Union[str, Path]) -> List[Migration]:
    """
    List the migrations of a directory in the order they must run.

    Hidden entries and plain files are ignored.

    Args:
        directory: Migrations directory

    Returns:
        Migrations sorted by version

    Raises:
        MigrationDiscoveryError: If the directory is unreadable, a migration
            has no up.sql, or two migrations share a version
    """
    directory = Path(directory)
    try:
        entries = [
            entry for entry in directory.iterdir()
            if entry.is_dir() and not entry.name.startswith('.')
        ]
    except OSError as e:
        raise MigrationDiscoveryError(
            f"Failed to read migrations directory {directory}: {e}"
        ) from e

    migrations = {}
    for entry in entries:
        version, _, name = entry.name.partition('_')
        if not (entry / UP_SCRIPT).is_file():
            raise MigrationDiscoveryError(f"Migration {entry} has no {UP_SCRIPT}")
        if version in migrations:
            raise MigrationDiscoveryError(
                f"Migrations {migrations[version].path.name} and {entry.name} "
                f"share version {version}"
            )
        migrations[version] = Migration(version=version, name=name, path=entry)

    return [migrations[version] for version in sorted(migrations)]


def run_pending_migrations(connection: Connection, migrations_directory: Union[str, Path]) -> List[str]:
    """
    Apply every migration not yet recorded in the connected database.

    Args:
        connection: Working connection to the database being migrated
        migrations_directory: Migrations directory

    Returns:
        Versions applied by this call, in order (empty when up to date)

    Raises:
        MigrationDiscoveryError: If the directory cannot be read
        MigrationRunError: If a migration fails; it is rolled back and no
            later migration runs
    """
    migrations = discover_migrations(migrations_directory)

    try:
        connection.execute(text(create_migrations_table_sql()))
        applied = {row[0] for row in connection.execute(text(applied_migrations_sql()))}
        connection.commit()
    except SQLAlchemyError as e:
        connection.rollback()
        raise MigrationRunError(f"Failed to read applied migrations: {e}") from e

    ran = []
    for migration in migrations:
        if migration.version in applied:
            continue

        logger.debug(f"Running migration {migration.version} {migration.name}")
        try:
            # Scripts are sent verbatim: no bind-parameter or '%' processing
            connection.exec_driver_sql(
                migration.up_sql(),
                execution_options={'no_parameters': True}
            )
            connection.execute(text(record_migration_sql()), {"version": migration.version})
            connection.commit()
        except (SQLAlchemyError, OSError) as e:
            connection.rollback()
            raise MigrationRunError(
                f"Migration {migration.path.name} failed: {e}",
                version=migration.version
            ) from e
        ran.append(migration.version)

    if ran:
        logger.info(f"Applied {len(ran)} migration(s) from {migrations_directory}")
    return ran
