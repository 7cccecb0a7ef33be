"""
Shared fakes and fixtures for the provisioning tests.

Fakes:
- FakeCursor / FakeRawConn: psycopg2 raw connection used for CREATE/DROP DATABASE
- FakeResult: result of Connection.execute()
- FakeConnection: SQLAlchemy Connection (admin or working); records executed SQL,
  keeps a committed list of migration versions, supports `with`
- FakeEngine: SQLAlchemy Engine handing out a FakeConnection
- FakeObjectInUse: psycopg2 error carrying SQLSTATE 55006

Every fake can append to a shared `events` list so tests can assert the
order in which connections close, pools dispose and databases drop.

Key fixtures:
- fakes: namespace exposing the fake classes
- events: shared event log
- admin_conn / working_conn / fake_engine: wired to the event log
- migrations_dir: temporary directory with two migrations
"""

from types import SimpleNamespace

import psycopg2
import pytest
from sqlalchemy.engine import make_url


class FakeObjectInUse(psycopg2.OperationalError):
    """psycopg2 error as raised when DROP DATABASE finds attached sessions."""
    pgcode = '55006'


class FakeCursor:
    """
    Mock psycopg2 cursor.

    Attributes:
        queries (list): SQL strings executed so far
        _execute_side_effect (Exception, optional): raised by execute()
        _fail_on (str, optional): only statements starting with this fail
    """
    def __init__(self, execute_side_effect=None, fail_on=None, events=None):
        self.queries = []
        self._execute_side_effect = execute_side_effect
        self._fail_on = fail_on
        self._events = events if events is not None else []

    def execute(self, sql_text):
        self.queries.append(sql_text)
        if self._execute_side_effect and (self._fail_on is None or sql_text.startswith(self._fail_on)):
            raise self._execute_side_effect
        self._events.append(sql_text)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False


class FakeRawConn:
    """Mock psycopg2 raw connection obtained through .connection.driver_connection."""
    def __init__(self, cursor_obj=None, events=None):
        self.cursor_obj = cursor_obj or FakeCursor(events=events)
        self.set_isolation_level_called_with = None

    def set_isolation_level(self, level):
        self.set_isolation_level_called_with = level

    def cursor(self):
        return self.cursor_obj


class FakeResult:
    """Mock SQLAlchemy result supporting fetchone(), scalar() and iteration."""
    def __init__(self, rows=None, scalar_val=None):
        self._rows = rows or []
        self._scalar = scalar_val

    def fetchone(self):
        if not self._rows:
            return None
        return self._rows[0]

    def scalar(self):
        return self._scalar

    def __iter__(self):
        return iter(self._rows)


class FakeConnection:
    """
    Simulates a SQLAlchemy Connection.

    - .dialect.name selects the admin backend
    - .connection.driver_connection returns a FakeRawConn
    - .execute(text(..), params) returns a FakeResult from exec_map; migration
      bookkeeping statements are emulated with commit/rollback semantics
    - .exec_driver_sql() records migration scripts
    - .close() and leaving a `with` block mark the connection closed
    """
    def __init__(
        self,
        exec_map=None,
        raw_conn=None,
        dialect_name='postgresql',
        driver_sql_side_effect=None,
        events=None,
        name='connection'
    ):
        self.exec_map = exec_map or {}
        self.events = events if events is not None else []
        self.name = name
        self.dialect = SimpleNamespace(name=dialect_name)
        self.connection = SimpleNamespace(driver_connection=raw_conn or FakeRawConn(events=self.events))
        self.executed = []
        self.driver_sql = []
        self.driver_sql_options = []
        self.recorded_versions = []
        self._pending_versions = []
        self._driver_sql_side_effect = driver_sql_side_effect
        self.commits = 0
        self.rollbacks = 0
        self.close_calls = 0

    @property
    def cursor(self):
        """Cursor of the raw connection, for asserting DDL."""
        return self.connection.driver_connection.cursor_obj

    @property
    def closed(self):
        return self.close_calls > 0

    def execute(self, sql_obj, parameters=None):
        sql_text = str(sql_obj)
        self.executed.append(sql_text)
        result = self.exec_map.get(sql_text)
        if isinstance(result, Exception):
            raise result
        if result is not None:
            return result
        if sql_text.startswith('INSERT INTO'):
            self._pending_versions.append(parameters['version'])
        if sql_text.startswith('SELECT version FROM'):
            return FakeResult(rows=[(v,) for v in sorted(self.recorded_versions)])
        return FakeResult()

    def exec_driver_sql(self, statement, parameters=None, execution_options=None):
        self.driver_sql.append(statement)
        self.driver_sql_options.append(execution_options)
        if self._driver_sql_side_effect:
            raise self._driver_sql_side_effect

    def commit(self):
        self.recorded_versions.extend(self._pending_versions)
        self._pending_versions.clear()
        self.commits += 1

    def rollback(self):
        self._pending_versions.clear()
        self.rollbacks += 1

    def close(self):
        self.close_calls += 1
        self.events.append(f"{self.name}.close")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False


class FakeEngine:
    """
    Mock SQLAlchemy Engine handing out one FakeConnection.

    Attributes:
        connect_calls (int): Number of connect() calls
        dispose_calls (int): Number of dispose() calls
    """
    def __init__(self, conn_obj=None, connect_side_effect=None, url='postgresql://u:p@localhost:5432/x', events=None):
        self._conn_obj = conn_obj or FakeConnection()
        self._connect_side_effect = connect_side_effect
        self.url = make_url(url)
        self.events = events if events is not None else []
        self.connect_calls = 0
        self.dispose_calls = 0

    @property
    def disposed(self):
        return self.dispose_calls > 0

    def connect(self):
        if self._connect_side_effect:
            raise self._connect_side_effect
        self.connect_calls += 1
        return self._conn_obj

    def dispose(self):
        self.dispose_calls += 1
        self.events.append('engine.dispose')


@pytest.fixture
def fakes():
    """Namespace exposing the fake classes to test modules."""
    return SimpleNamespace(
        Cursor=FakeCursor,
        RawConn=FakeRawConn,
        Result=FakeResult,
        Connection=FakeConnection,
        Engine=FakeEngine,
        ObjectInUse=FakeObjectInUse,
    )


@pytest.fixture
def events():
    """Shared event log."""
    return []


@pytest.fixture
def admin_conn(events):
    """Fake admin connection whose DDL lands in the event log."""
    return FakeConnection(events=events, name='admin')


@pytest.fixture
def working_conn(events):
    """Fake working connection to the ephemeral database."""
    return FakeConnection(events=events, name='working')


@pytest.fixture
def fake_engine(working_conn, events):
    """Fake engine handing out working_conn."""
    return FakeEngine(working_conn, url='postgresql://u:p@localhost:5432/suite_x', events=events)


@pytest.fixture
def migrations_dir(tmp_path):
    """Temporary migrations directory holding 0001_init and 0002_add_posts."""
    root = tmp_path / 'migrations'
    for name, script in [
        ('0001_init', 'CREATE TABLE users (id SERIAL PRIMARY KEY);'),
        ('0002_add_posts', 'CREATE TABLE posts (id SERIAL PRIMARY KEY);'),
    ]:
        (root / name).mkdir(parents=True)
        (root / name / 'up.sql').write_text(script, encoding='utf-8')
    return root
