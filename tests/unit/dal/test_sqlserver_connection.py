import pytest

from dal.sqlserver import SqlServerMethods
from dal.sqlserver.connection import SqlServerConnection


class _FakeCursor:
    def __init__(self, owner):
        self._owner = owner
        self._rows = []
        self.description = None
        self.rowcount = 0

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    async def execute(self, sql, *params):
        self._owner.statements.append(sql)
        if self._owner.fail_on and self._owner.fail_on in sql:
            raise RuntimeError(f"failed: {sql}")
        for marker, rows in self._owner.responses:
            if marker in sql:
                self._rows = rows
                self.description = [(name,) for name in (rows[0] if rows else {"x": None})]
                return
        self._rows = []
        self.description = None

    async def fetchall(self):
        return [tuple(row.values()) for row in self._rows]


class _FakeOdbcConnection:
    """Stands in for an aioodbc connection, tracking autocommit and outcomes."""

    def __init__(self, autocommit=True, responses=None, fail_on=None):
        self.autocommit = autocommit
        self.responses = responses or []
        self.fail_on = fail_on
        self.statements = []
        self.events = []

    def cursor(self):
        return _FakeCursor(self)

    async def commit(self):
        self.events.append(("commit", self.autocommit))

    async def rollback(self):
        self.events.append(("rollback", self.autocommit))


_SCHEMA_RESPONSES = [
    ("INFORMATION_SCHEMA.SCHEMATA", [{"schema_name": "sales"}]),
    ("FROM sys.objects AS o", [{"drop_sql": "DROP TABLE [sales].[Orders]"}]),
]


@pytest.mark.asyncio
async def test_owned_transaction_restores_autocommit():
    raw = _FakeOdbcConnection(autocommit=True, responses=_SCHEMA_RESPONSES)

    assert await SqlServerMethods().drop_schema_if_exists(raw, "sales") is True

    assert raw.events == [("commit", False)]
    assert raw.autocommit is True
    assert raw.statements[-1] == "DROP SCHEMA [sales]"


@pytest.mark.asyncio
async def test_failed_owned_transaction_rolls_back_and_restores_autocommit():
    raw = _FakeOdbcConnection(autocommit=True, responses=_SCHEMA_RESPONSES, fail_on="DROP TABLE")

    with pytest.raises(RuntimeError):
        await SqlServerMethods().drop_schema_if_exists(raw, "sales")

    assert raw.events == [("rollback", False)]
    assert raw.autocommit is True


@pytest.mark.asyncio
async def test_manual_commit_connection_is_left_to_the_caller():
    raw = _FakeOdbcConnection(autocommit=False, responses=_SCHEMA_RESPONSES)

    assert await SqlServerMethods().drop_schema_if_exists(raw, "sales") is True

    assert raw.events == []
    assert raw.autocommit is False
    assert raw.statements[-1] == "DROP SCHEMA [sales]"


@pytest.mark.asyncio
async def test_manual_commit_failure_does_not_roll_back_caller_work():
    raw = _FakeOdbcConnection(autocommit=False, responses=_SCHEMA_RESPONSES, fail_on="DROP TABLE")

    with pytest.raises(RuntimeError):
        await SqlServerMethods().drop_schema_if_exists(raw, "sales")

    assert raw.events == []
    assert raw.autocommit is False


@pytest.mark.asyncio
async def test_nested_begin_keeps_outer_state():
    raw = _FakeOdbcConnection(autocommit=True)
    conn = SqlServerConnection(raw)

    await conn.begin()
    await conn.begin()
    await conn.commit()
    assert raw.events == []
    assert raw.autocommit is False

    await conn.commit()
    assert raw.events == [("commit", False)]
    assert raw.autocommit is True
