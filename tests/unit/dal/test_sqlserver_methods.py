import pytest

from dal.connection import EngineConnection
from dal.sqlserver import SqlServerMethods
from ddl_model.column import Column
from ddl_model.enums import ColumnOrder, ProviderType
from ddl_model.table import Table


class _FakeConn(EngineConnection):
    """Records statements and answers catalog queries by SQL substring."""

    provider = ProviderType.SQLSERVER

    def __init__(self, responses=None, fail_on=None):
        super().__init__(object())
        self._responses = responses or []
        self._fail_on = fail_on
        self.fetched = []
        self.executed = []
        self.events = []

    async def _run_fetch(self, sql, params):
        self.fetched.append(sql)
        for marker, rows in self._responses:
            if marker in sql:
                return rows
        return []

    async def _run_execute(self, sql, params):
        self.executed.append((sql, params))
        if self._fail_on and self._fail_on in sql:
            raise RuntimeError(f"failed: {sql}")
        return 0

    async def begin(self):
        self.events.append("begin")

    async def commit(self):
        self.events.append("commit")

    async def rollback(self):
        self.events.append("rollback")


_SCHEMA_RESPONSES = [
    ("INFORMATION_SCHEMA.SCHEMATA", [{"schema_name": "sales"}]),
    (
        "FROM sys.objects AS o",
        [
            {"drop_sql": "ALTER TABLE [sales].[Orders] DROP CONSTRAINT [fk_Orders_UserId_Users_Id]"},
            {"drop_sql": "ALTER TABLE [sales].[Orders] DROP CONSTRAINT [ck_Orders_Total]"},
            {"drop_sql": "DROP VIEW [sales].[OpenOrders]"},
            {"drop_sql": "ALTER TABLE [sales].[Orders] DROP CONSTRAINT [pk_Orders_Id]"},
            {"drop_sql": "DROP TABLE [sales].[Orders]"},
        ],
    ),
    ("FROM sys.types", [{"drop_sql": "DROP TYPE [sales].[Money2]"}]),
]


@pytest.mark.asyncio
async def test_drop_schema_removes_objects_in_order_inside_transaction():
    conn = _FakeConn(_SCHEMA_RESPONSES)

    assert await SqlServerMethods().drop_schema_if_exists(conn, "sales") is True

    assert [sql for sql, _ in conn.executed] == [
        "ALTER TABLE [sales].[Orders] DROP CONSTRAINT [fk_Orders_UserId_Users_Id]",
        "ALTER TABLE [sales].[Orders] DROP CONSTRAINT [ck_Orders_Total]",
        "DROP VIEW [sales].[OpenOrders]",
        "ALTER TABLE [sales].[Orders] DROP CONSTRAINT [pk_Orders_Id]",
        "DROP TABLE [sales].[Orders]",
        "DROP TYPE [sales].[Money2]",
        "DROP SCHEMA [sales]",
    ]
    assert conn.events == ["begin", "commit"]
    object_query = next(sql for sql in conn.fetched if "FROM sys.objects AS o" in sql)
    assert object_query.index("o.type = 'F' THEN 1") < object_query.index("o.type = 'U' THEN 10")


@pytest.mark.asyncio
async def test_drop_schema_rolls_back_on_failure():
    conn = _FakeConn(_SCHEMA_RESPONSES, fail_on="DROP TABLE")

    with pytest.raises(RuntimeError):
        await SqlServerMethods().drop_schema_if_exists(conn, "sales")

    assert conn.events == ["begin", "rollback"]
    assert not any(sql.startswith("DROP SCHEMA") for sql, _ in conn.executed)


@pytest.mark.asyncio
async def test_drop_schema_uses_caller_transaction():
    conn = _FakeConn(_SCHEMA_RESPONSES)

    assert await SqlServerMethods().drop_schema_if_exists(conn, "sales", tx=object()) is True

    assert conn.events == []
    assert conn.executed[-1][0] == "DROP SCHEMA [sales]"


@pytest.mark.asyncio
async def test_drop_missing_schema_is_a_no_op():
    conn = _FakeConn()

    assert await SqlServerMethods().drop_schema_if_exists(conn, "sales") is False
    assert conn.executed == []


@pytest.mark.asyncio
async def test_create_table_statement():
    conn = _FakeConn(
        [
            ("INFORMATION_SCHEMA.TABLES", []),
            ("SERVERPROPERTY", [{"version": "16.0.1000.6"}]),
        ]
    )
    table = Table(
        table_name="Users",
        columns=[
            Column(
                column_name="Id",
                host_type=int,
                is_primary_key=True,
                is_auto_increment=True,
                is_nullable=False,
            ),
            Column(column_name="Email", host_type=str, length=320, is_unicode=True, is_unique=True),
            Column(
                column_name="Age", host_type=int, default_expression="18", check_expression="Age > 0"
            ),
        ],
    )

    assert await SqlServerMethods().create_table_if_not_exists(conn, table) is True

    assert [sql for sql, _ in conn.executed] == [
        "CREATE TABLE [dbo].[Users] (\n"
        "    [Id] int NOT NULL CONSTRAINT [pk_Users_Id] PRIMARY KEY IDENTITY(1,1)\n"
        "  , [Email] nvarchar(320) NOT NULL CONSTRAINT [uc_Users_Email] UNIQUE\n"
        "  , [Age] int NULL CONSTRAINT [df_Users_Age] DEFAULT 18 "
        "CONSTRAINT [ck_Users_Age] CHECK (Age > 0)\n"
        ")"
    ]


@pytest.mark.asyncio
async def test_create_table_with_expression_assigned_after_construction():
    conn = _FakeConn(
        [
            ("INFORMATION_SCHEMA.TABLES", []),
            ("SERVERPROPERTY", [{"version": "16.0.1000.6"}]),
        ]
    )
    age = Column(column_name="Age", host_type=int)
    age.check_expression = "Age > 0"

    await SqlServerMethods().create_tables_if_not_exists(
        conn, [Table(table_name="People", columns=[age])]
    )

    (sql, _) = conn.executed[0]
    assert "CONSTRAINT [ck_People_Age] CHECK (Age > 0)" in sql


@pytest.mark.asyncio
async def test_get_tables_assembles_catalog_rows():
    conn = _FakeConn(
        [
            (
                "INFORMATION_SCHEMA.COLUMNS",
                [
                    {
                        "TABLE_NAME": "Users",
                        "COLUMN_NAME": "Id",
                        "IS_NULLABLE": 0,
                        "IS_IDENTITY": 1,
                        "DATA_TYPE": "int",
                        "MAX_LENGTH": None,
                        "NUMERIC_PRECISION": 10,
                        "NUMERIC_SCALE": 0,
                    },
                    {
                        "TABLE_NAME": "Users",
                        "COLUMN_NAME": "Email",
                        "IS_NULLABLE": 0,
                        "IS_IDENTITY": 0,
                        "DATA_TYPE": "nvarchar",
                        "MAX_LENGTH": 320,
                        "NUMERIC_PRECISION": None,
                        "NUMERIC_SCALE": None,
                    },
                    {
                        "TABLE_NAME": "Users",
                        "COLUMN_NAME": "Age",
                        "IS_NULLABLE": 1,
                        "IS_IDENTITY": 0,
                        "DATA_TYPE": "int",
                        "MAX_LENGTH": None,
                        "NUMERIC_PRECISION": 10,
                        "NUMERIC_SCALE": 0,
                    },
                ],
            ),
            (
                "is_unique_constraint AS is_unique_constraint",
                [
                    {
                        "table_name": "Users",
                        "constraint_name": "ix_Users_Age",
                        "column_name": "Age",
                        "is_descending": True,
                        "is_unique": False,
                        "is_primary_key": False,
                        "is_unique_constraint": False,
                    },
                    {
                        "table_name": "Users",
                        "constraint_name": "pk_Users_Id",
                        "column_name": "Id",
                        "is_descending": False,
                        "is_unique": True,
                        "is_primary_key": True,
                        "is_unique_constraint": False,
                    },
                    {
                        "table_name": "Users",
                        "constraint_name": "uc_Users_Email",
                        "column_name": "Email",
                        "is_descending": False,
                        "is_unique": True,
                        "is_primary_key": False,
                        "is_unique_constraint": True,
                    },
                ],
            ),
            (
                "sys.check_constraints",
                [
                    {
                        "table_name": "Users",
                        "column_name": "Age",
                        "constraint_name": "ck_Users_Age",
                        "expression": "([Age]>(0))",
                    }
                ],
            ),
            (
                "sys.default_constraints",
                [
                    {
                        "table_name": "Users",
                        "column_name": "Age",
                        "constraint_name": "df_Users_Age",
                        "expression": "((18))",
                    }
                ],
            ),
        ]
    )

    (table,) = await SqlServerMethods().get_tables(conn, None)

    assert table.schema_name == "dbo"
    assert [c.column_name for c in table.columns] == ["Id", "Email", "Age"]
    user_id, email, age = table.columns
    assert user_id.is_primary_key and user_id.is_auto_increment
    assert user_id.host_type is int
    assert email.get_provider_data_type(ProviderType.SQLSERVER) == "nvarchar(320)"
    assert email.is_unicode and email.is_unique and not email.is_nullable
    assert email.length == 320
    assert age.is_indexed and not age.is_auto_increment

    assert table.primary_key_constraint.constraint_name == "pk_Users_Id"
    (index,) = table.indexes
    assert index.columns[0].order == ColumnOrder.DESCENDING
    assert age.get_check_expression(ProviderType.SQLSERVER) == "[Age]>(0)"
    assert age.get_default_expression(ProviderType.SQLSERVER) == "(18)"


def test_statement_builders():
    methods = SqlServerMethods()

    assert methods.quote_name("Order Lines") == "[OrderLines]"
    assert methods.get_schema_qualified_identifier_name(None, "Users") == "[dbo].[Users]"
    assert (
        methods._rename_table_sql("dbo", "Users", "Members")
        == "EXEC sp_rename '[dbo].[Users]', 'Members'"
    )
    assert methods._drop_index_sql("dbo", "Users", "ix_Users_Age") == (
        "DROP INDEX [ix_Users_Age] ON [dbo].[Users]"
    )


def test_view_definition_header_is_removed():
    methods = SqlServerMethods()

    assert (
        methods._normalize_view_definition("CREATE VIEW [dbo].[Adults]\nAS\nSELECT Id FROM Users")
        == "SELECT Id FROM Users"
    )
    with pytest.raises(ValueError):
        methods._normalize_view_definition("SELECT 1")


@pytest.mark.parametrize(
    "metadata, expected",
    [(True, True), (1, True), (0, False), ("yes", False), (None, False)],
)
def test_identity_metadata(metadata, expected):
    assert SqlServerMethods().check_provider_specific_auto_increment(metadata) is expected
