"""End-to-end DDL tests for the SQLite engine against an in-memory database."""

import sqlite3
from contextlib import asynccontextmanager

import pytest

aiosqlite = pytest.importorskip("aiosqlite", reason="sqlite tests require aiosqlite")

from dal.factory import get_database_methods  # noqa: E402
from dal.sqlite import SqliteMethods  # noqa: E402
from ddl_model.column import Column  # noqa: E402
from ddl_model.constraints import (  # noqa: E402
    CheckConstraint,
    DefaultConstraint,
    ForeignKeyConstraint,
    PrimaryKeyConstraint,
    UniqueConstraint,
)
from ddl_model.enums import ColumnOrder, ForeignKeyAction, ProviderType  # noqa: E402
from ddl_model.index import Index  # noqa: E402
from ddl_model.ordered_column import OrderedColumn  # noqa: E402
from ddl_model.table import Table  # noqa: E402
from ddl_model.view import View  # noqa: E402


@asynccontextmanager
async def _memory_db():
    async with aiosqlite.connect(":memory:", isolation_level=None) as db:
        yield db


def _users_table() -> Table:
    return Table(
        table_name="Users",
        columns=[
            Column(column_name="Id", host_type=int, is_primary_key=True, is_nullable=False),
            Column(
                column_name="Email", host_type=str, length=255, is_unique=True, is_nullable=False
            ),
            Column(column_name="Age", host_type=int, check_expression="Age > 0"),
        ],
    )


def _teams_table() -> Table:
    return Table(
        table_name="Teams",
        columns=[Column(column_name="Id", host_type=int, is_primary_key=True, is_nullable=False)],
    )


async def _seed_users(db) -> None:
    await db.execute("INSERT INTO Users (Id, Email, Age) VALUES (1, 'a@x.io', 30)")
    await db.execute("INSERT INTO Users (Id, Email, Age) VALUES (2, 'b@x.io', 30)")


async def _count(db, table_name: str) -> int:
    cursor = await db.execute(f'SELECT COUNT(*) FROM "{table_name}"')
    row = await cursor.fetchone()
    await cursor.close()
    return row[0]


@pytest.mark.asyncio
async def test_factory_resolves_aiosqlite_connection():
    async with _memory_db() as db:
        assert isinstance(get_database_methods(db), SqliteMethods)


@pytest.mark.asyncio
async def test_create_table_is_idempotent_and_reads_back():
    methods = SqliteMethods()
    async with _memory_db() as db:
        assert await methods.create_table_if_not_exists(db, _users_table()) is True
        assert await methods.create_table_if_not_exists(db, _users_table()) is False

        table = await methods.get_table(db, None, "users")

    assert table is not None
    assert table.table_name == "Users"
    assert [c.column_name for c in table.columns] == ["Id", "Email", "Age"]
    assert [c.host_type for c in table.columns] == [int, str, int]

    assert table.primary_key_constraint.constraint_name == "pk_Users_Id"
    assert [c.column_name for c in table.primary_key_constraint.columns] == ["Id"]
    assert [uc.constraint_name for uc in table.unique_constraints] == ["uc_Users_Email"]

    assert len(table.check_constraints) == 1
    check = table.check_constraints[0]
    assert check.column_name == "Age"
    assert check.constraint_name == "ck_Users_Age"
    assert check.render(ProviderType.SQLITE) == "Age > 0"

    email = table.get_column("Email")
    assert email.is_unique is True
    assert email.is_nullable is False
    assert email.length == 255
    age = table.get_column("Age")
    assert age.is_nullable is True
    assert age.get_check_expression(ProviderType.SQLITE) == "Age > 0"
    assert table.get_column("Id").is_primary_key is True


@pytest.mark.asyncio
async def test_get_tables_on_empty_database():
    methods = SqliteMethods()
    async with _memory_db() as db:
        assert await methods.get_tables(db, None) == []
        assert await methods.does_table_exist(db, None, "") is False
        assert await methods.get_table(db, None, "Users") is None


@pytest.mark.asyncio
async def test_get_table_names_with_wildcard_filter():
    methods = SqliteMethods()
    async with _memory_db() as db:
        await methods.create_table_if_not_exists(db, _users_table())
        await methods.create_table_if_not_exists(db, _teams_table())
        await methods.create_table_if_not_exists(
            db,
            Table(
                table_name="UserRoles",
                columns=[Column(column_name="RoleId", host_type=int)],
            ),
        )

        assert await methods.get_table_names(db, None, "User*") == ["UserRoles", "Users"]
        assert await methods.get_table_names(db, None) == ["Teams", "UserRoles", "Users"]


@pytest.mark.asyncio
async def test_drop_table_if_exists():
    methods = SqliteMethods()
    async with _memory_db() as db:
        assert await methods.drop_table_if_exists(db, None, "Users") is False
        await methods.create_table_if_not_exists(db, _users_table())

        assert await methods.drop_table_if_exists(db, None, "Users") is True
        assert await methods.does_table_exist(db, None, "Users") is False


@pytest.mark.asyncio
async def test_rename_table_if_exists():
    methods = SqliteMethods()
    async with _memory_db() as db:
        assert await methods.rename_table_if_exists(db, None, "Users", "Members") is False
        await methods.create_table_if_not_exists(db, _users_table())
        await methods.create_table_if_not_exists(db, _teams_table())

        assert await methods.rename_table_if_exists(db, None, "Users", "Teams") is False
        assert await methods.rename_table_if_exists(db, None, "Users", "Members") is True
        assert await methods.get_table_names(db, None) == ["Members", "Teams"]


@pytest.mark.asyncio
async def test_rename_column_if_exists():
    methods = SqliteMethods()
    async with _memory_db() as db:
        await methods.create_table_if_not_exists(db, _users_table())

        assert await methods.rename_column_if_exists(db, None, "Users", "Nope", "Other") is False
        assert await methods.rename_column_if_exists(db, None, "Users", "Age", "Email") is False
        assert await methods.does_column_exist(db, None, "Users", "Age") is True

        assert await methods.rename_column_if_exists(db, None, "Users", "Age", "Years") is True
        assert await methods.get_column_names(db, None, "Users") == ["Id", "Email", "Years"]


@pytest.mark.asyncio
async def test_views_create_read_rename_and_drop():
    methods = SqliteMethods()
    definition = "SELECT Id, Email FROM Users WHERE Age > 18"
    view = View(view_name="ActiveUsers", definition=definition)
    async with _memory_db() as db:
        await methods.create_table_if_not_exists(db, _users_table())

        assert await methods.create_view_if_not_exists(db, view) is True
        assert await methods.create_view_if_not_exists(db, view) is False
        assert (await methods.get_view(db, None, "ActiveUsers")).definition == definition

        assert await methods.rename_view_if_exists(db, None, "ActiveUsers", "Adults") is True
        assert await methods.does_view_exist(db, None, "ActiveUsers") is False
        assert (await methods.get_view(db, None, "Adults")).definition == definition

        assert await methods.drop_view_if_exists(db, None, "Adults") is True
        assert await methods.drop_view_if_exists(db, None, "Adults") is False


@pytest.mark.asyncio
async def test_indexes_keep_column_order():
    methods = SqliteMethods()
    index = Index(
        table_name="Users",
        index_name="ix_Users_Age_Email",
        columns=[
            OrderedColumn(column_name="Age", order=ColumnOrder.DESCENDING),
            OrderedColumn(column_name="Email"),
        ],
    )
    async with _memory_db() as db:
        await methods.create_table_if_not_exists(db, _users_table())

        assert await methods.create_index_if_not_exists(db, index) is True
        assert await methods.create_index_if_not_exists(db, index) is False

        read = await methods.get_index(db, None, "Users", "ix_Users_Age_Email")
        assert [c.column_name for c in read.columns] == ["Age", "Email"]
        assert [c.order for c in read.columns] == [ColumnOrder.DESCENDING, ColumnOrder.ASCENDING]
        assert read.is_unique is False
        assert await methods.get_index_names_on_column(db, None, "Users", "email") == [
            "ix_Users_Age_Email"
        ]
        assert (await methods.get_table(db, None, "Users")).get_column("Age").is_indexed is True

        assert await methods.drop_index_if_exists(db, None, "Users", "ix_Users_Age_Email") is True
        assert await methods.drop_index_if_exists(db, None, "Users", "ix_Users_Age_Email") is False


@pytest.mark.asyncio
async def test_create_column_through_alter_table():
    methods = SqliteMethods()
    async with _memory_db() as db:
        await methods.create_table_if_not_exists(db, _users_table())
        await _seed_users(db)

        nickname = Column(table_name="Users", column_name="Nickname", host_type=str, length=50)
        assert await methods.create_column_if_not_exists(db, nickname) is True
        assert await methods.create_column_if_not_exists(db, nickname) is False

        score = Column(
            table_name="Users",
            column_name="Score",
            host_type=int,
            is_nullable=False,
            default_expression="0",
        )
        assert await methods.create_column_if_not_exists(db, score) is True

        default = await methods.get_default_constraint_on_column(db, None, "Users", "Score")
        assert default.constraint_name == "df_Users_Score"
        assert default.render(ProviderType.SQLITE) == "0"
        cursor = await db.execute("SELECT Score FROM Users ORDER BY Id")
        assert [row[0] for row in await cursor.fetchall()] == [0, 0]
        await cursor.close()


@pytest.mark.asyncio
async def test_create_foreign_key_column_rebuilds_table():
    methods = SqliteMethods()
    async with _memory_db() as db:
        await methods.create_table_if_not_exists(db, _teams_table())
        await methods.create_table_if_not_exists(db, _users_table())
        await _seed_users(db)

        team_id = Column(
            table_name="Users",
            column_name="TeamId",
            host_type=int,
            is_foreign_key=True,
            referenced_table_name="Teams",
            referenced_column_name="Id",
            on_delete=ForeignKeyAction.SET_NULL,
        )
        assert await methods.create_column_if_not_exists(db, team_id) is True
        assert await methods.create_column_if_not_exists(db, team_id) is False

        fk = await methods.get_foreign_key_constraint_on_column(db, None, "Users", "TeamId")
        assert fk.constraint_name == "fk_Users_TeamId_Teams_Id"
        assert fk.referenced_table_name == "Teams"
        assert fk.on_delete == ForeignKeyAction.SET_NULL
        assert fk.on_update == ForeignKeyAction.NO_ACTION

        table = await methods.get_table(db, None, "Users")
        assert [uc.constraint_name for uc in table.unique_constraints] == ["uc_Users_Email"]
        assert [ck.column_name for ck in table.check_constraints] == ["Age"]
        assert await _count(db, "Users") == 2


@pytest.mark.asyncio
async def test_drop_column_removes_its_check_and_keeps_rows():
    methods = SqliteMethods()
    async with _memory_db() as db:
        await methods.create_table_if_not_exists(db, _users_table())
        await _seed_users(db)

        assert await methods.drop_column_if_exists(db, None, "Users", "Age") is True
        assert await methods.drop_column_if_exists(db, None, "Users", "Age") is False

        assert await methods.does_column_exist(db, None, "Users", "Age") is False
        assert await methods.get_check_constraints(db, None, "Users") == []
        assert await _count(db, "Users") == 2


@pytest.mark.asyncio
async def test_truncate_keeps_indexes():
    methods = SqliteMethods()
    index = Index(
        table_name="Users", index_name="ix_Users_Age", columns=[OrderedColumn(column_name="Age")]
    )
    async with _memory_db() as db:
        assert await methods.truncate_table_if_exists(db, None, "Users") is False
        await methods.create_table_if_not_exists(db, _users_table())
        await methods.create_index_if_not_exists(db, index)
        await _seed_users(db)

        assert await methods.truncate_table_if_exists(db, None, "users") is True
        assert await _count(db, "Users") == 0
        assert await methods.get_index_names(db, None, "Users") == ["ix_Users_Age"]


@pytest.mark.asyncio
async def test_check_constraint_add_and_drop():
    methods = SqliteMethods()
    check = CheckConstraint(
        table_name="Users",
        column_name="Email",
        constraint_name="ck_Users_Email",
        expression="length(Email) > 3",
    )
    async with _memory_db() as db:
        await methods.create_table_if_not_exists(db, _users_table())
        await _seed_users(db)

        assert await methods.create_check_constraint_if_not_exists(db, check) is True
        assert await methods.create_check_constraint_if_not_exists(db, check) is False
        read = await methods.get_check_constraint_on_column(db, None, "Users", "Email")
        assert read.render(ProviderType.SQLITE) == "LENGTH(Email) > 3"
        assert sorted(await methods.get_check_constraint_names(db, None, "Users")) == [
            "ck_Users_Age",
            "ck_Users_Email",
        ]

        assert await methods.drop_check_constraint_if_exists(db, None, "Users", "ck_Users_Email")
        assert await methods.get_check_constraint_names(db, None, "Users") == ["ck_Users_Age"]
        assert await _count(db, "Users") == 2


@pytest.mark.asyncio
async def test_default_constraint_add_and_drop():
    methods = SqliteMethods()
    default = DefaultConstraint(
        table_name="Users", column_name="Age", constraint_name="df_Users_Age", expression="18"
    )
    async with _memory_db() as db:
        await methods.create_table_if_not_exists(db, _users_table())

        assert await methods.create_default_constraint_if_not_exists(db, default) is True
        assert await methods.create_default_constraint_if_not_exists(db, default) is False
        read = await methods.get_default_constraint_on_column(db, None, "Users", "Age")
        assert read.render(ProviderType.SQLITE) == "18"

        assert await methods.drop_default_constraint_if_exists(db, None, "Users", "df_Users_Age")
        assert await methods.get_default_constraint_on_column(db, None, "Users", "Age") is None


@pytest.mark.asyncio
async def test_unique_constraint_add_and_drop():
    methods = SqliteMethods()
    unique = UniqueConstraint(
        table_name="Users",
        constraint_name="uc_Users_Age",
        columns=[OrderedColumn(column_name="Age")],
    )
    async with _memory_db() as db:
        await methods.create_table_if_not_exists(db, _users_table())

        assert await methods.create_unique_constraint_if_not_exists(db, unique) is True
        assert await methods.does_unique_constraint_exist_on_column(db, None, "Users", "Age")
        assert (await methods.get_table(db, None, "Users")).get_column("Age").is_unique is True

        assert await methods.drop_unique_constraint_if_exists(db, None, "Users", "uc_Users_Age")
        assert not await methods.does_unique_constraint_exist(db, None, "Users", "uc_Users_Age")
        assert await methods.does_unique_constraint_exist(db, None, "Users", "uc_Users_Email")


@pytest.mark.asyncio
async def test_failed_rebuild_rolls_back():
    methods = SqliteMethods()
    unique = UniqueConstraint(
        table_name="Users",
        constraint_name="uc_Users_Age",
        columns=[OrderedColumn(column_name="Age")],
    )
    async with _memory_db() as db:
        await methods.create_table_if_not_exists(db, _users_table())
        await _seed_users(db)

        # Both seeded users share the same age.
        with pytest.raises(sqlite3.IntegrityError):
            await methods.create_unique_constraint_if_not_exists(db, unique)

        assert await _count(db, "Users") == 2
        assert await methods.get_unique_constraint_names(db, None, "Users") == ["uc_Users_Email"]


@pytest.mark.asyncio
async def test_primary_key_add_and_drop():
    methods = SqliteMethods()
    tags = Table(
        table_name="Tags",
        columns=[Column(column_name="Name", host_type=str, length=50, is_nullable=False)],
    )
    primary_key = PrimaryKeyConstraint(
        table_name="Tags", constraint_name="pk_Tags_Name", columns=[OrderedColumn(column_name="Name")]
    )
    async with _memory_db() as db:
        await methods.create_table_if_not_exists(db, tags)
        assert await methods.get_primary_key_constraint(db, None, "Tags") is None

        assert await methods.create_primary_key_constraint_if_not_exists(db, primary_key) is True
        assert await methods.create_primary_key_constraint_if_not_exists(db, primary_key) is False
        read = await methods.get_primary_key_constraint(db, None, "Tags")
        assert read.constraint_name == "pk_Tags_Name"

        assert await methods.drop_primary_key_constraint_if_exists(db, None, "Tags") is True
        assert await methods.does_primary_key_constraint_exist(db, None, "Tags") is False


@pytest.mark.asyncio
async def test_foreign_key_add_and_drop():
    methods = SqliteMethods()
    orders = Table(
        table_name="Orders",
        columns=[
            Column(column_name="Id", host_type=int, is_primary_key=True, is_nullable=False),
            Column(column_name="UserId", host_type=int),
        ],
    )
    fk = ForeignKeyConstraint(
        table_name="Orders",
        constraint_name="fk_Orders_UserId_Users_Id",
        source_columns=[OrderedColumn(column_name="UserId")],
        referenced_table_name="Users",
        referenced_columns=[OrderedColumn(column_name="Id")],
        on_delete=ForeignKeyAction.CASCADE,
    )
    async with _memory_db() as db:
        await methods.create_table_if_not_exists(db, _users_table())
        await methods.create_table_if_not_exists(db, orders)

        assert await methods.create_foreign_key_constraint_if_not_exists(db, fk) is True
        assert await methods.create_foreign_key_constraint_if_not_exists(db, fk) is False
        assert await methods.does_foreign_key_constraint_exist_on_column(
            db, None, "Orders", "UserId"
        )
        column = await methods.get_column(db, None, "Orders", "UserId")
        assert column.is_foreign_key is True
        assert column.referenced_table_name == "Users"
        assert column.on_delete == ForeignKeyAction.CASCADE

        assert await methods.drop_foreign_key_constraint_if_exists(
            db, None, "Orders", "fk_Orders_UserId_Users_Id"
        )
        assert await methods.get_foreign_key_constraints(db, None, "Orders") == []


@pytest.mark.asyncio
async def test_create_tables_defers_foreign_keys_and_indexes():
    methods = SqliteMethods()
    orders = Table(
        table_name="Orders",
        columns=[
            Column(column_name="Id", host_type=int, is_primary_key=True, is_nullable=False),
            Column(
                column_name="UserId",
                host_type=int,
                is_foreign_key=True,
                referenced_table_name="Users",
                referenced_column_name="Id",
                is_indexed=True,
            ),
        ],
    )
    async with _memory_db() as db:
        await methods.create_tables_if_not_exists(db, [orders, _users_table()])

        assert await methods.get_table_names(db, None) == ["Orders", "Users"]
        assert await methods.get_foreign_key_constraint_names(db, None, "Orders") == [
            "fk_Orders_UserId_Users_Id"
        ]
        assert await methods.get_index_names(db, None, "Orders") == ["ix_Orders_UserId"]


@pytest.mark.asyncio
async def test_unicode_text_column_reads_back():
    methods = SqliteMethods()
    table = Table(
        table_name="Posts",
        columns=[
            Column(column_name="Title", host_type=str, length=100, is_unicode=True),
            Column(column_name="Body", host_type=str),
        ],
    )
    async with _memory_db() as db:
        await methods.create_table_if_not_exists(db, table)
        title = await methods.get_column(db, None, "Posts", "Title")

    assert title.get_provider_data_type(ProviderType.SQLITE) == "nvarchar(100)"
    assert title.is_unicode is True
    assert title.length == 100
    assert title.host_type is str


@pytest.mark.asyncio
async def test_database_version_and_capabilities():
    methods = SqliteMethods()
    async with _memory_db() as db:
        version = await methods.get_database_version(db)
        assert version[0] == 3
        assert await methods.supports_check_constraints(db) is True
        assert await methods.get_schema_names(db) == []
