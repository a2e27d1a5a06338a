from decimal import Decimal

import pytest

pytest.importorskip("asyncpg")

from dal.connection import EngineConnection  # noqa: E402
from dal.postgres import PostgresMethods  # noqa: E402
from ddl_model.column import Column  # noqa: E402
from ddl_model.data_types import DataTypeCategory  # noqa: E402
from ddl_model.enums import ProviderType  # noqa: E402
from ddl_model.table import Table  # noqa: E402


class _FakeConn(EngineConnection):
    provider = ProviderType.POSTGRES

    def __init__(self, responses=None):
        super().__init__(object())
        self._responses = responses or []
        self.executed = []

    async def _run_fetch(self, sql, params):
        for marker, rows in self._responses:
            if marker in sql:
                return rows
        return []

    async def _run_execute(self, sql, params):
        self.executed.append(sql)
        return "OK"


@pytest.mark.asyncio
async def test_create_table_uses_serial_and_lowercase_names():
    conn = _FakeConn(
        [
            ("INFORMATION_SCHEMA.TABLES", []),
            ("SELECT VERSION()", [{"version": "PostgreSQL 15.7 (Debian 15.7-1.pgdg110+1)"}]),
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
            Column(column_name="Name", host_type=str, length=50, default_expression="'n/a'"),
            Column(
                column_name="Price",
                host_type=Decimal,
                precision=10,
                scale=2,
                check_expression="Price > 0",
            ),
        ],
    )

    assert await PostgresMethods().create_table_if_not_exists(conn, table) is True

    assert conn.executed == [
        'CREATE TABLE "public"."users" (\n'
        '    "id" serial NOT NULL CONSTRAINT "pk_users_id" PRIMARY KEY\n'
        '  , "name" varchar(50) NULL DEFAULT \'n/a\'\n'
        '  , "price" decimal(10,2) NULL CONSTRAINT "ck_users_price" CHECK (Price > 0)\n'
        ")"
    ]


@pytest.mark.parametrize(
    "pinned, expected",
    [("bigint", "bigserial"), ("smallint", "smallserial"), ("uuid", "uuid")],
)
def test_auto_increment_columns_map_to_serial_types(pinned, expected):
    methods = PostgresMethods()
    column = Column(
        column_name="id",
        host_type=int,
        is_auto_increment=True,
        provider_data_types={ProviderType.POSTGRES: pinned},
    )

    assert methods._column_type_sql(column, None) == expected


def test_statement_builders():
    methods = PostgresMethods()

    assert methods.quote_name("Order Lines") == '"orderlines"'
    assert methods._drop_index_sql("public", "users", "ix_users_email") == (
        'DROP INDEX "public"."ix_users_email"'
    )
    assert methods._drop_default_constraint_sql("public", "users", "name", "df_users_name") == (
        'ALTER TABLE "public"."users" ALTER COLUMN "name" DROP DEFAULT'
    )


@pytest.mark.asyncio
async def test_drop_schema_cascades():
    conn = _FakeConn([("INFORMATION_SCHEMA.SCHEMATA", [{"schema_name": "sales"}])])

    assert await PostgresMethods().drop_schema_if_exists(conn, "Sales") is True
    assert conn.executed == ['DROP SCHEMA "sales" CASCADE']


@pytest.mark.asyncio
async def test_get_tables_assembles_catalog_rows():
    conn = _FakeConn(
        [
            (
                "pg_catalog.pg_attrdef",
                [
                    {
                        "table_name": "users",
                        "column_name": "id",
                        "column_default": "nextval('users_id_seq'::regclass)",
                        "is_nullable": 0,
                        "identity_kind": "",
                        "data_type": "int4",
                        "data_type_ext": "integer",
                    },
                    {
                        "table_name": "users",
                        "column_name": "name",
                        "column_default": "'n/a'::character varying",
                        "is_nullable": 1,
                        "identity_kind": "",
                        "data_type": "varchar",
                        "data_type_ext": "character varying(50)",
                    },
                    {
                        "table_name": "users",
                        "column_name": "price",
                        "column_default": None,
                        "is_nullable": 1,
                        "identity_kind": "",
                        "data_type": "numeric",
                        "data_type_ext": "numeric(10,2)",
                    },
                ],
            ),
            (
                "r.contype IN ('p', 'u')",
                [
                    {
                        "table_name": "users",
                        "constraint_name": "pk_users_id",
                        "column_name": "id",
                        "is_descending": 0,
                        "is_unique": 1,
                        "is_primary_key": 1,
                        "is_unique_constraint": 0,
                    }
                ],
            ),
            (
                "pg_get_constraintdef",
                [
                    {
                        "table_name": "users",
                        "constraint_name": "ck_users_price",
                        "definition": "CHECK (price > 0::numeric)",
                        "column_name": "price",
                    }
                ],
            ),
            (
                "pg_catalog.pg_index AS i",
                [
                    {
                        "table_name": "users",
                        "constraint_name": "ix_users_name",
                        "column_name": "name",
                        "is_descending": 1,
                        "is_unique": 0,
                    }
                ],
            ),
        ]
    )

    (table,) = await PostgresMethods().get_tables(conn, None)

    assert table.schema_name == "public"
    user_id, name, price = table.columns

    assert user_id.is_primary_key and user_id.is_auto_increment
    assert user_id.get_provider_data_type(ProviderType.POSTGRES) == "integer"
    assert user_id.default_expression is None

    assert name.length == 50
    assert name.host_type is str
    assert name.is_indexed
    assert name.get_default_expression(ProviderType.POSTGRES) == "'n/a'::character varying"
    assert [dc.constraint_name for dc in table.default_constraints] == ["df_users_name"]

    assert (price.precision, price.scale) == (10, 2)
    assert price.host_type is Decimal
    assert price.get_check_expression(ProviderType.POSTGRES) == "price > 0::numeric"
    assert not price.is_auto_increment


@pytest.mark.asyncio
async def test_discover_custom_data_types():
    conn = _FakeConn(
        [
            (
                "information_schema.domains",
                [
                    {
                        "domain_name": "email_address",
                        "data_type": "character varying",
                        "character_maximum_length": 320,
                        "numeric_precision": None,
                        "numeric_scale": None,
                    }
                ],
            ),
            ("pg_enum", [{"enum_name": "mood", "enum_values": ["sad", "ok", "happy"]}]),
            (
                "t.typtype = 'c'",
                [
                    {
                        "type_name": "address",
                        "column_names": ["street", "zip"],
                        "column_types": ["text", "integer"],
                    }
                ],
            ),
        ]
    )

    domain, enum, composite = await PostgresMethods().discover_custom_data_types(conn)

    assert all(t.category == DataTypeCategory.CUSTOM and t.is_custom for t in (domain, enum, composite))
    assert domain.data_type == "email_address"
    assert domain.description == "Domain based on character varying"
    assert domain.supports_length and not domain.supports_precision

    assert enum.description == "Enum with values: sad, ok, happy"
    assert list(enum.examples) == ["sad", "ok", "happy"]

    assert composite.description == "Composite type with columns: street: text, zip: integer"
