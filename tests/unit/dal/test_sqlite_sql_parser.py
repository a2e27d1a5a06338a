from dal.sqlite.methods import SqliteMethods
from dal.sqlite.sql_parser import parse_create_table
from ddl_model.enums import ColumnOrder, ForeignKeyAction, ProviderType

_describe = SqliteMethods()._describe_sql_type

ORDER_LINES_SQL = """
CREATE TABLE IF NOT EXISTS main."Order Lines" (
    OrderId integer NOT NULL,
    LineNo integer NOT NULL, -- position within the order
    Sku varchar(20) NOT NULL DEFAULT 'none',
    Qty int DEFAULT -1 CHECK (Qty <> 0),
    Price numeric(10,2) DEFAULT (0.0),
    CreatedAt datetime DEFAULT CURRENT_TIMESTAMP,
    CONSTRAINT pk_lines PRIMARY KEY (OrderId, LineNo DESC),
    UNIQUE (Sku, LineNo),
    CHECK (Price >= 0),
    FOREIGN KEY (OrderId) REFERENCES Orders (Id) ON DELETE CASCADE ON UPDATE SET NULL
)
"""


class TestParseCreateTable:
    def setup_method(self):
        self.table = parse_create_table(ORDER_LINES_SQL, _describe)

    def test_table_and_column_names(self):
        assert self.table.table_name == "Order Lines"
        assert [c.column_name for c in self.table.columns] == [
            "OrderId",
            "LineNo",
            "Sku",
            "Qty",
            "Price",
            "CreatedAt",
        ]

    def test_column_types_and_nullability(self):
        sku = self.table.get_column("Sku")
        assert sku.get_provider_data_type(ProviderType.SQLITE) == "varchar(20)"
        assert sku.length == 20
        assert sku.host_type is str
        assert sku.is_nullable is False

        price = self.table.get_column("Price")
        assert (price.precision, price.scale) == (10, 2)
        assert self.table.get_column("Qty").is_nullable is True

    def test_table_level_primary_key(self):
        pk = self.table.primary_key_constraint
        assert pk.constraint_name == "pk_lines"
        assert [(c.column_name, c.order) for c in pk.columns] == [
            ("OrderId", ColumnOrder.ASCENDING),
            ("LineNo", ColumnOrder.DESCENDING),
        ]

    def test_unnamed_unique_gets_generated_name(self):
        (unique,) = self.table.unique_constraints
        assert unique.constraint_name == "uc_OrderLines_Sku_LineNo"
        assert [c.column_name for c in unique.columns] == ["Sku", "LineNo"]

    def test_inline_and_table_level_checks(self):
        inline, table_level = self.table.check_constraints
        assert inline.constraint_name == "ck_OrderLines_Qty"
        assert inline.column_name == "Qty"
        assert inline.render(ProviderType.SQLITE) == "Qty <> 0"

        assert table_level.constraint_name == "ck_OrderLines_1"
        assert table_level.column_name == "Price"
        assert table_level.render(ProviderType.SQLITE) == "Price >= 0"

    def test_default_forms(self):
        defaults = {
            dc.column_name: dc.render(ProviderType.SQLITE) for dc in self.table.default_constraints
        }
        assert defaults == {
            "Sku": "'none'",
            "Qty": "-1",
            "Price": "0.0",
            "CreatedAt": "CURRENT_TIMESTAMP",
        }
        assert self.table.default_constraints[0].constraint_name == "df_OrderLines_Sku"

    def test_table_level_foreign_key(self):
        (fk,) = self.table.foreign_key_constraints
        assert fk.constraint_name == "fk_OrderLines_OrderId_Orders_Id"
        assert fk.referenced_table_name == "Orders"
        assert [c.column_name for c in fk.referenced_columns] == ["Id"]
        assert fk.on_delete == ForeignKeyAction.CASCADE
        assert fk.on_update == ForeignKeyAction.SET_NULL


def test_inline_references_and_autoincrement():
    table = parse_create_table(
        "CREATE TABLE t (id integer PRIMARY KEY AUTOINCREMENT, "
        "parent_id int CONSTRAINT fk_parent REFERENCES t(id) ON DELETE SET NULL, "
        "owner int REFERENCES people)",
        _describe,
    )

    assert table.get_column("id").is_auto_increment is True
    assert table.primary_key_constraint.constraint_name == "pk_t_id"
    # A bare REFERENCES without a column list is not reported.
    (fk,) = table.foreign_key_constraints
    assert fk.constraint_name == "fk_parent"
    assert [c.column_name for c in fk.source_columns] == ["parent_id"]
    assert fk.on_delete == ForeignKeyAction.SET_NULL
    assert fk.on_update == ForeignKeyAction.NO_ACTION


def test_quoted_names_and_collation():
    table = parse_create_table(
        'CREATE TABLE [my table] ("first name" text, `last` nvarchar(40) COLLATE NOCASE NOT NULL)',
        _describe,
    )

    assert table.table_name == "my table"
    first, last = table.columns
    assert first.column_name == "first name"
    assert first.length == -1
    assert last.column_name == "last"
    assert last.is_unicode is True
    assert last.length == 40
    assert last.is_nullable is False


def test_non_table_statements_are_ignored():
    assert parse_create_table("", _describe) is None
    assert parse_create_table("SELECT 1", _describe) is None
    assert parse_create_table("CREATE INDEX ix ON t (a)", _describe) is None
    assert parse_create_table("CREATE VIEW v AS SELECT 1", _describe) is None


def test_unparseable_statement_returns_none():
    assert parse_create_table("CREATE TABLE t (a text DEFAULT 'open", _describe) is None


def test_declared_types_win_over_parsed_types():
    sql = "CREATE TABLE t (id integer PRIMARY KEY, code char(3))"

    parsed = parse_create_table(sql, _describe)
    declared = parse_create_table(sql, _describe, {"ID": "integer", "code": "char(3)"})

    assert parsed.get_column("id").get_provider_data_type(ProviderType.SQLITE) == "int"
    assert declared.get_column("id").get_provider_data_type(ProviderType.SQLITE) == "integer"
    assert declared.get_column("code").length == 3


def test_untyped_columns():
    table = parse_create_table("CREATE TABLE t (a, b)", _describe, {"a": "", "b": ""})

    assert [c.column_name for c in table.columns] == ["a", "b"]
    assert all(c.host_type is object for c in table.columns)


def test_table_options_are_ignored():
    table = parse_create_table(
        "CREATE TABLE kv (k text PRIMARY KEY, v blob) WITHOUT ROWID, STRICT", _describe
    )

    assert [c.column_name for c in table.columns] == ["k", "v"]
    assert table.primary_key_constraint.constraint_name == "pk_kv_k"


def test_nested_check_parentheses_are_kept():
    table = parse_create_table("CREATE TABLE t (a int, b int, CHECK ((a + 1) > (b - 1)))", _describe)

    (check,) = table.check_constraints
    assert check.render(ProviderType.SQLITE) == "(a + 1) > (b - 1)"
    assert check.constraint_name == "ck_t"
