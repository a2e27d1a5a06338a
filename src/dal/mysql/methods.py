"""MySQL / MariaDB implementation of the DDL operations.

MySQL has no schemas in the SQL Server or PostgreSQL sense; every catalog
query is scoped to the current ``DATABASE()`` and schema arguments are
ignored.
"""

import logging
from typing import Any, List, Optional, Tuple

from dal.base import DatabaseMethodsBase, DdlContext
from dal.base.assembly import (
    apply_constraint_flags,
    build_foreign_keys,
    build_key_constraints,
    for_table,
    group_rows,
    infer_check_column,
)
from dal.base.core import parse_version, strip_outer_parentheses
from dal.mysql.catalog import MySqlTypeCatalog
from dal.mysql.connection import MySqlConnection
from dal.mysql.type_map import MySqlTypeMap
from ddl_model import naming
from ddl_model.column import Column
from ddl_model.constraints import CheckConstraint, DefaultConstraint
from ddl_model.enums import ForeignKeyAction, ProviderType
from ddl_model.index import Index
from ddl_model.table import Table

logger = logging.getLogger(__name__)

_UTF8MB4 = "CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
_TEXT_TYPE_PREFIXES = ("varchar", "char", "text", "tinytext", "mediumtext", "longtext")


def _supports_utf8mb4(version: Tuple[int, ...]) -> bool:
    # MariaDB 10.x / 11.x report their own major version.
    return version >= (5, 5, 3) and version[0] not in (10, 11)


class MySqlMethods(DatabaseMethodsBase):
    provider = ProviderType.MYSQL
    type_map = MySqlTypeMap
    type_catalog = MySqlTypeCatalog
    connection_class = MySqlConnection

    quote_prefix = "`"
    quote_suffix = "`"
    supports_schemas = False
    auto_increment_suffix = "AUTO_INCREMENT"

    async def _get_database_version_text(self, conn) -> Optional[str]:
        version = await conn.fetchval("SELECT VERSION() AS version")
        return str(version) if version is not None else None

    def _schema_clause(self, column_sql: str, schema_name: Optional[str], params: list) -> str:
        return f" AND {column_sql} = DATABASE()"

    async def supports_check_constraints(self, conn: Any, tx: Any = None) -> bool:
        conn = self._conn(conn)
        text = await self._get_database_version_text(conn) or ""
        version = parse_version(text)
        if "mariadb" in text.lower():
            return version > (10, 2, 1)
        return version >= (8, 0, 16)

    async def supports_ordered_keys_in_constraints(self, conn: Any, tx: Any = None) -> bool:
        return False

    def check_provider_specific_auto_increment(self, metadata: Any) -> bool:
        return isinstance(metadata, str) and "auto_increment" in metadata.lower()

    # ------------------------------------------------------------------
    # Statement builders
    # ------------------------------------------------------------------

    def _column_type_sql(self, column: Column, ctx: DdlContext) -> str:
        data_type = super()._column_type_sql(column, ctx)
        if (
            column.is_unicode
            and data_type.lower().startswith(_TEXT_TYPE_PREFIXES)
            and _supports_utf8mb4(ctx.version)
        ):
            return f"{data_type} {_UTF8MB4}"
        return data_type

    def _table_options_sql(self, ctx: DdlContext) -> str:
        if _supports_utf8mb4(ctx.version):
            return f" DEFAULT {_UTF8MB4} ENGINE = InnoDB"
        return " ENGINE = InnoDB"

    # MySQL rejects named column-level constraints, so keys, checks and
    # references are always emitted at table level.
    def _inline_primary_key_sql(self, column: Column, constraint_name: str) -> Tuple[str, bool]:
        return ("AUTO_INCREMENT" if column.is_auto_increment else ""), True

    def _inline_check_sql(self, constraint_name: str, expression: str) -> Tuple[str, bool]:
        self._validate_check(expression, "check_expression")
        return "", True

    def _inline_unique_sql(self, constraint_name: str) -> Tuple[str, bool]:
        return "", True

    def _inline_foreign_key_sql(
        self,
        schema_name: Optional[str],
        constraint_name: str,
        referenced_table_name: str,
        referenced_column_name: str,
        on_delete: Optional[ForeignKeyAction],
        on_update: Optional[ForeignKeyAction],
    ) -> Tuple[str, bool]:
        return "", True

    def _format_default(self, expression: str) -> str:
        expression = expression.strip()
        needs_parentheses = (
            " " in expression
            and not (expression.startswith("(") and expression.endswith(")"))
            and not (expression.startswith('"') and expression.endswith('"'))
            and not (expression.startswith("'") and expression.endswith("'"))
        )
        return f"({expression})" if needs_parentheses else expression

    def _inline_default_sql(self, constraint_name: str, expression: str) -> str:
        self._validate_default(expression, "default_expression")
        return f"DEFAULT {self._format_default(expression)}"

    def _add_default_constraint_sql(
        self,
        schema_name: Optional[str],
        table_name: str,
        column_name: str,
        constraint_name: str,
        expression: str,
    ) -> str:
        self._validate_default(expression, "expression")
        return (
            f"ALTER TABLE {self._qualified(schema_name, table_name)} "
            f"ALTER COLUMN {self.quote_name(column_name)} "
            f"SET DEFAULT {self._format_default(expression)}"
        )

    def _drop_default_constraint_sql(
        self, schema_name: Optional[str], table_name: str, column_name: str, constraint_name: str
    ) -> str:
        return (
            f"ALTER TABLE {self._qualified(schema_name, table_name)} "
            f"ALTER COLUMN {self.quote_name(column_name)} DROP DEFAULT"
        )

    def _drop_primary_key_constraint_sql(
        self, schema_name: Optional[str], table_name: str, constraint_name: str
    ) -> str:
        return f"ALTER TABLE {self._qualified(schema_name, table_name)} DROP PRIMARY KEY"

    def _drop_unique_constraint_sql(
        self, schema_name: Optional[str], table_name: str, constraint_name: str
    ) -> str:
        return (
            f"ALTER TABLE {self._qualified(schema_name, table_name)} "
            f"DROP INDEX {self.quote_name(constraint_name)}"
        )

    def _drop_foreign_key_constraint_sql(
        self, schema_name: Optional[str], table_name: str, constraint_name: str
    ) -> str:
        return (
            f"ALTER TABLE {self._qualified(schema_name, table_name)} "
            f"DROP FOREIGN KEY {self.quote_name(constraint_name)}"
        )

    def _drop_check_constraint_sql(
        self, schema_name: Optional[str], table_name: str, constraint_name: str
    ) -> str:
        return (
            f"ALTER TABLE {self._qualified(schema_name, table_name)} "
            f"DROP CHECK {self.quote_name(constraint_name)}"
        )

    async def _rename_column(
        self, conn: Any, table: Table, column_name: str, new_column_name: str, tx: Any = None
    ) -> None:
        version = await self.get_database_version(conn, tx)
        if version >= (8, 0, 0):
            await super()._rename_column(conn, table, column_name, new_column_name, tx)
            return

        # Before 8.0 a rename is a CHANGE that restates the whole definition.
        row = await conn.fetchrow(
            """
            SELECT COLUMN_TYPE AS column_type,
                   IS_NULLABLE AS is_nullable,
                   COLUMN_DEFAULT AS column_default,
                   EXTRA AS extra,
                   COLUMN_COMMENT AS column_comment
            FROM INFORMATION_SCHEMA.COLUMNS
            WHERE TABLE_SCHEMA = DATABASE() AND TABLE_NAME = $1 AND COLUMN_NAME = $2
            """,
            table.table_name,
            column_name,
        )
        if row is None:
            raise ValueError(f"Column '{column_name}' not found in table '{table.table_name}'.")
        definition = row["column_type"]
        if row["is_nullable"] == "NO":
            definition += " NOT NULL"
        if row["column_default"]:
            definition += f" DEFAULT {row['column_default']}"
        if row["extra"] and "auto_increment" in row["extra"].lower():
            definition += " AUTO_INCREMENT"
        if row["column_comment"]:
            escaped = row["column_comment"].replace("'", "''")
            definition += f" COMMENT '{escaped}'"
        await self._execute(
            conn,
            f"ALTER TABLE {self._qualified(None, table.table_name)} "
            f"CHANGE {self.quote_name(column_name)} {self.quote_name(new_column_name)} {definition}",
        )

    # ------------------------------------------------------------------
    # Catalog reads
    # ------------------------------------------------------------------

    async def get_tables(
        self,
        conn: Any,
        schema_name: Optional[str],
        table_name_filter: Optional[str] = None,
        tx: Any = None,
    ) -> List[Table]:
        conn = self._conn(conn)

        params: list = []
        column_rows = await conn.fetch(
            """
            SELECT t.TABLE_NAME AS table_name,
                   c.COLUMN_NAME AS column_name,
                   c.COLUMN_DEFAULT AS column_default,
                   CASE WHEN c.IS_NULLABLE = 'YES' THEN 1 ELSE 0 END AS is_nullable,
                   c.DATA_TYPE AS data_type,
                   c.COLUMN_TYPE AS column_type,
                   c.CHARACTER_MAXIMUM_LENGTH AS max_length,
                   c.NUMERIC_PRECISION AS numeric_precision,
                   c.NUMERIC_SCALE AS numeric_scale,
                   c.EXTRA AS extra
            FROM INFORMATION_SCHEMA.TABLES AS t
                INNER JOIN INFORMATION_SCHEMA.COLUMNS AS c
                    ON t.TABLE_SCHEMA = c.TABLE_SCHEMA AND t.TABLE_NAME = c.TABLE_NAME
            WHERE t.TABLE_TYPE = 'BASE TABLE' AND t.TABLE_SCHEMA = DATABASE()
            """
            + self._name_filter_clause("t.TABLE_NAME", table_name_filter, params)
            + " ORDER BY t.TABLE_NAME, c.ORDINAL_POSITION",
            *params,
        )
        if not column_rows:
            return []

        params = []
        key_rows = await conn.fetch(
            """
            SELECT tc.TABLE_NAME AS table_name,
                   tc.CONSTRAINT_NAME AS constraint_name,
                   kcu.COLUMN_NAME AS column_name,
                   CASE WHEN s.COLLATION = 'D' THEN 1 ELSE 0 END AS is_descending,
                   1 AS is_unique,
                   CASE WHEN tc.CONSTRAINT_TYPE = 'PRIMARY KEY' THEN 1 ELSE 0 END AS is_primary_key,
                   CASE WHEN tc.CONSTRAINT_TYPE = 'UNIQUE' THEN 1 ELSE 0 END AS is_unique_constraint
            FROM INFORMATION_SCHEMA.TABLE_CONSTRAINTS AS tc
                INNER JOIN INFORMATION_SCHEMA.KEY_COLUMN_USAGE AS kcu
                    ON tc.CONSTRAINT_NAME = kcu.CONSTRAINT_NAME
                    AND tc.TABLE_SCHEMA = kcu.TABLE_SCHEMA
                    AND tc.TABLE_NAME = kcu.TABLE_NAME
                LEFT JOIN INFORMATION_SCHEMA.STATISTICS AS s
                    ON kcu.TABLE_SCHEMA = s.TABLE_SCHEMA
                    AND kcu.TABLE_NAME = s.TABLE_NAME
                    AND kcu.COLUMN_NAME = s.COLUMN_NAME
                    AND kcu.CONSTRAINT_NAME = s.INDEX_NAME
            WHERE tc.TABLE_SCHEMA = DATABASE()
              AND tc.CONSTRAINT_TYPE IN ('UNIQUE', 'PRIMARY KEY')
            """
            + self._name_filter_clause("tc.TABLE_NAME", table_name_filter, params)
            + " ORDER BY tc.TABLE_NAME, tc.CONSTRAINT_NAME, kcu.ORDINAL_POSITION",
            *params,
        )

        params = []
        foreign_key_rows = await conn.fetch(
            """
            SELECT kcu.TABLE_NAME AS table_name,
                   kcu.CONSTRAINT_NAME AS constraint_name,
                   kcu.COLUMN_NAME AS column_name,
                   kcu.REFERENCED_TABLE_NAME AS referenced_table_name,
                   kcu.REFERENCED_COLUMN_NAME AS referenced_column_name,
                   rc.DELETE_RULE AS delete_rule,
                   rc.UPDATE_RULE AS update_rule
            FROM INFORMATION_SCHEMA.KEY_COLUMN_USAGE AS kcu
                INNER JOIN INFORMATION_SCHEMA.REFERENTIAL_CONSTRAINTS AS rc
                    ON kcu.CONSTRAINT_SCHEMA = rc.CONSTRAINT_SCHEMA
                    AND kcu.CONSTRAINT_NAME = rc.CONSTRAINT_NAME
            WHERE kcu.CONSTRAINT_SCHEMA = DATABASE()
              AND kcu.REFERENCED_TABLE_NAME IS NOT NULL
            """
            + self._name_filter_clause("kcu.TABLE_NAME", table_name_filter, params)
            + " ORDER BY kcu.TABLE_NAME, kcu.CONSTRAINT_NAME, kcu.ORDINAL_POSITION",
            *params,
        )

        checks: List[CheckConstraint] = []
        if await self.supports_check_constraints(conn, tx):
            params = []
            check_rows = await conn.fetch(
                """
                SELECT tc.TABLE_NAME AS table_name,
                       tc.CONSTRAINT_NAME AS constraint_name,
                       cc.CHECK_CLAUSE AS expression
                FROM INFORMATION_SCHEMA.TABLE_CONSTRAINTS AS tc
                    INNER JOIN INFORMATION_SCHEMA.CHECK_CONSTRAINTS AS cc
                        ON tc.CONSTRAINT_SCHEMA = cc.CONSTRAINT_SCHEMA
                        AND tc.CONSTRAINT_NAME = cc.CONSTRAINT_NAME
                WHERE tc.TABLE_SCHEMA = DATABASE() AND tc.CONSTRAINT_TYPE = 'CHECK'
                """
                + self._name_filter_clause("tc.TABLE_NAME", table_name_filter, params)
                + " ORDER BY tc.TABLE_NAME, tc.CONSTRAINT_NAME",
                *params,
            )
            columns_by_table = group_rows(column_rows, "table_name")
            for row in check_rows:
                column_names = [
                    c["column_name"] for c in columns_by_table.get((row["table_name"],), [])
                ]
                checks.append(
                    CheckConstraint(
                        table_name=row["table_name"],
                        column_name=infer_check_column(row["expression"], column_names),
                        constraint_name=row["constraint_name"],
                        expression=strip_outer_parentheses(row["expression"]),
                    )
                )

        # MariaDB reports a literal NULL default for nullable columns.
        defaults = [
            DefaultConstraint(
                table_name=row["table_name"],
                column_name=row["column_name"],
                constraint_name=naming.default_constraint_name(
                    row["table_name"], row["column_name"]
                ),
                expression=strip_outer_parentheses(str(row["column_default"])),
            )
            for row in column_rows
            if row["column_default"] is not None
            and str(row["column_default"]).strip()
            and str(row["column_default"]).strip().upper() != "NULL"
        ]

        primary_keys, unique_constraints = {}, []
        for (table_name,), rows in group_rows(key_rows, "table_name").items():
            pk, uniques, _ = build_key_constraints(rows)
            if pk is not None:
                # Every MySQL primary key is named PRIMARY.
                pk.constraint_name = naming.primary_key_constraint_name(
                    table_name, *[c.column_name for c in pk.columns]
                )
            primary_keys[table_name.lower()] = pk
            unique_constraints.extend(uniques)
        foreign_keys = build_foreign_keys(foreign_key_rows)
        indexes = await self._get_indexes(conn, None, table_name_filter, tx=tx)

        tables = []
        for (table_name,), rows in group_rows(column_rows, "table_name").items():
            columns = [
                self._catalog_column(
                    row["column_name"],
                    row["column_type"] or row["data_type"],
                    row["is_nullable"],
                    length=row["max_length"],
                    precision=row["numeric_precision"],
                    scale=row["numeric_scale"],
                )
                for row in rows
            ]
            table = Table(
                table_name=table_name,
                columns=columns,
                primary_key_constraint=primary_keys.get(table_name.lower()),
                check_constraints=for_table(checks, table_name),
                default_constraints=for_table(defaults, table_name),
                unique_constraints=for_table(unique_constraints, table_name),
                foreign_key_constraints=for_table(foreign_keys, table_name),
                indexes=for_table(indexes, table_name),
            )
            apply_constraint_flags(table)
            for column, row in zip(table.columns, rows):
                column.is_auto_increment = self.determine_is_auto_increment(
                    column, row["extra"] or "", row["column_type"] or row["data_type"]
                )
            tables.append(table)
        return tables

    async def _get_indexes(
        self,
        conn: Any,
        schema_name: Optional[str],
        table_name_filter: Optional[str] = None,
        index_name_filter: Optional[str] = None,
        tx: Any = None,
    ) -> List[Index]:
        conn = self._conn(conn)
        params: list = []
        query = """
            SELECT s.TABLE_NAME AS table_name,
                   s.INDEX_NAME AS constraint_name,
                   s.COLUMN_NAME AS column_name,
                   CASE WHEN s.COLLATION = 'D' THEN 1 ELSE 0 END AS is_descending,
                   CASE WHEN s.NON_UNIQUE = 1 THEN 0 ELSE 1 END AS is_unique
            FROM INFORMATION_SCHEMA.STATISTICS AS s
            WHERE s.TABLE_SCHEMA = DATABASE()
              AND s.INDEX_NAME <> 'PRIMARY'
              AND s.INDEX_NAME NOT IN (
                  SELECT tc.CONSTRAINT_NAME
                  FROM INFORMATION_SCHEMA.TABLE_CONSTRAINTS AS tc
                  WHERE tc.TABLE_SCHEMA = DATABASE()
                    AND tc.TABLE_NAME = s.TABLE_NAME
                    AND tc.CONSTRAINT_TYPE IN ('PRIMARY KEY', 'FOREIGN KEY', 'CHECK')
              )
        """
        query += self._name_filter_clause("s.TABLE_NAME", table_name_filter, params)
        query += self._name_filter_clause("s.INDEX_NAME", index_name_filter, params)
        query += " ORDER BY s.TABLE_NAME, s.INDEX_NAME, s.SEQ_IN_INDEX"
        rows = await conn.fetch(query, *params)
        _, _, indexes = build_key_constraints(rows)
        return indexes
