"""SQLite implementation of the DDL operations.

SQLite cannot add or drop constraints on an existing table, so those
operations rebuild the table: copy the rows aside, drop the table, create
the altered definition and copy the rows back.
"""

import logging
import re
import uuid
from typing import Any, Callable, Dict, List, Optional

from dal.base import DatabaseMethodsBase, apply_constraint_flags, owned_transaction
from dal.base.core import is_function_call
from dal.sqlite.catalog import SqliteTypeCatalog
from dal.sqlite.connection import SqliteConnection
from dal.sqlite.sql_parser import parse_create_table
from dal.sqlite.type_map import SqliteTypeMap
from ddl_model.column import Column
from ddl_model.constraints import (
    CheckConstraint,
    DefaultConstraint,
    ForeignKeyConstraint,
    PrimaryKeyConstraint,
    UniqueConstraint,
)
from ddl_model.enums import ColumnOrder, ProviderType
from ddl_model.index import Index
from ddl_model.ordered_column import OrderedColumn
from ddl_model.table import Table
from ddl_model.view import View

logger = logging.getLogger(__name__)

_VIEW_PREFIX = re.compile(r"^.*?\bAS\s+(?=SELECT\b)", re.IGNORECASE | re.DOTALL)


class SqliteMethods(DatabaseMethodsBase):
    provider = ProviderType.SQLITE
    type_map = SqliteTypeMap
    type_catalog = SqliteTypeCatalog
    connection_class = SqliteConnection

    supports_schemas = False
    auto_increment_suffix = "AUTOINCREMENT"

    async def _get_database_version_text(self, conn) -> Optional[str]:
        return await conn.fetchval("SELECT sqlite_version() AS version")

    def _schema_clause(self, column_sql: str, schema_name: Optional[str], params: list) -> str:
        return ""

    # ------------------------------------------------------------------
    # Statement builders
    # ------------------------------------------------------------------

    def _column_type_sql(self, column: Column, ctx) -> str:
        # AUTOINCREMENT is only accepted on an INTEGER PRIMARY KEY.
        if column.is_auto_increment and column.is_primary_key:
            return "integer"
        return super()._column_type_sql(column, ctx)

    def _append_type_arguments(self, data_type: str, column: Column) -> str:
        if column.length is not None and column.length < 0 and column.precision is None:
            return data_type
        return super()._append_type_arguments(data_type, column)

    def _inline_default_sql(self, constraint_name: str, expression: str) -> str:
        self._validate_default(expression, "default_expression")
        expression = expression.strip()
        if (" " in expression or is_function_call(expression)) and not (
            expression.startswith("(") and expression.endswith(")")
        ):
            return f"DEFAULT ({expression})"
        return f"DEFAULT {expression}"

    def _drop_index_sql(self, schema_name: Optional[str], table_name: str, index_name: str) -> str:
        return f"DROP INDEX {self.quote_name(index_name)}"

    # ------------------------------------------------------------------
    # Catalog reads
    # ------------------------------------------------------------------

    async def get_table_names(
        self,
        conn: Any,
        schema_name: Optional[str],
        table_name_filter: Optional[str] = None,
        tx: Any = None,
    ) -> List[str]:
        conn = self._conn(conn)
        params: list = []
        query = """
            SELECT name AS table_name
            FROM sqlite_master
            WHERE type = 'table' AND name NOT LIKE 'sqlite_%'
        """
        query += self._name_filter_clause("name", table_name_filter, params)
        query += " ORDER BY name"
        rows = await conn.fetch(query, *params)
        return [row["table_name"] for row in rows]

    async def get_tables(
        self,
        conn: Any,
        schema_name: Optional[str],
        table_name_filter: Optional[str] = None,
        tx: Any = None,
    ) -> List[Table]:
        conn = self._conn(conn)
        params: list = []
        query = """
            SELECT name AS table_name, sql AS table_sql
            FROM sqlite_master
            WHERE type = 'table' AND name NOT LIKE 'sqlite_%'
        """
        query += self._name_filter_clause("name", table_name_filter, params)
        query += " ORDER BY name"
        rows = await conn.fetch(query, *params)
        declared_types = await self._get_declared_types(conn, table_name_filter)

        tables = []
        for row in rows:
            table = parse_create_table(
                row["table_sql"],
                self._describe_sql_type,
                declared_types.get(row["table_name"].lower()),
            )
            if table is None:
                logger.debug("Skipping unparseable table definition for %s", row["table_name"])
                continue
            tables.append(table)
        if not tables:
            return tables

        indexes = await self._get_indexes(conn, schema_name, table_name_filter, tx=tx)
        for table in tables:
            table.indexes = [ix for ix in indexes if self._names_equal(ix.table_name, table.table_name)]
            apply_constraint_flags(table)
            single_pk = (
                table.primary_key_constraint is not None
                and len(table.primary_key_constraint.columns) == 1
            )
            for column in table.columns:
                data_type = column.get_provider_data_type(self.provider)
                column.is_auto_increment = self.determine_is_auto_increment(
                    column,
                    {
                        "declared_type": data_type,
                        "is_single_primary_key": single_pk and column.is_primary_key,
                    },
                    data_type,
                )
        return tables

    async def _get_declared_types(
        self, conn: Any, table_name_filter: Optional[str] = None
    ) -> Dict[str, Dict[str, str]]:
        """Return declared column types per lowercase table name, verbatim."""
        params: list = []
        query = """
            SELECT m.name AS table_name, ti.name AS column_name, ti.type AS declared_type
            FROM sqlite_master AS m, pragma_table_info(m.name) AS ti
            WHERE m.type = 'table' AND m.name NOT LIKE 'sqlite_%'
        """
        query += self._name_filter_clause("m.name", table_name_filter, params)
        rows = await conn.fetch(query, *params)

        declared: Dict[str, Dict[str, str]] = {}
        for row in rows:
            declared.setdefault(row["table_name"].lower(), {})[row["column_name"]] = (
                row["declared_type"] or ""
            )
        return declared

    def check_provider_specific_auto_increment(self, metadata: Any) -> bool:
        # An INTEGER PRIMARY KEY column aliases the rowid.
        declared_type = (metadata.get("declared_type") or "").strip().lower()
        return declared_type == "integer" and bool(metadata.get("is_single_primary_key"))

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
            SELECT m.name AS table_name,
                   il.name AS index_name,
                   il."unique" AS is_unique,
                   ii.name AS column_name,
                   ii."desc" AS is_descending
            FROM sqlite_master AS m,
                 pragma_index_list(m.name) AS il,
                 pragma_index_xinfo(il.name) AS ii
            WHERE m.type = 'table'
              AND ii.name IS NOT NULL
              AND ii.key = 1
              AND il.origin = 'c'
        """
        query += self._name_filter_clause("m.name", table_name_filter, params)
        query += self._name_filter_clause("il.name", index_name_filter, params)
        query += " ORDER BY m.name, il.name, ii.seqno"
        rows = await conn.fetch(query, *params)

        indexes: dict = {}
        for row in rows:
            key = (row["table_name"], row["index_name"])
            index = indexes.get(key)
            if index is None:
                index = Index(
                    table_name=row["table_name"],
                    index_name=row["index_name"],
                    is_unique=bool(row["is_unique"]),
                )
                indexes[key] = index
            index.columns.append(
                OrderedColumn(
                    column_name=row["column_name"],
                    order=ColumnOrder.DESCENDING if row["is_descending"] else ColumnOrder.ASCENDING,
                )
            )
        return list(indexes.values())

    def _normalize_view_definition(self, definition: Optional[str]) -> str:
        return _VIEW_PREFIX.sub("", definition or "", count=1).strip()

    async def get_views(
        self,
        conn: Any,
        schema_name: Optional[str],
        view_name_filter: Optional[str] = None,
        tx: Any = None,
    ) -> List[View]:
        conn = self._conn(conn)
        params: list = []
        query = """
            SELECT name AS view_name, sql AS definition
            FROM sqlite_master
            WHERE type = 'view'
        """
        query += self._name_filter_clause("name", view_name_filter, params)
        query += " ORDER BY name"
        rows = await conn.fetch(query, *params)
        return [
            View(
                view_name=row["view_name"],
                definition=self._normalize_view_definition(row["definition"]),
            )
            for row in rows
        ]

    # ------------------------------------------------------------------
    # Tables
    # ------------------------------------------------------------------

    async def drop_table_if_exists(
        self, conn: Any, schema_name: Optional[str], table_name: str, tx: Any = None
    ) -> bool:
        conn = self._conn(conn)
        if not await self.does_table_exist(conn, schema_name, table_name, tx=tx):
            return False
        await self._execute(conn, self._drop_table_sql(None, self.normalize_name(table_name)))
        return True

    async def truncate_table_if_exists(
        self, conn: Any, schema_name: Optional[str], table_name: str, tx: Any = None
    ) -> bool:
        """Empty a table by dropping and recreating it from its stored definition."""
        conn = self._conn(conn)
        if not await self.does_table_exist(conn, schema_name, table_name, tx=tx):
            return False
        table_name = self.normalize_name(table_name)
        create_sql = await conn.fetchval(
            "SELECT sql FROM sqlite_master WHERE type = 'table' AND lower(name) = lower($1)",
            table_name,
        )
        if not create_sql or not create_sql.strip():
            return False
        index_rows = await conn.fetch(
            "SELECT sql FROM sqlite_master WHERE type = 'index' AND lower(tbl_name) = lower($1) "
            "AND sql IS NOT NULL",
            table_name,
        )
        await self._execute(conn, self._drop_table_sql(None, table_name))
        await self._execute(conn, create_sql)
        for row in index_rows:
            await self._execute(conn, row["sql"])
        return True

    async def _recreate_table(
        self,
        conn: Any,
        table_name: str,
        update: Callable[[Table], Optional[Table]],
        tx: Any = None,
    ) -> bool:
        """Rebuild ``table_name`` with the definition ``update`` returns.

        Foreign key enforcement is switched off for the duration; a
        transaction is opened only when the caller did not supply one.
        """
        existing = await self.get_table(conn, None, table_name, tx=tx)
        if existing is None:
            return False
        updated = update(existing.model_copy(deep=True))
        if updated is None:
            return False

        table_sql = self.quote_name(existing.table_name)
        temp_sql = self.quote(f"tmp_{uuid.uuid4().hex}")
        await self._execute(conn, "PRAGMA foreign_keys = 0")
        try:
            async with owned_transaction(conn, tx):
                await self._execute(
                    conn, f"CREATE TEMP TABLE {temp_sql} AS SELECT * FROM {table_sql}"
                )
                await self._execute(conn, self._drop_table_sql(None, existing.table_name))
                await self.create_table_if_not_exists(conn, updated, tx=tx)
                shared = [
                    self.quote_name(c.column_name)
                    for c in existing.columns
                    if updated.has_column(c.column_name)
                ]
                if shared:
                    columns_sql = ", ".join(shared)
                    await self._execute(
                        conn,
                        f"INSERT INTO {table_sql} ({columns_sql}) "
                        f"SELECT {columns_sql} FROM {temp_sql}",
                    )
                await self._execute(conn, f"DROP TABLE {temp_sql}")
        finally:
            await self._execute(conn, "PRAGMA foreign_keys = 1")
        return True

    # ------------------------------------------------------------------
    # Columns
    # ------------------------------------------------------------------

    def _needs_recreate_for(self, column: Column) -> bool:
        return (
            column.is_primary_key
            or column.is_unique
            or column.is_foreign_key
            or column.is_auto_increment
            or (not column.is_nullable and not column.get_default_expression(self.provider))
        )

    async def create_column_if_not_exists(self, conn: Any, column: Column, tx: Any = None) -> bool:
        if column is None:
            raise ValueError("column is required.")
        if not self._needs_recreate_for(column):
            return await super().create_column_if_not_exists(conn, column, tx=tx)

        self._require(column.table_name, "table_name")
        self._require(column.column_name, "column_name")
        conn = self._conn(conn)
        column = column.model_copy(deep=True)
        column.column_name = self.normalize_name(column.column_name)

        def add_column(table: Table) -> Optional[Table]:
            if table.has_column(column.column_name):
                return None
            column.schema_name = None
            column.table_name = table.table_name
            table.columns.append(column)
            return table

        return await self._recreate_table(conn, self.normalize_name(column.table_name), add_column, tx)

    async def drop_column_if_exists(
        self,
        conn: Any,
        schema_name: Optional[str],
        table_name: str,
        column_name: str,
        tx: Any = None,
    ) -> bool:
        conn = self._conn(conn)

        def drop_column(table: Table) -> Optional[Table]:
            if not table.has_column(column_name):
                return None
            target = column_name.lower()
            table.columns = [c for c in table.columns if c.column_name.lower() != target]
            pk = table.primary_key_constraint
            if pk is not None and pk.covers_column(column_name):
                table.primary_key_constraint = None
                for column in table.columns:
                    column.is_primary_key = False
            table.foreign_key_constraints = [
                fk for fk in table.foreign_key_constraints if not fk.covers_column(column_name)
            ]
            table.unique_constraints = [
                uc for uc in table.unique_constraints if not uc.covers_column(column_name)
            ]
            table.indexes = [ix for ix in table.indexes if not ix.covers_column(column_name)]
            table.check_constraints = [
                ck for ck in table.check_constraints if not self._names_equal(ck.column_name, column_name)
            ]
            table.default_constraints = [
                dc for dc in table.default_constraints if not self._names_equal(dc.column_name, column_name)
            ]
            return table

        return await self._recreate_table(conn, self.normalize_name(table_name), drop_column, tx)

    # ------------------------------------------------------------------
    # Constraints
    # ------------------------------------------------------------------

    async def _add_primary_key(
        self,
        conn: Any,
        schema_name: Optional[str],
        table_name: str,
        constraint_name: str,
        constraint: PrimaryKeyConstraint,
        tx: Any = None,
    ) -> None:
        def add_primary_key(table: Table) -> Table:
            table.primary_key_constraint = PrimaryKeyConstraint(
                table_name=table.table_name,
                constraint_name=constraint_name,
                columns=list(constraint.columns),
            )
            for column in table.columns:
                column.is_primary_key = constraint.covers_column(column.column_name)
            return table

        await self._recreate_table(conn, table_name, add_primary_key, tx)

    async def _drop_primary_key(
        self,
        conn: Any,
        schema_name: Optional[str],
        table_name: str,
        constraint_name: str,
        tx: Any = None,
    ) -> None:
        def drop_primary_key(table: Table) -> Table:
            table.primary_key_constraint = None
            for column in table.columns:
                column.is_primary_key = False
                column.is_auto_increment = False
            return table

        await self._recreate_table(conn, table_name, drop_primary_key, tx)

    async def _add_foreign_key(
        self,
        conn: Any,
        schema_name: Optional[str],
        table_name: str,
        constraint: ForeignKeyConstraint,
        tx: Any = None,
    ) -> None:
        def add_foreign_key(table: Table) -> Table:
            table.foreign_key_constraints.append(constraint)
            return table

        await self._recreate_table(conn, table_name, add_foreign_key, tx)

    async def _drop_foreign_key(
        self,
        conn: Any,
        schema_name: Optional[str],
        table_name: str,
        constraint_name: str,
        tx: Any = None,
    ) -> None:
        def drop_foreign_key(table: Table) -> Table:
            dropped = [
                fk
                for fk in table.foreign_key_constraints
                if self._names_equal(fk.constraint_name, constraint_name)
            ]
            table.foreign_key_constraints = [
                fk for fk in table.foreign_key_constraints if fk not in dropped
            ]
            for fk in dropped:
                for source in fk.source_columns:
                    column = table.get_column(source.column_name)
                    if column is not None:
                        column.is_foreign_key = False
                        column.referenced_table_name = None
                        column.referenced_column_name = None
            return table

        await self._recreate_table(conn, table_name, drop_foreign_key, tx)

    async def _add_unique_constraint(
        self,
        conn: Any,
        schema_name: Optional[str],
        table_name: str,
        constraint: UniqueConstraint,
        tx: Any = None,
    ) -> None:
        def add_unique(table: Table) -> Table:
            table.unique_constraints.append(constraint)
            return table

        await self._recreate_table(conn, table_name, add_unique, tx)

    async def _drop_unique_constraint(
        self,
        conn: Any,
        schema_name: Optional[str],
        table_name: str,
        constraint_name: str,
        tx: Any = None,
    ) -> None:
        def drop_unique(table: Table) -> Table:
            dropped = [
                uc
                for uc in table.unique_constraints
                if self._names_equal(uc.constraint_name, constraint_name)
            ]
            table.unique_constraints = [uc for uc in table.unique_constraints if uc not in dropped]
            for uc in dropped:
                for ordered in uc.columns:
                    column = table.get_column(ordered.column_name)
                    if column is not None:
                        column.is_unique = False
            return table

        await self._recreate_table(conn, table_name, drop_unique, tx)

    async def _add_check_constraint(
        self,
        conn: Any,
        schema_name: Optional[str],
        table_name: str,
        constraint: CheckConstraint,
        expression: str,
        tx: Any = None,
    ) -> None:
        def add_check(table: Table) -> Table:
            table.check_constraints.append(constraint)
            return table

        await self._recreate_table(conn, table_name, add_check, tx)

    async def _drop_check_constraint(
        self,
        conn: Any,
        schema_name: Optional[str],
        table_name: str,
        constraint_name: str,
        tx: Any = None,
    ) -> None:
        def drop_check(table: Table) -> Table:
            dropped = [
                ck
                for ck in table.check_constraints
                if self._names_equal(ck.constraint_name, constraint_name)
            ]
            table.check_constraints = [ck for ck in table.check_constraints if ck not in dropped]
            for ck in dropped:
                column = table.get_column(ck.column_name) if ck.column_name else None
                if column is not None:
                    column.check_expression = None
            return table

        await self._recreate_table(conn, table_name, drop_check, tx)

    async def _add_default_constraint(
        self,
        conn: Any,
        schema_name: Optional[str],
        table_name: str,
        constraint: DefaultConstraint,
        expression: str,
        tx: Any = None,
    ) -> None:
        def add_default(table: Table) -> Table:
            table.default_constraints.append(constraint)
            return table

        await self._recreate_table(conn, table_name, add_default, tx)

    async def _drop_default_constraint(
        self,
        conn: Any,
        schema_name: Optional[str],
        constraint: DefaultConstraint,
        tx: Any = None,
    ) -> None:
        def drop_default(table: Table) -> Table:
            table.default_constraints = [
                dc
                for dc in table.default_constraints
                if not self._names_equal(dc.constraint_name, constraint.constraint_name)
            ]
            column = table.get_column(constraint.column_name)
            if column is not None:
                column.default_expression = None
            return table

        await self._recreate_table(conn, constraint.table_name, drop_default, tx)
