from typing import Any, List, Optional, Sequence

from dal.base.ddl import DdlStatementsMixin
from ddl_model.column import Column
from ddl_model.constraints import (
    CheckConstraint,
    DefaultConstraint,
    ForeignKeyConstraint,
    PrimaryKeyConstraint,
    UniqueConstraint,
)
from ddl_model.index import Index
from ddl_model.table import Table


class TableMethodsMixin(DdlStatementsMixin):
    async def does_table_exist(
        self, conn: Any, schema_name: Optional[str], table_name: str, tx: Any = None
    ) -> bool:
        if not table_name or not table_name.strip():
            return False
        table_name = self.normalize_name(table_name)
        names = await self.get_table_names(conn, schema_name, table_name, tx=tx)
        return any(self._names_equal(name, table_name) for name in names)

    async def create_table_if_not_exists(self, conn: Any, table: Table, tx: Any = None) -> bool:
        return await self._create_table_if_not_exists(conn, table, None, tx)

    async def create_table_if_not_exists_from_parts(
        self,
        conn: Any,
        schema_name: Optional[str],
        table_name: str,
        columns: Sequence[Column],
        primary_key: Optional[PrimaryKeyConstraint] = None,
        check_constraints: Optional[Sequence[CheckConstraint]] = None,
        default_constraints: Optional[Sequence[DefaultConstraint]] = None,
        unique_constraints: Optional[Sequence[UniqueConstraint]] = None,
        foreign_key_constraints: Optional[Sequence[ForeignKeyConstraint]] = None,
        indexes: Optional[Sequence[Index]] = None,
        tx: Any = None,
    ) -> bool:
        """Keyword form of ``create_table_if_not_exists``."""
        table = Table(
            schema_name=schema_name,
            table_name=table_name,
            columns=list(columns),
            primary_key_constraint=primary_key,
            check_constraints=list(check_constraints or []),
            default_constraints=list(default_constraints or []),
            unique_constraints=list(unique_constraints or []),
            foreign_key_constraints=list(foreign_key_constraints or []),
            indexes=list(indexes or []),
        )
        return await self.create_table_if_not_exists(conn, table, tx=tx)

    async def create_tables_if_not_exists(
        self, conn: Any, tables: Sequence[Table], tx: Any = None
    ) -> None:
        """Create every table, then every foreign key, then every index.

        Deferring foreign keys lets tables reference each other regardless of
        their order in ``tables``.
        """
        conn = self._conn(conn)
        deferred: List[Table] = []
        for table in tables:
            await self._create_table_if_not_exists(conn, table, deferred, tx)
        for parts in deferred:
            for fk in parts.foreign_key_constraints:
                await self.create_foreign_key_constraint_if_not_exists(conn, fk, tx=tx)
        for parts in deferred:
            for index in parts.indexes:
                await self.create_index_if_not_exists(conn, index, tx=tx)

    async def _create_table_if_not_exists(
        self, conn: Any, table: Table, deferred: Optional[List[Table]], tx: Any = None
    ) -> bool:
        if table is None:
            raise ValueError("table is required.")
        self._require(table.table_name, "table_name")
        if not table.columns:
            raise ValueError(f"Table '{table.table_name}' must define at least one column.")
        conn = self._conn(conn)
        if await self.does_table_exist(conn, table.schema_name, table.table_name, tx=tx):
            return False

        table = table.model_copy(deep=True)
        ctx = await self._ddl_context(conn, tx)
        sql, parts = self._create_table_sql(table, ctx, deferred)
        await self._execute(conn, sql)

        if deferred is None:
            for index in parts.indexes:
                await self.create_index_if_not_exists(conn, index, tx=tx)
        return True

    async def get_table(
        self, conn: Any, schema_name: Optional[str], table_name: str, tx: Any = None
    ) -> Optional[Table]:
        if not table_name or not table_name.strip():
            return None
        table_name = self.normalize_name(table_name)
        tables = await self.get_tables(conn, schema_name, table_name, tx=tx)
        return next((t for t in tables if self._names_equal(t.table_name, table_name)), None)

    async def get_tables(
        self,
        conn: Any,
        schema_name: Optional[str],
        table_name_filter: Optional[str] = None,
        tx: Any = None,
    ) -> List[Table]:
        raise NotImplementedError

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
            SELECT TABLE_NAME AS table_name
            FROM INFORMATION_SCHEMA.TABLES
            WHERE TABLE_TYPE = 'BASE TABLE'
        """
        query += self._schema_clause(
            "TABLE_SCHEMA", self.normalize_schema_name(schema_name), params
        )
        query += self._name_filter_clause("TABLE_NAME", table_name_filter, params)
        query += " ORDER BY TABLE_NAME"
        rows = await conn.fetch(query, *params)
        return [row["table_name"] for row in rows]

    async def drop_table_if_exists(
        self, conn: Any, schema_name: Optional[str], table_name: str, tx: Any = None
    ) -> bool:
        conn = self._conn(conn)
        table = await self.get_table(conn, schema_name, table_name, tx=tx)
        if table is None:
            return False
        schema_name = self.normalize_schema_name(schema_name)
        table_name = table.table_name

        for fk in table.foreign_key_constraints:
            await self.drop_foreign_key_constraint_if_exists(
                conn, schema_name, table_name, fk.constraint_name, tx=tx
            )
        for index in table.indexes:
            await self.drop_index_if_exists(conn, schema_name, table_name, index.index_name, tx=tx)
        for uc in table.unique_constraints:
            await self.drop_unique_constraint_if_exists(
                conn, schema_name, table_name, uc.constraint_name, tx=tx
            )
        for dc in table.default_constraints:
            await self.drop_default_constraint_if_exists(
                conn, schema_name, table_name, dc.constraint_name, tx=tx
            )
        await self._execute(conn, self._drop_table_sql(schema_name, table_name))
        return True

    async def rename_table_if_exists(
        self,
        conn: Any,
        schema_name: Optional[str],
        table_name: str,
        new_table_name: str,
        tx: Any = None,
    ) -> bool:
        self._require(new_table_name, "new_table_name")
        conn = self._conn(conn)
        if not await self.does_table_exist(conn, schema_name, table_name, tx=tx):
            return False
        if await self.does_table_exist(conn, schema_name, new_table_name, tx=tx):
            return False
        await self._execute(
            conn,
            self._rename_table_sql(
                self.normalize_schema_name(schema_name),
                self.normalize_name(table_name),
                self.normalize_name(new_table_name),
            ),
        )
        return True

    async def truncate_table_if_exists(
        self, conn: Any, schema_name: Optional[str], table_name: str, tx: Any = None
    ) -> bool:
        conn = self._conn(conn)
        if not await self.does_table_exist(conn, schema_name, table_name, tx=tx):
            return False
        await self._execute(
            conn,
            self._truncate_table_sql(
                self.normalize_schema_name(schema_name), self.normalize_name(table_name)
            ),
        )
        return True
