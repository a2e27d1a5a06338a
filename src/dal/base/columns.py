from typing import Any, List, Optional

from dal.base.ddl import DdlStatementsMixin
from dal.util.filters import filter_by_name
from ddl_model.column import Column
from ddl_model.table import Table


class ColumnMethodsMixin(DdlStatementsMixin):
    async def does_column_exist(
        self,
        conn: Any,
        schema_name: Optional[str],
        table_name: str,
        column_name: str,
        tx: Any = None,
    ) -> bool:
        return await self.get_column(conn, schema_name, table_name, column_name, tx=tx) is not None

    async def create_column_if_not_exists(self, conn: Any, column: Column, tx: Any = None) -> bool:
        """Add ``column`` to its table, then any constraints it implies.

        Constraints that cannot be declared inline on an ``ADD`` clause are
        created afterwards through the per-kind operations.
        """
        if column is None:
            raise ValueError("column is required.")
        self._require(column.table_name, "table_name")
        self._require(column.column_name, "column_name")
        conn = self._conn(conn)
        table = await self.get_table(conn, column.schema_name, column.table_name, tx=tx)
        if table is None or table.has_column(column.column_name):
            return False

        column = column.model_copy(deep=True)
        schema_name = self.normalize_schema_name(column.schema_name)
        table_name = table.table_name
        parts = Table(
            schema_name=schema_name,
            table_name=table_name,
            primary_key_constraint=table.primary_key_constraint,
        )
        ctx = await self._ddl_context(conn, tx)
        definition = self._column_definition_sql(table, column, parts, ctx)
        await self._execute(conn, self._add_column_sql(schema_name, table_name, definition))
        await self._create_column_leftovers(conn, table, parts, tx)
        return True

    async def _create_column_leftovers(
        self, conn: Any, table: Table, parts: Table, tx: Any = None
    ) -> None:
        if (
            parts.primary_key_constraint is not None
            and table.primary_key_constraint is None
        ):
            await self.create_primary_key_constraint_if_not_exists(
                conn, parts.primary_key_constraint, tx=tx
            )
        for check in parts.check_constraints:
            await self.create_check_constraint_if_not_exists(conn, check, tx=tx)
        for default in parts.default_constraints:
            await self.create_default_constraint_if_not_exists(conn, default, tx=tx)
        for uc in parts.unique_constraints:
            await self.create_unique_constraint_if_not_exists(conn, uc, tx=tx)
        for fk in parts.foreign_key_constraints:
            await self.create_foreign_key_constraint_if_not_exists(conn, fk, tx=tx)
        for index in parts.indexes:
            await self.create_index_if_not_exists(conn, index, tx=tx)

    async def get_column(
        self,
        conn: Any,
        schema_name: Optional[str],
        table_name: str,
        column_name: str,
        tx: Any = None,
    ) -> Optional[Column]:
        if not column_name or not column_name.strip():
            return None
        table = await self.get_table(conn, schema_name, table_name, tx=tx)
        if table is None:
            return None
        return table.get_column(self.normalize_name(column_name))

    async def get_columns(
        self,
        conn: Any,
        schema_name: Optional[str],
        table_name: str,
        column_name_filter: Optional[str] = None,
        tx: Any = None,
    ) -> List[Column]:
        table = await self.get_table(conn, schema_name, table_name, tx=tx)
        if table is None:
            return []
        return filter_by_name(table.columns, column_name_filter, lambda c: c.column_name)

    async def get_column_names(
        self,
        conn: Any,
        schema_name: Optional[str],
        table_name: str,
        column_name_filter: Optional[str] = None,
        tx: Any = None,
    ) -> List[str]:
        columns = await self.get_columns(conn, schema_name, table_name, column_name_filter, tx=tx)
        return [c.column_name for c in columns]

    async def drop_column_if_exists(
        self,
        conn: Any,
        schema_name: Optional[str],
        table_name: str,
        column_name: str,
        tx: Any = None,
    ) -> bool:
        conn = self._conn(conn)
        table = await self.get_table(conn, schema_name, table_name, tx=tx)
        if table is None or not table.has_column(column_name):
            return False
        schema_name = self.normalize_schema_name(schema_name)
        table_name = table.table_name
        column_name = table.get_column(column_name).column_name

        pk = table.primary_key_constraint
        if pk is not None and pk.covers_column(column_name):
            await self.drop_primary_key_constraint_if_exists(conn, schema_name, table_name, tx=tx)
        await self.drop_foreign_key_constraint_on_column_if_exists(
            conn, schema_name, table_name, column_name, tx=tx
        )
        await self.drop_unique_constraint_on_column_if_exists(
            conn, schema_name, table_name, column_name, tx=tx
        )
        await self.drop_indexes_on_column_if_exists(
            conn, schema_name, table_name, column_name, tx=tx
        )
        await self.drop_check_constraint_on_column_if_exists(
            conn, schema_name, table_name, column_name, tx=tx
        )
        await self.drop_default_constraint_on_column_if_exists(
            conn, schema_name, table_name, column_name, tx=tx
        )
        await self._execute(conn, self._drop_column_sql(schema_name, table_name, column_name))
        return True

    async def rename_column_if_exists(
        self,
        conn: Any,
        schema_name: Optional[str],
        table_name: str,
        column_name: str,
        new_column_name: str,
        tx: Any = None,
    ) -> bool:
        self._require(new_column_name, "new_column_name")
        conn = self._conn(conn)
        table = await self.get_table(conn, schema_name, table_name, tx=tx)
        if table is None or not table.has_column(column_name):
            return False
        if table.has_column(self.normalize_name(new_column_name)):
            return False
        await self._rename_column(
            conn,
            table,
            table.get_column(column_name).column_name,
            self.normalize_name(new_column_name),
            tx,
        )
        return True

    async def _rename_column(
        self, conn: Any, table: Table, column_name: str, new_column_name: str, tx: Any = None
    ) -> None:
        await self._execute(
            conn,
            self._rename_column_sql(
                self.normalize_schema_name(table.schema_name),
                table.table_name,
                column_name,
                new_column_name,
            ),
        )
