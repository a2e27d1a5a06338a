from typing import Any, Optional

from dal.base.ddl import DdlStatementsMixin
from ddl_model import naming
from ddl_model.constraints import PrimaryKeyConstraint


class PrimaryKeyMethodsMixin(DdlStatementsMixin):
    async def does_primary_key_constraint_exist(
        self, conn: Any, schema_name: Optional[str], table_name: str, tx: Any = None
    ) -> bool:
        pk = await self.get_primary_key_constraint(conn, schema_name, table_name, tx=tx)
        return pk is not None

    async def create_primary_key_constraint_if_not_exists(
        self, conn: Any, constraint: PrimaryKeyConstraint, tx: Any = None
    ) -> bool:
        if constraint is None:
            raise ValueError("constraint is required.")
        self._require(constraint.table_name, "table_name")
        if not constraint.columns:
            raise ValueError("A primary key constraint must cover at least one column.")
        conn = self._conn(conn)
        if await self.does_primary_key_constraint_exist(
            conn, constraint.schema_name, constraint.table_name, tx=tx
        ):
            return False
        table_name = self.normalize_name(constraint.table_name)
        constraint_name = constraint.constraint_name or naming.primary_key_constraint_name(
            table_name, *[c.column_name for c in constraint.columns]
        )
        await self._add_primary_key(
            conn,
            self.normalize_schema_name(constraint.schema_name),
            table_name,
            self.normalize_name(constraint_name),
            constraint,
            tx,
        )
        return True

    async def _add_primary_key(
        self,
        conn: Any,
        schema_name: Optional[str],
        table_name: str,
        constraint_name: str,
        constraint: PrimaryKeyConstraint,
        tx: Any = None,
    ) -> None:
        ordered = await self.supports_ordered_keys_in_constraints(conn, tx)
        await self._execute(
            conn,
            self._add_primary_key_constraint_sql(
                schema_name, table_name, constraint_name, constraint.columns, ordered
            ),
        )

    async def get_primary_key_constraint(
        self, conn: Any, schema_name: Optional[str], table_name: str, tx: Any = None
    ) -> Optional[PrimaryKeyConstraint]:
        table = await self.get_table(conn, schema_name, table_name, tx=tx)
        return table.primary_key_constraint if table is not None else None

    async def drop_primary_key_constraint_if_exists(
        self, conn: Any, schema_name: Optional[str], table_name: str, tx: Any = None
    ) -> bool:
        conn = self._conn(conn)
        pk = await self.get_primary_key_constraint(conn, schema_name, table_name, tx=tx)
        if pk is None:
            return False
        await self._drop_primary_key(
            conn, self.normalize_schema_name(schema_name), pk.table_name, pk.constraint_name, tx
        )
        return True

    async def _drop_primary_key(
        self,
        conn: Any,
        schema_name: Optional[str],
        table_name: str,
        constraint_name: str,
        tx: Any = None,
    ) -> None:
        await self._execute(
            conn, self._drop_primary_key_constraint_sql(schema_name, table_name, constraint_name)
        )
