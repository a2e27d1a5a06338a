from typing import Any, List, Optional

from dal.base.ddl import DdlStatementsMixin
from ddl_model import naming
from dal.util.filters import filter_by_name
from ddl_model.constraints import ForeignKeyConstraint


class ForeignKeyMethodsMixin(DdlStatementsMixin):
    async def does_foreign_key_constraint_exist(
        self, conn: Any, schema_name: Optional[str], table_name: str, constraint_name: str, tx: Any = None
    ) -> bool:
        fk = await self.get_foreign_key_constraint(
            conn, schema_name, table_name, constraint_name, tx=tx
        )
        return fk is not None

    async def does_foreign_key_constraint_exist_on_column(
        self, conn: Any, schema_name: Optional[str], table_name: str, column_name: str, tx: Any = None
    ) -> bool:
        fk = await self.get_foreign_key_constraint_on_column(
            conn, schema_name, table_name, column_name, tx=tx
        )
        return fk is not None

    async def create_foreign_key_constraint_if_not_exists(
        self, conn: Any, constraint: ForeignKeyConstraint, tx: Any = None
    ) -> bool:
        if constraint is None:
            raise ValueError("constraint is required.")
        self._require(constraint.table_name, "table_name")
        self._require(constraint.referenced_table_name, "referenced_table_name")
        if not constraint.source_columns:
            raise ValueError("A foreign key constraint must have at least one column.")
        conn = self._conn(conn)
        table_name = self.normalize_name(constraint.table_name)
        constraint = constraint.model_copy(deep=True)
        constraint.table_name = table_name
        constraint.constraint_name = self.normalize_name(
            constraint.constraint_name
            or naming.foreign_key_constraint_name(
                table_name,
                constraint.source_columns[0].column_name,
                constraint.referenced_table_name,
                constraint.referenced_columns[0].column_name,
            )
        )
        if await self.does_foreign_key_constraint_exist(
            conn, constraint.schema_name, table_name, constraint.constraint_name, tx=tx
        ):
            return False
        await self._add_foreign_key(
            conn, self.normalize_schema_name(constraint.schema_name), table_name, constraint, tx
        )
        return True

    async def _add_foreign_key(
        self,
        conn: Any,
        schema_name: Optional[str],
        table_name: str,
        constraint: ForeignKeyConstraint,
        tx: Any = None,
    ) -> None:
        await self._execute(
            conn, self._add_foreign_key_constraint_sql(schema_name, table_name, constraint)
        )

    async def get_foreign_key_constraint(
        self, conn: Any, schema_name: Optional[str], table_name: str, constraint_name: str, tx: Any = None
    ) -> Optional[ForeignKeyConstraint]:
        if not constraint_name or not constraint_name.strip():
            return None
        constraint_name = self.normalize_name(constraint_name)
        constraints = await self.get_foreign_key_constraints(
            conn, schema_name, table_name, constraint_name, tx=tx
        )
        return next(
            (c for c in constraints if self._names_equal(c.constraint_name, constraint_name)),
            None,
        )

    async def get_foreign_key_constraint_on_column(
        self, conn: Any, schema_name: Optional[str], table_name: str, column_name: str, tx: Any = None
    ) -> Optional[ForeignKeyConstraint]:
        self._require(column_name, "column_name")
        constraints = await self.get_foreign_key_constraints(conn, schema_name, table_name, tx=tx)
        return next((c for c in constraints if c.covers_column(column_name)), None)

    async def get_foreign_key_constraints(
        self,
        conn: Any,
        schema_name: Optional[str],
        table_name: str,
        constraint_name_filter: Optional[str] = None,
        tx: Any = None,
    ) -> List[ForeignKeyConstraint]:
        table = await self.get_table(conn, schema_name, table_name, tx=tx)
        if table is None:
            return []
        return filter_by_name(
            table.foreign_key_constraints, constraint_name_filter, lambda c: c.constraint_name
        )

    async def get_foreign_key_constraint_names(
        self,
        conn: Any,
        schema_name: Optional[str],
        table_name: str,
        constraint_name_filter: Optional[str] = None,
        tx: Any = None,
    ) -> List[str]:
        constraints = await self.get_foreign_key_constraints(
            conn, schema_name, table_name, constraint_name_filter, tx=tx
        )
        return [c.constraint_name for c in constraints]

    async def get_foreign_key_constraint_name_on_column(
        self, conn: Any, schema_name: Optional[str], table_name: str, column_name: str, tx: Any = None
    ) -> Optional[str]:
        fk = await self.get_foreign_key_constraint_on_column(
            conn, schema_name, table_name, column_name, tx=tx
        )
        return fk.constraint_name if fk is not None else None

    async def drop_foreign_key_constraint_if_exists(
        self, conn: Any, schema_name: Optional[str], table_name: str, constraint_name: str, tx: Any = None
    ) -> bool:
        conn = self._conn(conn)
        fk = await self.get_foreign_key_constraint(
            conn, schema_name, table_name, constraint_name, tx=tx
        )
        if fk is None:
            return False
        await self._drop_foreign_key(
            conn, self.normalize_schema_name(schema_name), fk.table_name, fk.constraint_name, tx
        )
        return True

    async def drop_foreign_key_constraint_on_column_if_exists(
        self, conn: Any, schema_name: Optional[str], table_name: str, column_name: str, tx: Any = None
    ) -> bool:
        conn = self._conn(conn)
        fk = await self.get_foreign_key_constraint_on_column(
            conn, schema_name, table_name, column_name, tx=tx
        )
        if fk is None:
            return False
        await self._drop_foreign_key(
            conn, self.normalize_schema_name(schema_name), fk.table_name, fk.constraint_name, tx
        )
        return True

    async def _drop_foreign_key(
        self,
        conn: Any,
        schema_name: Optional[str],
        table_name: str,
        constraint_name: str,
        tx: Any = None,
    ) -> None:
        await self._execute(
            conn, self._drop_foreign_key_constraint_sql(schema_name, table_name, constraint_name)
        )
