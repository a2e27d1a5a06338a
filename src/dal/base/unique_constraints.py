from typing import Any, List, Optional

from dal.base.ddl import DdlStatementsMixin
from ddl_model import naming
from dal.util.filters import filter_by_name
from ddl_model.constraints import UniqueConstraint


class UniqueConstraintMethodsMixin(DdlStatementsMixin):
    async def does_unique_constraint_exist(
        self, conn: Any, schema_name: Optional[str], table_name: str, constraint_name: str, tx: Any = None
    ) -> bool:
        uc = await self.get_unique_constraint(conn, schema_name, table_name, constraint_name, tx=tx)
        return uc is not None

    async def does_unique_constraint_exist_on_column(
        self, conn: Any, schema_name: Optional[str], table_name: str, column_name: str, tx: Any = None
    ) -> bool:
        uc = await self.get_unique_constraint_on_column(
            conn, schema_name, table_name, column_name, tx=tx
        )
        return uc is not None

    async def create_unique_constraint_if_not_exists(
        self, conn: Any, constraint: UniqueConstraint, tx: Any = None
    ) -> bool:
        if constraint is None:
            raise ValueError("constraint is required.")
        self._require(constraint.table_name, "table_name")
        if not constraint.columns:
            raise ValueError("A unique constraint must cover at least one column.")
        conn = self._conn(conn)
        table_name = self.normalize_name(constraint.table_name)
        constraint = constraint.model_copy(deep=True)
        constraint.table_name = table_name
        constraint.constraint_name = self.normalize_name(
            constraint.constraint_name
            or naming.unique_constraint_name(table_name, *[c.column_name for c in constraint.columns])
        )
        if await self.does_unique_constraint_exist(
            conn, constraint.schema_name, table_name, constraint.constraint_name, tx=tx
        ):
            return False
        await self._add_unique_constraint(
            conn, self.normalize_schema_name(constraint.schema_name), table_name, constraint, tx
        )
        return True

    async def _add_unique_constraint(
        self,
        conn: Any,
        schema_name: Optional[str],
        table_name: str,
        constraint: UniqueConstraint,
        tx: Any = None,
    ) -> None:
        ordered = await self.supports_ordered_keys_in_constraints(conn, tx)
        await self._execute(
            conn,
            self._add_unique_constraint_sql(
                schema_name, table_name, constraint.constraint_name, constraint.columns, ordered
            ),
        )

    async def get_unique_constraint(
        self, conn: Any, schema_name: Optional[str], table_name: str, constraint_name: str, tx: Any = None
    ) -> Optional[UniqueConstraint]:
        if not constraint_name or not constraint_name.strip():
            return None
        constraint_name = self.normalize_name(constraint_name)
        constraints = await self.get_unique_constraints(
            conn, schema_name, table_name, constraint_name, tx=tx
        )
        return next(
            (c for c in constraints if self._names_equal(c.constraint_name, constraint_name)),
            None,
        )

    async def get_unique_constraint_on_column(
        self, conn: Any, schema_name: Optional[str], table_name: str, column_name: str, tx: Any = None
    ) -> Optional[UniqueConstraint]:
        self._require(column_name, "column_name")
        constraints = await self.get_unique_constraints(conn, schema_name, table_name, tx=tx)
        return next((c for c in constraints if c.covers_column(column_name)), None)

    async def get_unique_constraints(
        self,
        conn: Any,
        schema_name: Optional[str],
        table_name: str,
        constraint_name_filter: Optional[str] = None,
        tx: Any = None,
    ) -> List[UniqueConstraint]:
        table = await self.get_table(conn, schema_name, table_name, tx=tx)
        if table is None:
            return []
        return filter_by_name(
            table.unique_constraints, constraint_name_filter, lambda c: c.constraint_name
        )

    async def get_unique_constraint_names(
        self,
        conn: Any,
        schema_name: Optional[str],
        table_name: str,
        constraint_name_filter: Optional[str] = None,
        tx: Any = None,
    ) -> List[str]:
        constraints = await self.get_unique_constraints(
            conn, schema_name, table_name, constraint_name_filter, tx=tx
        )
        return [c.constraint_name for c in constraints]

    async def get_unique_constraint_name_on_column(
        self, conn: Any, schema_name: Optional[str], table_name: str, column_name: str, tx: Any = None
    ) -> Optional[str]:
        uc = await self.get_unique_constraint_on_column(
            conn, schema_name, table_name, column_name, tx=tx
        )
        return uc.constraint_name if uc is not None else None

    async def drop_unique_constraint_if_exists(
        self, conn: Any, schema_name: Optional[str], table_name: str, constraint_name: str, tx: Any = None
    ) -> bool:
        conn = self._conn(conn)
        uc = await self.get_unique_constraint(conn, schema_name, table_name, constraint_name, tx=tx)
        if uc is None:
            return False
        await self._drop_unique_constraint(
            conn, self.normalize_schema_name(schema_name), uc.table_name, uc.constraint_name, tx
        )
        return True

    async def drop_unique_constraint_on_column_if_exists(
        self, conn: Any, schema_name: Optional[str], table_name: str, column_name: str, tx: Any = None
    ) -> bool:
        conn = self._conn(conn)
        uc = await self.get_unique_constraint_on_column(
            conn, schema_name, table_name, column_name, tx=tx
        )
        if uc is None:
            return False
        await self._drop_unique_constraint(
            conn, self.normalize_schema_name(schema_name), uc.table_name, uc.constraint_name, tx
        )
        return True

    async def _drop_unique_constraint(
        self,
        conn: Any,
        schema_name: Optional[str],
        table_name: str,
        constraint_name: str,
        tx: Any = None,
    ) -> None:
        await self._execute(
            conn, self._drop_unique_constraint_sql(schema_name, table_name, constraint_name)
        )
