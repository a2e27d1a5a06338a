from typing import Any, List, Optional

from dal.base.ddl import DdlStatementsMixin
from ddl_model import naming
from dal.util.filters import filter_by_name
from ddl_model.constraints import CheckConstraint


class CheckConstraintMethodsMixin(DdlStatementsMixin):
    """Check constraint operations; all are no-ops where the server lacks support."""

    async def does_check_constraint_exist(
        self, conn: Any, schema_name: Optional[str], table_name: str, constraint_name: str, tx: Any = None
    ) -> bool:
        ck = await self.get_check_constraint(conn, schema_name, table_name, constraint_name, tx=tx)
        return ck is not None

    async def does_check_constraint_exist_on_column(
        self, conn: Any, schema_name: Optional[str], table_name: str, column_name: str, tx: Any = None
    ) -> bool:
        ck = await self.get_check_constraint_on_column(
            conn, schema_name, table_name, column_name, tx=tx
        )
        return ck is not None

    async def create_check_constraint_if_not_exists(
        self, conn: Any, constraint: CheckConstraint, tx: Any = None
    ) -> bool:
        if constraint is None:
            raise ValueError("constraint is required.")
        self._require(constraint.table_name, "table_name")
        expression = constraint.render(self.provider)
        self._validate_check(expression, "expression")
        conn = self._conn(conn)
        if not await self.supports_check_constraints(conn, tx):
            return False
        table_name = self.normalize_name(constraint.table_name)
        constraint = constraint.model_copy(deep=True)
        constraint.table_name = table_name
        constraint.constraint_name = self.normalize_name(
            constraint.constraint_name
            or naming.check_constraint_name(table_name, constraint.column_name or "")
        )
        if await self.does_check_constraint_exist(
            conn, constraint.schema_name, table_name, constraint.constraint_name, tx=tx
        ):
            return False
        await self._add_check_constraint(
            conn,
            self.normalize_schema_name(constraint.schema_name),
            table_name,
            constraint,
            expression,
            tx,
        )
        return True

    async def _add_check_constraint(
        self,
        conn: Any,
        schema_name: Optional[str],
        table_name: str,
        constraint: CheckConstraint,
        expression: str,
        tx: Any = None,
    ) -> None:
        await self._execute(
            conn,
            self._add_check_constraint_sql(
                schema_name, table_name, constraint.constraint_name, expression
            ),
        )

    async def get_check_constraint(
        self, conn: Any, schema_name: Optional[str], table_name: str, constraint_name: str, tx: Any = None
    ) -> Optional[CheckConstraint]:
        if not constraint_name or not constraint_name.strip():
            return None
        constraint_name = self.normalize_name(constraint_name)
        constraints = await self.get_check_constraints(
            conn, schema_name, table_name, constraint_name, tx=tx
        )
        return next(
            (c for c in constraints if self._names_equal(c.constraint_name, constraint_name)),
            None,
        )

    async def get_check_constraint_on_column(
        self, conn: Any, schema_name: Optional[str], table_name: str, column_name: str, tx: Any = None
    ) -> Optional[CheckConstraint]:
        self._require(column_name, "column_name")
        constraints = await self.get_check_constraints(conn, schema_name, table_name, tx=tx)
        return next(
            (c for c in constraints if self._names_equal(c.column_name, column_name)), None
        )

    async def get_check_constraints(
        self,
        conn: Any,
        schema_name: Optional[str],
        table_name: str,
        constraint_name_filter: Optional[str] = None,
        tx: Any = None,
    ) -> List[CheckConstraint]:
        conn = self._conn(conn)
        if not await self.supports_check_constraints(conn, tx):
            return []
        table = await self.get_table(conn, schema_name, table_name, tx=tx)
        if table is None:
            return []
        return filter_by_name(
            table.check_constraints, constraint_name_filter, lambda c: c.constraint_name
        )

    async def get_check_constraint_names(
        self,
        conn: Any,
        schema_name: Optional[str],
        table_name: str,
        constraint_name_filter: Optional[str] = None,
        tx: Any = None,
    ) -> List[str]:
        constraints = await self.get_check_constraints(
            conn, schema_name, table_name, constraint_name_filter, tx=tx
        )
        return [c.constraint_name for c in constraints]

    async def get_check_constraint_name_on_column(
        self, conn: Any, schema_name: Optional[str], table_name: str, column_name: str, tx: Any = None
    ) -> Optional[str]:
        ck = await self.get_check_constraint_on_column(
            conn, schema_name, table_name, column_name, tx=tx
        )
        return ck.constraint_name if ck is not None else None

    async def drop_check_constraint_if_exists(
        self, conn: Any, schema_name: Optional[str], table_name: str, constraint_name: str, tx: Any = None
    ) -> bool:
        conn = self._conn(conn)
        ck = await self.get_check_constraint(conn, schema_name, table_name, constraint_name, tx=tx)
        if ck is None:
            return False
        await self._drop_check_constraint(
            conn, self.normalize_schema_name(schema_name), ck.table_name, ck.constraint_name, tx
        )
        return True

    async def drop_check_constraint_on_column_if_exists(
        self, conn: Any, schema_name: Optional[str], table_name: str, column_name: str, tx: Any = None
    ) -> bool:
        conn = self._conn(conn)
        ck = await self.get_check_constraint_on_column(
            conn, schema_name, table_name, column_name, tx=tx
        )
        if ck is None:
            return False
        await self._drop_check_constraint(
            conn, self.normalize_schema_name(schema_name), ck.table_name, ck.constraint_name, tx
        )
        return True

    async def _drop_check_constraint(
        self,
        conn: Any,
        schema_name: Optional[str],
        table_name: str,
        constraint_name: str,
        tx: Any = None,
    ) -> None:
        await self._execute(
            conn, self._drop_check_constraint_sql(schema_name, table_name, constraint_name)
        )
