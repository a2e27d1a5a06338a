from typing import Any, List, Optional

from dal.base.ddl import DdlStatementsMixin
from ddl_model import naming
from dal.util.filters import filter_by_name
from ddl_model.constraints import DefaultConstraint


class DefaultConstraintMethodsMixin(DdlStatementsMixin):
    """Default value operations.

    Engines without named default constraints still report defaults through
    these methods, keyed by a generated ``df_{table}_{column}`` name.
    """

    async def does_default_constraint_exist(
        self, conn: Any, schema_name: Optional[str], table_name: str, constraint_name: str, tx: Any = None
    ) -> bool:
        dc = await self.get_default_constraint(
            conn, schema_name, table_name, constraint_name, tx=tx
        )
        return dc is not None

    async def does_default_constraint_exist_on_column(
        self, conn: Any, schema_name: Optional[str], table_name: str, column_name: str, tx: Any = None
    ) -> bool:
        dc = await self.get_default_constraint_on_column(
            conn, schema_name, table_name, column_name, tx=tx
        )
        return dc is not None

    async def create_default_constraint_if_not_exists(
        self, conn: Any, constraint: DefaultConstraint, tx: Any = None
    ) -> bool:
        if constraint is None:
            raise ValueError("constraint is required.")
        self._require(constraint.table_name, "table_name")
        self._require(constraint.column_name, "column_name")
        expression = constraint.render(self.provider)
        self._validate_default(expression, "expression")
        conn = self._conn(conn)
        table_name = self.normalize_name(constraint.table_name)
        column_name = self.normalize_name(constraint.column_name)
        constraint = constraint.model_copy(deep=True)
        constraint.table_name = table_name
        constraint.column_name = column_name
        constraint.constraint_name = self.normalize_name(
            constraint.constraint_name or naming.default_constraint_name(table_name, column_name)
        )
        if await self.does_default_constraint_exist(
            conn, constraint.schema_name, table_name, constraint.constraint_name, tx=tx
        ):
            return False
        if await self.does_default_constraint_exist_on_column(
            conn, constraint.schema_name, table_name, column_name, tx=tx
        ):
            return False
        await self._add_default_constraint(
            conn,
            self.normalize_schema_name(constraint.schema_name),
            table_name,
            constraint,
            expression,
            tx,
        )
        return True

    async def _add_default_constraint(
        self,
        conn: Any,
        schema_name: Optional[str],
        table_name: str,
        constraint: DefaultConstraint,
        expression: str,
        tx: Any = None,
    ) -> None:
        await self._execute(
            conn,
            self._add_default_constraint_sql(
                schema_name,
                table_name,
                constraint.column_name,
                constraint.constraint_name,
                expression,
            ),
        )

    async def get_default_constraint(
        self, conn: Any, schema_name: Optional[str], table_name: str, constraint_name: str, tx: Any = None
    ) -> Optional[DefaultConstraint]:
        if not constraint_name or not constraint_name.strip():
            return None
        constraint_name = self.normalize_name(constraint_name)
        constraints = await self.get_default_constraints(
            conn, schema_name, table_name, constraint_name, tx=tx
        )
        return next(
            (c for c in constraints if self._names_equal(c.constraint_name, constraint_name)),
            None,
        )

    async def get_default_constraint_on_column(
        self, conn: Any, schema_name: Optional[str], table_name: str, column_name: str, tx: Any = None
    ) -> Optional[DefaultConstraint]:
        self._require(column_name, "column_name")
        constraints = await self.get_default_constraints(conn, schema_name, table_name, tx=tx)
        return next(
            (c for c in constraints if self._names_equal(c.column_name, column_name)), None
        )

    async def get_default_constraints(
        self,
        conn: Any,
        schema_name: Optional[str],
        table_name: str,
        constraint_name_filter: Optional[str] = None,
        tx: Any = None,
    ) -> List[DefaultConstraint]:
        table = await self.get_table(conn, schema_name, table_name, tx=tx)
        if table is None:
            return []
        return filter_by_name(
            table.default_constraints, constraint_name_filter, lambda c: c.constraint_name
        )

    async def get_default_constraint_names(
        self,
        conn: Any,
        schema_name: Optional[str],
        table_name: str,
        constraint_name_filter: Optional[str] = None,
        tx: Any = None,
    ) -> List[str]:
        constraints = await self.get_default_constraints(
            conn, schema_name, table_name, constraint_name_filter, tx=tx
        )
        return [c.constraint_name for c in constraints]

    async def get_default_constraint_name_on_column(
        self, conn: Any, schema_name: Optional[str], table_name: str, column_name: str, tx: Any = None
    ) -> Optional[str]:
        dc = await self.get_default_constraint_on_column(
            conn, schema_name, table_name, column_name, tx=tx
        )
        return dc.constraint_name if dc is not None else None

    async def drop_default_constraint_if_exists(
        self, conn: Any, schema_name: Optional[str], table_name: str, constraint_name: str, tx: Any = None
    ) -> bool:
        conn = self._conn(conn)
        dc = await self.get_default_constraint(
            conn, schema_name, table_name, constraint_name, tx=tx
        )
        if dc is None:
            return False
        await self._drop_default_constraint(conn, self.normalize_schema_name(schema_name), dc, tx)
        return True

    async def drop_default_constraint_on_column_if_exists(
        self, conn: Any, schema_name: Optional[str], table_name: str, column_name: str, tx: Any = None
    ) -> bool:
        conn = self._conn(conn)
        dc = await self.get_default_constraint_on_column(
            conn, schema_name, table_name, column_name, tx=tx
        )
        if dc is None:
            return False
        await self._drop_default_constraint(conn, self.normalize_schema_name(schema_name), dc, tx)
        return True

    async def _drop_default_constraint(
        self,
        conn: Any,
        schema_name: Optional[str],
        constraint: DefaultConstraint,
        tx: Any = None,
    ) -> None:
        await self._execute(
            conn,
            self._drop_default_constraint_sql(
                schema_name,
                constraint.table_name,
                constraint.column_name,
                constraint.constraint_name,
            ),
        )
