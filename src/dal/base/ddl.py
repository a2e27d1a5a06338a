"""DDL statement builders.

Engines override the small ``_inline_*`` hooks and statement builders rather
than the operation methods. Inline hooks return ``(sql, use_table_constraint)``;
when the flag is set the constraint is emitted at table level instead.
"""

from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Tuple

from dal.base.core import MethodsCore, is_function_call, strip_outer_parentheses
from ddl_model import naming
from ddl_model.column import Column
from ddl_model.constraints import (
    CheckConstraint,
    ForeignKeyConstraint,
    PrimaryKeyConstraint,
    UniqueConstraint,
)
from ddl_model.enums import ColumnOrder, ForeignKeyAction
from ddl_model.index import Index
from ddl_model.ordered_column import OrderedColumn
from ddl_model.table import Table


@dataclass
class DdlContext:
    """Server facts that shape generated DDL, read once per operation."""

    version: Tuple[int, ...] = (0,)
    supports_check_constraints: bool = True
    supports_ordered_keys: bool = True
    supports_default_constraints: bool = True


class DdlStatementsMixin(MethodsCore):
    async def _ddl_context(self, conn: Any, tx: Any = None) -> DdlContext:
        return DdlContext(
            version=await self.get_database_version(conn, tx),
            supports_check_constraints=await self.supports_check_constraints(conn, tx),
            supports_ordered_keys=await self.supports_ordered_keys_in_constraints(conn, tx),
            supports_default_constraints=await self.supports_default_constraints(conn, tx),
        )

    def _ordered_columns_sql(self, columns: Sequence[OrderedColumn], ordered: bool = True) -> str:
        parts = []
        for column in columns:
            text = self.quote_name(column.column_name)
            if ordered and column.order == ColumnOrder.DESCENDING:
                text += " DESC"
            parts.append(text)
        return ", ".join(parts)

    def _column_names_sql(self, columns: Sequence[OrderedColumn]) -> str:
        return self._ordered_columns_sql(columns, ordered=False)

    # ------------------------------------------------------------------
    # Column definitions
    # ------------------------------------------------------------------

    def _column_type_sql(self, column: Column, ctx: DdlContext) -> str:
        return self._column_data_type(column)

    def _nullable_sql(self, column: Column) -> str:
        if column.is_nullable and not column.is_unique and not column.is_primary_key:
            return "NULL"
        return "NOT NULL"

    def _inline_primary_key_sql(self, column: Column, constraint_name: str) -> Tuple[str, bool]:
        sql = f"CONSTRAINT {self.quote_name(constraint_name)} PRIMARY KEY"
        if column.is_auto_increment and self.auto_increment_suffix:
            sql += f" {self.auto_increment_suffix}"
        return sql, False

    def _format_default(self, expression: str) -> str:
        expression = expression.strip()
        needs_parentheses = (
            " " in expression
            and not (expression.startswith("(") and expression.endswith(")"))
            and not (expression.startswith('"') and expression.endswith('"'))
            and not (expression.startswith("'") and expression.endswith("'"))
            and not is_function_call(expression)
        )
        return f"({expression})" if needs_parentheses else expression

    def _inline_default_sql(self, constraint_name: str, expression: str) -> str:
        self._validate_default(expression, "default_expression")
        return (
            f"CONSTRAINT {self.quote_name(constraint_name)} "
            f"DEFAULT {self._format_default(expression)}"
        )

    def _inline_check_sql(self, constraint_name: str, expression: str) -> Tuple[str, bool]:
        self._validate_check(expression, "check_expression")
        return f"CONSTRAINT {self.quote_name(constraint_name)} CHECK ({expression})", False

    def _inline_unique_sql(self, constraint_name: str) -> Tuple[str, bool]:
        return f"CONSTRAINT {self.quote_name(constraint_name)} UNIQUE", False

    def _inline_foreign_key_sql(
        self,
        schema_name: Optional[str],
        constraint_name: str,
        referenced_table_name: str,
        referenced_column_name: str,
        on_delete: Optional[ForeignKeyAction],
        on_update: Optional[ForeignKeyAction],
    ) -> Tuple[str, bool]:
        sql = (
            f"CONSTRAINT {self.quote_name(constraint_name)} REFERENCES "
            f"{self.get_schema_qualified_identifier_name(schema_name, referenced_table_name)} "
            f"({self.quote_name(referenced_column_name)})"
        )
        if on_delete is not None:
            sql += f" ON DELETE {on_delete.to_sql()}"
        if on_update is not None:
            sql += f" ON UPDATE {on_update.to_sql()}"
        return sql, False

    def _column_definition_sql(
        self, table: Table, column: Column, parts: Table, ctx: DdlContext
    ) -> str:
        """Render one column definition, collecting table-level leftovers into ``parts``."""
        schema_name = self.normalize_schema_name(table.schema_name)
        table_name = self.normalize_name(table.table_name)
        column_name = self.normalize_name(column.column_name)

        sql = [self.quote(column_name), self._column_type_sql(column, ctx), self._nullable_sql(column)]

        pk = parts.primary_key_constraint
        if column.is_primary_key and (
            pk is None
            or (len(pk.columns) == 1 and self._names_equal(pk.columns[0].column_name, column_name))
        ):
            pk_name = (
                pk.constraint_name
                if pk is not None and pk.constraint_name
                else naming.primary_key_constraint_name(table_name, column_name)
            )
            inline_sql, use_table_constraint = self._inline_primary_key_sql(column, pk_name)
            if inline_sql:
                sql.append(inline_sql)
            if use_table_constraint:
                parts.primary_key_constraint = PrimaryKeyConstraint(
                    schema_name=schema_name,
                    table_name=table_name,
                    constraint_name=pk_name,
                    columns=[OrderedColumn(column_name=column_name)],
                )
            else:
                parts.primary_key_constraint = None

        # Defaults always go inline; SQLite accepts them nowhere else.
        default_constraint = next(
            (
                dc
                for dc in parts.default_constraints
                if self._names_equal(dc.column_name, column.column_name)
            ),
            None,
        )
        default_expression = column.get_default_expression(self.provider)
        if default_constraint is not None:
            rendered = default_constraint.render(self.provider)
            if rendered:
                sql.append(self._inline_default_sql(default_constraint.constraint_name, rendered))
        elif default_expression and default_expression.strip():
            sql.append(
                self._inline_default_sql(
                    naming.default_constraint_name(table_name, column_name), default_expression
                )
            )

        check_expression = column.get_check_expression(self.provider)
        if (
            check_expression
            and check_expression.strip()
            and ctx.supports_check_constraints
            and not any(
                self._names_equal(ck.column_name, column.column_name)
                for ck in parts.check_constraints
            )
        ):
            ck_name = naming.check_constraint_name(table_name, column_name)
            inline_sql, use_table_constraint = self._inline_check_sql(ck_name, check_expression)
            if inline_sql:
                sql.append(inline_sql)
            if use_table_constraint:
                parts.check_constraints.append(
                    CheckConstraint(
                        schema_name=schema_name,
                        table_name=table_name,
                        column_name=column_name,
                        constraint_name=ck_name,
                        expression=check_expression,
                    )
                )

        if (
            column.is_foreign_key
            and column.referenced_table_name
            and column.referenced_column_name
            and not any(
                fk.covers_column(column.column_name) for fk in parts.foreign_key_constraints
            )
        ):
            fk_name = naming.foreign_key_constraint_name(
                table_name,
                column_name,
                self.normalize_name(column.referenced_table_name),
                self.normalize_name(column.referenced_column_name),
            )
            inline_sql, use_table_constraint = self._inline_foreign_key_sql(
                schema_name,
                fk_name,
                column.referenced_table_name,
                column.referenced_column_name,
                column.on_delete,
                column.on_update,
            )
            if inline_sql:
                sql.append(inline_sql)
            if use_table_constraint:
                parts.foreign_key_constraints.append(
                    ForeignKeyConstraint(
                        schema_name=schema_name,
                        table_name=table_name,
                        constraint_name=fk_name,
                        source_columns=[OrderedColumn(column_name=column_name)],
                        referenced_table_name=column.referenced_table_name,
                        referenced_columns=[
                            OrderedColumn(column_name=column.referenced_column_name)
                        ],
                        on_delete=column.on_delete or ForeignKeyAction.NO_ACTION,
                        on_update=column.on_update or ForeignKeyAction.NO_ACTION,
                    )
                )

        # UNIQUE goes last; a word following it is read as the key name.
        if (
            column.is_unique
            and not column.is_indexed
            and not any(uc.covers_column(column.column_name) for uc in parts.unique_constraints)
        ):
            uc_name = naming.unique_constraint_name(table_name, column_name)
            inline_sql, use_table_constraint = self._inline_unique_sql(uc_name)
            if inline_sql:
                sql.append(inline_sql)
            if use_table_constraint:
                parts.unique_constraints.append(
                    UniqueConstraint(
                        schema_name=schema_name,
                        table_name=table_name,
                        constraint_name=uc_name,
                        columns=[OrderedColumn(column_name=column_name)],
                    )
                )

        if column.is_indexed and not any(
            index.covers_column(column.column_name) for index in parts.indexes
        ):
            parts.indexes.append(
                Index(
                    schema_name=schema_name,
                    table_name=table_name,
                    index_name=naming.index_name(table_name, column_name),
                    columns=[OrderedColumn(column_name=column_name)],
                    is_unique=column.is_unique,
                )
            )

        return " ".join(sql)

    # ------------------------------------------------------------------
    # Table-level constraints
    # ------------------------------------------------------------------

    def _primary_key_table_constraint_sql(
        self, table_name: str, pk: PrimaryKeyConstraint, ctx: DdlContext
    ) -> str:
        name = pk.constraint_name or naming.primary_key_constraint_name(
            table_name, *[c.column_name for c in pk.columns]
        )
        columns = self._ordered_columns_sql(pk.columns, ctx.supports_ordered_keys)
        return f"CONSTRAINT {self.quote_name(name)} PRIMARY KEY ({columns})"

    def _check_table_constraint_sql(self, table_name: str, check: CheckConstraint) -> str:
        expression = check.render(self.provider)
        self._validate_check(expression, "expression")
        name = check.constraint_name or naming.check_constraint_name(
            table_name, check.column_name or ""
        )
        return f"CONSTRAINT {self.quote_name(name)} CHECK ({expression})"

    def _unique_table_constraint_sql(
        self, table_name: str, uc: UniqueConstraint, ctx: DdlContext
    ) -> str:
        name = uc.constraint_name or naming.unique_constraint_name(
            table_name, *[c.column_name for c in uc.columns]
        )
        columns = self._ordered_columns_sql(uc.columns, ctx.supports_ordered_keys)
        return f"CONSTRAINT {self.quote_name(name)} UNIQUE ({columns})"

    def _foreign_key_table_constraint_sql(
        self, schema_name: Optional[str], fk: ForeignKeyConstraint
    ) -> str:
        return (
            f"CONSTRAINT {self.quote_name(fk.constraint_name)} "
            f"FOREIGN KEY ({self._column_names_sql(fk.source_columns)}) "
            f"REFERENCES "
            f"{self.get_schema_qualified_identifier_name(schema_name, fk.referenced_table_name)} "
            f"({self._column_names_sql(fk.referenced_columns)}) "
            f"ON DELETE {fk.on_delete.to_sql()} ON UPDATE {fk.on_update.to_sql()}"
        )

    def _table_options_sql(self, ctx: DdlContext) -> str:
        return ""

    def _create_table_sql(
        self, table: Table, ctx: DdlContext, deferred: Optional[List[Table]] = None
    ) -> Tuple[str, Table]:
        """Build CREATE TABLE for ``table``.

        Returns the statement and the constraint holder whose indexes (and,
        when ``deferred`` is given, foreign keys) are created afterwards.
        """
        schema_name = self.normalize_schema_name(table.schema_name)
        table_name = self.normalize_name(table.table_name)

        parts = Table(
            schema_name=schema_name,
            table_name=table_name,
            primary_key_constraint=table.primary_key_constraint,
            check_constraints=list(table.check_constraints),
            default_constraints=list(table.default_constraints),
            unique_constraints=list(table.unique_constraints),
            foreign_key_constraints=list(table.foreign_key_constraints),
            indexes=list(table.indexes),
        )
        if deferred is not None:
            deferred.append(parts)

        pk_columns = [c for c in table.columns if c.is_primary_key]
        if table.primary_key_constraint is None and len(pk_columns) > 1:
            parts.primary_key_constraint = PrimaryKeyConstraint(
                schema_name=schema_name,
                table_name=table_name,
                constraint_name=naming.primary_key_constraint_name(
                    table_name, *[c.column_name for c in pk_columns]
                ),
                columns=[OrderedColumn(column_name=c.column_name) for c in pk_columns],
            )

        definitions = []
        for column in table.columns:
            column.schema_name = schema_name
            column.table_name = table_name
            if (
                deferred is not None
                and column.is_foreign_key
                and column.referenced_table_name
                and column.referenced_column_name
                and not any(
                    fk.covers_column(column.column_name) for fk in parts.foreign_key_constraints
                )
            ):
                parts.foreign_key_constraints.append(
                    ForeignKeyConstraint(
                        schema_name=schema_name,
                        table_name=table_name,
                        constraint_name=naming.foreign_key_constraint_name(
                            table_name,
                            column.column_name,
                            column.referenced_table_name,
                            column.referenced_column_name,
                        ),
                        source_columns=[OrderedColumn(column_name=column.column_name)],
                        referenced_table_name=column.referenced_table_name,
                        referenced_columns=[
                            OrderedColumn(column_name=column.referenced_column_name)
                        ],
                        on_delete=column.on_delete or ForeignKeyAction.NO_ACTION,
                        on_update=column.on_update or ForeignKeyAction.NO_ACTION,
                    )
                )
            definitions.append(self._column_definition_sql(table, column, parts, ctx))

        if parts.primary_key_constraint is not None:
            definitions.append(
                self._primary_key_table_constraint_sql(table_name, parts.primary_key_constraint, ctx)
            )
        if ctx.supports_check_constraints:
            for check in parts.check_constraints:
                definitions.append(self._check_table_constraint_sql(table_name, check))
        for uc in parts.unique_constraints:
            definitions.append(self._unique_table_constraint_sql(table_name, uc, ctx))
        if deferred is None:
            for fk in parts.foreign_key_constraints:
                definitions.append(self._foreign_key_table_constraint_sql(schema_name, fk))

        body = "\n  , ".join(definitions)
        sql = (
            f"CREATE TABLE {self.get_schema_qualified_identifier_name(schema_name, table_name)} (\n"
            f"    {body}\n){self._table_options_sql(ctx)}"
        )
        return sql, parts

    # ------------------------------------------------------------------
    # ALTER / DROP statements
    # ------------------------------------------------------------------

    def _qualified(self, schema_name: Optional[str], table_name: str) -> str:
        return self.get_schema_qualified_identifier_name(schema_name, table_name)

    def _drop_constraint_sql(
        self, schema_name: Optional[str], table_name: str, constraint_name: str
    ) -> str:
        return (
            f"ALTER TABLE {self._qualified(schema_name, table_name)} "
            f"DROP CONSTRAINT {self.quote_name(constraint_name)}"
        )

    def _add_check_constraint_sql(
        self, schema_name: Optional[str], table_name: str, constraint_name: str, expression: str
    ) -> str:
        self._validate_check(expression, "expression")
        return (
            f"ALTER TABLE {self._qualified(schema_name, table_name)} "
            f"ADD CONSTRAINT {self.quote_name(constraint_name)} "
            f"CHECK ({strip_outer_parentheses(expression)})"
        )

    def _drop_check_constraint_sql(
        self, schema_name: Optional[str], table_name: str, constraint_name: str
    ) -> str:
        return self._drop_constraint_sql(schema_name, table_name, constraint_name)

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
            f"ADD CONSTRAINT {self.quote_name(constraint_name)} "
            f"DEFAULT {self._format_default(expression)} FOR {self.quote_name(column_name)}"
        )

    def _drop_default_constraint_sql(
        self, schema_name: Optional[str], table_name: str, column_name: str, constraint_name: str
    ) -> str:
        return self._drop_constraint_sql(schema_name, table_name, constraint_name)

    def _add_primary_key_constraint_sql(
        self,
        schema_name: Optional[str],
        table_name: str,
        constraint_name: str,
        columns: Sequence[OrderedColumn],
        ordered: bool,
    ) -> str:
        return (
            f"ALTER TABLE {self._qualified(schema_name, table_name)} "
            f"ADD CONSTRAINT {self.quote_name(constraint_name)} "
            f"PRIMARY KEY ({self._ordered_columns_sql(columns, ordered)})"
        )

    def _drop_primary_key_constraint_sql(
        self, schema_name: Optional[str], table_name: str, constraint_name: str
    ) -> str:
        return self._drop_constraint_sql(schema_name, table_name, constraint_name)

    def _add_unique_constraint_sql(
        self,
        schema_name: Optional[str],
        table_name: str,
        constraint_name: str,
        columns: Sequence[OrderedColumn],
        ordered: bool,
    ) -> str:
        return (
            f"ALTER TABLE {self._qualified(schema_name, table_name)} "
            f"ADD CONSTRAINT {self.quote_name(constraint_name)} "
            f"UNIQUE ({self._ordered_columns_sql(columns, ordered)})"
        )

    def _drop_unique_constraint_sql(
        self, schema_name: Optional[str], table_name: str, constraint_name: str
    ) -> str:
        return self._drop_constraint_sql(schema_name, table_name, constraint_name)

    def _add_foreign_key_constraint_sql(
        self, schema_name: Optional[str], table_name: str, fk: ForeignKeyConstraint
    ) -> str:
        return (
            f"ALTER TABLE {self._qualified(schema_name, table_name)} "
            f"ADD {self._foreign_key_table_constraint_sql(schema_name, fk)}"
        )

    def _drop_foreign_key_constraint_sql(
        self, schema_name: Optional[str], table_name: str, constraint_name: str
    ) -> str:
        return self._drop_constraint_sql(schema_name, table_name, constraint_name)

    def _add_column_sql(
        self, schema_name: Optional[str], table_name: str, column_definition: str
    ) -> str:
        return f"ALTER TABLE {self._qualified(schema_name, table_name)} ADD {column_definition}"

    def _drop_column_sql(self, schema_name: Optional[str], table_name: str, column_name: str) -> str:
        return (
            f"ALTER TABLE {self._qualified(schema_name, table_name)} "
            f"DROP COLUMN {self.quote_name(column_name)}"
        )

    def _create_index_sql(
        self,
        schema_name: Optional[str],
        table_name: str,
        index_name: str,
        columns: Sequence[OrderedColumn],
        is_unique: bool,
    ) -> str:
        unique = "UNIQUE " if is_unique else ""
        return (
            f"CREATE {unique}INDEX {self.quote_name(index_name)} "
            f"ON {self._qualified(schema_name, table_name)} ({self._ordered_columns_sql(columns)})"
        )

    def _drop_index_sql(self, schema_name: Optional[str], table_name: str, index_name: str) -> str:
        return f"DROP INDEX {self.quote_name(index_name)} ON {self._qualified(schema_name, table_name)}"

    def _create_view_sql(self, schema_name: Optional[str], view_name: str, definition: str) -> str:
        self._validate_view(definition, "definition")
        return f"CREATE VIEW {self._qualified(schema_name, view_name)} AS {definition}"

    def _drop_view_sql(self, schema_name: Optional[str], view_name: str) -> str:
        return f"DROP VIEW {self._qualified(schema_name, view_name)}"

    def _drop_table_sql(self, schema_name: Optional[str], table_name: str) -> str:
        return f"DROP TABLE {self._qualified(schema_name, table_name)}"

    def _rename_table_sql(
        self, schema_name: Optional[str], table_name: str, new_table_name: str
    ) -> str:
        return (
            f"ALTER TABLE {self._qualified(schema_name, table_name)} "
            f"RENAME TO {self.quote_name(new_table_name)}"
        )

    def _truncate_table_sql(self, schema_name: Optional[str], table_name: str) -> str:
        return f"TRUNCATE TABLE {self._qualified(schema_name, table_name)}"

    def _rename_column_sql(
        self, schema_name: Optional[str], table_name: str, column_name: str, new_column_name: str
    ) -> str:
        return (
            f"ALTER TABLE {self._qualified(schema_name, table_name)} "
            f"RENAME COLUMN {self.quote_name(column_name)} TO {self.quote_name(new_column_name)}"
        )

    def _create_schema_sql(self, schema_name: str) -> str:
        return f"CREATE SCHEMA {self.quote_name(schema_name)}"

    def _drop_schema_sql(self, schema_name: str) -> str:
        return f"DROP SCHEMA {self.quote_name(schema_name)}"
