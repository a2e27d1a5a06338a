"""Parse SQLite ``CREATE TABLE`` statements back into ``Table`` models.

SQLite keeps no catalog of constraints beyond the original statement text in
``sqlite_master.sql``. That text is parsed with sqlglot and the column
definitions and table constraints are read off the syntax tree. Check and
default expressions are regenerated from the tree in the SQLite dialect.

sqlglot normalizes type names (``integer`` becomes ``INT``), so callers that
know the declared types, e.g. from ``pragma_table_info``, pass them in and
they win over the parsed type.

Unnamed constraints get the same generated names the write path uses.
Column flags are left for ``apply_constraint_flags`` to derive.
"""

import logging
import re
from typing import Callable, Dict, Iterable, List, Optional, Tuple

import sqlglot
from sqlglot import exp
from sqlglot.errors import ParseError, TokenError

from dal.base.assembly import infer_check_column
from dal.type_mapping.descriptors import HostTypeDescriptor, SqlTypeDescriptor
from ddl_model import naming
from ddl_model.column import Column
from ddl_model.constraints import (
    CheckConstraint,
    DefaultConstraint,
    ForeignKeyConstraint,
    PrimaryKeyConstraint,
    UniqueConstraint,
)
from ddl_model.enums import ColumnOrder, ForeignKeyAction, ProviderType
from ddl_model.ordered_column import OrderedColumn
from ddl_model.table import Table

logger = logging.getLogger(__name__)

# Trailing table options carry no column or constraint information.
_TABLE_OPTIONS = re.compile(
    r"\)\s*(?:WITHOUT\s+ROWID|STRICT)(?:\s*,\s*(?:WITHOUT\s+ROWID|STRICT))*\s*;?\s*$",
    re.IGNORECASE,
)
_ACTION_OPTION = re.compile(r"^ON\s+(DELETE|UPDATE)\s+(.+)$", re.IGNORECASE)
_UNSIZED_TEXT_TYPES = {"text", "varchar", "nvarchar"}
_UNICODE_PREFIXES = ("nvarchar", "nchar", "ntext")


def _parse_statement(sql: str) -> Optional[exp.Create]:
    try:
        statement = sqlglot.parse_one(_TABLE_OPTIONS.sub(")", sql.strip()), read="sqlite")
    except (ParseError, TokenError) as e:
        logger.warning("Could not parse CREATE TABLE statement: %s", e)
        return None
    if not isinstance(statement, exp.Create):
        return None
    if str(statement.args.get("kind") or "").upper() != "TABLE":
        return None
    # CREATE TABLE ... AS SELECT has no column list.
    schema = statement.this
    if not isinstance(schema, exp.Schema) or not isinstance(schema.this, exp.Table):
        return None
    return statement


def _name(node: exp.Expression) -> str:
    if isinstance(node, exp.Ordered):
        node = node.this
    return node.name if node is not None else ""


def _ordered_columns(nodes: Iterable[exp.Expression]) -> List[OrderedColumn]:
    columns = []
    for node in nodes or []:
        name = _name(node)
        if not name:
            continue
        descending = isinstance(node, exp.Ordered) and bool(node.args.get("desc"))
        columns.append(
            OrderedColumn(
                column_name=name,
                order=ColumnOrder.DESCENDING if descending else ColumnOrder.ASCENDING,
            )
        )
    return columns


def _expression_text(node: Optional[exp.Expression]) -> str:
    while isinstance(node, exp.Paren):
        node = node.this
    if node is None:
        return ""
    return node.sql(dialect="sqlite").strip()


def _declared_type(kind: Optional[exp.DataType]) -> str:
    """Render a parsed column type back to ``name(args)`` form."""
    if kind is None:
        return ""
    if kind.this == exp.DataType.Type.USERDEFINED:
        name = str(kind.args.get("kind") or "")
    else:
        name = kind.this.value
    arguments = [param.name for param in kind.expressions]
    if arguments:
        return f"{name.lower()}({','.join(arguments)})"
    return name.lower()


def _reference_target(
    reference: Optional[exp.Reference],
) -> Tuple[Optional[str], List[OrderedColumn]]:
    if reference is None:
        return None, []
    target = reference.this
    if isinstance(target, exp.Schema):
        return (target.this.name if target.this is not None else None), _ordered_columns(
            target.expressions
        )
    if target is not None:
        return target.name, []
    return None, []


def _referential_actions(
    *nodes: Optional[exp.Expression],
) -> Tuple[ForeignKeyAction, ForeignKeyAction]:
    """Collect ON DELETE / ON UPDATE actions from a foreign key and its reference.

    Depending on where sqlglot stops reading, the actions land either in the
    ``delete``/``update`` args or as ``ON ...`` option strings.
    """
    actions = {"delete": ForeignKeyAction.NO_ACTION, "update": ForeignKeyAction.NO_ACTION}
    for node in nodes:
        if node is None:
            continue
        for event in actions:
            value = node.args.get(event)
            if isinstance(value, str) and value.strip():
                actions[event] = ForeignKeyAction.parse(value)
        for option in node.args.get("options") or []:
            match = _ACTION_OPTION.match(str(option).strip())
            if match:
                actions[match.group(1).lower()] = ForeignKeyAction.parse(match.group(2))
    return actions["delete"], actions["update"]


class _TableBuilder:
    def __init__(
        self,
        table_name: str,
        describe_type: Callable[[str], HostTypeDescriptor],
        declared_types: Dict[str, str],
    ) -> None:
        self.table_name = table_name
        self.describe_type = describe_type
        self.declared_types = declared_types
        self.columns: List[Column] = []
        self.primary_key: Optional[PrimaryKeyConstraint] = None
        self.checks: List[CheckConstraint] = []
        self.defaults: List[DefaultConstraint] = []
        self.uniques: List[UniqueConstraint] = []
        self.foreign_keys: List[ForeignKeyConstraint] = []

    def build(self) -> Table:
        return Table(
            table_name=self.table_name,
            columns=self.columns,
            primary_key_constraint=self.primary_key,
            check_constraints=self.checks,
            default_constraints=self.defaults,
            unique_constraints=self.uniques,
            foreign_key_constraints=self.foreign_keys,
        )

    def _set_type(self, column: Column, type_text: str) -> None:
        if not type_text:
            column.host_type = object
            return
        parsed = SqlTypeDescriptor.parse(type_text)
        column.host_type = self.describe_type(type_text).host_type
        column.set_provider_data_type(ProviderType.SQLITE, type_text)
        column.length = parsed.length
        column.precision = parsed.precision
        column.scale = parsed.scale
        if column.length is None and parsed.base_type_name in _UNSIZED_TEXT_TYPES:
            column.length = -1
        column.is_unicode = parsed.base_type_name.startswith(_UNICODE_PREFIXES)

    def add_column(self, node: exp.Expression) -> None:
        column_name = node.name
        column = Column(table_name=self.table_name, column_name=column_name)
        declared = self.declared_types.get(column_name.lower())
        self._set_type(
            column, declared if declared is not None else _declared_type(node.args.get("kind"))
        )
        self.columns.append(column)

        for constraint in node.args.get("constraints") or []:
            kind = constraint.args.get("kind")
            constraint_name = constraint.name or None

            if isinstance(kind, exp.NotNullColumnConstraint):
                column.is_nullable = bool(kind.args.get("allow_null"))
            elif isinstance(kind, exp.AutoIncrementColumnConstraint):
                column.is_auto_increment = True
            elif isinstance(kind, exp.PrimaryKeyColumnConstraint):
                order = ColumnOrder.DESCENDING if kind.args.get("desc") else ColumnOrder.ASCENDING
                self.primary_key = PrimaryKeyConstraint(
                    table_name=self.table_name,
                    constraint_name=constraint_name
                    or naming.primary_key_constraint_name(self.table_name, column_name),
                    columns=[OrderedColumn(column_name=column_name, order=order)],
                )
            elif isinstance(kind, exp.UniqueColumnConstraint):
                self.uniques.append(
                    UniqueConstraint(
                        table_name=self.table_name,
                        constraint_name=constraint_name
                        or naming.unique_constraint_name(self.table_name, column_name),
                        columns=[OrderedColumn(column_name=column_name)],
                    )
                )
            elif isinstance(kind, exp.CheckColumnConstraint):
                expression = _expression_text(kind.this)
                if expression:
                    self.checks.append(
                        CheckConstraint(
                            table_name=self.table_name,
                            column_name=column_name,
                            constraint_name=constraint_name
                            or naming.check_constraint_name(self.table_name, column_name),
                            expression=expression,
                        )
                    )
            elif isinstance(kind, exp.DefaultColumnConstraint):
                expression = _expression_text(kind.this)
                if expression:
                    self.defaults.append(
                        DefaultConstraint(
                            table_name=self.table_name,
                            column_name=column_name,
                            constraint_name=constraint_name
                            or naming.default_constraint_name(self.table_name, column_name),
                            expression=expression,
                        )
                    )
            elif isinstance(kind, exp.Reference):
                referenced_table, referenced_columns = _reference_target(kind)
                # A bare REFERENCES tbl targets the rowid; without a column
                # there is nothing to pair the source column with.
                if not referenced_table or not referenced_columns:
                    continue
                on_delete, on_update = _referential_actions(kind)
                self.foreign_keys.append(
                    ForeignKeyConstraint(
                        table_name=self.table_name,
                        constraint_name=constraint_name
                        or naming.foreign_key_constraint_name(
                            self.table_name,
                            column_name,
                            referenced_table,
                            referenced_columns[0].column_name,
                        ),
                        source_columns=[OrderedColumn(column_name=column_name)],
                        referenced_table_name=referenced_table,
                        referenced_columns=referenced_columns[:1],
                        on_delete=on_delete,
                        on_update=on_update,
                    )
                )

    def add_table_constraint(self, node: exp.Expression, constraint_name: Optional[str]) -> None:
        if isinstance(node, exp.PrimaryKey):
            columns = _ordered_columns(node.expressions)
            if columns:
                self.primary_key = PrimaryKeyConstraint(
                    table_name=self.table_name,
                    constraint_name=constraint_name
                    or naming.primary_key_constraint_name(
                        self.table_name, *[c.column_name for c in columns]
                    ),
                    columns=columns,
                )
        elif isinstance(node, exp.UniqueColumnConstraint):
            target = node.this
            columns = _ordered_columns(target.expressions if isinstance(target, exp.Schema) else [])
            if columns:
                self.uniques.append(
                    UniqueConstraint(
                        table_name=self.table_name,
                        constraint_name=constraint_name
                        or naming.unique_constraint_name(
                            self.table_name, *[c.column_name for c in columns]
                        ),
                        columns=columns,
                    )
                )
        elif isinstance(node, exp.CheckColumnConstraint):
            expression = _expression_text(node.this)
            if expression:
                suffix = str(len(self.checks)) if self.checks else ""
                self.checks.append(
                    CheckConstraint(
                        table_name=self.table_name,
                        column_name=infer_check_column(
                            expression, [c.column_name for c in self.columns]
                        ),
                        constraint_name=constraint_name
                        or naming.check_constraint_name(self.table_name, suffix),
                        expression=expression,
                    )
                )
        elif isinstance(node, exp.ForeignKey):
            source_columns = _ordered_columns(node.expressions)
            reference = node.args.get("reference")
            referenced_table, referenced_columns = _reference_target(reference)
            if not referenced_table or not source_columns or not referenced_columns:
                return
            on_delete, on_update = _referential_actions(node, reference)
            self.foreign_keys.append(
                ForeignKeyConstraint(
                    table_name=self.table_name,
                    constraint_name=constraint_name
                    or naming.foreign_key_constraint_name(
                        self.table_name,
                        "_".join(c.column_name for c in source_columns),
                        referenced_table,
                        "_".join(c.column_name for c in referenced_columns),
                    ),
                    source_columns=source_columns,
                    referenced_table_name=referenced_table,
                    referenced_columns=referenced_columns,
                    on_delete=on_delete,
                    on_update=on_update,
                )
            )


def parse_create_table(
    sql: str,
    describe_type: Callable[[str], HostTypeDescriptor],
    declared_types: Optional[Dict[str, str]] = None,
) -> Optional[Table]:
    """Parse one ``CREATE TABLE`` statement; returns None for anything else.

    ``declared_types`` maps lowercase column names to their declared type text.
    """
    if not sql or not sql.strip():
        return None
    statement = _parse_statement(sql)
    if statement is None:
        return None
    schema = statement.this

    builder = _TableBuilder(
        schema.this.name,
        describe_type,
        {name.lower(): text for name, text in (declared_types or {}).items()},
    )
    for node in schema.expressions:
        # A column with neither type nor constraints parses as a bare identifier.
        if isinstance(node, (exp.ColumnDef, exp.Identifier)):
            builder.add_column(node)
        elif isinstance(node, exp.Constraint):
            for constraint in node.expressions:
                builder.add_table_constraint(constraint, node.name or None)
        else:
            builder.add_table_constraint(node, None)
    return builder.build()
