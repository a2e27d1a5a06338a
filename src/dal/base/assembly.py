"""Fold flat catalog rows into nested ``Table`` objects.

Catalog queries return one row per (object, column). The helpers here group
those rows and build constraint and index models from them; engines only
supply the queries.
"""

import re
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ddl_model.constraints import ForeignKeyConstraint, PrimaryKeyConstraint, UniqueConstraint
from ddl_model.enums import ColumnOrder, ForeignKeyAction
from ddl_model.index import Index
from ddl_model.ordered_column import OrderedColumn
from ddl_model.table import Table

Row = Dict[str, Any]


def group_rows(rows: Iterable[Row], *keys: str) -> Dict[Tuple[Any, ...], List[Row]]:
    """Group rows by the values of ``keys``, preserving first-seen order."""
    grouped: Dict[Tuple[Any, ...], List[Row]] = {}
    for row in rows:
        grouped.setdefault(tuple(row[key] for key in keys), []).append(row)
    return grouped


def _ordered(rows: List[Row]) -> List[OrderedColumn]:
    return [
        OrderedColumn(
            column_name=row["column_name"],
            order=ColumnOrder.DESCENDING if row.get("is_descending") else ColumnOrder.ASCENDING,
        )
        for row in rows
    ]


def build_key_constraints(
    rows: Iterable[Row], schema_name: Optional[str] = None
) -> Tuple[Optional[PrimaryKeyConstraint], List[UniqueConstraint], List[Index]]:
    """Split index-shaped rows into the primary key, unique constraints and indexes.

    Each row carries ``table_name``, ``constraint_name``, ``column_name``,
    ``is_descending``, ``is_unique``, ``is_primary_key`` and
    ``is_unique_constraint``; rows arrive ordered by key position.
    """
    primary_key = None
    unique_constraints: List[UniqueConstraint] = []
    indexes: List[Index] = []
    for (table_name, name), group in group_rows(rows, "table_name", "constraint_name").items():
        first = group[0]
        if first.get("is_primary_key"):
            primary_key = PrimaryKeyConstraint(
                schema_name=schema_name,
                table_name=table_name,
                constraint_name=name,
                columns=_ordered(group),
            )
        elif first.get("is_unique_constraint"):
            unique_constraints.append(
                UniqueConstraint(
                    schema_name=schema_name,
                    table_name=table_name,
                    constraint_name=name,
                    columns=_ordered(group),
                )
            )
        else:
            indexes.append(
                Index(
                    schema_name=schema_name,
                    table_name=table_name,
                    index_name=name,
                    columns=_ordered(group),
                    is_unique=bool(first.get("is_unique")),
                )
            )
    return primary_key, unique_constraints, indexes


def build_foreign_keys(
    rows: Iterable[Row], schema_name: Optional[str] = None
) -> List[ForeignKeyConstraint]:
    """Build foreign keys from rows ordered by column position within each constraint."""
    foreign_keys = []
    for (table_name, name), group in group_rows(rows, "table_name", "constraint_name").items():
        first = group[0]
        foreign_keys.append(
            ForeignKeyConstraint(
                schema_name=schema_name,
                table_name=table_name,
                constraint_name=name,
                source_columns=[OrderedColumn(column_name=row["column_name"]) for row in group],
                referenced_table_name=first["referenced_table_name"],
                referenced_columns=[
                    OrderedColumn(column_name=row["referenced_column_name"]) for row in group
                ],
                on_delete=ForeignKeyAction.parse_or_default(first.get("delete_rule")),
                on_update=ForeignKeyAction.parse_or_default(first.get("update_rule")),
            )
        )
    return foreign_keys


def infer_check_column(expression: str, column_names: Iterable[str]) -> Optional[str]:
    """Return the only column named in a check expression, or None."""
    found = [
        name
        for name in column_names
        if re.search(rf"\b{re.escape(name)}\b", expression or "", re.IGNORECASE)
    ]
    return found[0] if len(found) == 1 else None


def for_table(items: Iterable[Any], table_name: str) -> List[Any]:
    """Keep the models whose ``table_name`` matches, case-insensitively."""
    target = table_name.lower()
    return [item for item in items if (item.table_name or "").lower() == target]


def apply_constraint_flags(table: Table) -> Table:
    """Derive per-column key, index and expression flags from ``table``'s lists.

    A column is unique when a single-column unique constraint or a unique
    single-column index covers it. Foreign key references are paired with
    source columns by position.
    """
    pk = table.primary_key_constraint
    for column in table.columns:
        name = column.column_name
        if pk is not None and pk.covers_column(name):
            column.is_primary_key = True

        if any(
            len(uc.columns) == 1 and uc.covers_column(name) for uc in table.unique_constraints
        ) or any(
            index.is_unique and len(index.columns) == 1 and index.covers_column(name)
            for index in table.indexes
        ):
            column.is_unique = True

        if any(index.covers_column(name) for index in table.indexes):
            column.is_indexed = True

        fk = next((fk for fk in table.foreign_key_constraints if fk.covers_column(name)), None)
        if fk is not None:
            column.is_foreign_key = True
            column.referenced_table_name = fk.referenced_table_name
            column.referenced_column_name = fk.referenced_column_for(name)
            column.on_delete = fk.on_delete
            column.on_update = fk.on_update

        target = name.lower()
        check = next(
            (
                ck
                for ck in table.check_constraints
                if ck.column_name and ck.column_name.lower() == target
            ),
            None,
        )
        if check is not None:
            column.check_expression = check.expression

        default = next(
            (dc for dc in table.default_constraints if dc.column_name.lower() == target), None
        )
        if default is not None:
            column.default_expression = default.expression
    return table
