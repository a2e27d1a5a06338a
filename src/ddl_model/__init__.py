"""Provider-neutral schema model: tables, columns, constraints, indexes and views."""

from .column import Column
from .constraints import (
    CheckConstraint,
    Constraint,
    DefaultConstraint,
    ForeignKeyConstraint,
    PrimaryKeyConstraint,
    UniqueConstraint,
)
from .data_types import DataTypeCategory, DataTypeInfo
from .enums import ColumnOrder, ConstraintType, ForeignKeyAction, ProviderType
from .expressions import Expression, GeneratedExpression, StaticExpression
from .index import Index
from .ordered_column import OrderedColumn
from .reflection import ModelRegistry
from .table import Table
from .view import View

__all__ = [
    "CheckConstraint",
    "Column",
    "ColumnOrder",
    "Constraint",
    "ConstraintType",
    "DataTypeCategory",
    "DataTypeInfo",
    "DefaultConstraint",
    "Expression",
    "ForeignKeyAction",
    "ForeignKeyConstraint",
    "GeneratedExpression",
    "Index",
    "ModelRegistry",
    "OrderedColumn",
    "PrimaryKeyConstraint",
    "ProviderType",
    "StaticExpression",
    "Table",
    "UniqueConstraint",
    "View",
]
