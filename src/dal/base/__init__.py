"""Engine-neutral implementation of the DDL operations.

``DatabaseMethodsBase`` composes one mixin per object kind. Engine classes
bind their provider, type map and connection adapter as class attributes
and override the catalog reads plus whichever statement builders differ.
"""

from dal.base.assembly import apply_constraint_flags
from dal.base.check_constraints import CheckConstraintMethodsMixin
from dal.base.columns import ColumnMethodsMixin
from dal.base.core import parse_version
from dal.base.ddl import DdlContext
from dal.base.default_constraints import DefaultConstraintMethodsMixin
from dal.base.foreign_keys import ForeignKeyMethodsMixin
from dal.base.indexes import IndexMethodsMixin
from dal.base.primary_keys import PrimaryKeyMethodsMixin
from dal.base.schemas import SchemaMethodsMixin
from dal.base.tables import TableMethodsMixin
from dal.base.transactions import owned_transaction
from dal.base.unique_constraints import UniqueConstraintMethodsMixin
from dal.base.views import ViewMethodsMixin


class DatabaseMethodsBase(
    SchemaMethodsMixin,
    TableMethodsMixin,
    ColumnMethodsMixin,
    IndexMethodsMixin,
    PrimaryKeyMethodsMixin,
    ForeignKeyMethodsMixin,
    UniqueConstraintMethodsMixin,
    CheckConstraintMethodsMixin,
    DefaultConstraintMethodsMixin,
    ViewMethodsMixin,
):
    """Shared operation flow for every engine."""


__all__ = [
    "DatabaseMethodsBase",
    "DdlContext",
    "apply_constraint_flags",
    "owned_transaction",
    "parse_version",
]
