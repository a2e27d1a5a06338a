from typing import Any, List, Optional

from pydantic import BaseModel, Field

from .column import Column
from .constraints import (
    CheckConstraint,
    DefaultConstraint,
    ForeignKeyConstraint,
    PrimaryKeyConstraint,
    UniqueConstraint,
)
from .index import Index


class Table(BaseModel):
    """Canonical representation of a table with its columns, constraints and indexes.

    On construction the table's schema and table name are copied onto every
    child object once. Later edits to a child's names are not re-synchronised.
    """

    schema_name: Optional[str] = None
    table_name: str
    columns: List[Column] = Field(default_factory=list)
    primary_key_constraint: Optional[PrimaryKeyConstraint] = None
    check_constraints: List[CheckConstraint] = Field(default_factory=list)
    default_constraints: List[DefaultConstraint] = Field(default_factory=list)
    unique_constraints: List[UniqueConstraint] = Field(default_factory=list)
    foreign_key_constraints: List[ForeignKeyConstraint] = Field(default_factory=list)
    indexes: List[Index] = Field(default_factory=list)

    model_config = {"frozen": False}

    def model_post_init(self, __context: Any) -> None:
        children: List[Any] = [
            *self.columns,
            *self.check_constraints,
            *self.default_constraints,
            *self.unique_constraints,
            *self.foreign_key_constraints,
            *self.indexes,
        ]
        if self.primary_key_constraint is not None:
            children.append(self.primary_key_constraint)
        for child in children:
            child.schema_name = self.schema_name
            child.table_name = self.table_name

    def get_column(self, column_name: str) -> Optional[Column]:
        """Return the column with the given name, compared case-insensitively."""
        target = column_name.lower()
        for column in self.columns:
            if column.column_name.lower() == target:
                return column
        return None

    def has_column(self, column_name: str) -> bool:
        return self.get_column(column_name) is not None
