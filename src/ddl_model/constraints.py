"""Constraint models: primary key, foreign key, unique, check and default."""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .enums import ConstraintType, ForeignKeyAction, ProviderType
from .expressions import Expression, render_expression, to_expression
from .ordered_column import OrderedColumn


class Constraint(BaseModel):
    """Common identity shared by every constraint kind."""

    schema_name: Optional[str] = None
    table_name: str = ""
    constraint_name: str
    constraint_type: ConstraintType

    model_config = {"frozen": False}


def _covers(columns: List[OrderedColumn], column_name: str) -> bool:
    target = column_name.lower()
    return any(c.column_name.lower() == target for c in columns)


class PrimaryKeyConstraint(Constraint):
    constraint_type: ConstraintType = ConstraintType.PRIMARY_KEY
    columns: List[OrderedColumn] = Field(default_factory=list)

    def covers_column(self, column_name: str) -> bool:
        return _covers(self.columns, column_name)


class UniqueConstraint(Constraint):
    constraint_type: ConstraintType = ConstraintType.UNIQUE
    columns: List[OrderedColumn] = Field(default_factory=list)

    def covers_column(self, column_name: str) -> bool:
        return _covers(self.columns, column_name)


class ForeignKeyConstraint(Constraint):
    """Foreign key; source and referenced column lists must be the same length."""

    constraint_type: ConstraintType = ConstraintType.FOREIGN_KEY
    source_columns: List[OrderedColumn] = Field(default_factory=list)
    referenced_table_name: str
    referenced_columns: List[OrderedColumn] = Field(default_factory=list)
    on_delete: ForeignKeyAction = ForeignKeyAction.NO_ACTION
    on_update: ForeignKeyAction = ForeignKeyAction.NO_ACTION

    @model_validator(mode="after")
    def _check_column_counts(self) -> "ForeignKeyConstraint":
        if len(self.source_columns) != len(self.referenced_columns):
            raise ValueError(
                "Source columns and referenced columns must have the same number of columns "
                f"({len(self.source_columns)} != {len(self.referenced_columns)})."
            )
        return self

    def covers_column(self, column_name: str) -> bool:
        return _covers(self.source_columns, column_name)

    def referenced_column_for(self, column_name: str) -> Optional[str]:
        """Return the referenced column paired with ``column_name``."""
        target = column_name.lower()
        for source, referenced in zip(self.source_columns, self.referenced_columns):
            if source.column_name.lower() == target:
                return referenced.column_name
        return None


class CheckConstraint(Constraint):
    constraint_type: ConstraintType = ConstraintType.CHECK
    column_name: Optional[str] = None
    expression: Expression

    model_config = ConfigDict(validate_assignment=True)

    @field_validator("expression", mode="before")
    @classmethod
    def _coerce_expression(cls, value):
        return to_expression(value)

    def render(self, provider: ProviderType) -> Optional[str]:
        return render_expression(self.expression, provider)


class DefaultConstraint(Constraint):
    constraint_type: ConstraintType = ConstraintType.DEFAULT
    column_name: str
    expression: Expression

    model_config = ConfigDict(validate_assignment=True)

    @field_validator("expression", mode="before")
    @classmethod
    def _coerce_expression(cls, value):
        return to_expression(value)

    def render(self, provider: ProviderType) -> Optional[str]:
        return render_expression(self.expression, provider)
