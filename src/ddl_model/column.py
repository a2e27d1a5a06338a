import datetime
import decimal
import uuid
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .enums import ForeignKeyAction, ProviderType
from .expressions import Expression, render_expression, to_expression


class Column(BaseModel):
    """Canonical, provider-neutral representation of a table column.

    ``host_type`` is the Python type values of the column map to; the
    per-engine native type, when pinned explicitly, lives in
    ``provider_data_types``.
    """

    schema_name: Optional[str] = None
    table_name: str = ""
    column_name: str
    host_type: Any = None
    provider_data_types: Dict[ProviderType, str] = Field(default_factory=dict)
    length: Optional[int] = None
    precision: Optional[int] = None
    scale: Optional[int] = None
    is_nullable: bool = True
    is_primary_key: bool = False
    is_auto_increment: bool = False
    is_unique: bool = False
    is_unicode: bool = False
    is_indexed: bool = False
    is_foreign_key: bool = False
    referenced_table_name: Optional[str] = None
    referenced_column_name: Optional[str] = None
    on_delete: Optional[ForeignKeyAction] = None
    on_update: Optional[ForeignKeyAction] = None
    check_expression: Optional[Expression] = None
    default_expression: Optional[Expression] = None

    model_config = ConfigDict(validate_assignment=True)

    @field_validator("check_expression", "default_expression", mode="before")
    @classmethod
    def _coerce_expression(cls, value):
        return to_expression(value)

    def get_provider_data_type(self, provider: ProviderType) -> Optional[str]:
        return self.provider_data_types.get(ProviderType(provider))

    def set_provider_data_type(self, provider: ProviderType, data_type: str) -> "Column":
        self.provider_data_types[ProviderType(provider)] = data_type
        return self

    def set_check_expression(self, value: Any) -> "Column":
        """Assign a static text or a per-engine generator as the check expression."""
        self.check_expression = to_expression(value)
        return self

    def set_default_expression(self, value: Any) -> "Column":
        """Assign a static text or a per-engine generator as the default expression."""
        self.default_expression = to_expression(value)
        return self

    def get_check_expression(self, provider: ProviderType) -> Optional[str]:
        return render_expression(self.check_expression, ProviderType(provider))

    def get_default_expression(self, provider: ProviderType) -> Optional[str]:
        return render_expression(self.default_expression, ProviderType(provider))

    def is_numeric(self) -> bool:
        return isinstance(self.host_type, type) and issubclass(
            self.host_type, (int, float, decimal.Decimal)
        ) and not issubclass(self.host_type, bool)

    def is_text(self) -> bool:
        return isinstance(self.host_type, type) and issubclass(self.host_type, str)

    def is_date_time(self) -> bool:
        return isinstance(self.host_type, type) and issubclass(
            self.host_type, (datetime.date, datetime.time, datetime.timedelta)
        )

    def is_guid(self) -> bool:
        return self.host_type is uuid.UUID
