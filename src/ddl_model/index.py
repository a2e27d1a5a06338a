from typing import List, Optional

from pydantic import BaseModel, Field

from .ordered_column import OrderedColumn


class Index(BaseModel):
    """Canonical representation of a table index."""

    schema_name: Optional[str] = None
    table_name: str = ""
    index_name: str
    columns: List[OrderedColumn] = Field(default_factory=list)
    is_unique: bool = False

    model_config = {"frozen": False}

    def covers_column(self, column_name: str) -> bool:
        target = column_name.lower()
        return any(c.column_name.lower() == target for c in self.columns)
