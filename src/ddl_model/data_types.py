from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class DataTypeCategory(str, Enum):
    """Coarse grouping of native types used by type pickers."""

    INTEGER = "Integer"
    DECIMAL = "Decimal"
    MONEY = "Money"
    TEXT = "Text"
    DATE_TIME = "DateTime"
    BINARY = "Binary"
    BOOLEAN = "Boolean"
    JSON = "Json"
    XML = "Xml"
    SPATIAL = "Spatial"
    ARRAY = "Array"
    RANGE = "Range"
    NETWORK = "Network"
    IDENTIFIER = "Identifier"
    OTHER = "Other"
    CUSTOM = "Custom"


class DataTypeInfo(BaseModel):
    """Catalog entry describing one native type and its facet bounds."""

    data_type: str
    aliases: List[str] = Field(default_factory=list)
    category: DataTypeCategory
    is_common: bool = False
    is_custom: bool = False
    supports_length: bool = False
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    default_length: Optional[int] = None
    supports_precision: bool = False
    min_precision: Optional[int] = None
    max_precision: Optional[int] = None
    default_precision: Optional[int] = None
    supports_scale: bool = False
    min_scale: Optional[int] = None
    max_scale: Optional[int] = None
    default_scale: Optional[int] = None
    description: Optional[str] = None
    examples: Optional[List[str]] = None

    model_config = {"frozen": True}

    def matches(self, name: str) -> bool:
        """Return True when ``name`` is this type or one of its aliases."""
        target = name.strip().lower()
        return self.data_type.lower() == target or any(a.lower() == target for a in self.aliases)
