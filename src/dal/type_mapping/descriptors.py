"""Type descriptors exchanged between host types and native column types."""

import re
from dataclasses import dataclass
from typing import Any, Optional

from dal.type_mapping.defaults import MAX_LENGTH

_PARENTHESIZED = re.compile(r"\([^)]*\)")
_NUMBER = re.compile(r"\d+")
_WHITESPACE = re.compile(r"\s+")


def discard_type_arguments(sql_type_name: str) -> str:
    """Drop ``(length)`` / ``(precision, scale)`` arguments and collapse whitespace."""
    without_args = _PARENTHESIZED.sub("", sql_type_name)
    return _WHITESPACE.sub(" ", without_args).strip()


@dataclass
class SqlTypeDescriptor:
    """A native column type string and the facets parsed from it."""

    sql_type_name: str
    base_type_name: str = ""
    length: Optional[int] = None
    precision: Optional[int] = None
    scale: Optional[int] = None
    is_auto_incrementing: Optional[bool] = None
    is_unicode: Optional[bool] = None
    is_fixed_length: Optional[bool] = None

    def __post_init__(self) -> None:
        if not self.base_type_name:
            self.base_type_name = discard_type_arguments(self.sql_type_name).lower()

    def __str__(self) -> str:
        return self.sql_type_name

    @classmethod
    def parse(cls, sql_type_name: str) -> "SqlTypeDescriptor":
        """Parse a full native type such as ``nvarchar(100)`` or ``decimal(12,2)``.

        Numbers apply to the length for char/text/binary families and to
        precision and scale otherwise. ``max`` maps to the -1 length sentinel.
        """
        if sql_type_name is None or not sql_type_name.strip():
            raise ValueError("SQL type name cannot be empty.")

        descriptor = cls(sql_type_name=sql_type_name.strip())
        base = descriptor.base_type_name
        if "serial" in base:
            descriptor.is_auto_incrementing = True

        arguments = "".join(_PARENTHESIZED.findall(sql_type_name)).lower()
        numbers = [int(n) for n in _NUMBER.findall(arguments)]
        is_lengthed = "char" in base or "text" in base or "binary" in base

        if is_lengthed and (numbers or "max" in arguments):
            descriptor.length = numbers[0] if numbers else MAX_LENGTH
            if "char" in base and "varchar" not in base and "varying" not in base:
                descriptor.is_fixed_length = True
            if "nchar" in base or "nvarchar" in base or "ntext" in base:
                descriptor.is_unicode = True
        elif numbers:
            descriptor.precision = numbers[0]
            if len(numbers) > 1:
                descriptor.scale = numbers[1]
        return descriptor


@dataclass
class HostTypeDescriptor:
    """A Python host type plus the facets that shape its native mapping."""

    host_type: Any
    length: Optional[int] = None
    precision: Optional[int] = None
    scale: Optional[int] = None
    is_auto_increment: Optional[bool] = None
    is_unicode: Optional[bool] = None
    is_fixed_length: Optional[bool] = None

    def __str__(self) -> str:
        name = getattr(self.host_type, "__name__", None) or str(self.host_type)
        return name
