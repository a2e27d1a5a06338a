"""Naming, quoting, type resolution and version helpers shared by every engine."""

import logging
import re
from typing import Any, ClassVar, List, Optional, Tuple, Type

from common.config.settings import DdlSettings
from common.errors import UnsupportedTypeError
from common.security.expression_validator import (
    validate_check_expression,
    validate_default_expression,
    validate_view_definition,
)
from dal.connection import EngineConnection
from dal.type_mapping.catalog import DataTypeCatalog
from dal.type_mapping.descriptors import HostTypeDescriptor, SqlTypeDescriptor
from dal.type_mapping.registry import ProviderTypeMap
from dal.util.filters import to_like_string
from ddl_model.naming import to_alphanumeric
from ddl_model.column import Column
from ddl_model.data_types import DataTypeInfo
from ddl_model.enums import ProviderType

logger = logging.getLogger(__name__)

_VERSION_PATTERN = re.compile(r"\d+(\.\d+)+")
_FUNCTION_NAME = re.compile(r"^\w+$")
_TYPE_MODIFIERS = (" with time zone", " without time zone")
_AUTO_INCREMENT_MARKERS = ("serial", "identity", "autoincrement", "auto_increment")


def parse_version(text: Optional[str]) -> Tuple[int, ...]:
    """Extract a dotted version number such as ``16.0.1000`` from server text."""
    match = _VERSION_PATTERN.search(text or "")
    if match is None:
        return (0,)
    return tuple(int(part) for part in match.group(0).split("."))


def is_function_call(expression: str) -> bool:
    """Return True for ``name(...)`` shaped expressions such as ``getdate()``."""
    paren_index = expression.find("(")
    if paren_index == -1 or not expression.endswith(")"):
        return False
    return bool(_FUNCTION_NAME.match(expression[:paren_index].strip()))


def strip_outer_parentheses(expression: str) -> str:
    """Remove one pair of parentheses wrapping the whole expression."""
    expression = expression.strip()
    if not (expression.startswith("(") and expression.endswith(")")):
        return expression
    depth = 0
    for index, char in enumerate(expression):
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            # ``(a) AND (b)``: the first group closes before the end.
            if depth == 0 and index != len(expression) - 1:
                return expression
    return expression[1:-1].strip()


class MethodsCore:
    """State and helpers every object-kind mixin relies on.

    Subclasses bind the engine through class attributes; instances only hold
    the ``DdlSettings`` they were built with.
    """

    provider: ClassVar[ProviderType]
    type_map: ClassVar[Type[ProviderTypeMap]]
    type_catalog: ClassVar[Type[DataTypeCatalog]]
    connection_class: ClassVar[Type[EngineConnection]]

    quote_prefix: ClassVar[str] = '"'
    quote_suffix: ClassVar[str] = '"'
    supports_schemas: ClassVar[bool] = True
    auto_increment_suffix: ClassVar[str] = "IDENTITY(1,1)"

    def __init__(self, settings: Optional[DdlSettings] = None) -> None:
        self.settings = settings or DdlSettings()

    @property
    def default_schema(self) -> Optional[str]:
        return None

    def _conn(self, conn: Any) -> EngineConnection:
        return self.connection_class.wrap(conn, self.settings)

    async def _execute(self, conn: EngineConnection, sql: str, *params: Any) -> Any:
        logger.debug("Executing DDL: %s", sql)
        return await conn.execute(sql, *params)

    # ------------------------------------------------------------------
    # Names
    # ------------------------------------------------------------------

    def normalize_name(self, name: str) -> str:
        return to_alphanumeric(name, "_")

    def normalize_schema_name(self, schema_name: Optional[str]) -> Optional[str]:
        if not self.supports_schemas:
            return None
        if schema_name is None or not schema_name.strip():
            return self.default_schema
        return self.normalize_name(schema_name)

    def quote(self, identifier: str) -> str:
        return f"{self.quote_prefix}{identifier}{self.quote_suffix}"

    def quote_name(self, name: str) -> str:
        """Normalize then quote a single identifier."""
        return self.quote(self.normalize_name(name))

    def get_schema_qualified_identifier_name(
        self, schema_name: Optional[str], table_name: str
    ) -> str:
        schema_name = self.normalize_schema_name(schema_name)
        quoted_table = self.quote_name(table_name)
        if self.supports_schemas and schema_name:
            return f"{self.quote(schema_name)}.{quoted_table}"
        return quoted_table

    def _names_equal(self, left: Optional[str], right: Optional[str]) -> bool:
        return (left or "").lower() == (right or "").lower()

    def _name_filter_clause(self, column_sql: str, name_filter: Optional[str], params: list) -> str:
        """Append a case-insensitive LIKE parameter for a wildcard filter."""
        if name_filter is None or not name_filter.strip():
            return ""
        params.append(to_like_string(name_filter).lower())
        return f" AND lower({column_sql}) LIKE ${len(params)}"

    def _schema_clause(self, column_sql: str, schema_name: Optional[str], params: list) -> str:
        """Restrict a catalog query to one schema; engines without schemas override."""
        params.append(schema_name)
        return f" AND {column_sql} = ${len(params)}"

    @staticmethod
    def _require(value: Optional[str], parameter_name: str) -> None:
        if value is None or not str(value).strip():
            raise ValueError(f"{parameter_name} is required.")

    # ------------------------------------------------------------------
    # Version and capabilities
    # ------------------------------------------------------------------

    async def _get_database_version_text(self, conn: EngineConnection) -> Optional[str]:
        raise NotImplementedError

    async def get_database_version(self, conn: Any, tx: Any = None) -> Tuple[int, ...]:
        conn = self._conn(conn)
        return parse_version(await self._get_database_version_text(conn))

    async def supports_check_constraints(self, conn: Any, tx: Any = None) -> bool:
        return True

    async def supports_ordered_keys_in_constraints(self, conn: Any, tx: Any = None) -> bool:
        return True

    async def supports_default_constraints(self, conn: Any, tx: Any = None) -> bool:
        return True

    # ------------------------------------------------------------------
    # Types
    # ------------------------------------------------------------------

    def get_available_data_types(self, include_advanced: bool = False) -> List[DataTypeInfo]:
        return self.type_catalog.get_available_data_types(include_advanced)

    async def discover_custom_data_types(self, conn: Any, tx: Any = None) -> List[DataTypeInfo]:
        return []

    def get_host_type_from_sql_type(self, sql_type: str) -> HostTypeDescriptor:
        descriptor = self.type_map.get_host_type(sql_type)
        if descriptor is None or descriptor.host_type is None:
            raise UnsupportedTypeError(
                f"SQL type {sql_type} is not supported by {self.provider.value}."
            )
        return descriptor

    def get_sql_type_from_host_type(self, descriptor: HostTypeDescriptor) -> str:
        sql_type = self.type_map.get_sql_type(descriptor)
        if sql_type is None or not sql_type.sql_type_name:
            raise UnsupportedTypeError(
                f"No {self.provider.value} data type found for host type {descriptor}."
            )
        return sql_type.sql_type_name

    def _describe_sql_type(self, sql_type: str) -> HostTypeDescriptor:
        # Catalog reads keep columns of unmapped native types as ``object``.
        descriptor = self.type_map.get_host_type(sql_type)
        if descriptor is None or descriptor.host_type is None:
            return HostTypeDescriptor(host_type=object)
        return descriptor

    def _catalog_type_text(
        self,
        data_type: str,
        length: Optional[int] = None,
        precision: Optional[int] = None,
        scale: Optional[int] = None,
    ) -> str:
        """Rebuild a full native type such as ``nvarchar(max)`` from catalog facets."""
        catalog = self.type_catalog
        if length is not None and catalog.supports_length(data_type):
            return f"{data_type}({'max' if length < 0 else length})"
        if precision is not None and catalog.supports_precision(data_type):
            if scale is not None and catalog.supports_scale(data_type):
                return f"{data_type}({precision},{scale})"
            return f"{data_type}({precision})"
        return data_type

    def _catalog_column(
        self,
        column_name: str,
        data_type: str,
        is_nullable: bool,
        length: Optional[int] = None,
        precision: Optional[int] = None,
        scale: Optional[int] = None,
    ) -> Column:
        """Build a ``Column`` from one catalog row; key flags are applied later."""
        descriptor = self._describe_sql_type(data_type)
        parsed = SqlTypeDescriptor.parse(data_type)
        lowered = data_type.lower()
        return Column(
            column_name=column_name,
            host_type=descriptor.host_type,
            provider_data_types={self.provider: data_type},
            length=length if length is not None else parsed.length,
            precision=precision if precision is not None else parsed.precision,
            scale=scale if scale is not None else parsed.scale,
            is_nullable=bool(is_nullable),
            is_unicode=bool(descriptor.is_unicode or parsed.is_unicode)
            or lowered.startswith(("nvarchar", "nchar", "ntext")),
        )

    def _column_data_type(self, column: Column) -> str:
        """Resolve the native type text used for a column definition."""
        data_type = column.get_provider_data_type(self.provider)
        if not data_type or not data_type.strip():
            if column.host_type is None:
                raise ValueError(
                    f"Column '{column.column_name}' needs a host type or a "
                    f"{self.provider.value} data type."
                )
            return self.get_sql_type_from_host_type(
                HostTypeDescriptor(
                    host_type=column.host_type,
                    length=column.length,
                    precision=column.precision,
                    scale=column.scale,
                    is_auto_increment=column.is_auto_increment,
                    is_unicode=column.is_unicode,
                )
            )
        if "(" in data_type:
            return data_type
        return self._append_type_arguments(data_type, column)

    def _append_type_arguments(self, data_type: str, column: Column) -> str:
        catalog = self.type_catalog
        arguments = None
        if (
            column.precision is not None
            and column.scale is not None
            and catalog.supports_precision(data_type)
            and catalog.supports_scale(data_type)
        ):
            arguments = f"({column.precision},{column.scale})"
        elif column.precision is not None and catalog.supports_precision(data_type):
            arguments = f"({column.precision})"
        elif column.length is not None and catalog.supports_length(data_type):
            arguments = "(max)" if column.length < 0 else f"({column.length})"
        if arguments is None:
            return data_type

        lowered = data_type.lower()
        for modifier in _TYPE_MODIFIERS:
            index = lowered.find(modifier)
            if index > 0:
                return data_type[:index] + arguments + data_type[index:]
        return data_type + arguments

    # ------------------------------------------------------------------
    # Auto-increment detection
    # ------------------------------------------------------------------

    def determine_is_auto_increment(
        self,
        column: Column,
        metadata: Optional[Any] = None,
        sql_type_name: Optional[str] = None,
    ) -> bool:
        if column.is_auto_increment:
            return True
        for type_name in (sql_type_name, column.get_provider_data_type(self.provider)):
            if not type_name:
                continue
            if SqlTypeDescriptor.parse(type_name).is_auto_incrementing:
                return True
            lowered = type_name.lower()
            if any(marker in lowered for marker in _AUTO_INCREMENT_MARKERS):
                return True
        if metadata is not None:
            return self.check_provider_specific_auto_increment(metadata)
        return False

    def check_provider_specific_auto_increment(self, metadata: Any) -> bool:
        return False

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def _validate_check(self, expression: Optional[str], parameter_name: str) -> None:
        validate_check_expression(
            expression, parameter_name, max_length=self.settings.max_expression_length
        )

    def _validate_default(self, expression: Optional[str], parameter_name: str) -> None:
        validate_default_expression(
            expression, parameter_name, max_length=self.settings.max_expression_length
        )

    def _validate_view(self, definition: Optional[str], parameter_name: str) -> None:
        validate_view_definition(
            definition, parameter_name, max_length=self.settings.max_expression_length
        )
