"""Operation contracts implemented by every engine.

Every method is a coroutine that takes the caller's open connection first
and accepts ``tx=None`` last. ``tx`` marks that the caller already holds a
transaction on that connection; implementations never commit or roll back
a transaction they did not open. Cancellation is ordinary asyncio task
cancellation.
"""

from typing import Any, List, Optional, Protocol, Sequence, Tuple, runtime_checkable

from dal.type_mapping.descriptors import HostTypeDescriptor
from ddl_model.column import Column
from ddl_model.constraints import (
    CheckConstraint,
    DefaultConstraint,
    ForeignKeyConstraint,
    PrimaryKeyConstraint,
    UniqueConstraint,
)
from ddl_model.data_types import DataTypeInfo
from ddl_model.enums import ProviderType
from ddl_model.index import Index
from ddl_model.table import Table
from ddl_model.view import View


@runtime_checkable
class SchemaMethods(Protocol):
    """Schema existence, creation, listing and removal."""

    async def does_schema_exist(self, conn: Any, schema_name: str, tx: Any = None) -> bool:
        ...

    async def create_schema_if_not_exists(
        self, conn: Any, schema_name: str, tx: Any = None
    ) -> bool:
        ...

    async def get_schema_names(
        self, conn: Any, schema_name_filter: Optional[str] = None, tx: Any = None
    ) -> List[str]:
        ...

    async def drop_schema_if_exists(self, conn: Any, schema_name: str, tx: Any = None) -> bool:
        ...


@runtime_checkable
class TableMethods(Protocol):
    """Table lifecycle and catalog reads."""

    async def does_table_exist(
        self, conn: Any, schema_name: Optional[str], table_name: str, tx: Any = None
    ) -> bool:
        ...

    async def create_table_if_not_exists(self, conn: Any, table: Table, tx: Any = None) -> bool:
        ...

    async def create_tables_if_not_exists(
        self, conn: Any, tables: Sequence[Table], tx: Any = None
    ) -> None:
        ...

    async def get_table(
        self, conn: Any, schema_name: Optional[str], table_name: str, tx: Any = None
    ) -> Optional[Table]:
        ...

    async def get_tables(
        self,
        conn: Any,
        schema_name: Optional[str],
        table_name_filter: Optional[str] = None,
        tx: Any = None,
    ) -> List[Table]:
        ...

    async def get_table_names(
        self,
        conn: Any,
        schema_name: Optional[str],
        table_name_filter: Optional[str] = None,
        tx: Any = None,
    ) -> List[str]:
        ...

    async def drop_table_if_exists(
        self, conn: Any, schema_name: Optional[str], table_name: str, tx: Any = None
    ) -> bool:
        ...

    async def rename_table_if_exists(
        self,
        conn: Any,
        schema_name: Optional[str],
        table_name: str,
        new_table_name: str,
        tx: Any = None,
    ) -> bool:
        ...

    async def truncate_table_if_exists(
        self, conn: Any, schema_name: Optional[str], table_name: str, tx: Any = None
    ) -> bool:
        ...


@runtime_checkable
class ColumnMethods(Protocol):
    async def does_column_exist(
        self,
        conn: Any,
        schema_name: Optional[str],
        table_name: str,
        column_name: str,
        tx: Any = None,
    ) -> bool:
        ...

    async def create_column_if_not_exists(self, conn: Any, column: Column, tx: Any = None) -> bool:
        ...

    async def get_column(
        self,
        conn: Any,
        schema_name: Optional[str],
        table_name: str,
        column_name: str,
        tx: Any = None,
    ) -> Optional[Column]:
        ...

    async def get_columns(
        self,
        conn: Any,
        schema_name: Optional[str],
        table_name: str,
        column_name_filter: Optional[str] = None,
        tx: Any = None,
    ) -> List[Column]:
        ...

    async def get_column_names(
        self,
        conn: Any,
        schema_name: Optional[str],
        table_name: str,
        column_name_filter: Optional[str] = None,
        tx: Any = None,
    ) -> List[str]:
        ...

    async def drop_column_if_exists(
        self,
        conn: Any,
        schema_name: Optional[str],
        table_name: str,
        column_name: str,
        tx: Any = None,
    ) -> bool:
        ...

    async def rename_column_if_exists(
        self,
        conn: Any,
        schema_name: Optional[str],
        table_name: str,
        column_name: str,
        new_column_name: str,
        tx: Any = None,
    ) -> bool:
        ...


@runtime_checkable
class IndexMethods(Protocol):
    async def does_index_exist(
        self, conn: Any, schema_name: Optional[str], table_name: str, index_name: str, tx: Any = None
    ) -> bool:
        ...

    async def does_index_exist_on_column(
        self, conn: Any, schema_name: Optional[str], table_name: str, column_name: str, tx: Any = None
    ) -> bool:
        ...

    async def create_index_if_not_exists(self, conn: Any, index: Index, tx: Any = None) -> bool:
        ...

    async def get_index(
        self, conn: Any, schema_name: Optional[str], table_name: str, index_name: str, tx: Any = None
    ) -> Optional[Index]:
        ...

    async def get_indexes(
        self,
        conn: Any,
        schema_name: Optional[str],
        table_name: str,
        index_name_filter: Optional[str] = None,
        tx: Any = None,
    ) -> List[Index]:
        ...

    async def get_index_names(
        self,
        conn: Any,
        schema_name: Optional[str],
        table_name: str,
        index_name_filter: Optional[str] = None,
        tx: Any = None,
    ) -> List[str]:
        ...

    async def get_indexes_on_column(
        self, conn: Any, schema_name: Optional[str], table_name: str, column_name: str, tx: Any = None
    ) -> List[Index]:
        ...

    async def get_index_names_on_column(
        self, conn: Any, schema_name: Optional[str], table_name: str, column_name: str, tx: Any = None
    ) -> List[str]:
        ...

    async def drop_index_if_exists(
        self, conn: Any, schema_name: Optional[str], table_name: str, index_name: str, tx: Any = None
    ) -> bool:
        ...

    async def drop_indexes_on_column_if_exists(
        self, conn: Any, schema_name: Optional[str], table_name: str, column_name: str, tx: Any = None
    ) -> bool:
        ...


@runtime_checkable
class PrimaryKeyConstraintMethods(Protocol):
    async def does_primary_key_constraint_exist(
        self, conn: Any, schema_name: Optional[str], table_name: str, tx: Any = None
    ) -> bool:
        ...

    async def create_primary_key_constraint_if_not_exists(
        self, conn: Any, constraint: PrimaryKeyConstraint, tx: Any = None
    ) -> bool:
        ...

    async def get_primary_key_constraint(
        self, conn: Any, schema_name: Optional[str], table_name: str, tx: Any = None
    ) -> Optional[PrimaryKeyConstraint]:
        ...

    async def drop_primary_key_constraint_if_exists(
        self, conn: Any, schema_name: Optional[str], table_name: str, tx: Any = None
    ) -> bool:
        ...


@runtime_checkable
class ForeignKeyConstraintMethods(Protocol):
    async def does_foreign_key_constraint_exist(
        self, conn: Any, schema_name: Optional[str], table_name: str, constraint_name: str, tx: Any = None
    ) -> bool:
        ...

    async def does_foreign_key_constraint_exist_on_column(
        self, conn: Any, schema_name: Optional[str], table_name: str, column_name: str, tx: Any = None
    ) -> bool:
        ...

    async def create_foreign_key_constraint_if_not_exists(
        self, conn: Any, constraint: ForeignKeyConstraint, tx: Any = None
    ) -> bool:
        ...

    async def get_foreign_key_constraint(
        self, conn: Any, schema_name: Optional[str], table_name: str, constraint_name: str, tx: Any = None
    ) -> Optional[ForeignKeyConstraint]:
        ...

    async def get_foreign_key_constraint_on_column(
        self, conn: Any, schema_name: Optional[str], table_name: str, column_name: str, tx: Any = None
    ) -> Optional[ForeignKeyConstraint]:
        ...

    async def get_foreign_key_constraints(
        self,
        conn: Any,
        schema_name: Optional[str],
        table_name: str,
        constraint_name_filter: Optional[str] = None,
        tx: Any = None,
    ) -> List[ForeignKeyConstraint]:
        ...

    async def get_foreign_key_constraint_names(
        self,
        conn: Any,
        schema_name: Optional[str],
        table_name: str,
        constraint_name_filter: Optional[str] = None,
        tx: Any = None,
    ) -> List[str]:
        ...

    async def get_foreign_key_constraint_name_on_column(
        self, conn: Any, schema_name: Optional[str], table_name: str, column_name: str, tx: Any = None
    ) -> Optional[str]:
        ...

    async def drop_foreign_key_constraint_if_exists(
        self, conn: Any, schema_name: Optional[str], table_name: str, constraint_name: str, tx: Any = None
    ) -> bool:
        ...

    async def drop_foreign_key_constraint_on_column_if_exists(
        self, conn: Any, schema_name: Optional[str], table_name: str, column_name: str, tx: Any = None
    ) -> bool:
        ...


@runtime_checkable
class UniqueConstraintMethods(Protocol):
    async def does_unique_constraint_exist(
        self, conn: Any, schema_name: Optional[str], table_name: str, constraint_name: str, tx: Any = None
    ) -> bool:
        ...

    async def does_unique_constraint_exist_on_column(
        self, conn: Any, schema_name: Optional[str], table_name: str, column_name: str, tx: Any = None
    ) -> bool:
        ...

    async def create_unique_constraint_if_not_exists(
        self, conn: Any, constraint: UniqueConstraint, tx: Any = None
    ) -> bool:
        ...

    async def get_unique_constraint(
        self, conn: Any, schema_name: Optional[str], table_name: str, constraint_name: str, tx: Any = None
    ) -> Optional[UniqueConstraint]:
        ...

    async def get_unique_constraint_on_column(
        self, conn: Any, schema_name: Optional[str], table_name: str, column_name: str, tx: Any = None
    ) -> Optional[UniqueConstraint]:
        ...

    async def get_unique_constraints(
        self,
        conn: Any,
        schema_name: Optional[str],
        table_name: str,
        constraint_name_filter: Optional[str] = None,
        tx: Any = None,
    ) -> List[UniqueConstraint]:
        ...

    async def get_unique_constraint_names(
        self,
        conn: Any,
        schema_name: Optional[str],
        table_name: str,
        constraint_name_filter: Optional[str] = None,
        tx: Any = None,
    ) -> List[str]:
        ...

    async def get_unique_constraint_name_on_column(
        self, conn: Any, schema_name: Optional[str], table_name: str, column_name: str, tx: Any = None
    ) -> Optional[str]:
        ...

    async def drop_unique_constraint_if_exists(
        self, conn: Any, schema_name: Optional[str], table_name: str, constraint_name: str, tx: Any = None
    ) -> bool:
        ...

    async def drop_unique_constraint_on_column_if_exists(
        self, conn: Any, schema_name: Optional[str], table_name: str, column_name: str, tx: Any = None
    ) -> bool:
        ...


@runtime_checkable
class CheckConstraintMethods(Protocol):
    async def does_check_constraint_exist(
        self, conn: Any, schema_name: Optional[str], table_name: str, constraint_name: str, tx: Any = None
    ) -> bool:
        ...

    async def does_check_constraint_exist_on_column(
        self, conn: Any, schema_name: Optional[str], table_name: str, column_name: str, tx: Any = None
    ) -> bool:
        ...

    async def create_check_constraint_if_not_exists(
        self, conn: Any, constraint: CheckConstraint, tx: Any = None
    ) -> bool:
        ...

    async def get_check_constraint(
        self, conn: Any, schema_name: Optional[str], table_name: str, constraint_name: str, tx: Any = None
    ) -> Optional[CheckConstraint]:
        ...

    async def get_check_constraint_on_column(
        self, conn: Any, schema_name: Optional[str], table_name: str, column_name: str, tx: Any = None
    ) -> Optional[CheckConstraint]:
        ...

    async def get_check_constraints(
        self,
        conn: Any,
        schema_name: Optional[str],
        table_name: str,
        constraint_name_filter: Optional[str] = None,
        tx: Any = None,
    ) -> List[CheckConstraint]:
        ...

    async def get_check_constraint_names(
        self,
        conn: Any,
        schema_name: Optional[str],
        table_name: str,
        constraint_name_filter: Optional[str] = None,
        tx: Any = None,
    ) -> List[str]:
        ...

    async def get_check_constraint_name_on_column(
        self, conn: Any, schema_name: Optional[str], table_name: str, column_name: str, tx: Any = None
    ) -> Optional[str]:
        ...

    async def drop_check_constraint_if_exists(
        self, conn: Any, schema_name: Optional[str], table_name: str, constraint_name: str, tx: Any = None
    ) -> bool:
        ...

    async def drop_check_constraint_on_column_if_exists(
        self, conn: Any, schema_name: Optional[str], table_name: str, column_name: str, tx: Any = None
    ) -> bool:
        ...


@runtime_checkable
class DefaultConstraintMethods(Protocol):
    async def does_default_constraint_exist(
        self, conn: Any, schema_name: Optional[str], table_name: str, constraint_name: str, tx: Any = None
    ) -> bool:
        ...

    async def does_default_constraint_exist_on_column(
        self, conn: Any, schema_name: Optional[str], table_name: str, column_name: str, tx: Any = None
    ) -> bool:
        ...

    async def create_default_constraint_if_not_exists(
        self, conn: Any, constraint: DefaultConstraint, tx: Any = None
    ) -> bool:
        ...

    async def get_default_constraint(
        self, conn: Any, schema_name: Optional[str], table_name: str, constraint_name: str, tx: Any = None
    ) -> Optional[DefaultConstraint]:
        ...

    async def get_default_constraint_on_column(
        self, conn: Any, schema_name: Optional[str], table_name: str, column_name: str, tx: Any = None
    ) -> Optional[DefaultConstraint]:
        ...

    async def get_default_constraints(
        self,
        conn: Any,
        schema_name: Optional[str],
        table_name: str,
        constraint_name_filter: Optional[str] = None,
        tx: Any = None,
    ) -> List[DefaultConstraint]:
        ...

    async def get_default_constraint_names(
        self,
        conn: Any,
        schema_name: Optional[str],
        table_name: str,
        constraint_name_filter: Optional[str] = None,
        tx: Any = None,
    ) -> List[str]:
        ...

    async def get_default_constraint_name_on_column(
        self, conn: Any, schema_name: Optional[str], table_name: str, column_name: str, tx: Any = None
    ) -> Optional[str]:
        ...

    async def drop_default_constraint_if_exists(
        self, conn: Any, schema_name: Optional[str], table_name: str, constraint_name: str, tx: Any = None
    ) -> bool:
        ...

    async def drop_default_constraint_on_column_if_exists(
        self, conn: Any, schema_name: Optional[str], table_name: str, column_name: str, tx: Any = None
    ) -> bool:
        ...


@runtime_checkable
class ViewMethods(Protocol):
    async def does_view_exist(
        self, conn: Any, schema_name: Optional[str], view_name: str, tx: Any = None
    ) -> bool:
        ...

    async def create_view_if_not_exists(self, conn: Any, view: View, tx: Any = None) -> bool:
        ...

    async def get_view(
        self, conn: Any, schema_name: Optional[str], view_name: str, tx: Any = None
    ) -> Optional[View]:
        ...

    async def get_views(
        self,
        conn: Any,
        schema_name: Optional[str],
        view_name_filter: Optional[str] = None,
        tx: Any = None,
    ) -> List[View]:
        ...

    async def get_view_names(
        self,
        conn: Any,
        schema_name: Optional[str],
        view_name_filter: Optional[str] = None,
        tx: Any = None,
    ) -> List[str]:
        ...

    async def drop_view_if_exists(
        self, conn: Any, schema_name: Optional[str], view_name: str, tx: Any = None
    ) -> bool:
        ...

    async def rename_view_if_exists(
        self,
        conn: Any,
        schema_name: Optional[str],
        view_name: str,
        new_view_name: str,
        tx: Any = None,
    ) -> bool:
        ...


@runtime_checkable
class DatabaseMethods(
    SchemaMethods,
    TableMethods,
    ColumnMethods,
    IndexMethods,
    PrimaryKeyConstraintMethods,
    ForeignKeyConstraintMethods,
    UniqueConstraintMethods,
    CheckConstraintMethods,
    DefaultConstraintMethods,
    ViewMethods,
    Protocol,
):
    """Every operation an engine implementation provides."""

    provider: ProviderType

    async def get_database_version(self, conn: Any, tx: Any = None) -> Tuple[int, ...]:
        ...

    def get_available_data_types(self, include_advanced: bool = False) -> List[DataTypeInfo]:
        ...

    async def discover_custom_data_types(self, conn: Any, tx: Any = None) -> List[DataTypeInfo]:
        ...

    def get_schema_qualified_identifier_name(
        self, schema_name: Optional[str], table_name: str
    ) -> str:
        ...

    def get_host_type_from_sql_type(self, sql_type: str) -> HostTypeDescriptor:
        ...

    def get_sql_type_from_host_type(self, descriptor: HostTypeDescriptor) -> str:
        ...

    async def supports_check_constraints(self, conn: Any, tx: Any = None) -> bool:
        ...

    async def supports_ordered_keys_in_constraints(self, conn: Any, tx: Any = None) -> bool:
        ...

    async def supports_default_constraints(self, conn: Any, tx: Any = None) -> bool:
        ...
