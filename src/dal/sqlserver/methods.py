"""SQL Server implementation of the DDL operations."""

import logging
import re
from typing import Any, List, Optional

from dal.base import DatabaseMethodsBase, owned_transaction
from dal.base.assembly import (
    apply_constraint_flags,
    build_foreign_keys,
    build_key_constraints,
    for_table,
    group_rows,
)
from dal.base.core import strip_outer_parentheses
from dal.sqlserver.catalog import SqlServerTypeCatalog
from dal.sqlserver.connection import SqlServerConnection
from dal.sqlserver.type_map import SqlServerTypeMap
from ddl_model.constraints import CheckConstraint, DefaultConstraint
from ddl_model.enums import ProviderType
from ddl_model.index import Index
from ddl_model.table import Table
from ddl_model.view import View

logger = logging.getLogger(__name__)

_VIEW_HEADER = re.compile(r"^.*?\sAS\s", re.IGNORECASE | re.DOTALL)

# sys.objects types removed before the schema itself, in dependency order.
_SCHEMA_OBJECT_DROP_ORDER = """
    CASE
        WHEN o.type = 'F' THEN 1
        WHEN o.type IN ('C', 'D', 'UQ') THEN 2
        WHEN o.type = 'SN' THEN 3
        WHEN o.type = 'SO' THEN 4
        WHEN o.type IN ('P', 'PC') THEN 5
        WHEN o.type IN ('IF', 'TF', 'FN', 'FS', 'FT') THEN 6
        WHEN o.type = 'TR' THEN 7
        WHEN o.type = 'V' THEN 8
        WHEN o.type = 'PK' THEN 9
        WHEN o.type = 'U' THEN 10
    END
"""


class SqlServerMethods(DatabaseMethodsBase):
    provider = ProviderType.SQLSERVER
    type_map = SqlServerTypeMap
    type_catalog = SqlServerTypeCatalog
    connection_class = SqlServerConnection

    quote_prefix = "["
    quote_suffix = "]"

    @property
    def default_schema(self) -> Optional[str]:
        return self.settings.sqlserver_default_schema

    async def _get_database_version_text(self, conn) -> Optional[str]:
        version = await conn.fetchval("SELECT SERVERPROPERTY('ProductVersion') AS version")
        return str(version) if version is not None else None

    def check_provider_specific_auto_increment(self, metadata: Any) -> bool:
        if isinstance(metadata, bool):
            return metadata
        if isinstance(metadata, int):
            return metadata == 1
        return False

    def _normalize_view_definition(self, definition: Optional[str]) -> str:
        definition = (definition or "").strip()
        match = _VIEW_HEADER.match(definition)
        if match is None:
            raise ValueError(f"Could not parse view definition: {definition}")
        return definition[match.end():].strip()

    # ------------------------------------------------------------------
    # Statement builders
    # ------------------------------------------------------------------

    def _rename_table_sql(
        self, schema_name: Optional[str], table_name: str, new_table_name: str
    ) -> str:
        qualified = self.get_schema_qualified_identifier_name(schema_name, table_name)
        return f"EXEC sp_rename '{qualified}', '{self.normalize_name(new_table_name)}'"

    async def _rename_column(
        self, conn: Any, table: Table, column_name: str, new_column_name: str, tx: Any = None
    ) -> None:
        qualified = self.get_schema_qualified_identifier_name(table.schema_name, table.table_name)
        await self._execute(
            conn,
            "EXEC sp_rename $1, $2, 'COLUMN'",
            f"{qualified}.{self.quote_name(column_name)}",
            new_column_name,
        )

    # ------------------------------------------------------------------
    # Schemas
    # ------------------------------------------------------------------

    async def _drop_schema(self, conn: Any, schema_name: str, tx: Any = None) -> None:
        """Drop every object in ``schema_name`` in dependency order, then the schema."""
        async with owned_transaction(conn, tx):
            object_statements = await conn.fetch(
                f"""
                SELECT CASE
                    WHEN o.type IN ('C', 'D', 'F', 'UQ', 'PK') THEN
                        'ALTER TABLE ' + QUOTENAME(SCHEMA_NAME(o.schema_id)) + '.'
                        + QUOTENAME(OBJECT_NAME(o.parent_object_id))
                        + ' DROP CONSTRAINT ' + QUOTENAME(o.name)
                    WHEN o.type = 'SN' THEN
                        'DROP SYNONYM ' + QUOTENAME(SCHEMA_NAME(o.schema_id)) + '.' + QUOTENAME(o.name)
                    WHEN o.type = 'SO' THEN
                        'DROP SEQUENCE ' + QUOTENAME(SCHEMA_NAME(o.schema_id)) + '.' + QUOTENAME(o.name)
                    WHEN o.type IN ('P', 'PC') THEN
                        'DROP PROCEDURE ' + QUOTENAME(SCHEMA_NAME(o.schema_id)) + '.' + QUOTENAME(o.name)
                    WHEN o.type IN ('IF', 'TF', 'FN', 'FS', 'FT') THEN
                        'DROP FUNCTION ' + QUOTENAME(SCHEMA_NAME(o.schema_id)) + '.' + QUOTENAME(o.name)
                    WHEN o.type = 'TR' THEN
                        'DROP TRIGGER ' + QUOTENAME(SCHEMA_NAME(o.schema_id)) + '.' + QUOTENAME(o.name)
                    WHEN o.type = 'V' THEN
                        'DROP VIEW ' + QUOTENAME(SCHEMA_NAME(o.schema_id)) + '.' + QUOTENAME(o.name)
                    WHEN o.type = 'U' THEN
                        'DROP TABLE ' + QUOTENAME(SCHEMA_NAME(o.schema_id)) + '.' + QUOTENAME(o.name)
                END AS drop_sql
                FROM sys.objects AS o
                WHERE o.schema_id = SCHEMA_ID($1)
                  AND o.type IN (
                      'F', 'C', 'D', 'UQ', 'SN', 'SO', 'P', 'PC',
                      'IF', 'TF', 'FN', 'FS', 'FT', 'TR', 'V', 'PK', 'U'
                  )
                ORDER BY {_SCHEMA_OBJECT_DROP_ORDER}
                """,
                schema_name,
            )
            type_statements = await conn.fetch(
                """
                SELECT 'DROP TYPE ' + QUOTENAME(SCHEMA_NAME(schema_id)) + '.' + QUOTENAME(name)
                    AS drop_sql
                FROM sys.types
                WHERE schema_id = SCHEMA_ID($1) AND is_user_defined = 1
                """,
                schema_name,
            )
            xml_statements = await conn.fetch(
                """
                SELECT 'DROP XML SCHEMA COLLECTION ' + QUOTENAME(SCHEMA_NAME(schema_id)) + '.'
                    + QUOTENAME(name) AS drop_sql
                FROM sys.xml_schema_collections
                WHERE schema_id = SCHEMA_ID($1)
                """,
                schema_name,
            )
            for row in [*object_statements, *type_statements, *xml_statements]:
                await self._execute(conn, row["drop_sql"])
            await self._execute(conn, self._drop_schema_sql(schema_name))
        logger.info("Dropped SQL Server schema %s", schema_name)

    # ------------------------------------------------------------------
    # Catalog reads
    # ------------------------------------------------------------------

    async def get_tables(
        self,
        conn: Any,
        schema_name: Optional[str],
        table_name_filter: Optional[str] = None,
        tx: Any = None,
    ) -> List[Table]:
        conn = self._conn(conn)
        schema_name = self.normalize_schema_name(schema_name)

        params: list = [schema_name]
        column_rows = await conn.fetch(
            """
            SELECT t.TABLE_NAME AS table_name,
                   c.COLUMN_NAME AS column_name,
                   CASE WHEN c.IS_NULLABLE = 'YES' THEN 1 ELSE 0 END AS is_nullable,
                   COLUMNPROPERTY(
                       OBJECT_ID(QUOTENAME(t.TABLE_SCHEMA) + '.' + QUOTENAME(t.TABLE_NAME)),
                       c.COLUMN_NAME,
                       'IsIdentity'
                   ) AS is_identity,
                   c.DATA_TYPE AS data_type,
                   c.CHARACTER_MAXIMUM_LENGTH AS max_length,
                   c.NUMERIC_PRECISION AS numeric_precision,
                   c.NUMERIC_SCALE AS numeric_scale
            FROM INFORMATION_SCHEMA.TABLES AS t
                INNER JOIN INFORMATION_SCHEMA.COLUMNS AS c
                    ON t.TABLE_SCHEMA = c.TABLE_SCHEMA AND t.TABLE_NAME = c.TABLE_NAME
            WHERE t.TABLE_TYPE = 'BASE TABLE' AND t.TABLE_SCHEMA = $1
            """
            + self._name_filter_clause("t.TABLE_NAME", table_name_filter, params)
            + " ORDER BY t.TABLE_NAME, c.ORDINAL_POSITION",
            *params,
        )
        if not column_rows:
            return []

        params = [schema_name]
        key_rows = await conn.fetch(
            """
            SELECT t.name AS table_name,
                   i.name AS constraint_name,
                   c.name AS column_name,
                   ic.is_descending_key AS is_descending,
                   i.is_unique AS is_unique,
                   i.is_primary_key AS is_primary_key,
                   i.is_unique_constraint AS is_unique_constraint
            FROM sys.indexes AS i
                INNER JOIN sys.index_columns AS ic
                    ON i.object_id = ic.object_id AND i.index_id = ic.index_id
                INNER JOIN sys.tables AS t ON t.object_id = i.object_id
                INNER JOIN sys.columns AS c
                    ON c.object_id = t.object_id AND c.column_id = ic.column_id
            WHERE t.is_ms_shipped = 0 AND ic.key_ordinal > 0 AND SCHEMA_NAME(t.schema_id) = $1
            """
            + self._name_filter_clause("t.name", table_name_filter, params)
            + " ORDER BY t.name, i.name, ic.key_ordinal",
            *params,
        )

        params = [schema_name]
        foreign_key_rows = await conn.fetch(
            """
            SELECT t.name AS table_name,
                   fk.name AS constraint_name,
                   c.name AS column_name,
                   rt.name AS referenced_table_name,
                   rc.name AS referenced_column_name,
                   fk.delete_referential_action_desc AS delete_rule,
                   fk.update_referential_action_desc AS update_rule
            FROM sys.foreign_keys AS fk
                INNER JOIN sys.foreign_key_columns AS fkc
                    ON fkc.constraint_object_id = fk.object_id
                INNER JOIN sys.tables AS t ON t.object_id = fk.parent_object_id
                INNER JOIN sys.columns AS c
                    ON c.object_id = fkc.parent_object_id AND c.column_id = fkc.parent_column_id
                INNER JOIN sys.tables AS rt ON rt.object_id = fk.referenced_object_id
                INNER JOIN sys.columns AS rc
                    ON rc.object_id = fkc.referenced_object_id
                    AND rc.column_id = fkc.referenced_column_id
            WHERE SCHEMA_NAME(t.schema_id) = $1
            """
            + self._name_filter_clause("t.name", table_name_filter, params)
            + " ORDER BY t.name, fk.name, fkc.constraint_column_id",
            *params,
        )

        params = [schema_name]
        check_rows = await conn.fetch(
            """
            SELECT t.name AS table_name,
                   col.name AS column_name,
                   con.name AS constraint_name,
                   con.definition AS expression
            FROM sys.check_constraints AS con
                INNER JOIN sys.objects AS t ON con.parent_object_id = t.object_id
                LEFT OUTER JOIN sys.all_columns AS col
                    ON con.parent_column_id = col.column_id
                    AND con.parent_object_id = col.object_id
            WHERE con.definition IS NOT NULL AND SCHEMA_NAME(t.schema_id) = $1
            """
            + self._name_filter_clause("t.name", table_name_filter, params)
            + " ORDER BY t.name, con.name",
            *params,
        )

        params = [schema_name]
        default_rows = await conn.fetch(
            """
            SELECT t.name AS table_name,
                   col.name AS column_name,
                   con.name AS constraint_name,
                   con.definition AS expression
            FROM sys.default_constraints AS con
                INNER JOIN sys.objects AS t ON con.parent_object_id = t.object_id
                INNER JOIN sys.all_columns AS col
                    ON con.parent_column_id = col.column_id
                    AND con.parent_object_id = col.object_id
            WHERE SCHEMA_NAME(t.schema_id) = $1
            """
            + self._name_filter_clause("t.name", table_name_filter, params)
            + " ORDER BY t.name, con.name",
            *params,
        )

        primary_keys, unique_constraints, indexes = {}, [], []
        for (table_name,), rows in group_rows(key_rows, "table_name").items():
            pk, uniques, table_indexes = build_key_constraints(rows, schema_name)
            primary_keys[table_name.lower()] = pk
            unique_constraints.extend(uniques)
            indexes.extend(table_indexes)
        foreign_keys = build_foreign_keys(foreign_key_rows, schema_name)
        checks = [
            CheckConstraint(
                schema_name=schema_name,
                table_name=row["table_name"],
                column_name=row["column_name"],
                constraint_name=row["constraint_name"],
                expression=strip_outer_parentheses(row["expression"]),
            )
            for row in check_rows
        ]
        defaults = [
            DefaultConstraint(
                schema_name=schema_name,
                table_name=row["table_name"],
                column_name=row["column_name"],
                constraint_name=row["constraint_name"],
                expression=strip_outer_parentheses(row["expression"]),
            )
            for row in default_rows
        ]

        tables = []
        for (table_name,), rows in group_rows(column_rows, "table_name").items():
            columns = [
                self._catalog_column(
                    row["column_name"],
                    self._catalog_type_text(
                        row["data_type"],
                        row["max_length"],
                        row["numeric_precision"],
                        row["numeric_scale"],
                    ),
                    row["is_nullable"],
                    length=row["max_length"],
                )
                for row in rows
            ]
            table = Table(
                schema_name=schema_name,
                table_name=table_name,
                columns=columns,
                primary_key_constraint=primary_keys.get(table_name.lower()),
                check_constraints=for_table(checks, table_name),
                default_constraints=for_table(defaults, table_name),
                unique_constraints=for_table(unique_constraints, table_name),
                foreign_key_constraints=for_table(foreign_keys, table_name),
                indexes=for_table(indexes, table_name),
            )
            apply_constraint_flags(table)
            for column, row in zip(table.columns, rows):
                column.is_auto_increment = self.determine_is_auto_increment(
                    column, row["is_identity"], row["data_type"]
                )
            tables.append(table)
        return tables

    async def _get_indexes(
        self,
        conn: Any,
        schema_name: Optional[str],
        table_name_filter: Optional[str] = None,
        index_name_filter: Optional[str] = None,
        tx: Any = None,
    ) -> List[Index]:
        conn = self._conn(conn)
        schema_name = self.normalize_schema_name(schema_name)
        params: list = [schema_name]
        query = """
            SELECT t.name AS table_name,
                   i.name AS constraint_name,
                   c.name AS column_name,
                   ic.is_descending_key AS is_descending,
                   i.is_unique AS is_unique
            FROM sys.indexes AS i
                INNER JOIN sys.tables AS t ON i.object_id = t.object_id
                INNER JOIN sys.index_columns AS ic
                    ON i.object_id = ic.object_id AND i.index_id = ic.index_id
                INNER JOIN sys.columns AS c
                    ON ic.object_id = c.object_id AND ic.column_id = c.column_id
            WHERE i.is_primary_key = 0
              AND i.is_unique_constraint = 0
              AND t.is_ms_shipped = 0
              AND ic.key_ordinal > 0
              AND SCHEMA_NAME(t.schema_id) = $1
        """
        query += self._name_filter_clause("t.name", table_name_filter, params)
        query += self._name_filter_clause("i.name", index_name_filter, params)
        query += " ORDER BY t.name, i.name, ic.key_ordinal"
        rows = await conn.fetch(query, *params)
        _, _, indexes = build_key_constraints(rows, schema_name)
        return indexes

    async def get_views(
        self,
        conn: Any,
        schema_name: Optional[str],
        view_name_filter: Optional[str] = None,
        tx: Any = None,
    ) -> List[View]:
        conn = self._conn(conn)
        schema_name = self.normalize_schema_name(schema_name)
        params: list = [schema_name]
        query = """
            SELECT SCHEMA_NAME(v.schema_id) AS schema_name,
                   v.name AS view_name,
                   m.definition AS definition
            FROM sys.objects AS v
                INNER JOIN sys.sql_modules AS m ON v.object_id = m.object_id
            WHERE v.type = 'V'
              AND v.is_ms_shipped = 0
              AND SCHEMA_NAME(v.schema_id) = $1
        """
        query += self._name_filter_clause("v.name", view_name_filter, params)
        query += " ORDER BY v.name"
        rows = await conn.fetch(query, *params)
        return [
            View(
                schema_name=row["schema_name"],
                view_name=row["view_name"],
                definition=self._normalize_view_definition(row["definition"]),
            )
            for row in rows
        ]
