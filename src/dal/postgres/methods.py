"""PostgreSQL implementation of the DDL operations.

Catalog reads go through ``pg_catalog`` rather than ``information_schema``;
the latter is far slower on databases with many relations.
"""

import logging
from typing import Any, List, Optional

from dal.base import DatabaseMethodsBase, DdlContext
from dal.base.assembly import (
    apply_constraint_flags,
    build_foreign_keys,
    build_key_constraints,
    for_table,
    group_rows,
)
from dal.base.core import strip_outer_parentheses
from dal.postgres.catalog import PostgresTypeCatalog
from dal.postgres.connection import PostgresConnection
from dal.postgres.type_map import PostgresTypeMap
from ddl_model import naming
from ddl_model.column import Column
from ddl_model.constraints import CheckConstraint, DefaultConstraint
from ddl_model.data_types import DataTypeCategory, DataTypeInfo
from ddl_model.enums import ProviderType
from ddl_model.index import Index
from ddl_model.table import Table

logger = logging.getLogger(__name__)

_SERIAL_TYPES = {
    "smallint": "smallserial",
    "int2": "smallserial",
    "integer": "serial",
    "int": "serial",
    "int4": "serial",
    "bigint": "bigserial",
    "int8": "bigserial",
}

# Relations owned by PostGIS.
_EXTENSION_TABLES = (
    "'spatial_ref_sys', 'geometry_columns', 'geography_columns', "
    "'raster_columns', 'raster_overviews'"
)

_USER_NAMESPACES = "n.nspname NOT LIKE 'pg\\_%' AND n.nspname <> 'information_schema'"

_REFERENTIAL_ACTION = """
    CASE {column}
        WHEN 'a' THEN 'NO ACTION'
        WHEN 'r' THEN 'RESTRICT'
        WHEN 'c' THEN 'CASCADE'
        WHEN 'n' THEN 'SET NULL'
        WHEN 'd' THEN 'SET DEFAULT'
    END
"""


class PostgresMethods(DatabaseMethodsBase):
    provider = ProviderType.POSTGRES
    type_map = PostgresTypeMap
    type_catalog = PostgresTypeCatalog
    connection_class = PostgresConnection

    # Auto-increment columns are declared with a serial type instead.
    auto_increment_suffix = ""

    @property
    def default_schema(self) -> Optional[str]:
        return self.settings.postgres_default_schema

    def normalize_name(self, name: str) -> str:
        return super().normalize_name(name).lower()

    async def _get_database_version_text(self, conn) -> Optional[str]:
        # e.g. "PostgreSQL 15.7 (Debian 15.7-1.pgdg110+1) on x86_64-pc-linux-gnu, ..."
        version = await conn.fetchval("SELECT VERSION() AS version")
        return str(version) if version is not None else None

    async def supports_ordered_keys_in_constraints(self, conn: Any, tx: Any = None) -> bool:
        return False

    def check_provider_specific_auto_increment(self, metadata: Any) -> bool:
        if isinstance(metadata, bool):
            return metadata
        if isinstance(metadata, int):
            return metadata == 1
        if isinstance(metadata, str):
            return bool(metadata.strip())
        return False

    async def discover_custom_data_types(self, conn: Any, tx: Any = None) -> List[DataTypeInfo]:
        """List domains, enums and composite types defined in the database."""
        conn = self._conn(conn)
        custom_types: List[DataTypeInfo] = []

        domains = await conn.fetch(
            """
            SELECT domain_name,
                   data_type,
                   character_maximum_length,
                   numeric_precision,
                   numeric_scale
            FROM information_schema.domains
            WHERE domain_schema NOT IN ('pg_catalog', 'information_schema')
            ORDER BY domain_name
            """
        )
        for row in domains:
            custom_types.append(
                DataTypeInfo(
                    data_type=row["domain_name"],
                    category=DataTypeCategory.CUSTOM,
                    is_custom=True,
                    description=f"Domain based on {row['data_type']}",
                    supports_length=row["character_maximum_length"] is not None,
                    max_length=row["character_maximum_length"],
                    supports_precision=row["numeric_precision"] is not None,
                    max_precision=row["numeric_precision"],
                    supports_scale=row["numeric_scale"] is not None,
                    max_scale=row["numeric_scale"],
                )
            )

        enums = await conn.fetch(
            """
            SELECT t.typname AS enum_name,
                   array_agg(e.enumlabel ORDER BY e.enumsortorder) AS enum_values
            FROM pg_catalog.pg_type AS t
                JOIN pg_catalog.pg_enum AS e ON t.oid = e.enumtypid
            WHERE t.typtype = 'e'
            GROUP BY t.typname
            ORDER BY t.typname
            """
        )
        for row in enums:
            values = list(row["enum_values"] or [])
            custom_types.append(
                DataTypeInfo(
                    data_type=row["enum_name"],
                    category=DataTypeCategory.CUSTOM,
                    is_custom=True,
                    description=f"Enum with values: {', '.join(values)}",
                    examples=values,
                )
            )

        composites = await conn.fetch(
            """
            SELECT t.typname AS type_name,
                   array_agg(a.attname ORDER BY a.attnum) AS column_names,
                   array_agg(pg_catalog.format_type(a.atttypid, a.atttypmod) ORDER BY a.attnum)
                       AS column_types
            FROM pg_catalog.pg_type AS t
                JOIN pg_catalog.pg_class AS c ON c.oid = t.typrelid
                JOIN pg_catalog.pg_attribute AS a ON a.attrelid = c.oid
            WHERE t.typtype = 'c'
              AND c.relkind = 'c'
              AND a.attnum > 0
              AND NOT a.attisdropped
            GROUP BY t.typname
            ORDER BY t.typname
            """
        )
        for row in composites:
            members = ", ".join(
                f"{name}: {type_name}"
                for name, type_name in zip(row["column_names"] or [], row["column_types"] or [])
            )
            custom_types.append(
                DataTypeInfo(
                    data_type=row["type_name"],
                    category=DataTypeCategory.CUSTOM,
                    is_custom=True,
                    description=f"Composite type with columns: {members}",
                )
            )

        logger.debug("Discovered %d custom PostgreSQL types", len(custom_types))
        return custom_types

    # ------------------------------------------------------------------
    # Statement builders
    # ------------------------------------------------------------------

    def _column_type_sql(self, column: Column, ctx: DdlContext) -> str:
        data_type = super()._column_type_sql(column, ctx)
        if column.is_auto_increment:
            return _SERIAL_TYPES.get(data_type.strip().lower(), data_type)
        return data_type

    def _inline_default_sql(self, constraint_name: str, expression: str) -> str:
        # Default values are not named constraints in PostgreSQL.
        self._validate_default(expression, "default_expression")
        return f"DEFAULT {self._format_default(expression)}"

    def _add_default_constraint_sql(
        self,
        schema_name: Optional[str],
        table_name: str,
        column_name: str,
        constraint_name: str,
        expression: str,
    ) -> str:
        self._validate_default(expression, "expression")
        return (
            f"ALTER TABLE {self._qualified(schema_name, table_name)} "
            f"ALTER COLUMN {self.quote_name(column_name)} "
            f"SET DEFAULT {self._format_default(expression)}"
        )

    def _drop_default_constraint_sql(
        self, schema_name: Optional[str], table_name: str, column_name: str, constraint_name: str
    ) -> str:
        return (
            f"ALTER TABLE {self._qualified(schema_name, table_name)} "
            f"ALTER COLUMN {self.quote_name(column_name)} DROP DEFAULT"
        )

    def _drop_index_sql(self, schema_name: Optional[str], table_name: str, index_name: str) -> str:
        return f"DROP INDEX {self._qualified(schema_name, index_name)}"

    def _drop_schema_sql(self, schema_name: str) -> str:
        return f"DROP SCHEMA {self.quote_name(schema_name)} CASCADE"

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
            f"""
            SELECT t.relname AS table_name,
                   a.attname AS column_name,
                   pg_get_expr(d.adbin, d.adrelid) AS column_default,
                   CASE WHEN a.attnotnull THEN 0 ELSE 1 END AS is_nullable,
                   a.attidentity AS identity_kind,
                   ty.typname AS data_type,
                   format_type(a.atttypid, a.atttypmod) AS data_type_ext
            FROM pg_catalog.pg_attribute AS a
                JOIN pg_catalog.pg_type AS ty ON a.atttypid = ty.oid
                JOIN pg_catalog.pg_class AS t
                    ON a.attrelid = t.oid AND t.relkind = 'r' AND t.relpersistence = 'p'
                JOIN pg_catalog.pg_namespace AS n ON t.relnamespace = n.oid
                LEFT JOIN pg_catalog.pg_attrdef AS d
                    ON a.attrelid = d.adrelid AND a.attnum = d.adnum
            WHERE {_USER_NAMESPACES}
              AND a.attnum > 0
              AND NOT a.attisdropped
              AND lower(n.nspname) = $1
              AND t.relname NOT IN ({_EXTENSION_TABLES})
            """
            + self._name_filter_clause("t.relname", table_name_filter, params)
            + " ORDER BY t.relname, a.attnum",
            *params,
        )
        if not column_rows:
            return []

        params = [schema_name]
        key_rows = await conn.fetch(
            f"""
            SELECT t.relname AS table_name,
                   r.conname AS constraint_name,
                   a.attname AS column_name,
                   0 AS is_descending,
                   1 AS is_unique,
                   CASE WHEN r.contype = 'p' THEN 1 ELSE 0 END AS is_primary_key,
                   CASE WHEN r.contype = 'u' THEN 1 ELSE 0 END AS is_unique_constraint
            FROM pg_catalog.pg_constraint AS r
                JOIN pg_catalog.pg_namespace AS n ON r.connamespace = n.oid
                JOIN pg_catalog.pg_class AS t ON r.conrelid = t.oid
                CROSS JOIN LATERAL unnest(r.conkey) WITH ORDINALITY AS k(attnum, position)
                JOIN pg_catalog.pg_attribute AS a ON a.attrelid = t.oid AND a.attnum = k.attnum
            WHERE {_USER_NAMESPACES}
              AND r.contype IN ('p', 'u')
              AND lower(n.nspname) = $1
            """
            + self._name_filter_clause("t.relname", table_name_filter, params)
            + " ORDER BY t.relname, r.conname, k.position",
            *params,
        )

        params = [schema_name]
        foreign_key_rows = await conn.fetch(
            f"""
            SELECT t.relname AS table_name,
                   r.conname AS constraint_name,
                   a.attname AS column_name,
                   rt.relname AS referenced_table_name,
                   ra.attname AS referenced_column_name,
                   {_REFERENTIAL_ACTION.format(column="r.confdeltype")} AS delete_rule,
                   {_REFERENTIAL_ACTION.format(column="r.confupdtype")} AS update_rule
            FROM pg_catalog.pg_constraint AS r
                JOIN pg_catalog.pg_namespace AS n ON r.connamespace = n.oid
                JOIN pg_catalog.pg_class AS t ON r.conrelid = t.oid
                JOIN pg_catalog.pg_class AS rt ON r.confrelid = rt.oid
                CROSS JOIN LATERAL unnest(r.conkey, r.confkey)
                    WITH ORDINALITY AS k(attnum, referenced_attnum, position)
                JOIN pg_catalog.pg_attribute AS a ON a.attrelid = t.oid AND a.attnum = k.attnum
                JOIN pg_catalog.pg_attribute AS ra
                    ON ra.attrelid = rt.oid AND ra.attnum = k.referenced_attnum
            WHERE {_USER_NAMESPACES}
              AND r.contype = 'f'
              AND lower(n.nspname) = $1
            """
            + self._name_filter_clause("t.relname", table_name_filter, params)
            + " ORDER BY t.relname, r.conname, k.position",
            *params,
        )

        params = [schema_name]
        check_rows = await conn.fetch(
            f"""
            SELECT t.relname AS table_name,
                   r.conname AS constraint_name,
                   pg_catalog.pg_get_constraintdef(r.oid, true) AS definition,
                   CASE WHEN array_length(r.conkey, 1) = 1 THEN (
                       SELECT a.attname
                       FROM pg_catalog.pg_attribute AS a
                       WHERE a.attrelid = t.oid AND a.attnum = r.conkey[1]
                   ) END AS column_name
            FROM pg_catalog.pg_constraint AS r
                JOIN pg_catalog.pg_namespace AS n ON r.connamespace = n.oid
                JOIN pg_catalog.pg_class AS t ON r.conrelid = t.oid
            WHERE {_USER_NAMESPACES}
              AND r.contype = 'c'
              AND lower(n.nspname) = $1
            """
            + self._name_filter_clause("t.relname", table_name_filter, params)
            + " ORDER BY t.relname, r.conname",
            *params,
        )

        primary_keys, unique_constraints = {}, []
        for (table_name,), rows in group_rows(key_rows, "table_name").items():
            pk, uniques, _ = build_key_constraints(rows, schema_name)
            primary_keys[table_name.lower()] = pk
            unique_constraints.extend(uniques)
        foreign_keys = build_foreign_keys(foreign_key_rows, schema_name)
        checks = [
            CheckConstraint(
                schema_name=schema_name,
                table_name=row["table_name"],
                column_name=row["column_name"],
                constraint_name=row["constraint_name"],
                expression=_check_expression(row["definition"]),
            )
            for row in check_rows
            if (row["definition"] or "").upper().startswith("CHECK (")
        ]
        # Serial columns carry a nextval() default owned by their sequence.
        defaults = [
            DefaultConstraint(
                schema_name=schema_name,
                table_name=row["table_name"],
                column_name=row["column_name"],
                constraint_name=naming.default_constraint_name(
                    row["table_name"], row["column_name"]
                ),
                expression=row["column_default"],
            )
            for row in column_rows
            if row["column_default"]
            and row["column_default"].strip()
            and not _is_sequence_default(row["column_default"])
        ]
        indexes = await self._get_indexes(conn, schema_name, table_name_filter, tx=tx)

        tables = []
        for (table_name,), rows in group_rows(column_rows, "table_name").items():
            columns = []
            for row in rows:
                data_type = _column_type_text(row["data_type"], row["data_type_ext"])
                column = self._catalog_column(row["column_name"], data_type, row["is_nullable"])
                if column.length is None and row["data_type"] == "text":
                    column.length = -1
                columns.append(column)
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
                is_identity = bool((row["identity_kind"] or "").strip()) or _is_sequence_default(
                    row["column_default"]
                )
                column.is_auto_increment = self.determine_is_auto_increment(
                    column, is_identity, row["data_type_ext"] or row["data_type"]
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
        # Primary key and unique constraints own an index of the same name.
        query = f"""
            SELECT t.relname AS table_name,
                   ic.relname AS constraint_name,
                   a.attname AS column_name,
                   CASE WHEN (i.indoption[(k.position - 1)::int] & 1) = 1 THEN 1 ELSE 0 END
                       AS is_descending,
                   CASE WHEN i.indisunique THEN 1 ELSE 0 END AS is_unique
            FROM pg_catalog.pg_index AS i
                JOIN pg_catalog.pg_class AS t ON t.oid = i.indrelid
                JOIN pg_catalog.pg_namespace AS n ON t.relnamespace = n.oid
                JOIN pg_catalog.pg_class AS ic ON ic.oid = i.indexrelid
                CROSS JOIN LATERAL unnest(i.indkey) WITH ORDINALITY AS k(attnum, position)
                JOIN pg_catalog.pg_attribute AS a ON a.attrelid = t.oid AND a.attnum = k.attnum
            WHERE {_USER_NAMESPACES}
              AND i.indislive
              AND NOT i.indisprimary
              AND lower(n.nspname) = $1
              AND NOT EXISTS (
                  SELECT 1
                  FROM pg_catalog.pg_constraint AS x
                  WHERE x.conrelid = t.oid AND x.conname = ic.relname
              )
        """
        query += self._name_filter_clause("t.relname", table_name_filter, params)
        query += self._name_filter_clause("ic.relname", index_name_filter, params)
        query += " ORDER BY t.relname, ic.relname, k.position"
        rows = await conn.fetch(query, *params)
        _, _, indexes = build_key_constraints(rows, schema_name)
        return indexes


def _is_sequence_default(expression: Optional[str]) -> bool:
    return bool(expression) and expression.strip().lower().startswith("nextval(")


def _check_expression(definition: str) -> str:
    # pg_get_constraintdef renders "CHECK ((price > 0))".
    return strip_outer_parentheses(definition.strip()[len("CHECK "):])


def _column_type_text(data_type: str, data_type_ext: Optional[str]) -> str:
    """Prefer ``format_type`` output such as ``character varying(50)`` when it is richer."""
    if data_type_ext and len(data_type) < len(data_type_ext):
        return data_type_ext
    return data_type
