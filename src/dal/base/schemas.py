from typing import Any, List, Optional

from dal.base.ddl import DdlStatementsMixin


class SchemaMethodsMixin(DdlStatementsMixin):
    async def does_schema_exist(self, conn: Any, schema_name: str, tx: Any = None) -> bool:
        if not self.supports_schemas or not schema_name or not schema_name.strip():
            return False
        schema_name = self.normalize_schema_name(schema_name)
        names = await self.get_schema_names(conn, schema_name, tx=tx)
        return any(self._names_equal(name, schema_name) for name in names)

    async def create_schema_if_not_exists(
        self, conn: Any, schema_name: str, tx: Any = None
    ) -> bool:
        if not self.supports_schemas:
            return False
        self._require(schema_name, "schema_name")
        conn = self._conn(conn)
        if await self.does_schema_exist(conn, schema_name, tx=tx):
            return False
        await self._execute(conn, self._create_schema_sql(self.normalize_schema_name(schema_name)))
        return True

    async def get_schema_names(
        self, conn: Any, schema_name_filter: Optional[str] = None, tx: Any = None
    ) -> List[str]:
        if not self.supports_schemas:
            return []
        conn = self._conn(conn)
        params: list = []
        query = "SELECT SCHEMA_NAME AS schema_name FROM INFORMATION_SCHEMA.SCHEMATA WHERE 1 = 1"
        query += self._name_filter_clause("SCHEMA_NAME", schema_name_filter, params)
        query += " ORDER BY SCHEMA_NAME"
        rows = await conn.fetch(query, *params)
        return [row["schema_name"] for row in rows]

    async def drop_schema_if_exists(self, conn: Any, schema_name: str, tx: Any = None) -> bool:
        if not self.supports_schemas:
            return False
        self._require(schema_name, "schema_name")
        conn = self._conn(conn)
        if not await self.does_schema_exist(conn, schema_name, tx=tx):
            return False
        await self._drop_schema(conn, self.normalize_schema_name(schema_name), tx)
        return True

    async def _drop_schema(self, conn: Any, schema_name: str, tx: Any = None) -> None:
        await self._execute(conn, self._drop_schema_sql(schema_name))
