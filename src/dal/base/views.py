from typing import Any, List, Optional

from dal.base.ddl import DdlStatementsMixin
from ddl_model.view import View


class ViewMethodsMixin(DdlStatementsMixin):
    def _normalize_view_definition(self, definition: Optional[str]) -> str:
        return (definition or "").strip()

    async def does_view_exist(
        self, conn: Any, schema_name: Optional[str], view_name: str, tx: Any = None
    ) -> bool:
        if not view_name or not view_name.strip():
            return False
        view_name = self.normalize_name(view_name)
        names = await self.get_view_names(conn, schema_name, view_name, tx=tx)
        return any(self._names_equal(name, view_name) for name in names)

    async def create_view_if_not_exists(self, conn: Any, view: View, tx: Any = None) -> bool:
        if view is None:
            raise ValueError("view is required.")
        self._require(view.view_name, "view_name")
        self._validate_view(view.definition, "definition")
        conn = self._conn(conn)
        if await self.does_view_exist(conn, view.schema_name, view.view_name, tx=tx):
            return False
        await self._execute(
            conn,
            self._create_view_sql(
                self.normalize_schema_name(view.schema_name),
                self.normalize_name(view.view_name),
                view.definition.strip(),
            ),
        )
        return True

    async def get_view(
        self, conn: Any, schema_name: Optional[str], view_name: str, tx: Any = None
    ) -> Optional[View]:
        if not view_name or not view_name.strip():
            return None
        view_name = self.normalize_name(view_name)
        views = await self.get_views(conn, schema_name, view_name, tx=tx)
        return next((v for v in views if self._names_equal(v.view_name, view_name)), None)

    async def get_views(
        self,
        conn: Any,
        schema_name: Optional[str],
        view_name_filter: Optional[str] = None,
        tx: Any = None,
    ) -> List[View]:
        conn = self._conn(conn)
        params: list = []
        query = """
            SELECT TABLE_SCHEMA AS schema_name,
                   TABLE_NAME AS view_name,
                   VIEW_DEFINITION AS definition
            FROM INFORMATION_SCHEMA.VIEWS
            WHERE 1 = 1
        """
        query += self._schema_clause(
            "TABLE_SCHEMA", self.normalize_schema_name(schema_name), params
        )
        query += self._name_filter_clause("TABLE_NAME", view_name_filter, params)
        query += " ORDER BY TABLE_NAME"
        rows = await conn.fetch(query, *params)
        return [
            View(
                schema_name=row["schema_name"] if self.supports_schemas else None,
                view_name=row["view_name"],
                definition=self._normalize_view_definition(row["definition"]),
            )
            for row in rows
        ]

    async def get_view_names(
        self,
        conn: Any,
        schema_name: Optional[str],
        view_name_filter: Optional[str] = None,
        tx: Any = None,
    ) -> List[str]:
        views = await self.get_views(conn, schema_name, view_name_filter, tx=tx)
        return [v.view_name for v in views]

    async def drop_view_if_exists(
        self, conn: Any, schema_name: Optional[str], view_name: str, tx: Any = None
    ) -> bool:
        conn = self._conn(conn)
        if not await self.does_view_exist(conn, schema_name, view_name, tx=tx):
            return False
        await self._execute(
            conn,
            self._drop_view_sql(
                self.normalize_schema_name(schema_name), self.normalize_name(view_name)
            ),
        )
        return True

    async def rename_view_if_exists(
        self,
        conn: Any,
        schema_name: Optional[str],
        view_name: str,
        new_view_name: str,
        tx: Any = None,
    ) -> bool:
        """Rename a view by dropping it and recreating its definition under the new name."""
        self._require(new_view_name, "new_view_name")
        conn = self._conn(conn)
        view = await self.get_view(conn, schema_name, view_name, tx=tx)
        if view is None or not view.definition.strip():
            return False
        if await self.does_view_exist(conn, schema_name, new_view_name, tx=tx):
            return False
        await self.drop_view_if_exists(conn, schema_name, view.view_name, tx=tx)
        await self.create_view_if_not_exists(
            conn,
            View(schema_name=schema_name, view_name=new_view_name, definition=view.definition),
            tx=tx,
        )
        return True
