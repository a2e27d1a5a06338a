from typing import Any, List, Optional

from dal.base.ddl import DdlStatementsMixin
from ddl_model.index import Index


class IndexMethodsMixin(DdlStatementsMixin):
    async def _get_indexes(
        self,
        conn: Any,
        schema_name: Optional[str],
        table_name_filter: Optional[str] = None,
        index_name_filter: Optional[str] = None,
        tx: Any = None,
    ) -> List[Index]:
        raise NotImplementedError

    async def does_index_exist(
        self, conn: Any, schema_name: Optional[str], table_name: str, index_name: str, tx: Any = None
    ) -> bool:
        return await self.get_index(conn, schema_name, table_name, index_name, tx=tx) is not None

    async def does_index_exist_on_column(
        self, conn: Any, schema_name: Optional[str], table_name: str, column_name: str, tx: Any = None
    ) -> bool:
        return bool(
            await self.get_indexes_on_column(conn, schema_name, table_name, column_name, tx=tx)
        )

    async def create_index_if_not_exists(self, conn: Any, index: Index, tx: Any = None) -> bool:
        if index is None:
            raise ValueError("index is required.")
        self._require(index.table_name, "table_name")
        self._require(index.index_name, "index_name")
        if not index.columns:
            raise ValueError(f"Index '{index.index_name}' must cover at least one column.")
        conn = self._conn(conn)
        if await self.does_index_exist(
            conn, index.schema_name, index.table_name, index.index_name, tx=tx
        ):
            return False
        await self._execute(
            conn,
            self._create_index_sql(
                self.normalize_schema_name(index.schema_name),
                self.normalize_name(index.table_name),
                self.normalize_name(index.index_name),
                index.columns,
                index.is_unique,
            ),
        )
        return True

    async def get_index(
        self, conn: Any, schema_name: Optional[str], table_name: str, index_name: str, tx: Any = None
    ) -> Optional[Index]:
        if not index_name or not index_name.strip():
            return None
        index_name = self.normalize_name(index_name)
        indexes = await self.get_indexes(conn, schema_name, table_name, index_name, tx=tx)
        return next((ix for ix in indexes if self._names_equal(ix.index_name, index_name)), None)

    async def get_indexes(
        self,
        conn: Any,
        schema_name: Optional[str],
        table_name: str,
        index_name_filter: Optional[str] = None,
        tx: Any = None,
    ) -> List[Index]:
        self._require(table_name, "table_name")
        conn = self._conn(conn)
        table_name = self.normalize_name(table_name)
        indexes = await self._get_indexes(
            conn, schema_name, table_name, index_name_filter, tx=tx
        )
        return [ix for ix in indexes if self._names_equal(ix.table_name, table_name)]

    async def get_index_names(
        self,
        conn: Any,
        schema_name: Optional[str],
        table_name: str,
        index_name_filter: Optional[str] = None,
        tx: Any = None,
    ) -> List[str]:
        indexes = await self.get_indexes(conn, schema_name, table_name, index_name_filter, tx=tx)
        return [ix.index_name for ix in indexes]

    async def get_indexes_on_column(
        self, conn: Any, schema_name: Optional[str], table_name: str, column_name: str, tx: Any = None
    ) -> List[Index]:
        self._require(column_name, "column_name")
        indexes = await self.get_indexes(conn, schema_name, table_name, tx=tx)
        return [ix for ix in indexes if ix.covers_column(column_name)]

    async def get_index_names_on_column(
        self, conn: Any, schema_name: Optional[str], table_name: str, column_name: str, tx: Any = None
    ) -> List[str]:
        indexes = await self.get_indexes_on_column(
            conn, schema_name, table_name, column_name, tx=tx
        )
        return [ix.index_name for ix in indexes]

    async def drop_index_if_exists(
        self, conn: Any, schema_name: Optional[str], table_name: str, index_name: str, tx: Any = None
    ) -> bool:
        conn = self._conn(conn)
        index = await self.get_index(conn, schema_name, table_name, index_name, tx=tx)
        if index is None:
            return False
        await self._execute(
            conn,
            self._drop_index_sql(
                self.normalize_schema_name(schema_name), index.table_name, index.index_name
            ),
        )
        return True

    async def drop_indexes_on_column_if_exists(
        self, conn: Any, schema_name: Optional[str], table_name: str, column_name: str, tx: Any = None
    ) -> bool:
        conn = self._conn(conn)
        indexes = await self.get_indexes_on_column(
            conn, schema_name, table_name, column_name, tx=tx
        )
        for index in indexes:
            await self._execute(
                conn,
                self._drop_index_sql(
                    self.normalize_schema_name(schema_name), index.table_name, index.index_name
                ),
            )
        return bool(indexes)
