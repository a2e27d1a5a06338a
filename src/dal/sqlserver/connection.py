from typing import Any, Dict, List, Optional

from common.config.settings import DdlSettings
from dal.connection import EngineConnection
from dal.sqlserver.param_translation import translate_postgres_params_to_sqlserver
from ddl_model.enums import ProviderType


class SqlServerConnection(EngineConnection):
    """Adapter providing asyncpg-like helpers over an aioodbc connection."""

    provider = ProviderType.SQLSERVER

    def __init__(self, conn: Any, settings: Optional[DdlSettings] = None) -> None:
        super().__init__(conn, settings)
        self._saved_autocommit: List[bool] = []

    async def _run_execute(self, sql: str, params: tuple) -> int:
        sql, bound_params = translate_postgres_params_to_sqlserver(sql, params)
        async with self._conn.cursor() as cursor:
            await cursor.execute(sql, *bound_params)
            return cursor.rowcount

    async def _run_fetch(self, sql: str, params: tuple) -> List[Dict[str, Any]]:
        sql, bound_params = translate_postgres_params_to_sqlserver(sql, params)
        async with self._conn.cursor() as cursor:
            await cursor.execute(sql, *bound_params)
            if cursor.description is None:
                return []
            names = [column[0] for column in cursor.description]
            rows = await cursor.fetchall()
            return [dict(zip(names, tuple(row))) for row in rows]

    async def begin(self) -> None:
        """Leave autocommit so the following statements share a transaction.

        ODBC has no explicit BEGIN. A connection already in manual-commit mode
        is inside the caller's transaction; it is joined and left for the
        caller to commit or roll back.
        """
        prior = bool(self._conn.autocommit)
        self._saved_autocommit.append(prior)
        if prior:
            self._conn.autocommit = False

    async def commit(self) -> None:
        prior = self._saved_autocommit.pop()
        if not prior:
            return
        try:
            await self._conn.commit()
        finally:
            self._conn.autocommit = prior

    async def rollback(self) -> None:
        prior = self._saved_autocommit.pop()
        if not prior:
            return
        try:
            await self._conn.rollback()
        finally:
            self._conn.autocommit = prior
