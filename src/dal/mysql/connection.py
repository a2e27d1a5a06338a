from typing import Any, Dict, List

import aiomysql

from dal.connection import EngineConnection
from dal.mysql.param_translation import translate_postgres_params_to_mysql
from ddl_model.enums import ProviderType


class MySqlConnection(EngineConnection):
    """Adapter providing asyncpg-like helpers over aiomysql."""

    provider = ProviderType.MYSQL

    _conn: aiomysql.Connection

    async def _run_execute(self, sql: str, params: tuple) -> str:
        sql, bound_params = translate_postgres_params_to_mysql(sql, params)
        async with self._conn.cursor() as cursor:
            await cursor.execute(sql, bound_params or None)
            return _format_execute_status(sql, cursor.rowcount)

    async def _run_fetch(self, sql: str, params: tuple) -> List[Dict[str, Any]]:
        sql, bound_params = translate_postgres_params_to_mysql(sql, params)
        async with self._conn.cursor(aiomysql.DictCursor) as cursor:
            await cursor.execute(sql, bound_params or None)
            rows = await cursor.fetchall()
            return list(rows)

    async def begin(self) -> None:
        await self._conn.begin()

    async def commit(self) -> None:
        await self._conn.commit()

    async def rollback(self) -> None:
        await self._conn.rollback()


def _format_execute_status(sql: str, rowcount: int) -> str:
    verb = sql.strip().split(maxsplit=1)
    if not verb:
        return "OK"
    op = verb[0].upper()
    if op in {"INSERT", "UPDATE", "DELETE"} and rowcount >= 0:
        return f"{op} {rowcount}"
    return "OK"
