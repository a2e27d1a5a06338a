import sqlite3
from typing import Any, Dict, List

import aiosqlite

from dal.connection import EngineConnection
from dal.sqlite.param_translation import translate_postgres_params_to_sqlite
from ddl_model.enums import ProviderType


class SqliteConnection(EngineConnection):
    """Adapter providing asyncpg-like helpers over aiosqlite."""

    provider = ProviderType.SQLITE

    _conn: aiosqlite.Connection

    async def _run_execute(self, sql: str, params: tuple) -> str:
        sql, bound_params = translate_postgres_params_to_sqlite(sql, params)
        cursor = await self._conn.execute(sql, bound_params)
        try:
            return _format_execute_status(sql, cursor.rowcount)
        finally:
            await cursor.close()

    async def _run_fetch(self, sql: str, params: tuple) -> List[Dict[str, Any]]:
        sql, bound_params = translate_postgres_params_to_sqlite(sql, params)
        cursor = await self._conn.execute(sql, bound_params)
        try:
            rows = await cursor.fetchall()
            names = [column[0] for column in cursor.description or []]
        finally:
            await cursor.close()
        return [_row_to_dict(row, names) for row in rows]

    async def begin(self) -> None:
        await self._conn.execute("BEGIN")

    async def commit(self) -> None:
        await self._conn.commit()

    async def rollback(self) -> None:
        await self._conn.rollback()


def _row_to_dict(row: Any, names: List[str]) -> Dict[str, Any]:
    if isinstance(row, sqlite3.Row):
        return dict(zip(row.keys(), tuple(row)))
    return dict(zip(names, row))


def _format_execute_status(sql: str, rowcount: int) -> str:
    verb = sql.strip().split(maxsplit=1)
    if not verb:
        return "OK"
    op = verb[0].upper()
    if op in {"INSERT", "UPDATE", "DELETE"} and rowcount >= 0:
        return f"{op} {rowcount}"
    return "OK"
