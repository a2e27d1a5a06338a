from typing import Any, Dict, List, Optional

import asyncpg

from dal.connection import EngineConnection
from ddl_model.enums import ProviderType


class PostgresConnection(EngineConnection):
    """Adapter over asyncpg; placeholders are already native ``$N``."""

    provider = ProviderType.POSTGRES

    _conn: asyncpg.Connection
    _transaction: Optional[Any] = None

    async def _run_execute(self, sql: str, params: tuple) -> str:
        return await self._conn.execute(sql, *params)

    async def _run_fetch(self, sql: str, params: tuple) -> List[Dict[str, Any]]:
        rows = await self._conn.fetch(sql, *params)
        return [dict(row) for row in rows]

    async def begin(self) -> None:
        self._transaction = self._conn.transaction()
        await self._transaction.start()

    async def commit(self) -> None:
        transaction, self._transaction = self._transaction, None
        if transaction is not None:
            await transaction.commit()

    async def rollback(self) -> None:
        transaction, self._transaction = self._transaction, None
        if transaction is not None:
            await transaction.rollback()
