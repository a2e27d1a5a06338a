"""Engine connection adapters.

Every engine implementation talks to an ``EngineConnection``: a thin
wrapper over the caller's raw driver connection that exposes asyncpg-style
``execute``/``fetch``/``fetchrow``/``fetchval`` with ``$N`` placeholders,
plus ``begin``/``commit``/``rollback`` for the few operations that own a
transaction. The adapter never opens or closes the underlying connection.
"""

import logging
from typing import Any, ClassVar, Dict, List, Optional

from common.config.settings import DdlSettings
from dal.tracing import trace_statement
from ddl_model.enums import ProviderType

logger = logging.getLogger(__name__)


class EngineConnection:
    """Base adapter; engines implement the ``_run_*`` primitives."""

    provider: ClassVar[ProviderType]

    def __init__(self, conn: Any, settings: Optional[DdlSettings] = None) -> None:
        self._conn = conn
        self._settings = settings or DdlSettings()

    @property
    def raw(self) -> Any:
        """Return the wrapped driver connection."""
        return self._conn

    @classmethod
    def wrap(cls, conn: Any, settings: Optional[DdlSettings] = None) -> "EngineConnection":
        """Wrap a raw connection unless it is already an adapter."""
        if isinstance(conn, EngineConnection):
            return conn
        return cls(conn, settings)

    async def _traced(self, name: str, sql: str, operation):
        return await trace_statement(
            name,
            provider=self.provider.value,
            sql=sql,
            operation=operation,
            enabled=self._settings.trace_statements,
        )

    async def execute(self, sql: str, *params: Any) -> Any:
        """Execute a statement and return the driver's status."""
        return await self._traced("dal.ddl.execute", sql, self._run_execute(sql, params))

    async def fetch(self, sql: str, *params: Any) -> List[Dict[str, Any]]:
        """Fetch rows as dicts keyed by lowercase column alias."""
        rows = await self._traced("dal.ddl.fetch", sql, self._run_fetch(sql, params))
        return [{str(key).lower(): value for key, value in row.items()} for row in rows]

    async def fetchrow(self, sql: str, *params: Any) -> Optional[Dict[str, Any]]:
        rows = await self.fetch(sql, *params)
        return rows[0] if rows else None

    async def fetchval(self, sql: str, *params: Any) -> Any:
        row = await self.fetchrow(sql, *params)
        if row is None:
            return None
        return next(iter(row.values()))

    async def begin(self) -> None:
        raise NotImplementedError

    async def commit(self) -> None:
        raise NotImplementedError

    async def rollback(self) -> None:
        raise NotImplementedError

    async def _run_execute(self, sql: str, params: tuple) -> Any:
        raise NotImplementedError

    async def _run_fetch(self, sql: str, params: tuple) -> List[Dict[str, Any]]:
        raise NotImplementedError
