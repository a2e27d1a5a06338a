import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from dal.connection import EngineConnection

logger = logging.getLogger(__name__)


@asynccontextmanager
async def owned_transaction(conn: EngineConnection, tx: Any = None) -> AsyncIterator[None]:
    """Run a block inside the caller's transaction, or one opened here.

    When ``tx`` is supplied the caller owns the transaction and nothing is
    committed or rolled back. Otherwise a transaction is started, committed
    on success, and rolled back on any failure including cancellation.
    """
    if tx is not None:
        yield
        return

    await conn.begin()
    try:
        yield
    except BaseException:
        logger.warning("Rolling back owned %s transaction", conn.provider.value)
        await conn.rollback()
        raise
    await conn.commit()
