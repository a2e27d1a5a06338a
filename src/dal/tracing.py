import hashlib
from typing import Awaitable, Optional


def _hash_sql(sql: str) -> str:
    return hashlib.sha256(sql.encode("utf-8")).hexdigest()


async def trace_statement(
    name: str,
    provider: str,
    sql: Optional[str],
    operation: Awaitable,
    enabled: bool = False,
):
    """Trace a single catalog query or DDL statement with OTEL when enabled."""
    if not enabled:
        return await operation

    from opentelemetry import trace

    tracer = trace.get_tracer("dal")
    with tracer.start_as_current_span(name) as span:
        span.set_attribute("db.provider", provider)
        if sql:
            span.set_attribute("db.statement_hash", _hash_sql(sql))
        try:
            result = await operation
            span.set_attribute("db.status", "ok")
            return result
        except BaseException:
            span.set_attribute("db.status", "error")
            raise
