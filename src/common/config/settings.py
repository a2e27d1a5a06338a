from dataclasses import dataclass
from typing import Optional

from common.config.env import get_env_int, get_env_str
from common.observability.exporter import is_tracing_enabled


@dataclass(frozen=True)
class DdlSettings:
    """Process-wide DDL configuration, built once at startup and passed by reference."""

    sqlserver_default_schema: str = "dbo"
    postgres_default_schema: str = "public"
    max_expression_length: int = 2000
    trace_statements: bool = False
    default_provider: Optional[str] = None

    @classmethod
    def from_env(cls) -> "DdlSettings":
        """Load DDL settings from environment variables."""
        from dal.util.env import get_provider_env

        trace_statements = is_tracing_enabled("DDL_TRACE_STATEMENTS")
        max_expression_length = get_env_int("DDL_MAX_EXPRESSION_LENGTH", 2000)
        if max_expression_length <= 0:
            raise ValueError("DDL_MAX_EXPRESSION_LENGTH must be positive.")
        return cls(
            sqlserver_default_schema=get_env_str("DDL_SQLSERVER_DEFAULT_SCHEMA", "dbo"),
            postgres_default_schema=get_env_str("DDL_POSTGRES_DEFAULT_SCHEMA", "public"),
            max_expression_length=max_expression_length,
            trace_statements=trace_statements,
            default_provider=get_provider_env("DDL_DEFAULT_PROVIDER", None),
        )
