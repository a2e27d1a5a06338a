"""DAL factory: pick the engine implementation for a connection or provider name.

Each engine registers a ``MethodsFactory`` that recognizes its driver's
connection objects. Engine modules are imported lazily so that only the
drivers actually in use need to be installed.

Canonical Provider IDs:
    - "sqlserver": SQL Server through aioodbc / pyodbc
    - "mysql": MySQL and MariaDB through aiomysql
    - "postgres": PostgreSQL through asyncpg
    - "sqlite": SQLite through aiosqlite

Example:
    >>> from dal.factory import get_database_methods
    >>> methods = get_database_methods(conn)  # conn is an aiosqlite.Connection
    >>> await methods.create_table_if_not_exists(conn, table)
"""

import importlib
import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from common.config.settings import DdlSettings
from common.errors import UnsupportedConnectionError
from dal.connection import EngineConnection
from dal.contracts import DatabaseMethods
from dal.util.env import normalize_provider

logger = logging.getLogger(__name__)


class MethodsFactory:
    """Recognize one engine's connections and build its methods object.

    ``markers`` are matched against the lowercased ``module.qualname`` of the
    connection's type; ``methods_path`` is ``"module:ClassName"``.
    """

    def __init__(self, provider: str, markers: Sequence[str], methods_path: str) -> None:
        self.provider = provider
        self.markers = tuple(marker.lower() for marker in markers)
        self.methods_path = methods_path

    def supports_connection(self, conn: Any) -> bool:
        if isinstance(conn, EngineConnection):
            return conn.provider.value == self.provider
        conn_type = type(conn)
        type_name = f"{conn_type.__module__}.{conn_type.__qualname__}".lower()
        return any(marker in type_name for marker in self.markers)

    def create(self, settings: DdlSettings) -> DatabaseMethods:
        module_name, class_name = self.methods_path.split(":")
        methods_cls = getattr(importlib.import_module(module_name), class_name)
        return methods_cls(settings)


# =============================================================================
# Provider Registry
# =============================================================================

METHODS_FACTORIES: List[MethodsFactory] = [
    MethodsFactory(
        "sqlserver", ("aioodbc", "pyodbc", "sqlserver", "mssql"), "dal.sqlserver:SqlServerMethods"
    ),
    MethodsFactory("mysql", ("mysql",), "dal.mysql:MySqlMethods"),
    MethodsFactory("postgres", ("asyncpg", "postgres"), "dal.postgres:PostgresMethods"),
    MethodsFactory("sqlite", ("sqlite",), "dal.sqlite:SqliteMethods"),
]

_methods_cache: Dict[Tuple[str, DdlSettings], DatabaseMethods] = {}


def register_methods_factory(factory: MethodsFactory) -> None:
    """Register an additional factory ahead of the built-in ones.

    Call at startup only; the registry is not guarded for concurrent mutation.
    """
    METHODS_FACTORIES.insert(0, factory)


def _methods_for(factory: MethodsFactory, settings: Optional[DdlSettings]) -> DatabaseMethods:
    settings = settings or DdlSettings()
    key = (factory.provider, settings)
    methods = _methods_cache.get(key)
    if methods is None:
        methods = factory.create(settings)
        _methods_cache[key] = methods
        logger.info(f"Initializing DatabaseMethods with provider: {factory.provider}")
    return methods


# =============================================================================
# Getters
# =============================================================================


def get_database_methods(conn: Any, settings: Optional[DdlSettings] = None) -> DatabaseMethods:
    """Return the methods object for the engine behind ``conn``.

    Raises:
        UnsupportedConnectionError: If no registered factory recognizes ``conn``.
    """
    if conn is None:
        raise ValueError("conn is required.")
    for factory in METHODS_FACTORIES:
        if factory.supports_connection(conn):
            return _methods_for(factory, settings)
    conn_type = type(conn)
    raise UnsupportedConnectionError(
        f"No database methods registered for connection type "
        f"{conn_type.__module__}.{conn_type.__qualname__}."
    )


def get_database_methods_for_provider(
    provider: Optional[str] = None, settings: Optional[DdlSettings] = None
) -> DatabaseMethods:
    """Return the methods object for a provider name or alias such as ``"pg"``.

    Falls back to ``settings.default_provider`` when ``provider`` is omitted.

    Raises:
        UnsupportedConnectionError: If the provider is unknown or not given.
    """
    settings = settings or DdlSettings()
    provider = provider or settings.default_provider
    if provider is None or not provider.strip():
        raise UnsupportedConnectionError("No provider given and no default provider configured.")
    canonical = normalize_provider(provider)
    for factory in METHODS_FACTORIES:
        if factory.provider == canonical:
            return _methods_for(factory, settings)
    allowed = ", ".join(sorted({factory.provider for factory in METHODS_FACTORIES}))
    raise UnsupportedConnectionError(
        f"Unsupported provider: '{provider}'. Allowed values: {allowed}"
    )


# =============================================================================
# Testing Utilities
# =============================================================================


def reset_methods_cache() -> None:
    """Drop cached methods instances (for testing only)."""
    _methods_cache.clear()
