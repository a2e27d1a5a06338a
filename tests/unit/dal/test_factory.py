import logging

import pytest

from common.config.settings import DdlSettings
from common.errors import UnsupportedConnectionError
from dal import factory
from dal.factory import (
    MethodsFactory,
    get_database_methods,
    get_database_methods_for_provider,
    register_methods_factory,
)
from dal.mysql import MySqlMethods
from dal.postgres import PostgresMethods
from dal.sqlite import SqliteConnection, SqliteMethods
from dal.sqlserver import SqlServerMethods
from ddl_model import ProviderType


def _fake_connection(module: str, name: str = "Connection"):
    cls = type(name, (), {})
    cls.__module__ = module
    return cls()


@pytest.mark.parametrize(
    "module,expected",
    [
        ("aioodbc.connection", SqlServerMethods),
        ("pyodbc", SqlServerMethods),
        ("aiomysql.connection", MySqlMethods),
        ("asyncpg.connection", PostgresMethods),
        ("aiosqlite.core", SqliteMethods),
    ],
)
def test_dispatch_by_driver_connection_type(module, expected):
    assert isinstance(get_database_methods(_fake_connection(module)), expected)


def test_dispatch_by_wrapped_connection():
    conn = SqliteConnection(object())

    methods = get_database_methods(conn)

    assert methods.provider == ProviderType.SQLITE


def test_unknown_connection_is_rejected():
    with pytest.raises(UnsupportedConnectionError, match="oracledb.Connection"):
        get_database_methods(_fake_connection("oracledb"))


def test_missing_connection_is_rejected():
    with pytest.raises(ValueError, match="conn is required"):
        get_database_methods(None)


@pytest.mark.parametrize(
    "alias,expected",
    [
        ("mssql", SqlServerMethods),
        ("MariaDB", MySqlMethods),
        ("pg", PostgresMethods),
        ("sqlite3", SqliteMethods),
    ],
)
def test_dispatch_by_provider_alias(alias, expected):
    assert isinstance(get_database_methods_for_provider(alias), expected)


def test_provider_falls_back_to_configured_default():
    settings = DdlSettings(default_provider="postgres")

    assert isinstance(get_database_methods_for_provider(settings=settings), PostgresMethods)


def test_unknown_or_missing_provider_is_rejected():
    with pytest.raises(UnsupportedConnectionError, match="Allowed values"):
        get_database_methods_for_provider("oracle")
    with pytest.raises(UnsupportedConnectionError, match="No provider given"):
        get_database_methods_for_provider()


def test_instances_are_cached_per_settings(caplog):
    caplog.set_level(logging.INFO, logger="dal.factory")
    custom = DdlSettings(postgres_default_schema="tenant")

    first = get_database_methods_for_provider("postgres")
    second = get_database_methods_for_provider("postgresql")
    third = get_database_methods_for_provider("postgres", custom)

    assert first is second
    assert third is not first
    assert third.default_schema == "tenant"
    messages = [r.message for r in caplog.records if "Initializing DatabaseMethods" in r.message]
    assert messages == [
        "Initializing DatabaseMethods with provider: postgres",
        "Initializing DatabaseMethods with provider: postgres",
    ]


def test_registered_factory_takes_precedence(monkeypatch):
    monkeypatch.setattr(factory, "METHODS_FACTORIES", list(factory.METHODS_FACTORIES))
    register_methods_factory(
        MethodsFactory("cockroach", ("cockroach",), "dal.postgres:PostgresMethods")
    )

    methods = get_database_methods(_fake_connection("cockroach_driver"))

    assert isinstance(methods, PostgresMethods)
