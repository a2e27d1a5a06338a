"""Unit test environment helpers."""

import pytest


@pytest.fixture(autouse=True)
def _minimal_env(monkeypatch):
    """Keep DDL settings and tracing independent of the developer's shell."""
    for name in (
        "DDL_SQLSERVER_DEFAULT_SCHEMA",
        "DDL_POSTGRES_DEFAULT_SCHEMA",
        "DDL_MAX_EXPRESSION_LENGTH",
        "DDL_TRACE_STATEMENTS",
        "DDL_DEFAULT_PROVIDER",
        "OTEL_EXPORTER_OTLP_ENDPOINT",
        "OTEL_EXPORTER_OTLP_TRACES_ENDPOINT",
    ):
        monkeypatch.delenv(name, raising=False)
    yield


@pytest.fixture(autouse=True)
def _reset_methods_cache():
    """Reset the factory's cached methods instances after each test."""
    from dal.factory import reset_methods_cache

    yield
    reset_methods_cache()
