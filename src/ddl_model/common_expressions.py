"""Portable default and check expressions rendered per engine."""

from .enums import ProviderType
from .expressions import GeneratedExpression

_SQLITE_UUID = (
    "lower(hex(randomblob(4)) || '-' || hex(randomblob(2)) || '-' || '4' || "
    "substr(hex(randomblob(2)),2) || '-' || substr('89ab',abs(random()) % 4 + 1, 1) || "
    "substr(hex(randomblob(2)),2) || '-' || hex(randomblob(6)))"
)


def true_value() -> GeneratedExpression:
    return GeneratedExpression(
        generator=lambda p: "true" if p == ProviderType.POSTGRES else "1"
    )


def false_value() -> GeneratedExpression:
    return GeneratedExpression(
        generator=lambda p: "false" if p == ProviderType.POSTGRES else "0"
    )


def current_timestamp() -> GeneratedExpression:
    rendered = {
        ProviderType.SQLSERVER: "GETDATE()",
        ProviderType.MYSQL: "NOW()",
        ProviderType.POSTGRES: "NOW()",
        ProviderType.SQLITE: "datetime('now')",
    }
    return GeneratedExpression(generator=lambda p: rendered.get(p, "CURRENT_TIMESTAMP"))


def current_utc_timestamp() -> GeneratedExpression:
    rendered = {
        ProviderType.SQLSERVER: "GETUTCDATE()",
        ProviderType.MYSQL: "UTC_TIMESTAMP()",
        ProviderType.POSTGRES: "NOW() AT TIME ZONE 'UTC'",
        ProviderType.SQLITE: "datetime('now', 'utc')",
    }
    return GeneratedExpression(generator=lambda p: rendered.get(p, "CURRENT_TIMESTAMP"))


def new_guid() -> GeneratedExpression:
    rendered = {
        ProviderType.SQLSERVER: "NEWID()",
        ProviderType.MYSQL: "UUID()",
        ProviderType.POSTGRES: "gen_random_uuid()",
        ProviderType.SQLITE: _SQLITE_UUID,
    }
    return GeneratedExpression(generator=lambda p: rendered[p])


def zero() -> GeneratedExpression:
    return GeneratedExpression(generator=lambda p: "0")


def empty_string() -> GeneratedExpression:
    return GeneratedExpression(generator=lambda p: "''")


def _length_check(column_name: str, operator: str, length: int) -> GeneratedExpression:
    def _render(provider: ProviderType) -> str:
        if provider == ProviderType.SQLSERVER:
            return f"LEN([{column_name}]) {operator} {length}"
        if provider == ProviderType.POSTGRES:
            return f"LENGTH({column_name.lower()}) {operator} {length}"
        return f"LENGTH({column_name}) {operator} {length}"

    return GeneratedExpression(generator=_render)


def length_greater_than(column_name: str, length: int = 0) -> GeneratedExpression:
    """Check that a text column is longer than ``length`` characters."""
    return _length_check(column_name, ">", length)


def length_greater_than_or_equal(column_name: str, length: int = 0) -> GeneratedExpression:
    return _length_check(column_name, ">=", length)


def length_less_than(column_name: str, length: int) -> GeneratedExpression:
    return _length_check(column_name, "<", length)


def length_less_than_or_equal(column_name: str, length: int) -> GeneratedExpression:
    return _length_check(column_name, "<=", length)
