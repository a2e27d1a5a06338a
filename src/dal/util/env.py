"""Provider normalization and environment variable helpers.

Canonical provider IDs (internal, lowercase):
- "sqlserver" - SQL Server
- "mysql" - MySQL and MariaDB
- "postgres" - PostgreSQL
- "sqlite" - SQLite

Example:
    >>> normalize_provider("PostgreSQL")
    'postgres'
    >>> normalize_provider("MSSQL")
    'sqlserver'
"""

from typing import Optional, Set

# Alias mappings: user-friendly names -> canonical provider ID
PROVIDER_ALIASES: dict[str, str] = {
    # SQL Server aliases
    "sqlserver": "sqlserver",
    "mssql": "sqlserver",
    "tsql": "sqlserver",
    # PostgreSQL aliases
    "postgresql": "postgres",
    "postgres": "postgres",
    "pg": "postgres",
    # SQLite aliases
    "sqlite": "sqlite",
    "sqlite3": "sqlite",
    # MySQL aliases
    "mysql": "mysql",
    "mariadb": "mysql",
}

CANONICAL_PROVIDERS: Set[str] = set(PROVIDER_ALIASES.values())


def normalize_provider(value: str) -> str:
    """Normalize a provider value to its canonical form.

    Unknown values pass through lowercased and stripped; validation happens
    separately.

    Example:
        >>> normalize_provider("  PG  ")
        'postgres'
        >>> normalize_provider("custom-provider")
        'custom-provider'
    """
    cleaned = value.strip().lower()
    return PROVIDER_ALIASES.get(cleaned, cleaned)


def get_provider_env(
    var_name: str, default: Optional[str], allowed: Set[str] = CANONICAL_PROVIDERS
) -> Optional[str]:
    """Read and validate a provider environment variable.

    Raises:
        ValueError: If the normalized value is not in the allowed set.
            The error message includes the env var name, provided value,
            and list of allowed values.
    """
    from common.config.env import get_env_str

    raw_value = get_env_str(var_name)

    if raw_value is None or not raw_value.strip():
        return default

    normalized = normalize_provider(raw_value)

    if normalized not in allowed:
        allowed_list = ", ".join(sorted(allowed))
        raise ValueError(
            f"Invalid provider for {var_name}: '{raw_value}'. " f"Allowed values: {allowed_list}"
        )

    return normalized
