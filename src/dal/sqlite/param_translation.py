from typing import Any, List, Sequence, Tuple

from dal.util.placeholders import translate_numbered_placeholders


def translate_postgres_params_to_sqlite(sql: str, params: Sequence[Any]) -> Tuple[str, List[Any]]:
    """Translate Postgres-style $N placeholders to SQLite ? placeholders."""
    return translate_numbered_placeholders(sql, params, "?", "SQLite")
