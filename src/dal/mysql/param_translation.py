from typing import Any, List, Sequence, Tuple

from dal.util.placeholders import translate_numbered_placeholders


def translate_postgres_params_to_mysql(sql: str, params: Sequence[Any]) -> Tuple[str, List[Any]]:
    """Translate Postgres-style $N placeholders to MySQL %s placeholders.

    Literal ``%`` characters (LIKE patterns, DDL defaults) are doubled first
    because aiomysql formats the statement with ``%`` interpolation whenever
    parameters are bound.
    """
    if params:
        sql = sql.replace("%", "%%")
    return translate_numbered_placeholders(sql, params, "%s", "MySQL")
