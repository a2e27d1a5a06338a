import re
from typing import Any, List, Sequence, Tuple

PLACEHOLDER_PATTERN = re.compile(r"\$(\d+)")


def translate_numbered_placeholders(
    sql: str, params: Sequence[Any], marker: str, provider: str
) -> Tuple[str, List[Any]]:
    """Rewrite ``$N`` placeholders into a positional driver marker.

    Parameters are reordered (and repeated) to follow placeholder order, so
    ``$2 ... $1 ... $2`` binds ``[p2, p1, p2]``.

    Raises:
        ValueError: On ``$0``, gaps in the ``$1..$N`` sequence, missing
            parameters, or parameters passed without placeholders.
    """
    params = list(params)
    matches = list(PLACEHOLDER_PATTERN.finditer(sql))
    if not matches:
        if params:
            raise ValueError(f"{provider} query received params but no $N placeholders were found.")
        return sql, []

    indices = []
    for match in matches:
        idx = int(match.group(1))
        if idx <= 0:
            raise ValueError(f"Invalid placeholder index ${idx}; placeholders must start at $1.")
        indices.append(idx)

    max_index = max(indices)
    if set(indices) != set(range(1, max_index + 1)):
        raise ValueError(
            f"Invalid placeholder sequence: expected $1..${max_index} without gaps, got "
            f"{sorted(set(indices))}."
        )
    if max_index != len(params):
        raise ValueError(
            f"Parameter count mismatch for placeholders: expected {max_index}, got {len(params)}."
        )

    bound = [params[i - 1] for i in indices]
    return PLACEHOLDER_PATTERN.sub(lambda _: marker, sql), bound
