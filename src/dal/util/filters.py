"""Name filter helpers shared by catalog queries and in-memory filtering.

Filters accept ``*`` wildcards. Before use they are reduced to the safe
character set ``[A-Za-z0-9-_.*]`` so they can never smuggle SQL into a
catalog query.
"""

from fnmatch import fnmatchcase
from typing import Callable, Iterable, List, Optional, TypeVar

from ddl_model.naming import to_alphanumeric

T = TypeVar("T")

SAFE_FILTER_CHARS = "-_.*"


def to_safe_string(text: str, allowed: str = SAFE_FILTER_CHARS) -> str:
    return to_alphanumeric(text, allowed)


def to_like_string(text: str, allowed: str = SAFE_FILTER_CHARS) -> str:
    """Convert a wildcard filter into a SQL ``LIKE`` pattern."""
    return to_safe_string(text, allowed).replace("*", "%")


def is_wildcard_match(text: Optional[str], pattern: Optional[str]) -> bool:
    """Case-insensitive ``*`` wildcard match; blank inputs never match."""
    if not text or not text.strip() or not pattern or not pattern.strip():
        return False
    return fnmatchcase(text.lower(), pattern.lower().replace("[", "[[]"))


def filter_by_name(
    items: Iterable[T], name_filter: Optional[str], get_name: Callable[[T], str]
) -> List[T]:
    """Return the items whose name matches ``name_filter``; no filter keeps all."""
    items = list(items)
    if not name_filter or not name_filter.strip():
        return items
    pattern = to_safe_string(name_filter)
    return [item for item in items if is_wildcard_match(get_name(item), pattern)]
