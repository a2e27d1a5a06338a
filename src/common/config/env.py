"""Typed environment variable parsing helpers."""

import os
from typing import Callable, Optional, TypeVar

T = TypeVar("T")

_TRUTHY = ("true", "1", "yes", "on")
_FALSY = ("false", "0", "no", "off", "")


def _read_env(
    name: str,
    default: Optional[T],
    required: bool,
    parse: Callable[[str], T],
    kind: str,
) -> Optional[T]:
    raw = os.getenv(name)
    if raw is None:
        if required:
            raise KeyError(f"Environment variable '{name}' is required but not set.")
        return default
    try:
        return parse(raw)
    except ValueError:
        raise ValueError(f"Environment variable '{name}' must be {kind}, got '{raw}'.")


def get_env_str(name: str, default: Optional[str] = None, required: bool = False) -> Optional[str]:
    """Get an environment variable as a string."""
    return _read_env(name, default, required, str, "a string")


def get_env_int(name: str, default: Optional[int] = None, required: bool = False) -> Optional[int]:
    """Get an environment variable as an integer."""
    return _read_env(name, default, required, int, "an integer")


def _parse_bool(raw: str) -> bool:
    lowered = raw.strip().lower()
    if lowered in _TRUTHY:
        return True
    if lowered in _FALSY:
        return False
    raise ValueError(raw)


def get_env_bool(
    name: str, default: Optional[bool] = None, required: bool = False
) -> Optional[bool]:
    """Get an environment variable as a boolean.

    Truthy: true, 1, yes, on
    Falsey: false, 0, no, off, (empty string)
    """
    return _read_env(name, default, required, _parse_bool, "a boolean")

