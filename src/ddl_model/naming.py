"""Deterministic names for generated constraints and indexes.

Every generator joins a short prefix with the table and column names, keeps
only ASCII letters, digits and underscores in each segment, and trims
leading/trailing underscores from the result.

Example:
    >>> primary_key_constraint_name("Users", "Id")
    'pk_Users_Id'
    >>> foreign_key_constraint_name("Orders", "UserId", "Users", "Id")
    'fk_Orders_UserId_Users_Id'
"""

import re
from typing import Iterable

_UNSAFE_IDENTIFIER_CHARS = re.compile(r"[^A-Za-z0-9_]")


def to_alphanumeric(text: str, allowed: str = "") -> str:
    """Strip everything except ASCII letters, digits and ``allowed`` characters."""
    return "".join(
        ch
        for ch in text
        if ("a" <= ch.lower() <= "z") or ("0" <= ch <= "9") or (allowed and ch in allowed)
    )


def raw_identifier(prefix: str, segments: Iterable[str]) -> str:
    """Join a prefix and name segments into an identifier, skipping blanks."""
    parts = [_UNSAFE_IDENTIFIER_CHARS.sub("", prefix)]
    for segment in segments:
        if not segment or not segment.strip():
            continue
        parts.append(_UNSAFE_IDENTIFIER_CHARS.sub("", segment))
    return "_".join(parts).strip("_")


def check_constraint_name(table_name: str, column_name: str) -> str:
    return raw_identifier("ck", [table_name, column_name])


def default_constraint_name(table_name: str, column_name: str) -> str:
    return raw_identifier("df", [table_name, column_name])


def unique_constraint_name(table_name: str, *column_names: str) -> str:
    return raw_identifier("uc", [table_name, *column_names])


def primary_key_constraint_name(table_name: str, *column_names: str) -> str:
    return raw_identifier("pk", [table_name, *column_names])


def index_name(table_name: str, *column_names: str) -> str:
    return raw_identifier("ix", [table_name, *column_names])


def foreign_key_constraint_name(
    table_name: str, column_name: str, referenced_table_name: str, referenced_column_name: str
) -> str:
    return raw_identifier(
        "fk", [table_name, column_name, referenced_table_name, referenced_column_name]
    )
