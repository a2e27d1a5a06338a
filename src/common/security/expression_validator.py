"""Validation of check expressions, default expressions and view definitions.

Only the user-supplied fragment is inspected; the DDL statement generated
around it is engine-authored and never re-validated.
"""

from __future__ import annotations

import re
from typing import Iterable, Optional, Tuple

from common.errors import ExpressionValidationError

MAX_EXPRESSION_LENGTH = 2000

DANGEROUS_PATTERNS: Tuple[str, ...] = (
    "--",
    "/*",
    "*/",
    "xp_",
    "sp_",
    "EXEC",
    "EXECUTE",
    "DECLARE",
    "WHILE",
    "IF",
    "GOTO",
    "WAITFOR",
    "SHUTDOWN",
    "BACKUP",
    "RESTORE",
    "KILL",
    "DBCC",
    "BULK",
    "OPENROWSET",
    "OPENQUERY",
    "OPENDATASOURCE",
    "OPENXML",
    "ALTER",
    "CREATE",
    "DROP",
    "TRUNCATE",
    "MERGE",
)

# Blocked only inside check/default expressions.
DDL_FRAGMENT_PATTERNS: Tuple[str, ...] = (
    ";",
    "INSERT",
    "UPDATE",
    "DELETE",
    "SELECT",
    "UNION",
    "JOIN",
    "FROM",
    "WHERE",
    "INTO",
)

_VIEW_ALLOWED_VERBS = frozenset({"ALTER", "CREATE", "DROP", "TRUNCATE", "MERGE"})
VIEW_DANGEROUS_PATTERNS: Tuple[str, ...] = tuple(
    p for p in DANGEROUS_PATTERNS if p not in _VIEW_ALLOWED_VERBS
)

_LINE_COMMENT = re.compile(r"--.*$", re.MULTILINE)
_BLOCK_COMMENT = re.compile(r"/\*.*?\*/", re.DOTALL)


def _strip_comments(expression: str) -> str:
    expression = _LINE_COMMENT.sub("", expression)
    expression = _BLOCK_COMMENT.sub("", expression)
    return expression.strip()


def _contains_pattern(expression: str, pattern: str) -> bool:
    # Word-boundary match keeps "IF" from matching inside "Modified".
    if pattern.isalpha():
        return re.search(rf"\b{re.escape(pattern)}\b", expression, re.IGNORECASE) is not None
    return pattern.lower() in expression.lower()


def _validate_basic(expression: Optional[str], parameter_name: str, max_length: int) -> None:
    if expression is None or not expression.strip():
        raise ExpressionValidationError("Expression cannot be null or empty", parameter_name)

    if len(expression) > max_length:
        raise ExpressionValidationError(
            f"Expression too long (max {max_length} characters)", parameter_name
        )

    if "--" in expression or "/*" in expression:
        raise ExpressionValidationError(
            "Expression contains potentially dangerous SQL pattern: comment", parameter_name
        )

    sanitized = _strip_comments(expression)
    if any(ord(ch) < 32 and ch not in "\t\n\r" for ch in sanitized):
        raise ExpressionValidationError(
            "Expression contains invalid control characters", parameter_name
        )


def _validate_patterns(expression: str, patterns: Iterable[str], parameter_name: str) -> None:
    sanitized = _strip_comments(expression)
    for pattern in patterns:
        if _contains_pattern(sanitized, pattern):
            raise ExpressionValidationError(
                f"Expression contains potentially dangerous SQL pattern: {pattern}",
                parameter_name,
            )


def validate_check_expression(
    expression: Optional[str],
    parameter_name: str = "check_expression",
    max_length: int = MAX_EXPRESSION_LENGTH,
) -> None:
    """Reject a check-constraint expression that is unsafe to embed in DDL."""
    _validate_basic(expression, parameter_name, max_length)
    _validate_patterns(expression, DANGEROUS_PATTERNS + DDL_FRAGMENT_PATTERNS, parameter_name)
    if ";" in expression:
        raise ExpressionValidationError(
            "Check constraint expression cannot contain multiple statements", parameter_name
        )


def validate_default_expression(
    expression: Optional[str],
    parameter_name: str = "default_expression",
    max_length: int = MAX_EXPRESSION_LENGTH,
) -> None:
    """Reject a default-constraint expression that is unsafe to embed in DDL."""
    _validate_basic(expression, parameter_name, max_length)
    _validate_patterns(expression, DANGEROUS_PATTERNS + DDL_FRAGMENT_PATTERNS, parameter_name)
    if ";" in expression:
        raise ExpressionValidationError(
            "Default constraint expression cannot contain multiple statements", parameter_name
        )


def validate_view_definition(
    definition: Optional[str],
    parameter_name: str = "view_definition",
    max_length: int = MAX_EXPRESSION_LENGTH,
) -> None:
    """Reject a view definition that is not a single SELECT statement.

    A single trailing statement separator is tolerated.
    """
    _validate_basic(definition, parameter_name, max_length)

    if not definition.strip().upper().startswith("SELECT"):
        raise ExpressionValidationError(
            "View definition must start with SELECT statement", parameter_name
        )

    _validate_patterns(definition, VIEW_DANGEROUS_PATTERNS, parameter_name)

    statements = [part for part in definition.split(";") if part.strip()]
    if len(statements) > 1:
        raise ExpressionValidationError(
            "View definition cannot contain multiple SQL statements", parameter_name
        )
