"""Guards for user-supplied SQL fragments embedded into generated DDL."""

from .expression_validator import (
    MAX_EXPRESSION_LENGTH,
    validate_check_expression,
    validate_default_expression,
    validate_view_definition,
)

__all__ = [
    "MAX_EXPRESSION_LENGTH",
    "validate_check_expression",
    "validate_default_expression",
    "validate_view_definition",
]
