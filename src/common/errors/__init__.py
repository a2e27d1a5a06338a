"""Validation error taxonomy for DDL generation and dispatch."""

from common.errors.exceptions import (
    DdlValidationError,
    ExpressionValidationError,
    UnsupportedConnectionError,
    UnsupportedTypeError,
)

__all__ = [
    "DdlValidationError",
    "ExpressionValidationError",
    "UnsupportedConnectionError",
    "UnsupportedTypeError",
]
