"""Exceptions raised before any engine I/O takes place.

Engine-native failures (asyncpg, aiomysql, sqlite3, pyodbc) are never wrapped;
only pre-flight validation problems are expressed with these types.
"""

from typing import Optional


class DdlValidationError(ValueError):
    """Base class for pre-flight validation failures."""


class ExpressionValidationError(DdlValidationError):
    """A user-supplied SQL fragment was rejected by the expression validator."""

    def __init__(self, message: str, parameter_name: Optional[str] = None) -> None:
        """Initialize with the offending parameter name for diagnostics."""
        self.parameter_name = parameter_name
        if parameter_name:
            message = f"{message} (parameter '{parameter_name}')"
        super().__init__(message)


class UnsupportedConnectionError(DdlValidationError):
    """No registered engine factory recognises the supplied connection."""


class UnsupportedTypeError(DdlValidationError, NotImplementedError):
    """A host type or native type has no mapping for the engine."""
