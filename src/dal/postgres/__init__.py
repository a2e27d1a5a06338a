"""PostgreSQL DDL components."""

from .connection import PostgresConnection
from .methods import PostgresMethods

__all__ = [
    "PostgresConnection",
    "PostgresMethods",
]
