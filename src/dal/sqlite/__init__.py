"""SQLite-backed DAL components."""

from .connection import SqliteConnection
from .methods import SqliteMethods

__all__ = [
    "SqliteConnection",
    "SqliteMethods",
]
