"""SQL Server-backed DAL components."""

from .connection import SqlServerConnection
from .methods import SqlServerMethods

__all__ = [
    "SqlServerConnection",
    "SqlServerMethods",
]
