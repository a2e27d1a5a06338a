"""MySQL / MariaDB DDL components."""

from .connection import MySqlConnection
from .methods import MySqlMethods

__all__ = [
    "MySqlConnection",
    "MySqlMethods",
]
