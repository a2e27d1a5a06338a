"""Enumerations shared by the schema model and the engine implementations."""

import re
from enum import Enum
from typing import Optional


class ProviderType(str, Enum):
    """Identifier of a supported database engine."""

    SQLSERVER = "sqlserver"
    MYSQL = "mysql"
    POSTGRES = "postgres"
    SQLITE = "sqlite"


class ColumnOrder(str, Enum):
    """Sort direction of a column inside an index or key."""

    ASCENDING = "ASC"
    DESCENDING = "DESC"


class ConstraintType(str, Enum):
    """Kind tag carried by every constraint."""

    PRIMARY_KEY = "PrimaryKey"
    FOREIGN_KEY = "ForeignKey"
    UNIQUE = "Unique"
    CHECK = "Check"
    DEFAULT = "Default"


class ForeignKeyAction(str, Enum):
    """Referential action with a fixed, bidirectional SQL keyword mapping."""

    NO_ACTION = "NO ACTION"
    CASCADE = "CASCADE"
    RESTRICT = "RESTRICT"
    SET_NULL = "SET NULL"

    def to_sql(self) -> str:
        """Return the SQL keyword for this action."""
        return self.value

    @classmethod
    def parse(cls, text: str) -> "ForeignKeyAction":
        """Parse catalog text such as ``SET NULL`` or ``SETNULL``.

        Unrecognized input parses to ``NO_ACTION``.
        """
        if text is None or not str(text).strip():
            raise ValueError("Foreign key action text cannot be empty.")
        letters = re.sub(r"[^A-Za-z]", "", str(text)).upper()
        return _ACTIONS_BY_LETTERS.get(letters, cls.NO_ACTION)

    @classmethod
    def parse_or_default(cls, text: Optional[str]) -> "ForeignKeyAction":
        """Parse catalog text, treating missing values as ``NO_ACTION``."""
        if text is None or not str(text).strip():
            return cls.NO_ACTION
        return cls.parse(text)


_ACTIONS_BY_LETTERS = {
    "NOACTION": ForeignKeyAction.NO_ACTION,
    "CASCADE": ForeignKeyAction.CASCADE,
    "RESTRICT": ForeignKeyAction.RESTRICT,
    "SETNULL": ForeignKeyAction.SET_NULL,
}
