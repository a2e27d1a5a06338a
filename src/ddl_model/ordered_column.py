from pydantic import BaseModel

from .enums import ColumnOrder


class OrderedColumn(BaseModel):
    """Column reference with a sort direction, as used by keys and indexes."""

    column_name: str
    order: ColumnOrder = ColumnOrder.ASCENDING

    model_config = {"frozen": False}

    def __str__(self) -> str:
        if self.order == ColumnOrder.DESCENDING:
            return f"{self.column_name} DESC"
        return self.column_name

    @classmethod
    def parse(cls, text: str) -> "OrderedColumn":
        """Parse ``"Name"``, ``"Name ASC"`` or ``"Name DESC"``.

        Only the last whitespace-delimited token is inspected for a direction,
        so multi-word column names survive a format/parse round trip.
        """
        if text is None or not text.strip():
            raise ValueError("Ordered column text cannot be empty.")
        stripped = text.strip()
        parts = stripped.rsplit(None, 1)
        if len(parts) == 2:
            direction = parts[1].upper()
            if direction == "DESC":
                return cls(column_name=parts[0].rstrip(), order=ColumnOrder.DESCENDING)
            if direction == "ASC":
                return cls(column_name=parts[0].rstrip(), order=ColumnOrder.ASCENDING)
        return cls(column_name=stripped)
