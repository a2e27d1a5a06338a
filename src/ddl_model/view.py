from typing import Optional

from pydantic import BaseModel


class View(BaseModel):
    """Canonical representation of a database view."""

    schema_name: Optional[str] = None
    view_name: str
    definition: str = ""

    model_config = {"frozen": False}
