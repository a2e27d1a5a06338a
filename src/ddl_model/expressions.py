"""Check/default expressions as an explicit tagged variant.

A column carries either a static SQL fragment or a generator that renders a
fragment per engine; holding both at once is not representable.
"""

from typing import Any, Callable, Literal, Optional, Union

from pydantic import BaseModel

from .enums import ProviderType

ExpressionGenerator = Callable[[ProviderType], Optional[str]]


class StaticExpression(BaseModel):
    """SQL fragment used verbatim on every engine."""

    kind: Literal["static"] = "static"
    text: str

    model_config = {"frozen": True}

    def render(self, provider: ProviderType) -> Optional[str]:
        return self.text


class GeneratedExpression(BaseModel):
    """SQL fragment produced per engine by a generator function."""

    kind: Literal["generated"] = "generated"
    generator: ExpressionGenerator

    model_config = {"frozen": True}

    def render(self, provider: ProviderType) -> Optional[str]:
        return self.generator(provider)


Expression = Union[StaticExpression, GeneratedExpression]


def to_expression(value: Any) -> Optional[Expression]:
    """Coerce a string, generator or expression into an ``Expression``.

    Blank strings are treated as no expression.
    """
    if value is None or isinstance(value, (StaticExpression, GeneratedExpression)):
        return value
    if isinstance(value, str):
        return StaticExpression(text=value) if value.strip() else None
    if callable(value):
        return GeneratedExpression(generator=value)
    if isinstance(value, dict):
        return value
    raise TypeError(f"Unsupported expression value: {value!r}")


def render_expression(
    expression: Optional[Expression], provider: ProviderType
) -> Optional[str]:
    """Render an optional expression for the given engine."""
    if expression is None:
        return None
    return expression.render(provider)
