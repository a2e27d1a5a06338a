"""Build ``Table`` and ``View`` objects from annotated pydantic models.

Models describe their SQL shape with ``__sql_*`` class attributes:

    class User(BaseModel):
        __sql_table__: ClassVar[str] = "Users"
        __sql_schema__: ClassVar[str] = "app"
        __sql_primary_key__: ClassVar[List[str]] = ["id"]
        __sql_serial_columns__: ClassVar[List[str]] = ["id"]
        __sql_foreign_keys__: ClassVar[Dict[str, str]] = {"team_id": "app.Teams(id)"}
        __sql_indexes__: ClassVar[List] = [("ix_users_email", ["email"])]
        __sql_unique__: ClassVar[List] = [["email"]]
        __sql_checks__: ClassVar[Dict[str, str]] = {"age": "age >= 0"}
        __sql_defaults__: ClassVar[Dict[str, str]] = {"age": "0"}
        __sql_columns__: ClassVar[Dict[str, Dict]] = {"email": {"is_unicode": True}}

        id: int
        team_id: Optional[int] = None
        email: Annotated[str, MaxLen(320)]
        age: int = 0

Views use ``__sql_view__`` (the view name) and ``__sql_view_definition__``.

Registration is explicit: the host owns a ``ModelRegistry`` and registers
its models at startup. Nothing is cached globally.
"""

import logging
import re
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Type, Union, get_args, get_origin

from annotated_types import MaxLen
from pydantic import BaseModel
from pydantic.fields import FieldInfo

from . import naming
from .column import Column
from .constraints import (
    CheckConstraint,
    DefaultConstraint,
    ForeignKeyConstraint,
    PrimaryKeyConstraint,
    UniqueConstraint,
)
from .enums import ForeignKeyAction
from .index import Index
from .ordered_column import OrderedColumn
from .table import Table
from .view import View

logger = logging.getLogger(__name__)

_REFERENCE_PATTERN = re.compile(r"^\s*(?:([\w$]+)\.)?([\w$]+)\s*\(\s*([\w$]+)\s*\)\s*$")


def get_model_metadata(model: Type[BaseModel]) -> Dict[str, Any]:
    """Extract the ``__sql_*`` metadata declared on a model class."""
    metadata = {
        "table": getattr(model, "__sql_table__", None),
        "schema": getattr(model, "__sql_schema__", None),
        "primary_key": getattr(model, "__sql_primary_key__", []),
        "foreign_keys": getattr(model, "__sql_foreign_keys__", {}),
        "indexes": getattr(model, "__sql_indexes__", []),
        "unique": getattr(model, "__sql_unique__", []),
        "checks": getattr(model, "__sql_checks__", {}),
        "defaults": getattr(model, "__sql_defaults__", {}),
        "serial_columns": getattr(model, "__sql_serial_columns__", []),
        "columns": getattr(model, "__sql_columns__", {}),
        "view": getattr(model, "__sql_view__", None),
        "view_definition": getattr(model, "__sql_view_definition__", None),
    }

    if isinstance(metadata["primary_key"], str):
        metadata["primary_key"] = [metadata["primary_key"]]

    return metadata


def unwrap_annotation(annotation: Any) -> Tuple[Any, bool]:
    """Return ``(inner_type, is_optional)`` for an annotation.

    ``Optional[X]`` and ``X | None`` unwrap to ``X``; other unions of several
    non-None members are left as-is.
    """
    origin = get_origin(annotation)
    if origin is Union or (origin is not None and getattr(origin, "__name__", "") == "UnionType"):
        args = [arg for arg in get_args(annotation) if arg is not type(None)]
        is_optional = len(args) != len(get_args(annotation))
        if len(args) == 1:
            return args[0], is_optional
        return annotation, is_optional
    return annotation, False


def _max_length(field_info: FieldInfo) -> Optional[int]:
    for constraint in field_info.metadata or []:
        if isinstance(constraint, MaxLen):
            return constraint.max_length
    return None


def _decimal_facets(field_info: FieldInfo) -> Tuple[Optional[int], Optional[int]]:
    precision = None
    scale = None
    for constraint in field_info.metadata or []:
        precision = getattr(constraint, "max_digits", None) or precision
        scale = getattr(constraint, "decimal_places", None) or scale
    return precision, scale


def parse_reference(reference: str) -> Tuple[Optional[str], str, str]:
    """Parse ``"schema.table(column)"`` or ``"table(column)"``."""
    match = _REFERENCE_PATTERN.match(reference or "")
    if not match:
        raise ValueError(
            f"Invalid foreign key reference '{reference}'; expected 'table(column)'."
        )
    return match.group(1), match.group(2), match.group(3)


def _parse_index(definition: Any) -> Tuple[Optional[str], List[str], bool]:
    if isinstance(definition, tuple):
        name = definition[0]
        columns = definition[1] if len(definition) > 1 else []
        unique = bool(definition[2]) if len(definition) > 2 else False
    elif isinstance(definition, dict):
        name = definition.get("name")
        columns = definition.get("columns", [])
        unique = bool(definition.get("unique", False))
    else:
        raise ValueError(f"Unsupported index definition: {definition!r}")
    if isinstance(columns, str):
        columns = [columns]
    return name, list(columns), unique


class ModelRegistry:
    """Host-owned registry of tables and views built from pydantic models."""

    def __init__(self) -> None:
        self._tables: Dict[Type[BaseModel], Table] = {}
        self._views: Dict[Type[BaseModel], View] = {}

    def register_table(self, model: Type[BaseModel]) -> Table:
        """Build and remember the ``Table`` described by ``model``."""
        table = build_table(model)
        self._tables[model] = table
        logger.debug(
            "Registered table %s.%s from %s",
            table.schema_name,
            table.table_name,
            model.__name__,
        )
        return table

    def register_view(self, model: Type[BaseModel]) -> View:
        """Build and remember the ``View`` described by ``model``."""
        view = build_view(model)
        self._views[model] = view
        logger.debug("Registered view %s from %s", view.view_name, model.__name__)
        return view

    def get_table(self, model: Type[BaseModel]) -> Table:
        try:
            return self._tables[model]
        except KeyError:
            raise KeyError(f"Model {model.__name__} is not registered as a table.") from None

    def get_view(self, model: Type[BaseModel]) -> View:
        try:
            return self._views[model]
        except KeyError:
            raise KeyError(f"Model {model.__name__} is not registered as a view.") from None

    @property
    def tables(self) -> List[Table]:
        return list(self._tables.values())

    @property
    def views(self) -> List[View]:
        return list(self._views.values())


def build_table(model: Type[BaseModel]) -> Table:
    """Translate a model's fields and ``__sql_*`` metadata into a ``Table``."""
    meta = get_model_metadata(model)
    table_name = meta["table"] or model.__name__
    schema_name = meta["schema"]
    primary_key: List[str] = list(meta["primary_key"])
    pk_lookup = {name.lower() for name in primary_key}
    serial_lookup = {name.lower() for name in meta["serial_columns"]}

    columns: List[Column] = []
    for field_name, field_info in model.model_fields.items():
        column_name = field_info.alias or field_name
        host_type, is_optional = unwrap_annotation(field_info.annotation)
        column = Column(
            column_name=column_name,
            host_type=host_type,
            is_nullable=is_optional and column_name.lower() not in pk_lookup,
            is_primary_key=column_name.lower() in pk_lookup,
            is_auto_increment=column_name.lower() in serial_lookup,
        )
        if isinstance(host_type, type) and issubclass(host_type, str):
            column.length = _max_length(field_info)
        elif host_type is Decimal:
            column.precision, column.scale = _decimal_facets(field_info)
        elif isinstance(host_type, type) and issubclass(host_type, Enum):
            column.length = _max_length(field_info)

        overrides = meta["columns"].get(column_name) or meta["columns"].get(field_name) or {}
        for key, value in overrides.items():
            setattr(column, key, value)
        columns.append(column)

    primary_key_constraint = None
    if primary_key:
        primary_key_constraint = PrimaryKeyConstraint(
            constraint_name=naming.primary_key_constraint_name(table_name, *primary_key),
            columns=[OrderedColumn(column_name=name) for name in primary_key],
        )

    foreign_keys = []
    for column_name, reference in meta["foreign_keys"].items():
        on_delete = ForeignKeyAction.NO_ACTION
        on_update = ForeignKeyAction.NO_ACTION
        if isinstance(reference, dict):
            on_delete = ForeignKeyAction.parse_or_default(reference.get("on_delete"))
            on_update = ForeignKeyAction.parse_or_default(reference.get("on_update"))
            reference = reference["references"]
        _, ref_table, ref_column = parse_reference(reference)
        foreign_keys.append(
            ForeignKeyConstraint(
                constraint_name=naming.foreign_key_constraint_name(
                    table_name, column_name, ref_table, ref_column
                ),
                source_columns=[OrderedColumn(column_name=column_name)],
                referenced_table_name=ref_table,
                referenced_columns=[OrderedColumn(column_name=ref_column)],
                on_delete=on_delete,
                on_update=on_update,
            )
        )
        column = _find_column(columns, column_name)
        column.is_foreign_key = True
        column.referenced_table_name = ref_table
        column.referenced_column_name = ref_column
        column.on_delete = on_delete
        column.on_update = on_update

    unique_constraints = []
    for definition in meta["unique"]:
        unique_columns = [definition] if isinstance(definition, str) else list(definition)
        unique_constraints.append(
            UniqueConstraint(
                constraint_name=naming.unique_constraint_name(table_name, *unique_columns),
                columns=[OrderedColumn.parse(name) for name in unique_columns],
            )
        )
        if len(unique_columns) == 1:
            _find_column(columns, OrderedColumn.parse(unique_columns[0]).column_name).is_unique = True

    indexes = []
    for definition in meta["indexes"]:
        name, index_columns, unique = _parse_index(definition)
        ordered = [OrderedColumn.parse(name_text) for name_text in index_columns]
        indexes.append(
            Index(
                index_name=name
                or naming.index_name(table_name, *[c.column_name for c in ordered]),
                columns=ordered,
                is_unique=unique,
            )
        )
        for ordered_column in ordered:
            _find_column(columns, ordered_column.column_name).is_indexed = True

    check_constraints = [
        CheckConstraint(
            column_name=column_name,
            constraint_name=naming.check_constraint_name(table_name, column_name),
            expression=expression,
        )
        for column_name, expression in meta["checks"].items()
    ]
    default_constraints = [
        DefaultConstraint(
            column_name=column_name,
            constraint_name=naming.default_constraint_name(table_name, column_name),
            expression=expression,
        )
        for column_name, expression in meta["defaults"].items()
    ]

    return Table(
        schema_name=schema_name,
        table_name=table_name,
        columns=columns,
        primary_key_constraint=primary_key_constraint,
        check_constraints=check_constraints,
        default_constraints=default_constraints,
        unique_constraints=unique_constraints,
        foreign_key_constraints=foreign_keys,
        indexes=indexes,
    )


def build_view(model: Type[BaseModel]) -> View:
    meta = get_model_metadata(model)
    definition = meta["view_definition"]
    if not definition or not str(definition).strip():
        raise ValueError(f"Model {model.__name__} missing __sql_view_definition__ attribute")
    return View(
        schema_name=meta["schema"],
        view_name=meta["view"] or model.__name__,
        definition=definition,
    )


def _find_column(columns: List[Column], column_name: str) -> Column:
    target = column_name.lower()
    for column in columns:
        if column.column_name.lower() == target:
            return column
    raise ValueError(f"Column '{column_name}' is not a field of the model.")
