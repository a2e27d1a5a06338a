"""Static per-engine catalog of native data types.

The catalog serves type-picker metadata and facet validation. DDL text is
never built from it; the only question the DDL builders ask is whether a
native type accepts a ``(length)`` or ``(precision, scale)`` suffix.
"""

import logging
from typing import ClassVar, Dict, List, Optional

from ddl_model.data_types import DataTypeCategory, DataTypeInfo
from ddl_model.enums import ProviderType

logger = logging.getLogger(__name__)

_CATEGORY_ORDER = {category: index for index, category in enumerate(DataTypeCategory)}


class DataTypeCatalog:
    """Read-only list of ``DataTypeInfo`` entries for one engine."""

    provider: ClassVar[ProviderType]
    _entries: ClassVar[List[DataTypeInfo]]
    _by_name: ClassVar[Dict[str, DataTypeInfo]]

    @classmethod
    def build_entries(cls) -> List[DataTypeInfo]:
        raise NotImplementedError

    @classmethod
    def _ensure_built(cls) -> None:
        if "_entries" in cls.__dict__:
            return
        entries = cls.build_entries()
        by_name: Dict[str, DataTypeInfo] = {}
        for entry in entries:
            for name in [entry.data_type, *entry.aliases]:
                by_name.setdefault(name.lower(), entry)
        cls._entries = entries
        cls._by_name = by_name
        logger.debug("Built %s type catalog with %d entries", cls.provider.value, len(entries))

    @classmethod
    def get_available_data_types(cls, include_advanced: bool = False) -> List[DataTypeInfo]:
        """Return catalog entries sorted by category and then name.

        Only common types are returned unless ``include_advanced`` is set.
        """
        cls._ensure_built()
        entries = cls._entries if include_advanced else [e for e in cls._entries if e.is_common]
        return sorted(entries, key=lambda e: (_CATEGORY_ORDER[e.category], e.data_type))

    @classmethod
    def get_data_type(cls, name: str) -> Optional[DataTypeInfo]:
        """Look up an entry by name or alias, case-insensitively."""
        if not name or not name.strip():
            return None
        cls._ensure_built()
        return cls._by_name.get(name.strip().lower())

    @classmethod
    def validate_facets(
        cls,
        name: str,
        length: Optional[int] = None,
        precision: Optional[int] = None,
        scale: Optional[int] = None,
    ) -> DataTypeInfo:
        """Check requested facets against the engine's bounds.

        Raises:
            ValueError: If the type is unknown or a facet is out of range.
        """
        info = cls.get_data_type(name)
        if info is None:
            raise ValueError(f"Unknown {cls.provider.value} data type '{name}'.")

        # -1 is the unbounded length sentinel and is accepted wherever a
        # length is accepted.
        if length is not None and length != -1:
            _check_range(info, "length", length, info.supports_length, info.min_length, info.max_length)
        _check_range(
            info, "precision", precision, info.supports_precision, info.min_precision, info.max_precision
        )
        _check_range(info, "scale", scale, info.supports_scale, info.min_scale, info.max_scale)
        if (
            precision is not None
            and scale is not None
            and info.supports_scale
            and scale > precision
        ):
            raise ValueError(
                f"Scale {scale} cannot exceed precision {precision} for type '{info.data_type}'."
            )
        return info

    @classmethod
    def supports_length(cls, name: str) -> bool:
        info = cls.get_data_type(name)
        return bool(info and info.supports_length)

    @classmethod
    def supports_precision(cls, name: str) -> bool:
        info = cls.get_data_type(name)
        return bool(info and info.supports_precision)

    @classmethod
    def supports_scale(cls, name: str) -> bool:
        info = cls.get_data_type(name)
        return bool(info and info.supports_scale)


def _check_range(
    info: DataTypeInfo,
    facet: str,
    value: Optional[int],
    supported: bool,
    minimum: Optional[int],
    maximum: Optional[int],
) -> None:
    if value is None:
        return
    if not supported:
        raise ValueError(f"Type '{info.data_type}' does not accept a {facet}.")
    if minimum is not None and value < minimum:
        raise ValueError(
            f"{facet.capitalize()} {value} is below the minimum {minimum} for '{info.data_type}'."
        )
    if maximum is not None and value > maximum:
        raise ValueError(
            f"{facet.capitalize()} {value} exceeds the maximum {maximum} for '{info.data_type}'."
        )


def data_type(
    name: str,
    category: DataTypeCategory,
    *aliases: str,
    common: bool = False,
    description: Optional[str] = None,
    **facets,
) -> DataTypeInfo:
    """Shorthand used by the engine catalogs to declare entries."""
    return DataTypeInfo(
        data_type=name,
        aliases=list(aliases),
        category=category,
        is_common=common,
        description=description,
        **facets,
    )


def text_facets(max_length: int, default_length: int = 255) -> dict:
    return {
        "supports_length": True,
        "min_length": 1,
        "max_length": max_length,
        "default_length": default_length,
    }


def decimal_facets(max_precision: int, max_scale: Optional[int] = None) -> dict:
    return {
        "supports_precision": True,
        "min_precision": 1,
        "max_precision": max_precision,
        "default_precision": 16,
        "supports_scale": True,
        "min_scale": 0,
        "max_scale": max_scale if max_scale is not None else max_precision,
        "default_scale": 4,
    }


def fraction_facets(max_precision: int, default_precision: Optional[int] = None) -> dict:
    """Fractional-second precision used by time and timestamp types."""
    return {
        "supports_precision": True,
        "min_precision": 0,
        "max_precision": max_precision,
        "default_precision": default_precision,
    }
