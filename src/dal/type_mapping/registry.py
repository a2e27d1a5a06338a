"""Bidirectional mapping between Python host types and native column types.

Each engine subclasses ``ProviderTypeMap`` and fills two ordered converter
tables the first time the class is used:

- host type -> converters producing a ``SqlTypeDescriptor``
- native base type name -> converters producing a ``HostTypeDescriptor``

A converter may return ``None`` to let the next converter in the list try.
The tables are populated once per class and are read-only afterwards;
``register_optional_type`` and the ``register_*_converter`` helpers are
startup-only APIs and are not safe to call while operations are running.
"""

import datetime
import decimal
import ipaddress
import logging
import uuid
import xml.etree.ElementTree as ElementTree
from enum import Enum
from types import UnionType
from typing import (
    Annotated,
    Any,
    Callable,
    ClassVar,
    Dict,
    List,
    Optional,
    Union,
    get_args,
    get_origin,
)

from pydantic import BaseModel

from dal.type_mapping import defaults
from dal.type_mapping.descriptors import HostTypeDescriptor, SqlTypeDescriptor
from ddl_model.enums import ProviderType

logger = logging.getLogger(__name__)

HostConverter = Callable[[HostTypeDescriptor], Optional[SqlTypeDescriptor]]
SqlConverter = Callable[[SqlTypeDescriptor], Optional[HostTypeDescriptor]]

NUMERIC_HOST_TYPES = (bool, int, float, decimal.Decimal)
TEXT_HOST_TYPES = (str,)
DATE_TIME_HOST_TYPES = (datetime.datetime, datetime.date, datetime.time, datetime.timedelta)
BINARY_HOST_TYPES = (bytes, bytearray, memoryview)
JSON_HOST_TYPES = (dict, list, set, frozenset, tuple, BaseModel)
ADDRESS_HOST_TYPES = (ipaddress.IPv4Address, ipaddress.IPv6Address)
NETWORK_HOST_TYPES = (
    ipaddress.IPv4Network,
    ipaddress.IPv6Network,
    ipaddress.IPv4Interface,
    ipaddress.IPv6Interface,
)
XML_HOST_TYPES = (ElementTree.Element,)

_SEQUENCE_ORIGINS = (list, set, frozenset, tuple)
_UNBOUNDED_TEXT_TYPES = ("text", "ntext", "tinytext", "mediumtext", "longtext", "citext")


class _EnumTypes:
    """Placeholder key for the converters used by every ``Enum`` subclass."""


class _SequenceTypes:
    """Placeholder key for the converters used by ``list[T]``-style generics."""


def simple_type(sql_type: str) -> SqlTypeDescriptor:
    return SqlTypeDescriptor(sql_type_name=sql_type)


def string_type(
    sql_type: str,
    length: Optional[int] = None,
    is_unicode: bool = False,
    is_fixed_length: bool = False,
) -> SqlTypeDescriptor:
    actual_length = length if length is not None else defaults.DEFAULT_STRING_LENGTH
    return SqlTypeDescriptor(
        sql_type_name=f"{sql_type}({actual_length})",
        length=actual_length,
        is_unicode=is_unicode,
        is_fixed_length=is_fixed_length,
    )


def lob_type(sql_type: str, is_unicode: bool = False) -> SqlTypeDescriptor:
    return SqlTypeDescriptor(
        sql_type_name=sql_type, length=defaults.MAX_LENGTH, is_unicode=is_unicode
    )


def decimal_type(
    sql_type: str, precision: Optional[int] = None, scale: Optional[int] = None
) -> SqlTypeDescriptor:
    actual_precision = precision if precision is not None else defaults.DEFAULT_DECIMAL_PRECISION
    actual_scale = scale if scale is not None else defaults.DEFAULT_DECIMAL_SCALE
    return SqlTypeDescriptor(
        sql_type_name=f"{sql_type}({actual_precision},{actual_scale})",
        precision=actual_precision,
        scale=actual_scale,
    )


def enum_value_type(enum_type: type) -> type:
    """Return the common Python type of an enum's member values."""
    values = [member.value for member in enum_type]
    if values and all(isinstance(v, int) and not isinstance(v, bool) for v in values):
        return int
    return str


class ProviderTypeMap:
    """Base class for per-engine type maps."""

    provider: ClassVar[ProviderType]
    boolean_type: ClassVar[str] = "boolean"
    enum_string_type: ClassVar[str] = "varchar"
    numeric_types: ClassVar[Dict[type, str]] = {}

    _host_converters: ClassVar[Dict[Any, List[HostConverter]]]
    _sql_converters: ClassVar[Dict[str, List[SqlConverter]]]

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    @classmethod
    def _ensure_registered(cls) -> None:
        if "_host_converters" in cls.__dict__:
            return
        cls._host_converters = {}
        cls._sql_converters = {}
        cls._register_host_converters()
        cls._register_sql_converters()
        logger.debug(
            "Built %s type map: %d host types, %d native types",
            cls.provider.value,
            len(cls._host_converters),
            len(cls._sql_converters),
        )

    @classmethod
    def register_host_converter(
        cls, host_type: Any, converter: HostConverter, prepend: bool = False
    ) -> None:
        cls._ensure_registered()
        converters = cls._host_converters.setdefault(host_type, [])
        if prepend:
            converters.insert(0, converter)
        else:
            converters.append(converter)

    @classmethod
    def register_sql_converter(
        cls, base_type_name: str, converter: SqlConverter, prepend: bool = False
    ) -> None:
        cls._ensure_registered()
        converters = cls._sql_converters.setdefault(base_type_name.lower(), [])
        if prepend:
            converters.insert(0, converter)
        else:
            converters.append(converter)

    @classmethod
    def register_optional_type(
        cls, host_type: type, converter: Optional[HostConverter] = None
    ) -> None:
        """Map an add-on host type such as a geometry class.

        Without a converter the engine's spatial/serialized fallback type is
        used. Registered converters take precedence over built-in ones.
        """
        cls.register_host_converter(
            host_type, converter or cls.create_optional_type_fallback, prepend=True
        )

    @classmethod
    def _register_host_converters(cls) -> None:
        def register_all(converter: HostConverter, host_types) -> None:
            for host_type in host_types:
                cls.register_host_converter(host_type, converter)

        cls.register_host_converter(bool, lambda d: simple_type(cls.boolean_type))
        register_all(cls._numeric_to_sql, (int, float, decimal.Decimal))
        cls.register_host_converter(uuid.UUID, cls.create_guid_type)
        register_all(cls.create_text_type, TEXT_HOST_TYPES)
        register_all(cls.create_date_time_type, DATE_TIME_HOST_TYPES)
        register_all(cls.create_binary_type, BINARY_HOST_TYPES)
        register_all(cls.create_xml_type, XML_HOST_TYPES)
        register_all(cls.create_json_type, JSON_HOST_TYPES)
        register_all(cls.create_network_type, ADDRESS_HOST_TYPES + NETWORK_HOST_TYPES)
        cls.register_host_converter(_EnumTypes, cls._enum_to_sql)
        cls.register_host_converter(_SequenceTypes, cls.create_array_type)
        cls.register_host_converter(object, cls.create_object_type)
        cls.register_provider_specific_converters()

    @classmethod
    def register_provider_specific_converters(cls) -> None:
        """Hook for engine-only host converters."""

    @classmethod
    def _register_sql_converters(cls) -> None:
        raise NotImplementedError

    # ------------------------------------------------------------------
    # Host -> native
    # ------------------------------------------------------------------

    @classmethod
    def _host_converters_for(cls, host_type: Any) -> List[HostConverter]:
        cls._ensure_registered()
        converters = cls._host_converters
        try:
            exact = converters.get(host_type)
        except TypeError:
            exact = None
        if exact:
            return exact

        origin = get_origin(host_type)
        if origin is not None:
            if origin in _SEQUENCE_ORIGINS:
                return converters.get(_SequenceTypes, [])
            if origin is Annotated:
                return cls._host_converters_for(get_args(host_type)[0])
            if origin is Union or origin is UnionType:
                members = [arg for arg in get_args(host_type) if arg is not type(None)]
                if len(members) == 1:
                    return cls._host_converters_for(members[0])
                return converters[object]
            return cls._host_converters_for(origin)

        if isinstance(host_type, type):
            if issubclass(host_type, Enum):
                return converters.get(_EnumTypes, [])
            for base in host_type.__mro__[1:]:
                if base is not object and base in converters:
                    return converters[base]
        return converters[object]

    @classmethod
    def get_sql_type(cls, descriptor: HostTypeDescriptor) -> Optional[SqlTypeDescriptor]:
        """Resolve the native type for a host type descriptor, or None."""
        for converter in cls._host_converters_for(descriptor.host_type):
            result = converter(descriptor)
            if result is not None:
                return result
        return None

    @classmethod
    def _numeric_to_sql(cls, d: HostTypeDescriptor) -> Optional[SqlTypeDescriptor]:
        sql_type = cls.numeric_types.get(d.host_type)
        if sql_type is None:
            for host_type, candidate in cls.numeric_types.items():
                if isinstance(d.host_type, type) and issubclass(d.host_type, host_type):
                    sql_type = candidate
                    break
        if sql_type is None:
            sql_type = cls.numeric_types[int]
        if d.host_type is decimal.Decimal:
            return decimal_type(sql_type, d.precision, d.scale)
        return simple_type(sql_type)

    @classmethod
    def _enum_to_sql(cls, d: HostTypeDescriptor) -> Optional[SqlTypeDescriptor]:
        value_type = enum_value_type(d.host_type)
        if value_type is int:
            return cls.get_sql_type(HostTypeDescriptor(host_type=int))
        return string_type(
            cls.enum_string_type,
            d.length or defaults.DEFAULT_ENUM_LENGTH,
            is_unicode=False,
        )

    @classmethod
    def sequence_element_type(cls, host_type: Any) -> Optional[Any]:
        """Return ``T`` for ``list[T]``, ``set[T]`` and ``tuple[T, ...]``."""
        args = [arg for arg in get_args(host_type) if arg is not Ellipsis]
        if not args or len(set(args)) != 1:
            return None
        return args[0]

    # Engine hooks. Every engine overrides the ones it stores differently.

    @classmethod
    def create_guid_type(cls, d: HostTypeDescriptor) -> SqlTypeDescriptor:
        return string_type("char", defaults.GUID_STRING_LENGTH, is_fixed_length=True)

    @classmethod
    def create_text_type(cls, d: HostTypeDescriptor) -> SqlTypeDescriptor:
        raise NotImplementedError

    @classmethod
    def create_date_time_type(cls, d: HostTypeDescriptor) -> SqlTypeDescriptor:
        raise NotImplementedError

    @classmethod
    def create_binary_type(cls, d: HostTypeDescriptor) -> SqlTypeDescriptor:
        raise NotImplementedError

    @classmethod
    def create_xml_type(cls, d: HostTypeDescriptor) -> SqlTypeDescriptor:
        return simple_type("xml")

    @classmethod
    def create_json_type(cls, d: HostTypeDescriptor) -> SqlTypeDescriptor:
        raise NotImplementedError

    @classmethod
    def create_object_type(cls, d: HostTypeDescriptor) -> SqlTypeDescriptor:
        return cls.create_json_type(d)

    @classmethod
    def create_array_type(cls, d: HostTypeDescriptor) -> Optional[SqlTypeDescriptor]:
        return cls.create_json_type(d)

    @classmethod
    def create_network_type(cls, d: HostTypeDescriptor) -> SqlTypeDescriptor:
        default_length = (
            defaults.IP_ADDRESS_STRING_LENGTH
            if d.host_type in ADDRESS_HOST_TYPES
            else defaults.NETWORK_STRING_LENGTH
        )
        return string_type(
            "char" if d.is_fixed_length else "varchar",
            d.length or default_length,
            is_fixed_length=bool(d.is_fixed_length),
        )

    @classmethod
    def create_optional_type_fallback(cls, d: HostTypeDescriptor) -> SqlTypeDescriptor:
        return simple_type("geometry")

    # ------------------------------------------------------------------
    # Native -> host
    # ------------------------------------------------------------------

    @classmethod
    def _sql_converters_for(cls, descriptor: SqlTypeDescriptor) -> List[SqlConverter]:
        cls._ensure_registered()
        return cls._sql_converters.get(descriptor.base_type_name, [])

    @classmethod
    def get_host_type(
        cls, sql_type: Union[str, SqlTypeDescriptor]
    ) -> Optional[HostTypeDescriptor]:
        """Resolve the host type for a full native type string, or None."""
        descriptor = (
            sql_type if isinstance(sql_type, SqlTypeDescriptor) else SqlTypeDescriptor.parse(sql_type)
        )
        for converter in cls._sql_converters_for(descriptor):
            result = converter(descriptor)
            if result is not None:
                return result
        return None

    @classmethod
    def register_sql_converters_for(cls, converter: SqlConverter, *base_type_names: str) -> None:
        for name in base_type_names:
            cls.register_sql_converter(name, converter)


def text_host_descriptor(
    d: SqlTypeDescriptor,
    is_fixed_length: Optional[bool] = None,
    is_unicode: Optional[bool] = None,
) -> HostTypeDescriptor:
    """Reverse mapping shared by every engine's character types.

    Unicode defaults to True unless the engine or the parsed type says otherwise.
    """
    length = d.length
    if length is None:
        length = (
            defaults.MAX_LENGTH
            if d.base_type_name in _UNBOUNDED_TEXT_TYPES
            else defaults.DEFAULT_STRING_LENGTH
        )
    if is_unicode is None:
        is_unicode = d.is_unicode if d.is_unicode is not None else True
    return HostTypeDescriptor(
        host_type=str,
        length=length,
        is_unicode=is_unicode,
        is_fixed_length=(
            is_fixed_length if is_fixed_length is not None else bool(d.is_fixed_length)
        ),
    )


def decimal_host_descriptor(
    d: SqlTypeDescriptor,
    default_precision: int = defaults.DEFAULT_DECIMAL_PRECISION,
    default_scale: int = defaults.DEFAULT_DECIMAL_SCALE,
) -> HostTypeDescriptor:
    return HostTypeDescriptor(
        host_type=decimal.Decimal,
        precision=d.precision if d.precision is not None else default_precision,
        scale=d.scale if d.scale is not None else default_scale,
    )


def binary_host_descriptor(d: SqlTypeDescriptor) -> HostTypeDescriptor:
    return HostTypeDescriptor(
        host_type=bytes,
        length=d.length if d.length is not None else defaults.MAX_LENGTH,
        is_fixed_length=bool(d.is_fixed_length),
    )
