"""PostgreSQL type map, including native array types."""

import datetime
import decimal
import ipaddress
import uuid
import xml.etree.ElementTree as ElementTree
from typing import List

from dal.type_mapping import defaults
from dal.type_mapping.descriptors import HostTypeDescriptor, SqlTypeDescriptor
from dal.type_mapping.registry import (
    ADDRESS_HOST_TYPES,
    ProviderTypeMap,
    SqlConverter,
    binary_host_descriptor,
    decimal_host_descriptor,
    simple_type,
    string_type,
    text_host_descriptor,
)
from ddl_model.enums import ProviderType

# Element type names used when a sequence host type becomes ``<element>[]``.
ARRAY_ELEMENT_TYPES = {
    bool: "boolean",
    int: "integer",
    float: "double precision",
    decimal.Decimal: "numeric",
    str: "text",
    bytes: "bytea",
    datetime.datetime: "timestamp",
    datetime.timedelta: "interval",
    datetime.date: "date",
    datetime.time: "time",
    uuid.UUID: "uuid",
}

_INTEGER_TYPES = (
    "smallint",
    "int2",
    "smallserial",
    "serial2",
    "integer",
    "int",
    "int4",
    "serial",
    "serial4",
    "bigint",
    "int8",
    "bigserial",
    "serial8",
)
_FLOAT_TYPES = ("real", "float4", "double precision", "float8", "float")
_TIMESTAMP_TYPES = (
    "timestamp",
    "timestamp without time zone",
    "timestamptz",
    "timestamp with time zone",
)
_TIME_TYPES = ("time", "time without time zone", "timetz", "time with time zone")
_TEXT_TYPES = (
    "bit",
    "bit varying",
    "varbit",
    "varchar",
    "character varying",
    "char",
    "character",
    "bpchar",
    "text",
    "name",
    "citext",
)
_GEOMETRY_TYPES = (
    "box",
    "circle",
    "geography",
    "geometry",
    "line",
    "lseg",
    "path",
    "point",
    "polygon",
)
_STRING_BACKED_TYPES = (
    "macaddr",
    "macaddr8",
    "tsquery",
    "tsvector",
    "pg_lsn",
    "pg_snapshot",
    "txid_snapshot",
    "regclass",
    "oid",
)
_RANGE_TYPES = (
    "int4range",
    "int8range",
    "numrange",
    "tsrange",
    "tstzrange",
    "daterange",
    "int4multirange",
    "int8multirange",
    "nummultirange",
    "tsmultirange",
    "tstzmultirange",
    "datemultirange",
)


class PostgresTypeMap(ProviderTypeMap):
    provider = ProviderType.POSTGRES
    boolean_type = "boolean"
    numeric_types = {int: "integer", float: "double precision", decimal.Decimal: "decimal"}

    @classmethod
    def _numeric_to_sql(cls, d: HostTypeDescriptor):
        if d.is_auto_increment and d.host_type is int:
            return simple_type("serial")
        return super()._numeric_to_sql(d)

    @classmethod
    def create_guid_type(cls, d):
        return simple_type("uuid")

    @classmethod
    def create_text_type(cls, d):
        if d.length == defaults.MAX_LENGTH:
            return SqlTypeDescriptor(sql_type_name="text", length=defaults.MAX_LENGTH)
        if d.is_fixed_length:
            return string_type("char", d.length, is_fixed_length=True)
        return string_type("varchar", d.length)

    @classmethod
    def create_date_time_type(cls, d):
        if d.host_type is datetime.date:
            return simple_type("date")
        if d.host_type is datetime.time:
            return simple_type("time")
        if d.host_type is datetime.timedelta:
            return simple_type("interval")
        return simple_type("timestamp")

    @classmethod
    def create_binary_type(cls, d):
        return simple_type("bytea")

    @classmethod
    def create_json_type(cls, d):
        return simple_type("jsonb")

    @classmethod
    def create_network_type(cls, d):
        if d.host_type in ADDRESS_HOST_TYPES or d.host_type in (
            ipaddress.IPv4Interface,
            ipaddress.IPv6Interface,
        ):
            return simple_type("inet")
        return simple_type("cidr")

    @classmethod
    def create_array_type(cls, d):
        element_type = cls.sequence_element_type(d.host_type)
        element_name = ARRAY_ELEMENT_TYPES.get(element_type)
        if element_name is None:
            # Sequences of anything else are stored as a JSON document.
            return cls.create_json_type(d)
        return simple_type(f"{element_name}[]")

    @classmethod
    def _register_sql_converters(cls) -> None:
        cls.register_sql_converters_for(
            lambda d: HostTypeDescriptor(host_type=bool), "bool", "boolean"
        )
        cls.register_sql_converters_for(
            lambda d: HostTypeDescriptor(host_type=int, is_auto_increment=d.is_auto_incrementing),
            *_INTEGER_TYPES,
        )
        cls.register_sql_converters_for(lambda d: HostTypeDescriptor(host_type=float), *_FLOAT_TYPES)
        cls.register_sql_converters_for(decimal_host_descriptor, "decimal", "numeric")
        cls.register_sql_converters_for(
            lambda d: decimal_host_descriptor(d, default_precision=19, default_scale=4), "money"
        )
        cls.register_sql_converters_for(
            lambda d: HostTypeDescriptor(host_type=datetime.datetime), *_TIMESTAMP_TYPES
        )
        cls.register_sql_converters_for(
            lambda d: HostTypeDescriptor(host_type=datetime.time), *_TIME_TYPES
        )
        cls.register_sql_converters_for(lambda d: HostTypeDescriptor(host_type=datetime.date), "date")
        cls.register_sql_converters_for(
            lambda d: HostTypeDescriptor(host_type=datetime.timedelta), "interval"
        )
        cls.register_sql_converters_for(lambda d: HostTypeDescriptor(host_type=uuid.UUID), "uuid")
        cls.register_sql_converters_for(lambda d: text_host_descriptor(d), *_TEXT_TYPES)
        cls.register_sql_converters_for(
            lambda d: HostTypeDescriptor(host_type=dict), "json", "jsonb", "jsonpath"
        )
        cls.register_sql_converters_for(binary_host_descriptor, "bytea")
        cls.register_sql_converters_for(
            lambda d: HostTypeDescriptor(host_type=ElementTree.Element), "xml"
        )
        cls.register_sql_converters_for(
            lambda d: HostTypeDescriptor(host_type=object), *_GEOMETRY_TYPES, *_RANGE_TYPES
        )
        cls.register_sql_converters_for(
            lambda d: HostTypeDescriptor(host_type=ipaddress.IPv4Address), "inet"
        )
        cls.register_sql_converters_for(
            lambda d: HostTypeDescriptor(host_type=ipaddress.IPv4Network), "cidr"
        )
        cls.register_sql_converters_for(
            lambda d: HostTypeDescriptor(host_type=str), *_STRING_BACKED_TYPES
        )

    @classmethod
    def _sql_converters_for(cls, descriptor: SqlTypeDescriptor) -> List[SqlConverter]:
        base = descriptor.base_type_name
        if base.endswith("[]") or base.startswith("_"):
            return [cls._array_to_host]
        return super()._sql_converters_for(descriptor)

    @classmethod
    def _array_to_host(cls, d: SqlTypeDescriptor):
        base = d.base_type_name
        element_name = base[:-2] if base.endswith("[]") else base[1:]
        element = cls.get_host_type(element_name)
        if element is None:
            return None
        return HostTypeDescriptor(host_type=List[element.host_type])
