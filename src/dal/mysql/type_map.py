"""MySQL / MariaDB type map."""

import datetime
import decimal
import uuid

from dal.type_mapping import defaults
from dal.type_mapping.descriptors import HostTypeDescriptor, SqlTypeDescriptor
from dal.type_mapping.registry import (
    ProviderTypeMap,
    binary_host_descriptor,
    decimal_host_descriptor,
    simple_type,
    string_type,
    text_host_descriptor,
)
from ddl_model.enums import ProviderType

_INTEGER_TYPES = (
    "tinyint",
    "tinyint unsigned",
    "smallint",
    "smallint unsigned",
    "mediumint",
    "mediumint unsigned",
    "int",
    "int unsigned",
    "integer",
    "integer unsigned",
    "bigint",
    "bigint unsigned",
    "serial",
    "year",
)
_FLOAT_TYPES = (
    "real",
    "float",
    "double",
    "double unsigned",
    "double precision",
    "double precision unsigned",
)
_TEXT_TYPES = (
    "char",
    "varchar",
    "long varchar",
    "tinytext",
    "mediumtext",
    "text",
    "longtext",
    "enum",
    "set",
)
_BINARY_TYPES = (
    "binary",
    "varbinary",
    "long varbinary",
    "tinyblob",
    "blob",
    "mediumblob",
    "longblob",
)
_GEOMETRY_TYPES = (
    "geometry",
    "point",
    "linestring",
    "polygon",
    "multipoint",
    "multilinestring",
    "multipolygon",
    "geomcollection",
    "geometrycollection",
)


class MySqlTypeMap(ProviderTypeMap):
    provider = ProviderType.MYSQL
    boolean_type = "boolean"
    numeric_types = {int: "int", float: "double", decimal.Decimal: "decimal"}

    @classmethod
    def create_text_type(cls, d):
        if d.length == defaults.MAX_LENGTH:
            return SqlTypeDescriptor(
                sql_type_name="text", length=defaults.MAX_LENGTH, is_unicode=bool(d.is_unicode)
            )
        if d.is_fixed_length:
            return string_type("char", d.length, bool(d.is_unicode), is_fixed_length=True)
        return string_type("varchar", d.length, bool(d.is_unicode))

    @classmethod
    def create_date_time_type(cls, d):
        if d.host_type is datetime.date:
            return simple_type("date")
        if d.host_type in (datetime.time, datetime.timedelta):
            return simple_type("time(6)")
        return simple_type("datetime(6)")

    @classmethod
    def create_binary_type(cls, d):
        if d.length == defaults.MAX_LENGTH:
            return SqlTypeDescriptor(sql_type_name="blob", length=defaults.MAX_LENGTH)
        length = d.length or defaults.DEFAULT_BINARY_LENGTH
        name = "binary" if d.is_fixed_length else "varbinary"
        return SqlTypeDescriptor(
            sql_type_name=f"{name}({length})", length=length, is_fixed_length=bool(d.is_fixed_length)
        )

    @classmethod
    def create_xml_type(cls, d):
        return simple_type("text")

    @classmethod
    def create_json_type(cls, d):
        return simple_type("json")

    @classmethod
    def _register_sql_converters(cls) -> None:
        cls.register_sql_converters_for(
            lambda d: HostTypeDescriptor(host_type=bool), "bool", "boolean"
        )
        cls.register_sql_converters_for(cls._integer_to_host, "bit", *_INTEGER_TYPES)
        cls.register_sql_converters_for(lambda d: HostTypeDescriptor(host_type=float), *_FLOAT_TYPES)
        cls.register_sql_converters_for(decimal_host_descriptor, "decimal", "dec", "fixed", "numeric")
        cls.register_sql_converters_for(cls._date_time_to_host, "datetime", "timestamp", "time", "date")
        # A 36-character char/varchar column is how guids are stored; any
        # other length falls through to the text converter.
        cls.register_sql_converters_for(cls._guid_to_host, "char", "varchar")
        cls.register_sql_converters_for(lambda d: text_host_descriptor(d), *_TEXT_TYPES)
        cls.register_sql_converters_for(lambda d: HostTypeDescriptor(host_type=dict), "json")
        cls.register_sql_converters_for(binary_host_descriptor, *_BINARY_TYPES)
        cls.register_sql_converters_for(
            lambda d: HostTypeDescriptor(host_type=object), *_GEOMETRY_TYPES
        )

    @staticmethod
    def _integer_to_host(d: SqlTypeDescriptor) -> HostTypeDescriptor:
        base = d.base_type_name
        if base == "bit" and d.precision in (None, 1):
            return HostTypeDescriptor(host_type=bool)
        # tinyint(1) is MySQL's spelling of boolean.
        if base.startswith("tinyint") and d.precision == 1:
            return HostTypeDescriptor(host_type=bool)
        return HostTypeDescriptor(
            host_type=int, is_auto_increment=True if base == "serial" else None
        )

    @staticmethod
    def _date_time_to_host(d: SqlTypeDescriptor) -> HostTypeDescriptor:
        if d.base_type_name == "time":
            return HostTypeDescriptor(host_type=datetime.time)
        if d.base_type_name == "date":
            return HostTypeDescriptor(host_type=datetime.date)
        return HostTypeDescriptor(host_type=datetime.datetime)

    @staticmethod
    def _guid_to_host(d: SqlTypeDescriptor):
        if d.length == defaults.GUID_STRING_LENGTH:
            return HostTypeDescriptor(host_type=uuid.UUID)
        return None
