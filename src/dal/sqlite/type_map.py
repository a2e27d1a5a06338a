"""SQLite type map.

SQLite stores values by affinity, so the native names here are the
conventional spellings the other engines' tools recognise.
"""

import datetime
import decimal
import uuid

from dal.type_mapping import defaults
from dal.type_mapping.descriptors import HostTypeDescriptor, SqlTypeDescriptor
from dal.type_mapping.registry import (
    ProviderTypeMap,
    binary_host_descriptor,
    decimal_host_descriptor,
    lob_type,
    simple_type,
    string_type,
    text_host_descriptor,
)
from ddl_model.enums import ProviderType

_FLOATS = {"real", "float", "double", "double precision"}


class SqliteTypeMap(ProviderTypeMap):
    provider = ProviderType.SQLITE
    boolean_type = "boolean"
    numeric_types = {int: "int", float: "double", decimal.Decimal: "numeric"}

    @classmethod
    def _numeric_to_sql(cls, d: HostTypeDescriptor):
        if d.is_auto_increment and d.host_type is int:
            return simple_type("integer")
        return super()._numeric_to_sql(d)

    @classmethod
    def create_guid_type(cls, d):
        return string_type("varchar", defaults.GUID_STRING_LENGTH)

    @classmethod
    def create_text_type(cls, d):
        is_unicode = bool(d.is_unicode)
        if d.length == defaults.MAX_LENGTH:
            return lob_type("nvarchar" if is_unicode else "varchar", is_unicode=is_unicode)
        if d.is_fixed_length:
            return string_type(
                "nchar" if is_unicode else "char", d.length, is_unicode, is_fixed_length=True
            )
        return string_type("nvarchar" if is_unicode else "varchar", d.length, is_unicode)

    @classmethod
    def create_date_time_type(cls, d):
        if d.host_type is datetime.date:
            return simple_type("date")
        if d.host_type in (datetime.time, datetime.timedelta):
            return simple_type("time")
        return simple_type("datetime")

    @classmethod
    def create_binary_type(cls, d):
        return simple_type("blob")

    @classmethod
    def create_xml_type(cls, d):
        return simple_type("text")

    @classmethod
    def create_json_type(cls, d):
        return simple_type("text")

    @classmethod
    def create_optional_type_fallback(cls, d):
        return simple_type("text")

    @classmethod
    def _register_sql_converters(cls) -> None:
        cls.register_sql_converters_for(
            lambda d: HostTypeDescriptor(host_type=bool), "bool", "boolean"
        )
        cls.register_sql_converters_for(
            cls._numeric_to_host,
            "tinyint",
            "smallint",
            "int",
            "integer",
            "mediumint",
            "unsigned big int",
            "bigint",
            "real",
            "float",
            "decimal",
            "numeric",
            "double",
            "double precision",
            "int2",
            "int4",
            "int8",
        )
        # A 36-character varchar/char column is how guids are stored; any
        # other length falls through to the text converter.
        cls.register_sql_converters_for(cls._guid_to_host, "char", "varchar")
        cls.register_sql_converters_for(
            lambda d: text_host_descriptor(d),
            "nvarchar",
            "varchar",
            "varying character",
            "native character",
            "text",
            "nchar",
            "char",
            "character",
        )
        cls.register_sql_converters_for(
            cls._date_time_to_host, "datetime", "time", "date", "timestamp", "year"
        )
        cls.register_sql_converters_for(binary_host_descriptor, "blob")
        cls.register_sql_converters_for(lambda d: HostTypeDescriptor(host_type=object), "clob")

    @staticmethod
    def _numeric_to_host(d: SqlTypeDescriptor) -> HostTypeDescriptor:
        base = d.base_type_name
        if base in ("decimal", "numeric"):
            return decimal_host_descriptor(d)
        if base in _FLOATS:
            return HostTypeDescriptor(host_type=float)
        return HostTypeDescriptor(host_type=int, is_auto_increment=d.is_auto_incrementing)

    @staticmethod
    def _guid_to_host(d: SqlTypeDescriptor):
        if d.length == defaults.GUID_STRING_LENGTH:
            return HostTypeDescriptor(host_type=uuid.UUID)
        return None

    @staticmethod
    def _date_time_to_host(d: SqlTypeDescriptor) -> HostTypeDescriptor:
        if d.base_type_name == "time":
            return HostTypeDescriptor(host_type=datetime.time)
        if d.base_type_name == "date":
            return HostTypeDescriptor(host_type=datetime.date)
        return HostTypeDescriptor(host_type=datetime.datetime)
