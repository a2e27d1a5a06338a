"""SQL Server type map."""

import datetime
import decimal
import uuid
import xml.etree.ElementTree as ElementTree

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

_INTEGER_TYPES = ("tinyint", "smallint", "int", "bigint")
_TEXT_TYPES = ("nvarchar", "varchar", "ntext", "text", "nchar", "char")
_DATE_TIME_TYPES = ("smalldatetime", "datetime", "datetime2", "timestamp", "datetimeoffset")
_BINARY_TYPES = ("varbinary", "binary", "image")
_SPATIAL_TYPES = ("geometry", "geography", "hierarchyid")


class SqlServerTypeMap(ProviderTypeMap):
    provider = ProviderType.SQLSERVER
    boolean_type = "bit"
    numeric_types = {int: "int", float: "float", decimal.Decimal: "decimal"}

    @classmethod
    def register_provider_specific_converters(cls) -> None:
        # Keep the legacy datetime type for datetime.datetime instead of
        # datetime2 so existing schemas compare equal.
        cls.register_host_converter(
            datetime.datetime, lambda d: simple_type("datetime"), prepend=True
        )

    @classmethod
    def create_guid_type(cls, d):
        return simple_type("uniqueidentifier")

    @classmethod
    def create_text_type(cls, d):
        is_unicode = bool(d.is_unicode)
        if d.length == defaults.MAX_LENGTH:
            return SqlTypeDescriptor(
                sql_type_name="nvarchar(max)" if is_unicode else "varchar(max)",
                length=defaults.MAX_LENGTH,
                is_unicode=is_unicode,
            )
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
        return simple_type("datetime2")

    @classmethod
    def create_binary_type(cls, d):
        if d.length == defaults.MAX_LENGTH:
            return SqlTypeDescriptor(sql_type_name="varbinary(max)", length=defaults.MAX_LENGTH)
        length = d.length or defaults.DEFAULT_BINARY_LENGTH
        name = "binary" if d.is_fixed_length else "varbinary"
        return SqlTypeDescriptor(
            sql_type_name=f"{name}({length})", length=length, is_fixed_length=bool(d.is_fixed_length)
        )

    @classmethod
    def create_json_type(cls, d):
        if d.is_unicode is False:
            return SqlTypeDescriptor(sql_type_name="varchar(max)", length=defaults.MAX_LENGTH)
        return SqlTypeDescriptor(
            sql_type_name="nvarchar(max)", length=defaults.MAX_LENGTH, is_unicode=True
        )

    @classmethod
    def _register_sql_converters(cls) -> None:
        cls.register_sql_converters_for(lambda d: HostTypeDescriptor(host_type=bool), "bit")
        cls.register_sql_converters_for(lambda d: HostTypeDescriptor(host_type=int), *_INTEGER_TYPES)
        cls.register_sql_converters_for(
            lambda d: HostTypeDescriptor(host_type=float), "real", "float"
        )
        cls.register_sql_converters_for(decimal_host_descriptor, "decimal", "numeric")
        cls.register_sql_converters_for(
            lambda d: decimal_host_descriptor(d, default_precision=19, default_scale=4), "money"
        )
        cls.register_sql_converters_for(
            lambda d: decimal_host_descriptor(d, default_precision=10, default_scale=4),
            "smallmoney",
        )
        cls.register_sql_converters_for(
            lambda d: HostTypeDescriptor(host_type=uuid.UUID), "uniqueidentifier"
        )
        cls.register_sql_converters_for(
            lambda d: text_host_descriptor(d, is_unicode=d.base_type_name.startswith("n")),
            *_TEXT_TYPES,
        )
        cls.register_sql_converters_for(
            lambda d: HostTypeDescriptor(host_type=ElementTree.Element), "xml"
        )
        cls.register_sql_converters_for(
            lambda d: HostTypeDescriptor(host_type=datetime.datetime), *_DATE_TIME_TYPES
        )
        cls.register_sql_converters_for(lambda d: HostTypeDescriptor(host_type=datetime.time), "time")
        cls.register_sql_converters_for(lambda d: HostTypeDescriptor(host_type=datetime.date), "date")
        cls.register_sql_converters_for(binary_host_descriptor, *_BINARY_TYPES)
        cls.register_sql_converters_for(
            lambda d: HostTypeDescriptor(host_type=object), "sql_variant", *_SPATIAL_TYPES
        )
