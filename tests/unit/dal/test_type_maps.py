import datetime
import decimal
import uuid
from enum import Enum, IntEnum
from typing import List, Optional

import pytest

from dal.mysql.type_map import MySqlTypeMap
from dal.postgres.type_map import PostgresTypeMap
from dal.sqlite.type_map import SqliteTypeMap
from dal.sqlserver.type_map import SqlServerTypeMap
from dal.type_mapping import HostTypeDescriptor, SqlTypeDescriptor


class Color(Enum):
    RED = "red"
    BLUE = "blue"


class Level(IntEnum):
    LOW = 1
    HIGH = 2


class Geometry:
    pass


def _sql(type_map, host_type, **facets):
    return type_map.get_sql_type(HostTypeDescriptor(host_type=host_type, **facets)).sql_type_name


class TestSqlTypeDescriptor:
    def test_parse_text_length(self):
        descriptor = SqlTypeDescriptor.parse("nvarchar(100)")

        assert descriptor.base_type_name == "nvarchar"
        assert descriptor.length == 100
        assert descriptor.is_unicode is True
        assert descriptor.precision is None

    def test_parse_max_length(self):
        assert SqlTypeDescriptor.parse("varchar(max)").length == -1

    def test_parse_precision_and_scale(self):
        descriptor = SqlTypeDescriptor.parse("decimal(12, 2)")

        assert (descriptor.precision, descriptor.scale) == (12, 2)
        assert descriptor.length is None

    def test_parse_fixed_length_and_serial(self):
        assert SqlTypeDescriptor.parse("char(36)").is_fixed_length is True
        assert SqlTypeDescriptor.parse("bigserial").is_auto_incrementing is True

    def test_parse_keeps_type_modifiers(self):
        descriptor = SqlTypeDescriptor.parse("timestamp(3)  with time zone")

        assert descriptor.base_type_name == "timestamp with time zone"
        assert descriptor.precision == 3

    def test_parse_rejects_blank(self):
        with pytest.raises(ValueError):
            SqlTypeDescriptor.parse("  ")


class TestSqlServerTypeMap:
    @pytest.mark.parametrize(
        "host_type,facets,expected",
        [
            (bool, {}, "bit"),
            (int, {}, "int"),
            (float, {}, "float"),
            (decimal.Decimal, {"precision": 12, "scale": 2}, "decimal(12,2)"),
            (decimal.Decimal, {}, "decimal(16,4)"),
            (str, {"length": 100, "is_unicode": True}, "nvarchar(100)"),
            (str, {"length": 100}, "varchar(100)"),
            (str, {"length": -1, "is_unicode": True}, "nvarchar(max)"),
            (str, {"length": 10, "is_fixed_length": True}, "char(10)"),
            (uuid.UUID, {}, "uniqueidentifier"),
            (datetime.datetime, {}, "datetime"),
            (datetime.date, {}, "date"),
            (datetime.time, {}, "time"),
            (bytes, {}, "varbinary(255)"),
            (bytes, {"length": -1}, "varbinary(max)"),
            (dict, {}, "nvarchar(max)"),
            (Color, {}, "varchar(128)"),
            (Level, {}, "int"),
            (Optional[int], {}, "int"),
            (List[int], {}, "nvarchar(max)"),
        ],
    )
    def test_host_to_sql(self, host_type, facets, expected):
        assert _sql(SqlServerTypeMap, host_type, **facets) == expected

    def test_sql_to_host(self):
        text = SqlServerTypeMap.get_host_type("nvarchar(50)")
        assert (text.host_type, text.length, text.is_unicode) == (str, 50, True)

        ansi = SqlServerTypeMap.get_host_type("varchar(max)")
        assert (ansi.length, ansi.is_unicode) == (-1, False)

        money = SqlServerTypeMap.get_host_type("money")
        assert (money.host_type, money.precision, money.scale) == (decimal.Decimal, 19, 4)

        assert SqlServerTypeMap.get_host_type("uniqueidentifier").host_type is uuid.UUID
        assert SqlServerTypeMap.get_host_type("datetimeoffset").host_type is datetime.datetime
        assert SqlServerTypeMap.get_host_type("geography").host_type is object
        assert SqlServerTypeMap.get_host_type("madeup") is None


class TestMySqlTypeMap:
    @pytest.mark.parametrize(
        "host_type,facets,expected",
        [
            (bool, {}, "boolean"),
            (float, {}, "double"),
            (str, {"length": 255, "is_unicode": True}, "varchar(255)"),
            (str, {"length": -1}, "text"),
            (datetime.datetime, {}, "datetime(6)"),
            (datetime.time, {}, "time(6)"),
            (uuid.UUID, {}, "char(36)"),
            (dict, {}, "json"),
            (bytes, {"length": -1}, "blob"),
        ],
    )
    def test_host_to_sql(self, host_type, facets, expected):
        assert _sql(MySqlTypeMap, host_type, **facets) == expected

    def test_sql_to_host(self):
        assert MySqlTypeMap.get_host_type("tinyint(1)").host_type is bool
        assert MySqlTypeMap.get_host_type("tinyint(4)").host_type is int
        assert MySqlTypeMap.get_host_type("bigint unsigned").host_type is int
        assert MySqlTypeMap.get_host_type("char(36)").host_type is uuid.UUID
        assert MySqlTypeMap.get_host_type("char(10)").host_type is str
        assert MySqlTypeMap.get_host_type("longtext").length == -1
        assert MySqlTypeMap.get_host_type("point").host_type is object


class TestPostgresTypeMap:
    @pytest.mark.parametrize(
        "host_type,facets,expected",
        [
            (int, {}, "integer"),
            (int, {"is_auto_increment": True}, "serial"),
            (float, {}, "double precision"),
            (str, {"length": -1}, "text"),
            (str, {"length": 80}, "varchar(80)"),
            (uuid.UUID, {}, "uuid"),
            (datetime.timedelta, {}, "interval"),
            (bytes, {}, "bytea"),
            (dict, {}, "jsonb"),
            (List[int], {}, "integer[]"),
            (List[str], {}, "text[]"),
            (List[Geometry], {}, "jsonb"),
        ],
    )
    def test_host_to_sql(self, host_type, facets, expected):
        assert _sql(PostgresTypeMap, host_type, **facets) == expected

    def test_sql_to_host(self):
        assert PostgresTypeMap.get_host_type("integer[]").host_type == List[int]
        assert PostgresTypeMap.get_host_type("_int4").host_type == List[int]
        assert PostgresTypeMap.get_host_type("character varying(20)").length == 20
        assert (
            PostgresTypeMap.get_host_type("timestamp with time zone").host_type
            is datetime.datetime
        )
        assert PostgresTypeMap.get_host_type("serial").is_auto_increment is True
        assert PostgresTypeMap.get_host_type("tsvector").host_type is str
        assert PostgresTypeMap.get_host_type("daterange").host_type is object


class TestSqliteTypeMap:
    @pytest.mark.parametrize(
        "host_type,facets,expected",
        [
            (int, {}, "int"),
            (int, {"is_auto_increment": True}, "integer"),
            (float, {}, "double"),
            (str, {}, "varchar(255)"),
            (str, {"length": -1, "is_unicode": True}, "nvarchar"),
            (uuid.UUID, {}, "varchar(36)"),
            (bytes, {}, "blob"),
            (dict, {}, "text"),
        ],
    )
    def test_host_to_sql(self, host_type, facets, expected):
        assert _sql(SqliteTypeMap, host_type, **facets) == expected

    def test_sql_to_host(self):
        assert SqliteTypeMap.get_host_type("varchar(36)").host_type is uuid.UUID
        assert SqliteTypeMap.get_host_type("varchar(255)").host_type is str
        assert SqliteTypeMap.get_host_type("numeric(10,2)").precision == 10
        assert SqliteTypeMap.get_host_type("datetime").host_type is datetime.datetime


def test_optional_type_registration_takes_precedence():
    class Shape:
        pass

    SqlServerTypeMap.register_optional_type(Shape)
    PostgresTypeMap.register_optional_type(
        Shape, lambda d: SqlTypeDescriptor(sql_type_name="geometry(Point,4326)")
    )

    assert _sql(SqlServerTypeMap, Shape) == "geometry"
    assert _sql(PostgresTypeMap, Shape) == "geometry(Point,4326)"
    assert _sql(SqliteTypeMap, Shape) == "text"
