from typing import List

from dal.type_mapping.catalog import (
    DataTypeCatalog,
    data_type,
    decimal_facets,
    fraction_facets,
    text_facets,
)
from ddl_model.data_types import DataTypeCategory as C
from ddl_model.data_types import DataTypeInfo
from ddl_model.enums import ProviderType


class MySqlTypeCatalog(DataTypeCatalog):
    provider = ProviderType.MYSQL

    @classmethod
    def build_entries(cls) -> List[DataTypeInfo]:
        return [
            data_type("tinyint", C.INTEGER),
            data_type("smallint", C.INTEGER),
            data_type("mediumint", C.INTEGER),
            data_type("int", C.INTEGER, "integer", common=True),
            data_type("bigint", C.INTEGER, "serial", common=True),
            data_type("float", C.DECIMAL),
            data_type("double", C.DECIMAL, "real", "double precision", common=True),
            data_type("decimal", C.DECIMAL, "dec", "numeric", "fixed", common=True, **decimal_facets(65, 30)),
            data_type("boolean", C.BOOLEAN, "bool", common=True),
            data_type("bit", C.BINARY, **text_facets(64, 1)),
            data_type("char", C.TEXT, **text_facets(255, 1)),
            data_type("varchar", C.TEXT, common=True, **text_facets(65_535)),
            data_type("tinytext", C.TEXT),
            data_type("text", C.TEXT, common=True),
            data_type("mediumtext", C.TEXT),
            data_type("longtext", C.TEXT),
            data_type("enum", C.TEXT),
            data_type("set", C.TEXT),
            data_type("binary", C.BINARY, **text_facets(255, 1)),
            data_type("varbinary", C.BINARY, common=True, **text_facets(65_535)),
            data_type("tinyblob", C.BINARY),
            data_type("blob", C.BINARY, common=True),
            data_type("mediumblob", C.BINARY),
            data_type("longblob", C.BINARY),
            data_type("date", C.DATE_TIME, common=True),
            data_type("datetime", C.DATE_TIME, common=True, **fraction_facets(6, 0)),
            data_type("timestamp", C.DATE_TIME, **fraction_facets(6, 0)),
            data_type("time", C.DATE_TIME, **fraction_facets(6, 0)),
            data_type("year", C.DATE_TIME),
            data_type("json", C.JSON, common=True),
            data_type("geometry", C.SPATIAL),
            data_type("point", C.SPATIAL),
            data_type("linestring", C.SPATIAL),
            data_type("polygon", C.SPATIAL),
            data_type("multipoint", C.SPATIAL),
            data_type("multilinestring", C.SPATIAL),
            data_type("multipolygon", C.SPATIAL),
            data_type("geometrycollection", C.SPATIAL, "geomcollection"),
        ]
