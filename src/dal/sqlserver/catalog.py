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


class SqlServerTypeCatalog(DataTypeCatalog):
    provider = ProviderType.SQLSERVER

    @classmethod
    def build_entries(cls) -> List[DataTypeInfo]:
        return [
            data_type("tinyint", C.INTEGER),
            data_type("smallint", C.INTEGER),
            data_type("int", C.INTEGER, "integer", common=True),
            data_type("bigint", C.INTEGER, common=True),
            data_type("real", C.DECIMAL),
            data_type("float", C.DECIMAL, common=True, **fraction_facets(53, 53)),
            data_type("decimal", C.DECIMAL, "dec", "numeric", common=True, **decimal_facets(38)),
            data_type("money", C.MONEY),
            data_type("smallmoney", C.MONEY),
            data_type("bit", C.BOOLEAN, common=True),
            data_type("char", C.TEXT, "character", **text_facets(8000, 1)),
            data_type("varchar", C.TEXT, common=True, **text_facets(8000)),
            data_type("nchar", C.TEXT, **text_facets(4000, 1)),
            data_type("nvarchar", C.TEXT, common=True, **text_facets(4000)),
            data_type("text", C.TEXT),
            data_type("ntext", C.TEXT),
            data_type("date", C.DATE_TIME, common=True),
            data_type("time", C.DATE_TIME, **fraction_facets(7, 7)),
            data_type("smalldatetime", C.DATE_TIME),
            data_type("datetime", C.DATE_TIME, common=True),
            data_type("datetime2", C.DATE_TIME, common=True, **fraction_facets(7, 7)),
            data_type("datetimeoffset", C.DATE_TIME, **fraction_facets(7, 7)),
            data_type("binary", C.BINARY, **text_facets(8000, 1)),
            data_type("varbinary", C.BINARY, common=True, **text_facets(8000)),
            data_type("image", C.BINARY),
            data_type("uniqueidentifier", C.IDENTIFIER, common=True),
            data_type("xml", C.XML),
            data_type("geometry", C.SPATIAL),
            data_type("geography", C.SPATIAL),
            data_type("hierarchyid", C.OTHER),
            data_type("sql_variant", C.OTHER),
            data_type("rowversion", C.OTHER, "timestamp"),
        ]
