from typing import List

from dal.type_mapping.catalog import DataTypeCatalog, data_type, decimal_facets, text_facets
from ddl_model.data_types import DataTypeCategory as C
from ddl_model.data_types import DataTypeInfo
from ddl_model.enums import ProviderType

# SQLite ignores declared lengths; the bounds below only mirror what other
# engines' tools expect to see in a declared type.
_TEXT_MAX = 1_000_000_000


class SqliteTypeCatalog(DataTypeCatalog):
    provider = ProviderType.SQLITE

    @classmethod
    def build_entries(cls) -> List[DataTypeInfo]:
        return [
            data_type("integer", C.INTEGER, "int", common=True, description="Signed integer, INTEGER affinity"),
            data_type("tinyint", C.INTEGER),
            data_type("smallint", C.INTEGER, "int2"),
            data_type("mediumint", C.INTEGER),
            data_type("bigint", C.INTEGER, "int8", "unsigned big int", common=True),
            data_type("real", C.DECIMAL, "double", "double precision", "float", common=True),
            data_type("numeric", C.DECIMAL, "decimal", common=True, **decimal_facets(38)),
            data_type("boolean", C.BOOLEAN, "bool", common=True),
            data_type("text", C.TEXT, "clob", common=True),
            data_type("varchar", C.TEXT, "varying character", common=True, **text_facets(_TEXT_MAX)),
            data_type("nvarchar", C.TEXT, **text_facets(_TEXT_MAX)),
            data_type("char", C.TEXT, "character", **text_facets(_TEXT_MAX)),
            data_type("nchar", C.TEXT, "native character", **text_facets(_TEXT_MAX)),
            data_type("blob", C.BINARY, common=True),
            data_type("date", C.DATE_TIME, common=True),
            data_type("datetime", C.DATE_TIME, "timestamp", common=True),
            data_type("time", C.DATE_TIME),
            data_type("year", C.DATE_TIME),
        ]
