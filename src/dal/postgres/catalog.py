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

_VARCHAR_MAX = 10_485_760


class PostgresTypeCatalog(DataTypeCatalog):
    provider = ProviderType.POSTGRES

    @classmethod
    def build_entries(cls) -> List[DataTypeInfo]:
        return [
            data_type("smallint", C.INTEGER, "int2", common=True),
            data_type("integer", C.INTEGER, "int", "int4", common=True),
            data_type("bigint", C.INTEGER, "int8", common=True),
            data_type("smallserial", C.INTEGER, "serial2"),
            data_type("serial", C.INTEGER, "serial4", common=True),
            data_type("bigserial", C.INTEGER, "serial8"),
            data_type("real", C.DECIMAL, "float4"),
            data_type("double precision", C.DECIMAL, "float8", "float", common=True),
            data_type("numeric", C.DECIMAL, "decimal", common=True, **decimal_facets(1000)),
            data_type("money", C.MONEY),
            data_type("boolean", C.BOOLEAN, "bool", common=True),
            data_type("text", C.TEXT, common=True),
            data_type(
                "varchar", C.TEXT, "character varying", common=True, **text_facets(_VARCHAR_MAX)
            ),
            data_type("char", C.TEXT, "character", "bpchar", **text_facets(_VARCHAR_MAX, 1)),
            data_type("citext", C.TEXT),
            data_type("name", C.TEXT),
            data_type("date", C.DATE_TIME, common=True),
            data_type("time", C.DATE_TIME, "time without time zone", **fraction_facets(6)),
            data_type("timetz", C.DATE_TIME, "time with time zone", **fraction_facets(6)),
            data_type(
                "timestamp", C.DATE_TIME, "timestamp without time zone", common=True, **fraction_facets(6)
            ),
            data_type(
                "timestamptz", C.DATE_TIME, "timestamp with time zone", common=True, **fraction_facets(6)
            ),
            data_type("interval", C.DATE_TIME, **fraction_facets(6)),
            data_type("bytea", C.BINARY, common=True),
            data_type("bit", C.BINARY, **text_facets(83_886_080, 1)),
            data_type("varbit", C.BINARY, "bit varying", **text_facets(83_886_080)),
            data_type("uuid", C.IDENTIFIER, common=True),
            data_type("json", C.JSON),
            data_type("jsonb", C.JSON, common=True),
            data_type("jsonpath", C.JSON),
            data_type("xml", C.XML),
            data_type("inet", C.NETWORK),
            data_type("cidr", C.NETWORK),
            data_type("macaddr", C.NETWORK),
            data_type("macaddr8", C.NETWORK),
            data_type("point", C.SPATIAL),
            data_type("line", C.SPATIAL),
            data_type("lseg", C.SPATIAL),
            data_type("box", C.SPATIAL),
            data_type("path", C.SPATIAL),
            data_type("polygon", C.SPATIAL),
            data_type("circle", C.SPATIAL),
            data_type("geometry", C.SPATIAL),
            data_type("geography", C.SPATIAL),
            data_type("int4range", C.RANGE),
            data_type("int8range", C.RANGE),
            data_type("numrange", C.RANGE),
            data_type("tsrange", C.RANGE),
            data_type("tstzrange", C.RANGE),
            data_type("daterange", C.RANGE),
            data_type("integer[]", C.ARRAY, "_int4"),
            data_type("bigint[]", C.ARRAY, "_int8"),
            data_type("text[]", C.ARRAY, "_text"),
            data_type("varchar[]", C.ARRAY, "_varchar"),
            data_type("uuid[]", C.ARRAY, "_uuid"),
            data_type("tsvector", C.OTHER),
            data_type("tsquery", C.OTHER),
            data_type("pg_lsn", C.OTHER),
        ]
