import pytest

from dal.mysql.catalog import MySqlTypeCatalog
from dal.postgres.catalog import PostgresTypeCatalog
from dal.sqlite.catalog import SqliteTypeCatalog
from dal.sqlserver.catalog import SqlServerTypeCatalog
from ddl_model import DataTypeCategory

ALL_CATALOGS = [SqlServerTypeCatalog, MySqlTypeCatalog, PostgresTypeCatalog, SqliteTypeCatalog]


@pytest.mark.parametrize("catalog", ALL_CATALOGS)
def test_common_types_are_a_sorted_subset(catalog):
    common = catalog.get_available_data_types()
    everything = catalog.get_available_data_types(include_advanced=True)

    assert common
    assert all(info.is_common for info in common)
    assert len(everything) > len(common)
    order = list(DataTypeCategory)
    keys = [(order.index(info.category), info.data_type) for info in everything]
    assert keys == sorted(keys)


def test_lookup_by_alias_is_case_insensitive():
    info = SqlServerTypeCatalog.get_data_type(" NUMERIC ")

    assert info.data_type == "decimal"
    assert SqlServerTypeCatalog.get_data_type("") is None
    assert SqlServerTypeCatalog.get_data_type("madeup") is None


def test_facet_support():
    assert SqlServerTypeCatalog.supports_length("nvarchar")
    assert not SqlServerTypeCatalog.supports_length("int")
    assert SqlServerTypeCatalog.supports_precision("decimal")
    assert SqlServerTypeCatalog.supports_scale("decimal")
    assert not SqlServerTypeCatalog.supports_scale("datetime2")


def test_validate_facets_accepts_values_in_range():
    assert SqlServerTypeCatalog.validate_facets("nvarchar", length=4000).data_type == "nvarchar"
    SqlServerTypeCatalog.validate_facets("nvarchar", length=-1)
    SqlServerTypeCatalog.validate_facets("decimal", precision=18, scale=2)


@pytest.mark.parametrize(
    "name,facets,message",
    [
        ("madeup", {}, "Unknown sqlserver data type"),
        ("nvarchar", {"length": 4001}, "exceeds the maximum"),
        ("nvarchar", {"length": 0}, "below the minimum"),
        ("int", {"length": 10}, "does not accept a length"),
        ("decimal", {"precision": 5, "scale": 6}, "cannot exceed precision"),
    ],
)
def test_validate_facets_rejects_out_of_range(name, facets, message):
    with pytest.raises(ValueError, match=message):
        SqlServerTypeCatalog.validate_facets(name, **facets)
