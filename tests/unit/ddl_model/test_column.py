import datetime
import decimal
import uuid

import pytest

from ddl_model import Column, GeneratedExpression, ProviderType, StaticExpression
from ddl_model.common_expressions import length_greater_than, new_guid, true_value


def test_static_and_generated_expressions_are_exclusive():
    column = Column(column_name="IsActive", host_type=bool, default_expression="1")
    assert isinstance(column.default_expression, StaticExpression)

    column.set_default_expression(true_value())

    assert isinstance(column.default_expression, GeneratedExpression)
    assert column.get_default_expression(ProviderType.POSTGRES) == "true"
    assert column.get_default_expression(ProviderType.SQLSERVER) == "1"


def test_blank_expression_means_none():
    column = Column(column_name="Name", host_type=str, check_expression="   ")

    assert column.check_expression is None
    assert column.get_check_expression(ProviderType.MYSQL) is None


def test_callable_expression_is_wrapped():
    column = Column(column_name="Name", host_type=str)

    column.set_check_expression(length_greater_than("Name"))

    assert column.get_check_expression(ProviderType.SQLSERVER) == "LEN([Name]) > 0"
    assert column.get_check_expression(ProviderType.POSTGRES) == "LENGTH(name) > 0"


def test_unsupported_expression_value():
    with pytest.raises(TypeError):
        Column(column_name="Name", host_type=str).set_check_expression(42)


def test_provider_data_type_override():
    column = Column(column_name="Payload", host_type=str)

    column.set_provider_data_type(ProviderType.POSTGRES, "jsonb")

    assert column.get_provider_data_type(ProviderType.POSTGRES) == "jsonb"
    assert column.get_provider_data_type("sqlite") is None


def test_host_type_classification():
    assert Column(column_name="a", host_type=decimal.Decimal).is_numeric()
    assert not Column(column_name="a", host_type=bool).is_numeric()
    assert Column(column_name="a", host_type=str).is_text()
    assert Column(column_name="a", host_type=datetime.date).is_date_time()
    assert Column(column_name="a", host_type=uuid.UUID).is_guid()


def test_new_guid_renders_for_every_engine():
    expression = new_guid()

    assert {provider: expression.render(provider) for provider in ProviderType}.keys() == set(
        ProviderType
    )
    assert expression.render(ProviderType.SQLSERVER) == "NEWID()"


def test_assigned_text_is_coerced_to_expression():
    column = Column(column_name="Age", host_type=int)

    column.check_expression = "Age > 0"
    column.default_expression = "18"

    assert isinstance(column.check_expression, StaticExpression)
    assert column.get_check_expression(ProviderType.SQLITE) == "Age > 0"
    assert column.get_default_expression(ProviderType.MYSQL) == "18"

    column.default_expression = "  "
    assert column.default_expression is None
