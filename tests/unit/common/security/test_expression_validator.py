import pytest

from common.errors import DdlValidationError, ExpressionValidationError
from common.security import (
    validate_check_expression,
    validate_default_expression,
    validate_view_definition,
)


@pytest.mark.parametrize(
    "expression",
    [
        "[Age] > 0",
        "Age BETWEEN 0 AND 150",
        "LEN([Name]) > 0",
        "Modified >= Created",
        "status IN ('active', 'disabled')",
    ],
)
def test_safe_check_expressions_pass(expression):
    validate_check_expression(expression)


@pytest.mark.parametrize(
    "expression,pattern",
    [
        ("1=1; DROP TABLE Users", "DROP"),
        ("Age > 0 -- trailing", "comment"),
        ("Age > 0 /* hidden */", "comment"),
        ("Id IN (SELECT Id FROM Users)", "SELECT"),
        ("exec xp_cmdshell 'dir'", "xp_"),
        ("WAITFOR DELAY '00:00:05'", "WAITFOR"),
    ],
)
def test_dangerous_check_expressions_are_rejected(expression, pattern):
    with pytest.raises(ExpressionValidationError) as exc_info:
        validate_check_expression(expression, "check_expression")

    assert pattern in str(exc_info.value)
    assert exc_info.value.parameter_name == "check_expression"


def test_statement_separator_is_rejected_in_defaults():
    with pytest.raises(ExpressionValidationError):
        validate_default_expression("0;")


def test_default_function_calls_pass():
    validate_default_expression("GETDATE()")
    validate_default_expression("'unknown'")


@pytest.mark.parametrize("expression", [None, "", "   "])
def test_blank_expressions_are_rejected(expression):
    with pytest.raises(ExpressionValidationError, match="null or empty"):
        validate_check_expression(expression)


def test_length_limit_is_configurable():
    validate_check_expression("Age > 0", max_length=7)
    with pytest.raises(ExpressionValidationError, match="too long"):
        validate_check_expression("Age > 10", max_length=7)


def test_control_characters_are_rejected():
    with pytest.raises(ExpressionValidationError, match="control characters"):
        validate_default_expression("'a\x00b'")


def test_view_definition_must_start_with_select():
    with pytest.raises(ExpressionValidationError, match="must start with SELECT"):
        validate_view_definition("DELETE FROM Users")


def test_view_definition_allows_single_trailing_separator():
    validate_view_definition("SELECT Id, Email FROM Users WHERE Age > 18;")


def test_view_definition_rejects_multiple_statements():
    with pytest.raises(ExpressionValidationError, match="multiple SQL statements"):
        validate_view_definition("SELECT 1; SELECT 2")


def test_view_definition_still_blocks_procedure_calls():
    with pytest.raises(ExpressionValidationError, match="EXEC"):
        validate_view_definition("SELECT 1 AS x EXEC('x')")


def test_validation_errors_are_value_errors():
    assert issubclass(ExpressionValidationError, DdlValidationError)
    assert issubclass(ExpressionValidationError, ValueError)
