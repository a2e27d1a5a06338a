import pytest

from dal.util.placeholders import translate_numbered_placeholders


def test_placeholders_are_rewritten_in_order():
    sql, params = translate_numbered_placeholders(
        "SELECT * FROM t WHERE a = $2 AND b = $1 AND c = $2", ["x", "y"], "?", "sqlite"
    )

    assert sql == "SELECT * FROM t WHERE a = ? AND b = ? AND c = ?"
    assert params == ["y", "x", "y"]


def test_query_without_placeholders():
    assert translate_numbered_placeholders("SELECT 1", [], "%s", "mysql") == ("SELECT 1", [])


@pytest.mark.parametrize(
    "sql,params,message",
    [
        ("SELECT 1", [1], "no \\$N placeholders"),
        ("SELECT $0", [1], "must start at \\$1"),
        ("SELECT $1, $3", [1, 2, 3], "without gaps"),
        ("SELECT $1, $2", [1], "count mismatch"),
    ],
)
def test_invalid_placeholder_usage(sql, params, message):
    with pytest.raises(ValueError, match=message):
        translate_numbered_placeholders(sql, params, "?", "sqlite")
