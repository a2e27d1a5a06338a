import pytest

from dal.util.filters import filter_by_name, is_wildcard_match, to_like_string


def test_to_like_string_strips_unsafe_characters():
    assert to_like_string("Users*") == "Users%"
    assert to_like_string("Us'ers; --*") == "Users--%"
    assert to_like_string("*_log") == "%_log"


@pytest.mark.parametrize(
    "text,pattern,expected",
    [
        ("Users", "users", True),
        ("Users", "Us*", True),
        ("UserRoles", "*role*", True),
        ("Orders", "Us*", False),
        ("Users", "", False),
        ("", "*", False),
        (None, "*", False),
    ],
)
def test_is_wildcard_match(text, pattern, expected):
    assert is_wildcard_match(text, pattern) is expected


def test_filter_by_name_without_filter_keeps_everything():
    names = ["Users", "Orders"]

    assert filter_by_name(names, None, lambda n: n) == names
    assert filter_by_name(names, "  ", lambda n: n) == names


def test_filter_by_name():
    names = ["Users", "UserRoles", "Orders"]

    assert filter_by_name(names, "user*", lambda n: n) == ["Users", "UserRoles"]
