from __future__ import annotations

from autoship.core.errors import ErrorCode
from autoship.core.structured import (
    as_obj_list,
    as_str_dict,
    get_bool,
    get_int,
    get_raw_str,
    get_str,
    get_str_list,
)


def test_as_str_dict_rejects_non_string_keys() -> None:
    assert as_str_dict({"a": 1}) == {"a": 1}
    assert as_str_dict({1: "a"}) is None
    assert as_str_dict([1]) is None


def test_as_obj_list() -> None:
    assert as_obj_list([1, "a"]) == [1, "a"]
    assert as_obj_list("a") is None


def test_get_str_strips_and_drops_empty() -> None:
    table = {"a": "  x  ", "b": "   ", "c": 3}
    assert get_str(table, "a") == "x"
    assert get_str(table, "b") is None
    assert get_str(table, "c") is None
    assert get_raw_str(table, "a") == "  x  "


def test_get_int_rejects_bool() -> None:
    assert get_int({"n": 3}, "n") == 3
    assert get_int({"n": True}, "n") is None


def test_get_bool() -> None:
    assert get_bool({"b": False}, "b") is False
    assert get_bool({"b": "yes"}, "b") is None


def test_get_str_list_accepts_bare_string() -> None:
    assert get_str_list({"l": "one"}, "l") == ["one"]
    assert get_str_list({"l": ["a", " ", 3, " b "]}, "l") == ["a", "b"]
    assert get_str_list({}, "l") is None


def test_error_codes_are_stable() -> None:
    assert [int(c) for c in ErrorCode] == [0, 1, 2, 3, 4, 5]
    assert ErrorCode.OK.is_success
    assert not ErrorCode.RELEASE_ERROR.is_success
    assert str(ErrorCode.NETWORK_ERROR) == "network error"
