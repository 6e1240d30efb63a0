"""Helpers for reading untyped TOML/JSON payloads.

Used wherever autoship ingests data it does not control: config files and
`gh api` responses. Each helper validates at runtime and narrows statically.
"""

from __future__ import annotations

from typing import Mapping, TypeGuard, cast

StrDict = dict[str, object]
ObjList = list[object]


def is_str_dict(obj: object) -> TypeGuard[StrDict]:
    if not isinstance(obj, dict):
        return False
    d = cast(dict[object, object], obj)
    return all(isinstance(k, str) for k in d.keys())


def as_str_dict(obj: object) -> StrDict | None:
    if is_str_dict(obj):
        return obj
    return None


def as_obj_list(obj: object) -> ObjList | None:
    if isinstance(obj, list):
        return cast(ObjList, obj)
    return None


def get_str(table: Mapping[str, object], key: str) -> str | None:
    """Get a string value, stripped.

    Returns None if missing, not a str, or empty after stripping.
    """
    value = table.get(key)
    if not isinstance(value, str):
        return None
    s = value.strip()
    return s or None


def get_raw_str(table: Mapping[str, object], key: str) -> str | None:
    """Get a string value as-is (bodies and messages keep their whitespace)."""
    value = table.get(key)
    return value if isinstance(value, str) else None


def get_int(table: Mapping[str, object], key: str) -> int | None:
    value = table.get(key)
    # bool is a subclass of int; reject it explicitly.
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


def get_bool(table: Mapping[str, object], key: str) -> bool | None:
    value = table.get(key)
    return value if isinstance(value, bool) else None


def get_table(table: Mapping[str, object], key: str) -> StrDict | None:
    return as_str_dict(table.get(key))


def get_list(table: Mapping[str, object], key: str) -> ObjList | None:
    return as_obj_list(table.get(key))


def get_str_list(table: Mapping[str, object], key: str) -> list[str] | None:
    """Get a list of non-empty strings; a bare string is treated as one item."""
    value = table.get(key)
    if isinstance(value, str):
        value = [value]
    items = as_obj_list(value)
    if items is None:
        return None
    return [s.strip() for s in items if isinstance(s, str) and s.strip()]
