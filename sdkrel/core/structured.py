"""Typed accessors for untyped TOML/JSON data.

Use these at the boundary where release.toml or repository responses are
parsed; they validate at runtime and narrow types for the checker.
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
    return obj if is_str_dict(obj) else None


def as_obj_list(obj: object) -> ObjList | None:
    return obj if isinstance(obj, list) else None


def get_str(table: Mapping[str, object], key: str) -> str | None:
    """String value at ``key``, stripped; None when missing, blank or not a str."""
    value = table.get(key)
    if not isinstance(value, str):
        return None
    s = value.strip()
    return s or None


def get_int(table: Mapping[str, object], key: str) -> int | None:
    value = table.get(key)
    # bool is an int subclass; a TOML `true` is never a count.
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


def get_float(table: Mapping[str, object], key: str) -> float | None:
    value = table.get(key)
    if isinstance(value, bool) or not isinstance(value, int | float):
        return None
    return float(value)


def get_table(table: Mapping[str, object], key: str) -> StrDict | None:
    return as_str_dict(table.get(key))


def get_tables(table: Mapping[str, object], key: str) -> list[StrDict] | None:
    """Array of tables at ``key``; None if any entry is not a table."""
    items = as_obj_list(table.get(key))
    if items is None:
        return None
    out: list[StrDict] = []
    for item in items:
        d = as_str_dict(item)
        if d is None:
            return None
        out.append(d)
    return out


def get_str_list(table: Mapping[str, object], key: str) -> list[str] | None:
    """List of strings at ``key``; None if missing or any entry is not a str."""
    items = as_obj_list(table.get(key))
    if items is None:
        return None
    if not all(isinstance(v, str) for v in items):
        return None
    return [cast(str, v) for v in items]
