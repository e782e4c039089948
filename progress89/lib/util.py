import typing as t
from collections.abc import Mapping

KT = t.TypeVar("KT")
VT = t.TypeVar("VT")
RecursiveMapping = VT | Mapping[KT, "RecursiveMapping[KT, VT]"]


def deep_update(
    d1: dict[KT, RecursiveMapping[KT, VT]], d2: Mapping[KT, RecursiveMapping[KT, VT]]
) -> dict[KT, RecursiveMapping[KT, VT]]:
    """Merge `d2` into a copy of `d1`, recursing into nested mappings present in both"""
    result = d1.copy()
    for k, v in d2.items():
        current = result.get(k)
        if isinstance(v, Mapping) and isinstance(current, Mapping):
            result[k] = deep_update(dict(current), v)  # type: ignore
        else:
            result[k] = v
    return result


def set_path(d: dict[str, t.Any], dotted: str, value: t.Any) -> dict[str, t.Any]:
    """Assign `value` at a dotted key path, creating intermediate dicts as needed"""
    target = d
    *parents, leaf = dotted.split(".")
    for key in parents:
        target = target.setdefault(key, {})
    target[leaf] = value
    return d
