"""Desired vs. discovered comparisons.

WAS configuration objects carry many more attributes than an operator
declares, so hashes are compared as subsets: only the declared keys
matter. Values are compared loosely as strings because the XML only holds
text (`true`, `80`) while manifests hold typed YAML values.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Iterable, Mapping


def camelize(key: str) -> str:
    """`max_connections` -> `maxConnections`; keys without `_` are kept."""

    head, *rest = str(key).split("_")
    return head + "".join(part.capitalize() for part in rest)


def munge_keys(data: Mapping[str, Any] | None) -> dict[str, Any]:
    if not data:
        return {}
    return {camelize(k): v for k, v in data.items()}


def as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Enum):
        return str(value.value)
    return str(value).strip()


def is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, (str, list, tuple, dict, set)):
        return len(value) == 0
    return False


def property_matches(current: Any, desired: Any) -> bool:
    """Loose scalar comparison (`True` matches `"true"`, `80` matches `"80"`)."""

    return as_text(current) == as_text(desired)


def hash_insync(current: Mapping[str, Any] | None, desired: Mapping[str, Any]) -> bool:
    """True when every declared key/value is present in `current`.

    A declared empty value is satisfied by a missing or empty current value.
    Nested mappings are compared the same way.
    """

    current = current or {}
    for key, value in desired.items():
        if not is_empty(value) and key not in current:
            return False
        have = current.get(key)
        if isinstance(value, Mapping):
            if not hash_insync(have if isinstance(have, Mapping) else {}, value):
                return False
            continue
        if property_matches(have, value):
            continue
        if is_empty(have) and is_empty(value):
            continue
        return False
    return True


def array_insync(current: Iterable[Any] | None, desired: Iterable[Any]) -> bool:
    """Order-insensitive list comparison; nested lists are compared as text."""

    def _key(item: Any) -> str:
        if isinstance(item, (list, tuple)):
            return ":".join(as_text(i) for i in item)
        return as_text(item)

    return sorted(_key(i) for i in (current or [])) == sorted(_key(i) for i in desired)


def insync(current: Any, desired: Any) -> bool:
    """Dispatch on the shape of the desired value."""

    if isinstance(desired, Mapping):
        return hash_insync(current if isinstance(current, Mapping) else {}, desired)
    if isinstance(desired, (list, tuple)):
        return array_insync(current if isinstance(current, (list, tuple)) else [], desired)
    return property_matches(current, desired)

