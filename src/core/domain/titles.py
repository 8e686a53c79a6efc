"""Composite resource titles.

A resource can be declared with a single colon-separated title such as
`/opt/IBM/WebSphere/AppServer/profiles:PROFILE_DMGR_01:cluster:CELL_01:CL_01:MyQueue`
instead of spelling every field. Each kind owns an ordered list of patterns;
the first one that matches fills the fields it names.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Iterable, Sequence


_PART = r"([^:]+)"


@dataclass(frozen=True)
class TitlePattern:
    regex: re.Pattern[str]
    fields: tuple[str, ...]

    def match(self, title: str) -> dict[str, str] | None:
        found = self.regex.match(title)
        if not found:
            return None
        return dict(zip(self.fields, found.groups()))


def _pattern(parts: Sequence[str], fields: Sequence[str]) -> TitlePattern:
    return TitlePattern(re.compile("^" + ":".join(parts) + "$"), tuple(fields))


def scoped_patterns(
    name_fields: Sequence[str] | str,
    scopes: Iterable[str] = ("cell", "cluster", "node", "server"),
) -> tuple[TitlePattern, ...]:
    """Patterns for kinds that live at cell/cluster/node/server scope.

    `name_fields` are the trailing identity fields; only the last one is
    available in the short forms.
    """

    if isinstance(name_fields, str):
        name_fields = (name_fields,)
    last = name_fields[-1]
    tail = [_PART] * len(name_fields)
    patterns = [
        _pattern([_PART], [last]),
        _pattern([_PART, _PART], ["profile_base", last]),
        _pattern([_PART, _PART, _PART], ["profile_base", "dmgr_profile", last]),
    ]
    per_scope = {
        "cell": ["cell"],
        "cluster": ["cell", "cluster"],
        "node": ["cell", "node_name"],
        "server": ["cell", "node_name", "server"],
    }
    for scope in scopes:
        names = per_scope[scope]
        parts = [_PART, _PART, f"({scope})"] + [_PART] * len(names) + tail
        fields = ["profile_base", "dmgr_profile", "scope", *names, *name_fields]
        patterns.append(_pattern(parts, fields))
    return tuple(patterns)


def cell_patterns(name_fields: Sequence[str] | str) -> tuple[TitlePattern, ...]:
    """Patterns for cell-wide registries (users, groups, auth aliases)."""

    if isinstance(name_fields, str):
        name_fields = (name_fields,)
    last = name_fields[-1]
    return (
        _pattern([_PART], [last]),
        _pattern([_PART, _PART], ["profile_base", last]),
        _pattern([_PART, _PART, _PART], ["profile_base", "dmgr_profile", last]),
        _pattern(
            [_PART, _PART, _PART] + [_PART] * len(name_fields),
            ["profile_base", "dmgr_profile", "cell", *name_fields],
        ),
    )


def hostalias_patterns() -> tuple[TitlePattern, ...]:
    return (
        _pattern([_PART], ["hostname"]),
        _pattern([_PART, _PART], ["hostname", "portnumber"]),
        _pattern([_PART, _PART, _PART], ["virtual_host", "hostname", "portnumber"]),
        _pattern(
            [_PART, _PART, "(cell)", _PART, _PART, _PART, _PART],
            ["profile_base", "dmgr_profile", "scope", "cell", "virtual_host", "hostname", "portnumber"],
        ),
    )


def parse_title(title: str, patterns: Sequence[TitlePattern]) -> dict[str, str]:
    """Return the fields of the most specific pattern matching `title`.

    Patterns are tried from the most to the least specific so that a scope
    keyword is never mistaken for a profile name.
    """

    for pattern in sorted(patterns, key=lambda p: len(p.fields), reverse=True):
        values = pattern.match(title)
        if values is not None:
            return values
    raise ValueError(f"title {title!r} does not match any known pattern")


def expand_title(data: dict[str, Any], patterns: Sequence[TitlePattern]) -> dict[str, Any]:
    """Fill fields derived from `data['title']`; explicit values win."""

    title = data.get("title")
    if not title or not patterns:
        return data
    expanded = dict(data)
    for key, value in parse_title(str(title), patterns).items():
        if expanded.get(key) in (None, ""):
            expanded[key] = value
    return expanded
