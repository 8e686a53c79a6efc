"""Jython script rendering (Jinja2).

Why templates:
- Jython is whitespace sensitive; keeping scripts as `.j2` files keeps the
  indentation readable instead of building it from Python strings.
- Values are always rendered through the `jy` filter, which produces
  Jython 2 literals, so names and passwords with quotes stay inert.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any, Mapping

from jinja2 import Environment, FileSystemLoader, StrictUndefined


_TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"


def jy(value: Any) -> str:
    """Render `value` as a Jython literal; scalars always become strings."""

    if value is None:
        return "''"
    if isinstance(value, Mapping):
        return "[" + ", ".join(f"[{jy(k)}, {jy(v)}]" for k, v in value.items()) + "]"
    if isinstance(value, (list, tuple, set)):
        return "[" + ", ".join(jy(v) for v in value) + "]"
    if isinstance(value, bool):
        text = "true" if value else "false"
    elif isinstance(value, Enum):
        text = str(value.value)
    else:
        text = str(value)
    escaped = (
        text.replace("\\", "\\\\")
        .replace("'", "\\'")
        .replace("\n", "\\n")
        .replace("\r", "\\r")
    )
    return f"'{escaped}'"


def task_args(values: Mapping[str, Any] | None) -> str:
    """`{'jndiName': 'x'}` -> `['-jndiName', 'x']` (AdminTask parameter list)."""

    flat: list[str] = []
    for key, value in (values or {}).items():
        flat.extend([f"-{key}", value])
    return jy(flat)


def _get_env() -> Environment:
    env = Environment(
        loader=FileSystemLoader(str(_TEMPLATES_DIR)),
        autoescape=False,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
        undefined=StrictUndefined,
    )
    env.filters["jy"] = jy
    env.filters["task_args"] = task_args
    return env


_ENV = _get_env()


def render_script(template: str, *, debug: bool = False, **context: Any) -> str:
    """Render `templates/<template>.j2` into a wsadmin Jython script."""

    return _ENV.get_template(f"{template}.j2").render(debug=debug, **context)
