"""Core configuration.

Why here:
- Centralises environment variables (pydantic-settings) away from the CLI.
- Lets adapters (wsadmin runner, XML discovery) read config consistently.

Precedence for per-resource values: resource fields, then the manifest
`defaults` block, then these settings.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def get_user_config_dir() -> Path:
    """Per-user configuration directory (cross-platform, no dependencies)."""

    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA", str(Path.home())))
        return base / "wasconf"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "wasconf"

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "wasconf"
    return Path.home() / ".config" / "wasconf"


def get_user_env_file() -> Path:
    return get_user_config_dir() / ".env"


def _parse_env_lines(text: str) -> dict[str, str]:
    data: dict[str, str] = {}
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key:
            data[key] = value
    return data


def write_user_env_vars(values: dict[str, str | None], env_path: Path | None = None) -> Path:
    """Write or update variables in the user's global .env file."""

    env_path = env_path or get_user_env_file()
    env_path.parent.mkdir(parents=True, exist_ok=True)

    existing: dict[str, str] = {}
    if env_path.exists():
        existing = _parse_env_lines(env_path.read_text(encoding="utf-8"))

    existing.update({k: v for k, v in values.items() if v is not None})

    lines = ["# wasconf user config (.env)"]
    for key in sorted(existing.keys()):
        lines.append(f"{key}={existing[key]}")
    env_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    try:
        env_path.chmod(0o600)
    except OSError:
        pass
    return env_path


class AppSettings(BaseSettings):
    """Central application settings.

    Everything here is a fallback: manifests and resources can override the
    profile location, OS user and wsadmin credentials per resource.
    """

    model_config = SettingsConfigDict(
        env_prefix="WASCONF_",
        extra="ignore",
        case_sensitive=False,
        # Project .env first (dev), then the per-user config.
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
    )

    profile_base: Path | None = Field(
        default=None,
        description="Absolute path to the WAS profiles directory (e.g. /opt/IBM/WebSphere/AppServer/profiles).",
    )
    dmgr_profile: str | None = Field(
        default=None,
        description="Deployment manager profile name (e.g. PROFILE_DMGR_01).",
    )
    cell: str | None = Field(
        default=None,
        description="Default cell name for resources that do not set one.",
    )
    os_user: str = Field(
        default="root",
        min_length=1,
        description="OS user that runs wsadmin and keytool.",
    )
    wsadmin_user: str | None = Field(
        default=None,
        description="wsadmin administrative user (optional when security is off).",
    )
    wsadmin_pass: str | None = Field(
        default=None,
        description="wsadmin administrative password.",
    )
    wsadmin_timeout_seconds: float = Field(
        default=600.0,
        gt=0,
        description="Timeout for a single wsadmin invocation (seconds).",
    )
    use_sudo: bool = Field(
        default=True,
        description="Run wsadmin/keytool through `sudo -u <user>` when the OS user differs from the current one.",
    )
    keytool_path: str | None = Field(
        default=None,
        description="keytool executable; defaults to the JDK shipped with WAS, then PATH.",
    )
    jython_debug: bool = Field(
        default=False,
        description="Turn on AdminUtilities debug notices in generated scripts.",
    )
    sanitize: bool = Field(
        default=True,
        description="Drop resourceProperties lines known to break XML parsing before reading resources.xml.",
    )
    ignored_names: list[str] = Field(
        default_factory=lambda: ["zip", "xml"],
        description="File extensions of resourceProperties names dropped when sanitising.",
    )
