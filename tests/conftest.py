from __future__ import annotations

from pathlib import Path
from typing import Sequence

import pytest

from core.config import AppSettings
from core.domain.errors import WsadminError
from core.interfaces.runner import WsadminTarget


CELL = "CELL_01"
PROFILE = "PROFILE_DMGR_01"


class FakeRunner:
    """In-memory ScriptRunner: records scripts, returns canned output."""

    def __init__(self) -> None:
        self.scripts: list[str] = []
        self.targets: list[WsadminTarget] = []
        self.synced: list[str] = []
        self.keytool_calls: list[tuple[list[str], str | None]] = []
        self.output = ""
        self.keytool_output = ""
        self.fail_with: str | None = None

    def run_script(self, script: str, target: WsadminTarget, *, failonfail: bool = True) -> str:
        self.scripts.append(script)
        self.targets.append(target)
        if self.fail_with is not None and failonfail:
            raise WsadminError("wsadmin failed", returncode=1, output=self.fail_with)
        return self.output

    def sync_node(self, target: WsadminTarget, node_name: str) -> str:
        self.synced.append(node_name)
        return ""

    def keytool(
        self,
        args: Sequence[str],
        target: WsadminTarget,
        *,
        store_password: str | None = None,
        failonfail: bool = False,
    ) -> str:
        self.keytool_calls.append((list(args), store_password))
        return self.keytool_output

    @property
    def last(self) -> str:
        return self.scripts[-1]


class Profile:
    """A DMGR profile tree under tmp_path with helpers to drop XML in it."""

    def __init__(self, base: Path) -> None:
        self.base = base
        self.root = base / PROFILE
        self.cell_dir = self.root / "config" / "cells" / CELL

    def write(self, relative: str, content: str) -> Path:
        path = self.root / "config" / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    def write_cell(self, name: str, content: str) -> Path:
        return self.write(f"cells/{CELL}/{name}", content)

    def common(self, **extra: object) -> dict[str, object]:
        return {"profile_base": str(self.base), "dmgr_profile": PROFILE, "cell": CELL, **extra}


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def profile(tmp_path: Path) -> Profile:
    base = tmp_path / "profiles"
    (base / PROFILE / "config" / "cells" / CELL).mkdir(parents=True)
    return Profile(base)


@pytest.fixture
def settings(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> AppSettings:
    for name in ("PROFILE_BASE", "DMGR_PROFILE", "CELL", "OS_USER", "WSADMIN_USER", "WSADMIN_PASS"):
        monkeypatch.delenv(f"WASCONF_{name}", raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    return AppSettings(_env_file=None)
