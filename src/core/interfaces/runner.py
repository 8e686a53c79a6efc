"""wsadmin execution contract.

Why Protocol:
- Providers only need "run this Jython and give me the output"; the real
  subprocess runner and the in-memory runner used by tests are
  interchangeable.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, Sequence, runtime_checkable


@dataclass(frozen=True)
class WsadminTarget:
    """Where and as whom a script runs."""

    profile_root: Path
    os_user: str = "root"
    wsadmin_user: str | None = None
    wsadmin_pass: str | None = None

    @property
    def wsadmin_path(self) -> Path:
        return self.profile_root / "bin" / "wsadmin.sh"


@runtime_checkable
class ScriptRunner(Protocol):
    """Minimal contract for running wsadmin and keytool.

    Design rules:
    - `run_script` raises `WsadminError` on a non-zero exit unless
      `failonfail` is False, in which case the output is returned as is.
    - Output is returned as a single decoded string (stdout + stderr).
    """

    def run_script(self, script: str, target: WsadminTarget, *, failonfail: bool = True) -> str:
        ...

    def sync_node(self, target: WsadminTarget, node_name: str) -> str:
        """Synchronise `node_name` with the deployment manager."""

        ...

    def keytool(
        self,
        args: Sequence[str],
        target: WsadminTarget,
        *,
        store_password: str | None = None,
        failonfail: bool = False,
    ) -> str:
        ...
