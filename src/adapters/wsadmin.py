"""wsadmin and keytool execution.

Why a dedicated adapter:
- Every provider ends up here, so sudo handling, timeouts, credential
  masking and error mapping live in one place.
- Tests swap this class for an in-memory runner implementing the same
  `ScriptRunner` protocol.
"""

from __future__ import annotations

import getpass
import logging
import os
import re
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import Sequence

from core.config import AppSettings
from core.domain.errors import WsadminError
from core.interfaces.runner import WsadminTarget


logger = logging.getLogger(__name__)

_SECRET_VALUE = r"(?:\\.|[^'\"\\])*"

# AdminTask `-xxxPasswordYyy`, AdminConfig `['password', v]` and `password = v` forms.
_SECRET_PATTERNS = (
    re.compile(r"(-\w*password\w*['\"]?\s*,\s*['\"])" + _SECRET_VALUE, re.IGNORECASE),
    re.compile(r"(\[['\"]\w*password['\"],\s*['\"])" + _SECRET_VALUE, re.IGNORECASE),
    re.compile(r"(\bpassword\s*=\s*['\"])" + _SECRET_VALUE, re.IGNORECASE),
)


def mask_secrets(text: str) -> str:
    """Hide password values in generated scripts before logging them."""

    for pattern in _SECRET_PATTERNS:
        text = pattern.sub(r"\1********", text)
    return text


def mask_command(command: Sequence[str]) -> str:
    masked: list[str] = []
    hide_next = False
    for part in command:
        masked.append("********" if hide_next else part)
        hide_next = part == "-password"
    return " ".join(masked)


def _decode(data: bytes | str | None) -> str:
    if data is None:
        return ""
    if isinstance(data, bytes):
        return data.decode("utf-8", errors="replace")
    return data


class WsadminRunner:
    """Runs Jython through `<profile>/bin/wsadmin.sh` and keytool from the WAS JDK."""

    def __init__(self, settings: AppSettings | None = None) -> None:
        self.settings = settings or AppSettings()

    def _as_user(self, command: list[str], os_user: str) -> list[str]:
        if not self.settings.use_sudo:
            return command
        try:
            current = getpass.getuser()
        except (KeyError, OSError):
            current = ""
        if os_user == current:
            return command
        return ["sudo", "-n", "-u", os_user, *command]

    def _execute(self, command: list[str], *, stdin: str | None = None, label: str) -> subprocess.CompletedProcess[str]:
        logger.debug("Running %s", mask_command(command))
        try:
            return subprocess.run(
                command,
                input=stdin,
                capture_output=True,
                text=True,
                timeout=self.settings.wsadmin_timeout_seconds,
                check=False,
            )
        except FileNotFoundError as exc:
            raise WsadminError(f"{label} not found: {exc.filename}") from exc
        except subprocess.TimeoutExpired as exc:
            raise WsadminError(
                f"{label} timed out after {self.settings.wsadmin_timeout_seconds:g}s",
                output=_decode(exc.stdout) + _decode(exc.stderr),
            ) from exc

    def run_script(self, script: str, target: WsadminTarget, *, failonfail: bool = True) -> str:
        logger.debug("Jython script:\n%s", mask_secrets(script))

        fd, script_path = tempfile.mkstemp(prefix="wasconf_", suffix=".py")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(script)
            # wsadmin may run as another OS user.
            os.chmod(script_path, 0o644)

            command = [str(target.wsadmin_path), "-lang", "jython", "-f", script_path]
            if target.wsadmin_user:
                command += ["-user", target.wsadmin_user]
            if target.wsadmin_pass:
                command += ["-password", target.wsadmin_pass]

            completed = self._execute(self._as_user(command, target.os_user), label="wsadmin")
        finally:
            Path(script_path).unlink(missing_ok=True)

        output = completed.stdout + completed.stderr
        logger.debug("wsadmin exited with %s", completed.returncode)
        if completed.returncode != 0 and failonfail:
            raise WsadminError(
                f"wsadmin failed with exit status {completed.returncode}: {output.strip()[-2000:]}",
                returncode=completed.returncode,
                output=output,
            )
        return output

    def sync_node(self, target: WsadminTarget, node_name: str) -> str:
        script = (
            f"sync = AdminControl.completeObjectName('type=NodeSync,node={node_name},*')\n"
            "if sync:\n"
            "    AdminControl.invoke(sync, 'sync')\n"
            "else:\n"
            f"    print 'No NodeSync MBean found for node {node_name}'\n"
        )
        logger.info("Synchronising node %s", node_name)
        return self.run_script(script, target)

    def keytool_path(self, target: WsadminTarget) -> str:
        if self.settings.keytool_path:
            return self.settings.keytool_path
        # <install>/profiles/<profile> -> <install>/java/bin/keytool
        bundled = target.profile_root.parent.parent / "java" / "bin" / "keytool"
        if bundled.exists():
            return str(bundled)
        return shutil.which("keytool") or "keytool"

    def keytool(
        self,
        args: Sequence[str],
        target: WsadminTarget,
        *,
        store_password: str | None = None,
        failonfail: bool = False,
    ) -> str:
        command = [self.keytool_path(target), *args]
        # keytool reads the password from stdin when no console is attached.
        stdin = f"{store_password}\n" if store_password is not None else None
        completed = self._execute(self._as_user(command, target.os_user), stdin=stdin, label="keytool")
        output = completed.stdout + completed.stderr
        if completed.returncode != 0 and failonfail:
            raise WsadminError(
                f"keytool failed with exit status {completed.returncode}: {output.strip()}",
                returncode=completed.returncode,
                output=output,
            )
        return output
