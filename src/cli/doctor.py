"""Doctor command for environment diagnostics."""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from adapters.wsadmin import WsadminRunner
from core.config import AppSettings, write_user_env_vars
from core.interfaces.runner import WsadminTarget

app = typer.Typer(no_args_is_help=True, help="Environment diagnostics and configuration checks.")

_console = Console()


def _check_path(path: Path, *, directory: bool = False) -> tuple[bool, str]:
    if directory and path.is_dir():
        return True, str(path)
    if not directory and path.is_file():
        return True, str(path)
    return False, f"{path} not found"


def _check_keytool(settings: AppSettings, profile_root: Path | None) -> tuple[bool, str]:
    if profile_root is None:
        return False, "Needs a DMGR profile to locate the bundled JDK"
    executable = WsadminRunner(settings).keytool_path(WsadminTarget(profile_root=profile_root))
    if Path(executable).is_file() or shutil.which(executable):
        return True, executable
    return False, f"{executable} not found"


@app.command()
def run(
    profile_base: Optional[Path] = typer.Option(None, "--profile-base", help="Override WASCONF_PROFILE_BASE."),
    dmgr_profile: Optional[str] = typer.Option(None, "--dmgr-profile", help="Override WASCONF_DMGR_PROFILE."),
    cell: Optional[str] = typer.Option(None, "--cell", help="Override WASCONF_CELL."),
) -> None:
    """Run baseline diagnostics and show recommended fixes."""

    settings = AppSettings()
    profile_base = profile_base or settings.profile_base
    dmgr_profile = dmgr_profile or settings.dmgr_profile
    cell = cell or settings.cell

    table = Table(title="wasconf Doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    healthy = True

    # Config
    if profile_base is None:
        table.add_row("Profile base", "MISSING", "Set WASCONF_PROFILE_BASE or run `wasconf doctor setup`")
        healthy = False
    else:
        ok, detail = _check_path(profile_base, directory=True)
        table.add_row("Profile base", "OK" if ok else "FAIL", detail)
        healthy = healthy and ok

    profile_root: Path | None = None
    if profile_base is not None and dmgr_profile:
        profile_root = profile_base / dmgr_profile
        ok, detail = _check_path(profile_root, directory=True)
        table.add_row("DMGR profile", "OK" if ok else "FAIL", detail)
        healthy = healthy and ok

        ok, detail = _check_path(profile_root / "bin" / "wsadmin.sh")
        table.add_row("wsadmin.sh", "OK" if ok else "FAIL", detail)
        healthy = healthy and ok
    else:
        table.add_row("DMGR profile", "MISSING", "Set WASCONF_DMGR_PROFILE")
        healthy = False

    if profile_root is not None and cell:
        cell_dir = profile_root / "config" / "cells" / cell
        for name in ("security.xml", "resources.xml", "virtualhosts.xml"):
            ok, detail = _check_path(cell_dir / name)
            table.add_row(name, "OK" if ok else "FAIL", detail)
            healthy = healthy and ok
    else:
        table.add_row("Cell config", "OPTIONAL", "No cell set -> every resource must name its cell")

    ok, detail = _check_keytool(settings, profile_root)
    table.add_row("keytool", "OK" if ok else "WARN", detail)

    if settings.wsadmin_user:
        table.add_row("wsadmin credentials", "OK", settings.wsadmin_user)
    else:
        table.add_row("wsadmin credentials", "OPTIONAL", "Not set -> only works with admin security off")
    table.add_row("Run as", "OK", f"{settings.os_user} (sudo {'on' if settings.use_sudo else 'off'})")

    _console.print(table)

    if not healthy:
        _console.print("\n[yellow]Note:[/yellow] Fix the failed checks before running `wasconf apply`.")
        raise typer.Exit(code=1)


@app.command(name="setup")
def setup() -> None:
    """Interactive defaults setup (stored in the user config .env)."""

    settings = AppSettings()

    profile_base = typer.prompt(
        "Profiles directory",
        default=str(settings.profile_base or "/opt/IBM/WebSphere/AppServer/profiles"),
        show_default=True,
    ).strip()
    dmgr_profile = typer.prompt("DMGR profile", default=settings.dmgr_profile or "", show_default=True).strip()
    cell = typer.prompt("Cell", default=settings.cell or "", show_default=True).strip()
    os_user = typer.prompt("OS user running wsadmin", default=settings.os_user, show_default=True).strip()
    wsadmin_user = typer.prompt("wsadmin user (empty if security is off)", default="", show_default=False).strip()
    wsadmin_pass = ""
    if wsadmin_user:
        wsadmin_pass = typer.prompt("wsadmin password", hide_input=True, confirmation_prompt=False).strip()

    if not Path(profile_base).is_absolute():
        raise typer.BadParameter("the profiles directory must be an absolute path")
    if not dmgr_profile:
        raise typer.BadParameter("the DMGR profile is required")

    env_path = write_user_env_vars(
        {
            "WASCONF_PROFILE_BASE": profile_base,
            "WASCONF_DMGR_PROFILE": dmgr_profile,
            "WASCONF_CELL": cell or None,
            "WASCONF_OS_USER": os_user,
            "WASCONF_WSADMIN_USER": wsadmin_user or None,
            "WASCONF_WSADMIN_PASS": wsadmin_pass or None,
        }
    )

    _console.print(f"[green]Saved defaults to:[/green] {env_path}")
