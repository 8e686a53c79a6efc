"""wasconf command line interface.

Commands stay thin: they load the manifest, hand it to the reconciler and
render the result with Rich. All wsadmin interaction happens in the
providers.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table
from rich.text import Text

from adapters.providers import provider_for
from adapters.wsadmin import WsadminRunner
from cli import doctor
from cli.ui_components import build_changes_table, build_state_table, print_banner, print_summary
from core.config import AppSettings
from core.domain.errors import WasConfError
from core.domain.models import ScopedResource, WebSphereResource
from core.domain.resources import RESOURCE_TYPES, resource_type
from core.manifest_loader import load_manifest
from core.services.reconciler import ApplyRequest, ReconcileHooks, apply as reconcile, discover


app = typer.Typer(
    no_args_is_help=True,
    help="Declarative WebSphere Application Server configuration through wsadmin.",
)
app.add_typer(doctor.app, name="doctor")

_console = Console()
_err_console = Console(stderr=True)

ManifestArg = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="YAML or JSON manifest.")
VerboseOpt = typer.Option(False, "--verbose", "-v", help="Debug logging (also enables Jython debug notices).")


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=_err_console, rich_tracebacks=True, show_path=verbose)],
        force=True,
    )


def _load(manifest: Path, settings: AppSettings) -> list[WebSphereResource]:
    try:
        return load_manifest(manifest, settings)
    except WasConfError as exc:
        _err_console.print(f"[red]Error:[/red] {escape(str(exc))}")
        raise typer.Exit(code=2) from exc


def _provider_factory(settings: AppSettings):
    runner = WsadminRunner(settings)

    def factory(resource: WebSphereResource):
        return provider_for(resource, runner, settings)

    return factory


def _apply(manifest: Path, *, dry_run: bool, verbose: bool) -> None:
    _configure_logging(verbose)
    settings = AppSettings()
    resources = _load(manifest, settings)
    print_banner(_console)

    hooks = ReconcileHooks(
        progress=lambda index, total, identity: logging.getLogger(__name__).info(
            "[%d/%d] %s", index, total, identity
        ),
    )
    result = reconcile(
        request=ApplyRequest(resources=resources, dry_run=dry_run),
        provider_factory=_provider_factory(settings),
        hooks=hooks,
    )

    _console.print(build_changes_table(result))
    print_summary(_console, result)
    if result.failed:
        raise typer.Exit(code=1)


@app.command("apply")
def apply_cmd(
    manifest: Path = ManifestArg,
    dry_run: bool = typer.Option(False, "--dry-run", help="Only report what would change."),
    verbose: bool = VerboseOpt,
) -> None:
    """Bring every declared resource to its desired state."""

    _apply(manifest, dry_run=dry_run, verbose=verbose)


@app.command()
def plan(manifest: Path = ManifestArg, verbose: bool = VerboseOpt) -> None:
    """Show what `apply` would change (same as `apply --dry-run`)."""

    _apply(manifest, dry_run=True, verbose=verbose)


@app.command()
def show(
    manifest: Path = ManifestArg,
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of a table."),
    verbose: bool = VerboseOpt,
) -> None:
    """Print the discovered state of every declared resource."""

    _configure_logging(verbose)
    settings = AppSettings()
    resources = _load(manifest, settings)
    states = discover(resources, _provider_factory(settings))

    if as_json:
        payload = [
            {"resource": s.identity, "present": s.present, "state": s.state, "error": s.error}
            for s in states
        ]
        typer.echo(json.dumps(payload, indent=2, default=str))
    else:
        _console.print(build_state_table(states))
    if any(s.error for s in states):
        raise typer.Exit(code=1)


@app.command()
def validate(manifest: Path = ManifestArg) -> None:
    """Parse and validate the manifest without touching WebSphere."""

    _configure_logging(False)
    resources = _load(manifest, AppSettings())
    for resource in resources:
        _console.print(f"[green]OK[/green] {escape(resource.identity())} ({resource.ensure.value})")
    _console.print(f"{len(resources)} resources are valid.")


@app.command()
def kinds(kind: Optional[str] = typer.Argument(None, help="Show the fields of one kind.")) -> None:
    """List supported resource kinds."""

    if kind is not None:
        try:
            model = resource_type(kind)
        except KeyError:
            _err_console.print(f"[red]Unknown kind[/red] {escape(kind)}")
            raise typer.Exit(code=2)
        table = Table(title=f"{kind} fields")
        table.add_column("Field", style="cyan", no_wrap=True)
        table.add_column("Managed", style="green")
        table.add_column("Description", style="white")
        for name, info in model.model_fields.items():
            table.add_row(name, "yes" if name in model.properties else "", Text(info.description or ""))
        _console.print(table)
        return

    table = Table(title="Resource kinds")
    table.add_column("Kind", style="cyan", no_wrap=True)
    table.add_column("Name field", style="white")
    table.add_column("Scopes", style="magenta")
    table.add_column("Properties", style="dim")
    for name, model in sorted(RESOURCE_TYPES.items()):
        if issubclass(model, ScopedResource):
            scopes = ", ".join(s.value for s in model.allowed_scopes)
        else:
            scopes = "cell"
        table.add_row(name, model.name_field, scopes, ", ".join(model.properties))
    _console.print(table)


def run() -> None:
    app()


if __name__ == "__main__":
    run()
