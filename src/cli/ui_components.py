"""Rich UI components for the CLI.

Why separate components:
- Keeps command logic apart from presentation details.
- Lets `apply`, `plan` and `show` share the same tables.
"""

from __future__ import annotations

import json
from typing import Sequence

from rich.align import Align
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.services.reconciler import Action, DiscoveredState, ReconcileResult


_ACTION_STYLES = {
    Action.CREATED: "green",
    Action.REMOVED: "red",
    Action.UPDATED: "yellow",
    Action.UNCHANGED: "dim",
    Action.FAILED: "bold red",
}


def print_banner(console: Console) -> None:
    """Print the welcome banner.

    Only used by interactive commands; JSON output stays clean.
    """

    title = Text("wasconf", style="bold cyan")
    subtitle = Text("Declarative WebSphere configuration • wsadmin • Jython", style="dim")
    body = Align.center(Text.assemble(title, "\n", subtitle), vertical="middle")
    console.print(Panel(body, border_style="cyan", padding=(1, 4)))


def build_changes_table(result: ReconcileResult) -> Table:
    title = "Planned changes" if result.dry_run else "Applied changes"
    table = Table(title=title)
    table.add_column("Resource", style="cyan", no_wrap=True)
    table.add_column("Action", style="white")
    table.add_column("Properties", style="magenta")
    table.add_column("Error", style="red")
    for outcome in result.outcomes:
        action = outcome.action.value
        if result.dry_run and outcome.action not in (Action.UNCHANGED, Action.FAILED):
            action = f"would be {action}"
        table.add_row(
            Text(outcome.identity),
            Text(action, style=_ACTION_STYLES[outcome.action]),
            ", ".join(outcome.changed),
            Text(outcome.error or ""),
        )
    return table


def build_state_table(states: Sequence[DiscoveredState]) -> Table:
    table = Table(title="Current state")
    table.add_column("Resource", style="cyan", no_wrap=True)
    table.add_column("Present", style="green")
    table.add_column("State", style="white")
    for state in states:
        if state.error:
            present = Text("error", style="bold red")
            details = Text(state.error, style="red")
        else:
            present = Text("yes" if state.present else "no", style="green" if state.present else "dim")
            details = Text(json.dumps(state.state, indent=1, sort_keys=True, default=str) if state.present else "")
        table.add_row(Text(state.identity), present, details)
    return table


def print_summary(console: Console, result: ReconcileResult) -> None:
    counts: dict[Action, int] = {}
    for outcome in result.outcomes:
        counts[outcome.action] = counts.get(outcome.action, 0) + 1
    parts = [f"{counts[action]} {action.value}" for action in Action if counts.get(action)]
    style = "red" if result.failed else "green"
    console.print(f"[{style}]{len(result.outcomes)} resources:[/{style}] " + (", ".join(parts) or "nothing to do"))
    for warning in result.warnings:
        console.print(f"[yellow]Warning:[/yellow] {escape(warning)}")
