"""explain command — show every rule's status side by side."""

from __future__ import annotations

import click
from rich.console import Console
from rich.table import Table

from mergegate_cli.commands.evaluate import effective_config, read_snapshot
from mergegate_core.combinator import build_rules

console = Console()


@click.command("explain")
@click.argument("snapshot_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--debug", "show_debug", is_flag=True, help="Also print each rule's diagnostic payload.")
@click.pass_context
def explain_cmd(ctx, snapshot_path: str, show_debug: bool):
    """Show the status of every configured rule for a review snapshot.

    The rule marked as selected is the one `mergegate evaluate` would report.
    Useful for seeing which policy is closest to completion.
    """
    config = effective_config(ctx, {})
    snapshot = read_snapshot(snapshot_path)

    table = Table(title=f"Merge policies — {snapshot_path}", show_header=True, header_style="bold cyan")
    table.add_column("Rule", style="bold")
    table.add_column("Status", width=10)
    table.add_column("Summary")
    table.add_column("Pending")

    selected = None
    evaluated = []
    for rule in build_rules(config):
        result = rule.evaluate(snapshot)
        evaluated.append((rule, result))
        if selected is None and result.completed:
            selected = rule.name

    for rule, result in evaluated:
        status = "[green]complete[/green]" if result.completed else "[yellow]pending[/yellow]"
        marker = " ←" if rule.name == selected else ""
        table.add_row(
            f"{rule.name}{marker}",
            status,
            result.short_description,
            ", ".join(u.username for u in result.pending_reviewers) or "—",
        )

    console.print(table)

    if show_debug:
        for rule, result in evaluated:
            if result.debug is not None:
                console.print(f"\n[bold]{rule.name}[/bold] debug:")
                console.print(result.debug)
