"""evaluate command — decide whether a review snapshot counts as approved."""

from __future__ import annotations

import json

import click
from rich.console import Console

from mergegate_core.combinator import any_satisfied, build_rules
from mergegate_core.config import RULE_NAMES
from mergegate_core.models import RuleResult, SnapshotError
from mergegate_core.snapshot import load_snapshot

console = Console()


def effective_config(ctx: click.Context, overrides: dict) -> dict:
    """Apply command-line overrides on top of the group-level configuration."""
    config = dict(ctx.obj.get("config") or {}) if ctx.obj else {}
    for key, value in overrides.items():
        if value:
            config[key] = value
    return config


def read_snapshot(snapshot_path: str):
    try:
        return load_snapshot(snapshot_path)
    except SnapshotError as e:
        raise click.BadParameter(str(e), param_hint="SNAPSHOT_PATH")


def print_result(result: RuleResult) -> None:
    """Print a combined result as a status line followed by whoever must act next."""
    if result.completed:
        console.print(f"[green]✔ Approved[/green] — {result.description}")
    else:
        console.print(f"[yellow]✘ Pending[/yellow] — {result.description}")
    console.print(f"  [dim]{result.short_description}[/dim]")
    if result.pending_reviewers:
        names = ", ".join(f"[bold]{u.username}[/bold]" for u in result.pending_reviewers)
        console.print(f"  Waiting on: {names}")


@click.command("evaluate")
@click.argument("snapshot_path", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--rule",
    "rules",
    multiple=True,
    type=click.Choice(RULE_NAMES),
    help="Restrict evaluation to these rules. Repeatable. Overrides config file.",
)
@click.option(
    "--min-approvals",
    "min_approvals",
    type=click.IntRange(min=1),
    default=None,
    help="Minimum approvals when no reviewers are designated. Overrides config file.",
)
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON.")
@click.pass_context
def evaluate_cmd(ctx, snapshot_path: str, rules: tuple[str, ...], min_approvals: int | None, as_json: bool):
    """Evaluate a review snapshot against the merge policies.

    Reads a JSON or YAML snapshot of the review, applies the configured rules
    in priority order and reports the first one that is satisfied.

    \b
    Exit status:
      0  the review is approved
      1  the review is still pending
      2  invalid arguments, configuration or snapshot
    """
    config = effective_config(
        ctx,
        {"rules": list(rules), "default_num_approvals_required": min_approvals, "output": "json" if as_json else None},
    )
    snapshot = read_snapshot(snapshot_path)

    result = any_satisfied(build_rules(config), snapshot)

    if config.get("output") == "json":
        click.echo(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
    else:
        print_result(result)

    ctx.exit(0 if result.completed else 1)
