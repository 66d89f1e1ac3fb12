"""CLI entry point for mergegate.

Commands:
  evaluate — decide whether a review snapshot counts as approved
  explain  — show every rule's status side by side
"""

from __future__ import annotations

import importlib.metadata
import logging

import click
import yaml
from rich.console import Console
from rich.logging import RichHandler

from mergegate_cli.commands.evaluate import evaluate_cmd
from mergegate_cli.commands.explain import explain_cmd

console = Console(stderr=True)


@click.group()
@click.version_option(
    version=importlib.metadata.version("mergegate"),
    prog_name="mergegate",
)
@click.option(
    "--config",
    "config_path",
    default=".mergegate.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="MERGEGATE_CONFIG",
)
@click.option("--verbose", "-v", is_flag=True, help="Log rule evaluation details.")
@click.pass_context
def main(ctx: click.Context, config_path: str, verbose: bool):
    """Merge-readiness policy engine for code reviews."""
    from mergegate_core.config import load_config

    ctx.ensure_object(dict)

    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=console, show_path=False)],
        )

    try:
        ctx.obj["config"] = load_config(config_path)
    except (ValueError, yaml.YAMLError) as e:
        raise click.UsageError(f"Invalid configuration in {config_path}: {e}")


main.add_command(evaluate_cmd)
main.add_command(explain_cmd)
