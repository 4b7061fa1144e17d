"""config command — display the resolved configuration."""

from __future__ import annotations

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from autoapprove_cli.auth import gh_auth_token
from autoapprove_core.config import ConfigError, load_config, validate_config

console = Console()


def _mask(token: str | None) -> str:
    if not token:
        return "[red](not set)[/red]"
    return f"{token[:4]}…{token[-4:]}" if len(token) > 12 else "****"


@click.command("config")
@click.pass_context
def config_cmd(ctx):
    """Show the configuration the run command would use."""
    config_path = ctx.obj["config_path"] if ctx.obj else ".autoapprove.yml"
    try:
        config = validate_config(load_config(config_path, token_resolver=gh_auth_token))
    except ConfigError as e:
        raise click.UsageError(str(e))

    table = Table(title="autoapprove configuration", show_lines=False)
    table.add_column("Setting", style="bold")
    table.add_column("Value")

    table.add_row("reviewer", escape(config["reviewer"]) if config["reviewer"] else "[dim](token owner)[/dim]")
    table.add_row("automation author", escape(config["automation_author"]))
    table.add_row("trusted authors", escape(", ".join(sorted(config["authors"]))) or "[dim](none)[/dim]")
    table.add_row("repositories", escape("\n".join(r.full_name for r in config["repositories"])))
    table.add_row("poll interval", f"{config['poll_interval']:g}s")
    table.add_row("request timeout", f"{config['request_timeout']:g}s")
    table.add_row("token", _mask(config.get("github_token")))

    console.print(table)
