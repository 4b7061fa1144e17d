"""CLI entry point for autoapprove.

Commands:
  run     — poll the configured repositories and approve eligible PRs
  config  — show the resolved configuration
"""

from __future__ import annotations

import importlib.metadata
import logging

import click
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler

from autoapprove_cli.commands.config import config_cmd
from autoapprove_cli.commands.run import run_cmd

console = Console()


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True)],
        force=True,
    )
    # PyGithub and urllib3 are chatty at DEBUG.
    logging.getLogger("github").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)


@click.group()
@click.version_option(
    version=importlib.metadata.version("autoapprove"),
    prog_name="autoapprove",
)
@click.option(
    "--config",
    "config_path",
    default=".autoapprove.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="AUTOAPPROVE_CONFIG",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.pass_context
def main(ctx: click.Context, config_path: str, verbose: bool):
    """Approve pull requests waiting on your review across a set of repositories."""
    # Matches running from a checkout with a .env beside it; real env vars win.
    load_dotenv()
    _setup_logging(verbose)

    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


main.add_command(run_cmd)
main.add_command(config_cmd)
