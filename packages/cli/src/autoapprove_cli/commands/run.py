"""run command — poll repositories and approve eligible pull requests."""

from __future__ import annotations

import logging
import signal
import threading

import click
import requests
from github import GithubException
from rich.console import Console
from rich.markup import escape

from autoapprove_cli.auth import gh_auth_token
from autoapprove_core.config import ConfigError, load_config, validate_config
from autoapprove_core.eligibility import EligibilityEvaluator
from autoapprove_core.gh.pull_request import get_authenticated_login, get_client
from autoapprove_core.poller import Poller
from autoapprove_core.reconciler import ReviewReconciler

console = Console()
logger = logging.getLogger(__name__)


def _resolve_reviewer(client, configured: str | None) -> str:
    """Return the reviewer login, defaulting to the token owner.

    Pending reviews are always created as the token owner, so a different
    configured reviewer is allowed but warned about.
    """
    try:
        token_login = get_authenticated_login(client)
    except (GithubException, requests.RequestException) as e:
        raise click.ClickException(f"Could not authenticate with GitHub: {e}")

    if configured is None:
        return token_login
    if configured != token_login:
        logger.warning(
            "Configured reviewer %r differs from the token owner %r; new reviews are created as %r.",
            configured,
            token_login,
            token_login,
        )
    return configured


def build_poller(config: dict, token: str) -> Poller:
    client = get_client(token, timeout=config["request_timeout"])
    reviewer = _resolve_reviewer(client, config.get("reviewer"))
    evaluator = EligibilityEvaluator(
        reviewer=reviewer,
        trusted_authors=config["authors"],
        automation_author=config["automation_author"],
    )
    return Poller(
        client,
        config["repositories"],
        evaluator,
        ReviewReconciler(reviewer),
        interval=config["poll_interval"],
    )


@click.command("run")
@click.option("--once", is_flag=True, help="Run a single pass over all repositories and exit.")
@click.option(
    "--interval",
    type=click.FloatRange(min=0, min_open=True),
    default=None,
    help="Seconds to wait between passes. Overrides config (default 60).",
)
@click.pass_context
def run_cmd(ctx, once: bool, interval: float | None):
    """Watch the configured repositories and approve PRs waiting on you.

    \b
    Required environment variables:
      GITHUB_PERSONAL_ACCESS_TOKEN  GitHub token (or use gh CLI)
      AUTHORS                       JSON array of trusted author logins
      GIT_REPOSITORIES              JSON array of {"owner": ..., "name": ...}
    """
    config_path = ctx.obj["config_path"] if ctx.obj else ".autoapprove.yml"
    try:
        raw_config = load_config(config_path, cli_overrides={"poll_interval": interval}, token_resolver=gh_auth_token)
        config = validate_config(raw_config)
    except ConfigError as e:
        raise click.UsageError(str(e))

    token = config.get("github_token")
    if not token:
        raise click.UsageError(
            "No GitHub token found. Set GITHUB_PERSONAL_ACCESS_TOKEN or run `gh auth login` first."
        )

    poller = build_poller(config, token)
    console.print(f"Trusted authors: {escape(', '.join(sorted(config['authors'])) or '(none)')}")
    console.print(f"Repositories: {escape(', '.join(r.full_name for r in config['repositories']))}")

    if once:
        summaries = poller.run_once()
        if any(not s.ok for s in summaries):
            ctx.exit(1)
        return

    stop_event = threading.Event()

    def _handle_signal(signum, frame):
        console.print("\n[yellow]Stopping after the current pass...[/yellow]")
        stop_event.set()

    signal.signal(signal.SIGINT, _handle_signal)
    signal.signal(signal.SIGTERM, _handle_signal)

    console.print(f"Polling every {config['poll_interval']:g}s. Press Ctrl+C to stop.")
    worker = poller.start(stop_event)
    # join() with a timeout keeps the main thread responsive to signals.
    while worker.is_alive():
        worker.join(timeout=1.0)

    if not stop_event.is_set():
        raise click.ClickException("Poller stopped unexpectedly; see the log above for the error.")
