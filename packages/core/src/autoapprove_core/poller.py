"""Polling loop over the configured repositories."""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape

from autoapprove_core.models import RepositoryRef, RepositorySummary
from autoapprove_core.processor import process_repository

if TYPE_CHECKING:
    from autoapprove_core.eligibility import EligibilityEvaluator
    from autoapprove_core.reconciler import ReviewReconciler

console = Console()
logger = logging.getLogger(__name__)


class Poller:
    """Runs sequential passes over ``repositories``.

    A pass visits repositories in configuration order. Any failure in one
    repository is logged and recorded on its summary; the next repository is
    still attempted. Passes never overlap.
    """

    def __init__(
        self,
        client,
        repositories: list[RepositoryRef],
        evaluator: EligibilityEvaluator,
        reconciler: ReviewReconciler,
        interval: float = 60,
    ):
        self.client = client
        self.repositories = list(repositories)
        self.evaluator = evaluator
        self.reconciler = reconciler
        self.interval = interval

    def run_once(self) -> list[RepositorySummary]:
        summaries: list[RepositorySummary] = []
        for ref in self.repositories:
            try:
                summary = process_repository(self.client, ref, self.evaluator, self.reconciler)
            except Exception as e:
                logger.exception("Processing %s failed", ref.full_name)
                console.print(f"[red]Could not process {escape(ref.full_name)}: {escape(str(e))}[/red]")
                summary = RepositorySummary(repo=ref.full_name, error=str(e) or type(e).__name__)
            summaries.append(summary)

        approved = sum(len(s.approved) for s in summaries)
        failed = sum(1 for s in summaries if not s.ok)
        logger.info("Pass complete: %d repo(s), %d approval(s), %d failure(s)", len(summaries), approved, failed)
        return summaries

    def run_forever(self, stop_event: threading.Event) -> None:
        """Run a pass, then sleep ``interval`` seconds, until ``stop_event`` is set."""
        while not stop_event.is_set():
            self.run_once()
            if stop_event.wait(self.interval):
                break
        logger.info("Poller stopped.")

    def start(self, stop_event: threading.Event) -> threading.Thread:
        """Start run_forever in a single background daemon thread."""
        worker = threading.Thread(
            target=self.run_forever,
            args=(stop_event,),
            name="autoapprove-poller",
            daemon=True,
        )
        worker.start()
        return worker
