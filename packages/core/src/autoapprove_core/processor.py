"""Per-repository pass: evaluate every open pull request and approve the eligible ones."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape

from autoapprove_core.gh.pull_request import author_login, get_pull_requests, get_repo
from autoapprove_core.models import RepositoryRef, RepositorySummary

if TYPE_CHECKING:
    from autoapprove_core.eligibility import EligibilityEvaluator
    from autoapprove_core.reconciler import ReviewReconciler

console = Console()


def process_repository(
    client,
    ref: RepositoryRef,
    evaluator: EligibilityEvaluator,
    reconciler: ReviewReconciler,
) -> RepositorySummary:
    """Process one repository's open pull requests sequentially.

    Any exception aborts the remaining pull requests and propagates to the
    caller. Nothing done before the failure is undone.
    """
    console.print(f"Processing repo [bold]{escape(ref.full_name)}[/bold]")
    summary = RepositorySummary(repo=ref.full_name)
    repo = get_repo(client, ref.full_name)

    for pr in get_pull_requests(repo):
        summary.pull_requests += 1
        if not evaluator.is_eligible(repo, pr):
            continue
        console.print(
            f"Found PR review request: '{escape(pr.title)}' (#{pr.number}) "
            f"for {escape(evaluator.reviewer)} by {escape(author_login(pr) or '')}"
        )
        reconciler.reconcile(pr)
        summary.approved.append(pr.number)

    return summary
