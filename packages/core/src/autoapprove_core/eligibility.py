"""Decide whether a pull request should be approved on the reviewer's behalf."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from rich.console import Console
from rich.markup import escape

from autoapprove_core.gh.pull_request import (
    author_login,
    checks_passed,
    get_check_runs,
    has_reviews,
    request_reviewers,
    requested_reviewer_logins,
)

console = Console()
logger = logging.getLogger(__name__)


class EligibilityEvaluator:
    """Applies the two qualification rules to a single pull request.

    - Explicit request: the reviewer was requested and the author is trusted.
    - Automation: the dependency bot opened the PR, nobody was requested,
      checks are green and nobody has reviewed yet. The reviewer is then
      requested on the PR before it is reported eligible.

    The trusted author set does not gate the automation rule.
    """

    def __init__(self, reviewer: str, trusted_authors: Iterable[str], automation_author: str):
        self.reviewer = reviewer
        self.trusted_authors = frozenset(trusted_authors)
        self.automation_author = automation_author

    def is_explicitly_requested(self, pr, author: str) -> bool:
        return author in self.trusted_authors and self.reviewer in requested_reviewer_logins(pr)

    def is_ready_automation_pr(self, repo, pr, author: str) -> bool:
        if author != self.automation_author or requested_reviewer_logins(pr):
            return False
        if not checks_passed(get_check_runs(repo, pr.head.sha)):
            logger.debug("PR #%d: checks not all passing on %s", pr.number, pr.head.sha)
            return False
        if has_reviews(pr):
            logger.debug("PR #%d: already has reviews", pr.number)
            return False
        return True

    def is_eligible(self, repo, pr) -> bool:
        author = author_login(pr)
        if author is None:
            logger.debug("PR #%d has no author; skipping", pr.number)
            return False

        if self.is_explicitly_requested(pr, author):
            return True

        if self.is_ready_automation_pr(repo, pr, author):
            console.print(
                f"[cyan]{escape(author)} PR without review request: '{escape(pr.title)}' "
                f"(#{pr.number}), all checks done. Requesting {escape(self.reviewer)}.[/cyan]"
            )
            request_reviewers(pr, [self.reviewer])
            return True

        return False
