from __future__ import annotations

import logging

from rich.console import Console
from rich.markup import escape

from autoapprove_core.gh.pull_request import approve_review, author_login, create_pending_review, get_reviews

console = Console()
logger = logging.getLogger(__name__)


class ReviewReconciler:
    """Approve a pull request as ``reviewer``, reusing their pending review if one exists."""

    def __init__(self, reviewer: str):
        self.reviewer = reviewer

    def find_pending_review(self, reviews):
        """Return the first PENDING review by the reviewer, in listing order, or None."""
        for review in reviews:
            if author_login(review) == self.reviewer and review.state == "PENDING":
                return review
        return None

    def reconcile(self, pr) -> int:
        """Approve ``pr`` and return the id of the approved review.

        Creates at most one review. Errors propagate without undoing earlier calls.
        """
        review = self.find_pending_review(get_reviews(pr))
        if review is not None:
            console.print(f"  Review already exists for {escape(self.reviewer)}: {review.id}")
        else:
            console.print(f"  Creating a fresh review for PR #{pr.number}")
            review = create_pending_review(pr)

        console.print(f"  [green]Approving PR #{pr.number}[/green]")
        approve_review(pr, review.id)
        logger.debug("Submitted APPROVE on review %s of PR #%d", review.id, pr.number)
        return review.id
