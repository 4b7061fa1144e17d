from __future__ import annotations

from github import Auth, Github

_PASSING_CONCLUSIONS = ("success", "skipped")


def get_client(token: str, timeout: float = 15) -> Github:
    return Github(auth=Auth.Token(token), timeout=timeout)


def get_repo(client, full_name: str):
    return client.get_repo(full_name)


def get_authenticated_login(client) -> str:
    return client.get_user().login


def get_pull_requests(repo, state: str = "open"):
    return repo.get_pulls(state=state)


def get_reviews(pr):
    return pr.get_reviews()


def has_reviews(pr) -> bool:
    """Return True as soon as the first review is seen, without paging the rest."""
    for _ in pr.get_reviews():
        return True
    return False


def create_pending_review(pr):
    """Create an empty review. Without an event GitHub leaves it PENDING."""
    return pr.create_review()


def approve_review(pr, review_id: int) -> None:
    """Submit a pending review with the APPROVE event and no body.

    PyGithub has no wrapper for the submit endpoint, so this goes through the
    pull request's private requester. Checked against PyGithub 2.1 through 2.10;
    the dependency is capped below 3 for that reason.
    """
    pr._requester.requestJsonAndCheck(
        "POST",
        f"{pr.url}/reviews/{review_id}/events",
        input={"event": "APPROVE"},
    )


def request_reviewers(pr, logins: list[str]) -> None:
    pr.create_review_request(reviewers=logins)


def get_check_runs(repo, sha: str):
    return repo.get_commit(sha).get_check_runs()


def checks_passed(check_runs) -> bool:
    """True when every run concluded success or skipped. No runs counts as passing."""
    return all(run.conclusion in _PASSING_CONCLUSIONS for run in check_runs)


def author_login(obj) -> str | None:
    """Login of ``obj.user`` or None when the author is unknown (e.g. a deleted account)."""
    user = getattr(obj, "user", None)
    if user is None:
        return None
    return getattr(user, "login", None) or None


def requested_reviewer_logins(pr) -> list[str]:
    return [user.login for user in (pr.requested_reviewers or []) if getattr(user, "login", None)]
