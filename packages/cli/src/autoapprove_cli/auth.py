"""Token fallback for local runs: reuse the GitHub CLI session.

GITHUB_PERSONAL_ACCESS_TOKEN is read by autoapprove_core.config.load_config;
gh_auth_token() is passed to it as the resolver used when that is unset.
"""

from __future__ import annotations

import logging
import subprocess

logger = logging.getLogger(__name__)


def gh_auth_token() -> str | None:
    """Return the token stored by `gh auth login`, or None.

    Never raises: a missing, logged-out or hung gh binary all mean "no token".
    """
    try:
        result = subprocess.run(
            ["gh", "auth", "token"],
            capture_output=True,
            text=True,
            timeout=5,
        )
    except (FileNotFoundError, subprocess.TimeoutExpired) as e:
        logger.debug("gh CLI token unavailable: %s", e)
        return None

    if result.returncode != 0:
        logger.debug("gh auth token exited %d: %s", result.returncode, result.stderr.strip())
        return None
    token = result.stdout.strip()
    if token:
        logger.debug("Resolved GitHub token via gh CLI session.")
    return token or None
