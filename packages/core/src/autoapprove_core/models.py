"""Value types shared by the evaluator, processor and poller.

Everything remote (pull requests, reviews, check runs) stays a PyGithub
object; only the configured repositories and per-pass outcomes are modelled
here.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from autoapprove_core.config import ConfigError


@dataclass(frozen=True)
class RepositoryRef:
    """A repository to watch, as listed in GIT_REPOSITORIES."""

    owner: str
    name: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"

    @classmethod
    def from_dict(cls, data) -> RepositoryRef:
        if not isinstance(data, dict):
            raise ConfigError(f"Repository entry must be an object with owner and name, got {data!r}.")
        owner = data.get("owner")
        name = data.get("name")
        for key, value in (("owner", owner), ("name", name)):
            if not isinstance(value, str) or not value.strip():
                raise ConfigError(f"Repository entry {data!r} is missing a valid {key!r}.")
        return cls(owner=owner, name=name)


@dataclass
class RepositorySummary:
    """Outcome of processing one repository during a single pass."""

    repo: str
    pull_requests: int = 0
    approved: list[int] = field(default_factory=list)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None
