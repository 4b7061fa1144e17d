import json
import os
from pathlib import Path
from typing import Callable, Optional

import yaml

DEFAULT_CONFIG: dict = {
    "reviewer": None,  # None = the login that owns the GitHub token
    "automation_author": "renovate[bot]",
    "poll_interval": 60,  # seconds between passes
    "request_timeout": 15,  # seconds per GitHub API call
    "authors": [],
    "repositories": [],
}

# Environment variable -> (config key, parser)
_ENV_OVERRIDES = {
    "AUTHORS": ("authors", "json"),
    "GIT_REPOSITORIES": ("repositories", "json"),
    "REVIEWER_LOGIN": ("reviewer", "str"),
    "AUTOMATION_AUTHOR": ("automation_author", "str"),
    "POLL_INTERVAL": ("poll_interval", "str"),
}


class ConfigError(ValueError):
    """Raised when configuration is missing or malformed. Always fatal."""


def _parse_json_env(name: str, raw: str):
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        raise ConfigError(f"{name} is not valid JSON: {e}") from e


def load_config(
    config_path: str = ".autoapprove.yml",
    cli_overrides: Optional[dict] = None,
    token_resolver: Optional[Callable[[], Optional[str]]] = None,
) -> dict:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. .autoapprove.yml in the current directory
      3. Environment variables (AUTHORS, GIT_REPOSITORIES, ...)
      4. CLI argument overrides

    The GitHub token comes from GITHUB_PERSONAL_ACCESS_TOKEN, or from
    ``token_resolver()`` when that variable is unset.

    The result is not validated; pass it through validate_config() before use.
    """
    config = {**DEFAULT_CONFIG, "authors": list(DEFAULT_CONFIG["authors"]), "repositories": []}

    path = Path(config_path)
    if path.exists():
        with open(path) as f:
            try:
                file_config = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigError(f"Could not parse {config_path}: {e}") from e
        if not isinstance(file_config, dict):
            raise ConfigError(f"{config_path} must contain a mapping at the top level.")
        config.update(file_config)

    for env_name, (key, kind) in _ENV_OVERRIDES.items():
        raw = os.environ.get(env_name)
        if raw is None or raw == "":
            continue
        config[key] = _parse_json_env(env_name, raw) if kind == "json" else raw

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                config[key] = value

    token = os.environ.get("GITHUB_PERSONAL_ACCESS_TOKEN")
    if not token and token_resolver is not None:
        token = token_resolver()
    config["github_token"] = token or None

    return config


def _positive_number(config: dict, key: str) -> float:
    value = config.get(key)
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{key} must be a number, got {value!r}.")
    if number <= 0:
        raise ConfigError(f"{key} must be greater than zero, got {value!r}.")
    return number


def validate_config(config: dict) -> dict:
    """Check a merged config and return a copy with typed values.

    ``authors`` becomes a frozenset of logins and ``repositories`` a list of
    RepositoryRef. Raises ConfigError on the first problem found.
    """
    from autoapprove_core.models import RepositoryRef

    authors = config.get("authors")
    if not isinstance(authors, (list, tuple, set, frozenset)) or not all(
        isinstance(a, str) and a for a in authors
    ):
        raise ConfigError("AUTHORS must be a JSON array of login strings.")

    repositories = config.get("repositories")
    if not isinstance(repositories, list):
        raise ConfigError("GIT_REPOSITORIES must be a JSON array of {owner, name} objects.")
    if not repositories:
        raise ConfigError("No repositories configured. Set GIT_REPOSITORIES or list them in the config file.")

    reviewer = config.get("reviewer")
    if reviewer is not None and (not isinstance(reviewer, str) or not reviewer.strip()):
        raise ConfigError("reviewer must be a non-empty login string.")

    automation_author = config.get("automation_author")
    if not isinstance(automation_author, str) or not automation_author.strip():
        raise ConfigError("automation_author must be a non-empty login string.")

    return {
        **config,
        "authors": frozenset(authors),
        "repositories": [
            r if isinstance(r, RepositoryRef) else RepositoryRef.from_dict(r) for r in repositories
        ],
        "poll_interval": _positive_number(config, "poll_interval"),
        "request_timeout": _positive_number(config, "request_timeout"),
    }
