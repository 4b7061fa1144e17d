"""Tests for the CLI entry point."""

import json
import subprocess
from unittest.mock import MagicMock

import click
import pytest
import requests
from click.testing import CliRunner

from autoapprove_cli.auth import gh_auth_token
from autoapprove_cli.cli import main
from autoapprove_cli.commands.run import build_poller
from autoapprove_core.models import RepositoryRef, RepositorySummary

REPOS_JSON = json.dumps([{"owner": "my-org", "name": "backend"}])
GH_TOKEN = "gho_fromghcli1234"


def _gh_result(stdout="", returncode=0):
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr="")


@pytest.fixture(autouse=True)
def env(monkeypatch, mocker, tmp_path):
    """Configure a valid environment and keep the real .env, config file and gh CLI out of the way."""
    mocker.patch("autoapprove_cli.cli.load_dotenv")
    mocker.patch("autoapprove_cli.auth.subprocess.run", side_effect=FileNotFoundError)
    monkeypatch.setenv("AUTOAPPROVE_CONFIG", str(tmp_path / "missing.yml"))
    monkeypatch.setenv("AUTHORS", '["alice"]')
    monkeypatch.setenv("GIT_REPOSITORIES", REPOS_JSON)
    monkeypatch.setenv("GITHUB_PERSONAL_ACCESS_TOKEN", "ghp_abcdefghijklmnop")
    for name in ("REVIEWER_LOGIN", "AUTOMATION_AUTHOR", "POLL_INTERVAL"):
        monkeypatch.delenv(name, raising=False)


def _patch_poller(mocker, summaries=None):
    poller = MagicMock()
    poller.run_once.return_value = summaries if summaries is not None else [RepositorySummary(repo="my-org/backend")]
    build = mocker.patch("autoapprove_cli.commands.run.build_poller", return_value=poller)
    return build, poller


class TestRunValidation:
    def test_malformed_authors(self, monkeypatch, mocker):
        build, _ = _patch_poller(mocker)
        monkeypatch.setenv("AUTHORS", "alice")

        result = CliRunner().invoke(main, ["run", "--once"])

        assert result.exit_code == 2
        assert "AUTHORS" in result.output
        build.assert_not_called()

    def test_missing_repositories(self, monkeypatch, mocker):
        _patch_poller(mocker)
        monkeypatch.delenv("GIT_REPOSITORIES")

        result = CliRunner().invoke(main, ["run", "--once"])

        assert result.exit_code == 2
        assert "repositories" in result.output.lower()

    def test_missing_token(self, monkeypatch, mocker):
        build, _ = _patch_poller(mocker)
        monkeypatch.delenv("GITHUB_PERSONAL_ACCESS_TOKEN")

        result = CliRunner().invoke(main, ["run", "--once"])

        assert result.exit_code == 2
        assert "GITHUB_PERSONAL_ACCESS_TOKEN" in result.output
        build.assert_not_called()

    def test_token_from_gh_cli(self, monkeypatch, mocker):
        build, _ = _patch_poller(mocker)
        monkeypatch.delenv("GITHUB_PERSONAL_ACCESS_TOKEN")
        mocker.patch("autoapprove_cli.auth.subprocess.run", return_value=_gh_result(f"{GH_TOKEN}\n"))

        result = CliRunner().invoke(main, ["run", "--once"])

        assert result.exit_code == 0, result.output
        assert build.call_args.args[1] == GH_TOKEN

    def test_rejects_non_positive_interval(self, mocker):
        _patch_poller(mocker)
        result = CliRunner().invoke(main, ["run", "--once", "--interval", "0"])
        assert result.exit_code != 0


class TestRunOnce:
    def test_single_pass_succeeds(self, mocker):
        build, poller = _patch_poller(mocker)

        result = CliRunner().invoke(main, ["run", "--once"])

        assert result.exit_code == 0, result.output
        poller.run_once.assert_called_once_with()
        poller.start.assert_not_called()
        config, token = build.call_args.args
        assert token == "ghp_abcdefghijklmnop"
        assert config["authors"] == frozenset({"alice"})
        assert config["repositories"] == [RepositoryRef(owner="my-org", name="backend")]

    def test_failed_repository_exits_non_zero(self, mocker):
        _patch_poller(
            mocker,
            summaries=[
                RepositorySummary(repo="my-org/backend", error="404 Not Found"),
            ],
        )
        result = CliRunner().invoke(main, ["run", "--once"])
        assert result.exit_code == 1

    def test_interval_override_reaches_config(self, mocker):
        build, _ = _patch_poller(mocker)
        CliRunner().invoke(main, ["run", "--once", "--interval", "5"])
        assert build.call_args.args[0]["poll_interval"] == 5.0


class TestRunForever:
    def test_starts_background_worker_and_waits(self, mocker):
        _, poller = _patch_poller(mocker)
        worker = MagicMock()
        worker.is_alive.side_effect = [True, False]

        def _start(stop_event):
            # Worker exits because it was asked to stop.
            stop_event.set()
            return worker

        poller.start.side_effect = _start
        signal_mock = mocker.patch("autoapprove_cli.commands.run.signal.signal")

        result = CliRunner().invoke(main, ["run"])

        assert result.exit_code == 0, result.output
        poller.start.assert_called_once()
        poller.run_once.assert_not_called()
        worker.join.assert_called_once_with(timeout=1.0)
        assert signal_mock.call_count == 2

    def test_worker_dying_without_stop_exits_non_zero(self, mocker):
        _, poller = _patch_poller(mocker)
        poller.start.return_value = MagicMock(is_alive=MagicMock(return_value=False))
        mocker.patch("autoapprove_cli.commands.run.signal.signal")

        result = CliRunner().invoke(main, ["run"])

        assert result.exit_code == 1
        assert "stopped unexpectedly" in result.output

    def test_signal_handler_sets_stop_event(self, mocker):
        _, poller = _patch_poller(mocker)
        poller.start.return_value = MagicMock(is_alive=MagicMock(return_value=False))
        signal_mock = mocker.patch("autoapprove_cli.commands.run.signal.signal")

        CliRunner().invoke(main, ["run"])

        stop_event = poller.start.call_args.args[0]
        assert not stop_event.is_set()
        handler = signal_mock.call_args_list[0].args[1]
        handler(2, None)
        assert stop_event.is_set()


class TestBuildPoller:
    def _config(self, reviewer=None):
        return {
            "reviewer": reviewer,
            "automation_author": "renovate[bot]",
            "authors": frozenset({"alice"}),
            "repositories": [RepositoryRef(owner="my-org", name="backend")],
            "poll_interval": 30.0,
            "request_timeout": 10.0,
        }

    def test_reviewer_defaults_to_token_owner(self, mocker):
        get_client = mocker.patch("autoapprove_cli.commands.run.get_client")
        mocker.patch("autoapprove_cli.commands.run.get_authenticated_login", return_value="barakb")

        poller = build_poller(self._config(), "tok")

        get_client.assert_called_once_with("tok", timeout=10.0)
        assert poller.evaluator.reviewer == "barakb"
        assert poller.reconciler.reviewer == "barakb"
        assert poller.evaluator.trusted_authors == frozenset({"alice"})
        assert poller.interval == 30.0

    def test_configured_reviewer_kept(self, mocker):
        mocker.patch("autoapprove_cli.commands.run.get_client")
        mocker.patch("autoapprove_cli.commands.run.get_authenticated_login", return_value="bot-account")

        poller = build_poller(self._config(reviewer="barakb"), "tok")

        assert poller.evaluator.reviewer == "barakb"

    def test_network_failure_at_startup_is_click_error(self, mocker):
        mocker.patch("autoapprove_cli.commands.run.get_client")
        mocker.patch(
            "autoapprove_cli.commands.run.get_authenticated_login",
            side_effect=requests.ConnectionError("connection refused"),
        )

        with pytest.raises(click.ClickException, match="connection refused"):
            build_poller(self._config(), "tok")


class TestConfigCommand:
    def test_shows_resolved_config_with_masked_token(self):
        result = CliRunner().invoke(main, ["config"])

        assert result.exit_code == 0, result.output
        assert "my-org/backend" in result.output
        assert "alice" in result.output
        assert "renovate[bot]" in result.output
        assert "ghp_abcdefghijklmnop" not in result.output

    def test_config_error_is_usage_error(self, monkeypatch):
        monkeypatch.setenv("GIT_REPOSITORIES", "{not json")
        result = CliRunner().invoke(main, ["config"])
        assert result.exit_code == 2
        assert "GIT_REPOSITORIES" in result.output

    def test_token_from_gh_cli_is_shown(self, monkeypatch, mocker):
        monkeypatch.delenv("GITHUB_PERSONAL_ACCESS_TOKEN")
        mocker.patch("autoapprove_cli.auth.subprocess.run", return_value=_gh_result(f"{GH_TOKEN}\n"))

        result = CliRunner().invoke(main, ["config"])

        assert result.exit_code == 0, result.output
        assert "not set" not in result.output
        assert "gho_" in result.output
        assert GH_TOKEN not in result.output

    def test_missing_token_shown_as_not_set(self, monkeypatch):
        monkeypatch.delenv("GITHUB_PERSONAL_ACCESS_TOKEN")
        result = CliRunner().invoke(main, ["config"])
        assert "not set" in result.output


class TestGhAuthToken:
    def test_returns_stripped_token(self, mocker):
        run = mocker.patch("autoapprove_cli.auth.subprocess.run", return_value=_gh_result(f"{GH_TOKEN}\n"))
        assert gh_auth_token() == GH_TOKEN
        assert run.call_args.args[0] == ["gh", "auth", "token"]

    def test_logged_out(self, mocker):
        mocker.patch("autoapprove_cli.auth.subprocess.run", return_value=_gh_result(returncode=1))
        assert gh_auth_token() is None

    def test_empty_output(self, mocker):
        mocker.patch("autoapprove_cli.auth.subprocess.run", return_value=_gh_result("\n"))
        assert gh_auth_token() is None

    def test_gh_not_installed(self):
        assert gh_auth_token() is None

    def test_gh_timeout(self, mocker):
        mocker.patch(
            "autoapprove_cli.auth.subprocess.run",
            side_effect=subprocess.TimeoutExpired(cmd="gh", timeout=5),
        )
        assert gh_auth_token() is None
