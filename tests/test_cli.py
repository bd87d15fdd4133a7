from unittest.mock import MagicMock, patch

import pytest

from ciwatch import cli
from ciwatch.agents.orchestrator import WatchOutcome
from ciwatch.core.errors import QueryError, UsageError


@pytest.fixture(autouse=True)
def token():
    with patch("ciwatch.cli.config.GITHUB_TOKEN", "fake-token"):
        yield


class TestResolveTarget:

    def test_repo_without_commit_rejected(self):
        with pytest.raises(UsageError, match="commit is required"):
            cli.resolve_target("owner/repo", None)

    def test_invalid_repo_rejected(self):
        with pytest.raises(UsageError, match="Invalid repository"):
            cli.resolve_target("not-a-slug", "abc1234")

    def test_invalid_commit_rejected(self):
        with pytest.raises(UsageError, match="Invalid commit"):
            cli.resolve_target("owner/repo", "xyz")

    def test_explicit_target_lowercased(self):
        assert cli.resolve_target("owner/repo", "ABC1234") == ("owner/repo", "abc1234")

    def test_derives_both_when_absent(self):
        with patch("ciwatch.cli.vcs.ensure_git"), \
             patch("ciwatch.cli.vcs.resolve_repository", return_value="o/r"), \
             patch("ciwatch.cli.vcs.get_head_commit", return_value="ABCDEF1234"):
            assert cli.resolve_target(None, None) == ("o/r", "abcdef1234")


def _run(argv, console):
    return cli.run(argv, console=console)


def test_usage_error_exits_1_and_prints_usage(console, buffer):
    assert _run(["owner/repo"], console) == 1
    out = buffer.getvalue()
    assert "Error: A commit is required" in out
    assert "usage: ciwatch" in out


def test_unknown_option_exits_1(console, buffer):
    assert _run(["--bogus"], console) == 1
    assert "usage: ciwatch" in buffer.getvalue()


def test_out_of_range_option_is_usage_error(console, buffer):
    assert _run(["owner/repo", "abc1234", "--interval", "0"], console) == 1
    assert "poll_interval" in buffer.getvalue()


def test_missing_token_is_dependency_error(console, buffer):
    with patch("ciwatch.cli.config.GITHUB_TOKEN", None), \
         patch("ciwatch.cli.GitHubActionsClient") as mock_client:
        assert _run(["owner/repo", "abc1234"], console) == 1
        mock_client.assert_not_called()
    assert "No GitHub token found" in buffer.getvalue()


@pytest.mark.parametrize("exit_code", [0, 64])
def test_returns_orchestrator_exit_code(exit_code, console):
    with patch("ciwatch.cli.GitHubActionsClient") as mock_client_cls, \
         patch("ciwatch.cli.Orchestrator") as mock_orch_cls:
        mock_client_cls.return_value.__enter__.return_value = MagicMock()
        mock_orch_cls.return_value.run.return_value = WatchOutcome(exit_code=exit_code)

        assert _run(["owner/repo", "abc1234", "--workflow", "CI", "--timeout", "30"], console) == exit_code

        config = mock_client_cls.call_args.args[0]
        assert config.poll_timeout == 30
        assert config.token == "fake-token"
        mock_orch_cls.return_value.run.assert_called_once_with("owner/repo", "abc1234", "CI")


def test_query_error_exits_1(console, buffer):
    with patch("ciwatch.cli.GitHubActionsClient") as mock_client_cls, \
         patch("ciwatch.cli.Orchestrator") as mock_orch_cls:
        mock_client_cls.return_value.__enter__.return_value = MagicMock()
        mock_orch_cls.return_value.run.side_effect = QueryError("GET /repos/o/r/actions/runs failed with HTTP 401", 401)
        assert _run(["owner/repo", "abc1234"], console) == 1
    assert "HTTP 401" in buffer.getvalue()
