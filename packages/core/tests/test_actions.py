"""Tests for the PyGithub-backed workflow run client."""

from unittest.mock import MagicMock

import pytest
from github import GithubException

from radci_core.errors import ProviderQueryError
from radci_core.gh.actions import GitHubActions, to_conclusion, to_status
from radci_core.models import Conclusion, WorkflowStatus


def _artifact(artifact_id, name):
    a = MagicMock()
    a.id = artifact_id
    a.name = name
    a.url = f"https://api.github.com/repos/octo/mirror/actions/artifacts/{artifact_id}"
    return a


def _run(run_id, name, status="completed", conclusion="success", artifacts=()):
    run = MagicMock()
    run.id = run_id
    run.name = name
    run.status = status
    run.conclusion = conclusion
    run.get_artifacts.return_value = list(artifacts)
    return run


def _client(runs=(), repo_error=None):
    gh = MagicMock()
    repo = MagicMock()
    if repo_error is not None:
        gh.get_repo.side_effect = repo_error
    gh.get_repo.return_value = repo
    repo.get_workflow_runs.return_value = list(runs)
    return GitHubActions(client=gh), gh, repo


class TestMappings:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("completed", WorkflowStatus.COMPLETED),
            ("in_progress", WorkflowStatus.IN_PROGRESS),
            ("queued", WorkflowStatus.QUEUED),
            ("waiting", WorkflowStatus.QUEUED),
            (None, WorkflowStatus.QUEUED),
        ],
    )
    def test_status(self, raw, expected):
        assert to_status(raw) is expected

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("success", Conclusion.SUCCESS),
            ("failure", Conclusion.FAILURE),
            ("cancelled", Conclusion.OTHER),
            ("skipped", Conclusion.OTHER),
            ("", None),
            (None, None),
        ],
    )
    def test_conclusion(self, raw, expected):
        assert to_conclusion(raw) is expected


class TestListWorkflowRuns:
    def test_maps_runs_and_artifacts_in_order(self):
        runs = [
            _run(101, "build", artifacts=[_artifact(7, "dist")]),
            _run(102, "lint", status="in_progress", conclusion=None),
        ]
        client, gh, repo = _client(runs)

        results = client.list_workflow_runs("octo", "mirror", "abc")

        gh.get_repo.assert_called_with("octo/mirror")
        repo.get_workflow_runs.assert_called_once_with(head_sha="abc")
        assert [r.id for r in results] == ["101", "102"]
        assert results[0].conclusion is Conclusion.SUCCESS
        assert results[0].artifacts[0].id == "7"
        assert results[0].artifacts[0].url == "https://github.com/octo/mirror/actions/runs/101/artifacts/7"
        assert results[0].artifacts[0].api_url.endswith("/artifacts/7")
        assert results[1].status is WorkflowStatus.IN_PROGRESS
        assert results[1].conclusion is None
        assert results[1].artifacts == []

    def test_no_runs_is_empty_list(self):
        client, _, _ = _client([])
        assert client.list_workflow_runs("octo", "mirror", "abc") == []

    def test_listing_failure_raises_provider_error(self):
        client, _, repo = _client()
        repo.get_workflow_runs.side_effect = GithubException(500, {"message": "server error"}, None)
        with pytest.raises(ProviderQueryError):
            client.list_workflow_runs("octo", "mirror", "abc")

    def test_artifact_failure_is_not_fatal(self):
        run = _run(101, "build")
        run.get_artifacts.side_effect = GithubException(403, {"message": "forbidden"}, None)
        client, _, _ = _client([run])

        results = client.list_workflow_runs("octo", "mirror", "abc")

        assert len(results) == 1
        assert results[0].artifacts == []

    def test_other_conclusion_keeps_raw_detail(self):
        client, _, _ = _client([_run(5, "deploy", conclusion="timed_out")])
        result = client.list_workflow_runs("octo", "mirror", "abc")[0]
        assert result.conclusion is Conclusion.OTHER
        assert result.conclusion_detail == "timed_out"


class TestCheckCommit:
    def test_existing_commit_passes(self):
        client, _, repo = _client()
        client.check_commit_exists("octo", "mirror", "abc")
        repo.get_commit.assert_called_once_with("abc")

    def test_missing_commit_raises(self):
        client, _, repo = _client()
        repo.get_commit.side_effect = GithubException(422, {"message": "No commit found"}, None)
        with pytest.raises(ProviderQueryError, match="abc"):
            client.check_commit_exists("octo", "mirror", "abc")

    def test_missing_repo_raises(self):
        client, _, _ = _client(repo_error=GithubException(404, {"message": "Not Found"}, None))
        with pytest.raises(ProviderQueryError, match="octo/mirror"):
            client.check_commit_exists("octo", "mirror", "abc")

    def test_results_query_checks_commit_first(self):
        client, _, repo = _client([_run(1, "build")])
        repo.get_commit.side_effect = GithubException(422, {"message": "No commit found"}, None)
        with pytest.raises(ProviderQueryError):
            client.get_commit_workflow_results("octo", "mirror", "abc")
        repo.get_workflow_runs.assert_not_called()

    def test_results_query_returns_runs(self):
        client, _, _ = _client([_run(1, "build")])
        assert [r.name for r in client.get_commit_workflow_results("octo", "mirror", "abc")] == ["build"]
