from __future__ import annotations

import logging

from github import Github, GithubException

from radci_core.errors import ProviderQueryError
from radci_core.models import Conclusion, WorkflowArtifact, WorkflowResult, WorkflowStatus

logger = logging.getLogger(__name__)

_ARTIFACT_URL = "https://github.com/{owner}/{repo}/actions/runs/{run_id}/artifacts/{artifact_id}"


def to_status(raw: str | None) -> WorkflowStatus:
    # queued, waiting, requested and pending all mean "not started yet".
    if raw == "completed":
        return WorkflowStatus.COMPLETED
    if raw == "in_progress":
        return WorkflowStatus.IN_PROGRESS
    return WorkflowStatus.QUEUED


def to_conclusion(raw: str | None) -> Conclusion | None:
    if not raw:
        return None
    if raw == "success":
        return Conclusion.SUCCESS
    if raw == "failure":
        return Conclusion.FAILURE
    return Conclusion.OTHER


class GitHubActions:
    """Reads workflow runs and their artifacts for a commit from the GitHub API."""

    def __init__(self, token: str | None = None, client: Github | None = None):
        # Anonymous access works for public repositories, at a much lower rate limit.
        self._gh = client if client is not None else Github(token)

    def _repo(self, owner: str, repo: str):
        try:
            return self._gh.get_repo(f"{owner}/{repo}")
        except GithubException as e:
            raise ProviderQueryError(f"GitHub repository {owner}/{repo} not found: {e}") from e

    def check_commit_exists(self, owner: str, repo: str, commit: str) -> None:
        try:
            self._repo(owner, repo).get_commit(commit)
        except GithubException as e:
            raise ProviderQueryError(f"commit {commit} not found in GitHub repository {owner}/{repo}: {e}") from e

    def list_workflow_runs(self, owner: str, repo: str, commit: str) -> list[WorkflowResult]:
        """Return every workflow run whose head SHA is ``commit``, in GitHub's order.

        An empty list is a valid answer (no workflows were triggered).
        """
        gh_repo = self._repo(owner, repo)
        results: list[WorkflowResult] = []
        try:
            for run in gh_repo.get_workflow_runs(head_sha=commit):
                results.append(
                    WorkflowResult(
                        id=str(run.id),
                        name=run.name or "",
                        status=to_status(run.status),
                        conclusion=to_conclusion(run.conclusion),
                        conclusion_detail=run.conclusion or "",
                        artifacts=self._artifacts(owner, repo, run),
                    )
                )
        except GithubException as e:
            raise ProviderQueryError(f"could not list workflow runs for {owner}/{repo}@{commit}: {e}") from e
        logger.debug("found %d GitHub workflow run(s) for %s/%s@%s", len(results), owner, repo, commit)
        return results

    def get_commit_workflow_results(self, owner: str, repo: str, commit: str) -> list[WorkflowResult]:
        self.check_commit_exists(owner, repo, commit)
        return self.list_workflow_runs(owner, repo, commit)

    @staticmethod
    def _artifacts(owner: str, repo: str, run) -> list[WorkflowArtifact]:
        artifacts: list[WorkflowArtifact] = []
        try:
            for artifact in run.get_artifacts():
                artifacts.append(
                    WorkflowArtifact(
                        id=str(artifact.id),
                        name=artifact.name or "",
                        url=_ARTIFACT_URL.format(owner=owner, repo=repo, run_id=run.id, artifact_id=artifact.id),
                        api_url=artifact.url or "",
                    )
                )
        except GithubException as e:
            # Non-fatal: keep the artifacts listed so far.
            logger.warning("could not fetch artifacts of workflow run %s: %s", run.id, e)
        return artifacts
