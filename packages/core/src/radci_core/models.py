"""Workflow, CI settings and outcome models shared by the resolver, poller and comments."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class WorkflowStatus(str, Enum):
    QUEUED = "queued"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class Conclusion(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"
    OTHER = "other"


class ResponseKind(str, Enum):
    TRIGGERED = "triggered"
    IN_PROGRESS = "in progress"
    FINISHED = "finished"


class OverallResult(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"


@dataclass(frozen=True)
class CISettings:
    """GitHub coordinates read from `.radicle/github_actions.yaml`."""

    github_username: str
    github_repo: str

    def run_url(self, run_id: str) -> str:
        return f"https://github.com/{self.github_username}/{self.github_repo}/actions/runs/{run_id}"


@dataclass
class WorkflowArtifact:
    id: str
    name: str
    url: str  # browser URL on github.com
    api_url: str


@dataclass
class WorkflowResult:
    """One GitHub Actions workflow run for the event's commit."""

    id: str
    name: str
    status: WorkflowStatus
    conclusion: Conclusion | None = None
    conclusion_detail: str = ""  # raw GitHub conclusion, e.g. "cancelled"
    artifacts: list[WorkflowArtifact] = field(default_factory=list)

    @property
    def completed(self) -> bool:
        return self.status is WorkflowStatus.COMPLETED


@dataclass
class AggregateOutcome:
    kind: ResponseKind
    result: OverallResult
    workflows: list[WorkflowResult] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.result is OverallResult.SUCCESS
