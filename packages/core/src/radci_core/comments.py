"""Status comments on the latest revision of a patch.

One event owns one CommentThread. The first post creates a comment and the
thread remembers its id; every later post edits that same comment, so the
patch shows a single status comment that is updated as workflows progress
instead of a growing list of them.

Comment failures are never fatal: they are logged and the event carries on.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from radci_core.aggregate import workflow_label
from radci_core.broker.protocol import PatchEvent, PushEvent, RequestEvent
from radci_core.models import AggregateOutcome, CISettings, Conclusion, WorkflowResult

logger = logging.getLogger(__name__)

START_MESSAGE = "Checking for GitHub Actions Workflows."

_ICON_PENDING = "⏳"
_ICON_SUCCESS = "✅"
_ICON_FAILURE = "❌"
_ICON_OTHER = "⚠️"


class CommentClient(Protocol):
    def post_or_edit_comment(
        self,
        repo_id: str,
        patch_id: str,
        revision_id: str,
        body: str,
        comment_id: str | None = None,
    ) -> str: ...


class CommentState(str, Enum):
    NO_COMMENT = "no_comment"
    POSTED = "posted"
    EDITED = "edited"


@dataclass
class CommentThread:
    """The comment being kept up to date for one patch revision during one event."""

    repo_id: str
    patch_id: str
    revision_id: str
    comment_id: str | None = None
    edits: int = 0

    @property
    def state(self) -> CommentState:
        if self.comment_id is None:
            return CommentState.NO_COMMENT
        return CommentState.EDITED if self.edits else CommentState.POSTED


def comment_thread_for(event: RequestEvent) -> CommentThread | None:
    """Return the thread for a patch event's latest revision; None for pushes or revision-less patches."""
    if isinstance(event, PushEvent):
        return None
    if isinstance(event, PatchEvent):
        revision = event.latest_revision
        if revision is None:
            logger.warning("could not comment on patch %s: no revision found in patch", event.patch.id)
            return None
        return CommentThread(repo_id=event.repo, patch_id=event.patch.id, revision_id=revision.id)
    raise TypeError(f"unexpected event type: {type(event).__name__}")


def post(client: CommentClient, thread: CommentThread, body: str) -> bool:
    """Create the thread's comment, or edit it if one was already created. Never raises."""
    try:
        comment_id = client.post_or_edit_comment(
            thread.repo_id, thread.patch_id, thread.revision_id, body, thread.comment_id
        )
    except Exception as e:
        logger.warning(
            "could not comment on patch %s revision %s: %s", thread.patch_id, thread.revision_id, e
        )
        return False

    if thread.comment_id is None:
        thread.comment_id = comment_id
        logger.debug("created patch comment %s on revision %s", comment_id, thread.revision_id)
    else:
        thread.edits += 1
        logger.debug("edited patch comment %s on revision %s", thread.comment_id, thread.revision_id)
    return True


# --------------------------------------------------------------------------- #
# Message templates                                                           #
# --------------------------------------------------------------------------- #


def _icon(result: WorkflowResult) -> str:
    if result.conclusion is Conclusion.SUCCESS:
        return _ICON_SUCCESS
    if result.conclusion is Conclusion.FAILURE:
        return _ICON_FAILURE
    if result.conclusion is None:
        return _ICON_PENDING
    return _ICON_OTHER


def _run_link(settings: CISettings, result: WorkflowResult) -> str:
    return f'[{result.name} ({result.id}) {_icon(result)}]({settings.run_url(result.id)} "{workflow_label(result)}")'


def start_message() -> str:
    return START_MESSAGE


def progress_message(settings: CISettings, results: list[WorkflowResult]) -> str:
    done = sum(1 for r in results if r.completed)
    lines = [f"GitHub Actions Workflows {_ICON_PENDING} ({done}/{len(results)} completed)", "", "Workflows:"]
    for result in results:
        lines.append("")
        lines.append(f" - {_run_link(settings, result)}")
    return "\n".join(lines)


def result_message(settings: CISettings, outcome: AggregateOutcome) -> str:
    icon = _ICON_SUCCESS if outcome.succeeded else _ICON_FAILURE
    lines = [f"GitHub Actions Result: {outcome.result.value} {icon}", "", "Details:"]
    for result in outcome.workflows:
        lines.append("")
        lines.append(f" - {_run_link(settings, result)}")
        for artifact in result.artifacts:
            lines.append(f"   - [{artifact.name}]({artifact.url})")
    return "\n".join(lines)
