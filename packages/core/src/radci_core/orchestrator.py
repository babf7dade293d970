"""Handle one broker event from request to terminal response.

    decode -> "triggered" -> resolve CI setup -> [start comment]
           -> wait for workflows [progress comments] -> aggregate
           -> [result comment] -> "finished"

Bracketed steps only happen for patch events. Comment failures never stop
the pipeline; every other failure aborts the event and is answered with an
error-shaped "finished" response by serve().
"""

from __future__ import annotations

import logging
import os
import tempfile
import time
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field

from radci_core import comments
from radci_core.aggregate import aggregate
from radci_core.broker.channel import Broker
from radci_core.broker.protocol import PatchEvent, PushEvent, decode, error_response, finished_response, triggered_response
from radci_core.errors import BrokerWriteError, PipelineFatalError
from radci_core.gh.actions import GitHubActions
from radci_core.models import AggregateOutcome, WorkflowResult
from radci_core.poller import wait
from radci_core.resolver import Materialize, resolve

logger = logging.getLogger(__name__)


@dataclass
class Dependencies:
    """Everything run_event needs from the outside world."""

    broker: Broker
    materialize: Materialize
    github: GitHubActions
    comment_client: comments.CommentClient
    radicle_home: str
    scratch_root: str = field(default_factory=tempfile.gettempdir)
    start_lag: float = 60
    poll_interval: float = 30
    total_timeout: float = 30 * 60
    sleep: Callable[[float], None] = time.sleep
    clock: Callable[[], float] = time.monotonic


def new_run_id() -> str:
    return str(uuid.uuid4())


def run_event(raw: str | bytes, deps: Dependencies, run_id: str) -> AggregateOutcome:
    """Run the pipeline for one request; raises on any fatal failure."""
    event = decode(raw)
    if isinstance(event, PushEvent):
        logger.info("received push event for %s at %s", event.repo, event.commit)
    elif isinstance(event, PatchEvent):
        logger.info("received patch event %s for %s at %s", event.patch.id, event.repo, event.commit)

    deps.broker.send(triggered_response(run_id))

    settings = resolve(
        event.repo,
        event.commit,
        os.path.join(deps.scratch_root, run_id),
        deps.materialize,
        deps.radicle_home,
    )
    if settings is None:
        logger.warning("repository %s has no GitHub Actions setup", event.repo)
        outcome = aggregate([])
        deps.broker.send(finished_response(outcome))
        return outcome

    thread = comments.comment_thread_for(event)
    if thread is not None:
        comments.post(deps.comment_client, thread, comments.start_message())

    def on_snapshot(results: list[WorkflowResult]) -> None:
        comments.post(deps.comment_client, thread, comments.progress_message(settings, results))

    results = wait(
        deps.github.get_commit_workflow_results,
        settings,
        event.commit,
        start_lag=deps.start_lag,
        poll_interval=deps.poll_interval,
        total_timeout=deps.total_timeout,
        on_snapshot=on_snapshot if thread is not None else None,
        sleep=deps.sleep,
        clock=deps.clock,
    )

    outcome = aggregate(results)
    logger.info("GitHub Actions result for %s at %s: %s", event.repo, event.commit, outcome.result.value)
    if thread is not None:
        comments.post(deps.comment_client, thread, comments.result_message(settings, outcome))

    deps.broker.send(finished_response(outcome))
    return outcome


def serve(raw: str | bytes, deps: Dependencies, run_id: str) -> AggregateOutcome | None:
    """Run the pipeline and turn any fatal failure into an error response.

    Returns the outcome, or None when the event failed.
    """
    logger.info("serving event %s", run_id)
    try:
        return run_event(raw, deps, run_id)
    except Exception as e:
        error = PipelineFatalError(e)
        logger.error("could not serve event %s: %s", run_id, error)

    try:
        deps.broker.send(error_response(str(error)))
    except BrokerWriteError as e:
        # The channel is gone; there is nobody left to tell.
        logger.error("could not respond to broker: %s", e)
    return None
