"""Wait for the GitHub workflow runs of a commit to finish."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from radci_core.models import CISettings, WorkflowResult

logger = logging.getLogger(__name__)

Query = Callable[[str, str, str], list[WorkflowResult]]
OnSnapshot = Callable[[list[WorkflowResult]], None]


def all_completed(results: list[WorkflowResult]) -> bool:
    return all(r.completed for r in results)


def wait(
    query: Query,
    settings: CISettings,
    commit: str,
    start_lag: float,
    poll_interval: float,
    total_timeout: float,
    on_snapshot: OnSnapshot | None = None,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> list[WorkflowResult]:
    """Poll ``query`` until every run for ``commit`` has completed or ``total_timeout`` elapses.

    The start lag gives GitHub time to register runs for a commit that was
    pushed moments ago; it counts toward the timeout and never outlasts it.
    An empty result set is returned as-is (no workflows triggered). Reaching
    the timeout is not an
    error: the latest, possibly incomplete, snapshot is returned. Errors from
    ``query`` propagate unchanged. Errors from ``on_snapshot`` are logged and
    ignored.
    """
    started = clock()
    lag = min(start_lag, total_timeout)
    if lag > 0:
        logger.info("waiting %ss for GitHub to register workflow runs", lag)
        sleep(lag)

    while True:
        results = query(settings.github_username, settings.github_repo, commit)
        if not results or all_completed(results):
            logger.info("%d workflow run(s) completed", len(results))
            return results

        elapsed = clock() - started
        if elapsed >= total_timeout:
            logger.warning(
                "reached timeout after %.0fs while waiting for workflows to complete (%d pending)",
                elapsed,
                sum(1 for r in results if not r.completed),
            )
            return results

        if on_snapshot is not None:
            try:
                on_snapshot(results)
            except Exception as e:
                logger.warning("workflow snapshot callback failed: %s", e)

        sleep(min(poll_interval, total_timeout - elapsed))
