"""Materialize a Radicle repository at a commit with the git CLI."""

from __future__ import annotations

import logging
import subprocess

from radci_core.errors import SourceControlError

logger = logging.getLogger(__name__)

_GIT_TIMEOUT_SECS = 300


def _git(args: list[str], cwd: str | None = None) -> None:
    try:
        result = subprocess.run(
            ["git", *args],
            cwd=cwd,
            capture_output=True,
            text=True,
            timeout=_GIT_TIMEOUT_SECS,
        )
    except FileNotFoundError as e:
        raise SourceControlError("git executable not found") from e
    except subprocess.TimeoutExpired as e:
        raise SourceControlError(f"git {args[0]} timed out after {_GIT_TIMEOUT_SECS}s") from e
    if result.returncode != 0:
        raise SourceControlError(f"git {args[0]} failed: {result.stderr.strip() or result.returncode}")


def materialize(url: str, commit: str, destination: str) -> None:
    """Clone ``url`` into ``destination`` and check out ``commit``.

    All refs are fetched so that commits only reachable from patch refs can be
    checked out. The caller owns ``destination`` and must remove it.
    """
    logger.info("cloning %s at %s into %s", url, commit, destination)
    _git(["clone", "--quiet", url, destination])
    _git(["fetch", "--quiet", "--update-head-ok", "origin", "+refs/*:refs/*"], cwd=destination)
    _git(["checkout", "--quiet", "--detach", commit], cwd=destination)
