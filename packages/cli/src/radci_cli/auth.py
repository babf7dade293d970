"""Where radci gets its GitHub token from.

The adapter's own GITHUB_PAT wins, then a GITHUB_TOKEN exported by the
environment, then the session of a logged-in GitHub CLI. Without any of them
radci queries GitHub anonymously, which works for public mirrors.
"""

from __future__ import annotations

import logging
import os
import subprocess

logger = logging.getLogger(__name__)

TOKEN_ENV_VARS = ("GITHUB_PAT", "GITHUB_TOKEN")
GH_CLI_TIMEOUT_SECS = 10


def _token_from_gh_cli() -> str | None:
    try:
        proc = subprocess.run(
            ["gh", "auth", "token", "--hostname", "github.com"],
            capture_output=True,
            text=True,
            timeout=GH_CLI_TIMEOUT_SECS,
        )
    except (OSError, subprocess.SubprocessError) as e:
        logger.debug("gh CLI not usable for a GitHub token: %s", e)
        return None
    if proc.returncode != 0:
        logger.debug("gh CLI has no GitHub session (exit %s)", proc.returncode)
        return None
    return proc.stdout.strip() or None


def resolve_github_token() -> str | None:
    for var in TOKEN_ENV_VARS:
        token = os.environ.get(var)
        if token:
            logger.debug("using GitHub token from %s", var)
            return token

    token = _token_from_gh_cli()
    if token:
        logger.debug("using GitHub token from the gh CLI session")
    return token
