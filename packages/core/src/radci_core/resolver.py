"""Find out whether a repository at a commit is wired up to GitHub Actions.

A repository opts in by committing two things:

  .radicle/github_actions.yaml   github_username + github_repo of the mirror
  .github/workflows/*.yml        at least one workflow definition

Anything short of that means "no CI configured", which is a normal answer
(None), not an error. Only failing to materialize the repository is fatal.
"""

from __future__ import annotations

import logging
import shutil
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from pathlib import Path

import yaml

from radci_core.errors import ResolverFatalError, SourceControlError
from radci_core.models import CISettings

logger = logging.getLogger(__name__)

SETTINGS_PATH = Path(".radicle") / "github_actions.yaml"
WORKFLOWS_DIR = Path(".github") / "workflows"
_WORKFLOW_SUFFIXES = (".yaml", ".yml")

Materialize = Callable[[str, str, str], None]


def normalize_repo_id(repo_id: str) -> str:
    return repo_id.removeprefix("rad:")


def storage_url(radicle_home: str, repo_id: str) -> str:
    return f"file://{radicle_home}/storage/{normalize_repo_id(repo_id)}"


@contextmanager
def scratch_directory(path: str) -> Iterator[Path]:
    """Own ``path`` for the duration of the block and remove it on every exit path."""
    try:
        yield Path(path)
    finally:
        shutil.rmtree(path, ignore_errors=True)
        logger.debug("removed scratch directory %s", path)


def read_settings(repo_root: Path) -> CISettings | None:
    """Read the GitHub mirror coordinates; missing, unparseable or incomplete all yield None."""
    settings_file = repo_root / SETTINGS_PATH
    if not settings_file.is_file():
        logger.info("no GitHub Actions settings file found at %s", SETTINGS_PATH)
        return None
    try:
        with open(settings_file) as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        logger.info("could not decode GitHub Actions settings file: %s", e)
        return None
    if not isinstance(data, dict):
        logger.warning("GitHub Actions settings file is not a mapping")
        return None

    username = data.get("github_username")
    repo = data.get("github_repo")
    if not isinstance(username, str) or not isinstance(repo, str) or not username or not repo:
        logger.warning("empty GitHub Actions setup found")
        return None
    return CISettings(github_username=username, github_repo=repo)


def list_workflow_files(repo_root: Path) -> list[Path]:
    """List workflow definitions directly inside the workflows directory (no recursion)."""
    directory = repo_root / WORKFLOWS_DIR
    if not directory.is_dir():
        return []
    return sorted(
        p for p in directory.iterdir() if p.is_file() and p.name.lower().endswith(_WORKFLOW_SUFFIXES)
    )


def resolve(
    repo_id: str,
    commit: str,
    scratch_path: str,
    materialize: Materialize,
    radicle_home: str,
) -> CISettings | None:
    """Return the repository's CI settings at ``commit``, or None when CI is not configured.

    Raises ResolverFatalError when the repository cannot be materialized.
    """
    url = storage_url(radicle_home, repo_id)
    with scratch_directory(scratch_path) as repo_root:
        try:
            materialize(url, commit, str(repo_root))
        except SourceControlError as e:
            logger.error("failed to clone repository from %s: %s", url, e)
            raise ResolverFatalError(str(e)) from e

        settings = read_settings(repo_root)
        if settings is None:
            return None

        workflows = list_workflow_files(repo_root)
        if not workflows:
            logger.warning("no GitHub Actions workflow files found in %s", WORKFLOWS_DIR)
            return None
        logger.debug("found GitHub Actions workflow files: %s", [w.name for w in workflows])
        return settings
