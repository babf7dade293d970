"""Tests for CI setup resolution."""

import os

import pytest

from radci_core.errors import ResolverFatalError, SourceControlError
from radci_core.models import CISettings
from radci_core.resolver import list_workflow_files, normalize_repo_id, resolve, scratch_directory, storage_url

SETTINGS_YAML = "github_username: gh_username\ngithub_repo: gh_reponame\n"


def _materializer(settings=SETTINGS_YAML, workflows=("ci.yaml",), calls=None):
    """Return a fake materialize() that writes a repository tree into the destination."""

    def materialize(url, commit, destination):
        if calls is not None:
            calls.append((url, commit, destination))
        os.makedirs(destination, exist_ok=True)
        if settings is not None:
            os.makedirs(os.path.join(destination, ".radicle"))
            with open(os.path.join(destination, ".radicle", "github_actions.yaml"), "w") as f:
                f.write(settings)
        if workflows is not None:
            wf_dir = os.path.join(destination, ".github", "workflows")
            os.makedirs(wf_dir)
            for name in workflows:
                with open(os.path.join(wf_dir, name), "w") as f:
                    f.write("on: push\n")

    return materialize


def test_normalize_repo_id_strips_scheme():
    assert normalize_repo_id("rad:z3gqcJUoA1n9") == "z3gqcJUoA1n9"
    assert normalize_repo_id("z3gqcJUoA1n9") == "z3gqcJUoA1n9"


def test_normalize_repo_id_keeps_rad_characters_in_id():
    # Only the prefix is removed, never characters from the id itself.
    assert normalize_repo_id("rad:zdar") == "zdar"


def test_storage_url():
    assert storage_url("/home/u/.radicle", "rad:z3gq") == "file:///home/u/.radicle/storage/z3gq"


def test_resolve_returns_settings(tmp_path):
    calls = []
    scratch = tmp_path / "event-1"
    settings = resolve("rad:z3gq", "abc", str(scratch), _materializer(calls=calls), "/rad")
    assert settings == CISettings(github_username="gh_username", github_repo="gh_reponame")
    assert calls == [("file:///rad/storage/z3gq", "abc", str(scratch))]
    assert not scratch.exists()


def test_missing_settings_file_is_none(tmp_path):
    scratch = tmp_path / "event"
    assert resolve("rad:z", "abc", str(scratch), _materializer(settings=None), "/rad") is None
    assert not scratch.exists()


def test_unparseable_settings_file_is_none(tmp_path):
    assert resolve("rad:z", "abc", str(tmp_path / "e"), _materializer(settings="github_username: [\n"), "/rad") is None


def test_non_mapping_settings_file_is_none(tmp_path):
    assert resolve("rad:z", "abc", str(tmp_path / "e"), _materializer(settings="- a\n- b\n"), "/rad") is None


@pytest.mark.parametrize(
    "content",
    [
        "github_username: gh_username\n",
        "github_repo: gh_reponame\n",
        "github_username: ''\ngithub_repo: gh_reponame\n",
        "github_username: 42\ngithub_repo: gh_reponame\n",
    ],
)
def test_incomplete_settings_are_none(tmp_path, content):
    assert resolve("rad:z", "abc", str(tmp_path / "e"), _materializer(settings=content), "/rad") is None


def test_no_workflow_directory_is_none(tmp_path):
    assert resolve("rad:z", "abc", str(tmp_path / "e"), _materializer(workflows=None), "/rad") is None


def test_no_yaml_workflows_is_none(tmp_path):
    materialize = _materializer(workflows=("README.md",))
    assert resolve("rad:z", "abc", str(tmp_path / "e"), materialize, "/rad") is None


def test_uppercase_yml_suffix_counts(tmp_path):
    settings = resolve("rad:z", "abc", str(tmp_path / "e"), _materializer(workflows=("BUILD.YML",)), "/rad")
    assert settings is not None


def test_materialize_failure_is_fatal_and_cleans_up(tmp_path):
    scratch = tmp_path / "event"

    def failing(url, commit, destination):
        os.makedirs(destination)
        raise SourceControlError("fatal: reference is not a tree")

    with pytest.raises(ResolverFatalError, match="not a tree"):
        resolve("rad:z", "abc", str(scratch), failing, "/rad")
    assert not scratch.exists()


def test_list_workflow_files_is_not_recursive(tmp_path):
    wf_dir = tmp_path / ".github" / "workflows"
    (wf_dir / "nested").mkdir(parents=True)
    (wf_dir / "nested" / "deep.yml").write_text("on: push\n")
    (wf_dir / "ci.yml").write_text("on: push\n")
    (wf_dir / "release.yaml").write_text("on: push\n")
    assert [p.name for p in list_workflow_files(tmp_path)] == ["ci.yml", "release.yaml"]


def test_scratch_directory_removed_on_exception(tmp_path):
    scratch = tmp_path / "scratch"
    with pytest.raises(RuntimeError):
        with scratch_directory(str(scratch)) as path:
            path.mkdir()
            (path / "file").write_text("x")
            raise RuntimeError("boom")
    assert not scratch.exists()


def test_scratch_directory_tolerates_never_created_path(tmp_path):
    with scratch_directory(str(tmp_path / "never")):
        pass
